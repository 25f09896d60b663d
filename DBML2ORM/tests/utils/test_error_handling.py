"""Unit tests for error handling utilities."""

import logging

import pytest

from DBML2ORM.utils.error_handling import (
    ErrorContext,
    StageError,
    handle_stage_error,
    log_error_with_context,
    create_error_response,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_error_context(self):
        """Test creating error context."""
        context = ErrorContext(
            stage="semantic",
            table_name="post",
            line=3,
            column=5,
        )

        assert context.stage == "semantic"
        assert context.table_name == "post"
        assert context.column_name is None
        assert context.additional_context == {}


class TestStageError:
    """Test StageError exception."""

    def test_create_stage_error(self):
        """Test creating StageError."""
        context = ErrorContext(stage="generation")
        error = StageError(
            message="Test error",
            context=context
        )

        assert str(error) == "[generation] Test error"
        assert error.context == context
        assert error.error_type == "stage_error"

    def test_stage_error_with_original_exception(self):
        """Test StageError with original exception."""
        context = ErrorContext(stage="generation")
        original = KeyError("public.user")
        error = StageError(
            message="Wrapped error",
            context=context,
            original_exception=original
        )

        assert error.original_exception is original


class TestHandleStageError:
    """Test handle_stage_error function."""

    def test_handle_stage_error_no_raise(self):
        """Test handle_stage_error without raising."""
        context = ErrorContext(stage="type_mapping", table_name="post", column_name="price")
        error = ValueError("Test error")

        response = handle_stage_error(error, context, reraise=False)

        assert response is not None
        assert response["success"] is False
        assert response["error"]["stage"] == "type_mapping"
        assert response["error"]["table_name"] == "post"
        assert response["error"]["column_name"] == "price"

    def test_handle_stage_error_raises(self):
        """Test handle_stage_error with reraise=True."""
        context = ErrorContext(stage="generation")
        error = ValueError("Test error")

        with pytest.raises(StageError) as exc_info:
            handle_stage_error(error, context, reraise=True)
        assert exc_info.value.error_type == "ValueError"
        assert exc_info.value.__cause__ is error

    def test_logs_at_requested_level(self, caplog):
        """Test that the log level and context reach the record."""
        context = ErrorContext(stage="syntax", document="shop.dbml", line=4, column=2)
        with caplog.at_level(logging.DEBUG):
            log_error_with_context(ValueError("Boom"), context, level="warning", exc_info=False)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "Error in stage syntax" in record.getMessage()
        assert "Document: shop.dbml" in record.getMessage()
        assert "Line: 4, column: 2" in record.getMessage()
        assert not record.exc_info


class TestCreateErrorResponse:
    """Test create_error_response function."""

    def test_create_error_response(self):
        """Test creating error response."""
        context = ErrorContext(stage="semantic", table_name="post", line=7, column=1)
        error = ValueError("Test error")

        response = create_error_response(error, context)

        assert response["success"] is False
        assert response["error"]["type"] == "ValueError"
        assert response["error"]["message"] == "Test error"
        assert response["error"]["stage"] == "semantic"
        assert response["error"]["line"] == 7
        assert "timestamp" in response["error"]
        assert "traceback" not in response["error"]

    def test_create_error_response_with_additional_context(self):
        """Test error response with additional context."""
        context = ErrorContext(
            stage="generation",
            additional_context={"tables": 3}
        )
        error = ValueError("Test error")

        response = create_error_response(error, context)

        assert response["error"]["additional_context"]["tables"] == 3

    def test_traceback_is_included_for_raised_errors(self):
        try:
            raise RuntimeError("raised")
        except RuntimeError as e:
            response = create_error_response(e, ErrorContext(stage="generation"))
        assert "test_traceback_is_included_for_raised_errors" in response["error"]["traceback"]
