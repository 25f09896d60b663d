"""Standardized error handling utilities.

Provides consistent error handling patterns across the pipeline stages.
"""

from .handlers import (
    handle_stage_error,
    StageError,
    ErrorContext,
    log_error_with_context,
    create_error_response,
)

__all__ = [
    "handle_stage_error",
    "StageError",
    "ErrorContext",
    "log_error_with_context",
    "create_error_response",
]
