"""Standardized error handling for DBML2ORM pipeline stages.

Provides consistent error handling, logging, and error response creation.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
import traceback

from DBML2ORM.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Context information for error handling."""
    stage: str
    document: Optional[str] = None
    table_name: Optional[str] = None
    column_name: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    additional_context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StageError(Exception):
    """Standardized error for pipeline stage failures."""
    message: str
    context: ErrorContext
    original_exception: Optional[Exception] = None
    error_type: str = "stage_error"
    
    def __str__(self) -> str:
        return f"[{self.context.stage}] {self.message}"


def log_error_with_context(
    error: Exception,
    context: ErrorContext,
    level: str = "error",
    exc_info: bool = True,
) -> None:
    """
    Log error with full context information.
    
    Args:
        error: The exception that occurred
        context: Error context information
        level: Log level ("error", "warning", "critical")
        exc_info: Whether to attach the traceback to the record
    """
    log_msg_parts = [f"Error in stage {context.stage}"]
    
    if context.document:
        log_msg_parts.append(f"Document: {context.document}")
    if context.table_name:
        log_msg_parts.append(f"Table: {context.table_name}")
    if context.column_name:
        log_msg_parts.append(f"Column: {context.column_name}")
    if context.line is not None:
        log_msg_parts.append(f"Line: {context.line}, column: {context.column}")
    
    log_msg = " | ".join(log_msg_parts)
    
    if level == "critical":
        logger.critical(f"{log_msg}: {error}", exc_info=exc_info)
    elif level == "warning":
        logger.warning(f"{log_msg}: {error}", exc_info=exc_info)
    else:
        logger.error(f"{log_msg}: {error}", exc_info=exc_info)
    
    if context.additional_context:
        logger.debug(f"Additional context: {context.additional_context}")


def create_error_response(
    error: Exception,
    context: ErrorContext,
) -> Dict[str, Any]:
    """
    Create standardized error response dictionary.
    
    Args:
        error: The exception that occurred
        context: Error context information
        
    Returns:
        Dictionary with error information
    """
    error_response = {
        "success": False,
        "error": {
            "type": type(error).__name__,
            "message": str(error),
            "stage": context.stage,
            "timestamp": datetime.now().isoformat(),
        }
    }
    
    if context.document:
        error_response["error"]["document"] = context.document
    if context.table_name:
        error_response["error"]["table_name"] = context.table_name
    if context.column_name:
        error_response["error"]["column_name"] = context.column_name
    if context.line is not None:
        error_response["error"]["line"] = context.line
        error_response["error"]["column"] = context.column
    
    if error.__traceback__ is not None:
        tb_str = "".join(traceback.format_tb(error.__traceback__))
        # Keep the tail only; responses are meant for display
        error_response["error"]["traceback"] = tb_str[-500:] if len(tb_str) > 500 else tb_str
    
    if context.additional_context:
        error_response["error"]["additional_context"] = context.additional_context
    
    return error_response


def handle_stage_error(
    error: Exception,
    context: ErrorContext,
    log_level: str = "error",
    reraise: bool = False,
) -> Optional[Dict[str, Any]]:
    """
    Handle a stage error with standardized logging and response creation.
    
    Args:
        error: The exception that occurred
        context: Error context information
        log_level: Log level ("error", "warning", "critical")
        reraise: If True, re-raise the exception wrapped in StageError
        
    Returns:
        Error response dictionary
        
    Raises:
        StageError: If reraise=True, wraps original error in StageError
    """
    log_error_with_context(error, context, level=log_level)
    
    error_response = create_error_response(error, context)
    
    if reraise:
        stage_error = StageError(
            message=str(error),
            context=context,
            original_exception=error,
            error_type=type(error).__name__
        )
        raise stage_error from error
    
    return error_response
