"""Diagnostics shared by every pipeline stage."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PipelineStage(str, Enum):
    """Stages of the transpiler pipeline."""
    LEXICAL = "lexical"
    SYNTAX = "syntax"
    SEMANTIC = "semantic"
    TYPE_MAPPING = "type_mapping"
    GENERATION = "generation"
    COMPLETE = "complete"


class ErrorSeverity(str, Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Diagnostic(BaseModel):
    """One error or warning with its source position, for display by a reporter."""

    stage: PipelineStage = Field(description="Stage that produced the diagnostic")
    severity: ErrorSeverity = Field(ErrorSeverity.ERROR, description="Severity of the diagnostic")
    kind: str = Field(description="Error kind, e.g. 'LexError', 'ParseError', 'Unknown Table', 'UnknownTypeError'")
    message: str = Field(description="Human-readable message")
    line: Optional[int] = Field(None, description="Line number (1-indexed)")
    column: Optional[int] = Field(None, description="Column number (1-indexed)")
    table: Optional[str] = Field(None, description="Table the diagnostic is about, if any")
    column_name: Optional[str] = Field(None, description="Column the diagnostic is about, if any")
    suggestion: Optional[str] = Field(None, description="Suggestion for fixing the problem")
    context: Optional[str] = Field(None, description="Source snippet with a caret under the position")

    model_config = ConfigDict(frozen=True)

    @property
    def is_error(self) -> bool:
        return self.severity == ErrorSeverity.ERROR

    def format_message(self) -> str:
        """Format as ``<line>:<column>: <severity> [<kind>] <message>`` plus context lines."""
        location = f"{self.line}:{self.column}: " if self.line is not None else ""
        parts = [f"{location}{self.severity.value} [{self.kind}] {self.message}"]
        if self.context:
            parts.append(self.context)
        if self.suggestion:
            parts.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(parts)
