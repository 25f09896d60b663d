"""Pydantic models for the DBML front-end intermediate steps.

This module defines structured data models for representing intermediate
results at each stage of the front end:
- Lexer: TokenizationResult
- Parser: ParseResult
- Resolver: ResolutionResult

The full pipeline result (``TranspileResult``) lives in ``pipeline.py`` next to
the type-mapping and generation stages it also covers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from DBML2ORM.ir.models.ast import SchemaAST
from DBML2ORM.ir.models.diagnostics import Diagnostic, ErrorSeverity, PipelineStage
from DBML2ORM.ir.models.resolved import ResolvedSchema

from .errors import SemanticErrorDetail


TokenCategory = Literal["keyword", "identifier", "literal", "punctuation", "operator", "comment", "eof"]


# ============================================================================
# Lexer Models
# ============================================================================

class DBMLTokenModel(BaseModel):
    """Pydantic model for a DBML token."""
    
    type: str = Field(description="Token type (e.g., 'NAME', 'STRING', 'LBRACE')")
    value: str = Field(description="Token value (the actual text)")
    category: TokenCategory = Field(description="Semantic category of the token")
    line: Optional[int] = Field(None, description="Line number where token appears (1-indexed)")
    column: Optional[int] = Field(None, description="Column number where token appears (1-indexed)")
    
    model_config = ConfigDict(frozen=True)


class TokenizationResult(BaseModel):
    """Result of lexical analysis (tokenization) phase."""
    
    success: bool = Field(description="Whether tokenization succeeded")
    tokens: List[DBMLTokenModel] = Field(default_factory=list, description="List of tokens produced (EOF included)")
    original_text: str = Field(description="Original DBML document that was tokenized")
    token_count: int = Field(description="Total number of tokens")
    error: Optional[str] = Field(None, description="Error message if tokenization failed")
    error_line: Optional[int] = Field(None, description="Line number where error occurred")
    error_column: Optional[int] = Field(None, description="Column number where error occurred")
    timestamp: datetime = Field(default_factory=datetime.now, description="When tokenization was performed")
    
    @classmethod
    def from_tokens(cls, tokens: List[Any], text: str) -> TokenizationResult:
        """Create TokenizationResult from a list of DBMLToken objects."""
        token_models = [
            DBMLTokenModel(
                type=token.type,
                value=token.value,
                category=token.category,
                line=token.line,
                column=token.column,
            )
            for token in tokens
        ]
        return cls(
            success=True,
            tokens=token_models,
            original_text=text,
            token_count=len(token_models),
        )
    
    @classmethod
    def from_error(cls, text: str, error: str, line: Optional[int] = None, column: Optional[int] = None) -> TokenizationResult:
        """Create TokenizationResult from an error."""
        return cls(
            success=False,
            tokens=[],
            original_text=text,
            token_count=0,
            error=error,
            error_line=line,
            error_column=column,
        )


# ============================================================================
# Parser Models
# ============================================================================

class ParseErrorDetail(BaseModel):
    """Detailed information about a parse error."""
    
    message: str = Field(description="Error message")
    line: Optional[int] = Field(None, description="Line number where error occurred")
    column: Optional[int] = Field(None, description="Column number where error occurred")
    found: Optional[str] = Field(None, description="Token that was found")
    expected: Optional[List[str]] = Field(None, description="List of expected constructs")
    context: Optional[str] = Field(None, description="Context snippet showing error location")
    suggestions: Optional[List[str]] = Field(None, description="Suggestions for fixing the error")


class ParseResult(BaseModel):
    """Result of syntax analysis (parsing) phase."""
    
    success: bool = Field(description="Whether parsing succeeded")
    original_text: str = Field(description="Original DBML document that was parsed")
    ast: Optional[SchemaAST] = Field(None, description="Parsed document (only if parsing succeeded)")
    error: Optional[ParseErrorDetail] = Field(None, description="Detailed error information if parsing failed")
    timestamp: datetime = Field(default_factory=datetime.now, description="When parsing was performed")
    
    # Metadata about the document (if successful)
    declaration_count: Optional[int] = Field(None, description="Number of top-level declarations")
    table_count: Optional[int] = Field(None, description="Number of tables")
    
    @classmethod
    def from_success(cls, text: str, ast: SchemaAST) -> ParseResult:
        """Create ParseResult from a successful parse."""
        return cls(
            success=True,
            original_text=text,
            ast=ast,
            declaration_count=len(ast.declarations),
            table_count=len(ast.tables),
        )
    
    @classmethod
    def from_error(
        cls,
        text: str,
        error_message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        found: Optional[str] = None,
        expected: Optional[List[str]] = None,
        context: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ParseResult:
        """Create ParseResult from a parse error."""
        return cls(
            success=False,
            original_text=text,
            error=ParseErrorDetail(
                message=error_message,
                line=line,
                column=column,
                found=found,
                expected=expected,
                context=context,
                suggestions=suggestions,
            ),
        )


# ============================================================================
# Resolver Models
# ============================================================================

class SemanticError(BaseModel):
    """A single semantic validation error or warning.
    
    This is a wrapper around SemanticErrorDetail that adds severity.
    For creating errors, use SemanticErrorDetail factory methods from errors module.
    """
    
    error_type: str = Field(description="Type/category of error (e.g., 'Unknown Table', 'Duplicate Column')")
    message: str = Field(description="Error message")
    identifier: Optional[str] = Field(None, description="Identifier that caused the error")
    table: Optional[str] = Field(None, description="Table the error is about")
    column_name: Optional[str] = Field(None, description="Column the error is about")
    line: Optional[int] = Field(None, description="Line number (1-indexed)")
    column: Optional[int] = Field(None, description="Column number (1-indexed)")
    suggestion: Optional[str] = Field(None, description="Suggestion for fixing the error")
    severity: ErrorSeverity = Field(ErrorSeverity.ERROR, description="Severity of the error")
    
    @classmethod
    def from_detail(cls, detail: SemanticErrorDetail, severity: ErrorSeverity = ErrorSeverity.ERROR) -> SemanticError:
        """Create SemanticError from SemanticErrorDetail."""
        return cls(
            error_type=detail.error_type,
            message=detail.message,
            identifier=detail.identifier,
            table=detail.table,
            column_name=detail.column_name,
            line=detail.line,
            column=detail.column,
            suggestion=detail.suggestion,
            severity=severity,
        )

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            stage=PipelineStage.SEMANTIC,
            severity=self.severity,
            kind=self.error_type,
            message=self.message,
            line=self.line,
            column=self.column,
            table=self.table,
            column_name=self.column_name,
            suggestion=self.suggestion,
        )


class ResolutionResult(BaseModel):
    """Result of semantic resolution phase."""
    
    valid: bool = Field(description="Whether the document passed all semantic checks")
    resolved_schema: Optional[ResolvedSchema] = Field(None, description="Resolved schema (only when valid)")
    errors: List[SemanticError] = Field(default_factory=list, description="Semantic errors, in source order")
    error_count: int = Field(0, description="Total number of errors")
    warnings: List[SemanticError] = Field(default_factory=list, description="List of warnings (non-fatal issues)")
    timestamp: datetime = Field(default_factory=datetime.now, description="When resolution was performed")
    
    # Summary of the resolved schema
    table_count: int = Field(0, description="Number of resolved tables")
    relationship_count: int = Field(0, description="Number of resolved relationships")
    
    @classmethod
    def from_success(cls, schema: ResolvedSchema, warnings: Optional[List[SemanticError]] = None) -> ResolutionResult:
        """Create ResolutionResult from a successful resolution."""
        return cls(
            valid=True,
            resolved_schema=schema,
            warnings=warnings or [],
            table_count=len(schema.tables),
            relationship_count=len(schema.relationships),
        )
    
    @classmethod
    def from_errors(
        cls,
        errors: List[SemanticError],
        warnings: Optional[List[SemanticError]] = None,
    ) -> ResolutionResult:
        """Create ResolutionResult from resolution errors."""
        return cls(
            valid=False,
            errors=errors,
            error_count=len(errors),
            warnings=warnings or [],
        )

    def diagnostics(self) -> List[Diagnostic]:
        return [e.to_diagnostic() for e in self.errors] + [w.to_diagnostic() for w in self.warnings]
    
    def get_error_summary(self) -> str:
        """Get a formatted summary of all errors."""
        if not self.errors:
            return "No errors found."
        
        if len(self.errors) == 1:
            err = self.errors[0]
            parts = [f"[{err.error_type}] {err.message}"]
            if err.identifier:
                parts.append(f"  Identifier: {err.identifier}")
            if err.suggestion:
                parts.append(f"  Suggestion: {err.suggestion}")
            return "\n".join(parts)
        else:
            parts = [f"Found {len(self.errors)} semantic error(s):"]
            for i, err in enumerate(self.errors, 1):
                location = f" (line {err.line})" if err.line is not None else ""
                parts.append(f"\n{i}. [{err.error_type}] {err.message}{location}")
                if err.suggestion:
                    parts.append(f"   Suggestion: {err.suggestion}")
            return "\n".join(parts)
