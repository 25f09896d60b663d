"""Centralized error detail models for the DBML pipeline.

This module provides Pydantic-based error classes for the front-end phases:
- Lexical errors (tokenization)
- Syntax errors (parsing)
- Semantic errors (resolution)

All error messages are generated from these structured error classes.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


def context_snippet(text: Optional[str], line: Optional[int], column: Optional[int], span: int = 30) -> Optional[str]:
    """Return the source line around (line, column) with a caret under the column."""
    if not text or not line or not column:
        return None
    lines = text.splitlines()
    if line > len(lines):
        return None
    line_text = lines[line - 1]
    start = max(0, column - 1 - span)
    end = min(len(line_text), column + span)
    snippet = line_text[start:end]
    pointer = " " * (column - 1 - start) + "^"
    return f"  {snippet}\n  {pointer}"


class LexicalError(BaseModel):
    """Lexical analysis error (tokenization phase)."""
    
    message: str = Field(description="Error message")
    line: Optional[int] = Field(None, description="Line number where error occurred (1-indexed)")
    column: Optional[int] = Field(None, description="Column number where error occurred (1-indexed)")
    invalid_char: Optional[str] = Field(None, description="Character that could not be tokenized")
    context: Optional[str] = Field(None, description="Context snippet showing error location")
    
    def format_message(self) -> str:
        """Format a comprehensive lexical error message."""
        parts = [f"Lexical error: {self.message}"]
        
        if self.line is not None and self.column is not None:
            parts.append(f"Location: line {self.line}, column {self.column}")
        
        if self.invalid_char:
            parts.append(f"Invalid character: {self.invalid_char!r}")
            if ord(self.invalid_char[0]) > 127:
                parts.append(f"Character code: U+{ord(self.invalid_char[0]):04X}")
        
        if self.context:
            parts.append(f"Context:\n{self.context}")
        
        suggestions = self.get_suggestions()
        if suggestions:
            parts.append("Suggestions:")
            parts.extend(f"  - {s}" for s in suggestions)
        
        return "\n".join(parts)
    
    def get_suggestions(self) -> List[str]:
        suggestions = []
        if self.invalid_char in ("'", '"', "`"):
            suggestions.append(f"Close the literal with a matching {self.invalid_char}")
            if self.invalid_char == "'":
                suggestions.append("Use ''' ... ''' for strings spanning several lines")
        elif self.invalid_char == "/":
            suggestions.append("Close block comments with */")
        elif self.invalid_char in (";", "="):
            suggestions.append("DBML statements are not terminated by ';' and settings use ':'")
        return suggestions


class SyntaxErrorDetail(BaseModel):
    """Syntax analysis error (parsing phase)."""
    
    message: str = Field(description="Error message")
    line: Optional[int] = Field(None, description="Line number where error occurred (1-indexed)")
    column: Optional[int] = Field(None, description="Column number where error occurred (1-indexed)")
    found: Optional[str] = Field(None, description="Token that was found")
    expected: Optional[List[str]] = Field(None, description="Constructs that were expected")
    context: Optional[str] = Field(None, description="Context snippet showing error location")
    
    def format_message(self) -> str:
        """Format a comprehensive syntax error message."""
        parts = [f"Syntax error: {self.message}"]
        
        if self.line is not None and self.column is not None:
            parts.append(f"Location: line {self.line}, column {self.column}")
        
        if self.found is not None:
            parts.append(f"Found: {self.found!r}")
        
        if self.expected:
            if len(self.expected) == 1:
                parts.append(f"Expected: {self.expected[0]}")
            elif len(self.expected) <= 5:
                parts.append(f"Expected one of: {', '.join(self.expected)}")
            else:
                parts.append(f"Expected one of: {', '.join(self.expected[:5])} (and {len(self.expected) - 5} more)")
        
        if self.context:
            parts.append(f"\nContext:\n{self.context}")
        
        suggestions = self.get_suggestions()
        if suggestions:
            parts.append("\nSuggestions:")
            parts.extend(f"  - {s}" for s in suggestions)
        
        return "\n".join(parts)
    
    def get_suggestions(self) -> List[str]:
        suggestions = []
        if self.found in ("{", "}"):
            suggestions.append("Check for a missing opening/closing brace")
        elif self.found in ("[", "]"):
            suggestions.append("Check for a missing opening/closing bracket around settings")
        if self.expected:
            if any("relation operator" in e for e in self.expected):
                suggestions.append("Relations use one of: > (many-to-one), < (one-to-many), - (one-to-one), <> (many-to-many)")
            if any("column setting" in e for e in self.expected):
                suggestions.append("Column settings are pk, unique, null, not null, increment, default, note, check, ref")
        return suggestions


class SemanticErrorDetail(BaseModel):
    """Detailed semantic validation error."""
    
    error_type: str = Field(description="Type/category of error (e.g., 'Unknown Table', 'Duplicate Column')")
    message: str = Field(description="Error message")
    identifier: Optional[str] = Field(None, description="Identifier that caused the error")
    table: Optional[str] = Field(None, description="Table the error is about")
    column_name: Optional[str] = Field(None, description="Column the error is about")
    line: Optional[int] = Field(None, description="Line number (1-indexed)")
    column: Optional[int] = Field(None, description="Column number (1-indexed)")
    suggestion: Optional[str] = Field(None, description="Suggestion for fixing the error")
    
    def format_message(self) -> str:
        """Format a comprehensive semantic error message."""
        parts = [f"[{self.error_type}] {self.message}"]
        if self.identifier:
            parts.append(f"  Identifier: {self.identifier}")
        if self.line is not None:
            parts.append(f"  Location: line {self.line}, column {self.column}")
        if self.suggestion:
            parts.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(parts)

    @classmethod
    def create_unknown_reference(
        cls,
        kind: str,
        message: str,
        identifier: Optional[str] = None,
        suggestion: Optional[str] = None,
        **location,
    ) -> SemanticErrorDetail:
        """Create an 'Unknown Table' / 'Unknown Column' / 'Unknown Enum' error."""
        return cls(error_type=f"Unknown {kind}", message=message, identifier=identifier, suggestion=suggestion, **location)

    @classmethod
    def create_duplicate(
        cls,
        kind: str,
        message: str,
        identifier: Optional[str] = None,
        **location,
    ) -> SemanticErrorDetail:
        """Create a 'Duplicate Table' / 'Duplicate Column' / ... error."""
        return cls(error_type=f"Duplicate {kind}", message=message, identifier=identifier, **location)

    @classmethod
    def create_ambiguous_reference(
        cls,
        message: str,
        identifier: Optional[str] = None,
        candidates: Optional[List[str]] = None,
        **location,
    ) -> SemanticErrorDetail:
        suggestion = None
        if candidates:
            suggestion = f"Qualify the name with its schema: {', '.join(candidates)}"
        return cls(error_type="Ambiguous Reference", message=message, identifier=identifier, suggestion=suggestion, **location)

    @classmethod
    def create_conflict(
        cls,
        kind: str,
        message: str,
        identifier: Optional[str] = None,
        suggestion: Optional[str] = None,
        **location,
    ) -> SemanticErrorDetail:
        """Create a 'Conflicting Primary Key' / 'Conflicting Relationship' / ... error."""
        return cls(error_type=f"Conflicting {kind}", message=message, identifier=identifier, suggestion=suggestion, **location)

    @classmethod
    def create_invalid(
        cls,
        kind: str,
        message: str,
        identifier: Optional[str] = None,
        suggestion: Optional[str] = None,
        **location,
    ) -> SemanticErrorDetail:
        """Create an 'Invalid Default' / 'Invalid Relationship' / ... error."""
        return cls(error_type=f"Invalid {kind}", message=message, identifier=identifier, suggestion=suggestion, **location)


def create_lexical_error(
    message: str,
    line: Optional[int] = None,
    column: Optional[int] = None,
    invalid_char: Optional[str] = None,
    context: Optional[str] = None,
) -> LexicalError:
    """Factory function to create a lexical error."""
    return LexicalError(
        message=message,
        line=line,
        column=column,
        invalid_char=invalid_char,
        context=context,
    )


def create_syntax_error(
    message: str,
    line: Optional[int] = None,
    column: Optional[int] = None,
    found: Optional[str] = None,
    expected: Optional[List[str]] = None,
    context: Optional[str] = None,
) -> SyntaxErrorDetail:
    """Factory function to create a syntax error."""
    return SyntaxErrorDetail(
        message=message,
        line=line,
        column=column,
        found=found,
        expected=expected,
        context=context,
    )
