"""DBML → SQLAlchemy transpile pipeline.

Runs every stage in order and keeps each stage's result model:
1. Tokenizes the document (lexer)
2. Parses the tokens into a SchemaAST (parser)
3. Resolves and validates names and relationships (resolver)
4. Maps every column type (type mapper)
5. Generates the entity and support modules (code generator)

Lexical and syntax errors stop the document at the first error; semantic
and type errors are collected in full. A document with any error yields no
modules.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from DBML2ORM.codegen.entity_modules import GeneratedModule, generate_package
from DBML2ORM.config.options import CodegenOptions
from DBML2ORM.ir.models.diagnostics import Diagnostic, ErrorSeverity, PipelineStage
from DBML2ORM.utils.data_types.type_mapping import TypeMappingResult, map_schema_types
from DBML2ORM.utils.error_handling import ErrorContext, handle_stage_error, log_error_with_context
from DBML2ORM.utils.logging import get_logger

from .lexer import LexError, tokenize_dbml
from .models import ParseResult, ResolutionResult, TokenizationResult
from .parser import parse_tokens
from .resolver import resolve_schema

logger = get_logger(__name__)


class TranspileResult(BaseModel):
    """Complete result of the transpile pipeline (all stages)."""

    original_text: str = Field(description="DBML document that was transpiled")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the pipeline was executed")

    # Results from each stage
    tokenization: TokenizationResult = Field(description="Result from lexical analysis")
    parsing: Optional[ParseResult] = Field(None, description="Result from parsing (None if tokenization failed)")
    resolution: Optional[ResolutionResult] = Field(None, description="Result from resolution (None if parsing failed)")
    type_mapping: Optional[TypeMappingResult] = Field(None, description="Result from type mapping (None if resolution failed)")

    diagnostics: List[Diagnostic] = Field(default_factory=list, description="Errors and warnings of every stage, in stage order")
    modules: List[GeneratedModule] = Field(default_factory=list, description="Entity and junction modules")
    support_modules: List[GeneratedModule] = Field(default_factory=list, description="_base, _enums and __init__ modules")

    # Overall status
    overall_success: bool = Field(description="Whether every stage passed")
    stage_failed: Optional[PipelineStage] = Field(None, description="First stage that failed (None if all passed)")

    # Summary statistics
    total_tokens: int = Field(0, description="Total number of tokens produced")
    total_errors: int = Field(0, description="Total number of errors across all stages")
    total_warnings: int = Field(0, description="Total number of warnings")

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.WARNING]

    def as_pairs(self) -> List[Tuple[str, str]]:
        """``(module name, source)`` pairs: base and enums, entities, then the package init."""
        support = [m for m in self.support_modules if m.kind == "support"]
        package = [m for m in self.support_modules if m.kind == "package"]
        return [(m.name, m.source) for m in support + self.modules + package]

    def get_summary(self) -> str:
        """Get a human-readable summary of the pipeline result."""
        parts = [f"Transpile Result for document of {len(self.original_text.splitlines())} line(s)"]
        parts.append(f"Overall Status: {'SUCCESS' if self.overall_success else 'FAILED'}")

        if self.stage_failed:
            parts.append(f"Failed at stage: {self.stage_failed.value}")

        parts.append("\nStage Results:")
        parts.append(f"  1. Lexical (Tokenization): {'PASSED' if self.tokenization.success else 'FAILED'}")
        if self.tokenization.success:
            parts.append(f"     - Tokens: {self.total_tokens}")
        else:
            parts.append(f"     - Error: {self.tokenization.error}")

        if self.parsing:
            parts.append(f"  2. Syntax (Parsing): {'PASSED' if self.parsing.success else 'FAILED'}")
            if self.parsing.success:
                parts.append(f"     - Declarations: {self.parsing.declaration_count}")
            elif self.parsing.error:
                parts.append(f"     - Error: {self.parsing.error.message}")

        if self.resolution:
            parts.append(f"  3. Semantic (Resolution): {'PASSED' if self.resolution.valid else 'FAILED'}")
            if self.resolution.valid:
                parts.append(
                    f"     - Tables: {self.resolution.table_count}, "
                    f"relationships: {self.resolution.relationship_count}"
                )
            else:
                parts.append(f"     - Errors: {self.resolution.error_count}")
            if self.resolution.warnings:
                parts.append(f"     - Warnings: {len(self.resolution.warnings)}")

        if self.type_mapping:
            parts.append(f"  4. Type mapping: {'PASSED' if self.type_mapping.success else 'FAILED'}")
            if not self.type_mapping.success:
                parts.append(f"     - Errors: {self.type_mapping.error_count}")

        if self.overall_success:
            parts.append(f"  5. Generation: {len(self.modules)} entity module(s)")

        if self.errors:
            parts.append("\nErrors:")
            parts.extend(f"  {d.format_message()}" for d in self.errors)
        return "\n".join(parts)

    @classmethod
    def from_pipeline(
        cls,
        text: str,
        tokenization: TokenizationResult,
        parsing: Optional[ParseResult] = None,
        resolution: Optional[ResolutionResult] = None,
        type_mapping: Optional[TypeMappingResult] = None,
        diagnostics: Optional[List[Diagnostic]] = None,
        modules: Optional[List[GeneratedModule]] = None,
        support_modules: Optional[List[GeneratedModule]] = None,
    ) -> TranspileResult:
        """Create a pipeline result from individual stage results."""
        stage_failed = None
        if not tokenization.success:
            stage_failed = PipelineStage.LEXICAL
        elif parsing is not None and not parsing.success:
            stage_failed = PipelineStage.SYNTAX
        elif resolution is not None and not resolution.valid:
            stage_failed = PipelineStage.SEMANTIC
        elif type_mapping is not None and not type_mapping.success:
            stage_failed = PipelineStage.TYPE_MAPPING

        diagnostics = diagnostics or []
        return cls(
            original_text=text,
            tokenization=tokenization,
            parsing=parsing,
            resolution=resolution,
            type_mapping=type_mapping,
            diagnostics=diagnostics,
            modules=modules or [],
            support_modules=support_modules or [],
            overall_success=stage_failed is None and type_mapping is not None,
            stage_failed=stage_failed,
            total_tokens=tokenization.token_count,
            total_errors=sum(1 for d in diagnostics if d.is_error),
            total_warnings=sum(1 for d in diagnostics if d.severity == ErrorSeverity.WARNING),
        )


class TranspileError(Exception):
    """Raised by transpile_dbml_strict when a document has errors."""

    def __init__(self, diagnostics: List[Diagnostic]):
        self.diagnostics = diagnostics
        errors = [d for d in diagnostics if d.is_error]
        lines = [f"Transpilation failed with {len(errors)} error(s):"]
        lines.extend(d.format_message() for d in errors)
        super().__init__("\n".join(lines))


def _lex_diagnostic(error: LexError) -> Diagnostic:
    suggestions = error.detail.get_suggestions()
    return Diagnostic(
        stage=PipelineStage.LEXICAL,
        kind="LexError",
        message=error.message,
        line=error.line,
        column=error.column,
        context=error.context,
        suggestion=suggestions[0] if suggestions else None,
    )


def _parse_diagnostic(result: ParseResult) -> Diagnostic:
    error = result.error
    return Diagnostic(
        stage=PipelineStage.SYNTAX,
        kind="ParseError",
        message=error.message,
        line=error.line,
        column=error.column,
        context=error.context,
        suggestion=error.suggestions[0] if error.suggestions else None,
    )


def transpile_dbml(text: str, options: Optional[CodegenOptions] = None) -> TranspileResult:
    """Run the complete pipeline and return structured results.

    Document errors never raise: they are reported as diagnostics on the
    result, whose ``modules`` are then empty.

    Args:
        text: The DBML document
        options: Schema, naming and type override options (defaults when omitted)

    Returns:
        TranspileResult containing the results of every stage that ran

    Example:
        >>> result = transpile_dbml("Table user {\n  id integer [pk]\n}")
        >>> result.overall_success
        True
        >>> [name for name, _ in result.as_pairs()]
        ['_base', 'user', '__init__']
    """
    text = text or ""
    options = options or CodegenOptions()

    # Stage 1: Tokenization
    logger.info("Lexical stage started")
    try:
        tokens = tokenize_dbml(text)
    except LexError as e:
        log_error_with_context(
            e, ErrorContext(stage=PipelineStage.LEXICAL.value, line=e.line, column=e.column),
            level="warning", exc_info=False,
        )
        return TranspileResult.from_pipeline(
            text,
            TokenizationResult.from_error(text, e.message, e.line, e.column),
            diagnostics=[_lex_diagnostic(e)],
        )
    tokenization = TokenizationResult.from_tokens(tokens, text)
    logger.info(f"Lexical stage finished: {tokenization.token_count} token(s)")

    # Stage 2: Parsing (works on the lexer's tokens)
    parsing = parse_tokens(tokens, original_text=text, return_model=True)
    if not parsing.success:
        detail = parsing.error
        log_error_with_context(
            ValueError(detail.message),
            ErrorContext(stage=PipelineStage.SYNTAX.value, line=detail.line, column=detail.column),
            level="warning", exc_info=False,
        )
        return TranspileResult.from_pipeline(
            text, tokenization, parsing=parsing, diagnostics=[_parse_diagnostic(parsing)],
        )
    logger.info(f"Syntax stage finished: {parsing.declaration_count} declaration(s)")

    # Stage 3: Resolution
    resolution = resolve_schema(parsing.ast, default_schema=options.default_schema, return_model=True)
    diagnostics = resolution.diagnostics()
    if not resolution.valid:
        logger.warning(f"Semantic stage failed with {resolution.error_count} error(s)")
        return TranspileResult.from_pipeline(
            text, tokenization, parsing=parsing, resolution=resolution, diagnostics=diagnostics,
        )
    logger.info(
        f"Semantic stage finished: {resolution.table_count} table(s), "
        f"{resolution.relationship_count} relationship(s)"
    )

    # Stage 4: Type mapping
    schema = resolution.resolved_schema
    type_mapping = map_schema_types(schema, overrides=options.type_overrides)
    diagnostics = diagnostics + type_mapping.errors
    if not type_mapping.success:
        logger.warning(f"Type mapping failed with {type_mapping.error_count} error(s)")
        return TranspileResult.from_pipeline(
            text, tokenization, parsing=parsing, resolution=resolution,
            type_mapping=type_mapping, diagnostics=diagnostics,
        )

    # Stage 5: Generation
    try:
        package = generate_package(schema, type_mapping, options)
    except Exception as e:
        handle_stage_error(
            e, ErrorContext(stage=PipelineStage.GENERATION.value, additional_context={"tables": len(schema.tables)}),
            log_level="critical", reraise=True,
        )
    modules = [m for m in package if m.kind in ("entity", "junction")]
    support = [m for m in package if m.kind not in ("entity", "junction")]
    logger.info(f"Generation finished: {len(modules)} entity module(s), {len(support)} support module(s)")

    return TranspileResult.from_pipeline(
        text, tokenization, parsing=parsing, resolution=resolution, type_mapping=type_mapping,
        diagnostics=diagnostics, modules=modules, support_modules=support,
    )


def transpile_dbml_strict(text: str, options: Optional[CodegenOptions] = None) -> List[GeneratedModule]:
    """Transpile a document, raising on any error.

    Returns:
        Every generated module: support modules, entities, then the package init

    Raises:
        TranspileError: With every diagnostic of the document
    """
    result = transpile_dbml(text, options)
    if not result.overall_success:
        raise TranspileError(result.diagnostics)
    support = [m for m in result.support_modules if m.kind == "support"]
    package = [m for m in result.support_modules if m.kind == "package"]
    return support + result.modules + package
