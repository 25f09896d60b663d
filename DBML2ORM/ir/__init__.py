"""Intermediate Representation (IR): schema AST, resolved schema, diagnostics."""

from .models import (
    SchemaAST,
    TableDecl,
    ColumnDecl,
    EnumDecl,
    RefDecl,
    ResolvedSchema,
    Table,
    Column,
    EnumType,
    Relationship,
    RelationView,
    Cardinality,
    Diagnostic,
    PipelineStage,
    ErrorSeverity,
)

__all__ = [
    "SchemaAST",
    "TableDecl",
    "ColumnDecl",
    "EnumDecl",
    "RefDecl",
    "ResolvedSchema",
    "Table",
    "Column",
    "EnumType",
    "Relationship",
    "RelationView",
    "Cardinality",
    "Diagnostic",
    "PipelineStage",
    "ErrorSeverity",
]
