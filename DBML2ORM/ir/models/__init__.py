"""IR (Intermediate Representation) models."""

from .ast import (
    SourceSpan,
    RelationOperator,
    DefaultKind,
    SettingDecl,
    DefaultValueDecl,
    ColumnTypeDecl,
    RefEndpoint,
    RefDecl,
    ColumnDecl,
    IndexColumnDecl,
    IndexDecl,
    TableDecl,
    EnumValueDecl,
    EnumDecl,
    TableGroupMemberDecl,
    TableGroupDecl,
    ProjectDecl,
    NoteDecl,
    SchemaAST,
)
from .relation_type import Cardinality, cardinality_from_operator
from .resolved import (
    ColumnType,
    Column,
    Index,
    Table,
    EnumValue,
    EnumType,
    JunctionRef,
    Relationship,
    RelationView,
    TableGroup,
    Project,
    ResolvedSchema,
)
from .diagnostics import PipelineStage, ErrorSeverity, Diagnostic

__all__ = [
    "SourceSpan",
    "RelationOperator",
    "DefaultKind",
    "SettingDecl",
    "DefaultValueDecl",
    "ColumnTypeDecl",
    "RefEndpoint",
    "RefDecl",
    "ColumnDecl",
    "IndexColumnDecl",
    "IndexDecl",
    "TableDecl",
    "EnumValueDecl",
    "EnumDecl",
    "TableGroupMemberDecl",
    "TableGroupDecl",
    "ProjectDecl",
    "NoteDecl",
    "SchemaAST",
    "Cardinality",
    "cardinality_from_operator",
    "ColumnType",
    "Column",
    "Index",
    "Table",
    "EnumValue",
    "EnumType",
    "JunctionRef",
    "Relationship",
    "RelationView",
    "TableGroup",
    "Project",
    "ResolvedSchema",
    "PipelineStage",
    "ErrorSeverity",
    "Diagnostic",
]
