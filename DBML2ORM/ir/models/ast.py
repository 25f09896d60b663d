"""Pydantic models for the DBML schema AST.

The parser builds these nodes once per document; they are frozen so the
resolver (and anything else downstream) can share them without copying.
Declaration order in ``SchemaAST.declarations`` is source order.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


_FROZEN = ConfigDict(frozen=True)


class SourceSpan(BaseModel):
    """1-indexed source position of a node (start inclusive, end exclusive)."""

    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    model_config = _FROZEN

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class RelationOperator(str, Enum):
    """DBML relationship operators."""
    MANY_TO_ONE = ">"
    ONE_TO_MANY = "<"
    ONE_TO_ONE = "-"
    MANY_TO_MANY = "<>"


class DefaultKind(str, Enum):
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"
    EXPRESSION = "expression"


class SettingDecl(BaseModel):
    """One raw ``key[: value]`` entry of a ``[...]`` settings list."""

    key: str = Field(description="Lowercased key words, e.g. 'not null', 'default', 'ref'")
    value_kind: Optional[Literal["string", "number", "expression", "color", "words", "ref"]] = None
    value: Optional[str] = Field(None, description="Literal text of the value (quotes removed)")
    ref_operator: Optional[RelationOperator] = None
    ref_target: Optional[RefEndpoint] = None
    span: SourceSpan

    model_config = _FROZEN


class DefaultValueDecl(BaseModel):
    kind: DefaultKind
    raw: str = Field(description="Literal text without quotes/backticks")

    model_config = _FROZEN


class ColumnTypeDecl(BaseModel):
    """Column type as written: ``varchar(255)``, ``core.status``, ``int[]``."""

    name: str
    schema_name: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    is_array: bool = False
    span: SourceSpan

    model_config = _FROZEN

    def __str__(self) -> str:
        text = f"{self.schema_name}.{self.name}" if self.schema_name else self.name
        if self.args:
            text += f"({', '.join(self.args)})"
        if self.is_array:
            text += "[]"
        return text


class RefEndpoint(BaseModel):
    """``[schema.]table.column`` or ``[schema.]table.(col1, col2)``."""

    schema_name: Optional[str] = None
    table: str
    columns: List[str]
    span: SourceSpan

    model_config = _FROZEN

    @property
    def is_composite(self) -> bool:
        return len(self.columns) > 1

    def __str__(self) -> str:
        table = f"{self.schema_name}.{self.table}" if self.schema_name else self.table
        if self.is_composite:
            return f"{table}.({', '.join(self.columns)})"
        return f"{table}.{self.columns[0]}"


class RefDecl(BaseModel):
    """A relationship, from a ``Ref`` block or an inline column ``ref`` setting."""

    kind: Literal["ref"] = "ref"
    name: Optional[str] = None
    operator: RelationOperator
    left: RefEndpoint
    right: RefEndpoint
    on_delete: Optional[str] = None
    on_update: Optional[str] = None
    is_inline: bool = False
    span: SourceSpan

    model_config = _FROZEN

    def __str__(self) -> str:
        return f"{self.left} {self.operator.value} {self.right}"


class ColumnDecl(BaseModel):
    name: str
    type: ColumnTypeDecl
    settings: List[SettingDecl] = Field(default_factory=list)
    is_pk: bool = False
    is_unique: bool = False
    nullable: Optional[bool] = Field(None, description="None when neither 'null' nor 'not null' was given")
    null_settings: List[bool] = Field(default_factory=list, description="Every null/not null flag, in order")
    is_increment: bool = False
    default: Optional[DefaultValueDecl] = None
    note: Optional[str] = None
    check: Optional[str] = None
    inline_refs: List[RefDecl] = Field(default_factory=list)
    comments: List[str] = Field(default_factory=list)
    span: SourceSpan

    model_config = _FROZEN


class IndexColumnDecl(BaseModel):
    value: str
    is_expression: bool = False

    model_config = _FROZEN


class IndexDecl(BaseModel):
    columns: List[IndexColumnDecl]
    is_pk: bool = False
    is_unique: bool = False
    name: Optional[str] = None
    type: Optional[str] = None
    note: Optional[str] = None
    span: SourceSpan

    model_config = _FROZEN


class TableDecl(BaseModel):
    kind: Literal["table"] = "table"
    name: str
    schema_name: Optional[str] = None
    alias: Optional[str] = None
    columns: List[ColumnDecl] = Field(default_factory=list)
    indexes: List[IndexDecl] = Field(default_factory=list)
    note: Optional[str] = None
    header_color: Optional[str] = None
    settings: List[SettingDecl] = Field(default_factory=list)
    comments: List[str] = Field(default_factory=list)
    span: SourceSpan

    model_config = _FROZEN

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name


class EnumValueDecl(BaseModel):
    name: str
    note: Optional[str] = None
    span: SourceSpan

    model_config = _FROZEN


class EnumDecl(BaseModel):
    kind: Literal["enum"] = "enum"
    name: str
    schema_name: Optional[str] = None
    values: List[EnumValueDecl] = Field(default_factory=list)
    span: SourceSpan

    model_config = _FROZEN

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name


class TableGroupMemberDecl(BaseModel):
    schema_name: Optional[str] = None
    name: str
    span: SourceSpan

    model_config = _FROZEN


class TableGroupDecl(BaseModel):
    kind: Literal["table_group"] = "table_group"
    name: str
    tables: List[TableGroupMemberDecl] = Field(default_factory=list)
    note: Optional[str] = None
    span: SourceSpan

    model_config = _FROZEN


class ProjectDecl(BaseModel):
    kind: Literal["project"] = "project"
    name: Optional[str] = None
    database_type: Optional[str] = None
    note: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    span: SourceSpan

    model_config = _FROZEN


class NoteDecl(BaseModel):
    kind: Literal["note"] = "note"
    name: Optional[str] = None
    text: str
    span: SourceSpan

    model_config = _FROZEN


Declaration = Union[TableDecl, EnumDecl, RefDecl, TableGroupDecl, ProjectDecl, NoteDecl]


class SchemaAST(BaseModel):
    """Parsed DBML document: declarations in source order."""

    declarations: List[Declaration] = Field(default_factory=list)

    model_config = _FROZEN

    @property
    def tables(self) -> List[TableDecl]:
        return [d for d in self.declarations if isinstance(d, TableDecl)]

    @property
    def enums(self) -> List[EnumDecl]:
        return [d for d in self.declarations if isinstance(d, EnumDecl)]

    @property
    def refs(self) -> List[RefDecl]:
        """Standalone ``Ref`` declarations only."""
        return [d for d in self.declarations if isinstance(d, RefDecl)]

    @property
    def table_groups(self) -> List[TableGroupDecl]:
        return [d for d in self.declarations if isinstance(d, TableGroupDecl)]

    @property
    def projects(self) -> List[ProjectDecl]:
        return [d for d in self.declarations if isinstance(d, ProjectDecl)]

    @property
    def notes(self) -> List[NoteDecl]:
        return [d for d in self.declarations if isinstance(d, NoteDecl)]

    def all_refs(self) -> List[RefDecl]:
        """Standalone and inline refs unified, ordered by source position."""
        refs: List[RefDecl] = list(self.refs)
        for table in self.tables:
            for column in table.columns:
                refs.extend(column.inline_refs)
        return sorted(refs, key=lambda r: (r.span.line, r.span.column))


SettingDecl.model_rebuild()
