"""Pydantic models for the resolved (cross-linked, validated) schema.

Tables, enums and relationships live in flat registries. A relationship is
stored once in ``ResolvedSchema.relationships`` and each endpoint table keeps
its index in ``Table.relationship_ids``; ``relation_views`` turns those indices
into per-table views. Nothing points back from a relationship to a table
object, only to table keys.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from DBML2ORM.ir.models.ast import DefaultValueDecl, RelationOperator, SourceSpan
from DBML2ORM.ir.models.relation_type import Cardinality


_FROZEN = ConfigDict(frozen=True)


class ColumnType(BaseModel):
    """Resolved column type: an enum reference or a primitive name for the type mapper."""

    name: str = Field(description="Lowercased primitive type name, or the enum name")
    raw: str = Field(description="Type as written in the source")
    args: List[str] = Field(default_factory=list)
    schema_name: Optional[str] = None
    is_array: bool = False
    enum_key: Optional[str] = Field(None, description="Key of the EnumType when the column is enum-typed")

    model_config = _FROZEN

    @property
    def is_enum(self) -> bool:
        return self.enum_key is not None


class Column(BaseModel):
    name: str
    type: ColumnType
    nullable: bool = False
    is_pk: bool = False
    is_unique: bool = False
    is_increment: bool = False
    default: Optional[DefaultValueDecl] = None
    note: Optional[str] = None
    check: Optional[str] = None
    comments: List[str] = Field(default_factory=list)
    span: SourceSpan

    model_config = _FROZEN


class Index(BaseModel):
    columns: List[str] = Field(description="Column names, or expression text when is_expression is set")
    expressions: List[bool] = Field(default_factory=list, description="Per entry: is it an expression")
    is_unique: bool = False
    name: Optional[str] = None
    type: Optional[str] = None
    note: Optional[str] = None
    span: SourceSpan

    model_config = _FROZEN

    @property
    def has_expression(self) -> bool:
        return any(self.expressions)


class Table(BaseModel):
    name: str
    schema_name: str
    key: str = Field(description="Canonical 'schema.name' key")
    alias: Optional[str] = None
    explicit_schema: bool = False
    columns: List[Column] = Field(default_factory=list)
    primary_key: List[str] = Field(default_factory=list)
    unique_constraints: List[List[str]] = Field(default_factory=list, description="Composite unique constraints")
    indexes: List[Index] = Field(default_factory=list)
    checks: List[str] = Field(default_factory=list, description="Check constraint expressions, in column order")
    note: Optional[str] = None
    comments: List[str] = Field(default_factory=list)
    group: Optional[str] = None
    relationship_ids: List[int] = Field(default_factory=list)
    is_junction: bool = False
    position: int = Field(description="Index of the table among the source tables")
    span: SourceSpan

    model_config = _FROZEN

    def column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]


class EnumValue(BaseModel):
    name: str
    note: Optional[str] = None

    model_config = _FROZEN


class EnumType(BaseModel):
    name: str
    schema_name: str
    key: str
    explicit_schema: bool = False
    values: List[EnumValue] = Field(default_factory=list)
    span: SourceSpan

    model_config = _FROZEN

    @property
    def value_names(self) -> List[str]:
        return [v.name for v in self.values]


class JunctionRef(BaseModel):
    """Junction table of a many-to-many relationship."""

    table_key: str
    synthesized: bool = Field(description="True when no junction table exists in the source")
    name: str = Field(description="Table name of the junction")

    model_config = _FROZEN


class Relationship(BaseModel):
    """A relationship, stored once. Cardinality is seen from the owner side."""

    id: int
    name: Optional[str] = None
    cardinality: Cardinality
    owner_table: str = Field(description="Key of the table holding the foreign key")
    owner_columns: List[str]
    referenced_table: str
    referenced_columns: List[str]
    on_delete: Optional[str] = None
    on_update: Optional[str] = None
    declared_operator: RelationOperator
    source: Literal["inline", "standalone"] = "standalone"
    junction: Optional[JunctionRef] = None
    span: SourceSpan

    model_config = _FROZEN

    @property
    def is_self_referencing(self) -> bool:
        return self.owner_table == self.referenced_table


class RelationView(BaseModel):
    """A relationship as seen from one of its endpoint tables."""

    relationship_id: int
    local_table: str
    remote_table: str
    local_columns: List[str]
    remote_columns: List[str]
    cardinality: Cardinality = Field(description="Cardinality from the local side")
    is_owner: bool

    model_config = _FROZEN


class TableGroup(BaseModel):
    name: str
    tables: List[str] = Field(default_factory=list, description="Member table keys")
    note: Optional[str] = None

    model_config = _FROZEN


class Project(BaseModel):
    name: Optional[str] = None
    database_type: Optional[str] = None
    note: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)

    model_config = _FROZEN


class ResolvedSchema(BaseModel):
    """Fully validated, cross-referenced schema; immutable once built."""

    default_schema: str = "public"
    tables: List[Table] = Field(default_factory=list)
    enums: List[EnumType] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)
    table_groups: List[TableGroup] = Field(default_factory=list)
    project: Optional[Project] = None
    notes: List[str] = Field(default_factory=list)

    model_config = _FROZEN

    def table(self, key: str) -> Table:
        for table in self.tables:
            if table.key == key:
                return table
        raise KeyError(key)

    def enum(self, key: str) -> EnumType:
        for enum in self.enums:
            if enum.key == key:
                return enum
        raise KeyError(key)

    def relationship(self, relationship_id: int) -> Relationship:
        return self.relationships[relationship_id]

    def relation_views(self, table_key: str) -> List[RelationView]:
        """Both the owning and the referenced side of every relationship touching a table.

        A self-referencing relationship yields two views (owner, then referenced).
        Views follow relationship order.
        """
        views: List[RelationView] = []
        for rel_id in self.table(table_key).relationship_ids:
            rel = self.relationships[rel_id]
            if rel.owner_table == table_key:
                views.append(
                    RelationView(
                        relationship_id=rel.id,
                        local_table=rel.owner_table,
                        remote_table=rel.referenced_table,
                        local_columns=rel.owner_columns,
                        remote_columns=rel.referenced_columns,
                        cardinality=rel.cardinality,
                        is_owner=True,
                    )
                )
            if rel.referenced_table == table_key:
                views.append(
                    RelationView(
                        relationship_id=rel.id,
                        local_table=rel.referenced_table,
                        remote_table=rel.owner_table,
                        local_columns=rel.referenced_columns,
                        remote_columns=rel.owner_columns,
                        cardinality=rel.cardinality.reciprocal(),
                        is_owner=False,
                    )
                )
        return views
