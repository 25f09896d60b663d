"""Semantic resolver for DBML documents.

Turns a parsed SchemaAST into a ResolvedSchema: every name is looked up,
every relationship is classified and stored once, and every rule the ORM
layer depends on is checked.

This module provides:
- Symbol tables for tables (by key and alias) and enums, built before any lookup
- Column type resolution (enum-typed vs primitive)
- Relationship resolution, classification and deduplication
- Many-to-many junction detection (explicit table or synthesized name)
- Primary key, nullability, default and table-group checks

All problems in a document are collected and reported together, sorted by
source position.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Dict, List, Optional, Set, Tuple, Union

from DBML2ORM.ir.models.ast import (
    ColumnDecl,
    DefaultKind,
    EnumDecl,
    RefDecl,
    RefEndpoint,
    RelationOperator,
    SchemaAST,
    SourceSpan,
    TableDecl,
)
from DBML2ORM.ir.models.diagnostics import ErrorSeverity
from DBML2ORM.ir.models.relation_type import Cardinality, cardinality_from_operator
from DBML2ORM.ir.models.resolved import (
    Column,
    ColumnType,
    EnumType,
    EnumValue,
    Index,
    JunctionRef,
    Project,
    Relationship,
    ResolvedSchema,
    Table,
    TableGroup,
)
from DBML2ORM.utils.logging import get_logger

from .errors import SemanticErrorDetail
from .models import ResolutionResult, SemanticError

logger = get_logger(__name__)


class SchemaResolutionError(Exception):
    """Raised when a document has one or more semantic errors.

    ``errors`` holds every error of the document in source order.
    """

    def __init__(self, errors: List[SemanticError], warnings: Optional[List[SemanticError]] = None):
        self.errors = errors
        self.warnings = warnings or []
        super().__init__(ResolutionResult.from_errors(errors, self.warnings).get_error_summary())


# A ref endpoint after lookup: (table key, column names).
_Endpoint = Tuple[str, Tuple[str, ...]]


class _ResolvedRef:
    """A RefDecl whose endpoints resolved."""

    __slots__ = ("decl", "left", "right")

    def __init__(self, decl: RefDecl, left: _Endpoint, right: _Endpoint):
        self.decl = decl
        self.left = left
        self.right = right

    @property
    def pair(self) -> frozenset:
        return frozenset((self.left, self.right))

    def direction(self) -> Tuple[str, _Endpoint, _Endpoint]:
        """Operator with ``<`` rewritten as ``>``, for comparing two refs."""
        op = self.decl.operator
        if op is RelationOperator.ONE_TO_MANY:
            return ">", self.right, self.left
        if op in (RelationOperator.ONE_TO_ONE, RelationOperator.MANY_TO_MANY):
            # Symmetric operators: endpoint order carries no meaning.
            first, second = sorted((self.left, self.right))
            return op.value, first, second
        return op.value, self.left, self.right


def _location(span: Optional[SourceSpan]) -> dict:
    if span is None:
        return {}
    return {"line": span.line, "column": span.column}


def _did_you_mean(name: str, candidates: List[str]) -> Optional[str]:
    matches = get_close_matches(name, candidates, n=1, cutoff=0.6)
    return f"Did you mean '{matches[0]}'?" if matches else None


class _Resolver:
    def __init__(self, ast: SchemaAST, default_schema: str):
        self.ast = ast
        self.default_schema = default_schema
        self.errors: List[SemanticError] = []
        self.warnings: List[SemanticError] = []

        self.table_decls: Dict[str, TableDecl] = {}
        self.aliases: Dict[str, str] = {}
        self.tables_by_name: Dict[str, List[str]] = {}
        self.enum_decls: Dict[str, EnumDecl] = {}
        self.enums_by_name: Dict[str, List[str]] = {}

        self.tables: Dict[str, Table] = {}
        self.relationships: List[Relationship] = []

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _error(self, detail: SemanticErrorDetail) -> None:
        self.errors.append(SemanticError.from_detail(detail))

    def _warn(self, detail: SemanticErrorDetail) -> None:
        self.warnings.append(SemanticError.from_detail(detail, severity=ErrorSeverity.WARNING))

    # ------------------------------------------------------------------
    # Pass 1: symbol tables
    # ------------------------------------------------------------------

    def _key(self, schema_name: Optional[str], name: str) -> str:
        return f"{schema_name or self.default_schema}.{name}"

    def collect_symbols(self) -> None:
        for decl in self.ast.tables:
            key = self._key(decl.schema_name, decl.name)
            if key in self.table_decls:
                self._error(SemanticErrorDetail.create_duplicate(
                    "Table",
                    f"Table '{decl.qualified_name}' is already defined",
                    identifier=key,
                    table=decl.name,
                    **_location(decl.span),
                ))
                continue
            self.table_decls[key] = decl
            self.tables_by_name.setdefault(decl.name, []).append(key)

        for key, decl in self.table_decls.items():
            if not decl.alias:
                continue
            if decl.alias in self.aliases or self._key(None, decl.alias) in self.table_decls:
                self._error(SemanticErrorDetail.create_duplicate(
                    "Alias",
                    f"Alias '{decl.alias}' of table '{decl.qualified_name}' is already in use",
                    identifier=decl.alias,
                    table=decl.name,
                    **_location(decl.span),
                ))
                continue
            self.aliases[decl.alias] = key

        for decl in self.ast.enums:
            key = self._key(decl.schema_name, decl.name)
            if key in self.enum_decls:
                self._error(SemanticErrorDetail.create_duplicate(
                    "Enum",
                    f"Enum '{decl.qualified_name}' is already defined",
                    identifier=key,
                    **_location(decl.span),
                ))
                continue
            self.enum_decls[key] = decl
            self.enums_by_name.setdefault(decl.name, []).append(key)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def lookup_table(self, schema_name: Optional[str], name: str, span: Optional[SourceSpan]) -> Optional[str]:
        """Find a table by ``schema.name``, default-schema name, alias, or unique bare name."""
        written = f"{schema_name}.{name}" if schema_name else name
        if schema_name:
            key = f"{schema_name}.{name}"
            if key in self.table_decls:
                return key
        else:
            key = self._key(None, name)
            if key in self.table_decls:
                return key
            if name in self.aliases:
                return self.aliases[name]
            candidates = self.tables_by_name.get(name, [])
            if len(candidates) == 1:
                return candidates[0]
            if len(candidates) > 1:
                self._error(SemanticErrorDetail.create_ambiguous_reference(
                    f"Table name '{name}' exists in several schemas",
                    identifier=name,
                    candidates=candidates,
                    **_location(span),
                ))
                return None

        known = [d.name for d in self.table_decls.values()] + list(self.aliases)
        self._error(SemanticErrorDetail.create_unknown_reference(
            "Table",
            f"Table '{written}' is not defined",
            identifier=written,
            suggestion=_did_you_mean(name, known),
            table=name,
            **_location(span),
        ))
        return None

    def lookup_enum(self, schema_name: Optional[str], name: str) -> Optional[str]:
        if schema_name:
            key = f"{schema_name}.{name}"
            return key if key in self.enum_decls else None
        key = self._key(None, name)
        if key in self.enum_decls:
            return key
        candidates = self.enums_by_name.get(name, [])
        if len(candidates) == 1:
            return candidates[0]
        return None

    # ------------------------------------------------------------------
    # Pass 2: enums and tables
    # ------------------------------------------------------------------

    def resolve_enums(self) -> List[EnumType]:
        enums: List[EnumType] = []
        for key, decl in self.enum_decls.items():
            seen: Set[str] = set()
            values: List[EnumValue] = []
            for value in decl.values:
                if value.name in seen:
                    self._error(SemanticErrorDetail.create_duplicate(
                        "Enum Value",
                        f"Enum '{decl.qualified_name}' lists value '{value.name}' more than once",
                        identifier=value.name,
                        **_location(value.span),
                    ))
                    continue
                seen.add(value.name)
                values.append(EnumValue(name=value.name, note=value.note))
            if not values:
                self._error(SemanticErrorDetail.create_invalid(
                    "Enum",
                    f"Enum '{decl.qualified_name}' has no values",
                    identifier=key,
                    **_location(decl.span),
                ))
            enums.append(EnumType(
                name=decl.name,
                schema_name=decl.schema_name or self.default_schema,
                key=key,
                explicit_schema=decl.schema_name is not None,
                values=values,
                span=decl.span,
            ))
        return enums

    def _resolve_column(self, table: TableDecl, col: ColumnDecl) -> Column:
        loc = dict(table=table.name, column_name=col.name, **_location(col.span))

        enum_key = self.lookup_enum(col.type.schema_name, col.type.name)
        if enum_key is None and col.type.schema_name:
            self._error(SemanticErrorDetail.create_unknown_reference(
                "Enum",
                f"Column '{table.name}.{col.name}' has type '{col.type}' but no such enum is defined",
                identifier=f"{col.type.schema_name}.{col.type.name}",
                suggestion=_did_you_mean(col.type.name, list(self.enums_by_name)),
                **loc,
            ))

        if True in col.null_settings and False in col.null_settings:
            self._error(SemanticErrorDetail.create_conflict(
                "Nullability",
                f"Column '{table.name}.{col.name}' is declared both 'null' and 'not null'",
                identifier=col.name,
                **loc,
            ))
        elif col.nullable and col.is_pk:
            self._error(SemanticErrorDetail.create_conflict(
                "Nullability",
                f"Primary key column '{table.name}.{col.name}' cannot be 'null'",
                identifier=col.name,
                **loc,
            ))

        if enum_key is not None and col.default is not None:
            enum_decl = self.enum_decls[enum_key]
            members = [v.name for v in enum_decl.values]
            default = col.default
            if default.kind == DefaultKind.NULL:
                pass
            elif default.kind != DefaultKind.STRING or default.raw not in members:
                self._error(SemanticErrorDetail.create_invalid(
                    "Default",
                    f"Default '{default.raw}' of column '{table.name}.{col.name}' is not a value of enum '{enum_decl.name}'",
                    identifier=default.raw,
                    suggestion=f"Use one of: {', '.join(members)}" if members else None,
                    **loc,
                ))

        return Column(
            name=col.name,
            type=ColumnType(
                name=col.type.name if enum_key else col.type.name.lower(),
                raw=str(col.type),
                args=col.type.args,
                schema_name=col.type.schema_name,
                is_array=col.type.is_array,
                enum_key=enum_key,
            ),
            # Columns are NOT NULL unless declared 'null'.
            nullable=bool(col.nullable) and not col.is_pk,
            is_pk=col.is_pk,
            is_unique=col.is_unique,
            is_increment=col.is_increment,
            default=col.default,
            note=col.note,
            check=col.check,
            comments=col.comments,
            span=col.span,
        )

    def resolve_table(self, key: str, decl: TableDecl, position: int) -> Table:
        columns: List[Column] = []
        seen: Set[str] = set()
        for col in decl.columns:
            if col.name in seen:
                self._error(SemanticErrorDetail.create_duplicate(
                    "Column",
                    f"Column '{col.name}' is defined more than once in table '{decl.qualified_name}'",
                    identifier=col.name,
                    table=decl.name,
                    column_name=col.name,
                    **_location(col.span),
                ))
                continue
            seen.add(col.name)
            columns.append(self._resolve_column(decl, col))

        primary_key = [c.name for c in columns if c.is_pk]
        index_pks = [ix for ix in decl.indexes if ix.is_pk]
        if len(index_pks) > 1:
            self._error(SemanticErrorDetail.create_conflict(
                "Primary Key",
                f"Table '{decl.qualified_name}' declares {len(index_pks)} primary key indexes",
                identifier=decl.name,
                table=decl.name,
                **_location(index_pks[1].span),
            ))
        elif index_pks and primary_key:
            self._error(SemanticErrorDetail.create_conflict(
                "Primary Key",
                f"Table '{decl.qualified_name}' declares a primary key both on columns ({', '.join(primary_key)}) and in indexes",
                identifier=decl.name,
                table=decl.name,
                suggestion="Keep either the column 'pk' settings or the '[pk]' index",
                **_location(index_pks[0].span),
            ))
        elif index_pks:
            pk_index = index_pks[0]
            if any(c.is_expression for c in pk_index.columns):
                self._error(SemanticErrorDetail.create_invalid(
                    "Primary Key",
                    f"Primary key of table '{decl.qualified_name}' cannot contain an expression",
                    identifier=decl.name,
                    table=decl.name,
                    **_location(pk_index.span),
                ))
            primary_key = [c.value for c in pk_index.columns if not c.is_expression]

        unique_constraints: List[List[str]] = []
        indexes: List[Index] = []
        for ix in decl.indexes:
            for ic in ix.columns:
                if not ic.is_expression and ic.value not in seen:
                    self._error(SemanticErrorDetail.create_unknown_reference(
                        "Column",
                        f"Index of table '{decl.qualified_name}' names unknown column '{ic.value}'",
                        identifier=ic.value,
                        suggestion=_did_you_mean(ic.value, list(seen)),
                        table=decl.name,
                        column_name=ic.value,
                        **_location(ix.span),
                    ))
            if ix.is_pk:
                continue
            plain = not any(c.is_expression for c in ix.columns)
            if ix.is_unique and plain and len(ix.columns) > 1 and not ix.name and not ix.type:
                unique_constraints.append([c.value for c in ix.columns])
                continue
            indexes.append(Index(
                columns=[c.value for c in ix.columns],
                expressions=[c.is_expression for c in ix.columns],
                is_unique=ix.is_unique,
                name=ix.name,
                type=ix.type,
                note=ix.note,
                span=ix.span,
            ))

        # Primary key columns are implicitly NOT NULL.
        pk_set = set(primary_key)
        columns = [
            c.model_copy(update={"is_pk": True, "nullable": False}) if c.name in pk_set and not c.is_pk else c
            for c in columns
        ]
        if not decl.columns:
            self._error(SemanticErrorDetail.create_invalid(
                "Table",
                f"Table '{decl.qualified_name}' has no columns",
                identifier=decl.name,
                table=decl.name,
                **_location(decl.span),
            ))
        elif not primary_key:
            self._warn(SemanticErrorDetail(
                error_type="Missing Primary Key",
                message=f"Table '{decl.qualified_name}' has no primary key; all columns form the mapper identity",
                identifier=decl.name,
                table=decl.name,
                **_location(decl.span),
            ))

        return Table(
            name=decl.name,
            schema_name=decl.schema_name or self.default_schema,
            key=key,
            alias=decl.alias,
            explicit_schema=decl.schema_name is not None,
            columns=columns,
            primary_key=primary_key,
            unique_constraints=unique_constraints,
            indexes=indexes,
            checks=[c.check for c in columns if c.check],
            note=decl.note,
            comments=decl.comments,
            position=position,
            span=decl.span,
        )

    # ------------------------------------------------------------------
    # Pass 3: relationships
    # ------------------------------------------------------------------

    def _resolve_endpoint(self, endpoint: RefEndpoint) -> Optional[_Endpoint]:
        key = self.lookup_table(endpoint.schema_name, endpoint.table, endpoint.span)
        if key is None or key not in self.tables:
            return None
        table = self.tables[key]
        ok = True
        for name in endpoint.columns:
            if table.column(name) is None:
                self._error(SemanticErrorDetail.create_unknown_reference(
                    "Column",
                    f"Column '{name}' does not exist in table '{endpoint.table}'",
                    identifier=f"{endpoint.table}.{name}",
                    suggestion=_did_you_mean(name, table.column_names),
                    table=endpoint.table,
                    column_name=name,
                    **_location(endpoint.span),
                ))
                ok = False
        return (key, tuple(endpoint.columns)) if ok else None

    def _resolve_refs(self) -> List[_ResolvedRef]:
        resolved: List[_ResolvedRef] = []
        for decl in self.ast.all_refs():
            left = self._resolve_endpoint(decl.left)
            right = self._resolve_endpoint(decl.right)
            if left is None or right is None:
                continue
            if len(left[1]) != len(right[1]):
                self._error(SemanticErrorDetail.create_invalid(
                    "Relationship",
                    f"Reference '{decl}' joins {len(left[1])} column(s) to {len(right[1])}",
                    identifier=str(decl),
                    suggestion="Both sides of a composite reference need the same number of columns",
                    **_location(decl.span),
                ))
                continue
            if left == right:
                self._error(SemanticErrorDetail.create_invalid(
                    "Relationship",
                    f"Reference '{decl}' points a column at itself",
                    identifier=str(decl),
                    **_location(decl.span),
                ))
                continue
            resolved.append(_ResolvedRef(decl, left, right))
        return resolved

    def _dedupe_refs(self, refs: List[_ResolvedRef]) -> List[_ResolvedRef]:
        """Keep one ref per endpoint pair.

        - inline vs standalone: the standalone ref wins (warning when they disagree)
        - identical duplicates: warning, first kept
        - same kind, different operators: Conflicting Relationship error
        """
        chosen: Dict[frozenset, _ResolvedRef] = {}
        for ref in refs:
            existing = chosen.get(ref.pair)
            if existing is None:
                chosen[ref.pair] = ref
                continue
            same = existing.direction() == ref.direction()
            loc = _location(ref.decl.span)
            if existing.decl.is_inline != ref.decl.is_inline:
                standalone = ref if existing.decl.is_inline else existing
                if not same:
                    self._warn(SemanticErrorDetail(
                        error_type="Overridden Relationship",
                        message=f"Ref '{standalone.decl}' overrides inline ref with operator "
                                f"'{(existing if standalone is ref else ref).decl.operator.value}'",
                        identifier=str(standalone.decl),
                        **loc,
                    ))
                chosen[ref.pair] = standalone
            elif same:
                self._warn(SemanticErrorDetail(
                    error_type="Duplicate Relationship",
                    message=f"Ref '{ref.decl}' repeats an earlier reference and is ignored",
                    identifier=str(ref.decl),
                    **loc,
                ))
            else:
                self._error(SemanticErrorDetail.create_conflict(
                    "Relationship",
                    f"Ref '{ref.decl}' contradicts earlier reference '{existing.decl}'",
                    identifier=str(ref.decl),
                    suggestion="Declare each relationship once",
                    **loc,
                ))
        return sorted(chosen.values(), key=lambda r: (r.decl.span.line, r.decl.span.column))

    def _is_primary_key(self, endpoint: _Endpoint) -> bool:
        key, columns = endpoint
        return set(columns) == set(self.tables[key].primary_key)

    def build_relationships(self) -> None:
        refs = self._dedupe_refs(self._resolve_refs())

        pending_m2m: List[Tuple[_ResolvedRef, int]] = []
        for ref in refs:
            decl = ref.decl
            cardinality, swap = cardinality_from_operator(decl.operator)
            owner, referenced = (ref.right, ref.left) if swap else (ref.left, ref.right)
            if cardinality is Cardinality.ONE_TO_ONE:
                # The side holding the foreign key is the one that is not just a primary key.
                if self._is_primary_key(ref.left) and not self._is_primary_key(ref.right):
                    owner, referenced = ref.right, ref.left

            rel = Relationship(
                id=len(self.relationships),
                name=decl.name,
                cardinality=cardinality,
                owner_table=owner[0],
                owner_columns=list(owner[1]),
                referenced_table=referenced[0],
                referenced_columns=list(referenced[1]),
                on_delete=decl.on_delete,
                on_update=decl.on_update,
                declared_operator=decl.operator,
                source="inline" if decl.is_inline else "standalone",
                span=decl.span,
            )
            self.relationships.append(rel)
            if cardinality is Cardinality.MANY_TO_MANY:
                pending_m2m.append((ref, rel.id))

        used_names: Set[str] = set(self.tables)
        for ref, rel_id in pending_m2m:
            rel = self.relationships[rel_id]
            junction = self._find_junction(rel) or self._synthesize_junction(rel, used_names)
            self.relationships[rel_id] = rel.model_copy(update={"junction": junction})

    def _find_junction(self, rel: Relationship) -> Optional[JunctionRef]:
        """A third table with many-to-one refs to both endpoints' columns."""
        for key, table in self.tables.items():
            if key in (rel.owner_table, rel.referenced_table):
                continue
            targets = {
                (r.referenced_table, tuple(r.referenced_columns))
                for r in self.relationships
                if r.owner_table == key and r.cardinality is Cardinality.MANY_TO_ONE
            }
            if (rel.owner_table, tuple(rel.owner_columns)) in targets and \
                    (rel.referenced_table, tuple(rel.referenced_columns)) in targets:
                logger.debug(f"Table {key!r} is the junction of {rel.owner_table} <> {rel.referenced_table}")
                return JunctionRef(table_key=key, synthesized=False, name=table.name)
        return None

    def _synthesize_junction(self, rel: Relationship, used: Set[str]) -> JunctionRef:
        left = self.tables[rel.owner_table]
        right = self.tables[rel.referenced_table]
        base = f"{left.name}_{right.name}"
        name = base
        suffix = 2
        while f"{left.schema_name}.{name}" in used:
            name = f"{base}_{suffix}"
            suffix += 1
        key = f"{left.schema_name}.{name}"
        used.add(key)
        return JunctionRef(table_key=key, synthesized=True, name=name)

    # ------------------------------------------------------------------
    # Pass 4: metadata
    # ------------------------------------------------------------------

    def resolve_groups(self) -> Tuple[List[TableGroup], Dict[str, str]]:
        groups: List[TableGroup] = []
        membership: Dict[str, str] = {}
        for decl in self.ast.table_groups:
            members: List[str] = []
            for member in decl.tables:
                key = self.lookup_table(member.schema_name, member.name, member.span)
                if key is None:
                    continue
                if key in membership:
                    self._error(SemanticErrorDetail.create_conflict(
                        "Table Group",
                        f"Table '{member.name}' is already in table group '{membership[key]}'",
                        identifier=member.name,
                        table=member.name,
                        **_location(member.span),
                    ))
                    continue
                membership[key] = decl.name
                members.append(key)
            groups.append(TableGroup(name=decl.name, tables=members, note=decl.note))
        return groups, membership

    def resolve_project(self) -> Optional[Project]:
        projects = self.ast.projects
        for extra in projects[1:]:
            self._error(SemanticErrorDetail.create_duplicate(
                "Project",
                "Only one Project block is allowed per document",
                identifier=extra.name,
                **_location(extra.span),
            ))
        if not projects:
            return None
        decl = projects[0]
        return Project(name=decl.name, database_type=decl.database_type, note=decl.note, properties=decl.properties)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self) -> Optional[ResolvedSchema]:
        self.collect_symbols()
        enums = self.resolve_enums()
        for position, (key, decl) in enumerate(self.table_decls.items()):
            self.tables[key] = self.resolve_table(key, decl, position)
        self.build_relationships()
        groups, membership = self.resolve_groups()
        project = self.resolve_project()

        self.errors.sort(key=lambda e: (e.line or 0, e.column or 0))
        self.warnings.sort(key=lambda e: (e.line or 0, e.column or 0))
        if self.errors:
            return None

        rel_ids: Dict[str, List[int]] = {key: [] for key in self.tables}
        for rel in self.relationships:
            rel_ids[rel.owner_table].append(rel.id)
            if rel.referenced_table != rel.owner_table:
                rel_ids[rel.referenced_table].append(rel.id)
        explicit_junctions = {
            rel.junction.table_key
            for rel in self.relationships
            if rel.junction is not None and not rel.junction.synthesized
        }

        tables: List[Table] = []
        for key, table in self.tables.items():
            tables.append(table.model_copy(update={
                "relationship_ids": rel_ids[key],
                "group": membership.get(key),
                "is_junction": key in explicit_junctions or self._is_junction_idiom(table),
            }))

        return ResolvedSchema(
            default_schema=self.default_schema,
            tables=tables,
            enums=enums,
            relationships=self.relationships,
            table_groups=groups,
            project=project,
            notes=[n.text for n in self.ast.notes],
        )

    def _is_junction_idiom(self, table: Table) -> bool:
        """Composite primary key made of exactly the columns of two many-to-one refs."""
        m2o = [
            r for r in self.relationships
            if r.owner_table == table.key and r.cardinality is Cardinality.MANY_TO_ONE
        ]
        if len(m2o) != 2 or len(table.primary_key) < 2:
            return False
        fk_columns = set(m2o[0].owner_columns) | set(m2o[1].owner_columns)
        return fk_columns == set(table.primary_key)


def resolve_schema(
    ast: SchemaAST,
    default_schema: str = "public",
    return_model: bool = False,
) -> Union[ResolvedSchema, ResolutionResult]:
    """Resolve and validate a parsed DBML document.

    Args:
        ast: Parsed document from parse_tokens/parse_dbml
        default_schema: Schema of tables and enums declared without one
        return_model: If True, returns ResolutionResult instead of raising

    Returns:
        If return_model=False: the ResolvedSchema
        If return_model=True: ResolutionResult with the schema or every error

    Raises:
        SchemaResolutionError: With every semantic error (only when return_model=False)
    """
    resolver = _Resolver(ast, default_schema)
    schema = resolver.run()
    for warning in resolver.warnings:
        logger.warning(f"[{warning.error_type}] {warning.message}")

    if schema is None:
        logger.debug(f"Resolution failed with {len(resolver.errors)} error(s)")
        if return_model:
            return ResolutionResult.from_errors(resolver.errors, resolver.warnings)
        raise SchemaResolutionError(resolver.errors, resolver.warnings)

    logger.debug(
        f"Resolved {len(schema.tables)} table(s), {len(schema.enums)} enum(s), "
        f"{len(schema.relationships)} relationship(s)"
    )
    if return_model:
        return ResolutionResult.from_success(schema, resolver.warnings)
    return schema
