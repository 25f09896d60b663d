"""SQLAlchemy entity module generation.

Turns a resolved, type-mapped schema into Python source: one module per
table (plus one per synthesized many-to-many junction), a ``_base`` module
with the declarative base and relation metadata types, an ``_enums`` module
and a package ``__init__`` importing every entity class.

Every relationship becomes a pair of ``relationship()`` attributes linked by
``back_populates``; many-to-many relationships go through their junction
entity and are listed as a ``MANY_TO_MANY`` variant of the ``<Class>Relation``
enum, never as a direct collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from DBML2ORM import NAME, __version__
from DBML2ORM.config.options import CodegenOptions
from DBML2ORM.ir.models.relation_type import Cardinality
from DBML2ORM.ir.models.resolved import Relationship, ResolvedSchema, Table
from DBML2ORM.utils.data_types.type_mapping import (
    TargetColumnDescriptor,
    TypeFamily,
    TypeMappingResult,
)
from DBML2ORM.utils.logging import get_logger
from DBML2ORM.utils.naming import (
    EntityNames,
    attribute_name,
    build_entity_names,
    enum_class_names,
    enum_member_name,
    snake_name,
    unique_name,
)

logger = get_logger(__name__)

_LINE_LENGTH = 100
_INDENT = "    "


class GeneratedModule(BaseModel):
    """One generated Python module."""

    name: str = Field(description="Module name without the .py suffix")
    table: Optional[str] = Field(None, description="Table key for entity modules")
    source: str
    kind: str = Field("entity", description="entity | junction | support | package")

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Generation plan
# ============================================================================

@dataclass(frozen=True)
class _Link:
    """A foreign key between two generated entities."""

    id: str
    owner: str
    owner_columns: Tuple[str, ...]
    referenced: str
    referenced_columns: Tuple[str, ...]
    one_to_one: bool = False
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    @property
    def is_self_referencing(self) -> bool:
        return self.owner == self.referenced


@dataclass
class _Side:
    """A link seen from one of its entities."""

    link: _Link
    is_owner: bool
    attribute: str = ""

    @property
    def local(self) -> str:
        return self.link.owner if self.is_owner else self.link.referenced

    @property
    def remote(self) -> str:
        return self.link.referenced if self.is_owner else self.link.owner

    @property
    def local_columns(self) -> Tuple[str, ...]:
        return self.link.owner_columns if self.is_owner else self.link.referenced_columns

    @property
    def remote_columns(self) -> Tuple[str, ...]:
        return self.link.referenced_columns if self.is_owner else self.link.owner_columns

    @property
    def cardinality(self) -> Cardinality:
        if self.link.one_to_one:
            return Cardinality.ONE_TO_ONE
        return Cardinality.MANY_TO_ONE if self.is_owner else Cardinality.ONE_TO_MANY


@dataclass
class _Via:
    """A many-to-many relationship seen from one endpoint."""

    remote: str
    local_columns: Tuple[str, ...]
    remote_columns: Tuple[str, ...]
    junction: str
    junction_name: str
    local_link: Optional[str]


@dataclass
class _Column:
    name: str
    attribute: str
    descriptor: TargetColumnDescriptor
    is_pk: bool = False
    is_unique: bool = False
    note: Optional[str] = None
    comments: List[str] = field(default_factory=list)


@dataclass
class _Entity:
    key: str
    name: str
    schema_name: str
    explicit_schema: bool
    class_name: str
    module: str
    columns: List[_Column]
    primary_key: List[str]
    unique_constraints: List[List[str]] = field(default_factory=list)
    indexes: list = field(default_factory=list)
    checks: List[str] = field(default_factory=list)
    note: Optional[str] = None
    comments: List[str] = field(default_factory=list)
    group: Optional[str] = None
    synthesized: bool = False
    sides: List[_Side] = field(default_factory=list)
    vias: List[_Via] = field(default_factory=list)

    def attribute(self, column: str) -> str:
        for col in self.columns:
            if col.name == column:
                return col.attribute
        raise KeyError(column)

    def column(self, column: str) -> _Column:
        for col in self.columns:
            if col.name == column:
                return col
        raise KeyError(column)


@dataclass
class _Plan:
    schema: ResolvedSchema
    options: CodegenOptions
    names: EntityNames
    entities: Dict[str, _Entity]
    links: Dict[str, _Link]

    def emits_schema(self, entity: _Entity) -> bool:
        return entity.explicit_schema or self.options.emit_default_schema


def _junction_columns(rel: Relationship, left: Table, right: Table) -> Tuple[List[str], List[str]]:
    left_cols = [f"{left.name}_{c}" for c in rel.owner_columns]
    taken = set(left_cols)
    right_cols = []
    for c in rel.referenced_columns:
        name = f"{right.name}_{c}"
        if name in taken:
            name = f"related_{name}"
        right_cols.append(unique_name(name, taken))
    return left_cols, right_cols


def _entity_columns(table: Table, type_map: TypeMappingResult, enum_classes: Set[str]) -> List[_Column]:
    taken: Set[str] = set()
    columns = []
    for col in table.columns:
        attribute = attribute_name(col.name)
        # Enum classes are referenced from the class body.
        if attribute in enum_classes:
            attribute += "_"
        columns.append(_Column(
            name=col.name,
            attribute=unique_name(attribute, taken),
            descriptor=type_map.descriptor(table.key, col.name),
            is_pk=col.name in table.primary_key,
            is_unique=col.is_unique,
            note=col.note,
            comments=list(col.comments),
        ))
    return columns


def _build_plan(
    schema: ResolvedSchema,
    type_map: TypeMappingResult,
    options: CodegenOptions,
) -> _Plan:
    if not type_map.success:
        raise ValueError(f"Cannot generate code from a schema with type errors:\n{type_map.get_error_summary()}")

    synthesized = [
        rel for rel in schema.relationships
        if rel.cardinality is Cardinality.MANY_TO_MANY and rel.junction is not None and rel.junction.synthesized
    ]
    names = build_entity_names(
        schema,
        junctions=[
            (rel.junction.table_key, schema.table(rel.owner_table).schema_name, rel.junction.name)
            for rel in synthesized
        ],
        reserved_modules={options.base_module, options.enums_module},
    )

    entities: Dict[str, _Entity] = {}
    links: Dict[str, _Link] = {}

    for table in schema.tables:
        entities[table.key] = _Entity(
            key=table.key,
            name=table.name,
            schema_name=table.schema_name,
            explicit_schema=table.explicit_schema,
            class_name=names.classes[table.key],
            module=names.modules[table.key],
            columns=_entity_columns(table, type_map, set(names.enums.values())),
            primary_key=list(table.primary_key),
            unique_constraints=[list(u) for u in table.unique_constraints],
            indexes=list(table.indexes),
            checks=list(table.checks),
            note=table.note,
            comments=list(table.comments),
            group=table.group,
        )

    for rel in schema.relationships:
        if rel.cardinality is Cardinality.MANY_TO_MANY:
            continue
        links[f"r{rel.id}"] = _Link(
            id=f"r{rel.id}",
            owner=rel.owner_table,
            owner_columns=tuple(rel.owner_columns),
            referenced=rel.referenced_table,
            referenced_columns=tuple(rel.referenced_columns),
            one_to_one=rel.cardinality is Cardinality.ONE_TO_ONE,
            on_delete=rel.on_delete,
            on_update=rel.on_update,
        )

    # Real relationships, as each table sees them.
    for table in schema.tables:
        entity = entities[table.key]
        for view in schema.relation_views(table.key):
            link = links.get(f"r{view.relationship_id}")
            if link is not None:
                entity.sides.append(_Side(link=link, is_owner=view.is_owner))

    # Synthesized junction entities and their two links.
    for rel in synthesized:
        left = schema.table(rel.owner_table)
        right = schema.table(rel.referenced_table)
        left_cols, right_cols = _junction_columns(rel, left, right)
        key = rel.junction.table_key
        columns = []
        taken: Set[str] = set()
        for source_table, source_cols, junction_cols in (
            (left, rel.owner_columns, left_cols),
            (right, rel.referenced_columns, right_cols),
        ):
            for source_col, name in zip(source_cols, junction_cols):
                source = type_map.descriptor(source_table.key, source_col)
                descriptor = source.model_copy(update={
                    "nullable": False,
                    "default": None,
                    "autoincrement": False,
                    "typing_imports": [n for n in source.typing_imports if n != "Optional"],
                    "sa_imports": [i for i in source.sa_imports if i != ("sqlalchemy", "text")],
                })
                columns.append(_Column(
                    name=name,
                    attribute=unique_name(attribute_name(name), taken),
                    descriptor=descriptor,
                    is_pk=True,
                ))
        entity = _Entity(
            key=key,
            name=rel.junction.name,
            schema_name=left.schema_name,
            explicit_schema=left.explicit_schema,
            class_name=names.classes[key],
            module=names.modules[key],
            columns=columns,
            primary_key=left_cols + right_cols,
            note=f"Junction of {left.name} and {right.name}",
            synthesized=True,
        )
        entities[key] = entity
        for suffix, target, target_cols, cols in (
            ("l", left, rel.owner_columns, left_cols),
            ("r", right, rel.referenced_columns, right_cols),
        ):
            link = _Link(
                id=f"j{rel.id}{suffix}",
                owner=key,
                owner_columns=tuple(cols),
                referenced=target.key,
                referenced_columns=tuple(target_cols),
                on_delete=rel.on_delete,
                on_update=rel.on_update,
            )
            links[link.id] = link
            entity.sides.append(_Side(link=link, is_owner=True))
            entities[target.key].sides.append(_Side(link=link, is_owner=False))

    # Many-to-many variants, routed through the junction's links.
    for rel in schema.relationships:
        if rel.cardinality is not Cardinality.MANY_TO_MANY or rel.junction is None:
            continue
        junction = rel.junction.table_key
        endpoints = [
            (rel.owner_table, tuple(rel.owner_columns), rel.referenced_table, tuple(rel.referenced_columns)),
            (rel.referenced_table, tuple(rel.referenced_columns), rel.owner_table, tuple(rel.owner_columns)),
        ]
        if rel.owner_table == rel.referenced_table:
            endpoints = endpoints[:1]
        for local, local_cols, remote, remote_cols in endpoints:
            local_link = next(
                (
                    l.id for l in links.values()
                    if l.owner == junction and l.referenced == local and l.referenced_columns == local_cols
                ),
                None,
            )
            entities[local].vias.append(_Via(
                remote=remote,
                local_columns=local_cols,
                remote_columns=remote_cols,
                junction=junction,
                junction_name=rel.junction.name,
                local_link=local_link,
            ))

    plan = _Plan(schema=schema, options=options, names=names, entities=entities, links=links)
    for entity in entities.values():
        _name_relation_attributes(plan, entity)
    return plan


def _relation_base(plan: _Plan, side: _Side) -> str:
    remote_name = plan.entities[side.remote].name
    if side.is_owner:
        if len(side.local_columns) == 1:
            col = side.local_columns[0]
            if col.lower().endswith("_id") and len(col) > 3:
                return attribute_name(col[:-3])
            if col.endswith("Id") and len(col) > 2:
                return attribute_name(col[:-2])
        return attribute_name(snake_name(remote_name))
    if side.link.one_to_one:
        return attribute_name(snake_name(remote_name))
    return attribute_name(f"{snake_name(remote_name)}_collection")


def _name_relation_attributes(plan: _Plan, entity: _Entity) -> None:
    """Relation attribute names, unique within the class.

    Names shared by several sides (or by a column) get ``_by_<fk columns>``;
    whatever still collides gets a numeric suffix.
    """
    taken = {c.attribute for c in entity.columns}
    bases = [_relation_base(plan, side) for side in entity.sides]
    for side, base in zip(entity.sides, bases):
        if bases.count(base) > 1 or base in taken:
            base = f"{base}_by_{'_'.join(attribute_name(c) for c in side.link.owner_columns)}"
        side.attribute = unique_name(base, taken)


def _find_side(plan: _Plan, link_id: str, is_owner: bool) -> _Side:
    link = plan.links[link_id]
    entity = plan.entities[link.owner if is_owner else link.referenced]
    for side in entity.sides:
        if side.link.id == link_id and side.is_owner == is_owner:
            return side
    raise KeyError(link_id)


# ============================================================================
# Source rendering helpers
# ============================================================================

class _Imports:
    """Import lines of one generated module, grouped the way isort would."""

    def __init__(self) -> None:
        self.modules: Set[str] = set()
        self.from_imports: Dict[str, Set[str]] = {}
        self.local: Dict[str, Set[str]] = {}
        self.type_checking: Dict[str, Set[str]] = {}

    def add(self, module: str, name: Optional[str] = None) -> None:
        if name is None:
            self.modules.add(module)
        else:
            self.from_imports.setdefault(module, set()).add(name)

    def add_local(self, module: str, name: str) -> None:
        self.local.setdefault(module, set()).add(name)

    def add_type_checking(self, module: str, name: str) -> None:
        self.type_checking.setdefault(module, set()).add(name)

    def render(self) -> str:
        if self.type_checking:
            self.add("typing", "TYPE_CHECKING")
        stdlib = sorted(f"import {m}" for m in self.modules)
        stdlib += [
            f"from {m} import {', '.join(sorted(names))}"
            for m, names in sorted(self.from_imports.items())
            if m.split(".")[0] in ("typing", "dataclasses")
        ]
        third_party = [
            f"from {m} import {', '.join(sorted(names))}"
            for m, names in sorted(self.from_imports.items())
            if m.split(".")[0] not in ("typing", "dataclasses")
        ]
        local = [f"from .{m} import {', '.join(sorted(names))}" for m, names in sorted(self.local.items())]
        blocks = [b for b in (stdlib, third_party, local) if b]
        out = "\n\n".join("\n".join(b) for b in blocks)
        if self.type_checking:
            lines = [
                f"{_INDENT}from .{m} import {', '.join(sorted(names))}"
                for m, names in sorted(self.type_checking.items())
            ]
            out += "\n\nif TYPE_CHECKING:\n" + "\n".join(lines)
        return out


def _docstring(lines: Iterable[str]) -> str:
    text = "\n".join(lines).rstrip()
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text += " "
    if "\n" in text:
        return f'"""{text}\n"""'
    return f'"""{text}"""'


def _call(func: str, args: List[str], indent: str, prefix: str = "") -> str:
    """``prefix + func(args)`` on one line, or one argument per line when too long."""
    one_line = f"{indent}{prefix}{func}({', '.join(args)})"
    if len(one_line) <= _LINE_LENGTH or not args:
        return one_line
    inner = indent + _INDENT
    body = "".join(f"{inner}{a},\n" for a in args)
    return f"{indent}{prefix}{func}(\n{body}{indent})"


def _tuple(items: Iterable[str]) -> str:
    items = [repr(i) for i in items]
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


def _comment_lines(comments: Iterable[str], indent: str) -> List[str]:
    lines = []
    for comment in comments:
        for line in comment.splitlines() or [""]:
            lines.append(f"{indent}# {line}".rstrip())
    return lines


def _header(options: CodegenOptions) -> str:
    return options.header.format(name=NAME, version=__version__)


def _fk_target(plan: _Plan, entity: _Entity, column: str) -> str:
    if plan.emits_schema(entity):
        return f"{entity.schema_name}.{entity.name}.{column}"
    return f"{entity.name}.{column}"


def _fk_kwargs(link: _Link) -> List[str]:
    kwargs = []
    if link.on_delete:
        kwargs.append(f"ondelete={link.on_delete.upper()!r}")
    if link.on_update:
        kwargs.append(f"onupdate={link.on_update.upper()!r}")
    return kwargs


# ============================================================================
# Entity modules
# ============================================================================

def _render_column(plan: _Plan, entity: _Entity, col: _Column, imports: _Imports) -> List[str]:
    desc = col.descriptor
    for module in desc.python_imports:
        imports.add(module)
    for name in desc.typing_imports:
        imports.add("typing", name)
    for module, name in desc.sa_imports:
        imports.add(module, name)
    if desc.enum_class:
        imports.add_local(plan.options.enums_module, desc.enum_class)
        imports.add_local(plan.options.base_module, "enum_values")
    imports.add("sqlalchemy.orm", "Mapped")
    imports.add("sqlalchemy.orm", "mapped_column")

    args: List[str] = []
    if col.attribute != col.name:
        args.append(repr(col.name))
    args.append(desc.sa_type)

    for side in entity.sides:
        link = side.link
        if side.is_owner and len(link.owner_columns) == 1 and link.owner_columns[0] == col.name:
            imports.add("sqlalchemy", "ForeignKey")
            target = _fk_target(plan, plan.entities[link.referenced], link.referenced_columns[0])
            args.append(f"ForeignKey({', '.join([repr(target)] + _fk_kwargs(link))})")

    single_int_pk = len(entity.primary_key) == 1 and desc.family is TypeFamily.INTEGER
    if col.is_pk:
        args.append("primary_key=True")
    if desc.autoincrement:
        args.append("autoincrement=True")
    elif col.is_pk and single_int_pk:
        args.append("autoincrement=False")
    if not col.is_pk:
        args.append(f"nullable={desc.nullable}")
    if col.is_unique:
        args.append("unique=True")
    if desc.default is not None:
        keyword = "server_default" if desc.default.server_side else "default"
        args.append(f"{keyword}={desc.default.literal}")
    if col.note:
        args.append(f"comment={col.note!r}")

    lines = _comment_lines(col.comments, _INDENT)
    lines.append(_call("mapped_column", args, _INDENT, prefix=f"{col.attribute}: Mapped[{desc.annotation}] = "))
    return lines


def _render_table_args(plan: _Plan, entity: _Entity, imports: _Imports) -> List[str]:
    items: List[str] = []
    inner = _INDENT * 2

    for columns in entity.unique_constraints:
        imports.add("sqlalchemy", "UniqueConstraint")
        items.append(_call("UniqueConstraint", [repr(c) for c in columns], inner))

    for side in entity.sides:
        link = side.link
        if not side.is_owner or len(link.owner_columns) < 2:
            continue
        imports.add("sqlalchemy", "ForeignKeyConstraint")
        target = plan.entities[link.referenced]
        local = "[" + ", ".join(repr(c) for c in link.owner_columns) + "]"
        remote = "[" + ", ".join(repr(_fk_target(plan, target, c)) for c in link.referenced_columns) + "]"
        items.append(_call("ForeignKeyConstraint", [local, remote] + _fk_kwargs(link), inner))

    index_names: Set[str] = set()
    for index in entity.indexes:
        imports.add("sqlalchemy", "Index")
        parts = [snake_name(c) if not e else "expr" for c, e in zip(index.columns, index.expressions)]
        name = index.name or unique_name(f"ix_{snake_name(entity.name)}_{'_'.join(parts)}", index_names)
        args = [repr(name)]
        for column, is_expression in zip(index.columns, index.expressions):
            if is_expression:
                imports.add("sqlalchemy", "text")
                args.append(f"text({column!r})")
            else:
                args.append(repr(column))
        if index.is_unique:
            args.append("unique=True")
        if index.type:
            args.append(f"postgresql_using={index.type.lower()!r}")
        if index.note:
            items.extend(_comment_lines([index.note], inner))
        items.append(_call("Index", args, inner))

    for check in entity.checks:
        imports.add("sqlalchemy", "CheckConstraint")
        items.append(_call("CheckConstraint", [repr(check)], inner))

    table_kwargs = {}
    if plan.emits_schema(entity):
        table_kwargs["schema"] = entity.schema_name
    if entity.note and not entity.synthesized:
        table_kwargs["comment"] = entity.note

    constraint_items = [i for i in items if not i.lstrip().startswith("#")]
    if not constraint_items:
        if not table_kwargs:
            return []
        return [f"{_INDENT}__table_args__ = {table_kwargs!r}"]
    if table_kwargs:
        items.append(f"{inner}{table_kwargs!r}")
    body = []
    for item in items:
        body.append(item if item.lstrip().startswith("#") else f"{item},")
    return [f"{_INDENT}__table_args__ = ("] + body + [f"{_INDENT})"]


def _render_relationship(plan: _Plan, entity: _Entity, side: _Side, imports: _Imports) -> str:
    link = side.link
    remote = plan.entities[side.remote]
    owner = plan.entities[link.owner]
    other = _find_side(plan, link.id, not side.is_owner)
    target = remote.class_name

    imports.add("sqlalchemy.orm", "relationship")
    imports.add("sqlalchemy.orm", "Mapped")
    if remote.key != entity.key:
        imports.add_type_checking(remote.module, remote.class_name)

    args = [repr(target), f"back_populates={other.attribute!r}"]
    if side.is_owner:
        nullable = any(entity.column(c).descriptor.nullable for c in link.owner_columns)
        annotation = f'Optional["{target}"]' if nullable else f'"{target}"'
        if nullable:
            imports.add("typing", "Optional")
        args.append(f"foreign_keys=[{', '.join(entity.attribute(c) for c in link.owner_columns)}]")
        if link.is_self_referencing:
            args.append(f"remote_side=[{', '.join(entity.attribute(c) for c in link.referenced_columns)}]")
    else:
        fks = ", ".join(f"{owner.class_name}.{owner.attribute(c)}" for c in link.owner_columns)
        args.append(f'foreign_keys="[{fks}]"')
        if link.one_to_one:
            annotation = f'Optional["{target}"]'
            imports.add("typing", "Optional")
            args.append("uselist=False")
        else:
            annotation = f'List["{target}"]'
            imports.add("typing", "List")

    return _call("relationship", args, _INDENT, prefix=f"{side.attribute}: Mapped[{annotation}] = ")


def _render_relation_enum(plan: _Plan, entity: _Entity, imports: _Imports) -> List[str]:
    imports.add("enum")
    lines = [f"class {entity.class_name}Relation(enum.Enum):"]
    members: List[Tuple[str, List[str]]] = []
    taken: Set[str] = set()

    for side in entity.sides:
        remote = plan.entities[side.remote]
        members.append((
            unique_name(side.attribute.upper(), taken),
            [
                f"attribute={side.attribute!r}",
                f"target={remote.name!r}",
                f"cardinality=Cardinality.{side.cardinality.name}",
                f"from_columns={_tuple(side.local_columns)}",
                f"to_columns={_tuple(side.remote_columns)}",
            ],
        ))
    for via in entity.vias:
        remote = plan.entities[via.remote]
        attribute = _find_side(plan, via.local_link, False).attribute if via.local_link else None
        members.append((
            unique_name(f"{snake_name(remote.name)}_via_{snake_name(via.junction_name)}".upper(), taken),
            [
                f"attribute={attribute!r}",
                f"target={remote.name!r}",
                "cardinality=Cardinality.MANY_TO_MANY",
                f"from_columns={_tuple(via.local_columns)}",
                f"to_columns={_tuple(via.remote_columns)}",
                f"via={via.junction_name!r}",
            ],
        ))

    if not members:
        lines.append(f"{_INDENT}pass")
        return lines
    imports.add_local(plan.options.base_module, "Cardinality")
    imports.add_local(plan.options.base_module, "RelationDef")
    for member, args in members:
        lines.append(_call("RelationDef", args, _INDENT, prefix=f"{member} = "))
    return lines


def _render_entity(plan: _Plan, entity: _Entity) -> str:
    imports = _Imports()
    imports.add_local(plan.options.base_module, "Base")

    doc = [_header(plan.options), ""]
    qualified = f"{entity.schema_name}.{entity.name}" if plan.emits_schema(entity) else entity.name
    doc.append(f"Table: {qualified}")
    if entity.note:
        doc.extend(["", *entity.note.splitlines()])
    if entity.group:
        doc.extend(["", f"Group: {entity.group}"])

    body: List[str] = [f"{_INDENT}__tablename__ = {entity.name!r}"]
    body.extend(_render_table_args(plan, entity, imports))
    body.append("")
    for col in entity.columns:
        body.extend(_render_column(plan, entity, col, imports))
    if not entity.primary_key:
        body.append("")
        attrs = ", ".join(c.attribute for c in entity.columns)
        body.append(f'{_INDENT}__mapper_args__ = {{"primary_key": [{attrs}]}}')
    if entity.sides:
        body.append("")
        for side in entity.sides:
            body.append(_render_relationship(plan, entity, side, imports))

    relation_enum = _render_relation_enum(plan, entity, imports)

    cls = entity.class_name
    parts = [
        _docstring(doc),
        "",
        imports.render(),
        "",
        "",
        f"class {cls}Behavior:",
        f'{_INDENT}"""Hand-written behavior for {cls}; the generator leaves it empty."""',
        "",
        "",
    ]
    parts.extend(_comment_lines(entity.comments, ""))
    parts.append(f"class {cls}({cls}Behavior, Base):")
    parts.extend(body)
    parts.extend(["", ""])
    parts.extend(relation_enum)
    return "\n".join(parts) + "\n"


def _coerce_options(options: Optional[CodegenOptions]) -> CodegenOptions:
    return options if options is not None else CodegenOptions()


def generate_entity_modules(
    schema: ResolvedSchema,
    type_map: TypeMappingResult,
    options: Optional[CodegenOptions] = None,
) -> List[GeneratedModule]:
    """One module per table in source order, then one per synthesized junction.

    Raises:
        ValueError: If ``type_map`` carries errors.
    """
    plan = _build_plan(schema, type_map, _coerce_options(options))
    modules = []
    for entity in plan.entities.values():
        modules.append(GeneratedModule(
            name=entity.module,
            table=entity.key,
            source=_render_entity(plan, entity),
            kind="junction" if entity.synthesized else "entity",
        ))
    logger.debug(f"Generated {len(modules)} entity module(s)")
    return modules


# ============================================================================
# Support modules
# ============================================================================

def _render_base(options: CodegenOptions) -> str:
    cardinalities = "\n".join(f'{_INDENT}{c.name} = "{c.value}"' for c in Cardinality)
    return f'''{_docstring([_header(options), "", "Declarative base and relation metadata shared by the entity modules."])}

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Cardinality(enum.Enum):
{cardinalities}


@dataclass(frozen=True)
class RelationDef:
    """One relation of an entity, as listed by its ``<Entity>Relation`` enum."""

    attribute: Optional[str]
    target: str
    cardinality: Cardinality
    from_columns: Tuple[str, ...]
    to_columns: Tuple[str, ...]
    via: Optional[str] = None


def enum_values(enum_cls):
    """Store enum values (not member names) in the database."""
    return [member.value for member in enum_cls]
'''


def _render_enums(schema: ResolvedSchema, names: Dict[str, str], options: CodegenOptions) -> str:
    parts = [
        _docstring([_header(options), "", "Enumerations declared in the schema."]),
        "",
        "import enum",
    ]
    for enum_type in schema.enums:
        parts.extend(["", ""])
        parts.append(f"class {names[enum_type.key]}(str, enum.Enum):")
        taken: Set[str] = set()
        for value in enum_type.values:
            line = f"{_INDENT}{unique_name(enum_member_name(value.name), taken)} = {value.name!r}"
            if value.note:
                line += f"  # {value.note.splitlines()[0]}"
            parts.append(line)
    return "\n".join(parts) + "\n"


def generate_support_modules(
    schema: ResolvedSchema,
    options: Optional[CodegenOptions] = None,
) -> List[GeneratedModule]:
    """The ``_base`` module, and the ``_enums`` module when the schema declares enums."""
    options = _coerce_options(options)
    modules = [GeneratedModule(name=options.base_module, source=_render_base(options), kind="support")]
    if schema.enums:
        modules.append(GeneratedModule(
            name=options.enums_module,
            source=_render_enums(schema, enum_class_names(schema), options),
            kind="support",
        ))
    return modules


def _render_package_init(schema: ResolvedSchema, entities: List[GeneratedModule], classes: Dict[str, str],
                         options: CodegenOptions) -> str:
    doc = [_header(options)]
    project = schema.project
    if project is not None:
        title = project.name or "Project"
        if project.database_type:
            title += f" ({project.database_type})"
        doc.extend(["", title])
        if project.note:
            doc.extend(["", *project.note.splitlines()])
    for note in schema.notes:
        doc.extend(["", *note.splitlines()])

    lines = [_docstring(doc), "", f"from .{options.base_module} import Base"]
    exported = ["Base"]
    for module in entities:
        cls = classes[module.table]
        lines.append(f"from .{module.name} import {cls}")
        exported.append(cls)
    lines.append("")
    lines.append("__all__ = [")
    lines.extend(f"{_INDENT}{name!r}," for name in exported)
    lines.append("]")
    return "\n".join(lines) + "\n"


def generate_package(
    schema: ResolvedSchema,
    type_map: TypeMappingResult,
    options: Optional[CodegenOptions] = None,
) -> List[GeneratedModule]:
    """Support modules, entity modules, then the package ``__init__``."""
    options = _coerce_options(options)
    plan = _build_plan(schema, type_map, options)
    entities = generate_entity_modules(schema, type_map, options)
    init = GeneratedModule(
        name="__init__",
        source=_render_package_init(schema, entities, plan.names.classes, options),
        kind="package",
    )
    return generate_support_modules(schema, options) + entities + [init]


def as_pairs(modules: Iterable[Union[GeneratedModule, Tuple[str, str]]]) -> List[Tuple[str, str]]:
    """``(module name, source)`` pairs, in order."""
    return [(m.name, m.source) if isinstance(m, GeneratedModule) else tuple(m) for m in modules]
