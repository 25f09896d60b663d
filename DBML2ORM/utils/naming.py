"""Python identifiers for generated modules, classes, attributes and enum members.

Every function here is deterministic: the same schema always yields the same
names. Collisions are resolved in declaration order (first come keeps the
plain name).
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from DBML2ORM.ir.models.resolved import ResolvedSchema


# Names imported into generated modules; a class or attribute with one of
# these names would shadow the import inside the class body.
GENERATED_IMPORT_NAMES = frozenset(
    {
        # typing / stdlib
        "Any", "List", "Optional", "TYPE_CHECKING", "datetime", "decimal", "enum", "uuid",
        # sqlalchemy core
        "ARRAY", "BigInteger", "Boolean", "CHAR", "CheckConstraint", "Date", "DateTime", "Double",
        "Enum", "Float", "ForeignKey", "ForeignKeyConstraint", "Index", "Integer", "Interval", "JSON",
        "LargeBinary", "Numeric", "SmallInteger", "String", "Text", "Time", "UniqueConstraint", "Uuid",
        "text",
        # sqlalchemy orm
        "Mapped", "mapped_column", "relationship",
        # generated support module
        "Base", "Cardinality", "RelationDef", "enum_values",
    }
)

# Attributes DeclarativeBase reserves on mapped classes, and builtins used in
# Mapped[...] annotations (evaluated in the class body).
_RESERVED_ATTRIBUTES = frozenset({"metadata", "registry", "mro", "int", "str", "float", "bool", "bytes"})

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _words(name: str) -> List[str]:
    return [w for w in _WORD_SPLIT.split(name) if w]


def class_name(name: str) -> str:
    """PascalCase class name: ``order_items`` → ``OrderItems``."""
    words = _words(name)
    result = "".join(w[0].upper() + w[1:] for w in words) or "Entity"
    if result[0].isdigit():
        result = f"T{result}"
    if keyword.iskeyword(result):
        result += "_"
    return result


def snake_name(name: str) -> str:
    """snake_case identifier: ``OrderItems`` → ``order_items``."""
    spaced = _CAMEL_BOUNDARY.sub("_", name)
    result = "_".join(w.lower() for w in _words(spaced)) or "entity"
    if result[0].isdigit():
        result = f"t_{result}"
    if keyword.iskeyword(result):
        result += "_"
    return result


def attribute_name(name: str) -> str:
    """Valid attribute identifier for a database name, case preserved."""
    result = re.sub(r"\W", "_", name, flags=re.ASCII) or "column"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result) or result in _RESERVED_ATTRIBUTES or result in GENERATED_IMPORT_NAMES:
        result += "_"
    return result


def enum_member_name(value: str) -> str:
    """Enum member identifier for an enum value: ``in progress`` → ``in_progress``."""
    result = re.sub(r"\W", "_", value, flags=re.ASCII) or "empty"
    # Enum treats underscore-prefixed names specially.
    if result.startswith("_"):
        result = f"v{result}"
    elif result[0].isdigit():
        result = f"v_{result}"
    if keyword.iskeyword(result) or result in ("mro", "name", "value"):
        result += "_"
    return result


def unique_name(base: str, taken: Set[str]) -> str:
    """``base``, else ``base_2``, ``base_3``, ... ; the result is added to ``taken``."""
    name = base
    suffix = 2
    while name in taken:
        name = f"{base}_{suffix}"
        suffix += 1
    taken.add(name)
    return name


def unique_names(bases: Iterable[str], taken: Optional[Set[str]] = None) -> List[str]:
    taken = set() if taken is None else taken
    return [unique_name(b, taken) for b in bases]


@dataclass
class EntityNames:
    """Class and module names of every generated entity, keyed by table key.

    Synthesized junction tables are registered after the source tables.
    """

    classes: Dict[str, str] = field(default_factory=dict)
    modules: Dict[str, str] = field(default_factory=dict)
    enums: Dict[str, str] = field(default_factory=dict)

    def add_table(self, key: str, schema_name: str, name: str, reserved_modules: Set[str]) -> None:
        taken_classes = set(self.classes.values()) | set(self.enums.values()) | GENERATED_IMPORT_NAMES
        cls = class_name(name)
        if cls in taken_classes or _is_derived_name(cls, taken_classes):
            cls = class_name(f"{schema_name}_{name}")
        self.classes[key] = _unique_class(cls, taken_classes)

        taken_modules = set(self.modules.values()) | reserved_modules
        module = snake_name(name)
        if module in taken_modules:
            module = snake_name(f"{schema_name}_{name}")
        self.modules[key] = unique_name(module, taken_modules)


def _is_derived_name(cls: str, taken: Set[str]) -> bool:
    """``cls`` equals the Behavior/Relation companion of an existing class."""
    return any(cls in (f"{t}Behavior", f"{t}Relation") for t in taken)


def _unique_class(base: str, taken: Set[str]) -> str:
    name = base
    suffix = 2
    while name in taken:
        name = f"{base}{suffix}"
        suffix += 1
    return name


def enum_class_names(schema: ResolvedSchema) -> Dict[str, str]:
    """Python class name of every enum, keyed by enum key.

    Enum classes are imported into entity modules, so they avoid entity class
    names as well as each other.
    """
    table_classes = {class_name(t.name) for t in schema.tables}
    taken: Set[str] = set(GENERATED_IMPORT_NAMES)
    names: Dict[str, str] = {}
    plain = [class_name(e.name) for e in schema.enums]
    for enum, cls in zip(schema.enums, plain):
        if cls in taken or plain.count(cls) > 1:
            cls = class_name(f"{enum.schema_name}_{enum.name}")
        if cls in table_classes:
            cls = f"{cls}Enum"
        cls = _unique_class(cls, taken)
        taken.add(cls)
        names[enum.key] = cls
    return names


def build_entity_names(
    schema: ResolvedSchema,
    junctions: Optional[Iterable[tuple]] = None,
    reserved_modules: Iterable[str] = (),
) -> EntityNames:
    """Name every table and synthesized junction ``(key, schema_name, name)``."""
    names = EntityNames(enums=enum_class_names(schema))
    reserved = set(reserved_modules) | {"__init__"}
    for table in schema.tables:
        names.add_table(table.key, table.schema_name, table.name, reserved)
    for key, schema_name, name in junctions or ():
        names.add_table(key, schema_name, name, reserved)
    return names
