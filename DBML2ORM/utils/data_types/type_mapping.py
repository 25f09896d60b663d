"""DBML column type → SQLAlchemy / Python type mapping.

This module centralizes:
- the fixed, total table of supported DBML primitive type names
- argument validation (length, precision/scale, fractional seconds)
- default value translation (client-side literal vs server default)
- the Pydantic descriptor consumed by the code generator

It is generator-agnostic: the descriptor carries source text fragments and
the imports they need, nothing is rendered into a module here.
"""

from __future__ import annotations

from difflib import get_close_matches
from enum import Enum
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from DBML2ORM.config.options import TypeOverride
from DBML2ORM.ir.models.ast import DefaultKind, DefaultValueDecl
from DBML2ORM.ir.models.diagnostics import Diagnostic, ErrorSeverity, PipelineStage
from DBML2ORM.ir.models.resolved import EnumType, ResolvedSchema
from DBML2ORM.utils.logging import get_logger
from DBML2ORM.utils.naming import class_name, enum_class_names

logger = get_logger(__name__)


class TypeFamily(str, Enum):
    INTEGER = "integer"
    STRING = "string"
    TEXT = "text"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    INTERVAL = "interval"
    BINARY = "binary"
    UUID = "uuid"
    JSON = "json"
    ENUM = "enum"
    CUSTOM = "custom"

    @property
    def is_textual(self) -> bool:
        return self in (TypeFamily.STRING, TypeFamily.TEXT, TypeFamily.CUSTOM)


# ============================================================================
# Errors
# ============================================================================

class TypeMappingError(Exception):
    """Base class for column type mapping failures."""

    def __init__(
        self,
        message: str,
        type_name: Optional[str] = None,
        suggestion: Optional[str] = None,
        table: Optional[str] = None,
        column_name: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.message = message
        self.type_name = type_name
        self.suggestion = suggestion
        self.table = table
        self.column_name = column_name
        self.line = line
        self.column = column
        super().__init__(message)

    def at(self, table: str, column_name: str, line: Optional[int] = None, column: Optional[int] = None) -> TypeMappingError:
        """Same error, located on a table column."""
        return type(self)(
            self.message,
            type_name=self.type_name,
            suggestion=self.suggestion,
            table=table,
            column_name=column_name,
            line=line,
            column=column,
        )

    def to_diagnostic(self) -> Diagnostic:
        message = self.message
        if self.table and self.column_name:
            message = f"Column '{self.table}.{self.column_name}': {message}"
        return Diagnostic(
            stage=PipelineStage.TYPE_MAPPING,
            severity=ErrorSeverity.ERROR,
            kind=type(self).__name__,
            message=message,
            line=self.line,
            column=self.column,
            table=self.table,
            column_name=self.column_name,
            suggestion=self.suggestion,
        )


class UnknownTypeError(TypeMappingError):
    """The column type names neither a supported primitive nor an enum."""


class InvalidTypeArgumentsError(TypeMappingError):
    """The type parameters (length, precision, ...) are malformed."""


# ============================================================================
# Descriptor models
# ============================================================================

class TargetDefault(BaseModel):
    """A column default, ready to render."""

    kind: DefaultKind = Field(description="Kind of the DBML default literal")
    literal: str = Field(description="Python source of the value, e.g. '0', \"'draft'\", 'text(\"now()\")'")
    server_side: bool = Field(False, description="Render as server_default= instead of default=")

    model_config = ConfigDict(frozen=True)


class TargetColumnDescriptor(BaseModel):
    """Target-language view of one column type."""

    db_type: str = Field(description="Type as written in DBML")
    family: TypeFamily
    python_type: str = Field(description="Annotation inside Mapped[...], without Optional")
    python_imports: List[str] = Field(default_factory=list, description="Modules imported with 'import <module>'")
    typing_imports: List[str] = Field(default_factory=list, description="Names imported from typing")
    sa_type: str = Field(description="SQLAlchemy type expression, e.g. 'String(255)'")
    sa_imports: List[Tuple[str, str]] = Field(default_factory=list, description="(module, name) pairs")
    nullable: bool = False
    autoincrement: bool = False
    enum_key: Optional[str] = None
    enum_class: Optional[str] = None
    default: Optional[TargetDefault] = None

    model_config = ConfigDict(frozen=True)

    @property
    def annotation(self) -> str:
        return f"Optional[{self.python_type}]" if self.nullable else self.python_type

    @property
    def is_enum(self) -> bool:
        return self.enum_class is not None


class TypeMappingResult(BaseModel):
    """Result of mapping every column of a resolved schema."""

    success: bool = Field(description="Whether every column mapped")
    descriptors: Dict[str, TargetColumnDescriptor] = Field(
        default_factory=dict, description="Descriptors keyed by '<table key>.<column>'"
    )
    errors: List[Diagnostic] = Field(default_factory=list)
    error_count: int = 0

    def descriptor(self, table_key: str, column: str) -> TargetColumnDescriptor:
        return self.descriptors[f"{table_key}.{column}"]

    def get_error_summary(self) -> str:
        if not self.errors:
            return "No errors found."
        parts = [f"Found {len(self.errors)} type error(s):"]
        for i, err in enumerate(self.errors, 1):
            parts.append(f"{i}. {err.format_message()}")
        return "\n".join(parts)


# ============================================================================
# Primitive type table
# ============================================================================

class _TypeEntry(NamedTuple):
    family: TypeFamily
    sa_name: str
    python_type: str
    python_import: Optional[str] = None
    # Accepted parameters: none | width | length | precision | float | fsp | bit
    params: str = "none"
    sa_args: str = ""
    autoincrement: bool = False


_INT = _TypeEntry(TypeFamily.INTEGER, "Integer", "int", params="width")
_SMALLINT = _TypeEntry(TypeFamily.INTEGER, "SmallInteger", "int", params="width")
_BIGINT = _TypeEntry(TypeFamily.INTEGER, "BigInteger", "int", params="width")
_VARCHAR = _TypeEntry(TypeFamily.STRING, "String", "str", params="length")
_CHAR = _TypeEntry(TypeFamily.STRING, "CHAR", "str", params="length")
_TEXT = _TypeEntry(TypeFamily.TEXT, "Text", "str")
_NUMERIC = _TypeEntry(TypeFamily.DECIMAL, "Numeric", "decimal.Decimal", "decimal", params="precision")
_FLOAT = _TypeEntry(TypeFamily.FLOAT, "Float", "float", params="float")
_DOUBLE = _TypeEntry(TypeFamily.FLOAT, "Double", "float")
_BOOL = _TypeEntry(TypeFamily.BOOLEAN, "Boolean", "bool")
_TIME = _TypeEntry(TypeFamily.TIME, "Time", "datetime.time", "datetime", params="fsp")
_DATETIME = _TypeEntry(TypeFamily.DATETIME, "DateTime", "datetime.datetime", "datetime", params="fsp")
_BINARY = _TypeEntry(TypeFamily.BINARY, "LargeBinary", "bytes", params="length")
_BLOB = _TypeEntry(TypeFamily.BINARY, "LargeBinary", "bytes")
_JSON = _TypeEntry(TypeFamily.JSON, "JSON", "Any")

PRIMITIVE_TYPES: Dict[str, _TypeEntry] = {
    # Integers
    "int": _INT,
    "integer": _INT,
    "int4": _INT,
    "mediumint": _INT,
    "tinyint": _SMALLINT,
    "smallint": _SMALLINT,
    "int2": _SMALLINT,
    "bigint": _BIGINT,
    "int8": _BIGINT,
    "serial": _INT._replace(autoincrement=True, params="none"),
    "smallserial": _SMALLINT._replace(autoincrement=True, params="none"),
    "bigserial": _BIGINT._replace(autoincrement=True, params="none"),
    # Strings
    "varchar": _VARCHAR,
    "nvarchar": _VARCHAR,
    "character varying": _VARCHAR,
    "string": _VARCHAR,
    "char": _CHAR,
    "nchar": _CHAR,
    "character": _CHAR,
    "text": _TEXT,
    "tinytext": _TEXT,
    "mediumtext": _TEXT,
    "longtext": _TEXT,
    "clob": _TEXT,
    "citext": _TEXT,
    # Exact numerics
    "decimal": _NUMERIC,
    "numeric": _NUMERIC,
    "money": _NUMERIC._replace(params="none", sa_args="19, 4"),
    # Floating point
    "float": _FLOAT,
    "real": _FLOAT._replace(params="none"),
    "float4": _FLOAT._replace(params="none"),
    "double": _DOUBLE,
    "double precision": _DOUBLE,
    "float8": _DOUBLE,
    # Booleans
    "bool": _BOOL,
    "boolean": _BOOL,
    "bit": _BOOL._replace(params="bit"),
    # Temporal
    "date": _TypeEntry(TypeFamily.DATE, "Date", "datetime.date", "datetime"),
    "time": _TIME,
    "time without time zone": _TIME,
    "timetz": _TIME._replace(sa_args="timezone=True"),
    "time with time zone": _TIME._replace(sa_args="timezone=True"),
    "datetime": _DATETIME,
    "timestamp": _DATETIME,
    "timestamp without time zone": _DATETIME,
    "timestamptz": _DATETIME._replace(sa_args="timezone=True"),
    "timestamp with time zone": _DATETIME._replace(sa_args="timezone=True"),
    "interval": _TypeEntry(TypeFamily.INTERVAL, "Interval", "datetime.timedelta", "datetime"),
    # Binary
    "binary": _BINARY,
    "varbinary": _BINARY,
    "blob": _BLOB,
    "bytea": _BLOB,
    "tinyblob": _BLOB,
    "mediumblob": _BLOB,
    "longblob": _BLOB,
    # Other
    "uuid": _TypeEntry(TypeFamily.UUID, "Uuid", "uuid.UUID", "uuid"),
    "json": _JSON,
    "jsonb": _JSON,
}


def supported_type_names() -> List[str]:
    """Return the supported DBML primitive type names (sorted)."""
    return sorted(PRIMITIVE_TYPES)


def _int_arg(raw: str, type_name: str, what: str, minimum: int = 0) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidTypeArgumentsError(
            f"{what} of '{type_name}' must be an integer, got '{raw}'",
            type_name=type_name,
        ) from None
    if value < minimum:
        raise InvalidTypeArgumentsError(
            f"{what} of '{type_name}' must be at least {minimum}, got {value}",
            type_name=type_name,
        )
    return value


def _too_many(type_name: str, args: Sequence[str], allowed: int) -> InvalidTypeArgumentsError:
    if allowed == 0:
        message = f"Type '{type_name}' takes no arguments, got ({', '.join(args)})"
    else:
        message = f"Type '{type_name}' takes at most {allowed} argument(s), got ({', '.join(args)})"
    return InvalidTypeArgumentsError(message, type_name=type_name)


def _render_sa_type(entry: _TypeEntry, type_name: str, args: Sequence[str]) -> str:
    """Build the SQLAlchemy type expression, validating parameters on the way."""
    params = entry.params
    call_args: List[str] = [entry.sa_args] if entry.sa_args else []

    if params == "none":
        if args:
            raise _too_many(type_name, args, 0)
    elif params == "width":
        # MySQL display width: accepted, has no effect on the mapping.
        if len(args) > 1:
            raise _too_many(type_name, args, 1)
        for arg in args:
            _int_arg(arg, type_name, "Display width", minimum=1)
    elif params == "length":
        if len(args) > 1:
            raise _too_many(type_name, args, 1)
        if args and args[0].lower() != "max":
            call_args.append(str(_int_arg(args[0], type_name, "Length", minimum=1)))
    elif params == "precision":
        if len(args) > 2:
            raise _too_many(type_name, args, 2)
        values = [_int_arg(a, type_name, "Precision" if i == 0 else "Scale", minimum=1 if i == 0 else 0)
                  for i, a in enumerate(args)]
        if len(values) == 2 and values[1] > values[0]:
            raise InvalidTypeArgumentsError(
                f"Scale of '{type_name}' ({values[1]}) cannot exceed its precision ({values[0]})",
                type_name=type_name,
            )
        call_args.extend(str(v) for v in values)
    elif params == "float":
        if len(args) > 1:
            raise _too_many(type_name, args, 1)
        if args:
            call_args.append(str(_int_arg(args[0], type_name, "Precision", minimum=1)))
    elif params == "fsp":
        if len(args) > 1:
            raise _too_many(type_name, args, 1)
        if args and _int_arg(args[0], type_name, "Fractional seconds precision") > 6:
            raise InvalidTypeArgumentsError(
                f"Fractional seconds precision of '{type_name}' must be between 0 and 6, got {args[0]}",
                type_name=type_name,
            )
    elif params == "bit":
        if len(args) > 1:
            raise _too_many(type_name, args, 1)
        if args and _int_arg(args[0], type_name, "Length", minimum=1) != 1:
            raise InvalidTypeArgumentsError(
                f"Only bit(1) maps to a boolean, got bit({args[0]})",
                type_name=type_name,
                suggestion="Use varbinary or bytea for bit strings",
            )

    if not call_args:
        return entry.sa_name
    return f"{entry.sa_name}({', '.join(call_args)})"


def _render_override(override: TypeOverride, type_name: str, args: Sequence[str]) -> str:
    call_args: List[str] = []
    if override.accepts_length:
        if len(args) > 1:
            raise _too_many(type_name, args, 1)
        call_args.extend(str(_int_arg(a, type_name, "Length", minimum=1)) for a in args)
    elif override.accepts_precision:
        if len(args) > 2:
            raise _too_many(type_name, args, 2)
        call_args.extend(str(_int_arg(a, type_name, "Precision")) for a in args)
    elif args:
        raise _too_many(type_name, args, 0)
    if not call_args:
        return override.sa_type
    return f"{override.sa_type}({', '.join(call_args)})"


# ============================================================================
# Defaults
# ============================================================================

def _server(default: DefaultValueDecl) -> TargetDefault:
    return TargetDefault(kind=default.kind, literal=repr(default.raw), server_side=True)


def _map_default(
    default: Optional[DefaultValueDecl],
    family: TypeFamily,
    enum_class: Optional[str],
    is_array: bool,
) -> Optional[TargetDefault]:
    """Translate a DBML default into a client-side literal or a server default.

    Rules:
    - `expression` defaults are always server-side, wrapped in text()
    - enum defaults become the enum member
    - literals matching the column family stay client-side Python literals
    - anything else (e.g. a date string) is handed to the database verbatim
    """
    if default is None or default.kind == DefaultKind.NULL:
        return None
    kind = default.kind
    raw = default.raw

    if kind == DefaultKind.EXPRESSION:
        return TargetDefault(kind=kind, literal=f"text({raw!r})", server_side=True)
    if is_array:
        return _server(default)
    if enum_class is not None:
        return TargetDefault(kind=kind, literal=f"{enum_class}({raw!r})")

    if family == TypeFamily.BOOLEAN:
        if kind == DefaultKind.BOOLEAN:
            return TargetDefault(kind=kind, literal="True" if raw == "true" else "False")
        if kind == DefaultKind.INTEGER and raw in ("0", "1"):
            return TargetDefault(kind=kind, literal="True" if raw == "1" else "False")
        return _server(default)
    if family == TypeFamily.INTEGER:
        if kind == DefaultKind.INTEGER:
            return TargetDefault(kind=kind, literal=str(int(raw)))
        return _server(default)
    if family == TypeFamily.DECIMAL:
        if kind in (DefaultKind.INTEGER, DefaultKind.FLOAT):
            return TargetDefault(kind=kind, literal=f"decimal.Decimal({raw!r})")
        return _server(default)
    if family == TypeFamily.FLOAT:
        if kind in (DefaultKind.INTEGER, DefaultKind.FLOAT):
            return TargetDefault(kind=kind, literal=repr(float(raw)))
        return _server(default)
    if family.is_textual:
        return TargetDefault(kind=kind, literal=repr(raw))
    return _server(default)


# ============================================================================
# Public API
# ============================================================================

def map_column_type(
    type_name: str,
    args: Optional[Sequence[str]] = None,
    nullable: bool = False,
    default: Optional[DefaultValueDecl] = None,
    *,
    enum: Optional[EnumType] = None,
    enum_class: Optional[str] = None,
    is_array: bool = False,
    is_increment: bool = False,
    overrides: Optional[Mapping[str, TypeOverride]] = None,
) -> TargetColumnDescriptor:
    """Map one DBML column type to its SQLAlchemy / Python descriptor.

    Args:
        type_name: DBML type name (case-insensitive for primitives)
        args: Type parameters as written, e.g. ["10", "2"]
        nullable: Whether the column accepts NULL
        default: The column's DBML default, if any
        enum: The resolved enum when the column is enum-typed
        enum_class: Python class name of that enum (derived from its name when omitted)
        is_array: Whether the type carries a trailing []
        is_increment: Whether the column has the 'increment' setting
        overrides: Replacement/additional entries keyed by lowercase type name

    Raises:
        UnknownTypeError: The name is not a supported primitive (nor overridden)
        InvalidTypeArgumentsError: The parameters are malformed
    """
    args = list(args or [])
    written = f"{type_name}({', '.join(args)})" if args else type_name
    if is_array:
        written += "[]"
    typing_imports: List[str] = []
    python_imports: List[str] = []
    sa_imports: List[Tuple[str, str]] = []
    autoincrement = is_increment

    if enum is not None:
        if args:
            raise _too_many(type_name, args, 0)
        if enum_class is None:
            enum_class = class_name(enum.name)
        family = TypeFamily.ENUM
        python_type = enum_class
        sa_kwargs = [f"name={enum.name!r}", "values_callable=enum_values"]
        if enum.explicit_schema:
            sa_kwargs.append(f"schema={enum.schema_name!r}")
        sa_type = f"Enum({enum_class}, {', '.join(sa_kwargs)})"
        sa_imports.append(("sqlalchemy", "Enum"))
    else:
        key = type_name.lower()
        override = (overrides or {}).get(key)
        if override is not None:
            family = TypeFamily.CUSTOM
            python_type = override.python_type
            if override.python_import:
                python_imports.append(override.python_import)
            sa_type = _render_override(override, type_name, args)
            sa_imports.append((override.sa_import, override.sa_type))
        else:
            entry = PRIMITIVE_TYPES.get(key)
            if entry is None:
                matches = get_close_matches(key, list(PRIMITIVE_TYPES), n=3, cutoff=0.6)
                suggestion = f"Did you mean: {', '.join(matches)}?" if matches else \
                    "Declare an Enum with this name or add a type override"
                raise UnknownTypeError(f"Unknown column type '{type_name}'", type_name=type_name, suggestion=suggestion)
            family = entry.family
            python_type = entry.python_type
            if entry.python_import:
                python_imports.append(entry.python_import)
            if python_type == "Any":
                typing_imports.append("Any")
            sa_type = _render_sa_type(entry, type_name, args)
            sa_imports.append(("sqlalchemy", entry.sa_name))
            autoincrement = autoincrement or entry.autoincrement

    if is_array:
        python_type = f"List[{python_type}]"
        typing_imports.append("List")
        sa_type = f"ARRAY({sa_type})"
        sa_imports.append(("sqlalchemy", "ARRAY"))
    if nullable:
        typing_imports.append("Optional")

    target_default = _map_default(default, family, enum_class, is_array)
    if target_default is not None and target_default.literal.startswith("text("):
        sa_imports.append(("sqlalchemy", "text"))

    return TargetColumnDescriptor(
        db_type=written,
        family=family,
        python_type=python_type,
        python_imports=sorted(set(python_imports)),
        typing_imports=sorted(set(typing_imports)),
        sa_type=sa_type,
        sa_imports=sorted(set(sa_imports)),
        nullable=nullable,
        autoincrement=autoincrement,
        enum_key=enum.key if enum is not None else None,
        enum_class=enum_class,
        default=target_default,
    )


def map_schema_types(
    schema: ResolvedSchema,
    overrides: Optional[Mapping[str, TypeOverride]] = None,
) -> TypeMappingResult:
    """Map every column of every table; errors are collected, not raised."""
    enum_classes = enum_class_names(schema)
    descriptors: Dict[str, TargetColumnDescriptor] = {}
    errors: List[Diagnostic] = []

    for table in schema.tables:
        for col in table.columns:
            enum = schema.enum(col.type.enum_key) if col.type.enum_key else None
            try:
                descriptors[f"{table.key}.{col.name}"] = map_column_type(
                    col.type.name,
                    col.type.args,
                    col.nullable,
                    col.default,
                    enum=enum,
                    enum_class=enum_classes.get(enum.key) if enum is not None else None,
                    is_array=col.type.is_array,
                    is_increment=col.is_increment,
                    overrides=overrides,
                )
            except TypeMappingError as e:
                located = e.at(table.name, col.name, col.span.line, col.span.column)
                logger.debug(f"Type mapping failed for {table.key}.{col.name}: {e.message}")
                errors.append(located.to_diagnostic())

    logger.debug(f"Mapped {len(descriptors)} column(s), {len(errors)} error(s)")
    return TypeMappingResult(
        success=not errors,
        descriptors=descriptors,
        errors=errors,
        error_count=len(errors),
    )
