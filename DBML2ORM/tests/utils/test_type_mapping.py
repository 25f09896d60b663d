"""Tests for DBML column type → SQLAlchemy type mapping."""

import pytest

from DBML2ORM.config.options import TypeOverride
from DBML2ORM.ir.models.ast import DefaultKind, DefaultValueDecl
from DBML2ORM.ir.models.diagnostics import PipelineStage
from DBML2ORM.utils.data_types.type_mapping import (
    PRIMITIVE_TYPES,
    InvalidTypeArgumentsError,
    TypeFamily,
    UnknownTypeError,
    map_column_type,
    map_schema_types,
    supported_type_names,
)
from DBML2ORM.utils.dbml.parser import parse_dbml
from DBML2ORM.utils.dbml.resolver import resolve_schema


def _default(kind, raw):
    return DefaultValueDecl(kind=kind, raw=raw)


@pytest.mark.parametrize(
    "type_name, args, sa_type, python_type",
    [
        ("integer", [], "Integer", "int"),
        ("INT", [], "Integer", "int"),
        ("int", ["11"], "Integer", "int"),
        ("bigint", [], "BigInteger", "int"),
        ("varchar", ["255"], "String(255)", "str"),
        ("varchar", [], "String", "str"),
        ("nvarchar", ["max"], "String", "str"),
        ("char", ["2"], "CHAR(2)", "str"),
        ("text", [], "Text", "str"),
        ("decimal", ["10", "2"], "Numeric(10, 2)", "decimal.Decimal"),
        ("numeric", [], "Numeric", "decimal.Decimal"),
        ("money", [], "Numeric(19, 4)", "decimal.Decimal"),
        ("float", [], "Float", "float"),
        ("double precision", [], "Double", "float"),
        ("boolean", [], "Boolean", "bool"),
        ("bit", ["1"], "Boolean", "bool"),
        ("date", [], "Date", "datetime.date"),
        ("timestamp", ["3"], "DateTime", "datetime.datetime"),
        ("timestamptz", [], "DateTime(timezone=True)", "datetime.datetime"),
        ("interval", [], "Interval", "datetime.timedelta"),
        ("bytea", [], "LargeBinary", "bytes"),
        ("uuid", [], "Uuid", "uuid.UUID"),
        ("jsonb", [], "JSON", "Any"),
    ],
)
def test_primitive_types(type_name, args, sa_type, python_type):
    desc = map_column_type(type_name, args)
    assert desc.sa_type == sa_type
    assert desc.python_type == python_type
    assert desc.annotation == python_type


def test_supported_names_are_sorted_and_total():
    names = supported_type_names()
    assert names == sorted(PRIMITIVE_TYPES)
    for name in names:
        map_column_type(name)


def test_imports_are_reported():
    desc = map_column_type("decimal", ["10", "2"], nullable=True)
    assert desc.python_imports == ["decimal"]
    assert desc.typing_imports == ["Optional"]
    assert desc.sa_imports == [("sqlalchemy", "Numeric")]
    assert desc.annotation == "Optional[decimal.Decimal]"

    assert map_column_type("json").typing_imports == ["Any"]


def test_serial_types_autoincrement():
    assert map_column_type("serial").autoincrement is True
    assert map_column_type("integer").autoincrement is False
    assert map_column_type("integer", is_increment=True).autoincrement is True


def test_array_type():
    desc = map_column_type("varchar", ["64"], is_array=True)
    assert desc.sa_type == "ARRAY(String(64))"
    assert desc.python_type == "List[str]"
    assert desc.db_type == "varchar(64)[]"
    assert ("sqlalchemy", "ARRAY") in desc.sa_imports


class TestErrors:
    def test_unknown_type_suggests_close_match(self):
        with pytest.raises(UnknownTypeError) as exc_info:
            map_column_type("integr")
        err = exc_info.value
        assert err.type_name == "integr"
        assert "integer" in err.suggestion

    def test_unknown_type_without_close_match(self):
        with pytest.raises(UnknownTypeError) as exc_info:
            map_column_type("geography")
        assert "Enum" in exc_info.value.suggestion

    @pytest.mark.parametrize(
        "type_name, args, message_part",
        [
            ("varchar", ["abc"], "must be an integer"),
            ("varchar", ["0"], "must be at least 1"),
            ("varchar", ["1", "2"], "at most 1 argument"),
            ("decimal", ["2", "5"], "cannot exceed its precision"),
            ("decimal", ["1", "2", "3"], "at most 2 argument"),
            ("text", ["10"], "takes no arguments"),
            ("timestamp", ["9"], "between 0 and 6"),
            ("bit", ["8"], "Only bit(1)"),
        ],
    )
    def test_invalid_arguments(self, type_name, args, message_part):
        with pytest.raises(InvalidTypeArgumentsError) as exc_info:
            map_column_type(type_name, args)
        assert message_part in exc_info.value.message


class TestDefaults:
    @pytest.mark.parametrize(
        "type_name, default, literal, server_side",
        [
            ("integer", _default(DefaultKind.INTEGER, "-1"), "-1", False),
            ("boolean", _default(DefaultKind.BOOLEAN, "true"), "True", False),
            ("boolean", _default(DefaultKind.INTEGER, "0"), "False", False),
            ("varchar", _default(DefaultKind.STRING, "draft"), "'draft'", False),
            ("decimal", _default(DefaultKind.FLOAT, "0.5"), "decimal.Decimal('0.5')", False),
            ("float", _default(DefaultKind.INTEGER, "1"), "1.0", False),
            ("timestamp", _default(DefaultKind.EXPRESSION, "now()"), "text('now()')", True),
            ("date", _default(DefaultKind.STRING, "2020-01-01"), "'2020-01-01'", True),
            ("integer", _default(DefaultKind.STRING, "seven"), "'seven'", True),
        ],
    )
    def test_default_translation(self, type_name, default, literal, server_side):
        desc = map_column_type(type_name, default=default)
        assert desc.default.literal == literal
        assert desc.default.server_side is server_side

    def test_null_default_is_dropped(self):
        assert map_column_type("text", nullable=True, default=_default(DefaultKind.NULL, "null")).default is None

    def test_expression_default_imports_text(self):
        desc = map_column_type("timestamp", default=_default(DefaultKind.EXPRESSION, "now()"))
        assert ("sqlalchemy", "text") in desc.sa_imports


class TestOverrides:
    def test_override_adds_a_type(self):
        overrides = {"citext": TypeOverride(sa_type="CITEXT", sa_import="sqlalchemy.dialects.postgresql")}
        desc = map_column_type("CITEXT", overrides=overrides)
        assert desc.family is TypeFamily.CUSTOM
        assert desc.sa_type == "CITEXT"
        assert desc.sa_imports == [("sqlalchemy.dialects.postgresql", "CITEXT")]

    def test_override_replaces_a_builtin(self):
        overrides = {"money": TypeOverride(sa_type="MONEY", sa_import="sqlalchemy.dialects.postgresql")}
        assert map_column_type("money", overrides=overrides).sa_type == "MONEY"

    def test_override_length_argument(self):
        overrides = {"bpchar": TypeOverride(sa_type="CHAR", accepts_length=True)}
        assert map_column_type("bpchar", ["3"], overrides=overrides).sa_type == "CHAR(3)"
        with pytest.raises(InvalidTypeArgumentsError):
            map_column_type("citext", ["3"], overrides={"citext": TypeOverride(sa_type="CITEXT")})


class TestSchemaMapping:
    def test_enum_columns(self):
        schema = resolve_schema(parse_dbml(
            "enum core.job_status {\n  created\n  done\n}\n"
            "Table job {\n  id int [pk]\n  status core.job_status [default: 'created']\n}"
        ))
        result = map_schema_types(schema)
        assert result.success
        desc = result.descriptor("public.job", "status")
        assert desc.family is TypeFamily.ENUM
        assert desc.enum_class == "JobStatus"
        assert desc.sa_type == "Enum(JobStatus, name='job_status', values_callable=enum_values, schema='core')"
        assert desc.default.literal == "JobStatus('created')"

    def test_errors_are_collected_per_column(self):
        schema = resolve_schema(parse_dbml(
            "Table t {\n  id integr [pk]\n  price decimal(2, 5)\n  name varchar\n}"
        ))
        result = map_schema_types(schema)
        assert not result.success
        assert result.error_count == 2
        unknown, invalid = result.errors
        assert unknown.kind == "UnknownTypeError"
        assert unknown.stage is PipelineStage.TYPE_MAPPING
        assert unknown.line == 2
        assert unknown.column_name == "id"
        assert "Column 't.id'" in unknown.message
        assert invalid.kind == "InvalidTypeArgumentsError"
        assert "public.t.name" in result.descriptors
        assert "Found 2 type error(s)" in result.get_error_summary()
