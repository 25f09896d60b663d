"""Unit tests for the DBML parser."""

import pytest

from DBML2ORM.ir.models.ast import (
    DefaultKind,
    EnumDecl,
    NoteDecl,
    ProjectDecl,
    RefDecl,
    RelationOperator,
    TableDecl,
    TableGroupDecl,
)
from DBML2ORM.utils.dbml.lexer import TokenStream, tokenize_dbml
from DBML2ORM.utils.dbml.parser import ParseError, parse_dbml, parse_tokens


USER_POST = """
Table user {
  id integer [pk, increment]
  username varchar(255) [not null, unique, note: 'login name']
  bio text [null]
  score decimal(10, 2) [default: 0.5]
  active boolean [default: true]
  created_at timestamp [default: `now()`]
}

Table post {
  id integer [pk]
  user_id integer [ref: > user.id]
  title varchar [default: 'untitled']
  tags varchar[]
}
"""


class TestTables:
    def test_tables_in_source_order(self):
        ast = parse_dbml(USER_POST)
        assert [t.name for t in ast.tables] == ["user", "post"]
        assert all(isinstance(d, TableDecl) for d in ast.declarations)

    def test_column_settings(self):
        user = parse_dbml(USER_POST).tables[0]
        cols = {c.name: c for c in user.columns}
        assert [c.name for c in user.columns] == ["id", "username", "bio", "score", "active", "created_at"]

        assert cols["id"].is_pk and cols["id"].is_increment
        assert cols["id"].type.name == "integer"

        username = cols["username"]
        assert username.nullable is False
        assert username.is_unique
        assert username.note == "login name"
        assert username.type.args == ["255"]

        assert cols["bio"].nullable is True
        assert cols["score"].type.args == ["10", "2"]
        assert cols["score"].nullable is None

    @pytest.mark.parametrize(
        "column, kind, raw",
        [
            ("score", DefaultKind.FLOAT, "0.5"),
            ("active", DefaultKind.BOOLEAN, "true"),
            ("created_at", DefaultKind.EXPRESSION, "now()"),
        ],
    )
    def test_defaults(self, column, kind, raw):
        user = parse_dbml(USER_POST).tables[0]
        col = next(c for c in user.columns if c.name == column)
        assert col.default.kind == kind
        assert col.default.raw == raw

    def test_array_type(self):
        post = parse_dbml(USER_POST).tables[1]
        tags = post.columns[-1]
        assert tags.type.name == "varchar"
        assert tags.type.is_array is True

    def test_schema_alias_and_settings(self):
        ast = parse_dbml(
            "Table core.accounts as A [headercolor: #3498db, note: 'billing'] {\n"
            "  id int [pk]\n"
            "}"
        )
        table = ast.tables[0]
        assert table.schema_name == "core"
        assert table.name == "accounts"
        assert table.alias == "A"
        assert table.header_color == "#3498db"
        assert table.note == "billing"
        assert table.qualified_name == "core.accounts"

    def test_note_block_and_column_named_note(self):
        ast = parse_dbml(
            "Table memo {\n"
            "  id int [pk]\n"
            "  note text\n"
            "  Note {\n"
            "    '''\n"
            "    Free text memos.\n"
            "    '''\n"
            "  }\n"
            "}"
        )
        table = ast.tables[0]
        assert [c.name for c in table.columns] == ["id", "note"]
        assert table.note == "Free text memos."

    def test_quoted_names(self):
        ast = parse_dbml('Table "order items" {\n  "unit price" decimal\n}')
        table = ast.tables[0]
        assert table.name == "order items"
        assert table.columns[0].name == "unit price"

    def test_leading_comments_attach(self):
        ast = parse_dbml(
            "// Registered accounts\n"
            "Table user {\n"
            "  /* surrogate key */\n"
            "  id int [pk]\n"
            "}"
        )
        table = ast.tables[0]
        assert table.comments == ["Registered accounts"]
        assert table.columns[0].comments == ["surrogate key"]

    def test_check_setting(self):
        ast = parse_dbml("Table t {\n  qty int [check: `qty > 0`]\n}")
        assert ast.tables[0].columns[0].check == "qty > 0"


class TestIndexes:
    def test_index_forms(self):
        ast = parse_dbml(
            "Table booking {\n"
            "  id int\n"
            "  room int\n"
            "  day date\n"
            "  indexes {\n"
            "    (id, room) [pk]\n"
            "    (room, day) [unique]\n"
            "    day [name: 'ix_day', type: hash, note: 'lookup']\n"
            "    `lower(room)`\n"
            "  }\n"
            "}"
        )
        pk, unique, named, expr = ast.tables[0].indexes
        assert pk.is_pk and [c.value for c in pk.columns] == ["id", "room"]
        assert unique.is_unique and len(unique.columns) == 2
        assert named.name == "ix_day"
        assert named.type == "hash"
        assert named.note == "lookup"
        assert expr.columns[0].is_expression
        assert expr.columns[0].value == "lower(room)"


class TestRefs:
    def test_inline_ref(self):
        post = parse_dbml(USER_POST).tables[1]
        ref = post.columns[1].inline_refs[0]
        assert ref.is_inline
        assert ref.operator is RelationOperator.MANY_TO_ONE
        assert (ref.left.table, ref.left.columns) == ("post", ["user_id"])
        assert (ref.right.table, ref.right.columns) == ("user", ["id"])

    @pytest.mark.parametrize(
        "op, operator",
        [
            (">", RelationOperator.MANY_TO_ONE),
            ("<", RelationOperator.ONE_TO_MANY),
            ("-", RelationOperator.ONE_TO_ONE),
            ("<>", RelationOperator.MANY_TO_MANY),
        ],
    )
    def test_short_ref_operators(self, op, operator):
        ref = parse_dbml(f"Ref: post.user_id {op} user.id").refs[0]
        assert ref.operator is operator
        assert ref.is_inline is False

    def test_named_long_ref_with_actions(self):
        refs = parse_dbml(
            "Ref fk_posts {\n"
            "  post.user_id > user.id [delete: cascade, update: no action]\n"
            "  comment.post_id > post.id [delete: set null, color: #aabbcc]\n"
            "}"
        ).refs
        assert len(refs) == 2
        assert all(r.name == "fk_posts" for r in refs)
        assert refs[0].on_delete == "cascade"
        assert refs[0].on_update == "no action"
        assert refs[1].on_delete == "set null"

    def test_composite_and_schema_qualified_endpoints(self):
        ref = parse_dbml("Ref: sales.line.(order_id, product_id) > sales.stock.(order_id, product_id)").refs[0]
        assert ref.left.schema_name == "sales"
        assert ref.left.table == "line"
        assert ref.left.columns == ["order_id", "product_id"]
        assert ref.left.is_composite
        assert str(ref.right) == "sales.stock.(order_id, product_id)"

    def test_all_refs_unifies_inline_and_standalone(self):
        ast = parse_dbml(USER_POST + "\nRef: post.id - user.id\n")
        refs = ast.all_refs()
        assert [r.is_inline for r in refs] == [True, False]
        assert all(isinstance(r, RefDecl) for r in refs)


class TestMetadata:
    def test_enum(self):
        ast = parse_dbml(
            "enum core.job_status {\n"
            "  created [note: 'Waiting']\n"
            "  running\n"
            '  "done and dusted"\n'
            "}"
        )
        enum = ast.enums[0]
        assert isinstance(enum, EnumDecl)
        assert enum.schema_name == "core"
        assert [v.name for v in enum.values] == ["created", "running", "done and dusted"]
        assert enum.values[0].note == "Waiting"

    @pytest.mark.parametrize(
        "text",
        [
            "enum role_enum { admin, member }",
            "enum role_enum {\n  admin,\n  member,\n}",
            "enum role_enum {\n  admin [note: 'all access'],\n  member\n}",
        ],
    )
    def test_enum_values_separated_by_commas(self, text):
        enum = parse_dbml(text).enums[0]
        assert [v.name for v in enum.values] == ["admin", "member"]

    def test_project_group_and_sticky_note(self):
        ast = parse_dbml(
            "Project shop {\n"
            "  database_type: 'PostgreSQL'\n"
            "  Note: 'Online shop'\n"
            "}\n"
            "TableGroup commerce [note: 'core tables'] {\n"
            "  public.user\n"
            "  post\n"
            "}\n"
            "Note release_notes {\n"
            "  'Schema v2'\n"
            "}\n"
        )
        project, group, note = ast.declarations
        assert isinstance(project, ProjectDecl)
        assert project.name == "shop"
        assert project.database_type == "PostgreSQL"
        assert project.note == "Online shop"
        assert isinstance(group, TableGroupDecl)
        assert [(m.schema_name, m.name) for m in group.tables] == [("public", "user"), (None, "post")]
        assert group.note == "core tables"
        assert isinstance(note, NoteDecl)
        assert note.text == "Schema v2"


class TestTokenInput:
    def test_parse_tokens_accepts_token_stream(self):
        text = "// c\nTable t {\n  id int [pk]\n}"
        from_stream = parse_tokens(TokenStream(text), original_text=text)
        from_list = parse_tokens(tokenize_dbml(text), original_text=text)
        assert from_stream == from_list

    def test_return_model(self):
        result = parse_dbml(USER_POST, return_model=True)
        assert result.success is True
        assert result.table_count == 2
        assert result.declaration_count == 2


@pytest.mark.parametrize(
    "text, message_part, line",
    [
        ("Table user {\n  id int [pk]\n", "Unexpected end of input inside table 'user'", 2),
        ("Table user {\n  id int [primary]\n}", "Unknown column setting 'primary'", 2),
        ("Ref: a.id > b.id [delete: explode]", "Invalid referential action 'explode'", 1),
        ("Table t {\n  x int [default: now]\n}", "Invalid default value 'now'", 2),
        ("Tabel user {}", "Unexpected token 'Tabel' at top level", 1),
        ("Ref: a.id b.id", "relation operator", 1),
        ("Ref: a > b.id", "Reference endpoint must be table.column", 1),
        ("Table t {\n  x int [pk: 1]\n}", "Setting 'pk' does not take a value", 2),
        ("Ref {\n}", "Empty ref block", 2),
    ],
)
def test_parse_errors(text, message_part, line):
    with pytest.raises(ParseError) as exc_info:
        parse_dbml(text)
    err = exc_info.value
    assert message_part in err.message
    assert err.line == line


def test_parse_error_lists_expected_tokens():
    with pytest.raises(ParseError) as exc_info:
        parse_dbml("Ref: a.id b.id")
    err = exc_info.value
    assert err.found == "b"
    assert err.column == 11
    assert err.expected == ["a relation operator (>, <, -, <>)"]


def test_keywords_are_valid_column_names():
    ast = parse_dbml("Table ref {\n  table int\n  indexes varchar\n  as text\n}")
    assert [c.name for c in ast.tables[0].columns] == ["table", "indexes", "as"]


def test_parse_error_return_model():
    result = parse_dbml("Table user {\n  id int [primary]\n}", return_model=True)
    assert result.success is False
    assert result.error.line == 2
    assert result.error.found == "primary"
    assert result.error.suggestions
