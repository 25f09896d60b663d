"""Tests for SQLAlchemy entity module generation."""

import importlib
import itertools
import sys

import pytest

from DBML2ORM.codegen import GeneratedModule, as_pairs, generate_entity_modules, generate_package
from DBML2ORM.config.options import CodegenOptions
from DBML2ORM.utils.data_types.type_mapping import map_schema_types
from DBML2ORM.utils.dbml.parser import parse_dbml
from DBML2ORM.utils.dbml.resolver import resolve_schema


BLOG = """
Project blog {
  database_type: 'PostgreSQL'
  Note: 'Blogging platform'
}

// Registered accounts
Table user {
  id integer [pk, increment]
  username varchar(64) [unique, note: 'login name']
  bio text [null]
}

Table profile {
  id integer [pk, increment]
  user_id integer [unique]
}

Table post {
  id integer [pk, increment]
  user_id integer [ref: > user.id]
  editor_id integer [null, ref: > user.id]
  title varchar [default: 'untitled']
  status post_status [default: 'draft']
}

Table tag {
  id integer [pk, increment]
  label varchar
}

Table employee {
  id integer [pk, increment]
  manager_id integer [null, ref: > employee.id]
}

Table audit_log {
  at timestamp [default: `CURRENT_TIMESTAMP`]
  message text
}

enum post_status {
  draft
  published [note: 'Visible to readers']
}

Ref: user.id - profile.user_id [delete: cascade]
Ref: post.id <> tag.id
"""


def _generate(text, options=None):
    schema = resolve_schema(parse_dbml(text))
    return generate_package(schema, map_schema_types(schema), options)


def _sources(text, options=None):
    return dict(as_pairs(_generate(text, options)))


class TestModules:
    def test_module_order_and_kinds(self):
        modules = _generate(BLOG)
        assert [(m.name, m.kind) for m in modules] == [
            ("_base", "support"),
            ("_enums", "support"),
            ("user", "entity"),
            ("profile", "entity"),
            ("post", "entity"),
            ("tag", "entity"),
            ("employee", "entity"),
            ("audit_log", "entity"),
            ("post_tag", "junction"),
            ("__init__", "package"),
        ]
        assert all(isinstance(m, GeneratedModule) for m in modules)
        assert modules[2].table == "public.user"

    def test_every_module_compiles(self):
        for name, source in as_pairs(_generate(BLOG)):
            compile(source, f"{name}.py", "exec")

    def test_generation_is_deterministic(self):
        assert _generate(BLOG) == _generate(BLOG)

    def test_no_enums_module_without_enums(self):
        names = [m.name for m in _generate("Table t {\n  id int [pk]\n}")]
        assert names == ["_base", "t", "__init__"]

    def test_type_errors_refuse_generation(self):
        schema = resolve_schema(parse_dbml("Table t {\n  id integr [pk]\n}"))
        with pytest.raises(ValueError, match="type errors"):
            generate_entity_modules(schema, map_schema_types(schema))

    def test_custom_module_names_and_header(self):
        options = CodegenOptions(base_module="base", enums_module="enums", header="Custom header.")
        sources = _sources(BLOG, options)
        assert "base" in sources and "enums" in sources
        assert sources["post"].startswith('"""Custom header.')
        assert "from .base import Base" in sources["post"]
        assert "from .enums import PostStatus" in sources["post"]



class TestEntitySource:
    def test_columns(self):
        source = _sources(BLOG)["user"]
        assert "class UserBehavior:" in source
        assert "class User(UserBehavior, Base):" in source
        assert "    __tablename__ = 'user'" in source
        assert "    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)\n" in source
        assert (
            "    username: Mapped[str] = mapped_column(\n"
            "        String(64),\n"
            "        nullable=False,\n"
            "        unique=True,\n"
            "        comment='login name',\n"
            "    )\n"
        ) in source
        assert "    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)\n" in source
        assert source.index("# Registered accounts") < source.index("class User(")

    def test_primary_key_without_increment(self):
        source = _sources("Table t {\n  id int [pk]\n}")["t"]
        assert "    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)\n" in source

    def test_imports_are_grouped(self):
        source = _sources(BLOG)["post"]
        imports = source.partition('"""\n\n')[2].split("\n\n\nclass ")[0]
        assert imports == (
            "import enum\n"
            "from typing import List, Optional, TYPE_CHECKING\n"
            "\n"
            "from sqlalchemy import Enum, ForeignKey, Integer, String\n"
            "from sqlalchemy.orm import Mapped, mapped_column, relationship\n"
            "\n"
            "from ._base import Base, Cardinality, RelationDef, enum_values\n"
            "from ._enums import PostStatus\n"
            "\n"
            "if TYPE_CHECKING:\n"
            "    from .post_tag import PostTag\n"
            "    from .user import User"
        )

    def test_foreign_keys_and_defaults(self):
        source = _sources(BLOG)["post"]
        assert "    user_id: Mapped[int] = mapped_column(Integer, ForeignKey('user.id'), nullable=False)\n" in source
        assert (
            "    editor_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('user.id'), nullable=True)\n"
            in source
        )
        assert "default='untitled'" in source
        assert "default=PostStatus('draft')" in source

    def test_server_default_expression(self):
        source = _sources(BLOG)["audit_log"]
        assert "server_default=text('CURRENT_TIMESTAMP')" in source
        assert '    __mapper_args__ = {"primary_key": [at, message]}' in source

    def test_referential_actions(self):
        source = _sources(BLOG)["profile"]
        assert "ForeignKey('user.id', ondelete='CASCADE')" in source

    def test_many_to_one_pair(self):
        sources = _sources(BLOG)
        post, user = sources["post"], sources["user"]
        assert '    user: Mapped["User"] = relationship(' in post
        assert "back_populates='post_collection_by_user_id'" in post
        assert "foreign_keys=[user_id]" in post
        assert '    editor: Mapped[Optional["User"]] = relationship(' in post
        assert "foreign_keys=[editor_id]" in post
        assert '    post_collection_by_user_id: Mapped[List["Post"]] = relationship(' in user
        assert 'foreign_keys="[Post.user_id]"' in user
        assert '    post_collection_by_editor_id: Mapped[List["Post"]] = relationship(' in user
        assert "back_populates='editor'" in user

    def test_one_to_one_pair(self):
        sources = _sources(BLOG)
        assert '    user: Mapped["User"] = relationship(' in sources["profile"]
        user = sources["user"]
        assert '    profile: Mapped[Optional["Profile"]] = relationship(' in user
        assert "uselist=False" in user

    def test_self_reference(self):
        source = _sources(BLOG)["employee"]
        assert '    manager: Mapped[Optional["Employee"]] = relationship(' in source
        assert "remote_side=[id]" in source
        assert '    employee_collection: Mapped[List["Employee"]] = relationship(' in source
        assert "TYPE_CHECKING" not in source

    def test_composite_foreign_key(self):
        source = _sources(
            "Table orders {\n  id int\n  rev int\n  indexes {\n    (id, rev) [pk]\n  }\n}\n"
            "Table line {\n  id int [pk]\n  order_id int\n  order_rev int\n}\n"
            "Ref: line.(order_id, order_rev) > orders.(id, rev)"
        )["line"]
        assert "        ForeignKeyConstraint(['order_id', 'order_rev'], ['orders.id', 'orders.rev'])," in source
        assert "ForeignKey(" not in source
        assert "foreign_keys=[order_id, order_rev]" in source
        assert '    orders: Mapped["Orders"] = relationship(' in source

    def test_table_args(self):
        source = _sources(
            "Table billing.booking [note: 'Room bookings'] {\n"
            "  id int [pk]\n"
            "  room int\n"
            "  day date\n"
            "  qty int [check: `qty > 0`]\n"
            "  indexes {\n"
            "    (room, day) [unique]\n"
            "    day [name: 'ix_day', type: hash]\n"
            "    `lower(room)`\n"
            "  }\n"
            "}"
        )["booking"]
        assert (
            "    __table_args__ = (\n"
            "        UniqueConstraint('room', 'day'),\n"
            "        Index('ix_day', 'day', postgresql_using='hash'),\n"
            "        Index('ix_booking_expr', text('lower(room)')),\n"
            "        CheckConstraint('qty > 0'),\n"
            "        {'schema': 'billing', 'comment': 'Room bookings'},\n"
            "    )\n"
        ) in source
        assert "Table: billing.booking" in source

    def test_schema_only_table_args(self):
        source = _sources("Table t {\n  id int [pk]\n}", CodegenOptions(emit_default_schema=True))["t"]
        assert "    __table_args__ = {'schema': 'public'}\n" in source

    def test_attribute_renamed_for_invalid_identifier(self):
        source = _sources('Table t {\n  id int [pk]\n  "unit price" decimal\n}')["t"]
        assert "    unit_price: Mapped[decimal.Decimal] = mapped_column('unit price', Numeric, nullable=False)\n" in source
        assert "import decimal\n" in source


class TestRelationEnums:
    def test_members(self):
        source = _sources(BLOG)["post"]
        assert "class PostRelation(enum.Enum):" in source
        for member in ("USER", "EDITOR", "POST_TAG_COLLECTION", "TAG_VIA_POST_TAG"):
            assert f"    {member} = RelationDef(" in source
        assert "cardinality=Cardinality.MANY_TO_ONE" in source
        assert "cardinality=Cardinality.ONE_TO_MANY" in source
        assert "from_columns=('user_id',)" in source
        assert "to_columns=('id',)" in source

    def test_many_to_many_variant(self):
        sources = _sources(BLOG)
        post, tag = sources["post"], sources["tag"]
        assert "cardinality=Cardinality.MANY_TO_MANY" in post
        assert "via='post_tag'" in post
        assert "attribute='post_tag_collection'" in post
        assert "    POST_VIA_POST_TAG = RelationDef(" in tag

    def test_one_to_one_member(self):
        source = _sources(BLOG)["user"]
        assert "    PROFILE = RelationDef(" in source
        assert "cardinality=Cardinality.ONE_TO_ONE" in source

    def test_empty_enum(self):
        source = _sources("Table t {\n  id int [pk]\n}")["t"]
        assert source.endswith("class TRelation(enum.Enum):\n    pass\n")


class TestJunction:
    def test_synthesized_junction_module(self):
        source = _sources(BLOG)["post_tag"]
        assert "Junction of post and tag" in source
        assert "class PostTag(PostTagBehavior, Base):" in source
        assert "    __tablename__ = 'post_tag'" in source
        assert "    post_id: Mapped[int] = mapped_column(Integer, ForeignKey('post.id'), primary_key=True)\n" in source
        assert "    tag_id: Mapped[int] = mapped_column(Integer, ForeignKey('tag.id'), primary_key=True)\n" in source
        assert "autoincrement" not in source
        assert "__table_args__" not in source

    def test_self_referencing_many_to_many(self):
        source = _sources(
            "Table person {\n  id int [pk]\n  friend_id int\n}\nRef: person.id <> person.friend_id"
        )["person_person"]
        assert "    person_id: Mapped[int]" in source
        assert "    person_friend_id: Mapped[int]" in source

    def test_junction_across_schemas(self):
        sources = _sources(
            "Table core.user {\n  id int [pk]\n}\n"
            "Table crm.user {\n  id int [pk]\n}\n"
            "Ref: core.user.id <> crm.user.id"
        )
        source = sources["user_user"]
        assert "    user_id: Mapped[int] = mapped_column(Integer, ForeignKey('core.user.id'), primary_key=True)\n" in source
        assert "ForeignKey('crm.user.id')" in source
        assert "    related_user_id: Mapped[int]" in source
        assert "{'schema': 'core'}" in source


class TestSupportModules:
    def test_base_module(self):
        source = _sources(BLOG)["_base"]
        assert "class Base(DeclarativeBase):" in source
        assert '    MANY_TO_MANY = "many-to-many"' in source
        assert "class RelationDef:" in source
        assert "def enum_values(enum_cls):" in source

    def test_enums_module(self):
        source = _sources(BLOG)["_enums"]
        assert "class PostStatus(str, enum.Enum):" in source
        assert "    draft = 'draft'\n" in source
        assert "    published = 'published'  # Visible to readers\n" in source

    def test_package_init(self):
        source = _sources(BLOG)["__init__"]
        assert "blog (PostgreSQL)" in source
        assert "Blogging platform" in source
        assert "from ._base import Base\n" in source
        assert "from .post_tag import PostTag\n" in source
        assert "    'PostTag',\n" in source


# ----------------------------------------------------------------------------
# Generated packages against SQLAlchemy
# ----------------------------------------------------------------------------

_package_ids = itertools.count()


@pytest.fixture
def load_package(tmp_path, monkeypatch):
    """Write generated modules into a fresh package and import it."""
    loaded = []

    def _load(modules):
        name = f"generated_models_{next(_package_ids)}"
        package = tmp_path / name
        package.mkdir()
        for module, source in as_pairs(modules):
            (package / f"{module}.py").write_text(source, encoding="utf-8")
        monkeypatch.syspath_prepend(str(tmp_path))
        importlib.invalidate_caches()
        loaded.append(name)
        return importlib.import_module(name)

    yield _load
    for name in loaded:
        for module in [m for m in sys.modules if m == name or m.startswith(f"{name}.")]:
            del sys.modules[module]


def test_generated_package_configures_mappers(load_package):
    sqlalchemy = pytest.importorskip("sqlalchemy")
    from sqlalchemy.orm import configure_mappers

    models = load_package(_generate(BLOG))
    configure_mappers()

    post = sqlalchemy.inspect(models.Post)
    assert set(post.relationships.keys()) == {"user", "editor", "post_tag_collection"}
    assert post.relationships["editor"].direction.name == "MANYTOONE"

    user = sqlalchemy.inspect(models.User)
    assert user.relationships["profile"].uselist is False
    assert user.relationships["post_collection_by_user_id"].direction.name == "ONETOMANY"

    employee = sqlalchemy.inspect(models.Employee)
    assert employee.relationships["manager"].direction.name == "MANYTOONE"
    assert employee.relationships["employee_collection"].direction.name == "ONETOMANY"

    log = sqlalchemy.inspect(models.AuditLog)
    assert [c.name for c in log.primary_key] == ["at", "message"]

    relation = importlib.import_module(f"{models.__name__}.post").PostRelation
    assert relation.TAG_VIA_POST_TAG.value.via == "post_tag"
    assert relation.USER.value.attribute == "user"


def test_generated_package_round_trips(load_package):
    sqlalchemy = pytest.importorskip("sqlalchemy")
    from sqlalchemy.orm import Session

    models = load_package(_generate(BLOG))
    enums = importlib.import_module(f"{models.__name__}._enums")

    engine = sqlalchemy.create_engine("sqlite://")
    models.Base.metadata.create_all(engine)
    with Session(engine) as session:
        author = models.User(username="ada")
        tag = models.Tag(label="python")
        post = models.Post(title="Hello", user=author)
        session.add_all([author, tag, post, models.PostTag(post=post, tag=tag)])
        session.commit()

        loaded = session.get(models.Post, post.id)
        assert loaded.status is enums.PostStatus.draft
        assert loaded.user.username == "ada"
        assert [link.tag.label for link in loaded.post_tag_collection] == ["python"]
        assert author.post_collection_by_user_id == [loaded]
        assert type(loaded).__mro__[1].__name__ == "PostBehavior"
