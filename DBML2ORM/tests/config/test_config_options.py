"""Tests for config loading and codegen options."""

import logging

import pytest
from pydantic import ValidationError

from DBML2ORM.config.loader import find_config_file, get_config, load_config
from DBML2ORM.config.options import CodegenOptions, TypeOverride
from DBML2ORM.utils.logging import setup_logging_from_config


CUSTOM_CONFIG = """
logging:
  level: DEBUG
  format_type: simple
  log_to_file: false

codegen:
  default_schema: app
  emit_default_schema: true
  base_module: base

type_overrides:
  CITEXT:
    sa_type: CITEXT
    sa_import: sqlalchemy.dialects.postgresql
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CUSTOM_CONFIG, encoding="utf-8")
    return path


def test_bundled_config_loads():
    config = load_config()
    assert config["codegen"]["default_schema"] == "public"
    assert config["type_overrides"] == {}
    assert find_config_file().name == "config.yaml"


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_get_config_sections(config_file):
    assert get_config("codegen", config_file)["default_schema"] == "app"
    assert get_config("not_there", config_file) == {}
    assert set(get_config(config_path=config_file)) == {"logging", "codegen", "type_overrides"}


def test_default_options_match_bundled_config():
    assert CodegenOptions.from_config() == CodegenOptions()


def test_options_from_custom_config(config_file):
    options = CodegenOptions.from_config(config_file)
    assert options.default_schema == "app"
    assert options.emit_default_schema is True
    assert options.base_module == "base"
    assert options.enums_module == "_enums"
    assert options.type_overrides == {
        "citext": TypeOverride(sa_type="CITEXT", sa_import="sqlalchemy.dialects.postgresql"),
    }


def test_options_are_frozen_and_strict():
    options = CodegenOptions()
    with pytest.raises(ValidationError):
        options.default_schema = "other"
    with pytest.raises(ValidationError):
        CodegenOptions(unknown_option=True)
    with pytest.raises(ValidationError):
        TypeOverride(sa_type="CITEXT", typo=True)


def test_setup_logging_from_config(config_file):
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        setup_logging_from_config(config_file)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.handlers[0].formatter._fmt == "%(levelname)s | %(name)s | %(message)s"
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
