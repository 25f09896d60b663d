"""Explicit options for the transpiler pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from DBML2ORM.config.loader import get_config


class TypeOverride(BaseModel):
    """Replacement (or additional) mapping for one DBML column type name."""

    sa_type: str = Field(description="SQLAlchemy type name, e.g. 'CITEXT'")
    sa_import: str = Field("sqlalchemy", description="Module the SQLAlchemy type is imported from")
    python_type: str = Field("str", description="Python annotation for the mapped attribute")
    python_import: Optional[str] = Field(None, description="Module to import for the python type (e.g. 'datetime')")
    accepts_length: bool = Field(False, description="Whether a single length argument is passed through")
    accepts_precision: bool = Field(False, description="Whether precision/scale arguments are passed through")

    model_config = ConfigDict(frozen=True, extra="forbid")


class CodegenOptions(BaseModel):
    """Options for resolution, type mapping and code generation."""

    default_schema: str = Field("public", description="Namespace of unqualified tables and enums")
    emit_default_schema: bool = Field(False, description="Emit the schema table arg for default-schema tables too")
    base_module: str = Field("_base", description="Module name of the generated declarative base")
    enums_module: str = Field("_enums", description="Module name of the generated enum classes")
    header: str = Field(
        "Generated by {name} {version}. Do not edit by hand.",
        description="First docstring line of every generated module",
    )
    type_overrides: Dict[str, TypeOverride] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_config(cls, config_path: Optional[Union[str, Path]] = None) -> CodegenOptions:
        """Build options from the ``codegen`` and ``type_overrides`` config sections."""
        codegen = dict(get_config("codegen", config_path))
        overrides = get_config("type_overrides", config_path)
        codegen["type_overrides"] = {
            str(name).lower(): TypeOverride(**fields) for name, fields in overrides.items()
        }
        return cls(**codegen)
