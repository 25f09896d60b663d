"""SQLAlchemy 2.x code generation from a resolved, type-mapped schema.

Architecture:
- Naming: naming.py - deterministic class, module, attribute and enum member names
- Entities: generate_entity_modules() - one module per table and synthesized junction
- Support: generate_support_modules() - declarative base, relation metadata, enums
- Package: generate_package() - support modules, entities and the package __init__
"""

from .entity_modules import (
    GeneratedModule,
    as_pairs,
    generate_entity_modules,
    generate_package,
    generate_support_modules,
)
from DBML2ORM.utils.naming import EntityNames, build_entity_names, class_name, enum_class_names, snake_name

__all__ = [
    "GeneratedModule",
    "as_pairs",
    "generate_entity_modules",
    "generate_package",
    "generate_support_modules",
    "EntityNames",
    "build_entity_names",
    "class_name",
    "enum_class_names",
    "snake_name",
]
