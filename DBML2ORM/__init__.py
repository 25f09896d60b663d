"""DBML2ORM: DBML schema to SQLAlchemy entity module transpiler."""

NAME = "dbml2orm"
__version__ = "0.1.0"
VERSION = __version__
