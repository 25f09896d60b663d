"""DBML front end and transpile pipeline.

This package provides:
- Lark grammars for the lexer and the LALR parser
- A lexer (tokenization) - produces tokens from DBML text
- A parser (Lark LALR) - works ONLY on tokens from the lexer
- A resolver (deterministic) - name lookup, relationship classification, validation
- Pydantic models for structured intermediate results
- The complete transpile pipeline

Architecture:
- Lexer: tokenize_dbml() - converts DBML text → tokens
- Parser: parse_tokens() - converts tokens → SchemaAST (PRIMARY function)
- Parser: parse_dbml() - tokenize + parse in one call
- Resolver: resolve_schema() - SchemaAST → ResolvedSchema
- Pipeline: transpile_dbml() - runs every stage, including type mapping and generation
"""

from .lexer import DBMLToken, LexError, TokenStream, iter_tokens, tokenize_dbml
from .parser import ParseError, parse_dbml, parse_tokens
from .resolver import SchemaResolutionError, resolve_schema
from .models import (
    DBMLTokenModel,
    TokenizationResult,
    ParseResult,
    ParseErrorDetail,
    SemanticError,
    ResolutionResult,
)
from .pipeline import TranspileError, TranspileResult, transpile_dbml, transpile_dbml_strict
from .errors import LexicalError, SyntaxErrorDetail, SemanticErrorDetail, create_lexical_error, create_syntax_error

__all__ = [
    # Lexer
    "DBMLToken",
    "LexError",
    "TokenStream",
    "iter_tokens",
    "tokenize_dbml",
    # Parser
    "ParseError",
    "parse_dbml",
    "parse_tokens",
    # Resolver
    "SchemaResolutionError",
    "resolve_schema",
    # Pydantic models
    "DBMLTokenModel",
    "TokenizationResult",
    "ParseResult",
    "ParseErrorDetail",
    "SemanticError",
    "ResolutionResult",
    # Pipeline
    "TranspileError",
    "TranspileResult",
    "transpile_dbml",
    "transpile_dbml_strict",
    # Error details
    "LexicalError",
    "SyntaxErrorDetail",
    "SemanticErrorDetail",
    "create_lexical_error",
    "create_syntax_error",
]
