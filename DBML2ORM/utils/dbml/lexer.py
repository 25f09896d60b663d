"""Lexer/tokenizer for DBML documents.

This module provides pure tokenization functionality, independent of parsing.
It drives a Lark basic lexer over the terminal grammar in ``grammar.py``;
the LALR parser in ``parser.py`` consumes the resulting tokens.

Architecture:
- Lexer: Pure tokenization (this module)
- Parser: Builds the schema AST from tokens (parser.py)
- Resolver: Validates and cross-links the AST (resolver.py)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from lark import Lark
from lark.exceptions import UnexpectedCharacters, UnexpectedInput

from DBML2ORM.utils.logging import get_logger

from .errors import context_snippet, create_lexical_error
from .grammar import DBML_GRAMMAR, DBML_KEYWORDS
from .models import TokenCategory, TokenizationResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class DBMLToken:
    type: str
    value: str
    category: TokenCategory
    line: Optional[int] = None
    column: Optional[int] = None
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    @property
    def is_comment(self) -> bool:
        return self.category == "comment"

    def is_word(self, word: str) -> bool:
        """True for a bare NAME token spelling ``word`` (case-insensitive)."""
        return self.type == "NAME" and self.value.lower() == word


_LITERALS = {"STRING", "MULTILINE_STRING", "NUMBER", "EXPRESSION", "COLOR"}

_OPERATORS = {"GT", "LT", "DASH", "MANY_TO_MANY"}

_PUNCTUATION = {"LBRACE", "RBRACE", "LBRACK", "RBRACK", "LPAREN", "RPAREN", "COMMA", "COLON", "DOT"}

_COMMENTS = {"LINE_COMMENT", "BLOCK_COMMENT"}

# Opening text of a literal and the name used when it is never closed.
_UNTERMINATED = (
    ("'''", "multi-line string"),
    ("'", "string"),
    ('"', "quoted name"),
    ("`", "expression"),
    ("/*", "block comment"),
)


def _categorize_token(token_type: str, value: str) -> TokenCategory:
    """Categorize a token into a semantic category.

    NAME tokens spelling a DBML keyword are categorized as "keyword" but keep
    the NAME type: the parser decides by position whether they act as one.
    """
    if token_type == "NAME":
        return "keyword" if value.lower() in DBML_KEYWORDS else "identifier"
    if token_type == "QUOTED_NAME":
        return "identifier"
    if token_type in _LITERALS:
        return "literal"
    if token_type in _OPERATORS:
        return "operator"
    if token_type in _PUNCTUATION:
        return "punctuation"
    if token_type in _COMMENTS:
        return "comment"
    return "eof"


# Lexer cache; the grammar is fixed so one instance serves every document.
_LEXER: Optional[Lark] = None


def _get_lexer() -> Lark:
    """Get the Lark instance used for tokenization."""
    global _LEXER
    if _LEXER is None:
        _LEXER = Lark(
            DBML_GRAMMAR,
            parser="lalr",
            lexer="basic",
            start="start",
        )
    return _LEXER


class LexError(Exception):
    """Exception raised when the lexer encounters an error.
    
    This exception wraps a LexicalError from the errors module.
    """
    
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None,
                 context: Optional[str] = None, invalid_char: Optional[str] = None):
        self.message = message
        self.line = line
        self.column = column
        self.context = context
        self.invalid_char = invalid_char
        self._lexical_error = create_lexical_error(
            message=message,
            line=line,
            column=column,
            invalid_char=invalid_char,
            context=context,
        )
        super().__init__(self._lexical_error.format_message())
    
    def __str__(self) -> str:
        """Format a comprehensive error message."""
        return self._lexical_error.format_message()

    @property
    def detail(self):
        return self._lexical_error


def _lex_error(text: str, error: UnexpectedInput) -> LexError:
    line = getattr(error, "line", None)
    column = getattr(error, "column", None)
    pos = getattr(error, "pos_in_stream", None)
    rest = text[pos:] if pos is not None else ""

    for opener, what in _UNTERMINATED:
        if rest.startswith(opener):
            message = f"Unterminated {what}"
            invalid_char = opener[0]
            break
    else:
        invalid_char = rest[:1] or None
        message = f"Unexpected character {invalid_char!r}" if invalid_char else "Unexpected end of input"

    return LexError(
        message,
        line=line,
        column=column,
        context=context_snippet(text, line, column),
        invalid_char=invalid_char,
    )


def iter_tokens(text: str) -> Iterator[DBMLToken]:
    """Lazily yield the tokens of ``text``, terminated by an EOF token.

    Raises:
        LexError: On an unterminated literal or comment, or a character no
            token can start with. Tokens before the error have been yielded.
    """
    text = text or ""
    last_line, last_column = 1, 1
    try:
        for tok in _get_lexer().lex(text):
            token_type = str(tok.type)
            value = str(tok.value)
            yield DBMLToken(
                type=token_type,
                value=value,
                category=_categorize_token(token_type, value),
                line=tok.line,
                column=tok.column,
                end_line=tok.end_line,
                end_column=tok.end_column,
            )
            last_line, last_column = tok.end_line or last_line, tok.end_column or last_column
    except UnexpectedCharacters as e:
        raise _lex_error(text, e) from e

    # EOF sits just past the last token.
    yield DBMLToken(type="EOF", value="", category="eof", line=last_line, column=last_column)


class TokenStream:
    """Restartable token iterable: every ``iter()`` lexes the text again."""

    def __init__(self, text: str):
        self.text = text or ""

    def __iter__(self) -> Iterator[DBMLToken]:
        return iter_tokens(self.text)

    def significant(self) -> Iterator[DBMLToken]:
        """Tokens without comments."""
        return (t for t in iter_tokens(self.text) if not t.is_comment)


def tokenize_dbml(
    text: str,
    return_model: bool = False,
) -> Union[List[DBMLToken], TokenizationResult]:
    """Tokenize a DBML document into a list of typed tokens.
    
    This is a pure lexer function - it only tokenizes and does not parse.

    Args:
        text: The DBML document to tokenize
        return_model: If True, returns TokenizationResult (Pydantic model) instead of List[DBMLToken]

    Returns:
        If return_model=False: List of DBMLToken objects ending with an EOF token
        If return_model=True: TokenizationResult with structured tokenization information

    Raises:
        LexError: If tokenization fails (only when return_model=False)
    """
    text = text or ""
    try:
        tokens = list(iter_tokens(text))
    except LexError as e:
        logger.debug(f"Tokenization failed at line {e.line}, column {e.column}: {e.message}")
        if return_model:
            return TokenizationResult.from_error(text, e.message, e.line, e.column)
        raise

    logger.debug(f"Tokenized {len(tokens)} tokens")
    if return_model:
        return TokenizationResult.from_tokens(tokens, text)
    return tokens
