"""Unit tests for the DBML lexer."""

import pytest

from DBML2ORM.utils.dbml.lexer import LexError, TokenStream, iter_tokens, tokenize_dbml


def _types(text):
    return [t.type for t in tokenize_dbml(text)]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Table user {}", ["NAME", "NAME", "LBRACE", "RBRACE", "EOF"]),
        ("a.id <> b.id", ["NAME", "DOT", "NAME", "MANY_TO_MANY", "NAME", "DOT", "NAME", "EOF"]),
        ("a.id < b.id", ["NAME", "DOT", "NAME", "LT", "NAME", "DOT", "NAME", "EOF"]),
        ("a.id > b.id", ["NAME", "DOT", "NAME", "GT", "NAME", "DOT", "NAME", "EOF"]),
        ("a.id - b.id", ["NAME", "DOT", "NAME", "DASH", "NAME", "DOT", "NAME", "EOF"]),
        ("x [default: -1]", ["NAME", "LBRACK", "NAME", "COLON", "NUMBER", "RBRACK", "EOF"]),
        ("decimal(10,2)", ["NAME", "LPAREN", "NUMBER", "COMMA", "NUMBER", "RPAREN", "EOF"]),
        ("'''multi\nline'''", ["MULTILINE_STRING", "EOF"]),
        ("''", ["STRING", "EOF"]),
        ("'it\\'s'", ["STRING", "EOF"]),
        ("`now()`", ["EXPRESSION", "EOF"]),
        ("#3498db", ["COLOR", "EOF"]),
        ('"order items"', ["QUOTED_NAME", "EOF"]),
        ("// hi\nTable", ["LINE_COMMENT", "NAME", "EOF"]),
        ("/* a\n b */ Table", ["BLOCK_COMMENT", "NAME", "EOF"]),
        ("tags int[]", ["NAME", "NAME", "LBRACK", "RBRACK", "EOF"]),
        ("", ["EOF"]),
    ],
)
def test_token_types(text, expected):
    assert _types(text) == expected


def test_many_to_many_is_one_token():
    tokens = tokenize_dbml("<>")
    assert tokens[0].type == "MANY_TO_MANY"
    assert tokens[0].value == "<>"
    assert tokens[0].category == "operator"


@pytest.mark.parametrize(
    "value, category",
    [
        ("Table", "keyword"),
        ("ref", "keyword"),
        ("Note", "keyword"),
        ("indexes", "keyword"),
        ("user", "identifier"),
        ('"user"', "identifier"),
        ("'text'", "literal"),
        ("42", "literal"),
        ("{", "punctuation"),
        (">", "operator"),
        ("// c", "comment"),
    ],
)
def test_token_categories(value, category):
    assert tokenize_dbml(value)[0].category == category


def test_keywords_keep_name_type():
    tok = tokenize_dbml("note")[0]
    assert tok.type == "NAME"
    assert tok.is_word("note")
    assert not tok.is_word("table")


def test_positions_are_one_indexed():
    tokens = tokenize_dbml("Table user {\n  id int\n}")
    id_tok = tokens[3]
    assert id_tok.value == "id"
    assert (id_tok.line, id_tok.column) == (2, 3)
    eof = tokens[-1]
    assert eof.type == "EOF"
    assert eof.line == 3


@pytest.mark.parametrize(
    "text, message, line",
    [
        ("Table t {\n  name varchar [note: 'unclosed]\n}", "Unterminated string", 2),
        ("Table t {\n  /* never closed\n}", "Unterminated block comment", 2),
        ("Table t {\n  x int [default: `now()]\n}", "Unterminated expression", 2),
        ('Table "user {}', "Unterminated quoted name", 1),
        ("Note: '''abc", "Unterminated multi-line string", 1),
        ("Table t { id int; }", "Unexpected character ';'", 1),
    ],
)
def test_lex_errors(text, message, line):
    with pytest.raises(LexError) as exc_info:
        tokenize_dbml(text)
    err = exc_info.value
    assert err.message == message
    assert err.line == line
    assert err.column is not None
    assert err.context is not None
    assert message in str(err)


def test_lex_error_column():
    with pytest.raises(LexError) as exc_info:
        tokenize_dbml("Table t { id int; }")
    assert exc_info.value.column == 17
    assert exc_info.value.invalid_char == ";"


def test_iter_tokens_is_lazy():
    gen = iter_tokens("Table t ;")
    assert next(gen).value == "Table"
    assert next(gen).value == "t"
    with pytest.raises(LexError):
        next(gen)


def test_token_stream_is_restartable():
    stream = TokenStream("// c\nTable t { id int }")
    first = list(stream)
    second = list(stream)
    assert first == second
    assert first[0].is_comment
    significant = list(stream.significant())
    assert not any(t.is_comment for t in significant)
    assert len(significant) == len(first) - 1


def test_tokenize_return_model():
    result = tokenize_dbml("Table t { id int }", return_model=True)
    assert result.success is True
    assert result.token_count == len(result.tokens)
    assert result.tokens[-1].type == "EOF"


def test_tokenize_return_model_on_error():
    result = tokenize_dbml("Table t {\n  x varchar [note: 'oops]\n}", return_model=True)
    assert result.success is False
    assert result.error == "Unterminated string"
    assert result.error_line == 2
    assert result.tokens == []
