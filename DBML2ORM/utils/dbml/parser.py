"""Parser for DBML documents using Lark.

This module works on tokens from the lexer, not on raw strings. This enforces
proper separation: lexer → tokens → parser.

Architecture:
- Lexer: Pure tokenization (lexer.py) - produces tokens from DBML text
- Parser: LALR parse of those tokens (this module); a Transformer builds the SchemaAST
- Resolver: Validates and cross-links the AST (resolver.py)

parse_tokens() is the primary function. parse_dbml() is the convenience entry
point; it tokenizes first, then calls parse_tokens().
"""

from __future__ import annotations

import textwrap
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple, Union

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput, VisitError
from lark.lexer import Lexer

from DBML2ORM.ir.models.ast import (
    ColumnDecl,
    ColumnTypeDecl,
    DefaultKind,
    DefaultValueDecl,
    EnumDecl,
    EnumValueDecl,
    IndexColumnDecl,
    IndexDecl,
    NoteDecl,
    ProjectDecl,
    RefDecl,
    RefEndpoint,
    RelationOperator,
    SchemaAST,
    SettingDecl,
    SourceSpan,
    TableDecl,
    TableGroupDecl,
    TableGroupMemberDecl,
)
from DBML2ORM.utils.logging import get_logger

from .errors import context_snippet, create_syntax_error
from .grammar import DBML_PARSER_GRAMMAR, KEYWORD_TERMINALS, PUNCTUATION_TERMINALS
from .lexer import DBMLToken, LexError, tokenize_dbml
from .models import ParseResult

logger = get_logger(__name__)


class ParseError(Exception):
    """Exception raised when parsing fails.

    This exception wraps a SyntaxErrorDetail from the errors module.
    """

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None,
                 found: Optional[str] = None, expected: Optional[List[str]] = None,
                 context: Optional[str] = None):
        self.message = message
        self.line = line
        self.column = column
        self.found = found
        self.expected = expected
        self.context = context
        self._syntax_error = create_syntax_error(
            message=message,
            line=line,
            column=column,
            found=found,
            expected=expected,
            context=context,
        )
        super().__init__(self._syntax_error.format_message())

    def __str__(self) -> str:
        """Format a comprehensive error message with context and suggestions."""
        return self._syntax_error.format_message()

    @property
    def detail(self):
        return self._syntax_error


_REFERENTIAL_ACTIONS = {"cascade", "restrict", "set null", "set default", "no action"}

_TOP_LEVEL = ["Table", "Enum", "Ref", "TableGroup", "Project", "Note"]

_TOP_LEVEL_TERMINALS = {"_TABLE", "_ENUM", "_REF", "_TABLEGROUP", "_PROJECT", "_NOTE", "$END"}

_KEYWORD_TERMINAL_NAMES = set(KEYWORD_TERMINALS.values())

_OPERATOR_LABEL = "a relation operator (>, <, -, <>)"

# Display text for each parser terminal, in the order labels are listed.
_TERMINAL_LABELS = {
    "GT": _OPERATOR_LABEL,
    "LT": _OPERATOR_LABEL,
    "DASH": _OPERATOR_LABEL,
    "MANY_TO_MANY": _OPERATOR_LABEL,
    "NAME": "a name",
    "QUOTED_NAME": "a name",
    "STRING": "a 'string'",
    "MULTILINE_STRING": "a 'string'",
    "NUMBER": "a number",
    "EXPRESSION": "an `expression`",
    "COLOR": "a #color",
    "_TABLE": "Table",
    "_ENUM": "Enum",
    "_REF": "Ref",
    "_TABLEGROUP": "TableGroup",
    "_PROJECT": "Project",
    "_NOTE": "Note",
    "_INDEXES": "indexes",
    "_AS": "as",
    "_LBRACE": "'{'",
    "_RBRACE": "'}'",
    "_LBRACK": "'['",
    "_RBRACK": "']'",
    "_LPAREN": "'('",
    "_RPAREN": "')'",
    "_COMMA": "','",
    "_COLON": "':'",
    "_DOT": "'.'",
    "$END": "end of input",
}

# Blocks named by the word after their keyword, and blocks described without one.
_NAMED_BLOCKS = {"table": "table", "enum": "enum", "tablegroup": "table group"}
_UNNAMED_BLOCKS = {"ref": "ref block", "project": "project", "note": "note"}


def _unescape(body: str) -> str:
    out: List[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append({"n": "\n", "t": "\t"}.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _string_value(tok) -> str:
    """Literal text of a STRING, MULTILINE_STRING or QUOTED_NAME token."""
    if tok.type == "MULTILINE_STRING":
        body = tok.value[3:-3]
        # Leading/trailing blank lines are layout; common indentation too.
        body = textwrap.dedent(body.strip("\n")).rstrip()
        return _unescape(body)
    return _unescape(tok.value[1:-1])


def _name_value(tok) -> str:
    if tok.type == "QUOTED_NAME":
        return _string_value(tok)
    return tok.value


def _comment_text(tok: DBMLToken) -> str:
    if tok.type == "BLOCK_COMMENT":
        return tok.value[2:-2].strip()
    return tok.value[2:].strip()


def _span(meta) -> SourceSpan:
    return SourceSpan(
        line=meta.line,
        column=meta.column,
        end_line=getattr(meta, "end_line", None),
        end_column=getattr(meta, "end_column", None),
    )


# ============================================================================
# Token preparation
# ============================================================================

class _Prepared(NamedTuple):
    tokens: List[DBMLToken]
    leading: Dict[int, List[str]]
    eof: DBMLToken


def _prepare(tokens: Iterable[DBMLToken]) -> _Prepared:
    """Split comments off the token sequence.

    Comments directly preceding a significant token are kept, keyed by the
    index of that token.
    """
    significant: List[DBMLToken] = []
    leading: Dict[int, List[str]] = {}
    pending: List[str] = []
    eof: Optional[DBMLToken] = None
    for tok in tokens:
        if tok.type == "EOF":
            eof = tok
            continue
        if tok.is_comment:
            pending.append(_comment_text(tok))
            continue
        if pending:
            leading[len(significant)] = pending
            pending = []
        significant.append(tok)
    if eof is None:
        last = significant[-1] if significant else None
        line = (last.end_line or last.line) if last else 1
        column = (last.end_column or last.column) if last else 1
        eof = DBMLToken(type="EOF", value="", category="eof", line=line, column=column)
    return _Prepared(significant, leading, eof)


def _lark_token(tok: DBMLToken, index: int) -> Token:
    """Convert a lexer token to the parser's terminal; start_pos is its index."""
    if tok.type == "NAME":
        token_type = KEYWORD_TERMINALS.get(tok.value.lower(), "NAME")
    else:
        token_type = PUNCTUATION_TERMINALS.get(tok.type, tok.type)
    return Token(
        token_type,
        tok.value,
        start_pos=index,
        line=tok.line,
        column=tok.column,
        end_line=tok.end_line,
        end_column=tok.end_column,
        end_pos=index + 1,
    )


class _TokenFeeder(Lexer):
    """Hands already-lexed tokens to the LALR parser."""

    def __init__(self, lexer_conf):
        pass

    def lex(self, data):
        return iter(data)


# Parser cache; the grammar is fixed so one instance serves every document.
_PARSER: Optional[Lark] = None


def _get_parser() -> Lark:
    global _PARSER
    if _PARSER is None:
        _PARSER = Lark(
            DBML_PARSER_GRAMMAR,
            parser="lalr",
            lexer=_TokenFeeder,
            start="start",
            propagate_positions=True,
            maybe_placeholders=False,
        )
    return _PARSER


# ============================================================================
# Syntax errors
# ============================================================================

def _expected_labels(expected: Set[str]) -> List[str]:
    names_accepted = "NAME" in expected
    labels: List[str] = []
    for terminal, label in _TERMINAL_LABELS.items():
        if terminal not in expected:
            continue
        if names_accepted and terminal in _KEYWORD_TERMINAL_NAMES:
            continue
        if label not in labels:
            labels.append(label)
    return labels


def _block_description(tokens: List[DBMLToken], brace: int, nested: bool) -> str:
    """Describe the block opened by the ``{`` at ``tokens[brace]``."""
    if nested:
        previous = tokens[brace - 1] if brace else None
        if previous is not None and previous.is_word("indexes"):
            return "indexes block"
        if previous is not None and previous.is_word("note"):
            return "note"
        return "block"

    # Header shape: keyword [name | schema.name] [as alias] [settings] {
    end = brace
    if end and tokens[end - 1].type == "RBRACK":
        depth = 0
        while end > 0:
            end -= 1
            if tokens[end].type == "RBRACK":
                depth += 1
            elif tokens[end].type == "LBRACK":
                depth -= 1
                if depth == 0:
                    break
    if end >= 2 and tokens[end - 2].is_word("as"):
        end -= 2

    candidates = []
    if end >= 4 and tokens[end - 2].type == "DOT":
        candidates.append(end - 4)
    if end >= 2:
        candidates.append(end - 2)
    if end >= 1:
        candidates.append(end - 1)
    for pos in candidates:
        tok = tokens[pos]
        if tok.type != "NAME" or (pos and tokens[pos - 1].type == "DOT"):
            continue
        word = tok.value.lower()
        if word in _NAMED_BLOCKS and pos < end - 1:
            return f"{_NAMED_BLOCKS[word]} '{_name_value(tokens[end - 1])}'"
        if word in _UNNAMED_BLOCKS:
            return _UNNAMED_BLOCKS[word]
    return "block"


def _unclosed_block(tokens: List[DBMLToken]) -> Optional[Tuple[str, int]]:
    """Description and line of the innermost ``{`` never closed, if any."""
    stack: List[int] = []
    for i, tok in enumerate(tokens):
        if tok.type == "LBRACE":
            stack.append(i)
        elif tok.type == "RBRACE" and stack:
            stack.pop()
    if not stack:
        return None
    brace = stack[-1]
    return _block_description(tokens, brace, nested=len(stack) > 1), tokens[brace].line


def _syntax_error(error: UnexpectedInput, prepared: _Prepared, text: Optional[str]) -> ParseError:
    token = getattr(error, "token", None)
    expected = set(getattr(error, "accepts", None) or getattr(error, "expected", None) or ())

    if token is None or token.type == "$END":
        eof = prepared.eof
        unclosed = _unclosed_block(prepared.tokens)
        if unclosed:
            what, line = unclosed
            message = f"Unexpected end of input inside {what} opened at line {line}"
            labels = ["'}'"]
        else:
            message = "Unexpected end of input"
            labels = _expected_labels(expected)
        return ParseError(
            message,
            line=eof.line,
            column=eof.column,
            found="end of input",
            expected=labels or None,
            context=context_snippet(text, eof.line, eof.column),
        )

    found = token.value
    if expected and expected <= _TOP_LEVEL_TERMINALS:
        message = f"Unexpected token {found!r} at top level"
        labels = list(_TOP_LEVEL)
    else:
        labels = _expected_labels(expected)
        if labels and len(labels) <= 3:
            message = f"Expected {' or '.join(labels)}, got {found!r}"
        else:
            message = f"Unexpected token {found!r}"
    return ParseError(
        message,
        line=token.line,
        column=token.column,
        found=found,
        expected=labels or None,
        context=context_snippet(text, token.line, token.column),
    )


# ============================================================================
# AST construction
# ============================================================================

class _Value(NamedTuple):
    kind: str
    text: Optional[str] = None
    operator: Optional[RelationOperator] = None
    target: Optional[RefEndpoint] = None


class _NoteText(NamedTuple):
    text: str


class _IndexBlock(NamedTuple):
    indexes: List[IndexDecl]


class _ArraySuffix(NamedTuple):
    end_line: Optional[int]
    end_column: Optional[int]


class _BlockEnd(NamedTuple):
    line: int
    column: int


class _PendingColumn(NamedTuple):
    """A column whose settings are checked once its table is known."""
    name: str
    type: ColumnTypeDecl
    settings: List[SettingDecl]
    span: SourceSpan
    comments: List[str]


class _SchemaBuilder(Transformer):
    """Builds the frozen SchemaAST bottom-up from the LALR parse tree."""

    def __init__(self, text: Optional[str], leading: Dict[int, List[str]]):
        super().__init__()
        self._text = text
        self._leading = leading

    def start(self, children) -> SchemaAST:
        declarations = []
        for child in children:
            if isinstance(child, list):
                declarations.extend(child)
            else:
                declarations.append(child)
        return SchemaAST(declarations=declarations)

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _error(self, message: str, line: int, column: int, found: Optional[str],
               expected: Optional[List[str]] = None) -> ParseError:
        return ParseError(
            message,
            line=line,
            column=column,
            found=found,
            expected=expected,
            context=context_snippet(self._text, line, column),
        )

    def _at_setting(self, setting: SettingDecl, message: str, expected: Optional[List[str]] = None) -> ParseError:
        return self._error(message, setting.span.line, setting.span.column, setting.key, expected)

    def _setting_error(self, setting: SettingDecl, owner: str, expected: List[str]) -> ParseError:
        return self._at_setting(setting, f"Unknown {owner} setting '{setting.key}'", expected)

    def _require_flag(self, setting: SettingDecl) -> None:
        if setting.value_kind is not None:
            raise self._at_setting(setting, f"Setting '{setting.key}' does not take a value")

    def _require_value(self, setting: SettingDecl, *kinds: str) -> str:
        if setting.value_kind not in kinds:
            wanted = " or ".join(kinds)
            raise self._at_setting(setting, f"Setting '{setting.key}' expects a {wanted} value", list(kinds))
        return setting.value

    # ------------------------------------------------------------------
    # Names and literals
    # ------------------------------------------------------------------

    def keyword(self, children) -> str:
        return children[0].value

    def name(self, children) -> str:
        item = children[0]
        return _name_value(item) if isinstance(item, Token) else item

    def word(self, children) -> str:
        item = children[0]
        return item.value if isinstance(item, Token) else item

    def qualified_name(self, children) -> Tuple[Optional[str], str]:
        if len(children) == 2:
            return children[0], children[1]
        return None, children[0]

    def string_lit(self, children) -> str:
        return _string_value(children[0])

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table_alias(self, children) -> str:
        return children[0]

    @v_args(meta=True)
    def table(self, meta, children) -> TableDecl:
        schema_name, name = children[0]
        alias = None
        note = None
        header_color = None
        settings: List[SettingDecl] = []
        columns: List[ColumnDecl] = []
        indexes: List[IndexDecl] = []
        for child in children[1:]:
            if isinstance(child, str):
                alias = child
            elif isinstance(child, list):
                settings = child
                for setting in settings:
                    if setting.key == "headercolor":
                        header_color = self._require_value(setting, "color")
                    elif setting.key == "note":
                        note = self._require_value(setting, "string")
                    else:
                        raise self._setting_error(setting, "table", ["headercolor", "note"])
            elif isinstance(child, _PendingColumn):
                columns.append(self._build_column(child, schema_name, name))
            elif isinstance(child, _IndexBlock):
                indexes.extend(child.indexes)
            elif isinstance(child, _NoteText):
                note = child.text

        logger.debug(f"Parsed table {name!r} with {len(columns)} column(s)")
        return TableDecl(
            name=name,
            schema_name=schema_name,
            alias=alias,
            columns=columns,
            indexes=indexes,
            note=note,
            header_color=header_color,
            settings=settings,
            comments=self._leading.get(meta.start_pos, []),
            span=_span(meta),
        )

    @v_args(meta=True)
    def column(self, meta, children) -> _PendingColumn:
        name, column_type = children[0], children[1]
        settings: List[SettingDecl] = []
        for child in children[2:]:
            if isinstance(child, _ArraySuffix):
                span = column_type.span.model_copy(
                    update={"end_line": child.end_line, "end_column": child.end_column}
                )
                column_type = column_type.model_copy(update={"is_array": True, "span": span})
            else:
                settings = child
        return _PendingColumn(name, column_type, settings, _span(meta), self._leading.get(meta.start_pos, []))

    def _build_column(self, pending: _PendingColumn, table_schema: Optional[str], table_name: str) -> ColumnDecl:
        is_pk = False
        is_unique = False
        is_increment = False
        null_settings: List[bool] = []
        default = None
        note = None
        check = None
        inline_refs: List[RefDecl] = []

        for setting in pending.settings:
            key = setting.key
            if key in ("pk", "primary key"):
                self._require_flag(setting)
                is_pk = True
            elif key in ("null", "not null"):
                self._require_flag(setting)
                null_settings.append(key == "null")
            elif key == "unique":
                self._require_flag(setting)
                is_unique = True
            elif key == "increment":
                self._require_flag(setting)
                is_increment = True
            elif key == "default":
                default = self._default_value(setting)
            elif key == "note":
                note = self._require_value(setting, "string")
            elif key == "check":
                check = self._require_value(setting, "expression")
            elif key == "ref":
                if setting.value_kind != "ref":
                    raise self._at_setting(setting, "Setting 'ref' expects '<operator> table.column'", ["relation operator"])
                left = RefEndpoint(
                    schema_name=table_schema,
                    table=table_name,
                    columns=[pending.name],
                    span=SourceSpan(line=pending.span.line, column=pending.span.column),
                )
                inline_refs.append(
                    RefDecl(
                        operator=setting.ref_operator,
                        left=left,
                        right=setting.ref_target,
                        is_inline=True,
                        span=setting.span,
                    )
                )
            else:
                raise self._setting_error(setting, "column", ["column setting"])

        return ColumnDecl(
            name=pending.name,
            type=pending.type,
            settings=pending.settings,
            is_pk=is_pk,
            is_unique=is_unique,
            nullable=null_settings[-1] if null_settings else None,
            null_settings=null_settings,
            is_increment=is_increment,
            default=default,
            note=note,
            check=check,
            inline_refs=inline_refs,
            comments=pending.comments,
            span=pending.span,
        )

    @v_args(meta=True)
    def column_type(self, meta, children) -> ColumnTypeDecl:
        schema_name, name = children[0]
        args = children[1] if len(children) > 1 else []
        return ColumnTypeDecl(name=name, schema_name=schema_name, args=args, span=_span(meta))

    def type_args(self, children) -> List[str]:
        return list(children)

    def type_arg(self, children) -> str:
        tok = children[0]
        return _string_value(tok) if tok.type == "STRING" else tok.value

    @v_args(meta=True)
    def array_suffix(self, meta, children) -> _ArraySuffix:
        return _ArraySuffix(getattr(meta, "end_line", None), getattr(meta, "end_column", None))

    def _default_value(self, setting: SettingDecl) -> DefaultValueDecl:
        kind = setting.value_kind
        raw = setting.value
        if kind == "number":
            is_float = any(c in raw for c in ".eE")
            return DefaultValueDecl(kind=DefaultKind.FLOAT if is_float else DefaultKind.INTEGER, raw=raw)
        if kind == "string":
            return DefaultValueDecl(kind=DefaultKind.STRING, raw=raw)
        if kind == "expression":
            return DefaultValueDecl(kind=DefaultKind.EXPRESSION, raw=raw)
        if kind == "words" and raw.lower() in ("true", "false"):
            return DefaultValueDecl(kind=DefaultKind.BOOLEAN, raw=raw.lower())
        if kind == "words" and raw.lower() == "null":
            return DefaultValueDecl(kind=DefaultKind.NULL, raw="null")
        found = raw if raw is not None else "nothing"
        raise self._error(
            f"Invalid default value {found!r}",
            setting.span.line,
            setting.span.column,
            found,
            ["number", "'string'", "`expression`", "true", "false", "null"],
        )

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def indexes(self, children) -> _IndexBlock:
        return _IndexBlock(list(children))

    @v_args(meta=True)
    def index(self, meta, children) -> IndexDecl:
        columns = children[0]
        is_pk = False
        is_unique = False
        name = None
        index_type = None
        note = None
        for setting in children[1] if len(children) > 1 else []:
            if setting.key in ("pk", "primary key"):
                self._require_flag(setting)
                is_pk = True
            elif setting.key == "unique":
                self._require_flag(setting)
                is_unique = True
            elif setting.key == "name":
                name = self._require_value(setting, "string")
            elif setting.key == "type":
                index_type = self._require_value(setting, "words", "string")
            elif setting.key == "note":
                note = self._require_value(setting, "string")
            else:
                raise self._setting_error(setting, "index", ["pk", "unique", "name", "type", "note"])

        return IndexDecl(
            columns=columns,
            is_pk=is_pk,
            is_unique=is_unique,
            name=name,
            type=index_type,
            note=note,
            span=_span(meta),
        )

    def index_columns(self, children) -> List[IndexColumnDecl]:
        return list(children)

    def index_column(self, children) -> IndexColumnDecl:
        item = children[0]
        if isinstance(item, Token) and item.type == "EXPRESSION":
            return IndexColumnDecl(value=item.value[1:-1], is_expression=True)
        return IndexColumnDecl(value=item)

    def note_block(self, children) -> _NoteText:
        return _NoteText(children[0])

    # ------------------------------------------------------------------
    # Settings lists
    # ------------------------------------------------------------------

    def settings(self, children) -> List[SettingDecl]:
        return list(children)

    def setting_key(self, children) -> str:
        return " ".join(word.lower() for word in children)

    @v_args(meta=True)
    def setting(self, meta, children) -> SettingDecl:
        key = children[0]
        if len(children) == 1:
            return SettingDecl(key=key, span=_span(meta))
        value = children[1]
        return SettingDecl(
            key=key,
            value_kind=value.kind,
            value=value.text,
            ref_operator=value.operator,
            ref_target=value.target,
            span=_span(meta),
        )

    def string_value(self, children) -> _Value:
        return _Value("string", _string_value(children[0]))

    def number_value(self, children) -> _Value:
        return _Value("number", children[0].value)

    def expression_value(self, children) -> _Value:
        return _Value("expression", children[0].value[1:-1])

    def color_value(self, children) -> _Value:
        return _Value("color", children[0].value)

    def ref_value(self, children) -> _Value:
        return _Value("ref", operator=children[0], target=children[1])

    def words_value(self, children) -> _Value:
        return _Value("words", " ".join(children))

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    @v_args(meta=True)
    def enum_value(self, meta, children) -> EnumValueDecl:
        note = None
        for setting in children[1] if len(children) > 1 else []:
            if setting.key != "note":
                raise self._setting_error(setting, "enum value", ["note"])
            note = self._require_value(setting, "string")
        return EnumValueDecl(name=children[0], note=note, span=_span(meta))

    @v_args(meta=True)
    def enum(self, meta, children) -> EnumDecl:
        schema_name, name = children[0]
        return EnumDecl(name=name, schema_name=schema_name, values=list(children[1:]), span=_span(meta))

    # ------------------------------------------------------------------
    # Refs
    # ------------------------------------------------------------------

    def relation_operator(self, children) -> RelationOperator:
        return RelationOperator(children[0].value)

    @v_args(meta=True)
    def ref_line(self, meta, children) -> RefDecl:
        left, operator, right = children[:3]
        on_delete = None
        on_update = None
        for setting in children[3] if len(children) > 3 else []:
            if setting.key in ("delete", "update"):
                action = self._require_value(setting, "words").lower()
                if action not in _REFERENTIAL_ACTIONS:
                    raise self._at_setting(
                        setting,
                        f"Invalid referential action '{action}'",
                        sorted(_REFERENTIAL_ACTIONS),
                    )
                if setting.key == "delete":
                    on_delete = action
                else:
                    on_update = action
            elif setting.key == "color":
                self._require_value(setting, "color")
            else:
                raise self._setting_error(setting, "ref", ["delete", "update", "color"])

        return RefDecl(
            operator=operator,
            left=left,
            right=right,
            on_delete=on_delete,
            on_update=on_update,
            span=_span(meta),
        )

    def ref_short(self, children) -> List[RefDecl]:
        name = children[0] if len(children) == 2 else None
        return [children[-1].model_copy(update={"name": name})]

    @v_args(meta=True)
    def ref_block_end(self, meta, children) -> _BlockEnd:
        return _BlockEnd(meta.line, meta.column)

    def ref_block(self, children) -> List[RefDecl]:
        end = children[-1]
        name = children[0] if isinstance(children[0], str) else None
        refs = [child for child in children[:-1] if isinstance(child, RefDecl)]
        if not refs:
            raise self._error("Empty ref block", end.line, end.column, "}", ["table.column"])
        return [ref.model_copy(update={"name": name}) for ref in refs]

    def column_list(self, children) -> List[str]:
        return list(children)

    @v_args(meta=True)
    def endpoint(self, meta, children) -> RefEndpoint:
        """Build ``[schema.]table.column`` or ``[schema.]table.(col1, col2)``."""
        parts: List[str] = []
        columns: Optional[List[str]] = None
        for child in children:
            if columns is not None:
                raise self._error(
                    "A composite column list must end the reference endpoint",
                    meta.line, meta.column, children[0], ["table.(col1, col2)"],
                )
            if isinstance(child, list):
                columns = child
            else:
                parts.append(child)

        if columns is None:
            if len(parts) < 2:
                raise self._error("Reference endpoint must be table.column", meta.line, meta.column, parts[0], ["table.column"])
            columns = [parts.pop()]
        if len(parts) > 2:
            raise self._error("Reference endpoint has too many qualifiers", meta.line, meta.column, parts[0], ["schema.table.column"])
        schema_name = parts[0] if len(parts) == 2 else None
        return RefEndpoint(schema_name=schema_name, table=parts[-1], columns=columns, span=_span(meta))

    # ------------------------------------------------------------------
    # Metadata blocks
    # ------------------------------------------------------------------

    @v_args(meta=True)
    def group_member(self, meta, children) -> TableGroupMemberDecl:
        schema_name, name = children[0]
        return TableGroupMemberDecl(schema_name=schema_name, name=name, span=_span(meta))

    @v_args(meta=True)
    def table_group(self, meta, children) -> TableGroupDecl:
        name = children[0]
        note = None
        members: List[TableGroupMemberDecl] = []
        for child in children[1:]:
            if isinstance(child, list):
                for setting in child:
                    if setting.key == "note":
                        note = self._require_value(setting, "string")
                    elif setting.key == "color":
                        self._require_value(setting, "color")
                    else:
                        raise self._setting_error(setting, "table group", ["note", "color"])
            elif isinstance(child, _NoteText):
                note = child.text
            else:
                members.append(child)
        return TableGroupDecl(name=name, tables=members, note=note, span=_span(meta))

    def project_value(self, children) -> str:
        tok = children[0]
        if tok.type in ("STRING", "MULTILINE_STRING", "QUOTED_NAME"):
            return _string_value(tok)
        return tok.value

    def project_property(self, children) -> Tuple[str, str]:
        return children[0], children[1]

    def project_note(self, children) -> _NoteText:
        return _NoteText(children[0])

    @v_args(meta=True)
    def project(self, meta, children) -> ProjectDecl:
        name = None
        note = None
        properties: Dict[str, str] = {}
        for child in children:
            if isinstance(child, str):
                name = child
            elif isinstance(child, _NoteText):
                note = child.text
            else:
                key, value = child
                if key.lower() == "note":
                    note = value
                else:
                    properties[key] = value
        return ProjectDecl(
            name=name,
            database_type=properties.get("database_type"),
            note=note,
            properties=properties,
            span=_span(meta),
        )

    @v_args(meta=True)
    def sticky_note(self, meta, children) -> NoteDecl:
        name = children[0] if len(children) == 2 else None
        return NoteDecl(name=name, text=children[-1], span=_span(meta))


def _parse(prepared: _Prepared, text: Optional[str]) -> SchemaAST:
    stream = [_lark_token(tok, i) for i, tok in enumerate(prepared.tokens)]
    try:
        tree = _get_parser().parse(stream)
    except UnexpectedInput as e:
        raise _syntax_error(e, prepared, text) from e
    try:
        return _SchemaBuilder(text, prepared.leading).transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ParseError):
            raise e.orig_exc from None
        raise


def parse_tokens(
    tokens: Iterable[DBMLToken],
    original_text: Optional[str] = None,
    return_model: bool = False,
) -> Union[SchemaAST, ParseResult]:
    """Parse a token sequence (from tokenize_dbml or TokenStream) into a SchemaAST.

    Args:
        tokens: Tokens from the lexer; comment tokens are allowed
        original_text: Source text, used for error context snippets
        return_model: If True, returns ParseResult (Pydantic model) instead of SchemaAST

    Returns:
        If return_model=False: SchemaAST with declarations in source order
        If return_model=True: ParseResult with the AST or the error detail

    Raises:
        ParseError: On the first syntax error (only when return_model=False)
    """
    text = original_text or ""
    try:
        ast = _parse(_prepare(tokens), original_text)
    except ParseError as e:
        logger.debug(f"Parsing failed at line {e.line}, column {e.column}: {e.message}")
        if return_model:
            return ParseResult.from_error(
                text,
                e.message,
                line=e.line,
                column=e.column,
                found=e.found,
                expected=e.expected,
                context=e.context,
                suggestions=e.detail.get_suggestions() or None,
            )
        raise

    logger.debug(f"Parsed {len(ast.declarations)} declaration(s)")
    if return_model:
        return ParseResult.from_success(text, ast)
    return ast


def parse_dbml(text: str, return_model: bool = False) -> Union[SchemaAST, ParseResult]:
    """Tokenize and parse a DBML document.

    Raises:
        LexError: If tokenization fails (only when return_model=False)
        ParseError: If parsing fails (only when return_model=False)
    """
    try:
        tokens = tokenize_dbml(text)
    except LexError as e:
        if return_model:
            return ParseResult.from_error(text or "", e.message, line=e.line, column=e.column, context=e.context)
        raise
    return parse_tokens(tokens, original_text=text, return_model=return_model)
