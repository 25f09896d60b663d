"""Lark grammars for DBML.

Two grammars live here:
- DBML_GRAMMAR: the terminal layer, driven by the lexer (lexer.py).
- DBML_PARSER_GRAMMAR: the LALR rules, fed with the lexer's tokens (parser.py).

Lexer ordering notes:
- Lark's basic lexer tries terminals by priority, then by longest possible
  match, so MANY_TO_MANY (``<>``) wins over LT and a signed NUMBER over DASH.
- MULTILINE_STRING has a higher priority than STRING so ``'''`` is not read
  as an empty string followed by a quote.

DBML keywords (Table, Ref, Note, indexes, as, ...) lex as NAME. Before
parsing, each NAME spelling one is retyped to its keyword terminal (see
KEYWORD_TERMINALS); the ``name`` rule accepts every keyword terminal again,
so a column may still be called ``note``.
"""

# NOTE: the ``start`` rule only exists because Lark needs one; the lexer never parses with it.

DBML_GRAMMAR = r"""
start: _token*

_token: NAME
      | QUOTED_NAME
      | STRING
      | MULTILINE_STRING
      | NUMBER
      | EXPRESSION
      | COLOR
      | LBRACE | RBRACE | LBRACK | RBRACK | LPAREN | RPAREN
      | COMMA | COLON | DOT
      | MANY_TO_MANY | LT | GT | DASH
      | LINE_COMMENT
      | BLOCK_COMMENT

// --------------------
// Identifiers
// --------------------
NAME: /[^\W\d]\w*/
QUOTED_NAME: /"(?:[^"\\\n]|\\.)*"/

// --------------------
// Literals
// --------------------
MULTILINE_STRING.3: /'''(?:[^'\\]|\\.|'(?!''))*'''/
STRING.2: /'(?:[^'\\\n]|\\.)*'(?!')/
NUMBER: /[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?/
EXPRESSION: /`[^`]*`/
COLOR: /#[0-9A-Fa-f]{3,8}\b/

// --------------------
// Comments (kept as tokens, skipped by the parser)
// --------------------
LINE_COMMENT.4: /\/\/[^\n]*/
BLOCK_COMMENT.4: /\/\*[\s\S]*?\*\//

// --------------------
// Punctuation and relation operators
// --------------------
LBRACE: "{"
RBRACE: "}"
LBRACK: "["
RBRACK: "]"
LPAREN: "("
RPAREN: ")"
COMMA: ","
COLON: ":"
DOT: "."
MANY_TO_MANY: "<>"
LT: "<"
GT: ">"
DASH: "-"

%import common.WS
%ignore WS
"""

# Words that open or qualify a DBML construct. Used for token categorization
# by the lexer; they never change the lexer's token type.
DBML_KEYWORDS = frozenset(
    {
        "table",
        "enum",
        "ref",
        "project",
        "tablegroup",
        "note",
        "indexes",
        "as",
    }
)

# Parser terminal for each keyword spelling.
KEYWORD_TERMINALS = {word: f"_{word.upper()}" for word in DBML_KEYWORDS}

# Lexer token type -> parser terminal. Punctuation is underscored so Lark
# drops it from the tree; positions still reach the enclosing rule.
PUNCTUATION_TERMINALS = {
    "LBRACE": "_LBRACE",
    "RBRACE": "_RBRACE",
    "LBRACK": "_LBRACK",
    "RBRACK": "_RBRACK",
    "LPAREN": "_LPAREN",
    "RPAREN": "_RPAREN",
    "COMMA": "_COMMA",
    "COLON": "_COLON",
    "DOT": "_DOT",
}

DBML_PARSER_GRAMMAR = r"""
start: _declaration*

_declaration: table
            | enum
            | ref_short
            | ref_block
            | table_group
            | project
            | sticky_note

// --------------------
// Names
// --------------------
name: NAME | QUOTED_NAME | keyword
!keyword: _TABLE | _ENUM | _REF | _TABLEGROUP | _PROJECT | _NOTE | _INDEXES | _AS
qualified_name: name (_DOT name)?
string_lit: STRING | MULTILINE_STRING

// --------------------
// Tables
// --------------------
table: _TABLE qualified_name table_alias? settings? _LBRACE _table_item* _RBRACE
table_alias: _AS name
_table_item: column | indexes | note_block

column: name column_type array_suffix? settings?
column_type: qualified_name type_args?
type_args: _LPAREN type_arg (_COMMA type_arg)* _RPAREN
type_arg: NUMBER | NAME | STRING
array_suffix: _LBRACK _RBRACK

indexes: _INDEXES _LBRACE index* _RBRACE
index: index_columns settings?
index_columns: index_column
             | _LPAREN index_column (_COMMA index_column)* _RPAREN
index_column: name | EXPRESSION

note_block: _NOTE _COLON string_lit
          | _NOTE _LBRACE string_lit _RBRACE

// --------------------
// Settings lists
// --------------------
settings: _LBRACK setting (_COMMA setting)* _RBRACK
setting: setting_key (_COLON setting_value)?
setting_key: word+
word: NAME | keyword

?setting_value: STRING                       -> string_value
              | MULTILINE_STRING             -> string_value
              | QUOTED_NAME                  -> string_value
              | NUMBER                       -> number_value
              | EXPRESSION                   -> expression_value
              | COLOR                        -> color_value
              | relation_operator endpoint   -> ref_value
              | word+                        -> words_value

// --------------------
// Enums
// --------------------
enum: _ENUM qualified_name _LBRACE enum_value* _RBRACE
enum_value: name settings? _COMMA?

// --------------------
// Refs
// --------------------
ref_short: _REF name? _COLON ref_line
ref_block: _REF name? _LBRACE ref_line* ref_block_end
ref_block_end: _RBRACE
ref_line: endpoint relation_operator endpoint settings?
relation_operator: GT | LT | DASH | MANY_TO_MANY

endpoint: name (_DOT _endpoint_part)*
_endpoint_part: name | column_list
column_list: _LPAREN name (_COMMA name)* _RPAREN

// --------------------
// Metadata blocks
// --------------------
table_group: _TABLEGROUP name settings? _LBRACE _group_item* _RBRACE
_group_item: group_member | note_block
group_member: qualified_name

project: _PROJECT name? _LBRACE _project_item* _RBRACE
_project_item: project_property | project_note
project_property: name _COLON project_value
project_note: _NOTE _LBRACE string_lit _RBRACE
project_value: STRING | MULTILINE_STRING | QUOTED_NAME | NAME | NUMBER

sticky_note: _NOTE name? _COLON string_lit
           | _NOTE name? _LBRACE string_lit _RBRACE

%declare NAME QUOTED_NAME STRING MULTILINE_STRING NUMBER EXPRESSION COLOR
%declare GT LT DASH MANY_TO_MANY
%declare _LBRACE _RBRACE _LBRACK _RBRACK _LPAREN _RPAREN _COMMA _COLON _DOT
%declare _TABLE _ENUM _REF _TABLEGROUP _PROJECT _NOTE _INDEXES _AS
"""
