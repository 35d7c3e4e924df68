"""
Token Types for the Orca lexer and parser

Shared between lexer, parser and the REPL highlighter to avoid circular
dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class Kind(Enum):
    """Coarse token categories"""

    NUMBER = auto()
    STRING = auto()
    TEMPLATE_STRING = auto()
    IDENT = auto()
    KEYWORD = auto()
    OPERATOR = auto()
    PUNCT = auto()
    SHELL_WORD = auto()
    EOF = auto()


class TT(Enum):
    """Token Types"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    TEMPLATE = auto()
    IDENT = auto()

    # Keywords
    IF = auto()
    ELSE = auto()
    FUNC = auto()
    FOR = auto()
    IN = auto()
    RETURN = auto()
    TRUE = auto()
    FALSE = auto()
    NONE = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    CARET = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()
    OR = auto()
    NOT = auto()  # !

    ASSIGN = auto()  # =
    DOTDOT = auto()  # ..

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()
    SEMI = auto()
    NEWLINE = auto()

    # Raw command text
    SHELL_WORD = auto()

    EOF = auto()


_KEYWORD_TYPES = {TT.IF, TT.ELSE, TT.FUNC, TT.FOR, TT.IN, TT.RETURN, TT.TRUE, TT.FALSE, TT.NONE}

_OPERATOR_TYPES = {
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.CARET,
    TT.EQ, TT.NEQ, TT.LT, TT.LTE, TT.GT, TT.GTE,
    TT.AND, TT.OR, TT.NOT, TT.ASSIGN, TT.DOTDOT,
}

_DIRECT_KINDS = {
    TT.NUMBER: Kind.NUMBER,
    TT.STRING: Kind.STRING,
    TT.TEMPLATE: Kind.TEMPLATE_STRING,
    TT.IDENT: Kind.IDENT,
    TT.SHELL_WORD: Kind.SHELL_WORD,
    TT.EOF: Kind.EOF,
}

# Binary operators; a space on only one side marks a command flag (`ls -la`).
BINARY_OPERATORS = frozenset({
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.CARET,
    TT.EQ, TT.NEQ, TT.LT, TT.LTE, TT.GT, TT.GTE,
    TT.AND, TT.OR, TT.DOTDOT,
})


def kind_of(token_type: TT) -> Kind:
    direct = _DIRECT_KINDS.get(token_type)
    if direct is not None:
        return direct
    if token_type in _KEYWORD_TYPES:
        return Kind.KEYWORD
    if token_type in _OPERATOR_TYPES:
        return Kind.OPERATOR
    return Kind.PUNCT


@dataclass
class Tok:
    """Token with position info.

    ``value`` is the lexeme for most tokens. TEMPLATE and shell-mode
    SHELL_WORD tokens carry a tuple of ``(segment_kind, text)`` pairs where
    segment_kind is ``"text"`` or ``"var"``.
    """

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    start: int = 0
    end: int = 0

    @property
    def kind(self) -> Kind:
        return kind_of(self.type)

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
