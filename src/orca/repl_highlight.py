"""prompt_toolkit lexer for live Orca syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer import Lexer as OrcLexer, LexError
from .shell import known_commands
from .token_types import TT, Kind, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "command": "bold ansiblue",
    "shell": "ansiyellow",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
}

_KIND_GROUP = {
    Kind.KEYWORD: "keyword",
    Kind.NUMBER: "number",
    Kind.STRING: "string",
    Kind.TEMPLATE_STRING: "string",
    Kind.IDENT: "identifier",
    Kind.OPERATOR: "operator",
    Kind.PUNCT: "punctuation",
    Kind.SHELL_WORD: "shell",
}

_TT_GROUP = {
    TT.TRUE: "boolean",
    TT.FALSE: "boolean",
    TT.NONE: "constant",
}

_LAYOUT = {TT.NEWLINE, TT.SEMI, TT.EOF}


def _group_for(tokens: list[Tok], idx: int) -> str:
    tok = tokens[idx]
    group = _TT_GROUP.get(tok.type) or _KIND_GROUP.get(tok.kind, "")

    if tok.type != TT.IDENT:
        return group

    prev_tok = tokens[idx - 1] if idx > 0 else None
    next_tok = tokens[idx + 1] if idx + 1 < len(tokens) else None

    if prev_tok is not None and prev_tok.type == TT.FUNC:
        return "function"
    if next_tok is not None and next_tok.type == TT.LPAR:
        return "function"

    # Bare command at the start of a line
    if (prev_tok is None or prev_tok.type in _LAYOUT) and tok.value in known_commands():
        if next_tok is None or next_tok.type not in (TT.ASSIGN, TT.LSQB, TT.DOT):
            return "command"

    return group


def _styled_gap(gap: str) -> StyleAndTextTuples:
    """Whitespace between tokens; a `#` there starts a comment."""
    hash_at = gap.find("#")
    if hash_at < 0:
        return [("", gap)]

    spans: StyleAndTextTuples = []
    if hash_at:
        spans.append(("", gap[:hash_at]))
    spans.append((GROUP_STYLE["comment"], gap[hash_at:]))
    return spans


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = OrcLexer(text).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type == TT.EOF:
            continue

        if tok.start > pos:
            result.extend(_styled_gap(text[pos:tok.start]))

        style = GROUP_STYLE.get(_group_for(tokens, i), "")
        result.append((style, text[tok.start:tok.end]))
        pos = tok.end

    # Trailing text, usually a comment.
    if pos < len(text):
        result.extend(_styled_gap(text[pos:]))

    return result if result else [("", text)]


class OrcaLexer(Lexer):
    """prompt_toolkit Lexer that highlights Orca source using the language lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
