"""
Lexer for Orca

Tokenizes Orca source code into a lazy stream of tokens.

Features:
- Generator based; ``tokens(start)`` restarts scanning at any source offset
- Position tracking (line, column, source offsets)
- Single-quoted strings and double-quoted templates with ``$name`` segments
- Raw shell-line scanning for command statements
"""

from typing import Iterator, List, Optional, Tuple

from .token_types import TT, Tok

# ============================================================================
# Errors
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")

# ============================================================================
# Lexer Implementation
# ============================================================================

_ESCAPES = {
    'n': '\n',
    't': '\t',
    '\\': '\\',
    "'": "'",
    '"': '"',
}

# Characters that may follow a block-closing brace in a command line
_WORD_END = (' ', '\t', '\r', '\n', '\0')


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == '_'


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == '_'


class Lexer:
    """
    Orca lexer.

    Newlines are significant and emitted as NEWLINE tokens. Characters that
    have no meaning in the language are emitted as SHELL_WORD tokens so the
    parser can route the line to the shell.
    """

    KEYWORDS = {
        'if': TT.IF,
        'else': TT.ELSE,
        'func': TT.FUNC,
        'for': TT.FOR,
        'in': TT.IN,
        'return': TT.RETURN,
        'true': TT.TRUE,
        'false': TT.FALSE,
        'none': TT.NONE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('..', TT.DOTDOT),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('^', TT.CARET),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NOT),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (';', TT.SEMI),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        return list(self.tokens())

    def tokens(self, start: int = 0) -> Iterator[Tok]:
        """Lazily yield tokens from ``start`` up to and including EOF"""
        self.seek(start)

        while self.pos < len(self.source):
            tok = self.scan_token()
            if tok is not None:
                yield tok

        yield Tok(TT.EOF, None, self.line, self.column, self.pos, self.pos)

    def seek(self, offset: int) -> None:
        """Move the cursor to ``offset`` and recompute line/column"""
        self.pos = offset
        self.line = self.source.count('\n', 0, offset) + 1
        self.column = offset - self.source.rfind('\n', 0, offset)

    def scan_token(self) -> Optional[Tok]:
        """Scan next token; None when only trivia was consumed"""
        ch = self.peek()

        if ch in (' ', '\t', '\r'):
            self.skip_whitespace()
            return None

        # Line continuation
        if ch == '\\' and self.peek(1) == '\n':
            self.advance(2)
            return None

        if ch == '#':
            self.skip_comment()
            return None

        if ch == '\n':
            return self.single(TT.NEWLINE)

        if ch == "'":
            return self.scan_string()

        if ch == '"':
            return self.scan_template()

        if ch.isdigit():
            return self.scan_number()

        if _is_ident_start(ch):
            return self.scan_identifier()

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                return self.single(op_type, len(op_str))

        return self.scan_stray()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def single(self, token_type: TT, width: int = 1) -> Tok:
        start, line, col = self.mark()
        text = self.advance(width)
        return self.make(token_type, text, start, line, col)

    def scan_string(self) -> Tok:
        """Scan single-quoted string literal, resolving escapes"""
        start, line, col = self.mark()
        self.advance()  # opening quote
        value = ''

        while not self.at_end() and self.peek() != "'":
            if self.peek() == '\\':
                value += self.scan_escape(allow_dollar=False)
            else:
                value += self.advance()

        if self.at_end():
            raise LexError("Unterminated string", line, col)

        self.advance()  # closing quote
        return self.make(TT.STRING, value, start, line, col)

    def scan_template(self) -> Tok:
        """Scan double-quoted template into literal and variable segments"""
        start, line, col = self.mark()
        self.advance()  # opening quote
        segments: List[Tuple[str, str]] = []
        text = ''

        while not self.at_end() and self.peek() != '"':
            ch = self.peek()

            if ch == '\\':
                text += self.scan_escape(allow_dollar=True)
                continue

            if ch == '$' and _is_ident_start(self.peek(1)):
                if text:
                    segments.append(('text', text))
                    text = ''
                self.advance()  # $
                segments.append(('var', self.read_ident()))
                continue

            text += self.advance()

        if self.at_end():
            raise LexError("Unterminated template string", line, col)

        self.advance()  # closing quote

        if text:
            segments.append(('text', text))

        return self.make(TT.TEMPLATE, tuple(segments), start, line, col)

    def scan_escape(self, allow_dollar: bool) -> str:
        self.advance()  # backslash
        if self.at_end():
            return '\\'

        ch = self.peek()
        if ch in _ESCAPES:
            self.advance()
            return _ESCAPES[ch]
        if allow_dollar and ch == '$':
            self.advance()
            return '$'

        # Unknown escapes stay verbatim
        return '\\' + self.advance()

    def scan_number(self) -> Tok:
        """Scan number literal: integer or decimal"""
        start, line, col = self.mark()
        value = ''

        while self.peek().isdigit():
            value += self.advance()

        # A second dot means a range operator, not a fraction
        if self.peek() == '.' and self.peek(1) != '.':
            if not self.peek(1).isdigit():
                raise LexError("Invalid numeric literal", line, col)

            value += self.advance()  # .
            while self.peek().isdigit():
                value += self.advance()

            if self.peek() == '.' and self.peek(1).isdigit():
                raise LexError("Invalid numeric literal", line, col)

        if _is_ident_start(self.peek()):
            raise LexError("Invalid numeric literal", line, col)

        # Keep as string; the evaluator converts
        return self.make(TT.NUMBER, value, start, line, col)

    def scan_identifier(self) -> Tok:
        """Scan identifier or keyword"""
        start, line, col = self.mark()
        value = self.read_ident()
        token_type = self.KEYWORDS.get(value, TT.IDENT)
        return self.make(token_type, value, start, line, col)

    def scan_stray(self) -> Tok:
        """Characters outside the language become SHELL_WORD tokens"""
        start, line, col = self.mark()

        if self.peek() == '$' and _is_ident_start(self.peek(1)):
            self.advance()
            text = '$' + self.read_ident()
        else:
            text = self.advance()

        return self.make(TT.SHELL_WORD, text, start, line, col)

    # ========================================================================
    # Shell Lines
    # ========================================================================

    def scan_shell_line(self, start: int, stop_at_brace: bool = False) -> Tuple[List[Tok], int]:
        """
        Scan the raw remainder of a line into SHELL_WORD tokens.

        Whitespace outside quotes separates words; quotes and escapes are kept
        verbatim for the shell. Returns the words and the offset where the line
        ended (the newline itself is not consumed).
        """
        self.seek(start)
        words: List[Tok] = []

        while True:
            while self.peek() in (' ', '\t', '\r'):
                self.advance()

            if self.at_end() or self.peek() == '\n':
                break

            if self.peek() == '\\' and self.peek(1) == '\n':
                self.advance(2)
                continue

            if self.peek() == '#':
                self.skip_comment()
                break

            if stop_at_brace and self.peek() == '}' and self.peek(1) in _WORD_END:
                break

            words.append(self.scan_shell_word(stop_at_brace))

        return words, self.pos

    def scan_shell_word(self, stop_at_brace: bool = False) -> Tok:
        start, line, col = self.mark()
        segments: List[Tuple[str, str]] = []
        text = ''
        quote: Optional[str] = None
        braces = 0  # open `{` inside this word, as in `${HOME}`

        while not self.at_end():
            ch = self.peek()

            if quote is None and ch in (' ', '\t', '\r', '\n'):
                break

            if quote is None and ch == '{':
                braces += 1
            elif quote is None and ch == '}':
                if braces:
                    braces -= 1
                elif stop_at_brace and (text or segments) and self.peek(1) in _WORD_END:
                    # `{ echo $f}`: the brace closes the block
                    break

            if ch == '\\':
                if self.peek(1) == '\n' and quote is None:
                    break
                text += self.advance()
                if not self.at_end():
                    text += self.advance()
                continue

            if ch == '$' and _is_ident_start(self.peek(1)):
                if text:
                    segments.append(('text', text))
                    text = ''
                self.advance()  # $
                segments.append(('var', self.read_ident()))
                continue

            if ch in ('"', "'"):
                if quote is None:
                    quote = ch
                elif quote == ch:
                    quote = None

            text += self.advance()

        if quote is not None:
            raise LexError("Unterminated string in command", line, col)

        if text:
            segments.append(('text', text))

        return self.make(TT.SHELL_WORD, tuple(segments), start, line, col)

    # ========================================================================
    # Utilities
    # ========================================================================

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def mark(self) -> Tuple[int, int, int]:
        return self.pos, self.line, self.column

    def make(self, token_type: TT, value, start: int, line: int, column: int) -> Tok:
        return Tok(type=token_type, value=value, line=line, column=column, start=start, end=self.pos)

    def read_ident(self) -> str:
        value = ''
        while _is_ident_char(self.peek()):
            value += self.advance()
        return value

    def skip_whitespace(self) -> None:
        """Skip whitespace (not newlines)"""
        while self.peek() in (' ', '\t', '\r'):
            self.advance()

    def skip_comment(self) -> None:
        """Skip comment until end of line"""
        while not self.at_end() and self.peek() != '\n':
            self.advance()


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
