"""
Recursive Descent Parser for Orca

Structure:
- Lexer: lazy token stream from source, buffered for lookahead
- Parser: recursive descent with precedence climbing for expressions
- AST: lark Tree/Token nodes, positioned with lark Meta

Shell fallback: at command positions (statement start, assignment RHS,
return value, right operand of || and &&) a line that does not read as an
expression is rescanned raw and becomes a `shellcmd` node.
"""

from typing import AbstractSet, Callable, Iterator, List, Optional

from .lexer import Lexer, LexError
from .token_types import BINARY_OPERATORS, TT, Tok
from .tree import Token, Tree, meta_from, token_from

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else 0
        self.column = token.column if token else 0
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

_STATEMENT_END = (TT.NEWLINE, TT.SEMI, TT.EOF)

# Tokens that can start a path or shell word but never an expression
_COMMAND_STARTERS = (TT.DOT, TT.SLASH, TT.DOTDOT, TT.SHELL_WORD)

_COMPARE_OPS = (TT.EQ, TT.NEQ, TT.LT, TT.GT, TT.LTE, TT.GTE)


def _describe(tok: Tok) -> str:
    if tok.type == TT.EOF:
        return "end of input"
    if tok.type == TT.NEWLINE:
        return "newline"
    return repr(tok.value)


class Parser:
    """
    Recursive descent parser for Orca.

    Expression precedence (lowest to highest):
    1. or (||)
    2. and (&&)
    3. range (..)
    4. compare (==, !=, <, >, <=, >=)
    5. add (+, -)
    6. mul (*, /)
    7. unary (-, !)
    8. pow (^), right associative
    9. postfix (.member, .member(args), [index], (call))
    10. primary (literals, identifiers, lists, parens)
    """

    def __init__(self, source: str, commands: Optional[AbstractSet[str]] = None):
        self.source = source
        self.lexer = Lexer(source)
        self.buffer: List[Tok] = []
        self.pos = 0
        self.depth = 0  # open braces
        self._stream: Iterator[Tok] = self.lexer.tokens(0)
        self._lex_error: Optional[LexError] = None
        self._commands = commands

    @property
    def commands(self) -> AbstractSet[str]:
        """Executables that may be invoked by bare name"""
        if self._commands is None:
            from .shell import known_commands
            self._commands = known_commands()
        return self._commands

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def _fill(self, idx: int) -> None:
        while len(self.buffer) <= idx:
            if self._lex_error is not None:
                raise self._lex_error
            try:
                tok = next(self._stream)
            except StopIteration:
                return
            except LexError as exc:
                self._lex_error = exc
                raise
            self.buffer.append(tok)

    def _restart(self, offset: int) -> None:
        """Drop buffered lookahead and resume lexing at a source offset"""
        del self.buffer[self.pos:]
        self._stream = self.lexer.tokens(offset)
        self._lex_error = None

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        self._fill(idx)
        if idx < len(self.buffer):
            return self.buffer[idx]
        return self.buffer[-1]

    def _peek_safe(self, offset: int) -> Optional[Tok]:
        try:
            return self.peek(offset)
        except LexError:
            return None

    @property
    def current(self) -> Tok:
        return self.peek(0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type != TT.EOF:
            self.pos += 1
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {_describe(self.current)}"
            raise ParseError(msg, self.current)
        return self.advance()

    def _at_statement_end(self, tok: Tok) -> bool:
        return tok.type in _STATEMENT_END or (tok.type == TT.RBRACE and self.depth > 0)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        return Tree('program', self.parse_statements())

    def parse_statements(self, opener: Optional[Tok] = None) -> List[Tree]:
        """Parse statements until EOF, or until '}' when inside a block"""
        stmts: List[Tree] = []

        while True:
            # Skip empty lines and stray separators
            while self.match(TT.NEWLINE, TT.SEMI):
                pass

            if opener is not None and self.check(TT.RBRACE):
                return stmts

            if self.check(TT.EOF):
                if opener is not None:
                    raise ParseError("Unmatched '{'", opener)
                return stmts

            stmts.append(self.parse_statement())

            if not self._at_statement_end(self.current):
                raise ParseError(f"Unexpected {_describe(self.current)}", self.current)

    def parse_statement(self) -> Tree:
        """
        Parse a single statement.

        Statements include:
        - Control flow (if, for)
        - Declarations (func)
        - Assignments (name = ..., xs[i] = ...)
        - Return
        - Blocks
        - Expressions and shell commands
        """
        if self.check(TT.IF):
            return self.parse_if_stmt()
        if self.check(TT.FOR):
            return self.parse_for_stmt()
        if self.check(TT.FUNC):
            return self.parse_fn_stmt()
        if self.check(TT.RETURN):
            return self.parse_return_stmt()
        if self.check(TT.LBRACE):
            return self.parse_block()

        if self.check(TT.IDENT):
            nxt = self._peek_safe(1)
            if nxt is not None and nxt.type == TT.ASSIGN:
                return self.parse_assign_stmt()

        first = self.current
        expr = self.parse_command_or(self.parse_expr, mode='stmt')

        if self.check(TT.ASSIGN):
            return self.parse_index_assign(expr, first)

        return expr

    def parse_assign_stmt(self) -> Tree:
        """Parse assignment: name = value"""
        name = self.expect(TT.IDENT)
        self.expect(TT.ASSIGN)
        value = self.parse_command_or(self.parse_expr)
        return Tree('assign', [token_from('IDENT', name), value], meta_from(name))

    def parse_index_assign(self, target: Tree, first: Tok) -> Tree:
        """Parse index assignment: xs[i] = value"""
        eq = self.current
        if not (isinstance(target, Tree) and target.data == 'index'):
            raise ParseError("Invalid assignment target", first)

        self.advance()
        value = self.parse_command_or(self.parse_expr)
        receiver, index = target.children
        return Tree('indexassign', [receiver, index, value], meta_from(eq))

    def parse_if_stmt(self) -> Tree:
        """
        Parse if statement:
        if expr { block } [else if expr { block }]* [else { block }]
        """
        if_tok = self.expect(TT.IF)
        branches: List[Tree] = []

        cond = self.parse_expr()
        body = self.parse_block()
        branches.append(Tree('ifbranch', [cond, body], meta_from(if_tok)))

        while self._skip_to_else():
            else_tok = self.expect(TT.ELSE)

            if self.check(TT.IF):
                elif_tok = self.advance()
                cond = self.parse_expr()
                body = self.parse_block()
                branches.append(Tree('ifbranch', [cond, body], meta_from(elif_tok)))
                continue

            body = self.parse_block()
            branches.append(Tree('elseblock', [body], meta_from(else_tok)))
            break

        return Tree('ifstmt', branches, meta_from(if_tok))

    def _skip_to_else(self) -> bool:
        """Consume blank lines only when an `else` follows them"""
        k = 0
        while True:
            tok = self._peek_safe(k)
            if tok is None:
                return False
            if tok.type != TT.NEWLINE:
                break
            k += 1

        if tok.type != TT.ELSE:
            return False

        for _ in range(k):
            self.advance()
        return True

    def parse_for_stmt(self) -> Tree:
        """Parse for loop: for name in expr { block }"""
        for_tok = self.expect(TT.FOR)
        var = self.expect(TT.IDENT, "Expected loop variable after 'for'")
        self.expect(TT.IN, "Expected 'in' after loop variable")
        iterable = self.parse_expr()
        body = self.parse_block()
        return Tree('forstmt', [token_from('IDENT', var), iterable, body], meta_from(for_tok))

    def parse_fn_stmt(self) -> Tree:
        """Parse function declaration: func name(params) { block }"""
        fn_tok = self.expect(TT.FUNC)
        name = self.expect(TT.IDENT, "Expected function name after 'func'")
        self.expect(TT.LPAR)
        params = self.parse_param_list()
        body = self.parse_block()
        return Tree('fndef', [token_from('IDENT', name), params, body], meta_from(fn_tok))

    def parse_param_list(self) -> Tree:
        """Parse parameter names up to and including ')'"""
        params: List[Token] = []
        seen = set()

        while not self.match(TT.RPAR):
            if params:
                self.expect(TT.COMMA, f"Expected ',' or ')', got {_describe(self.current)}")
                if self.match(TT.RPAR):
                    break

            name = self.expect(TT.IDENT, f"Expected parameter name, got {_describe(self.current)}")
            if name.value in seen:
                raise ParseError(f"Duplicate parameter '{name.value}'", name)
            seen.add(name.value)
            params.append(token_from('IDENT', name))

        return Tree('paramlist', params)

    def parse_return_stmt(self) -> Tree:
        """Parse return statement: return [value]"""
        ret_tok = self.expect(TT.RETURN)

        if self._at_statement_end(self.current):
            return Tree('returnstmt', [], meta_from(ret_tok))

        value = self.parse_command_or(self.parse_expr)
        return Tree('returnstmt', [value], meta_from(ret_tok))

    def parse_block(self) -> Tree:
        """Parse brace block: { stmt* }"""
        open_tok = self.expect(TT.LBRACE, f"Expected '{{', got {_describe(self.current)}")
        self.depth += 1
        stmts = self.parse_statements(opener=open_tok)
        self.depth -= 1
        self.expect(TT.RBRACE)
        return Tree('block', stmts, meta_from(open_tok))

    # ========================================================================
    # Shell Commands
    # ========================================================================

    def parse_command_or(self, parse_fn: Callable[[], Tree], mode: str = 'expr') -> Tree:
        """Parse a shell command when one starts here, else call parse_fn"""
        if not self.at_command():
            return parse_fn()

        nxt = self._peek_safe(1)
        if self.check(TT.IDENT) and nxt is not None and self._at_statement_end(nxt):
            return self.parse_bare_name(mode)

        return self.parse_shell_command(mode)

    def at_command(self) -> bool:
        """Decide whether the current token starts a shell command"""
        tok = self.current

        if tok.type in _COMMAND_STARTERS:
            return True
        if tok.type != TT.IDENT:
            return False

        nxt = self._peek_safe(1)
        if nxt is None:
            # The rest of the line is not valid source
            return True

        if self._at_statement_end(nxt) or nxt.type in (TT.OR, TT.AND):
            return tok.value in self.commands

        adjacent = nxt.start == tok.end

        if nxt.type == TT.LPAR:
            return False
        if nxt.type in (TT.DOT, TT.LSQB):
            return not adjacent
        if nxt.type in (TT.RPAR, TT.RSQB, TT.COMMA, TT.LBRACE, TT.ASSIGN):
            return False

        if nxt.type in BINARY_OPERATORS:
            after = self._peek_safe(2)
            if after is None or self._at_statement_end(after):
                return True
            # `ls -la`: space before the operator, none after
            return not adjacent and after.start == nxt.end

        return True

    def parse_shell_command(self, mode: str) -> Tree:
        """Rescan the rest of the line as shell words"""
        first = self.current
        words, end = self.lexer.scan_shell_line(first.start, stop_at_brace=self.depth > 0)
        self._restart(end)

        children: List = [Token('MODE', mode)]
        for word in words:
            parts = [Token('TEXT' if kind == 'text' else 'VAR', text) for kind, text in word.value]
            children.append(Tree('shellword', parts, meta_from(word)))

        return Tree('shellcmd', children, meta_from(first))

    def parse_bare_name(self, mode: str) -> Tree:
        """A lone name is a variable when bound, else a command; the evaluator decides"""
        tok = self.advance()
        word = Tree('bareword', [Token('TEXT', tok.value)], meta_from(tok))
        return Tree('shellcmd', [Token('MODE', mode), word], meta_from(tok))

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Tree:
        """Parse expression (entry point)"""
        return self.parse_or_expr()

    def parse_or_expr(self) -> Tree:
        """Parse logical OR: expr || expr"""
        left = self.parse_and_expr()

        while self.check(TT.OR):
            op = self.advance()
            right = self.parse_command_or(self.parse_and_expr)
            left = Tree('logical', [left, token_from('OP', op), right], meta_from(op))

        return left

    def parse_and_expr(self) -> Tree:
        """Parse logical AND: expr && expr"""
        left = self.parse_range_expr()

        while self.check(TT.AND):
            op = self.advance()
            right = self.parse_command_or(self.parse_range_expr)
            left = Tree('logical', [left, token_from('OP', op), right], meta_from(op))

        return left

    def parse_range_expr(self) -> Tree:
        """Parse range: start..end[..step]"""
        start = self.parse_compare_expr()

        if not self.check(TT.DOTDOT):
            return start

        op = self.advance()
        end = self.parse_compare_expr()
        children = [start, end]

        if self.match(TT.DOTDOT):
            children.append(self.parse_compare_expr())
            if self.check(TT.DOTDOT):
                raise ParseError("Malformed range", self.current)

        return Tree('range', children, meta_from(op))

    def parse_compare_expr(self) -> Tree:
        """Parse comparison chain, left associative"""
        left = self.parse_add_expr()

        while self.check(*_COMPARE_OPS):
            op = self.advance()
            right = self.parse_add_expr()
            left = Tree('binop', [left, token_from('OP', op), right], meta_from(op))

        return left

    def parse_add_expr(self) -> Tree:
        """Parse addition/subtraction"""
        left = self.parse_mul_expr()

        while self.check(TT.PLUS, TT.MINUS):
            op = self.advance()
            right = self.parse_mul_expr()
            left = Tree('binop', [left, token_from('OP', op), right], meta_from(op))

        return left

    def parse_mul_expr(self) -> Tree:
        """Parse multiplication/division"""
        left = self.parse_unary_expr()

        while self.check(TT.STAR, TT.SLASH):
            op = self.advance()
            right = self.parse_unary_expr()
            left = Tree('binop', [left, token_from('OP', op), right], meta_from(op))

        return left

    def parse_unary_expr(self) -> Tree:
        """Parse unary: -expr, !expr"""
        if self.check(TT.MINUS, TT.NOT):
            op = self.advance()
            operand = self.parse_unary_expr()
            return Tree('unary', [token_from('OP', op), operand], meta_from(op))

        return self.parse_pow_expr()

    def parse_pow_expr(self) -> Tree:
        """Parse exponentiation: base ^ exp (right associative, binds tighter than unary)"""
        base = self.parse_postfix_expr()

        if self.check(TT.CARET):
            op = self.advance()
            exp = self.parse_unary_expr()
            return Tree('binop', [base, token_from('OP', op), exp], meta_from(op))

        return base

    def parse_postfix_expr(self) -> Tree:
        """
        Parse postfix operations:
        - Member call: .name or .name(args)
        - Indexing: [expr]
        - Call: (args)
        """
        node = self.parse_primary_expr()

        while True:
            if self.check(TT.DOT):
                dot = self.advance()
                name = self.expect(TT.IDENT, f"Expected member name after '.', got {_describe(self.current)}")
                args: List[Tree] = []
                if self.check(TT.LPAR):
                    args = self.parse_arg_list(self.advance(), TT.RPAR)
                node = Tree('membercall', [node, token_from('IDENT', name), Tree('args', args)], meta_from(dot))
                continue

            if self.check(TT.LSQB):
                open_tok = self.advance()
                index = self.parse_expr()
                self._expect_close(TT.RSQB, open_tok)
                node = Tree('index', [node, index], meta_from(open_tok))
                continue

            if self.check(TT.LPAR):
                open_tok = self.advance()
                args = self.parse_arg_list(open_tok, TT.RPAR)
                node = Tree('call', [node, Tree('args', args)], meta_from(open_tok))
                continue

            return node

    def parse_primary_expr(self) -> Tree:
        """Parse primary expression"""
        tok = self.current

        if tok.type == TT.NUMBER:
            self.advance()
            return token_from('NUMBER', tok)

        if tok.type == TT.STRING:
            self.advance()
            return token_from('STRING', tok)

        if tok.type == TT.TEMPLATE:
            self.advance()
            parts = [Token('TEXT' if kind == 'text' else 'VAR', text) for kind, text in tok.value]
            return Tree('template', parts, meta_from(tok))

        if tok.type in (TT.TRUE, TT.FALSE, TT.NONE, TT.IDENT):
            self.advance()
            return token_from(tok.type.name, tok)

        if tok.type == TT.LSQB:
            open_tok = self.advance()
            items = self.parse_arg_list(open_tok, TT.RSQB)
            return Tree('list', items, meta_from(open_tok))

        if tok.type == TT.LPAR:
            open_tok = self.advance()
            while self.match(TT.NEWLINE):
                pass
            expr = self.parse_expr()
            while self.match(TT.NEWLINE):
                pass
            self._expect_close(TT.RPAR, open_tok)
            return expr

        raise ParseError(f"Unexpected {_describe(tok)}", tok)

    def parse_arg_list(self, open_tok: Tok, closing: TT) -> List[Tree]:
        """Parse comma separated expressions up to and including the closing token"""
        items: List[Tree] = []

        while True:
            while self.match(TT.NEWLINE):
                pass

            if self.match(closing):
                return items

            if items:
                if self.check(TT.EOF):
                    raise ParseError(f"Unmatched '{open_tok.value}'", open_tok)
                self.expect(TT.COMMA, f"Expected ',' or '{_closer(closing)}', got {_describe(self.current)}")
                while self.match(TT.NEWLINE):
                    pass
                if self.match(closing):
                    return items

            if self.check(TT.EOF):
                raise ParseError(f"Unmatched '{open_tok.value}'", open_tok)

            items.append(self.parse_expr())

    def _expect_close(self, closing: TT, open_tok: Tok) -> Tok:
        if self.check(TT.EOF):
            raise ParseError(f"Unmatched '{open_tok.value}'", open_tok)
        return self.expect(closing, f"Expected '{_closer(closing)}', got {_describe(self.current)}")


def _closer(token_type: TT) -> str:
    return {TT.RPAR: ')', TT.RSQB: ']', TT.RBRACE: '}'}[token_type]


def parse(source: str, commands: Optional[AbstractSet[str]] = None) -> Tree:
    """Convenience function to parse source"""
    return Parser(source, commands).parse()
