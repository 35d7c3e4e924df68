from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import ParseError, parse_program
from orca.tree import Tree

PARSER_GRAMMAR_CASES = [
    ("assign-0", "x = 1"),
    ("assign-1", "x = 'a' + \"b\""),
    ("assign-2", "xs[0] = 5"),
    ("assign-3", "grid[1][2] = 'x'"),
    ("op-0", "1 + 2 * 3 - 4 / 5"),
    ("op-1", "-2 ^ 2"),
    ("op-2", "!a && b || c"),
    ("op-3", "a == b != c"),
    ("op-4", "1 <= 2 && 3 >= 2"),
    ("op-5", "(1 + 2) * 3"),
    ("range-0", "0..10"),
    ("range-1", "10..0..-2"),
    ("range-2", "a + 1..b * 2"),
    ("postfix-0", "xs.len"),
    ("postfix-1", "xs.push(1)"),
    ("postfix-2", "xs[0].len()"),
    ("postfix-3", "f(1, 2)(3)"),
    ("postfix-4", "'  hi '.trim().len"),
    ("list-0", "[]"),
    ("list-1", "[1, 'two', [3]]"),
    ("list-2", "[1, 2,]"),
    ("list-3", "[\n  1,\n  2\n]"),
    ("template-0", '"hello $name"'),
    ("if-0", "if x { 1 }"),
    ("if-1", "if x { 1 } else { 2 }"),
    ("if-2", "if x { 1 } else if y { 2 } else { 3 }"),
    ("for-0", "for i in 0..3 { i }"),
    ("for-1", "for c in 'abc' { }"),
    ("func-0", "func f() { }"),
    ("func-1", "func add(a, b) { return a + b }"),
    ("return-0", "func f() { return }"),
    ("block-0", "{ x = 1 }"),
    ("semi-0", "x = 1; y = 2; x + y"),
    ("comment-0", "x = 1 # trailing\n# whole line\ny = 2"),
    ("shell-0", "ls -la"),
    ("shell-1", "echo hello world"),
    ("shell-2", "./build.sh --release"),
    ("shell-3", "/bin/echo hi"),
    ("shell-4", "x = cat $file"),
    ("shell-5", "echo $HOME | wc -l"),
    ("shell-6", "env \"FOO=BAR\" printenv FOO"),
    (
        "if-else-next-line",
        dedent(
            """\
            if x {
                1
            }
            else {
                2
            }
            """
        ),
    ),
    (
        "func-multiline",
        dedent(
            """\
            func fib(n) {
                if n < 2 {
                    return n
                }
                return fib(n - 1) + fib(n - 2)
            }
            fib(10)
            """
        ),
    ),
]


@pytest.mark.parametrize(
    "code",
    [pytest.param(code, id=name) for name, code in PARSER_GRAMMAR_CASES],
)
def test_parser_grammar(code: str) -> None:
    ast = parse_program(code)
    assert isinstance(ast, Tree)
    assert ast.data == "program"


PARSE_ERROR_LOCATION_CASES = [
    ("unmatched-call-paren", "f(1, 2", 1, 2, "Unmatched '('"),
    ("unmatched-list", "x = [1, 2", 1, 5, "Unmatched '['"),
    ("unmatched-group", "x = 1\n(1 + 2", 2, 1, "Unmatched '('"),
    ("unmatched-brace", "if true {\n  x = 1\n", 1, 9, "Unmatched '{'"),
    ("malformed-range", "1..2..3..4", 1, 8, "Malformed range"),
    ("bad-assign-target", "1 = 2", 1, 1, "Invalid assignment target"),
    ("bad-assign-call", "f() = 2", 1, 1, "Invalid assignment target"),
    ("duplicate-param", "func f(a, a) {}", 1, 11, "Duplicate parameter 'a'"),
    ("for-missing-var", "for 1 in xs {}", 1, 5, "Expected loop variable"),
    ("for-missing-in", "for i xs {}", 1, 7, "Expected 'in'"),
    ("func-missing-name", "func (a) {}", 1, 6, "Expected function name"),
    ("trailing-token", "x = 1 2", 1, 7, "Unexpected '2'"),
    ("if-missing-block", "if x 1", 1, 6, "Expected '{'"),
    ("stray-rbrace", "}", 1, 1, "Unexpected '}'"),
    ("line3-unexpected", "a = 1\nb = 2\n)", 3, 1, "Unexpected ')'"),
]


@pytest.mark.parametrize(
    "name,source,exp_line,exp_col,msg",
    PARSE_ERROR_LOCATION_CASES,
    ids=[c[0] for c in PARSE_ERROR_LOCATION_CASES],
)
def test_parse_error_location(
    name: str, source: str, exp_line: int, exp_col: int, msg: str
) -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_program(source)

    err = exc_info.value
    assert msg in err.message
    assert err.line == exp_line, f"expected line {exp_line}, got {err.line}"
    assert err.column == exp_col, f"expected col {exp_col}, got {err.column}"
    assert f"at line {exp_line}, col {exp_col}" in str(err)


def _collect_tree_labels(node: object) -> set[str]:
    labels: set[str] = set()
    if not isinstance(node, Tree):
        return labels

    stack = [node]
    while stack:
        current = stack.pop()
        labels.add(current.data)
        for child in current.children:
            if isinstance(child, Tree):
                stack.append(child)
    return labels


def test_program_labels_cover_statement_forms() -> None:
    ast = parse_program(
        dedent(
            """\
            xs = [1, 2]
            xs[0] = 3
            func f(a) { return -a }
            for i in 0..2 { f(i) }
            if xs.len > 1 { xs[0] } else { none }
            { "$i" }
            ok = true || false
            echo done
            """
        )
    )
    labels = _collect_tree_labels(ast)

    assert {
        "program",
        "assign",
        "indexassign",
        "fndef",
        "paramlist",
        "returnstmt",
        "unary",
        "forstmt",
        "range",
        "call",
        "args",
        "ifstmt",
        "ifbranch",
        "elseblock",
        "membercall",
        "binop",
        "index",
        "list",
        "block",
        "template",
        "logical",
        "shellcmd",
        "shellword",
    } <= labels
