from __future__ import annotations

import sys
from textwrap import dedent

import pytest

from tests.support.harness import (
    OrcaArityError,
    OrcaRuntimeError,
    OrcaTypeError,
    UndefinedVariableError,
    run_program,
    run_runtime_case,
    verify_result,
)

SCENARIOS = [
    pytest.param(
        "func add(x, y) { return x + y }\nadd(1, 2)",
        ("number", 3),
        None,
        id="call-returns-value",
    ),
    pytest.param(
        "func add(x, y) { return x + y }\nadd(1)",
        None,
        OrcaArityError,
        id="too-few-arguments",
    ),
    pytest.param(
        "func add(x, y) { return x + y }\nadd(1, 2, 3)",
        None,
        OrcaArityError,
        id="too-many-arguments",
    ),
    pytest.param("func f() { 1 }\nf()", ("none", None), None, id="no-return-yields-none"),
    pytest.param("func f() { return }\nf()", ("none", None), None, id="bare-return-yields-none"),
    pytest.param("func f() { }", ("none", None), None, id="definition-yields-none"),
    pytest.param("func f(a, b) { }\nf", ("display", "func f(a, b)"), None, id="function-display"),
    pytest.param("func f() { }\nf", ("function", "f"), None, id="function-value"),
    pytest.param(
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
        ("number", 55),
        None,
        id="recursion",
    ),
    pytest.param(
        dedent(
            """\
            func find(xs, target) {
                for x in xs {
                    if x == target { return 'found' }
                }
                return 'missing'
            }
            [find([1, 2, 3], 2), find([1], 5)]
            """
        ),
        ("list", ["found", "missing"]),
        None,
        id="return-unwinds-loop-and-if",
    ),
    pytest.param(
        dedent(
            """\
            func early() {
                return 1
                undefined_after_return
            }
            early()
            """
        ),
        ("number", 1),
        None,
        id="return-stops-body",
    ),
    pytest.param(
        dedent(
            """\
            func make() {
                count = 0
                func inc() {
                    count = count + 1
                    return count
                }
                return inc
            }
            counter = make()
            counter()
            counter()
            """
        ),
        ("number", 2),
        None,
        id="closure-keeps-state",
    ),
    pytest.param(
        dedent(
            """\
            func make() {
                count = 0
                func inc() {
                    count = count + 1
                    return count
                }
                return inc
            }
            a = make()
            b = make()
            a()
            a()
            b()
            """
        ),
        ("number", 1),
        None,
        id="closures-are-independent",
    ),
    pytest.param(
        dedent(
            """\
            x = 'global'
            func show() { return x }
            func caller(x) { return show() }
            caller('local')
            """
        ),
        ("string", "global"),
        None,
        id="lexical-not-dynamic-scope",
    ),
    pytest.param(
        dedent(
            """\
            func twice(g, v) { return g(g(v)) }
            func inc(n) { return n + 1 }
            twice(inc, 5)
            """
        ),
        ("number", 7),
        None,
        id="functions-as-arguments",
    ),
    pytest.param(
        dedent(
            """\
            func adder(n) {
                func add(m) { return n + m }
                return add
            }
            adder(2)(3)
            """
        ),
        ("number", 5),
        None,
        id="call-returned-function",
    ),
    pytest.param(
        dedent(
            """\
            func push_one(xs) { xs.push(1) }
            items = []
            push_one(items)
            push_one(items)
            items.len
            """
        ),
        ("number", 2),
        None,
        id="lists-passed-by-reference",
    ),
    pytest.param(
        dedent(
            """\
            func bump(n) {
                n = n + 1
                return n
            }
            v = 1
            bump(v)
            v
            """
        ),
        ("number", 1),
        None,
        id="numbers-passed-by-value",
    ),
    pytest.param("x = 1\nx()", None, OrcaTypeError, id="call-non-function"),
    pytest.param("'f'()", None, OrcaTypeError, id="call-string"),
    pytest.param("later()\nfunc later() { }", None, UndefinedVariableError, id="call-before-definition"),
    pytest.param(
        "func down(n) { return down(n + 1) }\ndown(0)",
        None,
        OrcaRuntimeError,
        id="runaway-recursion",
    ),
    pytest.param(
        dedent(
            """\
            func f() { return 1 }
            func f() { return 2 }
            f()
            """
        ),
        ("number", 2),
        None,
        id="redefinition-replaces",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_functions(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_arity_message() -> None:
    with pytest.raises(OrcaArityError) as exc_info:
        run_program("func add(x, y) { return x + y }\nadd(1)")

    assert "Function 'add' expects 2 argument(s); got 1" in str(exc_info.value)


def test_deep_recursion() -> None:
    source = dedent(
        """\
        func depth(n) {
            if n == 0 { return 0 }
            return 1 + depth(n - 1)
        }
        depth(500)
        """
    )

    verify_result(run_program(source), "number", 500)


def test_recursion_limit_restored_after_run() -> None:
    before = sys.getrecursionlimit()

    run_program("func f(n) { return n }\nf(1)")

    assert sys.getrecursionlimit() == before
