from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    InvalidRangeError,
    OrcaTypeError,
    UndefinedVariableError,
    run_runtime_case,
)
from orca.eval.loops import make_range
from orca.runtime import OrcNumber, OrcRange


def _collect(range_src: str) -> str:
    return dedent(
        f"""\
        out = []
        for i in {range_src} {{ out.push(i) }}
        out
        """
    )


SCENARIOS = [
    pytest.param(_collect("0..3"), ("list", [0, 1, 2]), None, id="range-ascending"),
    pytest.param(_collect("3..0"), ("list", [3, 2, 1]), None, id="range-descending-implied"),
    pytest.param(_collect("2..2"), ("list", []), None, id="range-empty"),
    pytest.param(_collect("0..10..3"), ("list", [0, 3, 6, 9]), None, id="range-step"),
    pytest.param(_collect("10..0..-3"), ("list", [10, 7, 4, 1]), None, id="range-negative-step"),
    pytest.param(_collect("0..1..0.25"), ("list", [0, 0.25, 0.5, 0.75]), None, id="range-fractional-step"),
    pytest.param(_collect("-2..1"), ("list", [-2, -1, 0]), None, id="range-negative-start"),
    pytest.param(_collect("0..3..-1"), None, InvalidRangeError, id="range-step-wrong-sign"),
    pytest.param(_collect("3..0..1"), None, InvalidRangeError, id="range-step-wrong-sign-descending"),
    pytest.param(_collect("0..3..0"), None, InvalidRangeError, id="range-zero-step"),
    pytest.param("'a'..3", None, OrcaTypeError, id="range-string-start"),
    pytest.param("0..none", None, OrcaTypeError, id="range-none-end"),
    pytest.param("1..4", ("range", (1, 4, 1)), None, id="range-value"),
    pytest.param("4..1", ("range", (4, 1, -1)), None, id="range-value-descending"),
    pytest.param("1..4", ("display", "1..4"), None, id="range-display"),
    pytest.param("4..1", ("display", "4..1"), None, id="range-display-descending"),
    pytest.param("0..10..2", ("display", "0..10..2"), None, id="range-display-step"),
    pytest.param("5..1..-1", ("display", "5..1"), None, id="range-display-default-step"),
    pytest.param(
        dedent(
            """\
            r = 0..3
            n = 0
            for i in r { n = n + 1 }
            for i in r { n = n + 1 }
            n
            """
        ),
        ("number", 6),
        None,
        id="range-restartable",
    ),
    pytest.param(
        dedent(
            """\
            total = 0
            for x in [1, 2, 3] { total = total + x }
            total
            """
        ),
        ("number", 6),
        None,
        id="for-list",
    ),
    pytest.param(
        dedent(
            """\
            xs = [1, 2, 3]
            n = 0
            for x in xs {
                xs.push(x)
                n = n + 1
            }
            [n, xs.len]
            """
        ),
        ("list", [3, 6]),
        None,
        id="for-list-bound-captured",
    ),
    pytest.param(
        dedent(
            """\
            xs = [1, 2, 3, 4]
            seen = []
            for x in xs {
                seen.push(x)
                xs.pop()
            }
            seen
            """
        ),
        ("list", [1, 2]),
        None,
        id="for-list-shrinking-ends-early",
    ),
    pytest.param(
        dedent(
            """\
            xs = [1, 2, 3]
            seen = []
            for x in xs {
                if x == 1 { xs[2] = 30 }
                seen.push(x)
            }
            seen
            """
        ),
        ("list", [1, 2, 30]),
        None,
        id="for-list-reads-live-elements",
    ),
    pytest.param(
        dedent(
            """\
            out = ''
            for c in 'abc' { out = c + out }
            out
            """
        ),
        ("string", "cba"),
        None,
        id="for-string",
    ),
    pytest.param(
        dedent(
            """\
            s = 'ab'
            n = 0
            for c in s {
                s.push('x')
                n = n + 1
            }
            n
            """
        ),
        ("number", 2),
        None,
        id="for-string-snapshot",
    ),
    pytest.param("for x in 5 { }", None, OrcaTypeError, id="for-number"),
    pytest.param("for x in none { }", None, OrcaTypeError, id="for-none"),
    pytest.param("for i in 0..3 { }", ("none", None), None, id="for-yields-none"),
    pytest.param(
        "for i in 0..3 { }\ni",
        None,
        UndefinedVariableError,
        id="loop-variable-scoped",
    ),
    pytest.param(
        "for i in 0..2 { tmp = i }\ntmp",
        None,
        UndefinedVariableError,
        id="loop-body-locals-vanish",
    ),
    pytest.param(
        dedent(
            """\
            getters = []
            for i in 0..3 {
                func get() { return i }
                getters.push(get)
            }
            [getters[0](), getters[2]()]
            """
        ),
        ("list", [0, 2]),
        None,
        id="fresh-scope-per-iteration",
    ),
    pytest.param(
        dedent(
            """\
            pairs = []
            for i in 0..2 {
                for j in 0..2 { pairs.push(i * 10 + j) }
            }
            pairs
            """
        ),
        ("list", [0, 1, 10, 11]),
        None,
        id="nested-loops",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_loops(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_range_iteration_does_not_mutate() -> None:
    rng = make_range(OrcNumber(0), OrcNumber(5), OrcNumber(2))

    first = [n.value for n in rng]
    second = [n.value for n in rng]

    assert first == second == [0, 2, 4]
    assert (rng.start, rng.end, rng.step) == (0, 5, 2)


@pytest.mark.parametrize(
    "start, end",
    [(0, 4), (4, 0), (-3, 3), (2, 2), (7, -1)],
)
def test_implied_step_covers_half_open_interval(start: int, end: int) -> None:
    rng = make_range(OrcNumber(start), OrcNumber(end))
    step = 1 if end >= start else -1

    assert [n.value for n in rng] == list(range(start, end, step))


def test_range_is_lazy() -> None:
    rng = OrcRange(0, 10 ** 12, 1)
    it = iter(rng)

    assert next(it).value == 0
    assert next(it).value == 1


def test_nan_step_rejected() -> None:
    with pytest.raises(InvalidRangeError):
        make_range(OrcNumber(0), OrcNumber(3), OrcNumber(float("nan")))
