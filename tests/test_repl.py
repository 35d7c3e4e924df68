from __future__ import annotations

import pytest
from prompt_toolkit.document import Document

from tests.support.harness import make_frame
from orca.repl import _handle_slash, _normalize, needs_continuation, open_depth
from orca.repl_highlight import GROUP_STYLE, OrcaLexer, _highlight_line
from orca.runtime import OrcNumber


@pytest.mark.parametrize(
    "text, depth",
    [
        ("x = 1", 0),
        ("if x {", 1),
        ("f([1, {", 3),
        ("xs = [1, 2]", 0),
        ("}}", 0),
        ("x = 'unterminated", 0),
    ],
    ids=["flat", "open-brace", "nested", "balanced", "extra-close", "lex-error"],
)
def test_open_depth(text: str, depth: int) -> None:
    assert open_depth(text) == depth


@pytest.mark.parametrize(
    "text, expected",
    [
        ("x = 1", False),
        ("func f() {", True),
        ("func f() {\n  1\n}", False),
        ("x = 1 + \\", True),
        ("xs = [1,", True),
    ],
    ids=["complete", "open-body", "closed-body", "backslash", "open-list"],
)
def test_needs_continuation(text: str, expected: bool) -> None:
    assert needs_continuation(text) is expected


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("x\u200b = \ufeff1\r") == "x = 1"


def test_slash_reset_replaces_frame(frame, capsys: pytest.CaptureFixture[str]) -> None:
    frame.define("x", OrcNumber(1))
    box = [frame]

    assert _handle_slash("/reset", box)

    assert box[0] is not frame
    assert not box[0].has("x")
    assert box[0].has("argv")
    assert "Environment reset." in capsys.readouterr().out


def test_slash_paths_fall_through_to_shell(frame) -> None:
    box = [frame]

    assert not _handle_slash("/bin/ls -l", box)
    assert not _handle_slash("x = 1", box)


def test_slash_py_traceback_toggle(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("ORCA_DEBUG_PY_TRACE", raising=False)
    box = [make_frame()]

    assert _handle_slash("/py-traceback on", box)
    assert capsys.readouterr().out == "Python traceback: on\n"

    assert _handle_slash("/py-traceback", box)
    assert capsys.readouterr().out == "Python traceback: off\n"

    assert _handle_slash("/py-traceback maybe", box)
    assert "Usage: /py-traceback" in capsys.readouterr().err


def _style_of(fragments, text: str) -> str:
    for style, chunk in fragments:
        if chunk == text:
            return style
    raise AssertionError(f"{text!r} not found in {fragments!r}")


def test_highlight_groups() -> None:
    fragments = _highlight_line("func add(a) { return 'x' + 2 } # tail")

    assert "".join(chunk for _, chunk in fragments) == "func add(a) { return 'x' + 2 } # tail"
    assert _style_of(fragments, "func") == GROUP_STYLE["keyword"]
    assert _style_of(fragments, "add") == GROUP_STYLE["function"]
    assert _style_of(fragments, "return") == GROUP_STYLE["keyword"]
    assert _style_of(fragments, "'x'") == GROUP_STYLE["string"]
    assert _style_of(fragments, "2") == GROUP_STYLE["number"]
    assert _style_of(fragments, "# tail") == GROUP_STYLE["comment"]


def test_highlight_constants() -> None:
    fragments = _highlight_line("x = [true, none]")

    assert _style_of(fragments, "true") == GROUP_STYLE["boolean"]
    assert _style_of(fragments, "none") == GROUP_STYLE["constant"]


def test_highlight_unlexable_line_is_plain() -> None:
    assert _highlight_line("x = 'open") == [("", "x = 'open")]


def test_lex_document_per_line() -> None:
    get_line = OrcaLexer().lex_document(Document("x = 1\n# note"))

    assert _style_of(get_line(0), "1") == GROUP_STYLE["number"]
    assert get_line(1) == [(GROUP_STYLE["comment"], "# note")]
    assert get_line(5) == [("", "")]
