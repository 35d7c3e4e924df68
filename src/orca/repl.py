"""Interactive REPL for Orca, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys
from typing import Callable, Dict, List, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer import LexError, tokenize
from .parser import ParseError
from .repl_highlight import OrcaLexer
from .runner import make_frame, repl_eval, report_error
from .runtime import Frame, OrcNone, OrcaRuntimeError
from .token_types import TT
from .utils import debug_py_trace_enabled, display

_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

_TRACE_ENV = "ORCA_DEBUG_PY_TRACE"

_BRACKET_DELTA = {
    TT.LPAR: 1, TT.LSQB: 1, TT.LBRACE: 1,
    TT.RPAR: -1, TT.RSQB: -1, TT.RBRACE: -1,
}

_ON_WORDS = ("on", "1", "true", "yes")
_OFF_WORDS = ("off", "0", "false", "no")

FrameBox = List[Frame]


def open_depth(text: str) -> int:
    """Number of brackets still open at the end of *text*."""
    try:
        tokens = tokenize(text)
    except LexError:
        return 0

    depth = 0
    for tok in tokens:
        depth = max(depth + _BRACKET_DELTA.get(tok.type, 0), 0)

    return depth


def needs_continuation(text: str) -> bool:
    """Return True while brackets are open or the last line ends with a backslash."""
    if text.rstrip("\n").endswith("\\"):
        return True

    return open_depth(text) > 0


# ---------------- Slash commands ----------------

def _set_py_traceback(enabled: bool) -> None:
    if enabled:
        os.environ[_TRACE_ENV] = "1"
    else:
        os.environ.pop(_TRACE_ENV, None)


def _cmd_clear(arg: str, frame_box: FrameBox) -> None:
    clear()


def _cmd_py_traceback(arg: str, frame_box: FrameBox) -> None:
    word = arg.lower()

    if word in _ON_WORDS:
        _set_py_traceback(True)
    elif word in _OFF_WORDS:
        _set_py_traceback(False)
    elif not word:
        _set_py_traceback(not debug_py_trace_enabled())
    else:
        print("Usage: /py-traceback [on|off]", file=sys.stderr)
        return

    print(f"Python traceback: {'on' if debug_py_trace_enabled() else 'off'}")


def _cmd_reset(arg: str, frame_box: FrameBox) -> None:
    frame_box[0] = make_frame()
    print("Environment reset.")


SlashHandler = Callable[[str, FrameBox], None]

# name => (handler, description, argument hint)
_SLASH_CMDS: Dict[str, Tuple[SlashHandler, str, str]] = {
    "/clear": (_cmd_clear, "Clear the terminal screen", ""),
    "/py-traceback": (_cmd_py_traceback, "Toggle Python traceback on errors", "[on|off]"),
    "/reset": (_cmd_reset, "Reset the REPL environment", ""),
}


class _SlashCompleter(Completer):
    """Complete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for name, (_, desc, _hint) in _SLASH_CMDS.items():
            if name.startswith(text):
                yield Completion(name, start_position=-len(text), display_meta=desc)


def _handle_slash(line: str, frame_box: FrameBox) -> bool:
    """Run a slash command; False means the line belongs to the evaluator."""
    name, _, arg = line.strip().partition(" ")

    entry = _SLASH_CMDS.get(name)
    if entry is None:
        # /bin/ls and other absolute paths are shell commands
        return False

    entry[0](arg.strip(), frame_box)
    return True


def _normalize(text: str) -> str:
    return _INVISIBLE_RE.sub("", text)


# ---------------- Session ----------------

def _eval_and_print(text: str, frame: Frame) -> None:
    try:
        result, stmt = repl_eval(text, frame)
    except (ParseError, LexError, OrcaRuntimeError) as exc:
        report_error(exc)
        return

    if not stmt and not isinstance(result, OrcNone):
        print(display(result))


def _key_bindings() -> KeyBindings:
    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer

        if not needs_continuation(buf.text):
            buf.validate_and_handle()
            return

        buf.insert_text("\n" + "    " * open_depth(buf.text))

    return bindings


def repl() -> None:
    """Read-eval-print loop; the frame lives in a box so /reset can swap it."""
    frame_box: FrameBox = [make_frame()]

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=OrcaLexer(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=_key_bindings(),
        multiline=True,
        prompt_continuation="... ",
    )

    print("orca repl: Ctrl-D to exit, / for commands")

    while True:
        try:
            text = _normalize(session.prompt(">>> "))
        except EOFError:
            print()
            return
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        if not text.strip() or _handle_slash(text, frame_box):
            continue

        _eval_and_print(text, frame_box[0])
