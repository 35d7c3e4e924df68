from __future__ import annotations

import logging
import sys
import traceback
from contextlib import contextmanager
from pathlib import Path
from typing import AbstractSet, Iterator, List, Optional, TextIO, Tuple

from .evaluator import eval_expr
from .lexer import LexError
from .parser import ParseError, Parser
from .runtime import Frame, OrcList, OrcString, OrcValue, OrcaRuntimeError
from .shell import ShellBridge
from .tree import Tree
from .utils import debug_py_trace_enabled, log_level

log = logging.getLogger(__name__)

_USAGE = "usage: orca [--debug] [SCRIPT | -] [ARGS...]"

# Each Orca call costs about fifteen Python frames
RECURSION_LIMIT = 12_000

# Statement forms whose value is never echoed by the REPL
_STMT_LABELS = {'assign', 'indexassign', 'fndef', 'forstmt', 'returnstmt'}

@contextmanager
def _call_depth() -> Iterator[None]:
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, RECURSION_LIMIT))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)

def parse_source(src: str, commands: Optional[AbstractSet[str]]=None) -> Tree:
    return Parser(src, commands).parse()

def make_frame(shell: Optional[str]=None, argv: Optional[List[str]]=None) -> Frame:
    """Root environment for one script run or REPL session."""
    frame = Frame(shell=ShellBridge(shell=shell))
    frame.define("argv", OrcList([OrcString(arg) for arg in (argv or [])]))
    return frame

def run(src: str, frame: Optional[Frame]=None, commands: Optional[AbstractSet[str]]=None, shell: Optional[str]=None) -> OrcValue:
    """Lex, parse and evaluate a whole source text; returns the last statement's value."""
    ast = parse_source(src, commands)

    if frame is None:
        frame = make_frame(shell=shell)

    with _call_depth():
        return eval_expr(ast, frame)

def repl_eval(src: str, frame: Frame, commands: Optional[AbstractSet[str]]=None) -> Tuple[OrcValue, bool]:
    """Evaluate one REPL entry; the flag is True when the entry ended in a statement form."""
    ast = parse_source(src, commands)
    with _call_depth():
        result = eval_expr(ast, frame)

    last = ast.children[-1] if ast.children else None
    stmt = last is None or getattr(last, 'data', None) in _STMT_LABELS

    return result, stmt

def report_error(exc: Exception, stream: Optional[TextIO]=None) -> None:
    out = stream or sys.stderr
    print(f"Error: {exc}", file=out)

    if debug_py_trace_enabled() and isinstance(exc, OrcaRuntimeError):
        print("\nPython traceback:", file=out)
        print("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), file=out, end="")

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")

    return arg

def configure_logging(debug: bool=False) -> None:
    level = logging.DEBUG if debug else log_level()
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

def main(argv: Optional[List[str]]=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    debug = False
    script: Optional[str] = None
    script_args: List[str] = []

    for token in args:
        if script is not None:
            script_args.append(token)
            continue

        if token == "--debug":
            debug = True
            continue

        if token in ("-h", "--help"):
            print(_USAGE)
            return 0

        script = token

    configure_logging(debug)

    if script is None:
        from .repl import repl  # prompt_toolkit is only needed interactively
        repl()
        return 0

    try:
        source = _load_source(script)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    log.debug("running %s with %d argument(s)", script, len(script_args))
    frame = make_frame(argv=[script] + script_args)

    try:
        run(source, frame=frame)
    except (LexError, ParseError, OrcaRuntimeError) as exc:
        report_error(exc)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
