from __future__ import annotations

from typing import Any, Callable, Iterator, Optional

from ..runtime import (
    Frame,
    InvalidRangeError,
    OrcList,
    OrcNone,
    OrcRange,
    OrcString,
    OrcValue,
    OrcaTypeError,
    Returning,
    kind_name,
)
from ..tree import Node, Tree, tree_label
from .blocks import eval_block, eval_statements
from .common import expect_ident_token, require_number
from .helpers import is_truthy

EvalFunc = Callable[[Node, Frame], Any]

def eval_if_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue | Returning:
    """Run the first branch whose condition holds; else the fallback, if any."""
    for branch in n.children:
        if tree_label(branch) == 'elseblock':
            return eval_block(branch.children[0], frame, eval_func)

        cond, body = branch.children

        if is_truthy(eval_func(cond, frame)):
            return eval_block(body, frame, eval_func)

    return OrcNone()

def eval_for_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue | Returning:
    var_node, iter_node, body = n.children
    name = expect_ident_token(var_node, "Loop variable")
    iterable = eval_func(iter_node, frame)

    for item in iterate_values(iterable):
        loop_frame = Frame(parent=frame)
        loop_frame.define(name, item)
        result = eval_statements(body, loop_frame, eval_func)

        if isinstance(result, Returning):
            return result

    return OrcNone()

def iterate_values(value: OrcValue) -> Iterator[OrcValue]:
    match value:
        case OrcRange():
            return iter(value)
        case OrcList():
            return _iter_list(value)
        case OrcString(value=text):
            # Snapshot: mutating the string inside the loop does not change the walk
            return (OrcString(ch) for ch in text)
        case _:
            raise OrcaTypeError(f"Cannot iterate over {kind_name(value)}")

def _iter_list(lst: OrcList) -> Iterator[OrcValue]:
    # Bound fixed at entry; elements are read live and a shrinking list ends the walk
    count = len(lst.items)

    for idx in range(count):
        if idx >= len(lst.items):
            return
        yield lst.items[idx]

def eval_range(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcRange:
    start = eval_func(n.children[0], frame)
    end = eval_func(n.children[1], frame)
    step = eval_func(n.children[2], frame) if len(n.children) > 2 else None

    return make_range(start, end, step)

def make_range(start: OrcValue, end: OrcValue, step: Optional[OrcValue] = None) -> OrcRange:
    a = require_number(start, "Range start")
    b = require_number(end, "Range end")

    if step is None:
        return OrcRange(a, b, -1.0 if b < a else 1.0)

    s = require_number(step, "Range step")

    if not (s > 0 or s < 0):
        raise InvalidRangeError(f"Range step must be a non-zero number, got {step!r}")

    if (b - a) * s < 0:
        raise InvalidRangeError(f"Range step {step!r} does not move from {start!r} toward {end!r}")

    return OrcRange(a, b, s)
