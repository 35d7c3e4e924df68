from __future__ import annotations

from typing import Any, Callable, List, Optional

from ..runtime import Frame, OrcNone, OrcValue, Returning
from ..tree import Node, Tree, tree_children

EvalFunc = Callable[[Node, Frame], Any]

def eval_program(children: List[Node], frame: Frame, eval_func: EvalFunc) -> OrcValue:
    """Run top-level statements in frame, returning the last value.

    A top-level `return` stops the program and its value becomes the result.
    """
    result: Any = OrcNone()

    for child in children:
        result = eval_func(child, frame)

        if isinstance(result, Returning):
            return result.value

    return result

def eval_statements(block: Tree, frame: Frame, eval_func: Optional[EvalFunc] = None) -> OrcValue | Returning:
    """Run a block's statements directly in frame; a Returning stops the run and is handed back."""
    if eval_func is None:
        from ..evaluator import eval_node as eval_func  # local import to avoid cycle

    result: Any = OrcNone()

    for child in tree_children(block):
        result = eval_func(child, frame)

        if isinstance(result, Returning):
            return result

    return result

def eval_block(block: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue | Returning:
    """Every block entry gets a fresh child scope."""
    return eval_statements(block, Frame(parent=frame), eval_func)

def eval_return_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> Returning:
    if not n.children:
        return Returning(OrcNone())

    return Returning(eval_func(n.children[0], frame))
