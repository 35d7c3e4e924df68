from __future__ import annotations

from typing import Callable, List, Tuple

from ..runtime import Frame, OrcList, OrcString, OrcValue, OrcaRuntimeError
from ..shell import bridge_for
from ..tree import Node, Tree, is_token, tree_children
from ..utils import stringify

EvalFunc = Callable[[Node, Frame], OrcValue]

def eval_list(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcList:
    return OrcList([eval_func(child, frame) for child in n.children])

def eval_template(n: Tree, frame: Frame) -> OrcString:
    parts: List[str] = []

    for part in n.children:
        if part.type == 'VAR':
            parts.append(stringify(frame.get(part.value)))
        else:
            parts.append(part.value)

    return OrcString("".join(parts))

def _word_segments(word: Node) -> List[Tuple[str, str]]:
    segments = []

    for part in tree_children(word):
        if not is_token(part):
            raise OrcaRuntimeError("Unexpected node in shell word")
        segments.append(("var" if part.type == 'VAR' else "text", str(part.value)))

    return segments

def eval_shellcmd(n: Tree, frame: Frame) -> OrcValue:
    """Substitute, run and either capture (expression) or echo (statement) the output."""
    mode, *words = n.children

    if len(words) == 1 and getattr(words[0], 'data', None) == 'bareword':
        name = str(words[0].children[0].value)
        if frame.has(name):
            return frame.get(name)

    bridge = bridge_for(frame)
    cmd = bridge.render([_word_segments(word) for word in words], frame)

    if mode.value == 'stmt':
        return bridge.passthrough(cmd)

    return bridge.capture(cmd)
