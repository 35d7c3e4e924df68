from __future__ import annotations

from typing import Callable

from ..runtime import (
    Frame,
    OrcList,
    OrcNone,
    OrcString,
    OrcValue,
    OrcaTypeError,
    check_bounds,
    coerce_index,
    kind_name,
)
from ..tree import Node, Tree
from .common import expect_ident_token

EvalFunc = Callable[[Node, Frame], OrcValue]

def eval_assign(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcNone:
    """`name = value`: rebinds where name already lives, else creates it here."""
    target, value_node = n.children
    name = expect_ident_token(target, "Assignment target")
    value = eval_func(value_node, frame)
    frame.assign(name, value)

    return OrcNone()

def eval_index_assign(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcNone:
    recv_node, index_node, value_node = n.children
    recv = eval_func(recv_node, frame)
    index = eval_func(index_node, frame)
    value = eval_func(value_node, frame)
    set_index_value(recv, index, value)

    return OrcNone()

def set_index_value(recv: OrcValue, index: OrcValue, value: OrcValue) -> None:
    match recv:
        case OrcList(items=items):
            idx = check_bounds(coerce_index(index, "List"), len(items), "List")
            items[idx] = value
        case OrcString(value=text):
            idx = check_bounds(coerce_index(index, "String"), len(text), "String")
            if not isinstance(value, OrcString):
                raise OrcaTypeError(f"String index assignment expects a String, got {kind_name(value)}")
            recv.value = text[:idx] + value.value + text[idx + 1:]
        case _:
            raise OrcaTypeError(f"Cannot index {kind_name(recv)}")
