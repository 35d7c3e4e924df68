from __future__ import annotations

from typing import Callable

from ..runtime import (
    Frame,
    OrcFn,
    OrcList,
    OrcString,
    OrcValue,
    OrcaTypeError,
    call_builtin_method,
    call_fn,
    check_bounds,
    coerce_index,
    kind_name,
)
from ..tree import Node, Tree
from .common import eval_args, expect_ident_token

EvalFunc = Callable[[Node, Frame], OrcValue]

def eval_call(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue:
    callee_node, args_node = n.children
    callee = eval_func(callee_node, frame)
    args = eval_args(args_node, frame, eval_func)

    if not isinstance(callee, OrcFn):
        raise OrcaTypeError(f"{kind_name(callee)} is not callable")

    return call_fn(callee, args)

def eval_membercall(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue:
    recv_node, name_node, args_node = n.children
    recv = eval_func(recv_node, frame)
    name = expect_ident_token(name_node, "Member name")
    args = eval_args(args_node, frame, eval_func)

    return call_builtin_method(recv, name, args, frame)

def eval_index(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue:
    recv_node, index_node = n.children
    recv = eval_func(recv_node, frame)
    index = eval_func(index_node, frame)

    return index_value(recv, index)

def index_value(recv: OrcValue, index: OrcValue) -> OrcValue:
    match recv:
        case OrcList(items=items):
            idx = check_bounds(coerce_index(index, "List"), len(items), "List")
            return items[idx]
        case OrcString(value=text):
            idx = check_bounds(coerce_index(index, "String"), len(text), "String")
            return OrcString(text[idx])
        case _:
            raise OrcaTypeError(f"Cannot index {kind_name(recv)}")
