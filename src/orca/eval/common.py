from __future__ import annotations

from typing import Any, Callable, List, Optional

from lark import Token

from ..runtime import Frame, OrcNumber, OrcString, OrcValue, OrcaRuntimeError, OrcaTypeError, kind_name
from ..tree import Node, is_token, tree_children

EvalFunc = Callable[[Node, Frame], Any]

def token_kind(node: Any) -> Optional[str]:
    if not is_token(node):
        return None
    tok: Token = node
    return str(tok.type)

def expect_ident_token(node: Any, context: str) -> str:
    if is_token(node) and token_kind(node) == 'IDENT':
        return str(node.value)

    raise OrcaRuntimeError(f"{context} must be an identifier")

def ident_token_value(node: Any) -> Optional[str]:
    if is_token(node) and token_kind(node) == 'IDENT':
        return str(node.value)

    return None

def require_number(value: OrcValue, context: str) -> float:
    if not isinstance(value, OrcNumber):
        raise OrcaTypeError(f"{context} expects a Number, got {kind_name(value)}")
    return value.value

def token_number(token: Token, _: Any) -> OrcNumber:
    return OrcNumber(float(token.value))

def token_string(token: Token, _: Any) -> OrcString:
    # Fresh object per evaluation: strings are mutable
    return OrcString(str(token.value))

def eval_args(args_node: Node, frame: Frame, eval_func: EvalFunc) -> List[OrcValue]:
    return [eval_func(child, frame) for child in tree_children(args_node)]
