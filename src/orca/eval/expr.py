from __future__ import annotations

import math
from typing import Callable

from lark import Token

from ..runtime import (
    Frame,
    OrcBool,
    OrcNumber,
    OrcString,
    OrcValue,
    OrcaRuntimeError,
    OrcaTypeError,
    kind_name,
)
from ..tree import Node, Tree
from ..utils import orc_equals, stringify
from .common import require_number
from .helpers import is_truthy

EvalFunc = Callable[[Node, Frame], OrcValue]

_COMPARISONS = {
    '<': lambda a, b: a < b,
    '>': lambda a, b: a > b,
    '<=': lambda a, b: a <= b,
    '>=': lambda a, b: a >= b,
}

def eval_unary(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue:
    op, rhs_node = n.children
    rhs = eval_func(rhs_node, frame)

    match op:
        case Token(value='-'):
            return OrcNumber(-require_number(rhs, "unary '-'"))
        case Token(value='!'):
            return OrcBool(not is_truthy(rhs))
        case _:
            raise OrcaRuntimeError(f"Unsupported unary op {op}")

def eval_binop(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue:
    lhs_node, op, rhs_node = n.children
    lhs = eval_func(lhs_node, frame)
    rhs = eval_func(rhs_node, frame)

    return apply_binary_operator(str(op.value), lhs, rhs)

def eval_logical(n: Tree, frame: Frame, eval_func: EvalFunc) -> OrcValue:
    """Short-circuit; the deciding operand is returned unchanged."""
    lhs_node, op, rhs_node = n.children
    lhs = eval_func(lhs_node, frame)

    if op.value == '||':
        return lhs if is_truthy(lhs) else eval_func(rhs_node, frame)

    return eval_func(rhs_node, frame) if is_truthy(lhs) else lhs

def apply_binary_operator(op: str, lhs: OrcValue, rhs: OrcValue) -> OrcValue:
    match op:
        case '+':
            if isinstance(lhs, OrcString) or isinstance(rhs, OrcString):
                return OrcString(stringify(lhs) + stringify(rhs))
            a, b = _numbers(op, lhs, rhs)
            return OrcNumber(a + b)
        case '-':
            a, b = _numbers(op, lhs, rhs)
            return OrcNumber(a - b)
        case '*':
            a, b = _numbers(op, lhs, rhs)
            return OrcNumber(a * b)
        case '/':
            a, b = _numbers(op, lhs, rhs)
            return OrcNumber(_divide(a, b))
        case '^':
            a, b = _numbers(op, lhs, rhs)
            return OrcNumber(_power(a, b))
        case '==':
            return OrcBool(orc_equals(lhs, rhs))
        case '!=':
            return OrcBool(not orc_equals(lhs, rhs))
        case '<' | '>' | '<=' | '>=':
            return OrcBool(_compare(op, lhs, rhs))
        case _:
            raise OrcaRuntimeError(f"Unknown operator {op}")

def _numbers(op: str, lhs: OrcValue, rhs: OrcValue) -> tuple[float, float]:
    if isinstance(lhs, OrcNumber) and isinstance(rhs, OrcNumber):
        return lhs.value, rhs.value

    raise OrcaTypeError(f"Unsupported operand kinds for '{op}': {kind_name(lhs)} and {kind_name(rhs)}")

def _compare(op: str, lhs: OrcValue, rhs: OrcValue) -> bool:
    match (lhs, rhs):
        case (OrcNumber(value=a), OrcNumber(value=b)):
            return _COMPARISONS[op](a, b)
        case (OrcString(value=a), OrcString(value=b)):
            return _COMPARISONS[op](a, b)
        case _:
            raise OrcaTypeError(f"Cannot compare {kind_name(lhs)} and {kind_name(rhs)} with '{op}'")

def _divide(a: float, b: float) -> float:
    # IEEE-754: x/0 is a signed infinity, 0/0 is nan
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)

    return a / b

def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0 and b.is_integer() and int(b) % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        if a == 0:
            return math.inf
        return math.nan
