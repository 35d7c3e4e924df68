from __future__ import annotations

import logging
from typing import Callable, Dict, List
from .types import (
    OrcNone, OrcNumber, OrcString, OrcBool, OrcList, OrcRange, OrcFn,
    OrcValue, Frame, Returning,
    OrcaRuntimeError, OrcaTypeError, OrcaArityError, OrcaIndexError,
    UndefinedVariableError, UnknownMethodError, InvalidRangeError, ShellCommandError,
    Method, MethodRegistry, Builtins,
    kind_name,
)
from .utils import value_in_list

log = logging.getLogger(__name__)

def register_method(registry: MethodRegistry, name: str):
    def dec(fn: Callable[..., OrcValue]):
        registry[name] = fn
        return fn

    return dec

def register_list(name: str):
    return register_method(Builtins.list_methods, name)

def register_string(name: str):
    return register_method(Builtins.string_methods, name)

# ---------- Index helpers ----------

def coerce_index(value: OrcValue, context: str) -> int:
    """Indices are integral Numbers; anything else is a type error."""
    if not isinstance(value, OrcNumber):
        raise OrcaTypeError(f"{context} expects a Number index, got {kind_name(value)}")

    num = value.value
    if num != num or num in (float("inf"), float("-inf")) or not num.is_integer():
        raise OrcaTypeError(f"{context} expects an integral index, got {value!r}")

    return int(num)

def check_bounds(index: int, length: int, context: str, allow_end: bool = False) -> int:
    limit = length if allow_end else length - 1

    if index < 0 or index > limit:
        raise OrcaIndexError(f"{context} index {index} out of bounds for length {length}")

    return index

def _expect_arity(kind: str, method: str, args: List[OrcValue], expected: int) -> None:
    if len(args) != expected:
        raise OrcaArityError(f"{kind}.{method} expects {expected} argument(s); got {len(args)}")

def _string_arg(method: str, arg: OrcValue) -> str:
    if isinstance(arg, OrcString):
        return arg.value

    raise OrcaTypeError(f"String.{method} expects a String argument, got {kind_name(arg)}")

# ---------- List methods ----------

@register_list("len")
def _list_len(_frame: Frame, recv: OrcList, args: List[OrcValue]) -> OrcNumber:
    _expect_arity("List", "len", args, 0)

    return OrcNumber(float(len(recv.items)))

@register_list("pop")
def _list_pop(_frame: Frame, recv: OrcList, args: List[OrcValue]) -> OrcValue:
    _expect_arity("List", "pop", args, 0)

    if not recv.items:
        return OrcNone()

    return recv.items.pop()

@register_list("push")
def _list_push(_frame: Frame, recv: OrcList, args: List[OrcValue]) -> OrcNumber:
    _expect_arity("List", "push", args, 1)
    recv.items.append(args[0])

    return OrcNumber(float(len(recv.items)))

@register_list("remove")
def _list_remove(_frame: Frame, recv: OrcList, args: List[OrcValue]) -> OrcValue:
    _expect_arity("List", "remove", args, 1)
    idx = check_bounds(coerce_index(args[0], "List.remove"), len(recv.items), "List.remove")

    return recv.items.pop(idx)

@register_list("contains")
def _list_contains(_frame: Frame, recv: OrcList, args: List[OrcValue]) -> OrcBool:
    _expect_arity("List", "contains", args, 1)

    return OrcBool(value_in_list(recv.items, args[0]))

@register_list("insert")
def _list_insert(_frame: Frame, recv: OrcList, args: List[OrcValue]) -> OrcNone:
    _expect_arity("List", "insert", args, 2)
    idx = check_bounds(coerce_index(args[0], "List.insert"), len(recv.items), "List.insert", allow_end=True)
    recv.items.insert(idx, args[1])

    return OrcNone()

# ---------- String methods ----------

@register_string("len")
def _string_len(_frame: Frame, recv: OrcString, args: List[OrcValue]) -> OrcNumber:
    _expect_arity("String", "len", args, 0)

    return OrcNumber(float(len(recv.value)))

@register_string("pop")
def _string_pop(_frame: Frame, recv: OrcString, args: List[OrcValue]) -> OrcValue:
    _expect_arity("String", "pop", args, 0)

    if not recv.value:
        return OrcNone()

    last = recv.value[-1]
    recv.value = recv.value[:-1]

    return OrcString(last)

@register_string("push")
def _string_push(_frame: Frame, recv: OrcString, args: List[OrcValue]) -> OrcNumber:
    _expect_arity("String", "push", args, 1)
    recv.value += _string_arg("push", args[0])

    return OrcNumber(float(len(recv.value)))

@register_string("remove")
def _string_remove(_frame: Frame, recv: OrcString, args: List[OrcValue]) -> OrcString:
    _expect_arity("String", "remove", args, 1)
    idx = check_bounds(coerce_index(args[0], "String.remove"), len(recv.value), "String.remove")
    removed = recv.value[idx]
    recv.value = recv.value[:idx] + recv.value[idx + 1:]

    return OrcString(removed)

@register_string("contains")
def _string_contains(_frame: Frame, recv: OrcString, args: List[OrcValue]) -> OrcBool:
    _expect_arity("String", "contains", args, 1)

    return OrcBool(_string_arg("contains", args[0]) in recv.value)

@register_string("insert")
def _string_insert(_frame: Frame, recv: OrcString, args: List[OrcValue]) -> OrcNone:
    _expect_arity("String", "insert", args, 2)
    idx = check_bounds(coerce_index(args[0], "String.insert"), len(recv.value), "String.insert", allow_end=True)
    text = _string_arg("insert", args[1])
    recv.value = recv.value[:idx] + text + recv.value[idx:]

    return OrcNone()

@register_string("trim")
def _string_trim(_frame: Frame, recv: OrcString, args: List[OrcValue]) -> OrcString:
    _expect_arity("String", "trim", args, 0)

    return OrcString(recv.value.strip())

# ---------- Dispatch ----------

def call_builtin_method(recv: OrcValue, name: str, args: List[OrcValue], frame: 'Frame') -> OrcValue:
    registry_by_type: Dict[type, MethodRegistry] = {
        OrcList: Builtins.list_methods,
        OrcString: Builtins.string_methods,
    }

    registry = registry_by_type.get(type(recv))
    if registry:
        handler = registry.get(name)
        if handler is not None:
            return handler(frame, recv, args)

    raise UnknownMethodError(recv, name)

def call_fn(fn: OrcFn, positional: List[OrcValue]) -> OrcValue:
    """
    Call semantics:
    - the callee scope is parented at the closure frame, never the caller's
    - arity must match len(fn.params) exactly
    - `return` unwinds to here; falling off the end yields none
    """
    from .eval.blocks import eval_statements  # local import to avoid cycle

    if len(positional) != len(fn.params):
        raise OrcaArityError(
            f"Function '{fn.name}' expects {len(fn.params)} argument(s); got {len(positional)}"
        )

    callee_frame = Frame(parent=fn.frame)

    for name, val in zip(fn.params, positional):
        callee_frame.define(name, val)

    log.debug("call %s with %d argument(s)", fn.name, len(positional))

    try:
        result = eval_statements(fn.body, callee_frame)
    except RecursionError as exc:
        raise OrcaRuntimeError(f"Maximum recursion depth exceeded in '{fn.name}'") from exc

    if isinstance(result, Returning):
        return result.value

    return OrcNone()
