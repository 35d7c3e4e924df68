from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, Optional
from lark import Token

from .runtime import (
    Frame,
    OrcBool,
    OrcNone,
    OrcValue,
    OrcaRuntimeError,
    Returning,
)

from .tree import Node, Tree, is_token, node_meta

from .eval.bind import eval_assign, eval_index_assign
from .eval.blocks import eval_block, eval_program, eval_return_stmt
from .eval.common import token_number, token_string
from .eval.expr import eval_binop, eval_logical, eval_unary
from .eval.fn import eval_fn_def
from .eval.literals import eval_list, eval_shellcmd, eval_template
from .eval.loops import eval_for_stmt, eval_if_stmt, eval_range
from .eval.postfix import eval_call, eval_index, eval_membercall

EvalFunc = Callable[[Node, Frame], OrcValue]


def _maybe_attach_location(exc: OrcaRuntimeError, node: Node) -> None:
    if getattr(exc, "_augmented", False):
        return

    meta = node_meta(node)

    if meta is not None and getattr(meta, "line", None) is not None:
        exc.orc_meta = SimpleNamespace(line=meta.line, column=meta.column)
        exc._augmented = True  # type: ignore[attr-defined]

# ---------------- Public API ----------------

def eval_expr(ast: Node, frame: Optional[Frame]=None) -> OrcValue:
    """Evaluate a parsed program (or any node) and return its value."""
    if frame is None:
        frame = Frame()

    try:
        if isinstance(ast, Tree) and ast.data == 'program':
            return eval_program(ast.children, frame, eval_node)

        result = eval_node(ast, frame)
        return result.value if isinstance(result, Returning) else result
    except OrcaRuntimeError as e:
        _maybe_attach_location(e, ast)
        raise

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> OrcValue:
    try:
        return _eval_node_inner(n, frame)
    except OrcaRuntimeError as e:
        _maybe_attach_location(e, n)
        raise


def _eval_node_inner(n: Node, frame: Frame) -> OrcValue:
    if is_token(n):
        return _eval_token(n, frame)

    d = n.data
    handler = _NODE_DISPATCH.get(d)
    if handler is not None:
        return handler(n, frame)

    match d:
        case 'program':
            return eval_program(n.children, frame, eval_node)
        case 'block':
            return eval_block(n, frame, eval_node)
        case _:
            raise OrcaRuntimeError(f"Unknown node: {d}")

# ---------------- Tokens ----------------

def _eval_token(t: Token, frame: Frame) -> OrcValue:
    handler = _TOKEN_DISPATCH.get(t.type)
    if handler:
        return handler(t, frame)

    if t.type == 'IDENT':
        return frame.get(t.value)

    raise OrcaRuntimeError(f"Unhandled token {t.type}:{t.value}")

# ---------------- Dispatch ----------------

_NODE_DISPATCH: dict[str, Callable[[Tree, Frame], OrcValue]] = {
    'assign': lambda n, frame: eval_assign(n, frame, eval_node),
    'indexassign': lambda n, frame: eval_index_assign(n, frame, eval_node),
    'ifstmt': lambda n, frame: eval_if_stmt(n, frame, eval_node),
    'forstmt': lambda n, frame: eval_for_stmt(n, frame, eval_node),
    'fndef': eval_fn_def,
    'returnstmt': lambda n, frame: eval_return_stmt(n, frame, eval_node),
    'binop': lambda n, frame: eval_binop(n, frame, eval_node),
    'logical': lambda n, frame: eval_logical(n, frame, eval_node),
    'unary': lambda n, frame: eval_unary(n, frame, eval_node),
    'range': lambda n, frame: eval_range(n, frame, eval_node),
    'call': lambda n, frame: eval_call(n, frame, eval_node),
    'membercall': lambda n, frame: eval_membercall(n, frame, eval_node),
    'index': lambda n, frame: eval_index(n, frame, eval_node),
    'list': lambda n, frame: eval_list(n, frame, eval_node),
    'template': eval_template,
    'shellcmd': eval_shellcmd,
}

_TOKEN_DISPATCH: dict[str, Callable[[Token, Frame], OrcValue]] = {
    'NUMBER': token_number,
    'STRING': token_string,
    'TRUE': lambda _, __: OrcBool(True),
    'FALSE': lambda _, __: OrcBool(False),
    'NONE': lambda _, __: OrcNone(),
}
