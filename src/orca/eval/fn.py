from __future__ import annotations

from typing import Any, List

from ..runtime import Frame, OrcFn, OrcNone, OrcaRuntimeError
from ..tree import Node, Tree, tree_children, tree_label
from .common import expect_ident_token as _expect_ident_token, ident_token_value as _ident_token_value

def extract_param_names(params_node: Any, context: str = "parameter list") -> List[str]:
    if params_node is None:
        return []

    names: List[str] = []

    for p in tree_children(params_node):
        name = _ident_token_value(p)

        if name is None:
            raise OrcaRuntimeError(f"Unsupported parameter node in {context}: {p}")
        names.append(name)

    return names

def eval_fn_def(n: Tree, frame: Frame) -> OrcNone:
    """Bind a closure over the defining frame under its name in the current scope."""
    name_node, params_node, body = n.children
    name = _expect_ident_token(name_node, "Function name")

    if tree_label(params_node) != 'paramlist' or tree_label(body) != 'block':
        raise OrcaRuntimeError("Malformed function definition")

    params = extract_param_names(params_node, context="function definition")
    frame.define(name, OrcFn(name=name, params=params, body=body, frame=frame))

    return OrcNone()
