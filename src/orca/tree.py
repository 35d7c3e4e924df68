"""Shared helpers for working with the lark Tree/Token nodes the parser builds."""
from __future__ import annotations
from typing import List, Optional, TypeGuard
from typing_extensions import TypeAlias

from lark import Token, Tree
from lark.tree import Meta

from .token_types import Tok

Node: TypeAlias = Tree | Token

__all__ = [
    "Node", "Token", "Tree",
    "is_tree", "is_token", "tree_label", "tree_children", "node_meta",
    "meta_from", "token_from",
]


def is_tree(node: Node) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Node) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def node_meta(node: Node) -> Optional[Meta]:
    """Position info for a node, or None when the node carries none."""
    if is_token(node):
        return node if node.line is not None else None

    meta = getattr(node, "_meta", None)
    if meta is None or getattr(meta, "empty", True):
        return None

    return meta

def meta_from(tok: Tok) -> Meta:
    """Build a lark Meta positioned at a lexer token."""
    meta = Meta()
    meta.line = tok.line
    meta.column = tok.column
    meta.start_pos = tok.start
    meta.end_pos = tok.end
    meta.empty = False
    return meta

def token_from(type_: str, tok: Tok, value: Optional[str] = None) -> Token:
    """Build a lark Token borrowing the position of a lexer token."""
    text = tok.value if value is None else value
    return Token(type_, text, start_pos=tok.start, line=tok.line, column=tok.column, end_pos=tok.end)
