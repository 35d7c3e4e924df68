"""Evaluator helper modules for the Orca runtime."""

__all__ = [
    "bind",
    "blocks",
    "common",
    "expr",
    "fn",
    "helpers",
    "literals",
    "loops",
    "postfix",
]
