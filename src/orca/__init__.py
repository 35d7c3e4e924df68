"""Orca: a small scripting language that mixes imperative code with shell commands."""

import logging

from .lexer import LexError, tokenize
from .parser import ParseError, parse
from .runner import run
from .types import (
    Frame,
    InvalidRangeError,
    OrcaArityError,
    OrcaIndexError,
    OrcaRuntimeError,
    OrcaTypeError,
    ShellCommandError,
    UndefinedVariableError,
    UnknownMethodError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Frame",
    "InvalidRangeError",
    "LexError",
    "OrcaArityError",
    "OrcaIndexError",
    "OrcaRuntimeError",
    "OrcaTypeError",
    "ParseError",
    "ShellCommandError",
    "UndefinedVariableError",
    "UnknownMethodError",
    "parse",
    "run",
    "tokenize",
]
