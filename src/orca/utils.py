from __future__ import annotations

import logging
import os as _os
from typing import List, Optional

from .types import (
    OrcValue,
    OrcNone,
    OrcNumber,
    OrcString,
    OrcBool,
    OrcList,
    OrcRange,
    OrcFn,
    format_number,
)

DEFAULT_SHELL = "/bin/sh"

_TRUTHY_ENV = {"1", "true", "yes", "on"}


def value_in_list(seq: List[OrcValue], value: OrcValue) -> bool:
    for existing in seq:
        if orc_equals(existing, value):
            return True

    return False


def orc_equals(lhs: OrcValue, rhs: OrcValue) -> bool:
    match (lhs, rhs):
        case (OrcNone(), OrcNone()):
            return True
        case (OrcNumber(value=a), OrcNumber(value=b)):
            return a == b
        case (OrcString(value=a), OrcString(value=b)):
            return a == b
        case (OrcBool(value=a), OrcBool(value=b)):
            return a == b
        case (OrcList(items=items_a), OrcList(items=items_b)):
            return len(items_a) == len(items_b) and all(
                orc_equals(a, b) for a, b in zip(items_a, items_b)
            )
        case (OrcRange(), OrcRange()):
            return (lhs.start, lhs.end, lhs.step) == (rhs.start, rhs.end, rhs.step)
        case (OrcFn(), OrcFn()):
            return lhs is rhs
        case _:
            return False


def stringify(value: Optional[OrcValue]) -> str:
    """Text form used by templates, concatenation and shell substitution."""
    if isinstance(value, OrcString):
        return value.value

    if isinstance(value, OrcNumber):
        return format_number(value.value)

    if isinstance(value, OrcBool):
        return "true" if value.value else "false"

    if isinstance(value, OrcNone) or value is None:
        return ""

    return repr(value)


def display(value: OrcValue) -> str:
    """Form shown by the REPL: strings quoted, none spelled out."""
    return repr(value)


# ---------- Configuration ----------

def env_flag(name: str) -> bool:
    return _os.environ.get(name, "").strip().lower() in _TRUTHY_ENV


def debug_py_trace_enabled() -> bool:
    return env_flag("ORCA_DEBUG_PY_TRACE")


def shell_executable() -> str:
    return _os.environ.get("ORCA_SHELL") or DEFAULT_SHELL


def log_level(default: int = logging.WARNING) -> int:
    """Resolve ORCA_LOG_LEVEL to a logging level, falling back to default."""
    name = _os.environ.get("ORCA_LOG_LEVEL", "").strip().upper()
    if not name:
        return default

    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default
