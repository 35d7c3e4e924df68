from __future__ import annotations

from ..runtime import OrcBool, OrcList, OrcNone, OrcNumber, OrcString, OrcValue

def is_truthy(val: OrcValue) -> bool:
    match val:
        case OrcBool(value=b):
            return b
        case OrcNone():
            return False
        case OrcNumber(value=num):
            return num != 0
        case OrcString(value=s):
            return bool(s)
        case OrcList(items=items):
            return bool(items)
        case _:
            return True
