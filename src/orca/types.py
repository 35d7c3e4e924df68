from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, TypeVar
from typing_extensions import Protocol, TypeAlias
from .tree import Node

# ---------- Value Model ----------

@dataclass
class OrcNone:
    def __repr__(self) -> str:
        return "none"

@dataclass
class OrcNumber:
    value: float
    def __repr__(self) -> str:
        return format_number(self.value)

@dataclass
class OrcString:
    """Mutable text; member calls rebind ``value`` on the shared object."""
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass
class OrcBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass
class OrcList:
    items: List['OrcValue']
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.items) + "]"

@dataclass(frozen=True)
class OrcRange:
    """Half-open numeric range; iteration is lazy and never mutates the range."""
    start: float
    end: float
    step: float

    @property
    def default_step(self) -> float:
        return -1.0 if self.end < self.start else 1.0

    def __iter__(self) -> Iterator[OrcNumber]:
        k = 0

        while True:
            current = self.start + k * self.step
            if self.step > 0 and current >= self.end:
                return
            if self.step < 0 and current <= self.end:
                return
            yield OrcNumber(current)
            k += 1

    def __repr__(self) -> str:
        text = f"{format_number(self.start)}..{format_number(self.end)}"
        if self.step != self.default_step:
            text += f"..{format_number(self.step)}"
        return text

@dataclass(eq=False)
class OrcFn:
    name: str
    params: List[str]
    body: Node        # AST block
    frame: 'Frame'    # Closure frame
    def __repr__(self) -> str:
        return f"func {self.name}({', '.join(self.params)})"

OrcValue: TypeAlias = (
    OrcNone
    | OrcNumber
    | OrcString
    | OrcBool
    | OrcList
    | OrcRange
    | OrcFn
)

_KIND_NAMES = {
    OrcNone: "None",
    OrcNumber: "Number",
    OrcString: "String",
    OrcBool: "Bool",
    OrcList: "List",
    OrcRange: "Range",
    OrcFn: "Function",
}

def kind_name(value: OrcValue) -> str:
    return _KIND_NAMES.get(type(value), type(value).__name__)

def format_number(v: float) -> str:
    if v != v:
        return "nan"
    if v in (float("inf"), float("-inf")):
        return "inf" if v > 0 else "-inf"
    return str(int(v)) if v.is_integer() else repr(v)

@dataclass
class Returning:
    """Control signal carried up from `return` to the nearest call boundary."""
    value: OrcValue

# ---------- Environment ----------

class Frame:
    def __init__(self, parent: Optional['Frame']=None, shell: Optional[Any]=None):
        self.parent = parent
        self.vars: Dict[str, OrcValue] = {}
        self.shell: Optional[Any]  # ShellBridge, shared down the chain

        if shell is not None:
            self.shell = shell
        elif parent is not None:
            self.shell = parent.shell
        else:
            self.shell = None

    def define(self, name: str, val: OrcValue) -> None:
        self.vars[name] = val

    def get(self, name: str) -> OrcValue:
        if name in self.vars:
            return self.vars[name]

        if self.parent is not None:
            return self.parent.get(name)

        raise UndefinedVariableError(name)

    def has(self, name: str) -> bool:
        if name in self.vars:
            return True

        return self.parent is not None and self.parent.has(name)

    def set(self, name: str, val: OrcValue) -> None:
        if name in self.vars:
            self.vars[name] = val
            return

        if self.parent is not None:
            self.parent.set(name, val)
            return

        raise UndefinedVariableError(name)

    def assign(self, name: str, val: OrcValue) -> None:
        """Rebind in the nearest scope holding name, else create it here."""
        if self.has(name):
            self.set(name, val)
        else:
            self.define(name, val)

# ---------- Exceptions ----------

class OrcaRuntimeError(Exception):
    orc_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.orc_meta = None

    def __str__(self) -> str:
        msg = super().__str__()

        meta = getattr(self, "orc_meta", None)
        if meta is None:
            return msg

        line = getattr(meta, "line", None)
        col = getattr(meta, "column", None)

        if line is None:
            return msg

        if col is None:
            return f"{msg} (line {line})"

        return f"{msg} (line {line}, col {col})"

class OrcaTypeError(OrcaRuntimeError):
    pass

class OrcaArityError(OrcaRuntimeError):
    pass

class OrcaIndexError(OrcaRuntimeError):
    def __init__(self, message: str = "Index out of bounds"):
        super().__init__(message)

class UndefinedVariableError(OrcaRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Undefined variable '{name}'")
        self.name = name

class UnknownMethodError(OrcaRuntimeError):
    def __init__(self, recv: OrcValue, name: str):
        super().__init__(f"{kind_name(recv)} has no method '{name}'")
        self.receiver = recv
        self.name = name

class InvalidRangeError(OrcaRuntimeError):
    pass

class ShellCommandError(OrcaRuntimeError):
    def __init__(self, cmd: str, code: int, stdout: str, stderr: str):
        super().__init__(f"Command failed with exit code {code}: {cmd}")
        self.cmd = cmd
        self.code = code
        self.stdout = stdout
        self.stderr = stderr

# ---------- Builtin registries ----------

R_contra = TypeVar("R_contra", bound="OrcValue", contravariant=True)

class Method(Protocol[R_contra]):
    def __call__(self, frame: 'Frame', recv: R_contra, args: List['OrcValue']) -> 'OrcValue': ...

MethodRegistry = Dict[str, Method[OrcValue]]

class Builtins:
    list_methods: MethodRegistry = {}
    string_methods: MethodRegistry = {}
