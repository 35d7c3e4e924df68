"""Shell bridge: `$name` substitution, process spawning and output capture."""
from __future__ import annotations

import logging
import os
import subprocess
import sys
from functools import lru_cache
from typing import FrozenSet, Iterable, Optional, Sequence, TextIO, Tuple

from .types import (
    Frame,
    OrcList,
    OrcNone,
    OrcString,
    OrcValue,
    OrcaRuntimeError,
    ShellCommandError,
)
from .utils import shell_executable, stringify

log = logging.getLogger(__name__)

Segment = Tuple[str, str]  # ("text" | "var", text)


@lru_cache(maxsize=None)
def _scan_path(path: str) -> FrozenSet[str]:
    names = set()

    for directory in path.split(os.pathsep):
        if not directory:
            continue

        try:
            entries = os.scandir(directory)
        except OSError:
            continue

        with entries:
            for entry in entries:
                try:
                    if entry.is_file() and os.access(entry.path, os.X_OK):
                        names.add(entry.name)
                except OSError:
                    continue

    log.debug("found %d executables on PATH", len(names))
    return frozenset(names)


def known_commands() -> FrozenSet[str]:
    """Names of executables reachable through PATH (scanned once per PATH value)."""
    return _scan_path(os.environ.get("PATH", os.defpath))


def substitute(value: OrcValue) -> str:
    """Text a `$name` marker expands to; lists expand to space separated words."""
    if isinstance(value, OrcList):
        return " ".join(stringify(item) for item in value.items)

    return stringify(value)


def strip_trailing_newline(text: str) -> str:
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


class ShellBridge:
    """
    Runs command lines through the configured shell.

    Output streams are resolved at call time so redirected sys.stdout and
    sys.stderr are honoured.
    """

    def __init__(self, shell: Optional[str] = None, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self._shell = shell
        self._out = out
        self._err = err

    @property
    def shell(self) -> str:
        return self._shell or shell_executable()

    @property
    def out(self) -> TextIO:
        return self._out or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err or sys.stderr

    def render(self, words: Iterable[Sequence[Segment]], frame: Frame) -> str:
        rendered = []

        for word in words:
            parts = []
            for kind, text in word:
                if kind == "var":
                    parts.append(substitute(frame.get(text)))
                else:
                    parts.append(text)
            rendered.append("".join(parts))

        return " ".join(rendered)

    def run(self, cmd: str) -> subprocess.CompletedProcess:
        """Spawn cmd and block until it exits; stderr is forwarded, never captured."""
        log.debug("running %r via %s", cmd, self.shell)

        try:
            result = subprocess.run(
                cmd, shell=True, capture_output=True, text=True, errors="replace", executable=self.shell,
            )
        except OSError as exc:
            raise OrcaRuntimeError(f"Command execution failed: {exc}") from exc

        log.debug("command %r exited with status %d", cmd, result.returncode)

        if result.stderr:
            self.err.write(result.stderr)
            self.err.flush()

        if result.returncode != 0:
            raise ShellCommandError(cmd, result.returncode, result.stdout, result.stderr)

        return result

    def capture(self, cmd: str) -> OrcString:
        """Expression position: stdout becomes a String, one trailing newline removed."""
        result = self.run(cmd)
        return OrcString(strip_trailing_newline(result.stdout))

    def passthrough(self, cmd: str) -> OrcNone:
        """Statement position: stdout is echoed unchanged."""
        result = self.run(cmd)

        if result.stdout:
            self.out.write(result.stdout)
            self.out.flush()

        return OrcNone()


_default_bridge: Optional[ShellBridge] = None


def bridge_for(frame: Frame) -> ShellBridge:
    global _default_bridge

    if frame.shell is not None:
        return frame.shell

    if _default_bridge is None:
        _default_bridge = ShellBridge()

    return _default_bridge
