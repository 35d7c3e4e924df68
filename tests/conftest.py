from __future__ import annotations

from collections import Counter
from typing import List

import pytest

from orca.runner import make_frame
from orca.runtime import Frame

# Variables that change interpreter behavior when set on the host
_ORCA_ENV = ("ORCA_SHELL", "ORCA_DEBUG_PY_TRACE", "ORCA_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_orca_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ORCA_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def frame() -> Frame:
    """Fresh root environment with an empty argv."""
    return make_frame()


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Scenario tables are keyed by id; a repeated id would hide a case."""
    del session, config

    counts = Counter(item.nodeid for item in items)
    duplicates = sorted(nodeid for nodeid, count in counts.items() if count > 1)
    if duplicates:
        lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
        raise pytest.UsageError(f"Duplicate test ids in scenario tables:\n{lines}")
