"""Shared setup for the mobjc interpreter suite: import paths and a node-id guard."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

# `tests.support` imports resolve from the repo root, `mobjc_ref` from src/
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Abort collection when two scenario ids in the mobjc tables collide.

    Parametrized scenario tables use hand-written ids, so a copy-pasted id
    would otherwise silently shadow a program case in the report.
    """
    del session
    del config

    counts: Dict[str, int] = {}
    for item in items:
        counts[item.nodeid] = counts.get(item.nodeid, 0) + 1

    clashes = sorted(nodeid for nodeid, n in counts.items() if n > 1)
    if clashes:
        listing = "\n".join(f"- {nodeid}" for nodeid in clashes)
        raise pytest.UsageError(f"Scenario ids collide in the mobjc suite:\n{listing}")
