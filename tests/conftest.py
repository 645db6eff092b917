from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure repo root is importable for all tests, regardless of nested test layout.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _hermetic_env(monkeypatch):
    # Tests pick seeds and devices explicitly.
    monkeypatch.delenv("MATGRAPH_SEED", raising=False)
    monkeypatch.delenv("MATGRAPH_DEVICE", raising=False)
