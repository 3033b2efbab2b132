from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the repo root is importable (so `import pgseed` and `tests.*` work without installing).
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

_ENV_KEYS = ("PG_HOST", "PG_PORT", "PG_USER", "PG_PASSWORD", "PG_DATABASE", "PG_SCHEMA", "LOG_LEVEL", "LOG_JSON")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Settings read the environment; keep the developer's shell out of unit tests.
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
