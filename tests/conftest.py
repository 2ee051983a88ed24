"""
Pytest config.

Tests import the local `troubleshoot/` package straight from the checkout, so the repo root must
be on sys.path even when a global `pytest` entrypoint is used and nothing was installed.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch: pytest.MonkeyPatch):
    """Config is cached per process; drop it around every test so env changes take effect."""
    from troubleshoot.config import load_config

    for name in (
        "TROUBLESHOOT_STRICT",
        "TROUBLESHOOT_LOG_LEVEL",
        "TROUBLESHOOT_REGISTRY_TIMEOUT_SECONDS",
        "TROUBLESHOOT_COLLECTOR_CONCURRENCY",
        "TROUBLESHOOT_BUNDLE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()
