from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(float(raw))
    except ValueError:
        return default


@dataclass(frozen=True)
class TroubleshootConfig:
    # Ingestion policy default (CLI --strict overrides)
    strict: bool
    log_level: str

    # Collection
    registry_timeout_seconds: float
    collector_concurrency: int
    bundle_dir: Optional[str]


@lru_cache(maxsize=1)
def load_config() -> TroubleshootConfig:
    """
    Load configuration from environment variables.

    Malformed numeric values fall back to defaults; lower bounds are enforced.
    """
    timeout = _env_float("TROUBLESHOOT_REGISTRY_TIMEOUT_SECONDS", 10.0)
    if timeout < 1:
        timeout = 1.0
    concurrency = _env_int("TROUBLESHOOT_COLLECTOR_CONCURRENCY", 4)
    if concurrency < 1:
        concurrency = 1

    return TroubleshootConfig(
        strict=_env_bool("TROUBLESHOOT_STRICT", False),
        log_level=((os.getenv("TROUBLESHOOT_LOG_LEVEL") or "").strip() or "INFO").upper(),
        registry_timeout_seconds=timeout,
        collector_concurrency=concurrency,
        bundle_dir=(os.getenv("TROUBLESHOOT_BUNDLE_DIR") or "").strip() or None,
    )
