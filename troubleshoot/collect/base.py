from __future__ import annotations

import queue
from typing import Any, Optional, Protocol

from troubleshoot.collect.result import CollectorResult


class Collector(Protocol):
    """
    Collector contract.

    Collectors are designed to be:
    - read-only (they gather evidence, never change the cluster or host)
    - partial-failure tolerant (one bad item is recorded in the output, not raised)
    - cancellable (stop promptly once the run's cancel event is set)
    """

    def title(self) -> str:
        """Display name, also used in progress messages."""

    def is_excluded(self) -> bool:
        """Return True if the spec asked for this collector to be skipped."""

    def collect(self, progress: Optional["queue.Queue[Any]"] = None) -> CollectorResult:
        """Gather evidence. Raise only when nothing at all could be collected."""


def send_progress(progress: Optional["queue.Queue[Any]"], message: Any) -> None:
    """Offer a progress message without ever blocking; dropped if the consumer is slow or gone."""
    if progress is None:
        return
    try:
        progress.put_nowait(message)
    except queue.Full:
        pass
