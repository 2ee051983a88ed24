"""Build collectors from loaded specs and run them concurrently."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from troubleshoot.collect.base import Collector, send_progress
from troubleshoot.collect.host_block_device import CollectHostBlockDevices
from troubleshoot.collect.image_signatures import CollectImageSignatures
from troubleshoot.collect.registry_client import HttpRegistryClient, RegistryClient
from troubleshoot.collect.result import CollectorResult
from troubleshoot.config import load_config
from troubleshoot.core.errors import TroubleshootError
from troubleshoot.core.models import (
    BlockDevicesCollectorSpec,
    ImageSignaturesCollectorSpec,
    TroubleshootObject,
)
from troubleshoot.loader.kinds import TroubleshootKinds

logger = logging.getLogger(__name__)


@dataclass
class CollectionRun:
    result: CollectorResult = field(default_factory=CollectorResult)
    # collector title -> error message
    errors: Dict[str, str] = field(default_factory=dict)


def _entries(specs: List[TroubleshootObject], attr: str) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for spec in specs:
        out.extend(getattr(spec.spec, attr) or [])
    return out


def build_collectors(
    kinds: TroubleshootKinds,
    *,
    bundle_path: Optional[str] = None,
    namespace: str = "default",
    registry_client: Optional[RegistryClient] = None,
    k8s_client: Optional[Any] = None,
    cancel: Optional[threading.Event] = None,
) -> List[Collector]:
    """
    Collectors for every supported entry, in declaration order. Excluded collectors are dropped.

    Unknown collector types are skipped. A supported entry that doesn't validate raises
    TroubleshootError.
    """
    if registry_client is None:
        registry_client = HttpRegistryClient(timeout=load_config().registry_timeout_seconds)

    collectors: List[Collector] = []
    in_cluster = _entries([*kinds.collectors, *kinds.support_bundles, *kinds.preflights], "collectors")
    for entry in in_cluster:
        if "imageSignatures" not in entry:
            logger.debug("Skipping unsupported collector %s", sorted(entry))
            continue
        try:
            spec = ImageSignaturesCollectorSpec.model_validate(entry["imageSignatures"] or {})
        except ValidationError as e:
            raise TroubleshootError(f"invalid imageSignatures collector: {e}") from e
        collectors.append(
            CollectImageSignatures(
                spec,
                registry_client=registry_client,
                bundle_path=bundle_path,
                namespace=namespace,
                k8s_client=k8s_client,
                cancel=cancel,
            )
        )

    # HostCollector and HostPreflight list host collectors under `collectors`; SupportBundle uses `hostCollectors`.
    on_host = _entries([*kinds.host_collectors, *kinds.host_preflights], "collectors")
    on_host.extend(_entries(list(kinds.support_bundles), "host_collectors"))
    for entry in on_host:
        if "blockDevices" not in entry:
            logger.debug("Skipping unsupported host collector %s", sorted(entry))
            continue
        try:
            spec = BlockDevicesCollectorSpec.model_validate(entry["blockDevices"] or {})
        except ValidationError as e:
            raise TroubleshootError(f"invalid blockDevices collector: {e}") from e
        collectors.append(CollectHostBlockDevices(spec, bundle_path=bundle_path))

    kept: List[Collector] = []
    for c in collectors:
        try:
            excluded = c.is_excluded()
        except ValueError as e:
            raise TroubleshootError(f"{c.title()}: invalid exclude value: {e}") from e
        if excluded:
            logger.info("Excluding %q collector", c.title())
            continue
        kept.append(c)
    return kept


def _collect_safe(collector: Collector, progress: Optional["queue.Queue[Any]"]) -> CollectorResult:
    send_progress(progress, f"{collector.title()}: started")
    return collector.collect(progress)


def run_collectors(
    collectors: List[Collector],
    *,
    progress: Optional["queue.Queue[Any]"] = None,
    cancel: Optional[threading.Event] = None,
    max_workers: Optional[int] = None,
) -> CollectionRun:
    """
    Run collectors on a thread pool.

    A failing collector is recorded in `errors` and does not stop the others. Results are merged in
    collector order, so overlapping paths resolve the same way on every run.
    """
    run = CollectionRun()
    if not collectors:
        return run

    workers = max_workers or load_config().collector_concurrency
    results: Dict[int, CollectorResult] = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {}
        for idx, c in enumerate(collectors):
            if cancel is not None and cancel.is_set():
                run.errors[c.title()] = "collection cancelled"
                continue
            futures[executor.submit(_collect_safe, c, progress)] = idx
        for fut in as_completed(futures):
            idx = futures[fut]
            title = collectors[idx].title()
            try:
                results[idx] = fut.result()
            except TroubleshootError as e:
                logger.error("Collector %s failed: %s", title, e)
                run.errors[title] = str(e)
                send_progress(progress, f"{title}: failed: {e}")
            except Exception as e:
                logger.exception("Collector %s crashed", title)
                run.errors[title] = f"{type(e).__name__}: {e}"
                send_progress(progress, f"{title}: failed: {e}")

    for idx in sorted(results):
        run.result.merge(results[idx])
    return run
