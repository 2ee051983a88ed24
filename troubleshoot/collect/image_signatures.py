"""Collect cosign signatures for a list of container images.

Every image gets exactly one entry in the output, failed ones included: per-image problems are
recorded on the entry, never raised.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from typing import Any, List, Optional

from troubleshoot.collect.base import send_progress
from troubleshoot.collect.errors import (
    classify_auth_error,
    classify_reference_error,
    classify_registry_error,
    is_air_gapped_registry,
)
from troubleshoot.collect.images import parse_image_ref
from troubleshoot.collect.registry_auth import get_image_auth_config
from troubleshoot.collect.registry_client import RegistryClient, SignatureInfo
from troubleshoot.collect.result import CollectorResult
from troubleshoot.core.errors import RegistryAccessError, RegistryAuthError
from troubleshoot.core.models import (
    ImageSignatureData,
    ImageSignaturesCollectorSpec,
    ImageSignaturesInfo,
    Signature,
)

logger = logging.getLogger(__name__)

AIR_GAPPED_SKIP_MESSAGE = "signature verification skipped: air-gapped environment detected"
NO_SIGNATURES_MESSAGE = "no signatures found for this image"
CANCELLED_MESSAGE = "collection cancelled"


def _format_signatures(infos: List[SignatureInfo]) -> List[Signature]:
    return [Signature(verified=i.verified, signature=i.signature, error=i.error) for i in infos]


class CollectImageSignatures:
    def __init__(
        self,
        collector: ImageSignaturesCollectorSpec,
        *,
        registry_client: RegistryClient,
        bundle_path: Optional[str] = None,
        namespace: str = "default",
        k8s_client: Optional[Any] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.collector = collector
        self.registry_client = registry_client
        self.bundle_path = bundle_path
        self.namespace = collector.namespace or namespace
        self.k8s_client = k8s_client
        self.cancel = cancel

    def title(self) -> str:
        if self.collector.collector_name:
            return f"image-signatures/{self.collector.collector_name}"
        return "image-signatures"

    def is_excluded(self) -> bool:
        return self.collector.is_excluded()

    def output_path(self) -> str:
        return f"image-signatures/{self.collector.collector_name or 'signatures'}.json"

    def _collect_image(self, image: str) -> ImageSignatureData:
        data = ImageSignatureData(image=image)

        if not image.strip():
            logger.error("empty image name provided")
            data.error = "empty image name provided"
            return data

        try:
            ref = parse_image_ref(image)
        except ValueError as e:
            logger.error("failed to parse image name %s: %s", image, e)
            data.error = classify_reference_error(image, e)
            return data

        try:
            auth = get_image_auth_config(
                self.namespace, self.collector.image_pull_secrets, ref, client=self.k8s_client
            )
        except RegistryAuthError as e:
            logger.error("failed to get auth config for %s: %s", image, e)
            data.error = classify_auth_error(e)
            return data
        logger.debug("%s authentication for image %s", "Using" if auth else "No", image)

        try:
            self.registry_client.check_access(ref, auth)
        except RegistryAccessError as e:
            logger.error("registry access validation failed for %s: %s", image, e)
            if is_air_gapped_registry(ref.registry_host):
                logger.info("Detected air-gapped registry for %s, skipping signature lookup", image)
                data.signatures = [Signature(verified=False, signature="", error=AIR_GAPPED_SKIP_MESSAGE)]
            else:
                _, data.error = classify_registry_error(e)
            return data

        try:
            infos = self.registry_client.fetch_signatures(ref, auth)
        except RegistryAccessError as e:
            logger.error("failed to fetch signatures for %s: %s", image, e)
            data.error = f"failed to fetch signatures: {e}"
            return data

        data.signatures = _format_signatures(infos) or [
            Signature(verified=False, signature="", error=NO_SIGNATURES_MESSAGE)
        ]
        logger.debug("Processed signatures for image %s: found %d signatures", image, len(data.signatures))
        return data

    def collect(self, progress: Optional["queue.Queue[Any]"] = None) -> CollectorResult:
        info = ImageSignaturesInfo()
        images = self.collector.images
        for idx, image in enumerate(images):
            if self.cancel is not None and self.cancel.is_set():
                logger.info("Collection cancelled, %d images left unprocessed", len(images) - idx)
                info.images.extend(ImageSignatureData(image=i, error=CANCELLED_MESSAGE) for i in images[idx:])
                break
            try:
                entry = self._collect_image(image)
            except Exception as e:
                logger.exception("Unexpected failure collecting signatures for %s", image)
                entry = ImageSignatureData(image=image, error=f"failed to collect signatures: {e}")
            info.images.append(entry)
            send_progress(progress, f"{self.title()}: processed {idx + 1}/{len(images)} images")

        body = json.dumps(info.model_dump(exclude_none=True), indent=2)
        output = CollectorResult()
        output.save_result(self.bundle_path, self.output_path(), body)
        return output
