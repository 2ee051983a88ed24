"""Image signatures analyzer: classify collected signature evidence into a verdict."""

from __future__ import annotations

import json
from typing import Dict, List, Optional

from pydantic import ValidationError

from troubleshoot.analyze.conditional import FactTable, evaluate_outcomes, first_fail_outcome
from troubleshoot.analyze.files import CollectedFiles
from troubleshoot.core.errors import AnalyzerError, ConditionalError
from troubleshoot.core.models import (
    AnalyzeResult,
    ImageSignaturesAnalyzeSpec,
    ImageSignaturesInfo,
    parse_bool_or_string,
)

ICON_KEY = "kubernetes_image_signatures"
EVIDENCE_GLOB = "image-signatures/*.json"


def evidence_path(collector_name: str) -> str:
    return f"image-signatures/{collector_name}.json"


class AnalyzeImageSignatures:
    analyzer_type = "imageSignatures"

    def __init__(self, analyzer: ImageSignaturesAnalyzeSpec) -> None:
        self.analyzer = analyzer

    def title(self) -> str:
        return self.analyzer.check_name or "Image Signatures"

    def is_excluded(self) -> bool:
        return self.analyzer.is_excluded()

    def analyze(self, files: CollectedFiles) -> List[AnalyzeResult]:
        """
        Raises:
            AnalyzerError: the evidence is unparseable or an outcome condition is malformed.
        """
        strict = parse_bool_or_string(self.analyzer.strict)
        data = self._find_evidence(files)
        if not data:
            return [self._missing_data_result(strict)]

        try:
            info = parse_signature_data(data)
        except ValueError as e:
            raise AnalyzerError(f"failed to unmarshal image signatures result: {e}") from e

        facts = count_signatures(info)
        try:
            result = evaluate_outcomes(
                self.analyzer.outcomes,
                facts,
                title=self.title(),
                icon_key=ICON_KEY,
                strict=strict,
                default_message=default_message(facts),
            )
        except ConditionalError as e:
            raise AnalyzerError(f"failed to compare signature conditional: {e}") from e
        return [result]

    def _find_evidence(self, files: CollectedFiles) -> Optional[bytes]:
        if self.analyzer.collector_name:
            try:
                return files.get_file(evidence_path(self.analyzer.collector_name))
            except FileNotFoundError:
                return None
        # No collector name: use the first signatures file found.
        for data in files.find_files(EVIDENCE_GLOB).values():
            return data
        return None

    def _missing_data_result(self, strict: bool) -> AnalyzeResult:
        # Without evidence the first fail outcome applies regardless of its condition.
        fail = first_fail_outcome(self.analyzer.outcomes)
        if fail is not None:
            return AnalyzeResult(
                title=self.title(), is_fail=True, message=fail.message, uri=fail.uri, icon_key=ICON_KEY, strict=strict
            )
        return AnalyzeResult(
            title=self.title(),
            is_fail=True,
            message="No image signature data was collected",
            icon_key=ICON_KEY,
            strict=strict,
        )


def parse_signature_data(data: bytes) -> ImageSignaturesInfo:
    if not data:
        raise ValueError("empty signature data")
    try:
        return ImageSignaturesInfo.model_validate(json.loads(data))
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        raise ValueError(f"failed to parse signature JSON: {e}") from e


def count_signatures(info: ImageSignaturesInfo) -> FactTable:
    """
    Facts:
    - signed: images with at least one verified, error-free signature
    - unsigned: images without one
    - errors: images that could not be checked at all
    """
    counts: Dict[str, int] = {"signed": 0, "unsigned": 0, "errors": 0}
    for image in info.images:
        if image.error:
            counts["errors"] += 1
            continue
        if any(sig.verified and not sig.error for sig in image.signatures or []):
            counts["signed"] += 1
        else:
            counts["unsigned"] += 1
    return FactTable(counts)


def default_message(facts: FactTable) -> str:
    total = facts["signed"] + facts["unsigned"] + facts["errors"]
    return (
        f"Analyzed {total} images: {facts['signed']} signed, "
        f"{facts['unsigned']} unsigned, {facts['errors']} errors"
    )
