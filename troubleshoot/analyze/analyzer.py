"""Run the analyzers declared in loaded specs against collected artifacts."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from troubleshoot.analyze.files import CollectedFiles
from troubleshoot.analyze.image_signatures import AnalyzeImageSignatures
from troubleshoot.core.errors import AnalyzerError
from troubleshoot.core.models import AnalyzeResult, ImageSignaturesAnalyzeSpec, TroubleshootObject
from troubleshoot.loader.kinds import TroubleshootKinds

logger = logging.getLogger(__name__)

# analyzer type key -> (spec model, analyzer class)
ANALYZER_TYPES = {
    "imageSignatures": (ImageSignaturesAnalyzeSpec, AnalyzeImageSignatures),
}


def analyzer_entries(kinds: TroubleshootKinds) -> List[Dict[str, Any]]:
    """Analyzer entries from Analyzer, Preflight and SupportBundle specs, in load order."""
    specs: List[TroubleshootObject] = [*kinds.analyzers, *kinds.preflights, *kinds.support_bundles]
    out: List[Dict[str, Any]] = []
    for spec in specs:
        out.extend(spec.spec.analyzers or [])
    return out


def get_analyzer(entry: Dict[str, Any]) -> Optional[AnalyzeImageSignatures]:
    """Build the analyzer for one entry; None when the entry holds no known analyzer type."""
    for key, (model, cls) in ANALYZER_TYPES.items():
        if key not in entry:
            continue
        try:
            return cls(model.model_validate(entry[key] or {}))
        except ValidationError as e:
            raise AnalyzerError(f"invalid {key} analyzer: {e}") from e
    return None


def analyze_one(entry: Dict[str, Any], files: CollectedFiles) -> List[AnalyzeResult]:
    """Run a single analyzer entry. Errors propagate to the caller."""
    analyzer = get_analyzer(entry)
    if analyzer is None:
        logger.debug("Skipping unsupported analyzer %s", sorted(entry))
        return []
    try:
        if analyzer.is_excluded():
            logger.debug("Excluding %q analyzer", analyzer.title())
            return []
    except ValueError as e:
        raise AnalyzerError(f"invalid exclude value: {e}") from e
    return analyzer.analyze(files)


def analyze(entries: Iterable[Dict[str, Any]], files: CollectedFiles) -> List[AnalyzeResult]:
    """
    Run every analyzer entry in order.

    A broken analyzer does not stop the others: it contributes a single fail result that carries
    its error, so misconfiguration is always visible in the output.
    """
    results: List[AnalyzeResult] = []
    for entry in entries:
        try:
            results.extend(analyze_one(entry, files))
        except (AnalyzerError, ValueError) as e:
            name = ", ".join(sorted(entry)) or "unknown"
            logger.error("Analyzer %s failed: %s", name, e)
            results.append(AnalyzeResult(title="Analyzer Failed", is_fail=True, message=f"{name}: {e}"))
    return results


def analyze_kinds(kinds: TroubleshootKinds, files: CollectedFiles) -> List[AnalyzeResult]:
    return analyze(analyzer_entries(kinds), files)
