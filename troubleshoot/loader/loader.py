"""Load troubleshoot specs from raw YAML text.

Pipeline (single-threaded, order preserving):
1. split multi-document inputs
2. classify each document: Secret/ConfigMap wrapper, troubleshoot kind, or foreign (skipped)
3. extract embedded specs from wrappers
4. canonicalize every spec to v1beta2
5. decode and aggregate into `TroubleshootKinds`

Malformed documents are skipped, or abort the load when `strict` is set. Invariant violations
always abort.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from troubleshoot.core.constants import TROUBLESHOOT_API_VERSIONS, WRAPPER_KEYS
from troubleshoot.core.errors import (
    ConversionError,
    DecodeError,
    InvariantViolationError,
    SpecIssueError,
)
from troubleshoot.core.models import ConfigMap, Secret
from troubleshoot.core.yamlutil import split_documents, split_yaml
from troubleshoot.loader.decoder import Decoder, DocumentHeader, decode_header, get_default_decoder
from troubleshoot.loader.docrewrite import convert_to_v1beta2
from troubleshoot.loader.kinds import TroubleshootKinds

logger = logging.getLogger(__name__)

WRAPPER_SECRET = "secret"
WRAPPER_CONFIGMAP = "configmap"
DIRECT = "direct"
FOREIGN = "foreign"


@dataclass
class LoadOptions:
    raw_specs: List[str] = field(default_factory=list)
    raw_spec: str = ""

    # If True, any invalid document aborts the load; otherwise invalid documents are skipped.
    strict: bool = False


def load_specs(options: LoadOptions, decoder: Optional[Decoder] = None) -> TroubleshootKinds:
    """
    Load every troubleshoot spec found in `options.raw_specs` (+ `options.raw_spec`).

    Documents may be multi-document YAML separated by `---`. Secrets and ConfigMaps have their
    support bundle, redactor and preflight specs extracted; all other non-troubleshoot documents
    are ignored.

    Raises:
        SpecIssueError: strict mode and a document is invalid, or an invariant was violated.
    """
    raw_specs = list(options.raw_specs or [])
    raw_specs.append(options.raw_spec or "")
    loader = SpecLoader(strict=options.strict, decoder=decoder or get_default_decoder())
    return loader.load_from_strings(raw_specs)


def classify(header: DocumentHeader) -> str:
    if header.kind == "Secret" and header.api_version == "v1":
        return WRAPPER_SECRET
    if header.kind == "ConfigMap" and header.api_version == "v1":
        return WRAPPER_CONFIGMAP
    if header.api_version in TROUBLESHOOT_API_VERSIONS:
        return DIRECT
    return FOREIGN


def specs_from_secret(secret: Secret) -> List[str]:
    """
    Extract embedded specs from a Secret.

    `data` is checked for every key before `stringData`; a key present in both yields both.
    """
    specs: List[str] = []
    for key in WRAPPER_KEYS:
        if key in secret.data:
            specs.extend(split_yaml(secret.data[key].decode("utf-8", errors="replace")))
    for key in WRAPPER_KEYS:
        if key in secret.string_data:
            specs.extend(split_yaml(secret.string_data[key]))
    return specs


def specs_from_configmap(cm: ConfigMap) -> List[str]:
    specs: List[str] = []
    for key in WRAPPER_KEYS:
        if key in cm.data:
            specs.extend(split_yaml(cm.data[key]))
    return specs


class SpecLoader:
    def __init__(self, *, strict: bool, decoder: Decoder) -> None:
        self.strict = strict
        self.decoder = decoder

    def _skip_or_raise(self, err: Exception, message: str, doc: str) -> None:
        if not self.strict:
            logger.debug("Skipping invalid document: %s: %s", message, err)
            return
        raise SpecIssueError(f"{message}: {err}: '{doc}'", document=doc) from err

    def load_from_strings(self, raw_specs: List[str]) -> TroubleshootKinds:
        split_docs: List[str] = []

        for raw_doc in split_documents(raw_specs):
            try:
                header = decode_header(raw_doc)
            except DecodeError as e:
                self._skip_or_raise(e, "failed to parse yaml", raw_doc)
                continue

            kind_class = classify(header)
            if kind_class in (WRAPPER_SECRET, WRAPPER_CONFIGMAP):
                extracted = self._extract_from_wrapper(raw_doc)
                if extracted is not None:
                    split_docs.extend(extracted)
            elif kind_class == DIRECT:
                split_docs.append(raw_doc)
            else:
                logger.debug("Skip loading %r kind", header.kind)

        return self.load_from_split_docs(split_docs)

    def _extract_from_wrapper(self, raw_doc: str) -> Optional[List[str]]:
        try:
            obj = self.decoder.decode(raw_doc)
        except DecodeError as e:
            self._skip_or_raise(e, "failed to decode raw spec", raw_doc)
            return None

        if isinstance(obj, Secret):
            return specs_from_secret(obj)
        if isinstance(obj, ConfigMap):
            return specs_from_configmap(obj)
        raise InvariantViolationError(f"{type(obj).__name__} type is not a Secret or ConfigMap", document=raw_doc)

    def load_from_split_docs(self, split_docs: List[str]) -> TroubleshootKinds:
        kinds = TroubleshootKinds()

        for doc in split_docs:
            try:
                converted = convert_to_v1beta2(doc)
            except ConversionError as e:
                self._skip_or_raise(e, "failed to convert doc to troubleshoot.sh/v1beta2 kind", doc)
                continue

            try:
                obj = self.decoder.decode(converted)
            except DecodeError as e:
                self._skip_or_raise(e, "failed to decode", converted)
                continue

            try:
                kinds.append(obj)
            except InvariantViolationError as e:
                raise InvariantViolationError(str(e), document=converted) from e

        logger.debug("Loaded %d troubleshoot specs successfully", len(kinds))
        return kinds
