"""Version canonicalization: rewrite any accepted troubleshoot document to `troubleshoot.sh/v1beta2`."""

from __future__ import annotations

from troubleshoot.core.constants import TROUBLESHOOT_V1BETA1_API_VERSION, TROUBLESHOOT_V1BETA2_API_VERSION
from troubleshoot.core.errors import ConversionError, DecodeError
from troubleshoot.core.yamlutil import dump_yaml
from troubleshoot.loader.decoder import TROUBLESHOOT_KIND_NAMES, load_mapping


def convert_to_v1beta2(doc: str) -> str:
    """
    Return `doc` rewritten to the canonical version.

    v1beta2 documents are returned unchanged. Documents of any other version, or whose kind is not
    a known troubleshoot kind, raise ConversionError.
    """
    try:
        obj = load_mapping(doc)
    except DecodeError as e:
        raise ConversionError(f"failed to unmarshal yaml: {e}") from e
    if obj is None:
        raise ConversionError("empty document")

    kind = obj.get("kind")
    if kind not in TROUBLESHOOT_KIND_NAMES:
        raise ConversionError(f"unknown troubleshoot kind {kind!r}")

    api_version = obj.get("apiVersion")
    if api_version == TROUBLESHOOT_V1BETA2_API_VERSION:
        return doc
    if api_version == TROUBLESHOOT_V1BETA1_API_VERSION:
        obj["apiVersion"] = TROUBLESHOOT_V1BETA2_API_VERSION
        return dump_yaml(obj)

    raise ConversionError(f"cannot convert apiVersion {api_version!r} to {TROUBLESHOOT_V1BETA2_API_VERSION}")
