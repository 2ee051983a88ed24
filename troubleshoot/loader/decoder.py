"""Typed decoding of YAML documents into registered models.

The decoder is an explicit value: build it once (see `get_default_decoder`), freeze it, and pass
it to the loader. It is never mutated per call, so one instance is safe to share across threads.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type

import yaml
from pydantic import BaseModel, ValidationError

from troubleshoot.core.constants import TROUBLESHOOT_V1BETA2_API_VERSION
from troubleshoot.core.errors import DecodeError
from troubleshoot.core.models import (
    Analyzer,
    Collector,
    ConfigMap,
    HostCollector,
    HostPreflight,
    Preflight,
    Redactor,
    RemoteCollector,
    Secret,
    SupportBundle,
)

TROUBLESHOOT_KIND_MODELS: Tuple[Type[BaseModel], ...] = (
    Analyzer,
    Collector,
    HostCollector,
    HostPreflight,
    Preflight,
    Redactor,
    RemoteCollector,
    SupportBundle,
)

TROUBLESHOOT_KIND_NAMES = tuple(m.model_fields["kind"].default for m in TROUBLESHOOT_KIND_MODELS)


@dataclass(frozen=True)
class DocumentHeader:
    """Lightweight view of a document: just enough to classify it."""

    kind: str = ""
    api_version: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    string_data: Dict[str, str] = field(default_factory=dict)


def load_mapping(text: str) -> Optional[Dict[str, Any]]:
    """Parse one YAML document. Returns None for an empty document; raises DecodeError otherwise."""
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DecodeError(f"failed to parse yaml: {e}") from e
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise DecodeError(f"expected a mapping document, got {type(obj).__name__}")
    return obj


def decode_header(text: str) -> DocumentHeader:
    obj = load_mapping(text)
    if obj is None:
        return DocumentHeader()

    kind = obj.get("kind") or ""
    api_version = obj.get("apiVersion") or ""
    if not isinstance(kind, str) or not isinstance(api_version, str):
        raise DecodeError("kind and apiVersion must be strings")

    data = obj.get("data") or {}
    string_data = obj.get("stringData") or {}
    if not isinstance(data, dict):
        raise DecodeError("data must be a mapping")
    if not isinstance(string_data, dict) or not all(isinstance(v, str) for v in string_data.values()):
        raise DecodeError("stringData must be a mapping of strings")

    return DocumentHeader(kind=kind, api_version=api_version, data=data, string_data=string_data)


class Decoder:
    """Registry of `(apiVersion, kind) -> model` used for full typed decodes."""

    def __init__(self) -> None:
        self._types: Dict[Tuple[str, str], Type[BaseModel]] = {}
        self._frozen = False

    def register(self, api_version: str, kind: str, model: Type[BaseModel]) -> None:
        if self._frozen:
            raise RuntimeError("decoder is frozen; register types before first use")
        self._types[(api_version, kind)] = model

    def freeze(self) -> "Decoder":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def is_registered(self, api_version: str, kind: str) -> bool:
        return (api_version, kind) in self._types

    def decode(self, text: str) -> BaseModel:
        obj = load_mapping(text)
        if obj is None:
            raise DecodeError("empty document")

        api_version = obj.get("apiVersion")
        kind = obj.get("kind")
        model = self._types.get((api_version, kind))  # type: ignore[arg-type]
        if model is None:
            raise DecodeError(f"no kind {kind!r} is registered for version {api_version!r}")

        try:
            return model.model_validate(obj)
        except ValidationError as e:
            raise DecodeError(f"failed to decode {kind}: {e}") from e


def new_decoder() -> Decoder:
    """Build a frozen decoder knowing v1 Secret/ConfigMap and every v1beta2 troubleshoot kind."""
    d = Decoder()
    d.register("v1", "Secret", Secret)
    d.register("v1", "ConfigMap", ConfigMap)
    for model, kind in zip(TROUBLESHOOT_KIND_MODELS, TROUBLESHOOT_KIND_NAMES):
        d.register(TROUBLESHOOT_V1BETA2_API_VERSION, kind, model)
    return d.freeze()


_DEFAULT_DECODER: Optional[Decoder] = None
_decoder_lock = threading.Lock()


def get_default_decoder() -> Decoder:
    global _DEFAULT_DECODER
    if _DEFAULT_DECODER is not None:
        return _DEFAULT_DECODER
    with _decoder_lock:
        if _DEFAULT_DECODER is None:
            _DEFAULT_DECODER = new_decoder()
        return _DEFAULT_DECODER
