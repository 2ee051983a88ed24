"""The aggregate of every loaded troubleshoot spec, one ordered list per kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from troubleshoot.core.errors import InvariantViolationError
from troubleshoot.core.models import (
    Analyzer,
    Collector,
    HostCollector,
    HostPreflight,
    Preflight,
    Redactor,
    RemoteCollector,
    SupportBundle,
    TroubleshootObject,
)
from troubleshoot.core.yamlutil import dump_yaml, join_documents

# Serialization and iteration order: (kind name, attribute).
KIND_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("Analyzer", "analyzers"),
    ("Collector", "collectors"),
    ("HostCollector", "host_collectors"),
    ("HostPreflight", "host_preflights"),
    ("Preflight", "preflights"),
    ("Redactor", "redactors"),
    ("RemoteCollector", "remote_collectors"),
    ("SupportBundle", "support_bundles"),
)

_FIELD_BY_TYPE = {
    Analyzer: "analyzers",
    Collector: "collectors",
    HostCollector: "host_collectors",
    HostPreflight: "host_preflights",
    Preflight: "preflights",
    Redactor: "redactors",
    RemoteCollector: "remote_collectors",
    SupportBundle: "support_bundles",
}


@dataclass
class TroubleshootKinds:
    analyzers: List[Analyzer] = field(default_factory=list)
    collectors: List[Collector] = field(default_factory=list)
    host_collectors: List[HostCollector] = field(default_factory=list)
    host_preflights: List[HostPreflight] = field(default_factory=list)
    preflights: List[Preflight] = field(default_factory=list)
    redactors: List[Redactor] = field(default_factory=list)
    remote_collectors: List[RemoteCollector] = field(default_factory=list)
    support_bundles: List[SupportBundle] = field(default_factory=list)

    def __len__(self) -> int:
        return sum(len(getattr(self, attr)) for _, attr in KIND_FIELDS)

    def is_empty(self) -> bool:
        return len(self) == 0

    def counts(self) -> Dict[str, int]:
        return {kind: len(getattr(self, attr)) for kind, attr in KIND_FIELDS}

    def append(self, obj: object) -> None:
        """Append one decoded spec to the list for its kind."""
        attr = _FIELD_BY_TYPE.get(type(obj))  # type: ignore[arg-type]
        if attr is None:
            raise InvariantViolationError(f"unknown troubleshoot kind {type(obj).__name__}")
        getattr(self, attr).append(obj)

    def add(self, other: "TroubleshootKinds") -> "TroubleshootKinds":
        """Append-merge `other` into self (no list ever shrinks). Returns self for chaining."""
        for _, attr in KIND_FIELDS:
            getattr(self, attr).extend(getattr(other, attr))
        return self

    def iter_specs(self) -> Iterator[TroubleshootObject]:
        for _, attr in KIND_FIELDS:
            yield from getattr(self, attr)

    def to_yaml(self) -> str:
        """
        Serialize every spec as a multi-document YAML string.

        Kinds are emitted in KIND_FIELDS order; kinds with no entries produce no documents.
        The output is valid loader input.
        """
        return join_documents(dump_yaml(spec.to_dict()) for spec in self.iter_specs())
