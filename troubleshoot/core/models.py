"""Canonical domain models (single source of truth).

This file is the one place where we define models used across:
- loading specs (troubleshoot kinds + Secret/ConfigMap wrappers)
- collecting evidence (collector specs, collected payloads)
- analysis (analyzer specs, outcomes, results)

Design note:
- Spec payloads are intentionally permissive (`extra="allow"`) because individual collector and
  analyzer schemas are owned elsewhere, and re-serialization must keep everything the author wrote.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from troubleshoot.core.constants import TROUBLESHOOT_V1BETA2_API_VERSION

BoolOrString = Union[bool, str]

_TRUE_STRINGS = ("1", "t", "T", "TRUE", "true", "True")
_FALSE_STRINGS = ("0", "f", "F", "FALSE", "false", "False")


def parse_bool_or_string(value: Optional[BoolOrString], default: bool = False) -> bool:
    """Resolve a bool-or-string flag (`exclude`, `strict`). Unparseable strings raise ValueError."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    s = str(value).strip()
    if s == "":
        return default
    if s in _TRUE_STRINGS:
        return True
    if s in _FALSE_STRINGS:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def _decode_base64_map(v: Any) -> Dict[str, bytes]:
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ValueError("expected a mapping of base64 strings")
    out: Dict[str, bytes] = {}
    for key, val in v.items():
        if isinstance(val, (bytes, bytearray)):
            out[str(key)] = bytes(val)
            continue
        try:
            out[str(key)] = base64.b64decode("".join(str(val or "").split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"illegal base64 data under key {key!r}: {e}") from e
    return out


class BaseModelAllowExtra(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ObjectMeta(BaseModelAllowExtra):
    name: Optional[str] = None
    namespace: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None


# --- Wrapper documents -------------------------------------------------------------------------


class Secret(BaseModelAllowExtra):
    api_version: Literal["v1"] = Field(alias="apiVersion")
    kind: Literal["Secret"]
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    type: Optional[str] = None
    data: Dict[str, bytes] = Field(default_factory=dict)
    string_data: Dict[str, str] = Field(default_factory=dict, alias="stringData")

    @field_validator("data", mode="before")
    @classmethod
    def _decode_data(cls, v: Any) -> Dict[str, bytes]:
        return _decode_base64_map(v)

    @field_validator("string_data", mode="before")
    @classmethod
    def _none_string_data(cls, v: Any) -> Any:
        return v if v is not None else {}


class ConfigMap(BaseModelAllowExtra):
    api_version: Literal["v1"] = Field(alias="apiVersion")
    kind: Literal["ConfigMap"]
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    data: Dict[str, str] = Field(default_factory=dict)
    binary_data: Dict[str, bytes] = Field(default_factory=dict, alias="binaryData")

    @field_validator("data", mode="before")
    @classmethod
    def _none_data(cls, v: Any) -> Any:
        return v if v is not None else {}

    @field_validator("binary_data", mode="before")
    @classmethod
    def _decode_binary_data(cls, v: Any) -> Dict[str, bytes]:
        return _decode_base64_map(v)


# --- Troubleshoot kinds ------------------------------------------------------------------------


class TroubleshootSpecBody(BaseModelAllowExtra):
    uri: Optional[str] = None
    collectors: Optional[List[Dict[str, Any]]] = None
    host_collectors: Optional[List[Dict[str, Any]]] = Field(default=None, alias="hostCollectors")
    analyzers: Optional[List[Dict[str, Any]]] = None
    host_analyzers: Optional[List[Dict[str, Any]]] = Field(default=None, alias="hostAnalyzers")
    redactors: Optional[List[Dict[str, Any]]] = None

    @field_validator("collectors", "host_collectors", "analyzers", "host_analyzers", "redactors", mode="before")
    @classmethod
    def _items_are_mappings(cls, v: Any) -> Any:
        if v is None:
            return v
        if not isinstance(v, list):
            raise ValueError("expected a list")
        for item in v:
            if not isinstance(item, dict):
                raise ValueError(f"expected a mapping, got {type(item).__name__}")
        return v


class TroubleshootObject(BaseModelAllowExtra):
    """Common shape of every troubleshoot kind (`apiVersion`, `kind`, `metadata`, `spec`)."""

    api_version: Literal["troubleshoot.sh/v1beta2"] = Field(
        default=TROUBLESHOOT_V1BETA2_API_VERSION, alias="apiVersion"
    )
    kind: str
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: TroubleshootSpecBody = Field(default_factory=TroubleshootSpecBody)

    @property
    def name(self) -> str:
        return self.metadata.name or ""

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Analyzer(TroubleshootObject):
    kind: Literal["Analyzer"] = "Analyzer"


class Collector(TroubleshootObject):
    kind: Literal["Collector"] = "Collector"


class HostCollector(TroubleshootObject):
    kind: Literal["HostCollector"] = "HostCollector"


class HostPreflight(TroubleshootObject):
    kind: Literal["HostPreflight"] = "HostPreflight"


class Preflight(TroubleshootObject):
    kind: Literal["Preflight"] = "Preflight"


class Redactor(TroubleshootObject):
    kind: Literal["Redactor"] = "Redactor"


class RemoteCollector(TroubleshootObject):
    kind: Literal["RemoteCollector"] = "RemoteCollector"


class SupportBundle(TroubleshootObject):
    kind: Literal["SupportBundle"] = "SupportBundle"


TroubleshootKind = Union[
    Analyzer,
    Collector,
    HostCollector,
    HostPreflight,
    Preflight,
    Redactor,
    RemoteCollector,
    SupportBundle,
]


# --- Collector / analyzer specs ----------------------------------------------------------------


class CollectorMeta(BaseModelAllowExtra):
    collector_name: Optional[str] = Field(default=None, alias="collectorName")
    exclude: Optional[BoolOrString] = None

    def is_excluded(self) -> bool:
        return parse_bool_or_string(self.exclude)


class AnalyzeMeta(BaseModelAllowExtra):
    check_name: Optional[str] = Field(default=None, alias="checkName")
    exclude: Optional[BoolOrString] = None
    strict: Optional[BoolOrString] = None
    annotations: Optional[Dict[str, str]] = None

    def is_excluded(self) -> bool:
        return parse_bool_or_string(self.exclude)


class ImagePullSecrets(BaseModelAllowExtra):
    name: Optional[str] = None
    data: Dict[str, str] = Field(default_factory=dict)
    secret_type: Optional[str] = Field(default=None, alias="type")


class ImageSignaturesCollectorSpec(CollectorMeta):
    images: List[str] = Field(default_factory=list)
    namespace: Optional[str] = None
    image_pull_secrets: Optional[ImagePullSecrets] = Field(default=None, alias="imagePullSecret")


class BlockDevicesCollectorSpec(CollectorMeta):
    pass


class SingleOutcome(BaseModelAllowExtra):
    when: str = ""
    message: str = ""
    uri: Optional[str] = None

    @field_validator("when", "message", mode="before")
    @classmethod
    def _null_is_empty(cls, v: Any) -> Any:
        # `when:` with no value means "always matches".
        return "" if v is None else v


class Outcome(BaseModelAllowExtra):
    fail: Optional[SingleOutcome] = None
    warn: Optional[SingleOutcome] = None
    pass_: Optional[SingleOutcome] = Field(default=None, alias="pass")


class ImageSignaturesAnalyzeSpec(AnalyzeMeta):
    collector_name: Optional[str] = Field(default=None, alias="collectorName")
    outcomes: List[Outcome] = Field(default_factory=list)


# --- Collected evidence ------------------------------------------------------------------------


class Signature(BaseModelAllowExtra):
    verified: bool = False
    signature: Optional[str] = None
    error: Optional[str] = None


class ImageSignatureData(BaseModelAllowExtra):
    image: str
    signatures: Optional[List[Signature]] = None
    error: Optional[str] = None


class ImageSignaturesInfo(BaseModelAllowExtra):
    images: List[ImageSignatureData] = Field(default_factory=list)


class BlockDeviceInfo(BaseModelStrict):
    name: str = ""
    kernel_name: str = ""
    parent_kernel_name: str = ""
    type: str = ""
    major: int = 0
    minor: int = 0
    size: int = 0
    filesystem_type: str = ""
    mountpoint: str = ""
    serial: str = ""
    read_only: bool = False
    removable: bool = False


# --- Results -----------------------------------------------------------------------------------


class AnalyzeResult(BaseModelStrict):
    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str
    is_pass: bool = False
    is_warn: bool = False
    is_fail: bool = False
    message: str = ""
    uri: Optional[str] = None
    icon_key: Optional[str] = None
    strict: bool = False

    @model_validator(mode="after")
    def _exactly_one_verdict(self) -> "AnalyzeResult":
        if [self.is_pass, self.is_warn, self.is_fail].count(True) != 1:
            raise ValueError("exactly one of is_pass/is_warn/is_fail must be set")
        return self
