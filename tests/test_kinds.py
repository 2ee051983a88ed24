from __future__ import annotations

import pytest

MIXED = """apiVersion: troubleshoot.sh/v1beta2
kind: SupportBundle
metadata:
  name: sb
spec:
  collectors:
    - clusterInfo: {}
  analyzers:
    - imageSignatures:
        checkName: Signed images
        outcomes:
          - fail:
              when: "unsigned > 0"
              message: Unsigned images found
  extraField: kept
---
apiVersion: troubleshoot.sh/v1beta2
kind: Analyzer
metadata:
  name: an
spec:
  analyzers:
    - clusterVersion: {}
---
apiVersion: troubleshoot.sh/v1beta2
kind: HostCollector
metadata:
  name: hc
spec:
  collectors:
    - blockDevices: {}
"""


def _load(raw: str):
    from troubleshoot.loader import LoadOptions, load_specs

    return load_specs(LoadOptions(raw_specs=[raw], strict=True))


def _kinds(*names: str):
    from troubleshoot.core.models import SupportBundle
    from troubleshoot.loader import TroubleshootKinds

    k = TroubleshootKinds()
    for n in names:
        k.append(SupportBundle.model_validate({"metadata": {"name": n}}))
    return k


def test_counts_follow_kind_order() -> None:
    kinds = _load(MIXED)
    assert kinds.counts() == {
        "Analyzer": 1,
        "Collector": 0,
        "HostCollector": 1,
        "HostPreflight": 0,
        "Preflight": 0,
        "Redactor": 0,
        "RemoteCollector": 0,
        "SupportBundle": 1,
    }
    assert len(kinds) == 3


def test_to_yaml_round_trips_through_the_loader() -> None:
    kinds = _load(MIXED)
    out = kinds.to_yaml()

    again = _load(out)
    assert again.counts() == kinds.counts()
    assert [s.to_dict() for s in again.iter_specs()] == [s.to_dict() for s in kinds.iter_specs()]
    # Unknown fields survive re-serialization.
    assert again.support_bundles[0].to_dict()["spec"]["extraField"] == "kept"


def test_to_yaml_emits_kinds_in_fixed_order() -> None:
    out = _load(MIXED).to_yaml()
    assert out.index("kind: Analyzer") < out.index("kind: HostCollector") < out.index("kind: SupportBundle")


def test_to_yaml_of_empty_kinds_is_empty() -> None:
    from troubleshoot.loader import TroubleshootKinds

    assert TroubleshootKinds().to_yaml() == ""


def test_add_appends_and_preserves_order() -> None:
    a = _kinds("a1", "a2")
    b = _kinds("b1")

    out = a.add(b)
    assert out is a
    assert [s.name for s in a.support_bundles] == ["a1", "a2", "b1"]
    assert [s.name for s in b.support_bundles] == ["b1"]


def test_add_is_associative() -> None:
    left = _kinds("a").add(_kinds("b")).add(_kinds("c"))
    right = _kinds("a").add(_kinds("b").add(_kinds("c")))
    assert [s.name for s in left.iter_specs()] == [s.name for s in right.iter_specs()]


def test_append_rejects_unknown_types() -> None:
    from troubleshoot.core.errors import InvariantViolationError
    from troubleshoot.core.models import ConfigMap
    from troubleshoot.loader import TroubleshootKinds

    with pytest.raises(InvariantViolationError):
        TroubleshootKinds().append(ConfigMap.model_validate({"apiVersion": "v1", "kind": "ConfigMap"}))
