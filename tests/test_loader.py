from __future__ import annotations

import base64

import pytest
import yaml

SUPPORT_BUNDLE = """apiVersion: troubleshoot.sh/v1beta2
kind: SupportBundle
metadata:
  name: sb
spec:
  collectors:
    - clusterInfo: {}
"""

LEGACY_PREFLIGHT = """apiVersion: troubleshoot.replicated.com/v1beta1
kind: Preflight
metadata:
  name: pf
spec:
  analyzers:
    - clusterVersion: {}
"""

REDACTOR = """apiVersion: troubleshoot.sh/v1beta2
kind: Redactor
metadata:
  name: rd
spec:
  redactors:
    - name: passwords
"""

DEPLOYMENT = """apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
"""

BROKEN = """apiVersion: troubleshoot.sh/v1beta2
kind: SupportBundle
spec: [unclosed
"""

UNKNOWN_KIND = """apiVersion: troubleshoot.sh/v1beta2
kind: Bogus
metadata:
  name: nope
"""


def _load(*raw: str, strict: bool = False):
    from troubleshoot.loader import LoadOptions, load_specs

    return load_specs(LoadOptions(raw_specs=list(raw), strict=strict))


def _b64(s: str) -> str:
    return base64.b64encode(s.encode("utf-8")).decode("ascii")


def test_load_specs_empty_input_yields_empty_kinds() -> None:
    kinds = _load()
    assert kinds.is_empty()
    assert len(kinds) == 0


def test_load_specs_direct_documents_and_multi_doc_input() -> None:
    kinds = _load(SUPPORT_BUNDLE + "---\n" + REDACTOR)

    assert [s.name for s in kinds.support_bundles] == ["sb"]
    assert [r.name for r in kinds.redactors] == ["rd"]
    assert kinds.support_bundles[0].spec.collectors == [{"clusterInfo": {}}]


def test_load_specs_converts_legacy_api_version() -> None:
    from troubleshoot.core.constants import TROUBLESHOOT_V1BETA2_API_VERSION

    kinds = _load(LEGACY_PREFLIGHT)

    assert len(kinds.preflights) == 1
    pf = kinds.preflights[0]
    assert pf.api_version == TROUBLESHOOT_V1BETA2_API_VERSION
    assert pf.spec.analyzers == [{"clusterVersion": {}}]


def test_load_specs_skips_foreign_documents_in_both_modes() -> None:
    assert _load(DEPLOYMENT).is_empty()
    assert _load(DEPLOYMENT, strict=True).is_empty()


def test_load_specs_skips_comment_only_documents() -> None:
    kinds = _load("# just a comment\n---\n" + SUPPORT_BUNDLE, strict=True)
    assert len(kinds) == 1


def test_lenient_mode_skips_invalid_documents_and_keeps_the_rest() -> None:
    kinds = _load(BROKEN, UNKNOWN_KIND, SUPPORT_BUNDLE)
    assert len(kinds) == 1
    assert kinds.support_bundles[0].name == "sb"


def test_strict_mode_raises_with_full_document_text() -> None:
    from troubleshoot.core.errors import SpecIssueError

    with pytest.raises(SpecIssueError) as exc:
        _load(SUPPORT_BUNDLE, BROKEN, strict=True)

    assert exc.value.exit_code == 2
    assert exc.value.document == BROKEN
    assert "spec: [unclosed" in str(exc.value)
    assert exc.value.__cause__ is not None


def test_strict_mode_rejects_unknown_troubleshoot_kind() -> None:
    from troubleshoot.core.errors import SpecIssueError

    with pytest.raises(SpecIssueError) as exc:
        _load(UNKNOWN_KIND, strict=True)
    assert "failed to convert doc" in str(exc.value)
    assert "kind: Bogus" in exc.value.document


def test_strict_mode_rejects_non_mapping_document() -> None:
    from troubleshoot.core.errors import SpecIssueError

    with pytest.raises(SpecIssueError):
        _load("- just\n- a list\n", strict=True)
    assert _load("- just\n- a list\n").is_empty()


def test_secret_wrapper_yields_data_then_string_data() -> None:
    secret = yaml.safe_dump(
        {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": "wrapper"},
            "data": {"support-bundle-spec": _b64(SUPPORT_BUNDLE)},
            "stringData": {"preflight.yaml": LEGACY_PREFLIGHT, "ignored-key": REDACTOR},
        }
    )

    kinds = _load(secret, strict=True)

    assert [s.name for s in kinds.support_bundles] == ["sb"]
    assert [p.name for p in kinds.preflights] == ["pf"]
    assert kinds.redactors == []


def test_secret_wrapper_key_in_both_data_and_string_data_yields_both() -> None:
    other = SUPPORT_BUNDLE.replace("name: sb", "name: sb-string")
    secret = yaml.safe_dump(
        {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": "wrapper"},
            "data": {"support-bundle-spec": _b64(SUPPORT_BUNDLE)},
            "stringData": {"support-bundle-spec": other},
        }
    )

    kinds = _load(secret)
    assert [s.name for s in kinds.support_bundles] == ["sb", "sb-string"]


def test_configmap_wrapper_with_multi_document_value() -> None:
    cm = yaml.safe_dump(
        {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": "wrapper"},
            "data": {
                "preflight-spec": LEGACY_PREFLIGHT,
                "redactor-spec": REDACTOR + "---\n" + REDACTOR.replace("name: rd", "name: rd2"),
            },
        }
    )

    kinds = _load(cm, strict=True)
    assert [r.name for r in kinds.redactors] == ["rd", "rd2"]
    assert [p.name for p in kinds.preflights] == ["pf"]


def test_wrapper_without_known_keys_contributes_nothing() -> None:
    cm = yaml.safe_dump({"apiVersion": "v1", "kind": "ConfigMap", "data": {"other": SUPPORT_BUNDLE}})
    assert _load(cm, strict=True).is_empty()


def test_secret_with_bad_base64_is_skipped_or_raised() -> None:
    from troubleshoot.core.errors import SpecIssueError

    secret = "apiVersion: v1\nkind: Secret\ndata:\n  support-bundle-spec: '!!!not-base64'\n"
    assert _load(secret).is_empty()
    with pytest.raises(SpecIssueError):
        _load(secret, strict=True)


def test_embedded_invalid_spec_honours_policy() -> None:
    from troubleshoot.core.errors import SpecIssueError

    cm = yaml.safe_dump({"apiVersion": "v1", "kind": "ConfigMap", "data": {"support-bundle-spec": UNKNOWN_KIND}})
    assert _load(cm).is_empty()
    with pytest.raises(SpecIssueError):
        _load(cm, strict=True)


def test_raw_spec_is_appended_after_raw_specs() -> None:
    from troubleshoot.loader import LoadOptions, load_specs

    other = SUPPORT_BUNDLE.replace("name: sb", "name: last")
    kinds = load_specs(LoadOptions(raw_specs=[SUPPORT_BUNDLE], raw_spec=other))
    assert [s.name for s in kinds.support_bundles] == ["sb", "last"]


def test_wrapper_decoding_to_unexpected_type_is_fatal_even_when_lenient() -> None:
    from pydantic import BaseModel, ConfigDict

    from troubleshoot.core.errors import InvariantViolationError
    from troubleshoot.loader import LoadOptions, load_specs
    from troubleshoot.loader.decoder import Decoder

    class NotAWrapper(BaseModel):
        model_config = ConfigDict(extra="allow")

    decoder = Decoder()
    decoder.register("v1", "Secret", NotAWrapper)
    decoder.freeze()

    secret = "apiVersion: v1\nkind: Secret\nstringData:\n  support-bundle-spec: x\n"
    with pytest.raises(InvariantViolationError) as exc:
        load_specs(LoadOptions(raw_specs=[secret], strict=False), decoder=decoder)
    assert exc.value.document == secret


def test_decoded_spec_of_unknown_type_is_fatal_even_when_lenient() -> None:
    from pydantic import BaseModel, ConfigDict

    from troubleshoot.core.constants import TROUBLESHOOT_V1BETA2_API_VERSION
    from troubleshoot.core.errors import InvariantViolationError
    from troubleshoot.loader import LoadOptions, load_specs
    from troubleshoot.loader.decoder import Decoder

    class Stranger(BaseModel):
        model_config = ConfigDict(extra="allow")

    decoder = Decoder()
    decoder.register(TROUBLESHOOT_V1BETA2_API_VERSION, "SupportBundle", Stranger)
    decoder.freeze()

    with pytest.raises(InvariantViolationError) as exc:
        load_specs(LoadOptions(raw_specs=[SUPPORT_BUNDLE]), decoder=decoder)
    assert "kind: SupportBundle" in exc.value.document
