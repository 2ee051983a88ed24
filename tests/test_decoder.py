from __future__ import annotations

import pytest


def test_default_decoder_is_frozen_and_shared() -> None:
    from troubleshoot.loader.decoder import get_default_decoder

    d = get_default_decoder()
    assert d.frozen
    assert d is get_default_decoder()
    assert d.is_registered("v1", "Secret")
    assert d.is_registered("troubleshoot.sh/v1beta2", "SupportBundle")
    assert not d.is_registered("troubleshoot.replicated.com/v1beta1", "SupportBundle")


def test_frozen_decoder_rejects_registration() -> None:
    from troubleshoot.core.models import Secret
    from troubleshoot.loader.decoder import new_decoder

    d = new_decoder()
    with pytest.raises(RuntimeError):
        d.register("v1", "Other", Secret)


def test_decode_unregistered_kind_fails() -> None:
    from troubleshoot.core.errors import DecodeError
    from troubleshoot.loader.decoder import new_decoder

    with pytest.raises(DecodeError):
        new_decoder().decode("apiVersion: apps/v1\nkind: Deployment\n")


def test_decode_returns_typed_model() -> None:
    from troubleshoot.core.models import Collector
    from troubleshoot.loader.decoder import new_decoder

    obj = new_decoder().decode("apiVersion: troubleshoot.sh/v1beta2\nkind: Collector\nmetadata:\n  name: c\n")
    assert isinstance(obj, Collector)
    assert obj.name == "c"


def test_decode_rejects_non_mapping_collector_entries() -> None:
    from troubleshoot.core.errors import DecodeError
    from troubleshoot.loader.decoder import new_decoder

    doc = "apiVersion: troubleshoot.sh/v1beta2\nkind: Collector\nspec:\n  collectors:\n    - just-a-string\n"
    with pytest.raises(DecodeError):
        new_decoder().decode(doc)


def test_decode_header_for_empty_document() -> None:
    from troubleshoot.loader.decoder import decode_header

    h = decode_header("# nothing here\n")
    assert h.kind == ""
    assert h.api_version == ""


def test_convert_keeps_current_version_documents_unchanged() -> None:
    from troubleshoot.loader.docrewrite import convert_to_v1beta2

    doc = "apiVersion: troubleshoot.sh/v1beta2\nkind: Redactor\n# keep me\n"
    assert convert_to_v1beta2(doc) == doc


def test_convert_rewrites_legacy_version() -> None:
    import yaml

    from troubleshoot.loader.docrewrite import convert_to_v1beta2

    out = convert_to_v1beta2("apiVersion: troubleshoot.replicated.com/v1beta1\nkind: Collector\nspec: {}\n")
    assert yaml.safe_load(out) == {"apiVersion": "troubleshoot.sh/v1beta2", "kind": "Collector", "spec": {}}


@pytest.mark.parametrize(
    "doc",
    [
        "apiVersion: troubleshoot.sh/v1beta2\nkind: Bogus\n",
        "apiVersion: troubleshoot.sh/v1\nkind: Collector\n",
        "# empty\n",
        "kind: [broken\n",
    ],
)
def test_convert_rejects_unconvertible_documents(doc: str) -> None:
    from troubleshoot.core.errors import ConversionError
    from troubleshoot.loader.docrewrite import convert_to_v1beta2

    with pytest.raises(ConversionError):
        convert_to_v1beta2(doc)
