from __future__ import annotations

import json


def _kinds(*analyzers):
    from troubleshoot.core.models import Analyzer, SupportBundle
    from troubleshoot.loader import TroubleshootKinds

    return TroubleshootKinds(
        analyzers=[Analyzer.model_validate({"metadata": {"name": "a"}, "spec": {"analyzers": list(analyzers)}})],
        support_bundles=[
            SupportBundle.model_validate(
                {"metadata": {"name": "sb"}, "spec": {"analyzers": [{"imageSignatures": {"checkName": "from-sb"}}]}}
            )
        ],
    )


def _files():
    from troubleshoot.analyze.files import CollectedFiles

    data = {"images": [{"image": "a", "signatures": [{"verified": True, "signature": "s"}]}]}
    return CollectedFiles.from_mapping({"image-signatures/signatures.json": json.dumps(data).encode()})


def test_entries_are_gathered_from_analyzers_preflights_and_bundles_in_order() -> None:
    from troubleshoot.analyze.analyzer import analyzer_entries

    entries = analyzer_entries(_kinds({"imageSignatures": {"checkName": "first"}}))
    assert [e["imageSignatures"]["checkName"] for e in entries] == ["first", "from-sb"]


def test_unknown_analyzer_types_are_skipped() -> None:
    from troubleshoot.analyze import analyze_kinds

    results = analyze_kinds(_kinds({"clusterVersion": {}}), _files())
    assert [r.title for r in results] == ["from-sb"]


def test_excluded_analyzers_produce_no_result() -> None:
    from troubleshoot.analyze import analyze_kinds

    results = analyze_kinds(_kinds({"imageSignatures": {"checkName": "skip me", "exclude": "true"}}), _files())
    assert [r.title for r in results] == ["from-sb"]


def test_broken_analyzer_yields_a_fail_result_and_others_still_run() -> None:
    from troubleshoot.analyze import analyze_kinds

    broken = {"imageSignatures": {"outcomes": [{"fail": {"when": "bogus > 1", "message": "x"}}]}}
    results = analyze_kinds(_kinds(broken), _files())

    assert len(results) == 2
    failed, ok = results
    assert failed.title == "Analyzer Failed"
    assert failed.is_fail
    assert failed.message.startswith("imageSignatures: ")
    assert "unknown field in conditional: bogus" in failed.message
    assert ok.title == "from-sb" and ok.is_pass


def test_invalid_analyzer_spec_and_exclude_value_are_reported() -> None:
    from troubleshoot.analyze import analyze_kinds

    results = analyze_kinds(
        _kinds(
            {"imageSignatures": {"outcomes": [{"maybe": {}}]}},
            {"imageSignatures": {"exclude": "sometimes"}},
        ),
        _files(),
    )
    assert [r.title for r in results] == ["Analyzer Failed", "Analyzer Failed", "from-sb"]
    assert "invalid imageSignatures analyzer" in results[0].message
    assert "invalid exclude value" in results[1].message
