from __future__ import annotations


def test_split_yaml_splits_on_separator_lines() -> None:
    from troubleshoot.core.yamlutil import split_yaml

    docs = split_yaml("a: 1\n---\nb: 2\n")
    assert docs == ["a: 1\n", "b: 2\n"]


def test_split_yaml_drops_empty_and_whitespace_documents() -> None:
    from troubleshoot.core.yamlutil import split_yaml

    assert split_yaml("") == []
    assert split_yaml("---\n---\n") == []
    assert split_yaml("  \n---\n\n\t\n---\nkind: X\n") == ["kind: X\n"]


def test_split_yaml_accepts_leading_separator_and_trailing_comment() -> None:
    from troubleshoot.core.yamlutil import split_yaml

    docs = split_yaml("---\nkind: A\n--- # next\nkind: B")
    assert docs == ["kind: A\n", "kind: B\n"]


def test_split_yaml_ignores_dashes_inside_lines() -> None:
    from troubleshoot.core.yamlutil import split_yaml

    docs = split_yaml("title: a --- b\nnote: '---'\n")
    assert len(docs) == 1


def test_split_yaml_does_not_validate_yaml() -> None:
    from troubleshoot.core.yamlutil import split_yaml

    docs = split_yaml("spec: [unclosed\n---\n: : :\n")
    assert docs == ["spec: [unclosed\n", ": : :\n"]


def test_split_documents_flattens_inputs_in_order() -> None:
    from troubleshoot.core.yamlutil import split_documents

    docs = split_documents(["a: 1\n---\nb: 2\n", "", "c: 3\n"])
    assert docs == ["a: 1\n", "b: 2\n", "c: 3\n"]
