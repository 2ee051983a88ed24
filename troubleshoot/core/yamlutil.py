"""YAML document helpers shared by the loader, wrappers and serializers."""

from __future__ import annotations

import re
from typing import Any, Iterable, List

import yaml

DOCUMENT_SEPARATOR = "---\n"

# A separator line: `---`, optionally followed by whitespace or a comment.
_SEPARATOR_RE = re.compile(r"^---[ \t]*(?:#[^\n]*)?$", re.MULTILINE)


def split_yaml(doc: str) -> List[str]:
    """
    Split a (possibly multi-document) YAML string into individual documents.

    Empty/whitespace-only documents are dropped. No YAML validation happens here.
    """
    out: List[str] = []
    for part in _SEPARATOR_RE.split(doc or ""):
        if not part.strip():
            continue
        out.append(part.strip("\n") + "\n")
    return out


def split_documents(raw_specs: Iterable[str]) -> List[str]:
    """Flatten many raw inputs into one ordered list of documents."""
    docs: List[str] = []
    for raw in raw_specs:
        docs.extend(split_yaml(raw))
    return docs


def dump_yaml(obj: Any) -> str:
    return yaml.safe_dump(obj, sort_keys=False, default_flow_style=False, allow_unicode=True)


def join_documents(docs: Iterable[str]) -> str:
    return DOCUMENT_SEPARATOR.join(docs)
