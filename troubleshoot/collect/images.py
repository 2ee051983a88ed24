"""Image reference parsing (docker reference grammar, docker.io normalization)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_DOMAIN = "docker.io"
DEFAULT_TAG = "latest"

_COMPONENT_RE = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
_DOMAIN_RE = re.compile(
    r"^(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
    r"(?:\.(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9]))*"
    r"(?::[0-9]+)?$"
)
_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}$")


@dataclass(frozen=True)
class ImageRef:
    raw: str
    registry_host: str
    repository: str
    tag: Optional[str]
    digest: Optional[str]

    @property
    def name(self) -> str:
        return f"{self.registry_host}/{self.repository}"

    @property
    def reference(self) -> str:
        """Tag or digest to address the manifest with."""
        return self.digest or self.tag or DEFAULT_TAG

    def __str__(self) -> str:
        if self.digest:
            return f"{self.name}@{self.digest}"
        return f"{self.name}:{self.tag or DEFAULT_TAG}"


def parse_image_ref(image: str) -> ImageRef:
    """
    Parse and normalize an image reference.

    Raises:
        ValueError: "invalid reference format" when the reference doesn't follow the grammar.
    """
    raw = (image or "").strip()
    if not raw:
        raise ValueError("invalid reference format: repository name must have at least one component")

    host = None
    rest = raw

    # Split host/path: if the first component looks like a registry host, treat it as host.
    if "/" in raw:
        first, remainder = raw.split("/", 1)
        if "." in first or ":" in first or first == "localhost" or first.lower() != first:
            host = first
            rest = remainder

    digest = None
    tag = None
    repo = rest
    if "@" in rest:
        repo, digest = rest.split("@", 1)
    # Tag is after the last ":" only (host:port was separated above)
    if ":" in repo:
        repo, tag = repo.rsplit(":", 1)

    if host is not None and not _DOMAIN_RE.match(host):
        raise ValueError(f"invalid reference format: bad registry host {host!r}")
    if not repo or not all(_COMPONENT_RE.match(c) for c in repo.split("/")):
        raise ValueError(f"invalid reference format: {raw!r}")
    if tag is not None and not _TAG_RE.match(tag):
        raise ValueError(f"invalid reference format: bad tag {tag!r}")
    if digest is not None and not _DIGEST_RE.match(digest):
        raise ValueError(f"invalid reference format: bad digest {digest!r}")

    if host is None or host in ("index.docker.io", "registry-1.docker.io"):
        host = DEFAULT_DOMAIN
    if host == DEFAULT_DOMAIN and "/" not in repo:
        repo = f"library/{repo}"

    return ImageRef(raw=raw, registry_host=host, repository=repo, tag=tag, digest=digest)
