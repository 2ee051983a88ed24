"""Read access to collected artifacts (the path-keyed byte-blob store)."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional


@dataclass
class CollectedFiles:
    files: Dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, files: Mapping[str, bytes]) -> "CollectedFiles":
        return cls(files={_norm(k): v for k, v in files.items()})

    @classmethod
    def from_directory(cls, bundle_dir: str) -> "CollectedFiles":
        """Load every file under `bundle_dir`, keyed by its path relative to that directory."""
        root = Path(bundle_dir)
        files: Dict[str, bytes] = {}
        for path in sorted(root.rglob("*")):
            if path.is_file():
                files[path.relative_to(root).as_posix()] = path.read_bytes()
        return cls(files=files)

    def get_file(self, path: str) -> bytes:
        key = _norm(path)
        if key not in self.files:
            raise FileNotFoundError(path)
        return self.files[key]

    def find_files(self, pattern: str, exclude: Optional[Iterable[str]] = None) -> Dict[str, bytes]:
        """Return all artifacts whose path matches `pattern` (and no `exclude` pattern), sorted by path."""
        excludes = list(exclude or [])
        out: Dict[str, bytes] = {}
        for key in sorted(self.files):
            if not match_path(pattern, key):
                continue
            if any(match_path(x, key) for x in excludes):
                continue
            out[key] = self.files[key]
        return out


def _norm(path: str) -> str:
    return (path or "").replace("\\", "/").lstrip("/")


def match_path(pattern: str, path: str) -> bool:
    """Shell-style match where wildcards never cross a `/` (one directory level per segment)."""
    pat_parts = _norm(pattern).split("/")
    path_parts = _norm(path).split("/")
    if len(pat_parts) != len(path_parts):
        return False
    return all(fnmatch.fnmatchcase(p, pat) for pat, p in zip(pat_parts, path_parts))
