"""Collected artifacts: a path-keyed byte-blob store, optionally mirrored to a bundle directory."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional, Union


class CollectorResult(Dict[str, bytes]):
    def save_result(self, bundle_path: Optional[str], rel_path: str, data: Union[bytes, str]) -> None:
        """Store `data` under `rel_path`; also write it below `bundle_path` when one is given."""
        key = rel_path.replace("\\", "/").lstrip("/")
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self[key] = payload

        if bundle_path:
            path = Path(bundle_path) / key
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)

    def merge(self, other: Mapping[str, bytes]) -> "CollectorResult":
        self.update(other)
        return self
