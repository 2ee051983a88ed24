"""Spec loading: raw YAML text -> `TroubleshootKinds`."""

from .kinds import KIND_FIELDS, TroubleshootKinds
from .loader import LoadOptions, load_specs

__all__ = ["KIND_FIELDS", "LoadOptions", "TroubleshootKinds", "load_specs"]
