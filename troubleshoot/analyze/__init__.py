"""Analyzers: collected artifacts + outcome rules -> verdicts."""

from .analyzer import analyze, analyze_kinds, analyze_one
from .conditional import FactTable, compare_conditional, evaluate_outcomes
from .files import CollectedFiles

__all__ = [
    "CollectedFiles",
    "FactTable",
    "analyze",
    "analyze_kinds",
    "analyze_one",
    "compare_conditional",
    "evaluate_outcomes",
]
