"""Outcome rule evaluation over a table of named integer facts.

Condition grammar: `<field> <operator> <value>` (exactly three whitespace-separated tokens), or the
empty string which always matches. Misconfigured conditions raise ConditionalError; they never
fall through to a default verdict.
"""

from __future__ import annotations

import operator
import re
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from troubleshoot.core.errors import ConditionalError
from troubleshoot.core.models import AnalyzeResult, Outcome, SingleOutcome

_OPERATORS: Dict[str, Callable[[int, int], bool]] = {
    "=": operator.eq,
    "==": operator.eq,
    "===": operator.eq,
    "!=": operator.ne,
    "!==": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_INT_RE = re.compile(r"[+-]?[0-9]+")


class FactTable(Mapping[str, int]):
    """Read-only mapping of fact name -> integer, computed once per analysis."""

    def __init__(self, facts: Mapping[str, int]) -> None:
        self._facts = MappingProxyType(dict(facts))

    def __getitem__(self, key: str) -> int:
        return self._facts[key]

    def __iter__(self):
        return iter(self._facts)

    def __len__(self) -> int:
        return len(self._facts)

    def __repr__(self) -> str:
        return f"FactTable({dict(self._facts)!r})"


def compare_conditional(conditional: str, facts: Mapping[str, int]) -> bool:
    if conditional == "":
        return True

    parts = conditional.split()
    if len(parts) != 3:
        raise ConditionalError(f"unable to parse conditional: {conditional}")
    field, op, value_str = parts

    if field not in facts:
        raise ConditionalError(f"unknown field in conditional: {field}")
    actual = facts[field]

    if not _INT_RE.fullmatch(value_str):
        raise ConditionalError(f"unable to parse expected value: {value_str}")
    expected = int(value_str)

    compare = _OPERATORS.get(op)
    if compare is None:
        raise ConditionalError(f"unknown operator in conditional: {op}")
    return compare(actual, expected)


def _verdicts(outcome: Outcome) -> List[tuple]:
    # Within one entry: fail, then warn, then pass.
    return [
        ("is_fail", outcome.fail),
        ("is_warn", outcome.warn),
        ("is_pass", outcome.pass_),
    ]


def evaluate_outcomes(
    outcomes: Sequence[Outcome],
    facts: Mapping[str, int],
    *,
    title: str,
    default_message: str,
    icon_key: Optional[str] = None,
    strict: bool = False,
) -> AnalyzeResult:
    """
    Return the verdict of the first outcome whose condition matches, in authored order.

    When nothing matches, a pass carrying `default_message` is returned.

    Raises:
        ConditionalError: a condition is malformed (unknown field/operator, bad value).
    """
    for outcome in outcomes:
        for flag, single in _verdicts(outcome):
            if single is None:
                continue
            if compare_conditional(single.when, facts):
                return _result(flag, single, title=title, icon_key=icon_key, strict=strict)

    return AnalyzeResult(title=title, is_pass=True, message=default_message, icon_key=icon_key, strict=strict)


def first_fail_outcome(outcomes: Sequence[Outcome]) -> Optional[SingleOutcome]:
    for outcome in outcomes:
        if outcome.fail is not None:
            return outcome.fail
    return None


def _result(flag: str, single: SingleOutcome, *, title: str, icon_key: Optional[str], strict: bool) -> AnalyzeResult:
    return AnalyzeResult(
        title=title,
        message=single.message,
        uri=single.uri,
        icon_key=icon_key,
        strict=strict,
        **{flag: True},
    )
