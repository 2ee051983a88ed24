"""Error taxonomy.

- malformed input: `SpecIssueError` (raised only in strict mode)
- invariant violation: `InvariantViolationError` (always raised)
- evaluation error: `ConditionalError` / `AnalyzerError` (fatal to one analyzer)
- collection error: `RegistryAuthError` / `RegistryAccessError` (recorded per item),
  `CollectorError` (the whole collector failed)
"""

from __future__ import annotations

from typing import Optional

from troubleshoot.core.constants import EXIT_CODE_CATCH_ALL, EXIT_CODE_SPEC_ISSUES


class TroubleshootError(Exception):
    exit_code: int = EXIT_CODE_CATCH_ALL


class SpecIssueError(TroubleshootError):
    """A spec could not be loaded. `document` holds the full offending text when known."""

    exit_code = EXIT_CODE_SPEC_ISSUES

    def __init__(self, message: str, *, document: Optional[str] = None) -> None:
        super().__init__(message)
        self.document = document


class InvariantViolationError(SpecIssueError):
    """An upstream component broke its contract (a bug, not bad user input)."""


class DecodeError(TroubleshootError):
    pass


class ConversionError(TroubleshootError):
    pass


class SpecNotFoundError(TroubleshootError):
    pass


class ConditionalError(TroubleshootError):
    pass


class AnalyzerError(TroubleshootError):
    pass


class RegistryAuthError(TroubleshootError):
    pass


class RegistryAccessError(TroubleshootError):
    pass


class CollectorError(TroubleshootError):
    """A collector could not produce any output at all."""
