# Exception hierarchy: per-file analysis failures, unsupported rules, unknown profiles.

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class SafeProfileError(Exception):
    """Base class for all SafeProfile errors."""


class AnalysisError(SafeProfileError):
    """A file could not be analyzed (unreadable, or failed to parse)."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"{path}: {detail}")
        self.path = path
        self.detail = detail


class UnreadableFileError(AnalysisError):
    """The source file could not be opened or decoded."""


class CompilationError(AnalysisError):
    """
    The semantic parse did not succeed.

    Syntax errors, unresolved includes and type errors all land here; the
    caller only learns that the file could not be understood, plus a
    free-text detail taken from the parser's diagnostics.
    """


class UnsupportedRuleError(SafeProfileError):
    """No matcher is registered for the given rule id."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Unsupported rule: {rule_id}")
        self.rule_id = rule_id


class UnknownProfileError(SafeProfileError):
    """The requested safety profile is not one of the built-in profiles."""

    def __init__(self, name: str, available: Sequence[str] = ()) -> None:
        message = f"Unknown profile: {name}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message)
        self.name = name
        self.available = list(available)


class ParserUnavailableError(SafeProfileError):
    """libclang could not be loaded, so nothing can be parsed."""
