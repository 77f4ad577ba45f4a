# Safety profile rule model: Severity, Rule, and the built-in profile table.

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from safeprofile.errors import UnknownProfileError


class Severity(str, Enum):
    """Violation severity, ordered blocker > major > minor > info."""

    BLOCKER = "blocker"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.BLOCKER: 3,
    Severity.MAJOR: 2,
    Severity.MINOR: 1,
    Severity.INFO: 0,
}


class Rule(BaseModel):
    """
    One safety-profile rule: identity and metadata only.

    The matching behaviour is selected by ``id`` through the matcher table in
    ``safeprofile.rules.registry``; a rule itself carries no logic.
    """

    id: str
    title: str
    description: str
    severity: Severity

    model_config = ConfigDict(frozen=True)


CORE_SAFETY_RULES: tuple[Rule, ...] = (
    Rule(
        id="SP-OWN-001",
        title="Naked new expression",
        description=(
            "Direct use of 'new' expression without RAII wrapper. "
            "Prefer std::make_unique, std::make_shared, or container allocation."
        ),
        severity=Severity.BLOCKER,
    ),
    Rule(
        id="SP-OWN-002",
        title="Naked delete expression",
        description=(
            "Direct use of 'delete' expression indicates manual lifetime management. "
            "Let a smart pointer or container own the memory."
        ),
        severity=Severity.BLOCKER,
    ),
    Rule(
        id="SP-BOUNDS-001",
        title="C-style array declaration",
        description="C-style array lacks bounds checking and decays to a pointer.",
        severity=Severity.MAJOR,
    ),
    Rule(
        id="SP-TYPE-001",
        title="C-style cast",
        description=(
            "C-style cast bypasses type safety and hides the conversion's intent. "
            "Use static_cast, const_cast or reinterpret_cast instead."
        ),
        severity=Severity.MAJOR,
    ),
    Rule(
        id="SP-LIFE-003",
        title="Return reference to local",
        description="Returning a reference or pointer to a local variable leaves it dangling.",
        severity=Severity.BLOCKER,
    ),
)

# core-safety and memory-safety currently share one rule table
BUILTIN_PROFILES: dict[str, tuple[Rule, ...]] = {
    "core-safety": CORE_SAFETY_RULES,
    "memory-safety": CORE_SAFETY_RULES,
}

DEFAULT_PROFILE = "core-safety"


def available_profiles() -> list[str]:
    """Names of the built-in profiles, sorted."""
    return sorted(BUILTIN_PROFILES)


def load_profile(name: str) -> list[Rule]:
    """
    Return the rules of a built-in profile.

    Raises:
        UnknownProfileError: if ``name`` is not a built-in profile.
    """
    try:
        rules = BUILTIN_PROFILES[name]
    except KeyError:
        raise UnknownProfileError(name, available_profiles()) from None
    return list(rules)
