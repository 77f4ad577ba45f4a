# Matcher interface: a rule kind is a structural predicate over AstNodes paired with
# a message formatter. Concrete kinds (ownership, bounds, casts, lifetime) define
# one predicate/formatter pair each; registry.py maps rule ids onto them.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Optional

from safeprofile.profile import Rule
from safeprofile.tree import AstNode, StorageDuration, walk


class RuleKind(str, Enum):
    ALLOCATION = "allocation"
    DEALLOCATION = "deallocation"
    RAW_ARRAY = "raw-array"
    UNCHECKED_CAST = "unchecked-cast"
    DANGLING_RETURN = "dangling-return"


@dataclass(frozen=True)
class Match:
    """One node satisfying a predicate, plus the details its message needs."""

    node: AstNode
    details: Mapping[str, Any] = field(default_factory=dict)


Predicate = Callable[[AstNode], Optional[Match]]
Formatter = Callable[[Rule, Match], str]


@dataclass(frozen=True)
class RuleMatcher:
    """
    A predicate-and-formatter pair for one rule kind.

    ``matches`` walks the whole tree but only offers main-file nodes to the
    predicate; anything located in an included header is skipped.
    """

    kind: RuleKind
    predicate: Predicate
    formatter: Formatter

    def matches(self, root: AstNode) -> Iterator[Match]:
        for node in walk(root):
            if not node.in_main_file:
                continue
            match = self.predicate(node)
            if match is not None:
                yield match

    def message(self, rule: Rule, match: Match) -> str:
        return self.formatter(rule, match)


# Variable-declaration filters, composable into capability sets

VariableFilter = Callable[[AstNode], bool]


def has_storage(*durations: StorageDuration) -> VariableFilter:
    def check(variable: AstNode) -> bool:
        return variable.storage in durations

    return check


def is_parameter(variable: AstNode) -> bool:
    return variable.is_parameter


def is_reference(variable: AstNode) -> bool:
    return variable.is_reference


def negate(check: VariableFilter) -> VariableFilter:
    def negated(variable: AstNode) -> bool:
        return not check(variable)

    return negated


def all_of(*checks: VariableFilter) -> VariableFilter:
    def combined(variable: AstNode) -> bool:
        return all(check(variable) for check in checks)

    return combined
