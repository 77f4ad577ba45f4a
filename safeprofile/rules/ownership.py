# Manual memory management detection: naked new and delete expressions.

from __future__ import annotations

from typing import Optional

from safeprofile.profile import Rule
from safeprofile.rules.base import Match, RuleKind, RuleMatcher
from safeprofile.tree import AstNode, NodeKind

ARRAY_FORM_MARKER = " (array form)"


def match_allocation(node: AstNode) -> Optional[Match]:
    """
    Any new-expression, scalar or array, that acquires fresh storage.

    Placement new (``new (buf) T``, including ``new (std::nothrow) T``)
    constructs into caller-supplied storage and is not reported.
    """
    if node.kind != NodeKind.NEW_EXPR or node.placement_args > 0:
        return None
    return Match(node=node, details={"array_form": node.is_array_form})


def format_allocation(rule: Rule, match: Match) -> str:
    return rule.description


def match_deallocation(node: AstNode) -> Optional[Match]:
    """Any delete-expression, scalar or array."""
    if node.kind != NodeKind.DELETE_EXPR:
        return None
    return Match(node=node, details={"array_form": node.is_array_form})


def format_deallocation(rule: Rule, match: Match) -> str:
    if match.details.get("array_form"):
        return rule.description + ARRAY_FORM_MARKER
    return rule.description


ALLOCATION_MATCHER = RuleMatcher(
    kind=RuleKind.ALLOCATION,
    predicate=match_allocation,
    formatter=format_allocation,
)

DEALLOCATION_MATCHER = RuleMatcher(
    kind=RuleKind.DEALLOCATION,
    predicate=match_deallocation,
    formatter=format_deallocation,
)
