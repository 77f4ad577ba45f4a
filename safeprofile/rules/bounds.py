# Bounds safety: C-style array variable declarations.

from __future__ import annotations

from typing import Optional

from safeprofile.profile import Rule
from safeprofile.rules.base import Match, RuleKind, RuleMatcher
from safeprofile.tree import ArrayKind, AstNode, NodeKind


def match_raw_array(node: AstNode) -> Optional[Match]:
    """
    A variable declared with a raw array type.

    One match per declaration: ``int grid[5][5]`` is a single declaration
    whose extent is the outer dimension (5).
    """
    if node.kind != NodeKind.VAR_DECL or node.is_parameter or node.array_kind is None:
        return None
    extent = node.array_extent if node.array_kind == ArrayKind.CONSTANT else None
    return Match(node=node, details={"name": node.spelling, "extent": extent})


def format_raw_array(rule: Rule, match: Match) -> str:
    extent = match.details.get("extent")
    if extent is not None:
        return f"{rule.description} Consider std::array<T, {extent}>."
    return f"{rule.description} Consider std::vector<T>."


RAW_ARRAY_MATCHER = RuleMatcher(
    kind=RuleKind.RAW_ARRAY,
    predicate=match_raw_array,
    formatter=format_raw_array,
)
