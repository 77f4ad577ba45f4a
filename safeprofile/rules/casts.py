# Type safety: C-style casts, reported with their source and destination types.

from __future__ import annotations

from typing import Optional

from safeprofile.profile import Rule
from safeprofile.rules.base import Match, RuleKind, RuleMatcher
from safeprofile.tree import AstNode, NodeKind


def match_cstyle_cast(node: AstNode) -> Optional[Match]:
    if node.kind != NodeKind.CSTYLE_CAST:
        return None
    return Match(
        node=node,
        details={"source": node.source_type, "target": node.type_name},
    )


def format_cstyle_cast(rule: Rule, match: Match) -> str:
    return (
        f"{rule.description} Casting from '{match.details['source']}' "
        f"to '{match.details['target']}'."
    )


UNCHECKED_CAST_MATCHER = RuleMatcher(
    kind=RuleKind.UNCHECKED_CAST,
    predicate=match_cstyle_cast,
    formatter=format_cstyle_cast,
)
