# Closed dispatch table: rule id -> rule kind -> matcher.
# Adding a kind is one entry here; an id missing from RULE_KINDS is unsupported.

from __future__ import annotations

from typing import Optional

from safeprofile.profile import Rule
from safeprofile.rules.base import RuleKind, RuleMatcher
from safeprofile.rules.bounds import RAW_ARRAY_MATCHER
from safeprofile.rules.casts import UNCHECKED_CAST_MATCHER
from safeprofile.rules.lifetime import DANGLING_RETURN_MATCHER
from safeprofile.rules.ownership import ALLOCATION_MATCHER, DEALLOCATION_MATCHER

RULE_KINDS: dict[str, RuleKind] = {
    "SP-OWN-001": RuleKind.ALLOCATION,
    "SP-OWN-002": RuleKind.DEALLOCATION,
    "SP-BOUNDS-001": RuleKind.RAW_ARRAY,
    "SP-TYPE-001": RuleKind.UNCHECKED_CAST,
    "SP-LIFE-003": RuleKind.DANGLING_RETURN,
}

MATCHERS: dict[RuleKind, RuleMatcher] = {
    matcher.kind: matcher
    for matcher in (
        ALLOCATION_MATCHER,
        DEALLOCATION_MATCHER,
        RAW_ARRAY_MATCHER,
        UNCHECKED_CAST_MATCHER,
        DANGLING_RETURN_MATCHER,
    )
}


def matcher_for(rule: Rule) -> Optional[RuleMatcher]:
    """Return the matcher for a rule's id, or None if the id is unsupported."""
    kind = RULE_KINDS.get(rule.id)
    if kind is None:
        return None
    return MATCHERS[kind]


def is_supported(rule: Rule) -> bool:
    return rule.id in RULE_KINDS
