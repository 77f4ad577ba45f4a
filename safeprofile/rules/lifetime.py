# Lifetime safety: returning a pointer or reference into a local's storage.

from __future__ import annotations

from typing import Optional

from safeprofile.profile import Rule
from safeprofile.rules.base import (
    Match,
    RuleKind,
    RuleMatcher,
    all_of,
    has_storage,
    is_parameter,
    is_reference,
    negate,
)
from safeprofile.tree import AstNode, NodeKind, StorageDuration, enclosing_function, strip_implicit

# Storage that dies with the call: automatic locals that are neither parameters
# nor references (a reference local aliases storage it does not own; see _owner)
DIES_WITH_CALL = all_of(
    has_storage(StorageDuration.AUTOMATIC),
    negate(is_parameter),
    negate(is_reference),
)


def _returned_variable(node: AstNode) -> Optional[tuple[AstNode, str]]:
    """Return (variable declaration, form) for ``return &v;`` or a by-reference ``return v;``."""
    if not node.children:
        return None
    value = strip_implicit(node.children[0])
    if value is None:
        return None

    if value.kind == NodeKind.UNARY_OPERATOR and value.operator == "&":
        target = strip_implicit(value.children[0]) if value.children else None
        form = "address"
    else:
        function = enclosing_function(node)
        if function is None or not function.returns_reference:
            return None
        target = value
        form = "reference"

    if target is None or target.kind != NodeKind.DECL_REF or target.referenced is None:
        return None
    return target.referenced, form


def _owner(variable: AstNode) -> AstNode:
    """Follow reference locals bound directly to another variable back to that variable."""
    seen = {id(variable)}
    while variable.is_reference and variable.binds_to is not None and id(variable.binds_to) not in seen:
        variable = variable.binds_to
        seen.add(id(variable))
    return variable


def match_dangling_return(node: AstNode) -> Optional[Match]:
    if node.kind != NodeKind.RETURN_STMT:
        return None
    returned = _returned_variable(node)
    if returned is None:
        return None
    variable, form = returned
    variable = _owner(variable)
    if not DIES_WITH_CALL(variable):
        return None
    return Match(node=node, details={"variable": variable.spelling, "form": form})


def format_dangling_return(rule: Rule, match: Match) -> str:
    what = "Address of" if match.details["form"] == "address" else "Reference to"
    return (
        f"{rule.description} {what} local variable '{match.details['variable']}' "
        f"outlives its storage."
    )


DANGLING_RETURN_MATCHER = RuleMatcher(
    kind=RuleKind.DANGLING_RETURN,
    predicate=match_dangling_return,
    formatter=format_dangling_return,
)
