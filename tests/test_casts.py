"""Unit tests for the C-style cast rule (SP-TYPE-001)."""

from safeprofile.engine import evaluate
from safeprofile.profile import load_profile
from safeprofile.tree import AstNode, NodeKind

from helpers_tree import at, context_for, cstyle_cast, function, translation_unit

RULE = next(rule for rule in load_profile("core-safety") if rule.id == "SP-TYPE-001")


def _run_rule(root) -> list:
    return evaluate(context_for(root), RULE)


def test_numeric_cast_reported():
    """int x = (int)d; at line 4."""
    root = translation_unit(function("main", cstyle_cast(4, target="int", source="double")))
    findings = _run_rule(root)
    assert len(findings) == 1
    assert findings[0].location.line == 4
    assert "Casting from 'double' to 'int'." in findings[0].message


def test_pointer_cast_names_source_type():
    """(char*)str mentions the const char * it casts away from."""
    root = translation_unit(function("f", cstyle_cast(3, target="char *", source="const char *")))
    findings = _run_rule(root)
    assert len(findings) == 1
    assert "const char *" in findings[0].message
    assert "'char *'" in findings[0].message


def test_named_casts_not_reported():
    """static_cast and friends are not C-style casts."""
    named = AstNode(NodeKind.OTHER, spelling="static_cast", position=at(3))
    root = translation_unit(function("f", named))
    assert _run_rule(root) == []


def test_three_casts_three_findings():
    root = translation_unit(
        function(
            "f",
            cstyle_cast(2, "int", "double"),
            cstyle_cast(3, "float", "int"),
            cstyle_cast(4, "void *", "int *"),
        )
    )
    assert len(_run_rule(root)) == 3
