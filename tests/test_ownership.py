"""Unit tests for the naked new / naked delete rules (SP-OWN-001, SP-OWN-002)."""

from safeprofile.engine import evaluate
from safeprofile.profile import Severity, load_profile
from safeprofile.rules.ownership import ARRAY_FORM_MARKER

from helpers_tree import context_for, delete_expr, function, new_expr, span, translation_unit

RULES = {rule.id: rule for rule in load_profile("core-safety")}


def _run_rule(rule_id: str, root, source: bytes = b"") -> list:
    """Evaluate one rule over a hand-built tree and return its findings."""
    return evaluate(context_for(root, source), RULES[rule_id])


def test_scalar_new_reported():
    """int* p = new int(42); is a naked allocation."""
    root = translation_unit(function("main", new_expr(3)))
    findings = _run_rule("SP-OWN-001", root)
    assert len(findings) == 1
    assert findings[0].rule_id == "SP-OWN-001"
    assert findings[0].location.line == 3
    assert findings[0].location.column == 14
    assert findings[0].severity == Severity.BLOCKER


def test_array_new_message_has_no_array_marker():
    """new int[10] is reported with the plain rule description."""
    root = translation_unit(function("main", new_expr(3, array=True)))
    findings = _run_rule("SP-OWN-001", root)
    assert len(findings) == 1
    assert findings[0].message == RULES["SP-OWN-001"].description
    assert "array form" not in findings[0].message


def test_placement_new_not_reported():
    """new (buf) T constructs into existing storage and is not an allocation."""
    root = translation_unit(function("main", new_expr(4, placement=1)))
    assert _run_rule("SP-OWN-001", root) == []


def test_new_in_header_not_reported():
    """Nodes positioned outside the main file are skipped."""
    root = translation_unit(function("main", new_expr(3, main=False)))
    assert _run_rule("SP-OWN-001", root) == []


def test_every_new_reported_separately():
    """Matches are not deduplicated, even on the same line."""
    root = translation_unit(function("main", new_expr(3, column=10), new_expr(3, column=30), new_expr(7)))
    findings = _run_rule("SP-OWN-001", root)
    assert [(f.location.line, f.location.column) for f in findings] == [(3, 10), (3, 30), (7, 14)]


def test_scalar_delete_reported():
    """delete p; at line 4 is a naked deallocation."""
    root = translation_unit(function("main", delete_expr(4)))
    findings = _run_rule("SP-OWN-002", root)
    assert len(findings) == 1
    assert findings[0].location.line == 4
    assert findings[0].message == RULES["SP-OWN-002"].description


def test_array_delete_message_marks_array_form():
    """delete[] arr; is reported with the array-form marker."""
    root = translation_unit(function("main", delete_expr(4, array=True)))
    findings = _run_rule("SP-OWN-002", root)
    assert len(findings) == 1
    assert findings[0].message.endswith(ARRAY_FORM_MARKER)
    assert "array form" in findings[0].message


def test_two_deletes_two_findings():
    root = translation_unit(function("main", delete_expr(5), delete_expr(6, array=True)))
    assert len(_run_rule("SP-OWN-002", root)) == 2


def test_new_rule_ignores_delete():
    """Each rule matches only its own construct."""
    root = translation_unit(function("main", delete_expr(4)))
    assert _run_rule("SP-OWN-001", root) == []


def test_snippet_taken_from_extent():
    source = b"void f() {\n    int* p = new int(42);\n}\n"
    node = new_expr(2)
    node.extent = span(source, b"new int(42)")
    findings = _run_rule("SP-OWN-001", translation_unit(function("f", node)), source)
    assert findings[0].location.snippet == "new int(42)"
