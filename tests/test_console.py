"""Tests for Rich console reporting."""

from io import StringIO
from pathlib import Path

from rich.console import Console

from safeprofile.analyzer import AnalysisReport
from safeprofile.findings.models import FailedFile, Finding, Location
from safeprofile.profile import Severity, load_profile
from safeprofile.reporting.console import RULE_REMEDIATIONS, print_report, print_rules


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


def _finding(path: Path, line: int, rule_id: str = "SP-BOUNDS-001", snippet: str = "int arr[10];") -> Finding:
    return Finding(
        rule_id=rule_id,
        message="C-style array lacks bounds checking. Consider std::array<T, 10>.",
        location=Location(path=path, line=line, column=5, snippet=snippet),
        severity=Severity.MAJOR,
    )


def test_clean_report():
    console, buffer = _console()
    report = AnalysisReport(analyzed_files=[Path("a.cpp")])
    print_report(report, console=console)
    out = buffer.getvalue()
    assert "No violations found." in out
    assert "OK" in out


def test_findings_grouped_by_file_with_summary():
    console, buffer = _console()
    a, b = Path("src/a.cpp"), Path("src/b.cpp")
    report = AnalysisReport(
        findings=[_finding(a, 3), _finding(a, 7), _finding(b, 2)],
        analyzed_files=[a, b],
    )
    print_report(report, console=console)
    out = buffer.getvalue()
    assert "src/a.cpp" in out
    assert "src/b.cpp" in out
    assert "[SP-BOUNDS-001]" in out
    assert "std::array<T, 10>" in out
    assert "UNSAFE" in out
    assert "3 violations" in out


def test_snippet_brackets_printed_literally():
    """Snippets containing [..] are not treated as Rich markup."""
    console, buffer = _console()
    a = Path("a.cpp")
    report = AnalysisReport(findings=[_finding(a, 1, snippet="int grid[i][bold];")], analyzed_files=[a])
    print_report(report, console=console)
    assert "int grid[i][bold];" in buffer.getvalue()


def test_failures_reported_first():
    console, buffer = _console()
    good, bad = Path("good.cpp"), Path("bad.cpp")
    report = AnalysisReport(
        findings=[_finding(good, 4)],
        failed_files=[FailedFile(file=bad, error_message="Compilation failed with 1 error(s): bad.cpp:2:5: expected ';'")],
        analyzed_files=[good],
    )
    print_report(report, console=console)
    out = buffer.getvalue()
    assert "1 file(s) failed to compile" in out
    assert "expected ';'" in out
    assert "FAILED" in out
    assert out.index("failed to compile") < out.index("[SP-BOUNDS-001]")


def test_failures_without_findings():
    console, buffer = _console()
    report = AnalysisReport(failed_files=[FailedFile(file=Path("bad.cpp"), error_message="boom")])
    print_report(report, console=console)
    out = buffer.getvalue()
    assert "No violations found in successfully analyzed files." in out


def test_verbose_shows_fix_hints():
    console, buffer = _console()
    a = Path("a.cpp")
    print_report(AnalysisReport(findings=[_finding(a, 1)], analyzed_files=[a]), verbose=True, console=console)
    assert RULE_REMEDIATIONS["SP-BOUNDS-001"] in buffer.getvalue()


def test_print_rules():
    console, buffer = _console()
    print_rules("core-safety", load_profile("core-safety"), console=console)
    out = buffer.getvalue()
    assert "Profile: core-safety" in out
    for rule_id in ("SP-OWN-001", "SP-OWN-002", "SP-BOUNDS-001", "SP-TYPE-001", "SP-LIFE-003"):
        assert rule_id in out
    assert "blocker" in out
