# Rich console output: format findings and analysis failures for terminal display.

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from safeprofile.analyzer import AnalysisReport
from safeprofile.findings.models import FailedFile, Finding
from safeprofile.profile import Rule, Severity

# Remediation hints per rule (shown with --verbose)
RULE_REMEDIATIONS: dict[str, str] = {
    "SP-OWN-001": (
        "Replace 'new T(...)' with std::make_unique<T>(...) or std::make_shared<T>(...); "
        "replace 'new T[n]' with std::vector<T>(n)."
    ),
    "SP-OWN-002": "Remove the delete by giving ownership to std::unique_ptr or a container.",
    "SP-BOUNDS-001": "Use std::array<T, N> for fixed sizes and std::vector<T> otherwise.",
    "SP-TYPE-001": "Use static_cast, const_cast or reinterpret_cast to state the conversion.",
    "SP-LIFE-003": "Return by value, or return a reference to storage that outlives the call.",
}

SEVERITY_STYLE = {
    Severity.BLOCKER: "bold red",
    Severity.MAJOR: "bold yellow",
    Severity.MINOR: "bold blue",
    Severity.INFO: "bold dim",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: Severity) -> str:
    return SEVERITY_STYLE.get(severity, DEFAULT_SEVERITY_STYLE)


def _get_remediation(finding: Finding) -> str | None:
    """Return remediation hint for a finding, or None if unknown."""
    return RULE_REMEDIATIONS.get(finding.rule_id)


def print_report(
    report: AnalysisReport,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> None:
    """
    Print an analysis report: failures first, then findings grouped by file,
    a file-by-file summary, and a one-line summary footer.
    """
    console = console or Console()

    if report.failed_files:
        _print_failures(report.failed_files, console)

    if not report.findings:
        if report.failed_files:
            message = (
                "[yellow]No violations found in successfully analyzed files.[/yellow]\n"
                "[dim]Some files failed to compile; see above.[/dim]"
            )
            style = "yellow"
        else:
            message = "[green]No violations found.[/green]"
            style = "green"
        console.print(Panel(message, title="SafeProfile Analysis", border_style=style, box=box.ROUNDED))
        if report.analyzed_files:
            _print_file_summary_table([], report.analyzed_files, report.failed_files, console)
        return

    by_file: dict[str, list[Finding]] = {}
    for f in report.findings:
        by_file.setdefault(str(f.location.path), []).append(f)

    for path in sorted(by_file.keys()):
        file_findings = sorted(by_file[path], key=lambda x: (x.location.line, x.location.column))

        console.print()
        console.print(Panel(
            f"[bold cyan]{escape(path)}[/bold cyan]",
            box=box.SIMPLE_HEAD,
            border_style="blue",
            padding=(0, 1),
        ))

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Col", justify="right", style="dim", width=4)
        table.add_column("Severity", width=8)
        table.add_column("Rule", width=15)
        table.add_column("Message", style="white")

        for f in file_findings:
            loc = f.location
            table.add_row(
                str(loc.line),
                str(loc.column),
                Text(f.severity.value.upper(), style=_severity_style(f.severity)),
                Text(f"[{f.rule_id}]", style="dim"),
                Text(f.message),
            )

        console.print(table)

        for f in file_findings:
            if f.location.snippet:
                console.print(f"  [dim]{f.location.line:>5} |[/dim] {escape(f.location.snippet.strip())}", highlight=False)
        console.print()

        if verbose:
            seen_rules: set[str] = set()
            for f in file_findings:
                if f.rule_id not in seen_rules:
                    seen_rules.add(f.rule_id)
                    rem = _get_remediation(f)
                    if rem:
                        console.print(f"  [dim]\\[Fix][/dim] [{f.rule_id}] {escape(rem)}", highlight=False)
            if seen_rules:
                console.print()

    if report.analyzed_files:
        _print_file_summary_table(report.findings, report.analyzed_files, report.failed_files, console)

    _print_summary(report.findings, console)


def _print_failures(failed_files: Sequence[FailedFile], console: Console) -> None:
    lines = [
        f"[bold]{escape(str(failed.file))}[/bold]\n  [dim]{escape(failed.error_message)}[/dim]"
        for failed in failed_files
    ]
    lines.append(
        "\n[dim]Compilation errors prevent AST analysis. Make sure the files compile "
        "with the default flags, or provide a compile_commands.json.[/dim]"
    )
    console.print(
        Panel(
            "\n".join(lines),
            title=f"{len(failed_files)} file(s) failed to compile and were not analyzed",
            border_style="red",
            box=box.ROUNDED,
        )
    )


def _print_file_summary_table(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path],
    failed_files: Sequence[FailedFile],
    console: Console,
) -> None:
    """Print a table of clean, unsafe and failed files."""
    by_path: dict[str, int] = {}
    for f in findings:
        key = str(f.location.path)
        by_path[key] = by_path.get(key, 0) + 1

    table = Table(
        title="Files Summary",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Status", width=10)
    table.add_column("Findings", justify="right", width=8)

    for p in sorted(analyzed_files, key=str):
        count = by_path.get(str(p), 0)
        if count:
            table.add_row(Text(str(p)), Text("UNSAFE", style="bold red"), str(count))
        else:
            table.add_row(Text(str(p)), Text("OK", style="bold green"), "0")
    for failed in sorted(failed_files, key=lambda x: str(x.file)):
        table.add_row(Text(str(failed.file)), Text("FAILED", style="bold yellow"), "-")

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_summary(findings: Sequence[Finding], console: Console) -> None:
    """Print a compact summary of findings by severity."""
    by_severity: dict[Severity, int] = {}
    for f in findings:
        by_severity[f.severity] = by_severity.get(f.severity, 0) + 1

    total = len(findings)
    summary_parts = [f"[bold]{total} violation{'s' if total != 1 else ''}[/bold]"]
    for sev in sorted(by_severity, reverse=True):
        summary_parts.append(f"[{_severity_style(sev)}]{by_severity[sev]} {sev.value}[/]")

    console.print()
    console.print(
        Panel(
            " | ".join(summary_parts),
            title="Summary",
            border_style="yellow" if total > 0 else "green",
            box=box.ROUNDED,
        )
    )


def print_rules(profile: str, rules: Sequence[Rule], console: Optional[Console] = None) -> None:
    """Print the rules of a profile as a table."""
    console = console or Console()
    table = Table(
        title=f"Profile: {profile}",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("Rule", style="bold")
    table.add_column("Severity", width=8)
    table.add_column("Title")
    table.add_column("Description", style="dim")
    for rule in rules:
        table.add_row(
            rule.id,
            Text(rule.severity.value, style=_severity_style(rule.severity)),
            Text(rule.title),
            Text(rule.description),
        )
    console.print(table)
