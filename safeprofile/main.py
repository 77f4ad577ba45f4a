from __future__ import annotations

"""
Typer CLI entry point and orchestration of the analysis pipeline.

    safeprofile analyze TARGET [--profile NAME] [--compile-commands DIR]
                               [--sarif PATH] [--verbose]
    safeprofile rules [--profile NAME]
    safeprofile --version

Exit codes: 0 clean, 1 violations found, 2 some files could not be analyzed,
3 fatal error (bad arguments, unknown profile, libclang unavailable).
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from safeprofile.analyzer import EXIT_FATAL, Analyzer
from safeprofile.compile_commands import CompilationDatabase
from safeprofile.config import Config, get_default_config, get_enabled_rules
from safeprofile.errors import SafeProfileError
from safeprofile.profile import DEFAULT_PROFILE, available_profiles
from safeprofile.reporting.console import print_report, print_rules
from safeprofile.reporting.sarif import generate_sarif, write_sarif
from safeprofile.resolver import FlagResolver
from safeprofile.traversal import collect_sources
from safeprofile.version import __version__

logger = logging.getLogger(__name__)

app = typer.Typer(help="SafeProfile - check C++ code against a safety profile.")

err_console = Console(stderr=True)

PROFILE_HELP = f"Safety profile to use: {', '.join(available_profiles())}."


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fatal(message: str) -> typer.Exit:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    return typer.Exit(code=EXIT_FATAL)


def _load_config(profile: str) -> Config:
    try:
        return get_default_config(profile)
    except SafeProfileError as e:
        raise _fatal(str(e))


def _load_database(target: Path, directory: Optional[Path], config: Config) -> Optional[CompilationDatabase]:
    """Load compile_commands.json from DIR, or from the target (or its directory)."""
    if directory is None:
        directory = target if target.is_dir() else target.parent
    database = CompilationDatabase(default_std=config.default_std)
    if database.load_from_directory(directory):
        return database
    logger.info("No compilation database in %s; inferring flags", directory)
    return None


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"safeprofile {__version__}")
        raise typer.Exit()


@app.callback()
def cli(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """SafeProfile - check C++ code against a safety profile."""


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        resolve_path=True,
        help="C++ file or directory to analyze.",
    ),
    profile: str = typer.Option(DEFAULT_PROFILE, "--profile", "-p", help=PROFILE_HELP),
    compile_commands: Optional[Path] = typer.Option(
        None,
        "--compile-commands",
        help="Directory containing compile_commands.json (default: the target directory).",
    ),
    sarif: Optional[Path] = typer.Option(None, "--sarif", help="Also write a SARIF 2.1.0 report to PATH."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress logs and fix hints."),
) -> None:
    """
    Analyze a single C++ file or every C++ file under a directory.
    """
    _configure_logging(verbose)
    config = _load_config(profile)
    rules = list(get_enabled_rules(config))

    try:
        files = collect_sources(target)
    except OSError as e:
        raise _fatal(str(e))

    database = _load_database(target, compile_commands, config)
    resolver = FlagResolver(database=database, target_root=target, default_std=config.default_std)
    analyzer = Analyzer(resolver, extra_args=config.extra_args)

    try:
        report = analyzer.run(files, rules)
    except SafeProfileError as e:
        raise _fatal(str(e))

    print_report(report, verbose=verbose)

    if sarif is not None:
        try:
            write_sarif(generate_sarif(report.findings, rules), sarif)
        except OSError as e:
            raise _fatal(f"Cannot write SARIF report: {e}")

    raise typer.Exit(code=report.exit_code)


@app.command()
def rules(
    profile: str = typer.Option(DEFAULT_PROFILE, "--profile", "-p", help=PROFILE_HELP),
) -> None:
    """List the rules of a safety profile."""
    config = _load_config(profile)
    print_rules(config.profile, get_enabled_rules(config))


def main() -> None:
    """Entry point for the `safeprofile` console script."""
    app()


if __name__ == "__main__":
    main()
