"""
Aggregation and orchestration: run every rule over every file.

For each file the flags are resolved once, the file is parsed once, and each
supported rule is evaluated against that parse. Because the parser is a pure
function of (text, flags), this gives the same result as parsing per rule.

Failure is file-scoped: a file that cannot be analyzed contributes no
findings and exactly one ``FailedFile`` entry, however many rules were
attempted against it.

Typical usage:
    from pathlib import Path
    from safeprofile.analyzer import Analyzer
    from safeprofile.profile import load_profile
    from safeprofile.resolver import FlagResolver

    analyzer = Analyzer(FlagResolver(target_root=Path("./src")))
    report = analyzer.run(files, load_profile("core-safety"))
    sys.exit(report.exit_code)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence

from safeprofile.compile_commands import normalize_path
from safeprofile.engine import evaluate, load_context
from safeprofile.findings.models import FailedFile, FileAnalysisResult, Finding
from safeprofile.parser import SemanticParser, create_parser
from safeprofile.profile import Rule
from safeprofile.resolver import FlagResolver
from safeprofile.rules.registry import is_supported

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 3


@dataclass
class AnalysisReport:
    """The two result channels of a run, plus bookkeeping for the reporting layer."""

    findings: list[Finding] = field(default_factory=list)
    failed_files: list[FailedFile] = field(default_factory=list)
    analyzed_files: list[Path] = field(default_factory=list)
    skipped_rules: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        """0 clean, 1 violations, 2 some files could not be analyzed (takes precedence)."""
        if self.failed_files:
            return EXIT_PARTIAL_FAILURE
        if self.findings:
            return EXIT_VIOLATIONS
        return EXIT_OK


class Analyzer:
    """Runs the matching engine over files x rules and merges the results."""

    def __init__(
        self,
        resolver: Optional[FlagResolver] = None,
        parser: Optional[SemanticParser] = None,
        extra_args: Sequence[str] = (),
    ) -> None:
        self.resolver = resolver if resolver is not None else FlagResolver()
        self._parser = parser
        self.extra_args = tuple(extra_args)

    @property
    def parser(self) -> SemanticParser:
        if self._parser is None:
            self._parser = create_parser()
        return self._parser

    def run(self, files: Iterable[Path], rules: Sequence[Rule]) -> AnalysisReport:
        report = AnalysisReport()
        supported = []
        for rule in rules:
            if is_supported(rule):
                supported.append(rule)
            else:
                logger.warning("Skipping unsupported rule %s", rule.id)
                report.skipped_rules.append(rule.id)

        failed: dict[str, FailedFile] = {}
        if not supported:
            logger.warning("No supported rules to evaluate")
            return report

        for path in files:
            flags = self.resolver.resolve(path)
            loaded = load_context(path, flags, parser=self.parser, extra_args=self.extra_args)
            if isinstance(loaded, FileAnalysisResult):
                key = normalize_path(path)
                # first failure for a file wins
                if key not in failed:
                    failed[key] = FailedFile(file=path, error_message=loaded.error_message or "")
                    report.failed_files.append(failed[key])
                continue

            file_findings: list[Finding] = []
            for rule in supported:
                file_findings.extend(evaluate(loaded, rule))
            report.findings.extend(file_findings)
            report.analyzed_files.append(path)
            logger.info("%s: %d finding(s)", path, len(file_findings))

        logger.info(
            "Analysis complete: %d finding(s), %d file(s) analyzed, %d failed",
            len(report.findings),
            len(report.analyzed_files),
            len(report.failed_files),
        )
        return report
