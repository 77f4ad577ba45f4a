"""
AST matching engine: evaluate one rule against one parsed file.

``analyze_file`` is the single (file, rule) entry point. It never raises for
problems with the file itself: unreadable files and parse failures come back
as a failed ``FileAnalysisResult``. The only exception it raises is
``UnsupportedRuleError``, when no matcher is registered for the rule id.

``evaluate`` applies a rule to an already-parsed ``FileContext``; the
orchestrator uses it to run every rule over a single parse of a file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from safeprofile.compile_commands import CompilationFlags
from safeprofile.context import FileContext, create_context, get_line_col, get_snippet
from safeprofile.errors import AnalysisError, UnsupportedRuleError
from safeprofile.findings.models import FileAnalysisResult, Finding, Location
from safeprofile.parser import SemanticParser
from safeprofile.profile import Rule
from safeprofile.rules.base import RuleMatcher
from safeprofile.rules.registry import matcher_for

logger = logging.getLogger(__name__)


def _require_matcher(rule: Rule) -> RuleMatcher:
    matcher = matcher_for(rule)
    if matcher is None:
        raise UnsupportedRuleError(rule.id)
    return matcher


def evaluate(context: FileContext, rule: Rule) -> list[Finding]:
    """
    Run a rule's predicate over a parsed file and return one Finding per match.

    Only main-file nodes are considered. Matches are not deduplicated.

    Raises:
        UnsupportedRuleError: if no matcher is registered for ``rule.id``.
    """
    matcher = _require_matcher(rule)
    findings: list[Finding] = []
    for match in matcher.matches(context.root):
        line, col = get_line_col(match.node)
        findings.append(
            Finding(
                rule_id=rule.id,
                message=matcher.message(rule, match),
                location=Location(
                    path=context.path,
                    line=line,
                    column=col,
                    snippet=get_snippet(context, match.node),
                ),
                severity=rule.severity,
            )
        )
    logger.debug("Rule %s: %d finding(s) in %s", rule.id, len(findings), context.path)
    return findings


def load_context(
    path: Path,
    flags: CompilationFlags,
    parser: Optional[SemanticParser] = None,
    extra_args: Sequence[str] = (),
) -> FileContext | FileAnalysisResult:
    """
    Parse a file, returning its context or a failed result.

    Analysis failures (unreadable file, compilation error) are logged and
    returned as data.
    """
    try:
        return create_context(path, flags, parser=parser, extra_args=extra_args)
    except AnalysisError as e:
        logger.warning("Could not analyze %s: %s", path, e.detail)
        return FileAnalysisResult.failed(path, e.detail)


def analyze_file(
    path: Path,
    rule: Rule,
    flags: CompilationFlags,
    parser: Optional[SemanticParser] = None,
    extra_args: Sequence[str] = (),
) -> FileAnalysisResult:
    """
    Parse ``path`` under ``flags`` and evaluate ``rule`` against it.

    Returns:
        A successful result with zero or more findings, or a failed result
        with an error message (and no findings) if the file could not be
        read or parsed.

    Raises:
        UnsupportedRuleError: if no matcher is registered for ``rule.id``.
    """
    _require_matcher(rule)
    loaded = load_context(path, flags, parser=parser, extra_args=extra_args)
    if isinstance(loaded, FileAnalysisResult):
        return loaded
    return FileAnalysisResult.succeeded(path, evaluate(loaded, rule))
