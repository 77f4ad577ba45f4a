# SARIF 2.1.0 output: findings and rule metadata as a machine-readable report.

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence

from safeprofile.findings.models import Finding
from safeprofile.profile import Rule, Severity
from safeprofile.version import __version__

logger = logging.getLogger(__name__)

SARIF_SCHEMA = (
    "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/"
    "Schemata/sarif-schema-2.1.0.json"
)
SARIF_VERSION = "2.1.0"
TOOL_NAME = "SafeProfile"
TOOL_URI = "https://github.com/boost/safeprofile"

SEVERITY_LEVELS: dict[Severity, str] = {
    Severity.BLOCKER: "error",
    Severity.MAJOR: "warning",
    Severity.MINOR: "note",
    Severity.INFO: "none",
}


def severity_to_level(severity: Severity) -> str:
    """Map a rule severity onto a SARIF result level."""
    return SEVERITY_LEVELS.get(severity, "warning")


def _rule_descriptor(rule: Rule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "shortDescription": {"text": rule.title},
        "fullDescription": {"text": rule.description},
        "defaultConfiguration": {"level": severity_to_level(rule.severity)},
    }


def _result(finding: Finding) -> dict[str, Any]:
    loc = finding.location
    region: dict[str, Any] = {"startLine": loc.line, "startColumn": loc.column}
    if loc.snippet:
        region["snippet"] = {"text": loc.snippet}
    return {
        "ruleId": finding.rule_id,
        "level": severity_to_level(finding.severity),
        "message": {"text": finding.message},
        "locations": [
            {
                "physicalLocation": {
                    "artifactLocation": {"uri": loc.path.as_posix()},
                    "region": region,
                }
            }
        ],
    }


def generate_sarif(findings: Sequence[Finding], rules: Sequence[Rule]) -> dict[str, Any]:
    """Build a SARIF log with one run: the tool driver (with rules) and one result per finding."""
    driver = {
        "name": TOOL_NAME,
        "version": __version__,
        "semanticVersion": __version__,
        "informationUri": TOOL_URI,
        "rules": [_rule_descriptor(rule) for rule in rules],
    }
    return {
        "$schema": SARIF_SCHEMA,
        "version": SARIF_VERSION,
        "runs": [
            {
                "tool": {"driver": driver},
                "results": [_result(f) for f in findings],
            }
        ],
    }


def write_sarif(document: dict[str, Any], output_path: Path) -> None:
    """Write a SARIF document as pretty-printed JSON. OSError propagates to the caller."""
    output_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    logger.info("SARIF written to %s", output_path)
