# Pydantic data models for safety-profile findings: Location, Finding, FileAnalysisResult, FailedFile.

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from safeprofile.profile import Severity

SNIPPET_MAX_LENGTH = 80
SNIPPET_ELLIPSIS = "..."
SNIPPET_UNAVAILABLE = "<code unavailable>"


class Location(BaseModel):
    """Where in the source a finding was reported (file, line, column at the expansion point)."""

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    snippet: Optional[str] = Field(None, max_length=SNIPPET_MAX_LENGTH)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Finding(BaseModel):
    """A single rule violation (e.g. a naked new at line 42)."""

    rule_id: str
    message: str
    location: Location
    severity: Severity

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class FileAnalysisResult(BaseModel):
    """
    Outcome of evaluating one rule against one file.

    Exactly one of the two channels is used: a successful evaluation carries
    findings (possibly none) and no error message; a failed one carries an
    error message and no findings.
    """

    file: Path
    success: bool
    error_message: Optional[str] = None
    findings: list[Finding] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def _check_channels(self) -> "FileAnalysisResult":
        if self.success and self.error_message:
            raise ValueError("successful result must not carry an error message")
        if not self.success:
            if not self.error_message:
                raise ValueError("failed result requires an error message")
            if self.findings:
                raise ValueError("failed result must not carry findings")
        return self

    @classmethod
    def succeeded(cls, file: Path, findings: list[Finding]) -> "FileAnalysisResult":
        return cls(file=file, success=True, findings=findings)

    @classmethod
    def failed(cls, file: Path, error_message: str) -> "FileAnalysisResult":
        return cls(file=file, success=False, error_message=error_message)


class FailedFile(BaseModel):
    """A file that could not be analyzed; recorded once per run."""

    file: Path
    error_message: str

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
