from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from licaudit.model import AuditResult, CommitOutcome, Finding

REPORT_FORMAT_VERSION = 1


class FindingDTO(BaseModel):
    sha: str
    author_name: str
    author_email: str
    message: str


class CommitOutcomeDTO(BaseModel):
    sha: str
    author_name: str
    author_email: str
    verdict: str
    stanza_count: int = 0
    declaration_count: int = 0
    added_lines: Optional[int] = None
    granted: List[str] = []
    promoted: List[str] = []


class AuditReportDTO(BaseModel):
    format_version: int = REPORT_FORMAT_VERSION
    start: str
    accepted_hashes: List[str]
    commits: List[CommitOutcomeDTO]
    findings: List[FindingDTO]
    covered_persons: List[str]
    ok: bool


def finding_dto(finding: Finding) -> FindingDTO:
    return FindingDTO(
        sha=finding.sha,
        author_name=finding.author_name,
        author_email=finding.author_email,
        message=str(finding),
    )


def commit_outcome_dto(outcome: CommitOutcome) -> CommitOutcomeDTO:
    return CommitOutcomeDTO(
        sha=outcome.sha,
        author_name=outcome.author_name,
        author_email=outcome.author_email,
        verdict=outcome.verdict.value,
        stanza_count=outcome.stanza_count,
        declaration_count=outcome.declaration_count,
        added_lines=outcome.added_lines,
        granted=list(outcome.granted),
        promoted=list(outcome.promoted),
    )


def audit_report(result: AuditResult, accepted_hashes: frozenset[str]) -> AuditReportDTO:
    return AuditReportDTO(
        start=result.start,
        accepted_hashes=sorted(accepted_hashes),
        commits=[commit_outcome_dto(outcome) for outcome in result.outcomes],
        findings=[finding_dto(finding) for finding in result.findings],
        covered_persons=sorted(result.covered_persons),
        ok=result.ok,
    )
