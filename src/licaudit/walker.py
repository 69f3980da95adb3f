from __future__ import annotations

import structlog

from licaudit.auditor import CommitAuditor
from licaudit.git_access import HistorySource
from licaudit.model import AuditResult, CommitOutcome, Finding

log = structlog.get_logger(__name__)


def walk_history(history: HistorySource, start_sha: str, auditor: CommitAuditor) -> AuditResult:
    """Audit ``start_sha`` and each first parent down to the root commit.

    Older commits may depend on people covered while visiting newer ones, so
    the order is fixed and the walk never branches.
    """
    outcomes: list[CommitOutcome] = []
    findings: list[Finding] = []
    sha: str | None = start_sha
    while sha is not None:
        commit = history.commit(sha)
        outcome = auditor.audit(commit)
        outcomes.append(outcome)
        finding = outcome.finding()
        if finding is not None:
            findings.append(finding)
        sha = commit.first_parent
    log.info("history_walked", start=start_sha, commits=len(outcomes), findings=len(findings))
    return AuditResult(
        start=start_sha,
        outcomes=tuple(outcomes),
        findings=tuple(findings),
        covered_persons=auditor.resolver.covered.snapshot(),
    )


__all__ = ["walk_history"]
