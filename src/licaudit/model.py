from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CommitVerdict(Enum):
    GRANTED = "granted"
    COVERED = "covered"
    TRIVIAL = "trivial"
    UNPROVABLE = "unprovable"

    @property
    def authorized(self) -> bool:
        return self is not CommitVerdict.UNPROVABLE


@dataclass(frozen=True)
class Finding:
    sha: str
    author_name: str
    author_email: str

    def __str__(self) -> str:
        return f"licence unprovable: {self.sha} ({self.author_name} <{self.author_email}>)"


@dataclass(frozen=True)
class CommitOutcome:
    sha: str
    author_name: str
    author_email: str
    verdict: CommitVerdict
    stanza_count: int = 0
    declaration_count: int = 0
    added_lines: int | None = None
    granted: tuple[str, ...] = ()
    promoted: tuple[str, ...] = ()

    def finding(self) -> Finding | None:
        if self.verdict.authorized:
            return None
        return Finding(sha=self.sha, author_name=self.author_name, author_email=self.author_email)


@dataclass(frozen=True)
class AuditResult:
    start: str
    outcomes: tuple[CommitOutcome, ...] = ()
    findings: tuple[Finding, ...] = ()
    covered_persons: frozenset[str] = field(default_factory=frozenset)

    @property
    def ok(self) -> bool:
        return not self.findings


__all__ = ["AuditResult", "CommitOutcome", "CommitVerdict", "Finding"]
