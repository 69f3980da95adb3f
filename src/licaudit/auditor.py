"""Per-commit licence audit."""

from __future__ import annotations

import structlog

from licaudit.declarations import classify_all
from licaudit.git_access import CommitInfo, HistorySource, added_line_count
from licaudit.model import CommitOutcome, CommitVerdict
from licaudit.resolver import RetroactiveResolver
from licaudit.stanzas import extract_stanzas

log = structlog.get_logger(__name__)

DEFAULT_TRIVIAL_MAX_ADDED_LINES = 3


class CommitAuditor:
    def __init__(
        self,
        resolver: RetroactiveResolver,
        history: HistorySource,
        *,
        trivial_max_added_lines: int = DEFAULT_TRIVIAL_MAX_ADDED_LINES,
    ) -> None:
        self.resolver = resolver
        self.history = history
        self.trivial_max_added_lines = trivial_max_added_lines

    def added_lines(self, commit: CommitInfo) -> int | None:
        """Lines added relative to the first parent; ``None`` for a root commit."""
        parent_sha = commit.first_parent
        if parent_sha is None:
            return None
        parent = self.history.commit(parent_sha)
        return added_line_count(self.history.diff_lines(parent.tree, commit.tree))

    def audit(self, commit: CommitInfo) -> CommitOutcome:
        stanzas = extract_stanzas(commit.message)
        declarations = classify_all(stanzas)
        resolution = self.resolver.resolve(
            declarations,
            author_name=commit.author_name,
            author_email=commit.author_email,
        )

        added: int | None = None
        if resolution.directly_granted:
            verdict = CommitVerdict.GRANTED
        elif resolution.author_covered:
            verdict = CommitVerdict.COVERED
        else:
            added = self.added_lines(commit)
            if added is not None and added <= self.trivial_max_added_lines:
                verdict = CommitVerdict.TRIVIAL
            else:
                verdict = CommitVerdict.UNPROVABLE

        log.debug(
            "commit_audited",
            sha=commit.sha,
            verdict=verdict.value,
            stanzas=len(stanzas),
            declarations=len(declarations),
            added_lines=added,
        )
        return CommitOutcome(
            sha=commit.sha,
            author_name=commit.author_name,
            author_email=commit.author_email,
            verdict=verdict,
            stanza_count=len(stanzas),
            declaration_count=len(declarations),
            added_lines=added,
            granted=resolution.granted,
            promoted=resolution.promoted,
        )


__all__ = ["DEFAULT_TRIVIAL_MAX_ADDED_LINES", "CommitAuditor"]
