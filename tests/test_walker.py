from __future__ import annotations

import pytest

from licaudit.auditor import CommitAuditor
from licaudit.exceptions import RepositoryAccessError
from licaudit.model import CommitVerdict
from licaudit.resolver import CoveredPersons, RetroactiveResolver
from licaudit.walker import walk_history
from tests.history_helpers import (
    MIT_HASH,
    FakeHistory,
    completeness,
    current_grant,
    marked,
    retroactive_grant,
)

ALICE = ("Alice", "alice@example.com")
BOB = ("Bob", "bob@example.com")


def _walk(history: FakeHistory, start: str):
    resolver = RetroactiveResolver(frozenset({MIT_HASH}), CoveredPersons())
    return walk_history(history, start, CommitAuditor(resolver, history))


def _verdicts(result) -> dict[str, CommitVerdict]:
    return {outcome.sha: outcome.verdict for outcome in result.outcomes}


def test_walk_visits_newest_to_oldest_along_first_parent(history: FakeHistory) -> None:
    history.add("root", message=marked(current_grant(MIT_HASH)))
    history.add("side", message="never visited")
    middle = history.add("middle", parent="root", added_lines=1)
    history.add("merge", parents=("middle", "side"), added_lines=2)
    result = _walk(history, "merge")
    assert [outcome.sha for outcome in result.outcomes] == ["merge", "middle", "root"]
    assert result.ok
    assert middle.first_parent == "root"


def test_mit_current_grant_scenario_has_no_findings(history: FakeHistory) -> None:
    history.add(
        "root",
        message="Initial\n\nÂ©: I hereby licence these changes under the licence with SHA256 hash "
        f"{MIT_HASH}.\n",
    )
    result = _walk(history, "root")
    assert result.ok
    assert result.findings == ()


def test_five_added_lines_without_stanza_is_one_finding(history: FakeHistory) -> None:
    history.add("root", message=marked(current_grant(MIT_HASH)))
    history.add("c1", parent="root", added_lines=5, author=BOB)
    result = _walk(history, "c1")
    assert [finding.sha for finding in result.findings] == ["c1"]
    assert result.findings[0].author_email == "bob@example.com"


def test_grant_in_newer_commit_covers_older_commits_by_same_author(history: FakeHistory) -> None:
    history.add("root", author=ALICE, added_lines=50)
    history.add("c1", parent="root", author=ALICE, added_lines=50)
    history.add(
        "c2",
        parent="c1",
        author=BOB,
        message=marked(retroactive_grant("Alice", MIT_HASH), current_grant(MIT_HASH)),
    )
    result = _walk(history, "c2")
    assert _verdicts(result) == {
        "c2": CommitVerdict.GRANTED,
        "c1": CommitVerdict.COVERED,
        "root": CommitVerdict.COVERED,
    }
    assert "Alice" in result.covered_persons


def test_older_grant_does_not_satisfy_newer_completeness(history: FakeHistory) -> None:
    history.add("root", author=ALICE, message=marked(retroactive_grant("Alice", MIT_HASH)))
    history.add("c1", parent="root", author=ALICE, added_lines=20)
    history.add(
        "c2",
        parent="c1",
        author=BOB,
        added_lines=20,
        message=marked(completeness("Alice", "Bob")),
    )
    result = _walk(history, "c2")
    verdicts = _verdicts(result)
    assert verdicts["c2"] is CommitVerdict.UNPROVABLE
    assert verdicts["c1"] is CommitVerdict.UNPROVABLE
    assert verdicts["root"] is CommitVerdict.COVERED
    assert [finding.sha for finding in result.findings] == ["c2", "c1"]


def test_founding_commit_promotes_declarant_for_older_history(history: FakeHistory) -> None:
    history.add("root", author=("Xavier", "x@example.com"), added_lines=40)
    history.add(
        "c1",
        parent="root",
        author=("Xavier", "x@example.com"),
        message=marked(
            completeness("Xavier <x@example.com>", "A and B"),
            retroactive_grant("A", MIT_HASH),
            retroactive_grant("B", MIT_HASH),
        ),
    )
    result = _walk(history, "c1")
    assert _verdicts(result) == {"c1": CommitVerdict.COVERED, "root": CommitVerdict.COVERED}


def test_covered_persons_is_monotonic_along_the_walk(history: FakeHistory) -> None:
    history.add("root", message=marked(retroactive_grant("C", MIT_HASH)))
    history.add("c1", parent="root", message=marked(retroactive_grant("B", MIT_HASH)))
    history.add("c2", parent="c1", message=marked(retroactive_grant("A", MIT_HASH)))
    covered = CoveredPersons()
    auditor = CommitAuditor(RetroactiveResolver(frozenset({MIT_HASH}), covered), history)
    snapshots = []
    sha: str | None = "c2"
    while sha is not None:
        commit = history.commit(sha)
        auditor.audit(commit)
        snapshots.append(covered.snapshot())
        sha = commit.first_parent
    assert all(earlier <= later for earlier, later in zip(snapshots, snapshots[1:]))
    assert snapshots[-1] == frozenset({"A", "B", "C"})


def test_walk_is_idempotent(history: FakeHistory) -> None:
    history.add("root", added_lines=9)
    history.add("c1", parent="root", added_lines=9, author=BOB)
    assert _walk(history, "c1") == _walk(history, "c1")


def test_access_failure_aborts_the_walk() -> None:
    class BrokenHistory(FakeHistory):
        def commit(self, sha: str):
            if sha == "missing":
                raise RepositoryAccessError("bad object missing")
            return super().commit(sha)

    history = BrokenHistory()
    history.add("c1", parent="missing", added_lines=50)
    with pytest.raises(RepositoryAccessError):
        _walk(history, "c1")
