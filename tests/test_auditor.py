from __future__ import annotations

from licaudit.auditor import CommitAuditor
from licaudit.model import CommitVerdict
from licaudit.resolver import CoveredPersons, RetroactiveResolver
from tests.history_helpers import MIT_HASH, FakeHistory, current_grant, marked


def _auditor(history: FakeHistory, *, covered: CoveredPersons | None = None, **kwargs) -> CommitAuditor:
    resolver = RetroactiveResolver(frozenset({MIT_HASH}), covered or CoveredPersons())
    return CommitAuditor(resolver, history, **kwargs)


def test_granted_commit_skips_diff(history: FakeHistory) -> None:
    history.add("root", message="init")
    commit = history.add("c1", parent="root", message=marked(current_grant(MIT_HASH)), added_lines=500)
    outcome = _auditor(history).audit(commit)
    assert outcome.verdict is CommitVerdict.GRANTED
    assert outcome.stanza_count == 1
    assert outcome.declaration_count == 1
    assert outcome.finding() is None
    assert history.diff_calls == []


def test_covered_author_is_authorized_by_signature(history: FakeHistory) -> None:
    history.add("root")
    commit = history.add("c1", parent="root", author=("Alice", "alice@example.com"))
    outcome = _auditor(history, covered=CoveredPersons(["Alice <alice@example.com>"])).audit(commit)
    assert outcome.verdict is CommitVerdict.COVERED


def test_trivial_commit_counts_only_added_lines_against_first_parent(history: FakeHistory) -> None:
    history.add("root")
    commit = history.add("c1", parent="root", added_lines=3)
    outcome = _auditor(history).audit(commit)
    assert outcome.verdict is CommitVerdict.TRIVIAL
    assert outcome.added_lines == 3
    assert history.diff_calls == [("tree-root", "tree-c1")]


def test_commit_above_threshold_is_unprovable(history: FakeHistory) -> None:
    history.add("root")
    commit = history.add("c1", parent="root", added_lines=5, author=("Mallory", "m@example.com"))
    outcome = _auditor(history).audit(commit)
    assert outcome.verdict is CommitVerdict.UNPROVABLE
    finding = outcome.finding()
    assert finding is not None
    assert str(finding) == "licence unprovable: c1 (Mallory <m@example.com>)"


def test_root_commit_is_never_trivial(history: FakeHistory) -> None:
    commit = history.add("root", added_lines=0)
    outcome = _auditor(history).audit(commit)
    assert outcome.verdict is CommitVerdict.UNPROVABLE
    assert outcome.added_lines is None
    assert history.diff_calls == []


def test_threshold_is_configurable(history: FakeHistory) -> None:
    history.add("root")
    commit = history.add("c1", parent="root", added_lines=5)
    assert _auditor(history, trivial_max_added_lines=5).audit(commit).verdict is CommitVerdict.TRIVIAL
    assert _auditor(history, trivial_max_added_lines=0).audit(commit).verdict is CommitVerdict.UNPROVABLE
