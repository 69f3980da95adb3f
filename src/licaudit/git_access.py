"""Thin git access layer built on the ``git`` executable.

Everything the audit needs from version control goes through
:class:`GitRepository`: resolving the starting revision, reading one commit's
metadata and message, and diffing two trees into per-hunk line records.
Any git failure raises :class:`RepositoryAccessError`.
"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Protocol

from licaudit.exceptions import RepositoryAccessError

_FIELD_SEP = "\x1f"
_COMMIT_FORMAT = _FIELD_SEP.join(["%H", "%T", "%P", "%an", "%ae", "%B"])
_HUNK_RE = re.compile(
    r"^@@ -\d+(?:,(?P<old_count>\d+))? \+\d+(?:,(?P<new_count>\d+))? @@"
)


class DiffLineOrigin(Enum):
    ADDITION = "addition"
    DELETION = "deletion"
    CONTEXT = "context"


@dataclass(frozen=True)
class DiffLine:
    path: str
    origin: DiffLineOrigin
    num_lines: int


@dataclass(frozen=True)
class CommitInfo:
    sha: str
    tree: str
    parents: tuple[str, ...]
    author_name: str
    author_email: str
    message: str

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def first_parent(self) -> str | None:
        return self.parents[0] if self.parents else None


class HistorySource(Protocol):
    def commit(self, sha: str) -> CommitInfo: ...

    def diff_lines(self, old_tree: str, new_tree: str) -> list[DiffLine]: ...


def added_line_count(lines: Iterable[DiffLine]) -> int:
    return sum(line.num_lines for line in lines if line.origin is DiffLineOrigin.ADDITION)


def _strip_prefix(token: str, prefix: str) -> str | None:
    token = token.strip()
    if token == "/dev/null":
        return None
    return token[len(prefix):] if token.startswith(prefix) else token


def parse_diff_lines(diff_text: str) -> list[DiffLine]:
    """Turn ``git diff --unified=0`` output into per-hunk line records."""
    records: list[DiffLine] = []
    old_path: str | None = None
    new_path: str | None = None
    lines = diff_text.splitlines()
    index = 0
    while index < len(lines):
        raw_line = lines[index]
        index += 1
        if raw_line.startswith("diff --git "):
            old_path = new_path = None
            continue
        if raw_line.startswith("--- "):
            old_path = _strip_prefix(raw_line[4:], "a/")
            continue
        if raw_line.startswith("+++ "):
            new_path = _strip_prefix(raw_line[4:], "b/")
            continue
        match = _HUNK_RE.match(raw_line)
        if match is None:
            continue
        old_count = int(match.group("old_count") or "1")
        new_count = int(match.group("new_count") or "1")
        path = new_path or old_path or ""
        if old_count:
            records.append(DiffLine(path=path, origin=DiffLineOrigin.DELETION, num_lines=old_count))
        if new_count:
            records.append(DiffLine(path=path, origin=DiffLineOrigin.ADDITION, num_lines=new_count))
        # Skip the hunk body so removed lines that look like headers are not misread.
        remaining = old_count + new_count
        while remaining > 0 and index < len(lines):
            if not lines[index].startswith("\\"):
                remaining -= 1
            index += 1
    return records


RunFn = Callable[..., "subprocess.CompletedProcess[str]"]


class GitRepository:
    def __init__(self, root: Path, *, run_fn: RunFn = subprocess.run) -> None:
        self.root = root
        self._run_fn = run_fn

    def _git(self, *args: str) -> subprocess.CompletedProcess[str]:
        cmd = ["git", *args]
        try:
            return self._run_fn(
                cmd,
                cwd=self.root,
                check=False,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise RepositoryAccessError(f"could not run git: {exc}", command=cmd) from exc

    def _git_output(self, *args: str) -> str:
        proc = self._git(*args)
        if proc.returncode != 0:
            message = proc.stderr.strip() or proc.stdout.strip() or f"git {args[0]} failed"
            raise RepositoryAccessError(message, command=["git", *args])
        return proc.stdout

    def resolve_commit(self, revision: str) -> str:
        proc = self._git("rev-parse", "--verify", "--quiet", revision)
        if proc.returncode != 0 or not proc.stdout.strip():
            raise RepositoryAccessError(
                f"couldn't find revision - are there any commits?: {revision}",
                command=["git", "rev-parse", "--verify", revision],
            )
        peeled = self._git("rev-parse", "--verify", "--quiet", f"{proc.stdout.strip()}^{{commit}}")
        if peeled.returncode != 0 or not peeled.stdout.strip():
            raise RepositoryAccessError(
                f"revision does not specify a commit: {revision}",
                command=["git", "rev-parse", "--verify", f"{revision}^{{commit}}"],
            )
        return peeled.stdout.strip()

    def commit(self, sha: str) -> CommitInfo:
        raw = self._git_output(
            "log",
            "-1",
            "--no-show-signature",
            f"--format={_COMMIT_FORMAT}",
            sha,
            "--",
        )
        parts = raw.split(_FIELD_SEP, 5)
        if len(parts) != 6:
            raise RepositoryAccessError(
                f"unexpected commit record for {sha}",
                command=["git", "log", "-1", sha],
            )
        commit_sha, tree, parents, name, email, message = parts
        if message.endswith("\n"):
            message = message[:-1]
        return CommitInfo(
            sha=commit_sha.strip(),
            tree=tree.strip(),
            parents=tuple(parents.split()),
            author_name=name,
            author_email=email,
            message=message,
        )

    def diff_lines(self, old_tree: str, new_tree: str) -> list[DiffLine]:
        raw = self._git_output(
            "diff",
            "--unified=0",
            "--no-color",
            "--no-ext-diff",
            "--no-textconv",
            "--no-renames",
            "--src-prefix=a/",
            "--dst-prefix=b/",
            old_tree,
            new_tree,
            "--",
        )
        return parse_diff_lines(raw)


def open_repository(path: Path, *, run_fn: RunFn = subprocess.run) -> GitRepository:
    root = path.expanduser().resolve()
    if not root.is_dir():
        raise RepositoryAccessError(f"repository path is not a directory: {root}")
    repository = GitRepository(root, run_fn=run_fn)
    repository._git_output("rev-parse", "--git-dir")
    return repository


__all__ = [
    "CommitInfo",
    "DiffLine",
    "DiffLineOrigin",
    "GitRepository",
    "HistorySource",
    "added_line_count",
    "open_repository",
    "parse_diff_lines",
]
