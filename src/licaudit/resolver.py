"""Cross-commit resolution of retroactive licensing declarations.

The walk runs newest to oldest and :class:`CoveredPersons` lives for the whole
walk. A person enters it either by a retroactive grant under an accepted
hash, or by a completeness declaration whose required persons all granted in
that same commit. Once covered, every older commit they authored is
authorized by signature match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterable, Iterator

import structlog

from licaudit.declarations import DeclarationKind, ParsedDeclaration

log = structlog.get_logger(__name__)


def author_identity(name: str, email: str) -> str:
    return f"{name} <{email}>"


class CoveredPersons:
    """Identities whose copyright interest is licensed. Only ever grows."""

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._persons: set[str] = set(initial)

    def add(self, person: str) -> bool:
        if person in self._persons:
            return False
        self._persons.add(person)
        return True

    def __contains__(self, person: object) -> bool:
        return person in self._persons

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._persons))

    def __len__(self) -> int:
        return len(self._persons)

    def covers_author(self, name: str, email: str) -> bool:
        return name in self._persons or author_identity(name, email) in self._persons

    def snapshot(self) -> frozenset[str]:
        return frozenset(self._persons)


@dataclass(frozen=True)
class Resolution:
    directly_granted: bool
    author_covered: bool
    granted: tuple[str, ...] = ()
    promoted: tuple[str, ...] = ()

    @property
    def authorized(self) -> bool:
        return self.directly_granted or self.author_covered


class RetroactiveResolver:
    def __init__(self, accepted_hashes: AbstractSet[str], covered: CoveredPersons) -> None:
        self.accepted_hashes = accepted_hashes
        self.covered = covered

    def is_accepted(self, digest: str | None) -> bool:
        return digest is not None and digest.lower() in self.accepted_hashes

    def resolve(
        self,
        declarations: Iterable[ParsedDeclaration],
        *,
        author_name: str,
        author_email: str,
    ) -> Resolution:
        """Apply one commit's declarations and decide whether it is authorized.

        Completeness declarations only ever look at retroactive grants made
        in the same commit, never at other completeness declarations.
        """
        directly_granted = False
        granted: list[str] = []
        granted_here: set[str] = set()
        pending: dict[str, tuple[str, ...]] = {}

        for declaration in declarations:
            if declaration.kind is DeclarationKind.CURRENT_GRANT:
                if self.is_accepted(declaration.hash):
                    directly_granted = True
            elif declaration.kind is DeclarationKind.RETROACTIVE_GRANT:
                if not self.is_accepted(declaration.hash):
                    continue
                person = declaration.person or author_identity(author_name, author_email)
                if person not in granted:
                    granted.append(person)
                granted_here.add(person)
                if declaration.person is None:
                    # An authorless grant also answers to the bare author name here.
                    granted_here.add(author_name)
                self.covered.add(person)
            elif declaration.kind is DeclarationKind.RETROACTIVE_COMPLETENESS:
                declarant = declaration.person or author_identity(author_name, author_email)
                if declarant in pending:
                    log.warning("duplicate_completeness_declaration", person=declarant)
                    continue
                pending[declarant] = declaration.persons

        promoted: list[str] = []
        for declarant, required in pending.items():
            missing = [person for person in required if person not in granted_here]
            if missing:
                log.info("completeness_not_satisfied", person=declarant, missing=missing)
                continue
            self.covered.add(declarant)
            promoted.append(declarant)

        return Resolution(
            directly_granted=directly_granted,
            author_covered=self.covered.covers_author(author_name, author_email),
            granted=tuple(granted),
            promoted=tuple(promoted),
        )


__all__ = ["CoveredPersons", "Resolution", "RetroactiveResolver", "author_identity"]
