"""Classification of stanzas against the fixed declaration grammars."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

import structlog

from licaudit.persons import parse_persons

log = structlog.get_logger(__name__)

HASH_LENGTH = 64


class DeclarationKind(Enum):
    CURRENT_GRANT = "current-grant"
    RETROACTIVE_COMPLETENESS = "retroactive-completeness"
    RETROACTIVE_GRANT = "retroactive-grant"


@dataclass(frozen=True)
class Grammar:
    name: str
    kind: DeclarationKind
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class ParsedDeclaration:
    kind: DeclarationKind
    grammar: str
    person: str | None = None
    persons: tuple[str, ...] = field(default_factory=tuple)
    hash: str | None = None


# Hash groups are deliberately looser than 64 hex digits so that a truncated
# hash is reported instead of silently ignored.
GRAMMARS: tuple[Grammar, ...] = (
    Grammar(
        name="current-grant",
        kind=DeclarationKind.CURRENT_GRANT,
        pattern=re.compile(
            r"^(?:I|We)(?:, (?P<person>.+),)? hereby licen[cs]e these changes"
            r" under the licen[cs]e with SHA256 hash (?P<hash>[0-9a-fA-F]+)\.$"
        ),
    ),
    Grammar(
        name="retroactive-completeness",
        kind=DeclarationKind.RETROACTIVE_COMPLETENESS,
        pattern=re.compile(
            r"^As regards this commit, and all commits upon which this commit depends,"
            r" (?P<person>.+) hereby declares that no entity other than (?P<persons>.+)"
            r" has a copyright interest in any such commit \(and the changes therein\)"
            r" authored by their person\.$"
        ),
    ),
    Grammar(
        name="retroactive-grant",
        kind=DeclarationKind.RETROACTIVE_GRANT,
        pattern=re.compile(
            r"^To the extent that (?:I|we), (?P<person>.+), have a copyright interest"
            r" in the changes in this commit, and the changes in all commits upon which"
            r" this commit depends, including changes occluded by subsequent changes,"
            r" (?:I|we) hereby licence those changes under the copyright licence with"
            r" SHA256 hash (?P<hash>[0-9a-fA-F]+)\.$"
        ),
    ),
    Grammar(
        name="retroactive-grant-v1",
        kind=DeclarationKind.RETROACTIVE_GRANT,
        pattern=re.compile(
            r"^To the extent that I have a copyright interest in the files in this"
            r" repository, and the sequence of changes leading to those files, and all"
            r" intermediate states resulting from a partial application of those"
            r" changes, including changes occluded by subsequent changes, I hereby"
            r" licence those files and changes present and past under the copyright"
            r" licence with SHA256 hash (?P<hash>[0-9a-fA-F]+)\.$"
        ),
    ),
)


def _group(match: re.Match[str], name: str) -> str | None:
    if name not in match.re.groupindex:
        return None
    value = match.group(name)
    return value.strip() if value is not None else None


def classify(stanza: str, grammars: Iterable[Grammar] = GRAMMARS) -> ParsedDeclaration | None:
    """Match ``stanza`` against the grammars in order; first match wins.

    Unknown stanzas return ``None`` without complaint. A matching stanza with
    a malformed hash is logged and also returns ``None``.
    """
    for grammar in grammars:
        match = grammar.pattern.match(stanza)
        if match is None:
            continue
        person = _group(match, "person")
        digest = _group(match, "hash")
        if digest is not None:
            digest = digest.lower()
            if len(digest) != HASH_LENGTH:
                log.warning("malformed_licence_hash", grammar=grammar.name, hash=digest)
                return None
        persons: tuple[str, ...] = ()
        raw_persons = _group(match, "persons")
        if raw_persons is not None:
            persons = tuple(parse_persons(raw_persons, person or ""))
        return ParsedDeclaration(
            kind=grammar.kind,
            grammar=grammar.name,
            person=person or None,
            persons=persons,
            hash=digest,
        )
    return None


def classify_all(stanzas: Iterable[str]) -> list[ParsedDeclaration]:
    declarations: list[ParsedDeclaration] = []
    for stanza in stanzas:
        parsed = classify(stanza)
        if parsed is not None:
            declarations.append(parsed)
    return declarations


__all__ = [
    "GRAMMARS",
    "HASH_LENGTH",
    "DeclarationKind",
    "Grammar",
    "ParsedDeclaration",
    "classify",
    "classify_all",
]
