from __future__ import annotations

import re

SELF_REFERENCE = "their person"

# "A", "A and B", "A, B and C", "A, B, and C"
_SEPARATOR_RE = re.compile(r", and | and |, ")


def parse_persons(text: str, their_person: str) -> list[str]:
    """Split an enumeration of identities, resolving the self reference.

    Never fails: odd input simply yields whatever the separators carve out.
    """
    persons: list[str] = []
    for raw in _SEPARATOR_RE.split(text):
        entry = raw.strip()
        if not entry:
            continue
        if entry == SELF_REFERENCE and their_person:
            entry = their_person
        persons.append(entry)
    return persons


__all__ = ["SELF_REFERENCE", "parse_persons"]
