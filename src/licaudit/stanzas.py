"""Extraction of marked licensing stanzas from commit messages."""

from __future__ import annotations

import re

# The sigil is the copyright sign, historically written through a latin-1
# round trip as "Â©"; both spellings are accepted.
_MARKER_RE = re.compile(r"^(?:Â)?©[:!][ \t]*(?P<body>.*?)[ \t]*$")


def marker_fragment(line: str) -> str | None:
    """Return the text after the copyright marker, or ``None`` for plain lines."""
    match = _MARKER_RE.match(line.rstrip("\r"))
    if match is None:
        return None
    return match.group("body").strip()


def extract_stanzas(message: str) -> list[str]:
    """Fold consecutive marker lines into logical stanzas.

    Declarations are long and get hard-wrapped, so adjacent marker lines
    belong to one stanza; any other line ends it.
    """
    stanzas: list[str] = []
    fragments: list[str] = []
    for line in message.split("\n"):
        fragment = marker_fragment(line)
        if fragment is None:
            if fragments:
                stanzas.append(" ".join(fragments))
                fragments = []
            continue
        if fragment:
            fragments.append(fragment)
    if fragments:
        stanzas.append(" ".join(fragments))
    return stanzas


__all__ = ["extract_stanzas", "marker_fragment"]
