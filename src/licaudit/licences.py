"""Accepted licence hashes.

An accepted licence is identified by the SHA-256 of its text. Identifiers on
the command line are either such a hash already, or a short name like
``MIT`` that is looked up as ``COPYING.MIT`` in a directory of licence texts.
"""

from __future__ import annotations

import hashlib
import re
import sys
from pathlib import Path
from typing import Iterable, Mapping

import structlog

from licaudit.env_policy import LICENCE_PATH_ENV, env_text
from licaudit.exceptions import ConfigurationError, LicenceConfigurationError

log = structlog.get_logger(__name__)

_SHA256_RE = re.compile(r"[0-9a-fA-F]{64}")
LICENCE_FILE_PREFIX = "COPYING."


def default_search_path(repo_root: Path | None = None) -> list[Path]:
    candidates: list[Path] = []
    if repo_root is not None:
        candidates.append(repo_root / "licences")
    candidates.append(Path(sys.prefix) / "share" / "rilts" / "licences")
    return candidates


def is_literal_hash(identifier: str) -> bool:
    return _SHA256_RE.fullmatch(identifier) is not None


def licence_file_path(licence_dir: Path, name: str) -> Path:
    return licence_dir / f"{LICENCE_FILE_PREFIX}{name.upper()}"


def hash_licence_file(path: Path) -> str:
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise LicenceConfigurationError(
            f"could not read licence file {path}: {exc.strerror or exc}",
            identifier=path.name,
        ) from exc
    return hashlib.sha256(content).hexdigest()


def resolve_licence_dir(
    explicit: Path | str | None,
    *,
    repo_root: Path | None = None,
    environ: Mapping[str, str] | None = None,
    search_path: Iterable[Path] | None = None,
) -> Path | None:
    """Pick the licence text directory.

    An explicitly configured directory (argument, then environment) must
    exist. Otherwise the first existing entry of the search path wins, and
    ``None`` means no directory is available at all.
    """
    configured = str(explicit) if explicit else env_text(LICENCE_PATH_ENV, environ=environ)
    if configured:
        path = Path(configured).expanduser()
        if not path.is_dir():
            raise ConfigurationError(f"licence path is not a directory: {path}")
        return path
    candidates = search_path if search_path is not None else default_search_path(repo_root)
    for candidate in candidates:
        if candidate.is_dir():
            log.debug("licence_dir_found", path=str(candidate))
            return candidate
    return None


def accepted_hash_for(identifier: str, licence_dir: Path | None) -> str:
    token = identifier.strip()
    if is_literal_hash(token):
        return token.lower()
    if licence_dir is None:
        raise LicenceConfigurationError(
            f"must specify licence path to resolve licence {token!r}",
            identifier=token,
        )
    path = licence_file_path(licence_dir, token)
    if not path.is_file():
        raise LicenceConfigurationError(
            f"could not find licence: {token} (looked for {path})",
            identifier=token,
        )
    return hash_licence_file(path)


def build_accepted_hashes(
    identifiers: Iterable[str],
    licence_dir: Path | None,
) -> frozenset[str]:
    accepted: set[str] = set()
    for identifier in identifiers:
        if not identifier.strip():
            continue
        digest = accepted_hash_for(identifier, licence_dir)
        log.debug("licence_accepted", identifier=identifier, hash=digest)
        accepted.add(digest)
    return frozenset(accepted)


__all__ = [
    "LICENCE_FILE_PREFIX",
    "accepted_hash_for",
    "build_accepted_hashes",
    "default_search_path",
    "hash_licence_file",
    "is_literal_hash",
    "licence_file_path",
    "resolve_licence_dir",
]
