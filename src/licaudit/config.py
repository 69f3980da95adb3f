"""The ``[audit]`` section of ``licaudit.toml``.

Relative paths in the file are anchored at the file's own directory, so a
config checked into a repository works from any working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
import tomllib

from licaudit.exceptions import ConfigurationError

DEFAULT_CONFIG_NAME = "licaudit.toml"
AUDIT_SECTION = "audit"
PATH_KEYS = ("licence_path", "report")

AuditSection = dict[str, Any]


def config_file_path(repository: Path, config_path: Path | None = None) -> Path:
    return config_path if config_path is not None else repository / DEFAULT_CONFIG_NAME


def anchored_path(value: object, *, base: Path) -> Path | None:
    """Turn a configured path into one that does not depend on the cwd."""
    if value is None or value == "":
        return None
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base / path


def read_audit_section(path: Path) -> AuditSection:
    """Load ``[audit]`` from ``path``; missing or unparsable files count as empty."""
    try:
        document = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return {}
    section = document.get(AUDIT_SECTION)
    if not isinstance(section, dict):
        return {}
    base = path.parent
    for key in PATH_KEYS:
        if key in section:
            section[key] = anchored_path(section[key], base=base)
    return section


def audit_defaults(repository: Path, config_path: Path | None = None) -> AuditSection:
    return read_audit_section(config_file_path(repository, config_path))


def licence_identifiers(value: object) -> list[str]:
    """Accept ``"MIT, ISC"`` as well as ``["MIT", "ISC,BSD"]``."""
    if value is None:
        return []
    raw_items = [value] if isinstance(value, str) else value
    if not isinstance(raw_items, (list, tuple)):
        raise ConfigurationError(f"licences must be a string or a list, got {value!r}")
    identifiers: list[str] = []
    for item in raw_items:
        if not isinstance(item, str):
            continue
        identifiers.extend(part.strip() for part in item.split(",") if part.strip())
    return identifiers


def as_non_negative_int(value: object, *, key: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    try:
        number = int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from exc
    if number < 0:
        raise ConfigurationError(f"{key} must not be negative, got {number}")
    return number


def merge_overrides(overrides: AuditSection, defaults: AuditSection) -> AuditSection:
    """Command-line values win; unset options (``None`` or ``[]``) fall through."""
    merged = dict(defaults)
    for key, value in overrides.items():
        if value is None or value == []:
            continue
        merged[key] = value
    return merged
