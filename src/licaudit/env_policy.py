from __future__ import annotations

import logging
import os
from typing import Mapping

LICENCE_PATH_ENV = "LICAUDIT_LICENCE_PATH"
LOG_LEVEL_ENV = "LICAUDIT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def env_text(
    name: str,
    *,
    default: str = "",
    environ: Mapping[str, str] | None = None,
) -> str:
    source = os.environ if environ is None else environ
    return str(source.get(name, default)).strip()


def log_level_from_env(
    explicit: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> int:
    level_name = (explicit or env_text(LOG_LEVEL_ENV, environ=environ) or DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.WARNING
