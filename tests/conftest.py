from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


import pytest
import structlog

from tests.git_helpers import init_repo
from tests.history_helpers import MIT_TEXT, FakeHistory

LICAUDIT_ENV_KEYS = ("LICAUDIT_LICENCE_PATH", "LICAUDIT_LOG_LEVEL")


@contextmanager
def env_scope(values: dict[str, str | None]) -> Iterator[None]:
    previous = {key: os.environ.get(key) for key in values}
    for key, value in values.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    try:
        yield
    finally:
        for key, value in previous.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


@pytest.fixture(autouse=True)
def _isolated_licaudit_env():
    with env_scope({key: None for key in LICAUDIT_ENV_KEYS}):
        yield


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def licaudit_env():
    return env_scope


@pytest.fixture
def licence_dir(tmp_path: Path) -> Path:
    path = tmp_path / "licences"
    path.mkdir(parents=True, exist_ok=True)
    (path / "COPYING.MIT").write_bytes(MIT_TEXT)
    return path


@pytest.fixture
def history() -> FakeHistory:
    return FakeHistory()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    return init_repo(tmp_path / "repo")
