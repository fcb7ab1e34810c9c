"""
Shared test fixtures for mdmctl tests.
"""

import json
import logging
from pathlib import Path

import pytest

from mdmctl.mdmctl import LOGGER_NAME, setup_logging


@pytest.fixture(autouse=True)
def _logging(capsys):
    """Give every test a fresh logging setup and drop its handlers afterwards.

    Requests capsys first so the console handler writes to the captured stderr.
    """
    setup_logging()
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point $HOME at a temporary directory and clear mdmctl env overrides."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.delenv("MDMCTL_CONFIG", raising=False)
    monkeypatch.delenv("MDMCTL_LOG", raising=False)
    return fake_home


@pytest.fixture
def store_path(home) -> Path:
    """Default config file location under the fake home."""
    return home / ".micromdm" / "servers.json"


def write_store(path: Path, data) -> None:
    """Write raw JSON content to a config file, creating its directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


def read_store(path: Path) -> dict:
    return json.loads(path.read_text())
