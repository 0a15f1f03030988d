"""Pytest configuration and fixtures for knobshape tests."""

import os
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from knobshape import config  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Give every test default settings, unaffected by the environment."""
    for key in list(os.environ.keys()):
        if key.startswith("KNOBSHAPE_"):
            monkeypatch.delenv(key)
    config.reset_settings()
    yield
    config.reset_settings()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp = tempfile.mkdtemp()
    yield Path(temp)
    shutil.rmtree(temp)


@pytest.fixture
def env_vars(monkeypatch):
    """Helper to set environment variables."""

    def _set_env(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key, str(value))

    return _set_env
