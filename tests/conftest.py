"""Pytest fixtures for Scrotto tests."""

import subprocess

import pytest

from scrotto.config import Config
from scrotto.session import Backend, RunContext, SessionContext, SessionType


@pytest.fixture
def config(tmp_path):
    """Config whose temp file lives in the test's tmp dir."""
    return Config(temp_file=tmp_path / "screen_grab.png")


@pytest.fixture
def make_ctx(config):
    """Build a RunContext for a given session type and backend."""
    def _make(session_type=SessionType.WAYLAND, backend=Backend.AUTO, desktop=None):
        session = SessionContext(session_type=session_type, desktop_environment=desktop)
        return RunContext(session=session, backend=backend, config=config)
    return _make


@pytest.fixture
def completed():
    """Factory for fake subprocess results."""
    def _completed(returncode=0, stdout="", stderr="", args=("tool",)):
        return subprocess.CompletedProcess(list(args), returncode, stdout=stdout, stderr=stderr)
    return _completed


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Point config loading at an empty tmp dir and clear SCROTTO_* overrides."""
    import os

    for key in list(os.environ):
        if key.startswith("SCROTTO_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("SCROTTO_CONFIG", str(tmp_path / "missing-config.yaml"))
    monkeypatch.setenv("SCROTTO_TEMP_FILE", str(tmp_path / "screen_grab.png"))
    return tmp_path
