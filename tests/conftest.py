"""Shared test configuration and fixtures."""

import os
from pathlib import Path
from typing import List, Sequence, Tuple

import pytest

from devflow.config import ConfigManager
from devflow.models import Config
from devflow.utils.shell import ShellResult


@pytest.fixture
def temp_home(tmp_path):
    """Create a temporary home directory for tests."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop environment overrides that would leak into configuration."""
    for name in ("SCHEME", "DEV_BRANCH", "MAIN_BRANCH"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("DEVFLOW_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def isolated_config_manager(temp_home, monkeypatch):
    """Create an isolated ConfigManager that doesn't touch real config files."""
    monkeypatch.setattr(Path, "home", lambda: temp_home)
    monkeypatch.setattr("devflow.config.get_git_root", lambda: None)

    manager = ConfigManager()
    manager._user_config_path = temp_home / ".devflow" / "config.yaml"
    manager._project_config_path = None
    manager._config = None
    return manager


@pytest.fixture(autouse=True)
def mock_global_config_manager(isolated_config_manager, monkeypatch):
    """Automatically replace the global config_manager for all tests."""
    import devflow.config

    monkeypatch.setattr(devflow.config, "config_manager", isolated_config_manager)
    return isolated_config_manager


@pytest.fixture
def config():
    """Default configuration."""
    return Config()


@pytest.fixture
def repo_root(tmp_path):
    """Empty repository root named after the app."""
    root = tmp_path / "MyApp"
    root.mkdir()
    return root


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner
    return CliRunner()


class FakeShell:
    """Stand-in for run_command answering by command prefix.

    Unmatched commands succeed with empty output. Every call is recorded
    as the list of arguments.
    """

    def __init__(self):
        self.responses: List[Tuple[Tuple[str, ...], ShellResult]] = []
        self.calls: List[List[str]] = []

    def on(self, prefix: Sequence[str], returncode: int = 0, stdout: str = "", stderr: str = ""):
        self.responses.append(
            (tuple(prefix), ShellResult(returncode, stdout, stderr, " ".join(prefix)))
        )
        return self

    def __call__(self, command, **kwargs):
        command = list(command)
        self.calls.append(command)
        for prefix, result in self.responses:
            if tuple(command[: len(prefix)]) == prefix:
                return result
        return ShellResult(0, "", "", " ".join(command))

    def called(self, *prefix: str) -> bool:
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)

    def index(self, *prefix: str) -> int:
        for i, call in enumerate(self.calls):
            if tuple(call[: len(prefix)]) == prefix:
                return i
        raise AssertionError(f"{' '.join(prefix)} was not called")


@pytest.fixture
def fake_shell():
    """Fresh FakeShell; patch it into the module under test."""
    return FakeShell()
