"""Tests for configuration management."""

import pytest
import yaml

from devflow.config import ConfigError, ConfigManager


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f)


class TestConfigManager:
    """Test ConfigManager functionality."""

    def test_defaults(self, isolated_config_manager):
        config = isolated_config_manager.load_config()

        assert config.git.dev_branch == "develop"
        assert config.git.main_branch == "main"
        assert config.github.pr_label == "codex"
        assert config.xcode.scheme is None
        assert config.update.url is None

    def test_user_config(self, isolated_config_manager, temp_home):
        _write(temp_home / ".devflow" / "config.yaml", {"github": {"pr_label": "agent"}})

        config = isolated_config_manager.load_config()

        assert config.github.pr_label == "agent"
        assert config.github.delete_branch_on_merge is True

    def test_project_overrides_user(self, isolated_config_manager, temp_home, tmp_path, monkeypatch):
        repo = tmp_path / "repo"
        _write(temp_home / ".devflow" / "config.yaml", {"git": {"main_branch": "master", "dev_branch": "dev"}})
        _write(repo / ".devflow" / "config.yaml", {"git": {"main_branch": "trunk"}})
        monkeypatch.setattr("devflow.config.get_git_root", lambda: repo)

        config = isolated_config_manager.load_config()

        assert config.git.main_branch == "trunk"
        assert config.git.dev_branch == "dev"
        assert isolated_config_manager.list_config_files()["project"] == repo / ".devflow" / "config.yaml"
        assert isolated_config_manager.list_config_files()["user"] == temp_home / ".devflow" / "config.yaml"

    def test_prefixed_env_override(self, isolated_config_manager, monkeypatch):
        monkeypatch.setenv("DEVFLOW_GITHUB__DELETE_BRANCH_ON_MERGE", "false")
        monkeypatch.setenv("DEVFLOW_XCODE__LOG_TAIL_LINES", "50")

        config = isolated_config_manager.load_config()

        assert config.github.delete_branch_on_merge is False
        assert config.xcode.log_tail_lines == 50

    def test_numeric_env_override_for_text_field(self, isolated_config_manager, monkeypatch):
        monkeypatch.setenv("DEVFLOW_GIT__DEV_BRANCH", "2024")
        monkeypatch.setenv("DEVFLOW_GITHUB__PR_LABEL", "123")
        monkeypatch.setenv("DEVFLOW_UPDATE__TIMEOUT", "15")

        config = isolated_config_manager.load_config()

        assert config.git.dev_branch == "2024"
        assert config.github.pr_label == "123"
        assert config.update.timeout == 15

    def test_named_overrides_win(self, isolated_config_manager, temp_home, monkeypatch):
        _write(temp_home / ".devflow" / "config.yaml", {"xcode": {"scheme": "FromFile"}})
        monkeypatch.setenv("DEVFLOW_GIT__DEV_BRANCH", "from-prefixed")
        monkeypatch.setenv("SCHEME", "MyApp")
        monkeypatch.setenv("DEV_BRANCH", "dev")
        monkeypatch.setenv("MAIN_BRANCH", "master")

        config = isolated_config_manager.load_config()

        assert config.xcode.scheme == "MyApp"
        assert config.git.dev_branch == "dev"
        assert config.git.main_branch == "master"

    def test_env_var_expansion(self, isolated_config_manager, temp_home, monkeypatch):
        monkeypatch.setenv("RELEASE_HOST", "downloads.example.com")
        _write(temp_home / ".devflow" / "config.yaml", {
            "update": {
                "url": "https://${RELEASE_HOST}/devflow",
                "install_path": "${MISSING_VAR:-/opt/bin}/devflow",
            }
        })

        config = isolated_config_manager.load_config()

        assert config.update.url == "https://downloads.example.com/devflow"
        assert config.update.install_path == "/opt/bin/devflow"

    def test_invalid_yaml(self, isolated_config_manager, temp_home):
        path = temp_home / ".devflow" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("git: [unclosed\n")

        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            isolated_config_manager.load_config()

    def test_invalid_value(self, isolated_config_manager, temp_home):
        _write(temp_home / ".devflow" / "config.yaml", {"xcode": {"log_tail_lines": 0}})

        with pytest.raises(ConfigError, match="Invalid configuration"):
            isolated_config_manager.load_config()

    def test_get_config_caches(self, isolated_config_manager):
        first = isolated_config_manager.get_config()
        assert isolated_config_manager.get_config() is first

    def test_install_path_expands_home(self, isolated_config_manager, temp_home, monkeypatch):
        monkeypatch.setenv("HOME", str(temp_home))
        config = isolated_config_manager.load_config()
        assert config.update.install_path_obj == temp_home / ".local" / "bin" / "devflow"


def test_fresh_manager_does_not_touch_git(monkeypatch, temp_home):
    """Constructing the manager runs no commands; discovery happens on load."""
    calls = []
    monkeypatch.setattr("devflow.config.get_git_root", lambda: calls.append(1))
    ConfigManager()
    assert calls == []
