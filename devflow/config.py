"""Configuration management for the devflow tool."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from devflow.errors import ConfigError
from devflow.models import Config
from devflow.utils.logger import get_logger
from devflow.utils.shell import get_git_root

logger = get_logger(__name__)

__all__ = ["ConfigError", "ConfigManager", "config_manager", "get_config", "list_config_files"]

ENV_PREFIX = "DEVFLOW_"

# Short environment names taking precedence over every other source
NAMED_OVERRIDES = {
    "SCHEME": ("xcode", "scheme"),
    "DEV_BRANCH": ("git", "dev_branch"),
    "MAIN_BRANCH": ("git", "main_branch"),
}


class ConfigManager:
    """Configuration manager with hierarchical loading and environment variable support."""

    def __init__(self):
        """Initialize configuration manager."""
        self._config: Optional[Config] = None
        self._user_config_path = Path.home() / ".devflow" / "config.yaml"
        self._project_config_path: Optional[Path] = None

    def _find_project_config(self) -> None:
        """Find project configuration file at the repository root."""
        self._project_config_path = None
        git_root = get_git_root()
        if git_root is None:
            return

        project_config = git_root / ".devflow" / "config.yaml"
        if project_config.exists() and project_config != self._user_config_path:
            self._project_config_path = project_config
            logger.debug(f"Found project config: {project_config}")

    def _expand_env_vars(self, data: Any) -> Any:
        """Recursively expand environment variables in configuration data.

        Supports formats:
        - ${VAR}
        - ${VAR:-default}
        - $VAR (simple format)
        """
        if isinstance(data, str):
            def replace_env_var(match):
                var_expr = match.group(1)
                if ":-" in var_expr:
                    var_name, default_value = var_expr.split(":-", 1)
                    return os.getenv(var_name, default_value)
                var_value = os.getenv(var_expr)
                if var_value is None:
                    logger.warning(f"Environment variable '{var_expr}' not found")
                    return match.group(0)
                return var_value

            data = re.sub(r"\$\{([^}]+)\}", replace_env_var, data)

            def replace_simple_var(match):
                var_name = match.group(1)
                var_value = os.getenv(var_name)
                if var_value is None:
                    logger.warning(f"Environment variable '{var_name}' not found")
                    return match.group(0)
                return var_value

            data = re.sub(r"\$([A-Z_][A-Z0-9_]*)", replace_simple_var, data)

        elif isinstance(data, dict):
            return {key: self._expand_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._expand_env_vars(item) for item in data]

        return data

    def _load_yaml_file(self, path: Path) -> Dict[str, Any]:
        """Load and parse YAML configuration file.

        Args:
            path: Path to YAML file

        Returns:
            Parsed configuration data

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        if not path.exists():
            return {}

        logger.debug(f"Loading config file: {path}")

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config file {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        return self._expand_env_vars(data)

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configuration dictionaries recursively.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Prefixed variables use double underscores to separate nested keys,
        e.g. ``DEVFLOW_GITHUB__PR_LABEL`` -> ``github.pr_label``. The short
        names in ``NAMED_OVERRIDES`` are applied last.

        Args:
            config_data: Configuration data to override

        Returns:
            Configuration data with environment overrides applied
        """
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            key_parts = key[len(ENV_PREFIX):].lower().split("__")

            current = config_data
            for part in key_parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            # Values stay strings; the models coerce typed fields
            current[key_parts[-1]] = value
            logger.debug(f"Applied env override: {'.'.join(key_parts)} = {value}")

        for env_name, (section, field) in NAMED_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                config_data.setdefault(section, {})[field] = value
                logger.debug(f"Applied {env_name} override: {section}.{field} = {value}")

        return config_data

    def load_config(self) -> Config:
        """Load configuration from all sources.

        Loading order (later sources override earlier):
        1. Default configuration (from Config model)
        2. User configuration (~/.devflow/config.yaml)
        3. Project configuration (<repo>/.devflow/config.yaml)
        4. DEVFLOW_* environment variables
        5. SCHEME, DEV_BRANCH and MAIN_BRANCH

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If configuration is invalid
        """
        self._find_project_config()

        config_data = self._load_yaml_file(self._user_config_path)

        if self._project_config_path:
            project_config = self._load_yaml_file(self._project_config_path)
            config_data = self._merge_configs(config_data, project_config)

        config_data = self._apply_env_overrides(config_data)

        try:
            self._config = Config.model_validate(config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")

        logger.debug("Configuration loaded successfully")
        return self._config

    def get_config(self) -> Config:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def list_config_files(self) -> Dict[str, Optional[Path]]:
        """List configuration file paths that are in effect."""
        return {
            "user": self._user_config_path if self._user_config_path.exists() else None,
            "project": self._project_config_path,
        }


config_manager = ConfigManager()


def get_config() -> Config:
    """Get current configuration.

    Returns:
        Configuration object
    """
    return config_manager.get_config()


def list_config_files() -> Dict[str, Optional[Path]]:
    """Configuration files in effect, by layer."""
    return config_manager.list_config_files()
