"""Configuration parser for SQLFixture."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from sqlfixture.config.models import SQLFixtureConfig, EnvironmentSettings
from sqlfixture.exceptions import ConfigurationError


class ConfigParser:
    """Configuration parser with environment variable interpolation."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    DEFAULT_FILE_NAMES = (
        "sqlfixture.yaml",
        "sqlfixture.yml",
        "config/sqlfixture.yaml",
        "tests/sqlfixture.yaml",
    )

    def __init__(self) -> None:
        """Initialize the configuration parser."""
        self.env_settings = EnvironmentSettings()

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> SQLFixtureConfig:
        """Load and validate configuration from YAML file.

        Args:
            config_path: Path to configuration file. If None, looks for default locations.

        Returns:
            Validated SQLFixtureConfig instance.

        Raises:
            ConfigurationError: If configuration is invalid or file not found.
        """
        config_file = self._find_config_file(config_path)

        try:
            with open(config_file, 'r', encoding='utf-8') as file:
                raw_config = yaml.safe_load(file)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file '{config_file}' not found") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in '{config_file}': {e}") from e

        if not raw_config:
            raise ConfigurationError(f"Configuration file '{config_file}' is empty")

        processed_config = self._process_env_vars(raw_config)
        if 'include' in processed_config:
            processed_config = self._process_includes(processed_config, config_file)

        return self.load_config_dict(processed_config)

    def load_config_dict(self, raw_config: Dict[str, Any]) -> SQLFixtureConfig:
        """Validate an already parsed configuration mapping.

        Raises:
            ConfigurationError: If the mapping does not describe a valid configuration.
        """
        try:
            return SQLFixtureConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _find_config_file(self, config_path: Optional[Union[str, Path]]) -> Path:
        """Find configuration file in default locations.

        Raises:
            ConfigurationError: If no configuration file is found.
        """
        if config_path:
            path = Path(config_path)
            if path.exists():
                return path
            raise ConfigurationError(f"Configuration file '{config_path}' not found")

        if self.env_settings.config_file:
            path = Path(self.env_settings.config_file)
            if path.exists():
                return path

        default_locations = [Path.cwd() / name for name in self.DEFAULT_FILE_NAMES]
        for location in default_locations:
            if location.exists():
                return location

        raise ConfigurationError(
            f"No configuration file found in default locations: {default_locations}"
        )

    def interpolate(self, config: Any) -> Any:
        """Substitute environment variable references anywhere in a parsed document."""
        return self._process_env_vars(config)

    def _process_env_vars(self, config: Any) -> Any:
        """Recursively process environment variables in configuration."""
        if isinstance(config, dict):
            return {key: self._process_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._process_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_vars(config)
        else:
            return config

    def _substitute_env_vars(self, value: str) -> str:
        """Substitute ``${VAR}`` and ``${VAR:-default}`` references in a string.

        Raises:
            ConfigurationError: If required environment variable is not set.
        """
        def replace_var(match):
            var_expr = match.group(1)

            if ':-' in var_expr:
                var_name, default = var_expr.split(':-', 1)
                return os.getenv(var_name.strip(), default.strip())

            var_name = var_expr.strip()
            env_value = os.getenv(var_name)
            if env_value is None:
                raise ConfigurationError(f"Required environment variable '{var_name}' is not set")
            return env_value

        return self.ENV_VAR_PATTERN.sub(replace_var, value)

    def _process_includes(self, config: Dict[str, Any], base_path: Union[str, Path]) -> Dict[str, Any]:
        """Merge ``include`` files into the configuration; the including file wins."""
        base_dir = Path(base_path).parent
        includes = config.pop('include')

        if not isinstance(includes, list):
            includes = [includes]

        for include_file in includes:
            include_path = base_dir / include_file

            try:
                with open(include_path, 'r', encoding='utf-8') as file:
                    included_config = yaml.safe_load(file)
            except FileNotFoundError as e:
                raise ConfigurationError(f"Included file '{include_path}' not found") from e
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in included file '{include_path}': {e}") from e

            if included_config:
                included_config = self._process_env_vars(included_config)
                config = self._merge_configs(included_config, config)

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two mappings, values from ``override`` taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def validate_config_file(self, config_path: Union[str, Path]) -> bool:
        """Validate a configuration file.

        Raises:
            ConfigurationError: If configuration is invalid.
        """
        self.load_config(config_path)
        return True

    def create_sample_config(self, output_path: Union[str, Path]) -> None:
        """Create a sample configuration file.

        Args:
            output_path: Path where to create the sample configuration.
        """
        sample_config = {
            'databases': {
                'test': {
                    'type': 'sqlite',
                    'path': './build/test.db'
                },
                'reporting': {
                    'type': 'postgresql',
                    'host': 'localhost',
                    'port': 5432,
                    'database': 'reporting_test',
                    'username': 'test_user',
                    'password': '${REPORTING_DB_PASSWORD:-test_password}',
                },
            },
            'connection_pools': {
                'default': {
                    'min_connections': 1,
                    'max_connections': 5,
                    'timeout': 30,
                }
            },
            'default_database': 'test',
            'fixture_settings': {
                'default_codec': 'flat_xml',
                'resource_paths': ['tests/resources'],
                'failure_handler': 'diff_collecting',
                'column_filters': [],
                'connections': ['test'],
                'export': {
                    'output_dir': None,
                    'default_format': 'xml',
                },
            },
        }

        with open(output_path, 'w', encoding='utf-8') as file:
            yaml.safe_dump(sample_config, file, default_flow_style=False, sort_keys=False)


# Global configuration instance
_config_parser = ConfigParser()
_loaded_config: Optional[SQLFixtureConfig] = None


def get_config(config_path: Optional[Union[str, Path]] = None, reload: bool = False) -> SQLFixtureConfig:
    """Get the global configuration instance.

    Args:
        config_path: Path to configuration file.
        reload: Force reload of configuration.

    Returns:
        Global SQLFixtureConfig instance.
    """
    global _loaded_config

    if _loaded_config is None or reload:
        _loaded_config = _config_parser.load_config(config_path)

    return _loaded_config


def validate_config_file(config_path: Union[str, Path]) -> bool:
    """Validate a configuration file."""
    return _config_parser.validate_config_file(config_path)


def create_sample_config(output_path: Union[str, Path]) -> None:
    """Create a sample configuration file."""
    _config_parser.create_sample_config(output_path)
