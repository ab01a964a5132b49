"""
Config system - Layered typed configuration for container bootstrap.
"""

from typing import Any, Dict, Optional, Type, get_type_hints, get_args
from dataclasses import dataclass, fields
from pathlib import Path
import os
import json
from glob import glob

from dotenv import dotenv_values


@dataclass
class BootstrapConfig:
    """Settings consumed by :class:`strix.context.ApplicationContext`."""

    max_reiteration_rounds: Optional[int] = None
    report_ineligible_beans: bool = True
    preinstantiate_singletons: bool = True
    log_level: str = "INFO"
    console_diagnostics: bool = False
    allow_definition_overriding: bool = True


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = "STRIX_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "STRIX_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources.

        Merge order (later overrides earlier):
        1. Config files (YAML or JSON, glob patterns supported)
        2. .env file (keys with the prefix only)
        3. Environment variables (STRIX_* prefix)
        4. Manual overrides

        Args:
            paths: List of config file paths
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        for path_str in sorted(glob(pattern)):
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            data = json.load(f)
            self._merge_dict(self.config_data, data)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        import yaml
        with open(path) as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert STRIX_BOOTSTRAP__MAX_REITERATION_ROUNDS to nested dict."""
        key = key[len(self.env_prefix):]

        # Double underscore separates nesting levels
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False
        if value.lower() in ("none", "null"):
            return None

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        parts = path.split(".")
        current = self.config_data

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def bootstrap_config(self, section: str = "bootstrap") -> BootstrapConfig:
        """
        Build a validated :class:`BootstrapConfig`.

        Values come from the ``section`` mapping, falling back to
        top-level keys of the same name. Unknown keys are ignored.

        Raises:
            ConfigError: Wrong type for a field
        """
        root = {
            k: v for k, v in self.config_data.items()
            if not isinstance(v, dict)
        }
        data = {**root, **(self.get(section, {}) or {})}
        hints = get_type_hints(BootstrapConfig)

        kwargs = {}
        for field_info in fields(BootstrapConfig):
            name = field_info.name
            if name not in data:
                continue

            value = data[name]
            if not self._check_type(value, hints[name]):
                raise ConfigError(
                    f"Config field '{name}' expected {hints[name]}, "
                    f"got {type(value).__name__}"
                )
            kwargs[name] = value

        return BootstrapConfig(**kwargs)

    def _check_type(self, value: Any, expected_type: Type) -> bool:
        """Basic type checking; ``Optional[X]`` also accepts None."""
        args = get_args(expected_type)
        if args:
            if value is None:
                return type(None) in args
            expected_type = args[0]

        # bool is an int subclass; keep them apart
        if expected_type is int and isinstance(value, bool):
            return False

        return isinstance(value, expected_type)

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()
