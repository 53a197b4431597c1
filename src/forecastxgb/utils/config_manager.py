"""
Configuration file loading and validation.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml

from forecastxgb.utils.error_handling import InvalidConfigurationError

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schemas"
XGBAR_SCHEMA = "xgbar_config.schema.json"


class ConfigManager:
    """
    Loads, validates and merges YAML/JSON configurations.
    """

    def __init__(self, config_dir: Optional[str] = None, schema_dir: Optional[str] = None):
        self.config_dir = Path(config_dir) if config_dir else Path("config")
        self.schema_dir = Path(schema_dir) if schema_dir else SCHEMA_DIR

    def _resolve(self, config_name: Union[str, Path]) -> Path:
        path = Path(config_name)
        if path.is_absolute() or path.exists():
            return path
        return self.config_dir / path

    def load_config(
        self, config_name: Union[str, Path], schema_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Load a configuration file (YAML or JSON).
        Optionally validate against a schema.

        Args:
            config_name: File name relative to config_dir, or a path
            schema_name: Name of schema file in schema_dir

        Returns:
            Loaded configuration dictionary
        """
        config_path = self._resolve(config_name)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                config = yaml.safe_load(f)
            elif config_path.suffix == ".json":
                config = json.load(f)
            else:
                raise InvalidConfigurationError(
                    f"Unsupported configuration format: {config_path.suffix}"
                )

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise InvalidConfigurationError(
                f"Configuration root must be a mapping, got {type(config).__name__}"
            )

        if schema_name:
            self.validate_config(config, schema_name)

        return config

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against a schema.

        Raises:
            FileNotFoundError: schema file missing
            InvalidConfigurationError: configuration violates the schema
        """
        schema_path = self.schema_dir / schema_name
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r") as f:
            schema = json.load(f)

        try:
            jsonschema.validate(instance=config, schema=schema)
        except jsonschema.exceptions.ValidationError as e:
            path_str = " -> ".join(str(p) for p in e.path) if e.path else "root"
            error_msg = f"Configuration validation failed at '{path_str}': {e.message}"
            logger.error(error_msg)
            raise InvalidConfigurationError(error_msg) from e
        logger.info(f"Configuration successfully validated against {schema_name}")

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configurations; values in override win.
        """
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_value(self, config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """
        Get a value from configuration using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'cv.nrounds')
            default: Default value if path not found
        """
        current = config
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def set_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a value in configuration using dot notation.
        Creates intermediate dictionaries if they don't exist.
        """
        keys = path.split('.')
        current = config
        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value


def load_xgbar_config(
    path: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None,
    manager: Optional[ConfigManager] = None,
):
    """
    Load an XGBARConfig from a YAML/JSON file.

    The file may hold the settings at the root or under an ``xgbar`` key.
    Overrides are deep-merged before validation.

    Raises:
        InvalidConfigurationError: schema or value-range violation
    """
    from forecastxgb.models.config import XGBARConfig

    manager = manager or ConfigManager()
    raw = manager.load_config(path)
    if "xgbar" in raw:
        raw = raw["xgbar"] or {}
    if overrides:
        raw = manager.merge_configs(raw, overrides)
    manager.validate_config(raw, XGBAR_SCHEMA)
    config = XGBARConfig.from_dict(raw)
    logger.info(f"Loaded xgbar configuration from {path}")
    return config
