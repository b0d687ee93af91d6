"""Configuration loader."""

from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CANDIDATES = (Path("config.yaml"), Path("config") / "config.yaml")


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from YAML and environment variables.

    Lookup order for the config file:
    1. ``config_path`` if given (must exist)
    2. ``config.yaml`` in the working directory
    3. ``config/config.yaml``
    4. Built-in defaults (the standard Sunday schedule) when none exists

    ``ORACLE_CHANNEL_ID`` from the environment overrides ``oracle.channel_id``.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    config_file = _find_config_file(config_path)
    config_dict = _read_yaml(config_file) if config_file else {}

    warnings_found = check_for_warnings(config_dict)
    if warnings_found:
        emit_warnings(warnings_found)

    app_config = parse_app_config(config_dict)

    try:
        env_config = load_environment_config()
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load environment configuration: {e}",
            suggestions=["Copy .env.example to .env and adjust the values"],
        ) from e

    if env_config.channel_id:
        app_config.oracle.channel_id = env_config.channel_id

    return app_config, env_config


def parse_app_config(config_dict: dict) -> AppConfig:
    """Validate a raw mapping, converting pydantic errors to ConfigurationError."""
    try:
        return AppConfig.model_validate(config_dict or {})
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"]) or "<root>"
            if error["type"] == "missing":
                errors.append(f"Missing required field: {field_path}")
            elif error["type"].endswith("_type"):
                expected = error["type"][: -len("_type")]
                errors.append(
                    f"Invalid type for '{field_path}': expected {expected}, got {error.get('input')!r}"
                )
            else:
                errors.append(f"{field_path}: {error['msg']}")

        raise ConfigurationError(
            "Configuration validation failed",
            errors=errors,
            suggestions=[
                "Review config.example.yaml for the expected format",
                "Weekdays are 0 (Sunday) to 6 (Saturday) or day names",
                "Durations look like '2m', '45m', 'PT15M'",
            ],
        ) from e


def _read_yaml(config_file: Path) -> dict:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable"],
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping, got {type(data).__name__}",
            suggestions=["Start the file with top-level keys such as 'services:'"],
        )
    return data


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    """Resolve the configuration file, or None to run on built-in defaults.

    Raises:
        ConfigurationError: If an explicitly requested file does not exist
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Omit --config to run with the built-in Sunday schedule",
                ],
            )
        return config_path

    for candidate in DEFAULT_CANDIDATES:
        if candidate.exists():
            return candidate
    return None


def validate_config_file(config_path: Path) -> bool:
    """Validate a configuration file without reading the environment.

    Returns:
        True if valid, False otherwise (errors printed to stdout)
    """
    try:
        parse_app_config(_read_yaml(config_path))
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False
    print(f"✓ Configuration file {config_path} is valid")
    return True
