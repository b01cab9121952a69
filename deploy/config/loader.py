"""Configuration file loading utilities.

Supports loading configuration from YAML and TOML files with:
- Automatic format detection
- Error reporting with file location
"""

import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from deploy.config.models import DeployConfig
from deploy.exceptions import ConfigurationError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

SEARCH_PATHS = [
    "deploy.yml",
    "deploy.yaml",
    ".deploy.yml",
    "deploy.toml",
]


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or pass provider options on the command line",
        ) from None
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details=str(e),
            fix_hint="Check YAML syntax at the indicated line",
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in {path}",
            details=f"Expected a mapping at the top level, got {type(data).__name__}",
        )
    return data


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML configuration file.

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
            return data
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or pass provider options on the command line",
        ) from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint="Check TOML syntax at the indicated line",
        ) from e


def find_config(project_root: Path) -> Path | None:
    """Return the first config file found in the standard locations."""
    for search_path in SEARCH_PATHS:
        candidate = project_root / search_path
        if candidate.exists():
            return candidate
    return None


def load_config(
    path: Path | None = None,
    project_root: Path | None = None,
) -> DeployConfig:
    """Load deploy configuration from file.

    Search order if path not specified: deploy.yml, deploy.yaml,
    .deploy.yml, deploy.toml.

    Args:
        path: Explicit path to config file
        project_root: Project root directory (defaults to cwd)

    Returns:
        Validated DeployConfig instance

    Raises:
        ConfigurationError: If config not found or invalid
    """
    if project_root is None:
        project_root = Path.cwd()

    config_path: Path | None
    if path:
        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = project_root / config_path
    else:
        config_path = find_config(project_root)

    if config_path is None:
        raise ConfigurationError(
            "No configuration file found",
            details=f"Searched in: {', '.join(SEARCH_PATHS)}",
            fix_hint="Create deploy.yml or run a provider command with explicit options",
        )

    if config_path.suffix in (".yml", ".yaml"):
        data = load_yaml(config_path)
    elif config_path.suffix == ".toml":
        data = load_toml(config_path)
    else:
        raise ConfigurationError(
            f"Unsupported config format: {config_path.suffix}",
            fix_hint="Use .yml, .yaml, or .toml extension",
        )

    try:
        return DeployConfig(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {config_path}",
            details=str(e),
            fix_hint="Check the configuration values match expected types",
        ) from e
