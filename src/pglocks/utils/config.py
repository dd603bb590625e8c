"""Configuration management for pglocks.

Loads configuration from pglocks.toml in the current working directory.
"""

import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError
from rich.console import Console

from pglocks.global_models import OutputFormat

CONFIG_FILE_NAME = "pglocks.toml"
CONFIG_SECTION = "pglocks"

console = Console(stderr=True)


class ConfigSettings(BaseModel):
    """Configuration settings for pglocks.

    All fields are optional. None values indicate the setting was not
    specified in the config file.
    """

    output_format: Optional[OutputFormat] = None
    dialect: Optional[str] = None


def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find pglocks.toml in the current working directory.

    Args:
        start_path: Directory to look in. Defaults to the current working
            directory.

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()

    config_path = start_path / CONFIG_FILE_NAME
    if config_path.is_file():
        return config_path
    return None


def _fallback(message: str) -> ConfigSettings:
    console.print(f"[yellow]Warning:[/yellow] {message}")
    console.print("[yellow]Using default settings[/yellow]")
    return ConfigSettings()


def load_config(config_path: Optional[Path] = None) -> ConfigSettings:
    """Load configuration from the ``[pglocks]`` section of pglocks.toml.

    Priority order:
    1. Explicit config_path parameter
    2. pglocks.toml in current working directory
    3. Empty ConfigSettings (all None)

    Returns:
        ConfigSettings; never raises. A missing file silently yields empty
        settings; an unreadable file, malformed TOML or invalid values warn
        on stderr and yield empty settings. Unknown keys are ignored.
    """
    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        return ConfigSettings()

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        return _fallback(f"Failed to parse {config_path}: {e}")
    except OSError as e:
        return _fallback(f"Could not read {config_path}: {e}")

    section = toml_data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        return _fallback(
            f"Invalid configuration in {config_path}: "
            f"[{CONFIG_SECTION}] must be a table"
        )

    try:
        return ConfigSettings(**section)
    except ValidationError as e:
        return _fallback(f"Invalid configuration in {config_path}: {e}")
