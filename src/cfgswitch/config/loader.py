"""
Settings file loading and saving.

This module handles the low-level reading and writing of the TOML settings
file. Reading uses the standard library parser; writing uses the ``toml``
package since ``tomllib`` is read-only.
"""

import logging
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Dict

import toml

from ..validation import ConfigIOError, ErrorSeverity, ValidationError, handle_config_error

logger = logging.getLogger(__name__)

SETTINGS_SECTION = "settings"


def default_settings_path() -> Path:
    """Location of the settings file when none is given explicitly."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "cfgswitch" / "settings.toml"


def load_toml_file(file_path: Path, description: str = "settings file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file is malformed
        ConfigIOError: If the file cannot be read
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        error = ValidationError(f"Malformed {description} {file_path}: {e}", field_name=str(file_path))
        handle_config_error(
            error=error,
            context=f"parsing {description}",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise
    except OSError as e:
        error = ConfigIOError(f"Cannot read {description} {file_path}: {e}", path=file_path)
        handle_config_error(
            error=error,
            context=f"reading {description}",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def load_settings_data(file_path: Path) -> Dict[str, Any]:
    """
    Load the raw ``[settings]`` table.

    A missing file is not an error; it yields an empty table so that
    defaults apply.
    """
    try:
        data = load_toml_file(file_path)
    except FileNotFoundError:
        logger.info(f"No settings file at {file_path}, using defaults")
        return {}
    section = data.get(SETTINGS_SECTION, {})
    if not isinstance(section, dict):
        raise ValidationError(
            f"[{SETTINGS_SECTION}] in {file_path} must be a table",
            field_name=SETTINGS_SECTION,
        )
    return section


def save_settings_data(file_path: Path, data: Dict[str, Any]) -> None:
    """
    Write the ``[settings]`` table, replacing the file atomically.

    Raises:
        ConfigIOError: If the file cannot be written
    """
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".settings-", suffix=".tmp", dir=file_path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                toml.dump({SETTINGS_SECTION: data}, f)
            os.replace(tmp_name, file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        error = ConfigIOError(f"Cannot write settings file {file_path}: {e}", path=file_path)
        handle_config_error(
            error=error,
            context="saving settings file",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise
    logger.debug(f"Settings written to {file_path}")
