"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of TOML configuration
files: the main config.toml and the exporters.toml catalog.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List

from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """
    Load the main configuration file (config.toml).

    Args:
        config_path: Path to the main config.toml file

    Returns:
        Parsed configuration data
    """
    return load_toml_file(config_path, "main configuration file")


def load_exporters_config(exporters_path: Path) -> List[Dict[str, Any]]:
    """
    Load the exporter catalog file (exporters.toml).

    Args:
        exporters_path: Path to the exporters.toml file

    Returns:
        List of predefined exporter dictionaries
    """
    exporters_data = load_toml_file(exporters_path, "exporters configuration file")
    return exporters_data.get("exporters", [])


def get_config_paths(main_config_data: Dict[str, Any], config_dir: Path) -> Dict[str, Path]:
    """
    Extract and resolve configuration file paths from main config.

    Args:
        main_config_data: Parsed main configuration data
        config_dir: Directory containing the main config file (for relative paths)

    Returns:
        Dictionary mapping config types to resolved paths

    Raises:
        KeyError: If required path keys are missing
    """
    paths_data = main_config_data.get("paths", {})

    exporters_file = paths_data.get("exporters_config")
    if not exporters_file:
        raise KeyError("Missing 'exporters_config' path in [paths] section of config.toml")

    return {
        "exporters": config_dir / exporters_file,
    }
