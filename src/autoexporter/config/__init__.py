"""
Configuration management for the autoexporter package.

This module provides a clean interface for loading, validating, and accessing
configuration data from TOML files with singleton pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)

from .loader import (
    get_config_paths,
    load_exporters_config,
    load_main_config,
    load_toml_file,
)
from .validators import (
    validate_daemon_config,
    validate_exporters_config,
    validate_match_rule,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "load_exporters_config",
    "get_config_paths",
    "validate_daemon_config",
    "validate_exporters_config",
    "validate_match_rule",
]
