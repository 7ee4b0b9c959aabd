"""
Utility helpers for dashstore.
"""

from .config import (
    ENV_PREFIX,
    get_config_value,
    parse_duration,
    parse_duration_string,
    load_config_file,
    get_list_config,
)

__all__ = [
    "ENV_PREFIX",
    "get_config_value",
    "parse_duration",
    "parse_duration_string",
    "load_config_file",
    "get_list_config",
]
