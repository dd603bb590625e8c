"""Utility functions for pglocks."""

from pglocks.utils.config import ConfigSettings, find_config_file, load_config
from pglocks.utils.file_utils import read_sql_file, resolve_sql

__all__ = [
    "ConfigSettings",
    "find_config_file",
    "load_config",
    "read_sql_file",
    "resolve_sql",
]
