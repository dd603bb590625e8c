"""Shared models and enums used across pglocks modules."""

from enum import Enum


class OutputFormat(str, Enum):
    """Rendering used by the command line tool."""

    TEXT = "text"
    JSON = "json"
    CSV = "csv"
