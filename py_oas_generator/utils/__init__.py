"""
Utilities Module for Python Code Generation

This module provides document loading, output writing, logging setup and
the string case conversions used to build Python identifiers.
"""

from .file_utils import load_document, write_output
from .log import configure_logging
from .string_case import (
    camelcase,
    constcase,
    escape_reserved_word,
    is_reserved_word,
    pascalcase,
    snakecase,
    split_words,
)

__all__ = [
    "camelcase",
    "configure_logging",
    "constcase",
    "escape_reserved_word",
    "is_reserved_word",
    "load_document",
    "pascalcase",
    "snakecase",
    "split_words",
    "write_output",
]
