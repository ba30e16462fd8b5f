"""Formatting of generated source with Black."""

from __future__ import annotations

import ast
import logging

import black

from py_oas_generator.errors import FormatterSyntaxError

logger = logging.getLogger(__name__)


class SourceFormatter:
    """Checks that generated text is valid Python and formats it with Black."""

    def __init__(self, line_length: int = black.DEFAULT_LINE_LENGTH) -> None:
        self.mode = black.Mode(line_length=line_length)

    def format(self, source: str) -> str:
        """Return ``source`` formatted.

        Raises:
            FormatterSyntaxError: If ``source`` does not parse, or Black
                refuses it.
        """
        try:
            ast.parse(source)
        except SyntaxError as e:
            raise FormatterSyntaxError(e.msg, source, e.lineno) from e

        try:
            formatted = black.format_str(source, mode=self.mode)
        except black.InvalidInput as e:
            raise FormatterSyntaxError(str(e), source) from e

        logger.debug("Formatted %d lines of generated source", formatted.count("\n"))
        return formatted
