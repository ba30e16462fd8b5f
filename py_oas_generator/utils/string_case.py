"""
String case conversion utilities for Python code generation.

This module provides the string case conversions used to turn schema names,
property names and enum literals into Python identifiers, together with the
reserved-word handling for the generated module.

Based on https://github.com/okunishinishi/python-stringcase
with additional Python-specific naming conventions.
"""

import keyword
import re
from collections.abc import Callable
from typing import Final

# Regex patterns for case conversion
_ACRONYM_PATTERN: Final = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LOWER_UPPER_PATTERN: Final = re.compile(r"([a-z0-9])([A-Z])")
_WORD_SEPARATOR_PATTERN: Final = re.compile(r"[^a-zA-Z0-9]+")

# Names the generated module imports or relies on at module level.
GENERATED_MODULE_NAMES: Final = frozenset(
    {
        "Any",
        "Enum",
        "Callable",
        "Optional",
        "TypeAlias",
        "Union",
        "annotations",
        "dataclass",
        "dataclasses",
        "datetime",
        "field",
        "httpx",
        "urllib",
        "uuid",
    }
)

# Builtins that generated annotations reference by name.
_SHADOWED_BUILTINS: Final = frozenset(
    {"bool", "bytes", "dict", "float", "int", "list", "object", "str", "type"},
)

PYTHON_RESERVED_WORDS: Final = frozenset(keyword.kwlist) | frozenset(keyword.softkwlist) | frozenset({"self"})


def _convert_if_not_empty(string: str | None, conversion_func: Callable[[str], str]) -> str:
    """Safely convert a string, returning empty string if input is None or empty."""
    return conversion_func(string) if string else ""


def split_words(string: str | None) -> list[str]:
    """Split a string into its words.

    Word boundaries are case changes, acronym ends and any run of
    characters that are not ASCII letters or digits.

    Args:
        string: String to split.

    Returns:
        List of non-empty words, original casing preserved.

    Examples:
        >>> split_words("getHTTPResponse")
        ['get', 'HTTP', 'Response']
        >>> split_words("/pets/{pet-id}")
        ['pets', 'pet', 'id']
    """
    if not string:
        return []
    s = _ACRONYM_PATTERN.sub(r"\1_\2", string)
    s = _LOWER_UPPER_PATTERN.sub(r"\1_\2", s)
    return [word for word in _WORD_SEPARATOR_PATTERN.split(s) if word]


def snakecase(string: str | None) -> str:
    """Convert string into snake_case.

    Handles various formats including camelCase with acronyms.

    Args:
        string: String to convert.

    Returns:
        Snake case string.

    Examples:
        >>> snakecase("HelloWorld")
        'hello_world'
        >>> snakecase("hello-world")
        'hello_world'
        >>> snakecase("getHTTPResponse")
        'get_http_response'
    """

    def _snakecase(s: str) -> str:
        return "_".join(word.lower() for word in split_words(s))

    return _convert_if_not_empty(string, _snakecase)


def camelcase(string: str | None) -> str:
    """Convert string into camel case.

    Args:
        string: String to convert.

    Returns:
        Camel case string.

    Examples:
        >>> camelcase("hello_world")
        'helloWorld'
        >>> camelcase("getHTTPResponse")
        'getHttpResponse'
    """

    def _camelcase(s: str) -> str:
        words = snakecase(s).split("_")
        return words[0] + "".join(word.capitalize() for word in words[1:])

    return _convert_if_not_empty(string, _camelcase)


def constcase(string: str | None) -> str:
    """Convert string into CONSTANT_CASE (upper snake case).

    Examples:
        >>> constcase("helloWorld")
        'HELLO_WORLD'
    """
    return snakecase(string).upper()


def pascalcase(string: str | None) -> str:
    """Convert string into PascalCase.

    Args:
        string: String to convert.

    Returns:
        PascalCase string.

    Examples:
        >>> pascalcase("hello_world")
        'HelloWorld'
        >>> pascalcase("hello-world")
        'HelloWorld'
        >>> pascalcase("getHTTPResponse")
        'GetHttpResponse'
    """

    def _pascalcase(s: str) -> str:
        return "".join(word.capitalize() for word in split_words(s))

    return _convert_if_not_empty(string, _pascalcase)


def is_reserved_word(name: str) -> bool:
    """Check whether a name must not be emitted as-is in generated code.

    Args:
        name: The identifier to check.

    Returns:
        True for Python keywords, soft keywords, the builtins generated
        annotations rely on, and names the generated module imports.
    """
    return name in PYTHON_RESERVED_WORDS or name in GENERATED_MODULE_NAMES or name in _SHADOWED_BUILTINS


def escape_reserved_word(name: str) -> str:
    """Append a trailing underscore to reserved names.

    Examples:
        >>> escape_reserved_word("class")
        'class_'
        >>> escape_reserved_word("name")
        'name'
    """
    return f"{name}_" if is_reserved_word(name) else name

