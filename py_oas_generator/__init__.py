"""
Python OpenAPI Code Generator

A Jinja2-based generator that produces a typed Python module (types, an
httpx client and a server scaffold) from OpenAPI 3 documents.
"""

from .config import GenerationOptions
from .generator import PythonCodeGenerator, PythonTemplateEngine
from .parser import OASParser, ParsedSpec

__version__ = "1.0.0"

__all__ = [
    "GenerationOptions",
    "OASParser",
    "ParsedSpec",
    "PythonCodeGenerator",
    "PythonTemplateEngine",
]
