"""
Python Code Generator Module

This module provides Jinja2-based rendering of Python modules from parsed
OpenAPI documents.
"""

from .formatter import SourceFormatter
from .template_engine import PythonCodeGenerator, PythonTemplateEngine

__all__ = [
    "PythonCodeGenerator",
    "PythonTemplateEngine",
    "SourceFormatter",
]
