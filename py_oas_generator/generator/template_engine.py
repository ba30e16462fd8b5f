"""
Python Template Engine for OpenAPI Code Generation

This module uses Jinja2 templates to render the parsed type definitions and
operations into one Python module, section by section, and hands the result
to the source formatter.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Final, TextIO

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from py_oas_generator.config import GenerationOptions
from py_oas_generator.errors import FormatterSyntaxError, TemplateExecutionError
from py_oas_generator.generator.filters import FILTERS, TypeExpressions
from py_oas_generator.generator.formatter import SourceFormatter
from py_oas_generator.parser.models import (
    OperationDefinition,
    ParameterDefinition,
    ShapeKind,
    TypeDefinition,
)
from py_oas_generator.parser.oas_parser import ParsedSpec
from py_oas_generator.parser.operations import provider_constants

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK: Final = "\ufeff"


class OperationAnalyzer:
    """Answers the questions templates ask about an operation."""

    @staticmethod
    def params_required(operation: OperationDefinition) -> bool:
        """Check if the ``params`` argument must be passed."""
        return any(p.required for p in operation.non_path_parameters)

    @staticmethod
    def get_parameters_by_location(operation: OperationDefinition, location: str) -> list[ParameterDefinition]:
        return operation.parameters_in(location)

    @staticmethod
    def json_responses(operation: OperationDefinition) -> list[Any]:
        return [response for response in operation.responses.values() if response.is_json]

    @staticmethod
    def routes(operations: Iterable[OperationDefinition]) -> list[tuple[str, str, str]]:
        return [(op.method, op.path, op.function_name) for op in operations]


def sanitize_code(source: str) -> str:
    """Remove byte-order marks, which break compilation mid-file."""
    return source.replace(BYTE_ORDER_MARK, "")


class PythonTemplateEngine:
    """Template engine for generating Python code."""

    def __init__(self, template_dir: Path | None = None) -> None:
        """Initialize the template engine."""
        if template_dir is None:
            current_dir = Path(__file__).parent
            template_dir = current_dir.parent / "templates"

        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        self._register_filters()
        self._register_globals()

    def _register_filters(self) -> None:
        """Register custom Jinja2 filters for Python code generation."""
        self.env.filters.update(FILTERS)
        self.env.filters["repr"] = repr

    def _register_globals(self) -> None:
        """Register global functions available in templates."""
        op_analyzer = OperationAnalyzer()
        globals_map: dict[str, Any] = {
            "ShapeKind": ShapeKind,
            "params_required": op_analyzer.params_required,
            "get_parameters_by_location": op_analyzer.get_parameters_by_location,
            "json_responses": op_analyzer.json_responses,
            "routes": op_analyzer.routes,
        }
        self.env.globals.update(globals_map)

    def render_template(self, template_name: str, context: dict[str, Any], *, section: str | None = None) -> str:
        """Render a template with the given context.

        Raises:
            TemplateExecutionError: If the template is missing or fails,
                naming the output section it was rendering.
        """
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except (TemplateError, TypeError) as e:
            raise TemplateExecutionError(section or template_name, template_name, e) from e


class PythonCodeGenerator:
    """Renders one Python module from type definitions and operations."""

    # (section, template, option enabling it); rendered in this order
    SECTIONS: Final = (
        ("imports", "preamble.py.j2", None),
        ("constants", "constants.py.j2", "generate_types"),
        ("types", "types.py.j2", "generate_types"),
        ("additional properties", "additional_properties.py.j2", "generate_types"),
        ("client", "client.py.j2", "generate_client"),
        ("client with responses", "client_with_responses.py.j2", "generate_client"),
        ("server", "server.py.j2", "generate_server_stubs"),
    )

    def __init__(
        self,
        template_engine: PythonTemplateEngine | None = None,
        formatter: SourceFormatter | None = None,
        diagnostics: TextIO | None = None,
    ) -> None:
        """Initialize the code generator.

        Args:
            template_engine: Engine to render with; a default one over the
                bundled templates otherwise.
            formatter: Formatter for the concatenated output.
            diagnostics: Stream the unformatted source is echoed to when it
                fails to format; stderr by default.
        """
        self.template_engine = template_engine or PythonTemplateEngine()
        self.formatter = formatter or SourceFormatter()
        self.diagnostics = diagnostics

    def render(
        self,
        type_definitions: list[TypeDefinition],
        additional_property_types: list[TypeDefinition],
        operations: list[OperationDefinition],
        options: GenerationOptions,
        info: dict[str, Any] | None = None,
    ) -> str:
        """Render the module text.

        Sections are emitted in a fixed order: imports, constants, types,
        additional-properties helpers, client, client with responses,
        server. Each is skipped when its option is off.

        Raises:
            TemplateExecutionError: If any section fails to render.
            FormatterSyntaxError: If the result is not valid Python; the
                unformatted text has then been written to the diagnostics
                stream.
        """
        context = {
            "package_name": options.package_name,
            "info": info or {},
            "options": options,
            "type_definitions": type_definitions,
            "additional_property_types": additional_property_types,
            "operations": operations,
            "provider_constants": provider_constants(operations),
            "types": TypeExpressions(type_definitions),
        }

        chunks = []
        for section, template_name, option in self.SECTIONS:
            if option is not None and not getattr(options, option):
                continue
            logger.debug("Rendering %s from %s", section, template_name)
            chunks.append(self.template_engine.render_template(template_name, context, section=section))

        source = sanitize_code("\n\n".join(chunks))
        if options.skip_format:
            return source

        try:
            return self.formatter.format(source)
        except FormatterSyntaxError:
            stream = self.diagnostics or sys.stderr
            stream.write(source)
            stream.flush()
            raise

    def generate(self, spec: ParsedSpec, options: GenerationOptions) -> str:
        """Render the module for a parsed document."""
        return self.render(
            spec.type_definitions,
            spec.additional_property_types,
            spec.operations,
            options,
            info=spec.info,
        )
