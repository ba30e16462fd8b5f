"""
Error taxonomy for the Python OAS Generator.

Every failure raised while loading, synthesizing, extracting, rendering or
formatting derives from ``GeneratorError`` so the CLI can map it to an exit
code. Synthesis and extraction errors carry the document location of the
offending schema or operation.
"""

from __future__ import annotations


class GeneratorError(Exception):
    """Base class for all generator failures."""


class DocumentLoadError(GeneratorError):
    """The API description document could not be read or parsed."""


class ConfigurationError(GeneratorError):
    """Invalid generation options or configuration file."""


class SchemaLocationError(GeneratorError):
    """A failure attributable to a location inside the document.

    Attributes:
        reason: Human readable description of the failure.
        location: Document path of the offending node, e.g.
            ``#/components/schemas/Pet/properties/tag``.
    """

    def __init__(self, reason: str, location: str | None = None) -> None:
        self.reason = reason
        self.location = location
        super().__init__(self._message())

    def _message(self) -> str:
        if self.location:
            return f"{self.reason} (at {self.location})"
        return self.reason

    def with_location(self, location: str) -> SchemaLocationError:
        """Attach a location if none is known yet and return ``self``."""
        if self.location is None:
            self.location = location
            self.args = (self._message(),)
        return self


class UnresolvableReferenceError(SchemaLocationError):
    """A ``$ref`` does not point into a supported document section."""


class ReferenceCycleError(SchemaLocationError):
    """A chain of references (or recursive ``allOf``) loops back on itself."""


class SchemaMergeConflictError(SchemaLocationError):
    """Two ``allOf`` members declare the same field with different shapes."""


class UnsupportedSchemaConstructError(SchemaLocationError):
    """A schema construct with no mapping to a type shape, e.g. ``not``."""


class TemplateExecutionError(GeneratorError):
    """A template failed to render.

    Attributes:
        section: Logical output section that failed (``constants``,
            ``types``, ``client``, ``server`` ...).
        template_name: Name of the template being rendered.
    """

    def __init__(self, section: str, template_name: str, cause: Exception) -> None:
        self.section = section
        self.template_name = template_name
        self.cause = cause
        super().__init__(f"error generating {section} from template {template_name}: {cause}")


class FormatterSyntaxError(GeneratorError):
    """Generated source is not valid Python.

    Attributes:
        unformatted_source: The raw generated text, kept for debugging.
        lineno: Line of the syntax error when known.
    """

    def __init__(self, message: str, unformatted_source: str, lineno: int | None = None) -> None:
        self.unformatted_source = unformatted_source
        self.lineno = lineno
        location = f" on line {lineno}" if lineno is not None else ""
        super().__init__(f"error formatting generated code{location}: {message}")
