"""
Collection of every type definition a document produces.

Sections are visited in a fixed order (component schemas, parameters,
responses, request bodies, then per-operation inline types) and each
section in sorted key order, so the resulting list is reproducible.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Final

from py_oas_generator.errors import SchemaLocationError, SchemaMergeConflictError
from py_oas_generator.parser.context import GenerationContext
from py_oas_generator.parser.models import (
    CollectedTypes,
    OperationDefinition,
    TypeDefinition,
)
from py_oas_generator.parser.references import component_key
from py_oas_generator.parser.synthesizer import SchemaSynthesizer

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE: Final = "application/json"


def select_json_media_type(content: dict[str, Any] | None) -> str | None:
    """Pick the JSON media type of a ``content`` map, if any.

    ``application/json`` wins; otherwise the first (sorted) ``+json``
    structured-syntax type is used. Anything else is not JSON.
    """
    if not content:
        return None
    if JSON_MEDIA_TYPE in content:
        return JSON_MEDIA_TYPE
    return next((media for media in sorted(content) if media.split(";")[0].endswith("+json")), None)


class TypeDefinitionCollector:
    """Builds the ordered, de-duplicated list of type definitions."""

    def __init__(self, context: GenerationContext, synthesizer: SchemaSynthesizer | None = None) -> None:
        self.context = context
        self.synthesizer = synthesizer or SchemaSynthesizer(context)

    def collect(
        self,
        exclude_schema_names: Iterable[str] = (),
        operations: Iterable[OperationDefinition] = (),
    ) -> CollectedTypes:
        """Collect type definitions for the whole document.

        Args:
            exclude_schema_names: Component schema names to skip entirely;
                references to them still resolve to their usual name.
            operations: Extracted operations whose inline types are appended
                after the component sections.

        Returns:
            The type definitions and, separately, those that carry
            additional properties.
        """
        excluded = set(exclude_schema_names)
        definitions: list[TypeDefinition] = []
        definitions.extend(self._schema_types(excluded))
        definitions.extend(self._parameter_types())
        definitions.extend(self._body_types("responses"))
        definitions.extend(self._body_types("requestBodies"))
        for operation in operations:
            definitions.extend(operation.type_definitions)

        unique = self._deduplicate(definitions)
        additional = [definition for definition in unique if definition.has_additional_properties]
        logger.debug("Collected %d type definitions (%d with additional properties)", len(unique), len(additional))
        return CollectedTypes(type_definitions=unique, additional_property_types=additional)

    def _schema_types(self, excluded: set[str]) -> list[TypeDefinition]:
        schemas = self.context.components("schemas")
        for name in sorted(schemas):
            if name not in excluded:
                self.synthesizer.component_schema(name)

        definitions = []
        for name in sorted(schemas):
            key = component_key("schemas", name)
            if name in excluded:
                # Merged into another schema: its own type is skipped, its nested types are kept.
                if key in self.context.component_memo:
                    _, aux = self.context.component_memo[key]
                    logger.debug("Skipping excluded schema %s, keeping %d nested types", name, len(aux))
                    definitions.extend(aux)
                else:
                    logger.debug("Skipping excluded schema %s", name)
                continue
            shape, aux = self.context.component_memo[key]
            definitions.append(
                TypeDefinition(name, self.context.naming.type_name(key, name), shape, _description(schemas[name])),
            )
            definitions.extend(aux)
        return definitions

    def _parameter_types(self) -> list[TypeDefinition]:
        definitions = []
        parameters = self.context.components("parameters")
        for name in sorted(parameters):
            key = component_key("parameters", name)
            try:
                parameter = self.context.resolver.deref(parameters[name])
            except SchemaLocationError as exc:
                raise exc.with_location(key)
            schema = parameter.get("schema")
            if schema is None:
                media_type = select_json_media_type(parameter.get("content"))
                schema = parameter["content"][media_type].get("schema") if media_type else None
            type_name = self.context.naming.type_name(key, name)
            shape, aux = self.synthesizer.synthesize(schema, [type_name], f"{key}/schema")
            definitions.append(TypeDefinition(name, type_name, shape, parameter.get("description")))
            definitions.extend(aux)
        return definitions

    def _body_types(self, section: str) -> list[TypeDefinition]:
        """Types for JSON bodies of component responses or request bodies.

        Non-JSON bodies stay untyped and are handled as opaque bytes.
        """
        definitions = []
        components = self.context.components(section)
        for name in sorted(components):
            key = component_key(section, name)
            try:
                body = self.context.resolver.deref(components[name])
            except SchemaLocationError as exc:
                raise exc.with_location(key)
            media_type = select_json_media_type(body.get("content"))
            if media_type is None:
                continue
            type_name = self.context.naming.type_name(key, name)
            schema = body["content"][media_type].get("schema")
            shape, aux = self.synthesizer.synthesize(schema, [type_name], f"{key}/content/{media_type}/schema")
            definitions.append(TypeDefinition(name, type_name, shape, body.get("description")))
            definitions.extend(aux)
        return definitions

    @staticmethod
    def _deduplicate(definitions: list[TypeDefinition]) -> list[TypeDefinition]:
        seen: dict[str, TypeDefinition] = {}
        unique = []
        for definition in definitions:
            existing = seen.get(definition.type_name)
            if existing is None:
                seen[definition.type_name] = definition
                unique.append(definition)
            elif existing.shape != definition.shape:
                msg = f"type {definition.type_name} is generated twice with different shapes"
                raise SchemaMergeConflictError(msg, definition.source_name)
        return unique


def _description(node: Any) -> str | None:  # noqa: ANN401
    return node.get("description") if isinstance(node, dict) else None


def collect_type_definitions(
    document: dict[str, Any],
    exclude_schema_names: Iterable[str] = (),
    operations: Iterable[OperationDefinition] = (),
    context: GenerationContext | None = None,
) -> CollectedTypes:
    """Collect type definitions for ``document`` in a fresh (or given) context."""
    context = context or GenerationContext(document)
    return TypeDefinitionCollector(context).collect(exclude_schema_names, operations)
