"""
OpenAPI document parser for Python code generation.

This module ties the parsing passes together: it loads an OpenAPI 3.x
document, extracts its operations and collects every type definition the
document produces, all within one fresh ``GenerationContext``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from py_oas_generator.parser.collector import TypeDefinitionCollector
from py_oas_generator.parser.context import GenerationContext
from py_oas_generator.parser.models import (
    OperationDefinition,
    ProviderConstant,
    TypeDefinition,
)
from py_oas_generator.parser.operations import OperationExtractor, provider_constants
from py_oas_generator.parser.synthesizer import SchemaSynthesizer
from py_oas_generator.utils.file_utils import load_document

logger = logging.getLogger(__name__)


@dataclass
class ParsedSpec:
    """Everything the rendering layer needs from one document."""

    info: dict[str, Any] = field(default_factory=dict)
    operations: list[OperationDefinition] = field(default_factory=list)
    type_definitions: list[TypeDefinition] = field(default_factory=list)
    additional_property_types: list[TypeDefinition] = field(default_factory=list)
    provider_constants: list[ProviderConstant] = field(default_factory=list)

    @property
    def title(self) -> str:
        return str(self.info.get("title") or "")


class OASParser:
    """Parser for OpenAPI 3.x documents."""

    def __init__(self, exclude_schema_names: Iterable[str] = ()) -> None:
        self.exclude_schema_names = tuple(exclude_schema_names)

    def parse_file(self, file_path: str | Path) -> ParsedSpec:
        """Parse an OpenAPI document from a JSON or YAML file.

        Raises:
            DocumentLoadError: If the file is missing or not a JSON/YAML
                mapping.
        """
        return self.parse_dict(load_document(file_path))

    def parse_dict(self, spec_dict: dict[str, Any]) -> ParsedSpec:
        """Parse an already loaded OpenAPI document.

        Operations are extracted before types are collected so that the
        names of their inline types are minted in a fixed order.
        """
        context = GenerationContext(spec_dict)
        synthesizer = SchemaSynthesizer(context)

        operations = OperationExtractor(context, synthesizer).extract()
        collected = TypeDefinitionCollector(context, synthesizer).collect(self.exclude_schema_names, operations)

        logger.info(
            "Parsed %d operations and %d type definitions",
            len(operations),
            len(collected.type_definitions),
        )
        return ParsedSpec(
            info=spec_dict.get("info") or {},
            operations=operations,
            type_definitions=collected.type_definitions,
            additional_property_types=collected.additional_property_types,
            provider_constants=provider_constants(operations),
        )
