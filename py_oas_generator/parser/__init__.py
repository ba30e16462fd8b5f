"""
OpenAPI Parser Module for Python Code Generation

This module resolves references, synthesizes type shapes and extracts
operations from OpenAPI 3.x documents.
"""

from .collector import TypeDefinitionCollector, collect_type_definitions
from .context import GenerationContext
from .identifiers import IdentifierSanitizer, NamingContext
from .models import (
    CollectedTypes,
    OperationDefinition,
    ParameterDefinition,
    RequestBodyDefinition,
    ResponseDefinition,
    SecurityDefinition,
    ShapeKind,
    TypeDefinition,
    TypeShape,
)
from .oas_parser import OASParser, ParsedSpec
from .operations import OperationExtractor, extract_operations, provider_constants
from .references import ReferenceResolver, ResolutionKind, ResolvedReference
from .synthesizer import SchemaSynthesizer

__all__ = [
    "CollectedTypes",
    "GenerationContext",
    "IdentifierSanitizer",
    "NamingContext",
    "OASParser",
    "OperationDefinition",
    "OperationExtractor",
    "ParameterDefinition",
    "ParsedSpec",
    "ReferenceResolver",
    "RequestBodyDefinition",
    "ResolutionKind",
    "ResolvedReference",
    "ResponseDefinition",
    "SchemaSynthesizer",
    "SecurityDefinition",
    "ShapeKind",
    "TypeDefinition",
    "TypeDefinitionCollector",
    "TypeShape",
    "collect_type_definitions",
    "extract_operations",
    "provider_constants",
]
