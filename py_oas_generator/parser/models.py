"""
Intermediate type and operation model.

The synthesizer, collector and operation extractor build these immutable
records; the rendering layer only reads them. ``TypeShape`` is a closed set
of variants tagged with ``ShapeKind``; code that switches on a shape must
handle every kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union


class ShapeKind(str, Enum):
    """Tag of every ``TypeShape`` variant."""

    PRIMITIVE = "primitive"
    STRUCT = "struct"
    ARRAY = "array"
    ENUM = "enum"
    UNION = "union"
    MAP = "map"
    REFERENCE = "reference"


@dataclass(frozen=True)
class PrimitiveShape:
    """A scalar, ``any`` value, or free-form object."""

    type_name: str
    format: str | None = None
    kind: ClassVar[ShapeKind] = ShapeKind.PRIMITIVE


@dataclass(frozen=True)
class ReferenceShape:
    """A slot naming another type definition instead of embedding it."""

    type_name: str
    ref: str | None = None
    kind: ClassVar[ShapeKind] = ShapeKind.REFERENCE


@dataclass(frozen=True)
class ArrayShape:
    items: TypeShape
    kind: ClassVar[ShapeKind] = ShapeKind.ARRAY


@dataclass(frozen=True)
class StructField:
    """One property of a struct shape.

    Attributes:
        json_name: Property name as it appears on the wire.
        py_name: Sanitized attribute name, unique within the struct.
        shape: Shape of the property value.
        required: False when the property may be absent.
        nullable: True when ``null`` is an accepted value.
    """

    json_name: str
    py_name: str
    shape: TypeShape
    required: bool = False
    nullable: bool = False
    description: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class StructShape:
    fields: tuple[StructField, ...] = ()
    additional_properties: TypeShape | None = None
    kind: ClassVar[ShapeKind] = ShapeKind.STRUCT


@dataclass(frozen=True)
class EnumMember:
    name: str
    value: Any


@dataclass(frozen=True)
class EnumShape:
    """A closed set of constants, kept in declaration order."""

    base_type: str
    members: tuple[EnumMember, ...]
    kind: ClassVar[ShapeKind] = ShapeKind.ENUM


@dataclass(frozen=True)
class UnionShape:
    """A ``oneOf``/``anyOf`` choice between independently named variants."""

    variants: tuple[TypeShape, ...]
    composition: str = "oneOf"
    discriminator: str | None = None
    mapping: tuple[tuple[str, str], ...] = ()
    kind: ClassVar[ShapeKind] = ShapeKind.UNION


@dataclass(frozen=True)
class MapShape:
    """A string-keyed map of additional properties."""

    values: TypeShape
    kind: ClassVar[ShapeKind] = ShapeKind.MAP


TypeShape = Union[PrimitiveShape, ReferenceShape, ArrayShape, StructShape, EnumShape, UnionShape, MapShape]

ANY_SHAPE = PrimitiveShape("any")


def needs_definition(shape: TypeShape) -> bool:
    """Check whether a shape must be declared as a named type to be used."""
    return shape.kind in (ShapeKind.STRUCT, ShapeKind.ENUM, ShapeKind.UNION, ShapeKind.MAP)


@dataclass(frozen=True)
class TypeDefinition:
    """A named, renderable type.

    Attributes:
        source_name: Name of the schema source in the document (component
            key, or a slash-joined name path for anonymous schemas).
        type_name: Generated identifier, unique within one run.
        shape: The resolved shape of the type.
    """

    source_name: str
    type_name: str
    shape: TypeShape
    description: str | None = field(default=None, compare=False)

    @property
    def has_additional_properties(self) -> bool:
        if isinstance(self.shape, StructShape):
            return self.shape.additional_properties is not None
        return self.shape.kind is ShapeKind.MAP


@dataclass(frozen=True)
class SecurityDefinition:
    """A back-reference from an operation to a named security scheme."""

    provider_name: str
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderConstant:
    name: str
    provider_name: str


@dataclass(frozen=True)
class ParameterDefinition:
    name: str
    location: str
    py_name: str
    shape: TypeShape
    required: bool = False
    description: str | None = field(default=None, compare=False)
    style: str | None = None
    explode: bool | None = None


@dataclass(frozen=True)
class RequestBodyDefinition:
    """A request body; ``shape`` is None for non-JSON (opaque bytes) bodies."""

    content_type: str
    shape: TypeShape | None = None
    required: bool = False

    @property
    def is_json(self) -> bool:
        return self.shape is not None


@dataclass(frozen=True)
class ResponseDefinition:
    status_code: str
    description: str = ""
    content_type: str | None = None
    shape: TypeShape | None = None

    @property
    def is_json(self) -> bool:
        return self.shape is not None


@dataclass(frozen=True)
class OperationDefinition:
    """The structured description of one API operation."""

    operation_id: str
    path: str
    method: str
    function_name: str
    parameters: tuple[ParameterDefinition, ...] = ()
    request_body: RequestBodyDefinition | None = None
    responses: dict[str, ResponseDefinition] = field(default_factory=dict)
    security_definitions: tuple[SecurityDefinition, ...] = ()
    summary: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    params_type_name: str | None = None
    response_type_name: str | None = None
    type_definitions: tuple[TypeDefinition, ...] = ()

    def parameters_in(self, location: str) -> list[ParameterDefinition]:
        return [p for p in self.parameters if p.location == location]

    @property
    def path_parameters(self) -> list[ParameterDefinition]:
        return self.parameters_in("path")

    @property
    def non_path_parameters(self) -> list[ParameterDefinition]:
        return [p for p in self.parameters if p.location != "path"]


@dataclass
class CollectedTypes:
    type_definitions: list[TypeDefinition] = field(default_factory=list)
    additional_property_types: list[TypeDefinition] = field(default_factory=list)
