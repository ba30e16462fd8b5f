"""
Schema-to-type synthesis.

Converts one schema node into a ``TypeShape``. Anonymous sub-schemas that
need a name of their own (objects, enums, unions, maps) are minted as
auxiliary ``TypeDefinition`` records, named from the naming context path,
and referenced from their slot by ``ReferenceShape``. References are never
descended into, except to read the fields of an ``allOf`` member.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from itertools import chain
from typing import Any, Final, NoReturn

from py_oas_generator.errors import (
    ReferenceCycleError,
    SchemaLocationError,
    SchemaMergeConflictError,
    UnsupportedSchemaConstructError,
)
from py_oas_generator.parser.context import GenerationContext, PendingMerge
from py_oas_generator.parser.identifiers import COMPONENT_ORIGIN, OPERATION_ORIGIN
from py_oas_generator.parser.models import (
    ANY_SHAPE,
    ArrayShape,
    EnumMember,
    EnumShape,
    MapShape,
    PrimitiveShape,
    ReferenceShape,
    StructField,
    StructShape,
    TypeDefinition,
    TypeShape,
    UnionShape,
    needs_definition,
)
from py_oas_generator.parser.references import component_key

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES: Final = frozenset({"string", "integer", "number", "boolean"})
ADDITIONAL_PROPERTIES_FIELD: Final = "additional_properties"
# Methods every generated dataclass defines; fields must not shadow them.
STRUCT_METHOD_NAMES: Final = ("from_dict", "to_dict")

_ITEM_SUFFIX: Final = "Item"
_ADDITIONAL_PROPERTIES_SUFFIX: Final = "AdditionalProperties"
_MERGED_SCOPE_SUFFIX: Final = "#allOf"


def literal_text(value: Any) -> str:  # noqa: ANN401
    """Text an enum literal is named from (JSON spelling for booleans)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_nullable(node: Any) -> bool:  # noqa: ANN401
    """Check whether an inline schema accepts ``null``."""
    if not isinstance(node, dict) or "$ref" in node:
        return False
    schema_type = node.get("type")
    return (
        node.get("nullable") is True
        or (isinstance(schema_type, list) and "null" in schema_type)
        or None in (node.get("enum") or ())
    )


def _infer_enum_base(values: list[Any]) -> str | None:
    if all(isinstance(v, bool) for v in values):
        return "boolean"
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return "integer"
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return "number"
    if all(isinstance(v, str) for v in values):
        return "string"
    return None


def _origin(loc: str) -> str:
    return OPERATION_ORIGIN if loc.startswith(f"{OPERATION_ORIGIN}/") else COMPONENT_ORIGIN


def _merges_members(node: Any) -> bool:  # noqa: ANN401
    """Check whether ``node`` is an ``allOf`` merging two or more members into a new struct."""
    if not isinstance(node, dict) or "$ref" in node or "not" in node or "allOf" not in node:
        return False
    has_sibling = "properties" in node or "additionalProperties" in node
    return len(node["allOf"]) + has_sibling > 1


class _AwaitingComponent(Exception):  # noqa: N818
    """Raised inside a named inline ``allOf`` struct that merges a component still in progress."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key


class SchemaSynthesizer:
    """Recursively converts schema nodes into type shapes.

    Args:
        context: The run's generation context; names minted here are
            registered in ``context.naming``.
    """

    def __init__(self, context: GenerationContext) -> None:
        self.context = context
        self.naming = context.naming
        self.resolver = context.resolver

    def synthesize(
        self,
        node: Any,  # noqa: ANN401
        name_path: list[str],
        location: str | None = None,
    ) -> tuple[TypeShape, list[TypeDefinition]]:
        """Synthesize the shape of ``node``.

        Args:
            node: The schema node.
            name_path: Naming context (enclosing type name, then property
                names) used to name anonymous nested types.
            location: Document path of ``node`` for error messages.

        Returns:
            The shape of ``node`` itself and the auxiliary type definitions
            minted for its anonymous sub-schemas, parents before children.
        """
        location = location or "/".join(name_path)
        aux: list[TypeDefinition] = []
        shape = self._synthesize(node, name_path, aux, location)
        return shape, aux

    def component_schema(self, name: str) -> tuple[TypeShape, list[TypeDefinition]]:
        """Synthesize (once per run) the component schema called ``name``.

        Raises:
            ReferenceCycleError: If the component's ``allOf`` merge chain
                leads back to it, or it resolves to nothing but itself.
        """
        key = component_key("schemas", name)
        if key in self.context.component_memo:
            return self.context.component_memo[key]
        if key in self.context.in_progress:
            self._reenter(key)

        node = self.context.components("schemas")[name]
        type_name = self.naming.type_name(key, name)
        self.context.in_progress.append(key)
        try:
            result = self.synthesize(node, [type_name], key)
        finally:
            self.context.in_progress.pop()
        if isinstance(result[0], ReferenceShape) and result[0].type_name == type_name:
            msg = f"schema {name!r} resolves to nothing but itself"
            raise ReferenceCycleError(msg, location=key)
        self.context.component_memo[key] = result
        for pending in self.context.deferred_merges.pop(key, []):
            self._complete_merge(pending)
        return result

    def _reenter(self, key: str) -> NoReturn:
        """Handle a merge of component ``key`` while ``key`` is still being synthesized.

        A named inline ``allOf`` struct entered since ``key`` started only
        needs ``key`` to finish first. Without one, ``key`` would have to
        contain its own fields.
        """
        in_progress = self.context.in_progress
        start = len(in_progress) - 1 - in_progress[::-1].index(key)
        if self.context.merge_boundaries and self.context.merge_boundaries[-1] > start:
            raise _AwaitingComponent(key)
        cycle = " -> ".join([*in_progress[start:], key])
        msg = f"allOf composition is recursive: {cycle}"
        raise ReferenceCycleError(msg, location=key)

    def _defer_merge(
        self, key: str, node: dict[str, Any], name_path: list[str], aux: list[TypeDefinition], loc: str
    ) -> ReferenceShape:
        type_name = self.naming.mint_type_name(name_path, _origin(loc))
        placeholder = TypeDefinition("/".join(name_path), type_name, StructShape(), node.get("description"))
        aux.append(placeholder)
        pending = PendingMerge(node, name_path, loc, placeholder, aux)
        self.context.deferred_merges.setdefault(key, []).append(pending)
        logger.debug("Merge into %s waits for %s", type_name, key)
        return ReferenceShape(type_name)

    def _complete_merge(self, pending: PendingMerge) -> None:
        """Synthesize a deferred inline ``allOf`` struct into its placeholder slot."""
        if not any(definition is pending.placeholder for definition in pending.aux):
            # The attempt that deferred it was abandoned and retried.
            return
        nested: list[TypeDefinition] = []
        self.context.merge_boundaries.append(len(self.context.in_progress))
        try:
            shape = self._synthesize(pending.node, pending.name_path, nested, pending.location)
        except _AwaitingComponent as awaiting:
            self.context.deferred_merges.setdefault(awaiting.key, []).append(pending)
            return
        finally:
            self.context.merge_boundaries.pop()

        index = next(i for i, definition in enumerate(pending.aux) if definition is pending.placeholder)
        pending.aux[index : index + 1] = [replace(pending.placeholder, shape=shape), *nested]
        # Merges deferred while synthesizing this one now live in the owner's list.
        for waiting in chain.from_iterable(self.context.deferred_merges.values()):
            if waiting.aux is nested:
                waiting.aux = pending.aux

    def _synthesize(self, node: Any, name_path: list[str], aux: list[TypeDefinition], loc: str) -> TypeShape:  # noqa: ANN401, C901, PLR0911
        if node is True or node is None:
            return ANY_SHAPE
        if not isinstance(node, dict):
            msg = f"schema must be an object, got {type(node).__name__}"
            raise UnsupportedSchemaConstructError(msg, loc)

        if "$ref" in node:
            return self._reference(node["$ref"], loc)
        if "not" in node:
            msg = "'not' schemas have no type mapping"
            raise UnsupportedSchemaConstructError(msg, loc)
        if "allOf" in node:
            return self._all_of(node, name_path, aux, loc)
        if "oneOf" in node or "anyOf" in node:
            return self._union(node, name_path, aux, loc)
        if "enum" in node or "const" in node:
            return self._enum(node, name_path, loc)

        schema_type = node.get("type")
        if isinstance(schema_type, list):
            non_null = [t for t in schema_type if t != "null"]
            if len(non_null) > 1:
                variants = tuple(self._synthesize({**node, "type": t}, name_path, aux, loc) for t in non_null)
                return UnionShape(variants=variants, composition="anyOf")
            schema_type = non_null[0] if non_null else None

        if schema_type == "array" or (schema_type is None and "items" in node):
            items = self._nested(node.get("items"), [*name_path, _ITEM_SUFFIX], aux, f"{loc}/items")
            return ArrayShape(items=items)
        if schema_type == "object" or (schema_type is None and ("properties" in node or "additionalProperties" in node)):
            return self._object(node, name_path, aux, loc)
        if schema_type in PRIMITIVE_TYPES:
            return PrimitiveShape(schema_type, node.get("format"))
        if schema_type is None:
            return ANY_SHAPE

        msg = f"unsupported schema type {schema_type!r}"
        raise UnsupportedSchemaConstructError(msg, loc)

    def _nested(self, node: Any, name_path: list[str], aux: list[TypeDefinition], loc: str) -> TypeShape:  # noqa: ANN401
        """Synthesize a sub-schema, minting a named type when it needs one."""
        index = len(aux)
        if not _merges_members(node):
            shape = self._synthesize(node, name_path, aux, loc)
        else:
            self.context.merge_boundaries.append(len(self.context.in_progress))
            try:
                shape = self._synthesize(node, name_path, aux, loc)
            except _AwaitingComponent as awaiting:
                del aux[index:]
                return self._defer_merge(awaiting.key, node, name_path, aux, loc)
            finally:
                self.context.merge_boundaries.pop()
        if not needs_definition(shape):
            return shape

        type_name = self.naming.mint_type_name(name_path, _origin(loc))
        description = node.get("description") if isinstance(node, dict) else None
        aux.insert(index, TypeDefinition("/".join(name_path), type_name, shape, description))
        logger.debug("Minted %s for anonymous schema at %s", type_name, loc)
        return ReferenceShape(type_name)

    def _reference(self, ref: str, loc: str) -> ReferenceShape:
        try:
            resolved = self.resolver.resolve(ref)
        except SchemaLocationError as exc:
            raise exc.with_location(loc)
        return ReferenceShape(resolved.type_name, resolved.target)

    def _object(self, node: dict[str, Any], name_path: list[str], aux: list[TypeDefinition], loc: str) -> TypeShape:
        properties: dict[str, Any] = node.get("properties") or {}
        required = set(node.get("required") or ())
        additional = node.get("additionalProperties")

        if not properties:
            if additional is None:
                return PrimitiveShape("object")
            if additional is False:
                return StructShape()
            return MapShape(self._additional_values(additional, name_path, aux, loc))

        additional_shape = None
        if additional not in (None, False):
            additional_shape = self._additional_values(additional, name_path, aux, loc)

        reserved = (*STRUCT_METHOD_NAMES, ADDITIONAL_PROPERTIES_FIELD) if additional_shape is not None else STRUCT_METHOD_NAMES
        scope_key = self.naming.path_key(name_path, _origin(loc))
        py_names = self.naming.field_names(scope_key, properties, reserved)
        fields = []
        for prop_name in sorted(properties):
            prop_node = properties[prop_name]
            shape = self._nested(prop_node, [*name_path, prop_name], aux, f"{loc}/properties/{prop_name}")
            fields.append(
                StructField(
                    json_name=prop_name,
                    py_name=py_names[prop_name],
                    shape=shape,
                    required=prop_name in required,
                    nullable=is_nullable(prop_node),
                    description=prop_node.get("description") if isinstance(prop_node, dict) else None,
                )
            )
        return StructShape(fields=tuple(fields), additional_properties=additional_shape)

    def _additional_values(self, additional: Any, name_path: list[str], aux: list[TypeDefinition], loc: str) -> TypeShape:  # noqa: ANN401
        if additional is True:
            return ANY_SHAPE
        return self._nested(additional, [*name_path, _ADDITIONAL_PROPERTIES_SUFFIX], aux, f"{loc}/additionalProperties")

    def _enum(self, node: dict[str, Any], name_path: list[str], loc: str) -> TypeShape:
        declared = node["enum"] if "enum" in node else [node["const"]]
        values: list[Any] = []
        for value in declared:
            if value is not None and value not in values:
                values.append(value)
        if not values:
            return ANY_SHAPE

        schema_type = node.get("type")
        if isinstance(schema_type, list):
            schema_type = next((t for t in schema_type if t != "null"), None)
        base_type = schema_type or _infer_enum_base(values)
        if base_type not in PRIMITIVE_TYPES:
            msg = f"enum literals of type {base_type or 'mixed'!r} are not supported"
            raise UnsupportedSchemaConstructError(msg, loc)

        scope_key = self.naming.path_key(name_path, _origin(loc))
        names = self.naming.constant_names(scope_key, [literal_text(v) for v in values])
        members = tuple(EnumMember(names[literal_text(v)], v) for v in values)
        return EnumShape(base_type=base_type, members=members)

    def _union(self, node: dict[str, Any], name_path: list[str], aux: list[TypeDefinition], loc: str) -> UnionShape:
        composition = "oneOf" if "oneOf" in node else "anyOf"
        label = "OneOf" if composition == "oneOf" else "AnyOf"
        variants = tuple(
            self._nested(member, [*name_path, f"{label}{index}"], aux, f"{loc}/{composition}/{index - 1}")
            for index, member in enumerate(node[composition], start=1)
        )

        discriminator = node.get("discriminator") or {}
        mapping = discriminator.get("mapping") or {}
        resolved_mapping = tuple((key, self._mapping_target(mapping[key], loc)) for key in sorted(mapping))
        return UnionShape(
            variants=variants,
            composition=composition,
            discriminator=discriminator.get("propertyName"),
            mapping=resolved_mapping,
        )

    def _mapping_target(self, target: str, loc: str) -> str:
        if target.startswith("#"):
            return self._reference(target, loc).type_name
        return self._reference(component_key("schemas", target), loc).type_name

    def _all_of(self, node: dict[str, Any], name_path: list[str], aux: list[TypeDefinition], loc: str) -> TypeShape:
        members: list[Any] = list(node["allOf"])
        sibling = {key: node[key] for key in ("properties", "additionalProperties") if key in node}
        if sibling:
            members.append({"type": "object", **sibling, "required": node.get("required", [])})

        if len(members) == 1:
            return self._synthesize(members[0], name_path, aux, f"{loc}/allOf/0")

        structs = [
            self._member_struct(member, name_path, aux, f"{loc}/allOf/{index}") for index, member in enumerate(members)
        ]

        required: set[str] = set(node.get("required") or ())
        for member in members:
            if isinstance(member, dict) and "$ref" not in member:
                required.update(member.get("required") or ())

        merged: dict[str, StructField] = {}
        for struct in structs:
            for struct_field in struct.fields:
                existing = merged.get(struct_field.json_name)
                if existing is None:
                    merged[struct_field.json_name] = struct_field
                elif existing.shape == struct_field.shape:
                    merged[struct_field.json_name] = replace(
                        existing,
                        required=existing.required or struct_field.required,
                        nullable=existing.nullable and struct_field.nullable,
                    )
                else:
                    msg = f"allOf members declare field {struct_field.json_name!r} with conflicting types"
                    raise SchemaMergeConflictError(msg, loc)

        additional_shapes = [s.additional_properties for s in structs if s.additional_properties is not None]
        additional_shape: TypeShape | None = None
        if additional_shapes:
            first = additional_shapes[0]
            additional_shape = first if all(s == first for s in additional_shapes) else ANY_SHAPE

        reserved = (*STRUCT_METHOD_NAMES, ADDITIONAL_PROPERTIES_FIELD) if additional_shape is not None else STRUCT_METHOD_NAMES
        scope_key = self.naming.path_key(name_path, _origin(loc)) + _MERGED_SCOPE_SUFFIX
        py_names = self.naming.field_names(scope_key, merged, reserved)
        fields = tuple(
            replace(
                merged[json_name],
                py_name=py_names[json_name],
                required=merged[json_name].required or json_name in required,
            )
            for json_name in sorted(merged)
        )
        return StructShape(fields=fields, additional_properties=additional_shape)

    def _member_struct(self, member: Any, name_path: list[str], aux: list[TypeDefinition], loc: str) -> StructShape:  # noqa: ANN401
        if isinstance(member, dict) and "$ref" in member:
            shape = self._referenced_schema_shape(member["$ref"], loc)
        else:
            shape = self._synthesize(member, name_path, aux, loc)

        if isinstance(shape, StructShape):
            return shape
        if isinstance(shape, MapShape):
            return StructShape(additional_properties=shape.values)
        if isinstance(shape, PrimitiveShape) and shape.type_name == "object":
            return StructShape()

        msg = f"allOf member must describe an object, got a {shape.kind.value} schema"
        raise UnsupportedSchemaConstructError(msg, loc)

    def _referenced_schema_shape(self, ref: str, loc: str) -> TypeShape:
        """Shape of the component schema ``ref`` names, seen through aliases."""
        seen: list[str] = []
        while True:
            try:
                resolved = self.resolver.resolve(ref)
            except SchemaLocationError as exc:
                raise exc.with_location(loc)
            if resolved.section != "schemas":
                msg = f"allOf member {ref!r} must reference a component schema"
                raise UnsupportedSchemaConstructError(msg, loc)
            if resolved.target in seen:
                msg = f"allOf member aliases itself: {' -> '.join([*seen, resolved.target])}"
                raise ReferenceCycleError(msg, location=loc)
            seen.append(resolved.target)

            shape, _ = self.component_schema(resolved.name)
            if not isinstance(shape, ReferenceShape) or shape.ref is None:
                return shape
            ref = shape.ref
