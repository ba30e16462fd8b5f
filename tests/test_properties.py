"""
Test whole-document properties of parsing and rendering.

Determinism, identifier injectivity, allOf commutativity, cycle detection
and exclusion are checked over a handful of documents, followed by the
small end-to-end scenarios.
"""

import ast
import copy
from typing import Any

import pytest

from py_oas_generator.config import GenerationOptions
from py_oas_generator.errors import ReferenceCycleError
from py_oas_generator.generator.template_engine import PythonCodeGenerator
from py_oas_generator.parser.models import (
    MapShape,
    PrimitiveShape,
    ReferenceShape,
    ShapeKind,
    StructShape,
)
from py_oas_generator.parser.oas_parser import OASParser, ParsedSpec

from .conftest import PET_DOCUMENT, STORE_DOCUMENT, document_with_schemas, field_named

COLLIDING_DOCUMENT = {
    "openapi": "3.0.3",
    "info": {"title": "Collisions", "version": "1"},
    "paths": {
        "/pet-owner": {
            "get": {
                "operationId": "petOwner",
                "parameters": [
                    {"name": "pet-id", "in": "query", "schema": {"type": "string"}},
                    {"name": "petId", "in": "query", "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {"application/json": {"schema": {"type": "object", "properties": {"x": {}}}}},
                    }
                },
            }
        },
        "/z": {
            "get": {
                "operationId": "pet_owner",
                "parameters": [{"name": "q", "in": "query", "schema": {"type": "string"}}],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {"application/json": {"schema": {"type": "object", "properties": {"y": {}}}}},
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "Pet": {"type": "object", "properties": {"owner": {"type": "object", "properties": {"a": {}}}}},
            "PetOwner": {"type": "string"},
            "pet-owner": {"type": "integer"},
            "PetOwner200JsonResponse": {"type": "boolean"},
        },
        "parameters": {"Pet": {"name": "pet", "in": "query", "schema": {"enum": ["a"]}}},
    },
}

DOCUMENTS = [PET_DOCUMENT, STORE_DOCUMENT, COLLIDING_DOCUMENT]


def parse(document: dict[str, Any], exclude: tuple[str, ...] = ()) -> ParsedSpec:
    return OASParser(exclude_schema_names=exclude).parse_dict(copy.deepcopy(document))


def render(spec: ParsedSpec) -> str:
    return PythonCodeGenerator().generate(spec, GenerationOptions(skip_format=True))


class TestDocumentProperties:
    """Test class for properties holding for every document."""

    @pytest.mark.parametrize("document", DOCUMENTS)
    def test_determinism(self, document: dict[str, Any]) -> None:
        """Test that independent runs give byte-identical output."""
        assert render(parse(document)) == render(parse(document))

    @pytest.mark.parametrize("document", DOCUMENTS)
    def test_type_names_are_unique(self, document: dict[str, Any]) -> None:
        """Test that no two type definitions share a generated name."""
        spec = parse(document)
        names = [d.type_name for d in spec.type_definitions]

        assert len(names) == len(set(names))
        assert not {"Client", "ClientWithResponses", "ServerInterface"} & set(names)

    @pytest.mark.parametrize("document", DOCUMENTS)
    def test_function_and_argument_names_are_unique(self, document: dict[str, Any]) -> None:
        """Test that functions, and arguments within a function, never clash."""
        spec = parse(document)
        functions = [op.function_name for op in spec.operations]

        assert len(functions) == len(set(functions))
        for operation in spec.operations:
            arguments = [p.py_name for p in operation.parameters]
            assert len(arguments) == len(set(arguments))

    def test_colliding_names(self) -> None:
        """Test the suffixes handed out in the collision document."""
        spec = parse(COLLIDING_DOCUMENT)
        by_source = {d.source_name: d.type_name for d in spec.type_definitions}

        assert by_source["PetOwner"] == "PetOwner"
        assert by_source["pet-owner"] == "PetOwner2"
        assert by_source["Pet/owner"] == "PetOwner3"
        assert by_source["PetOwner200JsonResponse"] == "PetOwner200JsonResponse"

        first, second = spec.operations
        assert (first.function_name, second.function_name) == ("pet_owner", "pet_owner_2")
        assert [p.py_name for p in first.parameters] == ["pet_id", "pet_id_2"]
        assert first.responses["200"].shape == ReferenceShape("PetOwner200JsonResponse2")
        assert (first.params_type_name, second.params_type_name) == ("PetOwnerParams", "PetOwner2Params")
        assert (first.response_type_name, second.response_type_name) == ("PetOwnerResponse", "PetOwner2Response")
        assert second.responses["200"].shape == ReferenceShape("PetOwner2200JsonResponse")

    def test_operation_and_component_types_never_share_names(self) -> None:
        """Test that an operation prefix and a component name spelling the same word mint distinct types."""
        document = document_with_schemas(
            {
                "Pet": {
                    "type": "object",
                    "properties": {"Response": {"type": "object", "properties": {"x": {"type": "string"}}}},
                }
            }
        )
        document["paths"] = {
            "/pets": {
                "get": {
                    "operationId": "pet",
                    "responses": {
                        "200": {
                            "description": "ok",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                        }
                    },
                }
            }
        }

        spec = parse(document)
        names = [d.type_name for d in spec.type_definitions] + [op.response_type_name for op in spec.operations]
        pet = next(d for d in spec.type_definitions if d.type_name == "Pet")

        assert len(names) == len(set(names))
        assert spec.operations[0].response_type_name == "PetResponse"
        assert field_named(pet.shape, "Response").shape == ReferenceShape("PetResponse2")
        ast.parse(render(spec))

    def test_recursive_inline_merge_renders(self) -> None:
        """Test that an array item merging its own enclosing schema is generated."""
        schemas = {
            "Node": {
                "type": "object",
                "properties": {
                    "children": {
                        "type": "array",
                        "items": {
                            "allOf": [
                                {"$ref": "#/components/schemas/Node"},
                                {"type": "object", "properties": {"weight": {"type": "number"}}},
                            ]
                        },
                    }
                },
            }
        }

        spec = parse(document_with_schemas(schemas))
        source = render(spec)

        assert [d.type_name for d in spec.type_definitions] == ["Node", "NodeChildrenItem"]
        assert "class NodeChildrenItem:" in source
        ast.parse(source)

    @pytest.mark.parametrize("first_is_ref", [True, False])
    def test_all_of_commutes_on_disjoint_fields(self, first_is_ref: bool) -> None:
        """Test that declared member order never changes the merged fields."""
        members = [
            {"$ref": "#/components/schemas/Base"},
            {"type": "object", "required": ["b"], "properties": {"b": {"type": "integer"}}},
        ]
        if not first_is_ref:
            members.reverse()
        schemas = {
            "Base": {"type": "object", "properties": {"a": {"type": "integer"}}},
            "Merged": {"allOf": members},
        }

        merged = next(d for d in parse(document_with_schemas(schemas)).type_definitions if d.type_name == "Merged")

        assert isinstance(merged.shape, StructShape)
        assert [(f.json_name, f.required) for f in merged.shape.fields] == [("a", False), ("b", True)]

    @pytest.mark.parametrize(
        "schemas",
        [
            {"A": {"$ref": "#/components/schemas/A"}},
            {"A": {"$ref": "#/components/schemas/B"}, "B": {"$ref": "#/components/schemas/C"}, "C": {"$ref": "#/components/schemas/A"}},
            {"A": {"allOf": [{"$ref": "#/components/schemas/A"}]}},
            {"A": {"allOf": [{"$ref": "#/components/schemas/A"}, {"type": "object"}]}},
        ],
    )
    def test_reference_cycles_fail(self, schemas: dict[str, Any]) -> None:
        """Test that every reference cycle is reported, never followed forever."""
        with pytest.raises(ReferenceCycleError):
            parse(document_with_schemas(schemas))

    def test_cycle_through_parameter_component(self) -> None:
        """Test that cycles outside the schemas section are detected too."""
        document = document_with_schemas(
            {},
            parameters={
                "A": {"$ref": "#/components/parameters/B"},
                "B": {"$ref": "#/components/parameters/A"},
            },
        )

        with pytest.raises(ReferenceCycleError):
            parse(document)

    def test_exclusion(self, store_document: dict[str, Any]) -> None:
        """Test that excluded schemas vanish while references keep their name."""
        spec = parse(store_document, exclude=("Status",))
        source = render(spec)

        assert all(d.source_name != "Status" for d in spec.type_definitions)
        pet = next(d for d in spec.type_definitions if d.type_name == "Pet")
        assert field_named(pet.shape, "status").shape == ReferenceShape("Status", "#/components/schemas/Status")
        assert "class Status" not in source
        assert "status: Optional[Status] = None" in source


class TestScenarios:
    """Test class for small end-to-end documents."""

    def test_pet_operation(self, pet_document: dict[str, Any]) -> None:
        """Test one schema and one operation referencing it."""
        spec = parse(pet_document)

        assert [d.type_name for d in spec.type_definitions] == ["Pet"]
        pet = spec.type_definitions[0].shape
        assert isinstance(pet, StructShape)
        assert [(f.json_name, f.required) for f in pet.fields] == [("name", True), ("tag", False)]

        (operation,) = spec.operations
        assert operation.operation_id == "getPetsById"
        assert [(p.name, p.location) for p in operation.path_parameters] == [("id", "path")]
        assert list(operation.responses) == ["200"]
        assert operation.responses["200"].shape == ReferenceShape("Pet", "#/components/schemas/Pet")

    def test_all_of_struct(self) -> None:
        """Test that allOf of two inline objects is one closed struct."""
        spec = parse(
            document_with_schemas(
                {
                    "AB": {
                        "allOf": [
                            {"type": "object", "properties": {"a": {"type": "integer"}}},
                            {"type": "object", "properties": {"b": {"type": "integer"}}},
                        ]
                    }
                }
            )
        )

        (definition,) = spec.type_definitions
        assert [f.json_name for f in definition.shape.fields] == ["a", "b"]
        assert not definition.has_additional_properties
        assert spec.additional_property_types == []

    def test_map_type(self) -> None:
        """Test that an open object without properties is a string map."""
        spec = parse(document_with_schemas({"Labels": {"additionalProperties": {"type": "string"}}}))

        (definition,) = spec.type_definitions
        assert definition.shape == MapShape(PrimitiveShape("string"))
        assert definition.shape.kind is ShapeKind.MAP
        assert definition.has_additional_properties
        assert spec.additional_property_types == [definition]
        assert "Labels: TypeAlias = dict[str, str]" in render(spec)
