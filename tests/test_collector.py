"""Test collection of the ordered type definition list."""

from typing import Any

import pytest

from py_oas_generator.errors import SchemaMergeConflictError
from py_oas_generator.parser.collector import (
    TypeDefinitionCollector,
    collect_type_definitions,
    select_json_media_type,
)
from py_oas_generator.parser.models import (
    ArrayShape,
    PrimitiveShape,
    ReferenceShape,
    StructShape,
    TypeDefinition,
)
from py_oas_generator.parser.oas_parser import OASParser

from .conftest import document_with_schemas


class TestSelectJsonMediaType:
    """Test class for JSON media type selection."""

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ({"application/json": {}, "application/vnd.api+json": {}}, "application/json"),
            ({"application/problem+json": {}, "application/merge-patch+json": {}}, "application/merge-patch+json"),
            ({"application/vnd.api+json; charset=utf-8": {}}, "application/vnd.api+json; charset=utf-8"),
            ({"text/plain": {}, "application/xml": {}}, None),
            ({}, None),
            (None, None),
        ],
    )
    def test_selection(self, content: dict[str, Any] | None, expected: str | None) -> None:
        """Test that application/json wins, then the first sorted +json type."""
        assert select_json_media_type(content) == expected


class TestTypeDefinitionCollector:
    """Test class for section order, exclusion and de-duplication."""

    def test_section_order(self, store_document: dict[str, Any]) -> None:
        """Test schemas, parameters, responses, then operation inline types."""
        spec = OASParser().parse_dict(store_document)

        assert [d.type_name for d in spec.type_definitions] == [
            "Error",
            "Pet",
            "PetLabels",
            "PetOwner",
            "Status",
            "Tags",
            "Error2",
            "ListPetsParams",
            "AddPetParams",
            "AddPetJsonRequestBody",
            "AddPet201JsonResponse",
        ]

    def test_component_types(self, store_document: dict[str, Any]) -> None:
        """Test the shapes collected from parameter and response components."""
        definitions = {d.type_name: d for d in collect_type_definitions(store_document).type_definitions}

        assert definitions["Tags"].shape == ArrayShape(PrimitiveShape("string"))
        assert definitions["Error2"].shape == ReferenceShape("Error", "#/components/schemas/Error")
        assert definitions["Error2"].source_name == "Error"

    def test_additional_property_types(self, store_document: dict[str, Any]) -> None:
        """Test the side list of structs and maps with additional properties."""
        collected = collect_type_definitions(store_document)

        assert [d.type_name for d in collected.additional_property_types] == ["Error", "PetLabels"]

    def test_excluded_schemas(self, store_document: dict[str, Any]) -> None:
        """Test that excluded schemas are skipped but references still name them."""
        spec = OASParser(exclude_schema_names=["Pet", "Status"]).parse_dict(store_document)
        names = [d.type_name for d in spec.type_definitions]

        assert "Pet" not in names
        assert "Status" not in names
        assert "PetOwner" not in names
        assert spec.operations[0].responses["200"].shape == ArrayShape(ReferenceShape("Pet", "#/components/schemas/Pet"))

    def test_excluded_merged_schema_keeps_nested_types(self) -> None:
        """Test that an excluded schema merged into another still contributes its nested types."""
        schemas = {
            "Foo": {
                "type": "object",
                "properties": {"inner": {"type": "object", "properties": {"x": {"type": "string"}}}},
            },
            "Bar": {
                "allOf": [
                    {"$ref": "#/components/schemas/Foo"},
                    {"type": "object", "properties": {"y": {"type": "string"}}},
                ]
            },
        }

        spec = OASParser(exclude_schema_names=["Foo"]).parse_dict(document_with_schemas(schemas))
        definitions = {d.type_name: d for d in spec.type_definitions}

        assert list(definitions) == ["Bar", "FooInner"]
        assert [f.json_name for f in definitions["FooInner"].shape.fields] == ["x"]
        assert definitions["Bar"].shape.fields[0].shape == ReferenceShape("FooInner")

    def test_non_json_component_bodies_are_untyped(self) -> None:
        """Test that responses without a JSON body produce no type."""
        document = {
            "openapi": "3.0.0",
            "info": {"title": "t", "version": "1"},
            "paths": {},
            "components": {
                "responses": {"Text": {"description": "text", "content": {"text/plain": {"schema": {"type": "string"}}}}},
                "requestBodies": {"Upload": {"content": {"application/json": {"schema": {"type": "string"}}}}},
            },
        }

        collected = collect_type_definitions(document)

        assert [d.type_name for d in collected.type_definitions] == ["Upload"]

    def test_equal_duplicates_collapse(self) -> None:
        """Test that a name generated twice with one shape is kept once."""
        first = TypeDefinition("a", "Pet", StructShape())
        second = TypeDefinition("b", "Pet", StructShape())

        assert TypeDefinitionCollector._deduplicate([first, second]) == [first]

    def test_unequal_duplicates_conflict(self) -> None:
        """Test that a name generated twice with two shapes is an error."""
        definitions = [TypeDefinition("a", "Pet", StructShape()), TypeDefinition("b", "Pet", PrimitiveShape("string"))]

        with pytest.raises(SchemaMergeConflictError, match="Pet"):
            TypeDefinitionCollector._deduplicate(definitions)
