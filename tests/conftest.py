"""Shared OpenAPI documents for the test suite."""

from __future__ import annotations

import copy
from typing import Any

import pytest

PET_DOCUMENT: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "paths": {
        "/pets/{id}": {
            "get": {
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {
                        "description": "A pet",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                    },
                },
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string"},
                    "tag": {"type": "string"},
                },
            },
        },
    },
}

STORE_DOCUMENT: dict[str, Any] = {
    "openapi": "3.1.0",
    "info": {"title": "Pet Store", "version": "2.0.0"},
    "security": [{"api_key": []}],
    "paths": {
        "/pets": {
            "parameters": [
                {"name": "limit", "in": "query", "schema": {"type": "integer"}},
            ],
            "get": {
                "operationId": "listPets",
                "summary": "List all pets",
                "parameters": [
                    {"$ref": "#/components/parameters/Tags"},
                    {"name": "X-Request-Id", "in": "header", "schema": {"type": "string", "format": "uuid"}},
                ],
                "responses": {
                    "200": {
                        "description": "Pets",
                        "content": {
                            "application/json": {
                                "schema": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
                            },
                        },
                    },
                    "default": {"$ref": "#/components/responses/Error"},
                },
            },
            "post": {
                "operationId": "addPet",
                "security": [{"oauth": ["write", "read"]}],
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "required": ["name"],
                                "properties": {
                                    "name": {"type": "string"},
                                    "status": {"$ref": "#/components/schemas/Status"},
                                },
                            },
                        },
                    },
                },
                "responses": {
                    "201": {
                        "description": "Created",
                        "content": {
                            "application/json": {
                                "schema": {"type": "object", "properties": {"id": {"type": "integer"}}},
                            },
                        },
                    },
                },
            },
        },
        "/pets/{petId}/photo": {
            "put": {
                "operationId": "uploadPhoto",
                "security": [],
                "parameters": [
                    {"name": "petId", "in": "path", "required": True, "schema": {"type": "integer"}},
                ],
                "requestBody": {
                    "content": {"application/octet-stream": {"schema": {"type": "string", "format": "binary"}}},
                },
                "responses": {"204": {"description": "Uploaded"}},
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string"},
                    "status": {"$ref": "#/components/schemas/Status"},
                    "born": {"type": "string", "format": "date"},
                    "owner": {
                        "type": "object",
                        "properties": {"email": {"type": "string"}},
                    },
                    "labels": {"type": "object", "additionalProperties": {"type": "string"}},
                },
            },
            "Status": {"type": "string", "enum": ["available", "pending", "sold"]},
            "Error": {
                "type": "object",
                "required": ["message"],
                "properties": {"message": {"type": "string"}, "code": {"type": "integer"}},
                "additionalProperties": True,
            },
        },
        "parameters": {
            "Tags": {
                "name": "tags",
                "in": "query",
                "schema": {"type": "array", "items": {"type": "string"}},
            },
        },
        "responses": {
            "Error": {
                "description": "Unexpected error",
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}},
            },
        },
        "securitySchemes": {
            "api_key": {"type": "apiKey", "in": "header", "name": "X-Api-Key"},
            "oauth": {"type": "oauth2", "flows": {}},
        },
    },
}


def document_with_schemas(schemas: dict[str, Any], **components: Any) -> dict[str, Any]:  # noqa: ANN401
    """Minimal document carrying the given component schemas."""
    return {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1"},
        "paths": {},
        "components": {"schemas": schemas, **components},
    }


@pytest.fixture
def pet_document() -> dict[str, Any]:
    return copy.deepcopy(PET_DOCUMENT)


@pytest.fixture
def store_document() -> dict[str, Any]:
    return copy.deepcopy(STORE_DOCUMENT)


def field_named(shape: Any, json_name: str) -> Any:  # noqa: ANN401
    """The field of a struct shape whose wire name is ``json_name``."""
    return next(f for f in shape.fields if f.json_name == json_name)
