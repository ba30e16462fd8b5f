"""
Operation extraction.

Turns every path and method of the document into an ``OperationDefinition``
with typed parameters, request body, responses and security requirements.
Inline schemas met on the way are minted as per-operation type definitions.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any, Final

from py_oas_generator.errors import SchemaLocationError
from py_oas_generator.parser.collector import select_json_media_type
from py_oas_generator.parser.context import GenerationContext
from py_oas_generator.parser.identifiers import OPERATION_ORIGIN, IdentifierSanitizer
from py_oas_generator.parser.models import (
    OperationDefinition,
    ParameterDefinition,
    ProviderConstant,
    ReferenceShape,
    RequestBodyDefinition,
    ResponseDefinition,
    SecurityDefinition,
    StructField,
    StructShape,
    TypeDefinition,
    TypeShape,
    needs_definition,
)
from py_oas_generator.parser.synthesizer import STRUCT_METHOD_NAMES, SchemaSynthesizer
from py_oas_generator.utils.string_case import pascalcase

logger = logging.getLogger(__name__)

# Fixed method order; path items are mappings and must not be iterated directly.
HTTP_METHODS: Final = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Names the generated client and server methods use for their own arguments and locals.
RESERVED_ARGUMENT_NAMES: Final = ("body", "cookies", "headers", "params", "payload", "query", "request", "response")

_PATH_PARAMETER_PATTERN: Final = re.compile(r"\{([^}]+)\}")


def synthesize_operation_id(method: str, path: str) -> str:
    """Build a deterministic operation ID from method and path.

    Examples:
        >>> synthesize_operation_id("get", "/pets/{id}")
        'getPetsById'
        >>> synthesize_operation_id("post", "/store/order")
        'postStoreOrder'
    """
    words = []
    for segment in path.split("/"):
        match = _PATH_PARAMETER_PATTERN.fullmatch(segment)
        if match:
            words.append("By" + pascalcase(match.group(1)))
        elif segment:
            words.append(pascalcase(segment))
    return method.lower() + "".join(words)


def _pointer(path: str) -> str:
    return path.replace("~", "~0").replace("/", "~1")


class OperationExtractor:
    """Builds one ``OperationDefinition`` per path and method."""

    def __init__(self, context: GenerationContext, synthesizer: SchemaSynthesizer | None = None) -> None:
        self.context = context
        self.document = context.document
        self.naming = context.naming
        self.resolver = context.resolver
        self.synthesizer = synthesizer or SchemaSynthesizer(context)

    def extract(self) -> list[OperationDefinition]:
        """Extract every operation in sorted path order and fixed method order."""
        paths: dict[str, Any] = self.document.get("paths") or {}
        entries = [
            (path, method, paths[path], paths[path][method])
            for path in sorted(paths)
            for method in HTTP_METHODS
            if method in (paths[path] or {})
        ]
        operation_ids = {
            (path, method): operation.get("operationId") or synthesize_operation_id(method, path)
            for path, method, _, operation in entries
        }
        # Sorting the keys sorts by operation ID first; method and path only break ties.
        keys = {entry: f"{operation_id} {entry[1]} {entry[0]}" for entry, operation_id in operation_ids.items()}
        function_names = self.naming.function_names({keys[entry]: operation_ids[entry] for entry in keys})
        type_prefixes = self.naming.operation_type_prefixes(function_names.values())

        operations = []
        for path, method, path_item, operation in entries:
            function_name = function_names[keys[(path, method)]]
            operations.append(
                self._operation(
                    path,
                    method,
                    path_item,
                    operation,
                    operation_ids[(path, method)],
                    function_name,
                    type_prefixes[function_name],
                ),
            )
        logger.debug("Extracted %d operations", len(operations))
        return operations

    def _operation(
        self,
        path: str,
        method: str,
        path_item: dict[str, Any],
        operation: dict[str, Any],
        operation_id: str,
        function_name: str,
        type_prefix: str,
    ) -> OperationDefinition:
        location = f"#/paths/{_pointer(path)}/{method}"
        aux: list[TypeDefinition] = []

        parameters = self._parameters(path, path_item, operation, function_name, type_prefix, aux, location)
        params_type_name = self._params_type(parameters, type_prefix, aux)
        request_body = self._request_body(operation.get("requestBody"), type_prefix, aux, location)
        responses = self._responses(operation.get("responses") or {}, type_prefix, aux, location)

        return OperationDefinition(
            operation_id=operation_id,
            path=path,
            method=method.upper(),
            function_name=function_name,
            parameters=parameters,
            request_body=request_body,
            responses=responses,
            security_definitions=self._security(operation),
            summary=operation.get("summary"),
            description=operation.get("description"),
            tags=tuple(operation.get("tags") or ()),
            params_type_name=params_type_name,
            type_definitions=tuple(aux),
            response_type_name=self.naming.mint_type_name([type_prefix, "Response"], OPERATION_ORIGIN),
        )

    def _slot(self, schema: Any, name_path: list[str], aux: list[TypeDefinition], location: str) -> TypeShape:  # noqa: ANN401
        """Synthesize a schema used in place, minting a type when it needs a name."""
        shape, nested = self.synthesizer.synthesize(schema, name_path, location)
        if needs_definition(shape):
            type_name = self.naming.mint_type_name(name_path, OPERATION_ORIGIN)
            description = schema.get("description") if isinstance(schema, dict) else None
            aux.append(TypeDefinition("/".join(name_path), type_name, shape, description))
            shape = ReferenceShape(type_name)
        aux.extend(nested)
        return shape

    def _deref(self, node: Any, location: str) -> Any:  # noqa: ANN401
        try:
            return self.resolver.deref(node)
        except SchemaLocationError as exc:
            raise exc.with_location(location)

    def _ref_type(self, ref: str, location: str) -> ReferenceShape:
        try:
            resolved = self.resolver.resolve(ref)
        except SchemaLocationError as exc:
            raise exc.with_location(location)
        return ReferenceShape(resolved.type_name, resolved.target)

    def _parameters(
        self,
        path: str,
        path_item: dict[str, Any],
        operation: dict[str, Any],
        function_name: str,
        type_prefix: str,
        aux: list[TypeDefinition],
        location: str,
    ) -> tuple[ParameterDefinition, ...]:
        # Keyed by (name, in); an operation-level entry replaces a path-level one in place.
        merged: dict[tuple[str, str], tuple[dict[str, Any], dict[str, Any], str]] = {}
        sources = [
            (path_item.get("parameters") or (), f"#/paths/{_pointer(path)}/parameters"),
            (operation.get("parameters") or (), f"{location}/parameters"),
        ]
        for raw_parameters, base in sources:
            for index, raw in enumerate(raw_parameters):
                resolved = self._deref(raw, f"{base}/{index}")
                merged[(resolved["name"], resolved.get("in", "query"))] = (raw, resolved, f"{base}/{index}")

        py_names = self.naming.parameter_names(function_name, merged, (*RESERVED_ARGUMENT_NAMES, *STRUCT_METHOD_NAMES))
        template_order = {name: index for index, name in enumerate(_PATH_PARAMETER_PATTERN.findall(path))}

        definitions = []
        for (name, param_in), (raw, resolved, param_location) in merged.items():
            if "$ref" in raw:
                shape: TypeShape = self._ref_type(raw["$ref"], param_location)
            else:
                shape = self._slot(self._parameter_schema(resolved), [type_prefix, "Params", name], aux, param_location)
            definitions.append(
                ParameterDefinition(
                    name=name,
                    location=param_in,
                    py_name=py_names[(name, param_in)],
                    shape=shape,
                    required=param_in == "path" or bool(resolved.get("required")),
                    description=resolved.get("description"),
                    style=resolved.get("style"),
                    explode=resolved.get("explode"),
                )
            )

        path_parameters = sorted(
            (p for p in definitions if p.location == "path"),
            key=lambda p: template_order.get(p.name, len(template_order)),
        )
        return (*path_parameters, *(p for p in definitions if p.location != "path"))

    @staticmethod
    def _parameter_schema(parameter: dict[str, Any]) -> Any:  # noqa: ANN401
        if "schema" in parameter:
            return parameter["schema"]
        media_type = select_json_media_type(parameter.get("content"))
        return parameter["content"][media_type].get("schema") if media_type else None

    def _params_type(
        self,
        parameters: Iterable[ParameterDefinition],
        type_prefix: str,
        aux: list[TypeDefinition],
    ) -> str | None:
        """Mint the ``<OperationId>Params`` struct for query, header and cookie parameters."""
        fields = tuple(
            StructField(
                json_name=p.name,
                py_name=p.py_name,
                shape=p.shape,
                required=p.required,
                description=p.description,
            )
            for p in parameters
            if p.location != "path"
        )
        if not fields:
            return None
        type_name = self.naming.mint_type_name([type_prefix, "Params"], OPERATION_ORIGIN)
        aux.insert(0, TypeDefinition(f"{type_prefix}/Params", type_name, StructShape(fields=fields)))
        return type_name

    def _request_body(
        self,
        raw: dict[str, Any] | None,
        type_prefix: str,
        aux: list[TypeDefinition],
        location: str,
    ) -> RequestBodyDefinition | None:
        if not raw:
            return None
        body_location = f"{location}/requestBody"
        body = self._deref(raw, body_location)
        content = body.get("content") or {}
        required = bool(body.get("required"))
        media_type = select_json_media_type(content)

        if media_type is None:
            content_type = min(content) if content else "application/octet-stream"
            return RequestBodyDefinition(content_type=content_type, shape=None, required=required)

        if "$ref" in raw:
            shape: TypeShape = self._ref_type(raw["$ref"], body_location)
        else:
            schema = content[media_type].get("schema")
            schema_location = f"{body_location}/content/{_pointer(media_type)}/schema"
            shape = self._slot(schema, [type_prefix, "JSONRequestBody"], aux, schema_location)
        return RequestBodyDefinition(content_type=media_type, shape=shape, required=required)

    def _responses(
        self,
        raw_responses: dict[str, Any],
        type_prefix: str,
        aux: list[TypeDefinition],
        location: str,
    ) -> dict[str, ResponseDefinition]:
        responses = {}
        for status in sorted(raw_responses, key=str):
            raw = raw_responses[status]
            status_code = str(status)
            response_location = f"{location}/responses/{status_code}"
            response = self._deref(raw, response_location)
            content = response.get("content") or {}
            media_type = select_json_media_type(content)

            shape: TypeShape | None = None
            if media_type is not None:
                if "$ref" in raw:
                    shape = self._ref_type(raw["$ref"], response_location)
                else:
                    schema = content[media_type].get("schema")
                    schema_location = f"{response_location}/content/{_pointer(media_type)}/schema"
                    shape = self._slot(schema, [type_prefix, status_code, "JSONResponse"], aux, schema_location)

            responses[status_code] = ResponseDefinition(
                status_code=status_code,
                description=response.get("description", ""),
                content_type=media_type or (min(content) if content else None),
                shape=shape,
            )
        return responses

    def _security(self, operation: dict[str, Any]) -> tuple[SecurityDefinition, ...]:
        requirements = operation["security"] if "security" in operation else self.document.get("security") or ()
        return tuple(
            SecurityDefinition(provider_name=name, scopes=tuple(requirement[name] or ()))
            for requirement in requirements
            for name in sorted(requirement)
        )


def provider_constants(operations: Iterable[OperationDefinition]) -> list[ProviderConstant]:
    """Constants for every distinct security provider used by ``operations``.

    Provider names are sanitized and de-duplicated; the result is sorted by
    constant name, each keeping the smallest source provider name mapping
    to it.
    """
    by_constant: dict[str, str] = {}
    for operation in operations:
        for definition in operation.security_definitions:
            constant = IdentifierSanitizer.to_constant_name(definition.provider_name)
            current = by_constant.get(constant)
            if current is None or definition.provider_name < current:
                by_constant[constant] = definition.provider_name
    return [ProviderConstant(name=name, provider_name=by_constant[name]) for name in sorted(by_constant)]


def extract_operations(document: dict[str, Any], context: GenerationContext | None = None) -> list[OperationDefinition]:
    """Extract operations from ``document`` in a fresh (or given) context."""
    return OperationExtractor(context or GenerationContext(document)).extract()
