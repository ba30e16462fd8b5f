"""
Jinja2 filters and expression builders for Python code generation.

This module turns type shapes into Python annotations and into the
expressions that decode JSON values into generated types, plus the small
text filters templates need (docstrings, comments, literals, paths).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any, Final

from py_oas_generator.parser.models import (
    ArrayShape,
    EnumShape,
    MapShape,
    OperationDefinition,
    PrimitiveShape,
    ReferenceShape,
    StructField,
    StructShape,
    TypeDefinition,
    TypeShape,
    UnionShape,
)
from py_oas_generator.utils.string_case import snakecase

_PRIMITIVE_ANNOTATIONS: Final = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "any": "Any",
    "object": "dict[str, Any]",
}

# String formats with a richer Python type, and the callable that parses them.
_STRING_FORMATS: Final = {
    "date": "datetime.date",
    "date-time": "datetime.datetime",
    "uuid": "uuid.UUID",
}
_STRING_DECODERS: Final = {
    "date": "datetime.date.fromisoformat",
    "date-time": "datetime.datetime.fromisoformat",
    "uuid": "uuid.UUID",
}

_ENUM_BASES: Final = {
    "string": "str, Enum",
    "integer": "int, Enum",
    "number": "float, Enum",
    "boolean": "Enum",
}

_PATH_PARAMETER_PATTERN: Final = re.compile(r"\{([^}]+)\}")


def _unknown_shape(shape: object) -> TypeError:
    return TypeError(f"unknown type shape {shape!r}")


class TypeExpressions:
    """Builds annotations and decode expressions for one generated module.

    Args:
        type_definitions: Every type the module declares; references to
            names outside this set (excluded schemas) are left opaque.
    """

    def __init__(self, type_definitions: Iterable[TypeDefinition]) -> None:
        self.types = {definition.type_name: definition for definition in type_definitions}

    def annotation(self, shape: TypeShape, *, quoted: bool = False) -> str:
        """Python type expression for a slot of the given shape.

        Args:
            shape: The slot shape.
            quoted: Quote named types, for positions evaluated at import
                time (type alias right-hand sides).
        """
        match shape:
            case PrimitiveShape(type_name="string", format=fmt) if fmt in _STRING_FORMATS:
                return _STRING_FORMATS[fmt]
            case PrimitiveShape(type_name=type_name):
                return _PRIMITIVE_ANNOTATIONS.get(type_name, "Any")
            case ReferenceShape(type_name=type_name):
                return f'"{type_name}"' if quoted else type_name
            case ArrayShape(items=items):
                return f"list[{self.annotation(items, quoted=quoted)}]"
            case MapShape(values=values):
                return f"dict[str, {self.annotation(values, quoted=quoted)}]"
            case UnionShape(variants=variants):
                return f"Union[{', '.join(self.annotation(v, quoted=quoted) for v in variants)}]"
            case StructShape() | EnumShape():
                msg = f"{shape.kind.value} shapes are only usable through a named type"
                raise TypeError(msg)
            case _:
                raise _unknown_shape(shape)

    def optional_annotation(self, shape: TypeShape, *, optional: bool) -> str:
        annotation = self.annotation(shape)
        return f"Optional[{annotation}]" if optional and annotation != "Any" else annotation

    def decode(self, shape: TypeShape, expr: str, depth: int = 0, seen: frozenset[str] = frozenset()) -> str:
        """Expression converting the JSON value ``expr`` to the shape's type.

        Returns ``expr`` itself when no conversion is needed. ``expr`` may be
        evaluated more than once and must be free of side effects.
        """
        match shape:
            case PrimitiveShape(type_name="string", format=fmt) if fmt in _STRING_DECODERS:
                return f"{_STRING_DECODERS[fmt]}({expr})"
            case PrimitiveShape():
                return expr
            case ReferenceShape(type_name=type_name):
                return self._decode_named(type_name, expr, depth, seen)
            case ArrayShape(items=items):
                var = f"v{depth}"
                inner = self.decode(items, var, depth + 1, seen)
                return expr if inner == var else f"[{inner} for {var} in {expr}]"
            case MapShape(values=values):
                key, var = f"k{depth}", f"v{depth}"
                inner = self.decode(values, var, depth + 1, seen)
                return expr if inner == var else f"{{{key}: {inner} for {key}, {var} in {expr}.items()}}"
            case UnionShape():
                return self._decode_union(shape, expr)
            case StructShape() | EnumShape():
                msg = f"{shape.kind.value} shapes are only usable through a named type"
                raise TypeError(msg)
            case _:
                raise _unknown_shape(shape)

    def _decode_named(self, type_name: str, expr: str, depth: int, seen: frozenset[str]) -> str:
        definition = self.types.get(type_name)
        if definition is None or type_name in seen:
            return expr
        match definition.shape:
            case StructShape():
                return f"{type_name}.from_dict({expr})"
            case EnumShape():
                return f"{type_name}({expr})"
            case _:
                return self.decode(definition.shape, expr, depth, seen | {type_name})

    def _decode_union(self, shape: UnionShape, expr: str) -> str:
        """Dispatch on the discriminator when every mapped variant is a struct.

        Other unions stay as decoded JSON.
        """
        if not shape.discriminator or not shape.mapping:
            return expr
        targets = [self.types.get(target) for _, target in shape.mapping]
        if not all(t is not None and isinstance(t.shape, StructShape) for t in targets):
            return expr
        table = ", ".join(f"{key!r}: {target}.from_dict" for key, target in shape.mapping)
        return f"{{{table}}}[{expr}[{shape.discriminator!r}]]({expr})"

    def field_value(self, struct_field: StructField, source: str = "data") -> str:
        """Expression reading ``struct_field`` out of the JSON object ``source``."""
        json_name = struct_field.json_name
        access = f"{source}[{json_name!r}]" if struct_field.required else f"{source}.get({json_name!r})"
        decoded = self.decode(struct_field.shape, "value")
        if decoded == "value":
            return access
        if struct_field.required and not struct_field.nullable:
            return self.decode(struct_field.shape, access)
        return f"None if (value := {access}) is None else {decoded}"


def enum_bases(shape: EnumShape) -> str:
    return _ENUM_BASES[shape.base_type]


def py_literal(value: Any) -> str:  # noqa: ANN401
    """Python source for a JSON literal."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return repr(value)
    if isinstance(value, list):
        return f"[{', '.join(py_literal(item) for item in value)}]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{py_literal(k)}: {py_literal(v)}" for k, v in value.items()) + "}"
    return repr(value)


def docstring(text: str | None, indent: int = 0) -> str:
    """Format text as a triple-quoted docstring at the given indentation.

    Example:
        >>> docstring("A pet.")
        '\"\"\"A pet.\"\"\"'
    """
    if not text or not text.strip():
        return ""
    body = text.strip().replace("\\", "\\\\")
    if body.endswith('"'):
        body = body[:-1] + '\\"'
    body = body.replace('"""', '\\"\\"\\"')
    lines = body.split("\n")
    if len(lines) == 1:
        return f'"""{lines[0]}"""'
    pad = " " * indent
    rest = "\n".join(f"{pad}{line.rstrip()}" if line.strip() else "" for line in lines[1:])
    return f'"""{lines[0]}\n{rest}\n{pad}"""'


def comment(text: str | None, indent: int = 0) -> str:
    """Format text as ``#`` comment lines, the first line unindented."""
    if not text or not text.strip():
        return ""
    pad = " " * indent
    lines = [f"# {line.strip()}".rstrip() for line in text.strip().split("\n")]
    return f"\n{pad}".join(lines)


def path_fstring(operation: OperationDefinition) -> str:
    """Render the operation path as an f-string with quoted parameter values.

    Example:
        ``/pets/{pet-id}`` becomes ``f"/pets/{_path_value(pet_id)}"``.
    """
    by_name = {p.name: p.py_name for p in operation.path_parameters}
    escaped = operation.path.replace("\\", "\\\\").replace('"', '\\"')

    # split() alternates literal text and captured parameter names
    rendered = []
    for index, part in enumerate(_PATH_PARAMETER_PATTERN.split(escaped)):
        if index % 2 and part in by_name:
            rendered.append("{_path_value(" + by_name[part] + ")}")
        elif index % 2:
            rendered.append("{{" + part + "}}")
        else:
            rendered.append(part.replace("{", "{{").replace("}", "}}"))
    return 'f"' + "".join(rendered) + '"'


def response_field(status_code: str) -> str:
    """Attribute holding the decoded body of one response status.

    Examples:
        >>> response_field("200")
        'json200'
        >>> response_field("default")
        'json_default'
    """
    if status_code.isdigit():
        return f"json{status_code}"
    return f"json_{snakecase(status_code)}"


def status_condition(status_code: str) -> str:
    """Condition on ``response.status_code`` matching a status key."""
    if status_code.isdigit():
        return f"response.status_code == {int(status_code)}"
    if len(status_code) == 3 and status_code[0].isdigit() and status_code[1:].upper() == "XX":
        return f"response.status_code // 100 == {status_code[0]}"
    return "True"


def snake_type_name(type_name: str) -> str:
    return snakecase(type_name)


# Register filters that will be available in Jinja templates
FILTERS = {
    "docstring": docstring,
    "comment": comment,
    "enum_bases": enum_bases,
    "py_literal": py_literal,
    "path_fstring": path_fstring,
    "response_field": response_field,
    "status_condition": status_condition,
    "snake_type_name": snake_type_name,
}
