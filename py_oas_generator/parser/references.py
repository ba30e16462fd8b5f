"""
Resolution of ``$ref`` strings to named types.

Only intra-document component references are supported. References are
never expanded into the referrer: resolving yields a type name, and the
referenced schema is synthesized once, under its own name, by the collector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

from py_oas_generator.errors import ReferenceCycleError, UnresolvableReferenceError
from py_oas_generator.parser.identifiers import NamingContext

logger = logging.getLogger(__name__)

COMPONENTS_PREFIX: Final = "#/components/"

# Section order doubles as the tie-break rank when two sections share a key.
COMPONENT_SECTIONS: Final = ("schemas", "parameters", "responses", "requestBodies")


class ResolutionKind(str, Enum):
    """How a reference relates to the type it names."""

    NAMED = "named"
    ALIAS = "alias"


@dataclass(frozen=True)
class ResolvedReference:
    """Outcome of resolving one ``$ref``.

    Attributes:
        type_name: Identifier of the type the reference ultimately names.
        kind: ``NAMED`` when the reference points straight at a component,
            ``ALIAS`` when it went through one or more ref-to-ref hops.
        target: The final reference string after dereferencing.
        section: Component section of the final target.
        name: Component key of the final target.
    """

    type_name: str
    kind: ResolutionKind
    target: str
    section: str
    name: str


def _unescape_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def component_key(section: str, name: str) -> str:
    """Canonical source key of a component, used for type naming."""
    return f"{COMPONENTS_PREFIX}{section}/{name}"


def split_reference(ref: str) -> tuple[str, str]:
    """Split a component reference into ``(section, name)``.

    Raises:
        UnresolvableReferenceError: For remote references, references into
            unsupported sections, or malformed pointers.
    """
    if not isinstance(ref, str) or not ref.startswith(COMPONENTS_PREFIX):
        msg = f"unsupported reference {ref!r}: only local '#/components/...' references are resolved"
        raise UnresolvableReferenceError(msg)

    tokens = ref[len(COMPONENTS_PREFIX) :].split("/")
    if len(tokens) != 2 or not tokens[1]:  # noqa: PLR2004
        msg = f"unsupported reference {ref!r}: expected '#/components/<section>/<name>'"
        raise UnresolvableReferenceError(msg)

    section, name = tokens[0], _unescape_pointer_token(tokens[1])
    if section not in COMPONENT_SECTIONS:
        msg = f"unsupported reference {ref!r}: section {section!r} is not one of {', '.join(COMPONENT_SECTIONS)}"
        raise UnresolvableReferenceError(msg)
    return section, name


class ReferenceResolver:
    """Maps ``$ref`` strings to type names, following ref-to-ref chains."""

    def __init__(self, document: dict[str, Any], naming: NamingContext) -> None:
        self.document = document
        self.naming = naming

    def _components(self, section: str) -> dict[str, Any]:
        return self.document.get("components", {}).get(section) or {}

    def _lookup(self, ref: str) -> tuple[str, str, Any]:
        section, name = split_reference(ref)
        components = self._components(section)
        if name not in components:
            msg = f"reference {ref!r} does not match any entry in components/{section}"
            raise UnresolvableReferenceError(msg)
        return section, name, components[name]

    def _follow(self, ref: str) -> tuple[list[str], str, str, Any]:
        chain = [ref]
        section, name, node = self._lookup(ref)
        while isinstance(node, dict) and "$ref" in node:
            next_ref = node["$ref"]
            if next_ref in chain:
                cycle = " -> ".join([*chain, next_ref])
                msg = f"reference cycle detected: {cycle}"
                raise ReferenceCycleError(msg, location=ref)
            chain.append(next_ref)
            section, name, node = self._lookup(next_ref)
        return chain, section, name, node

    def resolve(self, ref: str) -> ResolvedReference:
        """Resolve ``ref`` to the name of the type it ultimately points to.

        Raises:
            UnresolvableReferenceError: If ``ref`` or any hop of its chain
                does not match a supported component.
            ReferenceCycleError: If the chain revisits a reference.
        """
        chain, section, name, _ = self._follow(ref)
        kind = ResolutionKind.ALIAS if len(chain) > 1 else ResolutionKind.NAMED
        type_name = self.naming.type_name(component_key(section, name), name)
        if kind is ResolutionKind.ALIAS:
            logger.debug("Reference %s aliases %s", ref, chain[-1])
        return ResolvedReference(type_name=type_name, kind=kind, target=chain[-1], section=section, name=name)

    def resolve_node(self, ref: str) -> Any:  # noqa: ANN401
        """Return the document object ``ref`` ultimately points to."""
        _, _, _, node = self._follow(ref)
        return node

    def deref(self, node: Any) -> Any:  # noqa: ANN401
        """Return ``node`` itself, or its target when it is a reference."""
        if isinstance(node, dict) and "$ref" in node:
            return self.resolve_node(node["$ref"])
        return node
