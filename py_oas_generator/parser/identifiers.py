"""
Identifier sanitizing and collision resolution.

Every identifier that ends up in generated code is produced here: type
names, field names and constant names. Collisions between distinct source
names inside one scope are resolved by numeric suffixes, assigned in sorted
source-name order so the outcome never depends on traversal order.

A ``NamingContext`` is created per generation run; it must not be shared
between runs.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from typing import Final

from py_oas_generator.utils.string_case import (
    constcase,
    escape_reserved_word,
    pascalcase,
    snakecase,
)

logger = logging.getLogger(__name__)

TYPE_SCOPE: Final = "types"
OPERATION_SCOPE: Final = "operations"
OPERATION_TYPE_SCOPE: Final = "operation-types"
CONSTANT_SCOPE: Final = "constants"

# Roots of the name paths anonymous types are minted from. Component type
# names and operation type prefixes can spell the same word.
COMPONENT_ORIGIN: Final = "#/components"
OPERATION_ORIGIN: Final = "#/paths"


class IdentifierSanitizer:
    """Stateless conversion of source names into Python identifiers.

    All three conversions share one word split (see
    ``utils.string_case.split_words``), so the same source name always maps
    to the same words regardless of the casing applied afterwards.
    """

    @staticmethod
    def to_type_name(source_name: str) -> str:
        """Convert a source name to a PascalCase class or alias name.

        Examples:
            >>> IdentifierSanitizer.to_type_name("pet-store")
            'PetStore'
            >>> IdentifierSanitizer.to_type_name("200")
            'N200'
        """
        name = pascalcase(source_name) or "Empty"
        if name[0].isdigit():
            name = f"N{name}"
        return escape_reserved_word(name)

    @staticmethod
    def to_field_name(source_name: str) -> str:
        """Convert a source name to a snake_case attribute or argument name.

        Examples:
            >>> IdentifierSanitizer.to_field_name("petId")
            'pet_id'
            >>> IdentifierSanitizer.to_field_name("class")
            'class_'
        """
        name = snakecase(source_name) or "empty"
        if name[0].isdigit():
            name = f"n_{name}"
        return escape_reserved_word(name)

    @staticmethod
    def to_constant_name(source_name: str) -> str:
        """Convert a source name or literal to a CONSTANT_CASE name.

        Examples:
            >>> IdentifierSanitizer.to_constant_name("in-progress")
            'IN_PROGRESS'
            >>> IdentifierSanitizer.to_constant_name("-1")
            'NEG_1'
        """
        prefix = "NEG_" if source_name.startswith("-") else ""
        name = prefix + constcase(source_name)
        if name in ("", "NEG_"):
            name = f"{prefix}EMPTY"
        if name[0].isdigit():
            name = f"VALUE_{name}"
        return escape_reserved_word(name)


@dataclass
class NameScope:
    """One namespace of identifiers with deterministic collision suffixes.

    Attributes:
        separator: Inserted between an identifier and its collision suffix
            (empty for PascalCase type names, ``_`` otherwise).
    """

    separator: str = ""
    _by_source: dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _taken: set[str] = field(default_factory=set, init=False, repr=False)

    def claim(self, source_name: str, identifier: str, avoid: Collection[str] = ()) -> str:
        """Assign ``identifier`` to ``source_name``, suffixing on collision.

        Claiming a source name a second time returns the identifier it
        already holds. Suffixed candidates also skip ``avoid``.
        """
        existing = self._by_source.get(source_name)
        if existing is not None:
            return existing

        candidate = identifier
        counter = 2
        while candidate in self._taken or (candidate != identifier and candidate in avoid):
            candidate = f"{identifier}{self.separator}{counter}"
            counter += 1

        if candidate != identifier:
            logger.debug("Name collision on %r, %r becomes %r", identifier, source_name, candidate)

        self._taken.add(candidate)
        self._by_source[source_name] = candidate
        return candidate

    def claim_all(self, entries: Iterable[tuple[str, str]]) -> dict[str, str]:
        """Claim ``(source_name, identifier)`` pairs in the given order.

        An identifier still free when the batch starts goes bare to the
        first source asking for it. Sources that collide are suffixed, and
        the suffixes never take an identifier another source of the batch
        gets bare.
        """
        entries = list(entries)
        bare: dict[str, str] = {}
        for source_name, identifier in entries:
            if source_name not in self._by_source and identifier not in self._taken:
                bare.setdefault(identifier, source_name)
        return {source_name: self.claim(source_name, identifier, bare) for source_name, identifier in entries}

    def assign(self, candidates: dict[str, str]) -> dict[str, str]:
        """Claim identifiers for many source names, in sorted source order.

        Args:
            candidates: Maps each source name to its preferred identifier.
        """
        return self.claim_all((source, candidates[source]) for source in sorted(candidates))

    def lookup(self, source_name: str) -> str | None:
        """Return the identifier already assigned to ``source_name``."""
        return self._by_source.get(source_name)

    def reserve(self, identifier: str) -> None:
        """Mark an identifier as unavailable without binding a source."""
        self._taken.add(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._taken


class NamingContext:
    """Run-scoped registry of every identifier handed out during generation."""

    def __init__(self) -> None:
        self.sanitizer = IdentifierSanitizer()
        self._scopes: dict[str, NameScope] = {}

    def scope(self, name: str, separator: str = "") -> NameScope:
        """Return (creating on first use) the scope called ``name``."""
        if name not in self._scopes:
            self._scopes[name] = NameScope(separator=separator)
        return self._scopes[name]

    def reserve_type_names(self, keyed_names: Iterable[tuple[tuple[str, int], str, str]]) -> None:
        """Reserve type names for named document sources, in sort-key order.

        Args:
            keyed_names: ``(sort_key, source_key, source_name)`` triples.
                The entry with the smallest sort key keeps the bare name.
        """
        scope = self.scope(TYPE_SCOPE)
        scope.claim_all(
            (source_key, self.sanitizer.to_type_name(source_name)) for _, source_key, source_name in sorted(keyed_names)
        )

    def type_name(self, source_key: str, source_name: str | None = None) -> str:
        """Return the type name for ``source_key``, minting one if needed.

        Args:
            source_key: Unique key of the source, e.g. a ``$ref`` string or
                a dotted name path for an anonymous nested schema.
            source_name: Text to derive the identifier from; defaults to
                ``source_key``.
        """
        scope = self.scope(TYPE_SCOPE)
        existing = scope.lookup(source_key)
        if existing is not None:
            return existing
        return scope.claim(source_key, self.sanitizer.to_type_name(source_name or source_key))

    @staticmethod
    def path_key(name_path: list[str], origin: str = COMPONENT_ORIGIN) -> str:
        """Key of an anonymous schema, unique across components and operations."""
        return f"{origin}:" + "/".join(name_path)

    def mint_type_name(self, name_path: list[str], origin: str = COMPONENT_ORIGIN) -> str:
        """Mint a type name for an anonymous schema from its naming context.

        Args:
            name_path: Owning type name (or operation type prefix), then the
                property names leading to the schema.
            origin: ``COMPONENT_ORIGIN`` or ``OPERATION_ORIGIN``.
        """
        return self.type_name(self.path_key(name_path, origin), " ".join(name_path))

    def field_names(self, scope_key: str, source_names: Iterable[str], reserved: Iterable[str] = ()) -> dict[str, str]:
        """Assign field identifiers for one struct in sorted source order."""
        scope = self.scope(f"fields:{scope_key}", separator="_")
        for identifier in reserved:
            scope.reserve(identifier)
        return scope.assign({name: self.sanitizer.to_field_name(name) for name in source_names})

    def parameter_names(
        self,
        scope_key: str,
        parameters: Iterable[tuple[str, str]],
        reserved: Iterable[str] = (),
    ) -> dict[tuple[str, str], str]:
        """Assign argument identifiers to ``(name, location)`` parameter keys.

        Parameters share one namespace per operation; keys are processed in
        sorted ``(name, location)`` order.
        """
        scope = self.scope(f"parameters:{scope_key}", separator="_")
        for identifier in reserved:
            scope.reserve(identifier)
        return {
            (name, location): scope.claim(f"{location}:{name}", self.sanitizer.to_field_name(name))
            for name, location in sorted(set(parameters))
        }

    def constant_names(self, scope_key: str, literals: Iterable[str]) -> dict[str, str]:
        """Assign constant identifiers for one enum in sorted literal order."""
        scope = self.scope(f"{CONSTANT_SCOPE}:{scope_key}", separator="_")
        return scope.assign({lit: self.sanitizer.to_constant_name(lit) for lit in literals})

    def function_names(self, operation_ids: dict[str, str]) -> dict[str, str]:
        """Assign snake_case function names to operations.

        Args:
            operation_ids: Maps a unique key per operation to its operation
                ID. Keys are claimed in sorted order, so they should start
                with the operation ID.
        """
        scope = self.scope(OPERATION_SCOPE, separator="_")
        return scope.assign({key: self.sanitizer.to_field_name(op_id) for key, op_id in operation_ids.items()})

    def operation_type_prefixes(self, function_names: Iterable[str]) -> dict[str, str]:
        """Assign each function a unique PascalCase prefix for its inline types."""
        scope = self.scope(OPERATION_TYPE_SCOPE)
        return scope.assign({name: self.sanitizer.to_type_name(name) for name in function_names})
