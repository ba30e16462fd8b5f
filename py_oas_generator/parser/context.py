"""Per-run generation state shared by the synthesis and extraction passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final

from py_oas_generator.parser.identifiers import TYPE_SCOPE, NamingContext
from py_oas_generator.parser.models import TypeDefinition, TypeShape
from py_oas_generator.parser.references import COMPONENT_SECTIONS, ReferenceResolver, component_key

# Classes the generated module always defines.
GENERATED_CLASS_NAMES: Final = ("Client", "ClientWithResponses", "ServerInterface")


@dataclass
class PendingMerge:
    """An inline ``allOf`` struct waiting for a component it merges.

    The struct is already named, and ``placeholder`` holds its slot in
    ``aux`` until the merged shape is known.
    """

    node: dict[str, Any]
    name_path: list[str]
    location: str
    placeholder: TypeDefinition
    aux: list[TypeDefinition]


@dataclass
class GenerationContext:
    """Everything one generation run mutates.

    A context is created per run and never reused: the naming registry and
    the memo tables would otherwise leak identifiers between runs.

    Attributes:
        document: The parsed API description.
        naming: Identifier registry for this run.
        resolver: Reference resolver bound to ``document`` and ``naming``.
        component_memo: Synthesis results of component schemas, keyed by
            component key, so ``allOf`` merges and the collector share them.
        in_progress: Component keys currently being synthesized, outermost
            first.
        merge_boundaries: For each named inline ``allOf`` struct being
            synthesized, the depth of ``in_progress`` when it started.
            Re-entering a component with no boundary above it means its
            ``allOf`` merge chain loops.
        deferred_merges: Inline ``allOf`` structs waiting for the component
            key they merge to finish.
    """

    document: dict[str, Any]
    naming: NamingContext = field(default_factory=NamingContext)
    resolver: ReferenceResolver = field(init=False)
    component_memo: dict[str, tuple[TypeShape, list[TypeDefinition]]] = field(default_factory=dict)
    in_progress: list[str] = field(default_factory=list)
    merge_boundaries: list[int] = field(default_factory=list)
    deferred_merges: dict[str, list[PendingMerge]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.resolver = ReferenceResolver(self.document, self.naming)
        self._reserve_component_names()

    def components(self, section: str) -> dict[str, Any]:
        return self.document.get("components", {}).get(section) or {}

    def _reserve_component_names(self) -> None:
        """Reserve type names of every named component before any minting."""
        type_scope = self.naming.scope(TYPE_SCOPE)
        for name in GENERATED_CLASS_NAMES:
            type_scope.reserve(name)
        keyed = [
            ((name, rank), component_key(section, name), name)
            for rank, section in enumerate(COMPONENT_SECTIONS)
            for name in self.components(section)
        ]
        self.naming.reserve_type_names(keyed)
