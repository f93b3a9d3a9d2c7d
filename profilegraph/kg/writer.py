"""
Fact Writer: EntityGraph -> Fact Store.

Flattens an entity graph into facts and commits them in one call:

- the type declaration becomes ``(key, rdf:type, schema:<Kind>)``
- each literal attribute becomes a literal fact (one per list element)
- each relation becomes a reference fact pointing at the target key

Every fact is staged under the graph's Person key so a reimport of the same
profile replaces exactly what the previous import wrote.
"""

from __future__ import annotations

import logging

from profilegraph.kg.facts import Fact, FactStore, ObjectKind
from profilegraph.kg.models import AttributeValue, Entity, EntityGraph, EntityKey, EntityKind

logger = logging.getLogger(__name__)

SCHEMA_NS = "https://schema.org/"
PROV_NS = "http://www.w3.org/ns/prov#"
RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"

_PROV_PREFIX = "prov:"

# Kinds whose type lives outside schema.org
_TYPE_URIS: dict[EntityKind, str] = {
    EntityKind.PROVENANCE_ACTIVITY: f"{PROV_NS}Activity",
}


def predicate_uri(term: str) -> str:
    """
    Expand a vocabulary term to its full URI.

    Examples:
        >>> predicate_uri("worksFor")
        'https://schema.org/worksFor'
        >>> predicate_uri("prov:generated")
        'http://www.w3.org/ns/prov#generated'
    """
    if term.startswith(_PROV_PREFIX):
        return f"{PROV_NS}{term[len(_PROV_PREFIX):]}"
    return f"{SCHEMA_NS}{term}"


def type_uri(kind: EntityKind) -> str:
    """Type URI declared for an entity kind."""
    return _TYPE_URIS.get(kind, f"{SCHEMA_NS}{kind.value}")


def _literal_values(value: AttributeValue) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def entity_facts(entity: Entity) -> list[Fact]:
    """Flatten a single entity into facts."""
    subject = str(entity.key)
    facts = [
        Fact(
            subject=subject,
            predicate=RDF_TYPE,
            object=type_uri(entity.kind),
            object_kind=ObjectKind.REFERENCE,
        )
    ]
    for name, value in entity.attributes.items():
        predicate = predicate_uri(name)
        facts.extend(
            Fact(subject=subject, predicate=predicate, object=v, object_kind=ObjectKind.LITERAL)
            for v in _literal_values(value)
        )
    for name, targets in entity.relations.items():
        predicate = predicate_uri(name)
        facts.extend(
            Fact(
                subject=subject,
                predicate=predicate,
                object=str(target),
                object_kind=ObjectKind.REFERENCE,
            )
            for target in targets
        )
    return facts


def flatten_entity_graph(graph: EntityGraph) -> dict[EntityKey, list[Fact]]:
    """
    Stage the facts of every entity in the graph.

    Returns:
        Mapping of owning Person key -> all facts for that partition
    """
    staged: list[Fact] = []
    for entity in graph.entities:
        staged.extend(entity_facts(entity))
    return {graph.primary_key: staged}


class FactWriter:
    """Writes transformed entity graphs to a FactStore."""

    def __init__(self, store: FactStore) -> None:
        self.store = store

    def write(self, graph: EntityGraph) -> int:
        """
        Persist an entity graph, replacing facts from any earlier import.

        Args:
            graph: Output of the Semantic Transformer

        Returns:
            Number of facts written

        Raises:
            StorageUnavailableError: If the commit fails
        """
        staged = flatten_entity_graph(graph)
        written = self.store.upsert_many({str(key): facts for key, facts in staged.items()})
        logger.debug(f"Wrote {written} facts for {graph.primary_key}")
        return written
