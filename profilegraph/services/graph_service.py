"""
Profile Graph Service: orchestrates the graph pipeline.

Wires the pipeline stages over explicit store handles:
- Entity resolution and create-or-link of contacts
- Profile import (Semantic Transformer + Fact Writer)
- Fact pattern queries
- Inferred edge recompute
- Actor-centric graph traversal

Write-path policy: storage failures during enrichment are logged and the
step is skipped. Read-path policy: fact queries and graph builds degrade to
an empty (root-only) result unless the caller asks for fresh data, and a
standalone edge recompute degrades to zero edges.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, Field

from profilegraph.core.config import Settings, get_settings
from profilegraph.kg.facts import Fact, FactStore
from profilegraph.kg.graph_builder import GraphBuilder, GraphResult, root_only_graph
from profilegraph.kg.inference import BatchRecomputeResult, EdgeInferenceEngine
from profilegraph.kg.models import EntityKey, ProfileRecord, TransformOptions
from profilegraph.kg.resolution import EntityResolver, IdentityFields, ResolutionResult
from profilegraph.kg.transformer import transform_profile
from profilegraph.kg.writer import FactWriter
from profilegraph.models.errors import ContactNotFoundError, StorageUnavailableError
from profilegraph.services.contact_repository import ContactRepository
from profilegraph.services.edge_repository import EdgeRepository

logger = logging.getLogger(__name__)


class EnrichmentResult(BaseModel):
    """
    Outcome of ``ProfileGraphService.enrich_contact``.

    Attributes:
        resolution: How the profile was matched to a contact
        facts_written: Facts committed (0 if the import was skipped)
        edges_created: Inferred edges created (0 if the recompute was skipped)
        skipped: Steps skipped because storage was unavailable
    """

    resolution: ResolutionResult
    facts_written: int = 0
    edges_created: int = 0
    skipped: list[str] = Field(default_factory=list)


def _dump_list(items: list[Any]) -> str | None:
    if not items:
        return None
    return json.dumps(
        [i.model_dump(exclude_none=True) if isinstance(i, BaseModel) else i for i in items]
    )


def contact_fields_from_record(record: ProfileRecord) -> dict[str, Any]:
    """
    Map a profile record onto contact fields.

    Unset values are omitted so an update never blanks a known field.
    """
    role = record.headline
    if not role:
        role = next((e.title for e in record.experience if e.title), None)
    fields: dict[str, Any] = {
        "name": record.name.strip() or None,
        "email": record.email,
        "profile_url": record.profile_url,
        "company": record.current_company,
        "role": role,
        "location": record.location,
        "summary": record.summary,
        "profile_picture_url": record.profile_picture_url,
        "followers": record.followers,
        "connections": record.connections,
        "experience": _dump_list(record.experience),
        "education": _dump_list(record.education),
        "skills": _dump_list(record.skills),
        "people_also_viewed": _dump_list(record.people_also_viewed),
    }
    return {k: v for k, v in fields.items() if v is not None}


class ProfileGraphService:
    """
    Facade over the profile graph pipeline.

    Usage:
        service = ProfileGraphService(contacts, edges, facts)
        result = service.enrich_contact(record, TransformOptions(actor_id=1))
        graph = service.build_graph(1)
    """

    def __init__(
        self,
        contacts: ContactRepository,
        edges: EdgeRepository,
        facts: FactStore,
        settings: Settings | None = None,
        resolver: EntityResolver | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            contacts: Contact repository
            edges: Inferred edge repository
            facts: Fact store
            settings: Settings (defaults to the cached settings)
            resolver: Resolver with custom match rules
        """
        self.settings = settings or get_settings()
        self.contacts = contacts
        self.edges = edges
        self.facts = facts
        self.resolver = resolver or EntityResolver(contacts)
        self.writer = FactWriter(facts)
        self.inference = EdgeInferenceEngine(contacts, edges, self.settings)
        self.builder = GraphBuilder(contacts, edges, self.settings)

    # ========================================================================
    # Pipeline operations
    # ========================================================================

    def resolve_entity(
        self,
        identity: IdentityFields,
        actor_id: int | None,
        contact_data: dict[str, Any] | None = None,
    ) -> ResolutionResult:
        """Resolve identity fields to an existing or new contact."""
        return self.resolver.resolve(identity, actor_id, contact_data)

    def import_entity_graph(self, record: ProfileRecord, options: TransformOptions) -> int:
        """
        Transform a profile and write its facts.

        Returns:
            Number of facts written

        Raises:
            TransformError: If the record cannot be transformed
            StorageUnavailableError: If the facts cannot be committed
        """
        graph = transform_profile(record, options)
        return self.writer.write(graph)

    def query_facts(
        self,
        subject: EntityKey | str | None = None,
        predicate: str | None = None,
        object: str | None = None,
        limit: int | None = None,
        require_fresh: bool = False,
    ) -> list[Fact]:
        """
        Pattern query over the fact store.

        A query with no pattern fields is capped at ``fact_query_limit``
        unless an explicit limit is given.

        Args:
            subject: Subject key or None
            predicate: Predicate URI or None
            object: Object value or None
            limit: Maximum number of facts
            require_fresh: Raise instead of degrading to an empty result

        Raises:
            StorageUnavailableError: Only when ``require_fresh`` is set
        """
        if limit is None and subject is None and predicate is None and object is None:
            limit = self.settings.fact_query_limit
        try:
            return self.facts.query_pattern(subject, predicate, object, limit)
        except StorageUnavailableError as e:
            if require_fresh:
                raise
            logger.warning(f"Fact store unavailable, returning no facts: {e}")
            return []

    def recompute_edges(self, contact_id: int) -> int:
        """
        Replace the outgoing inferred edges of one contact.

        Returns:
            Number of edges created (0 if the contact is missing or the
            edge store is unavailable)
        """
        try:
            return self.inference.recompute(contact_id)
        except StorageUnavailableError as e:
            logger.warning(
                f"Edge store unavailable, no edges recomputed: {e}",
                extra={"contact_id": contact_id},
            )
            return 0

    def recompute_all_edges(self) -> BatchRecomputeResult:
        """Recompute inferred edges for every contact."""
        return self.inference.recompute_all()

    def build_graph(
        self,
        root_id: int,
        max_depth: int | None = None,
        max_nodes_per_degree: int | None = None,
        root_label: str | None = None,
        require_fresh: bool = False,
    ) -> GraphResult:
        """
        Build the actor-centric graph, using configured bounds by default.

        Args:
            root_id: Actor whose network is the root
            max_depth: Highest degree to include
            max_nodes_per_degree: Cap on new nodes per degree
            root_label: Display name for the root node
            require_fresh: Raise instead of degrading to a root-only graph

        Raises:
            InvalidParameterError: If a bound is negative
            StorageUnavailableError: Only when ``require_fresh`` is set
        """
        try:
            return self.builder.build_graph(
                root_id,
                max_depth if max_depth is not None else self.settings.graph_max_depth,
                (
                    max_nodes_per_degree
                    if max_nodes_per_degree is not None
                    else self.settings.graph_max_nodes_per_degree
                ),
                root_label=root_label,
            )
        except StorageUnavailableError as e:
            if require_fresh:
                raise
            logger.warning(f"Graph data unavailable, returning root only: {e}")
            return root_only_graph(root_label)

    # ========================================================================
    # Composite flows
    # ========================================================================

    def enrich_contact(
        self,
        record: ProfileRecord,
        options: TransformOptions,
        email: str | None = None,
    ) -> EnrichmentResult:
        """
        Run the full enrichment flow for one profile.

        Steps: transform the record, resolve the contact, store its
        attribute blobs, import its facts, recompute its outgoing edges. A
        record that cannot be transformed is rejected before any contact is
        created or linked. The fact import and edge recompute are skipped
        (and logged) when storage is unavailable.

        Args:
            record: Normalized profile record
            options: Import options (source, actor, event, timestamp)
            email: Email known for the contact, if the record lacks one

        Returns:
            EnrichmentResult

        Raises:
            TransformError: If the record has no profile URL or username
            StorageUnavailableError: If the contact itself cannot be resolved
        """
        if email and not record.email:
            record = record.model_copy(update={"email": email})
        graph = transform_profile(record, options)

        fields = contact_fields_from_record(record)
        identity = IdentityFields(
            email=record.email,
            profile_url=record.profile_url,
            name=record.name.strip() or "Unknown",
            company=record.current_company,
        )
        resolution = self.resolve_entity(identity, options.actor_id, fields)
        contact_id = resolution.contact_id
        log_extra = {"contact_id": contact_id}
        result = EnrichmentResult(resolution=resolution)

        if not resolution.is_new:
            try:
                self.contacts.update(contact_id, fields, actor_id=options.actor_id)
            except StorageUnavailableError as e:
                logger.warning(f"Skipping contact update: {e}", extra=log_extra)
                result.skipped.append("contact_update")

        try:
            self.contacts.add_fact_subject(contact_id, str(graph.primary_key))
            result.facts_written = self.writer.write(graph)
        except StorageUnavailableError as e:
            logger.warning(f"Skipping fact import: {e}", extra=log_extra)
            result.skipped.append("fact_import")

        try:
            result.edges_created = self.inference.recompute(contact_id)
        except StorageUnavailableError as e:
            logger.warning(f"Skipping edge recompute: {e}", extra=log_extra)
            result.skipped.append("edge_recompute")

        logger.info(
            f"Enriched contact: {result.facts_written} facts, {result.edges_created} edges",
            extra=log_extra,
        )
        return result

    def delete_contact(self, contact_id: int) -> None:
        """
        Delete a contact with its facts and every edge touching it.

        Only the fact partitions written for this contact are removed; a
        Person with the same local id under another source is kept.

        Raises:
            ContactNotFoundError: If the contact doesn't exist
            StorageUnavailableError: If any store cannot be written
        """
        contact = self.contacts.get(contact_id)
        if contact is None:
            raise ContactNotFoundError(contact_id)

        for subject in contact.fact_subjects:
            self.facts.delete_subject(subject)

        removed = self.edges.delete_involving(contact_id)
        self.contacts.delete(contact_id)
        logger.info(
            f"Deleted contact and {removed} inferred edges", extra={"contact_id": contact_id}
        )
