"""
Knowledge graph data models.

Three groups of models live here:
- Identity and entity graph: EntityKind, EntityKey, Entity, EntityGraph
- Normalized profile input: ProfileRecord and its parts, TransformOptions
- Application records: Contact, ActorLink, Contribution, InferredEdge

The entity graph is what the Semantic Transformer produces and the Fact
Writer flattens. Contacts and inferred edges are the rows the Edge
Inference Engine and Graph Builder work over.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


# ============================================================================
# Identity
# ============================================================================


class EntityKind(str, Enum):
    """Kind of entity an EntityKey refers to."""

    PERSON = "Person"
    ORGANIZATION = "Organization"
    EDUCATIONAL_ORGANIZATION = "EducationalOrganization"
    PROVENANCE_ACTIVITY = "ProvenanceActivity"
    # Reference-only kinds: pointed at by facts, never emitted as entities
    EVENT = "Event"
    ACTOR = "Actor"


KIND_PREFIXES: dict[EntityKind, str] = {
    EntityKind.PERSON: "person",
    EntityKind.ORGANIZATION: "org",
    EntityKind.EDUCATIONAL_ORGANIZATION: "edu",
    EntityKind.PROVENANCE_ACTIVITY: "activity",
    EntityKind.EVENT: "event",
    EntityKind.ACTOR: "user",
}

_PREFIX_TO_KIND: dict[str, EntityKind] = {v: k for k, v in KIND_PREFIXES.items()}


class EntityKey(BaseModel):
    """
    Stable identity of an entity.

    A key is derived from the data source and a source-local identifier
    (for a Person, the profile URL slug). The kind is part of the identity,
    so an organization and a person with the same slug never collide.

    String form: ``<prefix>:<source>:<local_id>``, e.g.
    ``person:linkedin:jane-doe`` or ``org:linkedin:acme``.

    Attributes:
        kind: What the key identifies
        source: Lower-cased source tag (linkedin, twitter, local, ...)
        local_id: Identifier within that source
    """

    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    source: str
    local_id: str

    def __str__(self) -> str:
        return f"{KIND_PREFIXES[self.kind]}:{self.source}:{self.local_id}"

    @classmethod
    def parse(cls, value: str) -> EntityKey:
        """
        Parse the string form of a key.

        Args:
            value: String produced by ``str(key)``

        Returns:
            The EntityKey

        Raises:
            ValueError: If the string is not a well-formed key
        """
        parts = value.split(":", 2)
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Malformed entity key: {value!r}")
        prefix, source, local_id = parts
        kind = _PREFIX_TO_KIND.get(prefix)
        if kind is None:
            raise ValueError(f"Unknown entity key prefix: {prefix!r}")
        return cls(kind=kind, source=source, local_id=local_id)

    @classmethod
    def is_key(cls, value: str) -> bool:
        """Check whether a string is the string form of an EntityKey."""
        try:
            cls.parse(value)
        except ValueError:
            return False
        return True


AttributeValue = Union[str, int, list[str]]


class Entity(BaseModel):
    """
    A typed node of the entity graph.

    Attributes:
        kind: Entity kind (also the rdf:type of the entity)
        key: Stable identity
        attributes: Literal attributes keyed by vocabulary term
        relations: Named edges to other entities, keyed by predicate term
    """

    kind: EntityKind
    key: EntityKey
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)
    relations: dict[str, list[EntityKey]] = Field(default_factory=dict)

    def set_attribute(self, name: str, value: AttributeValue | None) -> None:
        """Set a literal attribute, ignoring empty values."""
        if value is None or value == "" or value == []:
            return
        self.attributes[name] = value

    def add_relation(self, predicate: str, target: EntityKey) -> None:
        """Add a named edge to another entity (duplicates are ignored)."""
        targets = self.relations.setdefault(predicate, [])
        if target not in targets:
            targets.append(target)


class EntityGraph(BaseModel):
    """
    Entities produced from one profile record.

    Attributes:
        primary_key: Key of the Person the graph is about
        entities: All entities, in creation order
    """

    primary_key: EntityKey
    entities: list[Entity] = Field(default_factory=list)

    def get(self, key: EntityKey) -> Entity | None:
        """Get an entity by key."""
        for entity in self.entities:
            if entity.key == key:
                return entity
        return None

    @property
    def primary(self) -> Entity:
        """The primary Person entity."""
        entity = self.get(self.primary_key)
        if entity is None:
            raise LookupError(f"Primary entity {self.primary_key} missing from graph")
        return entity

    def by_kind(self, kind: EntityKind) -> list[Entity]:
        """Get all entities of one kind."""
        return [e for e in self.entities if e.kind == kind]


# ============================================================================
# Normalized profile input
# ============================================================================


class Experience(BaseModel):
    """One position in a profile's work history."""

    company: str | None = None
    title: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None
    company_url: str | None = None
    company_logo_url: str | None = None
    company_id: str | None = None


class Education(BaseModel):
    """One entry in a profile's education history."""

    school: str | None = None
    degree: str | None = None
    field: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    url: str | None = None
    logo_url: str | None = None


class Recommendation(BaseModel):
    """A "people also viewed" suggestion attached to a profile."""

    name: str | None = None
    profile_link: str | None = None
    about: str | None = None
    location: str | None = None


class ProfileRecord(BaseModel):
    """
    Provider-independent profile record.

    Produced by a provider adapter (see ``profilegraph.kg.adapters``); the
    transformer and inference engine only ever see this shape.
    """

    name: str = ""
    first_name: str | None = None
    last_name: str | None = None
    headline: str | None = None
    location: str | None = None
    summary: str | None = None
    profile_url: str | None = None
    email: str | None = None
    profile_picture_url: str | None = None
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    followers: int | None = None
    connections: int | None = None
    bio_links: list[str] = Field(default_factory=list)
    people_also_viewed: list[Recommendation] = Field(default_factory=list)

    # Handle-based sources (Twitter) key the person by username
    username: str | None = None
    banner_url: str | None = None
    verified: bool | None = None

    @property
    def current_company(self) -> str | None:
        """Company of the first experience entry with a company name."""
        for exp in self.experience:
            if exp.company and exp.company.strip():
                return exp.company.strip()
        return None


class TransformOptions(BaseModel):
    """
    Options for one profile import.

    Attributes:
        source: Source tag (LinkedIn, Twitter, Manual, ...)
        actor_id: Application user who triggered the import
        event_id: Event where the contact was met
        timestamp: Import time (defaults to now)
    """

    source: str = "LinkedIn"
    actor_id: int | None = None
    event_id: str | None = None
    timestamp: datetime | None = None


# ============================================================================
# Application records
# ============================================================================


class Contact(BaseModel):
    """
    Application-level record a Person entity is attached to.

    The attribute blobs (experience, education, skills, people_also_viewed)
    are stored as raw JSON text and are only parsed by the Edge Inference
    Engine.
    """

    id: int
    name: str
    email: str | None = None
    profile_url: str | None = None
    company: str | None = None
    role: str | None = None
    location: str | None = None
    summary: str | None = None
    profile_picture_url: str | None = None
    followers: int | None = None
    connections: int | None = None
    experience: str | None = None
    education: str | None = None
    skills: str | None = None
    people_also_viewed: str | None = None
    # Fact partitions (Person subject keys) written for this contact
    fact_subjects: list[str] = Field(default_factory=list)
    created_by: int | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class ActorLink(BaseModel):
    """An actor (application user) having a contact in their network."""

    actor_id: int
    contact_id: int
    added_at: datetime = Field(default_factory=_utc_now)


class ChangeType(str, Enum):
    """Kind of change recorded in a contribution."""

    CREATED = "created"
    UPDATED = "updated"
    LINKED = "linked"


class Contribution(BaseModel):
    """
    Audit entry: who changed what on a contact, and when.

    Attributes:
        contact_id: Contact that was touched
        actor_id: Actor responsible for the change
        field_name: Field (or pseudo-field such as "contact") that changed
        old_value: Previous value, if any
        new_value: New value
        change_type: created, updated or linked
        created_at: When the change happened
    """

    contact_id: int
    actor_id: int | None = None
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    change_type: ChangeType
    created_at: datetime = Field(default_factory=_utc_now)


class EdgeType(str, Enum):
    """Signal that produced an inferred edge."""

    RECOMMENDED_TOGETHER = "recommended_together"
    SAME_EMPLOYER = "same_employer"
    SAME_SCHOOL = "same_school"
    SHARED_SKILLS = "shared_skills"


class InferredEdge(BaseModel):
    """
    A derived, weighted, directed connection between two contacts.

    Attributes:
        from_contact_id: Contact whose recompute produced the edge
        to_contact_id: Contact the edge points at
        edge_type: Signal that proposed the edge
        strength: Relative weight (not a probability, not capped)
        metadata: Evidence for the edge (matched url, shared schools, ...)
        created_at: When the edge was computed
    """

    from_contact_id: int
    to_contact_id: int
    edge_type: EdgeType
    strength: int = Field(default=1, ge=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utc_now)

    @model_validator(mode="after")
    def _no_self_loop(self) -> InferredEdge:
        if self.from_contact_id == self.to_contact_id:
            raise ValueError("Inferred edges cannot point from a contact to itself")
        return self
