"""
Semantic Transformer: ProfileRecord -> EntityGraph.

Builds the Person-centric entity graph for one profile:

    Person ──worksFor──▶ Organization
           ──alumniOf──▶ EducationalOrganization
           ──knows────▶ Person (people also viewed)
           ──attendedEvent──▶ Event
    ProvenanceActivity ──generated──▶ Person
                       ──wasAttributedTo──▶ Actor
                       ──atLocation──▶ Event

Vocabulary terms follow Schema.org for profile data and PROV-O for the
provenance activity. Keys are derived from the source and source-local
identifiers only, so reimporting the same profile produces the same keys
and the Fact Store replaces the earlier facts instead of adding new ones.

This module is pure: no storage and no network access.
"""

from __future__ import annotations

from datetime import datetime, timezone

from profilegraph.kg.models import (
    Entity,
    EntityGraph,
    EntityKey,
    EntityKind,
    ProfileRecord,
    TransformOptions,
)
from profilegraph.kg.normalization import canonicalize_profile_url, profile_slug, slugify
from profilegraph.models.errors import TransformError

# Relation predicates
WORKS_FOR = "worksFor"
ALUMNI_OF = "alumniOf"
KNOWS = "knows"
KNOWS_ABOUT = "knowsAbout"
ATTENDED_EVENT = "attendedEvent"

# Provenance terms (PROV-O)
PROV_GENERATED = "prov:generated"
PROV_ATTRIBUTED_TO = "prov:wasAttributedTo"
PROV_AT_LOCATION = "prov:atLocation"
PROV_PRIMARY_SOURCE = "prov:hadPrimarySource"
PROV_GENERATED_AT = "prov:generatedAtTime"

# Keys for actors and events are application ids, not provider ids
LOCAL_SOURCE = "local"


def source_tag(source: str) -> str:
    """Normalize a source label ("LinkedIn") into a key segment ("linkedin")."""
    tag = slugify(source)
    return tag or "unknown"


def person_key(profile_url: str | None, source: str, username: str | None = None) -> EntityKey:
    """
    Derive the stable Person key from a profile URL.

    Uses the ``/in/<slug>`` segment when present, then the username for
    handle-based sources, otherwise the canonical URL itself.

    Raises:
        TransformError: If there is neither a usable profile URL nor a username
    """
    handle = (username or "").strip().lstrip("@").lower()
    local_id = profile_slug(profile_url) or handle or canonicalize_profile_url(profile_url)
    if not local_id:
        raise TransformError(
            "Profile record has no profile URL or username to derive an identity from"
        )
    return EntityKey(kind=EntityKind.PERSON, source=source_tag(source), local_id=local_id)


def _person_entity(record: ProfileRecord, key: EntityKey) -> Entity:
    person = Entity(kind=EntityKind.PERSON, key=key)
    person.set_attribute("name", record.name.strip() or "Unknown")
    person.set_attribute("givenName", record.first_name)
    person.set_attribute("familyName", record.last_name)
    person.set_attribute("jobTitle", record.headline)
    person.set_attribute("description", record.summary)
    person.set_attribute("address", record.location)
    person.set_attribute("url", record.profile_url)
    person.set_attribute("email", record.email)
    person.set_attribute("image", record.profile_picture_url)
    person.set_attribute("logo", record.banner_url)
    person.set_attribute("sameAs", [link for link in record.bio_links if link.strip()])
    if record.followers is not None:
        person.set_attribute("followerCount", record.followers)
    if record.connections is not None:
        person.set_attribute("connectionCount", record.connections)

    skills: list[str] = []
    for skill in record.skills:
        text = skill.strip()
        if text and text not in skills:
            skills.append(text)
    person.set_attribute(KNOWS_ABOUT, skills)

    identifiers: list[str] = []
    if record.username:
        identifiers.append(f"username:{record.username.strip().lstrip('@')}")
    if record.verified:
        identifiers.append("verified:true")
    person.set_attribute("identifier", identifiers)

    for rec in record.people_also_viewed:
        slug = profile_slug(rec.profile_link)
        if slug:
            person.add_relation(
                KNOWS,
                EntityKey(kind=EntityKind.PERSON, source=key.source, local_id=slug),
            )
    return person


def transform_profile(record: ProfileRecord, options: TransformOptions) -> EntityGraph:
    """
    Transform one normalized profile record into an entity graph.

    Produces exactly one Person, one Organization per distinct non-blank
    company, one EducationalOrganization per distinct non-blank school and
    exactly one ProvenanceActivity. Entries with blank names are dropped.

    Args:
        record: Normalized profile record
        options: Source tag, actor, event and timestamp of the import

    Returns:
        EntityGraph whose primary key is the Person

    Raises:
        TransformError: If the record has no profile URL or username
    """
    source = source_tag(options.source)
    key = person_key(record.profile_url, options.source, record.username)
    timestamp = options.timestamp or datetime.now(timezone.utc)

    graph = EntityGraph(primary_key=key)
    person = _person_entity(record, key)

    organizations: dict[EntityKey, Entity] = {}
    for exp in record.experience:
        name = (exp.company or "").strip()
        org_slug = slugify(name)
        if not org_slug:
            continue
        org_key = EntityKey(kind=EntityKind.ORGANIZATION, source=source, local_id=org_slug)
        if org_key not in organizations:
            org = Entity(kind=EntityKind.ORGANIZATION, key=org_key)
            org.set_attribute("name", name)
            org.set_attribute("url", exp.company_url)
            org.set_attribute("logo", exp.company_logo_url)
            org.set_attribute("identifier", exp.company_id)
            organizations[org_key] = org
        person.add_relation(WORKS_FOR, org_key)

    schools: dict[EntityKey, Entity] = {}
    for edu in record.education:
        name = (edu.school or "").strip()
        school_slug = slugify(name)
        if not school_slug:
            continue
        edu_key = EntityKey(
            kind=EntityKind.EDUCATIONAL_ORGANIZATION, source=source, local_id=school_slug
        )
        if edu_key not in schools:
            school = Entity(kind=EntityKind.EDUCATIONAL_ORGANIZATION, key=edu_key)
            school.set_attribute("name", name)
            school.set_attribute("url", edu.url)
            school.set_attribute("logo", edu.logo_url)
            schools[edu_key] = school
        person.add_relation(ALUMNI_OF, edu_key)

    event_key: EntityKey | None = None
    if options.event_id:
        event_key = EntityKey(
            kind=EntityKind.EVENT, source=LOCAL_SOURCE, local_id=str(options.event_id)
        )
        person.add_relation(ATTENDED_EVENT, event_key)

    graph.entities.append(person)
    graph.entities.extend(organizations.values())
    graph.entities.extend(schools.values())

    activity = Entity(
        kind=EntityKind.PROVENANCE_ACTIVITY,
        key=EntityKey(
            kind=EntityKind.PROVENANCE_ACTIVITY,
            source=source,
            local_id=f"{key.local_id}-import",
        ),
    )
    activity.set_attribute(PROV_PRIMARY_SOURCE, options.source)
    activity.set_attribute(PROV_GENERATED_AT, timestamp.isoformat())
    activity.add_relation(PROV_GENERATED, key)
    if options.actor_id is not None:
        activity.add_relation(
            PROV_ATTRIBUTED_TO,
            EntityKey(kind=EntityKind.ACTOR, source=LOCAL_SOURCE, local_id=str(options.actor_id)),
        )
    if event_key is not None:
        activity.add_relation(PROV_AT_LOCATION, event_key)
    graph.entities.append(activity)

    return graph
