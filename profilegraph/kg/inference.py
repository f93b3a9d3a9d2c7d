"""
Edge Inference Engine: derive weighted connections between contacts.

For one source contact the engine replaces every outgoing inferred edge.
Signals are scanned in priority order and the first signal to propose an
edge to a given target wins:

1. recommended_together: the source's "people also viewed" list names the
   target, by profile URL (strong) or by name plus "<role> at <company>"
   (medium)
2. same_employer: normalized company names are equal
3. same_school: the contacts share at least one normalized school
4. shared_skills: the contacts share at least ``min_shared_skills`` skills

Edges are directional. If A lists B but B does not list A, only A -> B
exists, and each contact's recompute only rewrites its own outgoing edges.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from profilegraph.core.config import Settings, get_settings
from profilegraph.kg.models import Contact, EdgeType, InferredEdge
from profilegraph.kg.normalization import (
    canonicalize_profile_url,
    extract_company_from_bio,
    normalize_company,
    normalize_school,
    normalize_skill,
)
from profilegraph.models.errors import (
    MalformedAttributeDataError,
    ProfileGraphError,
    StorageUnavailableError,
)

if TYPE_CHECKING:
    from profilegraph.services.contact_repository import ContactRepository
    from profilegraph.services.edge_repository import EdgeRepository

logger = logging.getLogger(__name__)


class BatchRecomputeResult(BaseModel):
    """
    Summary of a full recompute.

    Attributes:
        processed: Contacts whose edges were recomputed
        edges_created: Total edges inserted
        failed: Contacts whose recompute raised an error
    """

    processed: int = 0
    edges_created: int = 0
    failed: list[int] = Field(default_factory=list)


# ============================================================================
# Attribute blob parsing
# ============================================================================


def _parse_blob(contact: Contact, field: str) -> list[Any]:
    """
    Parse one of a contact's JSON attribute blobs.

    Returns:
        The parsed list ([] when the field is empty)

    Raises:
        MalformedAttributeDataError: If the text is not a JSON list
    """
    raw = getattr(contact, field)
    if raw is None or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedAttributeDataError(contact.id, field, str(e)) from e
    if not isinstance(value, list):
        raise MalformedAttributeDataError(contact.id, field, "expected a JSON list")
    return value


def _schools(contact: Contact) -> dict[str, str]:
    """Normalized school -> display name for a contact's education blob."""
    schools: dict[str, str] = {}
    for entry in _parse_blob(contact, "education"):
        if not isinstance(entry, dict):
            continue
        name = next(
            (
                entry[key]
                for key in ("school", "schoolName", "school_name", "institution")
                if isinstance(entry.get(key), str) and entry[key].strip()
            ),
            None,
        )
        if name:
            normalized = normalize_school(name)
            if normalized:
                schools.setdefault(normalized, name.strip())
    return schools


def _skills(contact: Contact) -> set[str]:
    skills: set[str] = set()
    for entry in _parse_blob(contact, "skills"):
        label = entry.get("name") if isinstance(entry, dict) else entry
        if isinstance(label, str):
            normalized = normalize_skill(label)
            if normalized:
                skills.add(normalized)
    return skills


def _viewed_entries(contact: Contact) -> list[dict[str, Any]]:
    return [e for e in _parse_blob(contact, "people_also_viewed") if isinstance(e, dict)]


class EdgeInferenceEngine:
    """
    Recomputes inferred edges from contact attributes.

    Usage:
        engine = EdgeInferenceEngine(contact_repository, edge_repository)
        engine.recompute(contact_id)
    """

    def __init__(
        self,
        contacts: ContactRepository,
        edges: EdgeRepository,
        settings: Settings | None = None,
    ) -> None:
        self.contacts = contacts
        self.edges = edges
        self.settings = settings or get_settings()

    # ========================================================================
    # Signals
    # ========================================================================

    def _recommended_together(
        self, source: Contact, others: list[Contact], staged: dict[int, InferredEdge]
    ) -> None:
        by_url = {
            canonicalize_profile_url(c.profile_url): c for c in others if c.profile_url
        }
        for viewed in _viewed_entries(source):
            link = viewed.get("profileLink") or viewed.get("profile_link")
            name = viewed.get("name")
            if not link and not name:
                continue

            if isinstance(link, str) and link.strip():
                target = by_url.get(canonicalize_profile_url(link))
                if target is not None:
                    self._stage(
                        staged,
                        source,
                        target,
                        EdgeType.RECOMMENDED_TOGETHER,
                        self.settings.url_match_strength,
                        {"match_type": "profile_url", "viewed_profile": viewed},
                    )
                    continue

            about = viewed.get("about")
            if not isinstance(name, str) or not isinstance(about, str):
                continue
            company = extract_company_from_bio(about)
            if not company:
                continue
            wanted_name, wanted_company = name.strip().lower(), company.lower()
            for candidate in others:
                if (
                    candidate.name.strip().lower() == wanted_name
                    and candidate.company
                    and wanted_company in candidate.company.lower()
                ):
                    self._stage(
                        staged,
                        source,
                        candidate,
                        EdgeType.RECOMMENDED_TOGETHER,
                        self.settings.name_match_strength,
                        {"match_type": "name_company", "viewed_profile": viewed},
                    )
                    break

    def _same_employer(
        self, source: Contact, others: list[Contact], staged: dict[int, InferredEdge]
    ) -> None:
        company = normalize_company(source.company)
        if not company:
            return
        for candidate in others:
            if normalize_company(candidate.company) == company:
                self._stage(
                    staged,
                    source,
                    candidate,
                    EdgeType.SAME_EMPLOYER,
                    self.settings.same_employer_strength,
                    {"company": source.company},
                )

    def _same_school(
        self, source: Contact, others: list[Contact], staged: dict[int, InferredEdge]
    ) -> None:
        source_schools = _schools(source)
        if not source_schools:
            return
        for candidate in others:
            try:
                candidate_schools = _schools(candidate)
            except MalformedAttributeDataError as e:
                logger.debug(f"Skipping contact {candidate.id} for same_school: {e}")
                continue
            shared = [name for key, name in source_schools.items() if key in candidate_schools]
            if shared:
                self._stage(
                    staged,
                    source,
                    candidate,
                    EdgeType.SAME_SCHOOL,
                    len(shared),
                    {"schools": shared},
                )

    def _shared_skills(
        self, source: Contact, others: list[Contact], staged: dict[int, InferredEdge]
    ) -> None:
        threshold = self.settings.min_shared_skills
        source_skills = _skills(source)
        if len(source_skills) < threshold:
            return
        for candidate in others:
            try:
                candidate_skills = _skills(candidate)
            except MalformedAttributeDataError as e:
                logger.debug(f"Skipping contact {candidate.id} for shared_skills: {e}")
                continue
            shared = sorted(source_skills & candidate_skills)
            if len(shared) >= threshold:
                self._stage(
                    staged,
                    source,
                    candidate,
                    EdgeType.SHARED_SKILLS,
                    len(shared),
                    {"skills": shared},
                )

    @staticmethod
    def _stage(
        staged: dict[int, InferredEdge],
        source: Contact,
        target: Contact,
        edge_type: EdgeType,
        strength: int,
        metadata: dict[str, Any],
    ) -> None:
        """Stage an edge unless an earlier signal already claimed the target."""
        if target.id == source.id or target.id in staged:
            return
        staged[target.id] = InferredEdge(
            from_contact_id=source.id,
            to_contact_id=target.id,
            edge_type=edge_type,
            strength=max(strength, 1),
            metadata=metadata,
        )

    # ========================================================================
    # Recompute
    # ========================================================================

    def compute_edges(self, source: Contact, others: list[Contact]) -> list[InferredEdge]:
        """
        Run every signal for ``source`` without touching storage.

        A malformed blob on the source skips that signal only.
        """
        candidates = [c for c in others if c.id != source.id]
        staged: dict[int, InferredEdge] = {}
        signals = (
            (EdgeType.RECOMMENDED_TOGETHER, self._recommended_together),
            (EdgeType.SAME_EMPLOYER, self._same_employer),
            (EdgeType.SAME_SCHOOL, self._same_school),
            (EdgeType.SHARED_SKILLS, self._shared_skills),
        )
        for edge_type, signal in signals:
            try:
                signal(source, candidates, staged)
            except MalformedAttributeDataError as e:
                logger.warning(f"Skipping {edge_type.value} for contact {source.id}: {e}")
        return list(staged.values())

    def recompute(self, contact_id: int) -> int:
        """
        Replace the outgoing inferred edges of one contact.

        Args:
            contact_id: Source contact

        Returns:
            Number of edges inserted (0 for a missing contact or a failed
            insert)

        Raises:
            StorageUnavailableError: If contacts cannot be read or the old
                edges cannot be deleted
        """
        source = self.contacts.get(contact_id)
        if source is None:
            logger.info(f"Contact {contact_id} not found, no edges computed")
            return 0

        self.edges.delete_from(contact_id)
        edges = self.compute_edges(source, self.contacts.list_all())
        if not edges:
            return 0

        try:
            created = self.edges.insert_many(edges)
        except StorageUnavailableError as e:
            logger.error(f"Failed to insert edges for contact {contact_id}: {e}")
            return 0

        logger.info(f"Created {created} inferred edges for contact {contact_id}")
        return created

    def recompute_all(self) -> BatchRecomputeResult:
        """
        Recompute edges for every contact.

        Failures are contained per contact and reported in ``failed``.

        Raises:
            StorageUnavailableError: If the contact list cannot be read
        """
        result = BatchRecomputeResult()
        for contact in self.contacts.list_all():
            try:
                result.edges_created += self.recompute(contact.id)
                result.processed += 1
            except ProfileGraphError as e:
                logger.error(f"Recompute failed for contact {contact.id}: {e}")
                result.failed.append(contact.id)
        logger.info(
            f"Recomputed edges for {result.processed} contacts: "
            f"{result.edges_created} edges, {len(result.failed)} failed"
        )
        return result
