"""
Entity Resolution: map incoming identity fields onto an existing Contact.

This module provides:
- Models: IdentityFields, ResolutionResult, SimilarContact
- MatchRule: a named lookup tried against the contact repository
- EntityResolver: first-match resolution plus create-or-link
- String similarity (Jaro-Winkler via rapidfuzz) for advisory duplicate search

Resolution is deterministic and exact. Rules run in order and the first
hit wins:
1. email (trimmed, case-insensitive)
2. profileUrl (canonical URL)
3. name+company (exact, both must be present)

Fuzzy similarity is never used to decide a match; ``find_similar_contacts``
only surfaces candidates for a human to review.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field
from rapidfuzz.distance import JaroWinkler

from profilegraph.kg.models import ChangeType, Contact, Contribution
from profilegraph.kg.normalization import normalize_entity_name

if TYPE_CHECKING:
    from profilegraph.services.contact_repository import ContactRepository

logger = logging.getLogger(__name__)

MatchedBy = Literal["email", "profileUrl", "name+company"]


# ============================================================================
# Resolution Models
# ============================================================================


class IdentityFields(BaseModel):
    """
    Identity fields of an incoming profile.

    Attributes:
        email: Email address, if known
        profile_url: Profile URL, if known
        name: Display name
        company: Current company, if known
    """

    email: str | None = None
    profile_url: str | None = None
    name: str
    company: str | None = None


class ResolutionResult(BaseModel):
    """
    Outcome of ``EntityResolver.resolve``.

    Attributes:
        contact_id: Existing or newly created contact
        is_new: True if the contact was created by this call
        matched_by: Rule that matched, None for a new contact
    """

    contact_id: int
    is_new: bool
    matched_by: MatchedBy | None = None


class SimilarContact(BaseModel):
    """A possible duplicate surfaced for review."""

    contact_id: int
    name: str
    score: float = Field(ge=0.0, le=1.0)


@dataclass(frozen=True)
class MatchRule:
    """
    A named identity lookup.

    Attributes:
        name: Reported as ``matched_by`` when the rule hits
        find: Lookup returning the matching contact or None
    """

    name: MatchedBy
    find: Callable[[ContactRepository, IdentityFields], Contact | None]


def _match_email(repo: ContactRepository, identity: IdentityFields) -> Contact | None:
    if not identity.email or not identity.email.strip():
        return None
    return repo.find_by_email(identity.email)


def _match_profile_url(repo: ContactRepository, identity: IdentityFields) -> Contact | None:
    if not identity.profile_url or not identity.profile_url.strip():
        return None
    return repo.find_by_profile_url(identity.profile_url)


def _match_name_company(repo: ContactRepository, identity: IdentityFields) -> Contact | None:
    if not identity.name.strip() or not identity.company or not identity.company.strip():
        return None
    return repo.find_by_name_company(identity.name, identity.company)


DEFAULT_RULES: tuple[MatchRule, ...] = (
    MatchRule("email", _match_email),
    MatchRule("profileUrl", _match_profile_url),
    MatchRule("name+company", _match_name_company),
)


# ============================================================================
# String Similarity (using rapidfuzz for performance)
# ============================================================================


def jaro_winkler_similarity(s1: str, s2: str) -> float:
    """
    Compute Jaro-Winkler similarity between two names.

    Jaro-Winkler favours strings sharing a common prefix, which suits
    person names ("Jon Smith" vs "Jonathan Smith").

    Args:
        s1: First string to compare.
        s2: Second string to compare.

    Returns:
        Similarity score between 0.0 and 1.0.

    Examples:
        >>> jaro_winkler_similarity("Jane Doe", "jane  doe")
        1.0
    """
    if not s1 and not s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    s1_norm = normalize_entity_name(s1)
    s2_norm = normalize_entity_name(s2)

    if not s1_norm or not s2_norm:
        return 0.0
    if s1_norm == s2_norm:
        return 1.0

    return JaroWinkler.normalized_similarity(s1_norm, s2_norm)


# ============================================================================
# Resolver
# ============================================================================


class EntityResolver:
    """
    Resolves identity fields to a single contact.

    Usage:
        resolver = EntityResolver(contact_repository)
        result = resolver.resolve(IdentityFields(name="Jane", email="j@x.io"), actor_id=7)
    """

    def __init__(
        self,
        repository: ContactRepository,
        rules: Sequence[MatchRule] = DEFAULT_RULES,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            repository: Contact repository to search and write to
            rules: Match rules in priority order
        """
        self.repository = repository
        self.rules = tuple(rules)

    def match(self, identity: IdentityFields) -> tuple[Contact, MatchedBy] | None:
        """
        Find the existing contact for the identity fields.

        Returns:
            (contact, rule name) for the first rule that matches, or None
        """
        for rule in self.rules:
            contact = rule.find(self.repository, identity)
            if contact is not None:
                return contact, rule.name
        return None

    def resolve(
        self,
        identity: IdentityFields,
        actor_id: int | None,
        contact_data: dict[str, Any] | None = None,
    ) -> ResolutionResult:
        """
        Resolve to an existing contact or create a new one.

        On a match the actor is linked to the existing contact (if not
        already) and a ``linked`` contribution is recorded. Otherwise the
        contact is created from the identity fields plus ``contact_data``,
        linked to the actor and a ``created`` contribution is recorded.

        Args:
            identity: Identity fields of the incoming profile
            actor_id: Actor performing the import
            contact_data: Extra fields for a newly created contact

        Returns:
            ResolutionResult

        Raises:
            StorageUnavailableError: If the contact tables cannot be used
        """
        found = self.match(identity)
        if found is not None:
            contact, matched_by = found
            if actor_id is not None and self.repository.link(actor_id, contact.id):
                self.repository.record_contribution(
                    Contribution(
                        contact_id=contact.id,
                        actor_id=actor_id,
                        field_name="contact",
                        new_value=contact.name,
                        change_type=ChangeType.LINKED,
                    )
                )
            logger.info(f"Resolved {identity.name!r} to contact {contact.id} by {matched_by}")
            return ResolutionResult(contact_id=contact.id, is_new=False, matched_by=matched_by)

        data = dict(contact_data or {})
        data.update(
            {
                "name": identity.name.strip() or "Unknown",
                "email": identity.email,
                "profile_url": identity.profile_url,
                "company": identity.company,
            }
        )
        contact = self.repository.create(data, created_by=actor_id)
        if actor_id is not None:
            self.repository.link(actor_id, contact.id)
        self.repository.record_contribution(
            Contribution(
                contact_id=contact.id,
                actor_id=actor_id,
                field_name="contact",
                new_value=contact.name,
                change_type=ChangeType.CREATED,
            )
        )
        return ResolutionResult(contact_id=contact.id, is_new=True, matched_by=None)

    def find_similar_contacts(
        self, name: str, threshold: float = 0.85, limit: int = 5
    ) -> list[SimilarContact]:
        """
        Find contacts whose names look like ``name``.

        Advisory only: the result never changes what ``resolve`` does.

        Args:
            name: Name to compare against
            threshold: Minimum Jaro-Winkler similarity
            limit: Maximum candidates to return

        Returns:
            Candidates sorted by descending similarity
        """
        candidates: list[SimilarContact] = []
        for contact in self.repository.list_all():
            score = jaro_winkler_similarity(name, contact.name)
            if score >= threshold:
                candidates.append(
                    SimilarContact(contact_id=contact.id, name=contact.name, score=score)
                )
        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates[:limit]
