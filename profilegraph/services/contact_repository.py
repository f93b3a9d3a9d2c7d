"""
Contact Repository - JSON-based persistence for contacts.

Owns three tables:
- contacts: Contact rows plus the next id to hand out
- actor_links: which actor has which contact in their network
- contributions: audit trail of who created, linked or changed a contact

Each table is rewritten atomically on change; read-modify-write sequences
are serialized by one lock per repository instance.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from profilegraph.core.storage import StorageManager
from profilegraph.kg.models import ActorLink, ChangeType, Contact, Contribution
from profilegraph.kg.normalization import canonicalize_profile_url
from profilegraph.models.errors import ContactNotFoundError

logger = logging.getLogger(__name__)

CONTACTS_TABLE = "contacts"
ACTOR_LINKS_TABLE = "actor_links"
CONTRIBUTIONS_TABLE = "contributions"

# Fields callers may set through create/update
_WRITABLE_FIELDS = frozenset(
    name
    for name in Contact.model_fields
    if name not in ("id", "fact_subjects", "created_at", "updated_at")
)


def _stringify(value: Any) -> str | None:
    return None if value is None else str(value)


class ContactRepository:
    """File-based contact persistence using atomic table writes."""

    def __init__(self, storage: StorageManager) -> None:
        """
        Initialize repository with storage.

        Args:
            storage: StorageManager owning the data directory
        """
        self.storage = storage
        self._lock = threading.RLock()

    # ========================================================================
    # Table I/O
    # ========================================================================

    def _read_contacts(self) -> dict[str, Any]:
        return self.storage.read_table(CONTACTS_TABLE, {"next_id": 1, "contacts": []})

    def _load_contacts(self) -> list[Contact]:
        return [Contact.model_validate(row) for row in self._read_contacts()["contacts"]]

    def _save_contacts(self, contacts: list[Contact], next_id: int) -> None:
        self.storage.write_table(
            CONTACTS_TABLE,
            {
                "next_id": next_id,
                "contacts": [c.model_dump(mode="json") for c in contacts],
            },
        )

    def _load_links(self) -> list[ActorLink]:
        return [
            ActorLink.model_validate(row)
            for row in self.storage.read_table(ACTOR_LINKS_TABLE, [])
        ]

    def _save_links(self, links: list[ActorLink]) -> None:
        self.storage.write_table(
            ACTOR_LINKS_TABLE, [link.model_dump(mode="json") for link in links]
        )

    # ========================================================================
    # Contacts
    # ========================================================================

    def get(self, contact_id: int) -> Contact | None:
        """
        Load a contact by id.

        Returns:
            Contact or None if not found
        """
        for contact in self._load_contacts():
            if contact.id == contact_id:
                return contact
        return None

    def list_all(self) -> list[Contact]:
        """List every contact in creation order."""
        return self._load_contacts()

    def find_by_email(self, email: str) -> Contact | None:
        """Find a contact by email (trimmed, case-insensitive)."""
        wanted = email.strip().lower()
        if not wanted:
            return None
        for contact in self._load_contacts():
            if contact.email and contact.email.strip().lower() == wanted:
                return contact
        return None

    def find_by_profile_url(self, profile_url: str) -> Contact | None:
        """Find a contact whose profile URL has the same canonical form."""
        wanted = canonicalize_profile_url(profile_url)
        if not wanted:
            return None
        for contact in self._load_contacts():
            if canonicalize_profile_url(contact.profile_url) == wanted:
                return contact
        return None

    def find_by_name_company(self, name: str, company: str) -> Contact | None:
        """Find a contact with exactly this name and company."""
        name, company = name.strip(), company.strip()
        if not name or not company:
            return None
        for contact in self._load_contacts():
            if (contact.name or "").strip() == name and (contact.company or "").strip() == company:
                return contact
        return None

    def create(self, data: dict[str, Any], created_by: int | None = None) -> Contact:
        """
        Create a contact and assign it the next id.

        Args:
            data: Contact fields (unknown keys are ignored)
            created_by: Actor creating the contact

        Returns:
            The stored Contact

        Raises:
            StorageUnavailableError: If the table cannot be written
        """
        fields = {k: v for k, v in data.items() if k in _WRITABLE_FIELDS}
        fields.setdefault("name", "Unknown")
        if created_by is not None:
            fields["created_by"] = created_by

        with self._lock:
            table = self._read_contacts()
            contacts = [Contact.model_validate(row) for row in table["contacts"]]
            contact_id = int(table["next_id"])
            contact = Contact(id=contact_id, **fields)
            contacts.append(contact)
            self._save_contacts(contacts, contact_id + 1)

        logger.info(f"Created contact {contact_id}: {contact.name}")
        return contact

    def update(
        self, contact_id: int, changes: dict[str, Any], actor_id: int | None = None
    ) -> Contact:
        """
        Update contact fields and record a contribution per changed field.

        Args:
            contact_id: Contact to update
            changes: Field -> new value (unknown keys are ignored)
            actor_id: Actor making the change

        Returns:
            The updated Contact

        Raises:
            ContactNotFoundError: If the contact doesn't exist
            StorageUnavailableError: If a table cannot be written
        """
        changed: list[tuple[str, Any, Any]] = []
        with self._lock:
            table = self._read_contacts()
            contacts = [Contact.model_validate(row) for row in table["contacts"]]
            for index, contact in enumerate(contacts):
                if contact.id == contact_id:
                    break
            else:
                raise ContactNotFoundError(contact_id)

            updates: dict[str, Any] = {}
            for name, value in changes.items():
                if name not in _WRITABLE_FIELDS or name == "created_by":
                    continue
                old = getattr(contact, name)
                if old != value:
                    updates[name] = value
                    changed.append((name, old, value))

            if not updates:
                return contact

            updated = contact.model_copy(
                update={**updates, "updated_at": datetime.now(timezone.utc)}
            )
            contacts[index] = updated
            self._save_contacts(contacts, int(table["next_id"]))

            for name, old, new in changed:
                self.record_contribution(
                    Contribution(
                        contact_id=contact_id,
                        actor_id=actor_id,
                        field_name=name,
                        old_value=_stringify(old),
                        new_value=_stringify(new),
                        change_type=ChangeType.UPDATED,
                    )
                )

        logger.info(f"Updated contact {contact_id}: {', '.join(c[0] for c in changed)}")
        return updated

    def add_fact_subject(self, contact_id: int, subject: str) -> None:
        """
        Record that facts were written under ``subject`` for this contact.

        Not an audited field change, so no contribution is recorded.

        Raises:
            ContactNotFoundError: If the contact doesn't exist
            StorageUnavailableError: If the table cannot be written
        """
        with self._lock:
            table = self._read_contacts()
            contacts = [Contact.model_validate(row) for row in table["contacts"]]
            for index, contact in enumerate(contacts):
                if contact.id == contact_id:
                    break
            else:
                raise ContactNotFoundError(contact_id)
            if subject in contact.fact_subjects:
                return
            contacts[index] = contact.model_copy(
                update={"fact_subjects": [*contact.fact_subjects, subject]}
            )
            self._save_contacts(contacts, int(table["next_id"]))

    def delete(self, contact_id: int) -> bool:
        """
        Delete a contact and every actor link to it.

        Contributions are kept as audit history.

        Returns:
            True if the contact was deleted, False if not found
        """
        with self._lock:
            table = self._read_contacts()
            contacts = [Contact.model_validate(row) for row in table["contacts"]]
            remaining = [c for c in contacts if c.id != contact_id]
            if len(remaining) == len(contacts):
                return False
            self._save_contacts(remaining, int(table["next_id"]))

            links = self._load_links()
            kept_links = [link for link in links if link.contact_id != contact_id]
            if len(kept_links) != len(links):
                self._save_links(kept_links)

        logger.info(f"Deleted contact {contact_id}")
        return True

    # ========================================================================
    # Actor links
    # ========================================================================

    def is_linked(self, actor_id: int, contact_id: int) -> bool:
        """Check whether the actor already has the contact."""
        return any(
            link.actor_id == actor_id and link.contact_id == contact_id
            for link in self._load_links()
        )

    def link(self, actor_id: int, contact_id: int) -> bool:
        """
        Link a contact into an actor's network.

        Returns:
            True if a new link was created, False if it already existed
        """
        with self._lock:
            links = self._load_links()
            if any(lk.actor_id == actor_id and lk.contact_id == contact_id for lk in links):
                return False
            links.append(ActorLink(actor_id=actor_id, contact_id=contact_id))
            self._save_links(links)
        return True

    def list_linked_contacts(self, actor_id: int) -> list[Contact]:
        """Contacts in an actor's network, in the order they were linked."""
        linked_ids = [link.contact_id for link in self._load_links() if link.actor_id == actor_id]
        by_id = {c.id: c for c in self._load_contacts()}
        return [by_id[cid] for cid in linked_ids if cid in by_id]

    # ========================================================================
    # Contributions
    # ========================================================================

    def record_contribution(self, contribution: Contribution) -> None:
        """Append an entry to the contribution log."""
        with self._lock:
            rows = self.storage.read_table(CONTRIBUTIONS_TABLE, [])
            rows.append(contribution.model_dump(mode="json"))
            self.storage.write_table(CONTRIBUTIONS_TABLE, rows)

    def list_contributions(self, contact_id: int | None = None) -> list[Contribution]:
        """List contributions, optionally for one contact."""
        entries = [
            Contribution.model_validate(row)
            for row in self.storage.read_table(CONTRIBUTIONS_TABLE, [])
        ]
        if contact_id is None:
            return entries
        return [e for e in entries if e.contact_id == contact_id]
