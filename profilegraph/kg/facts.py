"""
Fact Store: durable (subject, predicate, object, object_kind) facts.

Facts are grouped into partitions. A partition is owned by one subject
(the Person a profile import is about) and holds every fact staged for it,
including the facts of the organizations, schools and provenance activity
that import brought in. Replacing a partition is the unit of reimport:

- ``upsert_facts`` swaps a whole partition in one atomic write; readers
  see either the old partition or the new one, never a mix.
- ``query_pattern`` matches across all partitions. The store behaves as a
  set, so a fact asserted by two partitions (two people at the same
  company) is returned once.

The store knows nothing about entity semantics.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import OrderedDict
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from profilegraph.core.storage import StorageManager
from profilegraph.kg.models import EntityKey

logger = logging.getLogger(__name__)

FACTS_TABLE = "facts"


class ObjectKind(str, Enum):
    """Whether a fact's object is a literal value or another entity's key."""

    LITERAL = "literal"
    REFERENCE = "reference"


class Fact(BaseModel):
    """
    An atomic statement about an entity.

    Attributes:
        subject: String form of the subject's EntityKey
        predicate: URI of the property
        object: Literal value, or string form of the referenced EntityKey
        object_kind: literal or reference
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    predicate: str
    object: str
    object_kind: ObjectKind = ObjectKind.LITERAL

    def as_row(self) -> list[str]:
        """Compact row form used on disk."""
        return [self.subject, self.predicate, self.object, self.object_kind.value]

    @classmethod
    def from_row(cls, row: list[str]) -> Fact:
        """Rebuild a fact from its on-disk row form."""
        subject, predicate, obj, kind = row
        return cls(subject=subject, predicate=predicate, object=obj, object_kind=ObjectKind(kind))


SubjectRef = EntityKey | str


def _subject_str(subject: SubjectRef) -> str:
    return str(subject)


class FactStore:
    """
    JSON-backed fact store with partition replacement.

    Usage:
        store = FactStore(StorageManager(tmp_dir))
        store.upsert_facts(person_key, facts)
        store.query_pattern(predicate="https://schema.org/worksFor")

    Writes on one instance are serialized by an internal lock, which also
    serializes writes for the same subject.
    """

    def __init__(self, storage: StorageManager) -> None:
        """
        Initialize the store.

        Args:
            storage: StorageManager owning the data directory
        """
        self._storage = storage
        self._lock = threading.Lock()
        # owner subject -> facts, loaded lazily so construction never touches disk
        self._partitions: OrderedDict[str, list[Fact]] | None = None

    def _load(self) -> OrderedDict[str, list[Fact]]:
        if self._partitions is None:
            data: dict[str, Any] = self._storage.read_table(FACTS_TABLE, {"partitions": {}})
            self._partitions = OrderedDict(
                (owner, [Fact.from_row(row) for row in rows])
                for owner, rows in data.get("partitions", {}).items()
            )
        return self._partitions

    def _commit(self, partitions: OrderedDict[str, list[Fact]]) -> None:
        """Persist a full partition map, then make it the visible state."""
        payload = {
            "partitions": {
                owner: [fact.as_row() for fact in facts]
                for owner, facts in partitions.items()
            }
        }
        self._storage.write_table(FACTS_TABLE, payload)
        self._partitions = partitions

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # WRITES
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def upsert_facts(self, subject: SubjectRef, facts: list[Fact]) -> int:
        """
        Replace every fact owned by ``subject``.

        Args:
            subject: Owning subject key
            facts: Complete new fact set for the partition

        Returns:
            Number of facts in the new partition

        Raises:
            StorageUnavailableError: If the store cannot be written; the
                previous partition stays in place
        """
        return self.upsert_many({_subject_str(subject): facts})

    def upsert_many(self, batch: dict[str, list[Fact]]) -> int:
        """
        Replace several partitions in a single atomic commit.

        Args:
            batch: Owning subject -> complete new fact set

        Returns:
            Total number of facts written

        Raises:
            StorageUnavailableError: If the store cannot be written; no
                partition in the batch is changed
        """
        with self._lock:
            staged = OrderedDict(self._load())
            written = 0
            for owner, facts in batch.items():
                # Drop exact duplicates while keeping order
                unique = list(dict.fromkeys(facts))
                staged.pop(owner, None)
                staged[owner] = unique
                written += len(unique)
            self._commit(staged)

        logger.info(f"Saved {written} facts for {len(batch)} subject(s)")
        return written

    def delete_subject(self, subject: SubjectRef) -> bool:
        """
        Delete the partition owned by ``subject``.

        Returns:
            True if a partition was deleted, False if there was none

        Raises:
            StorageUnavailableError: If the store cannot be written
        """
        owner = _subject_str(subject)
        with self._lock:
            partitions = self._load()
            if owner not in partitions:
                return False
            staged = OrderedDict(partitions)
            del staged[owner]
            self._commit(staged)

        logger.info(f"Deleted facts for {owner}")
        return True

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # READS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _all_facts(self) -> list[Fact]:
        seen: dict[Fact, None] = {}
        for facts in self._load().values():
            for fact in facts:
                seen.setdefault(fact, None)
        return list(seen)

    def query_pattern(
        self,
        subject: SubjectRef | None = None,
        predicate: str | None = None,
        object: str | None = None,
        limit: int | None = None,
    ) -> list[Fact]:
        """
        Find facts matching a (subject, predicate, object) pattern.

        Each non-None field must match exactly; None acts as a wildcard.
        With every field None the whole store is returned (bounded by
        ``limit`` when given).

        Raises:
            StorageUnavailableError: If the store cannot be read
        """
        subject_str = _subject_str(subject) if subject is not None else None
        results: list[Fact] = []
        for fact in self._all_facts():
            if subject_str is not None and fact.subject != subject_str:
                continue
            if predicate is not None and fact.predicate != predicate:
                continue
            if object is not None and fact.object != object:
                continue
            results.append(fact)
            if limit is not None and len(results) >= limit:
                break
        return results

    def partition(self, subject: SubjectRef) -> list[Fact]:
        """Get the facts owned by one subject, as last written."""
        return list(self._load().get(_subject_str(subject), []))

    def subjects(self) -> list[str]:
        """Owning subjects that currently have a partition."""
        return list(self._load().keys())

    def count(self) -> int:
        """Number of distinct facts in the store."""
        return len(self._all_facts())


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Display helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def format_predicate(predicate: str) -> str:
    """
    Human-readable label for a predicate URI.

    Examples:
        >>> format_predicate("https://schema.org/jobTitle")
        'Job Title'
        >>> format_predicate("http://www.w3.org/ns/prov#generatedAtTime")
        'Generated At Time'
    """
    local_name = re.split(r"[/#]", predicate)[-1] or predicate
    spaced = re.sub(r"([a-z])([A-Z])", r"\1 \2", local_name)
    return spaced[:1].upper() + spaced[1:]


def group_facts_by_predicate(facts: list[Fact]) -> dict[str, list[Fact]]:
    """Group facts under their display predicate label."""
    grouped: dict[str, list[Fact]] = {}
    for fact in facts:
        grouped.setdefault(format_predicate(fact.predicate), []).append(fact)
    return grouped
