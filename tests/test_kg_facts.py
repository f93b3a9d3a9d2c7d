"""
Tests for the Fact Store.

Covers partition replacement, pattern queries, set semantics across
partitions, durability and storage failure behavior.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from profilegraph.core.storage import StorageManager
from profilegraph.kg.facts import (
    Fact,
    FactStore,
    ObjectKind,
    format_predicate,
    group_facts_by_predicate,
)
from profilegraph.kg.models import EntityKey
from profilegraph.models.errors import StorageUnavailableError

JANE = "person:linkedin:jane"
JOHN = "person:linkedin:john"
ACME = "org:linkedin:acme"
NAME = "https://schema.org/name"
WORKS_FOR = "https://schema.org/worksFor"


def literal(subject: str, predicate: str, value: str) -> Fact:
    return Fact(subject=subject, predicate=predicate, object=value)


def reference(subject: str, predicate: str, target: str) -> Fact:
    return Fact(
        subject=subject, predicate=predicate, object=target, object_kind=ObjectKind.REFERENCE
    )


class TestUpsertFacts:
    """Tests for partition replacement."""

    def test_upsert_and_query(self, facts: FactStore) -> None:
        written = facts.upsert_facts(JANE, [literal(JANE, NAME, "Jane")])
        assert written == 1
        assert facts.query_pattern(subject=JANE) == [literal(JANE, NAME, "Jane")]

    def test_replace_removes_old_facts(self, facts: FactStore) -> None:
        """Facts absent from the new set disappear."""
        facts.upsert_facts(JANE, [literal(JANE, NAME, "Jane"), reference(JANE, WORKS_FOR, ACME)])
        facts.upsert_facts(JANE, [literal(JANE, NAME, "Jane D.")])

        assert facts.query_pattern(subject=JANE) == [literal(JANE, NAME, "Jane D.")]
        assert facts.query_pattern(predicate=WORKS_FOR) == []

    def test_replace_leaves_other_partitions(self, facts: FactStore) -> None:
        facts.upsert_facts(JANE, [literal(JANE, NAME, "Jane")])
        facts.upsert_facts(JOHN, [literal(JOHN, NAME, "John")])
        facts.upsert_facts(JANE, [])

        assert facts.query_pattern(subject=JANE) == []
        assert facts.query_pattern(subject=JOHN) == [literal(JOHN, NAME, "John")]

    def test_accepts_entity_key(self, facts: FactStore) -> None:
        key = EntityKey.parse(JANE)
        facts.upsert_facts(key, [literal(JANE, NAME, "Jane")])
        assert facts.subjects() == [JANE]
        assert len(facts.query_pattern(subject=key)) == 1

    def test_duplicates_within_partition_dropped(self, facts: FactStore) -> None:
        fact = literal(JANE, NAME, "Jane")
        assert facts.upsert_facts(JANE, [fact, fact]) == 1

    def test_upsert_many(self, facts: FactStore) -> None:
        written = facts.upsert_many(
            {JANE: [literal(JANE, NAME, "Jane")], JOHN: [literal(JOHN, NAME, "John")]}
        )
        assert written == 2
        assert set(facts.subjects()) == {JANE, JOHN}


class TestQueryPattern:
    """Tests for query_pattern."""

    @pytest.fixture
    def populated(self, facts: FactStore) -> FactStore:
        facts.upsert_facts(
            JANE,
            [
                literal(JANE, NAME, "Jane"),
                reference(JANE, WORKS_FOR, ACME),
                literal(ACME, NAME, "Acme"),
            ],
        )
        facts.upsert_facts(
            JOHN,
            [
                literal(JOHN, NAME, "John"),
                reference(JOHN, WORKS_FOR, ACME),
                literal(ACME, NAME, "Acme"),
            ],
        )
        return facts

    def test_wildcards(self, populated: FactStore) -> None:
        """All-None returns every distinct fact."""
        assert len(populated.query_pattern()) == 5
        assert populated.count() == 5

    def test_shared_facts_returned_once(self, populated: FactStore) -> None:
        """A fact asserted by two partitions is one fact."""
        assert populated.query_pattern(subject=ACME) == [literal(ACME, NAME, "Acme")]

    def test_by_predicate_and_object(self, populated: FactStore) -> None:
        """Reverse lookup: who works for Acme."""
        results = populated.query_pattern(predicate=WORKS_FOR, object=ACME)
        assert [f.subject for f in results] == [JANE, JOHN]

    def test_exact_match_only(self, populated: FactStore) -> None:
        assert populated.query_pattern(object="jane") == []

    def test_limit(self, populated: FactStore) -> None:
        assert len(populated.query_pattern(predicate=NAME, limit=2)) == 2

    def test_shared_fact_survives_one_owner_reimport(self, populated: FactStore) -> None:
        """Replacing Jane's partition keeps Acme facts John still asserts."""
        populated.upsert_facts(JANE, [literal(JANE, NAME, "Jane")])
        assert populated.query_pattern(subject=ACME) == [literal(ACME, NAME, "Acme")]
        assert [f.subject for f in populated.query_pattern(predicate=WORKS_FOR)] == [JOHN]


class TestDeleteSubject:
    """Tests for delete_subject."""

    def test_delete(self, facts: FactStore) -> None:
        facts.upsert_facts(JANE, [literal(JANE, NAME, "Jane")])
        assert facts.delete_subject(JANE) is True
        assert facts.count() == 0

    def test_delete_missing(self, facts: FactStore) -> None:
        assert facts.delete_subject(JANE) is False


class TestDurability:
    """Tests for persistence and failure behavior."""

    def test_survives_reopen(self, tmp_path: Path) -> None:
        storage = StorageManager(tmp_path / "store")
        FactStore(storage).upsert_facts(JANE, [reference(JANE, WORKS_FOR, ACME)])

        reopened = FactStore(StorageManager(tmp_path / "store"))
        assert reopened.query_pattern(subject=JANE) == [reference(JANE, WORKS_FOR, ACME)]

    def test_failed_write_keeps_old_partition(self, facts: FactStore, storage: StorageManager) -> None:
        """A failed commit leaves the previous facts visible."""
        facts.upsert_facts(JANE, [literal(JANE, NAME, "Jane")])

        with patch.object(
            storage, "write_table", side_effect=StorageUnavailableError("disk full")
        ):
            with pytest.raises(StorageUnavailableError):
                facts.upsert_facts(JANE, [literal(JANE, NAME, "Changed")])

        assert facts.query_pattern(subject=JANE) == [literal(JANE, NAME, "Jane")]
        reopened = FactStore(storage)
        assert reopened.query_pattern(subject=JANE) == [literal(JANE, NAME, "Jane")]

    def test_corrupt_file_raises(self, storage: StorageManager) -> None:
        storage.table_path("facts").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageUnavailableError):
            FactStore(storage).query_pattern()


class TestDisplayHelpers:
    """Tests for predicate display helpers."""

    def test_format_predicate(self) -> None:
        assert format_predicate("https://schema.org/jobTitle") == "Job Title"
        assert format_predicate("https://schema.org/name") == "Name"
        assert format_predicate("http://www.w3.org/ns/prov#generatedAtTime") == (
            "Generated At Time"
        )

    def test_group_by_predicate(self) -> None:
        grouped = group_facts_by_predicate(
            [literal(JANE, NAME, "Jane"), literal(JOHN, NAME, "John"), reference(JANE, WORKS_FOR, ACME)]
        )
        assert list(grouped) == ["Name", "Works For"]
        assert len(grouped["Name"]) == 2
