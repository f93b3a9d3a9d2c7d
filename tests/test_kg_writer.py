"""Tests for the Fact Writer."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from profilegraph.core.storage import StorageManager
from profilegraph.kg.facts import FactStore, ObjectKind
from profilegraph.kg.models import ProfileRecord, TransformOptions
from profilegraph.kg.transformer import transform_profile
from profilegraph.kg.writer import (
    PROV_NS,
    RDF_TYPE,
    SCHEMA_NS,
    FactWriter,
    flatten_entity_graph,
    predicate_uri,
)
from profilegraph.models.errors import StorageUnavailableError

JANE = "person:linkedin:jane-doe"


class TestPredicateUri:
    """Tests for vocabulary expansion."""

    def test_schema_terms(self) -> None:
        assert predicate_uri("worksFor") == f"{SCHEMA_NS}worksFor"

    def test_prov_terms(self) -> None:
        assert predicate_uri("prov:wasAttributedTo") == f"{PROV_NS}wasAttributedTo"


class TestFlatten:
    """Tests for flatten_entity_graph."""

    def test_all_facts_owned_by_person(
        self, sample_record: ProfileRecord, options: TransformOptions
    ) -> None:
        graph = transform_profile(sample_record, options)
        staged = flatten_entity_graph(graph)

        assert list(staged) == [graph.primary_key]
        subjects = {f.subject for f in staged[graph.primary_key]}
        assert subjects == {str(e.key) for e in graph.entities}

    def test_type_facts(self, sample_record: ProfileRecord, options: TransformOptions) -> None:
        graph = transform_profile(sample_record, options)
        facts = next(iter(flatten_entity_graph(graph).values()))
        types = {f.subject: f.object for f in facts if f.predicate == RDF_TYPE}

        assert types[JANE] == f"{SCHEMA_NS}Person"
        assert types["org:linkedin:acme-inc"] == f"{SCHEMA_NS}Organization"
        assert types["edu:linkedin:university-of-oxford"] == f"{SCHEMA_NS}EducationalOrganization"
        assert types["activity:linkedin:jane-doe-import"] == f"{PROV_NS}Activity"
        assert all(
            f.object_kind == ObjectKind.REFERENCE for f in facts if f.predicate == RDF_TYPE
        )

    def test_list_and_int_literals(
        self, sample_record: ProfileRecord, options: TransformOptions
    ) -> None:
        graph = transform_profile(sample_record, options)
        facts = next(iter(flatten_entity_graph(graph).values()))

        skills = [f.object for f in facts if f.predicate == f"{SCHEMA_NS}knowsAbout"]
        assert skills == ["Python", "Kubernetes", "Leadership"]
        followers = [f for f in facts if f.predicate == f"{SCHEMA_NS}followerCount"]
        assert followers[0].object == "1200"
        assert followers[0].object_kind == ObjectKind.LITERAL

    def test_relations_are_references(
        self, sample_record: ProfileRecord, options: TransformOptions
    ) -> None:
        graph = transform_profile(sample_record, options)
        facts = next(iter(flatten_entity_graph(graph).values()))
        works_for = [f for f in facts if f.predicate == f"{SCHEMA_NS}worksFor"]

        assert [f.object for f in works_for] == ["org:linkedin:acme-inc", "org:linkedin:globex"]
        assert all(f.object_kind == ObjectKind.REFERENCE for f in works_for)


class TestFactWriter:
    """Tests for FactWriter.write."""

    def test_reimport_is_idempotent(
        self, facts: FactStore, sample_record: ProfileRecord, options: TransformOptions
    ) -> None:
        """Writing the same profile twice leaves an identical fact set."""
        writer = FactWriter(facts)
        graph = transform_profile(sample_record, options)

        first = writer.write(graph)
        snapshot = facts.query_pattern()
        second = writer.write(transform_profile(sample_record, options))

        assert first == second
        assert facts.query_pattern() == snapshot
        assert facts.count() == first

    def test_reimport_drops_removed_company(
        self, facts: FactStore, sample_record: ProfileRecord, options: TransformOptions
    ) -> None:
        """A company removed from the profile disappears from the store."""
        writer = FactWriter(facts)
        writer.write(transform_profile(sample_record, options))

        updated = sample_record.model_copy(update={"experience": sample_record.experience[:1]})
        writer.write(transform_profile(updated, options))

        assert facts.query_pattern(subject="org:linkedin:globex") == []
        assert facts.query_pattern(predicate=f"{SCHEMA_NS}worksFor", object="org:linkedin:globex") == []

    def test_write_failure_propagates(
        self,
        facts: FactStore,
        storage: StorageManager,
        sample_record: ProfileRecord,
        options: TransformOptions,
    ) -> None:
        graph = transform_profile(sample_record, options)
        with patch.object(storage, "write_table", side_effect=StorageUnavailableError("down")):
            with pytest.raises(StorageUnavailableError):
                FactWriter(facts).write(graph)
        assert facts.count() == 0
