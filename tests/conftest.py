"""
Pytest configuration and fixtures for profilegraph tests.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from profilegraph.core.config import Settings
from profilegraph.core.storage import StorageManager
from profilegraph.kg.facts import FactStore
from profilegraph.kg.models import (
    Contact,
    Education,
    Experience,
    ProfileRecord,
    Recommendation,
    TransformOptions,
)
from profilegraph.services.contact_repository import ContactRepository
from profilegraph.services.edge_repository import EdgeRepository
from profilegraph.services.graph_service import ProfileGraphService

FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary data directory."""
    return Settings(data_path=tmp_path / "data")


@pytest.fixture
def storage(tmp_path: Path) -> StorageManager:
    """Storage manager over a temporary directory."""
    return StorageManager(tmp_path / "data")


@pytest.fixture
def contacts(storage: StorageManager) -> ContactRepository:
    return ContactRepository(storage)


@pytest.fixture
def edges(storage: StorageManager) -> EdgeRepository:
    return EdgeRepository(storage)


@pytest.fixture
def facts(storage: StorageManager) -> FactStore:
    return FactStore(storage)


@pytest.fixture
def service(
    contacts: ContactRepository,
    edges: EdgeRepository,
    facts: FactStore,
    settings: Settings,
) -> ProfileGraphService:
    return ProfileGraphService(contacts, edges, facts, settings=settings)


@pytest.fixture
def options() -> TransformOptions:
    """Import options with a fixed timestamp so reimports are comparable."""
    return TransformOptions(
        source="LinkedIn", actor_id=1, event_id="summit-2024", timestamp=FIXED_TIME
    )


@pytest.fixture
def sample_record() -> ProfileRecord:
    """A fully populated profile record."""
    return ProfileRecord(
        name="Jane Doe",
        first_name="Jane",
        last_name="Doe",
        headline="VP Engineering at Acme",
        location="Berlin, Germany",
        summary="Builds data platforms.",
        profile_url="https://www.linkedin.com/in/jane-doe/",
        email="jane@acme.io",
        followers=1200,
        connections=500,
        experience=[
            Experience(company="Acme Inc.", title="VP Engineering", start_date="2021"),
            Experience(company="Globex", title="Engineer", start_date="2017", end_date="2021"),
        ],
        education=[
            Education(school="University of Oxford", degree="MSc", field="Computer Science"),
        ],
        skills=["Python", "Kubernetes", "Leadership"],
        bio_links=["https://janedoe.dev"],
        people_also_viewed=[
            Recommendation(
                name="John Smith",
                profile_link="https://www.linkedin.com/in/john-smith",
                about="CTO at Initech",
            )
        ],
    )


@pytest.fixture
def make_contact(contacts: ContactRepository) -> Callable[..., Contact]:
    """
    Factory creating stored contacts.

    List-valued ``experience``/``education``/``skills``/``people_also_viewed``
    arguments are stored as JSON text, strings are stored verbatim.
    """

    def _make(name: str, actor_id: int | None = None, **fields: Any) -> Contact:
        for blob in ("experience", "education", "skills", "people_also_viewed"):
            if isinstance(fields.get(blob), list):
                fields[blob] = json.dumps(fields[blob])
        contact = contacts.create({"name": name, **fields}, created_by=actor_id)
        if actor_id is not None:
            contacts.link(actor_id, contact.id)
        return contact

    return _make
