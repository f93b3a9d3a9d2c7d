"""
Edge Repository - JSON-based persistence for inferred edges.

Edges are rows keyed by (from_contact_id, to_contact_id). The inference
engine deletes a contact's outgoing edges and inserts the new batch as two
separate commits; readers in between see the contact with no outgoing
edges.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from profilegraph.core.storage import StorageManager
from profilegraph.kg.models import InferredEdge

logger = logging.getLogger(__name__)

EDGES_TABLE = "inferred_edges"


class EdgeRepository:
    """File-based inferred edge persistence using atomic table writes."""

    def __init__(self, storage: StorageManager) -> None:
        self.storage = storage
        self._lock = threading.Lock()

    def _load(self) -> list[InferredEdge]:
        return [
            InferredEdge.model_validate(row) for row in self.storage.read_table(EDGES_TABLE, [])
        ]

    def _save(self, edges: list[InferredEdge]) -> None:
        self.storage.write_table(EDGES_TABLE, [e.model_dump(mode="json") for e in edges])

    def list_all(self) -> list[InferredEdge]:
        """List every stored edge."""
        return self._load()

    def list_from(self, contact_ids: Iterable[int]) -> list[InferredEdge]:
        """List edges whose source is one of ``contact_ids``."""
        sources = set(contact_ids)
        return [e for e in self._load() if e.from_contact_id in sources]

    def list_involving(self, contact_ids: Iterable[int]) -> list[InferredEdge]:
        """List edges touching any of ``contact_ids`` in either direction."""
        ids = set(contact_ids)
        if not ids:
            return []
        return [
            e for e in self._load() if e.from_contact_id in ids or e.to_contact_id in ids
        ]

    def insert_many(self, edges: list[InferredEdge]) -> int:
        """
        Insert a batch of edges in one commit.

        Returns:
            Number of edges inserted

        Raises:
            StorageUnavailableError: If the table cannot be written
        """
        if not edges:
            return 0
        with self._lock:
            stored = self._load()
            stored.extend(edges)
            self._save(stored)
        return len(edges)

    def delete_from(self, contact_id: int) -> int:
        """Delete every edge whose source is ``contact_id``."""
        return self._delete_where(lambda e: e.from_contact_id == contact_id)

    def delete_involving(self, contact_id: int) -> int:
        """Delete every edge touching ``contact_id`` in either direction."""
        return self._delete_where(
            lambda e: contact_id in (e.from_contact_id, e.to_contact_id)
        )

    def _delete_where(self, predicate: Callable[[InferredEdge], bool]) -> int:
        with self._lock:
            stored = self._load()
            kept = [e for e in stored if not predicate(e)]
            removed = len(stored) - len(kept)
            if removed:
                self._save(kept)
        if removed:
            logger.debug(f"Deleted {removed} inferred edges")
        return removed
