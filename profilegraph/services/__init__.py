"""
Service Container and Lifecycle Management.

Provides a centralized container for the stores and the graph service with
startup/shutdown lifecycle management for a process entry point.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from profilegraph.core.config import Settings, get_settings
from profilegraph.core.logging import configure_logging
from profilegraph.core.storage import StorageManager
from profilegraph.kg.facts import FactStore
from profilegraph.services.contact_repository import ContactRepository
from profilegraph.services.edge_repository import EdgeRepository
from profilegraph.services.graph_service import EnrichmentResult, ProfileGraphService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Dependency injection container for stores and services.

    Every handle is created at ``startup()`` and dropped at ``shutdown()``;
    nothing is held in module globals except the active container.
    """

    def __init__(self, data_path: Path | None = None, settings: Settings | None = None) -> None:
        """Initialize container with empty service references."""
        self.settings = settings or get_settings()
        self.data_path = Path(data_path) if data_path is not None else self.settings.data_path
        self._storage: StorageManager | None = None
        self._contacts: ContactRepository | None = None
        self._edges: EdgeRepository | None = None
        self._facts: FactStore | None = None
        self._graph: ProfileGraphService | None = None

    @property
    def storage(self) -> StorageManager:
        """Get storage manager instance."""
        if self._storage is None:
            raise RuntimeError("ServiceContainer not initialized - call startup() first")
        return self._storage

    @property
    def contacts(self) -> ContactRepository:
        """Get contact repository instance."""
        if self._contacts is None:
            raise RuntimeError("ServiceContainer not initialized - call startup() first")
        return self._contacts

    @property
    def edges(self) -> EdgeRepository:
        """Get inferred edge repository instance."""
        if self._edges is None:
            raise RuntimeError("ServiceContainer not initialized - call startup() first")
        return self._edges

    @property
    def facts(self) -> FactStore:
        """Get fact store instance."""
        if self._facts is None:
            raise RuntimeError("ServiceContainer not initialized - call startup() first")
        return self._facts

    @property
    def graph(self) -> ProfileGraphService:
        """Get profile graph service instance."""
        if self._graph is None:
            raise RuntimeError("ServiceContainer not initialized - call startup() first")
        return self._graph

    def startup(self) -> None:
        """
        Initialize all services.

        Creates stores and services in dependency order.

        Raises:
            StorageUnavailableError: If the data directory cannot be created
        """
        logger.info(f"Starting service container (data path: {self.data_path})")

        self._storage = StorageManager(self.data_path)
        self._contacts = ContactRepository(self._storage)
        self._edges = EdgeRepository(self._storage)
        self._facts = FactStore(self._storage)
        self._graph = ProfileGraphService(
            self._contacts, self._edges, self._facts, settings=self.settings
        )

        logger.info("Service container started")

    def shutdown(self) -> None:
        """Drop all service references."""
        logger.info("Shutting down service container")

        self._graph = None
        self._facts = None
        self._edges = None
        self._contacts = None
        self._storage = None

        logger.info("Service container shutdown complete")


# Global service container instance
_services: ServiceContainer | None = None


def get_services() -> ServiceContainer:
    """
    Get the active service container.

    Returns:
        The container started by ``services_lifespan``

    Raises:
        RuntimeError: If container hasn't been initialized
    """
    if _services is None:
        raise RuntimeError("Services not initialized - ensure services_lifespan() is used")
    return _services


@contextmanager
def services_lifespan(
    data_path: Path | None = None, settings: Settings | None = None
) -> Iterator[ServiceContainer]:
    """
    Context manager owning the service lifecycle.

    Configures root logging at the settings' ``log_level`` before the
    container starts.

    Example:
        with services_lifespan(Path("data")) as services:
            services.graph.enrich_contact(record, options)

    Args:
        data_path: Data directory (defaults to the configured data path)
        settings: Settings override

    Yields:
        The started ServiceContainer
    """
    global _services

    _services = ServiceContainer(data_path=data_path, settings=settings)
    configure_logging(_services.settings.log_level)
    _services.startup()

    try:
        yield _services
    finally:
        if _services:
            _services.shutdown()
        _services = None


__all__ = [
    "ServiceContainer",
    "get_services",
    "services_lifespan",
    "ContactRepository",
    "EdgeRepository",
    "EnrichmentResult",
    "ProfileGraphService",
]
