"""
Graph Builder: bounded traversal from an actor into their network.

Degree 0 is a synthetic root node for the actor. Degree 1 holds the
actor's graph-worthy linked contacts. Each further degree expands the
previous one through inferred edges, adding at most
``max_nodes_per_degree`` new contacts per degree:

    root ──direct_contact──▶ degree 1 ──inferred──▶ degree 2 ──▶ ...

The builder only reads contacts and edges. ``GraphResult.to_networkx`` and
``export_graphml`` turn a result into a NetworkX graph for visualization
tools (Gephi, yEd, Cytoscape).
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import networkx as nx  # type: ignore[import-untyped]
from pydantic import BaseModel, Field

from profilegraph.core.config import Settings, get_settings
from profilegraph.kg.models import Contact
from profilegraph.models.errors import InvalidParameterError

if TYPE_CHECKING:
    from profilegraph.services.contact_repository import ContactRepository
    from profilegraph.services.edge_repository import EdgeRepository

logger = logging.getLogger(__name__)

ROOT_NODE_ID = "root"
DIRECT_CONTACT = "direct_contact"

NodeId = int | Literal["root"]


# ============================================================================
# Result Models
# ============================================================================


class GraphNode(BaseModel):
    """A node of the traversal result, tagged with its degree."""

    id: NodeId
    name: str
    degree: int
    company: str | None = None
    role: str | None = None
    followers: int | None = None
    connections: int | None = None
    profile_picture_url: str | None = None
    is_root: bool = False

    @classmethod
    def from_contact(cls, contact: Contact, degree: int) -> GraphNode:
        return cls(
            id=contact.id,
            name=contact.name,
            degree=degree,
            company=contact.company,
            role=contact.role,
            followers=contact.followers,
            connections=contact.connections,
            profile_picture_url=contact.profile_picture_url,
        )


class GraphEdge(BaseModel):
    """A directed edge of the traversal result."""

    source: NodeId
    target: int
    edge_type: str
    strength: int = 1


class GraphStats(BaseModel):
    """
    Summary statistics of a traversal.

    Attributes:
        total_nodes: Nodes in the result, root included
        nodes_by_degree: Degree -> node count
        edges_by_type: Edge type -> edge count
        compute_time_ms: Wall-clock build time
    """

    total_nodes: int = 0
    nodes_by_degree: dict[int, int] = Field(default_factory=dict)
    edges_by_type: dict[str, int] = Field(default_factory=dict)
    compute_time_ms: float = 0.0


class GraphResult(BaseModel):
    """Nodes, edges and stats of one traversal."""

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    stats: GraphStats = Field(default_factory=GraphStats)

    def nodes_at(self, degree: int) -> list[GraphNode]:
        """Nodes discovered at one degree."""
        return [n for n in self.nodes if n.degree == degree]

    def to_networkx(self) -> nx.DiGraph:
        """
        Convert to a NetworkX DiGraph.

        Node and edge attributes are kept GraphML-compatible (no None
        values, no lists).
        """
        G: nx.DiGraph = nx.DiGraph()
        for node in self.nodes:
            G.add_node(
                str(node.id),
                label=node.name,
                degree=node.degree,
                company=node.company or "",
                role=node.role or "",
                followers=node.followers or 0,
                is_root=node.is_root,
            )
        for edge in self.edges:
            G.add_edge(
                str(edge.source),
                str(edge.target),
                edge_type=edge.edge_type,
                strength=edge.strength,
            )
        return G


def root_only_graph(root_label: str | None = None) -> GraphResult:
    """A result holding only the synthetic root node."""
    return GraphResult(
        nodes=[GraphNode(id=ROOT_NODE_ID, name=root_label or "You", degree=0, is_root=True)],
        stats=GraphStats(total_nodes=1, nodes_by_degree={0: 1}),
    )


def export_graphml(result: GraphResult, output_path: Path) -> None:
    """
    Export a traversal result to GraphML.

    Args:
        result: GraphResult to export
        output_path: File path for the GraphML output
    """
    nx.write_graphml(result.to_networkx(), str(output_path))
    logger.info(f"Exported {len(result.nodes)} nodes to {output_path}")


# ============================================================================
# Builder
# ============================================================================


class GraphBuilder:
    """
    Builds actor-centric graphs from contacts and inferred edges.

    Usage:
        builder = GraphBuilder(contact_repository, edge_repository)
        result = builder.build_graph(actor_id, max_depth=3, max_nodes_per_degree=20)
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

    def is_graph_worthy(self, contact: Contact) -> bool:
        """Check the degree-1 richness filter (any configured field is set)."""
        for field in self.settings.graph_richness_fields:
            value = getattr(contact, field, None)
            if value is not None and value != "":
                return True
        return False

    def _direct_contacts(self, root_id: int, limit: int) -> list[Contact]:
        candidates = [
            c for c in self.contacts.list_linked_contacts(root_id) if self.is_graph_worthy(c)
        ]
        # Followers descending, contacts without a count last
        candidates.sort(key=lambda c: (c.followers is None, -(c.followers or 0)))
        return candidates[:limit]

    def build_graph(
        self,
        root_id: int,
        max_depth: int,
        max_nodes_per_degree: int,
        root_label: str | None = None,
    ) -> GraphResult:
        """
        Traverse outward from an actor.

        Args:
            root_id: Actor whose network is the root
            max_depth: Highest degree to include (1 stops after direct contacts)
            max_nodes_per_degree: Cap on new nodes added at each degree
            root_label: Display name for the root node

        Returns:
            GraphResult with every node tagged by degree

        Raises:
            InvalidParameterError: If a bound is negative
            StorageUnavailableError: If contacts or edges cannot be read
        """
        if max_depth < 0:
            raise InvalidParameterError("max_depth", "must not be negative")
        if max_nodes_per_degree < 0:
            raise InvalidParameterError("max_nodes_per_degree", "must not be negative")

        start = time.perf_counter()
        result = root_only_graph(root_label)
        nodes_by_degree: dict[int, int] = {0: 1}
        edges_by_type: Counter[str] = Counter()
        seen: set[int] = set()

        if max_depth >= 1 and max_nodes_per_degree > 0:
            direct = self._direct_contacts(root_id, max_nodes_per_degree)
            for contact in direct:
                result.nodes.append(GraphNode.from_contact(contact, degree=1))
                result.edges.append(
                    GraphEdge(
                        source=ROOT_NODE_ID,
                        target=contact.id,
                        edge_type=DIRECT_CONTACT,
                        strength=self.settings.direct_contact_strength,
                    )
                )
                edges_by_type[DIRECT_CONTACT] += 1
                seen.add(contact.id)
            nodes_by_degree[1] = len(direct)
            frontier = [c.id for c in direct]

            for degree in range(2, max_depth + 1):
                if not frontier:
                    break
                frontier = self._expand(
                    result, frontier, seen, degree, max_nodes_per_degree, edges_by_type
                )
                nodes_by_degree[degree] = len(frontier)

        result.stats = GraphStats(
            total_nodes=len(result.nodes),
            nodes_by_degree=nodes_by_degree,
            edges_by_type=dict(edges_by_type),
            compute_time_ms=(time.perf_counter() - start) * 1000,
        )
        logger.debug(
            f"Built graph for actor {root_id}: {result.stats.total_nodes} nodes, "
            f"{len(result.edges)} edges"
        )
        return result

    def _expand(
        self,
        result: GraphResult,
        frontier: list[int],
        seen: set[int],
        degree: int,
        limit: int,
        edges_by_type: Counter[str],
    ) -> list[int]:
        """Add one degree of nodes reached from ``frontier``; returns the new ids."""
        outgoing = self.edges.list_from(frontier)
        by_id = {c.id: c for c in self.contacts.list_all()} if outgoing else {}
        selected: list[int] = []
        reached: list[GraphEdge] = []
        for edge in outgoing:
            target = edge.to_contact_id
            if target in seen or target not in by_id:
                # Already placed, or the edge points at a deleted contact
                continue
            if target not in selected:
                if len(selected) >= limit:
                    continue
                selected.append(target)
            reached.append(
                GraphEdge(
                    source=edge.from_contact_id,
                    target=target,
                    edge_type=edge.edge_type.value,
                    strength=edge.strength or 1,
                )
            )

        for contact_id in selected:
            result.nodes.append(GraphNode.from_contact(by_id[contact_id], degree=degree))
        for graph_edge in reached:
            result.edges.append(graph_edge)
            edges_by_type[graph_edge.edge_type] += 1
        seen.update(selected)
        return selected
