"""
Knowledge Graph module for profile-derived entity graphs.

This module provides the entity and contact models, the semantic
transformer and fact store, entity resolution, edge inference and the
actor-centric graph builder.
"""

from profilegraph.kg.facts import Fact, FactStore, ObjectKind
from profilegraph.kg.graph_builder import GraphBuilder, GraphEdge, GraphNode, GraphResult
from profilegraph.kg.inference import BatchRecomputeResult, EdgeInferenceEngine
from profilegraph.kg.models import (
    Contact,
    EdgeType,
    Entity,
    EntityGraph,
    EntityKey,
    EntityKind,
    InferredEdge,
    ProfileRecord,
    TransformOptions,
)
from profilegraph.kg.resolution import (
    EntityResolver,
    IdentityFields,
    MatchRule,
    ResolutionResult,
)
from profilegraph.kg.transformer import transform_profile
from profilegraph.kg.writer import FactWriter

__all__ = [
    # Models
    "EntityKind",
    "EntityKey",
    "Entity",
    "EntityGraph",
    "ProfileRecord",
    "TransformOptions",
    "Contact",
    "EdgeType",
    "InferredEdge",
    # Facts
    "Fact",
    "FactStore",
    "ObjectKind",
    "FactWriter",
    "transform_profile",
    # Resolution
    "EntityResolver",
    "IdentityFields",
    "MatchRule",
    "ResolutionResult",
    # Inference
    "EdgeInferenceEngine",
    "BatchRecomputeResult",
    # Graph
    "GraphBuilder",
    "GraphNode",
    "GraphEdge",
    "GraphResult",
]
