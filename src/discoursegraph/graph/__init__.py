"""Discourse graph entity model, JSON-LD loading, and indexing."""

from discoursegraph.graph.indexer import GraphIndex, build_index, load_index
from discoursegraph.graph.loader import GraphLoadError, read_entries
from discoursegraph.graph.models import (
    DiscourseNode,
    NodeSchema,
    RelationDef,
    RelationInstance,
)

__all__ = [
    "DiscourseNode",
    "GraphIndex",
    "GraphLoadError",
    "NodeSchema",
    "RelationDef",
    "RelationInstance",
    "build_index",
    "load_index",
    "read_entries",
]
