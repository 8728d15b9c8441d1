"""Query engine — BM25 search, graph traversal, catalog lookups, snapshot store."""

from discoursegraph.engine.search import BM25Index, SearchResult, build_bm25_index, search_nodes
from discoursegraph.engine.store import GraphStore, LoadedGraph, get_store
from discoursegraph.engine.traversal import (
    LinkedNode,
    LinkedNodesResult,
    NeighborhoodResult,
    get_linked_nodes,
    get_neighborhood,
)

__all__ = [
    "BM25Index",
    "GraphStore",
    "LinkedNode",
    "LinkedNodesResult",
    "LoadedGraph",
    "NeighborhoodResult",
    "SearchResult",
    "build_bm25_index",
    "get_linked_nodes",
    "get_neighborhood",
    "get_store",
    "search_nodes",
]
