"""Process-wide holder for the loaded discourse graph.

A snapshot bundles the graph index with its BM25 statistics; both are
built together, eagerly, before the snapshot becomes visible. Reloading
builds a complete new snapshot and then swaps the reference, so a
request that grabbed the previous snapshot keeps reading a consistent
index until it finishes.

Usage:
    from discoursegraph.engine.store import get_store
    graph = get_store().current
    results = search_nodes(graph.index, graph.bm25, "actin")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

from loguru import logger

from discoursegraph.config import get_settings
from discoursegraph.engine.search import BM25Index, build_bm25_index
from discoursegraph.graph.indexer import GraphIndex, build_index
from discoursegraph.graph.loader import read_entries


@dataclass(frozen=True)
class LoadedGraph:
    """One immutable dataset snapshot."""

    index: GraphIndex
    bm25: BM25Index
    source: str = ""
    loaded_at: str = ""


def build_snapshot(entries: list[dict[str, Any]], source: str = "") -> LoadedGraph:
    """Index raw entries and compute their BM25 statistics."""
    index = build_index(entries)
    return LoadedGraph(
        index=index,
        bm25=build_bm25_index(index),
        source=source,
        loaded_at=datetime.now(timezone.utc).isoformat(),
    )


class GraphStore:
    """Holds the current snapshot and swaps it atomically on reload."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._graph: LoadedGraph | None = None

    @property
    def path(self) -> Path:
        return self._path or get_settings().data_path

    @property
    def is_loaded(self) -> bool:
        return self._graph is not None

    @property
    def current(self) -> LoadedGraph:
        """The current snapshot, loading the dataset on first access."""
        graph = self._graph
        if graph is not None:
            return graph

        with self._lock:
            # Another caller may have finished loading while we waited
            if self._graph is None:
                self._graph = self._load(self.path)
            return self._graph

    def reload(self, path: str | Path | None = None) -> LoadedGraph:
        """Rebuild from disk and swap in the new snapshot.

        The previous snapshot and path stay in place if loading fails.

        Raises:
            GraphLoadError: If the dataset cannot be read.
        """
        source = Path(path) if path is not None else self.path
        graph = self._load(source)
        with self._lock:
            self._path = source
            self._graph = graph
        return graph

    def set_entries(self, entries: list[dict[str, Any]], source: str = "<memory>") -> LoadedGraph:
        """Swap in a snapshot built from already-parsed entries."""
        graph = build_snapshot(entries, source=source)
        with self._lock:
            self._graph = graph
        return graph

    @staticmethod
    def _load(path: Path) -> LoadedGraph:
        graph = build_snapshot(read_entries(path), source=str(path))
        logger.info("Loaded discourse graph: {}", graph.index.summary())
        return graph


@lru_cache
def get_store() -> GraphStore:
    """Return the process-wide graph store."""
    return GraphStore()
