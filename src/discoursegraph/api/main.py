"""FastAPI application — routes for the discourse graph API.

Endpoints:
    GET  /search                    — BM25 keyword search.
    GET  /nodes/{uid}               — Full node record.
    GET  /nodes/{uid}/links         — Direct neighbors.
    GET  /nodes/{uid}/neighborhood  — k-hop neighborhood (BFS).
    GET  /nodes/{uid}/images        — Embedded images.
    GET  /schema                    — Node types declared by the dataset.
    GET  /relation-types            — Relationship definitions.
    GET  /relationships             — Typed relationships.
    GET  /researchers               — Attribution and statistics.
    GET  /health                    — Health check.
    POST /reload                    — Reload the dataset from disk.

Usage:
    uvicorn discoursegraph.api.main:app --reload
"""

from __future__ import annotations

from typing import Literal

from fastapi import FastAPI, HTTPException, Query
from loguru import logger

from discoursegraph import __version__
from discoursegraph.api.models import (
    HealthResponse,
    LinkedNodesResponse,
    NeighborhoodResponse,
    NodeImagesResponse,
    NodeResponse,
    RelationshipsResponse,
    RelationTypesResponse,
    ResearcherResponse,
    SchemaResponse,
    SearchResponse,
)
from discoursegraph.config import get_settings
from discoursegraph.engine import catalog
from discoursegraph.engine.search import search_nodes
from discoursegraph.engine.store import LoadedGraph, get_store
from discoursegraph.engine.traversal import (
    MAX_DEPTH,
    MIN_DEPTH,
    get_linked_nodes,
    get_neighborhood,
    not_found_message,
)
from discoursegraph.graph.loader import GraphLoadError

app = FastAPI(
    title="discoursegraph",
    description=(
        "Search and traverse a discourse graph of research claims, evidence, "
        "results and questions, with typed relationships and text references."
    ),
    version=__version__,
)

DirectionParam = Literal["outgoing", "incoming", "both"]


def _graph() -> LoadedGraph:
    """Current snapshot, or 503 if the dataset cannot be loaded."""
    try:
        return get_store().current
    except GraphLoadError as exc:
        logger.error("Dataset unavailable: {}", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _health(graph: LoadedGraph) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        source=graph.source,
        loaded_at=graph.loaded_at,
        **graph.index.summary(),
    )


# ---------------------------------------------------------------------------
# GET /search
# ---------------------------------------------------------------------------


@app.get("/search", response_model=SearchResponse)
def search(
    q: str = Query(..., description="Keywords, e.g. 'membrane tension force capping'."),
    node_type: str | None = Query(None, description="Only nodes of this type tag (see /schema)."),
    creator: str | None = Query(None, description="Researcher name (substring, case-insensitive)."),
    order_by: Literal["created", "modified", "title"] | None = Query(
        None, description="Order matches by this field instead of relevance."
    ),
    sort_direction: Literal["asc", "desc"] = Query("desc"),
    limit: int | None = Query(None, ge=1, le=200),
) -> SearchResponse:
    """Rank nodes by BM25 relevance to the query keywords."""
    settings = get_settings()
    graph = _graph()

    results = search_nodes(
        graph.index,
        graph.bm25,
        q,
        node_type=node_type,
        creator=creator,
        limit=limit or settings.search_default_limit,
        order_by=order_by,
        sort_direction=sort_direction,
        snippet_length=settings.snippet_max_length,
    )
    return SearchResponse(
        query=q,
        results=[r.to_dict() for r in results],
        count=len(results),
    )


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@app.get("/nodes/{uid}", response_model=NodeResponse)
def get_node(uid: str, include_image: bool = Query(False)) -> NodeResponse:
    """Get the complete record of a node, optionally with its key image inlined."""
    detail = catalog.get_node_detail(_graph().index, uid, include_image=include_image)
    if detail is None:
        raise HTTPException(status_code=404, detail=not_found_message(uid))
    return NodeResponse(**detail)


@app.get("/nodes/{uid}/links", response_model=LinkedNodesResponse)
def get_links(uid: str, direction: DirectionParam = Query("both")) -> LinkedNodesResponse:
    """Get nodes linked to/from a node, by typed relationship or text reference."""
    result = get_linked_nodes(_graph().index, uid, direction=direction)
    if not result.found:
        raise HTTPException(status_code=404, detail=result.error)
    return LinkedNodesResponse(**result.to_dict())


@app.get("/nodes/{uid}/neighborhood", response_model=NeighborhoodResponse)
def get_node_neighborhood(
    uid: str,
    depth: int = Query(2, ge=MIN_DEPTH, le=MAX_DEPTH, description="Hops to traverse (1-4)."),
    direction: DirectionParam = Query("both"),
    node_type: str | None = Query(None, description="Only traverse nodes of this type tag."),
    relationship_type: str | None = Query(
        None, description="Only follow relationships with this label, e.g. 'Supports'."
    ),
) -> NeighborhoodResponse:
    """Get the k-hop neighborhood of a node, grouped by hop distance."""
    result = get_neighborhood(
        _graph().index,
        uid,
        depth=depth,
        direction=direction,
        node_type=node_type,
        relationship_type=relationship_type,
    )
    if not result.found:
        raise HTTPException(status_code=404, detail=result.error)
    return NeighborhoodResponse(**result.to_dict())


@app.get("/nodes/{uid}/images", response_model=NodeImagesResponse)
def get_node_images(uid: str, include_data: bool = Query(False)) -> NodeImagesResponse:
    """Get the figure/diagram images of a node, optionally inlined as base64."""
    images = catalog.get_node_images(_graph().index, uid, include_data=include_data)
    if images is None:
        raise HTTPException(status_code=404, detail=not_found_message(uid))
    return NodeImagesResponse(**images)


# ---------------------------------------------------------------------------
# Ontology + relationships
# ---------------------------------------------------------------------------


@app.get("/schema", response_model=SchemaResponse)
def get_schema() -> SchemaResponse:
    """Node types declared by the loaded dataset."""
    return SchemaResponse(**catalog.get_schema(_graph().index))


@app.get("/relation-types", response_model=RelationTypesResponse)
def get_relation_types() -> RelationTypesResponse:
    """Relationship definitions with instance counts."""
    return RelationTypesResponse(**catalog.get_relation_types(_graph().index))


@app.get("/relationships", response_model=RelationshipsResponse)
def get_relationships(
    source_uid: str | None = None,
    destination_uid: str | None = None,
    relationship_type: str | None = Query(None, description="e.g. 'Supports', 'Informs'."),
) -> RelationshipsResponse:
    """Typed relationships, filtered by endpoint and/or label."""
    relationships = catalog.get_relationships(
        _graph().index,
        source_uid=source_uid,
        destination_uid=destination_uid,
        relationship_type=relationship_type,
    )
    return RelationshipsResponse(relationships=relationships, count=len(relationships))


@app.get("/researchers", response_model=ResearcherResponse)
def get_researchers(creator: str | None = None, node_type: str | None = None) -> ResearcherResponse:
    """Contributions of one researcher, or a summary of all researchers."""
    return ResearcherResponse(
        **catalog.get_researcher_contributions(_graph().index, creator=creator, node_type=node_type)
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Health check — reports what is loaded."""
    try:
        graph = get_store().current
    except GraphLoadError as exc:
        return HealthResponse(status=f"error: {exc}", version=__version__)
    return _health(graph)


@app.post("/reload", response_model=HealthResponse)
def reload() -> HealthResponse:
    """Reload the dataset; the previous snapshot is kept if loading fails."""
    try:
        graph = get_store().reload()
    except GraphLoadError as exc:
        logger.error("Reload failed: {}", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _health(graph)
