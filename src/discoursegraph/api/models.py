"""Pydantic models for the FastAPI layer.

Defines response schemas for the REST API. Query parameters are
declared on the routes themselves.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class SearchHit(BaseModel):
    """A single ranked search result."""

    uid: str
    node_type: str | None = None
    title: str = ""
    creator: str = ""
    created: str = ""
    snippet: str = ""
    image_count: int = 0
    score: float = Field(0.0, description="BM25 relevance, rounded to 2 decimals.")


class SearchResponse(BaseModel):
    """Response for GET /search."""

    query: str
    results: list[SearchHit] = Field(default_factory=list)
    count: int = 0


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class ImageInfo(BaseModel):
    """A fetched image, base64-encoded."""

    url: str
    mime_type: str = "image/png"
    data: str = ""


class NodeResponse(BaseModel):
    """Response for GET /nodes/{uid}."""

    uid: str
    node_type: str | None = None
    title: str = ""
    creator: str = ""
    created: str = ""
    modified: str = ""
    content: str = ""
    linked_nodes: list[str] = Field(default_factory=list)
    image_urls: list[str] = Field(default_factory=list)
    image_count: int = 0
    url: str = ""
    key_image: str | None = Field(None, description="First (primary) image URL.")
    key_image_data: ImageInfo | None = None


class NodeImagesResponse(BaseModel):
    """Response for GET /nodes/{uid}/images."""

    uid: str
    title: str = ""
    creator: str = ""
    image_count: int = 0
    image_urls: list[str] = Field(default_factory=list)
    key_image: str | None = Field(None, description="First (primary) image URL.")
    images: list[ImageInfo] | None = None


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


class LinkedNodeInfo(BaseModel):
    """A neighbor node and the edge that reached it."""

    uid: str
    node_type: str | None = None
    title: str = ""
    creator: str = ""
    direction: str | None = None
    relationship_type: str | None = Field(
        None, description="Relationship label; null for a text reference."
    )


class LinkedNodesResponse(BaseModel):
    """Response for GET /nodes/{uid}/links."""

    source_uid: str
    source_title: str = ""
    linked_nodes: list[LinkedNodeInfo] = Field(default_factory=list)
    count: int = 0
    typed_relation_count: int = 0


class HopCount(BaseModel):
    hop: int
    count: int


class NeighborhoodResponse(BaseModel):
    """Response for GET /nodes/{uid}/neighborhood."""

    start_uid: str
    start_title: str = ""
    depth: int
    direction: str
    total_nodes: int = 0
    hop_counts: list[HopCount] = Field(default_factory=list)
    nodes_by_hop: list[list[LinkedNodeInfo]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Ontology + relationships
# ---------------------------------------------------------------------------


class NodeTypeInfo(BaseModel):
    label: str
    description: str = ""
    uid: str = ""


class SchemaResponse(BaseModel):
    """Response for GET /schema."""

    node_types: dict[str, NodeTypeInfo] = Field(default_factory=dict)
    total_schemas: int = 0


class RelationTypeInfo(BaseModel):
    uid: str
    label: str
    domain: str = ""
    range: str = ""
    description: str = ""
    instance_count: int = 0


class RelationTypesResponse(BaseModel):
    """Response for GET /relation-types."""

    relation_types: list[RelationTypeInfo] = Field(default_factory=list)
    count: int = 0
    total_relationships: int = 0


class Endpoint(BaseModel):
    uid: str
    title: str = ""
    node_type: str | None = None


class RelationshipInfo(BaseModel):
    source: Endpoint
    destination: Endpoint
    relationship_type: str
    predicate_uid: str = ""


class RelationshipsResponse(BaseModel):
    """Response for GET /relationships."""

    relationships: list[RelationshipInfo] = Field(default_factory=list)
    count: int = 0


# ---------------------------------------------------------------------------
# Researchers
# ---------------------------------------------------------------------------


class Contribution(BaseModel):
    uid: str
    node_type: str | None = None
    title: str = ""
    created: str = ""
    image_count: int = 0


class ResearcherSummary(BaseModel):
    creator: str
    total_nodes: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)


class ResearcherResponse(BaseModel):
    """Response for GET /researchers.

    ``contributions`` is set when a creator was requested, ``researchers``
    otherwise.
    """

    creator: str | None = None
    contributions: list[Contribution] | None = None
    count: int | None = None
    researchers: list[ResearcherSummary] | None = None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response for GET /health and POST /reload."""

    status: str = "ok"
    version: str = ""
    source: str = ""
    loaded_at: str = ""
    nodes: int = 0
    relations: int = 0
    relation_defs: int = 0
    node_schemas: int = 0
    creators: int = 0
