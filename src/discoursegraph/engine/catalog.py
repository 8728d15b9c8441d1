"""Read-only lookups over the graph index.

Node details, the dataset's declared ontology, researcher attribution,
and typed relationship listings. Each function returns plain
dictionaries ready to be serialised.

Usage:
    from discoursegraph.engine.catalog import get_node_detail, get_relationships
    node = get_node_detail(index, "CnOU48Obk")
    rels = get_relationships(index, relationship_type="Supports")
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from discoursegraph.graph.images import fetch_image, fetch_images
from discoursegraph.graph.indexer import GraphIndex
from discoursegraph.graph.models import DiscourseNode, RelationInstance

UNKNOWN_TYPE = "UNKNOWN"
UNKNOWN_TITLE = "Unknown"

# Descriptions for node types common to discourse graphs. The types a
# dataset actually uses come from its own nodeSchema entries.
COMMON_NODE_TYPE_DESCRIPTIONS: dict[str, str] = {
    "RES": "Specific experimental or simulation observation with methodology context",
    "QUE": "Open research question being investigated",
    "CON": "Interpretation or synthesis drawn from multiple results",
    "EVD": "Supporting data extracted from published papers",
    "CLM": "Assertion about mechanisms or phenomena",
    "HYP": "Testable prediction with rationale",
    "ISS": "Project task or analysis to be done",
    "SRC": "Referenced publication or external resource",
    "FLW": "Process or workflow description",
    "ART": "Generated output, document, or deliverable",
    "PRJ": "Research project or initiative",
    "THY": "Theoretical framework or model",
}


def _node_summary(node: DiscourseNode) -> dict[str, Any]:
    return {
        "uid": node.uid,
        "node_type": node.node_type,
        "title": node.title_clean,
        "created": node.created,
        "image_count": node.image_count,
    }


def _endpoint(index: GraphIndex, uid: str) -> dict[str, Any]:
    node = index.get_node(uid)
    if node is None:
        return {"uid": uid, "title": UNKNOWN_TITLE, "node_type": None}
    return {"uid": node.uid, "title": node.title_clean, "node_type": node.node_type}


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


def get_node_detail(
    index: GraphIndex, uid: str, *, include_image: bool = False
) -> dict[str, Any] | None:
    """Get the complete record of a node.

    Args:
        index: Graph index.
        uid: Node uid.
        include_image: Also fetch the key image (the first one) and include
            it base64-encoded. Left as None if the fetch fails.

    Returns:
        Dictionary with every node field, or None if not found.
    """
    node = index.get_node(uid)
    if node is None:
        return None

    key_image = node.image_urls[0] if node.image_urls else None
    detail: dict[str, Any] = {
        "uid": node.uid,
        "node_type": node.node_type,
        "title": node.title_clean,
        "creator": node.creator,
        "created": node.created,
        "modified": node.modified,
        "content": node.content,
        "linked_nodes": list(node.linked_node_uids),
        "image_urls": list(node.image_urls),
        "image_count": node.image_count,
        "url": node.url,
        "key_image": key_image,
    }
    if include_image:
        image = fetch_image(key_image) if key_image else None
        detail["key_image_data"] = (
            {"url": image.url, "mime_type": image.mime_type, "data": image.data} if image else None
        )
    return detail


def get_node_images(index: GraphIndex, uid: str, *, include_data: bool = False) -> dict | None:
    """Get the images embedded in a node.

    Args:
        index: Graph index.
        uid: Node uid.
        include_data: Also fetch each image and include it base64-encoded.
            Images that cannot be fetched are left out of ``images``.

    Returns:
        Dictionary with image URLs (and data), or None if not found.
    """
    node = index.get_node(uid)
    if node is None:
        return None

    result: dict[str, Any] = {
        "uid": node.uid,
        "title": node.title_clean,
        "creator": node.creator,
        "image_count": node.image_count,
        "image_urls": list(node.image_urls),
        "key_image": node.image_urls[0] if node.image_urls else None,
    }
    if include_data:
        result["images"] = [
            {"url": img.url, "mime_type": img.mime_type, "data": img.data}
            for img in fetch_images(list(node.image_urls))
        ]
    return result


# ---------------------------------------------------------------------------
# Ontology
# ---------------------------------------------------------------------------


def get_schema(index: GraphIndex) -> dict[str, Any]:
    """Describe the node types declared by the dataset.

    Schemas without a type tag are keyed by their label.
    """
    node_types: dict[str, dict[str, str]] = {}
    for uid, schema in index.node_schemas.items():
        key = schema.node_type or schema.label
        description = COMMON_NODE_TYPE_DESCRIPTIONS.get(
            key, f"{schema.label} node in the discourse graph"
        )
        node_types[key] = {"label": schema.label, "description": description, "uid": uid}

    return {"node_types": node_types, "total_schemas": len(index.node_schemas)}


def get_relation_types(index: GraphIndex) -> dict[str, Any]:
    """List relationship definitions with their instance counts."""
    counts = Counter(rel.label for rel in index.all_relations)

    relation_types = [
        {
            "uid": rd.uid,
            "label": rd.label,
            "domain": rd.domain_label,
            "range": rd.range_label,
            "description": rd.description,
            "instance_count": counts.get(rd.label, 0),
        }
        for rd in index.relation_defs.values()
    ]
    return {
        "relation_types": relation_types,
        "count": len(relation_types),
        "total_relationships": len(index.all_relations),
    }


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


def get_relationships(
    index: GraphIndex,
    source_uid: str | None = None,
    destination_uid: str | None = None,
    relationship_type: str | None = None,
) -> list[dict[str, Any]]:
    """Query typed relationships.

    Args:
        index: Graph index.
        source_uid: Only relationships from this node.
        destination_uid: Only relationships to this node.
        relationship_type: Only relationships with this label (case-insensitive).

    Returns:
        Relationships with both endpoints resolved; endpoints that are not
        loaded nodes are reported with title "Unknown".
    """
    relations: tuple[RelationInstance, ...] | list[RelationInstance]
    if source_uid:
        relations = index.relations_by_source.get(source_uid, ())
    elif destination_uid:
        relations = index.relations_by_destination.get(destination_uid, ())
    else:
        relations = index.all_relations

    if source_uid and destination_uid:
        relations = [r for r in relations if r.destination_uid == destination_uid]
    if relationship_type:
        wanted = relationship_type.lower()
        relations = [r for r in relations if r.label.lower() == wanted]

    return [
        {
            "source": _endpoint(index, r.source_uid),
            "destination": _endpoint(index, r.destination_uid),
            "relationship_type": r.label,
            "predicate_uid": r.predicate_uid,
        }
        for r in relations
    ]


# ---------------------------------------------------------------------------
# Researchers
# ---------------------------------------------------------------------------


def find_creator_nodes(index: GraphIndex, creator: str) -> tuple[DiscourseNode, ...]:
    """Nodes of a creator: exact name first, else first substring match."""
    nodes = index.nodes_by_creator.get(creator)
    if nodes:
        return nodes

    wanted = creator.lower()
    for name, creator_nodes in index.nodes_by_creator.items():
        if wanted in name.lower():
            return creator_nodes
    return ()


def get_researcher_contributions(
    index: GraphIndex, creator: str | None = None, node_type: str | None = None
) -> dict[str, Any]:
    """List one researcher's contributions, or summarise all researchers.

    Args:
        index: Graph index.
        creator: Researcher name (exact, else case-insensitive substring).
        node_type: Only count nodes of this type tag.

    Returns:
        ``{"creator", "contributions", "count"}`` for one researcher, or
        ``{"researchers": [...]}`` sorted by contribution count.
    """
    if creator:
        nodes = find_creator_nodes(index, creator)
        if node_type:
            nodes = tuple(n for n in nodes if n.node_type == node_type)
        return {
            "creator": creator,
            "contributions": [_node_summary(n) for n in nodes],
            "count": len(nodes),
        }

    researchers = []
    for name, nodes in index.nodes_by_creator.items():
        if node_type:
            nodes = tuple(n for n in nodes if n.node_type == node_type)
        if not nodes:
            continue
        by_type = Counter(n.node_type or UNKNOWN_TYPE for n in nodes)
        researchers.append({"creator": name, "total_nodes": len(nodes), "by_type": dict(by_type)})

    researchers.sort(key=lambda r: r["total_nodes"], reverse=True)
    return {"researchers": researchers}
