"""Graph traversal: direct neighbors and k-hop neighborhoods.

Two kinds of edges connect nodes:

    typed relationships   RelationInstance (source -> destination, labelled)
    text references       node.linked_node_uids (untyped)

Both are merged per direction. When the same neighbor is reachable
through several edges, the first one seen wins: typed relationships are
visited before text references, so a typed label is never replaced by
an unlabelled text reference.

A uid that is not in the index produces a result with ``found=False``
rather than an exception.

Usage:
    from discoursegraph.engine.traversal import get_linked_nodes, get_neighborhood
    linked = get_linked_nodes(index, "CnOU48Obk", direction="outgoing")
    hood = get_neighborhood(index, "CnOU48Obk", depth=2)
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from loguru import logger

from discoursegraph.graph.indexer import GraphIndex
from discoursegraph.graph.models import DiscourseNode

Direction = Literal["outgoing", "incoming", "both"]
DIRECTIONS: tuple[str, ...] = ("outgoing", "incoming", "both")

MIN_DEPTH = 1
MAX_DEPTH = 4


def not_found_message(uid: str) -> str:
    return f"Node not found: {uid}"


@dataclass
class LinkedNode:
    """A node reached from another node, with the edge that reached it."""

    uid: str
    node_type: str | None
    title: str
    creator: str
    direction: str | None = None
    relationship_type: str | None = None
    """Relationship label, or None for a text reference."""

    @classmethod
    def from_node(cls, node: DiscourseNode, direction: str | None = None,
                  relationship_type: str | None = None) -> LinkedNode:
        return cls(
            uid=node.uid,
            node_type=node.node_type,
            title=node.title_clean,
            creator=node.creator,
            direction=direction,
            relationship_type=relationship_type,
        )


@dataclass
class LinkedNodesResult:
    """Direct neighbors of a node."""

    source_uid: str
    source_title: str = ""
    linked_nodes: list[LinkedNode] = field(default_factory=list)
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.error is None

    @property
    def count(self) -> int:
        return len(self.linked_nodes)

    @property
    def typed_relation_count(self) -> int:
        return sum(1 for n in self.linked_nodes if n.relationship_type)

    def to_dict(self) -> dict[str, Any]:
        if not self.found:
            return {"error": self.error}
        return {
            "source_uid": self.source_uid,
            "source_title": self.source_title,
            "linked_nodes": [asdict(n) for n in self.linked_nodes],
            "count": self.count,
            "typed_relation_count": self.typed_relation_count,
        }


@dataclass
class NeighborhoodResult:
    """Nodes grouped by the hop distance at which they were first reached."""

    start_uid: str
    start_title: str = ""
    depth: int = 0
    direction: str = "both"
    nodes_by_hop: list[list[LinkedNode]] = field(default_factory=list)
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.error is None

    @property
    def hop_counts(self) -> list[dict[str, int]]:
        return [{"hop": hop, "count": len(nodes)} for hop, nodes in enumerate(self.nodes_by_hop)]

    @property
    def total_nodes(self) -> int:
        """Nodes across all hops, the start node included."""
        return sum(len(nodes) for nodes in self.nodes_by_hop)

    def uids_at(self, hop: int) -> list[str]:
        return [n.uid for n in self.nodes_by_hop[hop]]

    def to_dict(self) -> dict[str, Any]:
        if not self.found:
            return {"error": self.error}
        return {
            "start_uid": self.start_uid,
            "start_title": self.start_title,
            "depth": self.depth,
            "direction": self.direction,
            "total_nodes": self.total_nodes,
            "hop_counts": self.hop_counts,
            "nodes_by_hop": [[asdict(n) for n in hop] for hop in self.nodes_by_hop],
        }


# ---------------------------------------------------------------------------
# Edge collection
# ---------------------------------------------------------------------------


def _validate_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")


def _matches_label(label: str, wanted: str | None) -> bool:
    return wanted is None or label == wanted


def iter_edges(
    index: GraphIndex,
    uid: str,
    direction: str,
    relationship_type: str | None = None,
) -> Iterator[tuple[str, str, str | None]]:
    """Yield ``(neighbor_uid, direction, label)`` for every edge at ``uid``.

    Outgoing edges come before incoming ones; within a direction typed
    relationships come before text references. While a relationship
    filter is set, text references are skipped since they carry no label.
    Neighbors may be dangling uids; callers decide what to do with them.
    """
    node = index.get_node(uid)

    if direction in ("outgoing", "both"):
        for rel in index.relations_by_source.get(uid, ()):
            if _matches_label(rel.label, relationship_type):
                yield rel.destination_uid, "outgoing", rel.label
        if relationship_type is None and node is not None:
            for linked_uid in node.linked_node_uids:
                yield linked_uid, "outgoing", None

    if direction in ("incoming", "both"):
        for rel in index.relations_by_destination.get(uid, ()):
            if _matches_label(rel.label, relationship_type):
                yield rel.source_uid, "incoming", rel.label
        if relationship_type is None:
            for referrer_uid in index.text_referrers.get(uid, ()):
                yield referrer_uid, "incoming", None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_linked_nodes(index: GraphIndex, uid: str, direction: Direction = "both") -> LinkedNodesResult:
    """Return the direct neighbors of a node.

    Each neighbor appears at most once per direction, annotated with the
    label of the first edge that reached it. Neighbors that are not
    loaded nodes are omitted.

    Args:
        index: Graph index.
        uid: Node uid.
        direction: "outgoing", "incoming" or "both".

    Returns:
        LinkedNodesResult (with ``error`` set if the node does not exist).
    """
    _validate_direction(direction)

    source = index.get_node(uid)
    if source is None:
        return LinkedNodesResult(source_uid=uid, error=not_found_message(uid))

    linked: list[LinkedNode] = []
    seen: set[tuple[str, str]] = set()

    for neighbor_uid, edge_direction, label in iter_edges(index, uid, direction):
        key = (edge_direction, neighbor_uid)
        if key in seen:
            continue
        neighbor = index.get_node(neighbor_uid)
        if neighbor is None:
            continue
        seen.add(key)
        linked.append(LinkedNode.from_node(neighbor, edge_direction, label))

    return LinkedNodesResult(source_uid=uid, source_title=source.title_clean, linked_nodes=linked)


def get_neighborhood(
    index: GraphIndex,
    uid: str,
    depth: int = 2,
    direction: Direction = "both",
    node_type: str | None = None,
    relationship_type: str | None = None,
) -> NeighborhoodResult:
    """Breadth-first k-hop neighborhood of a node.

    A node is reported at the hop where it is first discovered and is
    never revisited. Nodes rejected by ``node_type`` are neither reported
    nor expanded, as if absent from the graph.

    Args:
        index: Graph index.
        uid: Start node uid (reported at hop 0).
        depth: Maximum hop distance, 1 to 4.
        direction: "outgoing", "incoming" or "both".
        node_type: Only traverse through nodes of this type tag.
        relationship_type: Only follow typed relationships with exactly this
            label; text references are then ignored.

    Returns:
        NeighborhoodResult (with ``error`` set if the start node does not exist).

    Raises:
        ValueError: If ``depth`` or ``direction`` is out of range.
    """
    _validate_direction(direction)
    if not MIN_DEPTH <= depth <= MAX_DEPTH:
        raise ValueError(f"depth must be between {MIN_DEPTH} and {MAX_DEPTH}, got {depth}")

    start = index.get_node(uid)
    if start is None:
        return NeighborhoodResult(
            start_uid=uid, depth=depth, direction=direction, error=not_found_message(uid)
        )

    nodes_by_hop: list[list[LinkedNode]] = [[] for _ in range(depth + 1)]
    nodes_by_hop[0].append(LinkedNode.from_node(start))

    visited: dict[str, int] = {uid: 0}
    queue: deque[tuple[str, int]] = deque([(uid, 0)])

    while queue:
        current_uid, current_depth = queue.popleft()
        if current_depth >= depth:
            continue

        # First edge per neighbor wins within this expansion step
        step: dict[str, str | None] = {}
        for neighbor_uid, _, label in iter_edges(index, current_uid, direction, relationship_type):
            step.setdefault(neighbor_uid, label)

        for neighbor_uid, label in step.items():
            if neighbor_uid in visited:
                continue
            neighbor = index.get_node(neighbor_uid)
            if neighbor is None:
                continue
            if node_type and neighbor.node_type != node_type:
                continue

            next_depth = current_depth + 1
            visited[neighbor_uid] = next_depth
            queue.append((neighbor_uid, next_depth))
            nodes_by_hop[next_depth].append(LinkedNode.from_node(neighbor, relationship_type=label))

    result = NeighborhoodResult(
        start_uid=uid,
        start_title=start.title_clean,
        depth=depth,
        direction=direction,
        nodes_by_hop=nodes_by_hop,
    )
    logger.debug(
        "Neighborhood of {} (depth={}, direction={}): {} nodes",
        uid,
        depth,
        direction,
        result.total_nodes,
    )
    return result
