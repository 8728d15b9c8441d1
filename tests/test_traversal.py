"""Tests for direct-neighbor and k-hop traversal."""

from __future__ import annotations

import pytest

from conftest import node_entry, relation, relation_def
from discoursegraph.engine.traversal import (
    get_linked_nodes,
    get_neighborhood,
    iter_edges,
)
from discoursegraph.graph.indexer import GraphIndex, build_index


def _pairs(result) -> list[tuple[str, str | None]]:
    return [(n.uid, n.relationship_type) for n in result.linked_nodes]


class TestChainFixture:
    """A -Supports-> B, B references C in text only."""

    def test_direct_outgoing(self, chain_index: GraphIndex) -> None:
        result = get_linked_nodes(chain_index, "A", "outgoing")
        assert _pairs(result) == [("B", "Supports")]
        assert result.linked_nodes[0].direction == "outgoing"

    def test_neighborhood_outgoing(self, chain_index: GraphIndex) -> None:
        result = get_neighborhood(chain_index, "A", depth=2, direction="outgoing")
        assert result.uids_at(0) == ["A"]
        assert result.uids_at(1) == ["B"]
        assert result.uids_at(2) == ["C"]
        assert result.nodes_by_hop[1][0].relationship_type == "Supports"
        assert result.nodes_by_hop[2][0].relationship_type is None
        assert result.total_nodes == 3
        assert result.hop_counts == [
            {"hop": 0, "count": 1},
            {"hop": 1, "count": 1},
            {"hop": 2, "count": 1},
        ]

    def test_depth_one_stops_early(self, chain_index: GraphIndex) -> None:
        result = get_neighborhood(chain_index, "A", depth=1, direction="outgoing")
        assert len(result.nodes_by_hop) == 2
        assert result.uids_at(1) == ["B"]
        assert result.total_nodes == 2

    def test_incoming_reaches_back(self, chain_index: GraphIndex) -> None:
        result = get_neighborhood(chain_index, "C", depth=3, direction="incoming")
        assert result.uids_at(1) == ["B"]
        assert result.uids_at(2) == ["A"]
        assert result.uids_at(3) == []

    def test_relationship_filter_drops_text_references(self, chain_index: GraphIndex) -> None:
        result = get_neighborhood(
            chain_index, "A", depth=3, direction="outgoing", relationship_type="Supports"
        )
        assert result.uids_at(1) == ["B"]
        assert result.uids_at(2) == []

    def test_relationship_filter_is_case_sensitive(self, chain_index: GraphIndex) -> None:
        for label in ("SUPPORTS", "supports"):
            result = get_neighborhood(
                chain_index, "A", depth=1, direction="outgoing", relationship_type=label
            )
            assert result.uids_at(1) == []
            assert result.total_nodes == 1


class TestLinkedNodes:
    """Direct neighbors on the richer fixture."""

    def test_outgoing_typed_before_text(self, index: GraphIndex) -> None:
        result = get_linked_nodes(index, "res1", "outgoing")
        assert _pairs(result) == [("clm1", "Informs"), ("flow1", "unknown"), ("evd1", None)]
        assert result.typed_relation_count == 2
        assert result.count == 3

    def test_typed_label_kept_over_text_reference(self, index: GraphIndex) -> None:
        # evd1 both Supports clm1 and references it in text
        assert _pairs(get_linked_nodes(index, "evd1", "outgoing")) == [("clm1", "Supports")]

    def test_incoming(self, index: GraphIndex) -> None:
        result = get_linked_nodes(index, "clm1", "incoming")
        assert _pairs(result) == [("evd1", "Supports"), ("res1", "Informs")]
        assert {n.direction for n in result.linked_nodes} == {"incoming"}

    def test_incoming_text_reference(self, index: GraphIndex) -> None:
        assert _pairs(get_linked_nodes(index, "evd1", "incoming")) == [("res1", None)]

    def test_incoming_text_reference_without_typed_edge(self) -> None:
        idx = build_index([
            relation_def("r", "Supports", "x", "y"),
            node_entry("a", "A"),
            node_entry("b", "B", refs=["a"]),
            relation("r", "a", "b"),
        ])
        # Incoming to a: the only typed edge is a -> b (outgoing), b's text ref is incoming
        assert _pairs(get_linked_nodes(idx, "a", "incoming")) == [("b", None)]

    @pytest.mark.parametrize("uid", ["evd1", "clm1", "res1", "flow1"])
    def test_both_is_union_of_directions(self, index: GraphIndex, uid: str) -> None:
        out = get_linked_nodes(index, uid, "outgoing").linked_nodes
        inc = get_linked_nodes(index, uid, "incoming").linked_nodes
        both = get_linked_nodes(index, uid, "both").linked_nodes
        assert both == out + inc
        for direction in ("outgoing", "incoming"):
            uids = [n.uid for n in both if n.direction == direction]
            assert len(uids) == len(set(uids))

    def test_dangling_neighbors_omitted(self, index: GraphIndex) -> None:
        uids = [n.uid for n in get_linked_nodes(index, "evd1", "both").linked_nodes]
        assert "ghost2" not in uids
        uids = [n.uid for n in get_linked_nodes(index, "res1", "both").linked_nodes]
        assert "ghost" not in uids

    def test_not_found(self, index: GraphIndex) -> None:
        result = get_linked_nodes(index, "nope", "both")
        assert not result.found
        assert result.error == "Node not found: nope"
        assert result.to_dict() == {"error": "Node not found: nope"}

    def test_invalid_direction(self, index: GraphIndex) -> None:
        with pytest.raises(ValueError):
            get_linked_nodes(index, "evd1", "sideways")


class TestNeighborhood:
    """k-hop traversal on the richer fixture."""

    def test_outgoing(self, index: GraphIndex) -> None:
        result = get_neighborhood(index, "res1", depth=2, direction="outgoing")
        assert result.uids_at(1) == ["clm1", "flow1", "evd1"]
        assert result.uids_at(2) == []
        assert result.total_nodes == 4

    def test_both_directions(self, index: GraphIndex) -> None:
        result = get_neighborhood(index, "evd1", depth=2, direction="both")
        assert result.uids_at(1) == ["clm1", "res1"]
        assert result.uids_at(2) == ["flow1"]
        assert result.nodes_by_hop[2][0].relationship_type == "unknown"

    def test_node_type_filter_blocks_expansion(self, index: GraphIndex) -> None:
        result = get_neighborhood(index, "evd1", depth=3, direction="both", node_type="CLM")
        assert result.uids_at(1) == ["clm1"]
        assert result.uids_at(2) == []
        assert result.total_nodes == 2

    def test_relationship_filter(self, index: GraphIndex) -> None:
        result = get_neighborhood(
            index, "res1", depth=2, direction="outgoing", relationship_type="Supports"
        )
        assert result.total_nodes == 1

    def test_start_node_reported_once(self, index: GraphIndex) -> None:
        result = get_neighborhood(index, "clm1", depth=4, direction="both")
        all_uids = [n.uid for hop in result.nodes_by_hop for n in hop]
        assert all_uids.count("clm1") == 1
        assert len(all_uids) == len(set(all_uids))

    @pytest.mark.parametrize("depth", [1, 2, 3, 4])
    def test_every_hop_has_a_parent_one_hop_closer(self, index: GraphIndex, depth: int) -> None:
        result = get_neighborhood(index, "res1", depth=depth, direction="both")
        assert len(result.nodes_by_hop) == depth + 1
        for hop in range(1, depth + 1):
            previous = set(result.uids_at(hop - 1))
            for uid in result.uids_at(hop):
                parents = {n for n, _, _ in iter_edges(index, uid, "both")}
                assert parents & previous

    @pytest.mark.parametrize("depth", [0, 5, -1])
    def test_depth_out_of_range(self, index: GraphIndex, depth: int) -> None:
        with pytest.raises(ValueError):
            get_neighborhood(index, "evd1", depth=depth)

    def test_not_found(self, index: GraphIndex) -> None:
        result = get_neighborhood(index, "nope", depth=2)
        assert not result.found
        assert result.error == "Node not found: nope"
        assert result.nodes_by_hop == []
