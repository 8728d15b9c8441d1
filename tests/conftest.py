"""Shared fixtures: small in-memory JSON-LD graphs."""

from __future__ import annotations

from typing import Any

import pytest

from discoursegraph.graph.indexer import GraphIndex, build_index

IMAGE_URL = "https://firebasestorage.googleapis.com/v0/b/lab.appspot.com/o/imgs%2Ffig1.png?alt=media"


def node_entry(uid: str, title: str, content: str = "", creator: str = "",
               created: str = "", modified: str = "",
               refs: list[str] | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "@id": f"pages:{uid}",
        "@type": "pages:node",
        "title": title,
        "content": content,
        "creator": creator,
        "created": created,
        "modified": modified or created,
    }
    if refs is not None:
        entry["textRefersToNode"] = [f"page:{r}" for r in refs]
    return entry


def schema_entry(uid: str, label: str) -> dict[str, Any]:
    return {"@id": f"pages:{uid}", "@type": "nodeSchema", "label": label}


def relation_def(uid: str, label: str, domain: str, range_: str) -> dict[str, Any]:
    return {
        "@id": f"pages:{uid}",
        "@type": "relationDef",
        "domain": f"pages:{domain}",
        "range": f"pages:{range_}",
        "label": label,
    }


def relation(predicate: str, source: str, destination: str) -> dict[str, Any]:
    return {
        "@type": "relationInstance",
        "predicate": f"pages:{predicate}",
        "source": f"pages:{source}",
        "destination": f"pages:{destination}",
    }


def graph_entries() -> list[dict[str, Any]]:
    """Four nodes, two relationship kinds, and a few deliberate anomalies.

    evd1 -Supports-> clm1, res1 -Informs-> clm1, evd1 -Supports-> ghost2
    (dangling), res1 -unknown-> flow1 (undeclared predicate).
    Text references: evd1 -> clm1, res1 -> evd1, res1 -> ghost (dangling).
    """
    return [
        schema_entry("_CLM-node", "Claim"),
        schema_entry("_EVD-node", "Evidence"),
        schema_entry("_RES-node", "Result"),
        schema_entry("flow-schema", "Flow"),
        relation_def("rel-supports", "Supports", "_EVD-node", "_CLM-node"),
        relation_def("rel-supports", "Opposes", "_EVD-node", "_CLM-node"),
        relation_def("rel-informs", "Informs", "_RES-node", "_QUE-node"),
        node_entry(
            "evd1",
            "[[EVD]] - Membrane tension slows endocytosis",
            "Micropipette aspiration raised membrane tension and slowed endocytosis.",
            creator="Matt Akamatsu",
            created="2023-01-05T10:00:00Z",
            refs=["clm1"],
        ),
        node_entry(
            "clm1",
            "[[CLM]] - Actin force overcomes membrane tension",
            f"Branched actin networks generate force against membrane tension. ![]({IMAGE_URL})",
            creator="Ana Lopez",
            created="2023-03-10T09:00:00Z",
            refs=[],
        ),
        node_entry(
            "res1",
            "[[RES]] - Capping protein titration",
            "Reducing capping protein increased filament length.",
            creator="Matt Akamatsu",
            created="2022-11-20T08:00:00Z",
            refs=["evd1", "ghost"],
        ),
        node_entry(
            "flow1",
            "Imaging workflow",
            "Steps for imaging endocytic sites.",
            creator="Ana Lopez",
            created="2024-01-01T00:00:00Z",
        ),
        relation("rel-supports", "evd1", "clm1"),
        relation("rel-informs", "res1", "clm1"),
        relation("rel-supports", "evd1", "ghost2"),
        relation("nope", "res1", "flow1"),
    ]


def chain_entries() -> list[dict[str, Any]]:
    """A -Supports-> B, and B references C in its text only."""
    return [
        schema_entry("_EVD-node", "Evidence"),
        schema_entry("_CLM-node", "Claim"),
        relation_def("rel-supports", "Supports", "_EVD-node", "_CLM-node"),
        node_entry("A", "[[EVD]] - Node A", "alpha", creator="x"),
        node_entry("B", "[[CLM]] - Node B", "beta", creator="x", refs=["C"]),
        node_entry("C", "[[CLM]] - Node C", "gamma", creator="x"),
        relation("rel-supports", "A", "B"),
    ]


@pytest.fixture
def entries() -> list[dict[str, Any]]:
    return graph_entries()


@pytest.fixture
def index() -> GraphIndex:
    return build_index(graph_entries())


@pytest.fixture
def chain_index() -> GraphIndex:
    return build_index(chain_entries())
