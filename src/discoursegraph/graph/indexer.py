"""Build the cross-referenced discourse graph index.

Indexing runs in two passes over the raw entries:

    Pass 1  node schemas + relation definitions (first occurrence wins),
            then resolve each definition's domain/range labels.
    Pass 2  nodes (last occurrence of a uid wins) + relation instances,
            whose labels are resolved from the definitions of pass 1.

Per-entry anomalies never fail the build: a missing predicate yields the
"unknown" label, an unresolvable schema falls back to its raw uid, and
dangling endpoints are kept as-is for the query layer to treat as
unknown nodes.

Usage:
    uv run python -m discoursegraph.graph.indexer
    uv run python -m discoursegraph.graph.indexer data/other_graph.json
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from discoursegraph.config import get_settings
from discoursegraph.graph.loader import (
    EntryKind,
    GraphLoadError,
    classify_entry,
    extract_uid,
    parse_node,
    parse_schema,
    read_entries,
)
from discoursegraph.graph.models import (
    UNKNOWN_RELATION_LABEL,
    DiscourseNode,
    NodeSchema,
    RelationDef,
    RelationInstance,
)


@dataclass(frozen=True)
class GraphIndex:
    """Immutable lookup structures over one loaded dataset.

    Groupings map to tuples; nothing here is mutated after
    :func:`build_index` returns.
    """

    nodes_by_uid: dict[str, DiscourseNode] = field(default_factory=dict)
    nodes_by_creator: dict[str, tuple[DiscourseNode, ...]] = field(default_factory=dict)
    all_creators: tuple[str, ...] = ()
    node_schemas: dict[str, NodeSchema] = field(default_factory=dict)
    relation_defs: dict[str, RelationDef] = field(default_factory=dict)
    relations_by_source: dict[str, tuple[RelationInstance, ...]] = field(default_factory=dict)
    relations_by_destination: dict[str, tuple[RelationInstance, ...]] = field(
        default_factory=dict
    )
    all_relations: tuple[RelationInstance, ...] = ()
    text_referrers: dict[str, tuple[str, ...]] = field(default_factory=dict)
    """Reverse text-reference index: uid -> uids of other nodes referencing it."""

    @property
    def all_nodes(self) -> list[DiscourseNode]:
        """All nodes in load order."""
        return list(self.nodes_by_uid.values())

    @property
    def node_types(self) -> set[str]:
        """Type tags declared by the dataset's schemas."""
        return {s.node_type for s in self.node_schemas.values() if s.node_type}

    def get_node(self, uid: str) -> DiscourseNode | None:
        return self.nodes_by_uid.get(uid)

    def summary(self) -> dict[str, int]:
        """Entity counts, for logging and health checks."""
        return {
            "nodes": len(self.nodes_by_uid),
            "relations": len(self.all_relations),
            "relation_defs": len(self.relation_defs),
            "node_schemas": len(self.node_schemas),
            "creators": len(self.all_creators),
        }


# ---------------------------------------------------------------------------
# Pass 1: schemas and relation definitions
# ---------------------------------------------------------------------------


def _collect_definitions(
    entries: list[dict[str, Any]],
) -> tuple[dict[str, NodeSchema], dict[str, RelationDef]]:
    """Register node schemas and relation definitions, then resolve labels."""
    schemas: dict[str, NodeSchema] = {}
    raw_defs: dict[str, RelationDef] = {}

    for entry in entries:
        kind = classify_entry(entry)
        if kind is EntryKind.NODE_SCHEMA:
            schema = parse_schema(entry)
            schemas[schema.uid] = schema
        elif kind is EntryKind.RELATION_DEF:
            uid = extract_uid(entry.get("@id", ""))
            # The same @id can appear more than once in an export
            if uid in raw_defs:
                logger.debug("Ignoring duplicate relation definition {}", uid)
                continue
            raw_defs[uid] = RelationDef(
                uid=uid,
                label=entry.get("label") or UNKNOWN_RELATION_LABEL,
                domain_uid=extract_uid(entry.get("domain", "")),
                range_uid=extract_uid(entry.get("range", "")),
            )

    relation_defs: dict[str, RelationDef] = {}
    for uid, rel_def in raw_defs.items():
        domain = schemas.get(rel_def.domain_uid)
        range_ = schemas.get(rel_def.range_uid)
        if domain is None or range_ is None:
            logger.debug(
                "Relation definition {} ({}) has unresolved endpoint schema(s)",
                uid,
                rel_def.label,
            )
        relation_defs[uid] = RelationDef(
            uid=rel_def.uid,
            label=rel_def.label,
            domain_uid=rel_def.domain_uid,
            range_uid=rel_def.range_uid,
            domain_label=domain.label if domain else rel_def.domain_uid,
            range_label=range_.label if range_ else rel_def.range_uid,
        )

    return schemas, relation_defs


# ---------------------------------------------------------------------------
# Pass 2: nodes and relation instances
# ---------------------------------------------------------------------------


def _group(items: Iterable[tuple[str, Any]]) -> dict[str, tuple[Any, ...]]:
    """Group (key, value) pairs into key -> tuple, preserving order."""
    grouped: dict[str, list[Any]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)
    return {key: tuple(values) for key, values in grouped.items()}


def build_index(entries: list[dict[str, Any]]) -> GraphIndex:
    """Build a GraphIndex from raw ``@graph`` entries.

    Args:
        entries: Raw entries, as returned by :func:`read_entries`.

    Returns:
        The fully cross-referenced, immutable index.

    Raises:
        GraphLoadError: If a node entry has no ``@id``.
    """
    node_schemas, relation_defs = _collect_definitions(entries)

    nodes_by_uid: dict[str, DiscourseNode] = {}
    relations: list[RelationInstance] = []
    duplicates = 0
    missing_predicates = 0

    for entry in entries:
        kind = classify_entry(entry)
        if kind is EntryKind.NODE:
            node = parse_node(entry)
            if node.uid in nodes_by_uid:
                duplicates += 1
                logger.warning("Duplicate node uid {} — keeping the later entry", node.uid)
            nodes_by_uid[node.uid] = node
        elif kind is EntryKind.RELATION_INSTANCE:
            predicate_uid = extract_uid(entry.get("predicate", ""))
            rel_def = relation_defs.get(predicate_uid)
            if rel_def is None:
                missing_predicates += 1
            relations.append(
                RelationInstance(
                    predicate_uid=predicate_uid,
                    source_uid=extract_uid(entry.get("source", "")),
                    destination_uid=extract_uid(entry.get("destination", "")),
                    label=rel_def.label if rel_def else UNKNOWN_RELATION_LABEL,
                )
            )

    if missing_predicates:
        logger.warning(
            "{} relation instance(s) reference an undeclared predicate", missing_predicates
        )

    # Creator groups and text referrers are derived from the final node set,
    # so an overwritten duplicate leaves no trace in them.
    nodes = list(nodes_by_uid.values())
    nodes_by_creator = _group((n.creator, n) for n in nodes)
    text_referrers = _group(
        (ref, n.uid)
        for n in nodes
        for ref in dict.fromkeys(n.linked_node_uids)
        if ref != n.uid
    )

    index = GraphIndex(
        nodes_by_uid=nodes_by_uid,
        nodes_by_creator=nodes_by_creator,
        all_creators=tuple(sorted(nodes_by_creator)),
        node_schemas=node_schemas,
        relation_defs=relation_defs,
        relations_by_source=_group((r.source_uid, r) for r in relations),
        relations_by_destination=_group((r.destination_uid, r) for r in relations),
        all_relations=tuple(relations),
        text_referrers=text_referrers,
    )

    logger.info(
        "Indexed {} nodes, {} typed relationships, {} relationship types ({} duplicate uids)",
        len(nodes_by_uid),
        len(relations),
        len(relation_defs),
        duplicates,
    )
    return index


def load_index(path: str | Path) -> GraphIndex:
    """Read a JSON-LD export and build its index."""
    return build_index(read_entries(path))


def main() -> None:
    """CLI entry point: load a dataset and report what was indexed."""
    import argparse

    settings = get_settings()

    parser = argparse.ArgumentParser(description="Index a discourse graph export")
    parser.add_argument(
        "path", nargs="?", type=Path, default=settings.data_path, help="JSON-LD file"
    )
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    try:
        index = load_index(args.path)
    except GraphLoadError as exc:
        logger.error("Failed to load data: {}", exc)
        sys.exit(1)

    logger.info("Summary: {}", index.summary())
    logger.info("Researchers: {}", ", ".join(index.all_creators))


if __name__ == "__main__":
    main()
