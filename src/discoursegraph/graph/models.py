"""Entity model for the discourse graph.

Canonical in-memory shapes produced by the indexer:

    DiscourseNode      content-bearing vertex (claim, result, question, ...)
    NodeSchema         declared node category
    RelationDef        declared relationship kind (e.g. "Supports")
    RelationInstance   one typed edge between two node uids

All entities are frozen once built; the index never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass

# Label used when a relation instance references an undeclared predicate
UNKNOWN_RELATION_LABEL = "unknown"


@dataclass(frozen=True)
class DiscourseNode:
    """A single node of the discourse graph."""

    uid: str
    node_type: str | None
    """Category tag from the ``[[XYZ]]`` title prefix, or None."""

    title: str
    title_clean: str
    """Title with the type prefix stripped."""

    content: str = ""
    creator: str = ""
    created: str = ""
    """ISO-8601 timestamp, kept as an opaque sortable string."""

    modified: str = ""
    linked_node_uids: tuple[str, ...] = ()
    """UIDs explicitly referenced from the content (may dangle)."""

    image_urls: tuple[str, ...] = ()
    url: str = ""

    @property
    def image_count(self) -> int:
        """Number of embedded images."""
        return len(self.image_urls)


@dataclass(frozen=True)
class NodeSchema:
    """Declared node category."""

    uid: str
    label: str
    node_type: str | None = None
    """Tag derived from the schema uid (``_CLM-node`` -> ``CLM``)."""


@dataclass(frozen=True)
class RelationDef:
    """Declared relationship kind with resolved endpoint labels."""

    uid: str
    label: str
    domain_uid: str
    range_uid: str
    domain_label: str = ""
    range_label: str = ""

    @property
    def description(self) -> str:
        return f"{self.domain_label} {self.label} {self.range_label}"


@dataclass(frozen=True)
class RelationInstance:
    """One typed edge, with its predicate label denormalized at load time."""

    predicate_uid: str
    source_uid: str
    destination_uid: str
    label: str = UNKNOWN_RELATION_LABEL

