"""Read a discourse graph JSON-LD export and parse its raw entries.

The export is a single JSON-LD document:

    {
        "@context": {...},
        "@id": "...",
        "@graph": [
            {"@id": "pages:_CLM-node", "@type": "nodeSchema", "label": "Claim", ...},
            {"@id": "pages:WRCE-4nr9", "@type": "relationDef",
             "domain": "pages:_EVD-node", "range": "pages:_CLM-node", "label": "Supports"},
            {"@type": "relationInstance", "predicate": "pages:WRCE-4nr9",
             "source": "pages:gr9lwGbRH", "destination": "pages:jU5-zu5Yd"},
            {"@id": "pages:CnOU48Obk", "@type": "...", "title": "[[RES]] - ...",
             "content": "...", "creator": "...", "created": "...", "modified": "...",
             "textRefersToNode": ["page:7oWbeD59y"]},
            ...
        ]
    }

Only a malformed envelope is an error. Individual entries are parsed
leniently: missing optional fields fall back to empty values.

Usage:
    from discoursegraph.graph.loader import read_entries
    entries = read_entries("data/discourse_graph.json")
"""

from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger

from discoursegraph.config import get_settings
from discoursegraph.graph.images import extract_image_urls
from discoursegraph.graph.models import DiscourseNode, NodeSchema

# Type tag at the start of a title: "[[RES]] - The antagonistic force..."
NODE_TYPE_PATTERN = re.compile(r"^\[\[([A-Z]{3})\]\]")
TITLE_PREFIX_PATTERN = re.compile(r"^\[\[[A-Z]{3}\]\]\s*-?\s*")

# Schema uid naming convention: "_CLM-node" -> "CLM"
SCHEMA_UID_PATTERN = re.compile(r"^_([A-Z]{3})-node$")

PAGE_ID_PATTERN = re.compile(r"^pages:(.+)$")
PAGE_REF_PATTERN = re.compile(r"^page:(.+)$")


class GraphLoadError(ValueError):
    """Raised when the dataset cannot be read as a discourse graph export."""


class EntryKind(str, Enum):
    """Discriminant of a raw ``@graph`` entry."""

    NODE = "node"
    NODE_SCHEMA = "nodeSchema"
    RELATION_DEF = "relationDef"
    RELATION_INSTANCE = "relationInstance"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


def parse_document(document: Any) -> list[dict[str, Any]]:
    """Validate a decoded JSON-LD document and return its ``@graph`` entries.

    Raises:
        GraphLoadError: If the document is not an object with a list ``@graph``.
    """
    if not isinstance(document, dict):
        raise GraphLoadError(
            f"Expected a JSON-LD object at top level, got {type(document).__name__}"
        )
    if "@graph" not in document:
        raise GraphLoadError("JSON-LD document has no '@graph' member")

    entries = document["@graph"]
    if not isinstance(entries, list):
        raise GraphLoadError(f"'@graph' must be a list, got {type(entries).__name__}")

    non_objects = sum(1 for e in entries if not isinstance(e, dict))
    if non_objects:
        raise GraphLoadError(f"'@graph' contains {non_objects} non-object entries")

    return entries


def read_entries(path: str | Path) -> list[dict[str, Any]]:
    """Read a JSON-LD export from disk and return its raw entries.

    Args:
        path: Path to the JSON-LD file.

    Returns:
        The list of raw ``@graph`` entries.

    Raises:
        GraphLoadError: If the file is missing, not JSON, or not a JSON-LD graph.
    """
    path = Path(path)
    logger.info("Reading discourse graph from {}", path)

    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except FileNotFoundError as exc:
        raise GraphLoadError(f"Dataset not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise GraphLoadError(f"Could not read dataset {path}: {exc}") from exc

    entries = parse_document(document)
    logger.debug("Read {} raw entries", len(entries))
    return entries


# ---------------------------------------------------------------------------
# Entry helpers
# ---------------------------------------------------------------------------


def extract_uid(at_id: Any) -> str:
    """Strip the ``pages:`` prefix from an ``@id`` ("pages:CnOU48Obk" -> "CnOU48Obk").

    Anything that is not a string (e.g. a nested ``{"@id": ...}`` object)
    yields "".
    """
    if not isinstance(at_id, str):
        return ""
    match = PAGE_ID_PATTERN.match(at_id)
    return match.group(1) if match else at_id


def extract_ref_uid(ref: Any) -> str:
    """Strip the ``page:`` prefix from a text reference ("page:CnOU48Obk" -> "CnOU48Obk")."""
    if not isinstance(ref, str):
        return ""
    match = PAGE_REF_PATTERN.match(ref)
    return match.group(1) if match else ref


def extract_node_type(title: str) -> str | None:
    """Return the ``[[XYZ]]`` type tag of a title, or None."""
    match = NODE_TYPE_PATTERN.match(title or "")
    return match.group(1) if match else None


def clean_title(title: str) -> str:
    """Remove the ``[[XYZ]] -`` prefix from a title."""
    return TITLE_PREFIX_PATTERN.sub("", title or "").strip()


def schema_uid_to_node_type(schema_uid: str) -> str | None:
    """Map a schema uid to its type tag ("_CLM-node" -> "CLM")."""
    match = SCHEMA_UID_PATTERN.match(schema_uid or "")
    return match.group(1) if match else None


def classify_entry(entry: dict[str, Any]) -> EntryKind:
    """Classify a raw entry by its ``@type`` discriminant."""
    entry_type = entry.get("@type")
    if entry_type == EntryKind.NODE_SCHEMA.value:
        return EntryKind.NODE_SCHEMA
    if entry_type == EntryKind.RELATION_DEF.value:
        return EntryKind.RELATION_DEF
    if entry_type == EntryKind.RELATION_INSTANCE.value:
        return EntryKind.RELATION_INSTANCE
    if "title" in entry:
        return EntryKind.NODE
    return EntryKind.OTHER


def build_node_url(uid: str) -> str:
    """Build the public page URL of a node."""
    settings = get_settings()
    return settings.node_url_template.format(graph=settings.graph_name, uid=uid)


def parse_schema(entry: dict[str, Any]) -> NodeSchema:
    """Parse a ``nodeSchema`` entry."""
    uid = extract_uid(entry.get("@id", ""))
    return NodeSchema(
        uid=uid,
        label=entry.get("label") or uid,
        node_type=schema_uid_to_node_type(uid),
    )


def parse_node(entry: dict[str, Any]) -> DiscourseNode:
    """Parse a node entry into a DiscourseNode.

    Linked uids come from the explicit ``textRefersToNode`` list; the
    content itself is not scanned for references.

    Raises:
        GraphLoadError: If the entry has no string ``@id``.
    """
    uid = extract_uid(entry.get("@id"))
    if not uid:
        raise GraphLoadError(f"Node entry without '@id': {str(entry.get('title'))[:80]!r}")

    title = entry.get("title") or ""
    content = entry.get("content") or ""
    refs = entry.get("textRefersToNode") or []

    return DiscourseNode(
        uid=uid,
        node_type=extract_node_type(title),
        title=title,
        title_clean=clean_title(title),
        content=content,
        creator=entry.get("creator") or "",
        created=entry.get("created") or "",
        modified=entry.get("modified") or "",
        linked_node_uids=tuple(extract_ref_uid(r) for r in refs if isinstance(r, str)),
        image_urls=tuple(extract_image_urls(content)),
        url=build_node_url(uid),
    )
