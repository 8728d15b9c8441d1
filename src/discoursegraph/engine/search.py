"""BM25 keyword search over discourse nodes.

Each node is one document made of its content and title tokens. Scoring
is Okapi BM25 plus a flat bonus for query terms that occur in the title:

    idf     = ln((N - df + 0.5) / (df + 0.5) + 1)
    tfScore = tf * (K1 + 1) / (tf + K1 * (1 - B + B * docLen / avgDocLen))
    score   = sum(idf * tfScore  [+ idf * TITLE_BOOST if term in title])

The term statistics are built once per dataset (see ``engine.store``)
and only read afterwards.

Usage:
    from discoursegraph.engine.search import build_bm25_index, search_nodes
    bm25 = build_bm25_index(index)
    results = search_nodes(index, bm25, "membrane tension", limit=5)
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from loguru import logger

from discoursegraph.graph.indexer import GraphIndex
from discoursegraph.graph.models import DiscourseNode

# BM25 parameters
K1 = 1.5  # term frequency saturation
B = 0.75  # length normalization
TITLE_BOOST = 2.0  # flat bonus per query term found in the title

DEFAULT_SNIPPET_LENGTH = 200

OrderBy = Literal["created", "modified", "title"]
SortDirection = Literal["asc", "desc"]

_NON_WORD = re.compile(r"[^\w\s]")
_FRONT_MATTER = re.compile(r"^---[\s\S]*?---\n?")
_IMAGE_MARKUP = re.compile(r"!\[.*?\]\(.*?\)")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DocStats:
    """Term statistics of one document."""

    terms: Counter[str]
    length: int
    title_terms: Counter[str]
    title_length: int


@dataclass(frozen=True)
class BM25Index:
    """Corpus-wide term statistics."""

    doc_freq: dict[str, int] = field(default_factory=dict)
    """term -> number of documents containing it."""

    docs: dict[str, DocStats] = field(default_factory=dict)
    """node uid -> document statistics."""

    avg_doc_length: float = 0.0
    num_docs: int = 0


@dataclass
class SearchResult:
    """One ranked search hit."""

    uid: str
    node_type: str | None
    title: str
    creator: str
    created: str
    snippet: str
    image_count: int = 0
    score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Text processing
# ---------------------------------------------------------------------------


def tokenize(text: str) -> list[str]:
    """Lower-case, replace non-word characters, split, drop 1-char tokens."""
    cleaned = _NON_WORD.sub(" ", (text or "").lower())
    return [token for token in cleaned.split() if len(token) > 1]


def create_snippet(content: str, max_length: int = DEFAULT_SNIPPET_LENGTH) -> str:
    """Build a short display snippet from node content.

    Drops a leading front-matter block, replaces markdown images with
    ``[image]``, collapses whitespace and truncates with ``...``.
    """
    text = _FRONT_MATTER.sub("", content or "", count=1).strip()
    text = _IMAGE_MARKUP.sub("[image]", text)
    text = _WHITESPACE.sub(" ", text)

    if len(text) > max_length:
        text = text[:max_length].strip() + "..."
    return text


# ---------------------------------------------------------------------------
# Index + scoring
# ---------------------------------------------------------------------------


def build_bm25_index(index: GraphIndex) -> BM25Index:
    """Compute term statistics for every node of a graph index."""
    doc_freq: Counter[str] = Counter()
    docs: dict[str, DocStats] = {}
    total_length = 0

    for node in index.nodes_by_uid.values():
        title_tokens = tokenize(node.title)
        all_tokens = tokenize(node.content) + title_tokens

        doc_freq.update(set(all_tokens))
        docs[node.uid] = DocStats(
            terms=Counter(all_tokens),
            length=len(all_tokens),
            title_terms=Counter(title_tokens),
            title_length=len(title_tokens),
        )
        total_length += len(all_tokens)

    num_docs = len(docs)
    bm25 = BM25Index(
        doc_freq=dict(doc_freq),
        docs=docs,
        avg_doc_length=total_length / num_docs if num_docs else 0.0,
        num_docs=num_docs,
    )
    logger.debug(
        "Built BM25 index: {} documents, {} terms, avg length {:.1f}",
        num_docs,
        len(doc_freq),
        bm25.avg_doc_length,
    )
    return bm25


def idf(bm25: BM25Index, term: str) -> float:
    """Inverse document frequency of a term (0 for unseen terms)."""
    df = bm25.doc_freq.get(term, 0)
    if df == 0:
        return 0.0
    return math.log((bm25.num_docs - df + 0.5) / (df + 0.5) + 1)


def score_document(bm25: BM25Index, doc: DocStats, query_terms: list[str]) -> float:
    """BM25 score of one document, with the title bonus."""
    score = 0.0
    length_ratio = doc.length / bm25.avg_doc_length if bm25.avg_doc_length else 1.0
    length_norm = 1 - B + B * length_ratio

    for term in dict.fromkeys(query_terms):
        if term not in bm25.doc_freq:
            continue
        tf = doc.terms.get(term, 0)
        if tf == 0:
            continue

        term_idf = idf(bm25, term)
        score += term_idf * (tf * (K1 + 1)) / (tf + K1 * length_norm)

        if doc.title_terms.get(term, 0) > 0:
            score += term_idf * TITLE_BOOST

    return score


def _sort_key(order_by: OrderBy):
    if order_by == "title":
        return lambda item: item[0].title_clean.casefold()
    return lambda item: getattr(item[0], order_by) or ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def search_nodes(
    index: GraphIndex,
    bm25: BM25Index,
    query: str,
    node_type: str | None = None,
    creator: str | None = None,
    limit: int = 10,
    *,
    order_by: OrderBy | None = None,
    sort_direction: SortDirection = "desc",
    snippet_length: int = DEFAULT_SNIPPET_LENGTH,
) -> list[SearchResult]:
    """Rank nodes against a keyword query.

    Args:
        index: Graph index to search.
        bm25: Term statistics built from the same index.
        query: Free-text keywords.
        node_type: Only consider nodes with this type tag.
        creator: Only consider nodes whose creator contains this
            (case-insensitive).
        limit: Maximum number of results.
        order_by: Order matches by this field instead of relevance.
        sort_direction: Direction for ``order_by``.
        snippet_length: Maximum snippet length.

    Returns:
        Matches with a non-zero score, best first (or by ``order_by``).
    """
    query_terms = tokenize(query)
    if not query_terms:
        return []

    creator_filter = creator.lower() if creator else None
    scored: list[tuple[DiscourseNode, float]] = []

    for node in index.nodes_by_uid.values():
        if node_type and node.node_type != node_type:
            continue
        if creator_filter and creator_filter not in node.creator.lower():
            continue

        doc = bm25.docs.get(node.uid)
        if doc is None:
            continue

        score = score_document(bm25, doc, query_terms)
        if score > 0:
            scored.append((node, score))

    if order_by:
        scored.sort(key=_sort_key(order_by), reverse=sort_direction == "desc")
    else:
        scored.sort(key=lambda item: item[1], reverse=True)

    logger.debug("Search '{}': {} matches", query[:60], len(scored))

    return [
        SearchResult(
            uid=node.uid,
            node_type=node.node_type,
            title=node.title_clean,
            creator=node.creator,
            created=node.created,
            snippet=create_snippet(node.content, snippet_length),
            image_count=node.image_count,
            score=round(score, 2),
        )
        for node, score in scored[: max(limit, 0)]
    ]
