"""discoursegraph — in-memory discourse graph index with BM25 search and traversal."""

__version__ = "0.1.0"
