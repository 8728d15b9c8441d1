"""REST API for the discourse graph."""
