"""API and domain schemas (pydantic)."""
