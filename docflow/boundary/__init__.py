"""Boundary layer: database persistence, processing queue and AWS adapters."""
