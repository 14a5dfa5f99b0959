"""Core domain logic: lifecycle rules, relevance search, stats, exceptions."""
