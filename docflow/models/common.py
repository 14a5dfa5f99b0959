"""
Common response models and utilities.

Pagination metadata, caller identity and the camelCase base model used by
every wire schema.

Dependencies: pydantic
System role: Common API response structures
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    """Page metadata for list endpoints."""

    total: int
    page: int
    limit: int
    total_pages: int


class CurrentUser(BaseModel):
    """Caller identity forwarded by the upstream auth layer."""

    id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
