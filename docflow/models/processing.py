"""
Processing callback schemas.

The external worker reports results to POST /processing/callback with this
payload; validating it here keeps malformed results out of ingestion logs.

Dependencies: pydantic
System role: Worker callback API contract
"""

import uuid

from pydantic import Field

from docflow.models.common import CamelModel


class ProcessingResult(CamelModel):
    """Outcome reported by the processing worker."""

    success: bool
    processing_time: float = Field(default=0, ge=0, description="Worker processing time in ms")
    extracted_text: str | None = None
    ocr_text: str | None = None
    keywords: list[str] | None = None
    summary: str | None = None
    language: str | None = None
    errors: list[str] | None = None


class ProcessingCallbackRequest(CamelModel):
    """Callback body sent by the worker."""

    document_id: uuid.UUID
    job_id: str | None = Field(
        default=None,
        description="Queue job id; narrows the ingestion lookup when present",
    )
    result: ProcessingResult


class ProcessingCallbackResponse(CamelModel):
    """Callback acknowledgement."""

    success: bool = True
    message: str
