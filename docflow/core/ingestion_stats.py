"""
Ingestion statistics.

Dependencies: docflow.models.ingestion
System role: Aggregates ingestion counts, success rate and processing time
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime

from docflow.boundary.db.models.ingestion_model import IngestionModel, IngestionStatus
from docflow.models.ingestion import IngestionStats


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def processing_seconds(started_at: datetime | None, completed_at: datetime | None) -> float | None:
    if started_at is None or completed_at is None:
        return None
    return (completed_at - started_at).total_seconds()


def build_ingestion_stats(
    status_counts: Mapping[IngestionStatus, int],
    processing_times: Iterable[float],
) -> IngestionStats:
    """
    Build stats from per-status counts and completed processing durations.

    Args:
        status_counts: Ingestion count per status (missing statuses count 0)
        processing_times: Seconds from start to completion of completed ingestions

    Returns:
        IngestionStats: Counts, whole-percent success rate and whole-second mean
    """
    counts = {status: status_counts.get(status, 0) for status in IngestionStatus}
    finished = (
        counts[IngestionStatus.COMPLETED]
        + counts[IngestionStatus.FAILED]
        + counts[IngestionStatus.CANCELLED]
    )
    success_rate = (
        round_half_up(counts[IngestionStatus.COMPLETED] / finished * 100) if finished else 0
    )

    times = list(processing_times)
    average = round_half_up(sum(times) / len(times)) if times else 0

    return IngestionStats(
        total=sum(counts.values()),
        queued=counts[IngestionStatus.QUEUED],
        processing=counts[IngestionStatus.PROCESSING],
        completed=counts[IngestionStatus.COMPLETED],
        failed=counts[IngestionStatus.FAILED],
        cancelled=counts[IngestionStatus.CANCELLED],
        success_rate=success_rate,
        average_processing_time=average,
    )


def summarize_ingestions(ingestions: Iterable[IngestionModel]) -> IngestionStats:
    """Stats over already-loaded ingestion records."""
    counts: dict[IngestionStatus, int] = {}
    times: list[float] = []
    for ingestion in ingestions:
        counts[ingestion.status] = counts.get(ingestion.status, 0) + 1
        if ingestion.status == IngestionStatus.COMPLETED:
            seconds = processing_seconds(ingestion.started_at, ingestion.completed_at)
            if seconds is not None:
                times.append(seconds)
    return build_ingestion_stats(counts, times)
