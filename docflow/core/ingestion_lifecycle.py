"""
Ingestion lifecycle rules.

Pure state-machine rules shared by the ingestion service: which status moves
are allowed, which statuses are terminal, what a terminal ingestion does to
its document, and how live queue job states read as ingestion statuses.

Dependencies: docflow.boundary.db.models, docflow.models.job
System role: Domain rules for the ingestion state machine
"""

from docflow.boundary.db.models.document_model import DocumentStatus
from docflow.boundary.db.models.ingestion_model import IngestionStatus
from docflow.core.exceptions import InvalidStateError
from docflow.models.job import JobState

TERMINAL_STATUSES = frozenset(
    {IngestionStatus.COMPLETED, IngestionStatus.FAILED, IngestionStatus.CANCELLED}
)
ACTIVE_STATUSES = frozenset({IngestionStatus.QUEUED, IngestionStatus.PROCESSING})

# A worker callback may land before the dispatch commit, so QUEUED also
# accepts the callback outcomes.
ALLOWED_TRANSITIONS: dict[IngestionStatus, frozenset[IngestionStatus]] = {
    IngestionStatus.QUEUED: frozenset(
        {
            IngestionStatus.PROCESSING,
            IngestionStatus.COMPLETED,
            IngestionStatus.FAILED,
            IngestionStatus.CANCELLED,
        }
    ),
    IngestionStatus.PROCESSING: frozenset(
        {IngestionStatus.COMPLETED, IngestionStatus.FAILED, IngestionStatus.CANCELLED}
    ),
    IngestionStatus.COMPLETED: frozenset(),
    IngestionStatus.FAILED: frozenset(),
    IngestionStatus.CANCELLED: frozenset(),
}

DOCUMENT_STATUS_ON_TERMINAL = {
    IngestionStatus.COMPLETED: DocumentStatus.PROCESSED,
    IngestionStatus.FAILED: DocumentStatus.FAILED,
    IngestionStatus.CANCELLED: DocumentStatus.FAILED,
}

_JOB_STATE_OVERLAY = {
    JobState.WAITING: IngestionStatus.QUEUED,
    JobState.DELAYED: IngestionStatus.QUEUED,
    JobState.PAUSED: IngestionStatus.QUEUED,
    JobState.ACTIVE: IngestionStatus.PROCESSING,
    JobState.FAILED: IngestionStatus.FAILED,
}

# Order in which an ingestion moves; terminal statuses share the last step.
_STATUS_ORDER = {
    IngestionStatus.QUEUED: 0,
    IngestionStatus.PROCESSING: 1,
    IngestionStatus.COMPLETED: 2,
    IngestionStatus.FAILED: 2,
    IngestionStatus.CANCELLED: 2,
}

CANCELLED_BY_USER = "Processing cancelled by user"
DEFAULT_FAILURE_MESSAGE = "Processing failed"
DISPATCH_FAILURE_PREFIX = "Failed to trigger processing: "


def is_terminal(status: IngestionStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: IngestionStatus, target: IngestionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def sources_for(target: IngestionStatus) -> frozenset[IngestionStatus]:
    """Statuses an ingestion may be in to move to ``target``."""
    return frozenset(
        status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets
    )


def ensure_transition(current: IngestionStatus, target: IngestionStatus) -> None:
    """
    Validate a status move.

    Raises:
        InvalidStateError: The move is not allowed from ``current``
    """
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot move ingestion from {current.value} to {target.value}",
            current_status=current.value,
        )


def document_status_for(status: IngestionStatus) -> DocumentStatus | None:
    """Document status implied by a terminal ingestion status."""
    return DOCUMENT_STATUS_ON_TERMINAL.get(status)


def status_from_job_state(
    state: JobState,
    current: IngestionStatus,
) -> IngestionStatus | None:
    """
    Read a queue job state as an ingestion status.

    Returns None when the job adds nothing to the stored status: a completed
    job only means the job was forwarded (the ingestion completes when the
    worker calls back), and a job state behind the stored status never moves
    the ingestion backwards, so a waiting or retrying job leaves a PROCESSING
    ingestion PROCESSING.
    """
    overlay = _JOB_STATE_OVERLAY.get(state)
    if overlay is None or _STATUS_ORDER[overlay] <= _STATUS_ORDER[current]:
        return None
    return overlay


def callback_error(errors: list[str] | None) -> str:
    """Error text recorded for a failed worker result."""
    return "; ".join(errors) if errors else DEFAULT_FAILURE_MESSAGE
