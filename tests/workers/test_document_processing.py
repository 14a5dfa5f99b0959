"""
Test suite for the processing dispatch task.

Runs dispatch_processing_job eagerly with a patched forwarder: forwarding,
retry with backoff until the attempts run out, and forwarder selection.

System role: Verification of the Celery dispatch task
"""

from unittest.mock import MagicMock, patch

import pytest
from celery import states

from docflow.models.job import BackoffOptions, JobOptions
from docflow.workers.tasks import document_processing
from docflow.workers.tasks.document_processing import (
    LocalAcknowledger,
    dispatch_processing_job,
    get_job_forwarder,
    retry_countdown,
)

QUEUE_URL = "https://sqs.ap-southeast-2.amazonaws.com/123456789012/document-processing"


@pytest.fixture
def forwarder():
    forwarder = MagicMock()
    forwarder.send.return_value = {"messageId": "msg-1"}
    with patch.object(document_processing, "get_job_forwarder", return_value=forwarder):
        yield forwarder


def run_task(job, options: JobOptions | None = None, task_id: str = "job-1"):
    return dispatch_processing_job.apply(
        kwargs={
            "job": job.model_dump(mode="json", by_alias=True),
            "options": (options or JobOptions()).model_dump(mode="json", by_alias=True),
        },
        task_id=task_id,
    )


class TestDispatchTask:
    """Test suite for dispatch_processing_job."""

    def test_forwards_job_with_its_id(self, forwarder, sample_job) -> None:
        result = run_task(sample_job)

        assert result.state == states.SUCCESS
        assert result.result == {"messageId": "msg-1", "attempts": 1}
        job_id, job = forwarder.send.call_args.args
        assert job_id == "job-1"
        assert job == sample_job

    def test_failed_forward_is_retried(self, forwarder, sample_job) -> None:
        """Test two failed forwards followed by a success report the third attempt."""
        forwarder.send.side_effect = [
            RuntimeError("broker unavailable"),
            RuntimeError("broker unavailable"),
            {"messageId": "msg-3"},
        ]

        result = run_task(sample_job, JobOptions(attempts=3))

        assert result.state == states.SUCCESS
        assert result.result == {"messageId": "msg-3", "attempts": 3}
        assert forwarder.send.call_count == 3

    @pytest.mark.parametrize("attempts", [1, 2, 3])
    def test_fails_after_attempts_exhausted(self, forwarder, sample_job, attempts) -> None:
        forwarder.send.side_effect = RuntimeError("broker unavailable")

        result = run_task(sample_job, JobOptions(attempts=attempts))

        assert result.state == states.FAILURE
        assert str(result.result) == "broker unavailable"
        assert forwarder.send.call_count == attempts


class TestRetryCountdown:
    """Test suite for retry_countdown."""

    @pytest.mark.parametrize(("retries", "expected"), [(0, 2), (1, 4), (2, 8)])
    def test_exponential_doubles(self, retries, expected) -> None:
        backoff = BackoffOptions(type="exponential", delay=2000)

        assert retry_countdown(backoff, retries, maximum=60) == expected

    def test_exponential_is_capped(self) -> None:
        backoff = BackoffOptions(type="exponential", delay=2000)

        assert retry_countdown(backoff, 10, maximum=60) == 60

    def test_fixed_delay(self) -> None:
        backoff = BackoffOptions(type="fixed", delay=1500)

        assert retry_countdown(backoff, 0, maximum=60) == 1.5
        assert retry_countdown(backoff, 4, maximum=60) == 1.5


class TestGetJobForwarder:
    """Test suite for forwarder selection."""

    @pytest.fixture(autouse=True)
    def clear_cache(self):
        get_job_forwarder.cache_clear()
        yield
        get_job_forwarder.cache_clear()

    def test_local_acknowledgement_without_queue_url(self, monkeypatch, sample_job) -> None:
        monkeypatch.setattr(document_processing.queue_config, "sqs_queue_url", "")

        forwarder = get_job_forwarder()

        assert isinstance(forwarder, LocalAcknowledger)
        assert forwarder.send("job-1", sample_job) == {"forwarded": False}

    def test_sqs_when_configured(self, monkeypatch) -> None:
        monkeypatch.setattr(document_processing.queue_config, "sqs_queue_url", QUEUE_URL)

        with patch("docflow.boundary.aws.sqs_client.boto3.client"):
            forwarder = get_job_forwarder()

        assert isinstance(forwarder, document_processing.SQSJobForwarder)
