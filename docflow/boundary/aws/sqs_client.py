"""
SQS client for forwarding processing jobs to the external worker.

Called from the dispatch task: each dispatched job becomes one SQS message.
The worker reports back through the processing callback endpoint, so the
message carries the queue job id alongside the payload. Throttling and other
transient SQS errors are retried in place before the dispatch attempt fails.

Dependencies: boto3, tenacity
System role: Transport between the processing queue and the external worker
"""

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from docflow.models.job import ProcessingJob

logger = logging.getLogger(__name__)


class SQSJobForwarder:
    """Publishes each dispatched job to an SQS queue."""

    def __init__(self, queue_url: str, region: str = "ap-southeast-2") -> None:
        """
        Initialize SQS client for the processing queue.

        Args:
            queue_url: SQS queue URL consumed by the processing worker
            region: AWS region of the queue
        """
        self._queue_url = queue_url
        self._region = region
        self._sqs_client = boto3.client("sqs", region_name=region)

    def build_message(self, job_id: str, job: ProcessingJob) -> dict[str, Any]:
        """SendMessage parameters for a dispatched job."""
        return {
            "QueueUrl": self._queue_url,
            "MessageBody": job.model_dump_json(by_alias=True),
            "MessageAttributes": {
                "jobId": {"DataType": "String", "StringValue": job_id},
                "documentId": {"DataType": "String", "StringValue": job.document_id},
                "ingestionId": {"DataType": "String", "StringValue": job.ingestion_id},
            },
        }

    def send(self, job_id: str, job: ProcessingJob) -> dict[str, Any]:
        """
        Send a job to SQS.

        Args:
            job_id: Queue job id the worker echoes in its callback
            job: Job payload

        Returns:
            dict: {"messageId": ...} stored as the job result

        Raises:
            ClientError: If SQS keeps rejecting the message
        """
        try:
            response = self._send_message(self.build_message(job_id, job))
        except ClientError as e:
            logger.warning(
                f"SQS rejected job {job_id}: {e}",
                extra={"job_id": job_id, "error_code": e.response.get("Error", {}).get("Code")},
            )
            raise
        logger.info(
            f"Forwarded job {job_id} to SQS",
            extra={"job_id": job_id, "message_id": response["MessageId"]},
        )
        return {"messageId": response["MessageId"]}

    @retry(
        retry=retry_if_exception_type(ClientError),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=0.5, max=5, jitter=0.5),
        before_sleep=lambda retry_state: logger.warning(
            f"SQS send attempt {retry_state.attempt_number} failed, retrying: "
            f"{retry_state.outcome.exception()}"
        ),
        reraise=True,
    )
    def _send_message(self, message: dict[str, Any]) -> dict[str, Any]:
        return self._sqs_client.send_message(**message)
