"""
AWS boundary modules.

Exports: SQSJobForwarder
"""

from .sqs_client import SQSJobForwarder

__all__ = ["SQSJobForwarder"]
