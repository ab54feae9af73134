"""Utility modules for the SQS monitoring stack."""

from .logger import get_logger
from .aws_helpers import get_boto3_client

__all__ = [
    "get_logger",
    "get_boto3_client",
]
