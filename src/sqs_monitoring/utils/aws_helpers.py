"""AWS helper functions using Boto3."""

from typing import Any, Optional
import boto3

from ..config import config
from .logger import get_logger

logger = get_logger(__name__)


def get_boto3_client(service_name: str, region: Optional[str] = None) -> Any:
    """
    Get a Boto3 client for the specified AWS service.

    Args:
        service_name: AWS service name (e.g., 'cloudformation')
        region: AWS region. If None, uses config default.

    Returns:
        Boto3 client instance.
    """
    region = region or config.aws.region
    logger.debug(f"Creating Boto3 client for {service_name} in {region}")
    return boto3.client(service_name, region_name=region)
