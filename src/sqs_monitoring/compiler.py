"""
Compile (queue name, email) into a monitoring Stack.

Compilation is pure: the same inputs always produce an equal Stack, and nothing
touches AWS until the result is handed to the deployer.
"""

import hashlib
import re
from typing import Optional

from .alarms import build_alarms
from .config import AlarmThresholds, config
from .dashboard import build_dashboard
from .exceptions import StackValidationError
from .models import NotificationChannel, Stack
from .outputs import build_outputs
from .utils.logger import get_logger

logger = get_logger(__name__)

STACK_DESCRIPTION = (
    "This CloudFormation template creates a CloudWatch dashboard, SNS topic, alarms "
    "for monitoring an Amazon SQS queue. It takes the SQS queue name and email address "
    "as input parameters."
)

MAX_QUEUE_NAME_LENGTH = 80
_QUEUE_NAME_RE = re.compile(r"[A-Za-z0-9_-]+(\.fifo)?")
_STACK_NAME_INVALID_RE = re.compile(r"[^A-Za-z0-9-]")
STACK_NAME_DIGEST_LENGTH = 8


def validate_queue_name(queue_name: str) -> None:
    """
    Check a queue name against SQS naming rules.

    Raises:
        StackValidationError: If the name is empty, too long or has invalid characters
    """
    if not queue_name:
        raise StackValidationError("queue_name", "must not be empty")
    if len(queue_name) > MAX_QUEUE_NAME_LENGTH:
        raise StackValidationError(
            "queue_name", f"must be at most {MAX_QUEUE_NAME_LENGTH} characters"
        )
    if not _QUEUE_NAME_RE.fullmatch(queue_name):
        raise StackValidationError(
            "queue_name",
            f"'{queue_name}' may only contain letters, digits, hyphens, underscores "
            "and an optional .fifo suffix",
        )


def compile_stack(
    queue_name: str,
    email: str,
    thresholds: Optional[AlarmThresholds] = None,
) -> Stack:
    """
    Build the monitoring stack for one queue.

    Args:
        queue_name: Name of the SQS queue to monitor
        email: Address subscribed to alarm notifications. Its format is
            checked by SNS when the stack is applied.
        thresholds: Alarm thresholds. If None, uses config defaults.

    Returns:
        Immutable Stack describing every resource and output

    Raises:
        StackValidationError: If an input is malformed
    """
    validate_queue_name(queue_name)
    if not email or not email.strip():
        raise StackValidationError("email", "must not be empty")

    thresholds = thresholds or config.thresholds

    channel = NotificationChannel(endpoint=email)
    dashboard = build_dashboard(queue_name)
    alarms = build_alarms(queue_name, channel, thresholds)

    stack = Stack(
        queue_name=queue_name,
        description=STACK_DESCRIPTION,
        channel=channel,
        dashboard=dashboard,
        alarms=alarms,
        outputs=build_outputs(dashboard, channel),
    )
    logger.info(
        f"Compiled monitoring stack for {queue_name}: "
        f"{len(stack.resource_ids())} resources, {len(stack.alarms)} alarms"
    )
    return stack


def default_stack_name(queue_name: str, prefix: Optional[str] = None) -> str:
    """
    Derive a CloudFormation stack name for a queue.

    Characters CloudFormation does not allow in stack names become hyphens.
    When that rewrites the name, a short digest of the raw queue name is
    appended so that e.g. ``orders_queue`` and ``orders-queue`` never share
    a stack.
    """
    prefix = prefix or config.deployment.stack_name_prefix
    raw = f"{prefix}-{queue_name}"
    name = _STACK_NAME_INVALID_RE.sub("-", raw)
    if name != raw:
        digest = hashlib.sha1(queue_name.encode("utf-8")).hexdigest()[:STACK_NAME_DIGEST_LENGTH]
        name = f"{name}-{digest}"
    return name
