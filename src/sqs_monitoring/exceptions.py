"""Exceptions raised by the SQS monitoring stack."""

from typing import Optional


class MonitoringError(Exception):
    """Base exception for monitoring stack errors."""


class StackValidationError(MonitoringError, ValueError):
    """Compiler input rejected before anything is emitted."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class ExpressionError(MonitoringError, ValueError):
    """Malformed metric-math expression or reference to an undefined metric id."""


class DeploymentError(MonitoringError):
    """A CloudFormation stack operation ended in a failed state."""

    def __init__(
        self,
        stack_name: str,
        message: str,
        status: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.stack_name = stack_name
        self.status = status
        self.reason = reason
        detail = message
        if status:
            detail += f" (status: {status})"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)


class StackNotFoundError(DeploymentError):
    """The named CloudFormation stack does not exist."""

    def __init__(self, stack_name: str):
        super().__init__(stack_name, f"Stack {stack_name} does not exist")
