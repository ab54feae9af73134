"""
Apply a monitoring stack with CloudFormation.

CloudFormation owns reconciliation: it creates the SNS topic before the alarms
that reference it and rolls the whole stack back if any resource fails.
"""

from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError, WaiterError

from .config import config
from .compiler import default_stack_name
from .exceptions import DeploymentError, StackNotFoundError
from .models import ResolvedOutputs, Stack
from .outputs import resolve_outputs
from .template import render_template_json
from .utils.aws_helpers import get_boto3_client
from .utils.logger import get_logger

logger = get_logger(__name__)

NO_UPDATES_MESSAGE = "No updates are to be performed"
FAILED_CREATE_STATUSES = ('ROLLBACK_COMPLETE', 'ROLLBACK_FAILED')


def _is_missing_stack(error: ClientError) -> bool:
    code = error.response.get('Error', {}).get('Code', '')
    message = error.response.get('Error', {}).get('Message', '')
    return code == 'ValidationError' and 'does not exist' in message


class StackDeployer:
    """
    Creates, updates and deletes monitoring stacks through CloudFormation.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        cloudformation_client: Any = None
    ):
        """
        Initialize Stack Deployer.

        Args:
            region: AWS region. If None, uses config default.
            cloudformation_client: Preconfigured client, mainly for tests
        """
        self.region = region or config.aws.region
        self.cloudformation_client = (
            cloudformation_client or get_boto3_client('cloudformation', region=self.region)
        )
        self.settings = config.deployment

        logger.info(f"Initialized StackDeployer in {self.region}")

    def _tags(self) -> List[Dict[str, str]]:
        return [{'Key': key, 'Value': value} for key, value in self.settings.tags.items()]

    def _describe(self, stack_name: str) -> Dict[str, Any]:
        try:
            response = self.cloudformation_client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            if _is_missing_stack(e):
                raise StackNotFoundError(stack_name) from e
            raise
        return response['Stacks'][0]

    def _status(self, stack_name: str) -> Optional[str]:
        try:
            stack = self._describe(stack_name)
        except StackNotFoundError:
            return None
        status = stack['StackStatus']
        return None if status == 'DELETE_COMPLETE' else status

    def stack_exists(self, stack_name: str) -> bool:
        """Return True if the stack exists and is not fully deleted."""
        return self._status(stack_name) is not None

    def validate(self, stack: Stack) -> Dict[str, Any]:
        """
        Ask CloudFormation to validate the rendered template.

        Returns:
            validate_template response
        """
        logger.info(f"Validating template for {stack.queue_name}")
        return self.cloudformation_client.validate_template(
            TemplateBody=render_template_json(stack)
        )

    def _wait(self, waiter_name: str, stack_name: str) -> None:
        waiter = self.cloudformation_client.get_waiter(waiter_name)
        max_attempts = max(1, self.settings.timeout_minutes * 60 // self.settings.waiter_delay)
        try:
            waiter.wait(
                StackName=stack_name,
                WaiterConfig={'Delay': self.settings.waiter_delay, 'MaxAttempts': max_attempts}
            )
        except WaiterError as e:
            status, reason = None, None
            try:
                stack = self._describe(stack_name)
                status = stack.get('StackStatus')
                reason = stack.get('StackStatusReason')
            except (ClientError, StackNotFoundError):
                logger.warning(f"Could not read final status of {stack_name}")
            raise DeploymentError(
                stack_name, f"{waiter_name} failed", status=status, reason=reason or str(e)
            ) from e

    def deploy(
        self,
        stack: Stack,
        stack_name: Optional[str] = None,
        wait: bool = True
    ) -> str:
        """
        Create the stack, or update it if it already exists.

        Args:
            stack: Compiled monitoring stack
            stack_name: CloudFormation stack name. Derived from the queue if None.
            wait: Block until CloudFormation reaches a terminal state

        Returns:
            Stack id

        Raises:
            DeploymentError: If CloudFormation reports the operation failed
            ClientError: API errors are propagated unchanged
        """
        stack_name = stack_name or default_stack_name(stack.queue_name)
        template_body = render_template_json(stack)

        status = self._status(stack_name)
        if status in FAILED_CREATE_STATUSES:
            # CloudFormation cannot update a stack whose first create rolled back
            logger.warning(f"Stack {stack_name} is in {status}, deleting it before create")
            self.cloudformation_client.delete_stack(StackName=stack_name)
            self._wait('stack_delete_complete', stack_name)
            status = None

        if status is None:
            logger.info(f"Creating stack: {stack_name}")
            response = self.cloudformation_client.create_stack(
                StackName=stack_name,
                TemplateBody=template_body,
                OnFailure='ROLLBACK',
                TimeoutInMinutes=self.settings.timeout_minutes,
                Tags=self._tags()
            )
            stack_id = response['StackId']
            if wait:
                self._wait('stack_create_complete', stack_name)
                logger.info(f"✓ Created stack: {stack_name}")
            return stack_id

        logger.info(f"Updating stack: {stack_name}")
        try:
            response = self.cloudformation_client.update_stack(
                StackName=stack_name,
                TemplateBody=template_body,
                Tags=self._tags()
            )
        except ClientError as e:
            if NO_UPDATES_MESSAGE in e.response.get('Error', {}).get('Message', ''):
                logger.info(f"Stack {stack_name} is already up to date")
                return self._describe(stack_name)['StackId']
            raise

        stack_id = response['StackId']
        if wait:
            self._wait('stack_update_complete', stack_name)
            logger.info(f"✓ Updated stack: {stack_name}")
        return stack_id

    def get_outputs(self, stack_name: str) -> ResolvedOutputs:
        """
        Read the resolved outputs of a deployed stack.

        Raises:
            StackNotFoundError: If the stack does not exist
            DeploymentError: If outputs are missing
        """
        stack = self._describe(stack_name)
        return resolve_outputs(stack_name, stack.get('Outputs', []))

    def delete(self, stack_name: str, wait: bool = True) -> None:
        """
        Delete a stack and every monitoring resource in it.

        A stack that does not exist is treated as already deleted.
        """
        if not self.stack_exists(stack_name):
            logger.warning(f"Stack does not exist: {stack_name}")
            return

        logger.info(f"Deleting stack: {stack_name}")
        self.cloudformation_client.delete_stack(StackName=stack_name)
        if wait:
            self._wait('stack_delete_complete', stack_name)
            logger.info(f"✓ Deleted stack: {stack_name}")
