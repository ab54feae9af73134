"""Stack outputs: dashboard URL and notification topic ARN."""

from typing import Any, Dict, Iterable, Mapping

from .exceptions import DeploymentError
from .models import Dashboard, NotificationChannel, Output, OutputSet, ResolvedOutputs

DASHBOARD_URL_OUTPUT = "DashboardURL"
TOPIC_ARN_OUTPUT = "SNSTopicArn"

DASHBOARD_URL_TEMPLATE = (
    "https://{region}.console.aws.amazon.com/cloudwatch/home"
    "?region={region}#dashboards:name={dashboard_name}"
)


def build_outputs(dashboard: Dashboard, channel: NotificationChannel) -> OutputSet:
    """
    Define the outputs CloudFormation resolves once all resources exist.

    Args:
        dashboard: Dashboard whose console URL is exported
        channel: Notification channel whose ARN is exported

    Returns:
        OutputSet with CloudFormation intrinsic values
    """
    url = DASHBOARD_URL_TEMPLATE.format(
        region="${AWS::Region}",
        dashboard_name="${%s}" % dashboard.logical_id,
    )
    return OutputSet(
        dashboard_url=Output(
            logical_id=DASHBOARD_URL_OUTPUT,
            description="The URL of the CloudWatch dashboard",
            value={"Fn::Sub": url},
        ),
        notification_channel_id=Output(
            logical_id=TOPIC_ARN_OUTPUT,
            description="The ARN of the SNS topic",
            value={"Ref": channel.logical_id},
        ),
    )


def dashboard_url(region: str, dashboard_name: str) -> str:
    """Console URL of a dashboard, derived without calling AWS."""
    return DASHBOARD_URL_TEMPLATE.format(region=region, dashboard_name=dashboard_name)


def resolve_outputs(stack_name: str, raw_outputs: Iterable[Mapping[str, Any]]) -> ResolvedOutputs:
    """
    Map the Outputs list from describe_stacks onto ResolvedOutputs.

    Args:
        stack_name: Stack the outputs came from
        raw_outputs: Items with OutputKey and OutputValue

    Returns:
        ResolvedOutputs

    Raises:
        DeploymentError: If an expected output is absent
    """
    values: Dict[str, str] = {
        item["OutputKey"]: item["OutputValue"] for item in raw_outputs
    }
    missing = [key for key in (DASHBOARD_URL_OUTPUT, TOPIC_ARN_OUTPUT) if key not in values]
    if missing:
        raise DeploymentError(stack_name, f"Stack outputs missing: {', '.join(missing)}")

    return ResolvedOutputs(
        dashboard_url=values[DASHBOARD_URL_OUTPUT],
        notification_channel_id=values[TOPIC_ARN_OUTPUT],
    )
