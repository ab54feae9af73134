"""Tests for stack outputs."""

import pytest

from sqs_monitoring.exceptions import DeploymentError
from sqs_monitoring.outputs import dashboard_url, resolve_outputs


class TestBuildOutputs:
    """Output definitions resolved by CloudFormation."""

    def test_dashboard_url_output(self, orders_stack):
        output = orders_stack.outputs.dashboard_url
        assert output.logical_id == "DashboardURL"
        assert output.value == {
            "Fn::Sub": "https://${AWS::Region}.console.aws.amazon.com/cloudwatch/home"
                       "?region=${AWS::Region}#dashboards:name=${SQSQueueDashboard}"
        }

    def test_topic_arn_output(self, orders_stack):
        output = orders_stack.outputs.notification_channel_id
        assert output.logical_id == "SNSTopicArn"
        assert output.value == {"Ref": "SNSTopic"}


class TestResolveOutputs:
    """Output values after apply."""

    def test_local_dashboard_url(self):
        assert dashboard_url("eu-west-1", "SQS-Queue-orders-queue-Monitoring") == (
            "https://eu-west-1.console.aws.amazon.com/cloudwatch/home"
            "?region=eu-west-1#dashboards:name=SQS-Queue-orders-queue-Monitoring"
        )

    def test_resolve(self):
        resolved = resolve_outputs("stack", [
            {"OutputKey": "DashboardURL", "OutputValue": "https://example"},
            {"OutputKey": "SNSTopicArn", "OutputValue": "arn:aws:sns:us-east-1:123456789012:topic"},
        ])
        assert resolved.dashboard_url == "https://example"
        assert resolved.notification_channel_id == "arn:aws:sns:us-east-1:123456789012:topic"

    def test_missing_output_fails(self):
        with pytest.raises(DeploymentError, match="SNSTopicArn"):
            resolve_outputs("stack", [{"OutputKey": "DashboardURL", "OutputValue": "https://example"}])
