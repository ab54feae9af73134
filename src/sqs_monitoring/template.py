"""
Render a compiled Stack as a CloudFormation template.

The template is the declarative input CloudFormation reconciles; rendering is
deterministic so re-deploying unchanged inputs produces no change set.
"""

import json
from typing import Any, Dict, List, Union

from .compiler import compile_stack
from .dashboard import dashboard_body
from .models import (
    ExpressionAlarm,
    MetricDataQuery,
    MetricSeries,
    NotificationChannel,
    Stack,
    ThresholdAlarm,
)

TEMPLATE_FORMAT_VERSION = "2010-09-09"

QUEUE_NAME_PARAMETER = "SQSQueueName"
EMAIL_PARAMETER = "EmailAddress"

# Valid queue name / email that never occur in real input
_QUEUE_SENTINEL = "SQSQueueNameParameterValue0"
_EMAIL_SENTINEL = "EmailAddressParameterValue0"


def _dimensions(metric: MetricSeries) -> List[Dict[str, str]]:
    return [{"Name": d.name, "Value": d.value} for d in metric.dimensions]


def _actions(alarm: Union[ThresholdAlarm, ExpressionAlarm]) -> List[Dict[str, str]]:
    return [{"Ref": logical_id} for logical_id in alarm.actions]


def _render_channel(channel: NotificationChannel) -> Dict[str, Any]:
    return {
        "Type": "AWS::SNS::Topic",
        "Properties": {
            "Subscription": [
                {"Endpoint": channel.endpoint, "Protocol": channel.protocol}
            ]
        },
    }


def _render_query(query: MetricDataQuery) -> Dict[str, Any]:
    rendered: Dict[str, Any] = {"Id": query.id}
    if query.expression is not None:
        rendered["Expression"] = query.expression
    else:
        stat = query.metric_stat
        rendered["MetricStat"] = {
            "Metric": {
                "Namespace": stat.metric.namespace,
                "MetricName": stat.metric.metric_name,
                "Dimensions": _dimensions(stat.metric),
            },
            "Period": stat.period,
            "Stat": stat.stat.value,
        }
        if stat.unit is not None:
            rendered["MetricStat"]["Unit"] = stat.unit.value
    if query.label is not None:
        rendered["Label"] = query.label
    rendered["ReturnData"] = query.return_data
    return rendered


def _render_alarm(alarm: Union[ThresholdAlarm, ExpressionAlarm]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {
        "AlarmName": alarm.name,
        "AlarmDescription": alarm.description,
    }
    if isinstance(alarm, ThresholdAlarm):
        properties.update({
            "MetricName": alarm.metric.metric_name,
            "Namespace": alarm.metric.namespace,
            "Statistic": alarm.statistic.value,
            "Period": alarm.period,
            "Dimensions": _dimensions(alarm.metric),
        })
    else:
        properties["Metrics"] = [_render_query(query) for query in alarm.metrics]

    properties.update({
        "EvaluationPeriods": alarm.evaluation_periods,
        "Threshold": alarm.threshold,
        "ComparisonOperator": alarm.comparison_operator.value,
        "TreatMissingData": alarm.missing_data.value,
        "AlarmActions": _actions(alarm),
    })
    return {
        "Type": "AWS::CloudWatch::Alarm",
        "DependsOn": list(dict.fromkeys(alarm.actions)),
        "Properties": properties,
    }


def render_template(stack: Stack) -> Dict[str, Any]:
    """
    Render a stack as a CloudFormation template dictionary.

    Args:
        stack: Compiled stack

    Returns:
        Template with Resources and Outputs
    """
    dashboard = stack.dashboard
    resources: Dict[str, Any] = {
        stack.channel.logical_id: _render_channel(stack.channel),
        dashboard.logical_id: {
            "Type": "AWS::CloudWatch::Dashboard",
            "Properties": {
                "DashboardName": dashboard.name,
                "DashboardBody": {
                    "Fn::Sub": json.dumps(dashboard_body(dashboard), indent=2)
                },
            },
        },
    }
    for alarm in stack.alarms:
        resources[alarm.logical_id] = _render_alarm(alarm)

    outputs = {
        output.logical_id: {"Description": output.description, "Value": output.value}
        for output in stack.outputs.all()
    }

    return {
        "AWSTemplateFormatVersion": TEMPLATE_FORMAT_VERSION,
        "Description": stack.description,
        "Resources": resources,
        "Outputs": outputs,
    }


def render_template_json(stack: Stack, indent: int = 2) -> str:
    """Serialize the template with sorted keys so output is byte-stable."""
    return json.dumps(render_template(stack), indent=indent, sort_keys=True)


def _parameterize(node: Any) -> Any:
    if isinstance(node, dict):
        if set(node) == {"Fn::Sub"} and isinstance(node["Fn::Sub"], str):
            return {"Fn::Sub": node["Fn::Sub"].replace(_QUEUE_SENTINEL, "${%s}" % QUEUE_NAME_PARAMETER)}
        return {key: _parameterize(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_parameterize(item) for item in node]
    if isinstance(node, str):
        if node == _QUEUE_SENTINEL:
            return {"Ref": QUEUE_NAME_PARAMETER}
        if node == _EMAIL_SENTINEL:
            return {"Ref": EMAIL_PARAMETER}
        if _QUEUE_SENTINEL in node:
            return {"Fn::Sub": node.replace(_QUEUE_SENTINEL, "${%s}" % QUEUE_NAME_PARAMETER)}
    return node


def render_parameterized_template() -> Dict[str, Any]:
    """
    Render a reusable template taking the queue name and email as parameters.

    Values are filled in by CloudFormation at apply time, so the template can
    be uploaded once and launched for any queue.
    """
    stack = compile_stack(_QUEUE_SENTINEL, _EMAIL_SENTINEL)
    template = _parameterize(render_template(stack))
    template["Parameters"] = {
        QUEUE_NAME_PARAMETER: {
            "Type": "String",
            "Description": "The name of the Amazon SQS queue to monitor.",
        },
        EMAIL_PARAMETER: {
            "Type": "String",
            "Description": "The email address to receive notifications.",
        },
    }
    return template
