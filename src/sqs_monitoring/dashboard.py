"""
CloudWatch dashboard for a single SQS queue.

Layout (24 columns):
- row 0: Messages in Queue | Age of Oldest Message
- row 1: Messages Deleted and Sent (full width)
"""

import json
from typing import Any, Dict, List, Tuple

from .models import (
    Dashboard,
    Dimension,
    MetricQuery,
    MetricSeries,
    Statistic,
    Widget,
)
from .utils.logger import get_logger

logger = get_logger(__name__)

SQS_NAMESPACE = "AWS/SQS"
QUEUE_DIMENSION = "QueueName"
DASHBOARD_NAME_TEMPLATE = "SQS-Queue-{queue_name}-Monitoring"
WIDGET_PERIOD = 300

# CloudFormation substitutes this inside the Fn::Sub dashboard body
REGION_PLACEHOLDER = "${AWS::Region}"


def sqs_metric(queue_name: str, metric_name: str) -> MetricSeries:
    """Build an AWS/SQS metric series scoped to one queue."""
    return MetricSeries(
        namespace=SQS_NAMESPACE,
        metric_name=metric_name,
        dimensions=(Dimension(name=QUEUE_DIMENSION, value=queue_name),),
    )


def build_dashboard(queue_name: str) -> Dashboard:
    """
    Build the dashboard definition for a queue.

    Args:
        queue_name: Name of the monitored SQS queue

    Returns:
        Dashboard with the three queue widgets
    """
    widgets = (
        Widget(
            x=0, y=0, width=12, height=6,
            query=MetricQuery(
                metrics=(sqs_metric(queue_name, "ApproximateNumberOfMessagesVisible"),),
                statistic=Statistic.SUM,
                period=WIDGET_PERIOD,
                title="Messages in Queue",
            ),
        ),
        Widget(
            x=12, y=0, width=12, height=6,
            query=MetricQuery(
                metrics=(sqs_metric(queue_name, "ApproximateAgeOfOldestMessage"),),
                statistic=Statistic.MAXIMUM,
                period=WIDGET_PERIOD,
                title="Age of Oldest Message",
            ),
        ),
        # Full-width row so the two counters overlay on one chart
        Widget(
            x=0, y=6, width=24, height=6,
            query=MetricQuery(
                metrics=(
                    sqs_metric(queue_name, "NumberOfMessagesDeleted"),
                    sqs_metric(queue_name, "NumberOfMessagesSent"),
                ),
                statistic=Statistic.SUM,
                period=WIDGET_PERIOD,
                title="Messages Deleted and Sent",
            ),
        ),
    )

    return Dashboard(
        name=DASHBOARD_NAME_TEMPLATE.format(queue_name=queue_name),
        widgets=widgets,
    )


def _metric_rows(metrics: Tuple[MetricSeries, ...]) -> List[List[str]]:
    """
    Render metric series in CloudWatch's compact array form.

    A cell equal to the one above it in the previous row is written as ".".
    """
    rows = []
    previous: List[str] = []
    for series in metrics:
        row = [series.namespace, series.metric_name]
        for dimension in series.dimensions:
            row.extend([dimension.name, dimension.value])

        compact = [
            "." if i != 1 and i < len(previous) and cell == previous[i] else cell
            for i, cell in enumerate(row)
        ]
        rows.append(compact)
        previous = row
    return rows


def widget_to_body(widget: Widget, region: str = REGION_PLACEHOLDER) -> Dict[str, Any]:
    """Render a widget as a CloudWatch dashboard widget document."""
    query = widget.query
    return {
        "type": "metric",
        "x": widget.x,
        "y": widget.y,
        "width": widget.width,
        "height": widget.height,
        "properties": {
            "metrics": _metric_rows(query.metrics),
            "view": query.view.value,
            "stacked": query.stacked,
            "region": region,
            "title": query.title,
            "stat": query.statistic.value,
            "period": query.period,
        },
    }


def dashboard_body(dashboard: Dashboard, region: str = REGION_PLACEHOLDER) -> Dict[str, Any]:
    """
    Build the dashboard body document.

    Args:
        dashboard: Dashboard definition
        region: Region to embed; defaults to the CloudFormation placeholder

    Returns:
        Dashboard body dictionary
    """
    body = {"widgets": [widget_to_body(widget, region) for widget in dashboard.widgets]}
    logger.debug(f"Built dashboard body for {dashboard.name} with {len(body['widgets'])} widgets")
    return body


def dashboard_body_json(dashboard: Dashboard, region: str = REGION_PLACEHOLDER) -> str:
    return json.dumps(dashboard_body(dashboard, region), indent=2)
