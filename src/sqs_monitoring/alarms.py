"""
CloudWatch alarm definitions for an SQS queue.

Alarms:
- MessageVisibleAlarm: backlog above 10,000 visible messages (5 minutes)
- OldestMessageAgeAlarm: oldest message older than 1 hour
- MessageDeletedDivergenceAlarm: more than 100 messages sent than deleted in an hour
"""

from typing import Optional, Tuple

from .config import AlarmThresholds
from .dashboard import sqs_metric
from .models import (
    ComparisonOperator,
    ExpressionAlarm,
    MetricDataQuery,
    MetricStat,
    MissingDataPolicy,
    NotificationChannel,
    Statistic,
    ThresholdAlarm,
    Unit,
)
from .utils.logger import get_logger

logger = get_logger(__name__)

ALARM_NAME_TEMPLATE = "SQS-Queue-{queue_name}-{suffix}"
DIVERGENCE_EXPRESSION_TEMPLATE = "IF((m1-m2) > {limit},1,0)"


def alarm_name(queue_name: str, suffix: str) -> str:
    return ALARM_NAME_TEMPLATE.format(queue_name=queue_name, suffix=suffix)


def build_visible_messages_alarm(
    queue_name: str,
    channel: NotificationChannel,
    thresholds: Optional[AlarmThresholds] = None,
) -> ThresholdAlarm:
    """
    Alarm when the queue backlog grows beyond what consumers keep up with.

    Args:
        queue_name: Monitored queue
        channel: Notification channel for alarm actions
        thresholds: Threshold overrides

    Returns:
        Threshold alarm on ApproximateNumberOfMessagesVisible
    """
    thresholds = thresholds or AlarmThresholds()
    return ThresholdAlarm(
        logical_id="MessageVisibleAlarm",
        name=alarm_name(queue_name, "MessageVisibleAlarm"),
        description="Alarm for a high number of visible messages in the SQS queue",
        metric=sqs_metric(queue_name, "ApproximateNumberOfMessagesVisible"),
        statistic=Statistic.MAXIMUM,
        period=thresholds.visible_messages_period,
        evaluation_periods=1,
        threshold=thresholds.visible_messages,
        comparison_operator=ComparisonOperator.GREATER_THAN,
        missing_data=MissingDataPolicy.MISSING,
        actions=(channel.logical_id,),
    )


def build_oldest_message_age_alarm(
    queue_name: str,
    channel: NotificationChannel,
    thresholds: Optional[AlarmThresholds] = None,
) -> ThresholdAlarm:
    """
    Alarm when a message has waited longer than the processing window.

    Marketing data arrives hourly, so a message older than an hour is stuck.
    """
    thresholds = thresholds or AlarmThresholds()
    return ThresholdAlarm(
        logical_id="OldestMessageAgeAlarm",
        name=alarm_name(queue_name, "OldestMessageAgeAlarm"),
        description="Alarm for a high age of the oldest message in the SQS queue",
        metric=sqs_metric(queue_name, "ApproximateAgeOfOldestMessage"),
        statistic=Statistic.MAXIMUM,
        period=thresholds.oldest_message_age_period,
        evaluation_periods=1,
        threshold=thresholds.oldest_message_age,
        comparison_operator=ComparisonOperator.GREATER_THAN,
        missing_data=MissingDataPolicy.MISSING,
        actions=(channel.logical_id,),
    )


def build_divergence_alarm(
    queue_name: str,
    channel: NotificationChannel,
    thresholds: Optional[AlarmThresholds] = None,
) -> ExpressionAlarm:
    """
    Alarm when sent and deleted counts drift apart within a period.

    m1 (sent) and m2 (deleted) are sampled with the Minimum statistic and only
    feed e1, a 0/1 step signal that drives the alarm.
    """
    thresholds = thresholds or AlarmThresholds()
    period = thresholds.divergence_period

    def counter(query_id: str, metric_name: str) -> MetricDataQuery:
        return MetricDataQuery(
            id=query_id,
            metric_stat=MetricStat(
                metric=sqs_metric(queue_name, metric_name),
                period=period,
                stat=Statistic.MINIMUM,
                unit=Unit.COUNT,
            ),
            return_data=False,
        )

    return ExpressionAlarm(
        logical_id="MessageDeletedDivergenceAlarm",
        name=alarm_name(queue_name, "MessageDeletedDivergenceAlarm"),
        description=(
            "Alert when a significant divergence is observed between the number of messages "
            "sent to the queue and the number of messages deleted from the queue within an "
            "hour. This could indicate an issue with your application processing messages "
            "successfully."
        ),
        metrics=(
            MetricDataQuery(
                id="e1",
                expression=DIVERGENCE_EXPRESSION_TEMPLATE.format(limit=thresholds.divergence_limit),
                label="MessageDeletedDivergenceAlarm",
                return_data=True,
            ),
            counter("m1", "NumberOfMessagesSent"),
            counter("m2", "NumberOfMessagesDeleted"),
        ),
        evaluation_periods=1,
        threshold=1,
        comparison_operator=ComparisonOperator.GREATER_THAN_OR_EQUAL,
        missing_data=MissingDataPolicy.NOT_BREACHING,
        actions=(channel.logical_id,),
    )


def build_alarms(
    queue_name: str,
    channel: NotificationChannel,
    thresholds: Optional[AlarmThresholds] = None,
) -> Tuple[ThresholdAlarm, ThresholdAlarm, ExpressionAlarm]:
    """Build the depth, age and divergence alarms, in that order."""
    alarms = (
        build_visible_messages_alarm(queue_name, channel, thresholds),
        build_oldest_message_age_alarm(queue_name, channel, thresholds),
        build_divergence_alarm(queue_name, channel, thresholds),
    )
    for alarm in alarms:
        logger.debug(f"Defined alarm {alarm.name}")
    return alarms
