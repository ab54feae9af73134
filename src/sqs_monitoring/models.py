"""
Typed resource records making up a queue monitoring stack.

Every model is frozen: a compiled Stack is an immutable value that compares
structurally, which is what declarative create-or-update needs.
"""

from enum import Enum
from graphlib import TopologicalSorter
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .metric_math import referenced_ids

GRID_WIDTH = 24


class Statistic(str, Enum):
    SUM = "Sum"
    MAXIMUM = "Maximum"
    MINIMUM = "Minimum"
    AVERAGE = "Average"
    SAMPLE_COUNT = "SampleCount"


class ComparisonOperator(str, Enum):
    """CloudWatch comparison operators."""

    GREATER_THAN = "GreaterThanThreshold"
    GREATER_THAN_OR_EQUAL = "GreaterThanOrEqualToThreshold"
    LESS_THAN = "LessThanThreshold"
    LESS_THAN_OR_EQUAL = "LessThanOrEqualToThreshold"

    @property
    def symbol(self) -> str:
        return {
            ComparisonOperator.GREATER_THAN: ">",
            ComparisonOperator.GREATER_THAN_OR_EQUAL: ">=",
            ComparisonOperator.LESS_THAN: "<",
            ComparisonOperator.LESS_THAN_OR_EQUAL: "<=",
        }[self]

    def compare(self, value: float, threshold: float) -> bool:
        """Return True if value breaches threshold under this operator."""
        if self is ComparisonOperator.GREATER_THAN:
            return value > threshold
        if self is ComparisonOperator.GREATER_THAN_OR_EQUAL:
            return value >= threshold
        if self is ComparisonOperator.LESS_THAN:
            return value < threshold
        return value <= threshold


class MissingDataPolicy(str, Enum):
    """How an alarm treats evaluation periods without datapoints."""

    BREACHING = "breaching"
    NOT_BREACHING = "notBreaching"
    IGNORE = "ignore"
    MISSING = "missing"


class AlarmState(str, Enum):
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    OK = "OK"
    ALARM = "ALARM"


class WidgetView(str, Enum):
    TIME_SERIES = "timeSeries"
    SINGLE_VALUE = "singleValue"


class Unit(str, Enum):
    COUNT = "Count"
    SECONDS = "Seconds"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Dimension(_Frozen):
    name: str
    value: str


class MetricSeries(_Frozen):
    """A metric identified by namespace, name and dimensions. Read only."""

    namespace: str
    metric_name: str
    dimensions: Tuple[Dimension, ...] = ()


class NotificationChannel(_Frozen):
    """SNS topic with a single email subscription."""

    logical_id: str = "SNSTopic"
    endpoint: str
    protocol: Literal["email"] = "email"


class MetricQuery(_Frozen):
    metrics: Tuple[MetricSeries, ...] = Field(min_length=1)
    statistic: Statistic
    period: int = Field(gt=0)
    title: str
    view: WidgetView = WidgetView.TIME_SERIES
    stacked: bool = False


class Widget(_Frozen):
    """A metric widget placed on the 24-column dashboard grid."""

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(ge=1, le=GRID_WIDTH)
    height: int = Field(ge=1)
    query: MetricQuery

    @model_validator(mode="after")
    def _fits_grid(self) -> "Widget":
        if self.x + self.width > GRID_WIDTH:
            raise ValueError(
                f"widget '{self.query.title}' spans columns {self.x}-{self.x + self.width}, "
                f"grid is {GRID_WIDTH} wide"
            )
        return self

    def overlaps(self, other: "Widget") -> bool:
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )


class Dashboard(_Frozen):
    logical_id: str = "SQSQueueDashboard"
    name: str
    widgets: Tuple[Widget, ...]

    @model_validator(mode="after")
    def _no_overlap(self) -> "Dashboard":
        for i, widget in enumerate(self.widgets):
            for other in self.widgets[i + 1:]:
                if widget.overlaps(other):
                    raise ValueError(
                        f"widgets '{widget.query.title}' and '{other.query.title}' overlap"
                    )
        return self


class MetricStat(_Frozen):
    metric: MetricSeries
    period: int = Field(gt=0)
    stat: Statistic
    unit: Optional[Unit] = None


class MetricDataQuery(_Frozen):
    """One entry of an expression alarm: either a raw metric or a metric-math expression."""

    id: str = Field(pattern=r"^[a-z][a-zA-Z0-9_]*$")
    expression: Optional[str] = None
    metric_stat: Optional[MetricStat] = None
    label: Optional[str] = None
    return_data: bool = True

    @model_validator(mode="after")
    def _one_source(self) -> "MetricDataQuery":
        if (self.expression is None) == (self.metric_stat is None):
            raise ValueError(f"query '{self.id}' needs exactly one of expression or metric_stat")
        return self


class ThresholdAlarm(_Frozen):
    """Alarm on a single metric compared against a static threshold."""

    kind: Literal["threshold"] = "threshold"
    logical_id: str
    name: str
    description: str
    metric: MetricSeries
    statistic: Statistic
    period: int = Field(gt=0)
    evaluation_periods: int = Field(ge=1)
    threshold: float
    comparison_operator: ComparisonOperator
    missing_data: MissingDataPolicy = MissingDataPolicy.MISSING
    actions: Tuple[str, ...] = Field(min_length=1)


class ExpressionAlarm(_Frozen):
    """Alarm whose signal is derived from several metrics through metric math."""

    kind: Literal["expression"] = "expression"
    logical_id: str
    name: str
    description: str
    metrics: Tuple[MetricDataQuery, ...] = Field(min_length=1)
    evaluation_periods: int = Field(ge=1)
    threshold: float
    comparison_operator: ComparisonOperator
    missing_data: MissingDataPolicy = MissingDataPolicy.MISSING
    actions: Tuple[str, ...] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_queries(self) -> "ExpressionAlarm":
        ids = [query.id for query in self.metrics]
        if len(ids) != len(set(ids)):
            raise ValueError(f"alarm '{self.name}' has duplicate metric ids")

        defined = set(ids)
        for query in self.metrics:
            if query.expression is None:
                continue
            unknown = referenced_ids(query.expression) - defined
            if unknown:
                raise ValueError(
                    f"expression '{query.id}' references undefined ids: {', '.join(sorted(unknown))}"
                )

        driving = [query.id for query in self.metrics if query.return_data]
        if len(driving) != 1:
            raise ValueError(
                f"alarm '{self.name}' needs exactly one query with return_data, got {len(driving)}"
            )
        return self

    @property
    def driving_query(self) -> MetricDataQuery:
        return next(query for query in self.metrics if query.return_data)


Alarm = Annotated[Union[ThresholdAlarm, ExpressionAlarm], Field(discriminator="kind")]


class Output(_Frozen):
    logical_id: str
    description: str
    value: Union[str, Dict[str, Any]]


class OutputSet(_Frozen):
    dashboard_url: Output
    notification_channel_id: Output

    def all(self) -> Tuple[Output, Output]:
        return (self.dashboard_url, self.notification_channel_id)


class ResolvedOutputs(_Frozen):
    """Output values reported by CloudFormation after a successful apply."""

    dashboard_url: str
    notification_channel_id: str


class Stack(_Frozen):
    """Root aggregate: one channel, one dashboard, the alarms and the outputs."""

    queue_name: str
    description: str
    channel: NotificationChannel
    dashboard: Dashboard
    alarms: Tuple[Alarm, ...]
    outputs: OutputSet

    def alarm(self, name: str) -> Union[ThresholdAlarm, ExpressionAlarm]:
        for alarm in self.alarms:
            if alarm.name == name:
                return alarm
        raise KeyError(name)

    def resource_ids(self) -> List[str]:
        return [self.channel.logical_id, self.dashboard.logical_id] + [
            alarm.logical_id for alarm in self.alarms
        ]

    def dependencies(self) -> Dict[str, Tuple[str, ...]]:
        """Map each resource logical id to the logical ids it references."""
        graph: Dict[str, Tuple[str, ...]] = {
            self.channel.logical_id: (),
            self.dashboard.logical_id: (),
        }
        for alarm in self.alarms:
            graph[alarm.logical_id] = tuple(dict.fromkeys(alarm.actions))
        return graph

    def apply_order(self) -> List[str]:
        """Resource logical ids in an order where every reference is created first."""
        sorter = TopologicalSorter(self.dependencies())
        return list(sorter.static_order())
