"""
Local simulation of CloudWatch alarm evaluation.

CloudWatch evaluates the alarms; this module reproduces the policy so the
thresholds, expressions and missing-data handling can be checked offline.

Alarms move INSUFFICIENT_DATA -> OK <-> ALARM. Actions fire only when an
alarm enters ALARM; there are no OK actions.
"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from .metric_math import evaluate_queries
from .models import AlarmState, ExpressionAlarm, MissingDataPolicy, ThresholdAlarm
from .utils.logger import get_logger

logger = get_logger(__name__)

Sample = Mapping[str, Optional[float]]
Datapoints = Union[Sequence[Optional[float]], Sequence[Optional[Sample]]]


def divergence_signal(sent: float, deleted: float, limit: float = 100) -> int:
    """Step function of the divergence alarm: 1 if sent - deleted > limit, else 0."""
    return 1 if (sent - deleted) > limit else 0


def _signal_values(
    alarm: Union[ThresholdAlarm, ExpressionAlarm],
    datapoints: Datapoints,
) -> List[Optional[float]]:
    if isinstance(alarm, ExpressionAlarm):
        return [
            None if sample is None else evaluate_queries(alarm.metrics, sample)
            for sample in datapoints
        ]
    return [None if value is None else float(value) for value in datapoints]


def evaluate_alarm(
    alarm: Union[ThresholdAlarm, ExpressionAlarm],
    datapoints: Datapoints,
    current: AlarmState = AlarmState.INSUFFICIENT_DATA,
) -> AlarmState:
    """
    Evaluate an alarm over its most recent evaluation window.

    Args:
        alarm: Alarm definition
        datapoints: Oldest first. Plain values for a threshold alarm, or one
            {metric id: value} sample per period for an expression alarm.
            None marks a period without data.
        current: State before this evaluation, kept under the ignore policy

    Returns:
        The new alarm state
    """
    values = _signal_values(alarm, datapoints)
    window = values[-alarm.evaluation_periods:]
    # Periods never reported count as missing
    window = [None] * (alarm.evaluation_periods - len(window)) + window

    present = [value for value in window if value is not None]
    breaches = sum(
        1 for value in present if alarm.comparison_operator.compare(value, alarm.threshold)
    )
    policy = alarm.missing_data

    if not present:
        if policy is MissingDataPolicy.MISSING:
            return AlarmState.INSUFFICIENT_DATA
        if policy is MissingDataPolicy.IGNORE:
            return current
        if policy is MissingDataPolicy.BREACHING:
            return AlarmState.ALARM
        return AlarmState.OK

    if policy is MissingDataPolicy.BREACHING:
        breaches += len(window) - len(present)
        return AlarmState.ALARM if breaches >= alarm.evaluation_periods else AlarmState.OK
    if policy is MissingDataPolicy.NOT_BREACHING:
        return AlarmState.ALARM if breaches >= alarm.evaluation_periods else AlarmState.OK

    # missing / ignore: judge on the datapoints that exist
    return AlarmState.ALARM if breaches == len(present) else AlarmState.OK


@dataclass(frozen=True)
class Transition:
    previous: AlarmState
    current: AlarmState
    notified: Tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return self.previous is not self.current


@dataclass
class AlarmSimulator:
    """Track one alarm's state across successive evaluations."""

    alarm: Union[ThresholdAlarm, ExpressionAlarm]
    state: AlarmState = AlarmState.INSUFFICIENT_DATA
    history: List[Transition] = field(default_factory=list)

    def observe(self, datapoints: Datapoints) -> Transition:
        """
        Evaluate the alarm against new datapoints and record the transition.

        Returns:
            Transition with the channels notified, if the alarm entered ALARM
        """
        previous = self.state
        self.state = evaluate_alarm(self.alarm, datapoints, current=previous)

        notified: Tuple[str, ...] = ()
        if self.state is AlarmState.ALARM and previous is not AlarmState.ALARM:
            notified = tuple(self.alarm.actions)
            logger.info(f"{self.alarm.name}: {previous.value} -> ALARM, notifying {', '.join(notified)}")
        elif self.state is not previous:
            logger.info(f"{self.alarm.name}: {previous.value} -> {self.state.value}")

        transition = Transition(previous=previous, current=self.state, notified=notified)
        self.history.append(transition)
        return transition
