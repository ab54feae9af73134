"""Tests for offline alarm evaluation."""

import pytest

from sqs_monitoring.evaluation import AlarmSimulator, divergence_signal, evaluate_alarm
from sqs_monitoring.models import AlarmState, MissingDataPolicy


class TestDivergenceSignal:
    """Step function behind the divergence alarm."""

    @pytest.mark.parametrize("sent,deleted,expected", [
        (201, 100, 1),
        (200, 100, 0),
        (1000, 0, 1),
        (0, 1000, 0),
    ])
    def test_signal(self, sent, deleted, expected):
        assert divergence_signal(sent, deleted) == expected

    @pytest.mark.parametrize("sent,deleted", [(0, 0), (100, 0), (101, 0), (350, 120), (5000, 4901), (5000, 4899)])
    def test_alarm_follows_signal(self, divergence_alarm, sent, deleted):
        """ALARM exactly when the derived signal is at least 1."""
        state = evaluate_alarm(divergence_alarm, [{"m1": sent, "m2": deleted}])
        expected = AlarmState.ALARM if divergence_signal(sent, deleted) >= 1 else AlarmState.OK
        assert state is expected


class TestThresholdAlarms:
    """Depth and age alarms over one evaluation period."""

    @pytest.mark.parametrize("visible,expected", [
        (10001, AlarmState.ALARM),
        (10000, AlarmState.OK),
        (0, AlarmState.OK),
    ])
    def test_depth(self, depth_alarm, visible, expected):
        assert evaluate_alarm(depth_alarm, [visible]) is expected

    @pytest.mark.parametrize("age,expected", [
        (3601, AlarmState.ALARM),
        (3600, AlarmState.OK),
    ])
    def test_age(self, age_alarm, age, expected):
        assert evaluate_alarm(age_alarm, [age]) is expected

    def test_only_latest_window_counts(self, depth_alarm):
        assert evaluate_alarm(depth_alarm, [50000, 50000, 12]) is AlarmState.OK


class TestMissingData:
    """Periods without datapoints."""

    def test_divergence_without_data_is_ok(self, divergence_alarm):
        assert evaluate_alarm(divergence_alarm, []) is AlarmState.OK
        assert evaluate_alarm(divergence_alarm, [{"m1": None, "m2": None}]) is AlarmState.OK
        assert evaluate_alarm(divergence_alarm, [None]) is AlarmState.OK

    def test_depth_and_age_without_data_are_insufficient(self, depth_alarm, age_alarm):
        assert evaluate_alarm(depth_alarm, []) is AlarmState.INSUFFICIENT_DATA
        assert evaluate_alarm(age_alarm, [None]) is AlarmState.INSUFFICIENT_DATA

    def _three_periods(self, alarm, policy):
        return alarm.model_copy(update={"evaluation_periods": 3, "missing_data": policy})

    @pytest.mark.parametrize("policy,expected", [
        (MissingDataPolicy.BREACHING, AlarmState.ALARM),
        (MissingDataPolicy.NOT_BREACHING, AlarmState.OK),
        (MissingDataPolicy.MISSING, AlarmState.ALARM),
        (MissingDataPolicy.IGNORE, AlarmState.ALARM),
    ])
    def test_partial_window(self, depth_alarm, policy, expected):
        alarm = self._three_periods(depth_alarm, policy)
        assert evaluate_alarm(alarm, [None, 20000, 20000]) is expected

    @pytest.mark.parametrize("policy,expected", [
        (MissingDataPolicy.BREACHING, AlarmState.ALARM),
        (MissingDataPolicy.NOT_BREACHING, AlarmState.OK),
        (MissingDataPolicy.MISSING, AlarmState.INSUFFICIENT_DATA),
        (MissingDataPolicy.IGNORE, AlarmState.OK),
    ])
    def test_empty_window(self, depth_alarm, policy, expected):
        alarm = self._three_periods(depth_alarm, policy)
        assert evaluate_alarm(alarm, [None, None, None], current=AlarmState.OK) is expected

    def test_mixed_window_not_all_breaching(self, depth_alarm):
        alarm = self._three_periods(depth_alarm, MissingDataPolicy.MISSING)
        assert evaluate_alarm(alarm, [20000, None, 5]) is AlarmState.OK


class TestAlarmSimulator:
    """State machine and notifications."""

    def test_starts_insufficient(self, depth_alarm):
        assert AlarmSimulator(depth_alarm).state is AlarmState.INSUFFICIENT_DATA

    def test_notifies_only_on_entering_alarm(self, depth_alarm):
        simulator = AlarmSimulator(depth_alarm)

        first = simulator.observe([20000])
        assert (first.previous, first.current) == (AlarmState.INSUFFICIENT_DATA, AlarmState.ALARM)
        assert first.notified == ("SNSTopic",)

        repeat = simulator.observe([25000])
        assert repeat.current is AlarmState.ALARM
        assert not repeat.changed
        assert repeat.notified == ()

        recovered = simulator.observe([10])
        assert recovered.current is AlarmState.OK
        assert recovered.notified == ()

        again = simulator.observe([30000])
        assert again.notified == ("SNSTopic",)
        assert len(simulator.history) == 4

    def test_ok_to_insufficient(self, depth_alarm):
        simulator = AlarmSimulator(depth_alarm)
        simulator.observe([1])
        transition = simulator.observe([])
        assert transition.current is AlarmState.INSUFFICIENT_DATA
        assert transition.notified == ()

    def test_divergence_recovers_when_quiet(self, divergence_alarm):
        simulator = AlarmSimulator(divergence_alarm)
        assert simulator.observe([{"m1": 900, "m2": 100}]).notified == ("SNSTopic",)
        assert simulator.observe([{"m1": None, "m2": None}]).current is AlarmState.OK
