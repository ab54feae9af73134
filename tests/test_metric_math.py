"""Tests for the metric-math interpreter."""

import pytest

from sqs_monitoring.dashboard import sqs_metric
from sqs_monitoring.exceptions import ExpressionError
from sqs_monitoring.metric_math import evaluate, evaluate_queries, parse, referenced_ids
from sqs_monitoring.models import MetricDataQuery, MetricStat, Statistic

DIVERGENCE = "IF((m1-m2) > 100,1,0)"


class TestEvaluate:
    """Single-period evaluation."""

    @pytest.mark.parametrize("sent,deleted,expected", [
        (250, 100, 1.0),
        (201, 100, 1.0),
        (200, 100, 0.0),
        (0, 0, 0.0),
        (100, 500, 0.0),
    ])
    def test_divergence_expression(self, sent, deleted, expected):
        assert evaluate(DIVERGENCE, {"m1": sent, "m2": deleted}) == expected

    @pytest.mark.parametrize("expression,expected", [
        ("1 + 2 * 3", 7.0),
        ("(1 + 2) * 3", 9.0),
        ("10 - 4 - 3", 3.0),
        ("8 / 4 / 2", 1.0),
        ("-2 + 5", 3.0),
        ("--2", 2.0),
        ("2.5 * 2", 5.0),
        ("3 >= 3", 1.0),
        ("3 != 3", 0.0),
        ("1 > 0 AND 0 > 1", 0.0),
        ("1 > 0 OR 0 > 1", 1.0),
        ("IF(0, 5, IF(1, 6, 7))", 6.0),
    ])
    def test_arithmetic(self, expression, expected):
        assert evaluate(expression, {}) == expected

    def test_missing_datapoint_propagates(self):
        assert evaluate(DIVERGENCE, {"m1": None, "m2": 10}) is None
        assert evaluate("-m1", {"m1": None}) is None

    def test_division_by_zero_has_no_value(self):
        assert evaluate("m1 / m2", {"m1": 5, "m2": 0}) is None

    def test_unknown_series(self):
        with pytest.raises(ExpressionError, match="m9"):
            evaluate("m9 + 1", {"m1": 1})


class TestParse:
    """Syntax handling."""

    def test_referenced_ids(self):
        assert referenced_ids(DIVERGENCE) == {"m1", "m2"}
        assert referenced_ids("IF(e1 > 0, m3, 0)") == {"e1", "m3"}
        assert referenced_ids("42") == set()

    def test_parse_is_cached(self):
        assert parse(DIVERGENCE) is parse(DIVERGENCE)

    @pytest.mark.parametrize("expression", [
        "",
        "   ",
        "m1 +",
        "IF(m1, 1)",
        "(m1 - m2",
        "m1 m2",
        "m1 $ 2",
        "SUM(m1)",
        "AND",
    ])
    def test_syntax_errors(self, expression):
        with pytest.raises(ExpressionError):
            parse(expression)

    def test_expression_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse("m1 +")


class TestEvaluateQueries:
    """Whole query sets for one period."""

    @staticmethod
    def _raw(query_id):
        return MetricDataQuery(
            id=query_id,
            metric_stat=MetricStat(
                metric=sqs_metric("q", "NumberOfMessagesSent"), period=3600, stat=Statistic.MINIMUM
            ),
            return_data=False,
        )

    def test_driving_value(self, divergence_alarm):
        assert evaluate_queries(divergence_alarm.metrics, {"m1": 500, "m2": 100}) == 1.0
        assert evaluate_queries(divergence_alarm.metrics, {"m1": 150, "m2": 100}) == 0.0

    def test_absent_series_has_no_value(self, divergence_alarm):
        assert evaluate_queries(divergence_alarm.metrics, {"m2": 100}) is None

    def test_chained_expressions(self):
        queries = [
            MetricDataQuery(id="e2", expression="IF(e1 > 10, 1, 0)"),
            MetricDataQuery(id="e1", expression="m1 * 2", return_data=False),
            self._raw("m1"),
        ]
        assert evaluate_queries(queries, {"m1": 6}) == 1.0
        assert evaluate_queries(queries, {"m1": 5}) == 0.0

    def test_circular_references(self):
        queries = [
            MetricDataQuery(id="e1", expression="e2 + 1"),
            MetricDataQuery(id="e2", expression="e1 + 1", return_data=False),
        ]
        with pytest.raises(ExpressionError, match="circular"):
            evaluate_queries(queries, {})
