"""Pytest configuration and fixtures."""

import pytest

from sqs_monitoring.compiler import compile_stack


@pytest.fixture
def mock_aws_credentials(monkeypatch):
    """Mock AWS credentials for testing."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def orders_stack():
    """Monitoring stack for the orders-queue example."""
    return compile_stack("orders-queue", "ops@example.com")


@pytest.fixture
def depth_alarm(orders_stack):
    return orders_stack.alarm("SQS-Queue-orders-queue-MessageVisibleAlarm")


@pytest.fixture
def age_alarm(orders_stack):
    return orders_stack.alarm("SQS-Queue-orders-queue-OldestMessageAgeAlarm")


@pytest.fixture
def divergence_alarm(orders_stack):
    return orders_stack.alarm("SQS-Queue-orders-queue-MessageDeletedDivergenceAlarm")
