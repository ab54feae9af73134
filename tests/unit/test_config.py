"""Unit tests for configuration module."""

import pytest
from sqs_monitoring.config import Config, AWSConfig, AlarmThresholds, DeploymentConfig


class TestAWSConfig:
    """Test AWS configuration."""

    def test_default_region(self, monkeypatch):
        """Test default AWS region."""
        monkeypatch.delenv("AWS_REGION", raising=False)
        config = AWSConfig()
        assert config.region == "us-east-1"

    def test_region_from_environment(self, monkeypatch):
        """Test region is read from AWS_REGION."""
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        assert AWSConfig().region == "eu-west-1"


class TestAlarmThresholds:
    """Test alarm threshold configuration."""

    def test_defaults(self, monkeypatch):
        """Test thresholds default to the documented alarm policy."""
        for name in (
            "SQS_MONITORING_VISIBLE_MESSAGES",
            "SQS_MONITORING_VISIBLE_MESSAGES_PERIOD",
            "SQS_MONITORING_OLDEST_MESSAGE_AGE",
            "SQS_MONITORING_OLDEST_MESSAGE_AGE_PERIOD",
            "SQS_MONITORING_DIVERGENCE_LIMIT",
            "SQS_MONITORING_DIVERGENCE_PERIOD",
        ):
            monkeypatch.delenv(name, raising=False)

        thresholds = AlarmThresholds()
        assert thresholds.visible_messages == 10000
        assert thresholds.visible_messages_period == 300
        assert thresholds.oldest_message_age == 3600
        assert thresholds.oldest_message_age_period == 3600
        assert thresholds.divergence_limit == 100
        assert thresholds.divergence_period == 3600

    def test_override_from_environment(self, monkeypatch):
        """Test a threshold can be tuned through the environment."""
        monkeypatch.setenv("SQS_MONITORING_DIVERGENCE_LIMIT", "250")
        assert AlarmThresholds().divergence_limit == 250


class TestConfig:
    """Test main configuration object."""

    def test_config_initialization(self):
        """Test config object can be initialized."""
        config = Config()
        assert config.project_name == "sqs-monitoring"
        assert isinstance(config.aws, AWSConfig)
        assert isinstance(config.thresholds, AlarmThresholds)
        assert isinstance(config.deployment, DeploymentConfig)

    def test_deployment_tags(self):
        """Test stacks are tagged as automation-managed."""
        assert DeploymentConfig().tags["ManagedBy"] == "Automation"
