"""Configuration management for the SQS monitoring stack."""

import os
from typing import Dict
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class AWSConfig(BaseModel):
    """AWS configuration settings."""

    region: str = Field(default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"))


class AlarmThresholds(BaseModel):
    """Alarm thresholds and evaluation periods (seconds)."""

    visible_messages: float = Field(
        default_factory=lambda: float(os.getenv("SQS_MONITORING_VISIBLE_MESSAGES", "10000"))
    )
    visible_messages_period: int = Field(
        default_factory=lambda: int(os.getenv("SQS_MONITORING_VISIBLE_MESSAGES_PERIOD", "300"))
    )
    oldest_message_age: float = Field(
        default_factory=lambda: float(os.getenv("SQS_MONITORING_OLDEST_MESSAGE_AGE", "3600"))
    )
    oldest_message_age_period: int = Field(
        default_factory=lambda: int(os.getenv("SQS_MONITORING_OLDEST_MESSAGE_AGE_PERIOD", "3600"))
    )
    divergence_limit: int = Field(
        default_factory=lambda: int(os.getenv("SQS_MONITORING_DIVERGENCE_LIMIT", "100"))
    )
    divergence_period: int = Field(
        default_factory=lambda: int(os.getenv("SQS_MONITORING_DIVERGENCE_PERIOD", "3600"))
    )


class DeploymentConfig(BaseModel):
    """CloudFormation deployment settings."""

    stack_name_prefix: str = Field(
        default_factory=lambda: os.getenv("SQS_MONITORING_STACK_PREFIX", "sqs-monitoring")
    )
    timeout_minutes: int = Field(
        default_factory=lambda: int(os.getenv("SQS_MONITORING_TIMEOUT_MINUTES", "30"))
    )
    waiter_delay: int = Field(
        default_factory=lambda: int(os.getenv("SQS_MONITORING_WAITER_DELAY", "15"))
    )
    tags: Dict[str, str] = Field(
        default_factory=lambda: {"Project": "sqs-monitoring", "ManagedBy": "Automation"}
    )


class Config(BaseModel):
    """Main configuration object."""

    aws: AWSConfig = Field(default_factory=AWSConfig)
    thresholds: AlarmThresholds = Field(default_factory=AlarmThresholds)
    deployment: DeploymentConfig = Field(default_factory=DeploymentConfig)

    # Project settings
    project_name: str = "sqs-monitoring"
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "dev"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


# Global configuration instance
config = Config()
