"""
CloudWatch monitoring stack for an Amazon SQS queue.

This package provides:
- Stack compilation (SNS topic, dashboard, alarms) from a queue name and email
- CloudFormation template rendering and deployment
- Offline alarm evaluation for the queue alarms
"""

from .compiler import compile_stack, default_stack_name
from .template import render_template, render_template_json

__version__ = '0.1.0'

__all__ = [
    "compile_stack",
    "default_stack_name",
    "render_template",
    "render_template_json",
]
