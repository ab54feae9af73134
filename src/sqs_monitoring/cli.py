"""
Command line interface for the SQS monitoring stack.

Usage:
    sqs-monitoring render --queue-name orders-queue --email ops@example.com
    sqs-monitoring deploy --queue-name orders-queue --email ops@example.com
    sqs-monitoring outputs --queue-name orders-queue
    sqs-monitoring delete --queue-name orders-queue
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .compiler import compile_stack, default_stack_name
from .deployer import StackDeployer
from .exceptions import MonitoringError
from .template import render_parameterized_template, render_template
from .utils.logger import get_logger

logger = get_logger(__name__)


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--queue-name', type=str, help='SQS queue name')
    target.add_argument('--stack-name', type=str, help='CloudFormation stack name')
    parser.add_argument('--region', type=str, help='AWS region (default: from config)')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='sqs-monitoring',
        description='Dashboard, SNS topic and alarms for monitoring an SQS queue'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    render = subparsers.add_parser('render', help='Print the CloudFormation template')
    render.add_argument('--queue-name', type=str, help='SQS queue name')
    render.add_argument('--email', type=str, help='Email address for alarm notifications')
    render.add_argument('--output', type=Path, help='Write the template to this file')
    render.add_argument(
        '--parameterized',
        action='store_true',
        help='Render a template taking SQSQueueName/EmailAddress parameters'
    )

    deploy = subparsers.add_parser('deploy', help='Create or update the monitoring stack')
    deploy.add_argument('--queue-name', type=str, required=True, help='SQS queue name')
    deploy.add_argument('--email', type=str, required=True, help='Email address for alarm notifications')
    deploy.add_argument('--stack-name', type=str, help='CloudFormation stack name')
    deploy.add_argument('--region', type=str, help='AWS region (default: from config)')
    deploy.add_argument('--no-wait', action='store_true', help='Return without waiting')

    outputs = subparsers.add_parser('outputs', help='Show dashboard URL and SNS topic ARN')
    _add_target_arguments(outputs)

    delete = subparsers.add_parser('delete', help='Delete the monitoring stack')
    _add_target_arguments(delete)
    delete.add_argument('--no-wait', action='store_true', help='Return without waiting')

    return parser


def _render(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    if args.parameterized:
        template = render_parameterized_template()
    else:
        if not args.queue_name or not args.email:
            parser.error('render requires --queue-name and --email unless --parameterized')
        template = render_template(compile_stack(args.queue_name, args.email))

    text = json.dumps(template, indent=2, sort_keys=True)
    if args.output:
        args.output.write_text(text + "\n", encoding='utf-8')
        logger.info(f"Wrote template to {args.output}")
    else:
        print(text)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'render':
            return _render(args, parser)

        deployer = StackDeployer(region=args.region)
        stack_name = args.stack_name or default_stack_name(args.queue_name)

        if args.command == 'deploy':
            stack = compile_stack(args.queue_name, args.email)
            stack_id = deployer.deploy(stack, stack_name=stack_name, wait=not args.no_wait)
            logger.info(f"Stack ID: {stack_id}")
            if not args.no_wait:
                outputs = deployer.get_outputs(stack_name)
                logger.info(f"Dashboard URL: {outputs.dashboard_url}")
                logger.info(f"SNS Topic ARN: {outputs.notification_channel_id}")
                logger.info(
                    f"Please check {args.email} and confirm the SNS subscription "
                    "to receive alarm notifications."
                )
            return 0

        if args.command == 'outputs':
            outputs = deployer.get_outputs(stack_name)
            print(json.dumps(outputs.model_dump(), indent=2))
            return 0

        deployer.delete(stack_name, wait=not args.no_wait)
        return 0

    except (MonitoringError, ClientError, BotoCoreError) as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
