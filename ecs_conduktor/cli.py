#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Console script for ecs_conduktor.
"""

import argparse
import logging
import sys

from ecs_conduktor import __version__
from ecs_conduktor.common.aws import deploy, plan
from ecs_conduktor.common.files import FileArtifact
from ecs_conduktor.common.logging import LOG
from ecs_conduktor.common.settings import StackSettings
from ecs_conduktor.conduktor_stack import ConduktorStack
from ecs_conduktor.environment import AwsEnvironment
from ecs_conduktor.exceptions import ConduktorBaseException

VALID_LEVELS = ["FATAL", "CRITICAL", "ERROR", "WARNING", "WARN", "INFO", "DEBUG"]


class ArgparseHelper(argparse._HelpAction):
    """
    Used to help print top level '--help' arguments from argparse
    when used with subparsers
    """

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help()
        print()
        subparsers_actions = [
            action
            for action in parser._actions
            if isinstance(action, argparse._SubParsersAction)
        ]
        for subparsers_action in subparsers_actions:
            for choice, subparser in list(subparsers_action.choices.items()):
                if choice in [cmd["name"] for cmd in StackSettings.active_commands]:
                    print(f"Command '{choice}'")
                    print(subparser.format_usage())
        parser.exit()


def main_parser():
    """
    Console script for ecs_conduktor.
    """
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "-h",
        "--help",
        action=ArgparseHelper,
        help="show this help message and exit",
    )

    cmd_parsers = parser.add_subparsers(
        dest=StackSettings.command_arg, help="Command to execute."
    )
    base_command_parser = argparse.ArgumentParser(add_help=False)
    base_command_parser.add_argument(
        "-f",
        "--config-file",
        dest=StackSettings.config_file_arg,
        required=True,
        help="Path to the stack configuration file (YAML or JSON)",
    )
    base_command_parser.add_argument(
        "-d",
        "--output-dir",
        required=False,
        help="Output directory to write the template to.",
        type=str,
        dest=StackSettings.output_dir_arg,
        default=StackSettings.default_output_dir,
    )
    base_command_parser.add_argument(
        "-n",
        "--name",
        help="Name of the CloudFormation stack. Defaults to {environment}-{project}-{service}",
        required=False,
        type=str,
        dest=StackSettings.name_arg,
    )
    base_command_parser.add_argument(
        "--format",
        help="Defines the format you want to use.",
        type=str,
        dest=StackSettings.format_arg,
        choices=StackSettings.allowed_formats,
        default=StackSettings.default_format,
    )
    base_command_parser.add_argument(
        "--region",
        required=False,
        dest=StackSettings.region_arg,
        help="Specify the region you want to build for"
        "default use default region from config or environment vars",
    )
    base_command_parser.add_argument(
        "-b",
        "--bucket-name",
        type=str,
        required=False,
        help="Bucket name to upload the template to",
        dest=StackSettings.bucket_arg,
    )
    base_command_parser.add_argument(
        "--role-arn",
        dest=StackSettings.arn_arg,
        help="Allow you to run API calls using a specific IAM role, within same or for cross-account",
        required=False,
    )
    base_command_parser.add_argument(
        "--disable-rollback",
        dest=StackSettings.rollback_arg,
        help="On create/plan, disable stack automatic rollback.",
        required=False,
        action="store_true",
    )
    base_command_parser.add_argument(
        "--loglevel", type=str, help="Log level. Defaults to INFO", required=False
    )
    for command in StackSettings.active_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=[base_command_parser],
        )
    for command in StackSettings.neutral_commands:
        cmd_parsers.add_parser(name=command["name"], help=command["help"])
    return parser


def set_log_level(loglevel: str) -> None:
    if loglevel.upper() in VALID_LEVELS:
        LOG.setLevel(logging.getLevelName(loglevel.upper()))
        LOG.handlers[0].setLevel(logging.getLevelName(loglevel.upper()))
    else:
        print(f"Log level value {loglevel} is invalid. Must me one of {VALID_LEVELS}")


def render(settings: StackSettings, environment=None) -> FileArtifact:
    """
    Renders the template, writes it locally and uploads it when the command requires it.

    :param StackSettings settings:
    :param environment: lookup capability, defaults to AwsEnvironment with the settings session
    :rtype: FileArtifact
    """
    if environment is None:
        environment = AwsEnvironment(settings.session)
    template = ConduktorStack(settings, environment).render()
    artifact = FileArtifact(settings.name, settings, template)
    artifact.write(settings)
    if settings.upload:
        artifact.upload(settings)
    if not settings.no_upload:
        artifact.validate(settings)
    return artifact


def main():
    """
    Main entry point for CLI
    :return: status code
    """
    parser = main_parser()
    if len(sys.argv) == 1:
        parser.print_help()
        sys.exit()
    args = parser.parse_args()
    if args.command == "version":
        print("ecs-conduktor", __version__)
        return 0
    if args.loglevel:
        set_log_level(args.loglevel)
    LOG.debug(args)
    try:
        settings = StackSettings(**vars(args))
        LOG.debug(settings)
        artifact = render(settings)
        if settings.deploy:
            deploy(settings, artifact)
        elif settings.plan:
            plan(settings, artifact)
    except ConduktorBaseException as error:
        LOG.error(error)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
