#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Module for the StackSettings class
"""

from __future__ import annotations

import re
from copy import deepcopy
from datetime import datetime as dt
from types import MappingProxyType

import boto3
import jsonschema
import yaml

try:
    from yaml import CSafeLoader as Loader
except ImportError:
    from yaml import SafeLoader as Loader

from compose_x_common.aws import get_assume_role_session, validate_iam_role_arn
from compose_x_common.compose_x_common import keyisset, set_else_none

from ecs_conduktor.common.envsubst import expandvars
from ecs_conduktor.common.logging import LOG
from ecs_conduktor.common.naming import ResourceNames, define_prefix
from ecs_conduktor.ecs.ecs_params import DEFAULT_IMAGES, FARGATE_MODES
from ecs_conduktor.events.events_params import DEFAULT_SCHEDULES, START_T, STOP_T
from ecs_conduktor.exceptions import SettingsError
from ecs_conduktor.specs import STACK_SPEC

IMAGE_TAG = re.compile(
    r"^(?P<repository>[^@]+?)"
    r"(?::(?P<tag>[\w][\w.-]{0,127}))?"
    r"(?:@(?P<digest>sha256:[a-f0-9]{64}))?$"
)


def load_config_file(file_path: str) -> dict:
    """
    Reads the YAML/JSON configuration file, after interpolating the environment variables into it.

    :param str file_path:
    :rtype: dict
    """
    with open(file_path, encoding="utf-8") as config_fd:
        content = yaml.load(expandvars(config_fd.read()), Loader=Loader)
    if not isinstance(content, dict):
        raise SettingsError(
            f"{file_path} - The configuration must be a mapping. Got", type(content)
        )
    return content


def validate_content(content: dict) -> None:
    """
    Validates the configuration against the stack JSON Schema

    :raises: SettingsError
    """
    try:
        jsonschema.validate(content, STACK_SPEC)
    except jsonschema.exceptions.ValidationError as error:
        LOG.error(f"Invalid configuration - {error.message}")
        path = ".".join(str(part) for part in error.absolute_path)
        raise SettingsError(f"Configuration invalid at [{path}]: {error.message}")


def validate_fargate_budget(cpu: int, memory: int) -> None:
    """
    Checks that the task cpu/memory combination is supported by AWS Fargate
    """
    if memory not in FARGATE_MODES[cpu]:
        raise SettingsError(
            f"memoryLimit {memory} is not valid for cpuUnits {cpu}. Valid values are",
            FARGATE_MODES[cpu],
        )


def is_pinned_image(image: str) -> bool:
    """
    An image is pinned when it is referenced by digest, or with a tag other than latest
    """
    parts = IMAGE_TAG.match(image)
    if not parts:
        return False
    if parts.group("digest"):
        return True
    return bool(parts.group("tag")) and parts.group("tag") != "latest"


class StackSettings:
    """
    Class to handle the settings of the stack: the configuration file content (StackConfig)
    and the execution settings (command, output, AWS session).

    Once created, the configuration is read-only and every resource name is derived from :attr:`prefix`.

    :ivar ResourceNames names: the names of all resources, derived from the prefix
    :ivar boto3.session.Session session: session used for lookups and deployment
    """

    name_arg = "Name"
    config_file_arg = "ConfigFile"
    output_dir_arg = "OutputDirectory"
    format_arg = "TemplateFormat"
    region_arg = "RegionName"
    arn_arg = "RoleArn"
    bucket_arg = "BucketName"
    rollback_arg = "DisableRollback"
    command_arg = "command"

    deploy_arg = "up"
    render_arg = "render"
    create_arg = "create"
    plan_arg = "plan"

    default_format = "json"
    allowed_formats = ["json", "yaml"]
    default_output_dir = f"/tmp/{dt.utcnow().strftime('%s')}"

    active_commands = [
        {
            "name": deploy_arg,
            "help": "Generates & Validates the CFN template, Creates/Updates stack in CFN",
        },
        {
            "name": render_arg,
            "help": "Generates & Validates the CFN template locally. No upload to S3",
        },
        {
            "name": create_arg,
            "help": "Generates & Validates the CFN template locally. Uploads files to S3",
        },
        {
            "name": plan_arg,
            "help": "Creates a change-set to show the diff prior to an update",
        },
    ]
    neutral_commands = [
        {"name": "version", "help": "ECS Conduktor Version"},
    ]

    def __init__(self, content: dict = None, session=None, profile_name=None, **kwargs):
        self.__args = deepcopy(kwargs)
        if content is None:
            if not keyisset(self.config_file_arg, kwargs):
                raise SettingsError("No configuration content nor file provided")
            content = load_config_file(kwargs[self.config_file_arg])
        validate_content(content)
        self._config = deepcopy(content)

        if session is None:
            session = boto3.session.Session(
                profile_name=profile_name,
                region_name=set_else_none(self.region_arg, kwargs),
            )
        self.session = session
        if keyisset(self.arn_arg, kwargs):
            validate_iam_role_arn(kwargs[self.arn_arg])
            self.session = get_assume_role_session(
                self.session,
                kwargs[self.arn_arg],
                session_name="ecs-conduktor@Deploy",
                region=self.session.region_name,
            )
        self.aws_region = self.session.region_name

        validate_fargate_budget(self.cpu_units, self.memory_limit)
        self.names = ResourceNames(self.prefix)
        self.images = self.define_images()
        self.schedules = self.define_schedules()

        self.command = set_else_none(self.command_arg, kwargs, alt_value=self.render_arg)
        self.deploy = self.command == self.deploy_arg
        self.plan = self.command == self.plan_arg
        self.no_upload = self.command == self.render_arg
        self.bucket_name = set_else_none(self.bucket_arg, kwargs)
        if self.command == self.create_arg and not self.bucket_name:
            raise SettingsError(f"Command {self.create_arg} requires a bucket name to upload to")
        self.upload = not self.no_upload and bool(self.bucket_name)
        self.output_dir = set_else_none(
            self.output_dir_arg, kwargs, alt_value=self.default_output_dir
        )
        self.format = set_else_none(
            self.format_arg, kwargs, alt_value=self.default_format
        )
        if self.format not in self.allowed_formats:
            raise SettingsError(
                f"Format {self.format} is not valid. Expected one of",
                self.allowed_formats,
            )
        self.name = set_else_none(self.name_arg, kwargs, alt_value=self.prefix)

    def __repr__(self):
        return f"{self.name} ({self.prefix})"

    @property
    def disable_rollback(self) -> bool:
        return bool(set_else_none(self.rollback_arg, self.__args, alt_value=False))

    @property
    def config(self) -> MappingProxyType:
        return MappingProxyType(self._config)

    @property
    def project(self) -> str:
        return self._config["project"]

    @property
    def service(self) -> str:
        return self._config["service"]

    @property
    def environment(self) -> str:
        return self._config["environment"]

    @property
    def domain(self) -> str:
        return self._config["domain"]

    @property
    def subdomain(self) -> str:
        return self._config["subdomain"]

    @property
    def network_id(self) -> str:
        return self._config["networkId"]

    @property
    def cluster_name(self) -> str:
        return set_else_none("clusterName", self._config, alt_value=self.project)

    @property
    def memory_limit(self) -> int:
        return self._config["memoryLimit"]

    @property
    def cpu_units(self) -> int:
        return self._config["cpuUnits"]

    @property
    def desired_count(self) -> int:
        return self._config["desiredCount"]

    @property
    def health_check_path(self) -> str:
        return self._config["healthCheckPath"]

    @property
    def target_group_priority(self):
        return set_else_none("targetGroupPriority", self._config)

    @property
    def allowlist(self) -> tuple:
        return tuple(
            MappingProxyType(dict(entry))
            for entry in set_else_none("allowlist", self._config, alt_value=[])
        )

    @property
    def prefix(self) -> str:
        return define_prefix(self.environment, self.project, self.service)

    def define_images(self) -> MappingProxyType:
        """
        Merges the images overrides with the defaults. The database image must be pinned.
        """
        images = dict(DEFAULT_IMAGES)
        images.update(set_else_none("images", self._config, alt_value={}))
        if not is_pinned_image(images["database"]):
            raise SettingsError(
                f"The database image {images['database']} must be pinned to a tag other than latest or a digest"
            )
        for name, image in images.items():
            if not is_pinned_image(image):
                LOG.warning(f"{self.prefix}.{name} - image {image} is not pinned.")
        return MappingProxyType(images)

    def define_schedules(self) -> MappingProxyType:
        """
        Merges the schedules overrides with the default ones, and ensures start and stop do not collide
        """
        overrides = set_else_none("schedules", self._config, alt_value={})
        schedules = {}
        for schedule_name, default in DEFAULT_SCHEDULES.items():
            schedule = dict(default)
            schedule.update(set_else_none(schedule_name, overrides, alt_value={}))
            schedules[schedule_name] = MappingProxyType(schedule)
        start = schedules[START_T]
        stop = schedules[STOP_T]
        if (start["hour"], start["minute"]) == (stop["hour"], stop["minute"]):
            raise SettingsError(
                f"Start and stop schedules both trigger at {start['hour']:02d}:{start['minute']:02d} UTC"
            )
        return MappingProxyType(schedules)
