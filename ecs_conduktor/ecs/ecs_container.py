#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Module to represent the containers of the task definition.

Each class renders to its troposphere property with ``to_cfn()`` and can be re-built from the rendered
template with ``from_cfn()``, so that a template read back from disk (JSON or YAML) gives the same
containers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ecs_conduktor.secrets.secrets_bundle import SecretBundle

from compose_x_common.compose_x_common import keyisset, set_else_none
from troposphere import Ref, Region
from troposphere.ecs import (
    ContainerDefinition,
    ContainerDependency,
    Environment,
    HealthCheck,
    LinuxParameters,
    LogConfiguration,
    MountPoint,
    PortMapping,
    Ulimit,
)

from ecs_conduktor.ecs.ecs_params import (
    DEPENDENCY_CONDITIONS,
    LOG_DRIVER,
    LOG_MULTILINE_PATTERN,
    LOG_STREAM_PREFIX,
    ULIMIT_NAMES,
)
from ecs_conduktor.exceptions import ContainerDependencyError
from ecs_conduktor.secrets.secrets_bundle import parse_secret_reference

HEALTH_CHECK_SHELL = "CMD-SHELL"


class ContainerProperty:
    """
    Common equality for the container properties: two properties are equal when all their attributes are.
    """

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self):
        attributes = ", ".join(f"{key}={value!r}" for key, value in vars(self).items())
        return f"{self.__class__.__name__}({attributes})"


class HealthProbe(ContainerProperty):
    """
    Shell command run by the ECS agent in the container. Times are in seconds.
    """

    def __init__(
        self,
        command: str,
        interval: int = 30,
        timeout: int = 5,
        retries: int = 5,
        start_period: int = 120,
    ):
        self.command = command
        self.interval = interval
        self.timeout = timeout
        self.retries = retries
        self.start_period = start_period

    def to_cfn(self) -> HealthCheck:
        return HealthCheck(
            Command=[HEALTH_CHECK_SHELL, self.command],
            Interval=self.interval,
            Timeout=self.timeout,
            Retries=self.retries,
            StartPeriod=self.start_period,
        )

    @classmethod
    def from_cfn(cls, definition: dict) -> HealthProbe:
        command = definition["Command"]
        if command[0] != HEALTH_CHECK_SHELL:
            raise ValueError(f"Only {HEALTH_CHECK_SHELL} health checks are supported")
        return cls(
            " ".join(command[1:]),
            interval=int(definition["Interval"]),
            timeout=int(definition["Timeout"]),
            retries=int(definition["Retries"]),
            start_period=int(definition["StartPeriod"]),
        )


class PortSpec(ContainerProperty):
    """
    With awsvpc the host port, when set, must be the container port
    """

    def __init__(
        self,
        name: str,
        container_port: int,
        protocol: str = "tcp",
        host_port: int = None,
    ):
        if host_port is None:
            host_port = container_port
        if host_port != container_port:
            raise ValueError(
                f"{name} - host port {host_port} must be the container port {container_port}"
            )
        self.name = name
        self.container_port = container_port
        self.host_port = host_port
        self.protocol = protocol

    def to_cfn(self) -> PortMapping:
        return PortMapping(
            Name=self.name,
            ContainerPort=self.container_port,
            HostPort=self.host_port,
            Protocol=self.protocol,
        )

    @classmethod
    def from_cfn(cls, definition: dict) -> PortSpec:
        return cls(
            definition["Name"],
            int(definition["ContainerPort"]),
            set_else_none("Protocol", definition, alt_value="tcp"),
            host_port=int(
                set_else_none("HostPort", definition, alt_value=definition["ContainerPort"])
            ),
        )


class StartupDependency(ContainerProperty):
    """
    The container starts only once ``container_name`` reached ``condition``
    """

    def __init__(self, container_name: str, condition: str):
        if condition not in DEPENDENCY_CONDITIONS:
            raise ContainerDependencyError(
                f"Condition {condition} for {container_name} is not valid. Expected one of",
                DEPENDENCY_CONDITIONS,
            )
        self.container_name = container_name
        self.condition = condition

    def to_cfn(self) -> ContainerDependency:
        return ContainerDependency(
            ContainerName=self.container_name, Condition=self.condition
        )

    @classmethod
    def from_cfn(cls, definition: dict) -> StartupDependency:
        return cls(definition["ContainerName"], definition["Condition"])


class MountSpec(ContainerProperty):
    def __init__(self, source_volume: str, container_path: str, read_only: bool = False):
        self.source_volume = source_volume
        self.container_path = container_path
        self.read_only = read_only

    def to_cfn(self) -> MountPoint:
        return MountPoint(
            SourceVolume=self.source_volume,
            ContainerPath=self.container_path,
            ReadOnly=self.read_only,
        )

    @classmethod
    def from_cfn(cls, definition: dict) -> MountSpec:
        return cls(
            definition["SourceVolume"],
            definition["ContainerPath"],
            keyisset("ReadOnly", definition),
        )


class UlimitSpec(ContainerProperty):
    def __init__(self, name: str, soft_limit: int, hard_limit: int):
        if name not in ULIMIT_NAMES:
            raise KeyError(f"{name} is not a valid ulimit. Expected one of", ULIMIT_NAMES)
        if soft_limit > hard_limit:
            raise ValueError(
                f"ulimit {name} - soft limit {soft_limit} is above hard limit {hard_limit}"
            )
        self.name = name
        self.soft_limit = soft_limit
        self.hard_limit = hard_limit

    def to_cfn(self) -> Ulimit:
        return Ulimit(
            Name=self.name, SoftLimit=self.soft_limit, HardLimit=self.hard_limit
        )

    @classmethod
    def from_cfn(cls, definition: dict) -> UlimitSpec:
        return cls(
            definition["Name"],
            int(definition["SoftLimit"]),
            int(definition["HardLimit"]),
        )


class LogSink(ContainerProperty):
    """
    awslogs configuration of a container, pointing to the log group resource ``group_title`` named ``group_name``
    """

    def __init__(
        self,
        group_name: str,
        group_title: str,
        stream_prefix: str = LOG_STREAM_PREFIX,
        multiline_pattern: str = LOG_MULTILINE_PATTERN,
    ):
        self.group_name = group_name
        self.group_title = group_title
        self.stream_prefix = stream_prefix
        self.multiline_pattern = multiline_pattern

    def to_cfn(self) -> LogConfiguration:
        return LogConfiguration(
            LogDriver=LOG_DRIVER,
            Options={
                "awslogs-group": Ref(self.group_title),
                "awslogs-region": Region,
                "awslogs-stream-prefix": self.stream_prefix,
                "awslogs-multiline-pattern": self.multiline_pattern,
            },
        )

    @classmethod
    def from_cfn(cls, definition: dict, resources: dict) -> LogSink:
        if definition["LogDriver"] != LOG_DRIVER:
            raise ValueError(f"Only the {LOG_DRIVER} log driver is supported")
        options = definition["Options"]
        group = options["awslogs-group"]
        if not isinstance(group, dict) or "Ref" not in group:
            raise ValueError("awslogs-group must reference a log group of the template")
        group_title = group["Ref"]
        return cls(
            resources[group_title]["Properties"]["LogGroupName"],
            group_title,
            stream_prefix=options["awslogs-stream-prefix"],
            multiline_pattern=set_else_none("awslogs-multiline-pattern", options),
        )


class ContainerSpec(ContainerProperty):
    """
    Class to represent one container of the task definition

    :ivar str name: container name, unique within the task definition
    :ivar str image:
    :ivar int cpu: cpu units reserved for the container
    :ivar int memory: hard memory limit (MiB)
    :ivar dict environment: environment variables name -> value
    :ivar dict secrets: environment variables name -> secret bundle field
    :ivar HealthProbe health_probe:
    :ivar list[PortSpec] ports:
    :ivar list[StartupDependency] dependencies:
    :ivar list[MountSpec] mount_points:
    :ivar list[UlimitSpec] ulimits:
    :ivar LogSink log_sink:
    """

    def __init__(
        self,
        name: str,
        image: str,
        cpu: int,
        memory: int,
        environment: dict = None,
        secrets: dict = None,
        health_probe: HealthProbe = None,
        ports: list = None,
        dependencies: list = None,
        mount_points: list = None,
        ulimits: list = None,
        log_sink: LogSink = None,
        essential: bool = True,
        stop_timeout: int = None,
        docker_labels: dict = None,
        init_process: bool = False,
    ):
        self.name = name
        self.image = image
        self.cpu = cpu
        self.memory = memory
        self.environment = dict(environment) if environment else {}
        self.secrets = dict(secrets) if secrets else {}
        self.health_probe = health_probe
        self.ports = list(ports) if ports else []
        self.dependencies = list(dependencies) if dependencies else []
        self.mount_points = list(mount_points) if mount_points else []
        self.ulimits = list(ulimits) if ulimits else []
        self.log_sink = log_sink
        self.essential = essential
        self.stop_timeout = stop_timeout
        self.docker_labels = dict(docker_labels) if docker_labels else {}
        self.init_process = init_process

    @property
    def depends_on(self) -> list:
        return [dependency.container_name for dependency in self.dependencies]

    def to_cfn(self, secret_bundle: SecretBundle = None) -> ContainerDefinition:
        """
        Renders the ECS container definition. Unset properties are left out of the definition.

        :param SecretBundle secret_bundle: required when the container uses secrets
        :raises: SecretFieldError when a secret field is not part of the bundle
        """
        if self.secrets and secret_bundle is None:
            raise ValueError(f"{self.name} - uses secrets but no secret bundle given")
        props = {
            "Name": self.name,
            "Image": self.image,
            "Cpu": self.cpu,
            "Memory": self.memory,
            "Essential": self.essential,
        }
        if self.stop_timeout:
            props["StopTimeout"] = self.stop_timeout
        if self.environment:
            props["Environment"] = [
                Environment(Name=key, Value=value)
                for key, value in self.environment.items()
            ]
        if self.secrets:
            props["Secrets"] = secret_bundle.container_secrets(self.secrets)
        if self.health_probe:
            props["HealthCheck"] = self.health_probe.to_cfn()
        for key, items in [
            ("PortMappings", self.ports),
            ("DependsOn", self.dependencies),
            ("MountPoints", self.mount_points),
            ("Ulimits", self.ulimits),
        ]:
            if items:
                props[key] = [item.to_cfn() for item in items]
        if self.log_sink:
            props["LogConfiguration"] = self.log_sink.to_cfn()
        if self.docker_labels:
            props["DockerLabels"] = self.docker_labels
        if self.init_process:
            props["LinuxParameters"] = LinuxParameters(InitProcessEnabled=True)
        return ContainerDefinition(**props)

    @classmethod
    def from_cfn(cls, definition: dict, resources: dict = None) -> ContainerSpec:
        """
        Re-builds the container from its rendered (and loaded) definition

        :param dict definition: the ContainerDefinition, as found in the template
        :param dict resources: the template Resources, to resolve the log group name
        """
        if resources is None:
            resources = {}

        def items(key: str, parser: Callable) -> list:
            return [parser(item) for item in set_else_none(key, definition, alt_value=[])]

        secrets = {}
        for secret in set_else_none("Secrets", definition, alt_value=[]):
            secrets[secret["Name"]] = parse_secret_reference(secret["ValueFrom"])[1]
        linux_parameters = set_else_none("LinuxParameters", definition, alt_value={})
        return cls(
            definition["Name"],
            definition["Image"],
            int(definition["Cpu"]),
            int(definition["Memory"]),
            environment={
                env["Name"]: env["Value"]
                for env in set_else_none("Environment", definition, alt_value=[])
            },
            secrets=secrets,
            health_probe=HealthProbe.from_cfn(definition["HealthCheck"])
            if keyisset("HealthCheck", definition)
            else None,
            ports=items("PortMappings", PortSpec.from_cfn),
            dependencies=items("DependsOn", StartupDependency.from_cfn),
            mount_points=items("MountPoints", MountSpec.from_cfn),
            ulimits=items("Ulimits", UlimitSpec.from_cfn),
            log_sink=LogSink.from_cfn(definition["LogConfiguration"], resources)
            if keyisset("LogConfiguration", definition)
            else None,
            essential=keyisset("Essential", definition),
            stop_timeout=set_else_none("StopTimeout", definition),
            docker_labels=set_else_none("DockerLabels", definition, alt_value={}),
            init_process=keyisset("InitProcessEnabled", linux_parameters),
        )
