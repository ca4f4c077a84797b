#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Module for the task definition (WorkloadDefinition) and its containers
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template
    from troposphere.iam import Role
    from ecs_conduktor.secrets.secrets_bundle import SecretBundle

from troposphere import GetAtt, Tags
from troposphere.ecs import TaskDefinition, Volume

from ecs_conduktor.common.logging import LOG
from ecs_conduktor.common.settings import validate_fargate_budget
from ecs_conduktor.ecs.ecs_container import ContainerSpec
from ecs_conduktor.ecs.ecs_params import LAUNCH_TYPE, NETWORK_MODE, TASK_T
from ecs_conduktor.ecs.ecs_startup import define_start_waves
from ecs_conduktor.exceptions import ResourceBudgetError


class WorkloadDefinition:
    """
    Class to represent the ECS Task Definition: the task budget, its containers and volumes.

    The family identifies the task definition. The containers cpu/memory must fit into the task budget.

    :ivar str family:
    :ivar int cpu: task cpu units
    :ivar int memory: task memory (MiB)
    :ivar list[ContainerSpec] containers:
    :ivar list[troposphere.ecs.Volume] volumes:
    """

    def __init__(
        self,
        family: str,
        cpu: int,
        memory: int,
        containers: list,
        volumes: list = None,
        title: str = TASK_T,
    ):
        self.family = family
        self.cpu = cpu
        self.memory = memory
        self.containers = list(containers)
        self.volumes = list(volumes) if volumes else []
        self.title = title
        self.cfn_resource = None
        if not self.containers:
            raise ValueError(f"{self.family} - A task definition needs at least one container")
        self.validate_budget()
        self.start_waves = define_start_waves(self.containers)
        self.validate_mount_points()

    def __repr__(self):
        return self.family

    def __eq__(self, other):
        return (
            isinstance(other, WorkloadDefinition)
            and self.family == other.family
            and self.cpu == other.cpu
            and self.memory == other.memory
            and self.containers == other.containers
            and self.volume_names == other.volume_names
        )

    @property
    def volume_names(self) -> list:
        return [volume.Name for volume in self.volumes]

    @property
    def containers_cpu(self) -> int:
        return sum(container.cpu for container in self.containers)

    @property
    def containers_memory(self) -> int:
        return sum(container.memory for container in self.containers)

    def container(self, name: str) -> ContainerSpec:
        for container in self.containers:
            if container.name == name:
                return container
        raise KeyError(
            f"{self.family} - No container {name}. Containers",
            [container.name for container in self.containers],
        )

    def validate_budget(self) -> None:
        """
        :raises: ResourceBudgetError when the containers do not fit in the task
        """
        if self.containers_cpu > self.cpu:
            raise ResourceBudgetError(
                f"{self.family} - containers require {self.containers_cpu} cpu units. Task has {self.cpu}"
            )
        if self.containers_memory > self.memory:
            raise ResourceBudgetError(
                f"{self.family} - containers require {self.containers_memory} MiB. Task has {self.memory}"
            )
        LOG.debug(
            f"{self.family} - containers use {self.containers_cpu}/{self.cpu} cpu"
            f" and {self.containers_memory}/{self.memory} MiB"
        )

    def validate_mount_points(self) -> None:
        """
        Mount points must use volumes of the task. A volume is mounted read-write by one container at most.
        """
        writers = {}
        for container in self.containers:
            for mount in container.mount_points:
                if mount.source_volume not in self.volume_names:
                    raise KeyError(
                        f"{container.name} - volume {mount.source_volume} is not defined. Volumes",
                        self.volume_names,
                    )
                if mount.read_only:
                    continue
                if mount.source_volume in writers:
                    raise ValueError(
                        f"{mount.source_volume} is mounted read-write by both"
                        f" {writers[mount.source_volume]} and {container.name}"
                    )
                writers[mount.source_volume] = container.name

    @property
    def max_start_period(self) -> int:
        return max(
            [
                container.health_probe.start_period
                for container in self.containers
                if container.health_probe
            ]
            or [0]
        )

    def define_task(
        self,
        template: Template,
        execution_role: Role,
        task_role: Role,
        secret_bundle: SecretBundle = None,
    ) -> TaskDefinition:
        validate_fargate_budget(self.cpu, self.memory)
        self.cfn_resource = TaskDefinition(
            self.title,
            Family=self.family,
            Cpu=str(self.cpu),
            Memory=str(self.memory),
            NetworkMode=NETWORK_MODE,
            RequiresCompatibilities=[LAUNCH_TYPE],
            ExecutionRoleArn=GetAtt(execution_role, "Arn"),
            TaskRoleArn=GetAtt(task_role, "Arn"),
            ContainerDefinitions=[
                container.to_cfn(secret_bundle) for container in self.containers
            ],
            Volumes=self.volumes,
            Tags=Tags(Name=self.family),
        )
        template.add_resource(self.cfn_resource)
        return self.cfn_resource

    @classmethod
    def from_template(cls, template: dict, title: str = TASK_T) -> WorkloadDefinition:
        """
        Re-builds the workload definition from a rendered template, loaded from JSON or YAML.
        Volumes are only re-built with their names.

        :param dict template: the template content, with its Resources
        :param str title: the logical ID of the task definition
        """
        resources = template["Resources"]
        if title not in resources:
            raise KeyError(f"No task definition {title} in the template")
        properties = resources[title]["Properties"]
        return cls(
            properties["Family"],
            int(properties["Cpu"]),
            int(properties["Memory"]),
            [
                ContainerSpec.from_cfn(definition, resources)
                for definition in properties["ContainerDefinitions"]
            ],
            volumes=[
                Volume(Name=volume["Name"])
                for volume in properties.get("Volumes", [])
            ],
            title=title,
        )
