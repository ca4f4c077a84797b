#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Assembles the Conduktor stack template: network lookup, security groups, secret, storage, task definition,
service and the start/stop schedules, in that order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_conduktor.common.settings import StackSettings

from troposphere import GetAtt, Ref, Template

from ecs_conduktor import __version__
from ecs_conduktor.common.logging import LOG
from ecs_conduktor.common.outputs import StackOutputs
from ecs_conduktor.ecs.conduktor_containers import define_conduktor_containers
from ecs_conduktor.ecs.ecs_iam import define_execution_role, define_task_role
from ecs_conduktor.ecs.ecs_service import ServiceInstance
from ecs_conduktor.ecs.ecs_task import WorkloadDefinition
from ecs_conduktor.efs.efs_storage import StorageVolume
from ecs_conduktor.events.events_template import define_scheduler
from ecs_conduktor.ingress.stack_groups import (
    define_storage_group,
    define_workload_group,
)
from ecs_conduktor.secrets.secrets_bundle import SecretBundle


def build_template(description: str) -> Template:
    template = Template(description)
    template.set_version()
    template.set_metadata({"Generator": f"ecs-conduktor {__version__}"})
    return template


class ConduktorStack:
    """
    Class to render the stack of a given configuration.

    Resources the stack does not own (VPC, ECS Cluster) are resolved through ``environment``, before any
    resource is declared.

    :ivar StackSettings settings:
    :ivar environment: object with lookup_network(network_id) and lookup_cluster(cluster_name)
    """

    def __init__(self, settings: StackSettings, environment):
        self.settings = settings
        self.environment = environment
        self.template = None
        self.network = None
        self.cluster = None
        self.security_group = None
        self.storage_security_group = None
        self.secret = None
        self.storage = None
        self.workload = None
        self.service = None
        self.rules = {}

    def __repr__(self):
        return self.settings.prefix

    def lookup(self) -> None:
        """
        :raises: ecs_conduktor.exceptions.NotFoundError
        """
        self.network = self.environment.lookup_network(self.settings.network_id)
        self.cluster = self.environment.lookup_cluster(self.settings.cluster_name)
        LOG.info(f"{self} - network {self.network}, cluster {self.cluster}")

    def define_access_control(self) -> None:
        names = self.settings.names
        self.security_group = define_workload_group(
            names, self.network, self.settings.allowlist
        )
        self.security_group.define_group(self.template, self.network.vpc_id)
        self.storage_security_group = define_storage_group(names, self.network)
        self.storage_security_group.define_group(
            self.template,
            self.network.vpc_id,
            sources={names.security_group: self.security_group.cfn_resource},
        )

    def define_workload(self) -> None:
        names = self.settings.names
        execution_role = define_execution_role(self.template, names, self.secret)
        task_role = define_task_role(self.template, names, self.storage)
        self.workload = WorkloadDefinition(
            names.family,
            self.settings.cpu_units,
            self.settings.memory_limit,
            define_conduktor_containers(self.settings, self.template),
            volumes=[self.storage.task_volume()],
        )
        self.workload.define_task(self.template, execution_role, task_role, self.secret)

    def define_service(self) -> None:
        self.service = ServiceInstance(
            self.settings.names.service,
            self.cluster,
            self.workload,
            self.settings.desired_count,
        )
        self.service.define_service(
            self.template,
            self.network,
            self.security_group,
            depends_on=self.storage.depends_on,
        )

    def define_outputs(self) -> None:
        StackOutputs(
            [
                ("ServiceName", "ECS Service name", GetAtt(self.service.cfn_resource, "Name")),
                ("ClusterName", "ECS Cluster name", self.cluster.name),
                ("TaskFamily", "Task definition family", self.workload.family),
                (
                    "SecurityGroupId",
                    "Security group of the service",
                    GetAtt(self.security_group.cfn_resource, "GroupId"),
                ),
                ("FilesystemId", "EFS Filesystem ID", Ref(self.storage.cfn_resource)),
                ("AccessPointId", "EFS Access point ID", Ref(self.storage.access_point)),
                ("SecretArn", "Credentials secret ARN", self.secret.arn),
            ]
        ).add_to(self.template)

    def render(self) -> Template:
        """
        Renders the stack template

        :rtype: troposphere.Template
        """
        self.lookup()
        self.template = build_template(
            f"{self.settings.prefix} - Conduktor console on ECS Fargate"
        )
        self.define_access_control()
        self.secret = SecretBundle(self.settings.names.secret)
        self.secret.define_secret(self.template)
        self.storage = StorageVolume(self.settings.names.filesystem)
        self.storage.define_storage(
            self.template, self.network, self.storage_security_group
        )
        self.define_workload()
        self.define_service()
        self.rules = define_scheduler(
            self.template,
            self.settings.names,
            self.settings.schedules,
            self.service,
        )
        self.define_outputs()
        return self.template
