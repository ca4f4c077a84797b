#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Functions and class to build the ECS Service Definition
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template
    from ecs_conduktor.ecs.ecs_task import WorkloadDefinition
    from ecs_conduktor.ecs_cluster.ecs_cluster_aws import ClusterContext
    from ecs_conduktor.ingress.access_rules import AccessControlGroup
    from ecs_conduktor.vpc.vpc_aws import NetworkContext

from troposphere import GetAtt, Ref, Tags
from troposphere.ecs import (
    AwsvpcConfiguration,
    DeploymentConfiguration,
    NetworkConfiguration,
)
from troposphere.ecs import Service as EcsService

from ecs_conduktor.common.logging import LOG
from ecs_conduktor.ecs.ecs_params import (
    HEALTH_CHECK_GRACE_PERIOD,
    IMAGE_PULL_ALLOWANCE,
    LAUNCH_TYPE,
    SERVICE_T,
)
from ecs_conduktor.exceptions import ServiceSettingsError

MAX_DESIRED_COUNT = 1


def define_deployment_options() -> DeploymentConfiguration:
    """
    The old task is stopped before the new one starts, so that only one postgres ever uses the volume
    """
    return DeploymentConfiguration(MinimumHealthyPercent=0, MaximumPercent=100)


class ServiceInstance:
    """
    Class to represent the ECS Service running the workload on the cluster

    :ivar str name:
    :ivar int desired_count:
    :ivar int grace_period: HealthCheckGracePeriodSeconds
    """

    def __init__(
        self,
        name: str,
        cluster: ClusterContext,
        workload: WorkloadDefinition,
        desired_count: int,
        grace_period: int = HEALTH_CHECK_GRACE_PERIOD,
        title: str = SERVICE_T,
    ):
        self.name = name
        self.cluster = cluster
        self.workload = workload
        self.desired_count = desired_count
        self.grace_period = grace_period
        self.title = title
        self.cfn_resource = None
        self.validate()

    def __repr__(self):
        return f"{self.cluster.name}/{self.name}"

    def validate(self) -> None:
        """
        :raises: ServiceSettingsError
        """
        if not isinstance(self.desired_count, int) or not (
            0 <= self.desired_count <= MAX_DESIRED_COUNT
        ):
            raise ServiceSettingsError(
                f"{self.name} - desiredCount must be between 0 and {MAX_DESIRED_COUNT}. Got {self.desired_count}"
            )
        required = self.workload.max_start_period + IMAGE_PULL_ALLOWANCE
        if self.grace_period <= required:
            raise ServiceSettingsError(
                f"{self.name} - health check grace period {self.grace_period}s must exceed {required}s"
                f" (slowest container start period + {IMAGE_PULL_ALLOWANCE}s to pull images)"
            )

    def define_service(
        self,
        template: Template,
        network: NetworkContext,
        security_group: AccessControlGroup,
        depends_on: list = None,
    ) -> EcsService:
        """
        :param troposphere.Template template:
        :param NetworkContext network: the service runs in the private subnets
        :param AccessControlGroup security_group:
        :param list[str] depends_on: logical IDs to create before the service, i.e. the storage
        """
        LOG.info(
            f"{self} - {self.desired_count} task(s) in {', '.join(network.private_subnets)}"
        )
        self.cfn_resource = EcsService(
            self.title,
            ServiceName=self.name,
            Cluster=self.cluster.name,
            TaskDefinition=Ref(self.workload.cfn_resource),
            LaunchType=LAUNCH_TYPE,
            DesiredCount=self.desired_count,
            HealthCheckGracePeriodSeconds=self.grace_period,
            DeploymentConfiguration=define_deployment_options(),
            NetworkConfiguration=NetworkConfiguration(
                AwsvpcConfiguration=AwsvpcConfiguration(
                    AssignPublicIp="DISABLED",
                    Subnets=network.private_subnets,
                    SecurityGroups=[GetAtt(security_group.cfn_resource, "GroupId")],
                )
            ),
            PropagateTags="SERVICE",
            Tags=Tags(Name=self.name),
        )
        if depends_on:
            self.cfn_resource.DependsOn = depends_on
        template.add_resource(self.cfn_resource)
        return self.cfn_resource

    @property
    def arn(self) -> Ref:
        return Ref(self.cfn_resource)
