#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Read-only access to the AWS resources that the stack uses but does not own (VPC, ECS Cluster).

The stack generation only ever gets these through an environment object passed to it, which allows
to render templates against fakes in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from boto3.session import Session

from ecs_conduktor.ecs_cluster.ecs_cluster_aws import ClusterContext, lookup_cluster
from ecs_conduktor.vpc.vpc_aws import NetworkContext, lookup_vpc


class AwsEnvironment:
    """
    Resolves the network and cluster with the AWS API
    """

    def __init__(self, session: Session):
        self.session = session

    def lookup_network(self, network_id: str) -> NetworkContext:
        return lookup_vpc(network_id, self.session)

    def lookup_cluster(self, cluster_name: str) -> ClusterContext:
        return lookup_cluster(cluster_name, self.session)
