#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

from __future__ import annotations

from compose_x_common.compose_x_common import keyisset

from ecs_conduktor.common.logging import LOG
from ecs_conduktor.exceptions import NotFoundError

ACTIVE = "ACTIVE"


class ClusterContext:
    """
    Read-only view of an existing ECS Cluster
    """

    def __init__(self, name: str, arn: str):
        self.name = name
        self.arn = arn

    def __repr__(self):
        return self.arn


def lookup_cluster(cluster_name: str, session) -> ClusterContext:
    """
    Function to find the ECS Cluster by name. It must exist and be ACTIVE.

    :param str cluster_name:
    :param boto3.session.Session session:
    :rtype: ClusterContext
    :raises: NotFoundError
    """
    client = session.client("ecs")
    cluster_r = client.describe_clusters(clusters=[cluster_name])
    if keyisset("failures", cluster_r):
        for failure in cluster_r["failures"]:
            LOG.error(f"ECS Cluster {cluster_name} - {failure.get('reason')}")
    if not keyisset("clusters", cluster_r):
        raise NotFoundError(f"No ECS Cluster named {cluster_name} found")
    the_cluster = cluster_r["clusters"][0]
    if the_cluster["status"] != ACTIVE:
        raise NotFoundError(
            f"ECS Cluster {cluster_name} is {the_cluster['status']}. Expected {ACTIVE}"
        )
    LOG.info(f"Found ECS Cluster {cluster_name}")
    return ClusterContext(the_cluster["clusterName"], the_cluster["clusterArn"])
