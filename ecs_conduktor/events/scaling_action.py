#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Sets the desired count of the ECS service when a schedule rule fires.
Deployed inline as the code of the desired count Lambda function: only boto3 and the standard library.
"""

import logging
import os

import boto3
from botocore.exceptions import ClientError

LOG = logging.getLogger()
LOG.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

SERVICE_NOT_FOUND = "ServiceNotFoundException"


class DesiredCountAction:
    """
    Scoped to a single service: the rule input only carries the cluster, service and count.
    """

    def __init__(self, cluster, service, desired_count):
        if desired_count < 0:
            raise ValueError(f"desiredCount must be positive. Got {desired_count}")
        self.cluster = cluster
        self.service = service
        self.desired_count = desired_count

    def __repr__(self):
        return f"{self.cluster}/{self.service} -> {self.desired_count}"

    @classmethod
    def from_event(cls, event):
        return cls(event["cluster"], event["service"], int(event["desiredCount"]))

    def apply(self, client):
        """
        :return: the service desired count after update, None if the service does not exist
        """
        try:
            service_r = client.update_service(
                cluster=self.cluster,
                service=self.service,
                desiredCount=self.desired_count,
            )
        except ClientError as error:
            if error.response["Error"]["Code"] == SERVICE_NOT_FOUND:
                LOG.warning(f"{self} - service not found. Nothing to do")
                return None
            raise
        LOG.info(f"{self} - updated")
        return service_r["service"]["desiredCount"]


def lambda_handler(event, context):
    action = DesiredCountAction.from_event(event)
    return {"desiredCount": action.apply(boto3.client("ecs"))}
