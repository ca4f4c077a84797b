#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
IAM roles of the task definition and of the desired count function.

Each role only gets access to the resources of the stack it needs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template
    from ecs_conduktor.common.naming import ResourceNames
    from ecs_conduktor.efs.efs_storage import StorageVolume
    from ecs_conduktor.secrets.secrets_bundle import SecretBundle

from troposphere import GetAtt, Sub
from troposphere.iam import Policy, Role

from ecs_conduktor.ecs.ecs_params import EXEC_ROLE_T, TASK_ROLE_T

EXECUTION_MANAGED_POLICY = (
    "arn:${AWS::Partition}:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"
)
EFS_CLIENT_ACTIONS = [
    "elasticfilesystem:ClientMount",
    "elasticfilesystem:ClientWrite",
]
SECRET_READ_ACTIONS = ["secretsmanager:GetSecretValue"]


def service_role_trust_policy(service_name: str) -> dict:
    """
    Trust relationship for a Role and an AWS Service

    :param str service_name: service prefix, i.e. ecs-tasks, lambda
    :rtype: dict
    """
    statement = {
        "Effect": "Allow",
        "Principal": {"Service": [Sub(f"{service_name}.${{AWS::URLSuffix}}")]},
        "Action": ["sts:AssumeRole"],
    }
    return {"Version": "2012-10-17", "Statement": [statement]}


def define_execution_role(
    template: Template, names: ResourceNames, secret_bundle: SecretBundle
) -> Role:
    """
    Role used by ECS to pull images, write logs and fetch the container secrets
    """
    role = Role(
        EXEC_ROLE_T,
        RoleName=names.execution_role,
        AssumeRolePolicyDocument=service_role_trust_policy("ecs-tasks"),
        Description=f"{names.family} - ECS execution role",
        ManagedPolicyArns=[Sub(EXECUTION_MANAGED_POLICY)],
        Policies=[
            Policy(
                PolicyName="SecretAccess",
                PolicyDocument={
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Sid": "ReadConduktorSecret",
                            "Effect": "Allow",
                            "Action": SECRET_READ_ACTIONS,
                            "Resource": [secret_bundle.arn],
                        }
                    ],
                },
            )
        ],
    )
    template.add_resource(role)
    return role


def define_task_role(
    template: Template, names: ResourceNames, storage: StorageVolume
) -> Role:
    """
    Role of the containers. Allows to mount the filesystem through the access point.
    """
    role = Role(
        TASK_ROLE_T,
        RoleName=names.task_role,
        AssumeRolePolicyDocument=service_role_trust_policy("ecs-tasks"),
        Description=f"{names.family} - ECS task role",
        Policies=[
            Policy(
                PolicyName="EfsAccess",
                PolicyDocument={
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Sid": "MountPostgresVolume",
                            "Effect": "Allow",
                            "Action": EFS_CLIENT_ACTIONS,
                            "Resource": [GetAtt(storage.cfn_resource, "Arn")],
                            "Condition": {
                                "StringEquals": {
                                    "elasticfilesystem:AccessPointArn": GetAtt(
                                        storage.access_point, "Arn"
                                    )
                                }
                            },
                        }
                    ],
                },
            )
        ],
    )
    template.add_resource(role)
    return role
