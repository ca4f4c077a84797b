#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Custom exceptions for ecs-conduktor
"""


class ConduktorBaseException(Exception):
    """
    Top class for ECS Conduktor Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class SettingsError(ConduktorBaseException, ValueError):
    """
    The stack configuration is invalid and no plan can be computed from it
    """


class NotFoundError(ConduktorBaseException, LookupError):
    """
    An existing AWS resource (VPC, subnets, cluster) referenced by the configuration does not exist
    """


class SecretFieldError(ConduktorBaseException, KeyError):
    """
    A container references a field that is not part of the secret bundle
    """


class ResourceBudgetError(ConduktorBaseException, ValueError):
    """
    The containers cpu/memory shares do not fit into the task definition budget
    """


class ContainerDependencyError(ConduktorBaseException, ValueError):
    """
    Invalid startup dependency between containers of the same task (unknown target, condition or cycle)
    """


class ServiceSettingsError(ConduktorBaseException, ValueError):
    """
    The ECS Service settings would make the service unstable
    """


class ProvisioningError(ConduktorBaseException):
    """
    CloudFormation failed to create or update the stack.

    :ivar list[tuple] failed_resources: (LogicalResourceId, ResourceType, ResourceStatusReason) of failed resources
    """

    def __init__(self, msg, failed_resources=None, *args):
        self.failed_resources = failed_resources if failed_resources else []
        super().__init__(msg, *args)
