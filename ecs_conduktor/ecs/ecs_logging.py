#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
CloudWatch log groups of the containers
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template
    from ecs_conduktor.common.naming import ResourceNames

from troposphere.logs import LogGroup

from ecs_conduktor.common import cfn_title
from ecs_conduktor.ecs.ecs_container import LogSink
from ecs_conduktor.ecs.ecs_params import LOG_GROUP_RETENTION_DAYS, LOG_GROUP_T

LOGGING_ACTIONS = ["logs:CreateLogStream", "logs:PutLogEvents"]


def create_log_group(
    template: Template, title: str, group_name: str, retention: int = LOG_GROUP_RETENTION_DAYS
) -> LogGroup:
    """
    Function to create a new Log Group, deleted with the stack. Returns the existing one if already defined.
    """
    if title in template.resources:
        return template.resources[title]
    log_group = LogGroup(
        title,
        LogGroupName=group_name,
        RetentionInDays=retention,
        DeletionPolicy="Delete",
        UpdateReplacePolicy="Delete",
    )
    template.add_resource(log_group)
    return log_group


def define_container_log_sink(
    template: Template, names: ResourceNames, component: str
) -> LogSink:
    """
    Creates the log group ``/ecs/{prefix}-{component}`` and returns the awslogs configuration pointing to it.
    """
    log_group = create_log_group(
        template, cfn_title(component, LOG_GROUP_T), names.log_group(component)
    )
    return LogSink(log_group.LogGroupName, log_group.title)
