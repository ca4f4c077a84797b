#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Module to define the start/stop schedule rules and the function that updates the service desired count
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template
    from ecs_conduktor.common.naming import ResourceNames
    from ecs_conduktor.ecs.ecs_service import ServiceInstance

import json

from importlib_resources import files as pkg_files
from troposphere import GetAtt
from troposphere.awslambda import Code, Environment, Function, Permission
from troposphere.events import Rule, Target
from troposphere.iam import Policy, Role

from ecs_conduktor.common import cfn_title
from ecs_conduktor.common.logging import LOG
from ecs_conduktor.ecs.ecs_iam import service_role_trust_policy
from ecs_conduktor.ecs.ecs_logging import LOGGING_ACTIONS, create_log_group
from ecs_conduktor.events.events_params import (
    DESIRED_COUNTS,
    FUNCTION_HANDLER,
    FUNCTION_LOG_GROUP_T,
    FUNCTION_ROLE_T,
    FUNCTION_RUNTIME,
    FUNCTION_T,
    FUNCTION_TIMEOUT,
    INLINE_CODE_MAX_SIZE,
    START_T,
    STOP_T,
)

ENABLED = "ENABLED"
DISABLED = "DISABLED"


def cron_expression(hour: int, minute: int) -> str:
    """
    EventBridge cron expression, every day at hour:minute UTC

    >>> cron_expression(14, 0)
    'cron(0 14 * * ? *)'
    """
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid time of day {hour}:{minute}")
    return f"cron({minute} {hour} * * ? *)"


def get_inline_code() -> str:
    """
    Source of the desired count function, inlined in the template
    """
    code = pkg_files("ecs_conduktor.events").joinpath("scaling_action.py").read_text()
    if len(code) > INLINE_CODE_MAX_SIZE:
        raise ValueError(
            f"Function code is {len(code)} long. Maximum for inline code is {INLINE_CODE_MAX_SIZE}"
        )
    return code


class ScheduleRule:
    """
    Class to represent a time based rule setting the service desired count

    :ivar str name: the rule name
    :ivar int desired_count: count set on the service when the rule fires
    :ivar bool enabled:
    """

    def __init__(
        self,
        name: str,
        hour: int,
        minute: int,
        desired_count: int,
        enabled: bool = True,
        title: str = None,
    ):
        self.name = name
        self.hour = hour
        self.minute = minute
        self.desired_count = desired_count
        self.enabled = enabled
        self.title = title if title else cfn_title(name)
        self.cfn_resource = None
        self.permission = None

    def __repr__(self):
        return f"{self.name} - {self.expression} ({self.state})"

    @property
    def expression(self) -> str:
        return cron_expression(self.hour, self.minute)

    @property
    def state(self) -> str:
        return ENABLED if self.enabled else DISABLED

    @property
    def time_of_day(self) -> tuple:
        return self.hour, self.minute

    def rule_input(self, service: ServiceInstance) -> str:
        return json.dumps(
            {
                "cluster": service.cluster.name,
                "service": service.name,
                "desiredCount": self.desired_count,
            }
        )

    def define_rule(
        self, template: Template, function: Function, service: ServiceInstance
    ) -> Rule:
        self.cfn_resource = Rule(
            self.title,
            Name=self.name,
            Description=f"Sets {service} desired count to {self.desired_count}",
            ScheduleExpression=self.expression,
            State=self.state,
            Targets=[
                Target(
                    Id=f"{self.title}Target",
                    Arn=GetAtt(function, "Arn"),
                    Input=self.rule_input(service),
                )
            ],
        )
        self.permission = Permission(
            f"{self.title}InvokePermission",
            Action="lambda:InvokeFunction",
            FunctionName=GetAtt(function, "Arn"),
            Principal="events.amazonaws.com",
            SourceArn=GetAtt(self.cfn_resource, "Arn"),
        )
        template.add_resource(self.cfn_resource)
        template.add_resource(self.permission)
        LOG.info(f"Schedule {self}")
        return self.cfn_resource


def define_schedule_rules(names: ResourceNames, schedules) -> dict:
    """
    :param ResourceNames names:
    :param schedules: start/stop schedules, with hour, minute and enabled
    :return: the start and stop rules
    :rtype: dict
    """
    rule_names = {START_T: names.start_rule, STOP_T: names.stop_rule}
    rules = {}
    for schedule_name, rule_name in rule_names.items():
        schedule = schedules[schedule_name]
        rules[schedule_name] = ScheduleRule(
            rule_name,
            schedule["hour"],
            schedule["minute"],
            DESIRED_COUNTS[schedule_name],
            enabled=schedule["enabled"],
            title=cfn_title(schedule_name, "EcsServiceRule"),
        )
    if rules[START_T].time_of_day == rules[STOP_T].time_of_day:
        raise ValueError("Start and stop rules cannot trigger at the same time", rules)
    return rules


def define_function_role(
    template: Template, names: ResourceNames, service: ServiceInstance, log_group
) -> Role:
    """
    The function can only update the service of this stack and write its own logs
    """
    role = Role(
        FUNCTION_ROLE_T,
        RoleName=names.scheduler_role,
        AssumeRolePolicyDocument=service_role_trust_policy("lambda"),
        Description=f"{names.scheduler_function} - updates {service.name} desired count",
        Policies=[
            Policy(
                PolicyName="UpdateDesiredCount",
                PolicyDocument={
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Sid": "UpdateService",
                            "Effect": "Allow",
                            "Action": ["ecs:UpdateService"],
                            "Resource": [service.arn],
                        },
                        {
                            "Sid": "WriteLogs",
                            "Effect": "Allow",
                            "Action": LOGGING_ACTIONS,
                            "Resource": [GetAtt(log_group, "Arn")],
                        },
                    ],
                },
            )
        ],
    )
    template.add_resource(role)
    return role


def define_desired_count_function(
    template: Template, names: ResourceNames, service: ServiceInstance
) -> Function:
    log_group = create_log_group(
        template, FUNCTION_LOG_GROUP_T, names.scheduler_log_group
    )
    role = define_function_role(template, names, service, log_group)
    function = Function(
        FUNCTION_T,
        FunctionName=names.scheduler_function,
        Description=f"Sets {service.name} desired count",
        Runtime=FUNCTION_RUNTIME,
        Handler=FUNCTION_HANDLER,
        Timeout=FUNCTION_TIMEOUT,
        Role=GetAtt(role, "Arn"),
        Code=Code(ZipFile=get_inline_code()),
        Environment=Environment(Variables={"LOG_LEVEL": "INFO"}),
        DependsOn=[log_group],
    )
    template.add_resource(function)
    return function


def define_scheduler(
    template: Template, names: ResourceNames, schedules, service: ServiceInstance
) -> dict:
    """
    Adds the desired count function and the start/stop rules targeting it

    :rtype: dict
    """
    function = define_desired_count_function(template, names, service)
    rules = define_schedule_rules(names, schedules)
    for rule in rules.values():
        rule.define_rule(template, function, service)
    return rules
