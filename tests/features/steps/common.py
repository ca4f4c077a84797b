#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

from os import path
from tempfile import mkdtemp

import boto3
from behave import given, then
from pytest import raises

from ecs_conduktor import exceptions
from ecs_conduktor.common.files import FileArtifact, load_template
from ecs_conduktor.common.settings import StackSettings
from ecs_conduktor.conduktor_stack import ConduktorStack
from ecs_conduktor.ecs.ecs_params import SERVICE_T, TASK_T
from ecs_conduktor.ecs.ecs_task import WorkloadDefinition
from ecs_conduktor.ecs_cluster.ecs_cluster_aws import ClusterContext
from ecs_conduktor.vpc.vpc_aws import NetworkContext

VPC_CIDR = "10.10.0.0/16"


def here():
    return path.abspath(path.dirname(__file__))


class StaticEnvironment:
    """
    Network and cluster set by the scenario, no AWS API call
    """

    def __init__(self, subnets: dict):
        self.subnets = subnets

    def lookup_network(self, network_id):
        return NetworkContext(network_id, VPC_CIDR, self.subnets)

    def lookup_cluster(self, cluster_name):
        return ClusterContext(
            cluster_name, f"arn:aws:ecs:eu-west-1:123456789012:cluster/{cluster_name}"
        )


@given("I use {file_path} as my configuration file")
def step_impl(context, file_path):
    """
    Function to import the configuration file from use-cases.

    :param context:
    :param str file_path:
    """
    context.file_path = path.abspath(f"{here()}/../../../{file_path}")


@given("the VPC has private subnets in eu-west-1a and eu-west-1b")
def step_impl(context):
    context.environment = StaticEnvironment(
        {
            "subnet-0aaaaaaaaaaaaaaa1": "eu-west-1a",
            "subnet-0bbbbbbbbbbbbbbb1": "eu-west-1b",
        }
    )


@given("the VPC has no private subnet")
def step_impl(context):
    context.environment = StaticEnvironment({})


def set_settings(context, file_format="json"):
    context.settings = StackSettings(
        session=boto3.session.Session(region_name="eu-west-1"),
        **{
            StackSettings.config_file_arg: context.file_path,
            StackSettings.command_arg: StackSettings.render_arg,
            StackSettings.format_arg: file_format,
            StackSettings.output_dir_arg: mkdtemp(),
        },
    )


@then("I render the template in {file_format}")
def step_impl(context, file_format):
    set_settings(context, file_format)
    context.stack = ConduktorStack(context.settings, context.environment)
    context.artifact = FileArtifact(
        context.settings.name, context.settings, context.stack.render()
    )
    context.artifact.write(context.settings)


@then("the task definition has {count:d} containers")
def step_impl(context, count):
    task = context.stack.template.resources[TASK_T]
    assert len(task.ContainerDefinitions) == count


@then("the service desired count is {desired_count:d}")
def step_impl(context, desired_count):
    service = context.stack.template.resources[SERVICE_T]
    assert service.DesiredCount == desired_count


@then("the start schedule is {state}")
def step_impl(context, state):
    assert context.stack.rules["start"].state == state


@then("the template can be read back with the same workload")
def step_impl(context):
    content = load_template(context.artifact.file_path)
    assert WorkloadDefinition.from_template(content) == context.stack.workload


@then("rendering the template fails with {error_name}")
def step_impl(context, error_name):
    set_settings(context)
    with raises(getattr(exceptions, error_name)):
        ConduktorStack(context.settings, context.environment).render()
