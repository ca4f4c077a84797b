#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

from os import path

import placebo
import pytest
from botocore.exceptions import WaiterError
from troposphere import Template

from ecs_conduktor.common.aws import deploy, get_failed_resources, wait_for_stack
from ecs_conduktor.common.files import FileArtifact
from ecs_conduktor.exceptions import ProvisioningError

HERE = path.abspath(path.dirname(__file__))


@pytest.fixture
def deploy_settings(make_settings):
    return make_settings(command="up")


def playback(settings, data_path):
    pill = placebo.attach(settings.session, data_path=f"{HERE}/{data_path}")
    pill.playback()


def test_create_failure_lists_failed_resources(deploy_settings):
    playback(deploy_settings, "x_stack_create_failed")
    artifact = FileArtifact(deploy_settings.name, deploy_settings, Template())
    with pytest.raises(ProvisioningError) as error:
        deploy(deploy_settings, artifact)
    assert "ROLLBACK_COMPLETE" in str(error.value)
    assert [failed[0] for failed in error.value.failed_resources] == [
        "ConduktorSecret",
        "PostgresMountTargetEuWest1a",
    ]


def test_failed_resources_stop_at_operation_start(deploy_settings):
    playback(deploy_settings, "x_stack_create_failed")
    client = deploy_settings.session.client("cloudformation")
    failed = get_failed_resources(client, deploy_settings.name)
    assert len(failed) == 2
    assert failed[1] == (
        "PostgresMountTargetEuWest1a",
        "AWS::EFS::MountTarget",
        "subnet-0aaaaaaaaaaaaaaa1 does not exist",
    )


def test_no_update_to_perform(deploy_settings):
    playback(deploy_settings, "x_stack_no_update")
    artifact = FileArtifact(deploy_settings.name, deploy_settings, Template())
    assert deploy(deploy_settings, artifact) is None


class FailingWaiter:
    def __init__(self, last_response):
        self.last_response = last_response

    def wait(self, **kwargs):
        raise WaiterError(
            name="StackCreateComplete",
            reason="Waiter encountered a terminal failure state",
            last_response=self.last_response,
        )


class FailingStackClient:
    """CloudFormation client whose waiter fails, with no stack event to report"""

    def __init__(self, last_response):
        self.last_response = last_response

    def get_waiter(self, waiter_name):
        return FailingWaiter(self.last_response)

    def get_paginator(self, operation):
        return self

    def paginate(self, **kwargs):
        return [{"StackEvents": []}]


@pytest.mark.parametrize(
    "last_response, status",
    [
        ({"Stacks": [{"StackStatus": "ROLLBACK_COMPLETE"}]}, "ROLLBACK_COMPLETE"),
        ({}, "Waiter encountered a terminal failure state"),
    ],
)
def test_waiter_failure_raises_provisioning_error(settings, last_response, status):
    client = FailingStackClient(last_response)
    with pytest.raises(ProvisioningError) as error:
        wait_for_stack(client, settings, "stack_create_complete", delay=1, max_attempts=1)
    assert status in str(error.value)
    assert error.value.failed_resources == []
