#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Functions to create, update and plan the CloudFormation stack.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_conduktor.common.files import FileArtifact
    from ecs_conduktor.common.settings import StackSettings

import secrets
from string import ascii_lowercase
from time import sleep

from botocore.exceptions import ClientError, WaiterError
from compose_x_common.compose_x_common import keyisset
from tabulate import tabulate

from ecs_conduktor.common.logging import LOG
from ecs_conduktor.exceptions import ProvisioningError

CAPABILITIES = ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"]
CAN_UPDATE_STATUSES = [
    "CREATE_COMPLETE",
    "ROLLBACK_COMPLETE",
    "UPDATE_COMPLETE",
    "UPDATE_ROLLBACK_COMPLETE",
]
OPERATION_START_STATUSES = ["CREATE_IN_PROGRESS", "UPDATE_IN_PROGRESS"]
NO_UPDATE_MESSAGE = "No updates are to be performed"
WAITER_DELAY = 15
WAITER_MAX_ATTEMPTS = 240


def assert_can_create_stack(client, name: str):
    """
    Checks whether a stack already exists or not
    """
    try:
        stack_r = client.describe_stacks(StackName=name)
        if not keyisset("Stacks", stack_r):
            return True
        stacks = stack_r["Stacks"]
        if len(stacks) != 1:
            raise LookupError("Too many stacks found with name", name)
        stack = stacks[0]
        if stack["StackStatus"] == "REVIEW_IN_PROGRESS":
            return stack
        return False
    except ClientError as error:
        if (
            error.response["Error"]["Code"] == "ValidationError"
            and error.response["Error"]["Message"].find("does not exist") > 0
        ):
            return True
        raise


def assert_can_update_stack(client, name: str) -> bool:
    res = client.describe_stacks(StackName=name)
    if not res["Stacks"]:
        return False
    stack = res["Stacks"][0]
    LOG.info(f"Stack {name} is {stack['StackStatus']}")
    return stack["StackStatus"] in CAN_UPDATE_STATUSES


def get_failed_resources(client, stack_name: str) -> list:
    """
    Lists the resources that failed during the last operation on the stack, newest first.

    :return: list of (LogicalResourceId, ResourceType, ResourceStatusReason)
    :rtype: list[tuple]
    """
    failed = []
    paginator = client.get_paginator("describe_stack_events")
    for page in paginator.paginate(StackName=stack_name):
        for event in page["StackEvents"]:
            if (
                event["LogicalResourceId"] == event["StackName"]
                and event["ResourceStatus"] in OPERATION_START_STATUSES
            ):
                return failed
            if (
                event["ResourceStatus"].endswith("_FAILED")
                and event["LogicalResourceId"] != event["StackName"]
            ):
                failed.append(
                    (
                        event["LogicalResourceId"],
                        event["ResourceType"],
                        event.get("ResourceStatusReason", ""),
                    )
                )
    return failed


def wait_for_stack(
    client,
    settings: StackSettings,
    waiter_name: str,
    delay: int = WAITER_DELAY,
    max_attempts: int = WAITER_MAX_ATTEMPTS,
) -> None:
    """
    Waits for the stack operation to complete.
    Resources created before a failure are kept when the rollback is disabled.

    :raises: ProvisioningError with the failed resources
    """
    try:
        client.get_waiter(waiter_name).wait(
            StackName=settings.name,
            WaiterConfig={"Delay": delay, "MaxAttempts": max_attempts},
        )
    except WaiterError as error:
        failed = get_failed_resources(client, settings.name)
        if failed:
            LOG.error(
                f"Stack {settings.name} - failed resources\n"
                + tabulate(
                    failed,
                    ["LogicalResourceId", "ResourceType", "Reason"],
                    tablefmt="rst",
                )
            )
        stacks = (error.last_response or {}).get("Stacks") or [{}]
        status = stacks[0].get("StackStatus")
        if not status:
            status = error.kwargs.get("reason", str(error))
        raise ProvisioningError(
            f"Stack {settings.name} failed - {status}",
            failed,
        )
    LOG.info(f"Stack {settings.name} is complete")


def deploy(settings: StackSettings, artifact: FileArtifact, wait: bool = True):
    """
    Function to deploy (create or update) the stack to CFN.

    :param StackSettings settings:
    :param FileArtifact artifact: the rendered template
    :param bool wait: whether to wait for the stack operation to complete
    :return: the stack ID, None if there was nothing to deploy
    """
    client = settings.session.client("cloudformation")
    if assert_can_create_stack(client, settings.name):
        res = client.create_stack(
            StackName=settings.name,
            Capabilities=CAPABILITIES,
            DisableRollback=settings.disable_rollback,
            **artifact.template_source(),
        )
        waiter_name = "stack_create_complete"
        LOG.info(f"Stack {settings.name} creation started - {res['StackId']}")
    elif assert_can_update_stack(client, settings.name):
        LOG.warning(f"Stack {settings.name} already exists. Updating.")
        try:
            res = client.update_stack(
                StackName=settings.name,
                Capabilities=CAPABILITIES,
                DisableRollback=settings.disable_rollback,
                **artifact.template_source(),
            )
        except ClientError as error:
            if error.response["Error"]["Message"].find(NO_UPDATE_MESSAGE) >= 0:
                LOG.info(f"Stack {settings.name} - {NO_UPDATE_MESSAGE}")
                return None
            raise
        waiter_name = "stack_update_complete"
        LOG.info(f"Stack {settings.name} update started - {res['StackId']}")
    else:
        LOG.error(f"Stack {settings.name} cannot be created nor updated")
        return None
    if wait:
        wait_for_stack(client, settings, waiter_name)
    return res["StackId"]


def get_change_set_status(client, change_set_name: str, settings: StackSettings) -> dict:
    pending_statuses = [
        "CREATE_PENDING",
        "CREATE_IN_PROGRESS",
        "DELETE_PENDING",
        "DELETE_IN_PROGRESS",
        "REVIEW_IN_PROGRESS",
    ]
    success_statuses = ["CREATE_COMPLETE", "DELETE_COMPLETE"]
    failed_statuses = ["DELETE_FAILED", "FAILED"]
    while True:
        status = client.describe_change_set(
            ChangeSetName=change_set_name, StackName=settings.name
        )
        if status["Status"] in failed_statuses:
            raise ProvisioningError(
                f"Change set {change_set_name} is unsuccessful - {status.get('StatusReason')}"
            )
        if status["Status"] in success_statuses:
            break
        if status["Status"] in pending_statuses:
            print(
                "ChangeSet creation in progress. Waiting 10 seconds",
                end="\r",
                flush=True,
            )
            sleep(10)

    print(
        tabulate(
            [
                [
                    change["ResourceChange"]["LogicalResourceId"],
                    change["ResourceChange"]["ResourceType"],
                    change["ResourceChange"]["Action"],
                    change["ResourceChange"].get("Replacement", ""),
                ]
                for change in status["Changes"]
            ],
            ["LogicalResourceId", "ResourceType", "Action", "Replacement"],
            tablefmt="rst",
        )
    )
    return status


def plan(settings: StackSettings, artifact: FileArtifact, apply: bool = None):
    """
    Creates a change-set and shows the changes. Asks whether to apply it unless ``apply`` is set.

    :param StackSettings settings:
    :param FileArtifact artifact:
    :param bool apply: apply (True) or delete (False) the change set without asking
    """
    client = settings.session.client("cloudformation")
    change_set_name = f"{settings.name}-" + "".join(
        secrets.choice(ascii_lowercase) for _ in range(10)
    )
    change_set_type = "CREATE" if assert_can_create_stack(client, settings.name) else "UPDATE"
    client.create_change_set(
        StackName=settings.name,
        Capabilities=CAPABILITIES,
        ChangeSetType=change_set_type,
        ChangeSetName=change_set_name,
        **artifact.template_source(),
    )
    status = get_change_set_status(client, change_set_name, settings)
    if apply is None:
        apply = input("Want to apply? [yN]: ") in ["y", "Y", "YES", "Yes", "yes"]
    if apply:
        client.execute_change_set(
            ChangeSetName=change_set_name,
            StackName=settings.name,
            DisableRollback=settings.disable_rollback,
        )
        wait_for_stack(
            client,
            settings,
            "stack_create_complete"
            if change_set_type == "CREATE"
            else "stack_update_complete",
        )
    else:
        client.delete_change_set(ChangeSetName=change_set_name, StackName=settings.name)
        LOG.info(f"Change set {change_set_name} deleted")
    return status
