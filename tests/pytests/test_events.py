#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

import json
from os import path

import placebo
import pytest
from botocore.exceptions import ClientError

from ecs_conduktor.common.naming import ResourceNames
from ecs_conduktor.events import cron_expression
from ecs_conduktor.events.events_params import (
    DEFAULT_SCHEDULES,
    FUNCTION_ROLE_T,
    FUNCTION_T,
    INLINE_CODE_MAX_SIZE,
)
from ecs_conduktor.events.events_template import (
    define_schedule_rules,
    get_inline_code,
)
from ecs_conduktor.events.scaling_action import DesiredCountAction, lambda_handler

HERE = path.abspath(path.dirname(__file__))


def ecs_client(session, data_path):
    pill = placebo.attach(session, data_path=f"{HERE}/{data_path}")
    pill.playback()
    return session.client("ecs")


def test_cron_expression():
    assert cron_expression(14, 0) == "cron(0 14 * * ? *)"
    assert cron_expression(2, 30) == "cron(30 2 * * ? *)"
    with pytest.raises(ValueError):
        cron_expression(24, 0)


def test_default_rules():
    rules = define_schedule_rules(ResourceNames("dev-acme-conduktor"), DEFAULT_SCHEDULES)
    assert rules["start"].desired_count == 1
    assert rules["stop"].desired_count == 0
    assert rules["start"].state == "DISABLED"
    assert rules["stop"].state == "ENABLED"
    assert rules["start"].expression != rules["stop"].expression


def test_rules_never_coincide():
    schedules = {
        "start": {"hour": 2, "minute": 0, "enabled": True},
        "stop": {"hour": 2, "minute": 0, "enabled": True},
    }
    with pytest.raises(ValueError):
        define_schedule_rules(ResourceNames("dev-acme-conduktor"), schedules)


def test_rule_input_is_scoped(stack):
    for rule in stack.rules.values():
        assert json.loads(rule.rule_input(stack.service)) == {
            "cluster": "acme",
            "service": "dev-acme-conduktor",
            "desiredCount": rule.desired_count,
        }


def test_function_role_scoped_to_service(template_dict):
    statements = template_dict["Resources"][FUNCTION_ROLE_T]["Properties"]["Policies"][
        0
    ]["PolicyDocument"]["Statement"]
    update = [
        statement for statement in statements if statement["Sid"] == "UpdateService"
    ][0]
    assert update["Action"] == ["ecs:UpdateService"]
    assert update["Resource"] == [{"Ref": "EcsServiceDefinition"}]


def test_inline_code(template_dict):
    code = get_inline_code()
    assert len(code) <= INLINE_CODE_MAX_SIZE
    assert "def lambda_handler" in code
    assert not [
        line
        for line in code.splitlines()
        if line.startswith(("from ecs_conduktor", "import ecs_conduktor"))
    ]
    function = template_dict["Resources"][FUNCTION_T]["Properties"]
    assert function["Code"]["ZipFile"] == code
    assert function["FunctionName"] == "dev-acme-conduktor-desired-count"


def test_stop_missing_service(session):
    """
    Setting desiredCount to 0 on a service that does not exist is a no-op
    """
    client = ecs_client(session, "x_service_missing")
    action = DesiredCountAction("acme", "dev-acme-conduktor", 0)
    assert action.apply(client) is None


def test_start_service(session):
    client = ecs_client(session, "x_service_update")
    action = DesiredCountAction.from_event(
        {"cluster": "acme", "service": "dev-acme-conduktor", "desiredCount": 1}
    )
    assert action.apply(client) == 1


def test_other_errors_raised(session):
    client = ecs_client(session, "x_cluster_missing_update")
    with pytest.raises(ClientError):
        DesiredCountAction("acme", "dev-acme-conduktor", 0).apply(client)


def test_invalid_count():
    with pytest.raises(ValueError):
        DesiredCountAction("acme", "dev-acme-conduktor", -1)


def test_lambda_handler(session, monkeypatch):
    client = ecs_client(session, "x_service_missing")
    monkeypatch.setattr(
        "ecs_conduktor.events.scaling_action.boto3.client", lambda service: client
    )
    event = {"cluster": "acme", "service": "dev-acme-conduktor", "desiredCount": 0}
    assert lambda_handler(event, None) == {"desiredCount": None}
