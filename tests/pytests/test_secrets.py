#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

import json

import pytest
from troposphere import Template

from ecs_conduktor.exceptions import SecretFieldError
from ecs_conduktor.secrets import SecretBundle
from ecs_conduktor.secrets.secrets_bundle import parse_secret_reference
from ecs_conduktor.secrets.secrets_params import SECRET_FIELDS, SECRET_T


def test_secret_definition():
    template = Template()
    bundle = SecretBundle("dev-acme-conduktor")
    bundle.define_secret(template)
    secret = template.to_dict()["Resources"][SECRET_T]
    assert secret["DeletionPolicy"] == "Delete"
    assert secret["Properties"]["Name"] == "dev-acme-conduktor"
    values = json.loads(secret["Properties"]["SecretString"])
    assert tuple(values.keys()) == SECRET_FIELDS
    assert values["POSTGRES_PORT"] == "5432"
    assert values["CDK_DATABASE_PORT"] == "5432"
    assert values["POSTGRES_PASSWORD"] == ""


def test_reference():
    bundle = SecretBundle("dev-acme-conduktor")
    reference = bundle.reference("POSTGRES_USER").to_dict()
    assert reference == {"Fn::Sub": "${ConduktorSecret}:POSTGRES_USER::"}
    assert parse_secret_reference(reference) == (SECRET_T, "POSTGRES_USER")


def test_unknown_field():
    bundle = SecretBundle("dev-acme-conduktor")
    with pytest.raises(SecretFieldError):
        bundle.reference("KAFKA_PASSWORD")
    with pytest.raises(KeyError):
        bundle.container_secrets({"KAFKA_PASSWORD": "KAFKA_PASSWORD"})


def test_duplicate_fields():
    with pytest.raises(ValueError):
        SecretBundle("dev-acme-conduktor", fields=("POSTGRES_USER", "POSTGRES_USER"))


def test_invalid_reference():
    with pytest.raises(ValueError):
        parse_secret_reference("arn:aws:secretsmanager:eu-west-1:123456789012:secret:abcd")
