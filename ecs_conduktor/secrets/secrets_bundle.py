#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
The secret bundle: one Secrets Manager secret with a JSON document of placeholder fields.

Containers never get a copy of the values, only a ``ValueFrom`` reference to one of the JSON keys.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template

import json

from troposphere import Ref, Sub
from troposphere.ecs import Secret as EcsSecret
from troposphere.secretsmanager import Secret

from ecs_conduktor.common.logging import LOG
from ecs_conduktor.exceptions import SecretFieldError
from ecs_conduktor.secrets.secrets_params import (
    FIELDS_DEFAULTS,
    SECRET_FIELDS,
    SECRET_REFERENCE,
    SECRET_T,
)


class SecretBundle:
    """
    Class to represent the credentials secret of the stack

    :ivar str name: the secret name
    :ivar tuple fields: the JSON keys of the secret
    :ivar troposphere.secretsmanager.Secret cfn_resource:
    """

    def __init__(self, name: str, fields: tuple = SECRET_FIELDS, title: str = SECRET_T):
        if len(set(fields)) != len(fields):
            raise ValueError(f"{name} - secret fields must be unique. Got", fields)
        self.name = name
        self.fields = tuple(fields)
        self.title = title
        self.cfn_resource = None

    def __repr__(self):
        return self.name

    @property
    def placeholder_values(self) -> dict:
        """Values of the secret at creation. Blank, except for the ports."""
        return {field: FIELDS_DEFAULTS.get(field, "") for field in self.fields}

    def define_secret(self, template: Template) -> Secret:
        self.cfn_resource = Secret(
            self.title,
            Name=self.name,
            Description=f"{self.name} - Postgres and Conduktor console credentials",
            SecretString=json.dumps(self.placeholder_values),
            DeletionPolicy="Delete",
            UpdateReplacePolicy="Delete",
        )
        template.add_resource(self.cfn_resource)
        return self.cfn_resource

    def reference(self, field: str) -> Sub:
        """
        ValueFrom for a JSON key of the secret, as expected by ECS

        :raises: SecretFieldError if the field is not part of the bundle
        """
        if field not in self.fields:
            raise SecretFieldError(
                f"{self.name} - {field} is not a field of the secret. Valid fields",
                self.fields,
            )
        return Sub(f"${{{self.title}}}:{field}::")

    def container_secrets(self, mappings: dict) -> list:
        """
        :param dict mappings: environment variable name -> secret field
        :return: the ECS task definition secrets
        :rtype: list[troposphere.ecs.Secret]
        """
        secrets = []
        for env_name, field in mappings.items():
            LOG.debug(f"{self.name} - {env_name} from {field}")
            secrets.append(EcsSecret(Name=env_name, ValueFrom=self.reference(field)))
        return secrets

    @property
    def arn(self) -> Ref:
        return Ref(self.title)


def parse_secret_reference(value_from) -> tuple:
    """
    Reverse of :meth:`SecretBundle.reference`, from the rendered template.

    :param value_from: the ``{"Fn::Sub": "${Title}:FIELD::"}`` mapping
    :return: secret logical ID and the field name
    :rtype: tuple[str, str]
    """
    if isinstance(value_from, dict) and "Fn::Sub" in value_from:
        value_from = value_from["Fn::Sub"]
    if not isinstance(value_from, str):
        raise ValueError("Secret reference must be a Fn::Sub string. Got", value_from)
    parts = SECRET_REFERENCE.match(value_from)
    if not parts:
        raise ValueError(f"{value_from} is not a secret field reference")
    return parts.group("title"), parts.group("field")
