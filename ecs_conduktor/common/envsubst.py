#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Environment variables interpolation for the stack configuration file.

Supports ``$VAR``, ``${VAR}``, ``${VAR:-default}`` and ``${VAR:+alternate}``.
CloudFormation pseudo parameters such as ``${AWS::Region}`` and escaped references (``\\$VAR``)
are left untouched.
"""

from __future__ import annotations

import os
import re

VARIABLE = re.compile(r"(?<!\\)\$(?P<bare>\w+)|(?<!\\)\$\{(?!AWS::)(?P<braced>[^}]*)\}")
MODIFIER = re.compile(r"^(?P<name>\w+)(?P<operator>:[-+])(?P<word>.*)$")
IF_UNDEFINED = ":-"
IF_DEFINED = ":+"


def _resolve(expression: str, default: str | None, whole: str) -> str:
    modifier = MODIFIER.match(expression)
    if not modifier:
        value = os.environ.get(expression)
        if value is not None:
            return value
        return whole if default is None else default
    name = modifier.group("name")
    word = modifier.group("word")
    if modifier.group("operator") == IF_UNDEFINED:
        return os.environ.get(name) or expandvars(word, default)
    if os.environ.get(name):
        return expandvars(word, default)
    return ""


def expandvars(value: str, default: str = None) -> str:
    """
    Expands the environment variables found in value.

    :param str value: the string to interpolate
    :param str default: value to use for undefined variables. If None, the reference is kept as-is.
    :rtype: str
    """

    def replace_var(match):
        if match.group("bare"):
            return _resolve(match.group("bare"), default, match.group(0))
        return _resolve(match.group("braced"), default, match.group(0))

    return VARIABLE.sub(replace_var, value)
