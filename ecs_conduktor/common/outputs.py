#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Functions to format CFN template Outputs
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template

from troposphere import AWSHelperFn, Export, Output, Sub

from ecs_conduktor.common.logging import LOG

EXPORT_DELIMITER = "::"


def validate(value) -> None:
    """
    :raises: ValueError, TypeError
    """
    if not len(value) == 3:
        raise ValueError(
            "Output argument expects Name, Description, Value. Only got", len(value)
        )
    if not isinstance(value[0], str):
        raise TypeError("Name should be of type", str, "Got", type(value[0]))
    if not isinstance(value[1], str):
        raise TypeError("Description should be of type", str, "Got", type(value[1]))
    if not (isinstance(value[2], (str, int)) or issubclass(type(value[2]), AWSHelperFn)):
        raise TypeError("Value type is", type(value[2]), "Expected", str, AWSHelperFn)


class StackOutputs:
    """
    Class to define the outputs of the stack, exported as ``{StackName}::{Name}``
    """

    def __init__(self, values: list, export: bool = True):
        """
        :param list[tuple] values: (Name, Description, Value)
        :param bool export: whether to export the outputs values
        """
        self.outputs = []
        for value in values:
            if not isinstance(value, tuple):
                raise TypeError("All values should be a tuple. Got", type(value))
            validate(value)
            name, description, attr_value = value
            props = {"Description": description, "Value": attr_value}
            if export:
                props["Export"] = Export(
                    Sub(f"${{AWS::StackName}}{EXPORT_DELIMITER}{name}")
                )
            self.outputs.append(Output(name, **props))

    def add_to(self, template: Template) -> None:
        for output in self.outputs:
            if output.title in template.outputs:
                LOG.warning(f"Output {output.title} already defined. Overriding")
                del template.outputs[output.title]
            template.add_output(output)
