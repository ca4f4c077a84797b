#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Load the JSON Schema specifications shipped with the package
"""

import json

from importlib_resources import files as pkg_files

STACK_SPEC_FILE = "stack.spec.json"


def load_spec(spec_file: str = STACK_SPEC_FILE) -> dict:
    """
    Loads the JSON schema from the specs folder

    :param str spec_file: name of the spec file in the ecs_conduktor.specs package
    :rtype: dict
    """
    return json.loads(
        pkg_files("ecs_conduktor.specs").joinpath(spec_file).read_text(encoding="utf-8")
    )


STACK_SPEC = load_spec()
