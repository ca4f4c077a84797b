#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Most commonly used functions shared across all modules.
"""

import re
from datetime import datetime as dt
from uuid import uuid4

FILE_PREFIX = f'{dt.utcnow().strftime("%Y/%m/%d/%H%M")}/{str(uuid4().hex)[:6]}'
NONALPHANUM = re.compile(r"([^a-zA-Z\d]+)")


def cfn_title(*parts) -> str:
    """
    Returns a CloudFormation logical ID out of the given name parts

    >>> cfn_title("dev-acme-conduktor", "console")
    'DevAcmeConduktorConsole'
    """
    words = []
    for part in parts:
        words += [word for word in NONALPHANUM.split(str(part)) if word]
    return "".join(
        word[0].upper() + word[1:] for word in words if not NONALPHANUM.match(word)
    )
