#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Secrets Manager bundle holding the database and console credentials
"""

from .secrets_bundle import SecretBundle
