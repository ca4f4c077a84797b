#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Security groups and ingress rules of the stack
"""

from .access_rules import AccessControlGroup, AccessRule, AccessRuleSet
