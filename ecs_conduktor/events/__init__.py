#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Scheduled start/stop of the ECS Service via EventBridge rules
"""

from .events_template import ScheduleRule, cron_expression
