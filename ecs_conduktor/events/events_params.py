#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Settings bound to ecs_conduktor.events
"""

START_T = "start"
STOP_T = "stop"

DEFAULT_SCHEDULES = {
    START_T: {"hour": 14, "minute": 0, "enabled": False},
    STOP_T: {"hour": 2, "minute": 0, "enabled": True},
}
DESIRED_COUNTS = {START_T: 1, STOP_T: 0}


FUNCTION_T = "DesiredCountFunction"
FUNCTION_ROLE_T = "DesiredCountFunctionRole"
FUNCTION_LOG_GROUP_T = "DesiredCountFunctionLogGroup"
FUNCTION_RUNTIME = "python3.12"
FUNCTION_HANDLER = "index.lambda_handler"
FUNCTION_TIMEOUT = 30
INLINE_CODE_MAX_SIZE = 4096
