#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Settings bound to ecs_conduktor.ecs
All the titles, marked `_T` are strings used the same way across all imports to keep CFN logical IDs consistent.
"""

TASK_T = "EcsTaskDefinition"
SERVICE_T = "EcsServiceDefinition"
EXEC_ROLE_T = "EcsExecutionRole"
TASK_ROLE_T = "EcsTaskRole"
LOG_GROUP_T = "LogGroup"

LAUNCH_TYPE = "FARGATE"
NETWORK_MODE = "awsvpc"

DEFAULT_IMAGES = {
    "database": "public.ecr.aws/docker/library/postgres:17.4",
    "console": "conduktor/conduktor-console:latest",
    "monitoring": "conduktor/conduktor-console-cortex:latest",
}

HEALTHY = "HEALTHY"
START = "START"
COMPLETE = "COMPLETE"
SUCCESS = "SUCCESS"
DEPENDENCY_CONDITIONS = [START, COMPLETE, SUCCESS, HEALTHY]

LOG_DRIVER = "awslogs"
LOG_STREAM_PREFIX = "ecs"
LOG_GROUP_RETENTION_DAYS = 60
LOG_MULTILINE_PATTERN = "^(INFO|DEBUG|WARN|ERROR|CRITICAL)"

HEALTH_CHECK_GRACE_PERIOD = 300
IMAGE_PULL_ALLOWANCE = 60

FARGATE_MODES = {
    256: [2**i for i in [9, 10, 11]],
    512: [(2**10) * i for i in range(1, 5)],
    1024: [(2**10) * i for i in range(2, 9)],
    2048: [(2**10) * i for i in range(4, 17)],
    4096: [(2**10) * i for i in range(8, 31)],
    8192: [(2**10) * i for i in range(16, 61, 4)],
    16384: [(2**10) * i for i in range(32, 121, 8)],
}

ULIMIT_NAMES = [
    "core",
    "cpu",
    "data",
    "fsize",
    "locks",
    "memlock",
    "msgqueue",
    "nice",
    "nofile",
    "nproc",
    "rss",
    "rtprio",
    "rttime",
    "sigpending",
    "stack",
]
