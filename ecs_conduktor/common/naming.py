#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Deterministic naming of every AWS resource of the stack.

All names derive from the prefix ``{environment}-{project}-{service}``, so rendering twice the same
configuration always yields the same names, and two environments of the same service never collide.
"""

from __future__ import annotations

from ecs_conduktor.common import cfn_title
from ecs_conduktor.exceptions import SettingsError

DATABASE = "postgres"
CONSOLE = "console"
MONITORING = "monitoring"
COMPONENTS = (DATABASE, CONSOLE, MONITORING)

IAM_NAME_MAX_LENGTH = 64
LONGEST_SUFFIX = "-desired-count-role"
MAX_PREFIX_LENGTH = IAM_NAME_MAX_LENGTH - len(LONGEST_SUFFIX)


def define_prefix(environment: str, project: str, service: str) -> str:
    return f"{environment}-{project}-{service}"


class ResourceNames:
    """
    Names of the AWS resources and CFN logical IDs for a given prefix

    :ivar str prefix: ``{environment}-{project}-{service}``
    """

    def __init__(self, prefix: str):
        if len(prefix) > MAX_PREFIX_LENGTH:
            raise SettingsError(
                f"Prefix {prefix} is {len(prefix)} long. Maximum is {MAX_PREFIX_LENGTH}"
            )
        self.prefix = prefix

    def __repr__(self):
        return self.prefix

    def title(self, *parts) -> str:
        """CFN logical ID for the given resource, scoped to this prefix"""
        return cfn_title(self.prefix, *parts)

    @property
    def execution_role(self) -> str:
        return f"{self.prefix}-execution-role"

    @property
    def task_role(self) -> str:
        return f"{self.prefix}-task-role"

    @property
    def scheduler_role(self) -> str:
        return f"{self.prefix}-desired-count-role"

    @property
    def security_group(self) -> str:
        return f"{self.prefix}-postgres"

    @property
    def storage_security_group(self) -> str:
        return f"{self.prefix}-postgres-efs"

    @property
    def secret(self) -> str:
        return self.prefix

    @property
    def filesystem(self) -> str:
        return f"{self.prefix}-postgres-database"

    @property
    def family(self) -> str:
        return f"{self.prefix}-console"

    @property
    def service(self) -> str:
        return self.prefix

    @property
    def database_container(self) -> str:
        return f"{self.prefix}-postgres-db-container"

    @property
    def console_container(self) -> str:
        return f"{self.prefix}-console-container"

    @property
    def monitoring_container(self) -> str:
        return f"{self.prefix}-monitoring-container"

    def log_group(self, component: str) -> str:
        if component not in COMPONENTS:
            raise KeyError(f"{component} is not a valid component. Expected", COMPONENTS)
        return f"/ecs/{self.prefix}-{component}"

    @property
    def start_rule(self) -> str:
        return f"{self.prefix}-start-ecs-service"

    @property
    def stop_rule(self) -> str:
        return f"{self.prefix}-stop-ecs-service"

    @property
    def scheduler_function(self) -> str:
        return f"{self.prefix}-desired-count"

    @property
    def scheduler_log_group(self) -> str:
        return f"/aws/lambda/{self.scheduler_function}"

    def all_names(self) -> dict:
        """
        Returns every physical name generated for the stack, keyed by its purpose
        """
        names = {
            "execution_role": self.execution_role,
            "task_role": self.task_role,
            "scheduler_role": self.scheduler_role,
            "security_group": self.security_group,
            "storage_security_group": self.storage_security_group,
            "secret": self.secret,
            "filesystem": self.filesystem,
            "family": self.family,
            "service": self.service,
            "database_container": self.database_container,
            "console_container": self.console_container,
            "monitoring_container": self.monitoring_container,
            "start_rule": self.start_rule,
            "stop_rule": self.stop_rule,
            "scheduler_function": self.scheduler_function,
            "scheduler_log_group": self.scheduler_log_group,
        }
        for component in COMPONENTS:
            names[f"{component}_log_group"] = self.log_group(component)
        return names
