#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
The three containers of the Conduktor task: postgres, the console and the monitoring (cortex).

The console and the monitoring reach each other and the database over localhost, as all containers
share the task network interface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template
    from ecs_conduktor.common.settings import StackSettings

from ecs_conduktor.common.naming import CONSOLE, DATABASE, MONITORING
from ecs_conduktor.ecs.ecs_container import (
    ContainerSpec,
    HealthProbe,
    MountSpec,
    PortSpec,
    StartupDependency,
    UlimitSpec,
)
from ecs_conduktor.ecs.ecs_logging import define_container_log_sink
from ecs_conduktor.ecs.ecs_params import HEALTHY
from ecs_conduktor.efs.efs_params import VOLUME_NAME
from ecs_conduktor.secrets import secrets_params as fields

STOP_TIMEOUT = 120
POSTGRES_DATA = "/var/lib/postgresql/data"
MAX_FILES = 65536

DATABASE_ENVIRONMENT = {
    "PGDATA": POSTGRES_DATA,
    "POSTGRES_INITDB_ARGS": "--auth-host=scram-sha-256",
    "POSTGRES_HOST_AUTH_METHOD": "scram-sha-256",
    "POSTGRES_STOP_MODE": "smart",
    "POSTGRES_SHUTDOWN_TIMEOUT": "300",
}
CONSOLE_ENVIRONMENT = {
    "CDK_DATABASE_HOST": "localhost",
    "CDK_DATABASE_PORT": "5432",
    "CDK_MONITORING_ALERT-MANAGER-URL": "http://localhost:9010/",
    "CDK_MONITORING_CALLBACK-URL": "http://localhost:8080/monitoring/api/",
    "CDK_MONITORING_CORTEX-URL": "http://localhost:9009/",
    "CDK_MONITORING_NOTIFICATIONS-CALLBACK-URL": "http://localhost:8080",
}
MONITORING_ENVIRONMENT = {"CDK_CONSOLE-URL": "http://localhost:8080"}


def same_name_secrets(*names) -> dict:
    return {name: name for name in names}


def database_container(settings: StackSettings, template: Template) -> ContainerSpec:
    return ContainerSpec(
        settings.names.database_container,
        settings.images["database"],
        cpu=512,
        memory=1024,
        environment=DATABASE_ENVIRONMENT,
        secrets=same_name_secrets(
            fields.POSTGRES_PASSWORD, fields.POSTGRES_USER, fields.POSTGRES_DB
        ),
        health_probe=HealthProbe("pg_isready -U postgres || exit 1"),
        ports=[PortSpec("postgresql", 5432)],
        mount_points=[MountSpec(VOLUME_NAME, POSTGRES_DATA, read_only=False)],
        ulimits=[
            UlimitSpec("nofile", MAX_FILES, MAX_FILES),
            UlimitSpec("nproc", MAX_FILES, MAX_FILES),
        ],
        log_sink=define_container_log_sink(template, settings.names, DATABASE),
        stop_timeout=STOP_TIMEOUT,
        docker_labels={"STOPSIGNAL": "SIGTERM"},
        init_process=True,
    )


def console_container(
    settings: StackSettings, template: Template, database: ContainerSpec
) -> ContainerSpec:
    """
    The console waits for the database to be healthy before starting
    """
    return ContainerSpec(
        settings.names.console_container,
        settings.images["console"],
        cpu=1536,
        memory=3072,
        environment=CONSOLE_ENVIRONMENT,
        secrets=same_name_secrets(
            fields.CDK_ADMIN_EMAIL,
            fields.CDK_ADMIN_PASSWORD,
            fields.CDK_DATABASE_NAME,
            fields.CDK_DATABASE_PASSWORD,
            fields.CDK_DATABASE_USERNAME,
        ),
        health_probe=HealthProbe(
            f"curl -s http://localhost:8080{settings.health_check_path} || exit 1"
        ),
        ports=[PortSpec("console-8080-tcp", 8080)],
        dependencies=[StartupDependency(database.name, HEALTHY)],
        log_sink=define_container_log_sink(template, settings.names, CONSOLE),
        stop_timeout=STOP_TIMEOUT,
    )


def monitoring_container(settings: StackSettings, template: Template) -> ContainerSpec:
    # No dependency: starts in the first wave, with the database, before the console.
    return ContainerSpec(
        settings.names.monitoring_container,
        settings.images["monitoring"],
        cpu=512,
        memory=1024,
        environment=MONITORING_ENVIRONMENT,
        health_probe=HealthProbe("curl -s http://localhost:9009/ready || exit 1"),
        ports=[
            PortSpec("console-9090-tcp", 9090),
            PortSpec("conduktor-cortex-9010-tcp", 9010),
            PortSpec("conduktor-cortex-9009-tcp", 9009),
        ],
        log_sink=define_container_log_sink(template, settings.names, MONITORING),
        stop_timeout=STOP_TIMEOUT,
    )


def define_conduktor_containers(settings: StackSettings, template: Template) -> list:
    """
    :return: the database, console and monitoring containers, in that order
    :rtype: list[ContainerSpec]
    """
    database = database_container(settings, template)
    return [
        database,
        console_container(settings, template, database),
        monitoring_container(settings, template),
    ]
