#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Renders the dev/acme/conduktor stack against a fake environment and checks the resulting template
"""

import pytest

from ecs_conduktor.conduktor_stack import ConduktorStack
from ecs_conduktor.ecs.ecs_params import SERVICE_T, TASK_T
from ecs_conduktor.exceptions import NotFoundError


def resources_of_type(template_dict, resource_type):
    return {
        title: resource
        for title, resource in template_dict["Resources"].items()
        if resource["Type"] == resource_type
    }


def containers_by_name(template_dict):
    return {
        container["Name"]: container
        for container in template_dict["Resources"][TASK_T]["Properties"][
            "ContainerDefinitions"
        ]
    }


def test_lookups_done_through_environment(stack, environment):
    assert environment.lookups == [
        ("network", "vpc-0123456789abcdef0"),
        ("cluster", "acme"),
    ]


def test_task_definition(template_dict):
    task = template_dict["Resources"][TASK_T]["Properties"]
    assert task["Family"] == "dev-acme-conduktor-console"
    assert task["Cpu"] == "4096"
    assert task["Memory"] == "8192"
    assert task["NetworkMode"] == "awsvpc"
    assert task["RequiresCompatibilities"] == ["FARGATE"]
    assert [volume["Name"] for volume in task["Volumes"]] == ["efs-volume"]


def test_containers_within_budget(stack):
    assert stack.workload.containers_cpu <= stack.workload.cpu
    assert stack.workload.containers_memory <= stack.workload.memory


def test_console_waits_for_healthy_database(template_dict):
    containers = containers_by_name(template_dict)
    assert containers["dev-acme-conduktor-console-container"]["DependsOn"] == [
        {
            "ContainerName": "dev-acme-conduktor-postgres-db-container",
            "Condition": "HEALTHY",
        }
    ]


def test_monitoring_has_no_dependency(template_dict):
    """
    The monitoring container is not ordered after the console
    """
    containers = containers_by_name(template_dict)
    assert "DependsOn" not in containers["dev-acme-conduktor-monitoring-container"]


def test_only_database_exposes_postgres_and_mounts_storage(template_dict):
    for name, container in containers_by_name(template_dict).items():
        ports = [port["ContainerPort"] for port in container.get("PortMappings", [])]
        if name == "dev-acme-conduktor-postgres-db-container":
            assert ports == [5432]
            assert container["MountPoints"] == [
                {
                    "SourceVolume": "efs-volume",
                    "ContainerPath": "/var/lib/postgresql/data",
                    "ReadOnly": False,
                }
            ]
        else:
            assert 5432 not in ports
            assert "MountPoints" not in container


def test_monitoring_ports_order(template_dict):
    containers = containers_by_name(template_dict)
    ports = containers["dev-acme-conduktor-monitoring-container"]["PortMappings"]
    assert [port["Name"] for port in ports] == [
        "console-9090-tcp",
        "conduktor-cortex-9010-tcp",
        "conduktor-cortex-9009-tcp",
    ]
    assert [port["HostPort"] for port in ports] == [9090, 9010, 9009]


def test_console_health_check_path(make_settings, base_config, environment):
    base_config["healthCheckPath"] = "/api/health/ready"
    stack = ConduktorStack(make_settings(base_config), environment)
    template_dict = stack.render().to_dict()
    containers = containers_by_name(template_dict)
    assert containers["dev-acme-conduktor-console-container"]["HealthCheck"][
        "Command"
    ] == ["CMD-SHELL", "curl -s http://localhost:8080/api/health/ready || exit 1"]


def test_container_secrets(template_dict):
    containers = containers_by_name(template_dict)
    database = containers["dev-acme-conduktor-postgres-db-container"]
    assert {secret["Name"] for secret in database["Secrets"]} == {
        "POSTGRES_PASSWORD",
        "POSTGRES_USER",
        "POSTGRES_DB",
    }
    assert "Secrets" not in containers["dev-acme-conduktor-monitoring-container"]


def test_log_groups(template_dict):
    groups = resources_of_type(template_dict, "AWS::Logs::LogGroup")
    names = {group["Properties"]["LogGroupName"] for group in groups.values()}
    assert {
        "/ecs/dev-acme-conduktor-postgres",
        "/ecs/dev-acme-conduktor-console",
        "/ecs/dev-acme-conduktor-monitoring",
    } <= names
    for group in groups.values():
        assert group["Properties"]["RetentionInDays"] == 60
        assert group["DeletionPolicy"] == "Delete"


def test_service(template_dict, stack):
    service = template_dict["Resources"][SERVICE_T]
    properties = service["Properties"]
    assert properties["ServiceName"] == "dev-acme-conduktor"
    assert properties["Cluster"] == "acme"
    assert properties["DesiredCount"] == 1
    assert properties["HealthCheckGracePeriodSeconds"] == 300
    network = properties["NetworkConfiguration"]["AwsvpcConfiguration"]
    assert network["AssignPublicIp"] == "DISABLED"
    assert network["Subnets"] == [
        "subnet-0aaaaaaaaaaaaaaa1",
        "subnet-0aaaaaaaaaaaaaaa2",
        "subnet-0bbbbbbbbbbbbbbb1",
    ]
    assert set(service["DependsOn"]) == set(stack.storage.depends_on)
    assert stack.storage.cfn_resource.title in service["DependsOn"]


def test_schedule_rules(template_dict):
    rules = {
        rule["Properties"]["Name"]: rule["Properties"]
        for rule in resources_of_type(template_dict, "AWS::Events::Rule").values()
    }
    start = rules["dev-acme-conduktor-start-ecs-service"]
    stop = rules["dev-acme-conduktor-stop-ecs-service"]
    assert start["ScheduleExpression"] == "cron(0 14 * * ? *)"
    assert start["State"] == "DISABLED"
    assert stop["ScheduleExpression"] == "cron(0 2 * * ? *)"
    assert stop["State"] == "ENABLED"
    assert start["ScheduleExpression"] != stop["ScheduleExpression"]


def test_secret_deletion_policy(template_dict):
    secrets = resources_of_type(template_dict, "AWS::SecretsManager::Secret")
    assert len(secrets) == 1
    for secret in secrets.values():
        assert secret["DeletionPolicy"] == "Delete"


def test_no_wildcard_ingress(template_dict):
    for group in resources_of_type(template_dict, "AWS::EC2::SecurityGroup").values():
        for rule in group["Properties"].get("SecurityGroupIngress", []):
            assert rule["IpProtocol"] != "-1"
            assert not (rule["FromPort"] == 0 and rule["ToPort"] == 65535)
    for rule in resources_of_type(template_dict, "AWS::EC2::SecurityGroupIngress").values():
        assert rule["Properties"]["IpProtocol"] != "-1"


def test_outputs(template_dict):
    assert set(template_dict["Outputs"]) == {
        "ServiceName",
        "ClusterName",
        "TaskFamily",
        "SecurityGroupId",
        "FilesystemId",
        "AccessPointId",
        "SecretArn",
    }


def test_render_is_deterministic(make_settings, fake_environment_class):
    first = ConduktorStack(make_settings(), fake_environment_class()).render()
    second = ConduktorStack(make_settings(), fake_environment_class()).render()
    assert first.to_json() == second.to_json()


def test_lookup_failure_declares_nothing(settings, fake_environment_class):
    class MissingNetwork(fake_environment_class):
        def lookup_network(self, network_id):
            raise NotFoundError(f"VPC {network_id} not found")

    stack = ConduktorStack(settings, MissingNetwork())
    with pytest.raises(NotFoundError):
        stack.render()
    assert stack.template is None


def test_database_container_settings(template_dict):
    database = containers_by_name(template_dict)["dev-acme-conduktor-postgres-db-container"]
    assert database["Image"] == "public.ecr.aws/docker/library/postgres:17.4"
    assert database["HealthCheck"] == {
        "Command": ["CMD-SHELL", "pg_isready -U postgres || exit 1"],
        "Interval": 30,
        "Timeout": 5,
        "Retries": 5,
        "StartPeriod": 120,
    }
    assert database["Ulimits"] == [
        {"Name": "nofile", "SoftLimit": 65536, "HardLimit": 65536},
        {"Name": "nproc", "SoftLimit": 65536, "HardLimit": 65536},
    ]


def test_containers_log_configuration(template_dict):
    for container in containers_by_name(template_dict).values():
        options = container["LogConfiguration"]["Options"]
        assert container["LogConfiguration"]["LogDriver"] == "awslogs"
        assert options["awslogs-stream-prefix"] == "ecs"
        assert options["awslogs-multiline-pattern"] == "^(INFO|DEBUG|WARN|ERROR|CRITICAL)"
        assert options["awslogs-region"] == {"Ref": "AWS::Region"}
