#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Security groups of the workload and of its storage
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_conduktor.common.naming import ResourceNames
    from ecs_conduktor.vpc.vpc_aws import NetworkContext

from ecs_conduktor.ingress.access_rules import (
    AccessControlGroup,
    AccessRule,
    AccessRuleSet,
)
from ecs_conduktor.ingress.ingress_params import (
    CONSOLE_PORT,
    HTTP_PORT,
    MANAGEMENT_CIDR,
    MONITORING_PORTS,
    NFS_PORT,
    POSTGRES_PORT,
    SELF,
    STORAGE_GROUP_T,
    WORKLOAD_GROUP_T,
)


def define_workload_rules(network: NetworkContext, allowlist=None) -> AccessRuleSet:
    """
    Inbound rules of the workload: postgres, console, monitoring and ICMP.

    :param NetworkContext network:
    :param list allowlist: list of {address, description} allowed on the console port
    :rtype: AccessRuleSet
    """
    vpc = network.cidr_block
    rules = AccessRuleSet(
        [
            AccessRule.tcp(HTTP_PORT, "HTTP from VPC", cidr=vpc),
            AccessRule.tcp(POSTGRES_PORT, "Postgres from self", source_group=SELF),
            AccessRule.tcp(POSTGRES_PORT, "Postgres from VPC", cidr=vpc),
            AccessRule.tcp(
                POSTGRES_PORT, "Postgres from management", cidr=MANAGEMENT_CIDR
            ),
            AccessRule.tcp(CONSOLE_PORT, "Console from VPC", cidr=vpc),
            AccessRule.tcp(
                CONSOLE_PORT, "Console from management", cidr=MANAGEMENT_CIDR
            ),
        ]
    )
    for port in MONITORING_PORTS:
        rules.add(AccessRule.tcp(port, f"Monitoring {port} from self", source_group=SELF))
    rules.add(AccessRule.all_icmp("ICMP from VPC", cidr=vpc))
    rules.add(AccessRule.all_icmp("ICMP from management", cidr=MANAGEMENT_CIDR))
    for entry in allowlist if allowlist else []:
        rules.add(
            AccessRule.tcp(
                CONSOLE_PORT,
                entry.get("description", f"Console from {entry['address']}"),
                cidr=entry["address"],
            )
        )
    return rules


def define_storage_rules(network: NetworkContext, workload_group: str) -> AccessRuleSet:
    """
    NFS access to the filesystem, from the workload group and the VPC
    """
    return AccessRuleSet(
        [
            AccessRule.tcp(
                NFS_PORT, "NFS from the workload", source_group=workload_group
            ),
            AccessRule.tcp(NFS_PORT, "NFS from VPC", cidr=network.cidr_block),
        ]
    )


def define_workload_group(
    names: ResourceNames, network: NetworkContext, allowlist=None
) -> AccessControlGroup:
    return AccessControlGroup(
        WORKLOAD_GROUP_T,
        names.security_group,
        f"{names.prefix} - Postgres, console and monitoring access",
        define_workload_rules(network, allowlist),
    )


def define_storage_group(
    names: ResourceNames, network: NetworkContext
) -> AccessControlGroup:
    return AccessControlGroup(
        STORAGE_GROUP_T,
        names.storage_security_group,
        f"{names.prefix} - EFS access for postgres",
        define_storage_rules(network, names.security_group),
    )
