#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Ports and networks allowed to reach the stack
"""

MANAGEMENT_CIDR = "10.0.0.0/24"

HTTP_PORT = 80
POSTGRES_PORT = 5432
CONSOLE_PORT = 8080
MONITORING_PORTS = [9090, 9010, 9009, 9095]
NFS_PORT = 2049

TCP = "tcp"
UDP = "udp"
ICMP = "icmp"
ALL_PROTOCOLS = "-1"
ALL_ICMP_PORT = -1
MAX_PORT = (2**16) - 1

SELF = "self"

WORKLOAD_GROUP_T = "WorkloadSecurityGroup"
STORAGE_GROUP_T = "StorageSecurityGroup"
