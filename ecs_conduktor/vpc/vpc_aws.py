#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Module to find the VPC, its CIDR and private subnets from the AWS API.
Nothing here creates or changes the network.
"""

from __future__ import annotations

from botocore.exceptions import ClientError
from compose_x_common.compose_x_common import keyisset

from ecs_conduktor.common.logging import LOG
from ecs_conduktor.exceptions import NotFoundError
from ecs_conduktor.vpc.vpc_params import (
    CDK_SUBNET_TYPE_TAG,
    INTERNET_GATEWAY_PREFIX,
    PRIVATE_SUBNET,
    PRIVATE_SUBNET_TYPES,
    PUBLIC_SUBNET,
    VPC_NOT_FOUND_CODES,
)


class NetworkContext:
    """
    Read-only view of an existing VPC

    :ivar str vpc_id:
    :ivar str cidr_block: the VPC primary CIDR block
    :ivar list[str] private_subnets: IDs of the private subnets, sorted by AZ
    :ivar dict subnets_azs: subnet ID to availability zone
    """

    def __init__(self, vpc_id: str, cidr_block: str, private_subnets: dict):
        """
        :param str vpc_id:
        :param str cidr_block:
        :param dict private_subnets: subnet ID -> availability zone
        """
        if not private_subnets:
            raise NotFoundError(f"VPC {vpc_id} - No private subnet found")
        self.vpc_id = vpc_id
        self.cidr_block = cidr_block
        self.subnets_azs = dict(private_subnets)
        self.private_subnets = sorted(
            self.subnets_azs, key=lambda subnet_id: (self.subnets_azs[subnet_id], subnet_id)
        )

    def __repr__(self):
        return f"{self.vpc_id} ({self.cidr_block})"

    @property
    def availability_zones(self) -> list:
        return sorted(set(self.subnets_azs.values()))

    def subnets_per_az(self) -> list:
        """
        Returns one private subnet per availability zone, as EFS only allows one mount target per AZ.
        """
        subnets = {}
        for subnet_id in self.private_subnets:
            subnets.setdefault(self.subnets_azs[subnet_id], subnet_id)
        return [subnets[az] for az in self.availability_zones]


def get_subnet_type_from_tags(subnet: dict):
    """
    Returns the subnet type from the aws-cdk:subnet-type tag if set, None otherwise
    """
    if not keyisset("Tags", subnet):
        return None
    for tag in subnet["Tags"]:
        if tag["Key"] == CDK_SUBNET_TYPE_TAG:
            return tag["Value"]
    return None


def get_subnet_route_table(subnet_id: str, route_tables: list):
    """
    Returns the route table explicitly associated to the subnet, or the VPC main route table.
    """
    main_table = None
    for table in route_tables:
        for association in table.get("Associations", []):
            if association.get("SubnetId") == subnet_id:
                return table
            if association.get("Main"):
                main_table = table
    return main_table


def is_public_route_table(route_table) -> bool:
    if not route_table:
        return False
    return any(
        route.get("GatewayId", "").startswith(INTERNET_GATEWAY_PREFIX)
        for route in route_table.get("Routes", [])
    )


def define_subnet_type(subnet: dict, route_tables: list) -> str:
    subnet_type = get_subnet_type_from_tags(subnet)
    if subnet_type:
        return subnet_type
    if is_public_route_table(get_subnet_route_table(subnet["SubnetId"], route_tables)):
        return PUBLIC_SUBNET
    return PRIVATE_SUBNET


def describe_vpc(vpc_id: str, client) -> dict:
    """
    :raises: NotFoundError if the VPC does not exist
    """
    try:
        vpc_r = client.describe_vpcs(VpcIds=[vpc_id])
    except ClientError as error:
        if error.response["Error"]["Code"] in VPC_NOT_FOUND_CODES:
            raise NotFoundError(f"VPC {vpc_id} not found") from error
        LOG.error(error)
        raise
    if not keyisset("Vpcs", vpc_r):
        raise NotFoundError(f"VPC {vpc_id} not found")
    return vpc_r["Vpcs"][0]


def list_vpc_items(client, operation: str, key: str, vpc_id: str) -> list:
    items = []
    paginator = client.get_paginator(operation)
    for page in paginator.paginate(Filters=[{"Name": "vpc-id", "Values": [vpc_id]}]):
        items += page[key]
    return items


def lookup_vpc(vpc_id: str, session) -> NetworkContext:
    """
    Function to resolve the VPC, its CIDR block and private subnets.

    :param str vpc_id: the VPC ID
    :param boto3.session.Session session:
    :rtype: NetworkContext
    :raises: NotFoundError
    """
    client = session.client("ec2")
    vpc = describe_vpc(vpc_id, client)
    subnets = list_vpc_items(client, "describe_subnets", "Subnets", vpc_id)
    route_tables = list_vpc_items(client, "describe_route_tables", "RouteTables", vpc_id)
    private_subnets = {}
    for subnet in subnets:
        subnet_type = define_subnet_type(subnet, route_tables)
        LOG.debug(f"{vpc_id} - {subnet['SubnetId']} is {subnet_type}")
        if subnet_type in PRIVATE_SUBNET_TYPES:
            private_subnets[subnet["SubnetId"]] = subnet["AvailabilityZone"]
    context = NetworkContext(vpc_id, vpc["CidrBlock"], private_subnets)
    LOG.info(
        f"{vpc_id} - Found {len(context.private_subnets)} private subnets in {context.availability_zones}"
    )
    return context
