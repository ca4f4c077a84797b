#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Settings bound to ecs_conduktor.vpc
"""

CDK_SUBNET_TYPE_TAG = "aws-cdk:subnet-type"
PUBLIC_SUBNET = "Public"
PRIVATE_SUBNET = "Private"
ISOLATED_SUBNET = "Isolated"
PRIVATE_SUBNET_TYPES = [PRIVATE_SUBNET, ISOLATED_SUBNET]

VPC_NOT_FOUND_CODES = ["InvalidVpcID.NotFound", "InvalidVpcID.Malformed"]
INTERNET_GATEWAY_PREFIX = "igw-"
