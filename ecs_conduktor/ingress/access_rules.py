#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Access rules (inbound flows) and the security groups they are attached to.

Rules are only ever added to a group: there is no rule removal, and no rule implies another, so each flow
(self, VPC CIDR, management CIDR) must be listed explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template

from troposphere import GetAtt, NoValue, Tags
from troposphere.ec2 import SecurityGroup, SecurityGroupIngress, SecurityGroupRule

from ecs_conduktor.common import cfn_title
from ecs_conduktor.common.logging import LOG
from ecs_conduktor.ingress.ingress_params import (
    ALL_ICMP_PORT,
    ALL_PROTOCOLS,
    ICMP,
    MAX_PORT,
    SELF,
    TCP,
    UDP,
)


class AccessRule:
    """
    One inbound flow, from either a CIDR block or a security group (SELF for the group the rule belongs to)
    """

    def __init__(
        self,
        protocol: str,
        from_port: int,
        to_port: int,
        description: str,
        cidr: str = None,
        source_group: str = None,
    ):
        if (cidr is None) == (source_group is None):
            raise ValueError(
                "An access rule must have exactly one of cidr or source_group. Got",
                cidr,
                source_group,
            )
        self.protocol = protocol
        self.from_port = from_port
        self.to_port = to_port
        self.description = description
        self.cidr = cidr
        self.source_group = source_group

    @classmethod
    def tcp(cls, port: int, description: str, cidr=None, source_group=None):
        return cls(TCP, port, port, description, cidr=cidr, source_group=source_group)

    @classmethod
    def all_icmp(cls, description: str, cidr=None, source_group=None):
        return cls(
            ICMP,
            ALL_ICMP_PORT,
            ALL_ICMP_PORT,
            description,
            cidr=cidr,
            source_group=source_group,
        )

    @property
    def key(self) -> tuple:
        return (
            self.protocol,
            self.from_port,
            self.to_port,
            self.cidr,
            self.source_group,
        )

    def __eq__(self, other):
        return isinstance(other, AccessRule) and self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        source = self.cidr if self.cidr else self.source_group
        return f"{self.protocol}/{self.from_port}-{self.to_port} from {source}"

    @property
    def is_wildcard(self) -> bool:
        """
        Whether the rule opens all protocols, or the whole port range of tcp/udp
        """
        if self.protocol == ALL_PROTOCOLS:
            return True
        return self.protocol in [TCP, UDP] and (
            self.from_port <= 0 and self.to_port >= MAX_PORT
        )

    @property
    def port_title(self) -> str:
        if self.protocol == ICMP:
            return "AllIcmp"
        if self.from_port == self.to_port:
            return cfn_title(self.protocol, self.from_port)
        return cfn_title(self.protocol, self.from_port, "to", self.to_port)

    def to_rule(self) -> SecurityGroupRule:
        """
        Inline security group rule, for CIDR based rules
        """
        return SecurityGroupRule(
            IpProtocol=self.protocol,
            FromPort=self.from_port,
            ToPort=self.to_port,
            CidrIp=self.cidr,
            Description=self.description,
        )

    def to_ingress(self, group: AccessControlGroup, source: SecurityGroup):
        """
        Standalone ingress resource, for group based rules, which cannot be inlined when referencing itself
        """
        return SecurityGroupIngress(
            f"{group.title}From{cfn_title(source.title)}{self.port_title}",
            GroupId=GetAtt(group.cfn_resource, "GroupId"),
            SourceSecurityGroupId=GetAtt(source, "GroupId"),
            IpProtocol=self.protocol,
            FromPort=self.from_port,
            ToPort=self.to_port,
            Description=self.description,
        )


class AccessRuleSet:
    """
    Ordered set of access rules. Adding an already present flow is a no-op, and rules cannot be removed.
    """

    def __init__(self, rules: list = None):
        self._rules = []
        for rule in rules if rules else []:
            self.add(rule)

    def __iter__(self):
        return iter(self._rules)

    def __len__(self):
        return len(self._rules)

    def __contains__(self, rule):
        return rule in self._rules

    def add(self, rule: AccessRule) -> None:
        if rule.is_wildcard:
            raise ValueError(f"Rule {rule} opens all ports or protocols. Not allowed.")
        if rule in self._rules:
            LOG.debug(f"Rule {rule} already defined. Skipping")
            return
        self._rules.append(rule)

    @property
    def cidr_rules(self) -> list:
        return [rule for rule in self._rules if rule.cidr is not None]

    @property
    def group_rules(self) -> list:
        return [rule for rule in self._rules if rule.source_group is not None]


class AccessControlGroup:
    """
    A security group and the access rules applied to it

    :ivar str title: CFN logical ID
    :ivar str name: GroupName
    :ivar AccessRuleSet rules:
    :ivar troposphere.ec2.SecurityGroup cfn_resource:
    """

    def __init__(self, title: str, name: str, description: str, rules: AccessRuleSet):
        self.title = title
        self.name = name
        self.description = description
        self.rules = rules
        self.cfn_resource = None
        self.ingress_resources = []

    def __repr__(self):
        return self.name

    def define_group(self, template: Template, vpc_id: str, sources: dict = None):
        """
        Adds the security group and its group-based ingress rules to the template.

        :param troposphere.Template template:
        :param str vpc_id:
        :param dict sources: source group name -> troposphere SecurityGroup, for rules from other groups
        """
        if sources is None:
            sources = {}
        cidr_rules = [rule.to_rule() for rule in self.rules.cidr_rules]
        self.cfn_resource = SecurityGroup(
            self.title,
            GroupName=self.name,
            GroupDescription=self.description,
            VpcId=vpc_id,
            SecurityGroupIngress=cidr_rules if cidr_rules else NoValue,
            Tags=Tags(Name=self.name),
        )
        template.add_resource(self.cfn_resource)
        for rule in self.rules.group_rules:
            if rule.source_group == SELF:
                source = self.cfn_resource
            elif rule.source_group in sources:
                source = sources[rule.source_group]
            else:
                raise KeyError(
                    f"{self.name} - Rule {rule} source group is not defined. Known groups",
                    list(sources.keys()),
                )
            ingress = rule.to_ingress(self, source)
            template.add_resource(ingress)
            self.ingress_resources.append(ingress)
        return self.cfn_resource
