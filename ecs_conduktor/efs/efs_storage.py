#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Module to define the EFS filesystem, its mount targets and the access point used by postgres
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import Template
    from ecs_conduktor.ingress.access_rules import AccessControlGroup
    from ecs_conduktor.vpc.vpc_aws import NetworkContext

from troposphere import GetAtt, Ref, Tags, efs
from troposphere.ecs import (
    AuthorizationConfig,
    EFSVolumeConfiguration,
    Volume,
)

from ecs_conduktor.common import cfn_title
from ecs_conduktor.common.logging import LOG
from ecs_conduktor.efs.efs_params import (
    ACCESS_POINT_PATH,
    ACCESS_POINT_T,
    BACKUP_STATUS,
    DEFAULT_FS_PROPERTIES,
    FS_T,
    MOUNT_TARGET_T,
    POSIX_GID,
    POSIX_PERMISSIONS,
    POSIX_UID,
    VOLUME_NAME,
    VOLUME_ROOT_DIRECTORY,
)


class StorageVolume:
    """
    Class to represent the EFS storage of the database.

    The filesystem and its access point are deleted with the stack.

    :ivar str name: the filesystem Name tag
    :ivar troposphere.efs.FileSystem cfn_resource:
    :ivar troposphere.efs.AccessPoint access_point:
    :ivar list mount_targets:
    """

    def __init__(
        self,
        name: str,
        volume_name: str = VOLUME_NAME,
        path: str = ACCESS_POINT_PATH,
        uid: str = POSIX_UID,
        gid: str = POSIX_GID,
        permissions: str = POSIX_PERMISSIONS,
    ):
        self.name = name
        self.volume_name = volume_name
        self.path = path
        self.uid = uid
        self.gid = gid
        self.permissions = permissions
        self.cfn_resource = None
        self.access_point = None
        self.mount_targets = []

    def __repr__(self):
        return self.name

    @property
    def encrypted(self) -> bool:
        return DEFAULT_FS_PROPERTIES["Encrypted"]

    def define_fs(self, template: Template) -> efs.FileSystem:
        self.cfn_resource = efs.FileSystem(
            FS_T,
            BackupPolicy=efs.BackupPolicy(Status=BACKUP_STATUS),
            FileSystemTags=Tags(Name=self.name),
            DeletionPolicy="Delete",
            UpdateReplacePolicy="Delete",
            **DEFAULT_FS_PROPERTIES,
        )
        template.add_resource(self.cfn_resource)
        return self.cfn_resource

    def add_mount_targets(
        self,
        template: Template,
        network: NetworkContext,
        security_group: AccessControlGroup,
    ) -> list:
        """
        One mount target per availability zone, in the first private subnet of that zone.
        EFS allows only one mount target per zone.
        """
        for zone, subnet_id in zip(
            network.availability_zones, network.subnets_per_az()
        ):
            LOG.debug(f"{self.name} - mount target in {subnet_id} ({zone})")
            target = efs.MountTarget(
                cfn_title(MOUNT_TARGET_T, zone),
                FileSystemId=Ref(self.cfn_resource),
                SubnetId=subnet_id,
                SecurityGroups=[GetAtt(security_group.cfn_resource, "GroupId")],
            )
            template.add_resource(target)
            self.mount_targets.append(target)
        return self.mount_targets

    def define_access_point(self, template: Template) -> efs.AccessPoint:
        self.access_point = efs.AccessPoint(
            ACCESS_POINT_T,
            FileSystemId=Ref(self.cfn_resource),
            PosixUser=efs.PosixUser(
                Uid=self.uid, Gid=self.gid, SecondaryGids=[self.gid]
            ),
            RootDirectory=efs.RootDirectory(
                Path=self.path,
                CreationInfo=efs.CreationInfo(
                    OwnerUid=self.uid,
                    OwnerGid=self.gid,
                    Permissions=self.permissions,
                ),
            ),
            AccessPointTags=Tags(Name=f"{self.name}{self.path}"),
        )
        template.add_resource(self.access_point)
        return self.access_point

    def define_storage(
        self,
        template: Template,
        network: NetworkContext,
        security_group: AccessControlGroup,
    ) -> None:
        self.define_fs(template)
        self.add_mount_targets(template, network, security_group)
        self.define_access_point(template)

    @property
    def depends_on(self) -> list:
        """Logical IDs that the service must wait for before it can mount the volume"""
        return [self.cfn_resource.title] + [target.title for target in self.mount_targets]

    def task_volume(self) -> Volume:
        return Volume(
            Name=self.volume_name,
            EFSVolumeConfiguration=EFSVolumeConfiguration(
                FilesystemId=Ref(self.cfn_resource),
                RootDirectory=VOLUME_ROOT_DIRECTORY,
                TransitEncryption="ENABLED",
                AuthorizationConfig=AuthorizationConfig(
                    AccessPointId=Ref(self.access_point),
                    IAM="ENABLED",
                ),
            ),
        )
