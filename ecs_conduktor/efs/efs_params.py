#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

FS_T = "PostgresFilesystem"
ACCESS_POINT_T = "PostgresAccessPoint"
MOUNT_TARGET_T = "PostgresMountTarget"

VOLUME_NAME = "efs-volume"
ACCESS_POINT_PATH = "/postgresql"
VOLUME_ROOT_DIRECTORY = "/"
POSIX_UID = "999"
POSIX_GID = "999"
POSIX_PERMISSIONS = "755"

DEFAULT_FS_PROPERTIES = {
    "Encrypted": True,
    "ThroughputMode": "bursting",
    "PerformanceMode": "generalPurpose",
}
BACKUP_STATUS = "DISABLED"
