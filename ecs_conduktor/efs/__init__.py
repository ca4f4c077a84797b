#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
EFS storage of the postgres database
"""

from .efs_storage import StorageVolume
