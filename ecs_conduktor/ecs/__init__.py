#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
ECS Task definition, containers and service of the Conduktor stack
"""
