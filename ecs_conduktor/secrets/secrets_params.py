#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

import re

SECRET_T = "ConduktorSecret"

POSTGRES_USER = "POSTGRES_USER"
POSTGRES_PASSWORD = "POSTGRES_PASSWORD"
POSTGRES_DB = "POSTGRES_DB"
POSTGRES_PORT = "POSTGRES_PORT"
CDK_ADMIN_EMAIL = "CDK_ADMIN_EMAIL"
CDK_ADMIN_PASSWORD = "CDK_ADMIN_PASSWORD"
CDK_DATABASE_NAME = "CDK_DATABASE_NAME"
CDK_DATABASE_PASSWORD = "CDK_DATABASE_PASSWORD"
CDK_DATABASE_PORT = "CDK_DATABASE_PORT"
CDK_DATABASE_USERNAME = "CDK_DATABASE_USERNAME"

SECRET_FIELDS = (
    POSTGRES_USER,
    POSTGRES_PASSWORD,
    POSTGRES_DB,
    POSTGRES_PORT,
    CDK_ADMIN_EMAIL,
    CDK_ADMIN_PASSWORD,
    CDK_DATABASE_NAME,
    CDK_DATABASE_PASSWORD,
    CDK_DATABASE_PORT,
    CDK_DATABASE_USERNAME,
)

DEFAULT_PORT = "5432"
FIELDS_DEFAULTS = {POSTGRES_PORT: DEFAULT_PORT, CDK_DATABASE_PORT: DEFAULT_PORT}

SECRET_REFERENCE = re.compile(r"^\$\{(?P<title>[A-Za-z0-9]+)\}:(?P<field>\w+)::$")
