#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Functions to write the template locally, and upload it to S3 when required
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_conduktor.common.settings import StackSettings

from os import makedirs
from os.path import abspath

from botocore.exceptions import ClientError
from cfn_flip import load as load_cfn
from troposphere import Template

from ecs_conduktor.common import FILE_PREFIX
from ecs_conduktor.common.logging import LOG

JSON_MIME = "application/json"
YAML_MIME = "application/x-yaml"
TEMPLATE_BODY_MAX_SIZE = 51200


def upload_file(
    body: str,
    bucket_name: str,
    file_name: str,
    settings: StackSettings,
    prefix: str = None,
    mime: str = None,
) -> str:
    """Upload body to a file in s3 with given prefix and bucket_name

    :param str body: Template body, from the troposphere template to_json() or to_yaml()
    :param str bucket_name: name of the bucket to upload the file to
    :param str file_name: Name of the file
    :param str prefix: override default prefix for the file in S3
    :returns: url_path, the https://s3.amazonaws.com/ URL to the file
    :rtype: str
    """
    if mime is None:
        mime = JSON_MIME
    if prefix is None:
        prefix = FILE_PREFIX

    key = f"{prefix}/{file_name}"
    client = settings.session.client("s3")
    client.put_object(
        Body=body,
        Key=key,
        Bucket=bucket_name,
        ContentEncoding="utf-8",
        ContentType=mime,
        ServerSideEncryption="AES256",
    )
    return f"https://s3.amazonaws.com/{bucket_name}/{key}"


class FileArtifact:
    """
    Class to handle the template file: renders it in JSON or YAML, writes it to the local filesystem,
    uploads it to S3 and validates it with CloudFormation.

    :ivar str url: The URL in S3 where the file was uploaded to.
    :ivar str body: The content of the file
    :ivar troposphere.Template template: the CFN template
    :ivar str file_name: the base name of the file, with its extension
    :ivar str mime: MIME-type of the file
    :ivar str file_path: Output file path
    """

    def __init__(self, file_name: str, settings: StackSettings, template: Template, file_format: str = None):
        if not isinstance(template, Template):
            raise TypeError("template must be of type", Template, "got", type(template))
        if file_format is None:
            file_format = settings.format
        if file_format not in settings.allowed_formats:
            raise ValueError(
                f"Format {file_format} is not valid. Expected one of",
                settings.allowed_formats,
            )
        self.template = template
        self.file_name = f"{file_name}.{file_format}"
        self.mime = YAML_MIME if file_format == "yaml" else JSON_MIME
        self.url = None
        self.file_path = f"{settings.output_dir}/{self.file_name}"
        self.body = self.define_body()

    def __repr__(self):
        return self.file_path

    def define_body(self) -> str:
        if self.mime == YAML_MIME:
            return self.template.to_yaml()
        return self.template.to_json()

    @property
    def can_use_body(self) -> bool:
        return len(self.body) < TEMPLATE_BODY_MAX_SIZE

    def upload(self, settings: StackSettings) -> str:
        if not settings.bucket_name:
            raise ValueError(f"{self.file_name} - No bucket name set to upload to S3")
        self.url = upload_file(
            body=self.body,
            settings=settings,
            bucket_name=settings.bucket_name,
            file_name=self.file_name,
            mime=self.mime,
        )
        LOG.info(f"{self.file_name} uploaded successfully to {self.url}")
        return self.url

    def write(self, settings: StackSettings) -> str:
        makedirs(settings.output_dir, exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as template_fd:
            template_fd.write(self.body)
        LOG.info(
            f"Template {self.file_name} written successfully at {abspath(self.file_path)}"
        )
        return self.file_path

    def template_source(self) -> dict:
        """
        TemplateURL once uploaded, TemplateBody otherwise, for the CloudFormation API calls
        """
        if self.url:
            return {"TemplateURL": self.url}
        if not self.can_use_body:
            raise ValueError(
                f"{self.file_name} is too big to be sent as body. Upload it to S3 with --bucket-name"
            )
        return {"TemplateBody": self.body}

    def validate(self, settings: StackSettings) -> None:
        """
        Validates the template with CloudFormation, via its URL once uploaded to S3 or via TemplateBody
        """
        if not self.url and not self.can_use_body:
            LOG.warning(
                f"Template body for {self.file_name} is too big for local validation. Skipping."
            )
            return
        try:
            settings.session.client("cloudformation").validate_template(
                **self.template_source()
            )
            LOG.debug(f"Template {self.file_name} was validated successfully by CFN")
        except ClientError as error:
            LOG.error(error)
            LOG.error(f"Failed validation - template at {abspath(self.file_path)}")
            raise


def load_template(file_path: str) -> dict:
    """
    Reads a rendered template, JSON or YAML, with the CloudFormation short functions (``!Ref``, ``!Sub``)
    converted to their long form.

    :rtype: dict
    """
    with open(file_path, encoding="utf-8") as template_fd:
        content, _ = load_cfn(template_fd.read())
    return content
