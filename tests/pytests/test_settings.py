#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

from copy import deepcopy

import pytest
from conftest import USE_CASES

from ecs_conduktor.common.settings import (
    StackSettings,
    is_pinned_image,
    load_config_file,
)
from ecs_conduktor.exceptions import SettingsError


def test_prefix_and_defaults(settings):
    assert settings.prefix == "dev-acme-conduktor"
    assert settings.name == "dev-acme-conduktor"
    assert settings.cluster_name == "acme"
    assert settings.command == StackSettings.render_arg
    assert settings.no_upload
    assert not settings.upload
    assert settings.format == "json"
    assert settings.images["database"] == "public.ecr.aws/docker/library/postgres:17.4"
    assert settings.schedules["start"]["enabled"] is False
    assert settings.schedules["stop"]["hour"] == 2


def test_config_is_read_only(settings):
    with pytest.raises(TypeError):
        settings.config["desiredCount"] = 2
    with pytest.raises(TypeError):
        settings.allowlist[0]["address"] = "0.0.0.0/0"


def test_config_copied_from_content(make_settings, base_config):
    settings = make_settings(base_config)
    base_config["service"] = "other"
    assert settings.prefix == "dev-acme-conduktor"


def test_load_use_case(session, tmp_path, monkeypatch):
    monkeypatch.setenv("NETWORK_ID", "vpc-0aaaabbbbcccc1111")
    settings = StackSettings(
        session=session,
        ConfigFile=f"{USE_CASES}/conduktor.yml",
        OutputDirectory=str(tmp_path),
    )
    assert settings.network_id == "vpc-0aaaabbbbcccc1111"
    assert settings.target_group_priority == 10


def test_load_use_case_default_network(monkeypatch):
    monkeypatch.delenv("NETWORK_ID", raising=False)
    content = load_config_file(f"{USE_CASES}/conduktor.yml")
    assert content["networkId"] == "vpc-0123456789abcdef0"


def test_overrides_use_case(session, tmp_path):
    settings = StackSettings(
        session=session,
        ConfigFile=f"{USE_CASES}/conduktor_overrides.yml",
        OutputDirectory=str(tmp_path),
    )
    assert settings.cluster_name == "acme-shared"
    assert settings.schedules["start"]["hour"] == 7
    assert settings.schedules["start"]["minute"] == 30
    assert settings.images["console"] == "conduktor/conduktor-console:1.31.0"


@pytest.mark.parametrize(
    "key, value",
    [
        ("desiredCount", 2),
        ("desiredCount", -1),
        ("cpuUnits", 3000),
        ("networkId", "not-a-vpc"),
        ("environment", "Dev"),
        ("healthCheckPath", "api/health"),
        ("allowlist", [{"address": "192.168.1.0", "description": "no mask"}]),
    ],
)
def test_invalid_values(make_settings, base_config, key, value):
    base_config[key] = value
    with pytest.raises(SettingsError):
        make_settings(base_config)


def test_missing_key(make_settings, base_config):
    del base_config["healthCheckPath"]
    with pytest.raises(SettingsError):
        make_settings(base_config)


def test_invalid_fargate_budget(make_settings, base_config):
    base_config["cpuUnits"] = 256
    with pytest.raises(SettingsError):
        make_settings(base_config)


def test_unpinned_database_image(make_settings, base_config):
    for image in ["postgres", "postgres:latest"]:
        config = deepcopy(base_config)
        config["images"] = {"database": image}
        with pytest.raises(SettingsError):
            make_settings(config)


def test_colliding_schedules(make_settings, base_config):
    base_config["schedules"] = {"start": {"hour": 2, "minute": 0}}
    with pytest.raises(SettingsError):
        make_settings(base_config)


def test_create_requires_bucket(make_settings):
    with pytest.raises(SettingsError):
        make_settings(command=StackSettings.create_arg)
    settings = make_settings(command=StackSettings.create_arg, BucketName="templates")
    assert settings.upload


def test_invalid_format(make_settings):
    with pytest.raises(SettingsError):
        make_settings(TemplateFormat="toml")


def test_prefix_too_long(make_settings, base_config):
    base_config["service"] = "a" * 32
    base_config["project"] = "b" * 20
    with pytest.raises(SettingsError):
        make_settings(base_config)


@pytest.mark.parametrize(
    "image, pinned",
    [
        ("postgres", False),
        ("postgres:latest", False),
        ("postgres:17.4", True),
        ("localhost:5000/postgres", False),
        ("localhost:5000/postgres:17", True),
        (f"postgres@sha256:{'a' * 64}", True),
    ],
)
def test_is_pinned_image(image, pinned):
    assert is_pinned_image(image) is pinned
