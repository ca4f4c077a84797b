#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

from os import path

import placebo
import pytest

from ecs_conduktor.ecs_cluster.ecs_cluster_aws import lookup_cluster
from ecs_conduktor.environment import AwsEnvironment
from ecs_conduktor.exceptions import NotFoundError

HERE = path.abspath(path.dirname(__file__))


def playback(session, data_path):
    pill = placebo.attach(session, data_path=f"{HERE}/{data_path}")
    pill.playback()
    return session


def test_lookup(session):
    cluster = AwsEnvironment(playback(session, "x_cluster")).lookup_cluster("acme")
    assert cluster.name == "acme"
    assert cluster.arn == "arn:aws:ecs:eu-west-1:123456789012:cluster/acme"


@pytest.mark.parametrize("data_path", ["x_cluster_missing", "x_cluster_inactive"])
def test_cluster_not_usable(session, data_path):
    with pytest.raises(NotFoundError):
        lookup_cluster("acme", playback(session, data_path))
