#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2025 John Mille <john@compose-x.io>

"""
Startup order of the containers of a task definition.

ECS starts a container once all of its dependencies reached their condition. The order is computed from the
``DependsOn`` of the containers, as start waves: all containers of a wave can start once the previous waves
reached their conditions.

The :class:`StartupTracker` follows the lifecycle of each container, ``PENDING`` to ``RUNNING``, and is used
to check that a given dependency graph makes the database healthy before the console starts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_conduktor.ecs.ecs_container import ContainerSpec

from ecs_conduktor.common.logging import LOG
from ecs_conduktor.ecs.ecs_params import COMPLETE, HEALTHY, START, SUCCESS
from ecs_conduktor.exceptions import ContainerDependencyError

PENDING = "PENDING"
WAITING_ON_DEPENDENCY = "WAITING_ON_DEPENDENCY"
STARTING = "STARTING"
HEALTHY_STATE = "HEALTHY"
RUNNING = "RUNNING"
STOPPED = "STOPPED"

TRANSITIONS = {
    PENDING: [WAITING_ON_DEPENDENCY, STARTING],
    WAITING_ON_DEPENDENCY: [STARTING],
    STARTING: [HEALTHY_STATE, RUNNING, STOPPED],
    HEALTHY_STATE: [RUNNING, STOPPED],
    RUNNING: [STOPPED],
    STOPPED: [],
}

STARTED_STATES = [STARTING, HEALTHY_STATE, RUNNING, STOPPED]


def validate_dependencies(containers: list) -> None:
    """
    Every dependency must target another container of the same task definition

    :raises: ContainerDependencyError
    """
    names = [container.name for container in containers]
    if len(set(names)) != len(names):
        raise ContainerDependencyError("Container names must be unique. Got", names)
    for container in containers:
        for dependency in container.dependencies:
            if dependency.container_name == container.name:
                raise ContainerDependencyError(f"{container.name} depends on itself")
            if dependency.container_name not in names:
                raise ContainerDependencyError(
                    f"{container.name} depends on {dependency.container_name} which is not in the task definition"
                )


def define_start_waves(containers: list) -> list:
    """
    Groups the containers in waves, in order. Each container is in the wave following the last of its
    dependencies.

    :param list[ContainerSpec] containers:
    :rtype: list[list[str]]
    :raises: ContainerDependencyError for unknown dependencies and cycles
    """
    validate_dependencies(containers)
    remaining = {container.name: set(container.depends_on) for container in containers}
    waves = []
    started = set()
    while remaining:
        wave = [name for name, depends_on in remaining.items() if depends_on <= started]
        if not wave:
            raise ContainerDependencyError(
                "Cyclic dependency between containers", sorted(remaining)
            )
        waves.append(wave)
        started.update(wave)
        for name in wave:
            del remaining[name]
    return waves


class StartupTracker:
    """
    Follows the state of each container of a task and enforces the startup dependencies.

    :ivar dict states: container name -> state
    """

    def __init__(self, containers: list):
        define_start_waves(containers)
        self.containers = {container.name: container for container in containers}
        self.states = {container.name: PENDING for container in containers}
        self.exit_codes = {}

    def __repr__(self):
        return ", ".join(f"{name}={state}" for name, state in self.states.items())

    def _set_state(self, name: str, state: str) -> None:
        current = self.states[name]
        if state not in TRANSITIONS[current]:
            raise ValueError(f"{name} - cannot go from {current} to {state}")
        LOG.debug(f"{name} - {current} -> {state}")
        self.states[name] = state

    def is_satisfied(self, target: str, condition: str) -> bool:
        state = self.states[target]
        if condition == START:
            return state in STARTED_STATES
        if condition == HEALTHY:
            return state in [HEALTHY_STATE, RUNNING]
        if condition == COMPLETE:
            return state == STOPPED
        if condition == SUCCESS:
            return state == STOPPED and self.exit_codes.get(target) == 0
        raise ContainerDependencyError(f"Unknown condition {condition}")

    def can_start(self, name: str) -> bool:
        return all(
            self.is_satisfied(dependency.container_name, dependency.condition)
            for dependency in self.containers[name].dependencies
        )

    def schedule(self) -> list:
        """
        Moves the PENDING and WAITING_ON_DEPENDENCY containers to STARTING when their dependencies are met.

        :return: the names of the containers that started
        """
        started = []
        for name, state in self.states.items():
            if state not in [PENDING, WAITING_ON_DEPENDENCY]:
                continue
            if self.can_start(name):
                self._set_state(name, STARTING)
                started.append(name)
            elif state == PENDING:
                self._set_state(name, WAITING_ON_DEPENDENCY)
        return started

    def mark_healthy(self, name: str) -> None:
        if self.containers[name].health_probe is None:
            raise ValueError(f"{name} has no health probe and cannot become healthy")
        self._set_state(name, HEALTHY_STATE)

    def mark_running(self, name: str) -> None:
        if self.containers[name].health_probe and self.states[name] == STARTING:
            raise ValueError(f"{name} must be healthy before running")
        self._set_state(name, RUNNING)

    def mark_stopped(self, name: str, exit_code: int) -> None:
        self._set_state(name, STOPPED)
        self.exit_codes[name] = exit_code
