#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Execution context detection and phase selection.

The runner is a two-state process: the root phase ends by asking the operator
to restart the WSL session, and the user phase is only entered once the
runner is started again as the Target User. The restart itself is never
simulated.
"""

from typing import NamedTuple

from . import config as cfg
from . import core

PHASE_ROOT: str = "root"
PHASE_USER: str = "user"


class ExecutionContext(NamedTuple):
    privileged: bool
    username: str


def detect_context() -> ExecutionContext:
    return ExecutionContext(privileged=core.is_root(), username=core.current_username())

def restart_instructions() -> str:
    distro: str = str(cfg.get_user_config_value("wsl_distro"))
    return (
        f"Please exit WSL, run 'wsl --shutdown', restart with 'wsl -d {distro}', "
        "and run this script again"
    )

def select_phase(context: ExecutionContext) -> str:
    """
    Picks the phase for this invocation.
    Raises UserContextError for an unprivileged identity other than the Target User.
    """
    if context.privileged:
        return PHASE_ROOT

    expected: str = str(cfg.get_user_config_value("username"))
    if context.username != expected:
        raise core.UserContextError(
            f"This part of the setup should be run as user '{expected}', "
            f"not '{context.username}'. {restart_instructions()}"
        )
    return PHASE_USER
