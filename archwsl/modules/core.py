#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Core helper functions for the provisioning runner: command execution, the
Step record and its runner, and dry-run aware file operations.
"""

import os
import pwd
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional, Union

from . import config as cfg
from . import ui
from .ui import Spinner


class UserContextError(Exception):
    """The runner was started under an identity that may not run this phase."""


class AuthenticationError(Exception):
    """A prerequisite authentication flow has not been completed."""


class Step(NamedTuple):
    """
    One provisioning step.

    ``is_applied`` is the "already applied" predicate; when it returns True
    the step is skipped and ``apply`` is never called. Steps without a
    predicate must be idempotent on their own.
    """
    name: str
    title: str
    apply: Callable[[], None]
    is_applied: Optional[Callable[[], bool]] = None
    skip_message: str = "already applied, skipping"


def run_step(step: Step) -> bool:
    """Runs a single step. Returns False when it was skipped."""
    ui.print_section_header(step.title)
    if step.is_applied is not None and step.is_applied():
        ui.warning(f"{step.title}: {step.skip_message}")
        return False
    step.apply()
    return True

def run_steps(steps: List[Step]) -> List[str]:
    """Runs steps in order, stopping at the first exception. Returns the names of applied steps."""
    applied: List[str] = []
    for step in steps:
        if run_step(step):
            applied.append(step.name)
    return applied


def run_command(
    command: Union[List[str], str],
    check: bool = True,
    capture_output: bool = False,
    text: bool = True,
    shell: bool = False,
    cwd: Optional[Union[Path, str]] = None,
    env: Optional[Dict[str, str]] = None,
    input_text: Optional[str] = None,
    destructive: bool = True,
    show_spinner: bool = False,
    custom_spinner_message: Optional[str] = None,
    quiet: bool = False
) -> Optional[subprocess.CompletedProcess]:
    """
    Runs a command with options for dry run, output capture, stdin feeding and spinner.
    Uses subprocess.run. Non-zero exit with check=True raises CalledProcessError.
    In dry run mode destructive commands are only printed and None is returned.
    """
    cmd_str: str = ' '.join(command) if isinstance(command, list) else command

    if cfg.get_dry_run_mode() and destructive:
        ui.print_dry_run_command(cmd_str)
        return None

    if not quiet:
        ui.print_command_info(cmd_str)

    spinner: Optional[Spinner] = None
    if show_spinner and not capture_output and input_text is None:
        spinner_msg: str = custom_spinner_message if custom_spinner_message else (cmd_str[:70] + "..." if len(cmd_str) > 70 else cmd_str)
        spinner = ui.Spinner(message=spinner_msg)
        spinner.start()
    try:
        process: subprocess.CompletedProcess = subprocess.run(
            command,
            check=False,
            capture_output=capture_output,
            text=text,
            shell=shell,
            cwd=str(cwd) if cwd else None,
            env=env,
            input=input_text
        )
    except FileNotFoundError:
        cmd_name: str = command[0] if isinstance(command, list) else cmd_str.split()[0]
        ui.error(f"Command not found: {cmd_name}")
        raise
    finally:
        if spinner:
            spinner.stop()

    if check and process.returncode != 0:
        ui.error(f"Command failed (exit {process.returncode}): {cmd_str}")
        if process.stderr:
            ui.print_color(f"Stderr:\n{process.stderr.strip()}", ui.Colors.RED, stream=sys.stderr)
        process.check_returncode()
    return process

def command_succeeds(command: List[str]) -> bool:
    """Read-only check: True when the command exits 0. Missing binaries count as failure."""
    try:
        process = run_command(command, check=False, capture_output=True, destructive=False, quiet=True)
    except FileNotFoundError:
        return False
    return process is not None and process.returncode == 0

def command_output(command: List[str]) -> str:
    """Read-only query returning stdout, or an empty string on failure."""
    try:
        process = run_command(command, check=False, capture_output=True, destructive=False, quiet=True)
    except FileNotFoundError:
        return ""
    if process is None or process.returncode != 0:
        return ""
    return process.stdout or ""

def find_executable(name: str, extra_paths: Optional[List[Path]] = None) -> Optional[str]:
    """Resolves a binary on PATH, falling back to explicit candidate paths."""
    found: Optional[str] = shutil.which(name)
    if found:
        return found
    for candidate in extra_paths or []:
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)
    return None

def is_root() -> bool:
    return os.geteuid() == 0

def current_username() -> str:
    """Login name of the effective user."""
    return pwd.getpwuid(os.geteuid()).pw_name

def sudo_prefix() -> List[str]:
    """'sudo' when a privileged command has to be escalated."""
    return [] if is_root() else ["sudo"]


def make_dir_dry_run(path: Path, parents: bool = True, exist_ok: bool = True) -> None:
    """Creates a directory, printing the command if in dry run mode."""
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"mkdir {'-p ' if parents else ''}{str(path)}")
    else:
        path.mkdir(parents=parents, exist_ok=exist_ok)

def write_file_dry_run(path: Path, content: str, mode: str = "w", privileged: bool = False) -> None:
    """
    Writes content to a file, printing actions if in dry run mode.
    With privileged=True and no root, the write goes through 'sudo tee'.
    """
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"write to {str(path)} (mode: {mode})")
        ui.print_color(f"--BEGIN CONTENT for {str(path)}--", ui.Colors.PEACH)
        sys.stdout.write(content[:300] + ('...' if len(content) > 300 else '') + "\n")
        ui.print_color(f"--END CONTENT for {str(path)}--", ui.Colors.PEACH)
        return

    if privileged and not is_root():
        tee_cmd: List[str] = ["sudo", "tee"] + (["-a"] if mode == "a" else []) + [str(path)]
        run_command(tee_cmd, input_text=content, capture_output=True)
        return

    with path.open(mode, encoding="utf-8") as f:
        f.write(content)

def unlink_file_dry_run(path: Path, missing_ok: bool = True) -> None:
    """Deletes a file, printing the command if in dry run mode."""
    if cfg.get_dry_run_mode():
        if path.exists() or path.is_symlink():
            ui.print_dry_run_command(f"delete file: {str(path)}")
        return
    path.unlink(missing_ok=missing_ok)
    ui.log(f"Deleted file: {str(path)}")

def remove_tree_dry_run(path: Path) -> None:
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"rm -rf {str(path)}")
    else:
        shutil.rmtree(path)

def copy_tree_dry_run(source: Path, target: Path) -> None:
    """Replaces `target` with a copy of the directory `source`, without bytecode caches."""
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"cp -r {str(source)} {str(target)}")
        return
    if target.exists():
        shutil.rmtree(target)
    shutil.copytree(source, target, ignore=shutil.ignore_patterns("__pycache__", "*.pyc"))

def copy_file_dry_run(source: Path, target: Path) -> None:
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"cp {str(source)} {str(target)}")
    else:
        shutil.copy2(source, target)

def move_file_dry_run(source: Path, target: Path) -> None:
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"mv {str(source)} {str(target)}")
    else:
        shutil.move(str(source), str(target))
