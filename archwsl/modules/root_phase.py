#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Phase 1: root bootstrap. Upgrades the system, creates the Target User with
sudo rights, makes it the default WSL login and leaves a launcher in its home
directory for the user phase.
"""

import os
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from . import config as cfg
from . import core
from . import textfile
from . import ui
from .prompts import InputProvider

MAX_PASSWORD_ATTEMPTS: int = 3

PACKAGE_DIR: Path = Path(__file__).resolve().parents[1]

# The launcher imports the package copy next to it, never the one root ran from.
LAUNCHER_TEMPLATE: str = """#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Installed by arch-wsl-setup. Re-run after restarting WSL as {username}.
import sys
from pathlib import Path

LIB_DIR = Path(__file__).resolve().parent / "{lib_dir}"
sys.path.insert(0, str(LIB_DIR))

from archwsl.main import main

argv = sys.argv[1:]
config = LIB_DIR / "config.json"
if config.is_file() and "--config" not in argv:
    argv = ["--config", str(config)] + argv

sys.exit(main(argv))
"""


class PasswordError(Exception):
    """The operator did not provide a confirmed password."""


def _username() -> str:
    return str(cfg.get_user_config_value("username"))

def admin_sudoers_line() -> str:
    return f"%{cfg.get_user_config_value('admin_group')} ALL=(ALL:ALL) ALL"


def upgrade_system() -> None:
    ui.log("Updating system...")
    core.run_command(["pacman", "-Syu", "--noconfirm"])

def install_bootstrap_packages() -> None:
    packages: List[str] = list(cfg.get_user_config_value("bootstrap_packages"))
    ui.log(f"Installing basic packages: {', '.join(packages)}")
    core.run_command(["pacman", "-S", "--needed", "--noconfirm"] + packages)


def user_exists() -> bool:
    return core.command_succeeds(["id", _username()])

def create_user() -> None:
    username: str = _username()
    ui.log(f"Creating user: {username}")
    core.run_command(["useradd", "-m", "-s", str(cfg.get_user_config_value("shell")), username])


def password_is_set() -> bool:
    """'passwd -S' reports P for a usable password, L or NP otherwise."""
    fields: List[str] = core.command_output(["passwd", "-S", _username()]).split()
    return len(fields) >= 2 and fields[1] == "P"

def set_user_password(inputs: InputProvider) -> None:
    username: str = _username()
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"prompt for and set the password of {username} (chpasswd)")
        return

    ui.log(f"Please set password for user {username}:")
    for attempt in range(1, MAX_PASSWORD_ATTEMPTS + 1):
        password: str = inputs.secret(f"New password for {username}")
        if not password:
            ui.warning("Password cannot be empty.")
            continue
        if password != inputs.secret("Retype new password"):
            ui.warning(f"Passwords do not match (attempt {attempt}/{MAX_PASSWORD_ATTEMPTS}).")
            continue
        core.run_command(["chpasswd"], input_text=f"{username}:{password}\n", capture_output=True)
        ui.success(f"Password set for {username}")
        return
    raise PasswordError(f"No matching password entered for {username} after {MAX_PASSWORD_ATTEMPTS} attempts")


def user_in_admin_group() -> bool:
    groups: List[str] = core.command_output(["id", "-nG", _username()]).split()
    return str(cfg.get_user_config_value("admin_group")) in groups

def grant_admin_rights() -> None:
    """Adds the user to the admin group and enables that group in sudoers."""
    group: str = str(cfg.get_user_config_value("admin_group"))
    if user_in_admin_group():
        ui.info(f"{_username()} is already in group '{group}'")
    else:
        core.run_command(["usermod", "-aG", group, _username()])
    textfile.ensure_uncommented(cfg.get_system_file("sudoers"), admin_sudoers_line(), comment_prefix="# ")


def set_default_wsl_user() -> None:
    ui.log(f"Setting {_username()} as default WSL user...")
    textfile.ensure_ini_value(cfg.get_system_file("wsl_conf"), "user", "default", _username())


def launcher_path() -> Path:
    return cfg.get_home_dir() / str(cfg.get_user_config_value("launcher_name"))

def launcher_lib_dir() -> Path:
    return cfg.get_home_dir() / str(cfg.get_user_config_value("launcher_lib_dir"))

def _chown_tree(root: Path, username: str) -> None:
    shutil.chown(root, user=username, group=username)
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            shutil.chown(Path(dirpath) / name, user=username, group=username)

def install_launcher() -> None:
    """
    Copies the archwsl package into the Target User's home and leaves an
    executable entry point next to it, all owned by the user. A --config file
    given to this run is copied along so Phase 2 sees the same overrides.
    """
    username: str = _username()
    target: Path = launcher_path()
    lib_dir: Path = launcher_lib_dir()
    ui.log(f"Copying setup launcher to {target} for Phase 2...")

    core.make_dir_dry_run(lib_dir)
    core.copy_tree_dry_run(PACKAGE_DIR, lib_dir / PACKAGE_DIR.name)
    config_path: Optional[Path] = cfg.get_loaded_config_path()
    if config_path is not None:
        core.copy_file_dry_run(config_path, lib_dir / "config.json")

    content: str = LAUNCHER_TEMPLATE.format(username=username, lib_dir=os.path.relpath(lib_dir, target.parent))
    core.write_file_dry_run(target, content)
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"chmod 755 {target} && chown -R {username}:{username} {target} {lib_dir}")
        return
    os.chmod(target, 0o755)
    shutil.chown(target, user=username, group=username)
    _chown_tree(lib_dir, username)


def build_steps(inputs: InputProvider) -> List[core.Step]:
    """Phase 1 steps in ROOT_PHASE_STEPS order."""
    steps: Dict[str, core.Step] = {
        "system_upgrade": core.Step("system_upgrade", "System Upgrade", upgrade_system),
        "bootstrap_packages": core.Step("bootstrap_packages", "Bootstrap Packages", install_bootstrap_packages),
        "create_user": core.Step(
            "create_user", "Create User", create_user,
            is_applied=user_exists,
            skip_message=f"user {_username()} already exists, skipping creation",
        ),
        "user_password": core.Step(
            "user_password", "User Password", lambda: set_user_password(inputs),
            is_applied=password_is_set,
            skip_message="password already set, skipping",
        ),
        "admin_group": core.Step("admin_group", "Administrative Group", grant_admin_rights),
        "wsl_default_user": core.Step("wsl_default_user", "Default WSL User", set_default_wsl_user),
        "install_launcher": core.Step("install_launcher", "Phase 2 Launcher", install_launcher),
    }
    return [steps[name] for name in cfg.ROOT_PHASE_STEPS]

def run_root_phase(inputs: InputProvider) -> None:
    ui.log("Phase 1: Root setup")
    core.run_steps(build_steps(inputs))
    ui.success("User setup complete.")
    distro: str = str(cfg.get_user_config_value("wsl_distro"))
    ui.log(f"Please exit WSL and run 'wsl --shutdown', then restart with 'wsl -d {distro}'")
    ui.log(f"After restart, run: ./{cfg.get_user_config_value('launcher_name')} (it is now in your home directory)")
