#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Optional dotfiles setup: clone the dotfiles repository with the GitHub CLI
and stow its packages into the home directory. Requires a completed
'gh auth login' device flow.
"""

from pathlib import Path
from typing import List

from . import config as cfg
from . import core
from . import ui
from .prompts import InputProvider


def dotfiles_dir() -> Path:
    return cfg.get_home_dir() / str(cfg.get_user_config_value("dotfiles_dir"))

def github_authenticated() -> bool:
    return core.command_succeeds(["gh", "auth", "status"])

def clone_dotfiles(target: Path) -> None:
    if target.exists():
        ui.warning(f"Dotfiles directory {target} already exists, skipping clone")
        return
    core.run_command(
        ["gh", "repo", "clone", str(cfg.get_user_config_value("dotfiles_repo")), str(target)],
        show_spinner=True, custom_spinner_message="Cloning dotfiles"
    )

def remove_conflicting_zshrc() -> None:
    """A regular ~/.zshrc would block stow; a symlink is left for stow to judge."""
    zshrc: Path = cfg.get_zshrc_path()
    if zshrc.is_file() and not zshrc.is_symlink():
        core.unlink_file_dry_run(zshrc)

def stow_packages(source: Path) -> None:
    packages: List[str] = list(cfg.get_user_config_value("stow_packages"))
    core.run_command(["stow", "-d", str(source), "-t", str(cfg.get_home_dir())] + packages)

def setup_dotfiles(inputs: InputProvider) -> None:
    """
    Raises AuthenticationError, before touching anything, if the GitHub CLI
    is not logged in.
    """
    ui.print_section_header("Dotfiles")
    ui.log("Setting up dotfiles...")
    ui.info("You need to authenticate with GitHub first.")
    ui.info("Please run: gh auth login")
    ui.info("Then go to github.com/login/device and enter the one-time code")
    inputs.wait_for_enter("Press Enter after you've completed GitHub authentication...")

    if not github_authenticated():
        raise core.AuthenticationError("GitHub authentication not completed. Please run 'gh auth login' manually")

    target: Path = dotfiles_dir()
    clone_dotfiles(target)
    remove_conflicting_zshrc()
    stow_packages(target)
    ui.success("Dotfiles setup complete!")
