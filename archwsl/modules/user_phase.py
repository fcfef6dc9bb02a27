#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Phase 2: per-user environment setup, run as the Target User after the WSL
session restart. Steps are ordered as in USER_PHASE_STEPS and each one either
has an "already applied" check or only performs marker-guarded changes.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from . import config as cfg
from . import core
from . import dotfiles
from . import textfile
from . import ui
from .prompts import InputProvider


def _home() -> Path:
    return cfg.get_home_dir()

def _zshrc() -> Path:
    return cfg.get_zshrc_path()

def oh_my_zsh_dir() -> Path:
    return _home() / ".oh-my-zsh"

def zsh_custom_dir() -> Path:
    custom: Optional[str] = os.environ.get("ZSH_CUSTOM")
    return Path(custom) if custom else oh_my_zsh_dir() / "custom"

def p10k_theme_dir() -> Path:
    return zsh_custom_dir() / "themes" / "powerlevel10k"

def zsh_plugins_dir() -> Path:
    return zsh_custom_dir() / "plugins"


# --- 1. Shell profile bootstrap ---

def bootstrap_zshrc() -> None:
    """An existing ~/.zshrc keeps zsh's first-run wizard from starting."""
    core.write_file_dry_run(_zshrc(), "# Initial zsh configuration\n")
    ui.log(f"Created {_zshrc()}")


# --- 2. Locale ---

def _normalize_locale(name: str) -> str:
    return name.lower().replace("-", "")

def locale_is_generated(locale: str) -> bool:
    available: List[str] = core.command_output(["locale", "-a"]).split()
    return _normalize_locale(locale) in {_normalize_locale(item) for item in available}

def fix_locale() -> None:
    locale: str = str(cfg.get_user_config_value("locale"))
    ui.log("Fixing locale settings...")
    changed: bool = textfile.ensure_uncommented(
        cfg.get_system_file("locale_gen"),
        str(cfg.get_user_config_value("locale_gen_entry")),
        privileged=True,
    )
    if changed or not locale_is_generated(locale):
        core.run_command(core.sudo_prefix() + ["locale-gen"])
    else:
        ui.info(f"Locale {locale} already generated")

    textfile.ensure_line_present(_zshrc(), "export LANG=", f"export LANG={locale}")
    textfile.ensure_line_present(_zshrc(), "export LC_ALL=", f"export LC_ALL={locale}")
    os.environ["LANG"] = locale
    os.environ["LC_ALL"] = locale


# --- 3. Build tooling ---

def install_build_tools() -> None:
    packages: List[str] = list(cfg.get_user_config_value("build_packages"))
    ui.log("Installing git and build dependencies...")
    core.run_command(core.sudo_prefix() + ["pacman", "-S", "--needed", "--noconfirm"] + packages)


# --- 4. AUR helper ---

def aur_helper_installed() -> bool:
    return core.find_executable(str(cfg.get_user_config_value("aur_helper"))) is not None

def install_aur_helper() -> None:
    helper: str = str(cfg.get_user_config_value("aur_helper"))
    build_dir: Path = Path(str(cfg.get_user_config_value("build_dir"))) / helper
    ui.log(f"Installing {helper} AUR helper...")
    if build_dir.exists():
        ui.warning(f"Removing stale build directory {build_dir}")
        core.remove_tree_dry_run(build_dir)
    core.run_command(
        ["git", "clone", str(cfg.get_user_config_value("aur_helper_repo")), str(build_dir)],
        show_spinner=True, custom_spinner_message=f"Cloning {helper}"
    )
    # makepkg runs inside the checkout; our own working directory never changes.
    core.run_command(["makepkg", "-si", "--noconfirm"], cwd=build_dir)


# --- 5. Primary packages ---

def install_packages() -> None:
    packages: List[str] = list(cfg.get_user_config_value("packages"))
    ui.log("Installing packages from official repositories...")
    core.run_command(core.sudo_prefix() + ["pacman", "-Syu", "--needed", "--noconfirm"] + packages)


# --- 6. Homebrew ---

def homebrew_installed() -> bool:
    prefix = Path(str(cfg.get_user_config_value("homebrew_prefix")))
    return core.find_executable("brew", [prefix / "bin" / "brew"]) is not None

def install_homebrew() -> None:
    ui.log("Installing Homebrew...")
    url: str = str(cfg.get_user_config_value("homebrew_install_url"))
    core.run_command(f'/bin/bash -c "$(curl -fsSL {url})"', shell=True)


# --- 7. Oh My Zsh ---

def oh_my_zsh_installed() -> bool:
    return oh_my_zsh_dir().is_dir()

def install_oh_my_zsh() -> None:
    """Runs the unattended installer and puts our ~/.zshrc back afterwards."""
    ui.log("Installing Oh My Zsh...")
    zshrc: Path = _zshrc()
    backup: Path = zshrc.with_name(zshrc.name + ".backup")
    backed_up: bool = zshrc.is_file()
    if backed_up:
        core.copy_file_dry_run(zshrc, backup)

    url: str = str(cfg.get_user_config_value("oh_my_zsh_install_url"))
    env: Dict[str, str] = dict(os.environ, KEEP_ZSHRC="yes")
    try:
        core.run_command(f'sh -c "$(curl -fsSL {url})" "" --unattended', shell=True, env=env)
    finally:
        if backed_up:
            core.move_file_dry_run(backup, zshrc)
            ui.log(f"Restored {zshrc} from backup")


# --- 8. Powerlevel10k ---

def p10k_installed() -> bool:
    return p10k_theme_dir().is_dir()

def install_p10k() -> None:
    ui.log("Installing Powerlevel10k theme...")
    core.run_command(
        ["git", "clone", "--depth=1", str(cfg.get_user_config_value("p10k_repo")), str(p10k_theme_dir())],
        show_spinner=True, custom_spinner_message="Cloning powerlevel10k"
    )


# --- 9. Shell configuration ---

def link_system_plugin(source: Path, link: Path) -> None:
    """Symlinks a system-installed plugin; a missing package is only a warning."""
    if link.is_symlink() or link.exists():
        ui.info(f"{link} already present")
        return
    if not source.is_dir():
        ui.warning(f"{source} not found, is the package installed? Skipping link.")
        return
    if cfg.get_dry_run_mode():
        ui.print_dry_run_command(f"ln -s {source} {link}")
        return
    try:
        link.symlink_to(source, target_is_directory=True)
    except OSError as e:
        ui.warning(f"Could not link {link} -> {source}: {e}")
        return
    ui.log(f"Linked {link} -> {source}")

def zshrc_directives() -> List[Dict[str, object]]:
    """Marker-guarded lines for ~/.zshrc, in the order they are applied."""
    theme_line: str = f'ZSH_THEME="{cfg.get_user_config_value("zsh_theme")}"'
    plugins_line: str = f"plugins=({' '.join(cfg.get_user_config_value('zsh_plugins'))})"
    cd_line: str = f"cd {_home()}"
    return [
        {"marker": cd_line, "line": cd_line, "prepend": True},
        {"marker": "POWERLEVEL9K_INSTANT_PROMPT=quiet", "line": "typeset -g POWERLEVEL9K_INSTANT_PROMPT=quiet", "prepend": False},
        {"marker": "export ZSH=", "line": 'export ZSH="$HOME/.oh-my-zsh"', "prepend": False},
        {"marker": theme_line, "line": theme_line, "prepend": False},
        {"marker": plugins_line, "line": plugins_line, "prepend": False},
        {"marker": "oh-my-zsh.sh", "line": "source $ZSH/oh-my-zsh.sh", "prepend": False},
    ]

def configure_zsh() -> None:
    ui.log("Configuring zsh plugins and settings...")
    plugins_dir: Path = zsh_plugins_dir()
    core.make_dir_dry_run(plugins_dir)
    system_dir = Path(str(cfg.get_user_config_value("system_zsh_plugins_dir")))
    for plugin in cfg.get_user_config_value("linked_zsh_plugins"):
        link_system_plugin(system_dir / plugin, plugins_dir / plugin)

    for directive in zshrc_directives():
        textfile.ensure_line_present(
            _zshrc(), str(directive["marker"]), str(directive["line"]), prepend=bool(directive["prepend"])
        )


# --- 10. AUR utilities ---

def aur_packages_installed() -> bool:
    return all(core.find_executable(pkg) is not None for pkg in cfg.get_user_config_value("aur_packages"))

def install_aur_packages() -> None:
    packages: List[str] = list(cfg.get_user_config_value("aur_packages"))
    helper: str = str(cfg.get_user_config_value("aur_helper"))
    ui.log(f"Installing {', '.join(packages)} from AUR...")
    answers: List[str] = list(cfg.get_user_config_value("safe_rm_prompt_answers"))
    core.run_command(
        [helper, "-S", "--needed", "--noconfirm"] + packages,
        input_text="\n".join(answers) + "\n",
    )


# --- 11. Finalization ---

def run_p10k_wizard() -> None:
    if (_home() / ".p10k.zsh").exists():
        ui.info("Powerlevel10k already configured (~/.p10k.zsh exists)")
        return
    ui.info("You may be prompted to configure the Powerlevel10k theme now.")
    process = core.run_command(["zsh", "-i", "-c", "p10k configure"], check=False)
    if process is not None and process.returncode != 0:
        ui.warning(f"Powerlevel10k wizard exited with status {process.returncode}")

def print_next_steps() -> None:
    ui.log("Next steps:")
    ui.info("1. If you didn't see the Powerlevel10k configuration wizard, run: p10k configure")
    ui.info("2. For dotfiles setup, you'll need to manually authenticate with GitHub:")
    ui.info("   - Run: gh auth login")
    ui.info("   - Follow the prompts and device authentication")
    ui.info("   - Then re-run this script with --dotfiles")

def finalize(inputs: InputProvider) -> None:
    ui.print_section_header("Finalization")
    ui.log("Configuration complete! Loading zsh to activate Oh My Zsh and Powerlevel10k...")
    run_p10k_wizard()
    print_next_steps()
    if inputs.confirm("Would you like to set up dotfiles now?", default_yes=False):
        try:
            dotfiles.setup_dotfiles(inputs)
        except core.AuthenticationError:
            ui.warning("Dotfiles were not set up; everything before them is in place.")
            ui.info("Run 'gh auth login', then re-run this script with --dotfiles")
            raise


def build_steps() -> List[core.Step]:
    """Phase 2 steps in USER_PHASE_STEPS order."""
    helper: str = str(cfg.get_user_config_value("aur_helper"))
    steps: Dict[str, core.Step] = {
        "zshrc_bootstrap": core.Step(
            "zshrc_bootstrap", "Shell Profile", bootstrap_zshrc,
            is_applied=lambda: _zshrc().exists(),
            skip_message="~/.zshrc already exists, skipping",
        ),
        "locale": core.Step("locale", "Locale", fix_locale),
        "build_tools": core.Step("build_tools", "Build Tools", install_build_tools),
        "aur_helper": core.Step(
            "aur_helper", "AUR Helper", install_aur_helper,
            is_applied=aur_helper_installed,
            skip_message=f"{helper} already installed, skipping",
        ),
        "packages": core.Step("packages", "Packages", install_packages),
        "homebrew": core.Step(
            "homebrew", "Homebrew", install_homebrew,
            is_applied=homebrew_installed,
            skip_message="Homebrew already installed, skipping",
        ),
        "oh_my_zsh": core.Step(
            "oh_my_zsh", "Oh My Zsh", install_oh_my_zsh,
            is_applied=oh_my_zsh_installed,
            skip_message="Oh My Zsh already installed, skipping",
        ),
        "powerlevel10k": core.Step(
            "powerlevel10k", "Powerlevel10k", install_p10k,
            is_applied=p10k_installed,
            skip_message="Powerlevel10k already installed, skipping",
        ),
        "zsh_config": core.Step("zsh_config", "Zsh Configuration", configure_zsh),
        "safe_rm": core.Step(
            "safe_rm", "AUR Utilities", install_aur_packages,
            is_applied=aur_packages_installed,
            skip_message="already installed, skipping",
        ),
    }
    return [steps[name] for name in cfg.USER_PHASE_STEPS]

def run_user_phase(inputs: InputProvider) -> None:
    ui.log("Phase 2: User setup")
    core.run_steps(build_steps())
    ui.log("Most setup complete!")
    finalize(inputs)
    ui.success("Setup complete! Enjoy your new Arch Linux WSL environment!")
