#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Handles global configuration, phase step lists, and constants for the Arch WSL
provisioning runner.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Optional

from . import ui


class ConfigError(Exception):
    """Raised when a configuration override file cannot be applied."""


# --- Global Dry Run Flag ---
DRY_RUN_MODE: bool = False

# Override file applied by load_user_config, handed on to the Phase 2 launcher.
LOADED_CONFIG_PATH: Optional[Path] = None

# --- Phase Step Tracking ---
ROOT_PHASE_STEPS: List[str] = [
    "system_upgrade",       # a
    "bootstrap_packages",   # b
    "create_user",          # c
    "user_password",        # d
    "admin_group",          # e
    "wsl_default_user",     # f
    "install_launcher",     # g
]

USER_PHASE_STEPS: List[str] = [
    "zshrc_bootstrap",      # 1
    "locale",               # 2
    "build_tools",          # 3
    "aur_helper",           # 4
    "packages",             # 5
    "homebrew",             # 6
    "oh_my_zsh",            # 7
    "powerlevel10k",        # 8
    "zsh_config",           # 9
    "safe_rm",              # 10
]

# --- Configuration Constants (User-configurable defaults) ---
USER_CONFIG: Dict[str, Any] = {
    "username": "alex",
    "shell": "/bin/zsh",
    "admin_group": "wheel",
    "home_root": "/home",
    "wsl_distro": "archlinux",
    "launcher_name": "arch_wsl_setup",
    # Home-relative directory holding the copy of the package the launcher imports.
    "launcher_lib_dir": ".arch_wsl_setup",
    "bootstrap_packages": ["sudo", "zsh"],
    "build_packages": ["git", "base-devel"],
    "packages": [
        "alacritty", "lazygit", "neovim", "yazi", "fzf", "bat", "github-cli",
        "zoxide", "vim", "stow", "tmux", "zsh-autosuggestions",
        "zsh-syntax-highlighting",
    ],
    "locale": "en_US.UTF-8",
    "locale_gen_entry": "en_US.UTF-8 UTF-8",
    "aur_helper": "yay",
    "aur_helper_repo": "https://aur.archlinux.org/yay.git",
    "build_dir": "/tmp",
    "homebrew_install_url": "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh",
    "homebrew_prefix": "/home/linuxbrew/.linuxbrew",
    "oh_my_zsh_install_url": "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh",
    "p10k_repo": "https://github.com/romkatv/powerlevel10k.git",
    "zsh_theme": "powerlevel10k/powerlevel10k",
    "zsh_plugins": ["git", "zsh-autosuggestions", "zsh-syntax-highlighting"],
    "system_zsh_plugins_dir": "/usr/share/zsh/plugins",
    "linked_zsh_plugins": ["zsh-autosuggestions", "zsh-syntax-highlighting"],
    "aur_packages": ["safe-rm"],
    # Answers piped into yay's provider menu: "1" picks rust for cargo, the
    # empty line accepts the remaining defaults.
    "safe_rm_prompt_answers": ["1", ""],
    "dotfiles_repo": "alex-assada/hypr-dots",
    "dotfiles_dir": ".dotfiles",
    "stow_packages": ["alacritty", "nvim", "tmux", "yazi", "zsh"],
}

SYSTEM_FILES: Dict[str, Path] = {
    "sudoers": Path("/etc/sudoers"),
    "locale_gen": Path("/etc/locale.gen"),
    "wsl_conf": Path("/etc/wsl.conf"),
}


def set_dry_run_mode(mode: bool) -> None:
    """Sets the global DRY_RUN_MODE."""
    global DRY_RUN_MODE
    DRY_RUN_MODE = mode

def get_dry_run_mode() -> bool:
    return DRY_RUN_MODE

def get_user_config_value(key: str, default: Any = None) -> Any:
    """Gets a specific value from USER_CONFIG, with an optional default."""
    return USER_CONFIG.get(key, default)

def update_user_config_value(key: str, value: Any) -> None:
    USER_CONFIG[key] = value

def get_loaded_config_path() -> Optional[Path]:
    return LOADED_CONFIG_PATH

def get_system_file(name: str) -> Path:
    return SYSTEM_FILES[name]

def get_home_dir() -> Path:
    """Home directory of the Target User."""
    return Path(str(USER_CONFIG["home_root"])) / str(USER_CONFIG["username"])

def get_zshrc_path() -> Path:
    return get_home_dir() / ".zshrc"

def load_user_config(path: Path) -> Dict[str, Any]:
    """
    Applies overrides from a JSON object file onto USER_CONFIG.
    Unknown keys and type mismatches with the defaults are rejected.
    Returns the applied overrides.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            overrides: Any = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {path} is not valid JSON: {e}")

    if not isinstance(overrides, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object.")

    for key, value in overrides.items():
        if key not in USER_CONFIG:
            raise ConfigError(f"Unknown config key '{key}' in {path}")
        expected_type = type(USER_CONFIG[key])
        if not isinstance(value, expected_type):
            raise ConfigError(
                f"Config key '{key}' in {path} must be of type {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )

    global LOADED_CONFIG_PATH
    USER_CONFIG.update(overrides)
    LOADED_CONFIG_PATH = path
    ui.info(f"Loaded {len(overrides)} configuration override(s) from {path}")
    return overrides
