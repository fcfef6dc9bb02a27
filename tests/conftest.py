"""Shared fixtures: isolated configuration, a temporary home and /etc, and a fake system."""

from __future__ import annotations

import copy
import shlex
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pytest

from archwsl.modules import config as cfg
from archwsl.modules import core
from archwsl.modules import root_phase


SUDOERS_TEMPLATE = """## sudoers file.
root ALL=(ALL:ALL) ALL
## Uncomment to allow members of group wheel to execute any command
# %wheel ALL=(ALL:ALL) ALL
## Same thing without a password
# %wheel ALL=(ALL:ALL) NOPASSWD: ALL
"""

LOCALE_GEN_TEMPLATE = """# Configuration file for locale-gen
#
# lists of locales that are to be generated by the locale-gen command.
#
#  Examples:
#  en_US ISO-8859-1
#  en_US.UTF-8 UTF-8
#  de_DE ISO-8859-1
#
#en_GB.UTF-8 UTF-8
#en_US ISO-8859-1
#en_US.UTF-8 UTF-8
"""


class FakeSystem:
    """
    Stands in for the external world behind core.run_command and
    core.find_executable. Commands mutate a small model of users, packages and
    files under the temporary home so that re-runs see their own effects.
    """

    def __init__(self, home_root: Path) -> None:
        self.home_root = home_root
        self.calls: List[Any] = []
        self.inputs: Dict[str, Optional[str]] = {}
        self.users: Set[str] = set()
        self.groups: Dict[str, Set[str]] = {}
        self.passwords: Set[str] = set()
        self.binaries: Set[str] = set()
        self.locales: List[str] = ["C", "POSIX"]
        self.gh_authenticated = False
        self.fail_on: Optional[str] = None

    # -- helpers used by tests --
    def commands(self) -> List[str]:
        return [c if isinstance(c, str) else " ".join(c) for c in self.calls]

    def ran(self, fragment: str) -> bool:
        return any(fragment in c for c in self.commands())

    def count(self, fragment: str) -> int:
        return sum(1 for c in self.commands() if fragment in c)

    # -- core.find_executable replacement --
    def find_executable(self, name: str, extra_paths: Optional[List[Path]] = None) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.binaries else None

    # -- core.run_command replacement --
    def run_command(self, command, check=True, capture_output=False, text=True, shell=False,
                    cwd=None, env=None, input_text=None, destructive=True, show_spinner=False,
                    custom_spinner_message=None, quiet=False):
        if cfg.get_dry_run_mode() and destructive:
            self.calls.append(("DRY", command))
            return None
        self.calls.append(command)
        cmd_str = command if isinstance(command, str) else " ".join(command)
        self.inputs[cmd_str] = input_text
        if self.fail_on and self.fail_on in cmd_str:
            returncode, stdout = 1, ""
        else:
            returncode, stdout = self._apply(command if isinstance(command, list) else shlex.split(command),
                                             cmd_str, input_text, env)
        process = subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr="")
        if check and returncode != 0:
            process.check_returncode()
        return process

    def _home(self, user: str) -> Path:
        return self.home_root / user

    def _apply(self, argv: List[str], cmd_str: str, input_text, env):
        if argv and argv[0] == "sudo":
            argv = argv[1:]
        name = argv[0] if argv else ""

        if name == "tee":
            append = "-a" in argv
            path = Path(argv[-1])
            with path.open("a" if append else "w", encoding="utf-8") as f:
                f.write(input_text or "")
            return 0, input_text or ""
        if name == "id":
            if argv[1] == "-nG":
                user = argv[2]
                if user not in self.users:
                    return 1, ""
                return 0, " ".join([user] + sorted(self.groups.get(user, set()))) + "\n"
            return (0, f"uid=1000({argv[1]})\n") if argv[1] in self.users else (1, "")
        if name == "useradd":
            user = argv[-1]
            if user in self.users:
                return 9, ""
            self.users.add(user)
            self._home(user).mkdir(parents=True, exist_ok=True)
            return 0, ""
        if name == "passwd" and argv[1] == "-S":
            user = argv[2]
            status = "P" if user in self.passwords else "L"
            return 0, f"{user} {status} 2026-10-18 0 99999 7 -1\n"
        if name == "chpasswd":
            self.passwords.add((input_text or "").split(":", 1)[0])
            return 0, ""
        if name == "usermod":
            self.groups.setdefault(argv[-1], set()).add(argv[2])
            return 0, ""
        if name == "locale" and argv[1:] == ["-a"]:
            return 0, "\n".join(self.locales) + "\n"
        if name == "locale-gen":
            self.locales.append("en_US.utf8")
            return 0, ""
        if name == "git" and argv[1] == "clone":
            Path(argv[-1]).mkdir(parents=True, exist_ok=True)
            return 0, ""
        if name == "makepkg":
            self.binaries.add("yay")
            return 0, ""
        if name == "yay":
            self.binaries.update(a for a in argv[1:] if not a.startswith("-"))
            return 0, ""
        if "ohmyzsh" in cmd_str:
            home = Path(str(cfg.get_home_dir()))
            (home / ".oh-my-zsh" / "custom").mkdir(parents=True, exist_ok=True)
            # The real installer replaces ~/.zshrc unless told otherwise.
            (home / ".zshrc").write_text("# oh-my-zsh template\n", encoding="utf-8")
            return 0, ""
        if "Homebrew" in cmd_str:
            self.binaries.add("brew")
            return 0, ""
        if name == "gh":
            if argv[1:3] == ["auth", "status"]:
                return (0, "Logged in\n") if self.gh_authenticated else (1, "")
            if argv[1:3] == ["repo", "clone"]:
                Path(argv[-1]).mkdir(parents=True, exist_ok=True)
                return 0, ""
        return 0, ""


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cfg, "USER_CONFIG", copy.deepcopy(cfg.USER_CONFIG))
    monkeypatch.setattr(cfg, "SYSTEM_FILES", dict(cfg.SYSTEM_FILES))
    monkeypatch.setattr(cfg, "DRY_RUN_MODE", False)
    monkeypatch.setattr(cfg, "LOADED_CONFIG_PATH", None)
    monkeypatch.delenv("ZSH_CUSTOM", raising=False)
    monkeypatch.setenv("LANG", "C")
    monkeypatch.setenv("LC_ALL", "C")
    yield


@pytest.fixture
def etc_dir(tmp_path: Path) -> Path:
    etc = tmp_path / "etc"
    etc.mkdir()
    (etc / "sudoers").write_text(SUDOERS_TEMPLATE, encoding="utf-8")
    (etc / "locale.gen").write_text(LOCALE_GEN_TEMPLATE, encoding="utf-8")
    cfg.SYSTEM_FILES["sudoers"] = etc / "sudoers"
    cfg.SYSTEM_FILES["locale_gen"] = etc / "locale.gen"
    cfg.SYSTEM_FILES["wsl_conf"] = etc / "wsl.conf"
    return etc


@pytest.fixture
def home_root(tmp_path: Path) -> Path:
    root = tmp_path / "home"
    root.mkdir()
    cfg.USER_CONFIG["home_root"] = str(root)
    cfg.USER_CONFIG["build_dir"] = str(tmp_path / "build")
    cfg.USER_CONFIG["system_zsh_plugins_dir"] = str(tmp_path / "usr-share-zsh-plugins")
    return root


@pytest.fixture
def fake_system(monkeypatch: pytest.MonkeyPatch, home_root: Path, etc_dir: Path) -> FakeSystem:
    system = FakeSystem(home_root)
    monkeypatch.setattr(core, "run_command", system.run_command)
    monkeypatch.setattr(core, "find_executable", system.find_executable)
    monkeypatch.setattr(root_phase.shutil, "chown", lambda *args, **kwargs: None)
    return system


@pytest.fixture
def as_root(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(core, "is_root", lambda: True)


@pytest.fixture
def as_user(monkeypatch: pytest.MonkeyPatch, fake_system: FakeSystem) -> Path:
    """Unprivileged Target User with an existing home directory."""
    monkeypatch.setattr(core, "is_root", lambda: False)
    fake_system.users.add("alex")
    home = cfg.get_home_dir()
    home.mkdir(parents=True, exist_ok=True)
    return home
