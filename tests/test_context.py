"""Tests for phase selection and the main entry point."""

from __future__ import annotations

import pytest

from archwsl import main as entry
from archwsl.modules import config as cfg
from archwsl.modules import context
from archwsl.modules import core
from archwsl.modules.prompts import ScriptedInputProvider


def test_privileged_context_selects_root_phase() -> None:
    ctx = context.ExecutionContext(privileged=True, username="root")
    assert context.select_phase(ctx) == context.PHASE_ROOT


def test_target_user_selects_user_phase() -> None:
    ctx = context.ExecutionContext(privileged=False, username="alex")
    assert context.select_phase(ctx) == context.PHASE_USER


def test_other_user_is_a_context_error() -> None:
    ctx = context.ExecutionContext(privileged=False, username="bob")
    with pytest.raises(core.UserContextError, match="should be run as user 'alex'"):
        context.select_phase(ctx)


def test_wrong_identity_exits_nonzero_without_mutations(monkeypatch: pytest.MonkeyPatch, fake_system, tmp_path) -> None:
    monkeypatch.setattr(context, "detect_context", lambda: context.ExecutionContext(False, "bob"))
    before = sorted(p.relative_to(tmp_path) for p in tmp_path.rglob("*"))

    assert entry.main([]) == 1

    assert fake_system.calls == []
    assert sorted(p.relative_to(tmp_path) for p in tmp_path.rglob("*")) == before


def test_root_run_never_enters_user_phase(monkeypatch: pytest.MonkeyPatch, fake_system, as_root) -> None:
    user_phase_calls = []
    monkeypatch.setattr(entry.user_phase, "run_user_phase", lambda inputs: user_phase_calls.append(inputs))
    args = entry.parse_arguments([])
    inputs = ScriptedInputProvider(["hunter2", "hunter2"])

    status = entry.run(args, inputs, context.ExecutionContext(True, "root"))

    assert status == 0
    assert user_phase_calls == []
    assert not fake_system.ran("oh-my-zsh")
    assert not fake_system.ran("makepkg")


def test_dotfiles_flag_refused_as_root(fake_system, as_root) -> None:
    args = entry.parse_arguments(["--dotfiles"])
    assert entry.run(args, ScriptedInputProvider(), context.ExecutionContext(True, "root")) == 1
    assert fake_system.calls == []


def test_dotfiles_flag_without_auth_exits_nonzero(monkeypatch: pytest.MonkeyPatch, fake_system, as_user) -> None:
    monkeypatch.setattr(context, "detect_context", lambda: context.ExecutionContext(False, "alex"))

    assert entry.main(["--dotfiles"], inputs=ScriptedInputProvider([""])) == 1
    assert not (as_user / ".dotfiles").exists()


def test_dotfiles_auth_failure_after_user_phase_exits_nonzero(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture, fake_system, as_user
) -> None:
    monkeypatch.setattr(context, "detect_context", lambda: context.ExecutionContext(False, "alex"))

    status = entry.main([], inputs=ScriptedInputProvider(["y", ""]))

    assert status == 1
    assert (as_user / ".oh-my-zsh").is_dir()
    assert not (as_user / ".dotfiles").exists()
    captured = capsys.readouterr()
    assert "Setup complete!" not in captured.out
    assert "gh auth login" in captured.err


def test_failed_command_exits_nonzero(monkeypatch: pytest.MonkeyPatch, fake_system, as_root) -> None:
    monkeypatch.setattr(context, "detect_context", lambda: context.ExecutionContext(True, "root"))
    fake_system.fail_on = "pacman -Syu"

    assert entry.main([]) == 1
    assert not fake_system.ran("useradd")


def test_config_flag_changes_target_user(monkeypatch: pytest.MonkeyPatch, fake_system, tmp_path) -> None:
    override = tmp_path / "override.json"
    override.write_text('{"username": "sam"}', encoding="utf-8")
    monkeypatch.setattr(context, "detect_context", lambda: context.ExecutionContext(False, "alex"))

    assert entry.main(["--config", str(override)]) == 1
    assert cfg.get_user_config_value("username") == "sam"
    assert fake_system.calls == []
