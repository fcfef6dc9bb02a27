#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Operator input for the provisioning runner.

Every interactive read (confirmations, "press Enter" pauses, the Target User
password) goes through an InputProvider so that the phases can be driven with
canned answers.
"""

import getpass
from typing import Iterable, List, Optional

from . import ui


class InputProvider:
    """Interface for the three kinds of operator input the runner needs."""

    def confirm(self, question: str, default_yes: bool = False) -> bool:
        raise NotImplementedError

    def wait_for_enter(self, message: str) -> None:
        raise NotImplementedError

    def secret(self, question: str) -> str:
        raise NotImplementedError


class TerminalInputProvider(InputProvider):
    """Reads answers from the controlling terminal."""

    def confirm(self, question: str, default_yes: bool = False) -> bool:
        active_color = ui.Colors.PINK
        inactive_color = ui.Colors.LAVENDER
        if default_yes:
            suffix = f" [{active_color}Y{ui.Colors.RESET}/{inactive_color}n{ui.Colors.RESET}]"
        else:
            suffix = f" [{inactive_color}y{ui.Colors.RESET}/{active_color}N{ui.Colors.RESET}]"
        while True:
            try:
                reply: str = input(f"{ui.Colors.LAVENDER}{question}{suffix}: {ui.Colors.RESET}").strip().lower()
            except EOFError:
                ui.print_color("\nInput stream ended.", ui.Colors.PEACH, prefix=ui.WARNING_SYMBOL)
                return default_yes
            if not reply:
                return default_yes
            if reply in ['y', 'yes']:
                return True
            if reply in ['n', 'no']:
                return False
            ui.print_color("Invalid input. Please enter 'y' or 'n'.", ui.Colors.PEACH, prefix=ui.WARNING_SYMBOL)

    def wait_for_enter(self, message: str) -> None:
        try:
            input(f"{ui.INPUT_PROMPT_SYMBOL} {ui.Colors.MINT}{message}{ui.Colors.RESET}")
        except EOFError:
            ui.print_color("\nInput stream ended.", ui.Colors.PEACH, prefix=ui.WARNING_SYMBOL)

    def secret(self, question: str) -> str:
        return getpass.getpass(f"{ui.INPUT_PROMPT_SYMBOL} {ui.Colors.MINT}{question}: {ui.Colors.RESET}")


class ScriptedInputProvider(InputProvider):
    """
    Replays a fixed sequence of answers.

    Confirmations accept "y"/"yes"/"n"/"no" (empty means the default), and
    "press Enter" pauses consume one answer each. Running out of answers is an
    error, so a test notices an unexpected prompt.
    """

    def __init__(self, answers: Optional[Iterable[str]] = None) -> None:
        self.answers: List[str] = list(answers or [])
        self.prompts: List[str] = []

    def _next(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError(f"No scripted answer left for prompt: {prompt}")
        return self.answers.pop(0)

    def confirm(self, question: str, default_yes: bool = False) -> bool:
        reply = self._next(question).strip().lower()
        if not reply:
            return default_yes
        return reply in ['y', 'yes']

    def wait_for_enter(self, message: str) -> None:
        self._next(message)

    def secret(self, question: str) -> str:
        return self._next(question)
