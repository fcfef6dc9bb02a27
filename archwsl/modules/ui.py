#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Handles UI elements, color definitions, and timestamped status output for the
Arch WSL provisioning runner.
"""

import sys
import threading
import time
from datetime import datetime
from typing import Optional, List as TypingList, TextIO

class Colors:
    """ANSI escape codes for terminal colors."""
    PINK: str = '\033[38;5;219m'
    PURPLE: str = '\033[38;5;183m'
    CYAN: str = '\033[38;5;123m'
    YELLOW: str = '\033[38;5;228m'
    BLUE: str = '\033[38;5;111m'
    GREEN: str = '\033[38;5;156m'
    RED: str = '\033[38;5;210m'
    LIGHT_BLUE: str = '\033[38;5;159m'
    LAVENDER: str = '\033[38;5;147m'
    PEACH: str = '\033[38;5;223m'
    MINT: str = '\033[38;5;121m'
    BOLD: str = '\033[1m'
    ITALIC: str = '\033[3m'
    RESET: str = '\033[0m'

SUCCESS_SYMBOL: str = f"{Colors.GREEN}✓{Colors.RESET}"
WARNING_SYMBOL: str = f"{Colors.YELLOW}!{Colors.RESET}"
ERROR_SYMBOL: str = f"{Colors.RED}✗{Colors.RESET}"
INFO_SYMBOL: str = f"{Colors.MINT}ⓘ{Colors.RESET}"
PROGRESS_SYMBOL: str = f"{Colors.LIGHT_BLUE}▸{Colors.RESET}"
RIBBON_SYMBOL: str = f"{Colors.LAVENDER}୨୧{Colors.RESET}"
INPUT_PROMPT_SYMBOL: str = f"{Colors.CYAN}↳{Colors.RESET}"

TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M:%S"


def print_color(
    text: str,
    color: str,
    bold: bool = False,
    prefix: Optional[str] = None,
    italic: bool = False,
    stream: Optional[TextIO] = None
) -> None:
    """Prints text in a specified color and style."""
    out: TextIO = stream if stream is not None else sys.stdout
    style_str: str = (Colors.BOLD if bold else "") + (Colors.ITALIC if italic else "")
    prefix_str: str = f"{prefix} " if prefix else ""
    out.write(f"{prefix_str}{style_str}{color}{text}{Colors.RESET}\n")
    out.flush()

def _timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)

def log(message: str) -> None:
    """Progress message, stamped with the current time."""
    print_color(f"[{_timestamp()}] {message}", Colors.GREEN)

def info(message: str) -> None:
    print_color(f"[{_timestamp()}] [INFO] {message}", Colors.BLUE, prefix=INFO_SYMBOL)

def warning(message: str) -> None:
    print_color(f"[{_timestamp()}] [WARNING] {message}", Colors.YELLOW, prefix=WARNING_SYMBOL)

def error(message: str) -> None:
    """Errors go to stderr so they survive stdout redirection."""
    print_color(f"[{_timestamp()}] [ERROR] {message}", Colors.RED, prefix=ERROR_SYMBOL, bold=True, stream=sys.stderr)

def success(message: str) -> None:
    print_color(f"[{_timestamp()}] {message}", Colors.GREEN, prefix=SUCCESS_SYMBOL)

def print_header(title: str) -> None:
    """Prints the main banner."""
    print_color(f"✨ {title} ✨", Colors.PINK, bold=True)
    sys.stdout.write("\n")
    sys.stdout.flush()

def print_section_header(title: str) -> None:
    """Prints a subsection header with a gradient effect."""
    gradient_colors: TypingList[str] = [Colors.PINK, Colors.LAVENDER, Colors.PEACH]
    styled_title: str = "".join(
        f"{gradient_colors[i % len(gradient_colors)]}{char}" for i, char in enumerate(title)
    )
    print_color(f"{RIBBON_SYMBOL} {styled_title} {RIBBON_SYMBOL}", Colors.LAVENDER, bold=True)

def print_command_info(cmd_str: str) -> None:
    print_color(f"[{_timestamp()}] running: {cmd_str}", Colors.LIGHT_BLUE, prefix=PROGRESS_SYMBOL)

def print_dry_run_command(cmd_str: str) -> None:
    print_color(f"[{_timestamp()}] Would execute: {cmd_str}", Colors.PEACH, prefix=f"{Colors.LAVENDER}[DRY RUN]{Colors.RESET}")


class Spinner:
    """A simple CLI spinner, shown only on a TTY."""
    def __init__(
        self,
        message: str = "Processing...",
        delay: float = 0.1,
        spinner_chars: Optional[TypingList[str]] = None
    ) -> None:
        self.spinner_chars: TypingList[str] = spinner_chars if spinner_chars else ['✿', '❀', '✾', '❁', '✽']
        self.delay: float = delay
        self.message: str = message
        self._thread: Optional[threading.Thread] = None
        self.running: bool = False

    def _spin(self) -> None:
        idx: int = 0
        while self.running:
            spinner_char: str = self.spinner_chars[idx % len(self.spinner_chars)]
            sys.stdout.write(f"\r{Colors.PINK}{spinner_char}{Colors.RESET} {Colors.LIGHT_BLUE}{self.message}{Colors.RESET} ")
            sys.stdout.flush()
            time.sleep(self.delay)
            idx += 1

    def start(self) -> None:
        """Starts the spinner animation in a separate thread."""
        if sys.stdout.isatty():
            self.running = True
            self._thread = threading.Thread(target=self._spin, daemon=True)
            self._thread.start()

    def stop(self) -> None:
        """Stops the spinner animation and clears its line."""
        if not self.running:
            return
        self.running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=self.delay * 2)
        sys.stdout.write(f"\r{' ' * (len(self.message) + 5)}\r")
        sys.stdout.flush()
