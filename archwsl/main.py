#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main entry point for the Arch Linux WSL post-installation setup.
Selects the phase from the execution context and runs it.
"""

import argparse
import subprocess
import sys
import time
import traceback
from pathlib import Path
from typing import List, Optional

from .modules import config as cfg
from .modules import context
from .modules import core
from .modules import dotfiles
from .modules import root_phase
from .modules import ui
from .modules import user_phase
from .modules.prompts import InputProvider, TerminalInputProvider

def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command-line arguments. None of them is needed for a normal run."""
    parser = argparse.ArgumentParser(description='Arch Linux WSL post-installation setup')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print the commands and file changes instead of applying them'
    )
    parser.add_argument(
        '--config',
        type=Path,
        help='JSON file overriding the default configuration values'
    )
    parser.add_argument(
        '--dotfiles',
        action='store_true',
        help='Only run the dotfiles setup (user phase, after gh auth login)'
    )
    return parser.parse_args(argv)

def run(args: argparse.Namespace, inputs: InputProvider, ctx: Optional[context.ExecutionContext] = None) -> int:
    """Runs the phase selected for `ctx` and returns the process exit status."""
    cfg.set_dry_run_mode(args.dry_run)
    if args.config:
        cfg.load_user_config(args.config)

    ui.print_header("Arch Linux WSL Setup")
    if cfg.get_dry_run_mode():
        ui.warning("DRY RUN MODE ENABLED. No changes will be made.")
    ui.log("Starting Arch Linux WSL post-installation setup...")

    ctx = ctx if ctx is not None else context.detect_context()
    phase: str = context.select_phase(ctx)

    if phase == context.PHASE_ROOT:
        if args.dotfiles:
            ui.error("Dotfiles setup must run as the target user, not as root.")
            ui.info(context.restart_instructions())
            return 1
        ui.log("Running as root - this is expected for initial setup")
        root_phase.run_root_phase(inputs)
        return 0

    if args.dotfiles:
        dotfiles.setup_dotfiles(inputs)
        return 0

    user_phase.run_user_phase(inputs)
    return 0

def main(argv: Optional[List[str]] = None, inputs: Optional[InputProvider] = None) -> int:
    args = parse_arguments(argv)
    start_time = time.time()
    try:
        return run(args, inputs if inputs is not None else TerminalInputProvider())
    except core.UserContextError as e:
        ui.error(str(e))
        return 1
    except core.AuthenticationError as e:
        ui.error(str(e))
        return 1
    except cfg.ConfigError as e:
        ui.error(str(e))
        return 1
    except subprocess.CalledProcessError as e:
        ui.error(f"A command failed (return code {e.returncode}). Setup cannot continue.")
        ui.print_color(f"Command: {' '.join(e.cmd) if isinstance(e.cmd, list) else e.cmd}", ui.Colors.RED, stream=sys.stderr)
        if e.stdout:
            ui.print_color(f"Stdout:\n{e.stdout.strip() if isinstance(e.stdout, str) else e.stdout.decode(errors='replace').strip()}", ui.Colors.RED, stream=sys.stderr)
        ui.warning("Fix the problem and re-run the script; completed steps will be skipped.")
        return 1
    except FileNotFoundError as e:
        ui.error(f"Required program or file not found: {e.filename or e}")
        return 1
    except KeyboardInterrupt:
        ui.warning("Setup aborted by user (Ctrl+C).")
        return 1
    except Exception as e:
        ui.error(f"An unexpected error occurred: {e}")
        traceback.print_exc()
        return 1
    finally:
        duration = time.time() - start_time
        ui.print_color(f"\nScript finished in {duration:.2f} seconds.", ui.Colors.PURPLE, bold=True)


if __name__ == "__main__":
    sys.exit(main())
