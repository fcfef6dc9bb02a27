#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Marker-guarded text mutations for configuration files.

Every function here is idempotent: it inspects the current content first and
only writes when its change is not already there. Each returns True when the
file was modified.
"""

import configparser
import re
from pathlib import Path
from typing import List, Optional

from . import core
from . import ui


def read_lines(path: Path) -> List[str]:
    """Lines of a file without line endings; a missing file reads as empty."""
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()

def _join(lines: List[str]) -> str:
    return "\n".join(lines) + "\n" if lines else ""

def ensure_line_present(path: Path, marker: str, line: str, prepend: bool = False, privileged: bool = False) -> bool:
    """
    Adds `line` to the file unless some line already contains `marker`.
    The line goes to the end, or to the top with prepend=True.
    """
    lines: List[str] = read_lines(path)
    if any(marker in existing for existing in lines):
        ui.info(f"'{marker}' already present in {path}")
        return False

    if prepend:
        lines.insert(0, line)
    else:
        lines.append(line)
    core.write_file_dry_run(path, _join(lines), privileged=privileged)
    ui.log(f"{'Prepended' if prepend else 'Appended'} '{line}' to {path}")
    return True

def ensure_uncommented(path: Path, pattern: str, comment_prefix: str = "#", privileged: bool = False) -> bool:
    """
    Uncomments the line that reads exactly `comment_prefix` + `pattern`, as in
    '#en_US.UTF-8 UTF-8' or '# %wheel ALL=(ALL:ALL) ALL'. Documentation lines
    that merely mention the pattern with other spacing are left alone.
    Nothing is written if the active line already exists or no commented
    line matches; the latter is reported as a warning.
    """
    lines: List[str] = read_lines(path)
    if any(existing.strip() == pattern for existing in lines):
        ui.info(f"'{pattern}' already enabled in {path}")
        return False

    commented: str = comment_prefix + pattern
    changed: bool = False
    for idx, existing in enumerate(lines):
        if existing.rstrip() == commented:
            lines[idx] = pattern
            changed = True

    if not changed:
        ui.warning(f"Could not find a commented '{pattern}' in {path}. Manual check advised.")
        return False

    core.write_file_dry_run(path, _join(lines), privileged=privileged)
    ui.log(f"Enabled '{pattern}' in {path}")
    return True

def read_ini_value(path: Path, section: str, key: str) -> Optional[str]:
    if not path.exists():
        return None
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error as e:
        ui.warning(f"Could not parse {path} as INI ({e}); it will be edited line by line.")
        return None
    if not parser.has_section(section):
        return None
    return parser.get(section, key, fallback=None)

def ensure_ini_value(path: Path, section: str, key: str, value: str, privileged: bool = False) -> bool:
    """
    Ensures `key=value` inside `[section]`, keeping comments and the other
    sections as they are. An existing key in the section is rewritten in place.
    """
    if read_ini_value(path, section, key) == value:
        ui.info(f"[{section}] {key}={value} already set in {path}")
        return False

    lines: List[str] = read_lines(path)
    header = re.compile(r"^\s*\[(?P<name>[^\]]+)\]\s*$")
    key_line = re.compile(r"^\s*" + re.escape(key) + r"\s*[=:]")
    new_entry: str = f"{key}={value}"

    section_start: Optional[int] = None
    section_end: int = len(lines)
    for idx, existing in enumerate(lines):
        match = header.match(existing)
        if not match:
            continue
        if section_start is not None:
            section_end = idx
            break
        if match.group("name").strip() == section:
            section_start = idx

    if section_start is None:
        if lines and lines[-1].strip():
            lines.append("")
        lines.extend([f"[{section}]", new_entry])
    else:
        for idx in range(section_start + 1, section_end):
            if key_line.match(lines[idx]):
                lines[idx] = new_entry
                break
        else:
            lines.insert(section_start + 1, new_entry)

    core.write_file_dry_run(path, _join(lines), privileged=privileged)
    ui.log(f"Set [{section}] {key}={value} in {path}")
    return True
