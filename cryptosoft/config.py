from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import CONFIG_FILENAME, CONFIG_SECTION, DEFAULT_KEY, MAX_KEY


@dataclass(frozen=True)
class Settings:
    key: int = DEFAULT_KEY
    follow_symlinks: bool = False


def parse_key(text: Optional[str], default: int = DEFAULT_KEY) -> int:
    """Parse a key written as ``0x``-prefixed hex or as decimal.

    Empty, unparsable, negative, or wider-than-64-bit values yield ``default``.
    """
    if text is None:
        return default
    s = str(text).strip()
    if not s:
        return default
    try:
        if s[:2].lower() == "0x":
            digits = s[2:]
            # int() would also accept "_" separators and a sign; keep to plain hex
            if not digits or not all(c in "0123456789abcdefABCDEF" for c in digits):
                return default
            value = int(digits, 16)
        else:
            if not s.isdigit():
                return default
            value = int(s, 10)
    except ValueError:
        return default
    if value > MAX_KEY:
        return default
    return value


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("1", "true", "yes", "on"):
            return True
        if v in ("0", "false", "no", "off"):
            return False
    return default


def settings_from_mapping(data: Dict[str, Any]) -> Settings:
    """Build :class:`Settings` from a parsed ``appsettings.json`` document."""
    section = data.get(CONFIG_SECTION) if isinstance(data, dict) else None
    if not isinstance(section, dict):
        return Settings()
    raw_key = section.get("Key")
    key = parse_key(None if raw_key is None else str(raw_key))
    follow = _coerce_bool(section.get("FollowSymlinks"), False)
    return Settings(key=key, follow_symlinks=follow)


def load_settings(path: Optional[Union[str, os.PathLike]] = None) -> Settings:
    """Load settings from ``path``, or ``appsettings.json`` in the working directory.

    A missing file gives the defaults. An unreadable or malformed file gives
    the defaults too, with a warning on stderr.
    """
    cfg = Path(path) if path is not None else Path.cwd() / CONFIG_FILENAME
    if not cfg.exists():
        return Settings()
    try:
        with open(cfg, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        print(f"Warning: ignoring configuration {cfg}: {exc}", file=sys.stderr)
        return Settings()
    return settings_from_mapping(data)
