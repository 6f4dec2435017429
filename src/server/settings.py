from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Dict


log = logging.getLogger(__name__)

SETTINGS_PATH: Path | None = None


def init_settings(path: Path) -> None:
    global SETTINGS_PATH
    SETTINGS_PATH = path


def default_settings() -> Dict:
    return {
        "header_lookahead": 8,
        "max_workers": 4,
        "max_archives": 16,
        "default_category": "Fashion",
    }


def get_settings() -> Dict:
    base = default_settings()
    if SETTINGS_PATH is None or not SETTINGS_PATH.exists():
        return base
    try:
        data = json.loads(SETTINGS_PATH.read_text())
    except (OSError, ValueError) as e:
        log.warning(f"Ignoring unreadable settings file {SETTINGS_PATH}: {e}")
        return base
    base.update(data or {})
    return base
