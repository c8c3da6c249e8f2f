"""Global configuration and per-session parser state."""

from __future__ import annotations

import json
import os
import tempfile

BASE_DIR = os.path.join(os.path.expanduser("~"), ".agent-meter")
CONFIG_FILE = os.path.join(BASE_DIR, "config.json")


class Config:
    debug: bool = False
    echo: bool = False                 # pass raw agent output through
    progress_threshold: int = 5        # min % change before reporting progress
    stall_warn_secs: int = 30
    stall_kill_secs: int = 180


config = Config()

# Keys that may be persisted in config.json
USER_CONFIG_KEYS = ("progress_threshold", "stall_warn_secs", "stall_kill_secs", "echo")


def load_user_config() -> dict:
    """Load user config from ~/.agent-meter/config.json."""
    if not os.path.isfile(CONFIG_FILE):
        return {}
    try:
        with open(CONFIG_FILE, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_user_config(data: dict):
    """Save user config to ~/.agent-meter/config.json (atomic write)."""
    os.makedirs(BASE_DIR, exist_ok=True)
    existing = load_user_config()
    existing.update(data)
    fd, tmp_path = tempfile.mkstemp(dir=BASE_DIR, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(existing, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, CONFIG_FILE)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def init_config() -> bool:
    """Apply saved user defaults to the global config. Returns True if any were applied."""
    user_cfg = load_user_config()
    applied = False
    for key in USER_CONFIG_KEYS:
        if key not in user_cfg:
            continue
        default = getattr(Config, key)
        value = user_cfg[key]
        # Ignore values whose type doesn't match the default (hand-edited file)
        if type(value) is not type(default):
            continue
        setattr(config, key, value)
        applied = True
    return applied


class ParserState:
    """Everything already observed and reported during one agent session.

    The file sets and the error/warning lists only ever grow; membership
    means the item has already been emitted as an event. ``last_progress``
    is written by explicit progress lines only, never by the estimator.
    """

    def __init__(self):
        self.last_progress: int = 0
        self.files_created: set[str] = set()
        self.files_modified: set[str] = set()
        self.files_deleted: set[str] = set()
        self.tests_passed: int = 0
        self.tests_failed: int = 0
        self.tests_total: int = 0
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def __repr__(self) -> str:
        return (
            f"ParserState(progress={self.last_progress}, "
            f"files={len(self.files_created)}/{len(self.files_modified)}/{len(self.files_deleted)}, "
            f"tests={self.tests_passed}/{self.tests_total}, "
            f"errors={len(self.errors)}, warnings={len(self.warnings)})"
        )


def create_state() -> ParserState:
    """Fresh accumulator for a new agent session."""
    return ParserState()
