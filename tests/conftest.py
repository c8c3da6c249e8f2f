from __future__ import annotations

import pytest

from agent_meter import state as state_module
from agent_meter.state import Config, config, create_state


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the user config at a temp dir and restore global config afterwards."""
    base = tmp_path / "agent-meter-home"
    monkeypatch.setattr(state_module, "BASE_DIR", str(base))
    monkeypatch.setattr(state_module, "CONFIG_FILE", str(base / "config.json"))
    for key in ("debug", "echo", "progress_threshold", "stall_warn_secs", "stall_kill_secs"):
        monkeypatch.setattr(config, key, getattr(Config, key))
    yield base


@pytest.fixture
def state():
    return create_state()
