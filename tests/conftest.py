from __future__ import annotations

import os
from pathlib import Path

import pytest

import chat_gateway.core.settings as settings_module

# Aligned to both a minute and an hour boundary.
HOUR_START = 1_699_999_200.0

_ENV_PREFIXES = ("APP_", "AI_", "OPENAI_", "AZURE_OPENAI_", "ANTHROPIC_")
_ENV_NAMES = ("ENVIRONMENT", "LOG_LEVEL", "BASE_DIR")


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = HOUR_START) -> None:
        self.start = start
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def runtime_environment(tmp_path, monkeypatch) -> Path:
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("APP_BASE_DIR", str(tmp_path))
    settings_module.get_settings.cache_clear()
    yield tmp_path
    settings_module.get_settings.cache_clear()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
