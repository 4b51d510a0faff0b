from __future__ import annotations

import pytest

import runtime_config
from tests.helpers import FakeHost, RecordingSleep


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """runtime_config backed by a temp file, with provider env keys cleared."""
    monkeypatch.setattr(runtime_config, "RUNTIME_CONFIG_FILE", str(tmp_path / "runtime_config.json"))
    monkeypatch.setattr(runtime_config, "_subscribers", {})
    for name in ("GEMINI_API_KEY", "DEEPSEEK_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    runtime_config.invalidate_cache()
    yield runtime_config
    runtime_config.invalidate_cache()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
