import os
import sys
from dataclasses import replace
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before backend.app.config is imported so a developer's .env never leaks in.
os.environ["DISABLE_DOTENV"] = "1"
# Ensure tests never call external AI providers even if developer machine has keys set.
os.environ["OPENAI_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""


class FakeLLM:
    """
    Stand-in for `generate_chat_text`. Queue replies with `reply()`; an
    exception instance in the queue is raised instead of returned.
    """

    def __init__(self):
        self.calls: list[dict] = []
        self._replies: list = []

    def reply(self, value) -> "FakeLLM":
        self._replies.append(value)
        return self

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last_user_message(self) -> str:
        return self.calls[-1]["messages"][-1]["content"]

    @property
    def last_system_message(self) -> str:
        return self.calls[-1]["messages"][0]["content"]

    async def __call__(self, **kwargs):
        from backend.app.services.ai_client import CompletionMeta

        self.calls.append(kwargs)
        value = self._replies.pop(0) if self._replies else ""
        if isinstance(value, Exception):
            raise value
        return value, CompletionMeta(
            provider=kwargs.get("provider") or "openai",
            model=kwargs.get("model") or "test-model",
            latency_ms=1,
            status_code=200,
        )


@pytest.fixture()
def settings():
    from backend.app.config import Settings

    return Settings(
        llm_provider="openai",
        llm_model="gpt-test",
        wizard_model="gpt-test",
        openai_api_key="test-key",
        min_salary=22104,
        max_salary=100000,
        bio_max_sentences=4,
    )


@pytest.fixture()
def app(settings) -> FastAPI:
    """
    The real application with `get_settings` overridden per test.
    Use `use_settings(**changes)` to tweak individual values.
    """
    from backend.app.config import get_settings
    from backend.app.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_settings] = lambda: settings
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def use_settings(app: FastAPI, settings):
    from backend.app.config import get_settings

    def _apply(**changes):
        changed = replace(settings, **changes)
        app.dependency_overrides[get_settings] = lambda: changed
        return changed

    return _apply


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def fake_llm(monkeypatch) -> FakeLLM:
    """Replace the upstream call inside both service modules."""
    import backend.app.services.ai_bio_rewrite as bio_service
    import backend.app.services.ai_wizard as wizard_service

    fake = FakeLLM()
    monkeypatch.setattr(bio_service, "generate_chat_text", fake)
    monkeypatch.setattr(wizard_service, "generate_chat_text", fake)
    return fake
