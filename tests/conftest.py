from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
API_DIR = ROOT / "API"
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

# Test-mode runtime guards:
# - no external LLM or Supabase traffic
# - in-process mastery store
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LLM_PROVIDER", "none")
os.environ.setdefault("MASTERY_STORE_BACKEND", "memory")
os.environ.setdefault("GROQ_API_KEY", "")
os.environ.setdefault("SUPABASE_URL", "")

from app.core.app_metrics import reset_metrics  # noqa: E402
from app.core.llm_provider import BaseLLMProvider  # noqa: E402
from app.core.resilience import reset_breakers  # noqa: E402
from app.main import app  # noqa: E402
from app.memory.mastery_store import InMemoryMasteryStore  # noqa: E402
from app.services.quiz import get_quiz_service  # noqa: E402


class ScriptedProvider(BaseLLMProvider):
    """Returns canned replies in order; the last reply repeats. Exceptions are raised."""

    provider_name = "scripted"
    model_name = "scripted"

    def __init__(self, *replies):
        self.replies = list(replies) or [None]
        self.calls: list[dict] = []

    async def generate(self, prompt, *, temperature=0.7, max_tokens=500, system_prompt=None):
        self.calls.append(
            {"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens, "system_prompt": system_prompt}
        )
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if not reply:
            return None, {"provider": self.provider_name, "reason": "empty_response"}
        return reply, {"provider": self.provider_name}


class RecordingStore(InMemoryMasteryStore):
    """In-memory store that records procedure calls and can return scripted values or fail."""

    def __init__(self, mastery_values=None, *, fail_update=False, fail_streak=False, fail_read=False):
        super().__init__()
        self.mastery_values = list(mastery_values or [])
        self.fail_update = fail_update
        self.fail_streak = fail_streak
        self.fail_read = fail_read
        self.update_calls: list[tuple[str, str, bool]] = []
        self.streak_calls: list[str] = []

    async def get_mastery(self, user_id, topic_id):
        if self.fail_read:
            raise RuntimeError("read failed")
        return await super().get_mastery(user_id, topic_id)

    async def update_mastery_level(self, user_id, topic_id, is_correct):
        self.update_calls.append((user_id, topic_id, is_correct))
        if self.fail_update:
            raise RuntimeError("rpc update_mastery_level failed")
        if self.mastery_values:
            value = self.mastery_values.pop(0)
            self.mastery[(user_id, topic_id)] = {
                "mastery_level": value,
                "questions_attempted": len(self.update_calls),
                "questions_correct": 0,
            }
            return value
        return await super().update_mastery_level(user_id, topic_id, is_correct)

    async def update_user_streak(self, user_id):
        self.streak_calls.append(user_id)
        if self.fail_streak:
            raise RuntimeError("rpc update_user_streak failed")
        await super().update_user_streak(user_id)


@pytest.fixture(autouse=True)
def _reset_runtime_state():
    reset_metrics()
    reset_breakers()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def scripted_provider():
    return ScriptedProvider


@pytest.fixture
def recording_store():
    return RecordingStore


@pytest.fixture
def override_quiz_service():
    def _override(service):
        app.dependency_overrides[get_quiz_service] = lambda: service
        return service

    return _override


@pytest.fixture(scope="session")
def client() -> TestClient:
    with TestClient(app) as tc:
        yield tc
