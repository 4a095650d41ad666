"""
Mastery store backends.

The mastery and streak tables are owned by the external database. The quiz only
reads the current mastery and triggers updates through the two stored
procedures ``update_mastery_level`` and ``update_user_streak``. Backends:

- ``supabase``: PostgREST RPC over httpx
- ``postgres``: the same procedures called directly through SQLAlchemy
- ``memory``: in-process tables for local development and tests
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import date

import httpx
from sqlalchemy import text

from app.core.logging import DOMAIN_PERSISTENCE, get_domain_logger
from app.core.settings import settings

logger = get_domain_logger(__name__, DOMAIN_PERSISTENCE)


class MasteryStoreError(RuntimeError):
    pass


class MasteryStore(ABC):
    backend_name: str

    @abstractmethod
    async def get_mastery(self, user_id: str, topic_id: str) -> float | None:
        """Current mastery, or None when the learner has no record for the topic."""
        raise NotImplementedError

    @abstractmethod
    async def update_mastery_level(self, user_id: str, topic_id: str, is_correct: bool) -> float | None:
        raise NotImplementedError

    @abstractmethod
    async def update_user_streak(self, user_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_mastery_levels(self) -> list[dict]:
        """All rows as ``{"user_id", "mastery_level"}``."""
        raise NotImplementedError

    @abstractmethod
    async def list_profiles(self) -> list[dict]:
        """All profiles as ``{"user_id", "username"}``."""
        raise NotImplementedError


def _as_float(value) -> float | None:
    if value is None:
        return None
    if isinstance(value, list):
        # PostgREST wraps scalar results of some functions in a one-element list.
        value = value[0] if value else None
        if isinstance(value, dict):
            value = next(iter(value.values()), None)
    if value is None:
        return None
    return float(value)


class SupabaseMasteryStore(MasteryStore):
    backend_name = "supabase"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url:
            raise MasteryStoreError("SUPABASE_URL is not configured")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = settings.store_timeout_seconds if timeout is None else timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs):
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers=self._headers(),
            ) as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()
        except httpx.HTTPStatusError as exc:
            raise MasteryStoreError(f"{path} returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise MasteryStoreError(f"{path} failed: {exc.__class__.__name__}") from exc
        except ValueError as exc:
            raise MasteryStoreError(f"{path} returned a malformed body") from exc

    async def get_mastery(self, user_id: str, topic_id: str) -> float | None:
        rows = await self._request(
            "GET",
            "/rest/v1/user_mastery",
            params={
                "select": "mastery_level",
                "user_id": f"eq.{user_id}",
                "topic_id": f"eq.{topic_id}",
                "limit": "1",
            },
        )
        if not rows:
            return None
        return _as_float(rows[0].get("mastery_level"))

    async def update_mastery_level(self, user_id: str, topic_id: str, is_correct: bool) -> float | None:
        data = await self._request(
            "POST",
            "/rest/v1/rpc/update_mastery_level",
            json={"user_uuid": user_id, "topic_uuid": topic_id, "is_correct": is_correct},
        )
        return _as_float(data)

    async def update_user_streak(self, user_id: str) -> None:
        await self._request("POST", "/rest/v1/rpc/update_user_streak", json={"user_uuid": user_id})

    async def list_mastery_levels(self) -> list[dict]:
        rows = await self._request("GET", "/rest/v1/user_mastery", params={"select": "user_id,mastery_level"})
        return list(rows or [])

    async def list_profiles(self) -> list[dict]:
        rows = await self._request("GET", "/rest/v1/profiles", params={"select": "user_id,username"})
        return list(rows or [])


class PostgresMasteryStore(MasteryStore):
    backend_name = "postgres"

    def __init__(self, session_factory=None):
        if session_factory is None:
            from app.memory.database import get_session_factory

            session_factory = get_session_factory()
        self._sessions = session_factory

    async def _scalar(self, statement: str, params: dict, *, commit: bool = False):
        async with self._sessions() as session:
            result = await session.execute(text(statement), params)
            value = result.scalar()
            if commit:
                await session.commit()
        return value

    async def _rows(self, statement: str) -> list[dict]:
        async with self._sessions() as session:
            result = await session.execute(text(statement))
            return [dict(row) for row in result.mappings().all()]

    async def get_mastery(self, user_id: str, topic_id: str) -> float | None:
        value = await self._scalar(
            "SELECT mastery_level FROM user_mastery WHERE user_id = :user_id AND topic_id = :topic_id LIMIT 1",
            {"user_id": user_id, "topic_id": topic_id},
        )
        return _as_float(value)

    async def update_mastery_level(self, user_id: str, topic_id: str, is_correct: bool) -> float | None:
        value = await self._scalar(
            "SELECT update_mastery_level(:user_uuid, :topic_uuid, :is_correct)",
            {"user_uuid": user_id, "topic_uuid": topic_id, "is_correct": is_correct},
            commit=True,
        )
        return _as_float(value)

    async def update_user_streak(self, user_id: str) -> None:
        await self._scalar("SELECT update_user_streak(:user_uuid)", {"user_uuid": user_id}, commit=True)

    async def list_mastery_levels(self) -> list[dict]:
        rows = await self._rows("SELECT user_id, mastery_level FROM user_mastery")
        return [{"user_id": str(row["user_id"]), "mastery_level": row["mastery_level"]} for row in rows]

    async def list_profiles(self) -> list[dict]:
        rows = await self._rows("SELECT user_id, username FROM profiles")
        return [{"user_id": str(row["user_id"]), "username": row["username"]} for row in rows]


class InMemoryMasteryStore(MasteryStore):
    """Local stand-in for the external tables. Not a reimplementation of the real procedures."""

    backend_name = "memory"
    correct_step = 0.1
    incorrect_step = 0.05

    def __init__(self):
        self.mastery: dict[tuple[str, str], dict] = {}
        self.streaks: dict[str, dict] = {}
        self.profiles: dict[str, str | None] = {}
        self._lock = asyncio.Lock()

    async def get_mastery(self, user_id: str, topic_id: str) -> float | None:
        record = self.mastery.get((user_id, topic_id))
        return None if record is None else record["mastery_level"]

    async def update_mastery_level(self, user_id: str, topic_id: str, is_correct: bool) -> float | None:
        async with self._lock:
            record = self.mastery.setdefault(
                (user_id, topic_id),
                {"mastery_level": 0.0, "questions_attempted": 0, "questions_correct": 0},
            )
            record["questions_attempted"] += 1
            if is_correct:
                record["questions_correct"] += 1
                level = record["mastery_level"] + self.correct_step
            else:
                level = record["mastery_level"] - self.incorrect_step
            record["mastery_level"] = round(max(0.0, min(1.0, level)), 4)
            return record["mastery_level"]

    async def update_user_streak(self, user_id: str) -> None:
        today = date.today()
        async with self._lock:
            streak = self.streaks.setdefault(
                user_id, {"current_streak": 0, "longest_streak": 0, "last_activity_date": None}
            )
            last = streak["last_activity_date"]
            if last == today:
                return
            if last is not None and (today - last).days == 1:
                streak["current_streak"] += 1
            else:
                streak["current_streak"] = 1
            streak["longest_streak"] = max(streak["longest_streak"], streak["current_streak"])
            streak["last_activity_date"] = today

    async def list_mastery_levels(self) -> list[dict]:
        return [
            {"user_id": user_id, "mastery_level": record["mastery_level"]}
            for (user_id, _topic_id), record in self.mastery.items()
        ]

    async def list_profiles(self) -> list[dict]:
        return [{"user_id": user_id, "username": username} for user_id, username in self.profiles.items()]


def build_mastery_store() -> MasteryStore:
    backend = settings.mastery_store_backend.strip().lower()
    if backend == "supabase":
        return SupabaseMasteryStore(settings.supabase_url, settings.supabase_key)
    if backend == "postgres":
        return PostgresMasteryStore()
    if backend != "memory":
        logger.warning("Unknown MASTERY_STORE_BACKEND=%s, using in-memory store", backend)
    return InMemoryMasteryStore()
