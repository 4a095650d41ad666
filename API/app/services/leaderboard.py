from __future__ import annotations

from app.core.app_metrics import record_quiz_event
from app.core.logging import DOMAIN_PERSISTENCE, get_domain_logger
from app.memory.mastery_store import MasteryStore
from app.schemas.quiz import LeaderboardEntry

logger = get_domain_logger(__name__, DOMAIN_PERSISTENCE)


async def _read_or_empty(operation: str, call) -> list[dict]:
    try:
        return list(await call() or [])
    except Exception as exc:
        logger.warning("%s failed, ranking without it: %s", operation, exc)
        record_quiz_event("persistence_warnings")
        return []


async def build_leaderboard(store: MasteryStore, limit: int = 5) -> list[LeaderboardEntry]:
    """Top learners by average mastery across their topics.

    Learners with a profile but no mastery rows rank with 0.0. Ties keep
    first-seen order. A failed read of either table counts as empty.
    """
    profiles = await _read_or_empty("list_profiles", store.list_profiles)
    rows = await _read_or_empty("list_mastery_levels", store.list_mastery_levels)

    totals: dict[str, dict] = {}
    for profile in profiles:
        user_id = str(profile.get("user_id") or "")
        if user_id:
            totals[user_id] = {"username": profile.get("username"), "total": 0.0, "count": 0}
    for row in rows:
        user_id = str(row.get("user_id") or "")
        level = row.get("mastery_level")
        if not user_id or level is None:
            continue
        entry = totals.setdefault(user_id, {"username": None, "total": 0.0, "count": 0})
        entry["total"] += float(level)
        entry["count"] += 1

    leaders = [
        LeaderboardEntry(
            user_id=user_id,
            username=entry["username"],
            avg_mastery=round(entry["total"] / entry["count"], 4) if entry["count"] else 0.0,
            topics_count=entry["count"],
        )
        for user_id, entry in totals.items()
    ]
    leaders.sort(key=lambda item: item.avg_mastery, reverse=True)
    return leaders[: max(0, limit)]
