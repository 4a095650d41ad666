from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.difficulty import mastery_label
from app.core.settings import settings
from app.schemas.content import NextTopicRequest, NextTopicResponse
from app.schemas.quiz import LeaderboardResponse, MasteryResponse
from app.services.leaderboard import build_leaderboard
from app.services.progress import LearnerProgress, recommend_next
from app.services.quiz import QuizService, get_quiz_service

router = APIRouter(tags=["learners"])


@router.get("/mastery/{user_id}/{topic_id}", response_model=MasteryResponse)
async def get_mastery(user_id: str, topic_id: str, service: QuizService = Depends(get_quiz_service)):
    level = await service.fetch_mastery(user_id, topic_id)
    return MasteryResponse(user_id=user_id, topic_id=topic_id, mastery_level=level, label=mastery_label(level))


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(default=None, ge=1, le=100),
    service: QuizService = Depends(get_quiz_service),
):
    leaders = await build_leaderboard(service.store, limit or settings.leaderboard_limit)
    return LeaderboardResponse(leaders=leaders)


@router.post("/recommendations/next-topic", response_model=NextTopicResponse, response_model_by_alias=True)
async def next_topic(payload: NextTopicRequest):
    progress = LearnerProgress(completed_topics=list(payload.completed_topics))
    recommendation = recommend_next(progress, payload.completed_topic_id)
    return NextTopicResponse(
        next_topic=recommendation.next_topic,
        next_topic_title=recommendation.next_topic_title,
        message=recommendation.message,
        new_badges=recommendation.new_badges,
    )
