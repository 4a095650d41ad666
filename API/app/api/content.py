from __future__ import annotations

import random

from fastapi import APIRouter, Depends

from app.agents.content import ContentGenerationAgent
from app.agents.video_curator import VideoCuratorAgent
from app.core.app_metrics import record_quiz_event
from app.schemas.content import (
    PdfContentRequest,
    PdfContentResponse,
    VideoSearchRequest,
    VideoSearchResponse,
)

router = APIRouter(tags=["content"])

_content_agent: ContentGenerationAgent | None = None
_video_agent: VideoCuratorAgent | None = None


def get_content_agent() -> ContentGenerationAgent:
    global _content_agent
    if _content_agent is None:
        _content_agent = ContentGenerationAgent()
    return _content_agent


def get_video_agent() -> VideoCuratorAgent:
    global _video_agent
    if _video_agent is None:
        _video_agent = VideoCuratorAgent(rng=random.Random())
    return _video_agent


@router.post("/generate-pdf-content", response_model=PdfContentResponse)
async def generate_pdf_content(
    payload: PdfContentRequest,
    agent: ContentGenerationAgent = Depends(get_content_agent),
):
    content = await agent.generate(payload.topic, payload.content_level, payload.preferences)
    record_quiz_event("content_generated")
    return PdfContentResponse(content=content)


@router.post("/search-youtube-videos", response_model=VideoSearchResponse, response_model_by_alias=True)
async def search_youtube_videos(
    payload: VideoSearchRequest,
    agent: VideoCuratorAgent = Depends(get_video_agent),
):
    recommendation, fallback = await agent.recommend(payload.topic, payload.level)
    if fallback:
        record_quiz_event("video_fallbacks")
    return VideoSearchResponse(recommendation=recommendation, fallback=fallback)
