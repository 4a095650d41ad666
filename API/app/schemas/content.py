from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PREFERENCES = "No specific preferences provided"


class PdfContentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str = Field(min_length=1)
    content_level: str = Field(alias="contentLevel", min_length=1)
    preferences: str | None = None


class PdfContentResponse(BaseModel):
    success: bool = True
    content: str


class VideoSearchRequest(BaseModel):
    topic: str = Field(default="Mathematics", min_length=1)
    level: str = Field(default="beginner", min_length=1)


class VideoRecommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    video_id: str = Field(alias="videoId", pattern=r"^[A-Za-z0-9_-]{11}$")
    description: str = ""
    duration: str = ""


class VideoSearchResponse(BaseModel):
    success: bool = True
    recommendation: VideoRecommendation
    fallback: bool = False


class NextTopicRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    completed_topic_id: str = Field(alias="completedTopicId", min_length=1)
    completed_topics: list[str] = Field(default_factory=list, alias="completedTopics")


class NextTopicResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    next_topic: str = Field(alias="nextTopic")
    next_topic_title: str = Field(alias="nextTopicTitle")
    message: str
    new_badges: list[str] = Field(default_factory=list, alias="newBadges")
