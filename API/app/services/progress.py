"""Next-topic recommendation and badges, computed from progress the caller passes in."""
from __future__ import annotations

from dataclasses import dataclass, field

from app.data.topic_progression import BADGE_EVERY, DEFAULT_NEXT_TOPIC, TOPIC_PROGRESSION, TOPIC_TITLES


@dataclass
class LearnerProgress:
    completed_topics: list[str] = field(default_factory=list)

    def complete(self, topic_id: str) -> list[str]:
        """Record a finished topic and return the badges it earned."""
        if topic_id in self.completed_topics:
            return []
        self.completed_topics.append(topic_id)
        total = len(self.completed_topics)
        if total and total % BADGE_EVERY == 0:
            return [f"Level {total // BADGE_EVERY} Master"]
        return []


@dataclass
class Recommendation:
    next_topic: str
    next_topic_title: str
    message: str
    new_badges: list[str]


def next_topic_for(completed_topic_id: str) -> str:
    return TOPIC_PROGRESSION.get(completed_topic_id, DEFAULT_NEXT_TOPIC)


def recommendation_message(next_topic: str, completed_count: int) -> str:
    title = TOPIC_TITLES.get(next_topic, "Next Topic")
    if completed_count <= 1:
        return f"Great start! {title} is the perfect next step to build on your foundation!"
    if completed_count <= 3:
        return f"You're making excellent progress! {title} will challenge you in the best way!"
    return f"You're becoming a math expert! {title} will showcase your growing skills!"


def recommend_next(progress: LearnerProgress, completed_topic_id: str) -> Recommendation:
    badges = progress.complete(completed_topic_id)
    next_topic = next_topic_for(completed_topic_id)
    return Recommendation(
        next_topic=next_topic,
        next_topic_title=TOPIC_TITLES.get(next_topic, "Next Topic"),
        message=recommendation_message(next_topic, len(progress.completed_topics)),
        new_badges=badges,
    )
