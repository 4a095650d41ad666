"""
Video curator: asks the model for one educational YouTube video and falls back
to the curated catalogue whenever the answer is unusable.
"""
import random

from pydantic import ValidationError

from app.agents.base import BaseAgent
from app.core.json_parser import parse_llm_json
from app.core.llm_provider import BaseLLMProvider, LLMProviderError
from app.core.logging import DOMAIN_CONTENT, get_domain_logger
from app.data.video_catalog import extract_video_id, videos_for_level
from app.schemas.content import VideoRecommendation

logger = get_domain_logger(__name__, DOMAIN_CONTENT)

TRUSTED_CHANNELS = (
    "Khan Academy",
    "Math Antics",
    "Numberock",
    "MashUp Math",
    "Professor Leonard",
    "3Blue1Brown",
    "Crash Course",
    "TED-Ed",
    "Organic Chemistry Tutor",
    "Math & Learning Videos 4 Kids",
)

CURATOR_SYSTEM_PROMPT = (
    "You are an expert educational content curator specializing in finding high-quality YouTube "
    "educational videos. Always respond with valid JSON format containing real YouTube video IDs "
    "from educational channels only. Never suggest music videos or non-educational content."
)


def build_video_prompt(topic: str, level: str) -> str:
    channels = "\n".join(f"- {name}" for name in TRUSTED_CHANNELS)
    return (
        f'You are an educational content curator. Find 1 high-quality YouTube educational video about "{topic}" '
        f"suitable for {level} level learners.\n\n"
        f"Focus on these reputable educational channels:\n{channels}\n\n"
        f'For the topic "{topic}" at {level} level, provide exactly 1 educational video recommendation '
        "in this JSON format:\n"
        "{\n"
        '  "video": {\n'
        f'    "title": "Clear, descriptive title about {topic}",\n'
        '    "videoId": "real-youtube-video-id",\n'
        f'    "description": "Why this video is perfect for {level} learners studying {topic}",\n'
        '    "duration": "Approximate duration"\n'
        "  }\n"
        "}\n\n"
        f'Only return videos that are educational and related to "{topic}". '
        "Ensure the videoId is a real 11-character YouTube video ID."
    )


class VideoCuratorAgent(BaseAgent):
    role = "video_curator"
    temperature = 0.2
    max_tokens = 800
    system_prompt = CURATOR_SYSTEM_PROMPT

    def __init__(self, provider: BaseLLMProvider | None = None, rng: random.Random | None = None):
        super().__init__(provider)
        self._rng = rng or random.Random()

    def fallback(self, topic: str, level: str) -> VideoRecommendation:
        video_id = self._rng.choice(videos_for_level(topic, level))
        return VideoRecommendation(
            title=f"{topic} - Educational Tutorial ({level})",
            video_id=video_id,
            description=f"Learn about {topic} in this educational video tailored for {level} level learners",
            duration="10-15 minutes",
        )

    async def recommend(self, topic: str, level: str) -> tuple[VideoRecommendation, bool]:
        """Return a recommendation and whether it came from the fallback catalogue."""
        try:
            text, usage = await self.complete(build_video_prompt(topic, level))
        except LLMProviderError as exc:
            logger.warning("Video search failed for topic=%s: %s", topic, exc)
            return self.fallback(topic, level), True
        if not text:
            logger.info("Video search returned nothing for topic=%s (%s)", topic, usage.get("reason"))
            return self.fallback(topic, level), True

        video = parse_llm_json(text).get("video")
        if not isinstance(video, dict):
            logger.warning("No video found in model response for topic=%s", topic)
            return self.fallback(topic, level), True
        video = dict(video)
        video["videoId"] = extract_video_id(str(video.get("videoId") or ""))
        try:
            return VideoRecommendation.model_validate(video), False
        except ValidationError:
            logger.warning("Model suggested an unusable video for topic=%s", topic)
            return self.fallback(topic, level), True
