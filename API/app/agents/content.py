from app.agents.base import BaseAgent
from app.core.errors import GenerationFailure
from app.core.llm_provider import LLMProviderError
from app.core.logging import DOMAIN_CONTENT, get_domain_logger
from app.schemas.content import DEFAULT_PREFERENCES

logger = get_domain_logger(__name__, DOMAIN_CONTENT)


def build_content_prompt(topic: str, content_level: str, preferences: str) -> str:
    return (
        f'Generate comprehensive educational content for the topic: "{topic}"\n\n'
        f"Content Level: {content_level}\n"
        f"User Preferences: {preferences}\n\n"
        "Please create detailed, well-structured content that includes:\n"
        f"- Clear explanations appropriate for {content_level} level\n"
        "- Real-world examples and applications\n"
        "- Key concepts and definitions\n"
        "- Practice exercises or examples\n"
        "- Summary points\n\n"
        "Format the content with proper headings, subheadings, and bullet points.\n"
        "Make it comprehensive enough for a PDF document (minimum 1000 words).\n"
        f"Tailor the complexity and examples to match the {content_level} level "
        f"and incorporate the user preferences: {preferences}"
    )


class ContentGenerationAgent(BaseAgent):
    """Long-form study notes for a topic, returned as free text."""

    role = "content_generator"
    temperature = 0.7
    max_tokens = 2000

    async def generate(self, topic: str, content_level: str, preferences: str | None = None) -> str:
        prefs = (preferences or "").strip() or DEFAULT_PREFERENCES
        logger.info("Generating content for topic=%s level=%s", topic, content_level)
        try:
            text, usage = await self.complete(build_content_prompt(topic, content_level, prefs))
        except LLMProviderError as exc:
            raise GenerationFailure(f"Content generation failed: {exc}") from exc
        content = (text or "").strip()
        if not content:
            raise GenerationFailure(f"Content generation failed: {usage.get('reason', 'empty_response')}")
        return content
