"""
Question generator: one multiple-choice question per call, at a given difficulty.

The model is asked for strict JSON but often wraps it in prose, so only the span
between the first ``{`` and the last ``}`` is parsed. Any failure surfaces as
``GenerationFailure``; retrying is the caller's decision.
"""
from pydantic import ValidationError

from app.agents.base import BaseAgent
from app.core.difficulty import LEVELS
from app.core.errors import GenerationFailure
from app.core.json_parser import parse_llm_json
from app.core.llm_provider import LLMProviderError
from app.core.logging import DOMAIN_QUIZ, get_domain_logger
from app.schemas.quiz import Question

logger = get_domain_logger(__name__, DOMAIN_QUIZ)


def build_question_prompt(topic: str, level: str) -> str:
    return (
        f"Generate a {level} difficulty multiple-choice question on the topic: {topic}.\n"
        "The question should have exactly 4 options, with one correct answer.\n"
        "The correct_answer must be the exact text of one of the options.\n"
        "Return your response in JSON format like this:\n\n"
        "{\n"
        '    "question": "<question text>",\n'
        '    "options": ["option1", "option2", "option3", "option4"],\n'
        '    "correct_answer": "<correct option>"\n'
        "}"
    )


class QuestionGeneratorAgent(BaseAgent):
    role = "question_generator"
    temperature = 1.0
    max_tokens = 500

    async def generate(self, topic: str, level: str) -> Question:
        topic = (topic or "").strip()
        if not topic:
            raise GenerationFailure("topic is required")
        if level not in LEVELS:
            raise GenerationFailure(f"unknown difficulty level: {level}")

        try:
            text, usage = await self.complete(build_question_prompt(topic, level))
        except LLMProviderError as exc:
            raise GenerationFailure(f"Question generation failed: {exc}") from exc
        if not text:
            reason = usage.get("reason", "empty_response")
            raise GenerationFailure(f"Question generation failed: {reason}")

        payload = parse_llm_json(text)
        if not payload:
            logger.warning("No JSON object in question response for topic=%s", topic)
            raise GenerationFailure("Question generation failed: model response was not valid JSON")
        try:
            question = Question.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Invalid question payload for topic=%s: %s", topic, exc.errors()[0].get("msg"))
            raise GenerationFailure("Question generation failed: model returned an invalid question") from exc

        logger.info("Generated %s question for topic=%s", level, topic)
        return question
