"""
Answer evaluator: asks the model to grade one answer.

Correctness comes from the model's explicit ``is_correct`` flag when it sends
one, otherwise from ``score >= threshold``. Whatever goes wrong, the learner
gets the fixed "Could not evaluate" result instead of an error.
"""
import math

from app.agents.base import BaseAgent
from app.core.errors import EvaluationFailure
from app.core.json_parser import parse_llm_json
from app.core.llm_provider import BaseLLMProvider, LLMProviderError
from app.core.logging import DOMAIN_QUIZ, get_domain_logger
from app.core.settings import settings
from app.schemas.quiz import NO_CORRECTION, Evaluation

logger = get_domain_logger(__name__, DOMAIN_QUIZ)

_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0"}


def build_evaluation_prompt(question: str, answer: str, topic: str) -> str:
    return (
        f"Question: {question}\n"
        f"Student Answer: {answer}\n"
        f"Topic: {topic}\n\n"
        "Evaluate this answer and give:\n"
        "1. A score between 0 and 1\n"
        "2. Brief feedback\n"
        f'3. Correction if needed, or "{NO_CORRECTION}" if the answer is correct\n'
        "4. Whether the answer is correct (true or false)\n\n"
        'Return only JSON like this: {"score": 0.8, "feedback": "Good job!", '
        f'"correction": "{NO_CORRECTION}", "is_correct": true}}'
    )


def _read_flag(value) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def evaluation_from_payload(payload: dict, threshold: float | None = None) -> Evaluation:
    """Turn a parsed model reply into an ``Evaluation``. Raises ``EvaluationFailure`` if unusable."""
    if not payload:
        raise EvaluationFailure("model response was not valid JSON")
    raw_score = payload.get("score")
    if raw_score is None or isinstance(raw_score, bool):
        raise EvaluationFailure("score missing from evaluation")
    try:
        score = float(raw_score)
    except (TypeError, ValueError) as exc:
        raise EvaluationFailure(f"score is not a number: {raw_score!r}") from exc
    if not math.isfinite(score):
        raise EvaluationFailure(f"score is not finite: {raw_score!r}")
    score = max(0.0, min(1.0, score))

    cutoff = settings.quiz_correct_threshold if threshold is None else threshold
    is_correct = _read_flag(payload.get("is_correct"))
    if is_correct is None:
        is_correct = score >= cutoff

    return Evaluation(
        score=score,
        feedback=str(payload.get("feedback") or "").strip(),
        correction=str(payload.get("correction") or NO_CORRECTION).strip(),
        is_correct=is_correct,
    )


class AnswerEvaluatorAgent(BaseAgent):
    role = "evaluator"
    temperature = 0.3
    max_tokens = 300

    def __init__(self, provider: BaseLLMProvider | None = None, threshold: float | None = None):
        super().__init__(provider)
        self.threshold = threshold

    async def _request_payload(self, question: str, answer: str, topic: str) -> dict:
        try:
            text, usage = await self.complete(build_evaluation_prompt(question, answer, topic))
        except LLMProviderError as exc:
            raise EvaluationFailure(str(exc)) from exc
        if not text:
            raise EvaluationFailure(usage.get("reason", "empty_response"))
        return parse_llm_json(text)

    async def evaluate(self, question: str, answer: str, topic: str) -> tuple[Evaluation, bool]:
        """Return the evaluation and whether it is the fallback."""
        try:
            payload = await self._request_payload(question, answer, topic)
            return evaluation_from_payload(payload, self.threshold), False
        except EvaluationFailure as exc:
            logger.warning("Evaluation fell back for topic=%s: %s", topic, exc)
            return Evaluation.fallback(), True
