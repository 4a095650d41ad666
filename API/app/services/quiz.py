"""
Adaptive quiz service: question generation and answer evaluation with their
side effects on the mastery store.

Store calls go through ``_persist`` and come back as ``PersistenceResult``
values. A failed store call is logged and counted, never raised, and the
previous mastery stays in effect.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from app.agents.answer_evaluator import AnswerEvaluatorAgent
from app.agents.question_generator import QuestionGeneratorAgent
from app.core.app_metrics import record_quiz_event
from app.core.difficulty import classify_difficulty
from app.core.errors import GenerationFailure, PersistenceResult, PersistenceWarning
from app.core.logging import DOMAIN_QUIZ, get_domain_logger
from app.memory.mastery_store import MasteryStore, build_mastery_store
from app.schemas.quiz import Evaluation, Question

logger = get_domain_logger(__name__, DOMAIN_QUIZ)


@dataclass
class GeneratedQuestion:
    question: Question
    level: str


@dataclass
class EvaluationOutcome:
    evaluation: Evaluation
    new_mastery: float | None
    fallback: bool = False
    warnings: list[PersistenceWarning] = field(default_factory=list)


class QuizService:
    def __init__(
        self,
        store: MasteryStore,
        question_agent: QuestionGeneratorAgent | None = None,
        evaluator: AnswerEvaluatorAgent | None = None,
    ):
        self.store = store
        self.question_agent = question_agent or QuestionGeneratorAgent()
        self.evaluator = evaluator or AnswerEvaluatorAgent()

    async def _persist(self, operation: str, call) -> PersistenceResult:
        try:
            return PersistenceResult.success(await call())
        except Exception as exc:
            logger.warning("%s failed: %s", operation, exc)
            record_quiz_event("persistence_warnings")
            return PersistenceResult.failure(operation, str(exc))

    async def fetch_mastery(self, user_id: str, topic_id: str) -> float:
        result = await self._persist("get_mastery", lambda: self.store.get_mastery(user_id, topic_id))
        if not result.ok or result.value is None:
            return 0.0
        return float(result.value)

    async def generate_question(self, topic: str, mastery: float | None) -> GeneratedQuestion:
        level = classify_difficulty(mastery)
        try:
            question = await self.question_agent.generate(topic, level)
        except GenerationFailure:
            record_quiz_event("generation_failures")
            raise
        record_quiz_event("questions_generated")
        logger.info("Generated %s question for mastery %s", level, mastery)
        return GeneratedQuestion(question=question, level=level)

    async def evaluate_answer(
        self,
        *,
        question: str,
        answer: str,
        topic: str,
        user_id: str,
        topic_id: str,
        mastery: float | None = None,
    ) -> EvaluationOutcome:
        evaluation, fallback = await self.evaluator.evaluate(question, answer, topic)
        record_quiz_event("evaluations")
        if fallback:
            record_quiz_event("evaluation_fallbacks")

        warnings: list[PersistenceWarning] = []
        new_mastery = mastery
        update = await self._persist(
            "update_mastery_level",
            lambda: self.store.update_mastery_level(user_id, topic_id, evaluation.is_correct),
        )
        if update.ok and update.value is not None:
            new_mastery = float(update.value)
        elif update.warning is not None:
            warnings.append(update.warning)

        if evaluation.is_correct:
            streak = await self._persist("update_user_streak", lambda: self.store.update_user_streak(user_id))
            if streak.warning is not None:
                warnings.append(streak.warning)

        return EvaluationOutcome(evaluation=evaluation, new_mastery=new_mastery, fallback=fallback, warnings=warnings)


_quiz_service: QuizService | None = None


def get_quiz_service() -> QuizService:
    global _quiz_service
    if _quiz_service is None:
        _quiz_service = QuizService(store=build_mastery_store())
    return _quiz_service
