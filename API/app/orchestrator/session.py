"""
Quiz session loop.

One learner works through ``max_rounds`` rounds for one topic. Each round asks
for a question at the difficulty of the current mastery, takes exactly one of
the four options as the answer, and records the evaluation together with the
mastery the backend reports afterwards. The next round's difficulty is always
computed from that post-round mastery.

A failed generation leaves the session waiting for a question; the caller
decides when to call ``request_question`` again. Failed generations never count
as rounds.
"""
from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from app.core.difficulty import classify_difficulty
from app.core.errors import GenerationFailure, InvalidTransition
from app.core.logging import DOMAIN_QUIZ, get_domain_logger
from app.core.settings import settings
from app.orchestrator.engine import StateEngine
from app.orchestrator.states import QuizState
from app.schemas.quiz import Evaluation, Question
from app.services.quiz import EvaluationOutcome, GeneratedQuestion

logger = get_domain_logger(__name__, DOMAIN_QUIZ)

CompletionCallback = Callable[[float], Awaitable[None] | None]


class QuizBackend(Protocol):
    async def fetch_mastery(self, user_id: str, topic_id: str) -> float: ...

    async def generate_question(self, topic: str, mastery: float | None) -> GeneratedQuestion: ...

    async def evaluate_answer(
        self,
        *,
        question: str,
        answer: str,
        topic: str,
        user_id: str,
        topic_id: str,
        mastery: float | None = None,
    ) -> EvaluationOutcome: ...


@dataclass
class QuizRound:
    number: int
    level: str
    question: Question
    answer: str
    evaluation: Evaluation
    mastery_after: float


class QuizSession:
    def __init__(
        self,
        backend: QuizBackend,
        *,
        user_id: str,
        topic_id: str,
        topic_title: str,
        on_complete: CompletionCallback | None = None,
        max_rounds: int | None = None,
    ):
        self.backend = backend
        self.user_id = user_id
        self.topic_id = topic_id
        self.topic_title = topic_title
        self.on_complete = on_complete
        self.max_rounds = max_rounds or settings.quiz_rounds

        self.state = QuizState.AWAITING_QUESTION
        self.step_index = 0
        self.mastery = 0.0
        self.rounds: list[QuizRound] = []
        self.current_question: Question | None = None
        self.current_level: str | None = None
        self.last_evaluation: Evaluation | None = None
        self.last_error: str | None = None
        self._engine = StateEngine()
        self._started = False

    @property
    def rounds_completed(self) -> int:
        return len(self.rounds)

    @property
    def is_complete(self) -> bool:
        return self.state == QuizState.SESSION_COMPLETE

    @property
    def difficulty(self) -> str:
        return classify_difficulty(self.mastery)

    def _require(self, expected: QuizState, operation: str) -> None:
        if self.state != expected:
            raise InvalidTransition(f"{operation} is not allowed in state {self.state.value}")

    def _move(self, target: QuizState, event: str) -> None:
        result = self._engine.next_transition(self.state, target, self.step_index)
        logger.info(
            json.dumps(
                {
                    "type": "state_transition",
                    "user_id": self.user_id,
                    "topic_id": self.topic_id,
                    "step_index": result.step_index,
                    "from_state": result.current_state.value,
                    "to_state": result.next_state.value,
                    "event": event,
                    "rounds_completed": self.rounds_completed,
                    "mastery": self.mastery,
                }
            )
        )
        self.state = result.next_state
        self.step_index = result.step_index

    async def start(self) -> Question:
        """Read the learner's mastery once and ask for the first question."""
        if self._started:
            raise InvalidTransition("session already started")
        self._started = True
        self.mastery = float(await self.backend.fetch_mastery(self.user_id, self.topic_id) or 0.0)
        return await self.request_question()

    async def request_question(self) -> Question:
        self._require(QuizState.AWAITING_QUESTION, "request_question")
        try:
            generated = await self.backend.generate_question(self.topic_title, self.mastery)
        except GenerationFailure as exc:
            self.last_error = str(exc) or "Failed to generate question. Please try again."
            logger.warning("Question generation failed for topic=%s: %s", self.topic_id, self.last_error)
            raise
        self.last_error = None
        self.current_question = generated.question
        self.current_level = generated.level
        self._move(QuizState.QUESTION_DISPLAYED, "question_generated")
        return generated.question

    async def submit_answer(self, answer: str) -> Evaluation:
        self._require(QuizState.QUESTION_DISPLAYED, "submit_answer")
        question = self.current_question
        if question is None or answer not in question.options:
            raise ValueError("answer must be exactly one of the displayed options")

        self._move(QuizState.AWAITING_EVALUATION, "answer_submitted")
        try:
            outcome = await self.backend.evaluate_answer(
                question=question.question,
                answer=answer,
                topic=self.topic_title,
                user_id=self.user_id,
                topic_id=self.topic_id,
                mastery=self.mastery,
            )
        except Exception as exc:
            # The learner is never blocked on evaluation; keep the local mastery.
            logger.warning("Evaluation request failed for topic=%s: %s", self.topic_id, exc)
            outcome = EvaluationOutcome(evaluation=Evaluation.fallback(), new_mastery=None, fallback=True)

        if outcome.new_mastery is not None:
            self.mastery = float(outcome.new_mastery)
        self.last_evaluation = outcome.evaluation
        self.rounds.append(
            QuizRound(
                number=self.rounds_completed + 1,
                level=self.current_level or classify_difficulty(self.mastery),
                question=question,
                answer=answer,
                evaluation=outcome.evaluation,
                mastery_after=self.mastery,
            )
        )
        self._move(QuizState.RESULT_DISPLAYED, "answer_evaluated")
        return outcome.evaluation

    async def advance(self) -> Question | None:
        """Finish the session after the last round, otherwise fetch the next question."""
        self._require(QuizState.RESULT_DISPLAYED, "advance")
        if self.rounds_completed >= self.max_rounds:
            self._move(QuizState.SESSION_COMPLETE, "session_completed")
            await self._notify_complete()
            return None
        self.current_question = None
        self.current_level = None
        self.last_evaluation = None
        self._move(QuizState.AWAITING_QUESTION, "next_round")
        return await self.request_question()

    async def _notify_complete(self) -> None:
        if self.on_complete is None:
            return
        result = self.on_complete(self.mastery)
        if inspect.isawaitable(result):
            await result
