"""HTTP backend for ``QuizSession``: talks to a running NeoLearn API."""
from __future__ import annotations

import httpx
from pydantic import ValidationError

from app.core.errors import GenerationFailure
from app.core.logging import DOMAIN_QUIZ, get_domain_logger
from app.core.settings import settings
from app.schemas.quiz import Evaluation, Question
from app.services.quiz import EvaluationOutcome, GeneratedQuestion

logger = get_domain_logger(__name__, DOMAIN_QUIZ)


class HttpQuizBackend:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ):
        # Not below the server worst case for one evaluation (LLM plus two store calls).
        floor = settings.quiz_client_timeout_seconds
        self.timeout = floor if timeout is None else max(timeout, floor)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=self.timeout, headers=headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpQuizBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def fetch_mastery(self, user_id: str, topic_id: str) -> float:
        try:
            response = await self._client.get(f"/mastery/{user_id}/{topic_id}")
            response.raise_for_status()
            return float(response.json().get("mastery_level") or 0.0)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not fetch mastery for topic=%s, starting at 0.0: %s", topic_id, exc)
            return 0.0

    async def generate_question(self, topic: str, mastery: float | None) -> GeneratedQuestion:
        try:
            response = await self._client.post(
                "/adaptive-quiz",
                json={"action": "generate_question", "topic": topic, "mastery": mastery},
            )
            body = response.json()
        except httpx.HTTPError as exc:
            raise GenerationFailure(f"Question service unreachable: {exc}") from exc
        except ValueError as exc:
            raise GenerationFailure(f"Question service sent HTTP {response.status_code} with no JSON body") from exc

        if response.status_code != 200 or not body.get("success"):
            raise GenerationFailure(str(body.get("error") or f"Question service returned HTTP {response.status_code}"))
        try:
            return GeneratedQuestion(question=Question.model_validate(body.get("question")), level=str(body.get("level")))
        except ValidationError as exc:
            raise GenerationFailure("Question service returned an invalid question") from exc

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
        payload = {
            "action": "evaluate_answer",
            "question": question,
            "answer": answer,
            "topic": topic,
            "userId": user_id,
            "topicId": topic_id,
            "mastery": mastery,
        }
        try:
            response = await self._client.post("/adaptive-quiz", json=payload)
            response.raise_for_status()
            body = response.json()
            if not body.get("success"):
                raise ValueError(body.get("error") or "evaluation unsuccessful")
            evaluation = Evaluation.model_validate(body.get("evaluation"))
        except (httpx.HTTPError, ValueError) as exc:
            # ValidationError is a ValueError subclass.
            logger.warning("Evaluation request failed for topic=%s: %s", topic_id, exc)
            return EvaluationOutcome(evaluation=Evaluation.fallback(), new_mastery=None, fallback=True)

        raw_mastery = body.get("newMastery")
        try:
            new_mastery = None if raw_mastery is None else float(raw_mastery)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric newMastery=%r for topic=%s", raw_mastery, topic_id)
            new_mastery = None
        return EvaluationOutcome(
            evaluation=evaluation,
            new_mastery=new_mastery,
            fallback=evaluation == Evaluation.fallback(),
        )
