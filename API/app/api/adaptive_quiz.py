from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from app.core.logging import DOMAIN_QUIZ, get_domain_logger
from app.schemas.quiz import (
    EvaluateAnswerRequest,
    EvaluateAnswerResponse,
    GenerateQuestionRequest,
    GenerateQuestionResponse,
)
from app.services.quiz import QuizService, get_quiz_service

router = APIRouter(tags=["adaptive-quiz"])
logger = get_domain_logger(__name__, DOMAIN_QUIZ)


def _parse(model: type[BaseModel], payload: dict):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


@router.post("/adaptive-quiz")
async def adaptive_quiz(
    payload: dict = Body(...),
    service: QuizService = Depends(get_quiz_service),
):
    action = payload.get("action")
    logger.info("Processing %s request for topic: %s", action, payload.get("topic"))

    if action == "generate_question":
        request = _parse(GenerateQuestionRequest, payload)
        generated = await service.generate_question(request.topic, request.mastery)
        return GenerateQuestionResponse(question=generated.question, level=generated.level).model_dump()

    if action == "evaluate_answer":
        request = _parse(EvaluateAnswerRequest, payload)
        outcome = await service.evaluate_answer(
            question=request.question,
            answer=request.answer,
            topic=request.topic,
            user_id=request.user_id,
            topic_id=request.topic_id,
            mastery=request.mastery,
        )
        return EvaluateAnswerResponse(evaluation=outcome.evaluation, new_mastery=outcome.new_mastery).model_dump(
            by_alias=True
        )

    raise HTTPException(status_code=400, detail="Invalid action")
