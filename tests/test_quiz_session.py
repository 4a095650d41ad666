import pytest

from app.core.difficulty import classify_difficulty
from app.core.errors import GenerationFailure, InvalidTransition
from app.orchestrator.session import QuizSession
from app.orchestrator.states import QuizState
from app.schemas.quiz import Evaluation, Question
from app.services.quiz import EvaluationOutcome, GeneratedQuestion


class FakeBackend:
    """Scripted quiz backend: fixed starting mastery, per-round mastery values and injected failures."""

    def __init__(self, *, start_mastery=0.0, mastery_after=None, fail_generations=(), evaluation_error=None):
        self.start_mastery = start_mastery
        self.mastery_after = list(mastery_after or [])
        self.fail_generations = set(fail_generations)
        self.evaluation_error = evaluation_error
        self.generate_calls: list[tuple[str, float | None]] = []
        self.evaluate_calls: list[dict] = []

    async def fetch_mastery(self, user_id, topic_id):
        return self.start_mastery

    async def generate_question(self, topic, mastery):
        self.generate_calls.append((topic, mastery))
        if len(self.generate_calls) in self.fail_generations:
            raise GenerationFailure("Question generation failed: groq returned HTTP 500")
        number = len(self.generate_calls)
        question = Question(
            question=f"Question {number}?",
            options=["a", "b", "c", "d"],
            correct_answer="a",
        )
        return GeneratedQuestion(question=question, level=classify_difficulty(mastery))

    async def evaluate_answer(self, *, question, answer, topic, user_id, topic_id, mastery=None):
        self.evaluate_calls.append(
            {"question": question, "answer": answer, "topic": topic, "user_id": user_id, "mastery": mastery}
        )
        if self.evaluation_error is not None:
            raise self.evaluation_error
        correct = answer == "a"
        new_mastery = self.mastery_after.pop(0) if self.mastery_after else mastery
        evaluation = Evaluation(
            score=1.0 if correct else 0.0,
            feedback="Right" if correct else "Wrong",
            correction="None needed" if correct else "It is a",
            is_correct=correct,
        )
        return EvaluationOutcome(evaluation=evaluation, new_mastery=new_mastery)


def _session(backend, **kwargs):
    return QuizSession(backend, user_id="u1", topic_id="t1", topic_title="Fractions", **kwargs)


async def _play_round(session, answer="a"):
    await session.submit_answer(answer)
    return await session.advance()


@pytest.mark.asyncio
async def test_session_runs_exactly_five_rounds_and_reports_final_mastery():
    finished = []
    backend = FakeBackend(mastery_after=[0.0, 0.2, 0.4, 0.6, 0.8])
    session = _session(backend, on_complete=finished.append)

    question = await session.start()
    assert question.question == "Question 1?"
    for _ in range(4):
        assert await _play_round(session) is not None
    assert await _play_round(session) is None

    assert session.is_complete
    assert session.rounds_completed == 5
    assert finished == [0.8]
    assert len(backend.evaluate_calls) == 5


@pytest.mark.asyncio
async def test_difficulty_follows_post_round_mastery():
    backend = FakeBackend(start_mastery=0.1, mastery_after=[0.35, 0.72, 0.5, 0.2, 0.2])
    session = _session(backend)

    await session.start()
    levels = [session.current_level]
    while True:
        nxt = await _play_round(session)
        if nxt is None:
            break
        levels.append(session.current_level)

    assert levels == ["easy", "intermediate", "hard", "intermediate", "easy"]
    assert [mastery for _topic, mastery in backend.generate_calls] == [0.1, 0.35, 0.72, 0.5, 0.2]
    assert [r.mastery_after for r in session.rounds] == [0.35, 0.72, 0.5, 0.2, 0.2]


@pytest.mark.asyncio
async def test_generation_failure_does_not_count_as_a_round():
    finished = []
    backend = FakeBackend(mastery_after=[0.1, 0.2, 0.3, 0.4, 0.5], fail_generations={3})
    session = _session(backend, on_complete=finished.append)

    await session.start()
    await _play_round(session)
    await session.submit_answer("a")
    with pytest.raises(GenerationFailure):
        await session.advance()

    assert session.state == QuizState.AWAITING_QUESTION
    assert session.rounds_completed == 2
    assert "HTTP 500" in session.last_error

    await session.request_question()
    assert session.last_error is None
    while await _play_round(session) is not None:
        pass

    assert session.rounds_completed == 5
    assert len(backend.generate_calls) == 6
    assert finished == [0.5]


@pytest.mark.asyncio
async def test_failure_on_first_question_can_be_retried():
    backend = FakeBackend(fail_generations={1})
    session = _session(backend)

    with pytest.raises(GenerationFailure):
        await session.start()
    assert session.rounds_completed == 0

    question = await session.request_question()
    assert question.question == "Question 2?"
    assert session.state == QuizState.QUESTION_DISPLAYED


@pytest.mark.asyncio
async def test_answer_must_be_one_of_the_options():
    session = _session(FakeBackend())
    await session.start()
    with pytest.raises(ValueError):
        await session.submit_answer("e")
    assert session.state == QuizState.QUESTION_DISPLAYED
    assert session.rounds_completed == 0


@pytest.mark.asyncio
async def test_operations_in_wrong_state_raise_invalid_transition():
    session = _session(FakeBackend())
    with pytest.raises(InvalidTransition):
        await session.submit_answer("a")
    with pytest.raises(InvalidTransition):
        await session.advance()

    await session.start()
    with pytest.raises(InvalidTransition):
        await session.start()
    with pytest.raises(InvalidTransition):
        await session.request_question()


@pytest.mark.asyncio
async def test_backend_evaluation_error_becomes_fallback_and_keeps_mastery():
    backend = FakeBackend(start_mastery=0.45, evaluation_error=RuntimeError("connection reset"))
    session = _session(backend)

    await session.start()
    evaluation = await session.submit_answer("a")

    assert evaluation == Evaluation.fallback()
    assert session.mastery == 0.45
    assert session.rounds_completed == 1
    assert session.state == QuizState.RESULT_DISPLAYED


@pytest.mark.asyncio
async def test_async_completion_callback_is_awaited():
    seen = []

    async def on_complete(mastery):
        seen.append(mastery)

    session = _session(FakeBackend(mastery_after=[0.9]), on_complete=on_complete, max_rounds=1)
    await session.start()
    assert await _play_round(session) is None
    assert seen == [0.9]


@pytest.mark.asyncio
async def test_wrong_answer_is_recorded_with_its_evaluation():
    session = _session(FakeBackend(mastery_after=[0.0]), max_rounds=1)
    await session.start()
    evaluation = await session.submit_answer("c")

    assert evaluation.is_correct is False
    assert session.rounds[0].answer == "c"
    assert session.rounds[0].evaluation.correction == "It is a"
    assert session.last_evaluation == evaluation
