from enum import Enum


class QuizState(str, Enum):
    AWAITING_QUESTION = "awaiting_question"
    QUESTION_DISPLAYED = "question_displayed"
    AWAITING_EVALUATION = "awaiting_evaluation"
    RESULT_DISPLAYED = "result_displayed"
    SESSION_COMPLETE = "session_complete"


ALLOWED_TRANSITIONS: dict[QuizState, frozenset[QuizState]] = {
    QuizState.AWAITING_QUESTION: frozenset({QuizState.QUESTION_DISPLAYED}),
    QuizState.QUESTION_DISPLAYED: frozenset({QuizState.AWAITING_EVALUATION}),
    QuizState.AWAITING_EVALUATION: frozenset({QuizState.RESULT_DISPLAYED}),
    QuizState.RESULT_DISPLAYED: frozenset({QuizState.AWAITING_QUESTION, QuizState.SESSION_COMPLETE}),
    QuizState.SESSION_COMPLETE: frozenset(),
}
