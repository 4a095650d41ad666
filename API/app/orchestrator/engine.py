from dataclasses import dataclass

from app.core.errors import InvalidTransition
from app.orchestrator.states import ALLOWED_TRANSITIONS, QuizState


@dataclass
class TransitionResult:
    current_state: QuizState
    next_state: QuizState
    step_index: int


class StateEngine:
    """Deterministic state engine: only the transitions in ALLOWED_TRANSITIONS are legal."""

    def __init__(self, transitions: dict[QuizState, frozenset[QuizState]] | None = None):
        self.transitions = transitions or ALLOWED_TRANSITIONS

    def next_transition(self, current_state: QuizState, target: QuizState, step_index: int) -> TransitionResult:
        if target not in self.transitions.get(current_state, frozenset()):
            raise InvalidTransition(f"cannot move from {current_state.value} to {target.value}")
        return TransitionResult(current_state=current_state, next_state=target, step_index=step_index + 1)
