"""Mastery score -> question difficulty and UI label."""
import math

EASY = "easy"
INTERMEDIATE = "intermediate"
HARD = "hard"
LEVELS = (EASY, INTERMEDIATE, HARD)

INTERMEDIATE_THRESHOLD = 0.3
HARD_THRESHOLD = 0.7

_LABELS = {EASY: "Beginner", INTERMEDIATE: "Intermediate", HARD: "Advanced"}


def _as_score(mastery) -> float | None:
    if isinstance(mastery, bool):
        return None
    try:
        value = float(mastery)
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return value


def classify_difficulty(mastery) -> str:
    """Bucket a mastery score. Boundaries belong to the higher bucket.

    Missing, NaN, non-numeric and negative scores are "easy"; anything at or
    above 0.7 (including values above 1) is "hard".
    """
    value = _as_score(mastery)
    if value is None or value < INTERMEDIATE_THRESHOLD:
        return EASY
    if value < HARD_THRESHOLD:
        return INTERMEDIATE
    return HARD


def mastery_label(mastery) -> str:
    return _LABELS[classify_difficulty(mastery)]
