"""SM-2 spaced repetition algorithm."""
from dataclasses import replace
from datetime import datetime, timedelta

from flashcard_srs.clock import ensure_utc
from flashcard_srs.errors import InvalidGradeError
from flashcard_srs.models import MAX_GRADE, MIN_EASE_FACTOR, MIN_GRADE, PASSING_GRADE, ReviewState


def is_passing_grade(grade: int) -> bool:
    return grade >= PASSING_GRADE


def validate_grade(grade) -> int:
    """Return grade unchanged if it is an int in [0, 5], else raise InvalidGradeError."""
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidGradeError(grade)
    if not MIN_GRADE <= grade <= MAX_GRADE:
        raise InvalidGradeError(grade)
    return grade


def sm2_update(grade: int, state: ReviewState, now: datetime) -> ReviewState:
    """Calculate the next review state using SM-2.

    Args:
        grade: Rating 0-5 (0=complete blackout, 5=perfect), already validated
        state: Current review state of the card (left untouched)
        now: Time of the review, timezone-aware

    Returns:
        A new ReviewState with updated repetitions, interval, ease factor
        and next review time.
    """
    now = ensure_utc(now)

    if not is_passing_grade(grade):
        # Lapse: restart the streak, keep the ease factor
        return replace(
            state,
            repetitions=0,
            interval_days=1,
            next_review_at=now + timedelta(days=1),
        )

    repetitions = state.repetitions + 1
    if repetitions == 1:
        interval = 1
    elif repetitions == 2:
        interval = 6
    else:
        # Uses the ease factor from before this review; round() is half-to-even
        interval = round(state.interval_days * state.ease_factor)

    ease_factor = state.ease_factor + (0.1 - (5 - grade) * (0.08 + (5 - grade) * 0.02))
    ease_factor = max(MIN_EASE_FACTOR, ease_factor)

    return ReviewState(
        repetitions=repetitions,
        ease_factor=ease_factor,
        interval_days=interval,
        next_review_at=now + timedelta(days=interval),
    )
