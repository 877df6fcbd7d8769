"""Data classes for the review scheduling model."""
from dataclasses import dataclass
from datetime import datetime

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3

MIN_GRADE = 0
MAX_GRADE = 5
PASSING_GRADE = 3


@dataclass(frozen=True)
class ReviewState:
    """Memory state of a single flashcard.

    next_review_at is a timezone-aware UTC datetime.
    """
    repetitions: int
    ease_factor: float
    interval_days: int
    next_review_at: datetime


@dataclass(frozen=True)
class CardReviewState:
    card_token: str
    state: ReviewState


def new_review_state(created_at: datetime) -> ReviewState:
    """State of a freshly added card: never reviewed, due immediately."""
    return ReviewState(
        repetitions=0,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval_days=0,
        next_review_at=created_at,
    )
