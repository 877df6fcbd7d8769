"""Due-card selection."""
from datetime import datetime
from typing import Iterable, Optional

from flashcard_srs.clock import ensure_utc
from flashcard_srs.models import CardReviewState, ReviewState


def is_due(state: ReviewState, as_of: datetime) -> bool:
    return state.next_review_at <= ensure_utc(as_of)


def select_due(
    cards: Iterable[CardReviewState],
    as_of: datetime,
    limit: Optional[int] = None,
) -> list[str]:
    """Return tokens of cards due at as_of, earliest due first.

    Cards with the same next_review_at keep their input order.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    as_of = ensure_utc(as_of)
    due = [
        (token, state)
        for token, state in (_unpack(card) for card in cards)
        if state.next_review_at <= as_of
    ]
    due.sort(key=lambda item: item[1].next_review_at)
    tokens = [token for token, _ in due]
    return tokens if limit is None else tokens[:limit]


def _unpack(card) -> tuple[str, ReviewState]:
    if isinstance(card, CardReviewState):
        return card.card_token, card.state
    token, state = card
    return token, state
