"""Review submission and due-card queries on top of a ReviewStore."""
import logging
from datetime import datetime
from typing import Optional

from flashcard_srs.clock import Clock, SystemClock
from flashcard_srs.due import select_due
from flashcard_srs.errors import CardNotFoundError, InvalidGradeError
from flashcard_srs.models import ReviewState
from flashcard_srs.sm2 import sm2_update, validate_grade
from flashcard_srs.store import ReviewStore

logger = logging.getLogger(__name__)


class ReviewWorkflow:
    """Load, schedule, save.

    This is the only code path that changes a card's ReviewState. Errors
    from the store are not retried.
    """

    def __init__(self, store: ReviewStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or SystemClock()

    def submit_review(self, card_token: str, grade: int) -> ReviewState:
        try:
            state = self.store.load_review_state(card_token)
        except CardNotFoundError:
            logger.warning("Review submitted for unknown card %s", card_token)
            raise

        try:
            validate_grade(grade)
        except InvalidGradeError:
            logger.warning("Rejected grade %r for card %s", grade, card_token)
            raise

        now = self.clock.now()
        new_state = sm2_update(grade, state, now)

        self.store.save_review_state(card_token, new_state, updated_at=now, grade=grade)
        logger.info(
            "Card %s graded %d: repetitions=%d interval=%dd ease=%.2f next=%s",
            card_token, grade, new_state.repetitions, new_state.interval_days,
            new_state.ease_factor, new_state.next_review_at.isoformat(),
        )
        return new_state

    def get_due_cards(
        self,
        deck_token: str,
        as_of: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[str]:
        """Tokens of the deck's cards due at as_of (default: now), earliest first."""
        if as_of is None:
            as_of = self.clock.now()
        cards = self.store.list_review_states_for_deck(deck_token)
        due = select_due(cards, as_of, limit=limit)
        logger.debug("Deck %s: %d of %d cards due at %s", deck_token, len(due), len(cards), as_of)
        return due
