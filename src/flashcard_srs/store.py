"""Persistence contract used by the review workflow, plus an in-memory store."""
from datetime import datetime
from typing import Optional, Protocol

from flashcard_srs.clock import ensure_utc
from flashcard_srs.errors import CardNotFoundError, DeckNotFoundError, PersistenceError
from flashcard_srs.models import CardReviewState, ReviewState, new_review_state


class ReviewStore(Protocol):
    def load_review_state(self, card_token: str) -> ReviewState:
        """Return the card's state or raise CardNotFoundError."""
        ...

    def save_review_state(
        self,
        card_token: str,
        state: ReviewState,
        updated_at: datetime,
        grade: Optional[int] = None,
    ) -> None:
        """Persist state, raising CardNotFoundError or PersistenceError on failure."""
        ...

    def list_review_states_for_deck(self, deck_token: str) -> list[CardReviewState]:
        """Return the deck's cards in insertion order or raise DeckNotFoundError."""
        ...


class InMemoryReviewStore:
    """Dict-backed store. Not thread-safe."""

    def __init__(self):
        self._decks: dict[str, list[str]] = {}
        self._states: dict[str, ReviewState] = {}
        self.updated_at: dict[str, datetime] = {}
        self.review_log: list[tuple[str, int, datetime]] = []

    def add_deck(self, deck_token: str) -> str:
        self._decks.setdefault(deck_token, [])
        return deck_token

    def add_card(self, deck_token: str, card_token: str, created_at: datetime) -> ReviewState:
        if deck_token not in self._decks:
            raise DeckNotFoundError(deck_token)
        if card_token in self._states:
            raise PersistenceError(f"Card token already exists: {card_token}")
        created_at = ensure_utc(created_at)
        state = new_review_state(created_at)
        self._decks[deck_token].append(card_token)
        self._states[card_token] = state
        self.updated_at[card_token] = created_at
        return state

    def load_review_state(self, card_token: str) -> ReviewState:
        try:
            return self._states[card_token]
        except KeyError:
            raise CardNotFoundError(card_token) from None

    def save_review_state(self, card_token, state, updated_at, grade=None) -> None:
        if card_token not in self._states:
            raise CardNotFoundError(card_token)
        self._states[card_token] = state
        self.updated_at[card_token] = updated_at
        if grade is not None:
            self.review_log.append((card_token, grade, updated_at))

    def list_review_states_for_deck(self, deck_token: str) -> list[CardReviewState]:
        if deck_token not in self._decks:
            raise DeckNotFoundError(deck_token)
        return [CardReviewState(token, self._states[token]) for token in self._decks[deck_token]]
