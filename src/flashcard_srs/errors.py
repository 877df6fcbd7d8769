"""Exceptions raised by the scheduling core and its stores."""


class SchedulerError(Exception):
    """Base class for every error surfaced by flashcard_srs."""


class NotFoundError(SchedulerError):
    pass


class CardNotFoundError(NotFoundError):
    def __init__(self, card_token: str):
        super().__init__(f"Card not found: {card_token}")
        self.card_token = card_token


class DeckNotFoundError(NotFoundError):
    def __init__(self, deck_token: str):
        super().__init__(f"Deck not found: {deck_token}")
        self.deck_token = deck_token


class InvalidGradeError(SchedulerError, ValueError):
    def __init__(self, grade):
        super().__init__(f"Grade must be an integer between 0 and 5, got {grade!r}")
        self.grade = grade


class PersistenceError(SchedulerError):
    """The store did not apply a write."""
