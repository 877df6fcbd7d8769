"""SQLite-backed review store."""
import logging
import secrets
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from flashcard_srs.clock import ensure_utc
from flashcard_srs.errors import CardNotFoundError, DeckNotFoundError, PersistenceError
from flashcard_srs.models import CardReviewState, ReviewState, new_review_state

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = str(Path.home() / ".flashcard_srs" / "srs.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS decks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    token TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    token TEXT NOT NULL UNIQUE,
    deck_id INTEGER NOT NULL REFERENCES decks(id),
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    repetitions INTEGER NOT NULL DEFAULT 0,
    easiness_factor REAL NOT NULL DEFAULT 2.5,
    interval_days INTEGER NOT NULL DEFAULT 0,
    next_review_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS review_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    flashcard_id INTEGER NOT NULL REFERENCES flashcards(id),
    grade INTEGER NOT NULL,
    reviewed_at TEXT NOT NULL
);
"""


def generate_token() -> str:
    """URL-safe, unpadded base64 of 16 random bytes."""
    return secrets.token_urlsafe(16)


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def _to_text(moment: datetime) -> str:
    return ensure_utc(moment).isoformat()


def _from_text(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))


def _row_to_state(row: sqlite3.Row) -> ReviewState:
    return ReviewState(
        repetitions=row["repetitions"],
        ease_factor=row["easiness_factor"],
        interval_days=row["interval_days"],
        next_review_at=_from_text(row["next_review_at"]),
    )


class SqliteReviewStore:
    """ReviewStore over the schema above. Each call uses its own connection."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def add_deck(self, name: str, created_at: datetime, token: Optional[str] = None) -> str:
        token = token or generate_token()
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT INTO decks (token, name, created_at) VALUES (?, ?, ?)",
                (token, name, _to_text(created_at)),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Failed to add deck %s: %s", name, exc)
            raise PersistenceError(f"Could not add deck {name!r}") from exc
        finally:
            conn.close()
        return token

    def add_card(
        self,
        deck_token: str,
        question: str,
        answer: str,
        created_at: datetime,
        token: Optional[str] = None,
    ) -> str:
        """Insert a card with a fresh review state and return its token."""
        token = token or generate_token()
        state = new_review_state(ensure_utc(created_at))
        conn = get_connection(self.db_path)
        try:
            deck = conn.execute("SELECT id FROM decks WHERE token = ?", (deck_token,)).fetchone()
            if deck is None:
                raise DeckNotFoundError(deck_token)
            conn.execute(
                """INSERT INTO flashcards (token, deck_id, question, answer, created_at, updated_at,
                    repetitions, easiness_factor, interval_days, next_review_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    token, deck["id"], question, answer,
                    _to_text(created_at), _to_text(created_at),
                    state.repetitions, state.ease_factor, state.interval_days,
                    _to_text(state.next_review_at),
                ),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Failed to add card to deck %s: %s", deck_token, exc)
            raise PersistenceError(f"Could not add card to deck {deck_token}") from exc
        finally:
            conn.close()
        return token

    def list_decks(self) -> list[dict]:
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                """SELECT d.token, d.name, COUNT(f.id) AS card_count
                FROM decks d
                LEFT JOIN flashcards f ON f.deck_id = d.id
                GROUP BY d.id
                ORDER BY d.id"""
            ).fetchall()
        finally:
            conn.close()
        return [dict(r) for r in rows]

    def get_card(self, card_token: str) -> dict:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT token, question, answer FROM flashcards WHERE token = ?", (card_token,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            raise CardNotFoundError(card_token)
        return dict(row)

    def load_review_state(self, card_token: str) -> ReviewState:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                """SELECT repetitions, easiness_factor, interval_days, next_review_at
                FROM flashcards WHERE token = ?""",
                (card_token,),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            raise CardNotFoundError(card_token)
        return _row_to_state(row)

    def save_review_state(
        self,
        card_token: str,
        state: ReviewState,
        updated_at: datetime,
        grade: Optional[int] = None,
    ) -> None:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                """UPDATE flashcards
                SET repetitions=?, easiness_factor=?, interval_days=?, next_review_at=?, updated_at=?
                WHERE token=?""",
                (
                    state.repetitions, state.ease_factor, state.interval_days,
                    _to_text(state.next_review_at), _to_text(updated_at), card_token,
                ),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise CardNotFoundError(card_token)
            if grade is not None:
                conn.execute(
                    """INSERT INTO review_log (flashcard_id, grade, reviewed_at)
                    SELECT id, ?, ? FROM flashcards WHERE token = ?""",
                    (grade, _to_text(updated_at), card_token),
                )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Failed to save review state for card %s: %s", card_token, exc)
            raise PersistenceError(f"Could not save review state for card {card_token}") from exc
        finally:
            conn.close()

    def list_review_states_for_deck(self, deck_token: str) -> list[CardReviewState]:
        conn = get_connection(self.db_path)
        try:
            deck = conn.execute("SELECT id FROM decks WHERE token = ?", (deck_token,)).fetchone()
            if deck is None:
                raise DeckNotFoundError(deck_token)
            rows = conn.execute(
                """SELECT token, repetitions, easiness_factor, interval_days, next_review_at
                FROM flashcards WHERE deck_id = ?
                ORDER BY id""",
                (deck["id"],),
            ).fetchall()
        finally:
            conn.close()
        return [CardReviewState(r["token"], _row_to_state(r)) for r in rows]

    def get_review_count(self, card_token: str) -> int:
        conn = get_connection(self.db_path)
        try:
            count = conn.execute(
                """SELECT COUNT(*) FROM review_log r
                JOIN flashcards f ON r.flashcard_id = f.id
                WHERE f.token = ?""",
                (card_token,),
            ).fetchone()[0]
        finally:
            conn.close()
        return count
