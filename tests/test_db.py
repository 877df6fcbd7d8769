"""Tests for the SQLite review store."""
import sqlite3
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from flashcard_srs.db import init_db, get_connection, generate_token, SqliteReviewStore
from flashcard_srs.errors import CardNotFoundError, DeckNotFoundError, PersistenceError
from flashcard_srs.models import new_review_state
from flashcard_srs.sm2 import sm2_update


def make_store(tmp_db):
    init_db(tmp_db)
    return SqliteReviewStore(tmp_db)


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    assert {"decks", "flashcards", "review_log"}.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_generate_token_is_url_safe_and_unique():
    tokens = {generate_token() for _ in range(50)}
    assert len(tokens) == 50
    for token in tokens:
        assert len(token) == 22
        assert not set(token) & set("+/=")


def test_add_card_starts_due_now(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Spanish", created_at=now)
    card = store.add_card(deck, "hola", "hello", created_at=now)
    assert store.load_review_state(card) == new_review_state(now)
    assert store.get_card(card) == {"token": card, "question": "hola", "answer": "hello"}


def test_add_card_unknown_deck(tmp_db, now):
    store = make_store(tmp_db)
    with pytest.raises(DeckNotFoundError):
        store.add_card("missing", "q", "a", created_at=now)


def test_add_deck_duplicate_token(tmp_db, now):
    store = make_store(tmp_db)
    store.add_deck("One", created_at=now, token="same")
    with pytest.raises(PersistenceError):
        store.add_deck("Two", created_at=now, token="same")


def test_load_unknown_card(tmp_db):
    store = make_store(tmp_db)
    with pytest.raises(CardNotFoundError):
        store.load_review_state("nope")
    with pytest.raises(CardNotFoundError):
        store.get_card("nope")


def test_save_round_trips_state_and_logs_review(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Deck", created_at=now)
    card = store.add_card(deck, "q", "a", created_at=now)
    later = now + timedelta(hours=2)
    new_state = sm2_update(5, store.load_review_state(card), later)
    store.save_review_state(card, new_state, updated_at=later, grade=5)

    assert store.load_review_state(card) == new_state
    assert store.get_review_count(card) == 1
    conn = get_connection(tmp_db)
    row = conn.execute("SELECT updated_at FROM flashcards WHERE token = ?", (card,)).fetchone()
    conn.close()
    assert row["updated_at"] == later.isoformat()


def test_save_without_grade_skips_log(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Deck", created_at=now)
    card = store.add_card(deck, "q", "a", created_at=now)
    store.save_review_state(card, new_review_state(now), updated_at=now)
    assert store.get_review_count(card) == 0


def test_save_unknown_card(tmp_db, now):
    store = make_store(tmp_db)
    with pytest.raises(CardNotFoundError):
        store.save_review_state("ghost", new_review_state(now), updated_at=now, grade=3)


def test_save_wraps_sqlite_errors(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Deck", created_at=now)
    card = store.add_card(deck, "q", "a", created_at=now)
    conn = get_connection(tmp_db)
    conn.execute("DROP TABLE review_log")
    conn.commit()
    conn.close()
    with pytest.raises(PersistenceError) as exc_info:
        store.save_review_state(card, new_review_state(now), updated_at=now, grade=4)
    assert isinstance(exc_info.value.__cause__, sqlite3.Error)
    # the failed write left the stored state untouched
    assert store.load_review_state(card) == new_review_state(now)


def test_list_review_states_for_deck(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Deck", created_at=now)
    other = store.add_deck("Other", created_at=now)
    tokens = [store.add_card(deck, f"q{i}", "a", created_at=now) for i in range(3)]
    store.add_card(other, "x", "y", created_at=now)
    listed = store.list_review_states_for_deck(deck)
    assert [c.card_token for c in listed] == tokens
    assert all(c.state == new_review_state(now) for c in listed)


def test_list_review_states_empty_and_unknown_deck(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Empty", created_at=now)
    assert store.list_review_states_for_deck(deck) == []
    with pytest.raises(DeckNotFoundError):
        store.list_review_states_for_deck("unknown")


def test_list_decks_counts_cards(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Deck", created_at=now)
    store.add_deck("Empty", created_at=now)
    store.add_card(deck, "q", "a", created_at=now)
    decks = store.list_decks()
    assert [(d["name"], d["card_count"]) for d in decks] == [("Deck", 1), ("Empty", 0)]


def test_add_card_rejects_naive_created_at(tmp_db, now):
    store = make_store(tmp_db)
    deck = store.add_deck("Deck", created_at=now)
    with pytest.raises(ValueError):
        store.add_card(deck, "q", "a", created_at=datetime(2026, 3, 1, 9, 30))
    assert store.list_review_states_for_deck(deck) == []


def test_reads_close_connection_on_sqlite_error(tmp_db):
    store = SqliteReviewStore(tmp_db)
    reads = [
        lambda: store.list_decks(),
        lambda: store.get_card("c"),
        lambda: store.load_review_state("c"),
        lambda: store.list_review_states_for_deck("d"),
        lambda: store.get_review_count("c"),
    ]
    for read in reads:
        conn = MagicMock()
        conn.execute.side_effect = sqlite3.OperationalError("database is locked")
        with patch("flashcard_srs.db.get_connection", return_value=conn):
            with pytest.raises(sqlite3.OperationalError):
                read()
        conn.close.assert_called_once()


def test_unknown_deck_listing_closes_connection(tmp_db):
    conn = MagicMock()
    conn.execute.return_value.fetchone.return_value = None
    with patch("flashcard_srs.db.get_connection", return_value=conn):
        with pytest.raises(DeckNotFoundError):
            SqliteReviewStore(tmp_db).list_review_states_for_deck("unknown")
    conn.close.assert_called_once()
