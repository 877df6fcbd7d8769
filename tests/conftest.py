from datetime import datetime, timezone

import pytest

from flashcard_srs.clock import FixedClock


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_srs.db")
    return db_path


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock(now):
    return FixedClock(now)
