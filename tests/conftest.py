"""Shared test fixtures and configuration.

Sets up fake environment variables so focusday.config doesn't sys.exit(),
and provides common fixtures like temp SQLite stores.
"""

import os

# Patch env vars BEFORE any focusday imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("DEFAULT_GOAL_MINUTES", "60")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_focusday.db")


@pytest.fixture
def task_db(tmp_db_path):
    from focusday.data.db import TaskDB
    return TaskDB(db_path=tmp_db_path)


@pytest.fixture
def session_db(tmp_db_path):
    from focusday.data.db import SessionDB
    return SessionDB(db_path=tmp_db_path)


@pytest.fixture
def goal_db(tmp_db_path):
    from focusday.data.db import GoalDB
    return GoalDB(db_path=tmp_db_path)


@pytest.fixture
def achievement_db(tmp_db_path):
    from focusday.data.db import AchievementDB
    return AchievementDB(db_path=tmp_db_path)


@pytest.fixture
def store(tmp_db_path):
    """Return a SQLiteRecordStore backed by a temp file."""
    from focusday.adapters.sqlite_store import SQLiteRecordStore
    return SQLiteRecordStore(db_path=tmp_db_path)


@pytest.fixture
def note_db(tmp_db_path):
    from focusday.data.db import NoteDB
    return NoteDB(db_path=tmp_db_path)
