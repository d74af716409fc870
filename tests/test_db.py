"""Tests for focusday.data.db — SQLite tables."""

import sqlite3

import pytest

from focusday.data.db import SessionDB, _SQLiteTable


class TestTaskDB:
    def test_add_task_returns_task(self, task_db):
        task = task_db.add_task(1, "2026-02-07", "Write report")
        assert task.id is not None
        assert task.text == "Write report"
        assert task.completed is False
        assert task.date == "2026-02-07"
        assert task.created_at

    def test_list_tasks_in_creation_order(self, task_db):
        task_db.add_task(1, "2026-02-07", "A", created_at="2026-02-07T09:00:00+00:00")
        task_db.add_task(1, "2026-02-07", "B", created_at="2026-02-07T10:00:00+00:00")
        assert [t.text for t in task_db.list_tasks(1)] == ["A", "B"]

    def test_list_tasks_filters_by_date(self, task_db):
        task_db.add_task(1, "2026-02-06", "Old")
        task_db.add_task(1, "2026-02-07", "New")
        tasks = task_db.list_tasks(1, dates=["2026-02-07"])
        assert [t.text for t in tasks] == ["New"]

    def test_list_tasks_scoped_to_user(self, task_db):
        task_db.add_task(1, "2026-02-07", "Mine")
        task_db.add_task(2, "2026-02-07", "Theirs")
        assert [t.text for t in task_db.list_tasks(1)] == ["Mine"]

    def test_toggle_flips_completed(self, task_db):
        task = task_db.add_task(1, "2026-02-07", "Toggle me")
        assert task_db.toggle_task(1, task.id).completed is True
        assert task_db.toggle_task(1, task.id).completed is False

    def test_toggle_nonexistent_raises(self, task_db):
        with pytest.raises(ValueError):
            task_db.toggle_task(1, 999)

    def test_toggle_other_users_task_raises(self, task_db):
        task = task_db.add_task(1, "2026-02-07", "Private")
        with pytest.raises(ValueError):
            task_db.toggle_task(2, task.id)

    def test_delete_task(self, task_db):
        task = task_db.add_task(1, "2026-02-07", "Gone")
        assert task_db.delete_task(1, task.id) is True
        assert task_db.list_tasks(1) == []
        assert task_db.delete_task(1, task.id) is False


class TestSessionDB:
    def test_start_creates_row(self, session_db):
        session = session_db.start_session(1, "2026-02-07", "2026-02-07T09:00:00+00:00")
        assert session.is_active is True
        assert session.start_time == "2026-02-07T09:00:00+00:00"
        assert session.duration == 0

    def test_stop_accumulates(self, session_db):
        session_db.start_session(1, "2026-02-07", "2026-02-07T09:00:00+00:00")
        session_db.stop_session(1, "2026-02-07", "2026-02-07T09:30:00+00:00", 1800)
        session_db.start_session(1, "2026-02-07", "2026-02-07T10:00:00+00:00")
        session = session_db.stop_session(1, "2026-02-07", "2026-02-07T10:10:00+00:00", 600)
        assert session.duration == 2400
        assert session.is_active is False
        assert session.start_time is None
        assert session.end_time == "2026-02-07T10:10:00+00:00"

    def test_stop_when_not_running_is_noop(self, session_db):
        session_db.start_session(1, "2026-02-07", "2026-02-07T09:00:00+00:00")
        session_db.stop_session(1, "2026-02-07", "2026-02-07T09:01:00+00:00", 60)
        session = session_db.stop_session(1, "2026-02-07", "2026-02-07T09:05:00+00:00", 240)
        assert session.duration == 60

    def test_stop_without_row_returns_none(self, session_db):
        assert session_db.stop_session(1, "2026-02-07", "2026-02-07T09:00:00+00:00", 5) is None

    def test_one_row_per_user_and_date(self, session_db):
        session_db.start_session(1, "2026-02-07", "2026-02-07T09:00:00+00:00")
        session_db.stop_session(1, "2026-02-07", "2026-02-07T09:01:00+00:00", 60)
        session_db.start_session(1, "2026-02-07", "2026-02-07T11:00:00+00:00")
        assert len(session_db.list_sessions(1)) == 1


class TestSessionDBMigration:
    def test_minutes_column_migrated_to_seconds(self, tmp_db_path):
        conn = sqlite3.connect(tmp_db_path)
        conn.execute("""
            CREATE TABLE work_sessions (
                id             INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id        INTEGER NOT NULL,
                date           TEXT    NOT NULL,
                start_time     TEXT,
                end_time       TEXT,
                total_minutes  INTEGER NOT NULL DEFAULT 0,
                is_running     INTEGER NOT NULL DEFAULT 0,
                UNIQUE (user_id, date)
            )
        """)
        conn.execute(
            "INSERT INTO work_sessions (user_id, date, total_minutes) VALUES (?, ?, ?)",
            (1, "2026-01-01", 25),
        )
        conn.commit()
        conn.close()

        db = SessionDB(db_path=tmp_db_path)
        [session] = db.list_sessions(1)
        assert session.duration == 25 * 60

    def test_minutes_column_without_default_accepts_new_sessions(self, tmp_db_path):
        conn = sqlite3.connect(tmp_db_path)
        conn.execute("""
            CREATE TABLE work_sessions (
                id             INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id        INTEGER NOT NULL,
                date           TEXT    NOT NULL,
                start_time     TEXT,
                end_time       TEXT,
                total_minutes  INTEGER NOT NULL,
                is_running     INTEGER NOT NULL DEFAULT 0,
                UNIQUE (user_id, date)
            )
        """)
        conn.execute(
            "INSERT INTO work_sessions (user_id, date, total_minutes) VALUES (?, ?, ?)",
            (1, "2026-01-01", 10),
        )
        conn.commit()
        conn.close()

        db = SessionDB(db_path=tmp_db_path)
        session = db.start_session(1, "2026-01-02", "2026-01-02T09:00:00+00:00")
        assert session.is_active is True

        durations = {s.date: s.duration for s in db.list_sessions(1)}
        assert durations == {"2026-01-01": 600, "2026-01-02": 0}

        conn = sqlite3.connect(tmp_db_path)
        cols = {row[1] for row in conn.execute("PRAGMA table_info(work_sessions)")}
        conn.close()
        assert "total_minutes" not in cols

    def test_reopening_migrated_db_keeps_data(self, tmp_db_path):
        db = SessionDB(db_path=tmp_db_path)
        db.start_session(1, "2026-01-01", "2026-01-01T09:00:00+00:00")
        db.stop_session(1, "2026-01-01", "2026-01-01T09:00:45+00:00", 45)

        [session] = SessionDB(db_path=tmp_db_path).list_sessions(1)
        assert session.duration == 45


class TestSQLiteTableBase:
    def test_base_class_is_abstract(self, tmp_db_path):
        with pytest.raises(TypeError):
            _SQLiteTable(db_path=tmp_db_path)


class TestGoalDB:
    def test_missing_goal(self, goal_db):
        assert goal_db.get_goal(1) is None

    def test_upsert_inserts_then_updates(self, goal_db):
        goal_db.upsert_goal(1, 90)
        goal_db.upsert_goal(1, 120)
        assert goal_db.get_goal(1).daily_focus_minutes == 120


class TestAchievementDB:
    def test_insert_and_list(self, achievement_db):
        achievement_db.insert_unlock(1, "streak_3")
        unlocked = achievement_db.list_unlocked(1)
        assert [u.achievement_id for u in unlocked] == ["streak_3"]
        assert unlocked[0].unlocked_at

    def test_duplicate_raises_integrity_error(self, achievement_db):
        achievement_db.insert_unlock(1, "streak_3")
        with pytest.raises(sqlite3.IntegrityError):
            achievement_db.insert_unlock(1, "streak_3")

    def test_same_achievement_for_other_user(self, achievement_db):
        achievement_db.insert_unlock(1, "streak_3")
        achievement_db.insert_unlock(2, "streak_3")
        assert len(achievement_db.list_unlocked(2)) == 1


class TestNoteDB:
    def test_add_note_defaults(self, note_db):
        note = note_db.add_note(1, "Buy milk")
        assert note.id is not None
        assert note.title is None
        assert note.color == "yellow"
        assert note.created_at == note.updated_at

    def test_list_newest_first(self, note_db):
        first = note_db.add_note(1, "First")
        second = note_db.add_note(1, "Second", title="Later", color="blue")
        notes = note_db.list_notes(1)
        assert [n.id for n in notes] == [second.id, first.id]
        assert (notes[0].title, notes[0].color) == ("Later", "blue")

    def test_list_scoped_to_user(self, note_db):
        note_db.add_note(1, "Mine")
        note_db.add_note(2, "Theirs")
        assert [n.content for n in note_db.list_notes(1)] == ["Mine"]

    def test_update_note(self, note_db):
        note = note_db.add_note(1, "Draft")
        updated = note_db.update_note(1, note.id, "Final", title="Plan", color="green")
        assert (updated.content, updated.title, updated.color) == ("Final", "Plan", "green")
        assert updated.created_at == note.created_at

    def test_update_missing_or_foreign_note(self, note_db):
        note = note_db.add_note(1, "Private")
        assert note_db.update_note(2, note.id, "Hijack") is None
        assert note_db.update_note(1, 999, "Nothing") is None
        assert note_db.list_notes(1)[0].content == "Private"

    def test_delete_note(self, note_db):
        note = note_db.add_note(1, "Gone")
        assert note_db.delete_note(2, note.id) is False
        assert note_db.delete_note(1, note.id) is True
        assert note_db.list_notes(1) == []
        assert note_db.delete_note(1, note.id) is False
