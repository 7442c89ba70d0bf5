"""Contract tests for the SQLite database wrapper."""

from datetime import UTC, date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from pulse.analytics.errors import StorageError
from pulse.analytics.snapshot import ProductivitySnapshot
from pulse.config import StorageConfig
from pulse.storage.factory import open_repositories
from pulse.storage.sqlite import (
    SQLiteDatabase,
    SQLiteSnapshotRepository,
    format_timestamp,
    parse_timestamp,
)

TABLES = [
    "productivity_snapshots",
    "weekly_summaries",
    "productivity_goals",
    "actionable_insights",
    "time_sessions",
]


class TestSQLiteDatabase:
    """Tests for SQLiteDatabase."""

    def test_creates_schema(self, tmp_path: Path) -> None:
        db = SQLiteDatabase(tmp_path / "pulse.db")
        try:
            assert all(db.has_table(name) for name in TABLES)
            assert not db.has_table("tasks")
        finally:
            db.close()

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "pulse.db"
        SQLiteDatabase(path).close()
        assert path.exists()

    def test_wal_mode(self, tmp_path: Path) -> None:
        db = SQLiteDatabase(tmp_path / "pulse.db")
        try:
            assert db.is_wal_mode_enabled()
        finally:
            db.close()

    def test_in_memory(self) -> None:
        db = SQLiteDatabase(":memory:")
        try:
            assert db.has_table("productivity_snapshots")
        finally:
            db.close()

    def test_schema_is_idempotent(self, tmp_path: Path) -> None:
        """Test reopening an existing file keeps its data."""
        path = tmp_path / "pulse.db"
        db = SQLiteDatabase(path)
        SQLiteSnapshotRepository(db).save(
            ProductivitySnapshot(user_id="user-1", snapshot_date=date(2024, 1, 15))
        )
        db.close()

        reopened = SQLiteDatabase(path)
        try:
            assert SQLiteSnapshotRepository(reopened).get_latest("user-1") is not None
        finally:
            reopened.close()

    def test_unopenable_path(self, tmp_path: Path) -> None:
        """Test a directory in place of the file raises StorageError."""
        directory = tmp_path / "taken"
        directory.mkdir()
        with pytest.raises(StorageError) as exc_info:
            SQLiteDatabase(directory)
        assert exc_info.value.backend == "sqlite"

    def test_failures_raise_storage_error(self, tmp_path: Path) -> None:
        """Test sqlite3 errors surface as StorageError."""
        db = SQLiteDatabase(tmp_path / "pulse.db")
        repo = SQLiteSnapshotRepository(db)
        db.close()
        with pytest.raises(StorageError) as exc_info:
            repo.get_recent("user-1", 5)
        assert exc_info.value.backend == "sqlite"


class TestTimestamps:
    """Tests for timestamp encoding."""

    def test_fixed_width_utc(self) -> None:
        value = datetime(2024, 1, 15, 9, 30, tzinfo=UTC)
        assert format_timestamp(value) == "2024-01-15T09:30:00.000000+00:00"

    def test_converts_offsets_to_utc(self) -> None:
        value = datetime(2024, 1, 15, 11, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2024-01-15T09:30:00.000000+00:00"

    def test_naive_is_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2024, 1, 15, 9, 30)) == "2024-01-15T09:30:00.000000+00:00"

    def test_parse(self) -> None:
        parsed = parse_timestamp("2024-01-15T09:30:00.000000+00:00")
        assert parsed == datetime(2024, 1, 15, 9, 30, tzinfo=UTC)
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


class TestOpenRepositories:
    """Tests for the backend factory."""

    def test_sqlite_backend(self, tmp_path: Path) -> None:
        config = StorageConfig(backend="sqlite", sqlite_path=str(tmp_path / "pulse.db"))
        with open_repositories(config) as repos:
            assert repos.data_source is not None
            assert repos.snapshots.get_latest("user-1") is None

    def test_backend_name_is_case_insensitive(self) -> None:
        with open_repositories(StorageConfig(backend="SQLite", sqlite_path=":memory:")) as repos:
            assert repos.goals.get_active("user-1") == []

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown storage backend"):
            open_repositories(StorageConfig(backend="postgres"))
