"""Quiz history persistence: SQLite backend plus an in-memory double."""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .models import HistoryResult, QuizHistoryEntry

SCHEMA_VERSION = 1


class HistoryStore(Protocol):
    """Append-only store of submitted quizzes."""

    def save(self, entry: QuizHistoryEntry) -> None: ...

    def get_all(self) -> list[QuizHistoryEntry]: ...

    def clear(self) -> None: ...

    def close(self) -> None: ...


class MemoryHistoryStore:
    """History store kept in process memory."""

    def __init__(self, entries: list[QuizHistoryEntry] | None = None) -> None:
        self._entries: list[QuizHistoryEntry] = list(entries or [])

    def save(self, entry: QuizHistoryEntry) -> None:
        self._entries.append(entry)

    def get_all(self) -> list[QuizHistoryEntry]:
        """Return entries newest first."""
        return sorted(self._entries, key=lambda entry: entry.date, reverse=True)

    def clear(self) -> None:
        self._entries.clear()

    def close(self) -> None:
        return None


class SqliteHistoryStore:
    """Database access layer for quiz history."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create quiz history and per-port result tables."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS quiz_history (
                    id TEXT PRIMARY KEY,
                    date TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    total INTEGER NOT NULL,
                    accuracy REAL NOT NULL,
                    duration INTEGER NOT NULL,
                    difficulty TEXT NOT NULL,
                    regions TEXT NOT NULL,
                    countries TEXT NOT NULL
                )
                """)
            self._conn.execute("CREATE INDEX IF NOT EXISTS idx_quiz_history_date ON quiz_history(date DESC)")
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_quiz_history_difficulty ON quiz_history(difficulty)"
            )
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS quiz_results (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    quiz_id TEXT NOT NULL,
                    port TEXT NOT NULL,
                    is_correct INTEGER NOT NULL,
                    FOREIGN KEY (quiz_id) REFERENCES quiz_history(id) ON DELETE CASCADE
                )
                """)
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_quiz_results_port_correct ON quiz_results(port, is_correct)"
            )

    def save(self, entry: QuizHistoryEntry) -> None:
        """Insert one quiz and its per-port results atomically."""
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO quiz_history (
                    id, date, score, total, accuracy, duration, difficulty, regions, countries
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.date,
                    entry.score,
                    entry.total,
                    entry.accuracy,
                    entry.duration,
                    entry.difficulty,
                    json.dumps(list(entry.regions)),
                    json.dumps(list(entry.countries)),
                ),
            )
            self._conn.executemany(
                "INSERT INTO quiz_results (quiz_id, port, is_correct) VALUES (?, ?, ?)",
                [(entry.id, result.port, int(result.is_correct)) for result in entry.results],
            )

    def get_all(self) -> list[QuizHistoryEntry]:
        """Return every stored quiz, newest first."""
        rows = self._conn.execute(
            """
            SELECT id, date, score, total, accuracy, duration, difficulty, regions, countries
            FROM quiz_history
            ORDER BY date DESC
            """
        ).fetchall()
        entries: list[QuizHistoryEntry] = []
        for row in rows:
            result_rows = self._conn.execute(
                "SELECT port, is_correct FROM quiz_results WHERE quiz_id = ? ORDER BY id ASC",
                (row["id"],),
            ).fetchall()
            entries.append(
                QuizHistoryEntry(
                    id=str(row["id"]),
                    date=str(row["date"]),
                    score=int(row["score"]),
                    total=int(row["total"]),
                    accuracy=float(row["accuracy"]),
                    duration=int(row["duration"]),
                    difficulty=str(row["difficulty"]),
                    regions=_decode_string_list(row["regions"]),
                    countries=_decode_string_list(row["countries"]),
                    results=tuple(
                        HistoryResult(port=str(item["port"]), is_correct=bool(item["is_correct"]))
                        for item in result_rows
                    ),
                )
            )
        return entries

    def clear(self) -> None:
        """Delete all quiz history."""
        with self._conn:
            self._conn.execute("DELETE FROM quiz_results")
            self._conn.execute("DELETE FROM quiz_history")

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


def _decode_string_list(raw: object) -> tuple[str, ...]:
    """Decode a JSON array column, treating anything malformed as empty."""
    try:
        value = json.loads(str(raw))
    except json.JSONDecodeError:
        return ()
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value)
