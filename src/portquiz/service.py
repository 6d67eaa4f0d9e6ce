"""Application service tying catalog, lists, sessions, grading, and history together."""

from __future__ import annotations

import logging
import random
import sqlite3
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from .catalog import PortCatalog
from .content_loader import QuizContent, load_content
from .grading import PASS_THRESHOLD, grade
from .history import (
    DEFAULT_LIMIT,
    DifficultyPerformance,
    PortStats,
    average_score,
    build_history_entry,
    performance_by_difficulty,
    strongest_ports,
    weakest_ports,
)
from .list_store import JsonListStore, ListStore
from .models import Port, PortKey, PortList, QuizHistoryEntry, QuizResult
from .progress import HistoryStore, SqliteHistoryStore
from .reconcile import ManualMappings, ReconciliationReport, build_builtin_list, reconcile_reference_list
from .session import QuizFilters, QuizSession, answer_options, build_session, relabel_session

logger = logging.getLogger(__name__)

HISTORY_DB_NAME = "history.db"
LISTS_FILE_NAME = "lists.json"
RECENT_QUIZ_COUNT = 10
# Logged and absorbed at the service boundary.
HISTORY_ERRORS = (sqlite3.Error, OSError, ValueError, TypeError)


@dataclass(frozen=True)
class QuizOutcome:
    """What the UI gets back after submitting a quiz."""

    results: tuple[QuizResult, ...]
    score: int
    total: int
    accuracy: float
    passed: bool
    duration_seconds: int
    history_entry: QuizHistoryEntry


@dataclass(frozen=True)
class StatsSummary:
    """Everything the statistics view shows."""

    quiz_count: int
    average_score: float
    by_difficulty: dict[str, DifficultyPerformance]
    weakest: tuple[PortStats, ...]
    strongest: tuple[PortStats, ...]
    recent: tuple[QuizHistoryEntry, ...]


class QuizService:
    """Coordinates catalog, custom lists, quiz sessions, and history."""

    def __init__(
        self,
        history_store: HistoryStore,
        list_store: ListStore,
        content: QuizContent | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Build the catalog and built-in list from content and attach the stores."""
        content = content or load_content()
        self.catalog = PortCatalog.from_rows(content.raw_ports)
        self.mappings = ManualMappings(content.name_mappings)
        self.reference_items = list(content.reference_items)
        self.builtin_list = build_builtin_list(self.reference_items, self.catalog, self.mappings)
        self.history_store = history_store
        self.list_store = list_store
        self._rng = rng or random.Random()
        logger.info(
            "Loaded %d ports; built-in list has %d of %d reference ports",
            len(self.catalog),
            len(self.builtin_list.port_keys),
            len(self.reference_items),
        )

    @classmethod
    def from_data_dir(cls, data_dir: Path | str, content: QuizContent | None = None) -> QuizService:
        """Create a service persisting history and lists under one directory."""
        root = Path(data_dir)
        return cls(
            history_store=SqliteHistoryStore(root / HISTORY_DB_NAME),
            list_store=JsonListStore(root / LISTS_FILE_NAME),
            content=content,
        )

    # Lists

    def all_lists(self) -> list[PortList]:
        """Return the built-in list followed by custom lists."""
        return [self.builtin_list, *self.list_store.load_custom_lists()]

    def get_list(self, list_id: str) -> PortList | None:
        """Get list by id."""
        for port_list in self.all_lists():
            if port_list.id == list_id:
                return port_list
        return None

    def create_list(self, name: str, port_keys: tuple[PortKey, ...] = ()) -> PortList:
        """Create and persist a new custom list."""
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("List name is required.")
        created = PortList(id=f"custom-{uuid4().hex[:12]}", name=cleaned, port_keys=tuple(dict.fromkeys(port_keys)))
        lists = self.list_store.load_custom_lists()
        lists.append(created)
        self.list_store.save_custom_lists(lists)
        return created

    def delete_list(self, list_id: str) -> bool:
        """Delete a custom list; the built-in list cannot be deleted."""
        if list_id == self.builtin_list.id:
            raise ValueError("Built-in lists cannot be deleted.")
        lists = self.list_store.load_custom_lists()
        remaining = [item for item in lists if item.id != list_id]
        if len(remaining) == len(lists):
            return False
        self.list_store.save_custom_lists(remaining)
        return True

    def add_port_to_list(self, list_id: str, key: PortKey) -> PortList:
        """Append a port to a custom list unless it is already there."""
        return self._update_list(list_id, lambda keys: keys if key in keys else (*keys, key))

    def remove_port_from_list(self, list_id: str, key: PortKey) -> PortList:
        """Remove a port from a custom list."""
        return self._update_list(list_id, lambda keys: tuple(item for item in keys if item != key))

    def _update_list(self, list_id: str, change: Callable[[tuple[PortKey, ...]], tuple[PortKey, ...]]) -> PortList:
        if list_id == self.builtin_list.id:
            raise ValueError("Built-in lists cannot be modified.")
        lists = self.list_store.load_custom_lists()
        for index, item in enumerate(lists):
            if item.id == list_id:
                updated = PortList(id=item.id, name=item.name, port_keys=change(item.port_keys))
                lists[index] = updated
                self.list_store.save_custom_lists(lists)
                return updated
        raise KeyError(list_id)

    # Browsing and reconciliation

    def browse_ports(self, term: str = "") -> list[Port]:
        """Search the catalog by name, country, region, or geographic region."""
        return self.catalog.search(term)

    def match_report(self) -> ReconciliationReport:
        """Reconcile the reference list again and return the full report."""
        return reconcile_reference_list(self.reference_items, self.catalog, self.mappings)

    # Quiz flow

    def new_session(self, filters: QuizFilters, now: datetime | None = None) -> QuizSession:
        """Sample a fresh session; unknown list ids fall back to no list filter."""
        port_list = None
        if filters.list_id is not None:
            port_list = self.get_list(filters.list_id)
            if port_list is None:
                logger.warning("List '%s' not found; sampling without a list filter", filters.list_id)
        return build_session(self.catalog, filters, port_list=port_list, rng=self._rng, now=now)

    def try_again(self, session: QuizSession, now: datetime | None = None) -> QuizSession:
        """Replay the same ports with freshly shuffled labels."""
        return relabel_session(session, rng=self._rng, now=now)

    def answer_options(self, session: QuizSession) -> list[str]:
        """Return the answer choices offered for every marker."""
        return answer_options(session)

    def submit(self, session: QuizSession, answers: Mapping[str, str], now: datetime | None = None) -> QuizOutcome:
        """Grade a session, record it in history, and return the score.

        History failures are logged and never affect the returned outcome.
        """
        if session.is_empty:
            raise ValueError("Cannot submit a quiz with no ports.")
        finished_at = now or datetime.now(UTC)
        results = grade(session.markers, answers, session.difficulty)
        entry = build_history_entry(
            results,
            difficulty=session.difficulty,
            regions=session.filters.regions,
            countries=session.selected_countries,
            started_at=session.started_at,
            finished_at=finished_at,
        )
        self._save_history(entry)
        return QuizOutcome(
            results=tuple(results),
            score=entry.score,
            total=entry.total,
            accuracy=entry.accuracy,
            passed=entry.accuracy >= PASS_THRESHOLD,
            duration_seconds=entry.duration,
            history_entry=entry,
        )

    # History

    def _save_history(self, entry: QuizHistoryEntry) -> None:
        try:
            self.history_store.save(entry)
        except HISTORY_ERRORS:
            logger.exception("Failed to save quiz history entry %s", entry.id)

    def history(self) -> list[QuizHistoryEntry]:
        """Return stored quizzes newest first, or nothing if the store fails."""
        try:
            return self.history_store.get_all()
        except HISTORY_ERRORS:
            logger.exception("Failed to load quiz history")
            return []

    def clear_history(self) -> bool:
        """Delete all history; returns False if the store failed."""
        try:
            self.history_store.clear()
        except HISTORY_ERRORS:
            logger.exception("Failed to clear quiz history")
            return False
        return True

    def stats_summary(self, limit: int = DEFAULT_LIMIT) -> StatsSummary:
        """Aggregate history into the statistics view."""
        entries = self.history()
        return StatsSummary(
            quiz_count=len(entries),
            average_score=average_score(entries),
            by_difficulty=performance_by_difficulty(entries),
            weakest=tuple(weakest_ports(entries, limit)),
            strongest=tuple(strongest_ports(entries, limit)),
            recent=tuple(entries[:RECENT_QUIZ_COUNT]),
        )

    def close(self) -> None:
        """Close resources."""
        self.history_store.close()
