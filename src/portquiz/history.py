"""Aggregate per-port and per-difficulty performance from quiz history."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from .grading import accuracy
from .models import DIFFICULTIES, HistoryResult, QuizHistoryEntry, QuizResult

MIN_ATTEMPTS = 2
# Exactly-80% ports land in neither bucket.
WEAK_BELOW = 80.0
STRONG_FROM = 81.0
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class PortStats:
    """Attempt and correctness totals for one port across all history."""

    port: str
    attempts: int
    correct: int
    accuracy: float


@dataclass(frozen=True)
class DifficultyPerformance:
    """Quiz count and mean accuracy for one difficulty tier."""

    count: int
    avg_accuracy: float


def build_history_entry(
    results: Sequence[QuizResult],
    *,
    difficulty: str,
    regions: Sequence[str],
    countries: Sequence[str],
    started_at: datetime,
    finished_at: datetime,
) -> QuizHistoryEntry:
    """Assemble the stored record for one graded quiz."""
    correct = sum(1 for result in results if result.is_correct)
    return QuizHistoryEntry(
        id=f"quiz-{uuid4().hex}",
        date=finished_at.isoformat(),
        score=correct,
        total=len(results),
        accuracy=accuracy(correct, len(results)),
        duration=max(0, int((finished_at - started_at).total_seconds())),
        difficulty=difficulty,
        regions=tuple(regions),
        countries=tuple(countries),
        results=tuple(HistoryResult(port=result.correct_port, is_correct=result.is_correct) for result in results),
    )


def port_stats(history: Sequence[QuizHistoryEntry]) -> list[PortStats]:
    """Fold every graded port into totals, most attempted first."""
    totals: dict[str, list[int]] = {}
    for entry in history:
        for result in entry.results:
            counts = totals.setdefault(result.port, [0, 0])
            counts[0] += 1
            if result.is_correct:
                counts[1] += 1
    stats = [
        PortStats(port=port, attempts=attempts, correct=correct, accuracy=accuracy(correct, attempts))
        for port, (attempts, correct) in totals.items()
    ]
    stats.sort(key=lambda item: item.attempts, reverse=True)
    return stats


def weakest_ports(history: Sequence[QuizHistoryEntry], limit: int = DEFAULT_LIMIT) -> list[PortStats]:
    """Return repeatedly attempted ports under 80% accuracy, worst first."""
    candidates = [
        item for item in port_stats(history) if item.attempts >= MIN_ATTEMPTS and item.accuracy < WEAK_BELOW
    ]
    candidates.sort(key=lambda item: item.accuracy)
    return candidates[:limit]


def strongest_ports(history: Sequence[QuizHistoryEntry], limit: int = DEFAULT_LIMIT) -> list[PortStats]:
    """Return repeatedly attempted ports at 81% accuracy or better, best first."""
    candidates = [
        item for item in port_stats(history) if item.attempts >= MIN_ATTEMPTS and item.accuracy >= STRONG_FROM
    ]
    candidates.sort(key=lambda item: item.accuracy, reverse=True)
    return candidates[:limit]


def average_score(history: Sequence[QuizHistoryEntry]) -> float:
    """Mean quiz accuracy, 0 when there is no history."""
    if not history:
        return 0.0
    return sum(entry.accuracy for entry in history) / len(history)


def performance_by_difficulty(history: Sequence[QuizHistoryEntry]) -> dict[str, DifficultyPerformance]:
    totals = {difficulty: [0.0, 0] for difficulty in DIFFICULTIES}
    for entry in history:
        bucket = totals.get(entry.difficulty)
        if bucket is None:
            continue
        bucket[0] += entry.accuracy
        bucket[1] += 1
    return {
        difficulty: DifficultyPerformance(
            count=int(count),
            avg_accuracy=(total / count) if count else 0.0,
        )
        for difficulty, (total, count) in totals.items()
    }
