from datetime import UTC, datetime, timedelta

from portquiz.history import (
    average_score,
    build_history_entry,
    performance_by_difficulty,
    port_stats,
    strongest_ports,
    weakest_ports,
)
from portquiz.models import EASY, HARD, NORMAL, HistoryResult, QuizHistoryEntry, QuizResult


def _entry(results: list[tuple[str, bool]], difficulty: str = EASY, day: int = 1) -> QuizHistoryEntry:
    correct = sum(1 for _, ok in results if ok)
    total = len(results)
    return QuizHistoryEntry(
        id=f"quiz-{day}-{difficulty}",
        date=datetime(2026, 1, day, tzinfo=UTC).isoformat(),
        score=correct,
        total=total,
        accuracy=(correct / total) * 100 if total else 0.0,
        duration=60,
        difficulty=difficulty,
        regions=("world",),
        countries=(),
        results=tuple(HistoryResult(port=port, is_correct=ok) for port, ok in results),
    )


def test_build_history_entry_records_score_and_duration() -> None:
    started = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)
    results = [
        QuizResult(letter="1", selected_port="Rotterdam", correct_port="Rotterdam, Netherlands", is_correct=True),
        QuizResult(letter="2", selected_port="", correct_port="Hamburg, Germany", is_correct=False),
    ]
    entry = build_history_entry(
        results,
        difficulty=NORMAL,
        regions=("europe",),
        countries=["Germany"],
        started_at=started,
        finished_at=started + timedelta(minutes=2, seconds=5),
    )
    assert entry.id.startswith("quiz-")
    assert entry.date == "2026-02-01T09:02:05+00:00"
    assert (entry.score, entry.total, entry.accuracy) == (1, 2, 50.0)
    assert entry.duration == 125
    assert entry.regions == ("europe",)
    assert entry.countries == ("Germany",)
    assert entry.results == (
        HistoryResult(port="Rotterdam, Netherlands", is_correct=True),
        HistoryResult(port="Hamburg, Germany", is_correct=False),
    )


def test_duration_never_goes_negative() -> None:
    started = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)
    entry = build_history_entry(
        [], difficulty=EASY, regions=(), countries=(), started_at=started, finished_at=started - timedelta(seconds=5)
    )
    assert entry.duration == 0
    assert entry.accuracy == 0.0


def test_port_stats_fold_all_quizzes_most_attempted_first() -> None:
    history = [
        _entry([("A", True), ("B", False)], day=1),
        _entry([("A", False), ("C", True)], day=2),
        _entry([("A", True)], day=3),
    ]
    stats = port_stats(history)
    assert stats[0].port == "A"
    assert (stats[0].attempts, stats[0].correct) == (3, 2)
    assert {item.port for item in stats} == {"A", "B", "C"}


def test_weak_and_strong_thresholds_leave_exactly_80_percent_out() -> None:
    history = [
        _entry([("Weak", False), ("Strong", True), ("Eighty", True), ("Once", False)], day=1),
        _entry([("Weak", True), ("Strong", True), ("Eighty", True)], day=2),
        _entry([("Eighty", True)], day=3),
        _entry([("Eighty", True)], day=4),
        _entry([("Eighty", False)], day=5),
    ]
    assert [item.port for item in weakest_ports(history)] == ["Weak"]
    assert [item.port for item in strongest_ports(history)] == ["Strong"]
    eighty = next(item for item in port_stats(history) if item.port == "Eighty")
    assert eighty.accuracy == 80.0


def test_weakest_are_sorted_worst_first_and_limited() -> None:
    history = [
        _entry([("A", False), ("B", True), ("C", False)], day=1),
        _entry([("A", False), ("B", False), ("C", True)], day=2),
    ]
    weakest = weakest_ports(history)
    assert [item.port for item in weakest] == ["A", "B", "C"]
    assert len(weakest_ports(history, limit=1)) == 1


def test_average_score() -> None:
    assert average_score([]) == 0.0
    history = [_entry([("A", True), ("B", False)], day=1), _entry([("A", True)], day=2)]
    assert average_score(history) == 75.0


def test_performance_by_difficulty_reports_every_tier() -> None:
    history = [
        _entry([("A", True)], difficulty=EASY, day=1),
        _entry([("A", False)], difficulty=EASY, day=2),
        _entry([("A", True)], difficulty=HARD, day=3),
        _entry([("A", True)], difficulty="legendary", day=4),
    ]
    performance = performance_by_difficulty(history)
    assert list(performance) == [EASY, NORMAL, HARD]
    assert (performance[EASY].count, performance[EASY].avg_accuracy) == (2, 50.0)
    assert (performance[NORMAL].count, performance[NORMAL].avg_accuracy) == (0, 0.0)
    assert (performance[HARD].count, performance[HARD].avg_accuracy) == (1, 100.0)
