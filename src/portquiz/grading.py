"""Grade submitted answers against a session's answer key."""

from __future__ import annotations

from collections.abc import Mapping

from .models import Port, QuizResult, answer_label

PASS_THRESHOLD = 70.0


def grade(markers: Mapping[str, Port], answers: Mapping[str, str], difficulty: str) -> list[QuizResult]:
    """Return one result per label in label order.

    Easy answers must equal ``"name, country"``; normal and hard answers must
    equal the bare port name. A missing answer is simply incorrect.
    """
    results: list[QuizResult] = []
    for label, port in markers.items():
        selected = answers.get(label, "")
        results.append(
            QuizResult(
                letter=label,
                selected_port=selected,
                correct_port=port.display_name,
                is_correct=selected == answer_label(port, difficulty),
            )
        )
    return results


def score(results: list[QuizResult]) -> int:
    """Count correct results."""
    return sum(1 for result in results if result.is_correct)


def accuracy(correct: int, total: int) -> float:
    """Return percentage correct, 0 for an empty quiz."""
    if total == 0:
        return 0.0
    return (correct / total) * 100
