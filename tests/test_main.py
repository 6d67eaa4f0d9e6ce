import random
from collections.abc import Callable
from pathlib import Path

import pytest

import portquiz.main as main
from portquiz.content_loader import QuizContent
from portquiz.list_store import MemoryListStore
from portquiz.models import EASY, answer_label
from portquiz.progress import MemoryHistoryStore
from portquiz.service import QuizService
from portquiz.session import QuizFilters


def _make_service(content: QuizContent, history_store: MemoryHistoryStore, list_store: MemoryListStore) -> QuizService:
    return QuizService(history_store=history_store, list_store=list_store, content=content, rng=random.Random(3))


def _scripted(service: QuizService, inputs: list[str], difficulty: str = EASY) -> Callable[[str], str]:
    """Feed menu choices in order and answer every marker prompt correctly."""
    queue = list(inputs)

    def input_fn(prompt: str) -> str:
        if prompt.startswith("Marker") and queue and queue[0] == "<answer>":
            queue.pop(0)
            for port in service.catalog:
                if f"({port.lat:.2f}, {port.lng:.2f})" in prompt:
                    return answer_label(port, difficulty)
            raise AssertionError(f"No port at {prompt}")
        if not queue:
            raise AssertionError(f"Ran out of input at prompt {prompt!r}")
        return queue.pop(0)

    return input_fn


@pytest.fixture
def service(
    sample_content: QuizContent,
    history_store: MemoryHistoryStore,
    list_store: MemoryListStore,
    monkeypatch: pytest.MonkeyPatch,
) -> QuizService:
    created = _make_service(sample_content, history_store, list_store)
    monkeypatch.setattr(main, "_service", lambda data_dir: created)
    return created


def test_quit_from_main_menu(service: QuizService) -> None:
    output: list[str] = []
    code = main.play_shell(input_fn=_scripted(service, ["x", "q"]), print_fn=output.append)
    assert code == 0
    assert "=== Port Quiz ===" in output
    assert "Invalid choice." in output
    assert "Settings: World | all countries | no list | easy | 10 ports" in output


def test_quiz_flow_scores_and_retries_same_ports(service: QuizService) -> None:
    output: list[str] = []
    inputs = ["1", *["<answer>"] * 10, "t", *["<answer>"] * 10, "d", "q"]
    code = main.play_shell(input_fn=_scripted(service, inputs), print_fn=output.append)
    assert code == 0
    assert output.count("Score: 10/10 (100%) - Passed") == 2
    assert sum(1 for line in output if line.startswith("[ok]")) == 20
    history = service.history()
    assert len(history) == 2
    assert {result.port for result in history[0].results} == {result.port for result in history[1].results}


def test_blank_answers_keep_practicing(service: QuizService) -> None:
    output: list[str] = []
    inputs = ["1", *[""] * 10, "d", "q"]
    main.play_shell(input_fn=_scripted(service, inputs), print_fn=output.append)
    assert "Score: 0/10 (0%) - Keep practicing" in output
    assert sum(1 for line in output if "(no answer)" in line) == 10


def test_option_numbers_are_accepted_as_answers(service: QuizService) -> None:
    output: list[str] = []
    inputs = ["2", "5", "1", "b", "1", "1", "d", "q"]
    main.play_shell(input_fn=_scripted(service, inputs), print_fn=output.append)
    assert "Score: 1/1 (100%) - Passed" in output


def test_abandoning_a_quiz_records_nothing(service: QuizService) -> None:
    output: list[str] = []
    main.play_shell(input_fn=_scripted(service, ["1", "<answer>", ":q", "q"]), print_fn=output.append)
    assert "Quiz abandoned." in output
    assert service.history() == []


def test_settings_change_difficulty_region_and_count(service: QuizService) -> None:
    output: list[str] = []
    inputs = ["2", "4", "2", "1", "3", "5", "3", "b", "1", *["<answer>"] * 3, "d", "q"]
    main.play_shell(input_fn=_scripted(service, inputs, difficulty="normal"), print_fn=output.append)
    assert "Settings: Europe | all countries | no list | normal | 3 ports" in output
    assert "Score: 3/3 (100%) - Passed" in output
    [entry] = service.history()
    assert entry.difficulty == "normal"
    assert entry.regions == ("europe",)


def test_countries_selection_self_corrects_after_region_change(service: QuizService) -> None:
    output: list[str] = []
    # Countries sorted: Australia, Belgium, China, Germany, Netherlands, USA.
    inputs = ["2", "2", "3,6", "1", "2", "b", "q"]
    main.play_shell(input_fn=_scripted(service, inputs), print_fn=output.append)
    assert "Current: World | China, USA | no list | easy | 10 ports" in output
    assert "Settings: Asia | China | no list | easy | 10 ports" in output


def test_port_count_larger_than_pool_warns(service: QuizService) -> None:
    output: list[str] = []
    inputs = ["2", "5", "40", "b", "1", ":q", "q"]
    main.play_shell(input_fn=_scripted(service, inputs), print_fn=output.append)
    assert "Only 12 ports available with current filters." in output


def test_browse_add_to_list_then_view_and_delete(service: QuizService) -> None:
    output: list[str] = []
    inputs = [
        "4",
        "n",
        "Favourites",
        "b",
        "3",
        "hamburg",
        "a",
        "1",
        "1",
        "4",
        "v",
        "2",
        "d",
        "1",
        "YES",
        "b",
        "q",
    ]
    main.play_shell(input_fn=_scripted(service, inputs), print_fn=output.append)
    assert "Created list 'Favourites'." in output
    assert "'Favourites' now has 1 ports." in output
    assert "  1) Hamburg, Germany" in output
    assert "Deleted list 'Favourites'." in output
    assert [item.is_built_in for item in service.all_lists()] == [True]


def test_deleting_the_selected_list_clears_it(service: QuizService) -> None:
    output: list[str] = []
    created = service.create_list("Temporary")
    inputs = ["2", "3", "2", "b", "4", "d", "1", "YES", "b", "q"]
    main.play_shell(input_fn=_scripted(service, inputs), print_fn=output.append)
    assert f"Current: World | all countries | {created.name} | easy | 10 ports" in output
    assert "Settings: World | all countries | no list | easy | 10 ports" in output


def test_browse_with_no_custom_lists(service: QuizService) -> None:
    output: list[str] = []
    main.play_shell(input_fn=_scripted(service, ["3", "", "a", "1", "q"]), print_fn=output.append)
    assert "Showing 12 of 12 ports" in output
    assert "No custom lists yet. Create one from the Lists menu." in output


def test_stats_without_history(service: QuizService) -> None:
    output: list[str] = []
    main.play_shell(input_fn=_scripted(service, ["5", "q"]), print_fn=output.append)
    assert "No quiz history yet." in output


def test_stats_show_history_and_clear(service: QuizService) -> None:
    for _ in range(2):
        session = service.new_session(QuizFilters(countries=("Australia",)))
        service.submit(session, {label: answer_label(port, EASY) for label, port in session.markers.items()})

    output: list[str] = []
    main.play_shell(input_fn=_scripted(service, ["5", "c", "YES", "q"]), print_fn=output.append)
    assert "Quizzes taken: 2" in output
    assert "Average score: 100.0%" in output
    assert any(line.startswith("Geraldton, Australia") for line in output)
    assert "History cleared." in output
    assert service.history() == []


def test_check_matches_prints_report(service: QuizService) -> None:
    output: list[str] = []
    assert main.check_matches(print_fn=output.append) == 0
    assert output[:2] == ["Matched: 4 ports", "Unmatched: 0 ports"]


def test_run_dispatches_commands(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[tuple[str, object]] = []
    monkeypatch.setattr(main, "configure_logging", lambda level: calls.append(("log", level)))
    monkeypatch.setattr(main, "check_matches", lambda data_dir: calls.append(("check", data_dir)) or 0)
    monkeypatch.setattr(main, "play_shell", lambda data_dir: calls.append(("play", data_dir)) or 0)

    assert main.run(["check-matches", "--data-dir", str(tmp_path), "--log-level", "debug"]) == 0
    assert main.run([]) == 0
    assert calls == [
        ("log", "DEBUG"),
        ("check", tmp_path),
        ("log", "WARNING"),
        ("play", main.DEFAULT_DATA_DIR),
    ]


def test_format_duration() -> None:
    assert main._format_duration(0) == "0:00"  # noqa: SLF001
    assert main._format_duration(125) == "2:05"  # noqa: SLF001
    assert main._format_duration(-4) == "0:00"  # noqa: SLF001
