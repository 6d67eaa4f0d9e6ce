"""CLI entrypoint for the world ports quiz."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from .models import DIFFICULTIES, Port, PortList
from .reconcile import format_match_report
from .regions import REGION_TITLES, WORLD
from .service import QuizService
from .session import QuizFilters, QuizSession

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q", ":b", ":back"}
DEFAULT_DATA_DIR = Path(".portquiz")
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
BROWSE_LIMIT = 50


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def configure_logging(level: str = "WARNING") -> None:
    """Configure root logging once for CLI runs."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format=LOG_FORMAT)


def _service(data_dir: Path) -> QuizService:
    """Create app service persisting under the data directory."""
    return QuizService.from_data_dir(data_dir)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="portquiz", description="Match numbered map markers to world ports")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "check-matches"])
    parser.add_argument("--data-dir", type=Path, default=DEFAULT_DATA_DIR, help="where history and lists are stored")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    if args.command == "check-matches":
        return check_matches(args.data_dir)
    return play_shell(args.data_dir)


def check_matches(data_dir: Path = DEFAULT_DATA_DIR, print_fn: PrintFn = print) -> int:
    """Print how the reference list reconciles against the catalog."""
    service = _service(data_dir)
    try:
        for line in format_match_report(service.match_report()):
            print_fn(line)
    finally:
        service.close()
    return 0


def play_shell(data_dir: Path = DEFAULT_DATA_DIR, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run persistent menu-driven shell."""
    service = _service(data_dir)
    filters = QuizFilters()
    try:
        while True:
            print_fn("\n=== Port Quiz ===")
            print_fn(f"Settings: {_describe_filters(service, filters)}")
            print_fn("1) Start quiz")
            print_fn("2) Settings")
            print_fn("3) Browse ports")
            print_fn("4) Lists")
            print_fn("5) Stats")
            print_fn("q) Quit")
            choice = input_fn("Choose: ").strip().lower()

            if choice == "1":
                _quiz_flow(service, filters, input_fn, print_fn)
            elif choice == "2":
                filters = _settings_flow(service, filters, input_fn, print_fn)
            elif choice == "3":
                _browse_flow(service, input_fn, print_fn)
            elif choice == "4":
                filters = _lists_flow(service, filters, input_fn, print_fn)
            elif choice == "5":
                _stats_flow(service, input_fn, print_fn)
            elif choice in MENU_QUIT_COMMANDS:
                return 0
            else:
                print_fn("Invalid choice.")
    except QuitApp:
        return 0
    finally:
        service.close()


def _describe_filters(service: QuizService, filters: QuizFilters) -> str:
    """One-line summary of the current quiz configuration."""
    regions = ", ".join(REGION_TITLES.get(region, region) for region in filters.regions) or REGION_TITLES[WORLD]
    countries = ", ".join(filters.countries) if filters.countries else "all countries"
    list_name = "no list"
    if filters.list_id is not None:
        port_list = service.get_list(filters.list_id)
        list_name = port_list.name if port_list is not None else "no list"
    return f"{regions} | {countries} | {list_name} | {filters.difficulty} | {filters.port_count} ports"


def _choose_index(choice: str, count: int) -> int | None:
    """Return a 0-based index for a 1-based menu choice, or None when invalid."""
    if not choice.isdigit():
        return None
    index = int(choice) - 1
    if 0 <= index < count:
        return index
    return None


def _settings_flow(service: QuizService, filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn) -> QuizFilters:
    """Edit regions, countries, list, difficulty, and port count."""
    while True:
        preview = service.new_session(filters)
        if preview.selected_countries != filters.countries:
            filters = replace(filters, countries=preview.selected_countries)
        print_fn("\n=== Settings ===")
        print_fn(f"Current: {_describe_filters(service, filters)}")
        print_fn(f"Ports available with current filters: {preview.filtered_ports_count}")
        print_fn("1) Regions")
        print_fn("2) Countries")
        print_fn("3) Port list")
        print_fn("4) Difficulty")
        print_fn("5) Number of ports")
        print_fn("b) Back")
        print_fn("q) Quit")
        choice = input_fn("Choose setting: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return filters
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp()
        if choice == "1":
            filters = _choose_regions(filters, input_fn, print_fn)
        elif choice == "2":
            filters = _choose_countries(preview, filters, input_fn, print_fn)
        elif choice == "3":
            filters = _choose_list(service, filters, input_fn, print_fn)
        elif choice == "4":
            filters = _choose_difficulty(filters, input_fn, print_fn)
        elif choice == "5":
            filters = _choose_port_count(preview, filters, input_fn, print_fn)
        else:
            print_fn("Invalid choice.")


def _choose_regions(filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn) -> QuizFilters:
    tags = list(REGION_TITLES)
    for idx, tag in enumerate(tags, start=1):
        print_fn(f"{idx}) {REGION_TITLES[tag]}")
    raw = input_fn("Regions (comma-separated numbers): ").strip()
    chosen: list[str] = []
    for part in raw.split(","):
        index = _choose_index(part.strip(), len(tags))
        if index is None:
            continue
        chosen.append(tags[index])
    if not chosen:
        print_fn("No valid regions chosen; keeping current selection.")
        return filters
    return replace(filters, regions=tuple(dict.fromkeys(chosen)))


def _choose_countries(
    preview: QuizSession, filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn
) -> QuizFilters:
    available = list(preview.available_countries)
    if not available:
        print_fn("No countries available with current filters.")
        return filters
    for idx, country in enumerate(available, start=1):
        marker = "*" if country in filters.countries else " "
        print_fn(f"{idx:>3}) {marker} {country}")
    raw = input_fn("Countries (comma-separated numbers, blank = all): ").strip()
    if not raw:
        return replace(filters, countries=())
    chosen: list[str] = []
    for part in raw.split(","):
        index = _choose_index(part.strip(), len(available))
        if index is not None:
            chosen.append(available[index])
    return replace(filters, countries=tuple(dict.fromkeys(chosen)))


def _choose_list(service: QuizService, filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn) -> QuizFilters:
    lists = service.all_lists()
    print_fn("0) No list")
    for idx, port_list in enumerate(lists, start=1):
        print_fn(f"{idx}) {port_list.name} ({len(port_list.port_keys)} ports)")
    choice = input_fn("Choose list: ").strip()
    if choice == "0":
        return replace(filters, list_id=None)
    index = _choose_index(choice, len(lists))
    if index is None:
        print_fn("Invalid choice.")
        return filters
    return replace(filters, list_id=lists[index].id)


def _choose_difficulty(filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn) -> QuizFilters:
    descriptions = {
        "easy": "Shows port name + country",
        "normal": "Port name only + decoys",
        "hard": "Port name only + many decoys",
    }
    for idx, difficulty in enumerate(DIFFICULTIES, start=1):
        print_fn(f"{idx}) {difficulty.title()} - {descriptions[difficulty]}")
    index = _choose_index(input_fn("Choose difficulty: ").strip(), len(DIFFICULTIES))
    if index is None:
        print_fn("Invalid choice.")
        return filters
    return replace(filters, difficulty=DIFFICULTIES[index])


def _choose_port_count(
    preview: QuizSession, filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn
) -> QuizFilters:
    raw = input_fn(f"Number of ports (or 'max' for {preview.filtered_ports_count}): ").strip().lower()
    if raw == "max":
        if preview.filtered_ports_count == 0:
            print_fn("No ports available with current filters.")
            return filters
        return replace(filters, port_count=preview.filtered_ports_count)
    if not raw.isdigit() or int(raw) < 1:
        print_fn("Enter a whole number of at least 1.")
        return filters
    return replace(filters, port_count=int(raw))


def _quiz_flow(service: QuizService, filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Begin a freshly sampled quiz and offer retries on the same ports."""
    session = service.new_session(filters)
    if session.is_empty:
        print_fn("No ports available with current filters.")
        return
    if filters.port_count > session.filtered_ports_count:
        print_fn(f"Only {session.filtered_ports_count} ports available with current filters.")

    while True:
        answers = _collect_answers(service, session, input_fn, print_fn)
        if answers is None:
            print_fn("Quiz abandoned.")
            return
        outcome = service.submit(session, answers)
        print_fn("\n=== Results ===")
        for result in outcome.results:
            mark = "ok" if result.is_correct else "x "
            chosen = result.selected_port or "(no answer)"
            print_fn(f"[{mark}] {result.letter:>3}: {chosen} -> {result.correct_port}")
        verdict = "Passed" if outcome.passed else "Keep practicing"
        print_fn(f"Score: {outcome.score}/{outcome.total} ({outcome.accuracy:.0f}%) - {verdict}")
        print_fn(f"Time: {_format_duration(outcome.duration_seconds)}")

        print_fn("t) Try again (same ports)")
        print_fn("d) Done")
        if input_fn("Choose: ").strip().lower() != "t":
            return
        session = service.try_again(session)


def _collect_answers(
    service: QuizService, session: QuizSession, input_fn: InputFn, print_fn: PrintFn
) -> dict[str, str] | None:
    """Prompt for one answer per marker; returns None if the user leaves."""
    options = service.answer_options(session)
    print_fn(f"\n=== Quiz ({session.difficulty}) ===")
    print_fn("Answer options:")
    for idx, option in enumerate(options, start=1):
        print_fn(f"{idx:>3}) {option}")
    print_fn("Enter an option number or exact text. Blank skips. Type :q to leave.")

    answers: dict[str, str] = {}
    for label, port in session.markers.items():
        raw = input_fn(f"Marker {label} at ({port.lat:.2f}, {port.lng:.2f}): ").strip()
        if raw.lower() in FLOW_EXIT_COMMANDS:
            return None
        if not raw:
            continue
        index = _choose_index(raw, len(options))
        answers[label] = options[index] if index is not None else raw
    return answers


def _browse_flow(service: QuizService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Search ports and optionally add one to a custom list."""
    term = input_fn("Search ports (name, country, region; blank = all): ").strip()
    ports = service.browse_ports(term)
    suffix = f' matching "{term}"' if term else ""
    print_fn(f"\nShowing {min(len(ports), BROWSE_LIMIT)} of {len(ports)} ports{suffix}")
    if not ports:
        print_fn("No ports found.")
        return
    shown = ports[:BROWSE_LIMIT]
    for idx, port in enumerate(shown, start=1):
        print_fn(f"{idx:>3}) {_port_line(port)}")

    print_fn("a) Add a port to a list")
    print_fn("b) Back")
    if input_fn("Choose: ").strip().lower() != "a":
        return
    index = _choose_index(input_fn("Port number: ").strip(), len(shown))
    if index is None:
        print_fn("Invalid choice.")
        return
    target = _pick_custom_list(service, input_fn, print_fn)
    if target is None:
        return
    updated = service.add_port_to_list(target.id, shown[index].key)
    print_fn(f"'{updated.name}' now has {len(updated.port_keys)} ports.")


def _port_line(port: Port) -> str:
    return f"{port.display_name} ({port.region}) [{port.lat:.2f}, {port.lng:.2f}]"


def _pick_custom_list(service: QuizService, input_fn: InputFn, print_fn: PrintFn) -> PortList | None:
    custom = [item for item in service.all_lists() if not item.is_built_in]
    if not custom:
        print_fn("No custom lists yet. Create one from the Lists menu.")
        return None
    for idx, item in enumerate(custom, start=1):
        print_fn(f"{idx}) {item.name} ({len(item.port_keys)} ports)")
    index = _choose_index(input_fn("Choose list: ").strip(), len(custom))
    if index is None:
        print_fn("Invalid choice.")
        return None
    return custom[index]


def _lists_flow(service: QuizService, filters: QuizFilters, input_fn: InputFn, print_fn: PrintFn) -> QuizFilters:
    """Create, inspect, and delete custom lists."""
    while True:
        lists = service.all_lists()
        print_fn("\n=== Lists ===")
        for idx, item in enumerate(lists, start=1):
            tag = " [built-in]" if item.is_built_in else ""
            print_fn(f"{idx}) {item.name} ({len(item.port_keys)} ports){tag}")
        print_fn("n) New list")
        print_fn("v) View list")
        print_fn("r) Remove port from list")
        print_fn("d) Delete list")
        print_fn("b) Back")
        print_fn("q) Quit")
        choice = input_fn("Choose: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return filters
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp()
        if choice == "n":
            name = input_fn("New list name: ").strip()
            if not name:
                print_fn("List name is required.")
                continue
            created = service.create_list(name)
            print_fn(f"Created list '{created.name}'.")
        elif choice == "v":
            index = _choose_index(input_fn("List number: ").strip(), len(lists))
            if index is None:
                print_fn("Invalid choice.")
                continue
            _print_list(lists[index], print_fn)
        elif choice == "r":
            target = _pick_custom_list(service, input_fn, print_fn)
            if target is None:
                continue
            _print_list(target, print_fn)
            index = _choose_index(input_fn("Port number to remove: ").strip(), len(target.port_keys))
            if index is None:
                print_fn("Invalid choice.")
                continue
            service.remove_port_from_list(target.id, target.port_keys[index])
            print_fn("Removed.")
        elif choice == "d":
            target = _pick_custom_list(service, input_fn, print_fn)
            if target is None:
                continue
            confirm = input_fn(f"Type YES to delete '{target.name}': ").strip()
            if confirm != "YES":
                print_fn("Deletion cancelled.")
                continue
            service.delete_list(target.id)
            print_fn(f"Deleted list '{target.name}'.")
            if filters.list_id == target.id:
                filters = replace(filters, list_id=None)
        else:
            print_fn("Invalid choice.")


def _print_list(port_list: PortList, print_fn: PrintFn) -> None:
    print_fn(f"\n{port_list.name}:")
    if not port_list.port_keys:
        print_fn("No ports in this list.")
        return
    for idx, key in enumerate(port_list.port_keys, start=1):
        print_fn(f"{idx:>3}) {key.name}, {key.country}")


def _stats_flow(service: QuizService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Show aggregated history and offer to clear it."""
    summary = service.stats_summary()
    print_fn("\n=== Stats ===")
    if summary.quiz_count == 0:
        print_fn("No quiz history yet.")
        return
    print_fn(f"Quizzes taken: {summary.quiz_count}")
    print_fn(f"Average score: {summary.average_score:.1f}%")
    print_fn("\nBy difficulty:")
    for difficulty, performance in summary.by_difficulty.items():
        print_fn(f"- {difficulty:<6} {performance.count:>4} quizzes {performance.avg_accuracy:>6.1f}%")

    for title, rows in (("Weakest ports", summary.weakest), ("Strongest ports", summary.strongest)):
        print_fn(f"\n{title}:")
        if not rows:
            print_fn("None yet.")
            continue
        port_width = max(len("Port"), max(len(row.port) for row in rows))
        header = f"{'Port':<{port_width}} {'Correct':>7} {'Tries':>5} {'%':>5}"
        print_fn(header)
        print_fn("-" * len(header))
        for row in rows:
            print_fn(f"{row.port:<{port_width}} {row.correct:>7} {row.attempts:>5} {row.accuracy:>5.0f}")

    print_fn("\nRecent quizzes:")
    for entry in summary.recent:
        print_fn(
            f"- {_format_local_date(entry.date)} {entry.difficulty:<6} "
            f"{entry.score}/{entry.total} ({entry.accuracy:.0f}%) {_format_duration(entry.duration)}"
        )

    print_fn("c) Clear history")
    print_fn("b) Back")
    if input_fn("Choose: ").strip().lower() != "c":
        return
    confirm = input_fn("Type YES to clear all quiz history: ").strip()
    if confirm != "YES":
        print_fn("Clear cancelled.")
        return
    if service.clear_history():
        print_fn("History cleared.")
    else:
        print_fn("Could not clear history.")


def _format_duration(seconds: int) -> str:
    """Render seconds as ``m:ss``."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


def _format_local_date(value: str) -> str:
    """Convert an ISO timestamp to local human-readable datetime."""
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return value
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
