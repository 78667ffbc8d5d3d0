import argparse
import sys
from typing import Callable

import requests

from core.api_client import DEFAULT_SERVER_URL, ApiClient
from core.logging_setup import setup_console_logging
from core.session_runner import SessionRunner, SubmissionOutcome
from core.timer import DEFAULT_INTERVAL_SECONDS
from models import IntervalStats, TestMode

HELP = (
    "Commands: <number> answer and advance | n next | p previous | "
    "g <section> <question> jump | b bookmark | f finish | r resume | q quit"
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mental arithmetic drills in the terminal")
    parser.add_argument(
        "--server",
        type=str,
        default=DEFAULT_SERVER_URL,
        help="Drill server base URL",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="Bearer token; attempts are archived only for signed-in students",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sheets", help="List available practice sheets")

    drill = commands.add_parser("drill", help="Run one attempt at a practice sheet")
    drill.add_argument("--sheet", type=str, required=True, help="Practice sheet id")
    drill.add_argument(
        "--mode",
        type=str,
        choices=[m.value for m in TestMode],
        default=TestMode.PRACTICE.value,
        help="practice: untimed with checkpoints, test: fixed time budget",
    )
    drill.add_argument("--name", type=str, default="Student", help="Candidate name")
    drill.add_argument(
        "--interval-seconds",
        type=int,
        default=DEFAULT_INTERVAL_SECONDS,
        help="Checkpoint interval in practice mode",
    )
    return parser.parse_args(argv)


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


def format_interval(interval: IntervalStats) -> str:
    return (
        f"Checkpoint {interval.interval_number} "
        f"[{format_clock(interval.start_time)}-{format_clock(interval.end_time)}]: "
        f"{interval.questions_attempted} attempted, {interval.correct} correct, "
        f"{interval.incorrect} incorrect, {interval.avg_time_per_question:.1f}s per question"
    )


def format_outcome(outcome: SubmissionOutcome) -> list[str]:
    result = outcome.result
    lines = [
        f"Score: {result.score:.1f}%  ({result.correct}/{result.total_questions} correct)",
        f"Attempted: {result.attempted}  Incorrect: {result.incorrect}  "
        f"Unanswered: {result.unanswered}  Time: {format_clock(result.time_taken)}",
    ]
    for section in result.section_results:
        lines.append(
            f"  {section.section_name}: {section.correct}/{section.total} "
            f"({section.accuracy:.1f}% accuracy)"
        )
    lines.extend(format_interval(i) for i in result.intervals)
    if not outcome.persisted:
        lines.append("Result could not be saved to the server; showing the local result.")
    return lines


def _prompt(runner: SessionRunner) -> str:
    state = runner.state
    section = state.current_section()
    question = state.current_question()
    if section is None or question is None:
        return "> "
    answer = state.responses.get(question.id)
    marker = "*" if question.is_bookmarked else " "
    current = f" [{answer.user_answer}]" if answer is not None and answer.user_answer else ""
    return (
        f"{format_clock(runner.tracker.display_seconds())} "
        f"{section.name} {state.question_index + 1}/{section.question_count}{marker} "
        f"{question.expression} ={current} > "
    )


def run_drill(
    runner: SessionRunner,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> SubmissionOutcome:
    """Drive one attempt from line-based input until it is finished or quit."""
    write(HELP)
    runner.start()
    try:
        while not runner.finished:
            if runner.tracker.awaiting_review:
                try:
                    line = read("Checkpoint reached. Type r to resume > ").strip().lower()
                except EOFError:
                    break
                if line in ("r", ""):
                    runner.resume()
                elif line == "q":
                    break
                continue

            try:
                line = read(_prompt(runner)).strip()
            except EOFError:
                break
            if runner.finished:
                break
            if not line:
                continue

            command, *rest = line.split()
            command = command.lower()
            if command == "n":
                runner.next()
            elif command == "p":
                if runner.state.is_test_mode:
                    write("Going back is not allowed in test mode.")
                runner.prev()
            elif command == "g":
                try:
                    section_index, question_index = (int(v) - 1 for v in rest)
                except ValueError:
                    write("Usage: g <section> <question>")
                    continue
                before = runner.state.position
                if runner.go_to(section_index, question_index).position == before:
                    write("Cannot jump there.")
            elif command == "b":
                runner.toggle_bookmark()
            elif command == "f":
                runner.finish()
            elif command == "r":
                runner.resume()
            elif command == "q":
                break
            elif command.lstrip("+-").isdigit():
                runner.answer(command)
                runner.next()
            else:
                write(HELP)
    finally:
        outcome = runner.close()
    return outcome


def main(argv: list[str] | None = None) -> int:
    setup_console_logging()
    args = parse_args(argv)
    client = ApiClient(args.server, token=args.token)

    try:
        if args.command == "sheets":
            for sheet in client.list_practice_sheets():
                print(f"{sheet['id']}\t{sheet['name']}\t{sheet['questionCount']} questions")
            return 0

        test = client.generate_test(TestMode(args.mode), args.sheet, args.name)
    except requests.RequestException as exc:
        print(f"Server error: {exc}", file=sys.stderr)
        return 1

    runner = SessionRunner(
        test,
        client,
        interval_seconds=args.interval_seconds,
        on_interval_reached=lambda interval: print(f"\n{format_interval(interval)}"),
        on_time_up=lambda: print("\nTime is up. Press Enter to see your result."),
    )
    outcome = run_drill(runner)
    for line in format_outcome(outcome):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
