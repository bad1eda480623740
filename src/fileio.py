"""
fileio.py

This module reads problem descriptions and reads and writes schedules in the
line-oriented text format of the competition.

Problem format:
    D I S C B                 horizon, intersections, streets, cars, bonus points
    start end name duration   one line per street (S lines)
    P name_1 ... name_P       one line per car (C lines), car ids in input order

Schedule format:
    A                         number of scheduled intersections
    id                        then, per intersection: its id,
    K                         the number of cycle entries,
    name duration             and K lines of street name and green duration

Functions:
    - parse_problem / read_problem: Build a `Problem` from text or a file.
    - schedule_to_string / write_schedule: Serialize a `Schedule`.
    - parse_schedule / read_schedule: Build a `Schedule` from text or a file.

Classes:
    - ParseError: Raised when the text does not follow the format.
"""

import logging
from pathlib import Path

from light import Schedule
from model import Problem

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Exception raised when an input does not follow the text format."""

    def __init__(self, message: str, line: int | None = None):
        """Initializes ParseError exception.

        Args:
            message (str): What is wrong.
            line (int | None, optional): 1-based number of the offending line.
        """
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        if self.line is None:
            return f"{self.message}"
        return f"line {self.line}: {self.message}"


def _tokenize(text: str) -> list[tuple[int, list[str]]]:
    return [
        (number, line.split())
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip()
    ]


def _to_int(token: str, what: str, line: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise ParseError(f"{what} must be an integer, got '{token}'", line) from None


def _take(lines: list, cursor: int, what: str) -> tuple[int, list[str]]:
    if cursor >= len(lines):
        last_line = lines[-1][0] if lines else 0
        raise ParseError(f"Unexpected end of input, expected {what}", last_line + 1)
    return lines[cursor]


def parse_problem(text: str, seed: int = 42) -> Problem:
    """Builds a problem from its text description.

    Intersections 0 to I - 1 are created first, then the streets and the cars in
    input order. Cars are placed at the end of their first street.

    Args:
        text (str): The problem description.
        seed (int, optional): Seed passed to the `Problem`. Defaults to 42.

    Returns:
        Problem: The problem, ready to be scheduled.

    Raises:
        ParseError: If the text does not follow the format.
        MalformedNetwork: If the description refers to unknown streets or
                          intersections, or defines a street twice.
    """
    lines = _tokenize(text)

    number, header = _take(lines, 0, "the header line")
    if len(header) != 5:
        raise ParseError(f"Header needs 5 fields, got {len(header)}", number)
    amount_of_seconds, num_intersections, num_streets, num_cars, bonus_points = (
        _to_int(token, what, number)
        for token, what in zip(
            header,
            ["Duration", "Intersection count", "Street count", "Car count", "Bonus"],
        )
    )
    for value, what in (
        (amount_of_seconds, "Duration"),
        (num_intersections, "Intersection count"),
        (num_streets, "Street count"),
        (num_cars, "Car count"),
        (bonus_points, "Bonus"),
    ):
        if value < 0:
            raise ParseError(f"{what} must not be negative, got {value}", number)

    problem = Problem(
        amount_of_seconds=amount_of_seconds, bonus_points=bonus_points, seed=seed
    )
    problem.add_intersections(range(num_intersections))

    cursor = 1
    for _ in range(num_streets):
        number, fields = _take(lines, cursor, "a street line")
        if len(fields) != 4:
            raise ParseError(f"Street line needs 4 fields, got {len(fields)}", number)
        start = _to_int(fields[0], "Start intersection", number)
        end = _to_int(fields[1], "End intersection", number)
        time_to_travel = _to_int(fields[3], "Street duration", number)
        problem.add_street(start, end, fields[2], time_to_travel)
        cursor += 1

    for car_id in range(num_cars):
        number, fields = _take(lines, cursor, "a car line")
        path_length = _to_int(fields[0], "Path length", number)
        if len(fields) != path_length + 1:
            raise ParseError(
                f"Car line announces {path_length} streets, got {len(fields) - 1}",
                number,
            )
        problem.add_car(fields[1:], car_id=car_id)
        cursor += 1

    if cursor < len(lines):
        raise ParseError("Unexpected trailing content", lines[cursor][0])

    logger.debug(
        "Parsed problem: %d seconds, %d intersections, %d streets, %d cars",
        amount_of_seconds,
        num_intersections,
        num_streets,
        num_cars,
    )
    return problem


def _read_text(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"not valid UTF-8: {e}") from None


def read_problem(path: str | Path, seed: int = 42) -> Problem:
    """Reads a problem description from a file."""
    return parse_problem(_read_text(path), seed=seed)


def schedule_to_string(schedule: Schedule) -> str:
    """Serializes a schedule.

    Intersections are written in ascending id order; intersections with an empty
    cycle are left out.

    Args:
        schedule (Schedule): The schedule to serialize.

    Returns:
        str: The schedule in the text format, ending with a newline.
    """
    intersection_ids = schedule.scheduled_intersections()
    lines = [str(len(intersection_ids))]
    for intersection_id in intersection_ids:
        entries = schedule.traffic_lights[intersection_id]
        lines.append(str(intersection_id))
        lines.append(str(len(entries)))
        lines.extend(f"{name} {duration}" for name, duration in entries)
    return "\n".join(lines) + "\n"


def write_schedule(schedule: Schedule, path: str | Path) -> None:
    Path(path).write_text(schedule_to_string(schedule))


def parse_schedule(text: str) -> Schedule:
    """Builds a schedule from its text form.

    Args:
        text (str): The schedule in the text format.

    Returns:
        Schedule: The schedule. Whether it fits a network is checked when it is
                  installed on a problem.

    Raises:
        ParseError: If the text does not follow the format.
    """
    lines = _tokenize(text)

    number, fields = _take(lines, 0, "the intersection count")
    if len(fields) != 1:
        raise ParseError("Intersection count line needs 1 field", number)
    num_intersections = _to_int(fields[0], "Intersection count", number)

    schedule = Schedule()
    cursor = 1
    for _ in range(num_intersections):
        number, fields = _take(lines, cursor, "an intersection id")
        if len(fields) != 1:
            raise ParseError("Intersection id line needs 1 field", number)
        intersection_id = _to_int(fields[0], "Intersection id", number)
        if intersection_id in schedule.traffic_lights:
            raise ParseError(f"Intersection {intersection_id} scheduled twice", number)

        number, fields = _take(lines, cursor + 1, "an entry count")
        if len(fields) != 1:
            raise ParseError("Entry count line needs 1 field", number)
        num_entries = _to_int(fields[0], "Entry count", number)
        if num_entries < 1:
            raise ParseError(f"Entry count must be positive, got {num_entries}", number)
        cursor += 2

        entries = []
        for _ in range(num_entries):
            number, fields = _take(lines, cursor, "a schedule entry")
            if len(fields) != 2:
                raise ParseError(
                    f"Schedule entry needs 2 fields, got {len(fields)}", number
                )
            entries.append((fields[0], _to_int(fields[1], "Green duration", number)))
            cursor += 1
        schedule.add(intersection_id, entries)

    if cursor < len(lines):
        raise ParseError("Unexpected trailing content", lines[cursor][0])

    return schedule


def read_schedule(path: str | Path) -> Schedule:
    """Reads a schedule from a file."""
    return parse_schedule(_read_text(path))
