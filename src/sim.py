"""
sim.py

This script builds traffic-light schedules for problem files, writes them in the
competition's output format, and simulates and scores them. It processes either a
single file or every file of an input directory.

Classes:
    - DataPath: Manages the directory and file paths for storing simulation data.

Functions:
    - parse_args: Parses command-line arguments into a configuration dictionary.
    - handle_file: Schedules, writes, simulates and scores one problem file.
    - main: Entry point, returns the process exit code.

Usage:
    Schedule every file in ./input and write the schedules to ./output:

        traffic-schedule

    Schedule a single file and print the schedule instead of writing it:

        traffic-schedule -i -t input/a.txt

    Score an existing schedule for a problem:

        traffic-schedule -i input/a.txt -e output/a.txt.out

    With `--stats`, the arrivals and the per-second car counts of every simulated
    file, together with the configuration, are stored in a timestamped directory
    under the "data" folder.

Exit codes: 0 on success, 1 if any file could not be read, parsed, validated or
written, 2 on invalid arguments.
"""

import argparse
import datetime
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from fileio import ParseError, read_problem, read_schedule, schedule_to_string
from light import OPTIMIZERS, InvalidSchedule, build_schedule
from model import score, simulate
from network import MalformedNetwork

logger = logging.getLogger(__name__)


def parse_args(argv: list | None = None) -> dict:
    """Parses command line arguments for the scheduler configuration.

    Args:
        argv (list | None, optional): Arguments to parse. Defaults to `sys.argv[1:]`.

    Returns:
        dict: A dictionary containing the parsed command line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Traffic Light Schedule Builder",
        epilog="Without --individual_file every file in --input_dir is processed.",
    )
    parser.add_argument(
        "input", nargs="?", default=None, help="Problem file (with --individual_file)"
    )
    parser.add_argument(
        "-i",
        "--individual_file",
        action="store_true",
        help="Process only the given input file",
    )
    parser.add_argument(
        "-t",
        "--to_stdout",
        action="store_true",
        help="Print the schedules instead of writing .out files",
    )
    parser.add_argument(
        "-d", "--output_dir", type=str, default="output", help="Output directory"
    )
    parser.add_argument(
        "--input_dir", type=str, default="input", help="Input directory"
    )
    parser.add_argument(
        "-o",
        "--optimization_type",
        type=str,
        choices=list(OPTIMIZERS),
        default="uniform",
        help=f"Strategy used to build the schedules. One of: {list(OPTIMIZERS)}",
    )
    parser.add_argument(
        "-e",
        "--evaluate",
        type=str,
        default=None,
        help="Score this schedule file instead of building one (with --individual_file)",
    )
    parser.add_argument(
        "--skip_simulation",
        action="store_true",
        help="Only build and write the schedules",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Store arrivals and car counts under ./data",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    args = parser.parse_args(argv)
    if args.individual_file and args.input is None:
        parser.error("--individual_file requires an input file")
    if args.input is not None and not args.individual_file:
        parser.error("an input file requires --individual_file")
    if args.evaluate is not None and not args.individual_file:
        parser.error("--evaluate requires --individual_file")
    if args.evaluate is not None and args.skip_simulation:
        parser.error("--evaluate cannot be combined with --skip_simulation")

    return vars(args)


@dataclass
class DataPath:
    """Manages the directory and file paths for storing simulation data.

    Creates a timestamped directory within the 'data' folder upon instantiation.

    Attributes:
        path (Path): The Path object representing the timestamped data directory.
    """

    path: Path = field(
        default_factory=lambda: Path.joinpath(
            Path.cwd(),
            "data",
            datetime.datetime.now().strftime("%Y-%m-%d-%H-%M-%S"),
        )
    )

    def __post_init__(self):
        """Creates the data directory if it doesn't exist."""
        self.path.mkdir(parents=True, exist_ok=True)

    def get_path(self) -> Path:
        return self.path

    def get_file_path(self, filename: str) -> Path:
        """Constructs the full path for a file within the data directory.

        Args:
            filename (str): The name of the file (e.g., 'a.txt.traffic.parquet').

        Returns:
            Path: The full path to the specified file within the data directory.
        """
        return Path.joinpath(self.path, filename)


def handle_file(
    path: Path, config: dict, data_path: DataPath | None = None
) -> int | None:
    """Schedules, writes, simulates and scores one problem file.

    Args:
        path (Path): The problem file.
        config (dict): The configuration returned by `parse_args`.
        data_path (DataPath | None, optional): Where to store statistics.

    Returns:
        int | None: The score, or None when the simulation is skipped.
    """
    problem = read_problem(path)

    if config["evaluate"] is not None:
        schedule = read_schedule(config["evaluate"])
    else:
        schedule = build_schedule(problem, config["optimization_type"])
        output = schedule_to_string(schedule)
        if config["to_stdout"]:
            print(f"For file: {path.name}")
            print(output)
        else:
            out_path = Path(config["output_dir"]) / f"{path.name}.out"
            out_path.write_text(output)
            logger.info("Wrote schedule for %d intersections to %s", len(schedule), out_path)

    if config["skip_simulation"]:
        return None

    simulate(problem, schedule, progress=True)
    total = score(problem)
    print(
        f"{path.name}: {len(problem.arrivals)} of {len(problem.cars)} cars arrived, score {total}"
    )

    if data_path is not None:
        problem.arrivals.get_data().write_parquet(
            data_path.get_file_path(f"{path.name}.arrivals.parquet")
        )
        problem.traffic_counts.get_data().write_parquet(
            data_path.get_file_path(f"{path.name}.traffic.parquet")
        )

    return total


def main(argv: list | None = None) -> int:
    """Runs the scheduler and returns the process exit code."""
    config = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if config["verbose"] else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if config["individual_file"]:
        files = [Path(config["input"])]
    else:
        input_dir = Path(config["input_dir"])
        if not input_dir.is_dir():
            logger.error("Input directory %s does not exist", input_dir)
            return 1
        files = sorted(entry for entry in input_dir.iterdir() if entry.is_file())

    if not config["to_stdout"] and config["evaluate"] is None:
        output_dir = Path(config["output_dir"])
        if output_dir.exists() and not output_dir.is_dir():
            logger.error("Output %s should be a directory", output_dir)
            return 1
        output_dir.mkdir(parents=True, exist_ok=True)

    data_path = None
    if config["stats"]:
        data_path = DataPath()
        with open(file=data_path.get_file_path("config.json"), mode="w") as file:
            json.dump(obj=config, fp=file, indent=4)

    failures = 0
    total = 0
    for path in files:
        try:
            result = handle_file(path, config, data_path)
        except (OSError, ParseError, MalformedNetwork, InvalidSchedule) as e:
            logger.error("Failed to process %s: %s", path, e)
            failures += 1
            continue
        if result is not None:
            total += result

    if not config["skip_simulation"]:
        print(100 * "-")
        print(f"Total score: {total}")
    if data_path is not None:
        print(f"Simulation data stored in: {data_path.get_path()}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
