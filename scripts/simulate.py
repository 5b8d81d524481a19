"""Run the barter, blaze, and target p-value stream simulations from the command line."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from luck_core import (
    BLAZE_ROD_SCHEDULE,
    SimulationGoals,
    SimulationGoalsBuilder,
    find_lucky_stream,
    load_simulation_goals,
    run_simulation,
    write_frequency_table,
)
from luck_core.data import (
    BARTER_STUDY_PEARLS_PER_RUN,
    BARTER_STUDY_RUNS,
    P_VALUE_STUDY_PEARLS_PER_RUN,
    P_VALUE_STUDY_RODS_PER_RUN,
    P_VALUE_STUDY_RUNS,
    P_VALUE_STUDY_TARGET,
)

logger = logging.getLogger("luck_core.scripts.simulate")

DEFAULT_THREADS = int(os.environ.get("LUCK_SIM_THREADS", str(os.cpu_count() or 1)))
DEFAULT_CYCLES = 1_000_000
DEFAULT_BARTERS_OUTPUT = Path("data") / "barters.csv"
DEFAULT_BLAZES_OUTPUT = Path("data") / "blazes.csv"


def configure_logging(verbose: bool) -> None:
    """Send progress messages to stderr with timestamps."""

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("[%(asctime)s] %(levelname)s %(message)s", datefmt="%H:%M:%S")
    )
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def barter_study_goals() -> SimulationGoals:
    return SimulationGoalsBuilder().add_runs(BARTER_STUDY_RUNS, BARTER_STUDY_PEARLS_PER_RUN, 0).goals()


def blaze_study_goals() -> SimulationGoals:
    builder = SimulationGoalsBuilder()
    for rods in BLAZE_ROD_SCHEDULE:
        builder.add_run(0, rods)
    return builder.goals()


def p_value_study_goals() -> SimulationGoals:
    return (
        SimulationGoalsBuilder()
        .add_runs(P_VALUE_STUDY_RUNS, P_VALUE_STUDY_PEARLS_PER_RUN, P_VALUE_STUDY_RODS_PER_RUN)
        .goals()
    )


def resolve_goals(args: argparse.Namespace) -> SimulationGoals:
    if args.goals is not None:
        return load_simulation_goals(args.goals)
    if args.command == "barters":
        return barter_study_goals()
    if args.command == "blazes":
        return blaze_study_goals()
    return p_value_study_goals()


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-t",
        "--threads",
        type=int,
        default=DEFAULT_THREADS,
        help="Number of worker threads (defaults to LUCK_SIM_THREADS or the CPU count).",
    )
    parser.add_argument(
        "--goals",
        type=Path,
        default=None,
        help="JSON file of streams overriding the built-in run schedule.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log worker activity.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, default_output, help_text in (
        ("barters", DEFAULT_BARTERS_OUTPUT, "Tabulate barters needed for 17 runs of 10 pearls."),
        ("blazes", DEFAULT_BLAZES_OUTPUT, "Tabulate blaze fights needed for the 33-run rod schedule."),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("-c", "--cycles", type=int, default=DEFAULT_CYCLES)
        command.add_argument("--output-path", type=Path, default=default_output)

    until_p = subparsers.add_parser(
        "until-p",
        help="Simulate 22-run streams until one is as lucky as the target p-value.",
    )
    until_p.add_argument("-p", "--p-value", type=float, default=P_VALUE_STUDY_TARGET)
    return parser.parse_args(list(argv) if argv is not None else None)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    goals = resolve_goals(args)

    if args.command == "until-p":
        summary = find_lucky_stream(goals, args.p_value, args.threads, seed=args.seed)
        logger.info(
            "found stream with luck %g and probability %g (%d barters, %d fights) in %.1f s",
            summary.luck,
            summary.probability,
            summary.results.total_barters,
            summary.results.total_fights,
            summary.compute_seconds,
        )
        return

    summary = run_simulation(goals, args.cycles, args.threads, seed=args.seed)
    table = summary.barter_table if args.command == "barters" else summary.fight_table
    output_path = write_frequency_table(table, args.output_path)
    logger.info(
        "wrote %d rows from %d streams to %s in %.1f s",
        len(table),
        summary.total_streams,
        output_path,
        summary.compute_seconds,
    )


if __name__ == "__main__":
    main(sys.argv[1:])
