"""High-level entry points used by the UI, scripts, and analysis code."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import fields
from pathlib import Path
from time import perf_counter
from typing import Final, Optional

import pandas as pd

from .drop_list import barter_drop_list, blaze_drop_list, drop_lists_for_goals
from .goals import SimulationGoals
from .models import LuckiestStreamSummary, ObservedStreamScore, SimulationRunSummary
from .sim import Simulation
from .stream import StreamResults

RESULT_COLUMNS: Final[list[str]] = [field.name for field in fields(StreamResults)]
TABLE_VALUE_COLUMNS: Final[list[str]] = ["estimated_probability", "count", "frequency"]


def score_observed_stream(
    number_of_runs: int,
    target_pearls_per_run: int,
    total_barters: int,
    successful_barters: int,
    target_rods: int,
    total_fights: int,
) -> ObservedStreamScore:
    """Score externally observed barters and fights against the luck models.

    Parameters
    ----------
    number_of_runs:
        Runs in the observed stream.
    target_pearls_per_run:
        Pearls every run bartered for (use 0 to ignore pearls).
    total_barters, successful_barters:
        Barters made across the stream and how many of them dropped pearls.
    target_rods:
        Blaze rods collected across the stream (use 0 to ignore rods).
    total_fights:
        Blazes killed across the stream.

    Raises
    ------
    InvalidDistributionError
        If the targets produce out-of-domain distribution parameters.
    """

    total_target_pearls = number_of_runs * target_pearls_per_run
    results = StreamResults(
        number_of_runs=number_of_runs,
        total_barters=total_barters,
        total_fights=total_fights,
        successful_barters=successful_barters,
        successful_fights=total_fights,
        total_target_pearls=total_target_pearls,
        average_target_pearls_per_run=target_pearls_per_run,
        total_target_rods=target_rods,
    )
    barter_list = barter_drop_list(total_target_pearls, target_pearls_per_run)
    blaze_list = blaze_drop_list(target_rods)

    pearl_luck = results.pearl_luck(barter_list)
    rod_luck = results.rod_luck(blaze_list)
    pearl_probability = results.pearl_probability(barter_list)
    rod_probability = results.rod_probability(blaze_list)
    return ObservedStreamScore(
        results=results,
        pearl_luck=pearl_luck,
        rod_luck=rod_luck,
        luck=pearl_luck * rod_luck,
        pearl_probability=pearl_probability,
        rod_probability=rod_probability,
        probability=pearl_probability * rod_probability,
    )


def results_frame(results: Sequence[StreamResults]) -> pd.DataFrame:
    """Return one flat row per stream summary."""

    return pd.DataFrame.from_records(
        [summary.to_dict() for summary in results],
        columns=RESULT_COLUMNS,
    )


def _frequency_table(
    results: Sequence[StreamResults],
    total_column: str,
    key_column: str,
    probability: Callable[[StreamResults], float],
) -> pd.DataFrame:
    """Count how often each total occurred, scoring the first summary seen per total."""

    frame = results_frame(results)
    if frame.empty:
        return pd.DataFrame(columns=[key_column, *TABLE_VALUE_COLUMNS])

    counts = frame[total_column].value_counts()
    first_rows = frame.drop_duplicates(subset=total_column, keep="first").sort_values(total_column)
    estimated = [
        probability(StreamResults(**{name: int(value) for name, value in record.items()}))
        for record in first_rows.to_dict("records")
    ]
    table = pd.DataFrame(
        {
            key_column: first_rows[total_column].to_numpy(),
            "estimated_probability": estimated,
            "count": first_rows[total_column].map(counts).to_numpy(),
        }
    )
    table["frequency"] = table["count"] / len(frame)
    return table.reset_index(drop=True)


def barter_frequency_table(
    goals: SimulationGoals,
    results: Sequence[StreamResults],
) -> pd.DataFrame:
    """Frequency of each total barter count with its estimated probability."""

    barter_list, _ = drop_lists_for_goals(goals)
    return _frequency_table(
        results,
        total_column="total_barters",
        key_column="barters",
        probability=lambda summary: summary.pearl_probability(barter_list),
    )


def fight_frequency_table(
    goals: SimulationGoals,
    results: Sequence[StreamResults],
) -> pd.DataFrame:
    """Frequency of each total blaze fight count with its estimated probability."""

    _, blaze_list = drop_lists_for_goals(goals)
    return _frequency_table(
        results,
        total_column="total_fights",
        key_column="blazes",
        probability=lambda summary: summary.rod_probability(blaze_list),
    )


def write_frequency_table(table: pd.DataFrame, path: str | Path) -> Path:
    """Write a frequency table as CSV, creating parent folders as needed."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(output_path, index=False)
    return output_path


def run_simulation(
    goals: SimulationGoals,
    cycles: int,
    thread_count: int,
    seed: Optional[int] = None,
    **simulation_options: float,
) -> SimulationRunSummary:
    """Simulate ``cycles`` passes over the goals and tabulate the outcomes."""

    simulation = Simulation(goals, thread_count, seed=seed, **simulation_options)
    compute_start = perf_counter()
    results = simulation.simulate_n_times(cycles)
    compute_seconds = perf_counter() - compute_start
    return SimulationRunSummary(
        results=results,
        barter_table=barter_frequency_table(goals, results),
        fight_table=fight_frequency_table(goals, results),
        compute_seconds=compute_seconds,
    )


def find_lucky_stream(
    goals: SimulationGoals,
    p_value: float,
    thread_count: int,
    seed: Optional[int] = None,
    **simulation_options: float,
) -> LuckiestStreamSummary:
    """Simulate until a stream at least as lucky as ``p_value`` appears."""

    simulation = Simulation(goals, thread_count, seed=seed, **simulation_options)
    compute_start = perf_counter()
    results = simulation.run_to_p_value(p_value)
    compute_seconds = perf_counter() - compute_start
    barter_list = simulation.barter_drop_list
    blaze_list = simulation.blaze_drop_list
    return LuckiestStreamSummary(
        results=results,
        barter_drop_list=barter_list,
        blaze_drop_list=blaze_list,
        luck=results.luck(barter_list, blaze_list),
        probability=results.probability(barter_list, blaze_list),
        compute_seconds=compute_seconds,
    )
