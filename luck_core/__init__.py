"""Monte Carlo and analytic luck estimates for weighted item drops."""

from __future__ import annotations

from .api import (
    barter_frequency_table,
    find_lucky_stream,
    fight_frequency_table,
    results_frame,
    run_simulation,
    score_observed_stream,
    write_frequency_table,
)
from .data import (
    BARTER_DROP_CONFIGS,
    BLAZE_DROP_CONFIGS,
    BLAZE_ROD_SCHEDULE,
    load_simulation_goals,
    save_simulation_goals,
)
from .drop import Drop, DropConfig, DropSim, Item
from .drop_list import DropList, barter_drop_list, blaze_drop_list, drop_lists_for_goals
from .goals import SimulationGoals, SimulationGoalsBuilder
from .models import LuckiestStreamSummary, ObservedStreamScore, SimulationRunSummary
from .run import Run, RunGoals, RunSim, farm_for_item
from .sim import Simulation, SimulationError
from .stats import (
    BlazeRodDistribution,
    EnderPearlDistribution,
    ExpectedAttemptsTable,
    InvalidDistributionError,
    UniformProbabilityTable,
    attempts_to_reach_target,
    item_drop_average,
    item_drop_probability,
    item_drop_range,
)
from .stream import Stream, StreamResults

__all__ = [
    "BARTER_DROP_CONFIGS",
    "BLAZE_DROP_CONFIGS",
    "BLAZE_ROD_SCHEDULE",
    "BlazeRodDistribution",
    "Drop",
    "DropConfig",
    "DropList",
    "DropSim",
    "EnderPearlDistribution",
    "ExpectedAttemptsTable",
    "InvalidDistributionError",
    "Item",
    "LuckiestStreamSummary",
    "ObservedStreamScore",
    "Run",
    "RunGoals",
    "RunSim",
    "Simulation",
    "SimulationError",
    "SimulationGoals",
    "SimulationGoalsBuilder",
    "SimulationRunSummary",
    "Stream",
    "StreamResults",
    "UniformProbabilityTable",
    "attempts_to_reach_target",
    "barter_drop_list",
    "barter_frequency_table",
    "blaze_drop_list",
    "drop_lists_for_goals",
    "farm_for_item",
    "fight_frequency_table",
    "find_lucky_stream",
    "item_drop_average",
    "item_drop_probability",
    "item_drop_range",
    "load_simulation_goals",
    "results_frame",
    "run_simulation",
    "save_simulation_goals",
    "score_observed_stream",
    "write_frequency_table",
]
