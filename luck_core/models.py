"""Dataclasses returned by the high-level entry points."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from .drop_list import DropList
from .stats import BlazeRodDistribution, EnderPearlDistribution
from .stream import StreamResults


@dataclass
class ObservedStreamScore:
    """Luck and exact-outcome probability of an observed stream."""

    results: StreamResults
    pearl_luck: float
    rod_luck: float
    luck: float
    pearl_probability: float
    rod_probability: float
    probability: float


@dataclass
class SimulationRunSummary:
    """Output of a fixed-cycle simulation and its frequency tables."""

    results: list[StreamResults]
    barter_table: pd.DataFrame
    fight_table: pd.DataFrame
    compute_seconds: float

    @property
    def total_streams(self) -> int:
        return len(self.results)


@dataclass
class LuckiestStreamSummary:
    """The stream that met a target p-value, with everything needed to rescore it."""

    results: StreamResults
    barter_drop_list: DropList[EnderPearlDistribution]
    blaze_drop_list: DropList[BlazeRodDistribution]
    luck: float
    probability: float
    compute_seconds: float
