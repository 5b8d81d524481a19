"""Streams of runs and the RNG-free summaries that get scored."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass, field

from .drop import DropSim
from .drop_list import DropList
from .run import Run, RunGoals, RunSim
from .stats import BlazeRodDistribution, EnderPearlDistribution


@dataclass(frozen=True)
class StreamResults:
    """Summary of a stream's barters and fights against its targets.

    Only the totals are kept; the per-drop traces are discarded so millions of
    simulated streams fit in memory.
    """

    number_of_runs: int
    total_barters: int
    total_fights: int
    successful_barters: int
    successful_fights: int
    total_target_pearls: int
    average_target_pearls_per_run: int
    total_target_rods: int

    @classmethod
    def from_goals(
        cls,
        goals: Sequence[RunGoals],
        total_barters: int,
        total_fights: int,
        successful_barters: int,
        successful_fights: int,
    ) -> StreamResults:
        """Build results from the run goals and the totals needed to reach them."""

        total_target_pearls = sum(run.target_pearls for run in goals)
        total_target_rods = sum(run.target_rods for run in goals)
        number_of_runs = len(goals)
        average = total_target_pearls // number_of_runs if number_of_runs else 0
        return cls(
            number_of_runs=number_of_runs,
            total_barters=total_barters,
            total_fights=total_fights,
            successful_barters=successful_barters,
            successful_fights=successful_fights,
            total_target_pearls=total_target_pearls,
            average_target_pearls_per_run=average,
            total_target_rods=total_target_rods,
        )

    def luck(
        self,
        barter_drop_list: DropList[EnderPearlDistribution],
        blaze_drop_list: DropList[BlazeRodDistribution],
    ) -> float:
        """p-value of being at least this lucky with both barters and fights.

        The two items are treated as independent. Lower means luckier.
        """

        return self.pearl_luck(barter_drop_list) * self.rod_luck(blaze_drop_list)

    def probability(
        self,
        barter_drop_list: DropList[EnderPearlDistribution],
        blaze_drop_list: DropList[BlazeRodDistribution],
    ) -> float:
        """Probability of exactly these barter and fight counts."""

        return self.pearl_probability(barter_drop_list) * self.rod_probability(blaze_drop_list)

    def pearl_luck(self, barter_drop_list: DropList[EnderPearlDistribution]) -> float:
        if self.total_target_pearls == 0:
            return 1.0
        return barter_drop_list.require_distribution().luck(
            self.total_barters, self.successful_barters
        )

    def rod_luck(self, blaze_drop_list: DropList[BlazeRodDistribution]) -> float:
        if self.total_target_rods == 0:
            return 1.0
        return blaze_drop_list.require_distribution().luck(self.total_fights)

    def pearl_probability(self, barter_drop_list: DropList[EnderPearlDistribution]) -> float:
        if self.total_target_pearls == 0:
            return 0.0
        return barter_drop_list.require_distribution().probability(
            self.total_barters, self.successful_barters
        )

    def rod_probability(self, blaze_drop_list: DropList[BlazeRodDistribution]) -> float:
        if self.total_target_rods == 0:
            return 0.0
        return blaze_drop_list.require_distribution().probability(self.total_fights)

    def to_dict(self) -> dict[str, int]:
        """Return the flat record written to result tables."""

        return asdict(self)


@dataclass
class Stream:
    """An ordered list of runs, each with its own goals."""

    runs: list[Run] = field(default_factory=list)
    goals: list[RunGoals] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.runs) != len(self.goals):
            raise ValueError(
                f"Stream has {len(self.runs)} runs but {len(self.goals)} run goals."
            )

    @classmethod
    def simulate(
        cls,
        barter_drop_sim: DropSim,
        blaze_drop_sim: DropSim,
        goals: Sequence[RunGoals],
    ) -> Stream:
        """Simulate every run of the stream in order."""

        goals_list = list(goals)
        runs = [
            RunSim.from_goals(barter_drop_sim, blaze_drop_sim, run_goals).run()
            for run_goals in goals_list
        ]
        return cls(runs=runs, goals=goals_list)

    def total_barters(self) -> int:
        return sum(run.total_barters() for run in self.runs)

    def successful_barters(self) -> int:
        return sum(run.successful_barters() for run in self.runs)

    def total_pearls(self) -> int:
        return sum(run.total_pearls() for run in self.runs)

    def total_fights(self) -> int:
        return sum(run.total_fights() for run in self.runs)

    def successful_fights(self) -> int:
        return sum(run.successful_fights() for run in self.runs)

    def total_rods(self) -> int:
        return sum(run.total_rods() for run in self.runs)

    def results(self) -> StreamResults:
        """Summarise the stream for scoring and storage."""

        return StreamResults.from_goals(
            self.goals,
            total_barters=self.total_barters(),
            total_fights=self.total_fights(),
            successful_barters=self.successful_barters(),
            successful_fights=self.successful_fights(),
        )
