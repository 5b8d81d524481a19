"""Simulation goals: the streams of run targets to simulate."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .run import RunGoals


class SimulationGoals:
    """Ordered streams, each an ordered list of run goals."""

    def __init__(self, streams: Iterable[Sequence[RunGoals]]) -> None:
        self.streams: list[list[RunGoals]] = [list(stream) for stream in streams]

    @classmethod
    def repeat_streams(cls, streams: int, run_goals: Sequence[RunGoals]) -> SimulationGoals:
        """Return goals with ``streams`` copies of the same run list."""

        return cls(list(run_goals) for _ in range(streams))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimulationGoals):
            return NotImplemented
        return self.streams == other.streams

    def __repr__(self) -> str:
        return f"SimulationGoals(streams={len(self.streams)}, runs={self.number_of_runs})"

    @property
    def number_of_runs(self) -> int:
        return sum(len(stream) for stream in self.streams)

    @property
    def total_target_pearls(self) -> int:
        return sum(run.target_pearls for stream in self.streams for run in stream)

    @property
    def total_target_rods(self) -> int:
        return sum(run.target_rods for stream in self.streams for run in stream)

    @property
    def target_pearls_per_run(self) -> int:
        """Average pearl target per run, rounded down."""

        runs = self.number_of_runs
        return self.total_target_pearls // runs if runs else 0


class SimulationGoalsBuilder:
    """Chainable builder for simulation goals.

    ``add_run`` and ``add_runs`` open a first stream when none exists yet.
    """

    def __init__(self) -> None:
        self._streams: list[list[RunGoals]] = []

    def goals(self) -> SimulationGoals:
        return SimulationGoals(self._streams)

    def add_stream(self) -> SimulationGoalsBuilder:
        self._streams.append([])
        return self

    def add_run(self, target_pearls: int, target_rods: int) -> SimulationGoalsBuilder:
        return self.add_runs(1, target_pearls, target_rods)

    def add_runs(self, runs: int, target_pearls: int, target_rods: int) -> SimulationGoalsBuilder:
        if not self._streams:
            self.add_stream()
        self._streams[-1].extend(
            RunGoals(target_pearls=target_pearls, target_rods=target_rods) for _ in range(runs)
        )
        return self
