"""Drop tables paired with the luck model derived from them."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Generic, Optional, TypeVar

from .data import BARTER_DROP_CONFIGS, BLAZE_DROP_CONFIGS
from .drop import DropConfig
from .goals import SimulationGoals
from .stats import BlazeRodDistribution, EnderPearlDistribution, ExpectedAttemptsTable

D = TypeVar("D")


class DropList(Generic[D]):
    """A drop table together with the distribution used to score its drops.

    ``distribution`` is ``None`` when the aggregate target is zero; such a
    target is always scored as the identity and never consults the model.
    """

    def __init__(self, drops: Sequence[DropConfig], distribution: Optional[D]) -> None:
        self._drops = tuple(drops)
        self._distribution = distribution

    @property
    def drops(self) -> tuple[DropConfig, ...]:
        """Return the drop configurations used by drop simulators."""

        return self._drops

    def drops_clone(self) -> list[DropConfig]:
        """Return a fresh list of the drop configurations."""

        return list(self._drops)

    @property
    def distribution(self) -> Optional[D]:
        return self._distribution

    def require_distribution(self) -> D:
        """Return the distribution, raising if the target was zero."""

        if self._distribution is None:
            raise RuntimeError("This drop list has no distribution (its target is zero).")
        return self._distribution


def barter_drop_list(
    ender_pearl_target_total: int,
    ender_pearl_target_per_run: int,
    attempts: Optional[ExpectedAttemptsTable] = None,
) -> DropList[EnderPearlDistribution]:
    """Return the 1.16.1 piglin barter table and its ender pearl model.

    Raises
    ------
    InvalidDistributionError
        If a non-zero pearl target yields out-of-domain parameters.
    """

    distribution: Optional[EnderPearlDistribution] = None
    if ender_pearl_target_total > 0:
        distribution = EnderPearlDistribution(
            ender_pearl_target_total,
            ender_pearl_target_per_run,
            BARTER_DROP_CONFIGS,
            attempts=attempts,
        )
    return DropList(BARTER_DROP_CONFIGS, distribution)


def blaze_drop_list(blaze_rod_target: int) -> DropList[BlazeRodDistribution]:
    """Return the 1.16.1 blaze fight table and its blaze rod model."""

    distribution: Optional[BlazeRodDistribution] = None
    if blaze_rod_target > 0:
        distribution = BlazeRodDistribution(blaze_rod_target, BLAZE_DROP_CONFIGS)
    return DropList(BLAZE_DROP_CONFIGS, distribution)


def drop_lists_for_goals(
    goals: SimulationGoals,
    attempts: Optional[ExpectedAttemptsTable] = None,
) -> tuple[DropList[EnderPearlDistribution], DropList[BlazeRodDistribution]]:
    """Return the barter and blaze drop lists scored against the aggregate goals."""

    barter_list = barter_drop_list(
        goals.total_target_pearls,
        goals.target_pearls_per_run,
        attempts=attempts,
    )
    blaze_list = blaze_drop_list(goals.total_target_rods)
    return barter_list, blaze_list
