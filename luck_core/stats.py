"""Negative-binomial luck models and the expected-draws solver."""

from __future__ import annotations

import math
from collections.abc import Sequence
from fractions import Fraction
from typing import Optional

from scipy.stats import nbinom

from .drop import DropConfig, Item

AttemptsMemo = dict[tuple[int, int, int], float]


class InvalidDistributionError(ValueError):
    """Raised when derived distribution parameters fall outside their domain."""


def _find_item(drop_list: Sequence[DropConfig], item: Item) -> DropConfig:
    """Return the single entry for ``item``, raising if the table lacks it."""

    for drop in drop_list:
        if drop.item == item:
            return drop
    raise ValueError(f"Item '{item.value}' is not present on the drop list.")


def item_drop_probability(drop_list: Sequence[DropConfig], item: Item) -> float:
    """Return the probability that a single roll selects ``item``.

    Assumes the item appears on the drop list only once.
    """

    target = _find_item(drop_list, item)
    return target.weight / sum(drop.weight for drop in drop_list)


def item_drop_average(drop_list: Sequence[DropConfig], item: Item) -> float:
    """Return the mean count dropped when ``item`` is selected."""

    target = _find_item(drop_list, item)
    return (target.max_count - target.min_count) / 2.0 + target.min_count


def item_drop_range(drop_list: Sequence[DropConfig], item: Item) -> tuple[int, int]:
    """Return the inclusive ``(min_count, max_count)`` range of ``item``."""

    target = _find_item(drop_list, item)
    return target.min_count, target.max_count


def attempts_to_reach_target(
    minimum: int,
    maximum: int,
    target: int,
    memo: Optional[AttemptsMemo] = None,
) -> float:
    """Expected number of uniform draws from ``[minimum, maximum]`` to reach ``target``.

    Solves ``E(t) = 1 + 1/(max-min+1) * sum(E(t-k) for k in min..max)`` with
    ``E(t) = 0`` for ``t <= 0``. Values are filled bottom up into ``memo`` so a
    caller-owned dict is reused across calls with the same range.

    Parameters
    ----------
    minimum, maximum:
        Inclusive bounds of the uniform integer draw.
    target:
        Running sum that must be reached or exceeded.
    memo:
        Optional table keyed by ``(minimum, maximum, target)``.

    Raises
    ------
    ValueError
        If the range is empty, negative, or can never make progress.
    """

    if minimum < 0 or maximum < minimum:
        raise ValueError(f"Invalid draw range [{minimum}, {maximum}].")
    if maximum == 0:
        raise ValueError("A draw range of [0, 0] never reaches a positive target.")
    if target <= 0:
        return 0.0
    if memo is None:
        memo = {}

    cached = memo.get((minimum, maximum, target))
    if cached is not None:
        return cached

    width = maximum - minimum + 1
    lowest_step = max(minimum, 1)
    for partial in range(1, target + 1):
        key = (minimum, maximum, partial)
        if key in memo:
            continue
        total = 0.0
        for step in range(lowest_step, maximum + 1):
            remaining = partial - step
            if remaining > 0:
                total += memo[(minimum, maximum, remaining)]
        if minimum == 0:
            # a zero draw leaves E(partial) on both sides of the recurrence
            memo[key] = (width + total) / (width - 1)
        else:
            memo[key] = 1.0 + total / width
    return memo[(minimum, maximum, target)]


class ExpectedAttemptsTable:
    """Owns an expected-draws memo so repeated queries share their work."""

    def __init__(self) -> None:
        self._memo: AttemptsMemo = {}

    def __call__(self, minimum: int, maximum: int, target: int) -> float:
        return attempts_to_reach_target(minimum, maximum, target, self._memo)

    def __len__(self) -> int:
        return len(self._memo)


def _negative_binomial(successes: float, probability: float):
    """Validate parameters and return a frozen scipy negative binomial."""

    if not math.isfinite(successes) or successes <= 0.0:
        raise InvalidDistributionError(
            f"Negative binomial shape must be positive and finite, got {successes}."
        )
    if not 0.0 < probability <= 1.0:
        raise InvalidDistributionError(
            f"Negative binomial probability must lie in (0, 1], got {probability}."
        )
    return nbinom(successes, probability)


class EnderPearlDistribution:
    """Distribution of failed barters needed to collect a stream's pearl target.

    Each run keeps bartering until it holds ``ender_pearl_target_per_run``
    pearls, which takes ``E(4, 8, per_run)`` successful barters on average. The
    stream as a whole therefore needs about ``total / per_run * E(...)``
    successful barters, each barter succeeding with the pearl drop probability;
    the number of failed barters follows a negative binomial with those
    parameters.

    The model is most accurate when every run in the stream shares the same
    per-run target. Streams with very uneven targets skew it towards good luck,
    so prefer normalising the observed runs to a common target (or scoring each
    run as its own stream).
    """

    def __init__(
        self,
        ender_pearl_target_total: int,
        ender_pearl_target_per_run: int,
        drop_list: Sequence[DropConfig],
        attempts: Optional[ExpectedAttemptsTable] = None,
    ) -> None:
        if ender_pearl_target_per_run <= 0:
            raise InvalidDistributionError(
                "Pearl target per run must be positive to build a pearl distribution."
            )
        attempts = attempts if attempts is not None else ExpectedAttemptsTable()
        drop_probability = item_drop_probability(drop_list, Item.ENDER_PEARL)
        low, high = item_drop_range(drop_list, Item.ENDER_PEARL)
        mean_drops_to_reach_target = attempts(low, high, ender_pearl_target_per_run)

        self._target_total = ender_pearl_target_total
        self._target_per_run = ender_pearl_target_per_run
        self._successes = (
            ender_pearl_target_total / ender_pearl_target_per_run * mean_drops_to_reach_target
        )
        self._probability = drop_probability
        self._distribution = _negative_binomial(self._successes, self._probability)

    @property
    def ender_pearl_target_total(self) -> int:
        return self._target_total

    @property
    def ender_pearl_target_per_run(self) -> int:
        return self._target_per_run

    @property
    def parameters(self) -> tuple[float, float]:
        """Return the ``(r, p)`` negative binomial parameters."""

        return self._successes, self._probability

    @property
    def distribution(self):
        """Return the frozen scipy distribution backing this model."""

        return self._distribution

    def luck(self, total_barters_made: int, successful_barters: int) -> float:
        """Probability of needing at most this many failed barters (lower is luckier)."""

        return float(self._distribution.cdf(total_barters_made - successful_barters))

    def probability(self, total_barters_made: int, successful_barters: int) -> float:
        """Probability of exactly this many failed barters."""

        return float(self._distribution.pmf(total_barters_made - successful_barters))

    def __repr__(self) -> str:
        return (
            f"EnderPearlDistribution(total={self._target_total}, "
            f"per_run={self._target_per_run}, r={self._successes:.6g}, p={self._probability:.6g})"
        )


class BlazeRodDistribution:
    """Distribution of failed blaze fights needed to collect a rod target.

    One rod per successful fight makes the negative binomial exact here, so the
    model copes with uneven per-run rod targets.
    """

    def __init__(self, blaze_rod_target: int, drop_list: Sequence[DropConfig]) -> None:
        self._target = blaze_rod_target
        self._probability = item_drop_average(drop_list, Item.BLAZE_ROD)
        self._distribution = _negative_binomial(float(blaze_rod_target), self._probability)

    @property
    def blaze_rod_target(self) -> int:
        return self._target

    @property
    def parameters(self) -> tuple[float, float]:
        """Return the ``(r, p)`` negative binomial parameters."""

        return float(self._target), self._probability

    @property
    def distribution(self):
        """Return the frozen scipy distribution backing this model."""

        return self._distribution

    def luck(self, total_blazes_killed: int) -> float:
        """Probability of needing at most this many fights for the rod target."""

        return float(self._distribution.cdf(total_blazes_killed - self._target))

    def probability(self, total_blazes_killed: int) -> float:
        """Probability of needing exactly this many fights for the rod target."""

        return float(self._distribution.pmf(total_blazes_killed - self._target))

    def __repr__(self) -> str:
        return f"BlazeRodDistribution(target={self._target}, p={self._probability:.6g})"


class UniformProbabilityTable:
    """Exact rational derivation of the expected rolls of a ``1..d`` die to reach a sum.

    ``table[throw][num]`` holds the probability that ``throw`` rolls sum to
    exactly ``num``. Slow, and only used to cross-check
    :func:`attempts_to_reach_target`.
    """

    def __init__(self, samples: int, distribution_size: int) -> None:
        """Build the table for target ``samples`` and a die with ``distribution_size`` faces."""

        if distribution_size < 1:
            raise ValueError("Distribution size must be at least 1.")
        if samples < distribution_size:
            raise ValueError("Target must be at least the distribution size.")
        self.samples = samples
        self.distribution_size = distribution_size
        self._table = self._uniform_probabilities_for_n_samples(samples, distribution_size)
        self._probabilities: Optional[list[Fraction]] = None

    def expectation_of_target(self) -> Fraction:
        """Return the exact expected number of rolls to reach ``samples``."""

        size = self.distribution_size
        probabilities = self.probabilities()
        expectations = self.expectations()

        normalization = Fraction(0)
        contribution = Fraction(0)
        for min_dots in range(size):
            index = self.samples - min_dots - 1
            prob = Fraction(size - min_dots, size) * probabilities[index]
            normalization += prob
            contribution += prob * (expectations[index] + 1)
        return contribution / normalization

    def expectations(self) -> list[Fraction]:
        """Expected rolls to land exactly on each sum, given that it is landed on."""

        probabilities = self.probabilities()
        expectations = [Fraction(0)]
        for num in range(1, self.samples):
            normalization = Fraction(0)
            contribution = Fraction(0)
            for dots in range(1, min(self.distribution_size, num) + 1):
                prob = probabilities[num - dots]
                normalization += prob
                contribution += prob * (expectations[num - dots] + 1)
            expectations.append(contribution / normalization)
        return expectations

    def probabilities(self) -> list[Fraction]:
        """Probability that the running sum ever equals each value below ``samples``."""

        if self._probabilities is None:
            self._probabilities = [
                sum((row[num] for row in self._table), Fraction(0))
                for num in range(self.samples)
            ]
        return self._probabilities

    @staticmethod
    def _uniform_probabilities_for_n_samples(
        samples: int,
        distribution_size: int,
    ) -> list[list[Fraction]]:
        table = [[Fraction(0)] * samples for _ in range(samples)]
        table[0][0] = Fraction(1)
        for throw in range(1, samples):
            previous = table[throw - 1]
            row = table[throw]
            for num in range(1, samples):
                upper = min(num, distribution_size)
                row[num] = sum(
                    (previous[num - dots] for dots in range(1, upper + 1)), Fraction(0)
                ) / distribution_size
        return table
