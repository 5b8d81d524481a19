"""Single speed run simulation: barter for pearls, then fight blazes for rods."""

from __future__ import annotations

from dataclasses import dataclass, field

from .drop import Drop, DropSim, Item


@dataclass(frozen=True)
class RunGoals:
    """Minimum resources a runner collects before moving on.

    Leaving early because a run is already lost, or stopping mid-batch, is not
    modelled; account for it in the analysis instead.
    """

    target_pearls: int
    target_rods: int


@dataclass
class Run:
    """Full drop trace of one run's bartering and blaze fights."""

    barters: list[Drop] = field(default_factory=list)
    fights: list[Drop] = field(default_factory=list)

    def total_barters(self) -> int:
        return len(self.barters)

    def successful_barters(self) -> int:
        return sum(1 for drop in self.barters if drop.item == Item.ENDER_PEARL)

    def total_pearls(self) -> int:
        return sum(drop.count for drop in self.barters if drop.item == Item.ENDER_PEARL)

    def total_fights(self) -> int:
        return len(self.fights)

    def successful_fights(self) -> int:
        return sum(1 for drop in self.fights if drop.item == Item.BLAZE_ROD)

    def total_rods(self) -> int:
        return sum(drop.count for drop in self.fights if drop.item == Item.BLAZE_ROD)


def farm_for_item(drop_sim: DropSim, item: Item, minimum: int) -> list[Drop]:
    """Roll ``drop_sim`` until the drops of ``item`` add up to ``minimum``.

    Every roll is kept, including the ones that dropped something else. The
    loop never ends if ``item`` cannot drop; callers must supply a table where
    it has a positive weight and a positive maximum count.
    """

    drops: list[Drop] = []
    count = 0
    while count < minimum:
        drop = drop_sim.get_drop()
        if drop.item == item:
            count += drop.count
        drops.append(drop)
    return drops


class RunSim:
    """Simulates one run against a pair of drop simulators."""

    def __init__(
        self,
        barter_drop_sim: DropSim,
        blaze_drop_sim: DropSim,
        pearl_target: int,
        rods_target: int,
    ) -> None:
        self.barter_drop_sim = barter_drop_sim
        self.blaze_drop_sim = blaze_drop_sim
        self.pearl_target = pearl_target
        self.rods_target = rods_target

    @classmethod
    def from_goals(
        cls,
        barter_drop_sim: DropSim,
        blaze_drop_sim: DropSim,
        goals: RunGoals,
    ) -> RunSim:
        return cls(barter_drop_sim, blaze_drop_sim, goals.target_pearls, goals.target_rods)

    def run(self) -> Run:
        """Simulate the run: barter first, then fight blazes."""

        return Run(barters=self.barter_for_pearls(), fights=self.fight_for_rods())

    def barter_for_pearls(self) -> list[Drop]:
        return farm_for_item(self.barter_drop_sim, Item.ENDER_PEARL, self.pearl_target)

    def fight_for_rods(self) -> list[Drop]:
        return farm_for_item(self.blaze_drop_sim, Item.BLAZE_ROD, self.rods_target)
