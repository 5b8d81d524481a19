"""Item drop configuration and the weighted drop simulator."""

from __future__ import annotations

import random
from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from itertools import accumulate
from typing import Optional


class Item(Enum):
    """Items that can appear on a drop table.

    Only the items involved in 1.16 piglin barters and blaze fights are listed.
    """

    NONE = "none"
    BOOK = "book"
    IRON_BOOTS = "iron_boots"
    POTION = "potion"
    SPLASH_POTION = "splash_potion"
    IRON_NUGGET = "iron_nugget"
    QUARTZ = "quartz"
    GLOWSTONE_DUST = "glowstone_dust"
    MAGMA_CREAM = "magma_cream"
    ENDER_PEARL = "ender_pearl"
    STRING = "string"
    FIRE_CHARGE = "fire_charge"
    GRAVEL = "gravel"
    LEATHER = "leather"
    NETHER_BRICK = "nether_brick"
    OBSIDIAN = "obsidian"
    CRYING_OBSIDIAN = "crying_obsidian"
    SOUL_SAND = "soul_sand"
    BLAZE_ROD = "blaze_rod"


@dataclass(frozen=True)
class DropConfig:
    """One weighted entry of a drop table (the configuration, not the drop)."""

    item: Item
    weight: int
    min_count: int
    max_count: int

    def __post_init__(self) -> None:
        if self.weight < 1:
            raise ValueError(f"Drop weight for {self.item.value} must be at least 1.")
        if self.min_count < 0 or self.min_count > self.max_count:
            raise ValueError(
                f"Invalid count range [{self.min_count}, {self.max_count}] for {self.item.value}."
            )


@dataclass(frozen=True)
class Drop:
    """A single item drop; ``roll`` is the exact roll that selected the entry."""

    roll: int
    item: Item
    count: int


class DropSim:
    """Weighted drop simulator built on uniform random number generation."""

    def __init__(
        self,
        drop_list: Sequence[DropConfig],
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialise the simulator for a drop table.

        Parameters
        ----------
        drop_list:
            Ordered drop configurations; selection walks them in this order.
        rng:
            Random source owned by this simulator. A fresh unseeded generator is
            created when omitted.

        Raises
        ------
        ValueError
            If the drop table is empty.
        """

        self._drop_list = tuple(drop_list)
        if not self._drop_list:
            raise ValueError("Cannot simulate drops from an empty drop list.")
        self._cumulative_weights = tuple(accumulate(drop.weight for drop in self._drop_list))
        self._max_roll = self._cumulative_weights[-1]
        self._rng = rng if rng is not None else random.Random()

    @property
    def drop_list(self) -> tuple[DropConfig, ...]:
        """Return the drop table used by this simulator."""

        return self._drop_list

    @property
    def max_roll(self) -> int:
        """Return the total weight of the drop table (exclusive roll bound)."""

        return self._max_roll

    def get_drop(self) -> Drop:
        """Roll the drop table once and return the selected item and count."""

        roll = self._rng.randrange(self._max_roll)
        # first entry whose running weight exceeds the roll
        selected = self._drop_list[bisect_right(self._cumulative_weights, roll)]
        count = self._rng.randint(selected.min_count, selected.max_count)
        return Drop(roll=roll, item=selected.item, count=count)

    sample = get_drop
