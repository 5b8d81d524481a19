"""Drop table constants, reference run schedules, and goal file helpers."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from .drop import DropConfig, Item
from .goals import SimulationGoals
from .run import RunGoals

# Piglin barter table from 1.16.1; total weight 423.
BARTER_DROP_CONFIGS: Final[tuple[DropConfig, ...]] = (
    DropConfig(Item.BOOK, 5, 1, 1),
    DropConfig(Item.IRON_BOOTS, 8, 1, 1),
    DropConfig(Item.POTION, 10, 1, 1),
    DropConfig(Item.SPLASH_POTION, 10, 1, 1),
    DropConfig(Item.IRON_NUGGET, 10, 9, 36),
    DropConfig(Item.QUARTZ, 20, 8, 16),
    DropConfig(Item.GLOWSTONE_DUST, 20, 5, 12),
    DropConfig(Item.MAGMA_CREAM, 20, 2, 6),
    DropConfig(Item.ENDER_PEARL, 20, 4, 8),
    DropConfig(Item.STRING, 20, 8, 24),
    DropConfig(Item.FIRE_CHARGE, 40, 1, 5),
    DropConfig(Item.GRAVEL, 40, 8, 16),
    DropConfig(Item.LEATHER, 40, 4, 10),
    DropConfig(Item.NETHER_BRICK, 40, 4, 16),
    DropConfig(Item.OBSIDIAN, 40, 1, 1),
    DropConfig(Item.CRYING_OBSIDIAN, 40, 1, 3),
    DropConfig(Item.SOUL_SAND, 40, 4, 16),
)

BLAZE_DROP_CONFIGS: Final[tuple[DropConfig, ...]] = (DropConfig(Item.BLAZE_ROD, 1, 0, 1),)

# Rod targets of the 33 runs used for the blaze fight frequency study.
BLAZE_ROD_SCHEDULE: Final[tuple[int, ...]] = (
    6, 7, 8, 7, 8, 8, 5, 3, 1, 8, 8, 6, 8, 6, 3, 1, 7,
    7, 7, 7, 7, 3, 8, 8, 6, 8, 7, 7, 7, 7, 7, 7, 8,
)

BARTER_STUDY_RUNS: Final[int] = 17
BARTER_STUDY_PEARLS_PER_RUN: Final[int] = 10

P_VALUE_STUDY_RUNS: Final[int] = 22
P_VALUE_STUDY_PEARLS_PER_RUN: Final[int] = 10
P_VALUE_STUDY_RODS_PER_RUN: Final[int] = 7
# Combined luck of the observed 22-run stream.
P_VALUE_STUDY_TARGET: Final[float] = 5.902209912719003371976488112274e-21


def _parse_run_goals(raw: object) -> RunGoals:
    if not isinstance(raw, Mapping):
        raise ValueError(f"Run goals must be an object, got {type(raw).__name__}.")
    try:
        target_pearls = int(raw.get("target_pearls", 0))
        target_rods = int(raw.get("target_rods", 0))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Run goals contain non-integer targets: {raw!r}") from exc
    if target_pearls < 0 or target_rods < 0:
        raise ValueError(f"Run goals must not be negative: {raw!r}")
    return RunGoals(target_pearls=target_pearls, target_rods=target_rods)


def load_simulation_goals(path: str | Path) -> SimulationGoals:
    """Load simulation goals from a JSON list of streams.

    Each stream is a list of ``{"target_pearls": int, "target_rods": int}``
    objects; missing targets default to zero.

    Raises
    ------
    ValueError
        If the document is not valid JSON or does not match the layout.
    """

    goals_path = Path(path)
    try:
        raw_data = json.loads(goals_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Goals file {goals_path} is not valid JSON.") from exc

    if not isinstance(raw_data, list):
        raise ValueError("Goals file must contain a list of streams.")

    streams: list[list[RunGoals]] = []
    for raw_stream in raw_data:
        if not isinstance(raw_stream, list):
            raise ValueError("Each stream must be a list of run goals.")
        streams.append([_parse_run_goals(raw_run) for raw_run in raw_stream])
    return SimulationGoals(streams)


def save_simulation_goals(goals: SimulationGoals, path: str | Path) -> None:
    """Persist simulation goals as JSON in the layout read by ``load_simulation_goals``."""

    goals_path = Path(path)
    goals_path.parent.mkdir(parents=True, exist_ok=True)
    serializable = [
        [
            {"target_pearls": run.target_pearls, "target_rods": run.target_rods}
            for run in stream
        ]
        for stream in goals.streams
    ]
    goals_path.write_text(json.dumps(serializable, indent=2), encoding="utf-8")
