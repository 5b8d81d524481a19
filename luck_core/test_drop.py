"""
Unit tests for drop.py - drop configuration validation and the weighted sampler.
"""
import random
from collections import Counter
from itertools import accumulate

import pytest
from scipy.stats import chisquare

from luck_core.data import BARTER_DROP_CONFIGS, BLAZE_DROP_CONFIGS
from luck_core.drop import DropConfig, DropSim, Item


class TestDropConfig:
    """Tests for DropConfig validation."""

    def test_valid_config(self):
        config = DropConfig(Item.ENDER_PEARL, 20, 4, 8)
        assert config.weight == 20
        assert (config.min_count, config.max_count) == (4, 8)

    def test_zero_weight_rejected(self):
        with pytest.raises(ValueError):
            DropConfig(Item.BOOK, 0, 1, 1)

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            DropConfig(Item.BOOK, 1, 3, 2)

    def test_negative_minimum_rejected(self):
        with pytest.raises(ValueError):
            DropConfig(Item.BOOK, 1, -1, 2)


class TestDropTables:
    """Sanity checks on the bundled drop tables."""

    def test_barter_table_weight(self):
        assert len(BARTER_DROP_CONFIGS) == 17
        assert sum(config.weight for config in BARTER_DROP_CONFIGS) == 423

    def test_blaze_table(self):
        assert BLAZE_DROP_CONFIGS == (DropConfig(Item.BLAZE_ROD, 1, 0, 1),)


class TestDropSim:
    """Tests for the weighted drop simulator."""

    def test_empty_drop_list_rejected(self):
        with pytest.raises(ValueError):
            DropSim([])

    def test_max_roll_is_total_weight(self):
        assert DropSim(BARTER_DROP_CONFIGS).max_roll == 423
        assert DropSim(BLAZE_DROP_CONFIGS).max_roll == 1

    def test_roll_selects_matching_entry(self):
        """Each roll must fall inside the cumulative weight band of its entry."""
        sim = DropSim(BARTER_DROP_CONFIGS, rng=random.Random(7))
        upper_bounds = list(accumulate(config.weight for config in BARTER_DROP_CONFIGS))
        bands = {}
        lower = 0
        for config, upper in zip(BARTER_DROP_CONFIGS, upper_bounds):
            bands[config.item] = (lower, upper)
            lower = upper

        for _ in range(2_000):
            drop = sim.get_drop()
            low, high = bands[drop.item]
            assert low <= drop.roll < high

    def test_counts_within_range(self):
        sim = DropSim(BARTER_DROP_CONFIGS, rng=random.Random(11))
        ranges = {config.item: (config.min_count, config.max_count) for config in BARTER_DROP_CONFIGS}
        for _ in range(2_000):
            drop = sim.get_drop()
            low, high = ranges[drop.item]
            assert low <= drop.count <= high

    def test_single_entry_always_selected(self):
        sim = DropSim(BLAZE_DROP_CONFIGS, rng=random.Random(3))
        drops = [sim.sample() for _ in range(500)]
        assert all(drop.item == Item.BLAZE_ROD and drop.roll == 0 for drop in drops)
        assert {drop.count for drop in drops} == {0, 1}

    def test_selection_frequencies_follow_weights(self):
        """Item frequencies should be consistent with weight / total weight."""
        draws = 40_000
        sim = DropSim(BARTER_DROP_CONFIGS, rng=random.Random(2024))
        counts = Counter(sim.get_drop().item for _ in range(draws))
        observed = [counts[config.item] for config in BARTER_DROP_CONFIGS]
        expected = [draws * config.weight / 423 for config in BARTER_DROP_CONFIGS]
        _, p_value = chisquare(observed, expected)
        assert p_value > 1e-4

    def test_seeded_generators_repeat(self):
        first = DropSim(BARTER_DROP_CONFIGS, rng=random.Random(99))
        second = DropSim(BARTER_DROP_CONFIGS, rng=random.Random(99))
        assert [first.get_drop() for _ in range(50)] == [second.get_drop() for _ in range(50)]
