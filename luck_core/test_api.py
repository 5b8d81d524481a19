"""
Unit tests for api.py - observed stream scoring, frequency tables, and the run helpers.
"""
import pandas as pd
import pytest

from luck_core.api import (
    RESULT_COLUMNS,
    barter_frequency_table,
    fight_frequency_table,
    find_lucky_stream,
    results_frame,
    run_simulation,
    score_observed_stream,
    write_frequency_table,
)
from luck_core.drop_list import drop_lists_for_goals
from luck_core.goals import SimulationGoalsBuilder
from luck_core.run import RunGoals
from luck_core.stream import StreamResults

FAST = {"checkpoint_interval": 0.01, "poll_interval": 0.05}


def summary(total_barters, successful_barters, total_fights, runs=2):
    return StreamResults.from_goals(
        [RunGoals(10, 7)] * runs,
        total_barters=total_barters,
        total_fights=total_fights,
        successful_barters=successful_barters,
        successful_fights=total_fights,
    )


class TestScoreObservedStream:
    """Tests for scoring externally observed totals."""

    def test_reference_stream(self):
        score = score_observed_stream(
            number_of_runs=22,
            target_pearls_per_run=10,
            total_barters=937,
            successful_barters=4,
            target_rods=154,
            total_fights=308,
        )
        assert score.pearl_luck == pytest.approx(0.5016436716111609, rel=1e-6)
        assert score.rod_luck == pytest.approx(0.5227134024692426, rel=1e-6)
        assert score.luck == pytest.approx(0.2622158704150333, rel=1e-6)
        assert score.probability == pytest.approx(6.453758346451583e-05, rel=1e-6)
        assert score.results.total_target_pearls == 220

    def test_rods_only(self):
        score = score_observed_stream(3, 0, 0, 0, 7, 14)
        assert score.pearl_luck == 1.0
        assert score.pearl_probability == 0.0
        assert score.luck == pytest.approx(score.rod_luck)
        assert score.probability == 0.0


class TestFrequencyTables:
    """Tests for tabulating simulated totals."""

    @pytest.fixture
    def goals(self):
        return SimulationGoalsBuilder().add_runs(2, 10, 7).goals()

    @pytest.fixture
    def results(self):
        return [
            summary(60, 4, 30),
            summary(40, 3, 28),
            summary(60, 5, 28),
            summary(45, 4, 30),
            summary(60, 4, 33),
        ]

    def test_results_frame(self, results):
        frame = results_frame(results)
        assert list(frame.columns) == RESULT_COLUMNS
        assert len(frame) == 5

    def test_barter_table(self, goals, results):
        table = barter_frequency_table(goals, results)
        assert list(table.columns) == ["barters", "estimated_probability", "count", "frequency"]
        assert table["barters"].tolist() == [40, 45, 60]
        assert table["count"].tolist() == [1, 1, 3]
        assert table["frequency"].sum() == pytest.approx(1.0)

    def test_barter_probability_uses_first_summary(self, goals, results):
        barter_list, _ = drop_lists_for_goals(goals)
        table = barter_frequency_table(goals, results)
        row = table[table["barters"] == 60].iloc[0]
        assert row["estimated_probability"] == pytest.approx(
            results[0].pearl_probability(barter_list)
        )

    def test_fight_table(self, goals, results):
        _, blaze_list = drop_lists_for_goals(goals)
        table = fight_frequency_table(goals, results)
        assert table["blazes"].tolist() == [28, 30, 33]
        assert table["count"].tolist() == [2, 2, 1]
        assert table["estimated_probability"].iloc[0] == pytest.approx(
            blaze_list.require_distribution().probability(28)
        )

    def test_empty_results(self, goals):
        table = fight_frequency_table(goals, [])
        assert table.empty
        assert list(table.columns) == ["blazes", "estimated_probability", "count", "frequency"]

    def test_write_table(self, goals, results, tmp_path):
        table = barter_frequency_table(goals, results)
        path = write_frequency_table(table, tmp_path / "data" / "barters.csv")
        assert path.exists()
        written = pd.read_csv(path)
        assert written["barters"].tolist() == [40, 45, 60]
        assert written["count"].tolist() == [1, 1, 3]


class TestRunHelpers:
    """Tests for the simulation entry points."""

    def test_run_simulation(self):
        goals = SimulationGoalsBuilder().add_runs(2, 0, 5).goals()
        result = run_simulation(goals, cycles=20, thread_count=2, seed=1, **FAST)
        assert result.total_streams >= 20
        assert result.fight_table["count"].sum() == result.total_streams
        assert result.compute_seconds >= 0.0
        assert result.barter_table["barters"].tolist() == [0]

    def test_find_lucky_stream(self):
        goals = SimulationGoalsBuilder().add_run(0, 7).goals()
        result = find_lucky_stream(goals, 0.3, thread_count=2, seed=2, **FAST)
        assert result.luck <= 0.3
        assert result.luck == pytest.approx(
            result.results.luck(result.barter_drop_list, result.blaze_drop_list)
        )
