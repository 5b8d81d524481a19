"""
Unit tests for sim.py - worker threads, stop conditions, and failure handling.
"""
import logging

import numpy as np
import pytest
from scipy.stats import chi2_contingency

from luck_core.goals import SimulationGoals, SimulationGoalsBuilder
from luck_core.run import RunGoals
from luck_core.sim import Simulation, SimulationError, is_personal_best_candidate
from luck_core.stream import Stream, StreamResults

FAST = {"checkpoint_interval": 0.01, "poll_interval": 0.05}


def rod_goals(rods=7, runs=1):
    return SimulationGoalsBuilder().add_runs(runs, 0, rods).goals()


def make_simulation(goals=None, thread_count=2, seed=1):
    return Simulation(goals or rod_goals(), thread_count, seed=seed, **FAST)


class TestSimulationSetup:
    """Tests for argument validation."""

    def test_requires_workers(self):
        with pytest.raises(ValueError):
            Simulation(rod_goals(), 0)

    def test_requires_runs(self):
        with pytest.raises(ValueError):
            Simulation(SimulationGoals([]), 2)
        with pytest.raises(ValueError):
            Simulation(SimulationGoals([[]]), 2)

    def test_drop_lists_use_aggregate_targets(self):
        simulation = make_simulation(SimulationGoalsBuilder().add_runs(3, 10, 7).goals())
        assert simulation.barter_drop_list.require_distribution().ender_pearl_target_total == 30
        assert simulation.blaze_drop_list.require_distribution().blaze_rod_target == 21

    def test_nothing_reported_before_start(self):
        simulation = make_simulation()
        assert simulation.simulations() == 0
        assert simulation.luckiest_stream() is None
        assert simulation.luckiest_results() is None


class TestSimulateNTimes:
    """Tests for the fixed-cycle mode."""

    def test_returns_at_least_requested_cycles(self):
        goals = SimulationGoalsBuilder().add_runs(2, 0, 3).add_stream().add_run(0, 5).goals()
        simulation = make_simulation(goals, thread_count=3)
        results = simulation.simulate_n_times(50)
        assert len(results) >= 50 * 2
        assert len(results) % 2 == 0
        assert simulation.simulations() >= 50
        assert {summary.number_of_runs for summary in results} == {1, 2}

    def test_invalid_cycle_count(self):
        with pytest.raises(ValueError):
            make_simulation().simulate_n_times(0)

    def test_runs_only_once(self):
        simulation = make_simulation()
        simulation.simulate_n_times(5)
        with pytest.raises(RuntimeError):
            simulation.simulate_n_times(5)
        with pytest.raises(RuntimeError):
            simulation.run_to_p_value(0.5)

    def test_seeded_single_worker_repeats(self):
        first = make_simulation(thread_count=1, seed=7).simulate_n_times(20)
        second = make_simulation(thread_count=1, seed=7).simulate_n_times(20)
        assert first[:20] == second[:20]

    def test_worker_count_does_not_change_statistics(self):
        """Fight totals from one worker and from several should share a distribution."""

        def histogram(thread_count, seed):
            results = make_simulation(thread_count=thread_count, seed=seed).simulate_n_times(400)
            fights = np.array([summary.total_fights for summary in results])
            return np.histogram(fights, bins=[0, 12, 14, 16, 18, np.inf])[0]

        table = np.vstack([histogram(1, 3), histogram(4, 4)])
        _, p_value, _, _ = chi2_contingency(table)
        assert p_value > 1e-4

    def test_progress_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="luck_core.sim"):
            make_simulation().simulate_n_times(10)
        assert any("streams simulated" in record.getMessage() for record in caplog.records)


class TestRunToPValue:
    """Tests for the target p-value mode."""

    def test_finds_lucky_stream(self):
        simulation = make_simulation(seed=5)
        results = simulation.run_to_p_value(0.3)
        luck = results.luck(simulation.barter_drop_list, simulation.blaze_drop_list)
        assert luck <= 0.3
        assert simulation.luckiest_results() == results

    @pytest.mark.parametrize("p_value", [0.0, -0.1, 1.5])
    def test_invalid_p_value(self, p_value):
        with pytest.raises(ValueError):
            make_simulation().run_to_p_value(p_value)


class TestWorkerFailure:
    """A worker that dies must surface as an error instead of a hang."""

    def test_failure_is_reported(self, monkeypatch):
        def broken_simulate(cls, barter_drop_sim, blaze_drop_sim, goals):
            raise ZeroDivisionError("broken sampler")

        monkeypatch.setattr(Stream, "simulate", classmethod(broken_simulate))
        with pytest.raises(SimulationError) as excinfo:
            make_simulation().simulate_n_times(10)
        assert isinstance(excinfo.value.__cause__, ZeroDivisionError)

    def test_simulation_error_is_runtime_error(self):
        assert issubclass(SimulationError, RuntimeError)


class TestPersonalBestFilter:
    """The raw-total filter in front of the luck computation is an approximation."""

    @staticmethod
    def summary(total_barters, successful_barters, total_fights):
        return StreamResults.from_goals(
            [RunGoals(10, 7)],
            total_barters=total_barters,
            total_fights=total_fights,
            successful_barters=successful_barters,
            successful_fights=total_fights,
        )

    def test_either_total_improving_is_a_candidate(self):
        assert is_personal_best_candidate(self.summary(90, 2, 20), 100, 15)
        assert is_personal_best_candidate(self.summary(120, 2, 10), 100, 15)

    def test_no_raw_improvement_is_skipped(self):
        assert not is_personal_best_candidate(self.summary(100, 2, 15), 100, 15)

    def test_known_approximation_skips_luckier_stream(self):
        """More barters with more successes can be luckier yet never get scored."""
        simulation = make_simulation(SimulationGoalsBuilder().add_run(10, 7).goals())
        barter_list = simulation.barter_drop_list
        blaze_list = simulation.blaze_drop_list
        best = self.summary(100, 4, 15)
        challenger = self.summary(101, 10, 15)

        assert challenger.luck(barter_list, blaze_list) < best.luck(barter_list, blaze_list)
        assert not is_personal_best_candidate(challenger, best.total_barters, best.total_fights)
