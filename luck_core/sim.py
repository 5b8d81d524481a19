"""Multi-threaded stream simulation with cycle-count and p-value stop conditions."""

from __future__ import annotations

import logging
import math
import queue
import random
import sys
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Final, Optional

from .drop import DropSim
from .drop_list import DropList, drop_lists_for_goals
from .goals import SimulationGoals
from .stats import BlazeRodDistribution, EnderPearlDistribution
from .stream import Stream, StreamResults

logger = logging.getLogger(__name__)

CHECKPOINT_INTERVAL_SECONDS: Final[float] = 2.0
POLL_INTERVAL_SECONDS: Final[float] = 5.0


def is_personal_best_candidate(
    results: StreamResults,
    best_barters: int,
    best_fights: int,
) -> bool:
    """Return True when either raw total beats the worker's best stream.

    This gates the luck computation. A stream that is only better on the
    combined score (for example more barters but more of them successful) is
    not considered, so the tracked best is an approximation.
    """

    return results.total_barters < best_barters or results.total_fights < best_fights


class SimulationError(RuntimeError):
    """Raised when a worker thread dies while a simulation is running."""


@dataclass(frozen=True)
class Heartbeat:
    """Progress snapshot a worker publishes at each checkpoint."""

    worker: str
    cycles: int
    luckiest_stream: Optional[Stream]
    luckiest_luck: float
    finished: bool = False


class SimulationThread(threading.Thread):
    """Worker that simulates every stream of the goals, cycle after cycle.

    The worker only talks to the coordinator through heartbeats on a shared
    queue and the shared ``completed`` event, both at its own checkpoints.
    """

    def __init__(
        self,
        name: str,
        completed: threading.Event,
        heartbeats: queue.Queue[Heartbeat],
        goals: SimulationGoals,
        barter_drop_list: DropList[EnderPearlDistribution],
        blaze_drop_list: DropList[BlazeRodDistribution],
        rng: random.Random,
        checkpoint_interval: float = CHECKPOINT_INTERVAL_SECONDS,
    ) -> None:
        super().__init__(name=name, daemon=True)
        self._completed = completed
        self._heartbeats = heartbeats
        self._goals = goals
        self._barter_drop_list = barter_drop_list
        self._blaze_drop_list = blaze_drop_list
        self._rng = rng
        self._checkpoint_interval = checkpoint_interval
        self._luckiest_stream: Optional[Stream] = None
        self._luckiest_luck = math.inf
        self.cycles = 0
        self.results: list[StreamResults] = []
        self.error: Optional[Exception] = None

    def run(self) -> None:
        logger.debug("%s started", self.name)
        try:
            self._simulate()
        except Exception as exc:
            # re-raised by the coordinator as SimulationError
            self.error = exc
            logger.exception("%s failed", self.name)
        finally:
            self._publish(finished=True)
            logger.debug("%s stopped after %d cycles", self.name, self.cycles)

    def _publish(self, finished: bool = False) -> None:
        self._heartbeats.put(
            Heartbeat(
                worker=self.name,
                cycles=self.cycles,
                luckiest_stream=self._luckiest_stream,
                luckiest_luck=self._luckiest_luck,
                finished=finished,
            )
        )

    def _simulate(self) -> None:
        # Each sampler owns its generator so no random state is shared.
        barter_drop_sim = DropSim(
            self._barter_drop_list.drops, rng=random.Random(self._rng.getrandbits(64))
        )
        blaze_drop_sim = DropSim(
            self._blaze_drop_list.drops, rng=random.Random(self._rng.getrandbits(64))
        )

        personal_best_barters = sys.maxsize
        personal_best_fights = sys.maxsize
        last_update = time.monotonic()

        while True:
            for run_goals in self._goals.streams:
                stream = Stream.simulate(barter_drop_sim, blaze_drop_sim, run_goals)
                results = stream.results()
                self.results.append(results)

                if is_personal_best_candidate(
                    results, personal_best_barters, personal_best_fights
                ):
                    luck = results.luck(self._barter_drop_list, self._blaze_drop_list)
                    if luck < self._luckiest_luck:
                        self._luckiest_luck = luck
                        self._luckiest_stream = stream
                        personal_best_barters = results.total_barters
                        personal_best_fights = results.total_fights

            self.cycles += 1

            now = time.monotonic()
            if now - last_update >= self._checkpoint_interval:
                last_update = now
                self._publish()
                if self._completed.is_set():
                    break


class Simulation:
    """Simulation of a set of streams distributed over worker threads.

    A simulation runs once, either for a number of cycles
    (:meth:`simulate_n_times`) or until a stream at least as lucky as a target
    p-value turns up (:meth:`run_to_p_value`).
    """

    def __init__(
        self,
        goals: SimulationGoals,
        thread_count: int,
        seed: Optional[int] = None,
        checkpoint_interval: float = CHECKPOINT_INTERVAL_SECONDS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        """Derive the drop lists for the goals and prepare the workers.

        Parameters
        ----------
        goals:
            Streams to simulate in every cycle.
        thread_count:
            Number of worker threads.
        seed:
            Seed for the generator that seeds each worker; ``None`` uses OS entropy.
        checkpoint_interval:
            Seconds between worker heartbeats and stop-flag checks.
        poll_interval:
            Seconds between coordinator progress reports and stop checks.

        Raises
        ------
        ValueError
            If there are no workers or no runs to simulate.
        InvalidDistributionError
            If the aggregate goals yield an invalid luck model.
        """

        if thread_count < 1:
            raise ValueError("A simulation needs at least one worker thread.")
        if goals.number_of_runs == 0:
            raise ValueError("Simulation goals must contain at least one run.")

        self._goals = goals
        self._barter_drop_list, self._blaze_drop_list = drop_lists_for_goals(goals)
        self._poll_interval = poll_interval
        self._completed = threading.Event()
        self._heartbeats: queue.Queue[Heartbeat] = queue.Queue()
        self._started = False

        seeder = random.Random(seed)
        self._workers = [
            SimulationThread(
                name=f"Simulation Worker Thread #{worker_id}",
                completed=self._completed,
                heartbeats=self._heartbeats,
                goals=goals,
                barter_drop_list=self._barter_drop_list,
                blaze_drop_list=self._blaze_drop_list,
                rng=random.Random(seeder.getrandbits(64)),
                checkpoint_interval=checkpoint_interval,
            )
            for worker_id in range(thread_count)
        ]
        self._cycles_by_worker = {worker.name: 0 for worker in self._workers}
        self._luckiest_stream: Optional[Stream] = None
        self._luckiest_luck = math.inf

    @property
    def goals(self) -> SimulationGoals:
        return self._goals

    @property
    def barter_drop_list(self) -> DropList[EnderPearlDistribution]:
        return self._barter_drop_list

    @property
    def blaze_drop_list(self) -> DropList[BlazeRodDistribution]:
        return self._blaze_drop_list

    def simulations(self) -> int:
        """Total cycles reported by all workers (approximate while running)."""

        return sum(self._cycles_by_worker.values())

    def luckiest_stream(self) -> Optional[Stream]:
        """Luckiest stream reported by any worker so far."""

        return self._luckiest_stream

    def luckiest_results(self) -> Optional[StreamResults]:
        if self._luckiest_stream is None:
            return None
        return self._luckiest_stream.results()

    def simulate_n_times(self, cycles: int) -> list[StreamResults]:
        """Run until the workers completed ``cycles`` cycles and return every summary.

        Workers only stop at their next checkpoint, so the result can hold up to
        one extra cycle per worker.
        """

        if cycles < 1:
            raise ValueError("Cycle count must be positive.")
        self._start()
        start = time.monotonic()
        target_num_streams = cycles * len(self._goals.streams)
        self._wait_until(
            lambda: self.simulations() >= cycles,
            lambda: self._log_progress(start, target_num_streams),
        )
        self._stop_workers()
        return [results for worker in self._workers for results in worker.results]

    def run_to_p_value(self, p_value: float) -> StreamResults:
        """Run until some worker found a stream with combined luck ``<= p_value``.

        Returns the luckiest stream's summary as it stood when the stop
        condition was met.
        """

        if not 0.0 < p_value <= 1.0:
            raise ValueError("Target p-value must lie in (0, 1].")
        self._start()
        start = time.monotonic()
        self._wait_until(
            lambda: self._luckiest_luck <= p_value,
            lambda: self._log_target(start, p_value),
        )
        luckiest = self._luckiest_stream
        self._stop_workers()
        if luckiest is None:
            raise SimulationError("No stream was reported before the simulation stopped.")
        return luckiest.results()

    def _start(self) -> None:
        if self._started:
            raise RuntimeError("A simulation can only be run once.")
        self._started = True
        for worker in self._workers:
            worker.start()

    def _wait_until(self, should_stop: Callable[[], bool], report: Callable[[], None]) -> None:
        next_poll = time.monotonic() + self._poll_interval
        while True:
            timeout = next_poll - time.monotonic()
            if timeout > 0:
                try:
                    heartbeat = self._heartbeats.get(timeout=timeout)
                except queue.Empty:
                    continue
                self._record(heartbeat)
                continue

            next_poll = time.monotonic() + self._poll_interval
            report()
            if should_stop():
                self._completed.set()
                return

    def _record(self, heartbeat: Heartbeat) -> None:
        self._cycles_by_worker[heartbeat.worker] = heartbeat.cycles
        if heartbeat.luckiest_stream is not None and heartbeat.luckiest_luck < self._luckiest_luck:
            self._luckiest_luck = heartbeat.luckiest_luck
            self._luckiest_stream = heartbeat.luckiest_stream
        if heartbeat.finished and not self._completed.is_set():
            self._stop_workers()
            raise SimulationError(f"{heartbeat.worker} stopped before the simulation completed.")

    def _stop_workers(self) -> None:
        """Signal completion, join every worker, and surface any worker failure."""

        self._completed.set()
        for worker in self._workers:
            worker.join()
        while True:
            try:
                heartbeat = self._heartbeats.get_nowait()
            except queue.Empty:
                break
            self._cycles_by_worker[heartbeat.worker] = heartbeat.cycles

        for worker in self._workers:
            if worker.error is not None:
                raise SimulationError(f"{worker.name} failed: {worker.error}") from worker.error

    def _log_progress(self, start: float, target_num_streams: int) -> None:
        streams = self.simulations() * len(self._goals.streams)
        elapsed = max(time.monotonic() - start, 1e-9)
        streams_per_second = streams / elapsed
        completed = streams / target_num_streams if target_num_streams else 1.0
        rate = max(1.0, streams_per_second)
        time_remaining = timedelta(
            seconds=round((target_num_streams - min(streams, target_num_streams)) / rate)
        )
        total_time_estimate = timedelta(seconds=round(target_num_streams / rate))

        luckiest = self.luckiest_results()
        if luckiest is not None:
            logger.info(
                "luckiest stream: %g (%d barters, %d fights), streams simulated: %d/%d, "
                "streams per second: %.0f, complete: %.2f%%, est: %s/%s",
                self._luckiest_luck,
                luckiest.total_barters,
                luckiest.total_fights,
                streams,
                target_num_streams,
                streams_per_second,
                completed * 100.0,
                time_remaining,
                total_time_estimate,
            )
        else:
            logger.info(
                "streams simulated: %d/%d, streams per second: %.0f, complete: %.2f%%, est: %s/%s",
                streams,
                target_num_streams,
                streams_per_second,
                completed * 100.0,
                time_remaining,
                total_time_estimate,
            )

    def _log_target(self, start: float, target_p_value: float) -> None:
        streams = self.simulations() * len(self._goals.streams)
        elapsed = max(time.monotonic() - start, 1e-9)
        streams_per_second = streams / elapsed
        time_elapsed = timedelta(seconds=round(elapsed))

        luckiest = self.luckiest_results()
        if luckiest is not None:
            logger.info(
                "luckiest stream: %g (%d barters, %d fights), target luck: %g, "
                "streams simulated: %d, streams per second: %.0f, elapsed: %s",
                self._luckiest_luck,
                luckiest.total_barters,
                luckiest.total_fights,
                target_p_value,
                streams,
                streams_per_second,
                time_elapsed,
            )
        else:
            logger.info(
                "target luck: %g, streams simulated: %d, streams per second: %.0f, elapsed: %s",
                target_p_value,
                streams,
                streams_per_second,
                time_elapsed,
            )
