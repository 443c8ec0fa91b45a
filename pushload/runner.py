# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Concurrent virtual user harness.

Each virtual user runs on its own thread with its own `random.Random`. The
configuration, the clock and the transport are shared; the clock and the
`httpx.Client` behind the transport are thread-safe.
"""

import logging
import random
import statistics
import threading
import time
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from logging import Logger
from typing import Any, Callable

import statsd

from .args import NO_WAIT, WaitTime
from .config import LoadConfig
from .driver import run_iteration
from .models import Outcome
from .synthesizer import SecondsClock, build_request
from .transport import Transport

logger: Logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[Outcome], None]


class RunSummary:
    """Thread-safe aggregate of the Outcomes of a run."""

    def __init__(self) -> None:
        self.total: int = 0
        self.passed: int = 0
        self.status_codes: Counter[int] = Counter()
        self.errors: Counter[str] = Counter()
        self.elapsed: float = 0.0
        self._latencies: list[float] = []
        self._lock = threading.Lock()

    @property
    def failed(self) -> int:
        return self.total - self.passed

    def record(self, outcome: Outcome) -> None:
        """Add one Outcome."""
        with self._lock:
            self.total += 1
            if outcome.passed:
                self.passed += 1
            self.status_codes[outcome.status_code] += 1
            if outcome.error:
                self.errors[outcome.error] += 1
            self._latencies.append(outcome.latency.total_seconds() * 1000)

    def latency_quantiles(self) -> dict[str, float]:
        """Latency p50/p95/p99 and max in milliseconds."""
        with self._lock:
            latencies = sorted(self._latencies)
        match len(latencies):
            case 0:
                return dict(p50=0.0, p95=0.0, p99=0.0, max=0.0)
            case 1:
                return dict.fromkeys(("p50", "p95", "p99", "max"), latencies[0])
        cuts = statistics.quantiles(latencies, n=100, method="inclusive")
        return dict(p50=cuts[49], p95=cuts[94], p99=cuts[98], max=latencies[-1])

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            report: dict[str, Any] = dict(
                total=self.total,
                passed=self.passed,
                failed=self.total - self.passed,
                status_codes=dict(self.status_codes),
                errors=dict(self.errors),
                elapsed=round(self.elapsed, 3),
            )
        report["latency_ms"] = {k: round(v, 3) for k, v in self.latency_quantiles().items()}
        return report


def record_metrics(metrics: statsd.StatsClient, outcome: Outcome) -> None:
    """Emit the Outcome of one request to statsd."""
    metrics.incr("request.passed" if outcome.passed else "request.failed")
    metrics.incr(f"request.status.{outcome.status_code}")
    metrics.timing("request.latency", outcome.latency)


def user_rng(seed: int | None, index: int) -> random.Random:
    """Return the random stream of virtual user `index`.

    Seeded runs give every user its own reproducible stream; otherwise streams are
    seeded from OS entropy.
    """
    if seed is None:
        return random.Random()  # nosec
    return random.Random(f"{seed}:{index}")  # nosec


class VirtualUser:
    """One simulated caller running iterations sequentially."""

    def __init__(
        self,
        index: int,
        config: LoadConfig,
        transport: Transport,
        rng: random.Random,
        clock: Callable[[], int],
        stop: threading.Event,
        wait_time: WaitTime = NO_WAIT,
        on_outcome: OutcomeCallback | None = None,
    ) -> None:
        self.index: int = index
        self.config: LoadConfig = config
        self.transport: Transport = transport
        self.rng: random.Random = rng
        self.clock: Callable[[], int] = clock
        self.stop: threading.Event = stop
        self.wait_time: WaitTime = wait_time
        self.on_outcome: OutcomeCallback | None = on_outcome

    def run(self, iterations: int | None = None, deadline: float | None = None) -> int:
        """Run until `iterations` are done, `deadline` (monotonic) passes or a stop.

        Returns
        -------
        int
            The number of completed iterations
        """
        done: int = 0
        while not self.stop.is_set():
            if iterations is not None and done >= iterations:
                break
            if deadline is not None and time.monotonic() >= deadline:
                break
            if done and self.wait_time.high:
                pause: float = self.wait_time(self.rng)
                if deadline is not None:
                    pause = min(pause, deadline - time.monotonic())
                if self.stop.wait(max(pause, 0)):
                    break
                # The pause may have been cut short by the deadline.
                if deadline is not None and time.monotonic() >= deadline:
                    break
            outcome = run_iteration(self.config, self.transport, self.rng, self.clock)
            done += 1
            if self.on_outcome:
                self.on_outcome(outcome)
        logger.debug(f"Virtual user {self.index} finished after {done} iterations")
        return done


def run_virtual_users(
    config: LoadConfig,
    transport: Transport,
    users: int,
    iterations: int | None = 1,
    run_time: float | None = None,
    wait_time: WaitTime = NO_WAIT,
    seed: int | None = None,
    clock: Callable[[], int] | None = None,
    stop: threading.Event | None = None,
    metrics: statsd.StatsClient | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> RunSummary:
    """Run `users` virtual users concurrently and aggregate their Outcomes.

    Parameters
    ----------
    config : LoadConfig
    transport : Transport
        Shared by all users
    users : int
        Number of concurrent virtual users
    iterations : int | None
        Iterations per user, unlimited if None
    run_time : float | None
        Run duration in seconds, unlimited if None
    wait_time : WaitTime
        Pause between two iterations of the same user
    seed : int | None
        Makes every user's random stream reproducible
    clock : Callable[[], int] | None
        Whole-second clock, a shared `SecondsClock` by default
    stop : threading.Event | None
        Set it to end the run at the next iteration boundary
    metrics : statsd.StatsClient | None
        Receives per-request counters and timers
    on_outcome : OutcomeCallback | None
        Called with each Outcome, from the virtual user's thread

    Returns
    -------
    RunSummary

    Raises
    ------
    ConfigurationError
        If the configuration cannot produce a request. Raised before any request
        is sent.
    ValueError
        If neither `iterations` nor `run_time` bound the run.
    """
    if users < 1:
        raise ValueError(f"users must be at least 1, got {users}")
    if iterations is None and run_time is None:
        raise ValueError("either iterations or run_time must be set")

    clock = clock or SecondsClock()
    stop = stop or threading.Event()
    summary = RunSummary()
    # Fail on a bad configuration before any network activity.
    build_request(config, user_rng(seed, -1), clock)

    def collect(outcome: Outcome) -> None:
        summary.record(outcome)
        if metrics is not None:
            record_metrics(metrics, outcome)
        if on_outcome:
            on_outcome(outcome)

    logger.info(f"Starting {users} virtual users against {config.url}")
    start: float = time.monotonic()
    deadline: float | None = start + run_time if run_time is not None else None
    with ThreadPoolExecutor(max_workers=users, thread_name_prefix="vu") as executor:
        futures: list[Future[int]] = [
            executor.submit(
                VirtualUser(
                    index,
                    config,
                    transport,
                    user_rng(seed, index),
                    clock,
                    stop,
                    wait_time,
                    collect,
                ).run,
                iterations,
                deadline,
            )
            for index in range(users)
        ]
        try:
            for future in as_completed(futures):
                future.result()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping virtual users")
            stop.set()
        except Exception:
            stop.set()
            raise
    summary.elapsed = time.monotonic() - start
    return summary
