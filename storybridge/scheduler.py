"""Fixed-interval driver for ``CrosspostPipeline`` cycles.

The first cycle runs immediately and synchronously; every following
cycle runs one interval later.  Cycles never overlap: the wait for the
next tick only starts once the current cycle has returned.

Shutdown is cooperative.  ``stop()`` sets an event that the loop checks
between cycles (and that interrupts the interval wait), so a cycle in
progress always finishes first.

Usage::

    scheduler = Scheduler(pipeline, interval_s=60)
    scheduler.run_forever()        # blocks; stop() from a signal handler

    # or in the background:
    scheduler.start()
    ...
    scheduler.stop()
"""
from __future__ import annotations

import logging
import math
import threading
import time
from typing import Any

logger = logging.getLogger(__name__)

# Never spin faster than this, even when a cycle overruns the interval.
_MIN_WAIT_S = 0.2


class Scheduler:
    """Runs ``pipeline.run_cycle()`` now and then once per interval.

    Parameters
    ----------
    pipeline : CrosspostPipeline
        Anything with a ``run_cycle()`` method.
    interval_s : float
        Seconds between cycle starts.
    """

    def __init__(self, pipeline: Any, interval_s: float) -> None:
        if not math.isfinite(interval_s) or interval_s <= 0:
            raise ValueError(f"interval_s must be a positive number (got {interval_s})")
        self._pipeline = pipeline
        self._interval_s = float(interval_s)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        # Observable status
        self.cycle_count: int = 0
        self.last_cycle_ts: float = 0.0
        self.last_cycle_status: str = "—"
        self.last_report: Any = None

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ── Blocking loop ───────────────────────────────────────

    def run_forever(self) -> None:
        """Run cycles until ``stop()`` is called."""
        logger.info("Scheduler started (interval=%.1fs)", self._interval_s)
        while not self._stop_event.is_set():
            t0 = time.time()
            self._run_one()
            dt = time.time() - t0
            if self._stop_event.wait(timeout=max(_MIN_WAIT_S, self._interval_s - dt)):
                break
        logger.info("Scheduler stopped after %d cycles", self.cycle_count)

    def _run_one(self) -> None:
        try:
            report = self._pipeline.run_cycle()
        except Exception as exc:
            # run_cycle() handles its own failures; anything here is a bug.
            logger.exception("Cycle error, will retry next tick.")
            self.last_cycle_status = f"ERROR: {type(exc).__name__}"
            report = None
        else:
            summary = getattr(report, "summary", None)
            self.last_cycle_status = summary() if callable(summary) else "ok"
        self.last_report = report
        self.cycle_count += 1
        self.last_cycle_ts = time.time()

    # ── Thread lifecycle ────────────────────────────────────

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Run the loop in a daemon thread (idempotent)."""
        if self.is_alive:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            name="storybridge-scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the loop to exit after the current cycle (non-blocking)."""
        self._stop_event.set()
        logger.info("Scheduler stop requested")

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
