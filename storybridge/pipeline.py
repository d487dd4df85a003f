"""Single-cycle crosspost pipeline: Source → Tracker → backlog gate → Sink.

``CrosspostPipeline.run_cycle()`` performs one full pass and never
raises: fetch and delivery failures are logged, recorded on the returned
``CycleReport`` and left for the next cycle to retry.

Retry is implicit.  A failed delivery rolls its id back in the
``Tracker``, so the story is classified as new again on the next poll
that still returns it.  Stories that disappear from the source before
then are not retried.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from .common_types import StoryItem, StorySink, StorySource
from .errors import DeliveryError, FetchError
from .log_redaction import redact_secrets
from .tracker import Tracker

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """What happened during one ``run_cycle()`` call."""

    cycle: int
    started_ts: float = field(default_factory=time.time)
    fetched: int = 0
    new: int = 0
    suppressed: int = 0
    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def warnings(self) -> list[str]:
        return [f"{type(e).__name__}: {e}" for e in self.errors]

    def summary(self) -> str:
        if self.suppressed:
            return f"cycle {self.cycle}: {self.suppressed} backlog stories skipped"
        return (
            f"cycle {self.cycle}: fetched={self.fetched} new={self.new} "
            f"delivered={len(self.delivered)} failed={len(self.failed)}"
        )


class CrosspostPipeline:
    """Runs fetch → classify → deliver cycles against one ``Tracker``.

    Parameters
    ----------
    source : StorySource
        Provides ``fetch_candidates()``.
    sink : StorySink
        Provides ``deliver(item)``.
    tracker : Tracker
        Process-lifetime known-set, shared across all cycles.
    skip_backlog : bool
        When True (default), cycle 0 only records what is already
        visible and forwards nothing.
    """

    def __init__(
        self,
        source: StorySource,
        sink: StorySink,
        tracker: Tracker,
        skip_backlog: bool = True,
    ) -> None:
        self.source = source
        self.sink = sink
        self.tracker = tracker
        self.skip_backlog = skip_backlog
        self._cycle = 0

    @property
    def cycle_count(self) -> int:
        """Number of cycles completed so far."""
        return self._cycle

    def run_cycle(self) -> CycleReport:
        """Run one poll-fetch-deliver pass."""
        report = CycleReport(cycle=self._cycle)
        first_cycle = self._cycle == 0
        self._cycle += 1

        # ── 1) Fetch ────────────────────────────────────────────
        items = self._fetch(report)
        report.fetched = len(items)

        # ── 2) Classify ─────────────────────────────────────────
        items = self.tracker.observe(items)
        new_items = [it for it in items if it.is_new]
        report.new = len(new_items)

        # ── 3) Backlog gate ─────────────────────────────────────
        if first_cycle and self.skip_backlog:
            report.suppressed = len(items)
            logger.info(
                "Skipping %d stories as they were published before launch.",
                len(items),
            )
            return report

        # ── 4) Deliver ──────────────────────────────────────────
        for it in new_items:
            self._deliver(it, report)

        if new_items:
            logger.info("%s", report.summary())
        else:
            logger.debug("%s", report.summary())
        return report

    def _fetch(self, report: CycleReport) -> list[StoryItem]:
        try:
            items = list(self.source.fetch_candidates())
        except Exception as exc:
            msg = redact_secrets(str(exc))
            err = exc if isinstance(exc, FetchError) else FetchError(msg, source=type(self.source).__name__)
            logger.warning("Failed to load story data: %s", msg)
            report.errors.append(err)
            return []
        valid = [it for it in items if it.is_valid]
        if len(valid) != len(items):
            logger.debug("Dropped %d invalid stories from fetch.", len(items) - len(valid))
        return valid

    def _deliver(self, item: StoryItem, report: CycleReport) -> None:
        try:
            self.sink.deliver(item)
        except Exception as exc:
            self.tracker.rollback(item.item_id)
            msg = redact_secrets(str(exc))
            err = exc if isinstance(exc, DeliveryError) else DeliveryError(msg, item_id=item.item_id)
            logger.warning("Failed to crosspost story %s: %s", item.item_id, msg)
            report.failed.append(item.item_id)
            report.errors.append(err)
            return
        report.delivered.append(item.item_id)
        logger.info("Story %s crossposted (%s).", item.item_id, item.kind.value)
