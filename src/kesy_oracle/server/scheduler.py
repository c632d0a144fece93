"""Cron trigger for the compliance sync workflow."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from croniter import croniter

from kesy_oracle.oracle.workflow.compliance_sync import ComplianceSyncWorkflow
from kesy_oracle.oracle.workflow.events import CRON_TICK, TriggerEvent

logger = logging.getLogger(__name__)


class CronSchedule:
    """A cron expression; six fields means the first one is seconds."""

    def __init__(self, expression: str) -> None:
        self.expression = expression.strip()
        self._with_seconds = len(self.expression.split()) == 6
        try:
            self._iter(datetime.now(tz=UTC))
        except ValueError as e:
            raise ValueError(f"Invalid cron schedule: {expression!r}") from e

    def _iter(self, start: datetime) -> croniter:
        return croniter(self.expression, start, second_at_beginning=self._with_seconds)

    def next_after(self, moment: datetime) -> datetime:
        return self._iter(moment).get_next(datetime)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class ComplianceSyncScheduler:
    """Runs the compliance sync on every cron fire until stopped.

    A failing run is logged and the loop keeps its schedule; the next tick is a
    fresh invocation.
    """

    def __init__(
        self,
        workflow: ComplianceSyncWorkflow,
        schedule: CronSchedule,
        *,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.workflow = workflow
        self.schedule = schedule
        self._now = now
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def tick(self, scheduled_at: datetime | None = None) -> str | None:
        fired = scheduled_at or self._now()
        event = TriggerEvent(type=CRON_TICK, payload={"scheduled_at": fired.isoformat()})
        try:
            summary = self.workflow.handle(event)
        except Exception:
            logger.exception(
                "Compliance sync run failed", extra={"scheduled_at": fired.isoformat()}
            )
            return None
        logger.info("Compliance sync run finished", extra={"summary": summary})
        return summary

    def run_forever(self) -> None:
        logger.info(
            "Compliance sync scheduler started", extra={"schedule": self.schedule.expression}
        )
        while not self._stop.is_set():
            now = self._now()
            fire_at = self.schedule.next_after(now)
            if self._stop.wait(max(0.0, (fire_at - now).total_seconds())):
                break
            self.tick(fire_at)
        logger.info("Compliance sync scheduler stopped")

    def start(self) -> threading.Thread:
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever, name="compliance-sync-cron", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
