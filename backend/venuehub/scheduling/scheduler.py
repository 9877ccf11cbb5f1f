"""ActivityScheduler: periodic driver for the activity lifecycle.

Explicitly constructed with its store and clock (no module-level singleton),
so tests can run several isolated instances against fake clocks.

Passes never overlap: the timer and ``trigger_manually()`` share one in-flight
flag, and a pass that finds another still running is skipped rather than
queued. ``stop()`` only disarms the timer; a pass already running finishes on
its own.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

import structlog

from venuehub.core.exceptions import ActivityStoreError
from venuehub.scheduling.clock import Clock, SystemClock
from venuehub.scheduling.engine import PassResult, TransitionEngine
from venuehub.scheduling.store import ActivityStore
from venuehub.scheduling.timer import RepeatingTimer

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


class PassTrigger(StrEnum):
    TIMER = "timer"
    MANUAL = "manual"


class PassState(StrEnum):
    COMPLETED = "completed"
    SKIPPED = "skipped"  # another pass was still in flight
    FAILED = "failed"


@dataclass
class PassReport:
    """What a single tick did, as seen by the driver."""

    trigger: PassTrigger
    state: PassState
    result: PassResult | None = None
    failed_rule: str | None = None
    error: str | None = None


@dataclass
class SchedulerStatus:
    is_running: bool
    interval_seconds: float | None
    pass_in_flight: bool
    last_run_at: datetime | None
    last_state: PassState | None
    last_error: str | None


class ActivityScheduler:
    def __init__(
        self,
        store: ActivityStore,
        clock: Clock | None = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self.engine = TransitionEngine(store)
        self.clock = clock or SystemClock()
        self.interval_seconds = interval_seconds
        self._timer: RepeatingTimer | None = None
        self._in_flight = False
        self.last_run_at: datetime | None = None
        self.last_report: PassReport | None = None

    @property
    def is_running(self) -> bool:
        return self._timer is not None and self._timer.active

    def start(self, interval_seconds: float | None = None) -> bool:
        """Run a pass now, then every ``interval_seconds``.

        Must be called from inside a running event loop.

        Returns:
            True if the timer was armed, False if it was already running.
        """
        if self.is_running:
            logger.warning("activity_scheduler_already_running", interval_seconds=self.interval_seconds)
            return False

        interval = self.interval_seconds if interval_seconds is None else interval_seconds
        self._timer = RepeatingTimer(interval, self._timer_tick, name="activity-scheduler")
        self.interval_seconds = interval
        self._timer.start()
        logger.info("activity_scheduler_started", interval_seconds=interval)
        return True

    def stop(self) -> None:
        """Disarm the timer. No-op when not running."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        logger.info("activity_scheduler_stopped", pass_in_flight=self._in_flight)

    async def trigger_manually(self) -> PassReport:
        """Run one pass immediately, outside the timer cadence."""
        logger.info("activity_scheduler_manual_trigger")
        return await self.run_pass(PassTrigger.MANUAL)

    def get_status(self) -> SchedulerStatus:
        running = self.is_running
        return SchedulerStatus(
            is_running=running,
            interval_seconds=self.interval_seconds if running else None,
            pass_in_flight=self._in_flight,
            last_run_at=self.last_run_at,
            last_state=self.last_report.state if self.last_report else None,
            last_error=self.last_report.error if self.last_report else None,
        )

    async def _timer_tick(self) -> None:
        await self.run_pass(PassTrigger.TIMER)

    async def run_pass(self, trigger: PassTrigger) -> PassReport:
        """Execute one guarded pass. Never raises for store failures."""
        if self._in_flight:
            logger.warning("activity_pass_skipped", trigger=trigger.value, reason="previous_pass_in_flight")
            return PassReport(trigger=trigger, state=PassState.SKIPPED)

        self._in_flight = True
        try:
            now = self.clock.now()
            result = await self.engine.run_pass(now)
            report = PassReport(trigger=trigger, state=PassState.COMPLETED, result=result)
        except ActivityStoreError as exc:
            logger.error(
                "activity_pass_failed",
                trigger=trigger.value,
                rule=exc.rule,
                error=str(exc.cause),
                error_type=type(exc.cause).__name__,
            )
            report = PassReport(
                trigger=trigger,
                state=PassState.FAILED,
                failed_rule=exc.rule,
                error=str(exc.cause),
            )
        finally:
            self._in_flight = False

        self.last_run_at = now
        self.last_report = report
        return report
