"""Scheduler operator schemas."""

from datetime import datetime

from pydantic import BaseModel

from venuehub.scheduling.scheduler import PassReport, SchedulerStatus


class SchedulerStatusResponse(BaseModel):
    is_running: bool
    interval_seconds: float | None
    pass_in_flight: bool
    last_run_at: datetime | None
    last_state: str | None
    last_error: str | None
    message: str

    @classmethod
    def from_status(cls, status: SchedulerStatus) -> "SchedulerStatusResponse":
        return cls(
            is_running=status.is_running,
            interval_seconds=status.interval_seconds,
            pass_in_flight=status.pass_in_flight,
            last_run_at=status.last_run_at,
            last_state=status.last_state.value if status.last_state else None,
            last_error=status.last_error,
            message="Scheduler is running" if status.is_running else "Scheduler is not running",
        )


class RuleOutcomeResponse(BaseModel):
    rule: str
    updated_ids: list[int]
    updated: int


class TriggerResponse(BaseModel):
    trigger: str
    state: str
    ran_at: datetime | None = None
    total_updated: int = 0
    rules: list[RuleOutcomeResponse] = []
    failed_rule: str | None = None
    error: str | None = None

    @classmethod
    def from_report(cls, report: PassReport) -> "TriggerResponse":
        result = report.result
        return cls(
            trigger=report.trigger.value,
            state=report.state.value,
            ran_at=result.ran_at if result else None,
            total_updated=result.total_updated if result else 0,
            rules=[
                RuleOutcomeResponse(rule=o.rule, updated_ids=[a.id for a in o.moved], updated=o.updated)
                for o in (result.outcomes if result else [])
            ],
            failed_rule=report.failed_rule,
            error=report.error,
        )
