"""TransitionEngine: one evaluation pass over the time-driven activity rules.

For each rule, in tick order: read the due set, then apply the transition as
one guarded bulk update using the same predicate. Records a concurrent manual
action already moved out of the source state are excluded by the filter
itself. Only the rows the update returns are logged as promoted; due rows
missing from it lost a race, which is not an error.
"""

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from venuehub.core.exceptions import ActivityStoreError
from venuehub.domain.activity_lifecycle import TRANSITION_RULES, TransitionRule
from venuehub.scheduling.store import ActivitySnapshot, ActivityStore

logger = structlog.get_logger(__name__)


@dataclass
class RuleOutcome:
    """Due set seen at read time and the records the guarded update actually moved."""

    rule: str
    due: list[ActivitySnapshot]
    moved: list[ActivitySnapshot]

    @property
    def updated(self) -> int:
        return len(self.moved)


@dataclass
class PassResult:
    """Summary of one evaluation pass."""

    ran_at: datetime
    outcomes: list[RuleOutcome] = field(default_factory=list)

    def updated_for(self, rule: TransitionRule) -> int:
        return sum(o.updated for o in self.outcomes if o.rule == rule.name)

    @property
    def total_updated(self) -> int:
        return sum(o.updated for o in self.outcomes)


class TransitionEngine:
    def __init__(self, store: ActivityStore, rules: tuple[TransitionRule, ...] = TRANSITION_RULES):
        self.store = store
        self.rules = rules

    async def run_pass(self, now: datetime) -> PassResult:
        """Evaluate every rule against ``now`` and apply what is due.

        Safe to repeat: a second pass at the same ``now`` finds nothing due.

        Raises:
            ActivityStoreError: the store failed; carries the rule that was executing.
        """
        result = PassResult(ran_at=now)
        for rule in self.rules:
            result.outcomes.append(await self._apply(rule, now))

        if result.total_updated:
            logger.info(
                "activity_pass_completed",
                ran_at=now.isoformat(),
                total_updated=result.total_updated,
                **{o.rule: o.updated for o in result.outcomes},
            )
        else:
            logger.debug("activity_pass_noop", ran_at=now.isoformat())
        return result

    async def _apply(self, rule: TransitionRule, now: datetime) -> RuleOutcome:
        try:
            due = await self.store.find_due(rule, now)
            moved = await self.store.update_where(rule, now) if due else []
        except Exception as exc:
            logger.error(
                "activity_rule_failed",
                rule=rule.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise ActivityStoreError(rule.name, exc) from exc

        for activity in moved:
            logger.info(
                "activity_promoted",
                rule=rule.name,
                activity_id=activity.id,
                title=activity.title,
                from_status=rule.source.value,
                to_status=rule.target.value,
            )

        moved_ids = {a.id for a in moved}
        lost = [a.id for a in due if a.id not in moved_ids]
        if lost:
            # Left the source state between the read and the update
            logger.info("activity_promotion_race_lost", rule=rule.name, activity_ids=lost)

        return RuleOutcome(rule=rule.name, due=due, moved=moved)
