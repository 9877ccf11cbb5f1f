"""Tests for TransitionEngine against the in-memory store.

Covers the lifecycle properties:
- monotonic status history
- idempotent repeat passes
- open-ended activities never auto-complete
- inactive rows are ignored
- live-then-complete within a single pass
- store failures surface as ActivityStoreError naming the rule
- a row lost to a concurrent cancel is not logged as promoted
"""

import asyncio
from datetime import timedelta
from unittest.mock import patch

import pytest

from venuehub.core.exceptions import ActivityStoreError
from venuehub.domain.activity_lifecycle import PROMOTE_TO_COMPLETED, PROMOTE_TO_LIVE, ActivityStatus
from venuehub.scheduling.engine import TransitionEngine
from venuehub.scheduling.store_fake import InMemoryActivityStore

pytestmark = pytest.mark.unit

_FORWARD = ["upcoming", "live", "completed"]


def _is_legal_history(history: list[str]) -> bool:
    """Subsequence of upcoming->live->completed, or a prefix of it then cancelled."""
    if history and history[-1] == "cancelled":
        history = history[:-1]
        if "completed" in history:
            return False
    return history == _FORWARD[: len(history)]


async def test_upcoming_goes_live_when_start_passed(memory_store, now):
    activity = memory_store.add("Jazz Night", start_date=now - timedelta(minutes=5))

    result = await TransitionEngine(memory_store).run_pass(now)

    assert memory_store.get(activity.id).status == "live"
    assert result.updated_for(PROMOTE_TO_LIVE) == 1
    assert result.updated_for(PROMOTE_TO_COMPLETED) == 0


async def test_future_activity_untouched(memory_store, now):
    activity = memory_store.add("Later", start_date=now + timedelta(hours=1))

    result = await TransitionEngine(memory_store).run_pass(now)

    assert memory_store.get(activity.id).status == "upcoming"
    assert result.total_updated == 0


async def test_whole_window_in_past_completes_in_one_pass(memory_store, now):
    """start and end both past: upcoming -> live -> completed in a single pass."""
    activity = memory_store.add(
        "Backfilled",
        start_date=now - timedelta(hours=1),
        end_date=now - timedelta(minutes=30),
    )

    with patch("venuehub.scheduling.engine.logger") as mock_logger:
        result = await TransitionEngine(memory_store).run_pass(now)

    assert memory_store.get(activity.id).status == "completed"
    assert memory_store.history[activity.id] == ["upcoming", "live", "completed"]
    assert result.updated_for(PROMOTE_TO_LIVE) == 1
    assert result.updated_for(PROMOTE_TO_COMPLETED) == 1

    promoted = [c for c in mock_logger.info.call_args_list if c.args[0] == "activity_promoted"]
    assert [(c.kwargs["activity_id"], c.kwargs["to_status"]) for c in promoted] == [
        (activity.id, "live"),
        (activity.id, "completed"),
    ]


async def test_second_pass_is_noop(memory_store, now):
    memory_store.add("A", start_date=now - timedelta(hours=2), end_date=now - timedelta(hours=1))
    memory_store.add("B", start_date=now - timedelta(minutes=1))
    memory_store.add("C", start_date=now - timedelta(minutes=1), end_date=now + timedelta(hours=3))
    engine = TransitionEngine(memory_store)

    first = await engine.run_pass(now)
    second = await engine.run_pass(now)

    assert first.total_updated == 4
    assert second.total_updated == 0
    assert all(o.due == [] for o in second.outcomes)


async def test_open_ended_activity_stays_live(memory_store, clock):
    activity = memory_store.add("Residency", start_date=clock.now() - timedelta(minutes=1), end_date=None)
    engine = TransitionEngine(memory_store)

    for _ in range(10):
        await engine.run_pass(clock.now())
        clock.advance(timedelta(days=365))

    assert memory_store.get(activity.id).status == "live"
    assert memory_store.history[activity.id] == ["upcoming", "live"]


async def test_inactive_activity_never_transitions(memory_store, clock):
    activity = memory_store.add(
        "Hidden",
        start_date=clock.now() - timedelta(days=1),
        end_date=clock.now() - timedelta(hours=1),
        is_active=False,
    )
    engine = TransitionEngine(memory_store)

    for _ in range(5):
        await engine.run_pass(clock.now())
        clock.advance(timedelta(days=1))

    assert memory_store.history[activity.id] == ["upcoming"]


async def test_cancelled_is_never_reentered(memory_store, now):
    activity = memory_store.add(
        "Called off",
        start_date=now - timedelta(hours=1),
        end_date=now - timedelta(minutes=1),
        status=ActivityStatus.CANCELLED,
    )

    await TransitionEngine(memory_store).run_pass(now)

    assert memory_store.get(activity.id).status == "cancelled"


async def test_status_history_is_monotonic_over_time(memory_store, clock):
    """Statuses only ever move forward as simulated time passes."""
    start = clock.now()
    for i in range(12):
        end = start + timedelta(hours=i + 1) if i % 3 else None
        memory_store.add(f"A{i}", start_date=start + timedelta(minutes=20 * i), end_date=end)
    engine = TransitionEngine(memory_store)

    for step in range(40):
        if step == 5:
            await memory_store.transition(2, ActivityStatus.LIVE, ActivityStatus.CANCELLED, clock.now())
        if step == 7:
            await memory_store.transition(11, ActivityStatus.UPCOMING, ActivityStatus.CANCELLED, clock.now())
        await engine.run_pass(clock.now())
        clock.advance(timedelta(minutes=15))

    for activity_id, history in memory_store.history.items():
        assert _is_legal_history(history), (activity_id, history)


async def test_cancel_racing_pass_takes_effect_exactly_once(memory_store, now):
    """A manual cancel and a pass on the same due row: one wins, the other touches nothing."""
    activity = memory_store.add("Contested", start_date=now - timedelta(minutes=1))
    engine = TransitionEngine(memory_store)

    result, cancelled = await asyncio.gather(
        engine.run_pass(now),
        memory_store.transition(activity.id, ActivityStatus.UPCOMING, ActivityStatus.CANCELLED, now),
    )

    final = memory_store.get(activity.id).status
    live_updates = result.updated_for(PROMOTE_TO_LIVE)
    assert final in ("live", "cancelled")
    assert live_updates + cancelled == 1
    assert (final == "cancelled") == (cancelled == 1)
    assert len(memory_store.history[activity.id]) == 2


async def test_lost_race_is_not_logged_as_promotion(memory_store, now):
    """The cancel lands between the due read and the guarded update."""
    activity = memory_store.add("Contested", start_date=now - timedelta(minutes=1))
    bystander = memory_store.add("Uncontested", start_date=now - timedelta(minutes=2))
    engine = TransitionEngine(memory_store)

    with patch("venuehub.scheduling.engine.logger") as mock_logger:
        result, cancelled = await asyncio.gather(
            engine.run_pass(now),
            memory_store.transition(activity.id, ActivityStatus.UPCOMING, ActivityStatus.CANCELLED, now),
        )

    assert cancelled == 1
    assert memory_store.get(activity.id).status == "cancelled"
    assert memory_store.get(bystander.id).status == "live"

    live = next(o for o in result.outcomes if o.rule == PROMOTE_TO_LIVE.name)
    assert [a.id for a in live.due] == [activity.id, bystander.id]
    assert [a.id for a in live.moved] == [bystander.id]

    promoted = [c.kwargs["activity_id"] for c in mock_logger.info.call_args_list if c.args[0] == "activity_promoted"]
    assert promoted == [bystander.id]

    lost = [c for c in mock_logger.info.call_args_list if c.args[0] == "activity_promotion_race_lost"]
    assert len(lost) == 1
    assert lost[0].kwargs == {"rule": "promote_to_live", "activity_ids": [activity.id]}


async def test_store_failure_names_rule(now):
    store = InMemoryActivityStore(fail_rules={PROMOTE_TO_COMPLETED.name})
    activity = store.add("Due", start_date=now - timedelta(minutes=1))

    with pytest.raises(ActivityStoreError) as exc_info:
        await TransitionEngine(store).run_pass(now)

    assert exc_info.value.rule == "promote_to_completed"
    assert isinstance(exc_info.value.cause, ConnectionError)
    # Rule 1 had already committed before rule 2 failed
    assert store.get(activity.id).status == "live"


async def test_failure_on_first_rule_aborts_pass(now):
    store = InMemoryActivityStore(fail_rules={PROMOTE_TO_LIVE.name})
    activity = store.add("Due", start_date=now - timedelta(hours=2), end_date=now - timedelta(hours=1))

    with pytest.raises(ActivityStoreError) as exc_info:
        await TransitionEngine(store).run_pass(now)

    assert exc_info.value.rule == "promote_to_live"
    assert store.get(activity.id).status == "upcoming"
