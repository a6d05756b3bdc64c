"""End-to-end suspension workflow: derive, assign, check in, serve."""

from datetime import date

import pytest

from league.models.fields import CheckInState, SuspensionState, TeamType, TriggerStatus, TriggerType
from league.services.check_in_service import check_in
from league.services.errors import DuplicateSuspensionError, SuspensionValidationError
from league.services.suspension_service import (
    apply_suspension,
    get_pending_suspendable,
    get_player_suspension_status,
    load_team_suspensions,
    mark_suspension_served,
    record_event_served,
)
from tests.factories import epoch, event, match, red, seed_rosters, yellow

REFERENCE = date(2025, 4, 1)


async def _seed_three_yellows(ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(
        [
            event("e1", epoch(2025, 3, 1), [match("g1", [yellow("m1")])]),
            event("e2", epoch(2025, 3, 8), [match("g2", [yellow("m1")])]),
            event("e3", epoch(2025, 3, 15), [match("g3", [yellow("m1")])]),
            event("today", epoch(2025, 4, 1), [match("g-today")]),
        ]
    )


@pytest.mark.asyncio
async def test_three_yellows_suspension_blocks_check_in_until_served(ctx, db_session):
    await _seed_three_yellows(ctx, db_session)

    [pending] = await get_pending_suspendable(ctx, REFERENCE)
    assert pending.status == TriggerStatus.pending
    assert pending.trigger.trigger_type == "yellow_accumulation"
    assert pending.trigger.yellow_count == 3
    assert pending.trigger.member_name == "Alex Reyes"

    suspension = await apply_suspension(ctx, "m1", pending.trigger, 2)
    assert suspension.trigger_type == TriggerType.yellow_accumulation
    assert suspension.events_remaining == 2

    [paired] = await get_pending_suspendable(ctx, REFERENCE)
    assert paired.status == TriggerStatus.active
    assert paired.suspension.id == suspension.id

    status = await get_player_suspension_status(ctx, "m1")
    assert status.is_suspended
    assert status.total_events_remaining == 2

    blocked = await check_in(ctx, "g-today", "m1", TeamType.home)
    assert blocked.state == CheckInState.rejected
    assert blocked.present is False
    assert blocked.events_remaining == 2
    assert blocked.trigger_types == [TriggerType.yellow_accumulation]
    assert "yellow card accumulation" in blocked.message
    assert await ctx.events.list_attendee_ids("g-today") == []

    served = await mark_suspension_served(ctx, suspension.id)
    assert served.status == SuspensionState.served

    allowed = await check_in(ctx, "g-today", "m1", TeamType.home)
    assert allowed.state == CheckInState.confirmed
    assert allowed.present is True
    assert await ctx.events.list_attendee_ids("g-today") == ["m1"]

    [after] = await get_pending_suspendable(ctx, REFERENCE)
    assert after.status == TriggerStatus.served


@pytest.mark.asyncio
async def test_apply_suspension_rejects_bad_input(ctx, db_session):
    await _seed_three_yellows(ctx, db_session)
    [pending] = await get_pending_suspendable(ctx, REFERENCE)

    with pytest.raises(SuspensionValidationError):
        await apply_suspension(ctx, "m1", None, 2)
    with pytest.raises(SuspensionValidationError):
        await apply_suspension(ctx, "m1", pending.trigger, 0)
    with pytest.raises(SuspensionValidationError):
        await apply_suspension(ctx, "m1", pending.trigger, 11)
    with pytest.raises(SuspensionValidationError):
        await apply_suspension(ctx, "m2", pending.trigger, 1)

    assert await ctx.suspensions.count_active() == 0


@pytest.mark.asyncio
async def test_double_assignment_of_the_same_trigger_conflicts(ctx, db_session):
    await _seed_three_yellows(ctx, db_session)
    [pending] = await get_pending_suspendable(ctx, REFERENCE)

    await apply_suspension(ctx, "m1", pending.trigger, 1)
    with pytest.raises(DuplicateSuspensionError):
        await apply_suspension(ctx, "m1", pending.trigger, 3)

    assert await ctx.suspensions.count_active() == 1


@pytest.mark.asyncio
async def test_remaining_events_sum_across_suspensions(ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(
        [
            event("e1", epoch(2025, 3, 1), [match("g1", [red("m4", TeamType.away)])]),
            event("e2", epoch(2025, 3, 8), [match("g2", [red("m4", TeamType.away)])]),
        ]
    )
    first, second = await get_pending_suspendable(ctx, REFERENCE)
    await apply_suspension(ctx, "m4", first.trigger, 1)
    await apply_suspension(ctx, "m4", second.trigger, 3)

    status = await get_player_suspension_status(ctx, "m4")
    assert status.total_events_remaining == 4

    await record_event_served(ctx, "m4")
    status = await get_player_suspension_status(ctx, "m4")
    assert status.total_events_remaining == 2
    assert len(status.suspensions) == 1


@pytest.mark.asyncio
async def test_team_suspensions_are_prefetched_for_rostered_members(ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(
        [event("e1", epoch(2025, 3, 1), [match("g1", [red("m4", TeamType.away)])])]
    )
    [pending] = await get_pending_suspendable(ctx, REFERENCE)
    await apply_suspension(ctx, "m4", pending.trigger, 1)

    statuses = await load_team_suspensions(ctx, ["lions", "tigers"])

    assert set(statuses) == {"m1", "m2", "m3", "m4", "m5"}
    assert statuses["m4"].is_suspended
    assert not statuses["m1"].is_suspended
    assert "m4" in ctx.suspension_cache
