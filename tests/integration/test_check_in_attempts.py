"""Tentative check-ins and their compensating reverts."""

import pytest
import pytest_asyncio

from league.models.fields import CheckInState, TeamType, TriggerType
from league.services.check_in_service import begin_check_in, check_in, check_out
from league.services.errors import MatchNotFoundError
from tests.factories import epoch, event, match, seed_rosters


@pytest_asyncio.fixture()
async def match_day(ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events([event("today", epoch(2025, 4, 1), [match("g1")])])
    return ctx


@pytest.mark.asyncio
async def test_late_suspension_reverts_tentative_check_in(match_day):
    ctx = match_day
    reverted = []

    attempt = await begin_check_in(ctx, "g1", "m1", TeamType.home, on_revert=reverted.append)
    assert attempt.state == CheckInState.tentative
    assert attempt.result().present is True
    assert await ctx.events.list_attendee_ids("g1") == ["m1"]

    # Suspension lands between the optimistic write and the status check
    await ctx.suspensions.create(
        member_id="m1", trigger_type=TriggerType.red, source_ref="red:g0:1", suspension_events=1
    )

    assert await attempt.reconcile() == CheckInState.reverted
    assert reverted == [attempt]
    assert attempt.result().present is False
    assert attempt.result().events_remaining == 1
    assert await ctx.events.list_attendee_ids("g1") == []


@pytest.mark.asyncio
async def test_async_revert_callback_is_awaited(match_day):
    ctx = match_day
    notified = []

    async def notify(attempt):
        notified.append(attempt.message)

    await ctx.suspensions.create(
        member_id="m2", trigger_type=TriggerType.red, source_ref="red:g0:2", suspension_events=2
    )
    result = await check_in(ctx, "g1", "m2", TeamType.home, on_revert=notify)

    assert result.state == CheckInState.reverted
    assert len(notified) == 1
    assert "2 event(s) remaining" in notified[0]


@pytest.mark.asyncio
async def test_failed_status_check_reverts_and_propagates(match_day, monkeypatch):
    ctx = match_day

    async def broken(member_id):
        raise ConnectionError("suspension lookup unavailable")

    monkeypatch.setattr(ctx.suspension_cache, "get_active", broken)
    attempt = await begin_check_in(ctx, "g1", "m3", TeamType.home)

    with pytest.raises(ConnectionError):
        await attempt.reconcile()

    assert attempt.state == CheckInState.reverted
    assert await ctx.events.list_attendee_ids("g1") == []


@pytest.mark.asyncio
async def test_revert_keeps_an_earlier_confirmed_check_in(match_day, monkeypatch):
    ctx = match_day
    assert (await check_in(ctx, "g1", "m3", TeamType.home)).state == CheckInState.confirmed

    async def broken(member_id):
        raise ConnectionError("suspension lookup unavailable")

    monkeypatch.setattr(ctx.suspension_cache, "get_active", broken)
    attempt = await begin_check_in(ctx, "g1", "m3", TeamType.home)

    with pytest.raises(ConnectionError):
        await attempt.reconcile()

    assert attempt.state == CheckInState.reverted
    assert await ctx.events.list_attendee_ids("g1") == ["m3"]


@pytest.mark.asyncio
async def test_clean_member_is_confirmed_and_stays_present(match_day):
    ctx = match_day
    result = await check_in(ctx, "g1", "m4", TeamType.away)

    assert result.state == CheckInState.confirmed
    assert result.present is True
    assert result.trigger_types == []

    # Reconciling a settled attempt changes nothing
    attempt = await begin_check_in(ctx, "g1", "m4", TeamType.away)
    await attempt.reconcile()
    assert await attempt.reconcile() == CheckInState.confirmed
    assert await ctx.events.list_attendee_ids("g1") == ["m4"]


@pytest.mark.asyncio
async def test_check_out_and_unknown_match(match_day):
    ctx = match_day
    await check_in(ctx, "g1", "m5", TeamType.away)

    assert await check_out(ctx, "g1", "m5") is True
    assert await check_out(ctx, "g1", "m5") is False

    with pytest.raises(MatchNotFoundError):
        await check_in(ctx, "nope", "m5", TeamType.away)
    with pytest.raises(MatchNotFoundError):
        await check_out(ctx, "nope", "m5")
