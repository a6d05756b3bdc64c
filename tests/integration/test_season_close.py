"""Season close: records, archive, live reset and failure bookkeeping."""

from datetime import date

import pytest

from league.models.fields import CardType, CloseRunStatus, CloseStep, TeamType, TriggerType
from league.services import season_close_service
from league.services.disciplinary_service import get_disciplinary_records
from league.services.errors import (
    SeasonCloseBlockedError,
    SeasonCloseError,
    SeasonCloseInProgressError,
)
from league.schemas.disciplinary_records import DisciplinaryRecord
from league.services.season_close_service import close_season, preview_migration
from tests.factories import epoch, event, match, red, seed_rosters, yellow

REFERENCE = date(2025, 6, 30)


def _season_events(card_count: int):
    """``card_count`` cards spread over weekly events, alternating yellow and red."""
    events = []
    for week in range(card_count):
        card = yellow("m1", reason="Dissent") if week % 2 == 0 else red("m4", TeamType.away, reason="Foul")
        events.append(event(f"e{week}", epoch(2025, 3, 1 + week), [match(f"g{week}", [card])]))
    return events


@pytest.mark.asyncio
@pytest.mark.parametrize("card_count", [0, 1, 7])
async def test_close_persists_every_card_then_clears(ctx, db_session, card_count):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_season_events(card_count))
    progress = []

    result = await close_season(ctx, on_progress=progress.append, reference_date=REFERENCE)

    assert result.records_created == card_count
    assert result.run.status == CloseRunStatus.completed
    assert result.run.current_step == CloseStep.complete
    assert result.run.cards_collected == card_count
    assert result.run.records_persisted == card_count
    assert result.run.records_persisted_at is not None
    assert result.run.live_cleared_at is not None
    assert result.archive_id is not None

    steps = [update.step for update in progress]
    assert steps[0] == CloseStep.collect
    assert steps[-1] == CloseStep.complete
    assert steps.index(CloseStep.persist_records) < steps.index(CloseStep.clear_live)

    assert await ctx.events.load_events() == []

    [archive] = await ctx.archives.list_archives()
    assert archive.season_label == "2025-Spring"
    assert len(archive.snapshot["events"]) == card_count


@pytest.mark.asyncio
async def test_closed_cards_become_served_disciplinary_records(ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_season_events(3))

    await close_season(ctx, reference_date=REFERENCE)

    records = await get_disciplinary_records(ctx, member_id="m1")
    assert [r.card_type for r in records] == [CardType.yellow, CardType.yellow]
    assert all(r.suspension_served for r in records)
    assert all(r.suspension_served_date is not None for r in records)
    assert records[0].incident_date == date(2025, 3, 3)
    assert records[0].member_name == "Alex Reyes"
    assert records[0].event_description == "Matchday e2: Lions vs Tigers"
    assert records[0].season_label == "2025-Spring"

    tigers = await get_disciplinary_records(ctx, team_id="tigers")
    assert [(r.member_id, r.card_type) for r in tigers] == [("m4", CardType.red)]


@pytest.mark.asyncio
async def test_cards_outside_the_season_are_not_migrated(ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(
        _season_events(2) + [event("old", epoch(2024, 11, 2), [match("g-old", [yellow("m2")])])]
    )

    preview = await preview_migration(ctx, REFERENCE)
    assert (preview.event_count, preview.card_count) == (2, 2)
    assert (preview.yellow_cards, preview.red_cards) == (1, 1)
    assert preview.can_close

    result = await close_season(ctx, reference_date=REFERENCE)
    assert result.records_created == 2
    assert await get_disciplinary_records(ctx, member_id="m2") == []


@pytest.mark.asyncio
async def test_active_suspensions_block_the_close(ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_season_events(2))
    await ctx.suspensions.create(
        member_id="m4", trigger_type=TriggerType.red, source_ref="red:g1:#0", suspension_events=1
    )

    preview = await preview_migration(ctx, REFERENCE)
    assert preview.can_close is False
    assert preview.active_suspensions == 1
    assert preview.blocking_reason

    with pytest.raises(SeasonCloseBlockedError):
        await close_season(ctx, reference_date=REFERENCE)

    assert len(await ctx.events.load_events()) == 2
    assert await get_disciplinary_records(ctx, member_id="m1") == []


@pytest.mark.asyncio
async def test_failed_archive_step_keeps_live_data_and_marks_run_failed(ctx, db_session, monkeypatch):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_season_events(3))

    async def broken_snapshot(season, events):
        raise RuntimeError("archive storage unavailable")

    monkeypatch.setattr(ctx.archives, "create_snapshot", broken_snapshot)

    with pytest.raises(SeasonCloseError) as excinfo:
        await close_season(ctx, reference_date=REFERENCE)

    error = excinfo.value
    assert error.step == CloseStep.archive
    assert isinstance(error.cause, RuntimeError)

    run = await ctx.close_runs.get(error.run_id)
    assert run.status == CloseRunStatus.failed
    assert run.current_step == CloseStep.archive
    assert "archive storage unavailable" in run.error
    assert run.records_persisted == 3
    assert run.live_cleared_at is None

    # Committed records stay; live data is untouched
    assert len(await get_disciplinary_records(ctx, member_id="m1")) == 2
    assert len(await ctx.events.load_events()) == 3


@pytest.mark.asyncio
async def test_second_close_while_one_is_running_is_refused(ctx):
    async with season_close_service._close_lock:
        with pytest.raises(SeasonCloseInProgressError):
            await close_season(ctx, reference_date=REFERENCE)


@pytest.mark.asyncio
async def test_failed_record_insert_is_reported_on_the_run(ctx, db_session, monkeypatch):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_season_events(2))

    def records_missing_member(cards, served_on):
        return [DisciplinaryRecord(member_id=None, card_type=CardType.yellow)]

    monkeypatch.setattr(season_close_service, "build_records", records_missing_member)

    with pytest.raises(SeasonCloseError) as excinfo:
        await close_season(ctx, reference_date=REFERENCE)

    error = excinfo.value
    assert error.step == CloseStep.persist_records

    run = await ctx.close_runs.get(error.run_id)
    assert run.status == CloseRunStatus.failed
    assert run.current_step == CloseStep.persist_records
    assert run.records_persisted_at is None
    assert run.error

    assert len(await ctx.events.load_events()) == 2
    assert await get_disciplinary_records(ctx, member_id="m1") == []
