"""Season close: turn live cards into permanent records, archive, reset.

The close runs as a fixed sequence of steps recorded on a ``SeasonCloseRun``
row. Steps that already committed are never undone: when a later step fails
the run is marked failed and an admin has to recover by hand.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Awaitable, Callable, Optional, Sequence, Union

from league.models.cards import CardRecord
from league.models.fields import CardType, CloseStep
from league.models.season_close import (
    CloseProgress,
    MigrationPreview,
    SeasonArchiveSummary,
    SeasonCloseResult,
    SeasonCloseRunRead,
)
from league.models.seasons import Season
from league.schemas.disciplinary_records import DisciplinaryRecord
from league.services.card_aggregator import collect_season_cards
from league.services.errors import (
    SeasonCloseBlockedError,
    SeasonCloseError,
    SeasonCloseInProgressError,
)
from league.services.league_context import LeagueContext
from league.services.season_calendar import (
    DateLike,
    coerce_epoch,
    get_current_season,
    league_tz,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[CloseProgress], Union[None, Awaitable[None]]]

# One close at a time per process; other workers are not coordinated
_close_lock = asyncio.Lock()


def card_to_record(card: CardRecord, served_on: date) -> DisciplinaryRecord:
    """Historical cards are considered served on the day the season is closed."""
    return DisciplinaryRecord(
        member_id=card.member_id,
        member_name=card.member_name,
        team_id=card.team_id,
        team_name=card.team_name,
        card_type=card.card_type,
        reason=card.reason,
        notes=card.notes,
        incident_date=datetime.fromtimestamp(card.event_date, league_tz()).date(),
        event_description=f"{card.event_name}: {card.home_team_name} vs {card.away_team_name}",
        suspension_events=None,
        suspension_served=True,
        suspension_served_date=served_on,
        source_event_id=card.event_id,
        source_match_id=card.match_id,
        season_label=card.season_label,
    )


def build_records(cards: Sequence[CardRecord], served_on: date) -> list[DisciplinaryRecord]:
    return [card_to_record(card, served_on) for card in cards]


async def preview_migration(
    ctx: LeagueContext, reference_date: Optional[DateLike] = None
) -> MigrationPreview:
    season = get_current_season(reference_date)
    events = await ctx.events.load_events()
    teams = await ctx.teams.list_teams()
    referees = await ctx.referees.list_referees()
    active = await ctx.suspensions.count_active()

    cards = collect_season_cards(events, teams, referees, season)
    yellow = sum(1 for card in cards if card.card_type == CardType.yellow)
    season_events = [
        event for event in events
        if (epoch := coerce_epoch(event.date)) is not None and season.contains(epoch)
    ]
    blocking = None
    if active:
        blocking = f"{active} active suspension(s) must be served first"
    return MigrationPreview(
        season=season.to_read(),
        event_count=len(season_events),
        card_count=len(cards),
        yellow_cards=yellow,
        red_cards=len(cards) - yellow,
        active_suspensions=active,
        can_close=active == 0,
        blocking_reason=blocking,
    )


class SeasonCloseCoordinator:
    """Runs one season close and reports each step to ``on_progress``."""

    def __init__(
        self,
        ctx: LeagueContext,
        on_progress: Optional[ProgressCallback] = None,
        reference_date: Optional[DateLike] = None,
    ):
        self.ctx = ctx
        self.on_progress = on_progress
        self.season: Season = get_current_season(reference_date)
        self.progress: list[CloseProgress] = []
        self.run_id: Optional[int] = None

    async def _report(self, step: CloseStep, message: str, completed: int = 0, total: int = 0) -> None:
        update = CloseProgress(step=step, message=message, completed=completed, total=total)
        self.progress.append(update)
        logger.info("[season close %s] %s: %s", self.season.label, step.value, message)
        if self.on_progress is not None:
            result = self.on_progress(update)
            if asyncio.iscoroutine(result):
                await result

    async def run(self) -> SeasonCloseResult:
        if _close_lock.locked():
            raise SeasonCloseInProgressError("A season close is already running")
        async with _close_lock:
            return await self._run()

    async def _run(self) -> SeasonCloseResult:
        ctx = self.ctx
        active = await ctx.suspensions.count_active()
        if active:
            raise SeasonCloseBlockedError(active)

        run = await ctx.close_runs.start(self.season.label)
        if run.id is None:
            raise ValueError("run.id should not be None after commit")
        # A failed step rolls the session back and expires `run`
        run_id = self.run_id = run.id
        step = CloseStep.collect
        try:
            await self._report(step, "Collecting live-season cards")
            events = await ctx.events.load_events()
            teams = await ctx.teams.list_teams()
            referees = await ctx.referees.list_referees()
            cards = collect_season_cards(events, teams, referees, self.season)
            await ctx.close_runs.advance(run_id, step, cards_collected=len(cards))
            await self._report(step, f"Collected {len(cards)} card(s)", len(cards), len(cards))

            step = CloseStep.transform
            records = build_records(cards, datetime.now(league_tz()).date())
            await self._report(step, f"Prepared {len(records)} disciplinary record(s)", len(records), len(cards))

            step = CloseStep.persist_records
            await ctx.close_runs.advance(run_id, step)
            created = await ctx.disciplinary.create_batch(records, close_run_id=run_id)
            await self._report(step, f"Persisted {created} disciplinary record(s)", created, len(cards))

            step = CloseStep.archive
            await ctx.close_runs.advance(run_id, step)
            archive = await ctx.archives.create_snapshot(self.season, events)
            await ctx.close_runs.advance(run_id, step, archive_id=archive.id)
            await self._report(step, f"Archived {len(events)} event(s) as {self.season.label}")

            step = CloseStep.clear_live
            await ctx.close_runs.advance(run_id, step)
            await ctx.events.clear_live_events(run_id)
            await self._report(step, "Cleared live event store")

            step = CloseStep.complete
            finished = await ctx.close_runs.advance(run_id, step)
            await self._report(step, f"Season {self.season.label} closed")
        except Exception as exc:
            logger.exception(
                "Season close %s failed at step %s; completed steps are not rolled back",
                self.season.label,
                step.value,
            )
            await ctx.close_runs.fail(run_id, step, repr(exc))
            raise SeasonCloseError(step, exc, run_id=run_id) from exc

        return SeasonCloseResult(
            run=SeasonCloseRunRead.model_validate(finished),
            records_created=created,
            archive_id=archive.id,
            progress=list(self.progress),
        )


async def close_season(
    ctx: LeagueContext,
    on_progress: Optional[ProgressCallback] = None,
    reference_date: Optional[DateLike] = None,
) -> SeasonCloseResult:
    """Close the current season. Long-running; progress goes to ``on_progress``."""
    return await SeasonCloseCoordinator(ctx, on_progress, reference_date).run()


async def list_season_archives(ctx: LeagueContext) -> list[SeasonArchiveSummary]:
    """Archived seasons, newest first."""
    return [
        SeasonArchiveSummary(
            id=archive.id,
            season_label=archive.season_label,
            season_type=archive.season_type,
            year=archive.year,
            event_count=len(archive.snapshot.get("events", [])),
            archived_at=archive.archived_at,
        )
        for archive in await ctx.archives.list_archives()
    ]


async def get_close_run(ctx: LeagueContext, run_id: int) -> Optional[SeasonCloseRunRead]:
    run = await ctx.close_runs.get(run_id)
    return SeasonCloseRunRead.model_validate(run) if run is not None else None
