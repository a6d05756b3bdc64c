from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from league.models.cards import CardRecord, SeasonStats
from league.models.season_close import (
    MigrationPreview,
    SeasonArchiveSummary,
    SeasonCloseResult,
    SeasonCloseRunRead,
)
from league.models.seasons import SeasonMembership, SeasonRead
from league.routes.helpers import get_league_context, to_http_error
from league.services.card_aggregator import collect_season_cards, compute_season_stats
from league.services.errors import LeagueError
from league.services.league_context import LeagueContext
from league.services.season_calendar import (
    classify_event_season,
    coerce_epoch,
    get_current_season,
    is_current_season_event,
)
from league.services.season_close_service import (
    close_season,
    get_close_run,
    list_season_archives,
    preview_migration,
)

router = APIRouter(prefix="/api/season", tags=["season"])


@router.get("/current", response_model=SeasonRead)
async def current_season() -> SeasonRead:
    """Return the competitive season for today."""
    return get_current_season().to_read()


@router.get("/is-current", response_model=SeasonMembership)
async def season_membership(
    date: float = Query(..., description="Event date, epoch seconds"),
) -> SeasonMembership:
    """Report both season rules for an event date."""
    epoch = coerce_epoch(date)
    if epoch is None:
        raise HTTPException(status_code=422, detail=f"date {date!r} is not a usable epoch timestamp")
    return SeasonMembership(
        date=epoch,
        is_current_season=is_current_season_event(epoch),
        event_season_label=classify_event_season(epoch),
        current_season=get_current_season().to_read(),
    )


async def _season_cards(ctx: LeagueContext, season: Optional[str]) -> List[CardRecord]:
    events = await ctx.events.load_events()
    teams = await ctx.teams.list_teams()
    referees = await ctx.referees.list_referees()
    season_filter = season if season else get_current_season()
    return collect_season_cards(events, teams, referees, season_filter)


@router.get("/cards", response_model=List[CardRecord])
async def season_cards(
    season: Optional[str] = Query(
        default=None, description="Calendar-half label like '2025-Spring'; defaults to the current season"
    ),
    ctx: LeagueContext = Depends(get_league_context),
) -> List[CardRecord]:
    return await _season_cards(ctx, season)


@router.get("/stats", response_model=SeasonStats)
async def season_stats(
    season: Optional[str] = Query(default=None),
    ctx: LeagueContext = Depends(get_league_context),
) -> SeasonStats:
    """Card roll-ups by date, team, reason and referee."""
    return compute_season_stats(await _season_cards(ctx, season))


@router.get("/close/preview", response_model=MigrationPreview)
async def season_close_preview(
    ctx: LeagueContext = Depends(get_league_context),
) -> MigrationPreview:
    return await preview_migration(ctx)


@router.post("/close", response_model=SeasonCloseResult)
async def season_close(
    ctx: LeagueContext = Depends(get_league_context),
) -> SeasonCloseResult:
    """Close the current season. Progress is returned with the result."""
    try:
        return await close_season(ctx)
    except LeagueError as exc:
        raise to_http_error(exc) from exc


@router.get("/close/runs/{run_id}", response_model=SeasonCloseRunRead)
async def season_close_run(
    run_id: int,
    ctx: LeagueContext = Depends(get_league_context),
) -> SeasonCloseRunRead:
    """Step, witness and error of one close attempt, for recovering a failed close."""
    run = await get_close_run(ctx, run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Season close run {run_id} not found")
    return run


@router.get("/archives", response_model=List[SeasonArchiveSummary])
async def season_archives(
    ctx: LeagueContext = Depends(get_league_context),
) -> List[SeasonArchiveSummary]:
    return await list_season_archives(ctx)
