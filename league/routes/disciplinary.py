from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from league.models.cards import CardCounts
from league.models.disciplinary import DisciplinaryRecordRead, MemberDisciplinarySummary
from league.routes.helpers import get_league_context
from league.services.card_aggregator import count_member_cards, count_team_cards
from league.services.disciplinary_service import get_disciplinary_records, summarize_member_history
from league.services.league_context import LeagueContext
from league.services.season_calendar import get_current_season

router = APIRouter(prefix="/api", tags=["disciplinary"])

SEASON_QUERY = Query(
    default=None, description="Calendar-half label like '2025-Spring'; defaults to the current season"
)


@router.get("/disciplinary-records", response_model=List[DisciplinaryRecordRead])
async def disciplinary_records(
    member_id: Optional[str] = Query(default=None),
    team_id: Optional[str] = Query(default=None),
    ctx: LeagueContext = Depends(get_league_context),
) -> List[DisciplinaryRecordRead]:
    """Permanent disciplinary history for a member or a team."""
    try:
        return await get_disciplinary_records(ctx, member_id=member_id, team_id=team_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/members/{member_id}/disciplinary-summary", response_model=MemberDisciplinarySummary)
async def member_disciplinary_summary(
    member_id: str,
    ctx: LeagueContext = Depends(get_league_context),
) -> MemberDisciplinarySummary:
    records = await get_disciplinary_records(ctx, member_id=member_id)
    return summarize_member_history(member_id, records)


@router.get("/members/{member_id}/cards", response_model=CardCounts)
async def member_card_counts(
    member_id: str,
    season: Optional[str] = SEASON_QUERY,
    ctx: LeagueContext = Depends(get_league_context),
) -> CardCounts:
    """Live-season yellow/red totals for a roster badge."""
    events = await ctx.events.load_events()
    return count_member_cards(events, member_id, season or get_current_season())


@router.get("/teams/{team_id}/cards", response_model=CardCounts)
async def team_card_counts(
    team_id: str,
    season: Optional[str] = SEASON_QUERY,
    ctx: LeagueContext = Depends(get_league_context),
) -> CardCounts:
    team = next((t for t in await ctx.teams.list_teams() if t.id == team_id), None)
    if team is None:
        raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
    events = await ctx.events.load_events()
    return count_team_cards(events, team, season or get_current_season())
