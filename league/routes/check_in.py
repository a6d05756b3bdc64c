from typing import Dict

from fastapi import APIRouter, Depends

from league.models.check_in import CheckInRequest, CheckInResult
from league.models.suspensions import MemberSuspensionStatus
from league.routes.helpers import get_league_context, to_http_error
from league.services.check_in_service import check_in, check_out
from league.services.errors import LeagueError, MatchNotFoundError
from league.services.league_context import LeagueContext
from league.services.suspension_service import load_team_suspensions

router = APIRouter(prefix="/api/matches", tags=["check-in"])


@router.get("/{match_id}/suspensions", response_model=Dict[str, MemberSuspensionStatus])
async def match_suspensions(
    match_id: str,
    ctx: LeagueContext = Depends(get_league_context),
) -> Dict[str, MemberSuspensionStatus]:
    """Suspension status for every rostered member of both teams."""
    match = await ctx.events.get_match(match_id)
    if match is None:
        raise to_http_error(MatchNotFoundError(f"Match {match_id} not found"))
    return await load_team_suspensions(ctx, [match.home_team_id, match.away_team_id])


@router.post("/{match_id}/check-in", response_model=CheckInResult)
async def match_check_in(
    match_id: str,
    payload: CheckInRequest,
    ctx: LeagueContext = Depends(get_league_context),
) -> CheckInResult:
    """Mark a member present unless they are suspended.

    Suspended members come back with state ``rejected`` or ``reverted`` and
    ``present`` false.
    """
    try:
        return await check_in(ctx, match_id, payload.member_id, payload.team_type)
    except LeagueError as exc:
        raise to_http_error(exc) from exc


@router.delete("/{match_id}/check-in/{member_id}")
async def match_check_out(
    match_id: str,
    member_id: str,
    ctx: LeagueContext = Depends(get_league_context),
) -> dict:
    try:
        removed = await check_out(ctx, match_id, member_id)
    except LeagueError as exc:
        raise to_http_error(exc) from exc
    return {"removed": removed}
