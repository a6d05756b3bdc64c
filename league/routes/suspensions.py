from typing import List

from fastapi import APIRouter, Depends

from league.models.suspensions import (
    ApplySuspensionRequest,
    MemberSuspensionStatus,
    PendingSuspendable,
    SuspensionRead,
)
from league.routes.helpers import get_league_context, to_http_error
from league.services.errors import LeagueError
from league.services.league_context import LeagueContext
from league.services.suspension_service import (
    apply_suspension,
    get_pending_suspendable,
    get_player_suspension_status,
    mark_suspension_served,
    record_event_served,
)

router = APIRouter(prefix="/api", tags=["suspensions"])


@router.get("/suspensions/pending", response_model=List[PendingSuspendable])
async def pending_suspensions(
    ctx: LeagueContext = Depends(get_league_context),
) -> List[PendingSuspendable]:
    """Red cards and yellow accumulations of the current season with their suspension state."""
    return await get_pending_suspendable(ctx)


@router.post("/suspensions", response_model=SuspensionRead, status_code=201)
async def create_suspension(
    payload: ApplySuspensionRequest,
    ctx: LeagueContext = Depends(get_league_context),
) -> SuspensionRead:
    try:
        return await apply_suspension(
            ctx, payload.member_id, payload.trigger, payload.events_count
        )
    except LeagueError as exc:
        raise to_http_error(exc) from exc


@router.post("/suspensions/{suspension_id}/served", response_model=SuspensionRead)
async def serve_suspension(
    suspension_id: int,
    ctx: LeagueContext = Depends(get_league_context),
) -> SuspensionRead:
    try:
        return await mark_suspension_served(ctx, suspension_id)
    except LeagueError as exc:
        raise to_http_error(exc) from exc


@router.post("/members/{member_id}/suspension-events", response_model=List[SuspensionRead])
async def serve_suspension_event(
    member_id: str,
    ctx: LeagueContext = Depends(get_league_context),
) -> List[SuspensionRead]:
    """Count one sat-out event against the member's active suspensions."""
    return await record_event_served(ctx, member_id)


@router.get("/members/{member_id}/suspension-status", response_model=MemberSuspensionStatus)
async def member_suspension_status(
    member_id: str,
    ctx: LeagueContext = Depends(get_league_context),
) -> MemberSuspensionStatus:
    return await get_player_suspension_status(ctx, member_id)
