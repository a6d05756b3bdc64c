"""Match-day check-in guarded by suspension status.

Check-in is optimistic: the attendee is written first (tentative) and the
suspension check settles it afterwards (confirmed or reverted). A revert can
land after the caller has already shown the player as present, so callers
pass ``on_revert`` to hear about it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from league.models.check_in import CheckInResult
from league.models.fields import CheckInState, TeamType, TriggerType
from league.models.suspensions import MemberSuspensionStatus
from league.services.errors import MatchNotFoundError
from league.services.league_context import LeagueContext
from league.services.suspension_service import (
    get_player_suspension_status,
    summarize_status,
)

logger = logging.getLogger(__name__)

RevertCallback = Callable[["CheckInAttempt"], Optional[Awaitable[None]]]


def suspension_message(status: MemberSuspensionStatus) -> str:
    reasons = sorted({s.trigger_type.label for s in status.suspensions})
    return (
        f"Member is suspended ({', '.join(reasons)}) with "
        f"{status.total_events_remaining} event(s) remaining"
    )


def suspended_trigger_types(status: MemberSuspensionStatus) -> list[TriggerType]:
    return sorted({s.trigger_type for s in status.suspensions}, key=lambda t: t.value)


@dataclass
class CheckInAttempt:
    """One check-in moving from tentative to confirmed or reverted."""

    ctx: LeagueContext
    match_id: str
    member_id: str
    team_type: TeamType
    state: CheckInState = CheckInState.tentative
    status: Optional[MemberSuspensionStatus] = None
    message: Optional[str] = None
    on_revert: Optional[RevertCallback] = None
    _compensate: Optional[Callable[[], Awaitable[bool]]] = field(default=None, repr=False)

    async def apply(self) -> None:
        """Write the attendee row and remember how to take it back."""
        _, created = await self.ctx.events.add_attendee(self.match_id, self.member_id, self.team_type)
        if not created:
            # Already present before this attempt; a revert leaves that row alone
            return
        self._compensate = lambda: self.ctx.events.remove_attendee(self.match_id, self.member_id)

    async def revert(self, message: str) -> None:
        if self.state == CheckInState.reverted:
            return
        if self._compensate is not None:
            await self._compensate()
            self._compensate = None
        self.state = CheckInState.reverted
        self.message = message
        logger.info("Reverted check-in of %s for match %s: %s", self.member_id, self.match_id, message)
        if self.on_revert is not None:
            result = self.on_revert(self)
            if result is not None:
                await result

    async def reconcile(self) -> CheckInState:
        """Run the suspension check and settle the tentative check-in."""
        if self.state != CheckInState.tentative:
            return self.state
        try:
            self.status = await get_player_suspension_status(self.ctx, self.member_id)
        except Exception:
            await self.revert("Suspension check failed")
            raise
        if self.status.is_suspended:
            await self.revert(suspension_message(self.status))
        else:
            self.state = CheckInState.confirmed
            self._compensate = None
        return self.state

    def result(self) -> CheckInResult:
        status = self.status
        return CheckInResult(
            match_id=self.match_id,
            member_id=self.member_id,
            team_type=self.team_type,
            state=self.state,
            present=self.state in (CheckInState.tentative, CheckInState.confirmed),
            events_remaining=status.total_events_remaining if status else 0,
            trigger_types=suspended_trigger_types(status) if status else [],
            message=self.message,
        )


async def begin_check_in(
    ctx: LeagueContext,
    match_id: str,
    member_id: str,
    team_type: TeamType,
    on_revert: Optional[RevertCallback] = None,
) -> CheckInAttempt:
    """Start a check-in.

    A cached suspension rejects the check-in before anything is written.
    Otherwise the attendee is written and the returned attempt is tentative
    until ``reconcile`` runs.
    """
    match = await ctx.events.get_match(match_id)
    if match is None:
        raise MatchNotFoundError(f"Match {match_id} not found")

    attempt = CheckInAttempt(
        ctx=ctx,
        match_id=match_id,
        member_id=member_id,
        team_type=team_type,
        on_revert=on_revert,
    )
    cached = ctx.suspension_cache.peek(member_id)
    if cached is not None:
        status = summarize_status(member_id, cached)
        if status.is_suspended:
            attempt.status = status
            attempt.state = CheckInState.rejected
            attempt.message = suspension_message(status)
            return attempt

    await attempt.apply()
    return attempt


async def check_in(
    ctx: LeagueContext,
    match_id: str,
    member_id: str,
    team_type: TeamType,
    on_revert: Optional[RevertCallback] = None,
) -> CheckInResult:
    attempt = await begin_check_in(ctx, match_id, member_id, team_type, on_revert)
    await attempt.reconcile()
    return attempt.result()


async def check_out(ctx: LeagueContext, match_id: str, member_id: str) -> bool:
    match = await ctx.events.get_match(match_id)
    if match is None:
        raise MatchNotFoundError(f"Match {match_id} not found")
    return await ctx.events.remove_attendee(match_id, member_id)
