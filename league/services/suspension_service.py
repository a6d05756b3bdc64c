"""Suspension derivation and lifecycle.

A member becomes suspendable through a red card or through each full block of
``yellow_accumulation_threshold`` yellow cards in the active season. Deriving
triggers is a pure function over fetched events; assigning and serving
suspensions goes through the suspension store and invalidates the cache.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from league.config import settings
from league.models.cards import CardRecord
from league.models.events import EventData, RefereeData, TeamData
from league.models.fields import CardType, SuspensionState, TriggerStatus, TriggerType
from league.models.seasons import Season
from league.models.suspensions import (
    MemberSuspensionStatus,
    PendingSuspendable,
    RedCardTrigger,
    SuspensionRead,
    SuspensionTrigger,
    YellowAccumulationTrigger,
)
from league.services.card_aggregator import collect_season_cards
from league.services.errors import SuspensionValidationError
from league.services.league_context import LeagueContext
from league.services.season_calendar import DateLike, get_current_season

logger = logging.getLogger(__name__)


def red_source_ref(card: CardRecord) -> str:
    return f"red:{card.card_ref}"


def yellow_source_ref(season: Season, member_id: str, block: int) -> str:
    return f"yellow_accumulation:{season.label}:{member_id}:{block}"


def derive_triggers(
    cards: Sequence[CardRecord],
    season: Season,
    threshold: Optional[int] = None,
) -> list[SuspensionTrigger]:
    """Turn season cards into suspension triggers, in the order they occurred."""
    threshold = threshold or settings.yellow_accumulation_threshold
    triggers: list[SuspensionTrigger] = []
    yellows: dict[str, list[CardRecord]] = defaultdict(list)
    yellow_triggers: dict[str, list[YellowAccumulationTrigger]] = defaultdict(list)

    for card in cards:
        if card.card_type == CardType.red:
            triggers.append(
                RedCardTrigger(
                    member_id=card.member_id,
                    member_name=card.member_name,
                    team_id=card.team_id,
                    team_name=card.team_name,
                    source_ref=red_source_ref(card),
                    event_id=card.event_id,
                    event_name=card.event_name,
                    event_date=card.event_date,
                    match_id=card.match_id,
                    reason=card.reason,
                )
            )
            continue

        member_yellows = yellows[card.member_id]
        member_yellows.append(card)
        if len(member_yellows) % threshold == 0:
            block_cards = member_yellows[-threshold:]
            trigger = YellowAccumulationTrigger(
                member_id=card.member_id,
                member_name=card.member_name,
                team_id=card.team_id,
                team_name=card.team_name,
                source_ref=yellow_source_ref(
                    season, card.member_id, len(member_yellows) // threshold
                ),
                season_label=season.label,
                yellow_count=len(block_cards),
                total_yellow_count=len(member_yellows),
                card_refs=[c.card_ref for c in block_cards],
                event_date=card.event_date,
            )
            triggers.append(trigger)
            yellow_triggers[card.member_id].append(trigger)

    for member_id, member_triggers in yellow_triggers.items():
        for trigger in member_triggers:
            trigger.total_yellow_count = len(yellows[member_id])
    return triggers


def _trigger_status(suspension: Optional[SuspensionRead]) -> TriggerStatus:
    if suspension is None:
        return TriggerStatus.pending
    if suspension.status == SuspensionState.active and suspension.events_remaining > 0:
        return TriggerStatus.active
    return TriggerStatus.served


def pair_triggers(
    triggers: Iterable[SuspensionTrigger],
    suspensions: Iterable[SuspensionRead],
) -> list[PendingSuspendable]:
    """Attach the matching suspension (active first, else newest) to each trigger."""
    by_source: dict[tuple[str, str], SuspensionRead] = {}
    for suspension in suspensions:
        key = (suspension.member_id, suspension.source_ref)
        current = by_source.get(key)
        if current is None:
            by_source[key] = suspension
        elif current.status != SuspensionState.active and (
            suspension.status == SuspensionState.active or suspension.id > current.id
        ):
            by_source[key] = suspension

    paired = []
    for trigger in triggers:
        suspension = by_source.get((trigger.member_id, trigger.source_ref))
        paired.append(
            PendingSuspendable(
                trigger=trigger,
                suspension=suspension,
                status=_trigger_status(suspension),
            )
        )
    return paired


def compute_pending_suspendable(
    events: Iterable[EventData],
    current_season: Season,
    suspensions: Iterable[SuspensionRead] = (),
    teams: Iterable[TeamData] = (),
    referees: Iterable[RefereeData] = (),
    threshold: Optional[int] = None,
) -> list[PendingSuspendable]:
    """All suspension triggers of ``current_season``, each with its suspension, if any."""
    cards = collect_season_cards(events, teams, referees, current_season)
    return pair_triggers(derive_triggers(cards, current_season, threshold), suspensions)


def summarize_status(
    member_id: str, suspensions: Iterable[SuspensionRead]
) -> MemberSuspensionStatus:
    active = [
        s for s in suspensions
        if s.member_id == member_id and s.status == SuspensionState.active
    ]
    total = sum(max(0, s.events_remaining) for s in active)
    return MemberSuspensionStatus(
        member_id=member_id,
        is_suspended=total > 0,
        total_events_remaining=total,
        suspensions=active,
    )


def validate_events_count(events_count: object) -> int:
    low, high = settings.min_suspension_events, settings.max_suspension_events
    if events_count is None or isinstance(events_count, bool) or not isinstance(events_count, int):
        raise SuspensionValidationError(
            f"Suspension length must be a whole number of events between {low} and {high}"
        )
    if not low <= events_count <= high:
        raise SuspensionValidationError(
            f"Suspension length must be between {low} and {high} events (got {events_count})"
        )
    return events_count


async def get_pending_suspendable(
    ctx: LeagueContext, reference_date: Optional[DateLike] = None
) -> list[PendingSuspendable]:
    season = get_current_season(reference_date)
    events = await ctx.events.load_events()
    teams = await ctx.teams.list_teams()
    referees = await ctx.referees.list_referees()
    suspensions = await ctx.suspensions.list_all()
    return compute_pending_suspendable(events, season, suspensions, teams, referees)


async def apply_suspension(
    ctx: LeagueContext,
    member_id: str,
    trigger: Optional[SuspensionTrigger],
    events_count: object,
) -> SuspensionRead:
    """Assign an active suspension of ``events_count`` events for ``trigger``."""
    if trigger is None:
        raise SuspensionValidationError("Select the card that triggers this suspension")
    if trigger.member_id != member_id:
        raise SuspensionValidationError(
            f"Trigger belongs to member {trigger.member_id}, not {member_id}"
        )
    count = validate_events_count(events_count)

    suspension = await ctx.suspensions.create(
        member_id=member_id,
        trigger_type=TriggerType(trigger.trigger_type),
        source_ref=trigger.source_ref,
        suspension_events=count,
    )
    ctx.suspension_cache.invalidate(member_id)
    logger.info(
        "Suspended member %s for %d event(s) (%s, %s)",
        member_id,
        count,
        trigger.trigger_type,
        trigger.source_ref,
    )
    return suspension


async def mark_suspension_served(ctx: LeagueContext, suspension_id: int) -> SuspensionRead:
    """Move a suspension to served. Serving an already served suspension is a no-op."""
    suspension = await ctx.suspensions.mark_served(suspension_id)
    ctx.suspension_cache.invalidate(suspension.member_id)
    logger.info("Suspension %s for member %s marked served", suspension_id, suspension.member_id)
    return suspension


async def record_event_served(ctx: LeagueContext, member_id: str) -> list[SuspensionRead]:
    """Count one sat-out event against every active suspension of the member."""
    updated = await ctx.suspensions.decrement_for_member(member_id)
    ctx.suspension_cache.invalidate(member_id)
    return updated


async def get_player_suspension_status(
    ctx: LeagueContext, member_id: str
) -> MemberSuspensionStatus:
    """Summed suspension status for a member, cache first."""
    active = await ctx.suspension_cache.get_active(member_id)
    return summarize_status(member_id, active)


async def load_team_suspensions(
    ctx: LeagueContext, team_ids: Iterable[str]
) -> dict[str, MemberSuspensionStatus]:
    """Prefetch active suspensions for every rostered member of ``team_ids``."""
    wanted = set(team_ids)
    teams = await ctx.teams.list_teams()
    member_ids = [
        member.id for team in teams if team.id in wanted for member in team.members
    ]
    grouped = await ctx.suspension_cache.prefetch(member_ids)
    return {
        member_id: summarize_status(member_id, suspensions)
        for member_id, suspensions in grouped.items()
    }
