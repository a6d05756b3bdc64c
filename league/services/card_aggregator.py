"""Card aggregation over the nested live event data.

Walks event -> match -> card, keeps the events that fall in the requested
season and enriches each card with roster, event, match and referee context.
Everything here is synchronous and works on data that was already fetched.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional, Union

from league.models.cards import CardCounts, CardRecord, CardRollupEntry, SeasonStats
from league.models.events import CardData, EventData, MatchData, MemberData, RefereeData, TeamData
from league.models.fields import CardType
from league.models.seasons import Season
from league.services.season_calendar import classify_event_season, coerce_epoch, league_tz

logger = logging.getLogger(__name__)

# A Season window, a calendar-half label like "2025-Spring", or None for everything
SeasonFilter = Union[Season, str, None]

UNKNOWN_PLAYER = "Unknown Player"
UNKNOWN_TEAM = "Unknown Team"


def card_ref(match_id: str, card: CardData, index: int) -> str:
    """Stable key for a card inside its match."""
    if card.id is not None:
        return f"{match_id}:{card.id}"
    return f"{match_id}:#{index}"


def event_epoch(event: EventData) -> Optional[float]:
    """Return the event date in epoch seconds, logging and returning None when unusable."""
    epoch = coerce_epoch(event.date)
    if epoch is None:
        logger.warning(
            "Skipping event %s (%s): missing or invalid date %r",
            event.id,
            event.name,
            event.date,
        )
    return epoch


def _in_filter(epoch: float, season_filter: SeasonFilter) -> bool:
    if season_filter is None:
        return True
    if isinstance(season_filter, Season):
        return season_filter.contains(epoch)
    return classify_event_season(epoch) == season_filter


def iter_season_events(
    events: Iterable[EventData], season_filter: SeasonFilter
) -> Iterable[tuple[EventData, float]]:
    """Yield (event, epoch) for events with a valid date inside the filter."""
    for event in events:
        epoch = event_epoch(event)
        if epoch is None:
            continue
        if _in_filter(epoch, season_filter):
            yield event, epoch


def _build_roster_index(teams: Iterable[TeamData]) -> dict[str, tuple[MemberData, TeamData]]:
    index: dict[str, tuple[MemberData, TeamData]] = {}
    for team in teams:
        for member in team.members:
            index.setdefault(member.id, (member, team))
    return index


def resolve_member_name(
    card: CardData,
    match: MatchData,
    teams_by_id: dict[str, TeamData],
    roster_index: dict[str, tuple[MemberData, TeamData]],
) -> str:
    """Pick the best display name for the carded player.

    The API-supplied name is the fallback. A roster hit in either of the
    match's teams wins over it, and a league-wide roster search covers players
    who have since changed teams.
    """
    name = card.member_name or UNKNOWN_PLAYER

    for team_id in (match.home_team_id, match.away_team_id):
        team = teams_by_id.get(team_id)
        member = team.find_member(card.member_id) if team else None
        if member is not None:
            return member.name

    hit = roster_index.get(card.member_id)
    if hit is not None:
        return hit[0].name
    return name


def collect_season_cards(
    events: Iterable[EventData],
    teams: Iterable[TeamData],
    referees: Iterable[RefereeData],
    season_filter: SeasonFilter = None,
) -> list[CardRecord]:
    """Flatten every card of the selected season into enriched CardRecords.

    Output order follows event, match and card order of the input, so repeated
    calls on the same data return the same list.
    """
    teams = list(teams)
    teams_by_id = {team.id: team for team in teams}
    roster_index = _build_roster_index(teams)
    referee_names = {referee.id: referee.name for referee in referees}
    tz = league_tz()

    records: list[CardRecord] = []
    for event, epoch in iter_season_events(events, season_filter):
        date_label = datetime.fromtimestamp(epoch, tz).date().isoformat()
        season_label = classify_event_season(epoch)

        for match in event.matches:
            home = teams_by_id.get(match.home_team_id)
            away = teams_by_id.get(match.away_team_id)
            referee_id = match.main_referee_id

            for index, card in enumerate(match.cards):
                team_id = match.team_id_for(card.team_type)
                team = teams_by_id.get(team_id)
                records.append(
                    CardRecord(
                        card_id=card.id,
                        card_ref=card_ref(match.id, card, index),
                        member_id=card.member_id,
                        member_name=resolve_member_name(card, match, teams_by_id, roster_index),
                        team_id=team_id,
                        team_name=team.name if team else UNKNOWN_TEAM,
                        team_category=team.category if team else None,
                        team_color=team.color if team else None,
                        team_type=card.team_type,
                        card_type=card.card_type,
                        minute=card.minute,
                        reason=card.reason,
                        notes=card.notes,
                        event_id=event.id,
                        event_name=event.name,
                        event_date=epoch,
                        event_date_label=date_label,
                        event_description=event.description,
                        season_label=season_label,
                        match_id=match.id,
                        match_field=match.field,
                        match_time=match.time,
                        home_team_name=home.name if home else UNKNOWN_TEAM,
                        away_team_name=away.name if away else UNKNOWN_TEAM,
                        referee_id=referee_id,
                        referee_name=referee_names.get(referee_id) if referee_id else None,
                    )
                )
    return records


def _rollup(
    cards: Iterable[CardRecord], key_fn: Callable[[CardRecord], tuple[str, str]]
) -> list[CardRollupEntry]:
    entries: dict[str, CardRollupEntry] = {}
    for card in cards:
        key, label = key_fn(card)
        entry = entries.get(key)
        if entry is None:
            entry = entries[key] = CardRollupEntry(key=key, label=label)
        if card.card_type == CardType.yellow:
            entry.yellow += 1
        else:
            entry.red += 1
        entry.total += 1
    # sorted() is stable, so equal totals keep first-seen order
    return sorted(entries.values(), key=lambda entry: -entry.total)


def _date_key(card: CardRecord) -> tuple[str, str]:
    return card.event_date_label, f"{card.event_date_label} - {card.event_name}"


def _team_key(card: CardRecord) -> tuple[str, str]:
    division = card.team_category or "No Division"
    return f"{card.team_id}|{division}", f"{card.team_name} ({division})"


def _reason_key(card: CardRecord) -> tuple[str, str]:
    reason = (card.reason or "").strip() or "Unspecified"
    return reason.lower(), reason


def _referee_key(card: CardRecord) -> tuple[str, str]:
    if not card.referee_id:
        return "unassigned", "Unassigned"
    return card.referee_id, card.referee_name or "Unknown Referee"


def compute_season_stats(cards: list[CardRecord]) -> SeasonStats:
    """Roll cards up by date, team+division, reason and referee."""
    yellow = sum(1 for card in cards if card.card_type == CardType.yellow)
    return SeasonStats(
        total_cards=len(cards),
        yellow_cards=yellow,
        red_cards=len(cards) - yellow,
        by_date=_rollup(cards, _date_key),
        by_team=_rollup(cards, _team_key),
        by_reason=_rollup(cards, _reason_key),
        by_referee=_rollup(cards, _referee_key),
    )


def _count(cards: Iterable[CardData]) -> CardCounts:
    counts = CardCounts()
    for card in cards:
        if card.card_type == CardType.yellow:
            counts.yellow += 1
        else:
            counts.red += 1
    return counts


def count_member_cards(
    events: Iterable[EventData], member_id: str, season_filter: SeasonFilter
) -> CardCounts:
    """Yellow/red totals for one member in the selected season."""
    return _count(
        card
        for event, _ in iter_season_events(events, season_filter)
        for match in event.matches
        for card in match.cards
        if card.member_id == member_id
    )


def count_team_cards(
    events: Iterable[EventData], team: TeamData, season_filter: SeasonFilter
) -> CardCounts:
    """Yellow/red totals for a team's current roster in the selected season."""
    member_ids = {member.id for member in team.members}
    return _count(
        card
        for event, _ in iter_season_events(events, season_filter)
        for match in event.matches
        for card in match.cards
        if card.member_id in member_ids
    )
