"""Store interfaces the discipline engine reads from and writes to.

Each store wraps one AsyncSession and opens its own ``db.begin()`` block per
call, so a store method is a single transaction. Callers must not hold an
open transaction on the same session when calling in.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from league.models.events import (
    AttendeeData,
    CardData,
    EventData,
    MatchData,
    MemberData,
    RefereeData,
    TeamData,
)
from league.models.fields import CloseRunStatus, CloseStep, SuspensionState, TeamType, TriggerType
from league.models.seasons import Season
from league.models.suspensions import SuspensionRead
from league.schemas.disciplinary_records import DisciplinaryRecord
from league.schemas.events import Event, Match, MatchAttendee, MatchCard
from league.schemas.season_archives import SeasonArchive, SeasonCloseRun
from league.schemas.suspensions import Suspension
from league.schemas.teams import Referee, Team, TeamMember
from league.services.errors import (
    DuplicateSuspensionError,
    LiveStoreClearRefusedError,
    SuspensionNotFoundError,
)
from league.services.season_calendar import coerce_epoch

logger = logging.getLogger(__name__)


class EventStore:
    """Live-season events with their matches, cards and attendees."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_events(self) -> list[EventData]:
        async with self.db.begin():
            events = (
                await self.db.execute(select(Event).order_by(Event.date, Event.id))  # type: ignore[arg-type]
            ).scalars().all()
            matches = (
                await self.db.execute(
                    select(Match).order_by(Match.event_id, Match.position, Match.id)  # type: ignore[arg-type]
                )
            ).scalars().all()
            cards = (
                await self.db.execute(
                    select(MatchCard).order_by(MatchCard.match_id, MatchCard.id)  # type: ignore[arg-type]
                )
            ).scalars().all()
            attendee_rows = (
                await self.db.execute(
                    select(MatchAttendee, TeamMember.name)  # type: ignore[call-overload]
                    .outerjoin(TeamMember, TeamMember.id == MatchAttendee.member_id)
                    .order_by(MatchAttendee.id)
                )
            ).all()

        cards_by_match: dict[str, list[CardData]] = defaultdict(list)
        for card in cards:
            cards_by_match[card.match_id].append(
                CardData(
                    id=card.id,
                    member_id=card.member_id,
                    member_name=card.member_name,
                    team_type=card.team_type,
                    card_type=card.card_type,
                    minute=card.minute,
                    reason=card.reason,
                    notes=card.notes,
                )
            )

        attendees_by_match: dict[tuple[str, TeamType], list[AttendeeData]] = defaultdict(list)
        for attendee, member_name in attendee_rows:
            attendees_by_match[(attendee.match_id, attendee.team_type)].append(
                AttendeeData(
                    member_id=attendee.member_id,
                    name=member_name,
                    checked_in_at=attendee.checked_in_at,
                )
            )

        matches_by_event: dict[str, list[MatchData]] = defaultdict(list)
        for match in matches:
            matches_by_event[match.event_id].append(
                MatchData(
                    id=match.id,
                    home_team_id=match.home_team_id,
                    away_team_id=match.away_team_id,
                    time=match.match_time,
                    field=match.field,
                    status=match.status,
                    home_score=match.home_score,
                    away_score=match.away_score,
                    main_referee_id=match.main_referee_id,
                    assistant_referee_id=match.assistant_referee_id,
                    notes=match.notes,
                    cards=cards_by_match.get(match.id, []),
                    home_attendees=attendees_by_match.get((match.id, TeamType.home), []),
                    away_attendees=attendees_by_match.get((match.id, TeamType.away), []),
                )
            )

        return [
            EventData(
                id=event.id,
                name=event.name,
                date=event.date,
                description=event.description,
                matches=matches_by_event.get(event.id, []),
            )
            for event in events
        ]

    async def _delete_live(self) -> None:
        await self.db.execute(delete(MatchAttendee))
        await self.db.execute(delete(MatchCard))
        await self.db.execute(delete(Match))
        await self.db.execute(delete(Event))

    async def replace_events(self, events: Sequence[EventData]) -> None:
        """Overwrite the live store with ``events``."""
        async with self.db.begin():
            await self._delete_live()
            for event in events:
                epoch = coerce_epoch(event.date)
                if epoch is None:
                    logger.warning("Storing event %s without a usable date (%r)", event.id, event.date)
                self.db.add(
                    Event(
                        id=event.id,
                        name=event.name,
                        date=int(epoch) if epoch is not None else None,
                        description=event.description,
                    )
                )
                for position, match in enumerate(event.matches):
                    self.db.add(
                        Match(
                            id=match.id,
                            event_id=event.id,
                            position=position,
                            home_team_id=match.home_team_id,
                            away_team_id=match.away_team_id,
                            field=match.field,
                            match_time=match.time,
                            main_referee_id=match.main_referee_id,
                            assistant_referee_id=match.assistant_referee_id,
                            notes=match.notes,
                            home_score=match.home_score,
                            away_score=match.away_score,
                            status=match.status,
                        )
                    )
                    for card in match.cards:
                        self.db.add(
                            MatchCard(
                                id=card.id,
                                match_id=match.id,
                                member_id=card.member_id,
                                member_name=card.member_name,
                                team_type=card.team_type,
                                card_type=card.card_type,
                                minute=card.minute,
                                reason=card.reason,
                                notes=card.notes,
                            )
                        )
                    for team_type in (TeamType.home, TeamType.away):
                        for attendee in match.attendees_for(team_type):
                            self.db.add(
                                MatchAttendee(
                                    match_id=match.id,
                                    member_id=attendee.member_id,
                                    team_type=team_type,
                                    checked_in_at=attendee.checked_in_at or datetime.utcnow(),
                                )
                            )

    async def clear_live_events(self, run_id: int) -> None:
        """Empty the live store for a season close run.

        Refuses unless the run has recorded that every collected card was
        persisted as a disciplinary record.
        """
        async with self.db.begin():
            run = await self.db.get(SeasonCloseRun, run_id, populate_existing=True)
            if run is None:
                raise LiveStoreClearRefusedError(f"Season close run {run_id} not found")
            if run.records_persisted_at is None:
                raise LiveStoreClearRefusedError(
                    f"Season close run {run_id} has not persisted its disciplinary records"
                )
            if run.records_persisted != run.cards_collected:
                raise LiveStoreClearRefusedError(
                    f"Season close run {run_id} persisted {run.records_persisted} records"
                    f" for {run.cards_collected} cards"
                )
            await self._delete_live()
            run.live_cleared_at = datetime.utcnow()

    async def get_match(self, match_id: str) -> Optional[Match]:
        async with self.db.begin():
            return await self.db.get(Match, match_id)

    async def add_attendee(
        self, match_id: str, member_id: str, team_type: TeamType
    ) -> tuple[MatchAttendee, bool]:
        """Record a check-in. Returns the row and whether it was newly inserted."""
        async with self.db.begin():
            result = await self.db.execute(
                select(MatchAttendee).where(
                    MatchAttendee.match_id == match_id,  # type: ignore[arg-type]
                    MatchAttendee.member_id == member_id,  # type: ignore[arg-type]
                )
            )
            attendee = result.scalar_one_or_none()
            if attendee is None:
                attendee = MatchAttendee(
                    match_id=match_id, member_id=member_id, team_type=team_type
                )
                self.db.add(attendee)
                return attendee, True
        return attendee, False

    async def remove_attendee(self, match_id: str, member_id: str) -> bool:
        async with self.db.begin():
            result = await self.db.execute(
                delete(MatchAttendee).where(
                    MatchAttendee.match_id == match_id,  # type: ignore[arg-type]
                    MatchAttendee.member_id == member_id,  # type: ignore[arg-type]
                )
            )
        return bool(result.rowcount)

    async def list_attendee_ids(self, match_id: str) -> list[str]:
        async with self.db.begin():
            result = await self.db.execute(
                select(MatchAttendee.member_id)  # type: ignore[call-overload]
                .where(MatchAttendee.match_id == match_id)
                .order_by(MatchAttendee.id)
            )
            return list(result.scalars().all())


class TeamStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_teams(self) -> list[TeamData]:
        async with self.db.begin():
            teams = (
                await self.db.execute(select(Team).order_by(Team.name, Team.id))  # type: ignore[arg-type]
            ).scalars().all()
            members = (
                await self.db.execute(
                    select(TeamMember).order_by(TeamMember.team_id, TeamMember.name, TeamMember.id)  # type: ignore[arg-type]
                )
            ).scalars().all()

        members_by_team: dict[str, list[MemberData]] = defaultdict(list)
        for member in members:
            members_by_team[member.team_id].append(
                MemberData(
                    id=member.id,
                    name=member.name,
                    jersey_number=member.jersey_number,
                    active=member.active,
                )
            )
        return [
            TeamData(
                id=team.id,
                name=team.name,
                category=team.category,
                color=team.color,
                members=members_by_team.get(team.id, []),
            )
            for team in teams
        ]


class RefereeStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_referees(self) -> list[RefereeData]:
        async with self.db.begin():
            result = await self.db.execute(select(Referee).order_by(Referee.name))  # type: ignore[arg-type]
            return [RefereeData(id=ref.id, name=ref.name) for ref in result.scalars().all()]


class DisciplinaryStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_batch(
        self,
        records: Sequence[DisciplinaryRecord],
        *,
        close_run_id: Optional[int] = None,
    ) -> int:
        """Insert ``records`` in one transaction.

        With ``close_run_id`` the same transaction stamps the run's
        persisted-records witness, so the witness exists only if the records do.
        """
        async with self.db.begin():
            self.db.add_all(list(records))
            await self.db.flush()
            if close_run_id is not None:
                run = await self.db.get(SeasonCloseRun, close_run_id, populate_existing=True)
                if run is None:
                    raise LookupError(f"Season close run {close_run_id} not found")
                run.records_persisted = len(records)
                run.records_persisted_at = datetime.utcnow()
        return len(records)

    async def list_for_member(self, member_id: str) -> list[DisciplinaryRecord]:
        return await self._list(DisciplinaryRecord.member_id == member_id)  # type: ignore[arg-type]

    async def list_for_team(self, team_id: str) -> list[DisciplinaryRecord]:
        # Records stamped with another team still count for members now on this roster
        member_ids = select(TeamMember.id).where(TeamMember.team_id == team_id)  # type: ignore[call-overload]
        return await self._list(
            (DisciplinaryRecord.team_id == team_id)  # type: ignore[arg-type]
            | DisciplinaryRecord.member_id.in_(member_ids)  # type: ignore[attr-defined]
        )

    async def _list(self, condition) -> list[DisciplinaryRecord]:
        async with self.db.begin():
            result = await self.db.execute(
                select(DisciplinaryRecord)
                .where(condition)
                .order_by(
                    DisciplinaryRecord.incident_date.desc(),  # type: ignore[union-attr]
                    DisciplinaryRecord.created_at.desc(),  # type: ignore[attr-defined]
                    DisciplinaryRecord.id.desc(),  # type: ignore[union-attr]
                )
            )
            return list(result.scalars().all())


class SuspensionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(
        self, member_ids: Optional[Iterable[str]] = None
    ) -> list[SuspensionRead]:
        stmt = select(Suspension).where(
            Suspension.status == SuspensionState.active  # type: ignore[arg-type]
        )
        if member_ids is not None:
            ids = list(member_ids)
            if not ids:
                return []
            stmt = stmt.where(Suspension.member_id.in_(ids))  # type: ignore[attr-defined]
        async with self.db.begin():
            result = await self.db.execute(stmt.order_by(Suspension.id))  # type: ignore[arg-type]
            return [SuspensionRead.model_validate(row) for row in result.scalars().all()]

    async def list_all(self) -> list[SuspensionRead]:
        async with self.db.begin():
            result = await self.db.execute(select(Suspension).order_by(Suspension.id))  # type: ignore[arg-type]
            return [SuspensionRead.model_validate(row) for row in result.scalars().all()]

    async def count_active(self) -> int:
        async with self.db.begin():
            result = await self.db.execute(
                select(func.count(Suspension.id)).where(  # type: ignore[arg-type]
                    Suspension.status == SuspensionState.active  # type: ignore[arg-type]
                )
            )
            return int(result.scalar() or 0)

    async def create(
        self,
        *,
        member_id: str,
        trigger_type: TriggerType,
        source_ref: str,
        suspension_events: int,
    ) -> SuspensionRead:
        try:
            async with self.db.begin():
                existing = await self.db.execute(
                    select(Suspension.id).where(  # type: ignore[call-overload]
                        Suspension.member_id == member_id,
                        Suspension.source_ref == source_ref,
                        Suspension.status == SuspensionState.active,
                    )
                )
                if existing.first() is not None:
                    raise DuplicateSuspensionError(member_id, source_ref)
                row = Suspension(
                    member_id=member_id,
                    trigger_type=trigger_type,
                    source_ref=source_ref,
                    suspension_events=suspension_events,
                    events_remaining=suspension_events,
                    status=SuspensionState.active,
                )
                self.db.add(row)
                await self.db.flush()
                return SuspensionRead.model_validate(row)
        except IntegrityError as exc:
            # Lost a race with another admin on the partial unique index
            raise DuplicateSuspensionError(member_id, source_ref) from exc

    async def mark_served(self, suspension_id: int) -> SuspensionRead:
        async with self.db.begin():
            row = await self.db.get(Suspension, suspension_id, populate_existing=True)
            if row is None:
                raise SuspensionNotFoundError(f"Suspension {suspension_id} not found")
            if row.status == SuspensionState.active:
                row.status = SuspensionState.served
                row.events_remaining = 0
                row.served_at = datetime.utcnow()
            return SuspensionRead.model_validate(row)

    async def decrement_for_member(self, member_id: str) -> list[SuspensionRead]:
        """Count one served event against each active suspension of the member."""
        async with self.db.begin():
            result = await self.db.execute(
                select(Suspension)
                .where(
                    Suspension.member_id == member_id,  # type: ignore[arg-type]
                    Suspension.status == SuspensionState.active,  # type: ignore[arg-type]
                )
                .order_by(Suspension.id)  # type: ignore[arg-type]
            )
            rows = list(result.scalars().all())
            for row in rows:
                row.events_remaining = max(0, row.events_remaining - 1)
                if row.events_remaining == 0:
                    row.status = SuspensionState.served
                    row.served_at = datetime.utcnow()
            return [SuspensionRead.model_validate(row) for row in rows]


class SeasonArchiveStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_snapshot(
        self, season: Season, events: Sequence[EventData]
    ) -> SeasonArchive:
        archived_at = datetime.utcnow()
        snapshot = {
            "season": season.to_read().model_dump(mode="json"),
            "events": [event.model_dump(mode="json") for event in events],
            "archivedAt": archived_at.isoformat(),
        }
        archive = SeasonArchive(
            season_label=season.label,
            season_type=season.type.value,
            year=season.year,
            snapshot=snapshot,
            archived_at=archived_at,
        )
        async with self.db.begin():
            self.db.add(archive)
        return archive

    async def list_archives(self) -> list[SeasonArchive]:
        async with self.db.begin():
            result = await self.db.execute(
                select(SeasonArchive).order_by(SeasonArchive.archived_at.desc())  # type: ignore[attr-defined]
            )
            return list(result.scalars().all())


class SeasonCloseRunStore:
    """Bookkeeping rows for season close attempts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def start(self, season_label: str) -> SeasonCloseRun:
        run = SeasonCloseRun(season_label=season_label)
        async with self.db.begin():
            self.db.add(run)
        return run

    async def advance(self, run_id: int, step: CloseStep, **values) -> SeasonCloseRun:
        async with self.db.begin():
            run = await self.db.get(SeasonCloseRun, run_id, populate_existing=True)
            if run is None:
                raise LookupError(f"Season close run {run_id} not found")
            run.current_step = step
            for key, value in values.items():
                setattr(run, key, value)
            if step == CloseStep.complete:
                run.status = CloseRunStatus.completed
                run.finished_at = datetime.utcnow()
        return run

    async def fail(self, run_id: int, step: CloseStep, error: str) -> Optional[SeasonCloseRun]:
        async with self.db.begin():
            run = await self.db.get(SeasonCloseRun, run_id, populate_existing=True)
            if run is None:
                return None
            run.current_step = step
            run.status = CloseRunStatus.failed
            run.error = error
            run.finished_at = datetime.utcnow()
        return run

    async def get(self, run_id: int) -> Optional[SeasonCloseRun]:
        async with self.db.begin():
            return await self.db.get(SeasonCloseRun, run_id, populate_existing=True)
