"""Live-season event store: events, matches, cards and match attendees.

Everything in these tables belongs to the season that is currently open.
Season close copies cards into ``disciplinary_records`` and then empties them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from league.models.fields import CardType, MatchStatus, TeamType


class Event(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "events"

    id: str = Field(primary_key=True)
    name: str
    date: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True, index=True),
        description="Epoch seconds",
    )
    description: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Match(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "matches"

    id: str = Field(primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    position: int = Field(default=0, description="Order within the event")
    home_team_id: str
    away_team_id: str
    field: Optional[str] = Field(default=None)
    match_time: Optional[int] = Field(
        default=None, sa_column=Column(BigInteger, nullable=True)
    )
    main_referee_id: Optional[str] = Field(default=None)
    assistant_referee_id: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    status: MatchStatus = Field(
        default=MatchStatus.scheduled,
        sa_column=Column(
            SAEnum(MatchStatus, name="match_status_enum"),
            nullable=False,
            default=MatchStatus.scheduled,
        ),
    )


class MatchCard(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "match_cards"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: str = Field(foreign_key="matches.id", index=True)
    member_id: str = Field(index=True)
    member_name: Optional[str] = Field(default=None)
    team_type: TeamType = Field(
        sa_column=Column(SAEnum(TeamType, name="team_type_enum"), nullable=False)
    )
    card_type: CardType = Field(
        sa_column=Column(SAEnum(CardType, name="card_type_enum"), nullable=False)
    )
    minute: Optional[int] = Field(default=None)
    reason: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class MatchAttendee(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "match_attendees"
    __table_args__ = (
        UniqueConstraint("match_id", "member_id", name="uq_match_attendees_member"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: str = Field(foreign_key="matches.id", index=True)
    member_id: str
    team_type: TeamType = Field(
        sa_column=Column(SAEnum(TeamType, name="team_type_enum"), nullable=False)
    )
    checked_in_at: datetime = Field(default_factory=datetime.utcnow)
