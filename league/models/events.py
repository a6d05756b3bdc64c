"""Pydantic models for the nested live event data and roster lookups."""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from league.models.fields import CardType, MatchStatus, TeamType


class CardData(BaseModel):
    id: Optional[int] = None
    member_id: str
    member_name: Optional[str] = None
    team_type: TeamType
    card_type: CardType
    minute: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None


class AttendeeData(BaseModel):
    member_id: str
    name: Optional[str] = None
    checked_in_at: Optional[datetime] = None


class MatchData(BaseModel):
    id: str
    home_team_id: str
    away_team_id: str
    time: Optional[int] = Field(default=None, description="Kick-off, epoch seconds")
    field: Optional[str] = None
    status: MatchStatus = MatchStatus.scheduled
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    main_referee_id: Optional[str] = None
    assistant_referee_id: Optional[str] = None
    notes: Optional[str] = None
    cards: list[CardData] = Field(default_factory=list)
    home_attendees: list[AttendeeData] = Field(default_factory=list)
    away_attendees: list[AttendeeData] = Field(default_factory=list)

    def attendees_for(self, team_type: TeamType) -> list[AttendeeData]:
        if team_type == TeamType.home:
            return self.home_attendees
        return self.away_attendees

    def team_id_for(self, team_type: TeamType) -> str:
        if team_type == TeamType.home:
            return self.home_team_id
        return self.away_team_id


class EventData(BaseModel):
    id: str
    name: str
    # Raw epoch seconds; payloads may carry junk here, checked by the calendar
    date: Optional[Union[int, float, str]] = None
    description: Optional[str] = None
    matches: list[MatchData] = Field(default_factory=list)


class MemberData(BaseModel):
    id: str
    name: str
    jersey_number: Optional[int] = None
    active: bool = True


class TeamData(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    color: Optional[str] = None
    members: list[MemberData] = Field(default_factory=list)

    def find_member(self, member_id: str) -> Optional[MemberData]:
        for member in self.members:
            if member.id == member_id:
                return member
        return None


class RefereeData(BaseModel):
    id: str
    name: str
