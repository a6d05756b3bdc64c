"""Roster tables read by the discipline engine."""

from typing import Optional

from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "teams"

    id: str = Field(primary_key=True)
    name: str
    category: Optional[str] = Field(default=None, description="Division, e.g. 'Over 30'")
    color: Optional[str] = Field(default="#2196F3")
    captain_id: Optional[str] = Field(default=None)


class TeamMember(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "team_members"

    id: str = Field(primary_key=True)
    team_id: str = Field(foreign_key="teams.id", index=True)
    name: str
    jersey_number: Optional[int] = Field(default=None)
    active: bool = Field(default=True)


class Referee(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "referees"

    id: str = Field(primary_key=True)
    name: str
    level: Optional[str] = Field(default=None)
