"""Permanent disciplinary history, independent of any season's live data."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Column, Index
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from league.models.fields import CardType


class DisciplinaryRecord(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "disciplinary_records"
    __table_args__ = (
        Index("ix_disciplinary_records_member_date", "member_id", "incident_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    member_id: str = Field(index=True)
    member_name: Optional[str] = Field(default=None)
    team_id: Optional[str] = Field(default=None, index=True)
    team_name: Optional[str] = Field(default=None)
    card_type: CardType = Field(
        sa_column=Column(SAEnum(CardType, name="card_type_enum"), nullable=False)
    )
    reason: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    incident_date: Optional[date] = Field(default=None)
    event_description: Optional[str] = Field(default=None)
    suspension_events: Optional[int] = Field(default=None)
    suspension_served: bool = Field(default=False)
    suspension_served_date: Optional[date] = Field(default=None)

    # Provenance of the live card this record was migrated from
    source_event_id: Optional[str] = Field(default=None)
    source_match_id: Optional[str] = Field(default=None)
    season_label: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
