"""Pydantic models for permanent disciplinary records."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from league.models.fields import CardType


class DisciplinaryRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: Literal["disciplinary_record"] = "disciplinary_record"
    id: int
    member_id: str
    member_name: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    card_type: CardType
    reason: Optional[str] = None
    notes: Optional[str] = None
    incident_date: Optional[date] = None
    event_description: Optional[str] = None
    suspension_events: Optional[int] = None
    suspension_served: bool
    suspension_served_date: Optional[date] = None
    source_event_id: Optional[str] = None
    source_match_id: Optional[str] = None
    season_label: Optional[str] = None
    created_at: datetime


class MemberDisciplinarySummary(BaseModel):
    member_id: str
    yellow: int
    red: int
    records: list[DisciplinaryRecordRead]
