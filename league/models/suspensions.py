"""Suspension triggers, statuses and request/response models."""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from league.models.fields import SuspensionState, TriggerStatus, TriggerType


class RedCardTrigger(BaseModel):
    trigger_type: Literal["red"] = "red"
    member_id: str
    member_name: str
    team_id: str
    team_name: str
    source_ref: str
    event_id: str
    event_name: str
    event_date: float
    match_id: str
    reason: Optional[str] = None


class YellowAccumulationTrigger(BaseModel):
    """Synthetic red-card equivalent for every full block of yellows in a season."""

    trigger_type: Literal["yellow_accumulation"] = "yellow_accumulation"
    member_id: str
    member_name: str
    team_id: str
    team_name: str
    source_ref: str
    season_label: str
    yellow_count: int
    total_yellow_count: int
    card_refs: list[str] = Field(default_factory=list)
    event_date: float


SuspensionTrigger = Annotated[
    Union[RedCardTrigger, YellowAccumulationTrigger],
    Field(discriminator="trigger_type"),
]


class SuspensionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: str
    trigger_type: TriggerType
    source_ref: str
    suspension_events: int
    events_remaining: int
    status: SuspensionState
    created_at: datetime
    served_at: Optional[datetime] = None


class PendingSuspendable(BaseModel):
    trigger: SuspensionTrigger
    suspension: Optional[SuspensionRead] = None
    status: TriggerStatus


class MemberSuspensionStatus(BaseModel):
    member_id: str
    is_suspended: bool
    total_events_remaining: int
    suspensions: list[SuspensionRead] = Field(default_factory=list)


class ApplySuspensionRequest(BaseModel):
    member_id: str
    trigger: Optional[SuspensionTrigger] = None
    events_count: Optional[int] = None
