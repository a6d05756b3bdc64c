"""Match-day check-in request/response models."""

from typing import Optional

from pydantic import BaseModel, Field

from league.models.fields import CheckInState, TeamType, TriggerType


class CheckInRequest(BaseModel):
    member_id: str
    team_type: TeamType


class CheckInResult(BaseModel):
    match_id: str
    member_id: str
    team_type: TeamType
    state: CheckInState
    present: bool
    events_remaining: int = 0
    trigger_types: list[TriggerType] = Field(default_factory=list)
    message: Optional[str] = None
