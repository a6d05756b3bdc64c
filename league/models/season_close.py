"""Season close (migration) request/response models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from league.models.fields import CloseRunStatus, CloseStep
from league.models.seasons import SeasonRead


class MigrationPreview(BaseModel):
    season: SeasonRead
    event_count: int
    card_count: int
    yellow_cards: int
    red_cards: int
    active_suspensions: int
    can_close: bool
    blocking_reason: Optional[str] = None


class CloseProgress(BaseModel):
    step: CloseStep
    message: str
    completed: int = 0
    total: int = 0


class SeasonCloseRunRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    season_label: str
    status: CloseRunStatus
    current_step: CloseStep
    cards_collected: int
    records_persisted: int
    records_persisted_at: Optional[datetime] = None
    archive_id: Optional[int] = None
    live_cleared_at: Optional[datetime] = None
    error: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None


class SeasonCloseResult(BaseModel):
    run: SeasonCloseRunRead
    records_created: int
    archive_id: Optional[int] = None
    progress: list[CloseProgress] = Field(default_factory=list)


class SeasonArchiveSummary(BaseModel):
    """An archived season without its event snapshot."""

    id: int
    season_label: str
    season_type: str
    year: int
    event_count: int
    archived_at: datetime
