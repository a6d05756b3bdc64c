"""Season snapshots and the bookkeeping row for each season close."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from league.models.fields import CloseRunStatus, CloseStep

JSONType = JSON().with_variant(JSONB(), "postgresql")


class SeasonArchive(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "season_archives"

    id: Optional[int] = Field(default=None, primary_key=True)
    season_label: str = Field(index=True, description="Season label like '2025-Fall'")
    season_type: str
    year: int
    snapshot: dict[str, Any] = Field(
        sa_column=Column(JSONType, nullable=False),
        description="{season, events, archivedAt}",
    )
    archived_at: datetime = Field(default_factory=datetime.utcnow)


class SeasonCloseRun(SQLModel, table=True):  # type: ignore[call-arg]
    """One attempt at closing a season.

    ``records_persisted_at`` / ``records_persisted`` are the witness the event
    store checks before it agrees to clear live data.
    """

    __tablename__ = "season_close_runs"

    id: Optional[int] = Field(default=None, primary_key=True)
    season_label: str = Field(index=True)
    status: CloseRunStatus = Field(
        default=CloseRunStatus.running,
        sa_column=Column(
            SAEnum(CloseRunStatus, name="close_run_status_enum"), nullable=False
        ),
    )
    current_step: CloseStep = Field(
        default=CloseStep.collect,
        sa_column=Column(SAEnum(CloseStep, name="close_step_enum"), nullable=False),
    )
    cards_collected: int = Field(default=0)
    records_persisted: int = Field(default=0)
    records_persisted_at: Optional[datetime] = Field(default=None)
    archive_id: Optional[int] = Field(default=None, foreign_key="season_archives.id")
    live_cleared_at: Optional[datetime] = Field(default=None)
    error: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = Field(default=None)
