"""Suspensions assigned to roster members."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Column, Index, text
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from league.models.fields import SuspensionState, TriggerType


class Suspension(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "suspensions"
    __table_args__ = (
        # One active suspension per (member, triggering source)
        Index(
            "uq_suspensions_active_source",
            "member_id",
            "source_ref",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        CheckConstraint("events_remaining >= 0", name="ck_suspensions_remaining_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    member_id: str = Field(index=True)
    trigger_type: TriggerType = Field(
        sa_column=Column(SAEnum(TriggerType, name="trigger_type_enum"), nullable=False)
    )
    source_ref: str = Field(description="Stable key of the triggering card(s)")
    suspension_events: int = Field(ge=1)
    events_remaining: int = Field(ge=0)
    status: SuspensionState = Field(
        default=SuspensionState.active,
        sa_column=Column(
            SAEnum(SuspensionState, name="suspension_state_enum"),
            nullable=False,
            index=True,
        ),
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    served_at: Optional[datetime] = Field(default=None)
