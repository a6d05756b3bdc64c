"""Season value types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

from league.models.fields import SeasonType


@dataclass(frozen=True)
class Season:
    """A competitive half-year. Derived from a date, never stored."""

    type: SeasonType
    year: int
    start_date: datetime
    end_date: datetime

    @property
    def label(self) -> str:
        return f"{self.year}-{self.type.value}"

    @property
    def start_epoch(self) -> float:
        return self.start_date.timestamp()

    @property
    def end_epoch(self) -> float:
        return self.end_date.timestamp()

    def contains(self, epoch: float) -> bool:
        return self.start_epoch <= epoch <= self.end_epoch

    def to_read(self) -> "SeasonRead":
        return SeasonRead(
            type=self.type,
            year=self.year,
            label=self.label,
            start_date=self.start_date,
            end_date=self.end_date,
        )


class SeasonRead(BaseModel):
    type: SeasonType
    year: int
    label: str
    start_date: datetime
    end_date: datetime


class SeasonMembership(BaseModel):
    date: float
    is_current_season: bool
    event_season_label: str
    current_season: SeasonRead
