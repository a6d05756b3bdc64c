"""Card aggregation output models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from league.models.fields import CardType, TeamType


class CardRecord(BaseModel):
    """A live card enriched with roster, event, match and referee context."""

    kind: Literal["card"] = "card"
    card_id: Optional[int] = None
    card_ref: str = Field(description="Stable card key: {match_id}:{card id} or {match_id}:#{index}")
    member_id: str
    member_name: str
    team_id: str
    team_name: str
    team_category: Optional[str] = None
    team_color: Optional[str] = None
    team_type: TeamType
    card_type: CardType
    minute: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    event_id: str
    event_name: str
    event_date: float
    event_date_label: str
    event_description: Optional[str] = None
    season_label: str
    match_id: str
    match_field: Optional[str] = None
    match_time: Optional[int] = None
    home_team_name: str
    away_team_name: str
    referee_id: Optional[str] = None
    referee_name: Optional[str] = None


class CardRollupEntry(BaseModel):
    key: str
    label: str
    yellow: int = 0
    red: int = 0
    total: int = 0


class SeasonStats(BaseModel):
    total_cards: int
    yellow_cards: int
    red_cards: int
    by_date: list[CardRollupEntry] = Field(default_factory=list)
    by_team: list[CardRollupEntry] = Field(default_factory=list)
    by_reason: list[CardRollupEntry] = Field(default_factory=list)
    by_referee: list[CardRollupEntry] = Field(default_factory=list)


class CardCounts(BaseModel):
    yellow: int = 0
    red: int = 0

    @property
    def total(self) -> int:
        return self.yellow + self.red
