"""
Contains enums shared by the tables and API models.
"""
from enum import Enum


class CardType(str, Enum):
    yellow = "yellow"
    red = "red"


class TeamType(str, Enum):
    home = "home"
    away = "away"


class MatchStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class SeasonType(str, Enum):
    spring = "Spring"
    fall = "Fall"


class TriggerType(str, Enum):
    red = "red"
    yellow_accumulation = "yellow_accumulation"

    @property
    def label(self) -> str:
        return {
            "red": "red card",
            "yellow_accumulation": "yellow card accumulation",
        }[self.value]


class SuspensionState(str, Enum):
    active = "active"
    served = "served"


class TriggerStatus(str, Enum):
    """Where a suspendable trigger stands relative to its suspension."""

    pending = "pending"
    active = "active"
    served = "served"


class CloseStep(str, Enum):
    collect = "collect"
    transform = "transform"
    persist_records = "persist_records"
    archive = "archive"
    clear_live = "clear_live"
    complete = "complete"


class CloseRunStatus(str, Enum):
    running = "running"
    failed = "failed"
    completed = "completed"


class CheckInState(str, Enum):
    tentative = "tentative"
    confirmed = "confirmed"
    reverted = "reverted"
    rejected = "rejected"
