"""Per-request bundle of stores the discipline services work against."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from league.services.stores import (
    DisciplinaryStore,
    EventStore,
    RefereeStore,
    SeasonArchiveStore,
    SeasonCloseRunStore,
    SuspensionStore,
    TeamStore,
)
from league.services.suspension_cache import SuspensionCache


@dataclass
class LeagueContext:
    events: EventStore
    teams: TeamStore
    referees: RefereeStore
    disciplinary: DisciplinaryStore
    suspensions: SuspensionStore
    archives: SeasonArchiveStore
    close_runs: SeasonCloseRunStore
    suspension_cache: SuspensionCache

    @classmethod
    def from_session(
        cls, db: AsyncSession, suspension_cache: Optional[SuspensionCache] = None
    ) -> "LeagueContext":
        """Stores over ``db``; a shared ``suspension_cache`` keeps its entries."""
        suspensions = SuspensionStore(db)
        if suspension_cache is None:
            suspension_cache = SuspensionCache(suspensions)
        else:
            suspension_cache = suspension_cache.bind(suspensions)
        return cls(
            events=EventStore(db),
            teams=TeamStore(db),
            referees=RefereeStore(db),
            disciplinary=DisciplinaryStore(db),
            suspensions=suspensions,
            archives=SeasonArchiveStore(db),
            close_runs=SeasonCloseRunStore(db),
            suspension_cache=suspension_cache,
        )
