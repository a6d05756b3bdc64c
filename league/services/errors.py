"""Domain errors raised by the discipline and season services."""

from __future__ import annotations

from typing import Optional

from league.models.fields import CloseStep


class LeagueError(Exception):
    """Base class for errors the routes translate into HTTP responses."""


class SuspensionValidationError(LeagueError, ValueError):
    """User-correctable input problem (bad length, nothing selected)."""


class SuspensionNotFoundError(LeagueError, LookupError):
    pass


class DuplicateSuspensionError(LeagueError):
    def __init__(self, member_id: str, source_ref: str):
        super().__init__(
            f"Member {member_id} already has an active suspension for {source_ref}"
        )
        self.member_id = member_id
        self.source_ref = source_ref


class MatchNotFoundError(LeagueError, LookupError):
    pass


class SeasonCloseBlockedError(LeagueError):
    """Season close refused because suspensions are still active."""

    def __init__(self, active_count: int):
        super().__init__(
            f"{active_count} active suspension(s) must be served before the season can close"
        )
        self.active_count = active_count


class SeasonCloseInProgressError(LeagueError):
    pass


class LiveStoreClearRefusedError(LeagueError):
    """The live event store was asked to clear without persisted records."""


class SeasonCloseError(LeagueError):
    """A season close step failed; earlier committed steps are left in place."""

    def __init__(self, step: CloseStep, cause: BaseException, run_id: Optional[int] = None):
        super().__init__(f"Season close failed at step '{step.value}': {cause}")
        self.step = step
        self.cause = cause
        self.run_id = run_id
