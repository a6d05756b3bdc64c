"""Shared helpers for the league API routes."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from league.services.errors import (
    DuplicateSuspensionError,
    LeagueError,
    MatchNotFoundError,
    SeasonCloseBlockedError,
    SeasonCloseError,
    SeasonCloseInProgressError,
    SuspensionNotFoundError,
    SuspensionValidationError,
)
from league.services.league_context import LeagueContext
from league.services.suspension_cache import SuspensionCache
from league.utils.db_async import get_session


def get_suspension_cache(request: Request) -> SuspensionCache:
    """The process-wide suspension cache kept on ``app.state``."""
    cache = getattr(request.app.state, "suspension_cache", None)
    if cache is None:
        cache = request.app.state.suspension_cache = SuspensionCache()
    return cache


async def get_league_context(
    db: AsyncSession = Depends(get_session),
    cache: SuspensionCache = Depends(get_suspension_cache),
) -> LeagueContext:
    """One context per request, reading through the shared suspension cache."""
    return LeagueContext.from_session(db, cache)


_STATUS_BY_ERROR: list[tuple[type[LeagueError], int]] = [
    (SuspensionValidationError, 422),
    (SuspensionNotFoundError, 404),
    (MatchNotFoundError, 404),
    (DuplicateSuspensionError, 409),
    (SeasonCloseBlockedError, 409),
    (SeasonCloseInProgressError, 409),
    (SeasonCloseError, 500),
]


def to_http_error(exc: LeagueError) -> HTTPException:
    """Translate a domain error into the HTTPException the route should raise."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            detail: object = str(exc)
            if isinstance(exc, SeasonCloseError):
                detail = {
                    "message": str(exc),
                    "step": exc.step.value,
                    "run_id": exc.run_id,
                    "error": repr(exc.cause),
                }
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=500, detail=str(exc))
