"""Season classification for league dates.

Two rules live side by side here:

* ``get_current_season`` / ``is_current_season_event`` use the competitive
  windows (Spring Feb 15 - Jun 30, Fall Aug 1 - Dec 31) with an off-season
  fallback: Jan 1 - Feb 14 belongs to the previous Fall, July to the current
  Spring.
* ``classify_event_season`` labels an event by calendar half (Jan-Jun is
  Spring, Jul-Dec is Fall).

They disagree for dates such as Feb 14 or July, and callers rely on each rule
at its own call site.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo

from league.config import settings
from league.models.fields import SeasonType
from league.models.seasons import Season

DateLike = Union[datetime, date, int, float]

# 0002-01-01 through 9998-12-31 UTC; leaves room for any zone offset and
# for the season bounds either side of the date
MIN_EPOCH = -62104060800
MAX_EPOCH = 253370764799

SPRING_START = (2, 15)
SPRING_END = (6, 30)
FALL_START = (8, 1)
FALL_END = (12, 31)


def league_tz() -> ZoneInfo:
    return ZoneInfo(settings.league_timezone)


def coerce_epoch(value: Any) -> Optional[float]:
    """Return ``value`` as epoch seconds, or None when it is not a usable number.

    Accepts ints, floats and numeric strings. Booleans, blanks, NaN,
    out-of-range values and anything else come back as None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        epoch = float(value)
    elif isinstance(value, str):
        try:
            epoch = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(epoch) or not MIN_EPOCH <= epoch <= MAX_EPOCH:
        return None
    return epoch


def _to_local(value: Optional[DateLike]) -> datetime:
    tz = league_tz()
    if value is None:
        return datetime.now(tz)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=tz)
        return value.astimezone(tz)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz)
    return datetime.fromtimestamp(float(value), tz)


def _day_start(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=league_tz())


def _day_end(year: int, month: int, day: int) -> datetime:
    # Last second of the day, so the closing day counts as in-season
    next_day = date(year, month, day) + timedelta(days=1)
    return datetime.combine(next_day, time.min, tzinfo=league_tz()) - timedelta(seconds=1)


def _spring(year: int) -> Season:
    return Season(
        type=SeasonType.spring,
        year=year,
        start_date=_day_start(year, *SPRING_START),
        end_date=_day_end(year, *SPRING_END),
    )


def _fall(year: int) -> Season:
    return Season(
        type=SeasonType.fall,
        year=year,
        start_date=_day_start(year, *FALL_START),
        end_date=_day_end(year, *FALL_END),
    )


def get_current_season(reference_date: Optional[DateLike] = None) -> Season:
    """Return the competitive season that ``reference_date`` (default: now) falls in."""
    local = _to_local(reference_date)
    month, day = local.month, local.day

    if (month, day) >= SPRING_START and (month, day) <= SPRING_END:
        return _spring(local.year)
    if month >= FALL_START[0]:
        return _fall(local.year)
    if month == 7:
        return _spring(local.year)
    # Jan 1 - Feb 14 still belongs to last year's Fall
    return _fall(local.year - 1)


def classify_event_season(event_date: DateLike) -> str:
    """Label an event date by calendar half, e.g. ``"2025-Spring"``."""
    local = _to_local(event_date)
    half = SeasonType.spring if local.month <= 6 else SeasonType.fall
    return f"{local.year}-{half.value}"


def is_current_season_event(
    event_date: Any, reference_date: Optional[DateLike] = None
) -> bool:
    """True when ``event_date`` (epoch seconds) lies inside the current season window."""
    epoch = coerce_epoch(event_date)
    if epoch is None:
        return False
    return get_current_season(reference_date).contains(epoch)
