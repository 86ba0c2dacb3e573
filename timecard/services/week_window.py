"""
Business-local week arithmetic.

Weeks start on Sunday in the business's own calendar. The forward horizon
bounds how far ahead schedules may be built; past weeks stay addressable so
hours for them can still be confirmed and approved.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timecard.core.config import get_settings
from timecard.core.errors import InvalidInputError

logger = logging.getLogger(__name__)


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("timezone.fallback_to_utc", extra={"timezone": name})
        return timezone.utc


def week_start(d: date) -> date:
    """Sunday on or before d."""
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_starts_between(start: date, end: date) -> list[date]:
    weeks = []
    current = week_start(start)
    while current <= end:
        weeks.append(current)
        current += timedelta(days=7)
    return weeks


class WeekWindow:
    def __init__(
        self,
        timezone_name: Optional[str],
        *,
        now: Optional[datetime] = None,
        horizon_weeks: Optional[int] = None,
        past_weeks: Optional[int] = None,
    ):
        settings = get_settings()
        self.tz = resolve_timezone(timezone_name)
        self.horizon_weeks = settings.schedule_window_weeks if horizon_weeks is None else int(horizon_weeks)
        self.past_weeks = settings.editable_past_weeks if past_weeks is None else int(past_weeks)

        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        self.today = now.astimezone(self.tz).date()

    @property
    def current_week_start(self) -> date:
        return week_start(self.today)

    @property
    def window_end(self) -> date:
        """First week start beyond the forward horizon (exclusive)."""
        return self.current_week_start + timedelta(weeks=self.horizon_weeks)

    @property
    def window_start(self) -> date:
        return self.current_week_start - timedelta(weeks=self.past_weeks)

    def is_editable(self, start: date) -> bool:
        return self.window_start <= start < self.window_end

    def is_in_past(self, start: date) -> bool:
        return start < self.current_week_start

    def is_addressable(self, start: date) -> bool:
        return start < self.window_end

    def can_navigate_to_next(self, start: date) -> bool:
        return self.is_addressable(start + timedelta(days=7))

    @staticmethod
    def ensure_week_start(start: date) -> date:
        if week_start(start) != start:
            raise InvalidInputError(
                "week_start must be a Sunday",
                field="week_start",
                actual=start.isoformat(),
            )
        return start

    def ensure_addressable(self, start: date) -> date:
        self.ensure_week_start(start)
        if not self.is_addressable(start):
            raise InvalidInputError(
                f"week_start is beyond the {self.horizon_weeks}-week scheduling horizon",
                field="week_start",
                expected=f"< {self.window_end.isoformat()}",
                actual=start.isoformat(),
            )
        return start

    def ensure_editable(self, start: date) -> date:
        self.ensure_week_start(start)
        if not self.is_editable(start):
            raise InvalidInputError(
                "week_start is outside the editable scheduling window",
                field="week_start",
                expected=f"{self.window_start.isoformat()} .. {(self.window_end - timedelta(days=1)).isoformat()}",
                actual=start.isoformat(),
            )
        return start

    def describe(self, start: date) -> dict:
        return {
            "week_start": start.isoformat(),
            "current_week_start": self.current_week_start.isoformat(),
            "is_current_week": start == self.current_week_start,
            "is_past": self.is_in_past(start),
            "is_editable": self.is_editable(start),
            "can_go_next": self.can_navigate_to_next(start),
        }
