import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    schedule_window_weeks: int
    editable_past_weeks: int
    hours_discrepancy_tolerance: Decimal
    overtime_threshold_hours: Decimal
    minimum_hourly_wage: Decimal


def get_settings() -> Settings:
    """Read settings from the environment on every call so tests can monkeypatch."""
    return Settings(
        env=os.getenv("ENV", "dev").lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        schedule_window_weeks=int(os.getenv("SCHEDULE_WINDOW_WEEKS", "4")),
        editable_past_weeks=int(os.getenv("EDITABLE_PAST_WEEKS", "0")),
        hours_discrepancy_tolerance=Decimal(os.getenv("HOURS_DISCREPANCY_TOLERANCE", "0.25")),
        overtime_threshold_hours=Decimal(os.getenv("OVERTIME_THRESHOLD_HOURS", "40")),
        minimum_hourly_wage=Decimal(os.getenv("MINIMUM_HOURLY_WAGE", "7.25")),
    )
