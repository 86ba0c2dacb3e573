from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from timecard.core.errors import InvalidInputError
from timecard.models.confirmed_hours import DAY_FIELDS

HOURS_INCREMENT = Decimal("0.25")
MAX_DAY_HOURS = Decimal("24")
_CENTS = Decimal("0.01")


def quantize(value: Any) -> Decimal:
    """Round to 2 decimals, half-up, the precision hours and money are stored at."""
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, *, field: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number", field=field, actual=value)
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(f"{field} must be a number", field=field, actual=str(value)) from exc
    if not result.is_finite():
        raise InvalidInputError(f"{field} must be a finite number", field=field, actual=str(value))
    return result


def round_to_increment(value: Any) -> Decimal:
    """Nearest 0.25 hour, half-up. 7.17 becomes 7.25; 7.12 becomes 7.00."""
    steps = (Decimal(str(value)) / HOURS_INCREMENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return quantize(steps * HOURS_INCREMENT)


def validate_day_hours(value: Any, *, field: str) -> Decimal:
    hours = to_decimal(value, field=field)
    if hours < 0 or hours > MAX_DAY_HOURS:
        raise InvalidInputError(
            f"{field} must be between 0 and 24",
            field=field,
            actual=str(hours),
        )
    if hours % HOURS_INCREMENT != 0:
        raise InvalidInputError(
            f"{field} must be a multiple of 0.25 hours",
            field=field,
            actual=str(hours),
        )
    return quantize(hours)


@dataclass(frozen=True)
class WeekHours:
    """Seven day buckets, Sunday first."""

    days: tuple[Decimal, ...] = (Decimal("0.00"),) * 7

    def __post_init__(self):
        if len(self.days) != 7:
            raise ValueError("WeekHours requires exactly 7 day values")

    @property
    def total(self) -> Decimal:
        return quantize(sum(self.days, Decimal("0")))

    def day(self, index: int) -> Decimal:
        return self.days[index]

    @classmethod
    def zero(cls) -> "WeekHours":
        return cls()

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], *, validate: bool = True) -> "WeekHours":
        days = []
        for field in DAY_FIELDS:
            raw = values.get(field)
            if raw is None:
                raw = 0
            days.append(validate_day_hours(raw, field=field) if validate else quantize(raw))
        return cls(days=tuple(days))

    @classmethod
    def from_record(cls, record: Any) -> "WeekHours":
        return cls(days=tuple(quantize(getattr(record, f) or 0) for f in DAY_FIELDS))

    def replace(self, updates: Mapping[str, Any]) -> "WeekHours":
        """Overlay validated values for the day fields present in updates."""
        days = list(self.days)
        for index, field in enumerate(DAY_FIELDS):
            if field in updates and updates[field] is not None:
                days[index] = validate_day_hours(updates[field], field=field)
        return WeekHours(days=tuple(days))

    def as_dict(self, *, include_total: bool = True) -> dict[str, Decimal]:
        payload = {field: self.days[i] for i, field in enumerate(DAY_FIELDS)}
        if include_total:
            payload["total_hours"] = self.total
        return payload


def has_any_day_value(values: Optional[Mapping[str, Any]]) -> bool:
    if not values:
        return False
    return any(values.get(field) is not None for field in DAY_FIELDS)
