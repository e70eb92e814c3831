"""
Exception calendar helpers.

Days off are stored flat, one row per date. Ranges only exist on the read
side: consecutive dates sharing a reason are folded into a ``DayOffRange``.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from agenda.core.errors import ConfigurationError

MAX_RANGE_DAYS = 366


@dataclass(frozen=True)
class DayOffRange:
    start: date
    end: date
    reason: str | None
    dates: tuple[date, ...] = field(default_factory=tuple)
    day_off_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_range(self) -> bool:
        return self.start != self.end


def normalize_reason(reason: str | None) -> str | None:
    if reason is None:
        return None
    normalized = reason.strip()
    return normalized or None


def expand_range(start: date, end: date) -> list[date]:
    if start > end:
        raise ConfigurationError('The start date must be on or before the end date.')
    span = (end - start).days + 1
    if span > MAX_RANGE_DAYS:
        raise ConfigurationError(f'A day-off range cannot span more than {MAX_RANGE_DAYS} days.')
    return [start + timedelta(days=offset) for offset in range(span)]


def group_ranges(days_off: Iterable) -> list[DayOffRange]:
    """Fold rows with ``date``, ``reason`` and ``id`` into contiguous ranges."""
    ordered = sorted(days_off, key=lambda row: row.date)
    groups: list[DayOffRange] = []
    current: list = []

    for row in ordered:
        if current:
            previous = current[-1]
            if row.date - previous.date == timedelta(days=1) and row.reason == previous.reason:
                current.append(row)
                continue
            groups.append(_to_range(current))
        current = [row]

    if current:
        groups.append(_to_range(current))

    return groups


def _to_range(rows: list) -> DayOffRange:
    return DayOffRange(
        start=rows[0].date,
        end=rows[-1].date,
        reason=rows[0].reason,
        dates=tuple(row.date for row in rows),
        day_off_ids=tuple(row.id for row in rows),
    )
