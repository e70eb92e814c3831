"""
Recurring weekly working hours.

A business publishes one ``DayHours`` per weekday (0 = Monday, matching
``date.weekday()``). A day is either continuous (one window) or split into a
morning and an afternoon window. ``slot_duration`` is the day's granularity:
every slot of that day starts on a multiple of it, measured from the start
of its window.
"""

from dataclasses import dataclass, replace
from datetime import time

from agenda.core.errors import ConfigurationError

WEEKDAYS = range(7)
DAY_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')

DEFAULT_START = time(9, 0)
DEFAULT_END = time(18, 0)
DEFAULT_MORNING = (time(9, 0), time(13, 0))
DEFAULT_AFTERNOON = (time(16, 0), time(20, 0))
DEFAULT_SLOT_DURATION_MINUTES = 30


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


@dataclass(frozen=True)
class Window:
    start: time
    end: time

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    def is_degenerate(self) -> bool:
        return self.end_minutes <= self.start_minutes


@dataclass(frozen=True)
class DayHours:
    day: int
    enabled: bool
    is_continuous: bool = True
    start_time: time | None = None
    end_time: time | None = None
    morning_start: time | None = None
    morning_end: time | None = None
    afternoon_start: time | None = None
    afternoon_end: time | None = None
    slot_duration: int = DEFAULT_SLOT_DURATION_MINUTES

    @classmethod
    def default(cls, day: int) -> 'DayHours':
        return cls(
            day=day,
            enabled=day < 5,
            is_continuous=True,
            start_time=DEFAULT_START,
            end_time=DEFAULT_END,
            morning_start=DEFAULT_MORNING[0],
            morning_end=DEFAULT_MORNING[1],
            afternoon_start=DEFAULT_AFTERNOON[0],
            afternoon_end=DEFAULT_AFTERNOON[1],
            slot_duration=DEFAULT_SLOT_DURATION_MINUTES,
        )

    @classmethod
    def closed(cls, day: int) -> 'DayHours':
        return replace(cls.default(day), enabled=False)

    @classmethod
    def from_row(cls, row) -> 'DayHours':
        return cls(
            day=row.day,
            enabled=bool(row.enabled),
            is_continuous=bool(row.is_continuous),
            start_time=row.start_time,
            end_time=row.end_time,
            morning_start=row.morning_start,
            morning_end=row.morning_end,
            afternoon_start=row.afternoon_start,
            afternoon_end=row.afternoon_end,
            slot_duration=row.slot_duration,
        )

    def windows(self) -> list[Window]:
        """Working windows in chronological order; degenerate ones included."""
        if self.is_continuous:
            candidates = [(self.start_time, self.end_time)]
        else:
            candidates = [
                (self.morning_start, self.morning_end),
                (self.afternoon_start, self.afternoon_end),
            ]
        return [Window(start, end) for start, end in candidates if start is not None and end is not None]

    def validate(self) -> None:
        """Reject hours that could never be saved.

        A window with ``start == end`` on a split day is accepted and simply
        produces no slots, as long as the other window is usable.
        """
        label = DAY_NAMES[self.day] if self.day in WEEKDAYS else str(self.day)

        if self.day not in WEEKDAYS:
            raise ConfigurationError(f'Day must be between 0 (Monday) and 6 (Sunday), got {self.day}.')

        if self.slot_duration is None or self.slot_duration <= 0:
            raise ConfigurationError(f'Slot duration for {label} must be a positive number of minutes.')

        if not self.enabled:
            return

        if self.is_continuous:
            if self.start_time is None or self.end_time is None:
                raise ConfigurationError(f'Opening and closing times are required for {label}.')
            if self.end_time <= self.start_time:
                raise ConfigurationError(f'Closing time must be after opening time on {label}.')
            return

        required = (self.morning_start, self.morning_end, self.afternoon_start, self.afternoon_end)
        if any(value is None for value in required):
            raise ConfigurationError(f'Morning and afternoon hours are required for {label}.')

        morning, afternoon = self.windows()
        for name, window in (('morning', morning), ('afternoon', afternoon)):
            if window.end < window.start:
                raise ConfigurationError(f'The {name} window on {label} ends before it starts.')

        if morning.is_degenerate() and afternoon.is_degenerate():
            raise ConfigurationError(f'{label.capitalize()} is enabled but has no working hours.')

        if not morning.is_degenerate() and not afternoon.is_degenerate() and afternoon.start < morning.end:
            raise ConfigurationError(f'The afternoon window on {label} overlaps the morning window.')


def complete_week(days: list[DayHours]) -> list[DayHours]:
    """Return exactly seven days ordered Monday..Sunday, filling gaps with defaults."""
    by_day = {day_hours.day: day_hours for day_hours in days}
    return [by_day.get(day, DayHours.default(day)) for day in WEEKDAYS]


def validate_week(days: list[DayHours]) -> None:
    seen = [day_hours.day for day_hours in days]
    if sorted(seen) != list(WEEKDAYS):
        raise ConfigurationError('A weekly schedule must define each day from Monday to Sunday exactly once.')
    for day_hours in days:
        day_hours.validate()
