"""
Slot generation.

Pure functions: given a day's hours, the days off, the chosen offering, the
target date and an injected "now" they produce the ordered candidate start
times, then annotate each one with its occupancy. Nothing here touches the
database or reads the clock, so the same inputs always give the same slots.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Collection

from agenda.scheduling.capacity import CapacityPolicy
from agenda.scheduling.catalog import BookableService
from agenda.scheduling.weekly import DayHours, from_minutes

OccupancyLookup = Callable[[date, time], int]


@dataclass(frozen=True)
class Slot:
    time: time
    occupied_count: int
    available: bool


def is_bookable_date(
    day: DayHours,
    days_off: Collection[date],
    service: BookableService,
    target_date: date,
) -> bool:
    if target_date in days_off:
        return False
    if not day.enabled:
        return False
    return service.permits(target_date)


def candidate_times(day: DayHours, service: BookableService) -> list[time]:
    """Start times on the day's grid where the whole service fits its window."""
    step = day.slot_duration
    duration = service.effective_duration(day)
    times: list[time] = []

    if step <= 0 or duration <= 0:
        return times

    for window in day.windows():
        current = window.start_minutes
        last_start = window.end_minutes - duration
        while current <= last_start:
            times.append(from_minutes(current))
            current += step

    return times


def offered_times(
    day: DayHours,
    days_off: Collection[date],
    service: BookableService,
    target_date: date,
    now: datetime,
) -> list[time]:
    """Start times a client may pick, before looking at capacity."""
    if not is_bookable_date(day, days_off, service, target_date):
        return []

    today = now.date()
    if target_date < today:
        return []

    times = candidate_times(day, service)
    if target_date == today:
        current = now.time().replace(tzinfo=None)
        times = [start for start in times if start > current]

    return times


def generate_slots(
    day: DayHours,
    days_off: Collection[date],
    service: BookableService,
    target_date: date,
    now: datetime,
    occupancy: OccupancyLookup,
    policy: CapacityPolicy,
) -> list[Slot]:
    slots: list[Slot] = []
    for start in offered_times(day, days_off, service, target_date, now):
        occupied = occupancy(target_date, start)
        slots.append(Slot(time=start, occupied_count=occupied, available=policy.has_room(occupied)))
    return slots
