"""
Bookable offerings.

A business either configures its own services (``Offering``) or, with none
active, is booked through ``GeneralService``: an implicit offering whose
duration is the day's slot granularity and which adds no restriction of
its own on top of the weekly schedule.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Union

from agenda.scheduling.weekly import DayHours

GENERAL_SERVICE_NAME = 'General appointment'


@dataclass(frozen=True)
class Offering:
    id: int
    name: str
    duration: int
    price: Decimal
    available_days: frozenset[int]
    start_date: date | None = None
    end_date: date | None = None
    auto_confirm: bool = False
    branch_ids: frozenset[int] = frozenset()

    @classmethod
    def from_row(cls, row) -> 'Offering':
        available_days = row.available_days
        if available_days is None:
            available_days = range(7)
        return cls(
            id=row.id,
            name=row.name,
            duration=row.duration,
            price=Decimal(row.price or 0),
            available_days=frozenset(int(day) for day in available_days),
            start_date=row.start_date,
            end_date=row.end_date,
            auto_confirm=bool(row.auto_confirm),
            branch_ids=frozenset(int(branch_id) for branch_id in (row.branches_available or ())),
        )

    def is_active_on(self, target_date: date) -> bool:
        if self.start_date is not None and target_date < self.start_date:
            return False
        if self.end_date is not None and target_date > self.end_date:
            return False
        return True

    def permits(self, target_date: date) -> bool:
        return self.is_active_on(target_date) and target_date.weekday() in self.available_days

    def offers_branch(self, branch_id: int) -> bool:
        """An empty ``branch_ids`` means the service is offered at every branch."""
        return not self.branch_ids or branch_id in self.branch_ids

    def effective_duration(self, day: DayHours) -> int:
        return self.duration


@dataclass(frozen=True)
class GeneralService:
    name: str = GENERAL_SERVICE_NAME

    id = None
    price = Decimal(0)
    auto_confirm = False

    def permits(self, target_date: date) -> bool:
        return True

    def offers_branch(self, branch_id: int) -> bool:
        return True

    def effective_duration(self, day: DayHours) -> int:
        return day.slot_duration


BookableService = Union[Offering, GeneralService]
