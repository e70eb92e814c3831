"""
Capacity ledger.

Occupancy is always counted from committed ``pending``/``confirmed`` rows at
query time; nothing is cached. The reservation commit path combines two
guards so that a count it has just read is still true when it inserts:

* ``SlotLockRegistry`` serializes writers for the same (business, date,
  time) inside this process, with a bounded wait.
* The unique (business, date, time, seat) constraint on ``reservations``
  rejects a second writer from another process that picked the same seat.
"""

import logging
from contextlib import contextmanager
from datetime import date, time
from threading import Lock
from typing import Hashable, Iterator

from sqlalchemy import func
from sqlalchemy.orm import Session

from agenda.core.errors import PersistenceUnavailable
from agenda.models.reservation import ACTIVE_STATUSES, Reservation

logger = logging.getLogger(__name__)


def occupancy(db: Session, business_id: int, target_date: date, slot_time: time) -> int:
    count = db.query(func.count(Reservation.id)).filter(
        Reservation.business_id == business_id,
        Reservation.date == target_date,
        Reservation.time == slot_time,
        Reservation.status.in_(ACTIVE_STATUSES),
    ).scalar()
    return int(count or 0)


def occupancy_by_time(db: Session, business_id: int, target_date: date) -> dict[time, int]:
    rows = db.query(Reservation.time, func.count(Reservation.id)).filter(
        Reservation.business_id == business_id,
        Reservation.date == target_date,
        Reservation.status.in_(ACTIVE_STATUSES),
    ).group_by(Reservation.time).all()
    return {slot_time: int(count) for slot_time, count in rows}


def taken_seats(db: Session, business_id: int, target_date: date, slot_time: time) -> set[int]:
    rows = db.query(Reservation.seat).filter(
        Reservation.business_id == business_id,
        Reservation.date == target_date,
        Reservation.time == slot_time,
        Reservation.seat.is_not(None),
    ).all()
    return {seat for (seat,) in rows}


def lowest_free_seat(taken: set[int], effective_max: int) -> int | None:
    for seat in range(1, effective_max + 1):
        if seat not in taken:
            return seat
    return None


class SlotLockRegistry:
    """One lock per slot key, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[Hashable, Lock] = {}
        self._holders: dict[Hashable, int] = {}

    def _checkout(self, key: Hashable) -> Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = Lock()
                self._locks[key] = lock
            self._holders[key] = self._holders.get(key, 0) + 1
            return lock

    def _release(self, key: Hashable) -> None:
        with self._guard:
            remaining = self._holders[key] - 1
            if remaining:
                self._holders[key] = remaining
            else:
                del self._holders[key]
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable, timeout: float) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=timeout):
                logger.warning('Timed out waiting %.1fs for slot lock %s', timeout, key)
                raise PersistenceUnavailable('The slot is busy; please try again.')
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


slot_locks = SlotLockRegistry()
