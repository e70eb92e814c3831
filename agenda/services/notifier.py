"""
Post-commit notifications.

The calendar mirror and owner notifications live outside this package.
They are told about a reservation only after it is committed, and nothing
they do can undo it: every failure is logged and dropped here.
"""

import logging
from typing import Protocol

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)

RESERVATION_CREATED = 'reservation.created'
RESERVATION_STATUS_CHANGED = 'reservation.status_changed'


class Notifier(Protocol):
    def notify(self, reservation_id: int, business_id: int, event: str = RESERVATION_CREATED) -> None:
        ...


class LoggingNotifier:
    def notify(self, reservation_id: int, business_id: int, event: str = RESERVATION_CREATED) -> None:
        logger.info('%s: reservation %s for business %s', event, reservation_id, business_id)


class BackgroundTaskNotifier:
    """Defers delivery until FastAPI has sent the response."""

    def __init__(self, background_tasks: BackgroundTasks, delegate: Notifier):
        self.background_tasks = background_tasks
        self.delegate = delegate

    def notify(self, reservation_id: int, business_id: int, event: str = RESERVATION_CREATED) -> None:
        self.background_tasks.add_task(safe_notify, self.delegate, reservation_id, business_id, event)


def safe_notify(
    notifier: Notifier | None,
    reservation_id: int,
    business_id: int,
    event: str = RESERVATION_CREATED,
) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(reservation_id, business_id, event=event)
    except Exception:
        logger.exception('Notifier failed for %s on reservation %s (business %s)', event, reservation_id, business_id)


default_notifier = LoggingNotifier()
