"""
Exceptions raised by the availability engine, the configuration stores and
the reservation commit protocol.

Routes translate these into HTTP responses; see ``agenda.routes.errors``.
"""


class AgendaError(Exception):
    """Base exception for every domain error in this package."""


class ConfigurationError(AgendaError):
    """Raised when a schedule, day-off range or service definition is malformed."""


class NotBookable(AgendaError):
    """Raised when a reservation targets a date/time the engine would never offer."""


class SlotNoLongerAvailable(AgendaError):
    """Raised when the slot filled up between selection and commit."""


class PersistenceUnavailable(AgendaError):
    """Raised when storage fails; the reservation is guaranteed not to exist."""


class BusinessNotFound(AgendaError):
    pass


class ServiceNotFound(AgendaError):
    pass


class ReservationNotFound(AgendaError):
    pass


class DayOffNotFound(AgendaError):
    pass


class DuplicateDayOff(AgendaError):
    """Raised when a day off already exists for the date."""


class InvalidTransition(AgendaError):
    """Raised on a reservation status change the lifecycle does not allow."""


class OwnerOnly(AgendaError):
    """Raised when a non-owner attempts an owner-only change."""


class ReservationOutcomeUnknown(PersistenceUnavailable):
    """Raised when a commit failed ambiguously and the follow-up lookup failed too.

    ``booking_token`` identifies the attempt so the caller can look it up
    later instead of booking again.
    """

    def __init__(self, message: str, booking_token: str):
        super().__init__(message)
        self.booking_token = booking_token


class ServiceRequired(AgendaError):
    """Raised when the business has services but none was chosen."""


class BranchNotFound(AgendaError):
    pass
