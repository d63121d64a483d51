"""
Error taxonomy for the booking engine.

Three families, matching how each is reported at the action boundary:

* InputValidationError -- local, blocks submission, no store call is made.
* ConflictError        -- raised by the store or a commit-time check;
                          the message is shown to the user verbatim.
* StoreUnavailableError -- transient/unknown store failure; reported as a
                          generic failure message.
"""

from typing import Iterable, Optional


class BookingEngineError(Exception):
    """Base class for all engine errors."""


class InputValidationError(BookingEngineError):
    """Local validation failure; the draft is kept so the user can fix it."""

    def __init__(self, message: str, problems: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.problems: list[str] = list(problems) if problems else [message]


class ConflictError(BookingEngineError):
    """The store (or a commit-time check) rejected the change."""


class CapacityExceededError(ConflictError):
    """A booking would take a slot past its maximum capacity."""

    def __init__(self, requested: int, remaining: int) -> None:
        super().__init__(
            f"Only {remaining} seat(s) remaining on this slot; "
            f"cannot book {requested}."
        )
        self.requested = requested
        self.remaining = remaining


class RecordNotFoundError(ConflictError):
    """A referenced record does not exist (or no longer exists)."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection} record '{record_id}' not found.")
        self.collection = collection
        self.record_id = record_id


class ActiveBookingsError(ConflictError):
    """Availabilities with active bookings cannot be deleted."""

    def __init__(self, availability_ids: Iterable[str]) -> None:
        self.availability_ids = sorted(availability_ids)
        count = len(self.availability_ids)
        super().__init__(
            f"{count} availability slot(s) still have active bookings. "
            "Cancel bookings first."
        )


class StoreUnavailableError(BookingEngineError):
    """The data store could not be reached or returned an unexpected shape."""


GENERIC_FAILURE_MESSAGE = "Something went wrong talking to the data store. Please try again."


def user_message(exc: BaseException) -> str:
    """Convert an error into the message shown to the operator.

    Validation and conflict messages are shown verbatim; anything else
    becomes a generic failure so internals never leak into the UI.
    """
    if isinstance(exc, InputValidationError):
        return " ".join(exc.problems)
    if isinstance(exc, ConflictError):
        return str(exc)
    return GENERIC_FAILURE_MESSAGE
