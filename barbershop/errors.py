# barbershop/errors.py


class BookingError(Exception):
    """Base class for every failure the booking core reports to its caller."""

    status_code = 400
    code = "booking_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookingError):
    # malformed or policy-violating input, not retryable without correction
    status_code = 422
    code = "validation_error"


class ConflictError(BookingError):
    # slot lost to another booking, retry after refetching availability
    status_code = 409
    code = "slot_conflict"


class InsufficientBalanceError(BookingError):
    status_code = 400
    code = "insufficient_balance"


class InvalidTransitionError(BookingError):
    status_code = 409
    code = "invalid_transition"


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class LockTimeoutError(BookingError):
    # lock not acquired in time, safe to retry
    status_code = 503
    code = "busy"
