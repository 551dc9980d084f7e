class ReservationError(Exception):
    """Base class for domain errors. `status_code` is the HTTP status callers should surface."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReservationError):
    pass


class NotFoundError(ReservationError):
    status_code = 404


class StateConflictError(ReservationError):
    pass


class InvalidStatusError(ReservationError):
    pass
