from fastapi import status


class RentBnBError(Exception):
    """
    Base class for errors that are reported to the caller.

    The message is public: it ends up in the response envelope.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: list[dict] | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailed(RentBnBError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidStayError(ValidationFailed):
    default_message = "Reservation end date must be after start date."

    def __init__(self, message: str | None = None):
        super().__init__(message, details=[{"field": "end_date", "message": message or self.default_message}])


class NotFoundError(RentBnBError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(RentBnBError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ReservationConflictError(ConflictError):
    default_message = "Reservation conflict: the listing is already booked for these dates."


class UnauthorizedError(RentBnBError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class ForbiddenError(RentBnBError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"
