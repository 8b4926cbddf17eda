"""Custom exceptions for deskbook package."""


class DeskBookingError(Exception):
    """Base exception for all deskbook errors."""

    pass


class ValidationError(DeskBookingError):
    """Raised when input is rejected before any request is made."""

    pass


class NoActiveOfficeError(ValidationError):
    """Raised when a layout operation needs an open office space."""

    pass


class ConflictError(DeskBookingError):
    """Base exception for booking conflicts."""

    pass


class SlotConflictError(ConflictError):
    """Raised when a time slot is already taken at submission time."""

    pass


class AuthenticationError(DeskBookingError):
    """Raised when there is no valid session."""

    pass


class NotAuthenticatedError(AuthenticationError):
    """Raised when an action requires a signed-in user."""

    pass


class OwnershipError(DeskBookingError):
    """Raised when the acting user does not own the target reservation."""

    pass


class RemoteError(DeskBookingError):
    """Raised when the backend returns a failure or cannot be reached."""

    pass


class MalformedLayoutError(DeskBookingError):
    """Raised when a persisted layout document cannot be decoded."""

    pass


class SurfaceDisposedError(DeskBookingError):
    """Raised when a disposed drawing surface is used."""

    pass


class UnexpectedError(DeskBookingError):
    """Raised for failures that fit no other category."""

    pass
