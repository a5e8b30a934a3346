class BookingAppError(Exception):
    """Base class for errors the API layer knows how to answer."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BookingAppError):
    """Unknown service title, booking id or comment id."""

    status_code = 404


class ValidationError(BookingAppError):
    """Bad captcha, unknown add-on, bad status, unreadable image..."""

    status_code = 400


class UnauthorizedError(BookingAppError):
    """Report endpoints hit without an admin session, or a bad password."""

    status_code = 401


class StorageError(BookingAppError):
    """A JSON file could not be read, decoded or written."""

    status_code = 500
