"""Error capture exceptions."""


class ErrorCaptureError(Exception):
    """Base class for errors raised by the error capture core."""
    pass


class InvalidArgumentError(ErrorCaptureError, ValueError):
    """Raised when an error record is requested without an originating exception."""
    pass


class CollectionReadError(ErrorCaptureError):
    """Raised by a request snapshot when one of its collections cannot be read."""

    def __init__(self, collection: str, message: str):
        self.collection = collection
        super().__init__(f"{collection}: {message}")


class SerializationError(ErrorCaptureError):
    """Raised when a serialized error record cannot be decoded."""
    pass
