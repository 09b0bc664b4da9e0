"""Exceptions raised across the storage boundary."""


class StorageError(Exception):
    """Raised when the document store cannot be read or written."""

    pass


class PermissionDeniedError(Exception):
    """Raised when a user tries to modify a document they do not own."""

    pass


class NotFoundError(Exception):
    """Raised when a referenced document does not exist."""

    pass
