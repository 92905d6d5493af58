"""Exception hierarchy for albumguard."""


class AlbumGuardError(Exception):
    """Base class for all errors raised by albumguard."""


class NotFoundError(AlbumGuardError):
    """Raised when a referenced album, asset or user does not exist."""


class ConflictAlreadyAbsent(AlbumGuardError):
    """Raised when a membership edge to revoke is already gone."""


class StoreFailure(AlbumGuardError):
    """Raised when the persistence layer fails a call."""


class InvalidRequestError(AlbumGuardError):
    """Raised when a request is rejected before any mutation happens."""


class PermissionDeniedError(AlbumGuardError):
    """Raised when the acting user may not perform the operation."""
