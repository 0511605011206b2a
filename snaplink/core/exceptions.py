"""Exceptions raised by the link services.

Routers translate these into HTTP responses; ``status_code`` carries the
status each one maps to.

Classes:
    SnaplinkError:
        Base class for all service errors.

    LinkValidationError:
        Malformed input (400). ``InvalidKeyError`` and ``MissingKeyError``
        narrow it down.

    LinkConflictError:
        The key is reserved or already stored (409).

    LinkAlreadyArchivedError:
        Archiving a link that is already archived (409).

    LinkNotFoundError:
        No link exists for the key (404).

    LinkGoneError:
        The link exists but is expired or archived (410).

    TransientInfrastructureError:
        Cache or metadata backend failure. Never surfaced to clients.

    ClickUpdateError:
        A background click update failed. Logged only.
"""

from fastapi import status


class SnaplinkError(Exception):
    """Generic base class for link service errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class LinkValidationError(SnaplinkError):
    """Raised when request input is malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidKeyError(LinkValidationError):
    """Raised when a key contains disallowed characters or is empty after normalization."""

    def __init__(self, message: str = "Invalid Key!") -> None:
        super().__init__(message)


class MissingKeyError(LinkValidationError):
    """Raised when no key was supplied."""

    def __init__(self, message: str = "Key is required!") -> None:
        super().__init__(message)


class LinkConflictError(SnaplinkError):
    """Raised when a key is reserved or already taken."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Key already exists!") -> None:
        super().__init__(message)


class LinkAlreadyArchivedError(LinkConflictError):
    """Raised when archiving a link twice."""

    def __init__(self, message: str = "Link already archived") -> None:
        super().__init__(message)


class LinkNotFoundError(SnaplinkError):
    """Raised when no link exists for a key."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Link not found") -> None:
        super().__init__(message)


class LinkGoneError(SnaplinkError):
    """Raised when a link can no longer redirect."""

    status_code = status.HTTP_410_GONE


class TransientInfrastructureError(SnaplinkError):
    """Raised when a non-critical backend (cache, metadata) fails."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ClickUpdateError(SnaplinkError):
    """Raised inside a click worker when persisting a click fails."""
