"""
Failure classification for card processing.

Every failure that reaches the client is a KnownError subclass carrying the
HTTP status it maps to. The app renders them uniformly as {"error": message}.

Taxonomy:
- InvalidEncodingError: payload is not a "<prefix>,<base64>" data URL (400)
- InvalidImageError: bytes are not a parseable JPEG (400)
- CollaboratorUnavailableError: OCR, storage or catalog call failed (500)
- ProcessingFailedError: anything the system did not anticipate (500)

Ambiguous extraction is NOT a failure. Missing card fields are None.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Client input defects
    INVALID_ENCODING = "invalid_encoding"
    INVALID_IMAGE = "invalid_image"

    # External collaborators
    SERVICE_UNAVAILABLE = "service_unavailable"

    # Unknown
    UNKNOWN = "unknown"


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Client-facing error body."""
        return {"error": self.message}


class InvalidEncodingError(KnownError):
    """Raised when the image payload is not a comma-delimited base64 data URL."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.INVALID_ENCODING,
            message="Invalid image encoding",
            detail=detail,
            status_code=400,
        )


class InvalidImageError(KnownError):
    """Raised when decoded bytes are not a well-formed JPEG image."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.INVALID_IMAGE,
            message="Invalid image",
            detail=detail,
            status_code=400,
        )


class CollaboratorUnavailableError(KnownError):
    """
    Raised when an external collaborator (OCR, storage, catalog) fails.

    Fatal for OCR and storage. The price resolver catches it for the catalog.
    """

    def __init__(self, collaborator: str, detail: str | None = None) -> None:
        self.collaborator = collaborator
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message=f"{collaborator} service unavailable",
            detail=detail,
            status_code=500,
        )


class ProcessingFailedError(KnownError):
    """Catch-all for unexpected failures while processing a card."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.UNKNOWN,
            message="Processing failed",
            detail=detail,
            status_code=500,
        )
