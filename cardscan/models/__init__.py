from cardscan.models.card import (
    UNKNOWN,
    CardAttributes,
    CardRecord,
    EvolutionStage,
    PriceQuote,
)
from cardscan.models.failure import (
    CollaboratorUnavailableError,
    FailureKind,
    InvalidEncodingError,
    InvalidImageError,
    KnownError,
    ProcessingFailedError,
)

__all__ = [
    # Card data
    "UNKNOWN",
    "CardAttributes",
    "CardRecord",
    "EvolutionStage",
    "PriceQuote",
    # Failures
    "CollaboratorUnavailableError",
    "FailureKind",
    "InvalidEncodingError",
    "InvalidImageError",
    "KnownError",
    "ProcessingFailedError",
]
