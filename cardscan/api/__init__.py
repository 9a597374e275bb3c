from cardscan.api.cards import router as cards_router
from cardscan.api.health import router as health_router
from cardscan.api.uploads import router as uploads_router

__all__ = [
    "cards_router",
    "health_router",
    "uploads_router",
]
