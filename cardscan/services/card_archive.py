"""
Card archive: image and metadata persistence.

Writes each processed card as two objects sharing one id:
    <id>.jpg   original image
    <id>.json  CardRecord document
Rejected images go to invalid-images/<id>.jpg for later inspection.

The two writes are not transactional. A crash between them leaves an image
without metadata; nothing reconciles them.
"""

import json
import logging

from cardscan.models.card import CardRecord
from cardscan.services.storage import S3ObjectStore

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPE = "image/jpeg"
RECORD_CONTENT_TYPE = "application/json"
DIAGNOSTIC_PREFIX = "invalid-images/"


def image_key(card_id: str) -> str:
    return f"{card_id}.jpg"


def record_key(card_id: str) -> str:
    return f"{card_id}.json"


def diagnostic_key(card_id: str) -> str:
    return f"{DIAGNOSTIC_PREFIX}{card_id}.jpg"


class CardArchive:
    """Persists card images and records to object storage."""

    def __init__(self, store: S3ObjectStore) -> None:
        self._store = store

    def image_url(self, card_id: str) -> str:
        """Public URL the image for card_id is (or will be) stored at."""
        return self._store.public_url(image_key(card_id))

    async def save_image(self, card_id: str, data: bytes) -> str:
        """Store the original image. Returns its public URL."""
        return await self._store.put(image_key(card_id), data, IMAGE_CONTENT_TYPE)

    async def save_record(self, record: CardRecord) -> str:
        """Store the record as JSON. Returns its public URL."""
        body = json.dumps(record.to_dict()).encode("utf-8")
        return await self._store.put(record_key(record.card_id), body, RECORD_CONTENT_TYPE)

    async def save_diagnostic(self, card_id: str, data: bytes) -> str:
        """Store a rejected image under the diagnostic prefix."""
        url = await self._store.put(diagnostic_key(card_id), data, IMAGE_CONTENT_TYPE)
        logger.info("INVALID_IMAGE_ARCHIVED", extra={"card_id": card_id, "bytes": len(data)})
        return url
