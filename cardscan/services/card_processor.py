"""
Card processing pipeline.

One call per uploaded photo:
    image gate -> OCR -> attribute extraction -> price lookup -> persistence

FAILURE POLICY:
- Invalid encoding: rejected, nothing stored
- Invalid image: bytes archived under invalid-images/, then rejected
- OCR or storage failure: terminal, no metadata written
- Catalog failure: absorbed by the price resolver (null prices)
"""

import logging
import uuid

from cardscan.models.card import CardRecord
from cardscan.models.failure import CollaboratorUnavailableError, InvalidImageError
from cardscan.services.card_archive import CardArchive
from cardscan.services.catalog_client import get_catalog_client
from cardscan.services.catalog_index import get_catalog_index
from cardscan.services.image_gate import decode_data_url, validate_image
from cardscan.services.ocr import VisionOcrClient, get_ocr_client
from cardscan.services.price_resolver import PriceResolver
from cardscan.services.storage import get_object_store
from cardscan.services.text_extraction import extract_card_attributes

logger = logging.getLogger(__name__)


def new_card_id() -> str:
    """Globally unique id shared by a card's image and metadata objects."""
    return f"pokemon-{uuid.uuid4().hex}"


class CardProcessor:
    """
    Orchestrates processing of a single card photo.

    Usage:
        processor = CardProcessor(ocr, resolver, archive)
        record = await processor.process(data_url)
    """

    def __init__(
        self,
        ocr: VisionOcrClient,
        resolver: PriceResolver,
        archive: CardArchive,
    ) -> None:
        self._ocr = ocr
        self._resolver = resolver
        self._archive = archive

    async def process(self, image_data_url: str) -> CardRecord:
        """
        Turn a data-URL image into a persisted, priced CardRecord.

        Args:
            image_data_url: "<prefix>,<base64 JPEG>"

        Returns:
            The CardRecord that was stored

        Raises:
            InvalidEncodingError: If the data URL cannot be decoded
            InvalidImageError: If the bytes are not a valid JPEG
            CollaboratorUnavailableError: If OCR or storage fails
        """
        data = decode_data_url(image_data_url)
        card_id = new_card_id()

        try:
            validate_image(data)
        except InvalidImageError as e:
            logger.warning("INVALID_IMAGE", extra={"card_id": card_id, "detail": e.detail})
            await self._archive_rejected(card_id, data)
            raise

        full_text = await self._ocr.detect_text(data)
        attributes = extract_card_attributes(full_text)
        logger.info(
            "CARD_ATTRIBUTES_EXTRACTED",
            extra={
                "card_id": card_id,
                "card_name": attributes.name,
                "card_number": attributes.card_number,
                "total": attributes.total_cards_in_set,
                "stage": attributes.evolution_stage,
            },
        )

        price = await self._resolver.resolve(attributes)

        record = CardRecord(
            card_id=card_id,
            attributes=attributes,
            price=price,
            full_text=full_text,
            image_url=self._archive.image_url(card_id),
        )

        await self._archive.save_image(card_id, data)
        await self._archive.save_record(record)

        logger.info("CARD_PROCESSED", extra={"card_id": card_id, "matched": price.matched})
        return record

    async def _archive_rejected(self, card_id: str, data: bytes) -> None:
        """Best-effort diagnostic write; the request is rejected either way."""
        try:
            await self._archive.save_diagnostic(card_id, data)
        except CollaboratorUnavailableError as e:
            logger.error(
                "INVALID_IMAGE_ARCHIVE_FAILED",
                extra={"card_id": card_id, "detail": e.detail},
            )


# Default processor instance
_processor: CardProcessor | None = None


def get_card_processor() -> CardProcessor:
    """
    Get the default card processor, wired to the process-wide collaborators.

    Returns:
        Singleton CardProcessor instance
    """
    global _processor
    if _processor is None:
        _processor = CardProcessor(
            ocr=get_ocr_client(),
            resolver=PriceResolver(get_catalog_client(), get_catalog_index()),
            archive=CardArchive(get_object_store()),
        )
    return _processor
