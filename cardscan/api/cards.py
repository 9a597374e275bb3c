"""
Card processing endpoint.

Accepts a photographed card as a base64 data URL and returns the extracted,
priced card record.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cardscan.models.failure import KnownError, ProcessingFailedError
from cardscan.services.card_processor import CardProcessor, get_card_processor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cards"])


class ProcessCardRequest(BaseModel):
    """Request model for processing a card photo."""

    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(
        ...,
        alias="imageBase64",
        description="Data URL of a JPEG photo: '<prefix>,<base64 payload>'",
        examples=["data:image/jpeg;base64,/9j/4AAQSkZJRg..."],
    )


class CardRecordResponse(BaseModel):
    """Extracted and priced card data. Missing text fields read "Unknown"."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    card_id: str
    name: str
    evolution_stage: str
    card_number: str
    total_cards_in_set: str
    number: str | None = None
    set_id: str | None = None
    set_name: str | None = None
    rarity: str | None = None
    subtypes: list[str] = Field(default_factory=list)
    cardmarket_price: float | None = None
    tcgplayer_price: float | None = None
    selected_price: float | None = None
    full_text: str
    image_url: str


class ErrorResponse(BaseModel):
    """Error body for rejected or failed requests."""

    error: str


@router.post(
    "/process-card",
    response_model=CardRecordResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def process_card(
    request: ProcessCardRequest,
    processor: Annotated[CardProcessor, Depends(get_card_processor)],
) -> CardRecordResponse:
    """
    Process a card photo.

    Validates the image, reads its text, extracts name/stage/number/set,
    looks up a market price and stores the image and record.
    Pricing is best-effort: a catalog outage yields null prices, not an error.
    """
    try:
        record = await processor.process(request.image_base64)
        return CardRecordResponse.model_validate(record.to_dict())
    except KnownError:
        raise
    except Exception as e:
        logger.exception("Unexpected failure processing card")
        raise ProcessingFailedError(type(e).__name__) from e
