"""
Direct upload endpoint.

Hands clients a short-lived presigned URL so they can PUT a photo straight
to object storage without routing the bytes through this service.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from cardscan.services.storage import S3ObjectStore, get_object_store

router = APIRouter(tags=["uploads"])


class SignedUrlResponse(BaseModel):
    """Presigned upload URL."""

    url: str


@router.get("/get-signed-url", response_model=SignedUrlResponse)
async def get_signed_url(
    filename: Annotated[str, Query(min_length=1, description="Object key to upload to")],
    store: Annotated[S3ObjectStore, Depends(get_object_store)],
) -> SignedUrlResponse:
    """
    Create a presigned PUT URL for a JPEG upload.

    The URL expires after settings.signed_url_expiry_seconds (60s by default).
    """
    return SignedUrlResponse(url=store.presigned_put_url(filename))
