"""
Google Cloud Vision OCR client.

Sends image bytes to the Vision REST API (TEXT_DETECTION) and returns the
full-text annotation. Only the first annotation is used: Vision puts the
whole detected text there, the rest are per-word boxes.

API docs: https://cloud.google.com/vision/docs/ocr
"""

import base64
import logging
from typing import Any

import httpx

from cardscan.config import settings
from cardscan.models.failure import CollaboratorUnavailableError

logger = logging.getLogger(__name__)


class VisionOcrClient:
    """
    Client for the Google Cloud Vision images:annotate endpoint.

    Failures (transport, HTTP status, per-image error, bad JSON) raise
    CollaboratorUnavailableError. OCR is not retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the OCR client.

        Args:
            base_url: Vision API base URL. Defaults to settings.google_vision_api_url.
            api_key: Vision API key. Defaults to settings.google_vision_api_key.
            timeout: Request timeout in seconds.
        """
        self.base_url = (base_url or settings.google_vision_api_url).rstrip("/")
        self.api_key = settings.google_vision_api_key if api_key is None else api_key
        self.timeout = settings.http_timeout_seconds if timeout is None else timeout

    async def detect_text(self, image: bytes) -> str:
        """
        Run text detection on an image.

        Args:
            image: Raw image bytes

        Returns:
            Newline-separated detected text, or "" if Vision found none

        Raises:
            CollaboratorUnavailableError: If the Vision call fails
        """
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/images:annotate",
                    params={"key": self.api_key},
                    json=payload,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise CollaboratorUnavailableError("ocr", f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise CollaboratorUnavailableError("ocr", f"Vision returned HTTP {response.status_code}")

        try:
            data: dict[str, Any] = response.json()
        except ValueError as e:
            raise CollaboratorUnavailableError("ocr", "Invalid JSON from Vision") from e

        return _full_text(data)


def _full_text(data: dict[str, Any]) -> str:
    """Pull the first text annotation's description out of a Vision response."""
    responses = data.get("responses") if isinstance(data, dict) else None
    if not isinstance(responses, list) or not responses:
        raise CollaboratorUnavailableError("ocr", "Vision response has no 'responses'")

    first = responses[0] if isinstance(responses[0], dict) else {}
    error = first.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise CollaboratorUnavailableError("ocr", f"Vision error: {message}")

    annotations = first.get("textAnnotations") or []
    if not annotations or not isinstance(annotations[0], dict):
        logger.info("OCR_NO_TEXT")
        return ""

    description = annotations[0].get("description") or ""
    return str(description)


# Default client instance
_client: VisionOcrClient | None = None


def get_ocr_client() -> VisionOcrClient:
    """
    Get the default OCR client instance.

    Returns:
        Singleton VisionOcrClient instance
    """
    global _client
    if _client is None:
        _client = VisionOcrClient()
    return _client
