"""
Image gate.

Decodes the data-URL payload sent by clients and rejects anything that is
not a well-formed JPEG before OCR or storage work starts.
"""

import base64
import io
import re

from PIL import Image, UnidentifiedImageError

from cardscan.models.failure import InvalidEncodingError, InvalidImageError

JPEG_SIGNATURE = b"\xff\xd8\xff"

_NON_ALPHABET = re.compile(r"[^A-Za-z0-9+/]")
_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


def decode_data_url(value: str) -> bytes:
    """
    Decode a "<prefix>,<base64-payload>" string to bytes.

    Args:
        value: Data URL such as "data:image/jpeg;base64,/9j/4AAQ..."

    Returns:
        Decoded payload bytes.

    Raises:
        InvalidEncodingError: If there is no comma or nothing decodes
    """
    _prefix, sep, payload = value.partition(",")
    if not sep:
        raise InvalidEncodingError("Missing ',' delimiter in image data URL")

    # Characters outside the base64 alphabet are dropped and padding is
    # recomputed, so garbage still reaches the image check as bytes
    cleaned = _NON_ALPHABET.sub("", payload.translate(_URLSAFE_TO_STANDARD))
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    data = base64.b64decode(cleaned + "=" * (-len(cleaned) % 4))

    if not data:
        raise InvalidEncodingError("Empty image payload")

    return data


def validate_image(data: bytes) -> None:
    """
    Check that bytes are a parseable JPEG image.

    Args:
        data: Decoded image bytes

    Raises:
        InvalidImageError: If the JPEG signature is missing or Pillow cannot
            parse the image structure
    """
    if not data.startswith(JPEG_SIGNATURE):
        raise InvalidImageError("Missing JPEG signature")

    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise InvalidImageError(f"Unreadable image: {e}") from e

    if image_format != "JPEG":
        raise InvalidImageError(f"Unexpected image format: {image_format}")
