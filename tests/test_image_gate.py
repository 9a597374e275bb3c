"""Tests for data-URL decoding and JPEG validation."""

import base64
import io

import pytest
from PIL import Image

from cardscan.models.failure import InvalidEncodingError, InvalidImageError
from cardscan.services.image_gate import decode_data_url, validate_image


class TestDecodeDataUrl:
    def test_decodes_payload(self, jpeg_bytes: bytes, jpeg_data_url: str) -> None:
        """Payload after the comma is base64-decoded."""
        assert decode_data_url(jpeg_data_url) == jpeg_bytes

    def test_prefix_is_not_checked(self, jpeg_bytes: bytes) -> None:
        """Anything before the comma is ignored."""
        value = "whatever," + base64.b64encode(jpeg_bytes).decode("ascii")

        assert decode_data_url(value) == jpeg_bytes

    def test_missing_delimiter(self, jpeg_bytes: bytes) -> None:
        """A bare base64 string without a comma is rejected."""
        with pytest.raises(InvalidEncodingError) as exc_info:
            decode_data_url(base64.b64encode(jpeg_bytes).decode("ascii"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.to_dict() == {"error": "Invalid image encoding"}

    def test_non_alphabet_characters_dropped(self) -> None:
        """Characters outside the base64 alphabet are skipped, not fatal."""
        assert decode_data_url("data:image/jpeg;base64,aGVs*bG8~!") == b"hello"

    def test_garbage_still_decodes(self) -> None:
        """A junk payload decodes to bytes for the image check to reject."""
        data = decode_data_url("data:image/jpeg;base64,@@not~base64!!\x01\x02")

        assert data
        with pytest.raises(InvalidImageError):
            validate_image(data)

    def test_missing_padding(self) -> None:
        """Unpadded base64 is accepted."""
        assert decode_data_url("data:image/jpeg;base64,aGk") == b"hi"

    def test_dangling_character_ignored(self) -> None:
        """A final lone character that cannot form a byte is ignored."""
        assert decode_data_url("x,aGVsbG8h" + "Q") == b"hello!"

    def test_urlsafe_alphabet(self, jpeg_bytes: bytes) -> None:
        """URL-safe base64 decodes to the same bytes."""
        payload = base64.urlsafe_b64encode(jpeg_bytes).decode("ascii")

        assert decode_data_url(f"data:image/jpeg;base64,{payload}") == jpeg_bytes

    def test_whitespace_in_payload(self, jpeg_bytes: bytes) -> None:
        """Line-wrapped base64 is accepted."""
        encoded = base64.b64encode(jpeg_bytes).decode("ascii")
        wrapped = "\n".join(encoded[i : i + 76] for i in range(0, len(encoded), 76))

        assert decode_data_url(f"data:image/jpeg;base64,{wrapped}") == jpeg_bytes

    def test_empty_payload(self) -> None:
        """A data URL with nothing after the comma is rejected."""
        with pytest.raises(InvalidEncodingError):
            decode_data_url("data:image/jpeg;base64,")

    def test_payload_without_base64_characters(self) -> None:
        """A payload with no decodable characters is rejected."""
        with pytest.raises(InvalidEncodingError):
            decode_data_url("data:image/jpeg;base64,!!!~~~")


class TestValidateImage:
    def test_accepts_jpeg(self, jpeg_bytes: bytes) -> None:
        """A real JPEG passes."""
        validate_image(jpeg_bytes)

    def test_rejects_random_bytes(self) -> None:
        """Bytes without a JPEG signature are rejected."""
        with pytest.raises(InvalidImageError) as exc_info:
            validate_image(b"definitely not an image")

        assert exc_info.value.status_code == 400
        assert exc_info.value.to_dict() == {"error": "Invalid image"}

    def test_rejects_png(self) -> None:
        """Other image formats are rejected."""
        buffer = io.BytesIO()
        Image.new("RGB", (8, 8)).save(buffer, format="PNG")

        with pytest.raises(InvalidImageError):
            validate_image(buffer.getvalue())

    def test_rejects_signature_only(self) -> None:
        """A JPEG signature followed by garbage is rejected."""
        with pytest.raises(InvalidImageError):
            validate_image(b"\xff\xd8\xff" + b"\x00" * 32)
