import base64
import io

import pytest
from PIL import Image

from cardscan.models.failure import CollaboratorUnavailableError


class FakeObjectStore:
    """In-memory stand-in for S3ObjectStore that records every put."""

    def __init__(self, bucket: str = "test-bucket", region: str = "us-east-1") -> None:
        self.bucket = bucket
        self.region = region
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.keys: list[str] = []
        self.fail_on: set[str] = set()

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def put(self, key: str, body: bytes, content_type: str) -> str:
        if any(key.endswith(suffix) or key.startswith(suffix) for suffix in self.fail_on):
            raise CollaboratorUnavailableError("storage", f"put {key}: simulated outage")
        self.objects[key] = (body, content_type)
        self.keys.append(key)
        return self.public_url(key)


class FakeOcr:
    """OCR stand-in returning canned text."""

    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[bytes] = []

    async def detect_text(self, image: bytes) -> str:
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        return self.text


def make_jpeg(size: tuple[int, int] = (40, 56), color: tuple[int, int, int] = (200, 180, 40)) -> bytes:
    img = Image.new("RGB", size, color)
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()


def to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A small, valid JPEG image."""
    return make_jpeg()


@pytest.fixture
def jpeg_data_url(jpeg_bytes: bytes) -> str:
    return to_data_url(jpeg_bytes)


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def sample_card() -> dict:
    """Catalog card object shaped like a pokemontcg.io /cards result."""
    return {
        "id": "base1-58",
        "name": "Pikachu",
        "number": "58",
        "rarity": "Common",
        "subtypes": ["Basic"],
        "set": {"id": "base1", "name": "Base", "printedTotal": 102, "total": 102},
        "tcgplayer": {
            "prices": {
                "normal": {"low": 1.0, "mid": 2.5, "market": 2.1},
                "holofoil": {"market": 9.99},
            }
        },
        "cardmarket": {"prices": {"averageSellPrice": 1.75, "trendPrice": 1.8}},
    }


@pytest.fixture
def make_ocr():
    """Factory for OCR stand-ins: make_ocr("BASIC\\nPIKACHU") or make_ocr(error=...)."""
    return FakeOcr


@pytest.fixture
def data_url():
    """Factory turning bytes into a data URL."""
    return to_data_url
