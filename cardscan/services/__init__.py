"""
CardScan services.

Image validation, OCR, attribute extraction, pricing and persistence.
"""

from cardscan.services.card_archive import CardArchive
from cardscan.services.card_processor import CardProcessor, get_card_processor
from cardscan.services.catalog_client import PokemonTcgClient, get_catalog_client
from cardscan.services.catalog_index import (
    SEED_SET_TOTALS,
    CatalogIndex,
    IndexStatus,
    build_total_index,
    get_catalog_index,
)
from cardscan.services.image_gate import decode_data_url, validate_image
from cardscan.services.ocr import VisionOcrClient, get_ocr_client
from cardscan.services.price_resolver import (
    CatalogQuery,
    PriceResolver,
    derive_prices,
    select_candidate,
)
from cardscan.services.storage import S3ObjectStore, get_object_store
from cardscan.services.text_extraction import (
    PROMO_SET_IDS,
    extract_card_attributes,
    extract_evolution_stage,
    extract_name,
    extract_number,
)

__all__ = [
    # Pipeline
    "CardProcessor",
    "get_card_processor",
    # Image gate
    "decode_data_url",
    "validate_image",
    # Extraction
    "PROMO_SET_IDS",
    "extract_card_attributes",
    "extract_evolution_stage",
    "extract_name",
    "extract_number",
    # Catalog
    "PokemonTcgClient",
    "get_catalog_client",
    "SEED_SET_TOTALS",
    "CatalogIndex",
    "IndexStatus",
    "build_total_index",
    "get_catalog_index",
    # Pricing
    "CatalogQuery",
    "PriceResolver",
    "derive_prices",
    "select_candidate",
    # Collaborators
    "CardArchive",
    "S3ObjectStore",
    "get_object_store",
    "VisionOcrClient",
    "get_ocr_client",
]
