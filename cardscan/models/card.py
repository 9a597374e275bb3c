from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Rendered in place of a field the extractor could not find
UNKNOWN = "Unknown"


class EvolutionStage(str, Enum):
    """Stage or mechanic class printed on a Pokemon card."""

    BASIC = "BASIC"
    STAGE_1 = "STAGE_1"
    STAGE_2 = "STAGE_2"
    V = "V"
    VSTAR = "VSTAR"
    VMAX = "VMAX"
    EX = "EX"
    GX = "GX"


@dataclass(frozen=True, slots=True)
class CardAttributes:
    """
    Best-guess fields read off a card's OCR text.

    Every field is independent. None means the extractor found nothing,
    never that the card definitely lacks the field.

    Attributes:
        name: Title-cased card name (e.g., "Pikachu")
        evolution_stage: Stage keyword printed on the card
        card_number: Collector number without leading zeros, or a promo code
            such as "SWSH020"
        total_cards_in_set: Printed set total exactly as read (e.g., "102")
        set_id: Catalog set id, only set directly for promo cards
    """

    name: str | None = None
    evolution_stage: EvolutionStage | None = None
    card_number: str | None = None
    total_cards_in_set: str | None = None
    set_id: str | None = None

    @property
    def is_empty(self) -> bool:
        """True if no field was extracted."""
        return self == CardAttributes()

    def to_dict(self) -> dict[str, Any]:
        """Serialize with "Unknown" in place of missing fields."""
        return {
            "name": self.name or UNKNOWN,
            "evolutionStage": self.evolution_stage.value if self.evolution_stage else UNKNOWN,
            "cardNumber": self.card_number or UNKNOWN,
            "totalCardsInSet": self.total_cards_in_set or UNKNOWN,
            "setId": self.set_id,
        }


@dataclass(frozen=True, slots=True)
class PriceQuote:
    """
    Catalog match and market prices for one card.

    All fields are None when no catalog card matched or the catalog failed.
    selected_price is the first available of cardmarket average,
    tcgplayer normal market, tcgplayer holofoil market.
    """

    name: str | None = None
    number: str | None = None
    set_id: str | None = None
    set_name: str | None = None
    rarity: str | None = None
    subtypes: list[str] = field(default_factory=list)
    cardmarket_price: float | None = None
    tcgplayer_price: float | None = None
    selected_price: float | None = None

    @property
    def matched(self) -> bool:
        """True if a catalog card was selected."""
        return self.name is not None or self.set_id is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "setName": self.set_name,
            "rarity": self.rarity,
            "subtypes": list(self.subtypes),
            "cardmarketPrice": self.cardmarket_price,
            "tcgplayerPrice": self.tcgplayer_price,
            "selectedPrice": self.selected_price,
        }


@dataclass(frozen=True, slots=True)
class CardRecord:
    """
    Final persisted document for one processed card image.

    Written once as <card_id>.json next to <card_id>.jpg. Never updated.
    """

    card_id: str
    attributes: CardAttributes
    price: PriceQuote
    full_text: str
    image_url: str

    def to_dict(self) -> dict[str, Any]:
        """camelCase document returned to clients and written to storage."""
        data: dict[str, Any] = {"cardId": self.card_id}
        data.update(self.attributes.to_dict())
        # The catalog set id is authoritative once a card matched
        if self.price.set_id:
            data["setId"] = self.price.set_id
        # OCR may miss a name the catalog match supplies
        if self.attributes.name is None and self.price.name:
            data["name"] = self.price.name
        data.update(self.price.to_dict())
        data["fullText"] = self.full_text
        data["imageUrl"] = self.image_url
        return data
