"""
Price resolution against the Pokemon TCG catalog.

Builds the most specific catalog query the extracted attributes allow,
relaxes it to a name-only query when nothing matches, then picks one card
and derives its market price.

Query precedence (strongest signal first):
1. number:<n> when a collector number was read
2. set.id:<id> from a promo code, else from the Catalog Index by set total
3. name:"<name>" unless number AND set are both present (OCR names are less
   reliable than printed numbers)

INVARIANT: resolve() always returns a PriceQuote and never raises.
Catalog failures degrade to an all-None quote.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from cardscan.config import PRICE_TOTAL_TOLERANCE
from cardscan.models.card import CardAttributes, PriceQuote
from cardscan.models.failure import CollaboratorUnavailableError
from cardscan.services.catalog_client import PokemonTcgClient
from cardscan.services.catalog_index import CatalogIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CatalogQuery:
    """A composed catalog query and the hints used to choose among results."""

    query: str
    set_id: str | None
    hinted_total: int | None

    @property
    def is_empty(self) -> bool:
        return not self.query


def _name_clause(name: str) -> str:
    escaped = name.replace('"', "")
    return f'name:"{escaped}"'


def _as_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def _nested(data: dict[str, Any], *keys: str) -> Any:
    """Walk nested dicts, returning None at the first missing key."""
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def derive_prices(card: dict[str, Any]) -> tuple[float | None, float | None, float | None]:
    """
    Read market prices from a catalog card.

    Args:
        card: Card object from the catalog

    Returns:
        Tuple of (cardmarket_price, tcgplayer_price, selected_price).
        selected_price is cardmarket average, else tcgplayer normal market,
        else tcgplayer holofoil market.
    """
    cardmarket = _as_float(_nested(card, "cardmarket", "prices", "averageSellPrice"))
    tcg_normal = _as_float(_nested(card, "tcgplayer", "prices", "normal", "market"))
    tcg_holo = _as_float(_nested(card, "tcgplayer", "prices", "holofoil", "market"))

    tcgplayer = tcg_normal if tcg_normal is not None else tcg_holo

    selected = next(
        (price for price in (cardmarket, tcg_normal, tcg_holo) if price is not None),
        None,
    )
    return cardmarket, tcgplayer, selected


def quote_from_card(card: dict[str, Any]) -> PriceQuote:
    """Convert a catalog card object into a PriceQuote."""
    cardmarket, tcgplayer, selected = derive_prices(card)
    card_set = card.get("set") if isinstance(card.get("set"), dict) else {}
    subtypes = card.get("subtypes")

    return PriceQuote(
        name=_as_str(card.get("name")),
        number=_as_str(card.get("number")),
        set_id=_as_str(card_set.get("id")),
        set_name=_as_str(card_set.get("name")),
        rarity=_as_str(card.get("rarity")),
        subtypes=[str(s) for s in subtypes] if isinstance(subtypes, list) else [],
        cardmarket_price=cardmarket,
        tcgplayer_price=tcgplayer,
        selected_price=selected,
    )


def select_candidate(
    cards: Sequence[dict[str, Any]],
    hinted_total: int | None,
    tolerance: int = PRICE_TOTAL_TOLERANCE,
) -> dict[str, Any] | None:
    """
    Pick one card from catalog results.

    With a set-total hint, the first card whose set printed total is within
    tolerance of the hint wins. Otherwise (or if none is close) the first
    card wins.

    Args:
        cards: Catalog results in response order
        hinted_total: Set total read off the card, if it had no set mapping
        tolerance: Allowed distance between hinted and catalog totals

    Returns:
        Selected card, or None if there are no cards
    """
    if not cards:
        return None

    if hinted_total is not None and len(cards) > 1:
        for card in cards:
            card_set = card.get("set") if isinstance(card.get("set"), dict) else {}
            total = _as_int(card_set.get("printedTotal")) or _as_int(card_set.get("total"))
            if total is not None and abs(total - hinted_total) <= tolerance:
                return card

    return cards[0]


class PriceResolver:
    """
    Resolves extracted card attributes to a catalog card and market price.

    Usage:
        resolver = PriceResolver(client, index)
        quote = await resolver.resolve(attributes)
    """

    def __init__(
        self,
        client: PokemonTcgClient,
        index: CatalogIndex,
        total_tolerance: int = PRICE_TOTAL_TOLERANCE,
    ) -> None:
        self._client = client
        self._index = index
        self._total_tolerance = total_tolerance

    def build_query(self, attributes: CardAttributes) -> CatalogQuery:
        """
        Compose the most specific query the attributes support.

        Args:
            attributes: Extracted card attributes

        Returns:
            CatalogQuery; query is empty when nothing usable was extracted
        """
        clauses: list[str] = []

        if attributes.card_number:
            clauses.append(f"number:{attributes.card_number}")

        set_id = attributes.set_id or self._index.lookup(attributes.total_cards_in_set)
        if set_id:
            clauses.append(f"set.id:{set_id}")

        if attributes.name and not (attributes.card_number and set_id):
            clauses.append(_name_clause(attributes.name))

        # The total only steers selection when it did not resolve to a set
        hinted_total = None if set_id else _as_int(attributes.total_cards_in_set)

        return CatalogQuery(
            query=" ".join(clauses),
            set_id=set_id,
            hinted_total=hinted_total,
        )

    async def resolve(self, attributes: CardAttributes) -> PriceQuote:
        """
        Find a catalog card and its price for the given attributes.

        Args:
            attributes: Extracted card attributes

        Returns:
            PriceQuote for the selected card, or an all-None PriceQuote if
            nothing matched or the catalog failed
        """
        plan = self.build_query(attributes)
        if plan.is_empty:
            logger.info("PRICE_LOOKUP_SKIPPED", extra={"reason": "no usable attributes"})
            return PriceQuote()

        query = plan.query
        try:
            cards = await self._client.search_cards(query)

            if not cards and attributes.name:
                fallback = _name_clause(attributes.name)
                if fallback != query:
                    logger.info(
                        "PRICE_LOOKUP_FALLBACK",
                        extra={"query": query, "fallback_query": fallback},
                    )
                    query = fallback
                    cards = await self._client.search_cards(query)
        except CollaboratorUnavailableError as e:
            logger.warning(
                "PRICE_LOOKUP_FAILED",
                extra={"query": query, "detail": e.detail},
            )
            return PriceQuote()

        card = select_candidate(cards, plan.hinted_total, self._total_tolerance)
        if card is None:
            logger.info("PRICE_LOOKUP_NO_MATCH", extra={"query": query})
            return PriceQuote()

        quote = quote_from_card(card)
        logger.info(
            "PRICE_LOOKUP_MATCHED",
            extra={
                "query": query,
                "candidates": len(cards),
                "card_name": quote.name,
                "set_id": quote.set_id,
                "selected_price": quote.selected_price,
            },
        )
        return quote
