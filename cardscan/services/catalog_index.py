"""
Catalog index: printed set total to catalog set id.

Cards print their collector stamp as "<number>/<total>". The total is the
only set signal a photo reliably carries, so the index maps it back to a
catalog set id for the price query.

INVARIANTS:
- lookup() never raises; absence is an expected answer
- The table is an immutable snapshot swapped in one assignment, readers
  never lock
- A failed refresh keeps the previous snapshot (seed table on first start)
- One set id per total, last write wins during a rebuild
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from cardscan.models.failure import CollaboratorUnavailableError
from cardscan.services.catalog_client import PokemonTcgClient, get_catalog_client

logger = logging.getLogger(__name__)

# High-traffic sets, used until the first successful refresh.
# Several sets share a printed total; the most requested one is kept.
SEED_SET_TOTALS: Mapping[str, str] = MappingProxyType(
    {
        "102": "base1",
        "64": "base2",
        "62": "base3",
        "82": "base5",
        "202": "swsh1",
        "192": "swsh2",
        "189": "swsh3",
        "185": "swsh4",
        "163": "swsh5",
        "203": "swsh7",
        "264": "swsh8",
        "172": "swsh9",
        "196": "swsh11",
        "195": "swsh12",
        "159": "swsh12pt5",
        "198": "sv1",
        "193": "sv2",
        "197": "sv3",
        "165": "sv3pt5",
        "182": "sv4",
        "162": "sv5",
        "167": "sv6",
    }
)


def _normalize_total(total: str | int | None) -> str | None:
    """Canonical key for a printed total: "098" and 98 both become "98"."""
    if total is None:
        return None
    try:
        value = int(str(total).strip())
    except ValueError:
        return None
    return str(value) if value > 0 else None


def _set_total(card_set: Mapping[str, Any]) -> int | None:
    """Printed total of a catalog set, falling back to the full total."""
    for key in ("printedTotal", "total"):
        value = card_set.get(key)
        if isinstance(value, int) and value > 0:
            return value
    return None


def build_total_index(
    sets: Iterable[Mapping[str, Any]],
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Build a total -> set id table from catalog set objects.

    Args:
        sets: Set objects from the catalog /sets endpoint
        base: Entries to start from (overwritten by fetched sets)

    Returns:
        New dict mapping normalized printed totals to set ids.
        Sets without an id or a positive total are skipped.
    """
    table: dict[str, str] = dict(base or {})
    for card_set in sets:
        set_id = card_set.get("id")
        total = _set_total(card_set)
        if not set_id or total is None:
            continue
        table[str(total)] = str(set_id)
    return table


@dataclass(frozen=True, slots=True)
class IndexStatus:
    """Point-in-time view of the index for readiness checks."""

    indexed_sets: int
    seed_only: bool
    last_refreshed: datetime | None


class CatalogIndex:
    """
    Process-wide printed total -> set id lookup with background refresh.

    Usage:
        index = CatalogIndex(client)
        index.lookup("203")   # "swsh7" from the seed table
        await index.refresh()  # rebuild from the catalog
    """

    def __init__(
        self,
        client: PokemonTcgClient | None = None,
        seed: Mapping[str, str] = SEED_SET_TOTALS,
    ) -> None:
        self._client = client
        self._seed = MappingProxyType(
            {k: v for k, v in ((_normalize_total(t), s) for t, s in seed.items()) if k}
        )
        self._snapshot: Mapping[str, str] = self._seed
        self._last_refreshed: datetime | None = None

    @property
    def client(self) -> PokemonTcgClient:
        if self._client is None:
            self._client = get_catalog_client()
        return self._client

    def lookup(self, total: str | int | None) -> str | None:
        """
        Find the set id for a printed set total.

        Args:
            total: Printed total as read from the card (e.g., "203", "098")

        Returns:
            Set id, or None if the total is unknown or not a number
        """
        key = _normalize_total(total)
        if key is None:
            return None
        return self._snapshot.get(key)

    def snapshot(self) -> Mapping[str, str]:
        """Current table. Read-only; replaced wholesale on refresh."""
        return self._snapshot

    def status(self) -> IndexStatus:
        return IndexStatus(
            indexed_sets=len(self._snapshot),
            seed_only=self._last_refreshed is None,
            last_refreshed=self._last_refreshed,
        )

    async def refresh(self) -> bool:
        """
        Rebuild the table from the catalog's full set list.

        Returns:
            True if the snapshot was replaced, False if the fetch failed and
            the previous snapshot was kept
        """
        try:
            sets = await self.client.list_sets()
        except CollaboratorUnavailableError as e:
            logger.warning(
                "CATALOG_INDEX_REFRESH_FAILED",
                extra={"detail": e.detail, "kept_entries": len(self._snapshot)},
            )
            return False

        table = build_total_index(sets, base=self._seed)
        self._snapshot = MappingProxyType(table)
        self._last_refreshed = datetime.now(UTC)

        logger.info(
            "CATALOG_INDEX_REFRESHED",
            extra={"sets_fetched": len(sets), "indexed_totals": len(table)},
        )
        return True

    async def run_forever(self, interval_seconds: float) -> None:
        """
        Refresh now, then every interval_seconds until cancelled.

        Intended to run as a background task; never raises on fetch failure.
        """
        while True:
            await self.refresh()
            await asyncio.sleep(interval_seconds)


# Default index instance
_index: CatalogIndex | None = None


def get_catalog_index() -> CatalogIndex:
    """
    Get the process-wide catalog index.

    Returns:
        Singleton CatalogIndex instance
    """
    global _index
    if _index is None:
        _index = CatalogIndex()
    return _index


def reset_catalog_index() -> None:
    """Drop the process-wide index (tests only)."""
    global _index
    _index = None
