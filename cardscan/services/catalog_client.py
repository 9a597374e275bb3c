"""
Pokemon TCG catalog client.

Thin async wrapper over the pokemontcg.io v2 API used for card search
(pricing) and the full set list (catalog index).

API docs: https://docs.pokemontcg.io/
"""

import asyncio
import logging
from typing import Any

import httpx

from cardscan.config import settings
from cardscan.models.failure import CollaboratorUnavailableError

logger = logging.getLogger(__name__)

SETS_PAGE_SIZE = 250
CARDS_PAGE_SIZE = 25

# Statuses worth retrying. Anything else is a permanent failure.
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class PokemonTcgClient:
    """
    Client for the Pokemon TCG catalog API.

    Every request is bounded by a timeout and retried with exponential
    backoff on transport errors, 429 and 5xx. Exhausted or permanent
    failures raise CollaboratorUnavailableError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        """
        Initialize the catalog client.

        Args:
            base_url: API base URL. Defaults to settings.pokemon_tcg_api_url.
            api_key: Sent as X-Api-Key when non-empty.
            timeout: Request timeout in seconds.
            max_retries: Retries after the first attempt.
            backoff_seconds: Delay before the first retry, doubled each time.
        """
        self.base_url = (base_url or settings.pokemon_tcg_api_url).rstrip("/")
        self.api_key = settings.pokemon_tcg_api_key if api_key is None else api_key
        self.timeout = settings.http_timeout_seconds if timeout is None else timeout
        self.max_retries = settings.catalog_max_retries if max_retries is None else max_retries
        self.backoff_seconds = (
            settings.catalog_backoff_seconds if backoff_seconds is None else backoff_seconds
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": "CardScan/1.0"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        return headers

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        path: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """GET a catalog endpoint with retry, returning the decoded JSON body."""
        url = f"{self.base_url}{path}"
        attempt = 0

        while True:
            try:
                response = await client.get(url, params=params, headers=self._headers())
            except httpx.TransportError as e:
                problem = f"{type(e).__name__}: {e}"
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                # Decoding, redirect and URL errors will not improve on retry
                raise CollaboratorUnavailableError(
                    "catalog", f"GET {path} failed: {type(e).__name__}: {e}"
                ) from e
            else:
                if response.status_code not in RETRYABLE_STATUSES:
                    break
                problem = f"HTTP {response.status_code}"

            if attempt >= self.max_retries:
                raise CollaboratorUnavailableError(
                    "catalog", f"GET {path} failed after {attempt + 1} attempts: {problem}"
                )

            delay = self.backoff_seconds * (2**attempt)
            logger.warning(
                "CATALOG_RETRY",
                extra={"path": path, "attempt": attempt + 1, "problem": problem},
            )
            attempt += 1
            await asyncio.sleep(delay)

        if not response.is_success:
            raise CollaboratorUnavailableError(
                "catalog", f"GET {path} returned HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CollaboratorUnavailableError("catalog", f"Invalid JSON from {path}") from e

        if not isinstance(data, dict):
            raise CollaboratorUnavailableError("catalog", f"Unexpected response shape from {path}")

        return data

    async def search_cards(self, query: str) -> list[dict[str, Any]]:
        """
        Search cards with a Lucene-style query.

        Args:
            query: Space-joined field clauses, e.g. 'number:25 set.id:swsh7'

        Returns:
            Matching cards in catalog order (first page only)

        Raises:
            CollaboratorUnavailableError: If the catalog cannot be reached
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            data = await self._get_json(
                client, "/cards", {"q": query, "pageSize": CARDS_PAGE_SIZE}
            )

        cards = data.get("data", [])
        if not isinstance(cards, list):
            raise CollaboratorUnavailableError("catalog", "Card search 'data' is not a list")
        return [card for card in cards if isinstance(card, dict)]

    async def list_sets(self) -> list[dict[str, Any]]:
        """
        Fetch every set in the catalog, following pagination.

        Returns:
            All set objects

        Raises:
            CollaboratorUnavailableError: If any page cannot be fetched
        """
        sets: list[dict[str, Any]] = []
        page = 1

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                data = await self._get_json(
                    client, "/sets", {"page": page, "pageSize": SETS_PAGE_SIZE}
                )
                batch = data.get("data", [])
                if not isinstance(batch, list):
                    raise CollaboratorUnavailableError("catalog", "Set list 'data' is not a list")
                sets.extend(s for s in batch if isinstance(s, dict))

                total_count = data.get("totalCount")
                if not batch or not isinstance(total_count, int) or len(sets) >= total_count:
                    break
                page += 1

        return sets


# Default client instance
_client: PokemonTcgClient | None = None


def get_catalog_client() -> PokemonTcgClient:
    """
    Get the default catalog client instance.

    Returns:
        Singleton PokemonTcgClient instance
    """
    global _client
    if _client is None:
        _client = PokemonTcgClient()
    return _client
