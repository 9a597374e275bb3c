"""Tests for the Pokemon TCG catalog client."""

import httpx
import pytest
import respx

from cardscan.models.failure import CollaboratorUnavailableError
from cardscan.services.catalog_client import PokemonTcgClient, get_catalog_client

BASE_URL = "https://catalog.example.com/v2"


@pytest.fixture
def client() -> PokemonTcgClient:
    return PokemonTcgClient(
        base_url=BASE_URL,
        api_key="test-key",
        timeout=5.0,
        max_retries=2,
        backoff_seconds=0.0,
    )


class TestClientInit:
    def test_defaults_from_settings(self) -> None:
        """Client uses settings URL by default."""
        client = PokemonTcgClient()

        assert client.base_url == "https://api.pokemontcg.io/v2"

    def test_strips_trailing_slash(self) -> None:
        """Trailing slash on the base URL is ignored."""
        assert PokemonTcgClient(base_url=f"{BASE_URL}/").base_url == BASE_URL

    def test_singleton(self) -> None:
        """Default client is shared."""
        assert get_catalog_client() is get_catalog_client()


class TestSearchCards:
    @respx.mock
    async def test_returns_cards(self, client: PokemonTcgClient, sample_card: dict) -> None:
        """Cards from the 'data' array are returned."""
        route = respx.get(host="catalog.example.com", path="/v2/cards").mock(
            return_value=httpx.Response(200, json={"data": [sample_card], "totalCount": 1})
        )

        cards = await client.search_cards("number:58 set.id:base1")

        assert cards == [sample_card]
        request = route.calls.last.request
        assert request.url.params["q"] == "number:58 set.id:base1"
        assert request.headers["X-Api-Key"] == "test-key"

    @respx.mock
    async def test_no_api_key_header_when_unset(self, sample_card: dict) -> None:
        """Anonymous access sends no X-Api-Key header."""
        client = PokemonTcgClient(base_url=BASE_URL, api_key="")
        route = respx.get(host="catalog.example.com", path="/v2/cards").mock(
            return_value=httpx.Response(200, json={"data": []})
        )

        await client.search_cards("name:Pikachu")

        assert "X-Api-Key" not in route.calls.last.request.headers

    @respx.mock
    async def test_empty_result(self, client: PokemonTcgClient) -> None:
        """No matches is an empty list, not an error."""
        respx.get(host="catalog.example.com", path="/v2/cards").mock(
            return_value=httpx.Response(200, json={"data": [], "totalCount": 0})
        )

        assert await client.search_cards("number:999") == []

    @respx.mock
    async def test_retries_server_errors(self, client: PokemonTcgClient, sample_card: dict) -> None:
        """5xx responses are retried."""
        route = respx.get(host="catalog.example.com", path="/v2/cards").mock(
            side_effect=[
                httpx.Response(503),
                httpx.Response(200, json={"data": [sample_card]}),
            ]
        )

        cards = await client.search_cards("number:58")

        assert cards == [sample_card]
        assert route.call_count == 2

    @respx.mock
    async def test_retries_transport_errors(
        self, client: PokemonTcgClient, sample_card: dict
    ) -> None:
        """Connection errors are retried."""
        route = respx.get(host="catalog.example.com", path="/v2/cards").mock(
            side_effect=[
                httpx.ConnectError("connection refused"),
                httpx.Response(200, json={"data": [sample_card]}),
            ]
        )

        assert await client.search_cards("number:58") == [sample_card]
        assert route.call_count == 2

    @respx.mock
    async def test_gives_up_after_max_retries(self, client: PokemonTcgClient) -> None:
        """Exhausted retries raise CollaboratorUnavailableError."""
        route = respx.get(host="catalog.example.com", path="/v2/cards").mock(
            return_value=httpx.Response(500)
        )

        with pytest.raises(CollaboratorUnavailableError) as exc_info:
            await client.search_cards("number:58")

        assert route.call_count == 3
        assert exc_info.value.collaborator == "catalog"
        assert exc_info.value.status_code == 500

    @respx.mock
    async def test_client_errors_not_retried(self, client: PokemonTcgClient) -> None:
        """4xx (other than 429) fail immediately."""
        route = respx.get(host="catalog.example.com", path="/v2/cards").mock(
            return_value=httpx.Response(403, json={"error": "forbidden"})
        )

        with pytest.raises(CollaboratorUnavailableError, match="catalog"):
            await client.search_cards("number:58")

        assert route.call_count == 1

    @respx.mock
    @pytest.mark.parametrize(
        "error",
        [httpx.DecodingError("bad gzip"), httpx.TooManyRedirects("redirect loop")],
    )
    async def test_non_transport_errors_not_retried(
        self, client: PokemonTcgClient, error: Exception
    ) -> None:
        """Decoding and redirect errors fail once as CollaboratorUnavailableError."""
        route = respx.get(host="catalog.example.com", path="/v2/cards").mock(side_effect=error)

        with pytest.raises(CollaboratorUnavailableError) as exc_info:
            await client.search_cards("number:58")

        assert route.call_count == 1
        assert exc_info.value.collaborator == "catalog"

    @respx.mock
    async def test_invalid_json(self, client: PokemonTcgClient) -> None:
        """A non-JSON body is a collaborator failure."""
        respx.get(host="catalog.example.com", path="/v2/cards").mock(
            return_value=httpx.Response(200, text="<html>oops</html>")
        )

        with pytest.raises(CollaboratorUnavailableError):
            await client.search_cards("number:58")

    @respx.mock
    async def test_unexpected_shape(self, client: PokemonTcgClient) -> None:
        """A 'data' value that is not a list is a collaborator failure."""
        respx.get(host="catalog.example.com", path="/v2/cards").mock(
            return_value=httpx.Response(200, json={"data": {"oops": True}})
        )

        with pytest.raises(CollaboratorUnavailableError):
            await client.search_cards("number:58")


class TestListSets:
    @respx.mock
    async def test_follows_pagination(self, client: PokemonTcgClient) -> None:
        """All pages are fetched until totalCount is reached."""
        route = respx.get(host="catalog.example.com", path="/v2/sets").mock(
            side_effect=[
                httpx.Response(200, json={"data": [{"id": "a"}, {"id": "b"}], "totalCount": 3}),
                httpx.Response(200, json={"data": [{"id": "c"}], "totalCount": 3}),
            ]
        )

        sets = await client.list_sets()

        assert [s["id"] for s in sets] == ["a", "b", "c"]
        assert route.call_count == 2
        assert route.calls[1].request.url.params["page"] == "2"

    @respx.mock
    async def test_single_page(self, client: PokemonTcgClient) -> None:
        """One page is enough when it holds every set."""
        route = respx.get(host="catalog.example.com", path="/v2/sets").mock(
            return_value=httpx.Response(200, json={"data": [{"id": "a"}], "totalCount": 1})
        )

        assert await client.list_sets() == [{"id": "a"}]
        assert route.call_count == 1

    @respx.mock
    async def test_failure_raises(self, client: PokemonTcgClient) -> None:
        """Set list failures surface as CollaboratorUnavailableError."""
        respx.get(host="catalog.example.com", path="/v2/sets").mock(
            return_value=httpx.Response(502)
        )

        with pytest.raises(CollaboratorUnavailableError):
            await client.list_sets()
