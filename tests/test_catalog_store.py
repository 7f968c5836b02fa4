"""Tests for the catalog state machine"""
import asyncio

import httpx
import pytest
from tenacity import wait_none

from storefront.catalog import CatalogClient, CatalogStore, derive_categories
from storefront.errors import ERROR_LOAD_FAILED, NetworkError
from storefront.models import DetailError, FetchStatus


class TestListTransitions:
    """Synchronous list transitions, no I/O."""

    def test_initial_state(self, fake_client):
        store = CatalogStore(fake_client)

        assert store.state.status == FetchStatus.IDLE
        assert store.state.items == ()
        assert store.state.error is None
        assert store.state.product_detail is None
        assert store.state.categories == []

    def test_request_resets_error_and_keeps_items(self, fake_client, red_shirt):
        store = CatalogStore(fake_client)
        store.list_succeeded([red_shirt])
        store.list_failed("boom")

        store.request_list()

        assert store.is_loading
        assert store.state.error is None
        assert store.state.items == (red_shirt,)

    def test_success_replaces_items_and_categories(self, fake_client, catalog_products, red_shirt):
        store = CatalogStore(fake_client)
        store.request_list()
        store.list_succeeded(catalog_products)

        assert store.state.status == FetchStatus.SUCCEEDED
        assert store.state.categories == ["clothing", "accessories", "jewelery", "electronics"]

        store.list_succeeded([red_shirt])
        assert store.state.categories == ["clothing"]

    @pytest.mark.parametrize("message, expected", [("timeout", "timeout"), ("", ERROR_LOAD_FAILED), (None, ERROR_LOAD_FAILED)])
    def test_failure_message(self, fake_client, message, expected):
        store = CatalogStore(fake_client)
        store.request_list()
        store.list_failed(message)

        assert store.state.status == FetchStatus.FAILED
        assert store.state.error == expected

    def test_failure_keeps_previous_items(self, fake_client, red_shirt):
        store = CatalogStore(fake_client)
        store.list_succeeded([red_shirt])
        store.request_list()
        store.list_failed("offline")

        assert store.state.items == (red_shirt,)


def test_categories_first_seen_order(product_factory):
    items = [product_factory(i, category=c) for i, c in enumerate(["a", "b", "a", "c"], start=1)]

    assert derive_categories(items) == ["a", "b", "c"]


class TestDetailTransitions:

    def test_request_clears_detail(self, fake_client, red_shirt):
        store = CatalogStore(fake_client)
        store.detail_succeeded(red_shirt)

        store.request_detail(2)

        assert store.state.product_detail is None
        assert store.detail_loading

    def test_failure_stores_error_placeholder(self, fake_client):
        store = CatalogStore(fake_client)
        seq = store.request_detail(2)
        store.detail_failed("", seq)

        assert store.state.product_detail == DetailError(error=ERROR_LOAD_FAILED)
        assert store.detail_error == ERROR_LOAD_FAILED
        assert not store.detail_loading

    def test_detail_independent_of_list_status(self, fake_client, red_shirt):
        store = CatalogStore(fake_client)
        store.request_list()
        seq = store.request_detail(1)
        store.detail_succeeded(red_shirt, seq)

        assert store.state.status == FetchStatus.LOADING
        assert store.state.product_detail == red_shirt

    def test_out_of_order_responses_last_wins_by_default(self, fake_client, product_factory):
        store = CatalogStore(fake_client)
        seven = product_factory(7, "Seven")
        nine = product_factory(9, "Nine")

        seq7 = store.request_detail(7)
        seq9 = store.request_detail(9)
        store.detail_succeeded(nine, seq9)
        store.detail_succeeded(seven, seq7)

        assert store.state.product_detail == seven

    def test_stale_responses_discarded_when_enabled(self, fake_client, product_factory):
        store = CatalogStore(fake_client, discard_stale_details=True)
        seven = product_factory(7, "Seven")
        nine = product_factory(9, "Nine")

        seq7 = store.request_detail(7)
        seq9 = store.request_detail(9)
        assert store.detail_succeeded(nine, seq9) is True
        assert store.detail_succeeded(seven, seq7) is False
        assert store.detail_failed("late failure", seq7) is False

        assert store.state.product_detail == nine


class TestAsyncLoaders:

    @pytest.mark.asyncio
    async def test_fetch_products_success(self, fake_client, catalog_products):
        store = CatalogStore(fake_client)
        statuses = []
        store.subscribe(lambda state: statuses.append(state.status))

        state = await store.fetch_products()

        assert statuses == [FetchStatus.LOADING, FetchStatus.SUCCEEDED]
        assert state.items == tuple(catalog_products)
        assert state.error is None

    @pytest.mark.asyncio
    async def test_fetch_products_failure_never_raises(self, fake_client):
        fake_client.list_error = "Network Error"
        store = CatalogStore(fake_client)

        state = await store.fetch_products()

        assert state.status == FetchStatus.FAILED
        assert state.error == "Network Error"

    @pytest.mark.asyncio
    async def test_refetch_after_failure(self, fake_client, catalog_products):
        fake_client.list_error = "offline"
        store = CatalogStore(fake_client)
        await store.fetch_products()

        fake_client.list_error = None
        state = await store.fetch_products()

        assert state.status == FetchStatus.SUCCEEDED
        assert state.error is None
        assert len(state.items) == len(catalog_products)

    @pytest.mark.asyncio
    async def test_retry_is_opt_in(self, fake_client):
        fake_client.list_error = "offline"
        store = CatalogStore(fake_client)
        await store.fetch_products()

        assert fake_client.list_calls == 1

    @pytest.mark.asyncio
    async def test_retry_recovers(self, fake_client, catalog_products):
        class FlakyClient(type(fake_client)):
            async def fetch_list(self):
                self.list_calls += 1
                if self.list_calls < 3:
                    raise NetworkError("flaky")
                return list(self.products.values())

        client = FlakyClient(catalog_products)
        store = CatalogStore(client, fetch_attempts=3, retry_wait=wait_none())

        state = await store.fetch_products()

        assert client.list_calls == 3
        assert state.status == FetchStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_retry_gives_up(self, fake_client):
        fake_client.list_error = "down"
        store = CatalogStore(fake_client, fetch_attempts=2, retry_wait=wait_none())

        state = await store.fetch_products()

        assert fake_client.list_calls == 2
        assert state.status == FetchStatus.FAILED
        assert state.error == "down"

    @pytest.mark.asyncio
    async def test_fetch_product_by_id(self, fake_client, red_shirt):
        store = CatalogStore(fake_client)

        detail = await store.fetch_product_by_id(1)

        assert detail == red_shirt
        assert fake_client.detail_calls == [1]

    @pytest.mark.asyncio
    async def test_fetch_product_by_id_not_found(self, fake_client):
        store = CatalogStore(fake_client)

        detail = await store.fetch_product_by_id(404)

        assert isinstance(detail, DetailError)
        assert "404" in detail.error


class _GatedClient:
    """Client whose detail responses are released manually, in any order."""

    def __init__(self, products):
        self.products = {str(p.id): p for p in products}
        self.gates = {}

    async def fetch_list(self):
        return list(self.products.values())

    async def fetch_by_id(self, product_id):
        gate = self.gates.setdefault(str(product_id), asyncio.Event())
        await gate.wait()
        return self.products[str(product_id)]


@pytest.mark.asyncio
@pytest.mark.parametrize("discard_stale, expected_id", [(False, 7), (True, 9)])
async def test_concurrent_detail_requests(product_factory, discard_stale, expected_id):
    client = _GatedClient([product_factory(7, "Seven"), product_factory(9, "Nine")])
    store = CatalogStore(client, discard_stale_details=discard_stale)
    client.gates["7"] = asyncio.Event()
    client.gates["9"] = asyncio.Event()

    first = asyncio.create_task(store.fetch_product_by_id(7))
    second = asyncio.create_task(store.fetch_product_by_id(9))
    await asyncio.sleep(0)

    # id=9 answers first, then the superseded id=7 request completes
    client.gates["9"].set()
    await second
    client.gates["7"].set()
    await first

    assert store.state.product_detail.id == expected_id


@pytest.mark.asyncio
async def test_bad_catalog_url_ends_in_failed_state():
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.InvalidURL("Invalid port: '99999'")

    transport = httpx.MockTransport(handler)
    client = CatalogClient("https://catalog.test:99999", http_client=httpx.AsyncClient(transport=transport))
    store = CatalogStore(client)

    state = await store.fetch_products()
    detail = await store.fetch_product_by_id(1)
    await client.aclose()

    assert state.status == FetchStatus.FAILED
    assert state.error
    assert isinstance(detail, DetailError)
