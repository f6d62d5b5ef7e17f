"""
Unit tests for the product search ladder, field discovery and retry backoff
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from OrderBridge.clients.http_client import RetryConfig
from OrderBridge.exceptions import InvalidRequestError, SupplierApiError, SupplierConfigurationError
from OrderBridge.models.product_models import ProductModel
from OrderBridge.repositories import ProductRepository, escape_like
from OrderBridge.services.search import (
    FieldDiscoveryCache,
    ProductSearchService,
    SearchCursor,
    SearchStep,
    is_client_error,
    prepare_for_display,
    retry_with_backoff,
)
from OrderBridge.services.search.field_discovery import DESCRIPTION_FIELDS, SKU_FIELDS, match_columns


def add_products(engine, supplier, rows):
    with Session(engine) as session:
        ProductRepository().create_many(session, [ProductModel(supplier=supplier, **row) for row in rows])


class TestProductSearchLadder:
    """Cached steps, cursors and live fallback"""

    @pytest.fixture(autouse=True)
    def setup(self, product_engine):
        self.engine = product_engine
        self.live_supplier = MagicMock()
        self.live_supplier.search_products = AsyncMock(return_value=[])
        self.sleep = AsyncMock()
        self.service = ProductSearchService(
            engine_override=product_engine,
            field_cache=FieldDiscoveryCache(),
            supplier_factory=MagicMock(return_value=self.live_supplier),
            sleep=self.sleep,
        )

    @pytest.mark.asyncio
    async def test_recent_pages_with_cursor(self):
        add_products(self.engine, "ABC", [{"itemnumber": f"SKU-{i:02d}", "description": f"Item {i}"} for i in range(1, 26)])

        first = await self.service.search("ABC", q="", page_size=20)

        assert first.source_step == SearchStep.RECENT
        assert len(first.items) == 20
        assert first.items[0]["itemnumber"] == "SKU-25"
        assert first.next_cursor == SearchCursor(SearchStep.RECENT, 6)

        second = await self.service.search("ABC", q="", page_size=20, cursor=first.next_cursor.to_dict())

        assert [item["id"] for item in second.items] == [5, 4, 3, 2, 1]
        assert second.next_cursor is None
        self.live_supplier.search_products.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_character_query_is_recent(self):
        add_products(self.engine, "ABC", [{"itemnumber": "X1"}, {"itemnumber": "Y2"}])

        page = await self.service.search("abc", q="Y")

        assert page.source_step == SearchStep.RECENT
        assert len(page.items) == 2

    @pytest.mark.asyncio
    async def test_strong_sku_match_skips_fuzzy(self):
        add_products(self.engine, "ABC", [{"itemnumber": f"SKU-{i:02d}"} for i in range(1, 26)])

        page = await self.service.search("ABC", q="sku", page_size=20)

        assert page.source_step == SearchStep.SKU
        assert len(page.items) == 20
        assert page.next_cursor.step == SearchStep.SKU

        rest = await self.service.search("ABC", q="sku", page_size=20, cursor=page.next_cursor.to_dict())
        assert len(rest.items) == 5
        assert rest.source_step == SearchStep.SKU
        assert rest.next_cursor is None

    @pytest.mark.asyncio
    async def test_weak_sku_match_merges_fuzzy_without_duplicates(self):
        add_products(self.engine, "ABC", [
            {"itemnumber": "RIDGE-1", "description": "Ridge cap"},
            {"itemnumber": "HR-9", "description": "Hip and ridge shingle"},
            {"itemnumber": "NL-3", "description": "Roofing nails"},
        ])

        page = await self.service.search("ABC", q="ridge")

        assert page.source_step == SearchStep.SKU_FUZZY
        assert [item["itemnumber"] for item in page.items] == ["RIDGE-1", "HR-9"]
        assert page.next_cursor is None

    @pytest.mark.asyncio
    async def test_merged_page_resumes_in_fuzzy(self):
        add_products(self.engine, "ABC", [{"itemnumber": f"N{i}", "description": f"Felt roll {i}"} for i in range(1, 8)])

        page = await self.service.search("ABC", q="felt", page_size=5)

        assert page.source_step == SearchStep.SKU_FUZZY
        assert len(page.items) == 5
        assert page.next_cursor.step == SearchStep.FUZZY

        rest = await self.service.search("ABC", q="felt", page_size=5, cursor=page.next_cursor.to_dict())
        assert rest.source_step == SearchStep.FUZZY
        assert len(rest.items) == 2

    @pytest.mark.asyncio
    async def test_like_wildcards_match_literally(self):
        add_products(self.engine, "ABC", [{"itemnumber": "50%OFF"}, {"itemnumber": "500"}])

        page = await self.service.search("ABC", q="50%")

        assert [item["itemnumber"] for item in page.items] == ["50%OFF"]

    @pytest.mark.asyncio
    async def test_rows_are_scoped_to_supplier_and_filters(self):
        add_products(self.engine, "ABC", [{"itemnumber": "A-1", "uom": "BX"}, {"itemnumber": "A-2", "uom": "EA"}])
        add_products(self.engine, "SRS", [{"itemcode": "A-3"}])

        page = await self.service.search("ABC", q="", filters={"uom": "BX", "bogus": 1})

        assert [item["itemnumber"] for item in page.items] == ["A-1"]

    @pytest.mark.asyncio
    async def test_live_fallback_when_cache_is_empty(self):
        self.live_supplier.search_products = AsyncMock(return_value=[{"sku": "LIVE-1"}, {"sku": "LIVE-2"}])

        page = await self.service.search("SRS", q="shingle", page_size=10, environment="sandbox")

        assert page.source_step == SearchStep.LIVE_FALLBACK
        assert [item["sku"] for item in page.items] == ["LIVE-1", "LIVE-2"]
        assert page.items[0]["_source"] == "live"
        assert page.next_cursor is None
        assert page.fallback
        assert page.meta["fallback"] is True
        self.live_supplier.search_products.assert_awaited_once_with("sandbox", "shingle", 10)

    @pytest.mark.asyncio
    async def test_empty_live_result_keeps_cached_step(self):
        page = await self.service.search("SRS", q="shingle")

        assert page.source_step == SearchStep.SKU_FUZZY
        assert page.items == []
        assert not page.fallback
        self.live_supplier.search_products.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fuzzy_resume_does_not_repeat_sku_rows(self):
        add_products(self.engine, "ABC", [
            {"itemnumber": "FELT-2" if i == 2 else f"N{i}", "description": f"Felt roll {i}"} for i in range(1, 8)
        ])

        first = await self.service.search("ABC", q="felt", page_size=5)
        second = await self.service.search("ABC", q="felt", page_size=5, cursor=first.next_cursor.to_dict())

        assert [item["id"] for item in first.items] == [2, 7, 6, 5, 4]
        assert [item["id"] for item in second.items] == [3, 1]
        assert second.next_cursor is None

    @pytest.mark.asyncio
    async def test_store_failure_degrades_after_retries(self):
        repository = MagicMock()
        repository.fetch_page.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        service = ProductSearchService(
            engine_override=self.engine,
            repository=repository,
            field_cache=FieldDiscoveryCache(),
            sleep=self.sleep,
        )

        page = await service.search("ABC", q="", page_size=20)

        assert page.fallback
        assert page.source_step == SearchStep.FALLBACK
        assert page.items == []
        assert repository.fetch_page.call_count == 4
        assert [call.args[0] for call in self.sleep.await_args_list] == [0.5, 1.0, 2.0]
        body = page.to_dict()
        assert body["success"] is True
        assert body["meta"]["fallback"] is True
        assert "database is locked" in body["error"]

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        self.live_supplier.search_products = AsyncMock(
            side_effect=SupplierApiError(401, "unauthorized", supplier_name="SRS")
        )

        page = await self.service.search("SRS", q="shingle")

        assert page.fallback
        assert self.live_supplier.search_products.await_count == 1
        self.sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_configuration_error_is_not_retried(self):
        self.live_supplier.search_products = AsyncMock(
            side_effect=SupplierConfigurationError('Environment "x" not found', supplier_name="SRS", environment="x")
        )

        page = await self.service.search("SRS", q="shingle", environment="x")

        assert page.fallback
        assert page.source_step == SearchStep.FALLBACK
        assert self.live_supplier.search_products.await_count == 1
        self.sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_supplier_is_rejected(self):
        with pytest.raises(InvalidRequestError):
            await self.service.search("XYZ", q="shingle")
        with pytest.raises(InvalidRequestError):
            await self.service.search("", q="shingle")

    @pytest.mark.asyncio
    async def test_meta(self):
        page = await self.service.search("BEACON", q="  ice  ", page_size="abc")

        assert page.meta["supplier"] == "BEACON"
        assert page.meta["query"] == "ice"
        assert page.meta["pageSize"] == 20
        assert page.meta["durationMs"] >= 0

    def test_page_size_is_capped(self):
        assert ProductSearchService.coerce_page_size(500, 20) == 100
        assert ProductSearchService.coerce_page_size(0, 20) == 20
        assert ProductSearchService.coerce_page_size("7", 20) == 7


class TestProductRepository:

    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_updated_at_is_timezone_aware(self):
        assert ProductModel(supplier="ABC").updated_at.tzinfo is not None

    def test_sample_row_and_lookup(self, product_engine):
        add_products(product_engine, "SRS", [{"itemcode": "SH-100", "productname": "Shingle"}])
        repository = ProductRepository()

        with Session(product_engine) as session:
            assert repository.sample_row(session, "ABC") is None
            sample = repository.sample_row(session, "SRS")
            assert sample["itemcode"] == "SH-100"
            assert repository.get_by_id(session, sample["id"]).productname == "Shingle"


class TestSearchCursor:

    def test_parse_json_string(self):
        assert SearchCursor.parse('{"step": "fuzzy", "id": 7}') == SearchCursor(SearchStep.FUZZY, 7)

    def test_unusable_cursors_are_ignored(self):
        assert SearchCursor.parse("not json") is None
        assert SearchCursor.parse({"step": "SKU"}) is None
        assert SearchCursor.parse({"step": "LIVE_FALLBACK", "id": 3}) is None
        assert SearchCursor.parse(42) is None


class TestDisplayOrdering:

    def test_live_items_first_and_tags_stripped(self):
        items = [
            {"sku": "C1", "_source": "cached", "_priority": 0},
            {"sku": "L1", "_source": "live", "_priority": 1},
        ]

        assert prepare_for_display(items) == [{"sku": "L1"}, {"sku": "C1"}]


class TestFieldDiscovery:

    def test_match_ignores_case_and_punctuation(self):
        assert match_columns(["itemNumber", "Item_Number"], ["id", "itemnumber"]) == ["itemnumber"]

    def test_description_heuristic(self):
        cache = FieldDiscoveryCache()
        resolved = cache.resolve("SRS", DESCRIPTION_FIELDS, ["longText"], ["id", "product_name", "family", "uom"])
        assert resolved == ["product_name", "family"]

    def test_unresolved_sku_fields_are_empty(self):
        cache = FieldDiscoveryCache()
        assert cache.resolve("ABC", SKU_FIELDS, ["partNo"], ["id", "description"]) == []
        assert cache.get("ABC", SKU_FIELDS, ["partNo"]) == []

    def test_empty_sample_is_not_cached(self):
        cache = FieldDiscoveryCache()
        cache.resolve("ABC", SKU_FIELDS, ["itemnumber"], [])
        assert len(cache) == 0

        cache.resolve("ABC", SKU_FIELDS, ["itemnumber"], ["itemnumber"])
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0


class TestRetryWithBackoff:

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self):
        operation = AsyncMock(side_effect=[RuntimeError("blip"), "ok"])
        sleep = AsyncMock()

        assert await retry_with_backoff(operation, RetryConfig(max_retries=3), sleep=sleep) == "ok"
        sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_delays_are_capped(self):
        operation = AsyncMock(side_effect=RuntimeError("down"))
        sleep = AsyncMock()
        config = RetryConfig(max_retries=5, base_delay=1.0, max_delay=3.0)

        with pytest.raises(RuntimeError):
            await retry_with_backoff(operation, config, sleep=sleep)

        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0, 3.0, 3.0, 3.0]
        assert operation.await_count == 6

    def test_client_error_detection(self):
        assert is_client_error(SupplierApiError(404, "missing"))
        assert is_client_error(InvalidRequestError("bad"))
        assert is_client_error(SupplierConfigurationError("no credentials", supplier_name="ABC"))
        assert not is_client_error(SupplierApiError(503, "down"))
        assert not is_client_error(RuntimeError("boom"))
