"""
Product Search Ladder

Tiered query planner over the cached product index:

    cursor given      -> resume that step (RECENT, SKU or FUZZY)
    query < 2 chars   -> RECENT (newest rows, no text filter)
    query present     -> SKU prefix, merged with FUZZY unless SKU is a strong match
    zero cached rows  -> LIVE_FALLBACK (authenticate + live supplier search),
                         kept only when the live search returns items

The whole ladder runs inside retry_with_backoff. When retries are exhausted
the caller gets an empty page tagged ``fallback`` instead of an error. Live
pages are tagged ``fallback`` as well.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from OrderBridge.clients.http_client import RetryConfig
from OrderBridge.config.suppliers import get_search_config
from OrderBridge.exceptions import InvalidRequestError, SearchDegradation, log_exception
from OrderBridge.repositories.product_repository import ProductRepository, escape_like
from OrderBridge.services.base_service import BaseService
from OrderBridge.suppliers import SupplierKey, SupplierRegistry
from .field_discovery import DESCRIPTION_FIELDS, SKU_FIELDS, FieldDiscoveryCache, get_field_discovery_cache
from .retry import SEARCH_RETRY_CONFIG, retry_with_backoff

MAX_PAGE_SIZE = 100
MIN_QUERY_LENGTH = 2
STRONG_MATCH_LIMIT = 20

SOURCE_TAG = "_source"
PRIORITY_TAG = "_priority"
CACHED_SOURCE = "cached"
LIVE_SOURCE = "live"
CACHED_PRIORITY = 0
LIVE_PRIORITY = 1


class SearchStep(str, Enum):
    RECENT = "RECENT"
    SKU = "SKU"
    FUZZY = "FUZZY"
    SKU_FUZZY = "SKU+FUZZY"
    LIVE_FALLBACK = "LIVE_FALLBACK"
    FALLBACK = "FALLBACK"


# Steps a cursor may resume
CURSOR_STEPS = (SearchStep.RECENT, SearchStep.SKU, SearchStep.FUZZY)


@dataclass(frozen=True)
class SearchCursor:
    """Continuation token: the step to resume and the last row key already returned"""
    step: SearchStep
    id: Any

    @classmethod
    def parse(cls, value: Any) -> Optional["SearchCursor"]:
        """Accept a cursor object or its JSON string; anything unusable means no cursor"""
        if value is None or value == "":
            return None
        if isinstance(value, SearchCursor):
            return value
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return None
        if not isinstance(value, dict):
            return None

        try:
            step = SearchStep(str(value.get("step", "")).upper())
        except ValueError:
            return None
        if step not in CURSOR_STEPS or value.get("id") is None:
            return None
        return cls(step=step, id=value["id"])

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step.value, "id": self.id}


@dataclass
class SearchPage:
    items: List[Dict[str, Any]]
    source_step: SearchStep
    next_cursor: Optional[SearchCursor] = None
    fallback: bool = False
    meta: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "success": True,
            "items": self.items,
            "nextCursor": self.next_cursor.to_dict() if self.next_cursor else None,
            "sourceStep": self.source_step.value,
            "fallback": self.fallback,
            "meta": self.meta,
        }
        if self.error:
            body["error"] = self.error
        return body


def prepare_for_display(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort by priority (live first) and strip the provenance tags"""
    ordered = sorted(items, key=lambda item: item.get(PRIORITY_TAG, CACHED_PRIORITY), reverse=True)
    return [
        {key: value for key, value in item.items() if key not in (SOURCE_TAG, PRIORITY_TAG)}
        for item in ordered
    ]


def _tag(row: Dict[str, Any], source: str, priority: int) -> Dict[str, Any]:
    item = {
        key: value.isoformat() if isinstance(value, datetime) else value
        for key, value in row.items()
    }
    item[SOURCE_TAG] = source
    item[PRIORITY_TAG] = priority
    return item


class ProductSearchService(BaseService):
    """
    Runs the search ladder for one supplier's cached catalog.

    Collaborators are injectable: the repository and field cache for the
    product store, the supplier factory for live fallback, and the retry
    config and sleep function so tests don't wait on backoff.
    """

    def __init__(
        self,
        engine_override=None,
        repository: Optional[ProductRepository] = None,
        field_cache: Optional[FieldDiscoveryCache] = None,
        supplier_factory: Optional[Callable[[SupplierKey], Any]] = None,
        retry_config: Optional[RetryConfig] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        super().__init__(engine_override)
        self.repository = repository or ProductRepository()
        self.field_cache = field_cache or get_field_discovery_cache()
        self.supplier_factory = supplier_factory or SupplierRegistry.get_supplier
        self.retry_config = retry_config or SEARCH_RETRY_CONFIG
        self._sleep = sleep

    # ========== Request hygiene ==========

    @staticmethod
    def validate_supplier(supplier: Any) -> SupplierKey:
        key = SupplierKey.parse(supplier)
        if key is None:
            if not supplier:
                raise InvalidRequestError("Missing supplier", parameter="supplier")
            raise InvalidRequestError(f"Unsupported supplier: {supplier}", parameter="supplier", value=supplier)
        return key

    @staticmethod
    def coerce_page_size(page_size: Any, default: int) -> int:
        try:
            size = int(page_size)
        except (TypeError, ValueError):
            return min(default, MAX_PAGE_SIZE)
        if size <= 0:
            return min(default, MAX_PAGE_SIZE)
        return min(size, MAX_PAGE_SIZE)

    # ========== Entry point ==========

    async def search(
        self,
        supplier: Any,
        q: Optional[str] = None,
        page_size: Any = None,
        cursor: Any = None,
        filters: Optional[Dict[str, Any]] = None,
        environment: Optional[str] = None,
    ) -> SearchPage:
        """
        Run the ladder. Only an invalid supplier raises (InvalidRequestError);
        every operational failure comes back as a fallback page.
        """
        started = time.perf_counter()
        key = self.validate_supplier(supplier)
        search_config = get_search_config(key.value)

        query = (q or "").strip()
        size = self.coerce_page_size(page_size, search_config.get("page_size", 20))
        parsed_cursor = SearchCursor.parse(cursor)
        filters = filters if isinstance(filters, dict) else {}

        async def run_ladder() -> SearchPage:
            return await self._run_ladder(key, search_config, query, size, parsed_cursor, filters, environment)

        retry_kwargs = {"sleep": self._sleep} if self._sleep else {}
        try:
            page = await retry_with_backoff(
                run_ladder, self.retry_config, description=f"{key.value} product search", **retry_kwargs
            )
        except Exception as e:
            degradation = SearchDegradation(
                f"Search degraded to fallback: {e}", supplier_name=key.value, step=SearchStep.FALLBACK.value
            )
            log_exception(degradation, context="ProductSearchService.search")
            page = SearchPage(items=[], source_step=SearchStep.FALLBACK, fallback=True, error=str(e))

        page.meta = {
            "supplier": key.value,
            "query": query,
            "pageSize": size,
            "durationMs": round((time.perf_counter() - started) * 1000, 2),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "fallback": page.fallback,
        }
        self.logger.info(
            f"{key.value} search '{query}' -> {len(page.items)} items via {page.source_step.value}"
        )
        return page

    async def _run_ladder(
        self,
        key: SupplierKey,
        search_config: Dict[str, Any],
        query: str,
        size: int,
        cursor: Optional[SearchCursor],
        filters: Dict[str, Any],
        environment: Optional[str],
    ) -> SearchPage:
        primary_key = search_config.get("primary_key", "id")

        with self.get_session() as session:
            if cursor is not None:
                page = self._resume(session, key, search_config, query, size, cursor, filters, primary_key)
            elif len(query) < MIN_QUERY_LENGTH:
                page = self._recent(session, key, size, filters, primary_key)
            else:
                page = self._sku_and_fuzzy(session, key, search_config, query, size, filters, primary_key)

        if page.items:
            return page
        live = await self._live_fallback(key, query, size, environment)
        return live if live.items else page

    # ========== Cached steps ==========

    def _fetch(self, session, key, size, filters, primary_key, before_id=None, columns=None, pattern=None, **exclude):
        return self.repository.fetch_page(
            session,
            key.value,
            size,
            before_id=before_id,
            match_columns=columns,
            pattern=pattern,
            **exclude,
            filters=filters,
            primary_key=primary_key,
        )

    def _columns(self, session, key: SupplierKey, kind: str, configured: List[str]) -> List[str]:
        cached = self.field_cache.get(key.value, kind, configured)
        if cached is not None:
            return cached
        sample = self.repository.sample_row(session, key.value)
        available = list(sample.keys()) if sample else []
        return self.field_cache.resolve(key.value, kind, configured, available)

    def _page_from_rows(
        self, rows: List[Dict[str, Any]], size: int, step: SearchStep, primary_key: str
    ) -> SearchPage:
        items = rows[:size]
        next_cursor = None
        if len(rows) > size and items:
            next_cursor = SearchCursor(step=step, id=items[-1][primary_key])
        return SearchPage(
            items=[_tag(row, CACHED_SOURCE, CACHED_PRIORITY) for row in items],
            source_step=step,
            next_cursor=next_cursor,
        )

    def _recent(self, session, key, size, filters, primary_key, before_id=None) -> SearchPage:
        rows = self._fetch(session, key, size, filters, primary_key, before_id=before_id)
        return self._page_from_rows(rows, size, SearchStep.RECENT, primary_key)

    def _sku_rows(self, session, key, search_config, query, size, filters, primary_key, before_id=None):
        columns = self._columns(session, key, SKU_FIELDS, search_config.get("sku_fields", []))
        if not columns:
            return []
        return self._fetch(
            session, key, size, filters, primary_key,
            before_id=before_id, columns=columns, pattern=f"{escape_like(query)}%",
        )

    def _fuzzy_rows(
        self, session, key, search_config, query, size, filters, primary_key, before_id=None, skip_sku_matches=False
    ):
        columns = self._columns(session, key, DESCRIPTION_FIELDS, search_config.get("description_fields", []))
        if not columns:
            return []
        exclude = {}
        if skip_sku_matches and query:
            # Only merged pages hand out FUZZY cursors, and those already returned every SKU hit
            exclude = {
                "exclude_columns": self._columns(session, key, SKU_FIELDS, search_config.get("sku_fields", [])),
                "exclude_pattern": f"{escape_like(query)}%",
            }
        return self._fetch(
            session, key, size, filters, primary_key,
            before_id=before_id, columns=columns, pattern=f"%{escape_like(query)}%", **exclude,
        )

    def _resume(self, session, key, search_config, query, size, cursor, filters, primary_key) -> SearchPage:
        if cursor.step == SearchStep.RECENT:
            return self._recent(session, key, size, filters, primary_key, before_id=cursor.id)

        if cursor.step == SearchStep.SKU:
            rows = self._sku_rows(session, key, search_config, query, size, filters, primary_key, cursor.id)
        else:
            rows = self._fuzzy_rows(
                session, key, search_config, query, size, filters, primary_key, cursor.id, skip_sku_matches=True
            )
        return self._page_from_rows(rows, size, cursor.step, primary_key)

    def _sku_and_fuzzy(self, session, key, search_config, query, size, filters, primary_key) -> SearchPage:
        sku_rows = self._sku_rows(session, key, search_config, query, size, filters, primary_key)
        if len(sku_rows) >= min(size, STRONG_MATCH_LIMIT):
            return self._page_from_rows(sku_rows, size, SearchStep.SKU, primary_key)

        fuzzy_rows = self._fuzzy_rows(session, key, search_config, query, size, filters, primary_key)

        merged = list(sku_rows)
        seen = {row[primary_key] for row in sku_rows}
        last_scanned = None
        truncated = False
        for row in fuzzy_rows[:size]:
            if len(merged) >= size:
                truncated = True
                break
            last_scanned = row[primary_key]
            if last_scanned not in seen:
                seen.add(last_scanned)
                merged.append(row)

        next_cursor = None
        if last_scanned is not None and (truncated or len(fuzzy_rows) > size):
            next_cursor = SearchCursor(step=SearchStep.FUZZY, id=last_scanned)

        return SearchPage(
            items=[_tag(row, CACHED_SOURCE, CACHED_PRIORITY) for row in merged],
            source_step=SearchStep.SKU_FUZZY,
            next_cursor=next_cursor,
        )

    # ========== Live fallback ==========

    async def _live_fallback(
        self, key: SupplierKey, query: str, size: int, environment: Optional[str]
    ) -> SearchPage:
        self.logger.info(f"No cached {key.value} results for '{query}', falling back to live search")
        supplier = self.supplier_factory(key)
        items = await supplier.search_products(environment, query, size)
        return SearchPage(
            items=[_tag(item, LIVE_SOURCE, LIVE_PRIORITY) for item in items[:size]],
            source_step=SearchStep.LIVE_FALLBACK,
            fallback=True,
        )
