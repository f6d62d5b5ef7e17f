"""
FastAPI dependency functions for service injection.

Services are created at request time; tests swap them through
app.dependency_overrides.
"""

from typing import Generator

from fastapi import Depends
from sqlalchemy import Engine

from OrderBridge.models.models import engine as global_engine
from OrderBridge.services.gateway import SupplierGateway
from OrderBridge.services.order import OrderSubmissionPipeline
from OrderBridge.services.pricing import PricingService
from OrderBridge.services.search import ProductSearchService


def get_engine() -> Engine:
    """Database engine for the product cache; overridden in tests"""
    return global_engine


def get_search_service(engine: Engine = Depends(get_engine)) -> Generator[ProductSearchService, None, None]:
    yield ProductSearchService(engine_override=engine)


def get_gateway() -> SupplierGateway:
    return SupplierGateway()


def get_pricing_service() -> PricingService:
    return PricingService()


def get_submission_pipeline() -> OrderSubmissionPipeline:
    return OrderSubmissionPipeline()
