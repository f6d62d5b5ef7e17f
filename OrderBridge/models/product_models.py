from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Column
from sqlalchemy.dialects.sqlite import JSON
from sqlmodel import SQLModel, Field


class ProductModel(SQLModel, table=True):
    """
    Cached supplier catalog row.

    Column names differ by supplier feed (itemnumber for ABC, itemcode for
    SRS, ...); the search ladder resolves them at runtime rather than
    relying on this model's attribute names.
    """

    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    supplier: str = Field(index=True)
    itemnumber: Optional[str] = Field(default=None, index=True)
    itemcode: Optional[str] = Field(default=None, index=True)
    sku: Optional[str] = Field(default=None, index=True)
    product_id: Optional[str] = None
    description: Optional[str] = None
    productname: Optional[str] = None
    family: Optional[str] = None
    name: Optional[str] = None
    uom: Optional[str] = None
    uoms: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    attributes: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
