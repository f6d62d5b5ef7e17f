"""
Request bodies for the HTTP routes.

Fields mirror the UI's camelCase payloads. Everything the services validate
themselves is left optional here so that bad input is reported by the
service (400) rather than as a schema error (422).
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GatewayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    supplier_key: Optional[str] = Field(default=None, alias="supplierKey")
    env: Optional[str] = None
    action: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class PriceOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    supplier: Optional[str] = None
    env: Optional[str] = None
    full_order: Optional[Dict[str, Any]] = Field(default=None, alias="fullOrder")
    line_items: Optional[List[Dict[str, Any]]] = Field(default=None, alias="lineItems")


class ProductSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    supplier: Optional[str] = None
    q: Optional[str] = None
    page_size: Any = Field(default=None, alias="pageSize")
    cursor: Any = None
    filters: Optional[Dict[str, Any]] = None
    env: Optional[str] = None


class DraftOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_order: Optional[Dict[str, Any]] = Field(default=None, alias="fullOrder")
    deal_id: Optional[Union[str, int]] = Field(default=None, alias="dealId")
    order_object_id: Optional[Union[str, int]] = Field(default=None, alias="orderObjectId")


class SubmitOrderRequest(DraftOrderRequest):
    env: Optional[str] = None
    parsed_order: Optional[Dict[str, Any]] = Field(default=None, alias="parsedOrder")
