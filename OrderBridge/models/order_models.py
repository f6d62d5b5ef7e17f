from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from OrderBridge.suppliers.normalization import DEFAULT_UOM, normalize_quantity, normalize_uom


class PricingState(str, Enum):
    UNPRICED = "Unpriced"
    PRICED = "Priced"
    ERROR = "Error"


class OrderStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    PLACED = "Placed"


class LineItem(BaseModel):
    """
    One requested product on an order.

    Price fields are only changed through mark_priced / mark_error so that
    line_price always equals quantity * unit_price while the line is Priced.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    sku: str
    title: Optional[str] = None
    quantity: float = Field(default=1, alias="qty")
    unit_of_measure: str = Field(default=DEFAULT_UOM, alias="uom")
    unit_price: Optional[float] = Field(default=None, alias="unitPrice")
    line_price: Optional[float] = Field(default=None, alias="linePrice")
    available_units: List[str] = Field(default_factory=list, alias="availableUoms")
    pricing_state: PricingState = Field(default=PricingState.UNPRICED, alias="pricingState")
    pricing_error: Optional[str] = Field(default=None, alias="pricingError")
    product_id: Optional[str] = Field(default=None, alias="productId")

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("sku", mode="before")
    @classmethod
    def _strip_sku(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def _positive_quantity(cls, value: Any) -> float:
        return normalize_quantity(value)

    @field_validator("unit_of_measure", mode="before")
    @classmethod
    def _upper_uom(cls, value: Any) -> str:
        return normalize_uom(value)

    @field_validator("available_units", mode="before")
    @classmethod
    def _unique_units(cls, value: Any) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            value = [value]
        units: List[str] = []
        for unit in value:
            normalized = normalize_uom(unit, default="")
            if normalized and normalized not in units:
                units.append(normalized)
        return units

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> "LineItem":
        """Build from a UI line item, accepting the field spellings used across suppliers"""
        data = dict(item)
        if "qty" not in data and "quantity" in data:
            data["qty"] = data.pop("quantity")
        if not data.get("sku"):
            data["sku"] = data.get("itemNumber") or data.get("itemCode") or ""
        if "uom" not in data and "unitOfMeasure" in data:
            data["uom"] = data.pop("unitOfMeasure")
        return cls.model_validate(data)

    def add_unit(self, uom: str):
        uom = normalize_uom(uom, default="")
        if uom and uom not in self.available_units:
            self.available_units.append(uom)

    def mark_priced(self, unit_price: float, uom: Optional[str] = None):
        if uom:
            self.unit_of_measure = normalize_uom(uom)
        self.unit_price = unit_price
        self.line_price = self.quantity * unit_price
        self.pricing_state = PricingState.PRICED
        self.pricing_error = None

    def mark_error(self, reason: str):
        self.unit_price = None
        self.line_price = None
        self.pricing_state = PricingState.ERROR
        self.pricing_error = reason

    @property
    def is_priced(self) -> bool:
        return self.pricing_state == PricingState.PRICED

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Order(BaseModel):
    """Order aggregate as exchanged with the UI and the CRM"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    supplier: str = ""
    ticket: Optional[str] = None
    template: Optional[str] = None
    items: List[LineItem] = Field(default_factory=list, alias="fullOrderItems")
    delivery: Dict[str, Any] = Field(default_factory=dict)
    status: OrderStatus = OrderStatus.DRAFT
    order_id: Optional[str] = Field(default=None, alias="orderId")
    order_number: Optional[str] = Field(default=None, alias="orderNumber")
    environment: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> List[Any]:
        if not value:
            return []
        return [LineItem.from_payload(v) if isinstance(v, dict) else v for v in value]

    @property
    def total(self) -> float:
        total = 0.0
        for item in self.items:
            if item.unit_price is not None:
                total += item.quantity * item.unit_price
        return round(total, 2)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
