from .order_models import LineItem, Order, OrderStatus, PricingState
from .product_models import ProductModel

__all__ = ["LineItem", "Order", "OrderStatus", "PricingState", "ProductModel"]
