"""
Supplier Registry

Maps the closed SupplierKey enum to adapter classes. Adapters register
themselves with @register_supplier when their module is imported.
"""

from typing import Any, Dict, List, Type, Union

from OrderBridge.exceptions import SupplierNotFoundError
from .base import BaseSupplier, SupplierKey


class SupplierRegistry:
    """
    Registry for supplier adapter implementations.

    Use get_supplier() to get instances, get_available_suppliers() to list them.
    Unknown keys raise SupplierNotFoundError, which surfaces as a 400.
    """

    _suppliers: Dict[str, Type[BaseSupplier]] = {}

    @classmethod
    def register(cls, key: Union[SupplierKey, str], supplier_class: Type[BaseSupplier]):
        """Register a supplier implementation"""
        if not issubclass(supplier_class, BaseSupplier):
            raise ValueError("Supplier class must inherit from BaseSupplier")

        parsed = SupplierKey.parse(key)
        if parsed is None:
            raise ValueError(f"'{key}' is not a known supplier key")

        cls._suppliers[parsed.value] = supplier_class

    @classmethod
    def get_supplier_class(cls, key: Union[SupplierKey, str]) -> Type[BaseSupplier]:
        parsed = SupplierKey.parse(key)
        if parsed is None or parsed.value not in cls._suppliers:
            raise SupplierNotFoundError(f"Unknown supplier: {key}", supplier_name=str(key) if key else None)
        return cls._suppliers[parsed.value]

    @classmethod
    def get_supplier(cls, key: Union[SupplierKey, str], **kwargs: Any) -> BaseSupplier:
        """Get an instance of the specified supplier"""
        return cls.get_supplier_class(key)(**kwargs)

    @classmethod
    def get_available_suppliers(cls) -> List[str]:
        """Get list of all registered supplier keys"""
        return list(cls._suppliers.keys())


def register_supplier(key: Union[SupplierKey, str]):
    """Decorator for automatically registering suppliers"""

    def decorator(supplier_class: Type[BaseSupplier]):
        SupplierRegistry.register(key, supplier_class)
        return supplier_class

    return decorator

