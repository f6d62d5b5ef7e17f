from .base_repository import BaseRepository
from .product_repository import ProductRepository, escape_like

__all__ = ["BaseRepository", "ProductRepository", "escape_like"]
