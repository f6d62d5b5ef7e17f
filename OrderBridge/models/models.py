"""
Core Models Module

Database engine configuration for the product cache.
"""

import os

from dotenv import load_dotenv
from sqlalchemy import create_engine

from .product_models import ProductModel  # noqa: F401  registers the products table

load_dotenv()

sqlite_url = os.getenv("DATABASE_URL", "sqlite:///orderbridge.db")

engine = create_engine(
    sqlite_url,
    echo=False,
    connect_args={"check_same_thread": False} if sqlite_url.startswith("sqlite") else {},
)