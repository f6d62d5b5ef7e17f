"""
Product cache repository.

Queries go through SQLAlchemy Core against the products table so that the
column names discovered at runtime can be used directly. Pages are ordered
newest-first by primary key and fetch one extra row to detect more results.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import String, Table, cast, func, not_, or_, select
from sqlmodel import Session

from OrderBridge.models.product_models import ProductModel
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally"""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


class ProductRepository(BaseRepository[ProductModel]):
    def __init__(self, table: Optional[Table] = None, primary_key: str = "id", supplier_column: str = "supplier"):
        super().__init__(ProductModel)
        self.table: Table = table if table is not None else ProductModel.__table__
        self.primary_key = primary_key
        self.supplier_column = supplier_column

    def sample_row(self, session: Session, supplier: str) -> Optional[Dict[str, Any]]:
        """One cached row for the supplier, used to discover column names"""
        stmt = select(self.table).where(self.table.c[self.supplier_column] == supplier).limit(1)
        row = session.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def fetch_page(
        self,
        session: Session,
        supplier: str,
        limit: int,
        before_id: Optional[Any] = None,
        match_columns: Optional[Sequence[str]] = None,
        pattern: Optional[str] = None,
        exclude_columns: Optional[Sequence[str]] = None,
        exclude_pattern: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
        primary_key: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch up to ``limit + 1`` rows for a supplier, newest first.

        Args:
            before_id: exclusive upper bound on the primary key (the last row already seen)
            match_columns: columns to ILIKE against ``pattern``; any match qualifies
            pattern: an already-escaped LIKE pattern
            exclude_columns: columns checked against ``exclude_pattern``; rows matching any are skipped
            exclude_pattern: an already-escaped LIKE pattern
            filters: column equality filters; unknown columns are ignored
            primary_key: ordering column, when a supplier feed keys rows differently
        """
        pk = self.table.c[primary_key or self.primary_key]
        stmt = select(self.table).where(self.table.c[self.supplier_column] == supplier)

        if before_id is not None:
            stmt = stmt.where(pk < before_id)

        if match_columns and pattern:
            clauses = [
                cast(self.table.c[name], String).ilike(pattern, escape=LIKE_ESCAPE)
                for name in match_columns
                if name in self.table.c
            ]
            if clauses:
                stmt = stmt.where(or_(*clauses))

        if exclude_columns and exclude_pattern:
            excluded = [
                func.coalesce(cast(self.table.c[name], String), "").ilike(exclude_pattern, escape=LIKE_ESCAPE)
                for name in exclude_columns
                if name in self.table.c
            ]
            if excluded:
                stmt = stmt.where(not_(or_(*excluded)))

        for name, value in (filters or {}).items():
            if name in self.table.c and name != self.supplier_column:
                stmt = stmt.where(self.table.c[name] == value)
            else:
                logger.debug(f"Ignoring filter on unknown column '{name}'")

        stmt = stmt.order_by(pk.desc()).limit(limit + 1)
        return [dict(row) for row in session.execute(stmt).mappings().all()]
