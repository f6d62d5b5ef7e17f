"""
Base service abstraction for database session management.

Services that touch the product cache use get_session(); services that only
talk to suppliers or the CRM just inherit the logger.
"""

import logging
from contextlib import contextmanager
from abc import ABC

from sqlmodel import Session

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Base service class providing a per-class logger and session management.

    Usage:
        class ProductSearchService(BaseService):
            def _fetch(self):
                with self.get_session() as session:
                    return repository.fetch_page(session, ...)
    """

    def __init__(self, engine_override=None):
        """
        Args:
            engine_override: Optional engine to use instead of the global engine (for testing)
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._engine = engine_override

    @property
    def engine(self):
        if self._engine is None:
            from OrderBridge.models.models import engine
            self._engine = engine
        return self._engine

    @contextmanager
    def get_session(self):
        """
        Context manager for synchronous database session management.

        Commits on success, rolls back and re-raises on error, always closes.
        """
        session = Session(self.engine)
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            self.logger.error(f"Database session rolled back due to error: {e}")
            raise
        finally:
            session.close()
