"""
Searchable column discovery for the product cache.

Supplier configs name their SKU and description fields loosely
("itemNumber", "Description"); the real column names are found by comparing
alphanumeric-normalized names against a one-row sample. Resolutions are
cached per (supplier, kind, configured fields) for the life of the cache
object.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

SKU_FIELDS = "sku"
DESCRIPTION_FIELDS = "description"

# Column-name fragments that mark a text column worth fuzzy matching
DESCRIPTION_HINTS = ("description", "family", "name", "title")

_NON_ALNUM = re.compile(r"[^a-z0-9]")

CacheKey = Tuple[str, str, Tuple[str, ...]]


def normalize_field_name(name: str) -> str:
    return _NON_ALNUM.sub("", str(name).lower())


def match_columns(configured: Iterable[str], available: Iterable[str]) -> List[str]:
    """Actual column names for the configured fields, in configured order"""
    lookup: Dict[str, str] = {}
    for column in available:
        lookup.setdefault(normalize_field_name(column), column)

    resolved: List[str] = []
    for name in configured:
        column = lookup.get(normalize_field_name(name))
        if column and column not in resolved:
            resolved.append(column)
    return resolved


def heuristic_description_columns(available: Iterable[str]) -> List[str]:
    return [
        column for column in available
        if any(hint in normalize_field_name(column) for hint in DESCRIPTION_HINTS)
    ]


class FieldDiscoveryCache:
    """Process-scoped cache of resolved searchable columns; clear() resets it"""

    def __init__(self):
        self._resolved: Dict[CacheKey, List[str]] = {}

    @staticmethod
    def key(supplier: str, kind: str, configured: Iterable[str]) -> CacheKey:
        return (supplier, kind, tuple(configured))

    def get(self, supplier: str, kind: str, configured: Iterable[str]) -> Optional[List[str]]:
        return self._resolved.get(self.key(supplier, kind, configured))

    def resolve(self, supplier: str, kind: str, configured: Iterable[str], available: Iterable[str]) -> List[str]:
        """
        Resolve configured fields against the sampled column names.

        SKU fields that do not resolve give an empty list. Description fields
        fall back to the name heuristic. Nothing is cached when there were no
        columns to sample.
        """
        configured = list(configured)
        available = list(available)
        cached = self.get(supplier, kind, configured)
        if cached is not None:
            return cached

        resolved = match_columns(configured, available)
        if not resolved and kind == DESCRIPTION_FIELDS:
            resolved = heuristic_description_columns(available)
            if resolved:
                logger.info(f"Description fields {configured} not found for {supplier}; using {resolved}")

        if not resolved:
            logger.warning(f"No {kind} columns resolved for {supplier} from {configured}")

        if available:
            self._resolved[self.key(supplier, kind, configured)] = resolved
        return resolved

    def clear(self):
        self._resolved.clear()

    def __len__(self) -> int:
        return len(self._resolved)


_default_cache: Optional[FieldDiscoveryCache] = None


def get_field_discovery_cache() -> FieldDiscoveryCache:
    global _default_cache
    if _default_cache is None:
        _default_cache = FieldDiscoveryCache()
    return _default_cache
