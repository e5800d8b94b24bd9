"""Entity catalog: the declarative dependency graph behind restore order.

Usage:
    from db_snapshot.catalog import DEFAULT_CATALOG, EntityCatalog, EntityDef
"""

from db_snapshot.catalog.defaults import (
    DEFAULT_CATALOG,
    DEFAULT_JSONB_COLUMNS,
    DEFAULT_TIMESTAMP_COLUMNS,
)
from db_snapshot.catalog.models import EntityCatalog, EntityDef, ForeignKey, NestedChild

__all__ = [
    "DEFAULT_CATALOG",
    "DEFAULT_JSONB_COLUMNS",
    "DEFAULT_TIMESTAMP_COLUMNS",
    "EntityCatalog",
    "EntityDef",
    "ForeignKey",
    "NestedChild",
]
