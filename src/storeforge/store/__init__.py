"""Data-store collaborator: gateway interface and the DuckDB reference implementation."""

from storeforge.store.base import Filter, Row, StoreGateway
from storeforge.store.duckdb_store import DuckDBStore

__all__ = ["DuckDBStore", "Filter", "Row", "StoreGateway"]
