"""Data-store collaborator interface.

Handlers and analytics never talk to a database directly. They go through a
``StoreGateway``: a tenant-scoped read/write facade over products, orders,
customers, coupons, collections, reviews, abandoned carts and notifications.

Filters are plain ``(column, op, value)`` tuples. Supported ops:
eq, ne, lt, lte, gt, gte, in, not_in, ilike, is_null, not_null.
``ilike`` also accepts a tuple of columns, matched with OR.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, NamedTuple, Sequence


class Filter(NamedTuple):
    column: str | tuple[str, ...]
    op: str
    value: Any = None


FILTER_OPS = {"eq", "ne", "lt", "lte", "gt", "gte", "in", "not_in", "ilike", "is_null", "not_null"}

Row = dict[str, Any]


class StoreGateway(ABC):
    """Tenant-scoped access to the store's transactional records."""

    @abstractmethod
    def fetch(
        self,
        table: str,
        store_id: str,
        *,
        filters: Iterable[Filter] = (),
        columns: Sequence[str] | None = None,
        order_by: str | None = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Row]:
        """Return rows of ``table`` that belong to ``store_id`` and match ``filters``."""
        ...

    @abstractmethod
    def count(self, table: str, store_id: str, *, filters: Iterable[Filter] = ()) -> int:
        ...

    @abstractmethod
    def insert(self, table: str, store_id: str, values: Row) -> Row:
        ...

    @abstractmethod
    def update(self, table: str, store_id: str, row_id: str, values: Row) -> Row | None:
        """Update a row in scope. Returns the updated row or None if absent."""
        ...

    @abstractmethod
    def delete(self, table: str, store_id: str, row_ids: Sequence[str]) -> int:
        """Delete rows in scope. Returns the number of rows removed."""
        ...

    @abstractmethod
    def delete_with_links(self, table: str, store_id: str, row_ids: Sequence[str]) -> int:
        """Delete products or collections in scope together with their collection links, atomically."""
        ...

    # Child tables without their own store_id column

    @abstractmethod
    def fetch_order_items(self, order_ids: Sequence[str]) -> list[Row]:
        ...

    @abstractmethod
    def fetch_reviews(
        self,
        store_id: str,
        *,
        filters: Iterable[Filter] = (),
        limit: int | None = None,
    ) -> list[Row]:
        """Reviews whose product belongs to ``store_id``."""
        ...

    @abstractmethod
    def review_owner(self, review_id: str) -> str | None:
        ...

    @abstractmethod
    def delete_review(self, review_id: str) -> int:
        ...

    @abstractmethod
    def link_collection_products(self, collection_id: str, product_ids: Sequence[str]) -> int:
        ...

    @abstractmethod
    def unlink_collection_products(
        self,
        *,
        collection_id: str | None = None,
        product_ids: Sequence[str] | None = None,
    ) -> int:
        ...

    @abstractmethod
    def get_store(self, store_id: str) -> Row | None:
        ...

    @abstractmethod
    def update_store(self, store_id: str, values: Row) -> Row | None:
        ...

    def get(self, table: str, store_id: str, row_id: str) -> Row | None:
        rows = self.fetch(table, store_id, filters=[Filter("id", "eq", row_id)], order_by=None, limit=1)
        return rows[0] if rows else None
