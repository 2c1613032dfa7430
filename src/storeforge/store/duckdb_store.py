"""DuckDB-backed store gateway.

Holds one root connection and hands each operation its own cursor, so
analytics reads can run from worker threads. Writes are serialized with a
re-entrant lock.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence

import duckdb

from storeforge.errors import UpstreamError
from storeforge.store.base import FILTER_OPS, Filter, Row, StoreGateway


logger = logging.getLogger(__name__)


SCHEMA: dict[str, dict[str, str]] = {
    "stores": {
        "id": "VARCHAR",
        "name": "VARCHAR",
        "slug": "VARCHAR",
        "status": "VARCHAR",
        "logo_url": "VARCHAR",
        "blueprint": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "products": {
        "id": "VARCHAR",
        "store_id": "VARCHAR",
        "title": "VARCHAR",
        "description": "VARCHAR",
        "price": "DOUBLE",
        "compare_at_price": "DOUBLE",
        "category": "VARCHAR",
        "sku": "VARCHAR",
        "quantity": "INTEGER",
        "track_quantity": "BOOLEAN",
        "status": "VARCHAR",
        "featured": "BOOLEAN",
        "tags": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "orders": {
        "id": "VARCHAR",
        "store_id": "VARCHAR",
        "order_number": "VARCHAR",
        "status": "VARCHAR",
        "payment_status": "VARCHAR",
        "payment_method": "VARCHAR",
        "total": "DOUBLE",
        "discount_amount": "DOUBLE",
        "coupon_code": "VARCHAR",
        "customer_id": "VARCHAR",
        "customer_name": "VARCHAR",
        "customer_email": "VARCHAR",
        "shipping_state": "VARCHAR",
        "shipping_city": "VARCHAR",
        "tracking_number": "VARCHAR",
        "tracking_url": "VARCHAR",
        "courier": "VARCHAR",
        "notes": "VARCHAR",
        "refund_amount": "DOUBLE",
        "refund_reason": "VARCHAR",
        "refunded_at": "TIMESTAMP",
        "shipped_at": "TIMESTAMP",
        "created_at": "TIMESTAMP",
    },
    "order_items": {
        "id": "VARCHAR",
        "order_id": "VARCHAR",
        "product_id": "VARCHAR",
        "title": "VARCHAR",
        "quantity": "INTEGER",
        "total": "DOUBLE",
    },
    "customers": {
        "id": "VARCHAR",
        "store_id": "VARCHAR",
        "name": "VARCHAR",
        "email": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "coupons": {
        "id": "VARCHAR",
        "store_id": "VARCHAR",
        "code": "VARCHAR",
        "discount_type": "VARCHAR",
        "discount_value": "DOUBLE",
        "min_order_value": "DOUBLE",
        "max_uses": "INTEGER",
        "used_count": "INTEGER",
        "expires_at": "TIMESTAMP",
        "is_active": "BOOLEAN",
        "description": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "collections": {
        "id": "VARCHAR",
        "store_id": "VARCHAR",
        "name": "VARCHAR",
        "slug": "VARCHAR",
        "description": "VARCHAR",
        "tags": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "collection_products": {
        "collection_id": "VARCHAR",
        "product_id": "VARCHAR",
    },
    "product_reviews": {
        "id": "VARCHAR",
        "product_id": "VARCHAR",
        "rating": "INTEGER",
        "status": "VARCHAR",
        "title": "VARCHAR",
        "body": "VARCHAR",
        "customer_name": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "abandoned_carts": {
        "id": "VARCHAR",
        "store_id": "VARCHAR",
        "email": "VARCHAR",
        "subtotal": "DOUBLE",
        "recovery_status": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "notifications": {
        "id": "VARCHAR",
        "store_id": "VARCHAR",
        "title": "VARCHAR",
        "is_read": "BOOLEAN",
        "created_at": "TIMESTAMP",
    },
}

JSON_COLUMNS = {("stores", "blueprint"), ("products", "tags"), ("collections", "tags")}

_SQL_OPS = {"eq": "=", "ne": "IS DISTINCT FROM", "lt": "<", "lte": "<=", "gt": ">", "gte": ">="}

# Column of collection_products that points at each linkable table
LINK_COLUMNS = {"products": "product_id", "collections": "collection_id"}


def _utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DuckDBStore(StoreGateway):
    """Reference ``StoreGateway`` on a DuckDB file (or ``:memory:``)."""

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            path = Path(self.db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self.db_path = str(path)
        self._lock = threading.RLock()
        self._conn = duckdb.connect(self.db_path)
        self._ensure_tables()

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    def _cursor(self) -> duckdb.DuckDBPyConnection:
        with self._lock:
            return self._conn.cursor()

    def _ensure_tables(self) -> None:
        with self._lock:
            for table, columns in SCHEMA.items():
                cols = ",\n".join(f"{name} {sql_type}" for name, sql_type in columns.items())
                self._conn.execute(f"CREATE TABLE IF NOT EXISTS {table} (\n{cols}\n)")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "DuckDBStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _run(self, sql: str, params: list[Any], *, table: str) -> list[Row]:
        cur = self._cursor()
        try:
            cur.execute(sql, params)
            if cur.description is None:
                return []
            names = [d[0] for d in cur.description]
            return [self._decode(table, dict(zip(names, raw))) for raw in cur.fetchall()]
        except duckdb.Error as e:
            logger.warning("DuckDB query on %s failed: %s", table, e)
            raise UpstreamError(
                f"The store data for '{table}' could not be read or written.",
                suggestion="Try again in a moment.",
                details={"table": table},
            ) from e
        finally:
            cur.close()

    # ------------------------------------------------------------------
    # Value coercion
    # ------------------------------------------------------------------

    def _columns(self, table: str) -> dict[str, str]:
        try:
            return SCHEMA[table]
        except KeyError:
            raise ValueError(f"Unknown table '{table}'") from None

    def _check_column(self, table: str, column: str) -> str:
        if column not in self._columns(table):
            raise ValueError(f"Unknown column '{column}' for table '{table}'")
        return column

    def _coerce(self, table: str, column: str, value: Any) -> Any:
        if value is None:
            return None
        if (table, column) in JSON_COLUMNS and not isinstance(value, str):
            return json.dumps(value)
        if self._columns(table).get(column) == "TIMESTAMP":
            if isinstance(value, str):
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if isinstance(value, datetime):
                return _utc_naive(value)
        return value

    def _decode(self, table: str, row: Row) -> Row:
        for column in list(row):
            if (table, column) in JSON_COLUMNS and isinstance(row[column], str):
                try:
                    row[column] = json.loads(row[column])
                except json.JSONDecodeError:
                    pass
        return row

    def _where(
        self,
        table: str,
        store_id: str | None,
        filters: Iterable[Filter],
        *,
        alias: str = "",
    ) -> tuple[str, list[Any]]:
        prefix = f"{alias}." if alias else ""
        clauses: list[str] = []
        params: list[Any] = []
        if store_id is not None and "store_id" in self._columns(table):
            clauses.append(f"{prefix}store_id = ?")
            params.append(store_id)

        for column, op, value in filters:
            if op not in FILTER_OPS:
                raise ValueError(f"Unsupported filter op '{op}'")
            if isinstance(column, tuple):
                if op != "ilike":
                    raise ValueError("Multi-column filters only support 'ilike'")
                parts = []
                for col in column:
                    self._check_column(table, col)
                    parts.append(f"{prefix}{col} ILIKE ?")
                    params.append(f"%{value}%")
                clauses.append("(" + " OR ".join(parts) + ")")
                continue

            col = f"{prefix}{self._check_column(table, column)}"
            if op == "is_null" or (op == "eq" and value is None):
                clauses.append(f"{col} IS NULL")
            elif op == "not_null":
                clauses.append(f"{col} IS NOT NULL")
            elif op in ("in", "not_in"):
                values = [self._coerce(table, column, v) for v in (value or [])]
                if not values:
                    clauses.append("FALSE" if op == "in" else "TRUE")
                    continue
                marks = ", ".join("?" for _ in values)
                keyword = "IN" if op == "in" else "NOT IN"
                clauses.append(f"{col} {keyword} ({marks})")
                params.extend(values)
            elif op == "ilike":
                clauses.append(f"{col} ILIKE ?")
                params.append(f"%{value}%")
            else:
                clauses.append(f"{col} {_SQL_OPS[op]} ?")
                params.append(self._coerce(table, column, value))

        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    # ------------------------------------------------------------------
    # StoreGateway
    # ------------------------------------------------------------------

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
        select = ", ".join(self._check_column(table, c) for c in columns) if columns else "*"
        where, params = self._where(table, store_id, filters)
        sql = f"SELECT {select} FROM {table}{where}"
        if order_by and order_by in self._columns(table):
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        return self._run(sql, params, table=table)

    def count(self, table: str, store_id: str, *, filters: Iterable[Filter] = ()) -> int:
        where, params = self._where(table, store_id, filters)
        rows = self._run(f"SELECT COUNT(*) AS n FROM {table}{where}", params, table=table)
        return int(rows[0]["n"]) if rows else 0

    def insert(self, table: str, store_id: str, values: Row) -> Row:
        columns = self._columns(table)
        row = {k: v for k, v in values.items() if v is not None}
        for key in row:
            self._check_column(table, key)
        if "id" in columns:
            row.setdefault("id", uuid.uuid4().hex)
        if "store_id" in columns:
            row["store_id"] = store_id
        if "created_at" in columns:
            row.setdefault("created_at", _utc_now())

        names = list(row)
        marks = ", ".join("?" for _ in names)
        params = [self._coerce(table, name, row[name]) for name in names]
        with self._lock:
            self._run(f"INSERT INTO {table} ({', '.join(names)}) VALUES ({marks})", params, table=table)
        if "id" in columns:
            return self.get(table, store_id, row["id"]) or self._decode(table, row)
        return self._decode(table, row)

    def update(self, table: str, store_id: str, row_id: str, values: Row) -> Row | None:
        if not values:
            return self.get(table, store_id, row_id)
        names = [self._check_column(table, k) for k in values]
        assignments = ", ".join(f"{name} = ?" for name in names)
        params = [self._coerce(table, name, values[name]) for name in names]
        where, where_params = self._where(table, store_id, [Filter("id", "eq", row_id)])
        with self._lock:
            if self.get(table, store_id, row_id) is None:
                return None
            self._run(f"UPDATE {table} SET {assignments}{where}", params + where_params, table=table)
            return self.get(table, store_id, row_id)

    def delete(self, table: str, store_id: str, row_ids: Sequence[str]) -> int:
        where, params = self._where(table, store_id, [Filter("id", "in", list(row_ids))])
        with self._lock:
            existing = self.count(table, store_id, filters=[Filter("id", "in", list(row_ids))])
            if existing:
                self._run(f"DELETE FROM {table}{where}", params, table=table)
            return existing

    def _linked_delete_statements(self, table: str, store_id: str, row_ids: list[str]) -> list[tuple[str, list[Any]]]:
        marks = ", ".join("?" for _ in row_ids)
        where, params = self._where(table, store_id, [Filter("id", "in", row_ids)])
        return [
            (f"DELETE FROM collection_products WHERE {LINK_COLUMNS[table]} IN ({marks})", list(row_ids)),
            (f"DELETE FROM {table}{where}", params),
        ]

    def delete_with_links(self, table: str, store_id: str, row_ids: Sequence[str]) -> int:
        if table not in LINK_COLUMNS:
            raise ValueError(f"Table '{table}' has no collection links")
        with self._lock:
            owned = [
                row["id"]
                for row in self.fetch(
                    table, store_id, filters=[Filter("id", "in", list(row_ids))], columns=["id"], order_by=None
                )
            ]
            if not owned:
                return 0

            cur = self._cursor()
            try:
                cur.begin()
                for sql, params in self._linked_delete_statements(table, store_id, owned):
                    cur.execute(sql, params)
                cur.commit()
            except duckdb.Error as e:
                cur.rollback()
                logger.warning("DuckDB delete on %s rolled back: %s", table, e)
                raise UpstreamError(
                    f"The store data for '{table}' could not be read or written.",
                    suggestion="Try again in a moment.",
                    details={"table": table},
                ) from e
            finally:
                cur.close()
            return len(owned)

    def fetch_order_items(self, order_ids: Sequence[str]) -> list[Row]:
        where, params = self._where("order_items", None, [Filter("order_id", "in", list(order_ids))])
        return self._run(f"SELECT * FROM order_items{where}", params, table="order_items")

    def fetch_reviews(
        self,
        store_id: str,
        *,
        filters: Iterable[Filter] = (),
        limit: int | None = None,
    ) -> list[Row]:
        where, params = self._where("product_reviews", None, filters, alias="r")
        scope = "r.product_id IN (SELECT id FROM products WHERE store_id = ?)"
        where = f"{where} AND {scope}" if where else f" WHERE {scope}"
        params.append(store_id)
        sql = f"SELECT r.* FROM product_reviews r{where} ORDER BY r.created_at DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        return self._run(sql, params, table="product_reviews")

    def review_owner(self, review_id: str) -> str | None:
        rows = self._run(
            """
            SELECT p.store_id AS store_id
            FROM product_reviews r
            LEFT JOIN products p ON p.id = r.product_id
            WHERE r.id = ?
            LIMIT 1
            """,
            [review_id],
            table="product_reviews",
        )
        if not rows:
            return None
        return rows[0]["store_id"] or ""

    def delete_review(self, review_id: str) -> int:
        with self._lock:
            rows = self._run(
                "SELECT COUNT(*) AS n FROM product_reviews WHERE id = ?", [review_id], table="product_reviews"
            )
            n = int(rows[0]["n"]) if rows else 0
            if n:
                self._run("DELETE FROM product_reviews WHERE id = ?", [review_id], table="product_reviews")
            return n

    def link_collection_products(self, collection_id: str, product_ids: Sequence[str]) -> int:
        added = 0
        with self._lock:
            for product_id in dict.fromkeys(product_ids):
                exists = self._run(
                    "SELECT 1 AS x FROM collection_products WHERE collection_id = ? AND product_id = ?",
                    [collection_id, product_id],
                    table="collection_products",
                )
                if exists:
                    continue
                self._run(
                    "INSERT INTO collection_products (collection_id, product_id) VALUES (?, ?)",
                    [collection_id, product_id],
                    table="collection_products",
                )
                added += 1
        return added

    def unlink_collection_products(
        self,
        *,
        collection_id: str | None = None,
        product_ids: Sequence[str] | None = None,
    ) -> int:
        filters: list[Filter] = []
        if collection_id is not None:
            filters.append(Filter("collection_id", "eq", collection_id))
        if product_ids is not None:
            filters.append(Filter("product_id", "in", list(product_ids)))
        if not filters:
            raise ValueError("collection_id or product_ids required")
        where, params = self._where("collection_products", None, filters)
        with self._lock:
            rows = self._run(f"SELECT COUNT(*) AS n FROM collection_products{where}", params, table="collection_products")
            n = int(rows[0]["n"]) if rows else 0
            if n:
                self._run(f"DELETE FROM collection_products{where}", params, table="collection_products")
            return n

    def get_store(self, store_id: str) -> Row | None:
        rows = self._run("SELECT * FROM stores WHERE id = ? LIMIT 1", [store_id], table="stores")
        return rows[0] if rows else None

    def create_store(self, values: Row) -> Row:
        row = dict(values)
        row.setdefault("id", uuid.uuid4().hex)
        row.setdefault("created_at", _utc_now())
        row.setdefault("status", "active")
        names = [self._check_column("stores", k) for k in row]
        marks = ", ".join("?" for _ in names)
        params = [self._coerce("stores", name, row[name]) for name in names]
        with self._lock:
            self._run(f"INSERT INTO stores ({', '.join(names)}) VALUES ({marks})", params, table="stores")
        return self.get_store(row["id"]) or row

    def update_store(self, store_id: str, values: Row) -> Row | None:
        if not values:
            return self.get_store(store_id)
        names = [self._check_column("stores", k) for k in values]
        assignments = ", ".join(f"{name} = ?" for name in names)
        params = [self._coerce("stores", name, values[name]) for name in names]
        with self._lock:
            if self.get_store(store_id) is None:
                return None
            self._run(f"UPDATE stores SET {assignments} WHERE id = ?", params + [store_id], table="stores")
            return self.get_store(store_id)
