"""ResourceRouter - read-only queries over catalog resources.

Responsibilities:
- Reflect the resource table from the store (per request, never cached)
- Build filtered / ordered / paginated listing queries with an exact count
- Fetch a single row by primary identity
- Translate store failures into gateway errors
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import MetaData, Table, func, select
from sqlalchemy.exc import DataError, DBAPIError, NoSuchTableError
from sqlalchemy.ext.asyncio import AsyncSession

from vault_gateway.errors import NotFoundError, StoreError, ValidationError
from vault_gateway.router.resource.catalog import Resource

logger = structlog.get_logger()

ENTITY_FILTER_COLUMN = "entity_id"
DEFAULT_ORDER_COLUMN = "created_at"


def clamp_limit(limit: int | None, *, default: int, maximum: int) -> int:
    """Bound a requested page size to ``[1, maximum]``."""
    if limit is None:
        return default
    return max(1, min(limit, maximum))


@dataclass(frozen=True)
class ListParams:
    """Normalized listing parameters."""

    limit: int
    offset: int = 0
    order_by: str | None = None
    ascending: bool = False
    entity_id: str | None = None

    @classmethod
    def build(
        cls,
        *,
        limit: int | None = None,
        offset: int | None = None,
        order_by: str | None = None,
        order: str | None = None,
        entity_id: str | None = None,
        default_limit: int = 100,
        max_limit: int = 1000,
    ) -> "ListParams":
        if order is not None and order not in ("asc", "desc"):
            raise ValidationError(
                "order must be 'asc' or 'desc'",
                details={"order": order},
            )
        return cls(
            limit=clamp_limit(limit, default=default_limit, maximum=max_limit),
            offset=max(0, offset or 0),
            order_by=order_by or None,
            ascending=order == "asc",
            entity_id=entity_id or None,
        )


@dataclass(frozen=True)
class Pagination:
    """Pagination block of a listing response."""

    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.total > self.offset + self.limit

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "has_more": self.has_more,
        }


class ResourceRouter:
    """Executes read queries for catalog resources."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._log = logger.bind(component="resource_router")

    async def _reflect(self, resource: Resource) -> Table:
        """Load the table definition for a resource from the store."""
        conn = await self._db.connection()
        try:
            return await conn.run_sync(
                lambda sync_conn: Table(resource.value, MetaData(), autoload_with=sync_conn)
            )
        except NoSuchTableError as e:
            self._log.error("gateway.table_missing", resource=resource.value)
            raise StoreError(f"Resource table not available: {resource.value}") from e

    @staticmethod
    def _order_column(table: Table, order_by: str | None):
        if order_by is None:
            if DEFAULT_ORDER_COLUMN in table.c:
                return table.c[DEFAULT_ORDER_COLUMN]
            return table.c["id"] if "id" in table.c else None

        if order_by not in table.c:
            raise ValidationError(
                f"Unknown order_by column: {order_by}",
                details={"order_by": order_by, "resource": table.name},
            )
        return table.c[order_by]

    async def list(
        self,
        resource: Resource,
        params: ListParams,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        """List rows of a resource.

        Returns:
            Tuple of (rows, pagination). ``pagination.total`` counts every
            row matching the filter, not just this page.

        Raises:
            ValidationError: Unknown order_by column
            StoreError: The store rejected the query
        """
        table = await self._reflect(resource)

        count_query = select(func.count()).select_from(table)
        rows_query = select(table)

        if (
            params.entity_id is not None
            and resource.filterable
            and ENTITY_FILTER_COLUMN in table.c
        ):
            condition = table.c[ENTITY_FILTER_COLUMN] == params.entity_id
            count_query = count_query.where(condition)
            rows_query = rows_query.where(condition)

        order_col = self._order_column(table, params.order_by)
        if order_col is not None:
            rows_query = rows_query.order_by(
                order_col.asc() if params.ascending else order_col.desc()
            )
            # Tie-breaker keeps pages disjoint when the sort key repeats
            if "id" in table.c and order_col.name != "id":
                rows_query = rows_query.order_by(table.c["id"])

        rows_query = rows_query.limit(params.limit).offset(params.offset)

        try:
            total = (await self._db.execute(count_query)).scalar_one()
            result = await self._db.execute(rows_query)
        except DBAPIError as e:
            raise StoreError(str(e.orig), caller_caused=True) from e

        rows = [dict(row) for row in result.mappings().all()]

        self._log.info(
            "gateway.list",
            resource=resource.value,
            returned=len(rows),
            total=total,
            limit=params.limit,
            offset=params.offset,
        )
        return rows, Pagination(total=total, limit=params.limit, offset=params.offset)

    async def get(self, resource: Resource, resource_id: str) -> dict[str, Any]:
        """Fetch one row by id.

        Raises:
            NotFoundError: No row has this id (or the id is malformed for the column type)
            StoreError: The store rejected the query
        """
        table = await self._reflect(resource)
        if "id" not in table.c:
            raise StoreError(f"Resource has no id column: {resource.value}")

        try:
            result = await self._db.execute(select(table).where(table.c["id"] == resource_id))
        except DataError as e:
            raise NotFoundError(f"{resource.value} not found: {resource_id}") from e
        except DBAPIError as e:
            raise StoreError(str(e.orig), caller_caused=True) from e

        row = result.mappings().first()
        if row is None:
            raise NotFoundError(f"{resource.value} not found: {resource_id}")
        return dict(row)
