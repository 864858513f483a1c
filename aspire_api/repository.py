"""Table-level CRUD helper shared by the content routers."""

from __future__ import annotations

from typing import Any

from .database import Database
from .utils import encode_values

PUBLISHED = "published"


class ContentRepository:
    """
    Parameterized CRUD over one content table.

    Column names are checked against the live schema before they are
    interpolated into SQL; values are always bound parameters.
    """

    def __init__(
        self,
        db: Database,
        table: str,
        *,
        order_by: str = "created_at DESC, id DESC",
    ) -> None:
        self.db = db
        self.table = table
        self.order_by = order_by

    async def columns(self) -> tuple[str, ...]:
        return await self.db.table_columns(self.table)

    async def _published_clause(self) -> tuple[str, tuple]:
        if "is_published" in await self.columns():
            return "is_published = 1 AND status = ?", (PUBLISHED,)
        return "status = ?", (PUBLISHED,)

    async def _filters(
        self, published_only: bool, where: dict[str, Any] | None
    ) -> tuple[str, tuple]:
        clauses: list[str] = []
        params: list[Any] = []
        if published_only:
            clause, clause_params = await self._published_clause()
            clauses.append(clause)
            params.extend(clause_params)
        columns = await self.columns()
        for column, value in encode_values(where or {}).items():
            if column not in columns:
                raise ValueError(f"Unknown column {column} for {self.table}")
            clauses.append(f"{column} = ?")
            params.append(value)
        sql = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return sql, tuple(params)

    async def list_rows(
        self,
        *,
        published_only: bool = True,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict]:
        filters, params = await self._filters(published_only, where)
        sql = f"SELECT * FROM {self.table}{filters} ORDER BY {order_by or self.order_by}"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params += (limit, offset or 0)
        return await self.db.fetch_all(sql, params)

    async def count(
        self, *, published_only: bool = True, where: dict[str, Any] | None = None
    ) -> int:
        filters, params = await self._filters(published_only, where)
        return await self.db.fetch_value(f"SELECT COUNT(*) FROM {self.table}{filters}", params)

    async def get(self, row_id: int, *, published_only: bool = False) -> dict | None:
        filters, params = await self._filters(published_only, {"id": row_id})
        return await self.db.fetch_one(f"SELECT * FROM {self.table}{filters}", params)

    async def create(self, values: dict[str, Any]) -> dict:
        values = encode_values(await self._known(values))
        names = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        row_id = await self.db.insert(
            f"INSERT INTO {self.table} ({names}) VALUES ({placeholders})",
            tuple(values.values()),
        )
        return await self.get(row_id)

    async def update(self, row_id: int, values: dict[str, Any]) -> dict | None:
        """Apply a partial update; returns the fresh row or None when it does not exist."""
        values = encode_values(await self._known(values))
        if await self.get(row_id) is None:
            return None
        if values:
            assignments = ", ".join(f"{column} = ?" for column in values)
            await self.db.execute(
                f"UPDATE {self.table} SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ?",
                (*values.values(), row_id),
            )
        return await self.get(row_id)

    async def delete(self, row_id: int) -> dict | None:
        row = await self.get(row_id)
        if row is not None:
            await self.db.execute(f"DELETE FROM {self.table} WHERE id = ?", (row_id,))
        return row

    async def _known(self, values: dict[str, Any]) -> dict[str, Any]:
        columns = await self.columns()
        return {key: value for key, value in values.items() if key in columns}
