"""Database repository for account data."""

from __future__ import annotations

from typing import Any

from psycopg import errors, sql
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool

from .domain.account import ACCOUNT_FIELDS, Account
from .domain.contracts import FieldPredicate
from .domain.errors import AccountExistsError

# Expected table layout:
#   CREATE TABLE accounts (
#       id BIGSERIAL PRIMARY KEY,
#       username TEXT NOT NULL UNIQUE,
#       email TEXT NOT NULL UNIQUE,
#       password_hash TEXT NOT NULL,
#       first_name TEXT,
#       active BOOLEAN NOT NULL DEFAULT FALSE,
#       created_at TIMESTAMPTZ NOT NULL,
#       updated_at TIMESTAMPTZ NOT NULL,
#       created_by BIGINT,
#       updated_by BIGINT
#   );


class AccountRepository:
    """Postgres-backed account persistence addressed by field predicates."""

    table = "accounts"

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @staticmethod
    def _column(name: str) -> sql.Identifier:
        """Return a quoted column identifier, rejecting anything that is not an account field."""
        if name not in ACCOUNT_FIELDS:
            raise ValueError(f"unknown account field: {name!r}")
        return sql.Identifier(name)

    def _returning(self) -> sql.Composable:
        return sql.SQL(", ").join(sql.Identifier(name) for name in ACCOUNT_FIELDS)

    async def find_one(self, predicate: FieldPredicate) -> Account | None:
        """Fetch the first account whose field equals the predicate value, or ``None``."""
        query = sql.SQL("SELECT {columns} FROM {table} WHERE {field} = %s LIMIT 1").format(
            columns=self._returning(),
            table=sql.Identifier(self.table),
            field=self._column(predicate.field),
        )
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(query, (predicate.value,))
                row = await cur.fetchone()
        if not row:
            return None
        return self._map_record(row)

    async def update(
        self, values: dict[str, Any], predicate: FieldPredicate
    ) -> tuple[int, list[Account]]:
        """Apply ``values`` to matching rows and return (affected count, updated accounts)."""
        if not values:
            raise ValueError("no values to update")
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(self._column(name)) for name in values
        )
        query = sql.SQL("UPDATE {table} SET {assignments} WHERE {field} = %s RETURNING {columns}").format(
            table=sql.Identifier(self.table),
            assignments=assignments,
            field=self._column(predicate.field),
            columns=self._returning(),
        )
        params = (*values.values(), predicate.value)
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                try:
                    await cur.execute(query, params)
                except errors.UniqueViolation as exc:
                    raise AccountExistsError() from exc
                rows = await cur.fetchall()
            await conn.commit()
        return len(rows), [self._map_record(row) for row in rows]

    async def create(self, record: dict[str, Any]) -> Account | None:
        """Insert an account row; a unique constraint violation surfaces as ``AccountExistsError``."""
        names = [name for name in record if name != "id"]
        query = sql.SQL("INSERT INTO {table} ({names}) VALUES ({placeholders}) RETURNING {columns}").format(
            table=sql.Identifier(self.table),
            names=sql.SQL(", ").join(self._column(name) for name in names),
            placeholders=sql.SQL(", ").join(sql.Placeholder() for _ in names),
            columns=self._returning(),
        )
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                try:
                    await cur.execute(query, [record[name] for name in names])
                except errors.UniqueViolation as exc:
                    raise AccountExistsError() from exc
                row = await cur.fetchone()
            await conn.commit()
        if not row:
            return None
        return self._map_record(row)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            id=row[0],
            username=row[1],
            email=row[2],
            password_hash=row[3],
            first_name=row[4],
            active=row[5],
            created_at=row[6],
            updated_at=row[7],
            created_by=row[8],
            updated_by=row[9],
        )
