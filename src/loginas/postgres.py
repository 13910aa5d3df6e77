"""
loginas.postgres - PostgreSQL-backed identity directory.

Expects a table shaped like:

    CREATE TABLE users (
        id          bigint PRIMARY KEY,
        first_name  text NOT NULL DEFAULT '',
        last_name   text NOT NULL DEFAULT '',
        email       text NOT NULL DEFAULT '',
        username    text NOT NULL DEFAULT '',
        deleted     boolean NOT NULL DEFAULT false,
        suspended   boolean NOT NULL DEFAULT false,
        privileged  boolean NOT NULL DEFAULT false,
        anonymous   boolean NOT NULL DEFAULT false
    );

Example:
    with psycopg.connect(DATABASE_URL) as conn:
        directory = PostgresDirectory(conn.cursor())
        searcher = IdentitySearchService(directory)
        results = searcher.search("smith")
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

import psycopg

from .base import BaseClient
from .interfaces import IdentityDirectory, IdentityLookup
from .models import Identity

__all__ = ["PostgresDirectory"]

_COLUMNS = (
    "id, first_name, last_name, email, username, "
    "deleted, suspended, privileged, anonymous"
)


def _like_pattern(text: str) -> str:
    """Substring ILIKE pattern with the user's wildcards escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _row_to_identity(row: dict[str, Any]) -> Identity:
    return Identity(
        id=row["id"],
        first_name=row["first_name"] or "",
        last_name=row["last_name"] or "",
        email=row["email"] or "",
        username=row["username"] or "",
        is_deleted=bool(row["deleted"]),
        is_suspended=bool(row["suspended"]),
        is_privileged=bool(row["privileged"]),
        is_anonymous=bool(row["anonymous"]),
    )


class PostgresDirectory(BaseClient, IdentityLookup, IdentityDirectory):
    """
    Identity lookup and search over a users table.

    Search pushes matching, exclusions and the limit into one bounded query.
    Deleted and anonymous rows are never returned by query_by_text. Which
    identity fields are matched is decided by the caller on each query.
    """

    _table = "users"

    def resolve(self, identity_id: Any) -> Optional[Identity]:
        row = self._fetch_one(
            f"SELECT {_COLUMNS} FROM {self._table} WHERE id = %s",
            (identity_id,),
        )
        return _row_to_identity(row) if row else None

    def query_by_text(
        self,
        text: str,
        *,
        exclude: Iterable[Any] = (),
        limit: Optional[int] = None,
        fields: Iterable[str] = (),
    ) -> list[Identity]:
        conditions = ["NOT deleted", "NOT anonymous"]
        params: list[Any] = []

        excluded = list(exclude)
        if excluded:
            conditions.append("id <> ALL(%s)")
            params.append(excluded)

        fields = list(fields)
        for name in fields:
            if not name.isidentifier():
                raise ValueError(f"Invalid identity field: {name}")

        text = (text or "").strip()
        if text:
            columns = ["first_name || ' ' || last_name", "first_name", "last_name"]
            columns.extend(
                f"{name}::text"
                for name in fields
                if name not in ("first_name", "last_name")
            )
            pattern = _like_pattern(text)
            conditions.append(
                "(" + " OR ".join(f"{col} ILIKE %s" for col in columns) + ")"
            )
            params.extend([pattern] * len(columns))

        sql = f"""
            SELECT {_COLUMNS}
            FROM {self._table}
            WHERE {" AND ".join(conditions)}
            ORDER BY lower(last_name), lower(first_name), id
        """
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)

        return [_row_to_identity(row) for row in self._fetch_all(sql, tuple(params))]
