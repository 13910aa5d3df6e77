"""Error taxonomy and shared database plumbing for loginas.

Provides the exception hierarchy raised by the impersonation controller and
the search service, plus the psycopg client base used by database-backed
collaborators.
"""

from __future__ import annotations

from typing import Any

import psycopg
from psycopg.rows import dict_row, kwargs_row

# Known row factories that return dict-like objects (iteration yields keys, not values)
_DICT_LIKE_FACTORIES = frozenset({dict_row, kwargs_row})


class LoginAsError(Exception):
    """Base exception for loginas operations."""


class ImpersonationError(LoginAsError):
    """A start precondition failed.

    Terminal and user-visible. Each subclass is a distinct kind so audit
    trails can tell them apart; never retry.
    """

    kind: str = "impersonation_error"

    def __init__(
        self,
        message: str,
        target_id: Any = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.target_id = target_id
        self.reason = reason


class PermissionDenied(ImpersonationError):
    """Raised when the requester is not allowed to impersonate anyone."""

    kind = "permission_denied"


class InvalidTarget(ImpersonationError):
    """Raised when the target is the requester, deleted, or suspended."""

    kind = "invalid_target"


class NotFound(ImpersonationError):
    """Raised when the target identity does not resolve."""

    kind = "not_found"


class Forbidden(ImpersonationError):
    """Raised when the target is a reserved identity (primary admin, guest)."""

    kind = "forbidden"


class AlreadyImpersonating(ImpersonationError):
    """Raised when the session already holds a shadow record."""

    kind = "already_impersonating"


class DirectoryError(LoginAsError):
    """Infrastructure failure while reading the identity directory."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


def _validate_identifier(name: str) -> str:
    """Accept plain or schema-qualified SQL identifiers only."""
    parts = name.split(".")
    if len(parts) > 2 or not all(part.isidentifier() for part in parts):
        raise ValueError(f"Invalid table name: {name}")
    return name


class BaseClient:
    """Shared cursor handling for psycopg-backed collaborators.

    Provides:
    - Database helper methods (_fetch_one, _fetch_all)
    - Error handling with SQLSTATE preservation

    Subclasses set _table to the relation they read from.
    """

    _table: str = "users"
    _error_class: type[DirectoryError] = DirectoryError

    def __init__(
        self, cursor: psycopg.Cursor[tuple[Any, ...]], table: str | None = None
    ) -> None:
        """Initialize the client.

        Args:
            cursor: A psycopg3 cursor with default (tuple) row factory.
            table: Optional override for the relation name (may be schema-qualified)

        Raises:
            ValueError: If cursor has a dict-returning row factory, or the table
                name is not a safe identifier.
        """
        self._table = _validate_identifier(table or self._table)

        if (
            hasattr(cursor, "row_factory")
            and cursor.row_factory in _DICT_LIKE_FACTORIES
        ):
            raise ValueError(
                "loginas requires tuple row factory (the default). "
                "Remove row_factory=dict_row or kwargs_row from your cursor/connection."
            )

        self.cursor = cursor

    def _handle_error(self, e: psycopg.Error) -> None:
        """Convert psycopg errors to DirectoryError, preserving SQLSTATE."""
        sqlstate = getattr(e, "sqlstate", None)
        raise self._error_class(str(e), sqlstate) from e

    def _fetch_all(self, sql: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        """Execute SQL and return all rows as list of dicts."""
        try:
            self.cursor.execute(sql, params)
            columns = [desc[0] for desc in self.cursor.description]
            rows = self.cursor.fetchall()

            if rows and isinstance(rows[0], dict):
                raise self._error_class(
                    "Cursor returned dict rows. loginas requires tuple row factory.",
                    sqlstate=None,
                )

            return [dict(zip(columns, row)) for row in rows]
        except psycopg.Error as e:
            self._handle_error(e)

    def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> dict[str, Any] | None:
        """Execute SQL and return the first row as a dict, or None."""
        rows = self._fetch_all(sql, params)
        return rows[0] if rows else None
