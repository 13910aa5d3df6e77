"""
Identity search for the login-as target picker.

Results never contain reserved identities (primary administrator, guest),
anonymous or deleted accounts, or any caller-excluded id. Privileged accounts
are hidden as the permission oracle sees them, by default. Ordering is by last
name, then first name, then id, so a fixed directory snapshot always yields
the same list.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .config import DEFAULT_SEARCH_LIMIT, LoginAsConfig
from .interfaces import IdentityDirectory, PermissionOracle
from .memory import FlagPermissionOracle
from .models import Identity, SearchResult

log = logging.getLogger(__name__)

DEFAULT_LIMIT = DEFAULT_SEARCH_LIMIT


def _sort_key(identity: Identity) -> tuple:
    return (
        identity.last_name.casefold(),
        identity.first_name.casefold(),
        identity.id,
    )


class IdentitySearchService:
    """Bounded, ordered search over an IdentityDirectory."""

    def __init__(
        self,
        directory: IdentityDirectory,
        config: Optional[LoginAsConfig] = None,
        oracle: Optional[PermissionOracle] = None,
    ):
        self.directory = directory
        self.config = config or LoginAsConfig()
        self.oracle = oracle or FlagPermissionOracle()

    def matches(self, identity: Identity, query: str) -> bool:
        """Case-insensitive substring match on names and identity fields."""
        needle = query.strip().casefold()
        if not needle:
            return True
        haystack = [
            identity.fullname,
            identity.display_name,
            identity.first_name,
            identity.last_name,
        ]
        haystack.extend(identity.field_value(f) for f in self.config.identity_fields)
        return any(needle in value.casefold() for value in haystack if value)

    def is_listable(self, identity: Identity, excluded: frozenset) -> bool:
        if identity.id in excluded:
            return False
        if identity.is_deleted or identity.is_anonymous:
            return False
        if self.config.exclude_privileged_from_search and self.oracle.is_privileged(identity):
            return False
        return True

    def search(
        self,
        query: str,
        excluded_ids: Iterable[Any] = (),
        limit: Optional[int] = None,
    ) -> list[SearchResult]:
        """
        Find identities matching query.

        Args:
            query: Free text; empty matches everyone
            excluded_ids: Ids that must not appear, on top of the reserved ones
            limit: Maximum results (default: config.search_limit, 30)

        Returns:
            Up to limit results sorted by (last name, first name). An empty
            list means nobody matched.

        Raises:
            ValueError: If limit is negative
            DirectoryError: If the directory cannot be read
        """
        if limit is None:
            limit = self.config.search_limit
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        if limit == 0:
            return []

        query = (query or "").strip()
        excluded = self.config.with_exclusions(excluded_ids)

        # Rows dropped here shrink a limited page, so ask again for more
        fetch = limit
        while True:
            candidates = self.directory.query_by_text(
                query,
                exclude=excluded,
                limit=fetch,
                fields=self.config.identity_fields,
            )
            eligible = [
                identity
                for identity in candidates
                if self.is_listable(identity, excluded) and self.matches(identity, query)
            ]
            if len(eligible) >= limit or len(candidates) < fetch:
                break
            fetch *= 2
        eligible.sort(key=_sort_key)

        results = [
            SearchResult.from_identity(identity, self.config.identity_fields)
            for identity in eligible[:limit]
        ]
        log.debug("Search %r returned %d of %d candidates", query, len(results), len(candidates))
        return results
