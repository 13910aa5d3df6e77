"""
Caller-facing login-as operations.

A request layer holds one LoginAsService and passes the caller's Session to
each call. The requester is always the session's active identity: while
impersonating, that is the impersonated user.

Usage:
    service = LoginAsService(controller, searcher, oracle)

    results = service.search_identities(session, "smith")
    service.start_impersonation(session, results[0].id)
    ...
    service.end_impersonation(session)
"""

from __future__ import annotations

import logging
from typing import Any

from .base import PermissionDenied
from .controller import ImpersonationController
from .interfaces import PermissionOracle
from .models import Identity, NavigationState, SearchResult, Session
from .search import IdentitySearchService

log = logging.getLogger(__name__)


class LoginAsService:
    def __init__(
        self,
        controller: ImpersonationController,
        searcher: IdentitySearchService,
        oracle: PermissionOracle,
    ):
        self.controller = controller
        self.searcher = searcher
        self.oracle = oracle

    def search_identities(self, session: Session, query: str) -> list[SearchResult]:
        """
        List identities the session's user could log in as.

        Raises:
            PermissionDenied: If the active identity is not privileged
        """
        requester = self.controller.store.get_active_identity(session)
        if not self.oracle.is_privileged(requester):
            log.warning("Identity search denied for %s", requester.id)
            raise PermissionDenied("Only privileged identities may search users")
        return self.searcher.search(query, excluded_ids={requester.id})

    def start_impersonation(self, session: Session, target_id: Any) -> Identity:
        requester = self.controller.store.get_active_identity(session)
        return self.controller.start(session, requester, target_id)

    def end_impersonation(self, session: Session) -> bool:
        """Return to the real user. Safe to call when not impersonating."""
        self.controller.stop(session)
        return True

    def navigation_state(self, session: Session) -> NavigationState:
        with self.controller.store.locked(session):
            impersonating = self.controller.store.has_shadow(session)
            active = self.controller.store.get_active_identity(session)
        return NavigationState(
            show_login_as=impersonating or self.oracle.is_privileged(active),
            show_return=impersonating,
        )
