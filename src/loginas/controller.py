"""
Impersonation state machine.

A session is NORMAL (no shadow record) or IMPERSONATING (shadow present).
start() moves NORMAL -> IMPERSONATING after the eligibility checks pass;
stop() moves back and is a no-op in NORMAL. Nesting is not allowed.

Usage:
    controller = ImpersonationController(directory, store, oracle)
    controller.start(session, admin, target_id)   # raises on any failed check
    ...
    controller.stop(session)                      # always safe to call
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .audit import (
    IMPERSONATION_DENIED,
    IMPERSONATION_ENDED,
    IMPERSONATION_STARTED,
    AuditEvent,
)
from .base import (
    AlreadyImpersonating,
    Forbidden,
    ImpersonationError,
    InvalidTarget,
    NotFound,
    PermissionDenied,
)
from .config import LoginAsConfig
from .interfaces import AuditSink, IdentityLookup, PermissionOracle, SessionStore
from .models import Identity, ImpersonationState, Session

log = logging.getLogger(__name__)


class ImpersonationController:
    """Starts and ends impersonation on explicit Session objects."""

    def __init__(
        self,
        lookup: IdentityLookup,
        store: SessionStore,
        oracle: PermissionOracle,
        config: Optional[LoginAsConfig] = None,
        audit: Optional[AuditSink] = None,
    ):
        self.lookup = lookup
        self.store = store
        self.oracle = oracle
        self.config = config or LoginAsConfig()
        self.audit = audit

    def state(self, session: Session) -> ImpersonationState:
        with self.store.locked(session):
            if self.store.has_shadow(session):
                return ImpersonationState.IMPERSONATING
            return ImpersonationState.NORMAL

    def start(self, session: Session, requester: Identity, target_id: Any) -> Identity:
        """
        Make target_id the session's active identity.

        Checks run in a fixed order and the first failure wins:
        requester privileged, not self, target exists, not deleted,
        not suspended, not primary admin, not guest, session not already
        impersonating.

        Returns:
            The target identity, now active

        Raises:
            PermissionDenied, InvalidTarget, NotFound, Forbidden,
            AlreadyImpersonating
        """
        try:
            target = self._check_target(requester, target_id)
            with self.store.locked(session):
                if self.store.has_shadow(session):
                    raise AlreadyImpersonating(
                        "Session is already impersonating; end it first",
                        target_id=target_id,
                    )
                self._swap_in(session, target)
        except ImpersonationError as e:
            log.warning(
                "Impersonation denied: actor=%s target=%s kind=%s reason=%s",
                requester.id,
                target_id,
                e.kind,
                e.reason,
            )
            self._record(
                IMPERSONATION_DENIED,
                requester.id,
                target_id,
                session,
                outcome=e.kind,
                reason=e.reason or str(e),
            )
            raise

        log.info(
            "Impersonation started: actor=%s target=%s session=%s",
            requester.id,
            target.id,
            session.session_id,
        )
        self._record(IMPERSONATION_STARTED, requester.id, target.id, session)
        return target

    def stop(self, session: Session) -> Identity:
        """
        Return the session to the identity that authenticated it.

        No-op when the session is not impersonating.

        Returns:
            The active identity after the call
        """
        with self.store.locked(session):
            record = self.store.get_shadow(session)
            if record is None:
                log.debug("Stop requested on session %s with no shadow", session.session_id)
                return self.store.get_active_identity(session)

            impersonated = self.store.get_active_identity(session)
            self.store.restore_shadow(session, record)
            original = self.store.get_active_identity(session)

        log.info(
            "Impersonation ended: actor=%s target=%s session=%s",
            original.id,
            impersonated.id,
            session.session_id,
        )
        self._record(IMPERSONATION_ENDED, original.id, impersonated.id, session)
        return original

    def _check_target(self, requester: Identity, target_id: Any) -> Identity:
        if not self.oracle.is_privileged(requester):
            raise PermissionDenied(
                "Only privileged identities may log in as another user",
                target_id=target_id,
            )

        if target_id == requester.id:
            raise InvalidTarget(
                "You cannot log in as yourself", target_id=target_id, reason="self"
            )

        target = self.lookup.resolve(target_id)
        if target is None:
            raise NotFound("User not found", target_id=target_id)

        # target_id may be a differently-typed form of requester.id
        if target.id == requester.id:
            raise InvalidTarget(
                "You cannot log in as yourself", target_id=target_id, reason="self"
            )

        if target.is_deleted:
            raise InvalidTarget(
                "User is deleted", target_id=target_id, reason="deleted"
            )

        if target.is_suspended:
            raise InvalidTarget(
                "User is suspended", target_id=target_id, reason="suspended"
            )

        if self.config.is_primary_admin(target):
            raise Forbidden(
                "You cannot log in as the primary administrator",
                target_id=target_id,
                reason="primary_admin",
            )

        if self.config.is_guest(target):
            raise Forbidden(
                "You cannot log in as the guest user",
                target_id=target_id,
                reason="guest",
            )

        return target

    def _swap_in(self, session: Session, target: Identity) -> None:
        """Capture the shadow and activate target. Caller holds the lock."""
        record = self.store.capture_shadow(session)
        try:
            self.store.swap(session, target, {})
        except Exception:
            # Leave the session exactly as it was before capture
            self.store.restore_shadow(session, record)
            raise

    def _record(
        self,
        event_type: str,
        actor_id: Any,
        target_id: Any,
        session: Session,
        outcome: str = "success",
        reason: Optional[str] = None,
    ) -> None:
        if self.audit is None:
            return
        self.audit.record(
            AuditEvent(
                event_type=event_type,
                actor_id=actor_id,
                target_id=target_id,
                session_id=session.session_id,
                outcome=outcome,
                reason=reason,
            )
        )
