"""
Collaborator contracts.

The host application implements these; loginas.memory and loginas.postgres
ship reference implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Iterable, Optional

from .models import Identity, Session, ShadowRecord

if TYPE_CHECKING:
    from .audit import AuditEvent


class IdentityLookup(ABC):
    """Resolve a single identity by id."""

    @abstractmethod
    def resolve(self, identity_id: Any) -> Optional[Identity]:
        """
        Look up an identity.

        Returns:
            The identity, or None if no such identity exists
        """
        pass


class IdentityDirectory(ABC):
    """Free-text query over the user directory."""

    @abstractmethod
    def query_by_text(
        self,
        text: str,
        *,
        exclude: Iterable[Any] = (),
        limit: Optional[int] = None,
        fields: Iterable[str] = (),
    ) -> list[Identity]:
        """
        Return identities whose names or the given identity fields match text.

        exclude and limit are hints a directory may push into its query.
        Callers re-apply both and query again with a larger limit when their
        own filtering dropped rows, so ignoring the hints is correct, only
        slower. fields names the identity attributes to match besides names.
        """
        pass


class SessionStore(ABC):
    """Reads and atomically updates a session's identity state."""

    @abstractmethod
    def locked(self, session: Session) -> AbstractContextManager:
        """Mutual exclusion for one session. Must be reentrant."""
        pass

    @abstractmethod
    def get_active_identity(self, session: Session) -> Identity:
        pass

    @abstractmethod
    def swap(self, session: Session, identity: Identity, payload: dict) -> None:
        """Replace the active identity and payload in one step."""
        pass

    @abstractmethod
    def capture_shadow(self, session: Session) -> ShadowRecord:
        """Save the current identity and payload as the session's shadow."""
        pass

    @abstractmethod
    def restore_shadow(self, session: Session, record: ShadowRecord) -> None:
        """Put record's identity and payload back and delete the shadow."""
        pass

    @abstractmethod
    def get_shadow(self, session: Session) -> Optional[ShadowRecord]:
        """The shadow record held for session, or None when not impersonating."""
        pass

    @abstractmethod
    def has_shadow(self, session: Session) -> bool:
        pass


class PermissionOracle(ABC):
    """Decides who may impersonate."""

    @abstractmethod
    def is_privileged(self, identity: Identity) -> bool:
        pass


class AuditSink(ABC):
    """Receives impersonation audit events."""

    @abstractmethod
    def record(self, event: AuditEvent) -> None:
        pass
