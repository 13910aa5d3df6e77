"""
In-memory collaborators.

Suitable for tests and single-process hosts. The session store relies on the
lock each Session carries; the directory holds a snapshot dict guarded by its
own lock.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Iterable, Optional

from .interfaces import IdentityDirectory, IdentityLookup, PermissionOracle, SessionStore
from .models import Identity, Session, ShadowRecord


class InMemoryDirectory(IdentityLookup, IdentityDirectory):
    """Dict-backed user directory."""

    def __init__(self, identities: Iterable[Identity] = ()):
        self._lock = threading.Lock()
        self._identities: dict[Any, Identity] = {}
        for identity in identities:
            self.add(identity)

    def add(self, identity: Identity) -> Identity:
        """Insert or replace an identity."""
        with self._lock:
            self._identities[identity.id] = identity
        return identity

    def remove(self, identity_id: Any) -> bool:
        with self._lock:
            return self._identities.pop(identity_id, None) is not None

    def resolve(self, identity_id: Any) -> Optional[Identity]:
        with self._lock:
            return self._identities.get(identity_id)

    def query_by_text(
        self,
        text: str,
        *,
        exclude: Iterable[Any] = (),
        limit: Optional[int] = None,
        fields: Iterable[str] = (),
    ) -> list[Identity]:
        # Matching and limit are left to the caller; only exclusions are applied
        excluded = set(exclude)
        with self._lock:
            return [i for i in self._identities.values() if i.id not in excluded]

    def __len__(self) -> int:
        return len(self._identities)


class InMemorySessionStore(SessionStore):
    """Mutates Session objects in place under their own reentrant lock."""

    def locked(self, session: Session):
        return session.lock

    def get_active_identity(self, session: Session) -> Identity:
        with session.lock:
            return session.active_identity

    def swap(self, session: Session, identity: Identity, payload: dict) -> None:
        with session.lock:
            session.active_identity = identity
            session.payload = payload
            session.epoch += 1

    def capture_shadow(self, session: Session) -> ShadowRecord:
        with session.lock:
            if session.shadow is not None:
                raise RuntimeError("Session already holds a shadow record")
            record = ShadowRecord(
                original_identity=session.active_identity,
                original_payload=copy.deepcopy(session.payload),
            )
            session.shadow = record
            return record

    def restore_shadow(self, session: Session, record: ShadowRecord) -> None:
        with session.lock:
            session.active_identity = record.original_identity
            session.payload = copy.deepcopy(record.original_payload)
            session.shadow = None
            session.epoch += 1

    def get_shadow(self, session: Session) -> Optional[ShadowRecord]:
        with session.lock:
            return session.shadow

    def has_shadow(self, session: Session) -> bool:
        with session.lock:
            return session.shadow is not None


class FlagPermissionOracle(PermissionOracle):
    """Trusts the directory's is_privileged flag."""

    def is_privileged(self, identity: Identity) -> bool:
        return bool(identity.is_privileged)


class StaticPermissionOracle(PermissionOracle):
    """Privilege from an explicit id list, e.g. a configured admin roster."""

    def __init__(self, privileged_ids: Iterable[Any]):
        self.privileged_ids = frozenset(privileged_ids)

    def is_privileged(self, identity: Identity) -> bool:
        return identity.id in self.privileged_ids
