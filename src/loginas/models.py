"""
Identity, session and search result types.

Identities are read-only snapshots owned by the host user directory.
Sessions are mutated only through a SessionStore.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class Identity:
    """Snapshot of a principal from the user directory."""

    id: Any
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    username: str = ""
    display_name: str = ""
    is_deleted: bool = False
    is_suspended: bool = False
    is_privileged: bool = False
    is_anonymous: bool = False

    def __post_init__(self) -> None:
        if not self.display_name:
            object.__setattr__(self, "display_name", self.fullname)

    @property
    def fullname(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def field_value(self, name: str) -> str:
        """Attribute as text; unknown or empty fields yield ''."""
        value = getattr(self, name, None)
        return "" if value is None else str(value)


class ImpersonationState(str, Enum):
    NORMAL = "normal"
    IMPERSONATING = "impersonating"


@dataclass(frozen=True)
class ShadowRecord:
    """The original identity and payload, held while impersonating."""

    original_identity: Identity
    original_payload: dict
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Session:
    """
    One connection's authentication state.

    epoch increases on every identity swap. Permission caches keyed on an
    older epoch belong to a different identity and must be discarded.
    """

    active_identity: Identity
    payload: dict = field(default_factory=dict)
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    shadow: Optional[ShadowRecord] = None
    epoch: int = 0
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    @property
    def is_impersonating(self) -> bool:
        return self.shadow is not None

    @property
    def real_identity(self) -> Identity:
        """Who actually authenticated this session."""
        if self.shadow is not None:
            return self.shadow.original_identity
        return self.active_identity


@dataclass(frozen=True)
class ExtraField:
    name: str
    value: str


@dataclass(frozen=True)
class SearchResult:
    """Projection of an identity for the target picker."""

    id: Any
    fullname: str
    extra_fields: tuple[ExtraField, ...] = ()

    @classmethod
    def from_identity(
        cls, identity: Identity, identity_fields: tuple[str, ...] = ()
    ) -> "SearchResult":
        return cls(
            id=identity.id,
            fullname=identity.display_name,
            extra_fields=tuple(
                ExtraField(name, identity.field_value(name)) for name in identity_fields
            ),
        )


@dataclass(frozen=True)
class NavigationState:
    """What the host navigation hook should offer for a session."""

    show_login_as: bool
    show_return: bool
