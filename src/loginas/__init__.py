"""loginas - let privileged operators log in as another user and return.

Usage:
    from loginas import (
        ImpersonationController,
        IdentitySearchService,
        InMemorySessionStore,
        LoginAsService,
    )

    controller = ImpersonationController(directory, InMemorySessionStore(), oracle)
    service = LoginAsService(controller, IdentitySearchService(directory, oracle=oracle), oracle)
"""

from loginas.audit import (
    IMPERSONATION_DENIED,
    IMPERSONATION_ENDED,
    IMPERSONATION_STARTED,
    AuditEvent,
    InMemoryAuditLog,
)
from loginas.base import (
    AlreadyImpersonating,
    DirectoryError,
    Forbidden,
    ImpersonationError,
    InvalidTarget,
    LoginAsError,
    NotFound,
    PermissionDenied,
)
from loginas.config import LoginAsConfig
from loginas.controller import ImpersonationController
from loginas.interfaces import (
    AuditSink,
    IdentityDirectory,
    IdentityLookup,
    PermissionOracle,
    SessionStore,
)
from loginas.memory import (
    FlagPermissionOracle,
    InMemoryDirectory,
    InMemorySessionStore,
    StaticPermissionOracle,
)
from loginas.models import (
    ExtraField,
    Identity,
    ImpersonationState,
    NavigationState,
    SearchResult,
    Session,
    ShadowRecord,
)
from loginas.search import DEFAULT_LIMIT, IdentitySearchService
from loginas.service import LoginAsService

__all__ = [
    # Errors
    "LoginAsError",
    "ImpersonationError",
    "PermissionDenied",
    "InvalidTarget",
    "NotFound",
    "Forbidden",
    "AlreadyImpersonating",
    "DirectoryError",
    # Models
    "Identity",
    "Session",
    "ShadowRecord",
    "ImpersonationState",
    "SearchResult",
    "ExtraField",
    "NavigationState",
    # Core
    "LoginAsConfig",
    "ImpersonationController",
    "IdentitySearchService",
    "LoginAsService",
    "DEFAULT_LIMIT",
    # Collaborators
    "IdentityLookup",
    "IdentityDirectory",
    "SessionStore",
    "PermissionOracle",
    "AuditSink",
    "InMemoryDirectory",
    "InMemorySessionStore",
    "FlagPermissionOracle",
    "StaticPermissionOracle",
    # Audit
    "AuditEvent",
    "InMemoryAuditLog",
    "IMPERSONATION_STARTED",
    "IMPERSONATION_DENIED",
    "IMPERSONATION_ENDED",
]
