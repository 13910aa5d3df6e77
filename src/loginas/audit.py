"""
Audit events for impersonation transitions.

Every start attempt (successful or denied) and every effective stop produces
one AuditEvent. Denials keep their exact kind so a Forbidden never reads as a
generic permission failure.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .interfaces import AuditSink

IMPERSONATION_STARTED = "impersonation_started"
IMPERSONATION_DENIED = "impersonation_denied"
IMPERSONATION_ENDED = "impersonation_ended"


@dataclass(frozen=True)
class AuditEvent:
    event_type: str
    actor_id: Any
    target_id: Any = None
    session_id: Optional[str] = None
    outcome: str = "success"  # "success" or an ImpersonationError.kind
    reason: Optional[str] = None
    event_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryAuditLog(AuditSink):
    """Process-local audit trail, mostly for tests and single-process hosts."""

    def __init__(self) -> None:
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def record(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def get_audit_events(
        self,
        limit: int = 100,
        event_type: str | None = None,
        **filters: Any,
    ) -> list[AuditEvent]:
        """Query audit events with optional filters.

        Args:
            limit: Maximum number of events to return (default 100)
            event_type: Filter by event type (e.g., 'impersonation_denied')
            **filters: Additional field=value filters (e.g., actor_id=10)

        Returns:
            Matching events, newest first
        """
        with self._lock:
            events = list(reversed(self._events))

        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        for name, value in filters.items():
            if value is not None:
                events = [e for e in events if getattr(e, name) == value]

        return events[:limit]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
