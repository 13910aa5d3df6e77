"""
Runtime configuration.

Reserved identities are policy, not constants: hosts list their primary
administrator and guest accounts explicitly. The defaults match the common
convention where account 1 is the site administrator and 2 is the guest.

Usage:
    from loginas.config import LoginAsConfig

    config = LoginAsConfig.from_env()
    if config.is_guest(identity):
        ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

DEFAULT_SEARCH_LIMIT = 30

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_id(raw: str) -> Any:
    """Numeric ids become ints so they compare equal to directory ids."""
    raw = raw.strip()
    return int(raw) if raw.lstrip("-").isdigit() else raw


def _parse_ids(raw: str) -> frozenset:
    return frozenset(_parse_id(part) for part in raw.split(",") if part.strip())


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class LoginAsConfig:
    """Impersonation policy and search settings."""

    primary_admin_ids: frozenset = field(default_factory=lambda: frozenset({1}))
    guest_ids: frozenset = field(default_factory=lambda: frozenset({2}))
    search_limit: int = DEFAULT_SEARCH_LIMIT
    identity_fields: tuple[str, ...] = ("email",)
    exclude_privileged_from_search: bool = True

    def __post_init__(self) -> None:
        if self.search_limit < 0:
            raise ValueError(f"search_limit must be >= 0, got {self.search_limit}")
        # Accept any iterable of ids; store immutably
        object.__setattr__(self, "primary_admin_ids", frozenset(self.primary_admin_ids))
        object.__setattr__(self, "guest_ids", frozenset(self.guest_ids))
        object.__setattr__(self, "identity_fields", tuple(self.identity_fields))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LoginAsConfig":
        """
        Build config from LOGINAS_* environment variables.

        Unset variables keep their defaults.

        Raises:
            ValueError: If a variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}

        if "LOGINAS_PRIMARY_ADMIN_IDS" in env:
            kwargs["primary_admin_ids"] = _parse_ids(env["LOGINAS_PRIMARY_ADMIN_IDS"])
        if "LOGINAS_GUEST_IDS" in env:
            kwargs["guest_ids"] = _parse_ids(env["LOGINAS_GUEST_IDS"])
        if "LOGINAS_SEARCH_LIMIT" in env:
            raw = env["LOGINAS_SEARCH_LIMIT"]
            try:
                kwargs["search_limit"] = int(raw)
            except ValueError:
                raise ValueError(
                    f"LOGINAS_SEARCH_LIMIT must be an integer, got {raw!r}"
                ) from None
        if "LOGINAS_IDENTITY_FIELDS" in env:
            kwargs["identity_fields"] = tuple(
                f.strip() for f in env["LOGINAS_IDENTITY_FIELDS"].split(",") if f.strip()
            )
        if "LOGINAS_EXCLUDE_PRIVILEGED" in env:
            kwargs["exclude_privileged_from_search"] = _parse_bool(
                "LOGINAS_EXCLUDE_PRIVILEGED", env["LOGINAS_EXCLUDE_PRIVILEGED"]
            )

        return cls(**kwargs)

    @property
    def reserved_ids(self) -> frozenset:
        """Identities that can never be impersonated or listed."""
        return self.primary_admin_ids | self.guest_ids

    def is_primary_admin(self, identity) -> bool:
        return identity.id in self.primary_admin_ids

    def is_guest(self, identity) -> bool:
        return identity.id in self.guest_ids or identity.is_anonymous

    def with_exclusions(self, ids: Iterable) -> frozenset:
        """Reserved ids plus caller-supplied exclusions."""
        return self.reserved_ids | frozenset(ids)
