"""Tests for the in-memory collaborators."""

import pytest

from loginas import (
    FlagPermissionOracle,
    Identity,
    InMemoryAuditLog,
    InMemoryDirectory,
    InMemorySessionStore,
    Session,
    StaticPermissionOracle,
)
from loginas.audit import AuditEvent
from tests.conftest import ALICE, BOB, OPERATOR


class TestInMemoryDirectory:
    def test_resolve(self, directory):
        assert directory.resolve(ALICE.id) == ALICE
        assert directory.resolve(12345) is None

    def test_add_replaces(self, directory):
        renamed = Identity(id=ALICE.id, first_name="Alicia", last_name="Zorn")
        directory.add(renamed)

        assert directory.resolve(ALICE.id).first_name == "Alicia"

    def test_remove(self, directory):
        assert directory.remove(ALICE.id) is True
        assert directory.remove(ALICE.id) is False
        assert directory.resolve(ALICE.id) is None

    def test_query_applies_exclusions_only(self, directory):
        ids = {i.id for i in directory.query_by_text("no-such-text", exclude=[ALICE.id])}

        assert ALICE.id not in ids
        assert BOB.id in ids
        assert len(ids) == len(directory) - 1


class TestInMemorySessionStore:
    def test_capture_and_restore(self):
        store = InMemorySessionStore()
        session = Session(active_identity=OPERATOR, payload={"a": [1]})

        record = store.capture_shadow(session)
        store.swap(session, ALICE, {})
        store.restore_shadow(session, record)

        assert session.active_identity == OPERATOR
        assert session.payload == {"a": [1]}
        assert not store.has_shadow(session)

    def test_capture_twice_rejected(self):
        store = InMemorySessionStore()
        session = Session(active_identity=OPERATOR)
        store.capture_shadow(session)

        with pytest.raises(RuntimeError):
            store.capture_shadow(session)

    def test_swap_bumps_epoch(self):
        store = InMemorySessionStore()
        session = Session(active_identity=OPERATOR)

        store.swap(session, ALICE, {})

        assert session.epoch == 1
        assert store.get_active_identity(session) == ALICE


class TestModels:
    def test_display_name_defaults_to_fullname(self):
        assert Identity(id=1, first_name="Ada", last_name="Lovelace").display_name == (
            "Ada Lovelace"
        )

    def test_real_identity(self):
        session = Session(active_identity=OPERATOR)
        assert session.real_identity == OPERATOR

        InMemorySessionStore().capture_shadow(session)
        session.active_identity = ALICE
        assert session.real_identity == OPERATOR
        assert session.is_impersonating


class TestOracles:
    def test_flag_oracle(self):
        oracle = FlagPermissionOracle()

        assert oracle.is_privileged(OPERATOR)
        assert not oracle.is_privileged(ALICE)

    def test_static_oracle(self):
        oracle = StaticPermissionOracle([ALICE.id])

        assert oracle.is_privileged(ALICE)
        assert not oracle.is_privileged(OPERATOR)


class TestInMemoryAuditLog:
    def test_filters_and_limit(self):
        log = InMemoryAuditLog()
        for target in (1, 2, 3):
            log.record(AuditEvent(event_type="impersonation_started", actor_id=10, target_id=target))
        log.record(AuditEvent(event_type="impersonation_ended", actor_id=10, target_id=3))

        assert [e.target_id for e in log.get_audit_events(limit=2)] == [3, 3]
        assert len(log.get_audit_events(event_type="impersonation_started")) == 3
        assert [e.target_id for e in log.get_audit_events(target_id=2)] == [2]

    def test_clear(self):
        log = InMemoryAuditLog()
        log.record(AuditEvent(event_type="impersonation_ended", actor_id=10))
        log.clear()

        assert log.get_audit_events() == []
