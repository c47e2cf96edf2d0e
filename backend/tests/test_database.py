import sqlite3
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import DataError, IntegrityError, OperationalError, TimeoutError as PoolTimeoutError

from itam.core.database import transaction, translate_db_error
from itam.core.exceptions import DependencyUnavailable, StoreTimeout, UniqueConstraintConflict, ValidationFailed
from itam.models.tenant import Tenant


class FakePgError(Exception):
    def __init__(self, message, pgcode, constraint_name=None):
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = SimpleNamespace(constraint_name=constraint_name)


def test_sqlite_unique_violation_carries_columns():
    exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("UNIQUE constraint failed: users.tenant_id, users.email"))

    translated = translate_db_error(exc)

    assert isinstance(translated, UniqueConstraintConflict)
    assert translated.columns == ("users.tenant_id", "users.email")
    assert translated.involves(column="users.email")
    assert not translated.involves(column="users.employee_id")


def test_postgres_unique_violation_carries_constraint_name():
    orig = FakePgError("duplicate key value", "23505", "uq_tickets_ticket_number")

    translated = translate_db_error(IntegrityError("INSERT", {}, orig))

    assert isinstance(translated, UniqueConstraintConflict)
    assert translated.involves(constraint="uq_tickets_ticket_number")


def test_other_integrity_errors_are_not_translated():
    exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("NOT NULL constraint failed: users.email"))

    assert translate_db_error(exc) is None


def test_out_of_range_values_become_validation_errors():
    exc = DataError("INSERT", {}, FakePgError("numeric field overflow", "22003"))

    translated = translate_db_error(exc)

    assert isinstance(translated, ValidationFailed)
    assert translated.issues[0].code == "invalid_value"


def test_statement_timeouts():
    canceled = OperationalError("SELECT", {}, FakePgError("canceling statement due to statement timeout", "57014"))
    locked = OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))

    assert isinstance(translate_db_error(canceled), StoreTimeout)
    assert isinstance(translate_db_error(locked), StoreTimeout)


def test_unreachable_store_and_pool_exhaustion():
    refused = translate_db_error(OperationalError("SELECT", {}, Exception("connection refused")))
    exhausted = translate_db_error(PoolTimeoutError("QueuePool limit reached"))

    assert isinstance(refused, DependencyUnavailable)
    assert not isinstance(refused, StoreTimeout)
    assert isinstance(exhausted, DependencyUnavailable)
    assert exhausted.retryable is True


def test_transaction_rolls_back_and_translates(db):
    with transaction(db):
        db.add(Tenant(name="One", slug="dup"))

    with pytest.raises(UniqueConstraintConflict) as excinfo:
        with transaction(db):
            db.add(Tenant(name="Two", slug="dup"))
            db.add(Tenant(name="Three", slug="unique"))

    assert excinfo.value.involves("uq_tenants_slug", "tenants.slug")
    assert sorted(t.slug for t in db.query(Tenant)) == ["dup"]


def test_transaction_rolls_back_on_application_error(db):
    with pytest.raises(ValueError):
        with transaction(db):
            db.add(Tenant(name="Ghost", slug="ghost"))
            db.flush()
            raise ValueError("abort")

    assert db.query(Tenant).count() == 0
