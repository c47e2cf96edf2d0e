import re
from datetime import datetime

import pytest

from itam.core.exceptions import RetryExhausted, TenantIsolationViolation, UniqueConstraintConflict
from itam.models.ticket import Ticket, TicketActivity
from itam.repositories.ticket_repository import TicketRepository
from itam.services.ticket_sequencer import TicketSequencer, generate_ticket_number

TICKET_NUMBER = re.compile(r"^TKT-\d{6}-[A-Z0-9]{3}$")
TAKEN = "TKT-000000-AAA"


def _scripted(*numbers):
    iterator = iter(numbers)
    return lambda: next(iterator)


@pytest.fixture
def existing_ticket(db, tenant_a, actor_a):
    sequencer = TicketSequencer(generator=lambda: TAKEN)
    return TicketRepository(db, sequencer=sequencer).create(
        tenant_a.id, actor_a, title="Existing", description="Taken number", category="general"
    )


def test_generated_numbers_match_format():
    for _ in range(50):
        assert TICKET_NUMBER.match(generate_ticket_number())


def test_number_uses_last_six_digits_of_epoch_millis():
    number = generate_ticket_number(lambda: datetime(2025, 1, 2, 3, 4, 5, 678000))

    # 1735787045678 ms since the epoch
    assert number.startswith("TKT-045678-")


def test_collision_is_retried_with_a_fresh_number(db, tenant_a, actor_a, existing_ticket):
    sequencer = TicketSequencer(generator=_scripted(TAKEN, TAKEN, "TKT-123456-XYZ"), max_attempts=5)

    ticket = TicketRepository(db, sequencer=sequencer).create(
        tenant_a.id, actor_a, title="Printer jam", description="Tray 2", category="hardware"
    )

    assert ticket.ticket_number == "TKT-123456-XYZ"
    assert db.query(Ticket).count() == 2
    # Failed attempts were rolled back with their activities
    assert db.query(TicketActivity).filter(TicketActivity.activity_type == "created").count() == 2


def test_exhausted_retries_raise_ticket_creation_failed(db, tenant_a, actor_a, existing_ticket):
    sequencer = TicketSequencer(generator=lambda: TAKEN, max_attempts=5)

    with pytest.raises(RetryExhausted) as excinfo:
        TicketRepository(db, sequencer=sequencer).create(
            tenant_a.id, actor_a, title="Never", description="Always collides", category="general"
        )

    assert excinfo.value.code == "ticket_creation_failed"
    assert excinfo.value.attempts == 5
    assert db.query(Ticket).count() == 1
    assert db.query(TicketActivity).count() == 1


def test_unrelated_errors_are_not_retried(db, tenant_a, actor_a):
    calls = []

    def generator():
        calls.append(1)
        return f"TKT-00000{len(calls)}-ABC"

    sequencer = TicketSequencer(generator=generator, max_attempts=5)

    with pytest.raises(TenantIsolationViolation):
        TicketRepository(db, sequencer=sequencer).create(
            tenant_a.id, actor_a, title="Bad asset", description="x", category="general", asset_id="missing"
        )

    assert len(calls) == 1
    assert db.query(Ticket).count() == 0


def test_other_unique_conflicts_propagate_immediately(db):
    attempts = []

    def write(number):
        attempts.append(number)
        raise UniqueConstraintConflict(constraint="uq_users_tenant_email")

    sequencer = TicketSequencer(generator=lambda: "TKT-111111-AAA", max_attempts=5)

    with pytest.raises(UniqueConstraintConflict):
        sequencer.create(db, write)
    assert attempts == ["TKT-111111-AAA"]


def test_ticket_created_with_activity_in_one_unit(db, tenant_a, actor_a, clock):
    ticket = TicketRepository(db, clock=clock).create(
        tenant_a.id, actor_a, title="Laptop slow", description="Fans loud", category="hardware", priority="high"
    )

    assert TICKET_NUMBER.match(ticket.ticket_number)
    assert ticket.status == "open"
    assert ticket.requestor_id == actor_a.user_id
    assert ticket.requestor_email == actor_a.email
    assert ticket.created_at == clock()
    activities = TicketRepository(db).list_activities(tenant_a.id, ticket.id)
    assert [a.activity_type for a in activities] == ["created"]
    assert activities[0].tenant_id == tenant_a.id
