"""
Human-readable ticket numbers with bounded retry on collision.

Numbers look like ``TKT-<last 6 digits of epoch ms>-<3 random A-Z0-9>``. Two
tickets created in the same millisecond window collide with probability
1/36^3; the unique constraint on ``tickets.ticket_number`` catches it and the
whole creation transaction is replayed with a fresh number.
"""
from __future__ import annotations

import secrets
import string
from datetime import timezone
from typing import Callable, Optional, TypeVar

from sqlalchemy.orm import Session

from itam.core.clock import Clock, utcnow
from itam.core.config import settings
from itam.core.database import transaction
from itam.core.exceptions import RetryExhausted, UniqueConstraintConflict
from itam.core.logging import get_logger
from itam.core.metrics import record_ticket_collision, record_ticket_creation_failure

logger = get_logger(__name__)

T = TypeVar("T")

TICKET_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
TICKET_NUMBER_CONSTRAINT = "uq_tickets_ticket_number"
TICKET_NUMBER_COLUMN = "tickets.ticket_number"


def generate_ticket_number(clock: Clock = utcnow) -> str:
    millis = int(clock().replace(tzinfo=timezone.utc).timestamp() * 1000)
    fragment = str(millis)[-6:].rjust(6, "0")
    suffix = "".join(secrets.choice(TICKET_NUMBER_ALPHABET) for _ in range(3))
    return f"TKT-{fragment}-{suffix}"


class TicketSequencer:
    """Runs a ticket-creating unit of work until its number is unique."""

    def __init__(
        self,
        generator: Optional[Callable[[], str]] = None,
        max_attempts: Optional[int] = None,
    ):
        self.generator = generator or generate_ticket_number
        self.max_attempts = max_attempts or settings.TICKET_NUMBER_MAX_ATTEMPTS

    def create(self, db: Session, write: Callable[[str], T]) -> T:
        """Call ``write(number)`` inside a fresh transaction per attempt.

        Only a conflict on the ticket number is retried; every other error
        propagates from the first attempt.
        """
        for attempt in range(1, self.max_attempts + 1):
            number = self.generator()
            try:
                with transaction(db):
                    result = write(number)
                return result
            except UniqueConstraintConflict as exc:
                if not exc.involves(TICKET_NUMBER_CONSTRAINT, TICKET_NUMBER_COLUMN):
                    raise
                record_ticket_collision()
                logger.warning(
                    f"Ticket number collision on {number} (attempt {attempt}/{self.max_attempts})"
                )

        record_ticket_creation_failure()
        logger.error(f"Ticket creation failed after {self.max_attempts} numbering attempts")
        raise RetryExhausted(
            "ticket_creation_failed",
            self.max_attempts,
            "Could not allocate a unique ticket number",
        )
