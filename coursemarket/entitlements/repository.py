# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Payment records and entitlement grants on Cassandra."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from cassandra.query import BatchStatement, BatchType

from coursemarket.core.logging import get_logger
from coursemarket.entitlements.models import Payment


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class PaymentRepository:
    """Insert-only payment store keyed by gateway session id."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_payment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.payments
            (session_id, id, payment_status, amount_total, customer_email,
             course_id, user_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._get_by_session = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.payments WHERE session_id = ?"
        )

    async def get_by_session(self, session_id: str) -> Payment | None:
        """Payment recorded for the gateway session, if any."""
        result = await self.session.aexecute(self._get_by_session, [session_id])
        row = result.one()
        return Payment.from_row(row) if row else None

    async def create_if_absent(self, payment: Payment) -> tuple[Payment, bool]:
        """Insert the payment unless its session id is already recorded.

        Returns:
            Tuple of (stored payment, created). When another request won the
            race, the stored payment is the one it wrote.
        """
        result = await self.session.aexecute(
            self._insert_payment,
            [
                payment.session_id,
                payment.id,
                payment.payment_status,
                payment.amount_total,
                payment.customer_email,
                payment.course_id,
                payment.user_id,
                payment.created_at,
            ],
        )
        if result.was_applied:
            return payment, True

        existing = await self.get_by_session(payment.session_id)
        return (existing or payment), False


class EntitlementRepository:
    """Writes the subscription add and the progress row together."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._add_subscription = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET subscription = subscription + ?
            WHERE id = ?
        """)
        # Leaves completed_lectures untouched if a row already exists
        self._insert_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_progress
            (user_id, course_id, id, created_at)
            VALUES (?, ?, ?, ?)
        """)

    async def grant(self, user_id: UUID, course_id: UUID) -> None:
        """Subscribe the user and create their progress row in one logged batch."""
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(self._add_subscription, ({course_id}, user_id))
        batch.add(
            self._insert_progress,
            (user_id, course_id, uuid4(), datetime.now(UTC)),
        )
        await self.session.aexecute(batch)
        logger.info(
            "entitlement_granted",
            user_id=str(user_id),
            course_id=str(course_id),
        )
