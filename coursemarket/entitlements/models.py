"""Database models for payments.

The gateway session id is the payments table's primary key, so recording a
payment with ``INSERT ... IF NOT EXISTS`` lets the store settle concurrent
verifications of the same session: exactly one insert is applied.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from coursemarket.auth.models import ensure_utc_aware


class PaymentStatus(str, Enum):
    """Gateway payment status."""

    PAID = "paid"
    UNPAID = "unpaid"
    NO_PAYMENT_REQUIRED = "no_payment_required"


PAYMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.payments (
    session_id TEXT PRIMARY KEY,
    id UUID,
    payment_status TEXT,
    amount_total BIGINT,
    customer_email TEXT,
    course_id UUID,
    user_id UUID,
    created_at TIMESTAMP
)
"""

ENTITLEMENTS_TABLES_CQL = [PAYMENT_TABLE_CQL]


class Payment:
    """Payment record.

    Attributes:
        id: Record identifier
        session_id: Gateway checkout session id (unique business key)
        payment_status: Status reported by the gateway
        amount_total: Amount in minor currency units
        customer_email: Email the gateway collected, if any
        course_id: Purchased course
        user_id: Purchasing user
        created_at: When the payment was recorded
    """

    def __init__(
        self,
        session_id: str,
        payment_status: str,
        amount_total: int,
        course_id: UUID,
        user_id: UUID,
        customer_email: str | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.session_id = session_id
        self.payment_status = payment_status
        self.amount_total = amount_total
        self.customer_email = customer_email
        self.course_id = course_id
        self.user_id = user_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Payment":
        """Create Payment instance from Cassandra row."""
        return cls(
            id=row.id,
            session_id=row.session_id,
            payment_status=row.payment_status,
            amount_total=row.amount_total or 0,
            customer_email=row.customer_email,
            course_id=row.course_id,
            user_id=row.user_id,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Payment {self.session_id} ({self.payment_status})>"
