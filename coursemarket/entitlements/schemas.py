"""Pydantic schemas for checkout, payment verification and access checks."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class PurchaseStatus(str, Enum):
    """Outcome of a payment verification."""

    PURCHASED = "purchased"
    PAYMENT_FAILED = "payment_failed"


class CourseSummary(BaseModel):
    """Course fields echoed back after a purchase."""

    id: UUID
    title: str
    description: str
    image_url: str | None = None


class PurchaseResult(BaseModel):
    """Result of verify_payment."""

    status: PurchaseStatus
    course: CourseSummary | None = None


class CheckoutSession(BaseModel):
    """Checkout redirect handed to the client."""

    url: str = Field(..., description="Gateway-hosted checkout page")
    session_id: str = Field(..., description="Gateway session id")
    course_id: UUID


class VerifyPaymentRequest(BaseModel):
    """Payment verification request."""

    session_id: str | None = Field(None, description="Gateway session id")


class VerifyPaymentResponse(BaseModel):
    """Payment verification response."""

    success: bool
    message: str
    course: CourseSummary | None = None


class AccessResponse(BaseModel):
    """Entitlement check response."""

    allowed: bool
    reason: str | None = None
