"""Entitlement API endpoints.

Provides routes for:
- Access check for a course
- Checkout session creation
- Payment verification after the gateway redirect
"""

from uuid import UUID

from fastapi import APIRouter, status
from fastapi.responses import ORJSONResponse

from coursemarket.auth.dependencies import CurrentUser
from coursemarket.entitlements.dependencies import EntitlementServiceDep
from coursemarket.entitlements.schemas import (
    AccessResponse,
    CheckoutSession,
    PurchaseStatus,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)


router = APIRouter(prefix="/v1/courses", tags=["entitlements"])


@router.get("/{course_id}/access", response_model=AccessResponse)
async def check_access(
    course_id: UUID,
    current_user: CurrentUser,
    entitlement_service: EntitlementServiceDep,
) -> AccessResponse:
    """Whether the caller may read the course's lectures."""
    decision = await entitlement_service.check_access(current_user.id, course_id)
    return AccessResponse(allowed=decision.allowed, reason=decision.reason)


@router.post(
    "/{course_id}/checkout",
    response_model=CheckoutSession,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Already subscribed"},
        404: {"description": "Course not found"},
        502: {"description": "Payment gateway failure"},
    },
)
async def checkout(
    course_id: UUID,
    current_user: CurrentUser,
    entitlement_service: EntitlementServiceDep,
) -> CheckoutSession:
    """Create a checkout session; the client redirects to its URL."""
    return await entitlement_service.create_checkout(current_user.id, course_id)


@router.post(
    "/{course_id}/verify-payment",
    response_model=VerifyPaymentResponse,
    responses={
        400: {"description": "Missing input, mismatched session or unpaid"},
        404: {"description": "Session, course or user not found"},
    },
)
async def verify_payment(
    course_id: UUID,
    current_user: CurrentUser,
    entitlement_service: EntitlementServiceDep,
    data: VerifyPaymentRequest | None = None,
) -> VerifyPaymentResponse | ORJSONResponse:
    """Verify the checkout session and grant the course. Idempotent."""
    result = await entitlement_service.verify_payment(
        current_user.id, course_id, data.session_id if data else None
    )

    if result.status == PurchaseStatus.PAYMENT_FAILED:
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Payment failed"},
        )

    return VerifyPaymentResponse(
        success=True,
        message="Course Purchased Successfully",
        course=result.course,
    )
