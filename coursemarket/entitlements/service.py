"""Entitlement service layer.

Business logic for:
- Access checks (admin role, superadmin override or subscription)
- Checkout session creation
- Payment verification and the entitlement grant

Payment verification may run more than once for the same gateway session
(page reloads, retries, concurrent tabs). The payments table is keyed by the
session id and written with a lightweight transaction, so one Payment exists
per session no matter how many verifications race. The subscription add and
the progress row are written in one logged batch and only when the user is
not yet subscribed.
"""

from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import urlencode
from uuid import UUID

from coursemarket.auth.models import User
from coursemarket.auth.repository import UserRepository
from coursemarket.auth.service import UserNotFoundError
from coursemarket.config.settings import Settings
from coursemarket.core.exceptions import AlreadyExistsError, InvalidInputError, NotFoundError
from coursemarket.core.logging import get_logger
from coursemarket.courses.models import Course
from coursemarket.courses.repository import CourseRepository
from coursemarket.courses.service import CourseNotFoundError
from coursemarket.entitlements.access import AccessDecision, check_access
from coursemarket.entitlements.gateway import GatewaySession, LineItem, StripeGateway
from coursemarket.entitlements.models import Payment, PaymentStatus
from coursemarket.entitlements.repository import EntitlementRepository, PaymentRepository
from coursemarket.entitlements.schemas import (
    CheckoutSession,
    CourseSummary,
    PurchaseResult,
    PurchaseStatus,
)


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class MissingInputError(InvalidInputError):
    """Session id or course id absent."""

    def __init__(self, message: str = "Session ID and Course ID are required"):
        super().__init__(message, "missing_input")


class SessionNotFoundError(NotFoundError):
    """Gateway does not know the session id."""

    def __init__(self, message: str = "Payment session not found"):
        super().__init__(message, "session_not_found")


class AlreadyEntitledError(AlreadyExistsError):
    """User already owns the course."""

    def __init__(self, message: str = "You already have this course"):
        super().__init__(message, "already_entitled")


class SessionMismatchError(InvalidInputError):
    """Session was paid for another course or by another user."""

    def __init__(self, message: str = "Payment session does not match this purchase"):
        super().__init__(message, "session_mismatch")


# ==============================================================================
# Helpers
# ==============================================================================


def to_minor_units(price: Decimal | float | str) -> int:
    """Convert a major-unit price to minor units, rounding half up.

    Examples:
        >>> to_minor_units(Decimal("499.995"))
        50000
        >>> to_minor_units("12.344")
        1234
    """
    amount = Decimal(str(price)) * 100
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def build_success_url(base_url: str, course_id: UUID) -> str:
    """Success URL carrying the gateway session placeholder and the course id.

    The ``{CHECKOUT_SESSION_ID}`` placeholder must reach Stripe unescaped.
    """
    separator = "&" if "?" in base_url else "?"
    return (
        f"{base_url}{separator}session_id={{CHECKOUT_SESSION_ID}}&"
        f"{urlencode({'courseId': str(course_id)})}"
    )


def _summary(course: Course) -> CourseSummary:
    return CourseSummary(
        id=course.id,
        title=course.title,
        description=course.description,
        image_url=course.image.url if course.image else None,
    )


# ==============================================================================
# Entitlement Service
# ==============================================================================


class EntitlementService:
    """Service for access checks, checkout and payment verification."""

    def __init__(
        self,
        users: UserRepository,
        courses: CourseRepository,
        payments: PaymentRepository,
        entitlements: EntitlementRepository,
        gateway: StripeGateway,
        settings: Settings,
    ):
        self.users = users
        self.courses = courses
        self.payments = payments
        self.entitlements = entitlements
        self.gateway = gateway
        self.settings = settings

    async def _load_user(self, user_id: UUID) -> User:
        user = await self.users.get(user_id)
        if not user:
            raise UserNotFoundError
        return user

    async def _load_course(self, course_id: UUID) -> Course:
        course = await self.courses.get(course_id)
        if not course:
            raise CourseNotFoundError
        return course

    async def check_access(self, user_id: UUID, course_id: UUID) -> AccessDecision:
        """Whether the stored user may read the course's lectures."""
        user = await self._load_user(user_id)
        return check_access(user, course_id)

    async def create_checkout(self, user_id: UUID, course_id: UUID) -> CheckoutSession:
        """Open a gateway checkout session for one course.

        Raises:
            CourseNotFoundError: If the course does not exist
            AlreadyEntitledError: If the user is already subscribed
            UpstreamError: If the gateway call fails
        """
        course = await self._load_course(course_id)
        user = await self._load_user(user_id)
        if user.is_subscribed(course.id):
            raise AlreadyEntitledError

        session = await self.gateway.create_session(
            line_items=[
                LineItem(
                    name=course.title,
                    description=course.description,
                    unit_amount=to_minor_units(course.price),
                    currency=self.settings.stripe_currency,
                )
            ],
            success_url=build_success_url(self.settings.checkout_success_url, course.id),
            cancel_url=self.settings.checkout_cancel_url,
            metadata={
                "courseId": str(course.id),
                "courseTitle": course.title,
                "userId": str(user.id),
            },
        )

        logger.info(
            "checkout_created",
            user_id=str(user.id),
            course_id=str(course.id),
            session_id=session.id,
        )
        return CheckoutSession(url=session.url, session_id=session.id, course_id=course.id)

    async def _record_payment(
        self, session: GatewaySession, user_id: UUID, course_id: UUID
    ) -> Payment:
        """Store the payment once per gateway session."""
        existing = await self.payments.get_by_session(session.id)
        if existing:
            logger.info("payment_already_recorded", session_id=session.id)
            return existing

        payment, created = await self.payments.create_if_absent(
            Payment(
                session_id=session.id,
                payment_status=session.payment_status,
                amount_total=session.amount_total,
                customer_email=session.customer_email,
                course_id=course_id,
                user_id=user_id,
            )
        )
        if created:
            logger.info(
                "payment_recorded",
                session_id=session.id,
                amount_total=payment.amount_total,
            )
        else:
            logger.info("payment_already_recorded", session_id=session.id)
        return payment

    async def verify_payment(
        self,
        user_id: UUID,
        course_id: UUID | None,
        session_id: str | None,
    ) -> PurchaseResult:
        """Verify a checkout session and grant the course.

        Safe to call repeatedly for the same session.

        Raises:
            MissingInputError: If session id or course id is absent
            SessionNotFoundError: If the gateway does not know the session
            SessionMismatchError: If the session was opened for another
                course or user
            CourseNotFoundError: If the course no longer exists
            UserNotFoundError: If the user no longer exists
        """
        if not session_id or not session_id.strip() or not course_id:
            raise MissingInputError

        session = await self.gateway.retrieve_session(session_id.strip())
        if session is None:
            raise SessionNotFoundError

        if session.payment_status != PaymentStatus.PAID.value:
            logger.warning(
                "payment_not_completed",
                session_id=session.id,
                payment_status=session.payment_status,
            )
            return PurchaseResult(status=PurchaseStatus.PAYMENT_FAILED)

        tagged = (session.metadata.get("courseId"), session.metadata.get("userId"))
        if tagged != (str(course_id), str(user_id)):
            logger.warning(
                "payment_session_mismatch",
                session_id=session.id,
                user_id=str(user_id),
                course_id=str(course_id),
            )
            raise SessionMismatchError

        payment = await self._record_payment(session, user_id, course_id)
        if payment.user_id != user_id or payment.course_id != course_id:
            logger.warning(
                "payment_claimed_by_other_purchase",
                session_id=session.id,
                user_id=str(user_id),
                course_id=str(course_id),
            )
            raise SessionMismatchError

        course = await self._load_course(course_id)
        user = await self._load_user(user_id)
        if user.is_subscribed(course.id):
            logger.info(
                "entitlement_already_present",
                user_id=str(user.id),
                course_id=str(course.id),
            )
        else:
            await self.entitlements.grant(user.id, course.id)

        return PurchaseResult(status=PurchaseStatus.PURCHASED, course=_summary(course))
