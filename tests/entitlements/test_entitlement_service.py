"""Tests for EntitlementService: access, checkout and payment verification."""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from coursemarket.auth.models import User
from coursemarket.auth.service import UserNotFoundError
from coursemarket.core.exceptions import UpstreamError
from coursemarket.courses.models import Course
from coursemarket.courses.service import CourseNotFoundError
from coursemarket.entitlements.access import NOT_SUBSCRIBED
from coursemarket.entitlements.models import Payment
from coursemarket.entitlements.schemas import PurchaseStatus
from coursemarket.entitlements.service import (
    AlreadyEntitledError,
    MissingInputError,
    SessionMismatchError,
    SessionNotFoundError,
    build_success_url,
    to_minor_units,
)


# ==============================================================================
# Helpers
# ==============================================================================


class TestToMinorUnits:
    """Tests for to_minor_units."""

    @pytest.mark.parametrize(
        "price,expected",
        [
            (Decimal("499.995"), 50000),
            (Decimal("499.994"), 49999),
            (Decimal("10"), 1000),
            (Decimal("0"), 0),
            ("12.345", 1235),
            (19.99, 1999),
        ],
    )
    def test_rounds_half_up(self, price, expected: int) -> None:
        assert to_minor_units(price) == expected


class TestBuildSuccessUrl:
    """Tests for build_success_url."""

    def test_appends_placeholder_and_course(self) -> None:
        course_id = uuid4()
        url = build_success_url("http://frontend.test/payment-success", course_id)

        assert url == (
            "http://frontend.test/payment-success"
            f"?session_id={{CHECKOUT_SESSION_ID}}&courseId={course_id}"
        )

    def test_existing_query_string(self) -> None:
        course_id = uuid4()
        url = build_success_url("http://frontend.test/done?src=web", course_id)

        assert url.startswith("http://frontend.test/done?src=web&session_id=")


# ==============================================================================
# Access
# ==============================================================================


class TestCheckAccess:
    """Tests for EntitlementService.check_access."""

    @pytest.mark.asyncio
    async def test_unsubscribed_user_denied(
        self, entitlement_service, learner, course
    ) -> None:
        decision = await entitlement_service.check_access(learner.id, course.id)

        assert decision.allowed is False
        assert decision.reason == NOT_SUBSCRIBED

    @pytest.mark.asyncio
    async def test_subscriber_allowed(self, entitlement_service, learner, course) -> None:
        learner.subscription.add(course.id)

        decision = await entitlement_service.check_access(learner.id, course.id)
        assert decision.allowed is True

    @pytest.mark.asyncio
    async def test_admin_and_superadmin_allowed(
        self, entitlement_service, admin_user, superadmin, course
    ) -> None:
        assert (await entitlement_service.check_access(admin_user.id, course.id)).allowed
        assert (await entitlement_service.check_access(superadmin.id, course.id)).allowed

    @pytest.mark.asyncio
    async def test_unknown_user(self, entitlement_service, course) -> None:
        with pytest.raises(UserNotFoundError):
            await entitlement_service.check_access(uuid4(), course.id)


# ==============================================================================
# Checkout
# ==============================================================================


class TestCreateCheckout:
    """Tests for EntitlementService.create_checkout."""

    @pytest.mark.asyncio
    async def test_creates_session_with_rounded_amount(
        self, entitlement_service, gateway, learner, course
    ) -> None:
        checkout = await entitlement_service.create_checkout(learner.id, course.id)

        assert checkout.course_id == course.id
        assert checkout.session_id in gateway.sessions
        assert checkout.url == "https://checkout.stripe.test/pay"

        created = gateway.created[0]
        item = created["line_items"][0]
        assert item.unit_amount == 50000
        assert item.currency == "inr"
        assert item.name == course.title
        assert created["metadata"]["courseId"] == str(course.id)
        assert created["metadata"]["userId"] == str(learner.id)
        assert f"courseId={course.id}" in created["success_url"]
        assert "{CHECKOUT_SESSION_ID}" in created["success_url"]
        assert created["cancel_url"] == "http://frontend.test/payment/failed"

    @pytest.mark.asyncio
    async def test_already_subscribed(
        self, entitlement_service, gateway, learner, course
    ) -> None:
        learner.subscription.add(course.id)

        with pytest.raises(AlreadyEntitledError):
            await entitlement_service.create_checkout(learner.id, course.id)
        assert gateway.created == []

    @pytest.mark.asyncio
    async def test_unknown_course(self, entitlement_service, learner) -> None:
        with pytest.raises(CourseNotFoundError):
            await entitlement_service.create_checkout(learner.id, uuid4())

    @pytest.mark.asyncio
    async def test_gateway_failure(
        self, entitlement_service, gateway, learner, course
    ) -> None:
        gateway.fail = True

        with pytest.raises(UpstreamError):
            await entitlement_service.create_checkout(learner.id, course.id)


# ==============================================================================
# Payment verification
# ==============================================================================


class TestVerifyPayment:
    """Tests for EntitlementService.verify_payment."""

    @pytest.mark.asyncio
    async def test_paid_session_grants_course(
        self,
        entitlement_service,
        gateway,
        payment_repo,
        progress_repo,
        learner,
        course,
    ) -> None:
        session = gateway.add_session(user_id=learner.id, course_id=course.id)

        result = await entitlement_service.verify_payment(
            learner.id, course.id, session.id
        )

        assert result.status == PurchaseStatus.PURCHASED
        assert result.course.id == course.id
        assert result.course.image_url == course.image.url
        assert course.id in learner.subscription

        payment = payment_repo.payments[session.id]
        assert payment.amount_total == 50000
        assert payment.payment_status == "paid"
        assert payment.user_id == learner.id
        assert payment.course_id == course.id

        progress = progress_repo.rows[(learner.id, course.id)]
        assert progress.completed_lectures == set()

        decision = await entitlement_service.check_access(learner.id, course.id)
        assert decision.allowed is True

    @pytest.mark.asyncio
    async def test_repeat_verification_is_idempotent(
        self,
        entitlement_service,
        gateway,
        payment_repo,
        entitlement_repo,
        learner,
        course,
    ) -> None:
        session = gateway.add_session(user_id=learner.id, course_id=course.id)

        first = await entitlement_service.verify_payment(learner.id, course.id, session.id)
        second = await entitlement_service.verify_payment(
            learner.id, course.id, session.id
        )

        assert first.status == second.status == PurchaseStatus.PURCHASED
        assert len(payment_repo.payments) == 1
        assert payment_repo.insert_attempts == 1
        assert entitlement_repo.grants == [(learner.id, course.id)]
        assert learner.subscription == {course.id}

    @pytest.mark.asyncio
    async def test_concurrent_verifications_store_one_payment(
        self,
        entitlement_service,
        gateway,
        payment_repo,
        learner,
        course,
    ) -> None:
        session = gateway.add_session(user_id=learner.id, course_id=course.id)

        results = await asyncio.gather(
            *(
                entitlement_service.verify_payment(learner.id, course.id, session.id)
                for _ in range(3)
            )
        )

        assert all(r.status == PurchaseStatus.PURCHASED for r in results)
        assert len(payment_repo.payments) == 1
        assert learner.subscription == {course.id}

    @pytest.mark.asyncio
    async def test_existing_progress_is_kept(
        self,
        entitlement_service,
        gateway,
        progress_repo,
        learner,
        course,
        lectures,
    ) -> None:
        from coursemarket.progress.models import Progress  # noqa: PLC0415

        progress_repo.rows[(learner.id, course.id)] = Progress(
            user_id=learner.id,
            course_id=course.id,
            completed_lectures={lectures[0].id},
        )
        session = gateway.add_session(user_id=learner.id, course_id=course.id)

        await entitlement_service.verify_payment(learner.id, course.id, session.id)

        row = progress_repo.rows[(learner.id, course.id)]
        assert row.completed_lectures == {lectures[0].id}

    @pytest.mark.asyncio
    async def test_already_subscribed_records_payment_without_regrant(
        self,
        entitlement_service,
        gateway,
        payment_repo,
        entitlement_repo,
        learner,
        course,
    ) -> None:
        learner.subscription.add(course.id)
        session = gateway.add_session(user_id=learner.id, course_id=course.id)

        result = await entitlement_service.verify_payment(
            learner.id, course.id, session.id
        )

        assert result.status == PurchaseStatus.PURCHASED
        assert session.id in payment_repo.payments
        assert entitlement_repo.grants == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payment_status", ["unpaid", "no_payment_required"])
    async def test_unpaid_session_fails(
        self,
        entitlement_service,
        gateway,
        payment_repo,
        learner,
        course,
        payment_status: str,
    ) -> None:
        session = gateway.add_session(payment_status=payment_status)

        result = await entitlement_service.verify_payment(
            learner.id, course.id, session.id
        )

        assert result.status == PurchaseStatus.PAYMENT_FAILED
        assert result.course is None
        assert payment_repo.payments == {}
        assert learner.subscription == set()

    @pytest.mark.asyncio
    async def test_unknown_session(self, entitlement_service, learner, course) -> None:
        with pytest.raises(SessionNotFoundError) as exc_info:
            await entitlement_service.verify_payment(learner.id, course.id, "cs_missing")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("session_id", [None, "", "   "])
    async def test_missing_session_id(
        self, entitlement_service, learner, course, session_id
    ) -> None:
        with pytest.raises(MissingInputError) as exc_info:
            await entitlement_service.verify_payment(learner.id, course.id, session_id)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_course_id(self, entitlement_service, gateway, learner) -> None:
        session = gateway.add_session()

        with pytest.raises(MissingInputError):
            await entitlement_service.verify_payment(learner.id, None, session.id)

    @pytest.mark.asyncio
    async def test_course_deleted_after_payment(
        self, entitlement_service, gateway, payment_repo, learner
    ) -> None:
        deleted_id = uuid4()
        session = gateway.add_session(user_id=learner.id, course_id=deleted_id)

        with pytest.raises(CourseNotFoundError):
            await entitlement_service.verify_payment(learner.id, deleted_id, session.id)
        assert session.id in payment_repo.payments
        assert learner.subscription == set()


class TestVerifyPaymentBinding:
    """A paid session only unlocks the course and user it was opened for."""

    @pytest.fixture
    def cheap_course(self, course_repo) -> Course:
        cheap = Course(title="Intro", price=Decimal("1"))
        course_repo.courses[cheap.id] = cheap
        return cheap

    @pytest.fixture
    def other_user(self, user_repo) -> User:
        user = User(name="other", email="other@example.com", password_hash="x")
        user_repo.users[user.id] = user
        return user

    @pytest.mark.asyncio
    async def test_session_for_other_course_rejected(
        self,
        entitlement_service,
        gateway,
        payment_repo,
        entitlement_repo,
        learner,
        course,
        cheap_course,
    ) -> None:
        checkout = await entitlement_service.create_checkout(learner.id, cheap_course.id)
        gateway.sessions[checkout.session_id].payment_status = "paid"

        with pytest.raises(SessionMismatchError) as exc_info:
            await entitlement_service.verify_payment(
                learner.id, course.id, checkout.session_id
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "session_mismatch"
        assert payment_repo.payments == {}
        assert entitlement_repo.grants == []
        assert learner.subscription == set()

    @pytest.mark.asyncio
    async def test_session_replayed_by_other_user_rejected(
        self,
        entitlement_service,
        gateway,
        entitlement_repo,
        learner,
        other_user,
        course,
    ) -> None:
        checkout = await entitlement_service.create_checkout(learner.id, course.id)
        gateway.sessions[checkout.session_id].payment_status = "paid"

        with pytest.raises(SessionMismatchError):
            await entitlement_service.verify_payment(
                other_user.id, course.id, checkout.session_id
            )
        result = await entitlement_service.verify_payment(
            learner.id, course.id, checkout.session_id
        )

        assert result.status == PurchaseStatus.PURCHASED
        assert entitlement_repo.grants == [(learner.id, course.id)]
        assert other_user.subscription == set()

    @pytest.mark.asyncio
    async def test_untagged_session_rejected(
        self, entitlement_service, gateway, learner, course
    ) -> None:
        session = gateway.add_session()

        with pytest.raises(SessionMismatchError):
            await entitlement_service.verify_payment(learner.id, course.id, session.id)

    @pytest.mark.asyncio
    async def test_payment_recorded_for_other_purchase_rejected(
        self,
        entitlement_service,
        gateway,
        payment_repo,
        entitlement_repo,
        learner,
        other_user,
        course,
    ) -> None:
        session = gateway.add_session(user_id=learner.id, course_id=course.id)
        payment_repo.payments[session.id] = Payment(
            session_id=session.id,
            payment_status="paid",
            amount_total=50000,
            course_id=course.id,
            user_id=other_user.id,
        )

        with pytest.raises(SessionMismatchError):
            await entitlement_service.verify_payment(learner.id, course.id, session.id)
        assert entitlement_repo.grants == []
