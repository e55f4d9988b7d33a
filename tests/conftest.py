"""Shared fixtures: in-memory repositories, stub gateway and storage, app client."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from coursemarket.admin.service import AdminService
from coursemarket.auth.models import User
from coursemarket.auth.permissions import MainRole, UserRole
from coursemarket.auth.security import create_access_token
from coursemarket.auth.service import AuthService
from coursemarket.config.settings import Settings
from coursemarket.courses.models import Course, Lecture
from coursemarket.courses.service import CourseService
from coursemarket.entitlements.gateway import GatewayError, GatewaySession, LineItem
from coursemarket.entitlements.models import Payment
from coursemarket.entitlements.service import EntitlementService
from coursemarket.progress.models import Progress
from coursemarket.progress.service import ProgressService
from coursemarket.storage.schemas import MediaKind, UploadedMedia
from coursemarket.storage.service import StorageUploadError


# ==============================================================================
# In-memory repositories
# ==============================================================================


class FakeUserRepository:
    def __init__(self):
        self.users: dict[UUID, User] = {}

    async def create(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def get(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email == email.lower()), None)

    async def list_all(self, exclude_id: UUID | None = None) -> list[User]:
        return [u for u in self.users.values() if u.id != exclude_id]

    async def count(self) -> int:
        return len(self.users)

    async def update_role(self, user_id: UUID, role: str) -> None:
        self.users[user_id].role = role

    async def find_subscribers(self, course_id: UUID) -> list[UUID]:
        return [u.id for u in self.users.values() if course_id in u.subscription]

    async def remove_subscription(self, user_id: UUID, course_id: UUID) -> None:
        self.users[user_id].subscription.discard(course_id)


class FakeCourseRepository:
    def __init__(self):
        self.courses: dict[UUID, Course] = {}

    async def create(self, course: Course) -> Course:
        self.courses[course.id] = course
        return course

    async def get(self, course_id: UUID) -> Course | None:
        return self.courses.get(course_id)

    async def list_all(self) -> list[Course]:
        return sorted(self.courses.values(), key=lambda c: c.created_at, reverse=True)

    async def list_by_ids(self, course_ids: set[UUID]) -> list[Course]:
        return [c for cid, c in self.courses.items() if cid in course_ids]

    async def count(self) -> int:
        return len(self.courses)

    async def delete(self, course_id: UUID) -> None:
        self.courses.pop(course_id, None)


class FakeLectureRepository:
    def __init__(self):
        self.lectures: dict[UUID, Lecture] = {}

    async def create(self, lecture: Lecture) -> Lecture:
        self.lectures[lecture.id] = lecture
        return lecture

    async def get(self, lecture_id: UUID) -> Lecture | None:
        return self.lectures.get(lecture_id)

    async def list_by_course(self, course_id: UUID) -> list[Lecture]:
        return [lec for lec in self.lectures.values() if lec.course_id == course_id]

    async def count(self) -> int:
        return len(self.lectures)

    async def delete(self, lecture_id: UUID) -> None:
        self.lectures.pop(lecture_id, None)


class FakeProgressRepository:
    def __init__(self):
        self.rows: dict[tuple[UUID, UUID], Progress] = {}

    async def get(self, user_id: UUID, course_id: UUID) -> Progress | None:
        return self.rows.get((user_id, course_id))

    async def add_completed_lecture(
        self, user_id: UUID, course_id: UUID, lecture_id: UUID
    ) -> None:
        self.rows[(user_id, course_id)].completed_lectures.add(lecture_id)

    async def delete(self, user_id: UUID, course_id: UUID) -> None:
        self.rows.pop((user_id, course_id), None)


class FakePaymentRepository:
    def __init__(self):
        self.payments: dict[str, Payment] = {}
        self.insert_attempts = 0

    async def get_by_session(self, session_id: str) -> Payment | None:
        return self.payments.get(session_id)

    async def create_if_absent(self, payment: Payment) -> tuple[Payment, bool]:
        self.insert_attempts += 1
        if payment.session_id in self.payments:
            return self.payments[payment.session_id], False
        self.payments[payment.session_id] = payment
        return payment, True


class FakeEntitlementRepository:
    """Applies the subscription add and the progress row together."""

    def __init__(self, users: FakeUserRepository, progress: FakeProgressRepository):
        self.users = users
        self.progress = progress
        self.grants: list[tuple[UUID, UUID]] = []

    async def grant(self, user_id: UUID, course_id: UUID) -> None:
        self.grants.append((user_id, course_id))
        self.users.users[user_id].subscription.add(course_id)
        self.progress.rows.setdefault(
            (user_id, course_id), Progress(user_id=user_id, course_id=course_id)
        )


# ==============================================================================
# Stub external clients
# ==============================================================================


class StubGateway:
    """Checkout gateway keeping sessions in memory."""

    def __init__(self):
        self.sessions: dict[str, GatewaySession] = {}
        self.created: list[dict] = []
        self.fail = False

    def add_session(
        self,
        payment_status: str = "paid",
        amount_total: int = 50000,
        session_id: str | None = None,
        user_id: UUID | None = None,
        course_id: UUID | None = None,
        metadata: dict[str, str] | None = None,
    ) -> GatewaySession:
        metadata = dict(metadata or {})
        if user_id:
            metadata["userId"] = str(user_id)
        if course_id:
            metadata["courseId"] = str(course_id)
        session = GatewaySession(
            id=session_id or f"cs_test_{uuid4().hex}",
            url="https://checkout.stripe.test/pay",
            payment_status=payment_status,
            amount_total=amount_total,
            customer_email="buyer@example.com",
            metadata=metadata,
        )
        self.sessions[session.id] = session
        return session

    async def create_session(
        self,
        line_items: list[LineItem],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str] | None = None,
    ) -> GatewaySession:
        if self.fail:
            raise GatewayError("gateway down")
        self.created.append(
            {
                "line_items": line_items,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
            }
        )
        return self.add_session(
            payment_status="unpaid",
            amount_total=sum(i.unit_amount * i.quantity for i in line_items),
            metadata=metadata,
        )

    async def retrieve_session(self, session_id: str) -> GatewaySession | None:
        return self.sessions.get(session_id)


class StubStorage:
    """Blob store keeping handles in memory."""

    def __init__(self):
        self.blobs: set[str] = set()
        self.deleted: list[str] = []
        self.failing_handles: set[str] = set()

    async def upload_media(
        self,
        content: bytes,
        content_type: str,
        kind: MediaKind,
        filename: str | None = None,
    ) -> UploadedMedia:
        handle = f"course_uploads/{kind.value}s/{uuid4()}"
        self.blobs.add(handle)
        return UploadedMedia(url=f"https://storage.test/{handle}", handle=handle)

    async def delete_media(self, handle: str) -> bool:
        if handle in self.failing_handles:
            raise StorageUploadError("blob store unavailable")
        self.deleted.append(handle)
        self.blobs.discard(handle)
        return True


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_123",
        stripe_currency="inr",
        checkout_success_url="http://frontend.test/payment-success",
        checkout_cancel_url="http://frontend.test/payment/failed",
        superadmin_emails=["root@example.com"],
    )


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def course_repo() -> FakeCourseRepository:
    return FakeCourseRepository()


@pytest.fixture
def lecture_repo() -> FakeLectureRepository:
    return FakeLectureRepository()


@pytest.fixture
def progress_repo() -> FakeProgressRepository:
    return FakeProgressRepository()


@pytest.fixture
def payment_repo() -> FakePaymentRepository:
    return FakePaymentRepository()


@pytest.fixture
def entitlement_repo(user_repo, progress_repo) -> FakeEntitlementRepository:
    return FakeEntitlementRepository(user_repo, progress_repo)


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def storage() -> StubStorage:
    return StubStorage()


@pytest.fixture
def auth_service(user_repo, settings) -> AuthService:
    return AuthService(user_repo, settings)


@pytest.fixture
def course_service(course_repo, lecture_repo, user_repo) -> CourseService:
    return CourseService(course_repo, lecture_repo, user_repo)


@pytest.fixture
def entitlement_service(
    user_repo, course_repo, payment_repo, entitlement_repo, gateway, settings
) -> EntitlementService:
    return EntitlementService(
        users=user_repo,
        courses=course_repo,
        payments=payment_repo,
        entitlements=entitlement_repo,
        gateway=gateway,
        settings=settings,
    )


@pytest.fixture
def progress_service(progress_repo, lecture_repo) -> ProgressService:
    return ProgressService(progress_repo, lecture_repo)


@pytest.fixture
def admin_service(
    course_repo, lecture_repo, user_repo, progress_repo, storage
) -> AdminService:
    return AdminService(
        courses=course_repo,
        lectures=lecture_repo,
        users=user_repo,
        progress=progress_repo,
        storage=storage,
    )


# ==============================================================================
# Seed data
# ==============================================================================


def _user(repo: FakeUserRepository, email: str, **kwargs) -> User:
    user = User(name=email.split("@")[0], email=email, password_hash="x", **kwargs)
    repo.users[user.id] = user
    return user


@pytest.fixture
def learner(user_repo) -> User:
    return _user(user_repo, "learner@example.com")


@pytest.fixture
def admin_user(user_repo) -> User:
    return _user(user_repo, "admin@example.com", role=UserRole.ADMIN.value)


@pytest.fixture
def superadmin(user_repo) -> User:
    return _user(
        user_repo, "root@example.com", main_role=MainRole.SUPERADMIN.value
    )


@pytest.fixture
def course(course_repo) -> Course:
    course = Course(
        title="Python for Data",
        description="From zero to pandas",
        category="programming",
        price=Decimal("499.995"),
        duration=12,
        image=UploadedMedia(
            url="https://storage.test/course_uploads/images/cover.png",
            handle="course_uploads/images/cover.png",
        ),
    )
    course_repo.courses[course.id] = course
    return course


@pytest.fixture
def lectures(lecture_repo, course) -> list[Lecture]:
    now = datetime.now(UTC)
    items = []
    for i in range(4):
        lecture = Lecture(
            title=f"Lecture {i + 1}",
            course_id=course.id,
            video=UploadedMedia(
                url=f"https://storage.test/course_uploads/videos/{i}.mp4",
                handle=f"course_uploads/videos/{i}.mp4",
            ),
            created_at=now + timedelta(seconds=i),
        )
        lecture_repo.lectures[lecture.id] = lecture
        items.append(lecture)
    return items


def _bearer(user: User) -> dict[str, str]:
    token = create_access_token(
        {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "main_role": user.main_role,
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Build the Authorization header for a user."""
    return _bearer


# ==============================================================================
# App client
# ==============================================================================


@pytest.fixture
def client(
    auth_service,
    course_service,
    entitlement_service,
    progress_service,
    admin_service,
) -> TestClient:
    """Client over the real app with in-memory services (lifespan not run)."""
    from coursemarket.main import create_app  # noqa: PLC0415

    app = create_app()
    app.state.auth_service = auth_service
    app.state.course_service = course_service
    app.state.entitlement_service = entitlement_service
    app.state.progress_service = progress_service
    app.state.admin_service = admin_service
    return TestClient(app)
