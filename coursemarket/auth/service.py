"""Authentication service layer.

Business logic for:
- User registration (with superadmin bootstrap by email)
- Credential verification and token issuing
- User lookup
"""

from uuid import UUID

from coursemarket.auth.models import User
from coursemarket.auth.permissions import MainRole, UserRole
from coursemarket.auth.repository import UserRepository
from coursemarket.auth.schemas import RegisterRequest
from coursemarket.auth.security import create_access_token, hash_password, verify_password
from coursemarket.config.settings import Settings
from coursemarket.core.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    UnauthorizedError,
)
from coursemarket.core.logging import get_logger


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class InvalidCredentialsError(UnauthorizedError):
    """Email/password mismatch."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, "invalid_credentials")


class EmailAlreadyRegisteredError(AlreadyExistsError):
    """Email already in use."""

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message, "email_exists")


class UserNotFoundError(NotFoundError):
    """User not found."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found")


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """Service for registration, login and user lookup."""

    def __init__(self, users: UserRepository, settings: Settings):
        self.users = users
        self.superadmin_emails = {e.lower() for e in settings.superadmin_emails}

    async def register(self, data: RegisterRequest) -> User:
        """Register a new user with the USER role.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken
        """
        email = data.email.lower()
        if await self.users.get_by_email(email):
            raise EmailAlreadyRegisteredError

        user = User(
            name=data.name,
            email=email,
            password_hash=hash_password(data.password),
            role=UserRole.USER.value,
            main_role=MainRole.SUPERADMIN.value
            if email in self.superadmin_emails
            else None,
        )
        await self.users.create(user)

        logger.info(
            "user_registered",
            user_id=str(user.id),
            superadmin=user.is_superadmin,
        )
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Verify credentials.

        Raises:
            InvalidCredentialsError: On unknown email or wrong password
        """
        user = await self.users.get_by_email(email.lower())
        if not user or not verify_password(password, user.password_hash):
            logger.warning("login_failed")
            raise InvalidCredentialsError

        logger.info("user_logged_in", user_id=str(user.id))
        return user

    @staticmethod
    def issue_token(user: User) -> str:
        """Create an access token for the user."""
        return create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "role": user.role,
                "main_role": user.main_role,
            }
        )

    async def get_user(self, user_id: UUID) -> User:
        """Get user by ID.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self.users.get(user_id)
        if not user:
            raise UserNotFoundError
        return user
