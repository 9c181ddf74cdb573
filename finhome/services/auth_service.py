"""Authentication service for user registration, login, and token management."""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.cache import cache_manager
from finhome.config import settings
from finhome.logging_config import get_logger
from finhome.models.subscription import Subscription
from finhome.models.user import User

logger = get_logger(__name__)


class PasswordValidationError(Exception):
    """Exception raised when password doesn't meet requirements."""

    pass


class AuthenticationError(Exception):
    """Exception raised when authentication fails."""

    pass


class TokenError(Exception):
    """Exception raised when token operations fail."""

    pass


class AuthService:
    """Service for handling authentication operations."""

    MIN_PASSWORD_LENGTH = 12

    def __init__(self, db: Optional[AsyncSession]):
        """Initialize authentication service.

        Args:
            db: Database session (may be None when only issuing tokens)
        """
        self.db = db

    def validate_password(self, password: str) -> None:
        """Validate password meets security requirements.

        - Minimum 12 characters
        - Mixed case (uppercase and lowercase)
        - Numbers
        - Special characters

        Args:
            password: Password to validate

        Raises:
            PasswordValidationError: If password doesn't meet requirements
        """
        if len(password) < self.MIN_PASSWORD_LENGTH:
            raise PasswordValidationError(
                f"Password must be at least {self.MIN_PASSWORD_LENGTH} characters long"
            )

        if not re.search(r"[a-z]", password):
            raise PasswordValidationError("Password must contain at least one lowercase letter")

        if not re.search(r"[A-Z]", password):
            raise PasswordValidationError("Password must contain at least one uppercase letter")

        if not re.search(r"\d", password):
            raise PasswordValidationError("Password must contain at least one number")

        if not re.search(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?~`]", password):
            raise PasswordValidationError("Password must contain at least one special character")

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        return hashed.decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def register_user(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        preferred_currency: str = "VND",
    ) -> User:
        """Register a new user on the free tier.

        Args:
            email: User email address
            password: Plain text password
            full_name: Display name (optional)
            preferred_currency: VND or USD

        Returns:
            Created user object

        Raises:
            PasswordValidationError: If password doesn't meet requirements
            ValueError: If email already exists
        """
        logger.info("Registering new user", email=email)

        self.validate_password(password)

        if await self.get_user_by_email(email):
            logger.warning("Registration failed: email already exists", email=email)
            raise ValueError(f"User with email {email} already exists")

        user = User(
            email=email.lower(),
            password_hash=self.hash_password(password),
            full_name=full_name,
            preferred_currency=preferred_currency,
            subscription_tier="free",
        )
        self.db.add(user)
        await self.db.flush()

        self.db.add(Subscription(user_id=user.id, tier="free", status="active"))
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("User registered successfully", user_id=str(user.id), email=user.email)

        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """Authenticate a user with email and password.

        Raises:
            AuthenticationError: If the credentials are wrong or the account is deactivated
        """
        logger.info("Authenticating user", email=email)

        user = await self.get_user_by_email(email)
        if not user:
            logger.warning("Authentication failed: user not found", email=email)
            raise AuthenticationError("Invalid email or password")

        if not self.verify_password(password, user.password_hash):
            logger.warning("Authentication failed: invalid password", email=email)
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            logger.warning("Authentication failed: account deactivated", user_id=str(user.id))
            raise AuthenticationError("Account is deactivated")

        logger.info("User authenticated successfully", user_id=str(user.id))

        return user

    def _create_token(self, user_id: UUID, token_type: str, expires_delta: timedelta) -> str:
        expire = datetime.now(timezone.utc) + expires_delta
        to_encode = {"sub": str(user_id), "exp": expire, "type": token_type}
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    def create_access_token(self, user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token."""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
        token = self._create_token(user_id, "access", expires_delta)
        logger.debug("Access token created", user_id=str(user_id))
        return token

    def create_refresh_token(self, user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT refresh token."""
        if expires_delta is None:
            expires_delta = timedelta(days=settings.refresh_token_expire_days)
        token = self._create_token(user_id, "refresh", expires_delta)
        logger.debug("Refresh token created", user_id=str(user_id))
        return token

    def verify_token(self, token: str, token_type: str = "access") -> UUID:
        """Verify and decode a JWT token.

        Args:
            token: JWT token to verify
            token_type: Expected token type ("access" or "refresh")

        Returns:
            User ID from token

        Raises:
            TokenError: If token is invalid, expired or of the wrong type
        """
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError as e:
            logger.warning("Token verification failed", error=str(e))
            raise TokenError(f"Invalid token: {str(e)}")

        user_id_str = payload.get("sub")
        token_type_in_token = payload.get("type")

        if user_id_str is None:
            raise TokenError("Token missing user ID")

        if token_type_in_token != token_type:
            raise TokenError(f"Invalid token type: expected {token_type}, got {token_type_in_token}")

        try:
            return UUID(user_id_str)
        except ValueError:
            raise TokenError("Token has a malformed user ID")

    async def refresh_access_token(self, refresh_token: str) -> tuple[str, str]:
        """Exchange a refresh token for a new access/refresh pair.

        Raises:
            TokenError: If refresh token is invalid or the user is gone
        """
        user_id = self.verify_token(refresh_token, token_type="refresh")

        user = await self.db.get(User, user_id)
        if not user or not user.is_active:
            logger.warning("Token refresh failed: user not available", user_id=str(user_id))
            raise TokenError("User not found")

        logger.info("Tokens refreshed successfully", user_id=str(user_id))

        return self.create_access_token(user_id), self.create_refresh_token(user_id)

    async def get_current_user(self, token: str) -> User:
        """Get current user from access token.

        Raises:
            TokenError: If token is invalid
            AuthenticationError: If user not found
        """
        user_id = self.verify_token(token, token_type="access")

        user = await self.db.get(User, user_id)
        if not user:
            logger.warning("Get current user failed: user not found", user_id=str(user_id))
            raise AuthenticationError("User not found")

        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change user password.

        Raises:
            AuthenticationError: If current password is incorrect
            PasswordValidationError: If new password doesn't meet requirements
        """
        logger.info("Changing password", user_id=str(user.id))

        if not self.verify_password(current_password, user.password_hash):
            logger.warning("Password change failed: incorrect current password", user_id=str(user.id))
            raise AuthenticationError("Current password is incorrect")

        self.validate_password(new_password)

        user.password_hash = self.hash_password(new_password)
        await self.db.flush()

        logger.info("Password changed successfully", user_id=str(user.id))

    async def blacklist_token(self, token: str, expires_in: Optional[int] = None) -> None:
        """Revoke a token until it would have expired anyway."""
        if expires_in is None:
            try:
                payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
                exp = payload.get("exp", 0)
                expires_in = max(1, exp - int(datetime.now(timezone.utc).timestamp()))
            except JWTError:
                expires_in = settings.access_token_expire_minutes * 60

        await cache_manager.set(f"blacklist:{token}", "1", expire=expires_in)

    async def is_token_blacklisted(self, token: str) -> bool:
        """Check if a token has been revoked."""
        return await cache_manager.get(f"blacklist:{token}") is not None
