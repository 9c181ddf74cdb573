"""Shared FastAPI dependencies for authentication and authorization."""

import secrets
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer, OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.config import settings
from finhome.database import get_db
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.services.auth_service import AuthenticationError, AuthService, TokenError

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
processor_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Extract and validate the current user from the JWT token.

    Checks token blacklist (Redis), validates JWT, verifies user is active.

    Raises HTTPException 401 if token is invalid/expired/revoked.
    Raises HTTPException 403 if account is deactivated.
    """
    auth_service = AuthService(db)

    if await auth_service.is_token_blacklisted(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = await auth_service.get_current_user(token)
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is deactivated",
            )
        return user
    except HTTPException:
        raise
    except (AuthenticationError, TokenError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except Exception as e:
        logger.error("Unexpected error while authenticating", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user_id(
    current_user: User = Depends(get_current_user),
) -> UUID:
    """Shorthand dependency that returns just the user's UUID."""
    return current_user.id


async def get_current_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require an admin account. Raises HTTPException 403 otherwise."""
    if not current_user.is_admin:
        logger.warning("Admin access denied", user_id=str(current_user.id))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


async def verify_processor_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(processor_bearer),
) -> None:
    """Guard for the cron-invoked recurring processor.

    The bearer token must equal RECURRING_PROCESSOR_API_KEY. When no key is
    configured the endpoint is closed.
    """
    expected = settings.recurring_processor_api_key
    if not expected:
        logger.error("Recurring processor called but no API key is configured")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Recurring processor is not configured",
        )

    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        logger.warning("Recurring processor called with an invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
