"""API routes for authentication."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.config import settings
from finhome.database import get_db
from finhome.dependencies import get_current_user, oauth2_scheme
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.schemas.auth import (
    AuthResponse,
    PasswordChangeRequest,
    TokenRefreshRequest,
    TokenResponse,
    UserLoginRequest,
    UserRegisterRequest,
    UserResponse,
    UserUpdate,
)
from finhome.schemas.common import MessageResponse
from finhome.services.auth_service import (
    AuthenticationError,
    AuthService,
    PasswordValidationError,
    TokenError,
)

logger = get_logger(__name__)

router = APIRouter()

# Rate limiter for auth endpoints (stricter limits)
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _tokens_for(auth_service: AuthService, user: User) -> TokenResponse:
    return TokenResponse(
        access_token=auth_service.create_access_token(user.id),
        refresh_token=auth_service.create_refresh_token(user.id),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(f"{settings.auth_rate_limit_per_minute}/minute")
async def register(
    request_data: UserRegisterRequest, request: Request, db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    """Register a new user.

    Args:
        request_data: User registration request
        request: HTTP request (for rate limiting)
        db: Database session

    Returns:
        User information and authentication tokens

    Raises:
        HTTPException: If registration fails
    """
    logger.info("User registration request", email=request_data.email)

    auth_service = AuthService(db)

    try:
        user = await auth_service.register_user(
            email=request_data.email,
            password=request_data.password,
            full_name=request_data.full_name,
            preferred_currency=request_data.preferred_currency,
        )
    except PasswordValidationError as e:
        logger.warning("Registration failed: password validation", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError as e:
        logger.warning("Registration failed", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info("User registered successfully", user_id=str(user.id))
    return AuthResponse(user=UserResponse.model_validate(user), tokens=_tokens_for(auth_service, user))


@router.post("/login", response_model=AuthResponse)
@limiter.limit(f"{settings.auth_rate_limit_per_minute}/minute")
async def login(
    request_data: UserLoginRequest, request: Request, db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    """Authenticate user and return tokens.

    Raises:
        HTTPException: 401 if the credentials are wrong or the account is inactive
    """
    logger.info("User login request", email=request_data.email)

    auth_service = AuthService(db)

    try:
        user = await auth_service.authenticate_user(request_data.email, request_data.password)
    except AuthenticationError as e:
        logger.warning("Login failed", email=request_data.email, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthResponse(user=UserResponse.model_validate(user), tokens=_tokens_for(auth_service, user))


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit(f"{settings.auth_rate_limit_per_minute}/minute")
async def refresh_token(
    request_data: TokenRefreshRequest, request: Request, db: AsyncSession = Depends(get_db)
) -> TokenResponse:
    """Refresh access token using refresh token.

    Args:
        request_data: Token refresh request
        request: HTTP request (for rate limiting)
        db: Database session

    Returns:
        New access and refresh tokens

    Raises:
        HTTPException: If token refresh fails
    """
    logger.info("Token refresh request")

    auth_service = AuthService(db)

    try:
        access_token, new_refresh_token = await auth_service.refresh_access_token(
            request_data.refresh_token
        )
        return TokenResponse(
            access_token=access_token,
            refresh_token=new_refresh_token,
            expires_in=settings.access_token_expire_minutes * 60,
        )
    except TokenError as e:
        logger.warning("Token refresh failed", error=str(e))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Logout user by blacklisting their token."""
    logger.info("User logout request", user_id=str(current_user.id))

    auth_service = AuthService(db)
    await auth_service.blacklist_token(token)

    return MessageResponse(message="Logged out successfully. Token has been revoked.")


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Get current authenticated user."""
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    request_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Update user profile information.

    Args:
        request_data: Profile update data
        current_user: Current authenticated user
        db: Database session

    Returns:
        Updated user profile
    """
    logger.info("Profile update request", user_id=str(current_user.id))

    if request_data.full_name is not None:
        current_user.full_name = request_data.full_name
    if request_data.preferred_currency is not None:
        current_user.preferred_currency = request_data.preferred_currency

    await db.flush()
    await db.refresh(current_user)

    logger.info("Profile updated successfully", user_id=str(current_user.id))
    return UserResponse.model_validate(current_user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request_data: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Change user password.

    Raises:
        HTTPException: 401 if the current password is wrong, 400 if the new one is weak
    """
    logger.info("Password change request", user_id=str(current_user.id))

    auth_service = AuthService(db)

    try:
        await auth_service.change_password(
            current_user,
            current_password=request_data.current_password,
            new_password=request_data.new_password,
        )
        return MessageResponse(message="Password changed successfully")
    except AuthenticationError as e:
        logger.warning("Password change failed: authentication error", error=str(e))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except PasswordValidationError as e:
        logger.warning("Password change failed: validation error", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
