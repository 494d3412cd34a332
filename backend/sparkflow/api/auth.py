"""
SparkPro Studio Workflow - Authentication API
=============================================

Login and current-user endpoints. Accounts are provisioned by an Admin
outside this service; there is no self-registration.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status
from passlib.hash import bcrypt
from sqlalchemy import select

from sparkflow.api.deps import CurrentUser, DbSession, create_access_token
from sparkflow.core.config import settings
from sparkflow.core.models import User
from sparkflow.core.schemas import TokenResponse, UserLogin, UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ==========================================================================
# Helper Functions
# ==========================================================================

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.verify(password, password_hash)


# ==========================================================================
# Login
# ==========================================================================

@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login and get an access token",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid credentials"},
    },
)
async def login(
    data: UserLogin,
    db: DbSession,
) -> TokenResponse:
    """
    Authenticate a studio member and return an access token.

    Unknown email, wrong password and deactivated accounts all get the
    same 401.
    """
    result = await db.execute(
        select(User).where(User.email == data.email.lower())
    )
    user = result.scalar_one_or_none()

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
    )

    if not user:
        raise credentials_exception

    if not verify_password(data.password, user.password_hash):
        raise credentials_exception

    if not user.is_active:
        raise credentials_exception

    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    return TokenResponse(
        access_token=create_access_token(user.id),
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


# ==========================================================================
# User Profile
# ==========================================================================

@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    responses={
        200: {"description": "Current user data"},
        401: {"description": "Not authenticated"},
    },
)
async def get_me(
    current_user: CurrentUser,
) -> UserResponse:
    """Get current authenticated user's profile."""
    return UserResponse.model_validate(current_user)
