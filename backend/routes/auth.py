from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from core.database import get_db
from core.dependencies import get_current_user, require_admin
from core.utils.response import Response
from core.exceptions import APIException
from schemas.auth import AdminSignup, AdminLogin, AdminProfileUpdate, PasswordChange, UserResponse
from services.auth import AuthService
from models.user import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["Admin Authentication"])


@router.post("/signup")
async def signup(
    signup_data: AdminSignup,
    db: AsyncSession = Depends(get_db)
):
    """Register an admin console account; it stays unapproved until promoted."""
    try:
        auth = await AuthService(db).signup(signup_data)
        return Response.success(data=auth, message="Admin user created successfully")
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error during admin signup: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to create admin user"
        )


@router.post("/login")
async def login(
    login_data: AdminLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login an approved admin and return an access token."""
    try:
        auth = await AuthService(db).login(login_data)
        return Response.success(data=auth, message="Admin login successful")
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Error during admin login: {e}")
        raise APIException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to log in"
        )


@router.get("/me")
async def get_me(
    current_user: User = Depends(get_current_user)
):
    """Get current user profile."""
    return Response.success(
        data=UserResponse.model_validate(current_user),
        message="User profile retrieved successfully"
    )


@router.put("/profile")
async def update_profile(
    profile_data: AdminProfileUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update the signed-in admin's name, email, company or phone."""
    user = await AuthService(db).update_profile(current_user, profile_data)
    return Response.success(data=user, message="Profile updated successfully")


@router.put("/change-password")
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Change the signed-in admin's password after checking the current one."""
    await AuthService(db).change_password(current_user, password_data)
    return Response.success(message="Password changed successfully")
