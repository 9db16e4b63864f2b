from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import logging

from core.config import settings
from core.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ValidationException,
)
from core.utils.auth.jwt_auth import JWTManager
from core.utils.encryption import PasswordManager
from models.user import User, UserRole
from schemas.auth import (
    AdminSignup,
    AdminLogin,
    AdminProfileUpdate,
    PasswordChange,
    UserResponse,
    AuthResponse,
)

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.password_manager = PasswordManager()
        self.jwt_manager = JWTManager()

    def create_access_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token carrying the user id and role."""
        return self.jwt_manager.create_access_token(
            data={"sub": str(user.id), "role": user.role},
            expires_delta=expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    def _auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            access_token=self.create_access_token(user),
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserResponse.model_validate(user),
        )

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def signup(self, data: AdminSignup) -> AuthResponse:
        """
        Register an account for the admin console.

        New accounts always start as unapproved regular users; an existing
        admin (or scripts/create_admin.py) has to promote them.
        """
        if await self.get_user_by_email(data.email):
            raise ValidationException(message="User already exists")

        user = User(
            email=data.email.lower(),
            name=data.name,
            hashed_password=self.password_manager.hash_password(data.password),
            company_name=data.company_name,
            phone=data.phone,
            role=UserRole.USER,
            approved=False,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Registered admin console account {user.email}")
        return self._auth_response(user)

    async def login(self, data: AdminLogin) -> AuthResponse:
        user = await self.get_user_by_email(data.email)
        if not user or not self.password_manager.verify_password(data.password, user.hashed_password):
            logger.warning(f"Failed admin login for {data.email}")
            raise ValidationException(message="Invalid credentials")

        if not user.approved:
            raise ValidationException(message="Admin account is not approved")

        if not user.is_admin:
            raise AuthorizationException(message="Access denied. Admin privileges required.")

        user.last_login = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Admin {user.email} logged in")
        return self._auth_response(user)

    async def update_profile(self, user: User, data: AdminProfileUpdate) -> UserResponse:
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }

        new_email = changes.get("email")
        if new_email and new_email != user.email:
            owner = await self.get_user_by_email(new_email)
            if owner is not None and owner.id != user.id:
                raise ValidationException(message="Email is already in use")

        for field, value in changes.items():
            setattr(user, field, value)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Updated profile of {user.email}")
        return UserResponse.model_validate(user)

    async def change_password(self, user: User, data: PasswordChange) -> None:
        if not self.password_manager.verify_password(data.current_password, user.hashed_password):
            raise ValidationException(message="Current password is incorrect")

        user.hashed_password = self.password_manager.hash_password(data.new_password)
        await self.db.commit()

        logger.info(f"Password changed for {user.email}")

    async def get_current_user(self, token: Optional[str]) -> User:
        """Resolve a bearer token to an active user."""
        if not token:
            raise AuthenticationException(message="Authentication required")

        user_id = self.jwt_manager.get_user_id_from_token(token)
        if not user_id:
            raise AuthenticationException(message="Could not validate credentials")

        try:
            user = await self.get_user_by_id(UUID(str(user_id)))
        except ValueError:
            user = None

        if user is None or not user.is_active:
            raise AuthenticationException(message="Could not validate credentials")
        return user
