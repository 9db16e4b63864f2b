from fastapi import Depends, Header, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from core.database import get_db
from core.exceptions import AuthorizationException
from models.user import User
from services.auth import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from the x-auth-token header or a Bearer token"""
    token = x_auth_token or (credentials.credentials if credentials else None)
    user = await AuthService(db).get_current_user(token)
    # Picked up by the request logging middleware
    request.state.user = user
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require admin role"""
    if not current_user.is_admin:
        raise AuthorizationException(message="Admin access required")
    return current_user
