"""FastAPI dependencies for authentication/authorization."""

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.exceptions import Forbidden, Unauthenticated
from src.core.security import TokenDecodeError, decode_access_token
from src.modules.users.models import User
from src.shared.enums import UserRole

bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve_user(
    credentials: HTTPAuthorizationCredentials | None,
    db: AsyncSession,
) -> User | None:
    if credentials is None:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except TokenDecodeError as exc:
        raise Unauthenticated("Invalid token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Invalid token payload")

    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise Unauthenticated("User not found or disabled")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await _resolve_user(credentials, db)
    if user is None:
        raise Unauthenticated("Authentication required")
    return user


def require_role(*roles: UserRole):
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden("Access denied")
        return current_user

    return dependency


require_patient = require_role(UserRole.PATIENT)
require_doctor = require_role(UserRole.DOCTOR)
