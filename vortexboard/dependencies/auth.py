"""
Authentication dependencies for FastAPI route protection.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db import get_app_db
from vortexboard.db_handlers.user import UserDBHandler
from vortexboard.errors import AuthenticationError
from vortexboard.models import User
from vortexboard.utils.auth import extract_user_id_from_token
from vortexboard.utils.object_id import is_valid_object_id

NOT_AUTHORIZED = "Not authorized to access this route"

# Missing credentials are reported through AuthenticationError, not the scheme's 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_app_db),
) -> User:
    """
    Dependency to get the current authenticated user from the bearer token.
    """
    if credentials is None:
        raise AuthenticationError(NOT_AUTHORIZED)

    user_id = extract_user_id_from_token(credentials.credentials)
    if user_id is None or not is_valid_object_id(user_id):
        raise AuthenticationError(NOT_AUTHORIZED)

    user = await UserDBHandler().get(user_id, db=db)
    if user is None:
        raise AuthenticationError("User belonging to this token no longer exists")

    return user
