from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.errors import Unauthenticated
from app.domains.identity.entities import Principal
from app.domains.identity.services import IdentityService
from app.domains.teams.services import TeamDirectory

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """Аутентифицированный участник запроса: роль и членства в командах"""
    if credentials is None:
        raise Unauthenticated()
    user = await IdentityService(db).get_user_by_token(credentials.credentials)
    return await TeamDirectory(db).principal_for(user)
