# Standard library imports
from uuid import UUID

# Third-party imports
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from civicdesk.core.db import get_async_session
from civicdesk.core.exceptions import Unauthenticated
from civicdesk.db_selectors.users import get_user_by_id
from civicdesk.schemas.auth.caller_schemas import Caller
from civicdesk.settings import settings
from civicdesk.utils.token_utils import decode_access_token

# Tokens are issued by the account service; we only read the bearer header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token", auto_error=False)


async def _resolve_caller(token: str | None, db: AsyncSession) -> Caller | None:
    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        return None

    user = await get_user_by_id(db, user_id)
    if user is None:
        return None
    return Caller.from_user(user)


async def get_current_caller(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_session),
) -> Caller:
    """Resolve the bearer token to a caller identity and role"""
    caller = await _resolve_caller(token, db)
    if caller is None:
        raise Unauthenticated()
    return caller
