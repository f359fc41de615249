# Standard library imports
from collections.abc import Awaitable, Callable
from typing import Any

# Third-party imports
from sqlalchemy.ext.asyncio import AsyncSession

# Local application imports
from civicdesk.core.db.get_async_session import AsyncSessionLocal


async def run_with_new_session(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """
    Run ``func(session, *args, **kwargs)`` inside a fresh database session.

    Used by scripts that live outside the request cycle.
    """
    session: AsyncSession
    async with AsyncSessionLocal() as session:
        return await func(session, *args, **kwargs)
