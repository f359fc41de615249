# Third-party imports
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

# Local application imports
from civicdesk.settings import settings

DATABASE_URI = settings.SQLALCHEMY_ASYNC_DATABASE_URI

# SQLite (local runs and tests) gets a fresh connection per session
engine_options = {"poolclass": NullPool} if DATABASE_URI.startswith("sqlite") else {"pool_pre_ping": True}

# Asynchronous Engine
async_engine = create_async_engine(
    DATABASE_URI,
    echo=settings.SQL_ECHO,
    future=True,
    **engine_options,
)
