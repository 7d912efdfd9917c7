import ssl
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from sqlalchemy.sql import text

from app.config import settings

logger = structlog.get_logger()

SessionFactory = async_sessionmaker[AsyncSession]


def _production_ssl_context() -> ssl.SSLContext:
    # certificate verification is off for the managed Postgres host
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def get_connect_args(url: Optional[str] = None) -> dict:
    """Driver connect arguments for ``url`` (defaults to the configured database).

    asyncpg gets timeouts, and in production TLS plus an application name.
    SQLite connections may be shared across the event loop's tasks.
    """
    url = url or settings.DATABASE_URI
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    if not url.startswith("postgresql+asyncpg"):
        return {}

    connect_args = {"timeout": 30, "command_timeout": 30}
    if settings.is_production:
        connect_args["ssl"] = _production_ssl_context()
        connect_args["server_settings"] = {
            "application_name": "centratutor_api",
            "client_encoding": "utf8",
        }
    return connect_args


engine = create_async_engine(
    settings.DATABASE_URI,
    echo=settings.DB_ECHO_QUERIES,
    poolclass=NullPool,
    connect_args=get_connect_args(),
)

AsyncSessionLocal: SessionFactory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: committed when the handler returns, rolled back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Database session rolled back", error=str(e))
            raise


def get_session_factory() -> SessionFactory:
    """Session factory for work that manages its own sessions, such as sweeps."""
    return AsyncSessionLocal


async def check_database_connection(session: AsyncSession) -> bool:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database connection failed", error=str(e))
        return False
    return True
