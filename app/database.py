from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
import logging
import re
from app.config import get_settings

logger = logging.getLogger(__name__)

TENANT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

# Base class for models
Base = declarative_base()

_engines: Dict[str, AsyncEngine] = {}
_session_factories: Dict[str, async_sessionmaker] = {}


def convert_postgres_url_to_asyncpg(url: str) -> str:
    """
    Convert PostgreSQL URL to asyncpg-compatible format.
    Handles various URL formats and removes unsupported parameters.
    Non-PostgreSQL async URLs (e.g. sqlite+aiosqlite) are returned unchanged.
    """
    if not url:
        raise ValueError("DATABASE_URL cannot be empty")

    if url.startswith("sqlite+aiosqlite://"):
        return url

    # Replace postgresql:// with postgresql+asyncpg://
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql+asyncpg://"):
        # Already in correct format
        pass
    else:
        raise ValueError(f"Invalid DATABASE_URL format: {url[:50]}...")

    try:
        parsed = urlparse(url)
        query_params = parse_qs(parsed.query)
    except Exception as e:
        raise ValueError(f"Failed to parse DATABASE_URL: {str(e)}")

    # asyncpg uses ssl parameter, not sslmode
    if "sslmode" in query_params:
        sslmode = query_params["sslmode"][0].lower()
        del query_params["sslmode"]
        if sslmode in ["require", "prefer", "allow"]:
            query_params["ssl"] = ["require"]

    # Remove parameters asyncpg rejects
    for param in ["channel_binding", "connect_timeout", "application_name"]:
        if param in query_params:
            del query_params[param]

    new_query = urlencode(query_params, doseq=True)
    return urlunparse(parsed._replace(query=new_query))


def tenant_database_url(dbname: str) -> str:
    """Build the async database URL for a tenant database name"""
    if not dbname or not TENANT_NAME_PATTERN.match(dbname):
        raise ValueError(f"Invalid tenant database name: {dbname!r}")

    settings = get_settings()
    return convert_postgres_url_to_asyncpg(settings.DATABASE_URL.replace("{dbname}", dbname))


def get_engine(dbname: str) -> AsyncEngine:
    """Return the cached engine for a tenant database, creating it on first use"""
    engine = _engines.get(dbname)
    if engine is not None:
        return engine

    settings = get_settings()
    url = tenant_database_url(dbname)
    if url.startswith("sqlite"):
        # SQLite connections are bound to the event loop that opened them
        engine = create_async_engine(url, poolclass=NullPool)
    else:
        engine = create_async_engine(
            url,
            echo=False,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Verify connections before using
            pool_recycle=3600,   # Recycle connections after 1 hour
            connect_args={
                "server_settings": {
                    "application_name": "voter_registry_backend",
                }
            } if settings.ENVIRONMENT == "production" else {},
        )

    logger.info(f"Created database engine for tenant '{dbname}'")
    _engines[dbname] = engine
    _session_factories[dbname] = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return engine


@asynccontextmanager
async def tenant_session(dbname: str) -> AsyncIterator[AsyncSession]:
    """Open a session on a tenant database; the session is closed on every exit path"""
    get_engine(dbname)
    session = _session_factories[dbname]()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(dbname: str):
    """Initialize database tables for a tenant"""
    engine = get_engine(dbname)
    async with engine.begin() as conn:
        # Import all models to ensure they're registered
        from app.models import reference, voter  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def dispose_engines():
    """Close every pooled tenant connection"""
    for dbname, engine in list(_engines.items()):
        await engine.dispose()
        logger.info(f"Disposed database engine for tenant '{dbname}'")
    _engines.clear()
    _session_factories.clear()
