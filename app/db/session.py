"""
Database Session Management
===========================
Provides async engine for the FastAPI application and a sync engine used for
table creation at startup and in tests.
"""
import re
import ssl as _ssl

from sqlalchemy import create_engine, event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings

# ── ASYNC ENGINE (FastAPI) ───────────────────────────────────────────────────
# Convert database URL to async driver
async_db_url = settings.database_url
_need_ssl = False

if "postgresql" in async_db_url:
    # Ensure standard postgresql:// becomes postgresql+asyncpg://
    if "+asyncpg" not in async_db_url:
        async_db_url = async_db_url.replace("postgresql+psycopg://", "postgresql+asyncpg://")
        async_db_url = async_db_url.replace("postgresql://", "postgresql+asyncpg://")
    if "sslmode=require" in async_db_url or "sslmode=verify" in async_db_url:
        _need_ssl = True
    # Strip psycopg-specific parameters that asyncpg doesn't understand
    async_db_url = re.sub(r'[&?]sslmode=[^&]*', '', async_db_url)
    async_db_url = re.sub(r'[&?]channel_binding=[^&]*', '', async_db_url)
    async_db_url = re.sub(r'\?$', '', async_db_url)
elif "sqlite" in async_db_url:
    if "+aiosqlite" not in async_db_url:
        async_db_url = async_db_url.replace("sqlite://", "sqlite+aiosqlite://")

_is_sqlite = "sqlite" in async_db_url

if _is_sqlite:
    connect_args = {"check_same_thread": False}
elif _need_ssl:
    ssl_ctx = _ssl.create_default_context()
    if not settings.db_ssl_verify:
        # For local/dev environments that don't provide CA bundles.
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = _ssl.CERT_NONE
    connect_args = {"ssl": ssl_ctx}
else:
    connect_args = {}

if _is_sqlite:
    # One connection per session; SQLite serializes writers on its file lock.
    async_engine = create_async_engine(
        async_db_url,
        echo=settings.debug,
        poolclass=NullPool,
        connect_args=connect_args,
    )
else:
    async_engine = create_async_engine(
        async_db_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_recycle=300,
        connect_args=connect_args,
    )

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False
)

# ── SYNC ENGINE (create_all / tests) ─────────────────────────────────────────
sync_db_url = settings.database_url
if "postgresql" in sync_db_url:
    if "+asyncpg" in sync_db_url:
        sync_db_url = sync_db_url.replace("+asyncpg", "+psycopg")
    elif "psycopg" not in sync_db_url:
        sync_db_url = sync_db_url.replace("postgresql://", "postgresql+psycopg://")
elif "+aiosqlite" in sync_db_url:
    sync_db_url = sync_db_url.replace("+aiosqlite", "")

sync_connect_args = {"check_same_thread": False} if "sqlite" in sync_db_url else {}

engine = create_engine(
    sync_db_url,
    pool_pre_ping=True,
    connect_args=sync_connect_args
)


if _is_sqlite:
    @event.listens_for(async_engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()


async def get_db() -> AsyncSession:
    """Async database session dependency generator."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
