# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# DESIGN DECISION: Async SQLAlchemy Engine
# FastAPI is an async framework, so we use SQLAlchemy's async engine to avoid
# blocking the event loop during database operations:
# - All DB queries use `await` (e.g., `await session.execute(...)`)
# - We use `asyncpg` as the PostgreSQL driver
# - Sessions are created per-request via FastAPI's dependency injection
#
# SESSION LIFECYCLE:
# 1. FastAPI request arrives
# 2. `get_async_session` dependency creates a new session
# 3. Route handler uses session (through CarStore) for DB operations
# 4. Session auto-commits on exit and is closed when the request completes
# 5. On exception, the transaction is rolled back
#
# COMMIT POLICY:
# CarStore flushes (never commits) so that the dependency owns the
# transaction. The car orchestration commits explicitly on create, update,
# and delete: the record save is the durability boundary, and files are
# only purged once it has been crossed. The auto-commit at exit is then a
# no-op.
#
# The audit middleware runs outside the request dependency lifecycle and
# uses async_session_factory() directly; it MUST commit explicitly.
# =============================================================================

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings

# ---------------------------------------------------------------------------
# Async Engine
# ---------------------------------------------------------------------------
# - echo=True (debug mode): Logs all SQL statements.
# - pool_size / max_overflow: connection pool bounds.
# ---------------------------------------------------------------------------
async_engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=10,
)

# ---------------------------------------------------------------------------
# Session Factory
# ---------------------------------------------------------------------------
# expire_on_commit=False: attributes stay loaded after commit, so a handler
# can serialise a car it just saved without another round-trip (which would
# fail in async context outside of a session).
# ---------------------------------------------------------------------------
async_session_factory = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_models() -> None:
    """Create all tables that do not exist yet. Called on app startup."""
    from app.db.models import Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Usage in route handlers:
        @router.get("/items")
        async def list_items(session: AsyncSession = Depends(get_async_session)):
            result = await session.execute(select(Item))
            return result.scalars().all()

    The session is automatically closed when the request completes.
    If an exception occurs, the transaction is rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
