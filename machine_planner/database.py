"""
Connexion a la base de donnees / Database connection.
Supporte SQLite (dev) et PostgreSQL (prod) via SQLAlchemy 2.0 async.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from machine_planner.config import settings


def _engine_kwargs(url: str, echo: bool) -> dict:
    """Configuration moteur / Engine configuration."""
    kwargs: dict = {"echo": echo}
    if not url.startswith("sqlite"):
        kwargs.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        })
    return kwargs


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Creer un moteur async / Create an async engine.

    SQLite n'applique les cles etrangeres qu'avec PRAGMA foreign_keys /
    SQLite only enforces foreign keys with PRAGMA foreign_keys.
    """
    new_engine = create_async_engine(url, **_engine_kwargs(url, echo))
    if url.startswith("sqlite"):
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return new_engine


engine = make_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """Dependance FastAPI pour obtenir une session DB / FastAPI dependency for DB session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(target: AsyncEngine | None = None):
    """Creer les tables au demarrage / Create tables on startup."""
    # Importer les modeles pour remplir Base.metadata / Import models to populate Base.metadata
    import machine_planner.models  # noqa: F401

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
