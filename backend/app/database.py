"""
Database engine, session factory and declarative base.

Tests replace `engine` and `AsyncSessionLocal` at runtime, so `get_db`
looks them up on the module each time it is called.
"""
from typing import AsyncGenerator

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


engine = create_async_engine(settings.database_url, echo=settings.debug)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with AsyncSessionLocal() as session:
        yield session


def upsert(db: AsyncSession, model, values: dict, index_elements: list[str], update: dict):
    """
    Build an INSERT ... ON CONFLICT statement for the session's dialect.

    Args:
        db: Session whose bind decides between the PostgreSQL and SQLite dialects
        model: Mapped class to insert into
        values: Column values for the new row
        index_elements: Columns of the unique constraint that may conflict
        update: Columns to overwrite on conflict. Empty means DO NOTHING.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values)
    else:
        stmt = sqlite.insert(model).values(**values)

    if update:
        return stmt.on_conflict_do_update(index_elements=index_elements, set_=update)
    return stmt.on_conflict_do_nothing(index_elements=index_elements)
