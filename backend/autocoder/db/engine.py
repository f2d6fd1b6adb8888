from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from autocoder.config import settings

# echo only at DEBUG: statements carry whole asset data URLs
engine = create_async_engine(
    settings.database_url,
    echo=settings.log_level.upper() == "DEBUG",
    pool_pre_ping=True,
)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
