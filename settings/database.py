from typing import AsyncGenerator

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from settings.config import get_settings

settings = get_settings()

DATABASE_URL = URL.create(
    drivername="postgresql+asyncpg",
    username=settings.db_user,
    password=settings.db_password,
    host=settings.db_host,
    database=settings.db_name,
    port=settings.db_port
)

engine = create_async_engine(
    DATABASE_URL,
    pool_size=settings.db_pool_size,
    pool_pre_ping=True,
    echo=settings.db_echo,
)
SessionLocal = async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
Base = declarative_base()

SCHEMA = "talent"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as db:
        yield db
