import functools
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from common.exceptions import InternalError
from common.logger import logger

T = TypeVar('T')

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: IntegrityError) -> str:
    orig = getattr(exc, "orig", None)
    return (
        getattr(orig, "sqlstate", None)
        or getattr(orig, "pgcode", None)
        or ""
    )


def is_unique_violation(exc: IntegrityError) -> bool:
    """
    Check whether an IntegrityError was raised by a unique constraint/index.

    asyncpg exposes ``sqlstate``, psycopg2 ``pgcode``; other drivers only give
    us the message text.
    """
    state = _sqlstate(exc)
    if state:
        return state == UNIQUE_VIOLATION
    return "unique" in str(exc.orig).lower()


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    state = _sqlstate(exc)
    if state:
        return state == FOREIGN_KEY_VIOLATION
    return "foreign key" in str(exc.orig).lower()


def translate_db_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Wrap an async data-access method so driver failures surface as InternalError.

    IntegrityError is left alone: callers that insert or delete decide
    whether it means a duplicate or a conflict.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> T:
        try:
            return await func(*args, **kwargs)
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.exception(f"Data access failure in {func.__qualname__}: {e}")
            raise InternalError("Data access failure") from e

    return wrapper


@asynccontextmanager
async def write_transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block of writes atomically.

    Any implicit read transaction left open by earlier queries is ended first
    so the write transaction starts clean. On any exception, including task
    cancellation, everything is rolled back.
    """
    if db.in_transaction():
        await db.rollback()
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise
