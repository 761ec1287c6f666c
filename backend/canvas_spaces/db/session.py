from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import CanvasSpacesException, DatabaseError


def _engine_options(database_url: str) -> Dict[str, Any]:
    """드라이버별 엔진 옵션 (sqlite는 커넥션 풀 옵션을 받지 않음)"""
    if database_url.startswith("sqlite"):
        return {"echo": False}
    return {
        "echo": settings.DEBUG,
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# 비동기 세션
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    하나의 작업 단위(unit of work)

    블록이 정상 종료되면 커밋하고, 예외가 발생하면 롤백 후 다시 던진다.
    SQLAlchemy 오류는 DatabaseError로 감싼다.
    """
    try:
        yield session
        await session.commit()
    except CanvasSpacesException:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        raise DatabaseError(f"데이터베이스 오류가 발생했습니다: {e.__class__.__name__}") from e
    except BaseException:
        await session.rollback()
        raise
