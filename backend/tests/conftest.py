"""
테스트 설정 및 픽스처 - 인메모리 SQLite (aiosqlite) 사용
"""

import os

# 애플리케이션 모듈 import 전에 테스트용 설정 주입
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("MOCK_AUTH_ENABLED", "true")

import uuid
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from canvas_spaces.db.base import Base
from canvas_spaces.db.models import Canvas, SpaceCanvas
from canvas_spaces.services.spaces_service import SpacesService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """테스트용 비동기 엔진 (테스트마다 새 스키마)"""
    test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)

    @event.listens_for(test_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # SAVEPOINT 를 쓰기 위해 드라이버의 암묵적 BEGIN 을 끄고 직접 BEGIN 을 발행한다
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(test_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """테스트용 데이터베이스 세션"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def spaces_service(db_session) -> SpacesService:
    return SpacesService(db_session)


@pytest.fixture
async def demo_space(spaces_service, owner_id) -> Dict[str, Any]:
    """기본 캔버스 하나가 있는 스페이스 "Demo" """
    return await spaces_service.create_space(owner_id, name="Demo", description="데모 스페이스")


@pytest.fixture
def cleanup_mock() -> AsyncMock:
    """커밋 이후 정리 작업 대역"""
    cleanup = AsyncMock()
    cleanup.cleanup_canvases = AsyncMock(return_value=[])
    return cleanup


@pytest.fixture
async def client(session_factory, cleanup_mock):
    """get_db / 정리 서비스를 테스트용으로 교체한 API 클라이언트"""
    from canvas_spaces.main import app
    from canvas_spaces.api.deps import get_db, get_cleanup_service

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cleanup_service] = lambda: cleanup_mock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


# 불변식 검사 헬퍼

class InvariantHelpers:
    @staticmethod
    async def active_counts(session: AsyncSession) -> Dict[uuid.UUID, int]:
        """버전 그룹별 활성 버전 수"""
        result = await session.execute(
            select(Canvas.version_group_id, func.count())
            .where(Canvas.is_active.is_(True))
            .group_by(Canvas.version_group_id)
        )
        return {group_id: count for group_id, count in result.all()}

    @staticmethod
    async def sort_orders(session: AsyncSession, space_id: uuid.UUID) -> List[int]:
        result = await session.execute(
            select(SpaceCanvas.sort_order)
            .where(SpaceCanvas.space_id == space_id)
            .order_by(SpaceCanvas.sort_order)
        )
        return list(result.scalars().all())

    @staticmethod
    async def assert_invariants(session: AsyncSession, space_ids: List[uuid.UUID] = ()) -> None:
        """그룹당 활성 버전 <= 1, 스페이스 sort_order 1..N, 연결 행의 그룹 비정규화 값 일치"""
        counts = await InvariantHelpers.active_counts(session)
        assert all(count <= 1 for count in counts.values()), counts

        for space_id in space_ids:
            orders = await InvariantHelpers.sort_orders(session, space_id)
            assert orders == list(range(1, len(orders) + 1)), orders

        result = await session.execute(
            select(SpaceCanvas.version_group_id, Canvas.version_group_id, Canvas.is_active)
            .join(Canvas, Canvas.id == SpaceCanvas.canvas_id)
        )
        for link_group, canvas_group, is_active in result.all():
            assert link_group == canvas_group
            assert is_active is True


@pytest.fixture
def invariants():
    return InvariantHelpers
