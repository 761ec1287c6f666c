"""
CanvasCleanupService 단위 테스트
"""

import uuid

import pytest
from sqlalchemy import select

from canvas_spaces.core.exceptions import StorageCleanupError
from canvas_spaces.db.models import DocumentStore
from canvas_spaces.services.cleanup_service import CanvasCleanupService, LocalCanvasStorage


class FlakyStorage:
    """지정한 횟수만큼 실패한 뒤 성공하는 저장소"""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = []

    async def remove(self, canvas_id: str) -> None:
        self.calls.append(canvas_id)
        if len(self.calls) <= self.failures:
            raise StorageCleanupError(canvas_id)


@pytest.fixture
def no_retry_delay(monkeypatch):
    from canvas_spaces.core.config import settings
    monkeypatch.setattr(settings, "CLEANUP_RETRY_DELAY_SECONDS", 0)


@pytest.mark.unit
class TestLocalCanvasStorage:
    """LocalCanvasStorage 테스트 클래스"""

    async def test_remove_existing_directory(self, tmp_path):
        storage = LocalCanvasStorage(str(tmp_path))
        canvas_id = str(uuid.uuid4())
        canvas_dir = storage.path_for(canvas_id)
        canvas_dir.mkdir(parents=True)
        (canvas_dir / "scene.json").write_text("{}")

        await storage.remove(canvas_id)

        assert not canvas_dir.exists()

    async def test_remove_missing_directory_is_noop(self, tmp_path):
        storage = LocalCanvasStorage(str(tmp_path))

        await storage.remove(str(uuid.uuid4()))


@pytest.mark.unit
@pytest.mark.db
class TestCanvasCleanupService:
    """CanvasCleanupService 테스트 클래스"""

    async def test_cleanup_removes_storage_and_where_used(self, session_factory, tmp_path):
        # Given
        removed_id, kept_id = uuid.uuid4(), uuid.uuid4()
        storage = LocalCanvasStorage(str(tmp_path))
        storage.path_for(str(removed_id)).mkdir(parents=True)

        async with session_factory() as session:
            session.add_all([
                DocumentStore(name="docs", where_used=[str(removed_id), str(kept_id)]),
                DocumentStore(name="other", where_used=[str(kept_id)]),
            ])
            await session.commit()

        service = CanvasCleanupService(session_factory, storage)

        # When
        failed = await service.cleanup_canvases([removed_id], source="test")

        # Then
        assert failed == []
        assert not storage.path_for(str(removed_id)).exists()
        async with session_factory() as session:
            result = await session.execute(select(DocumentStore.name, DocumentStore.where_used).order_by(DocumentStore.name))
            stores = {name: where_used for name, where_used in result.all()}
        assert stores == {"docs": [str(kept_id)], "other": [str(kept_id)]}

    async def test_cleanup_retries_storage(self, session_factory, no_retry_delay):
        storage = FlakyStorage(failures=2)
        service = CanvasCleanupService(session_factory, storage)
        canvas_id = uuid.uuid4()

        failed = await service.cleanup_canvases([canvas_id], source="test")

        assert failed == []
        assert storage.calls == [str(canvas_id)] * 3

    async def test_cleanup_failure_is_logged_not_raised(self, session_factory, no_retry_delay):
        """재시도 후에도 실패하면 실패 목록으로만 보고"""
        storage = FlakyStorage(failures=100)
        service = CanvasCleanupService(session_factory, storage)
        first, second = uuid.uuid4(), uuid.uuid4()

        failed = await service.cleanup_canvases([first, second], source="test")

        assert failed == [str(first), str(second)]
        assert len(storage.calls) == 6

    async def test_cleanup_nothing(self, session_factory):
        storage = FlakyStorage(failures=0)
        service = CanvasCleanupService(session_factory, storage)

        assert await service.cleanup_canvases([], source="test") == []
        assert storage.calls == []
