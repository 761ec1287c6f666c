"""
캔버스 삭제 후 정리 작업

커밋 이후 백그라운드에서 실행되며, 실패는 로그로만 남기고 호출자에게 전파하지 않는다.
"""

import asyncio
import shutil
import time
from pathlib import Path
from typing import Callable, Iterable, List, Protocol
import uuid

from sqlalchemy import select, or_, cast, String
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import StorageCleanupError
from canvas_spaces.db.models.document_store import DocumentStore
from canvas_spaces.db.session import transaction
from canvas_spaces.utils.logger import get_logger

logger = get_logger(__name__)


class CanvasStorage(Protocol):
    """캔버스별 파일 저장소"""

    async def remove(self, canvas_id: str) -> None:
        ...


class LocalCanvasStorage:
    """로컬 디스크 저장소 ({base_dir}/{canvas_id}/ 디렉토리)"""

    def __init__(self, base_dir: str = None):
        self.base_dir = Path(base_dir or settings.CANVAS_STORAGE_DIR)

    def path_for(self, canvas_id: str) -> Path:
        return self.base_dir / str(canvas_id)

    async def remove(self, canvas_id: str) -> None:
        path = self.path_for(canvas_id)
        if not path.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, path)
        except OSError as e:
            raise StorageCleanupError(str(canvas_id), f"캔버스 디렉토리 삭제 실패: {path} ({e})") from e


class CanvasCleanupService:
    """삭제된 캔버스의 파일 저장소와 문서 스토어 참조 정리"""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        storage: CanvasStorage = None
    ):
        self.session_factory = session_factory
        self.storage = storage or LocalCanvasStorage()
        self.max_retries = settings.CLEANUP_MAX_RETRIES
        self.retry_delay = settings.CLEANUP_RETRY_DELAY_SECONDS

    async def cleanup_canvases(self, canvas_ids: Iterable[uuid.UUID], source: str = "unknown") -> List[str]:
        """
        캔버스 정리 실행

        Returns:
            저장소 정리에 실패한 캔버스 id 목록
        """
        ids = [str(canvas_id) for canvas_id in canvas_ids]
        if not ids:
            return []

        start_time = time.time()
        failed = []
        for canvas_id in ids:
            if not await self._remove_storage(canvas_id, source):
                failed.append(canvas_id)

        await self._remove_document_store_references(ids, source)

        logger.info(
            "캔버스 정리 완료",
            context={"source": source, "count": len(ids), "failed": len(failed)}
        )
        logger.debug_performance(
            "캔버스 정리 소요 시간",
            context={"source": source, "duration_ms": (time.time() - start_time) * 1000}
        )
        return failed

    async def _remove_storage(self, canvas_id: str, source: str) -> bool:
        for attempt in range(1, self.max_retries + 1):
            try:
                await self.storage.remove(canvas_id)
                return True
            except Exception as e:
                if attempt < self.max_retries:
                    logger.warning(
                        f"저장소 정리 재시도 {attempt}/{self.max_retries}",
                        context={"canvas_id": canvas_id, "source": source, "error": str(e)}
                    )
                    await asyncio.sleep(self.retry_delay)
                else:
                    logger.error(
                        "저장소 정리 실패",
                        exc_info=e,
                        context={"canvas_id": canvas_id, "source": source}
                    )
        return False

    async def _remove_document_store_references(self, canvas_ids: List[str], source: str) -> None:
        removed = set(canvas_ids)
        try:
            async with self.session_factory() as session:
                async with transaction(session):
                    where_used = cast(DocumentStore.where_used, String)
                    result = await session.execute(
                        select(DocumentStore).where(
                            or_(*[where_used.like(f"%{canvas_id}%") for canvas_id in canvas_ids])
                        )
                    )
                    updated = 0
                    for store in result.scalars().all():
                        remaining = [used for used in (store.where_used or []) if str(used) not in removed]
                        if len(remaining) != len(store.where_used or []):
                            store.where_used = remaining
                            updated += 1

            if updated:
                logger.debug(
                    "문서 스토어 참조 정리",
                    context={"source": source, "stores": updated}
                )
        except Exception as e:
            logger.error(
                "문서 스토어 참조 정리 실패",
                exc_info=e,
                context={"source": source, "canvas_ids": canvas_ids}
            )
