"""
게시 링크 서비스

그룹 링크(version_group_id 가 설정된 링크)는 항상 그룹의 활성 버전을 가리킨다.
"""

from typing import Iterable
import logging
import uuid

from sqlalchemy import update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.db.models.canvas import Canvas
from canvas_spaces.db.models.publish_link import PublishLink

logger = logging.getLogger(__name__)


class PublishLinkService:
    """게시 링크 관리 (호출자의 트랜잭션 안에서 동작)"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def update_group_target(self, group_id: uuid.UUID, canvas: Canvas) -> int:
        """그룹 링크들이 새 활성 버전을 가리키도록 갱신"""
        result = await self.db.execute(
            update(PublishLink)
            .where(PublishLink.version_group_id == group_id)
            .values(
                target_canvas_id=canvas.id,
                target_version_uuid=canvas.version_uuid,
            )
        )
        if result.rowcount:
            logger.info(f"게시 링크 {result.rowcount}개 대상 갱신: group={group_id} -> canvas={canvas.id}")
        return result.rowcount

    async def remove_links(
        self,
        group_ids: Iterable[uuid.UUID],
        canvas_ids: Iterable[uuid.UUID]
    ) -> int:
        """삭제되는 그룹/캔버스를 가리키는 게시 링크 제거"""
        group_ids = list(group_ids)
        canvas_ids = list(canvas_ids)
        if not group_ids and not canvas_ids:
            return 0

        conditions = []
        if group_ids:
            conditions.append(PublishLink.version_group_id.in_(group_ids))
        if canvas_ids:
            conditions.append(PublishLink.target_canvas_id.in_(canvas_ids))

        result = await self.db.execute(delete(PublishLink).where(or_(*conditions)))
        return result.rowcount
