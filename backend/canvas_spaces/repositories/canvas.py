from typing import Dict, Iterable, List, Optional
import uuid

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.repositories.base import BaseRepository
from canvas_spaces.db.models.canvas import Canvas
from canvas_spaces.db.models.space import Space
from canvas_spaces.db.models.space_canvas import SpaceCanvas


class CanvasRepository(BaseRepository[Canvas]):
    """캔버스 버전 Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(Canvas, session)

    async def get_in_scope(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID
    ) -> Optional[Canvas]:
        """
        소유자/스페이스 범위 안에서 캔버스 버전 조회

        버전 그룹이 해당 스페이스에 연결되어 있으면 비활성 버전도 조회된다.
        """
        query = (
            select(Canvas)
            .join(SpaceCanvas, SpaceCanvas.version_group_id == Canvas.version_group_id)
            .join(Space, Space.id == SpaceCanvas.space_id)
            .where(
                Canvas.id == canvas_id,
                SpaceCanvas.space_id == space_id,
                Space.owner_id == owner_id,
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_group(self, group_id: uuid.UUID) -> List[Canvas]:
        """그룹의 모든 버전 (version_index, created_at 오름차순)"""
        result = await self.session.execute(
            select(Canvas)
            .where(Canvas.version_group_id == group_id)
            .order_by(Canvas.version_index.asc(), Canvas.created_at.asc())
        )
        return list(result.scalars().all())

    async def lock_group(self, group_id: uuid.UUID) -> List[uuid.UUID]:
        """그룹의 행들을 잠금 (SELECT ... FOR UPDATE, 지원하지 않는 DB에서는 무시됨)"""
        result = await self.session.execute(
            select(Canvas.id)
            .where(Canvas.version_group_id == group_id)
            .with_for_update()
        )
        return list(result.scalars().all())

    async def max_version_index(self, group_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.max(Canvas.version_index)).where(Canvas.version_group_id == group_id)
        )
        return result.scalar_one_or_none() or 0

    async def count_group(self, group_id: uuid.UUID) -> int:
        return await self.count(version_group_id=group_id)

    async def count_active(self, group_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Canvas)
            .where(Canvas.version_group_id == group_id, Canvas.is_active.is_(True))
        )
        return result.scalar_one()

    async def get_active(self, group_id: uuid.UUID) -> Optional[Canvas]:
        result = await self.session.execute(
            select(Canvas).where(Canvas.version_group_id == group_id, Canvas.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def deactivate_group(self, group_id: uuid.UUID) -> None:
        """그룹의 모든 버전을 비활성화 (멱등)"""
        await self.session.execute(
            update(Canvas)
            .where(Canvas.version_group_id == group_id, Canvas.is_active.is_(True))
            .values(is_active=False)
        )

    async def activate(self, canvas_id: uuid.UUID) -> None:
        await self.session.execute(
            update(Canvas).where(Canvas.id == canvas_id).values(is_active=True)
        )

    async def list_ids_in_groups(self, group_ids: Iterable[uuid.UUID]) -> List[uuid.UUID]:
        group_ids = list(group_ids)
        if not group_ids:
            return []
        result = await self.session.execute(
            select(Canvas.id).where(Canvas.version_group_id.in_(group_ids))
        )
        return list(result.scalars().all())

    async def group_ids_by_canvas(self, canvas_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, uuid.UUID]:
        """캔버스 id -> 버전 그룹 id"""
        canvas_ids = list(canvas_ids)
        if not canvas_ids:
            return {}
        result = await self.session.execute(
            select(Canvas.id, Canvas.version_group_id).where(Canvas.id.in_(canvas_ids))
        )
        return {canvas_id: group_id for canvas_id, group_id in result.all()}
