from typing import Iterable, List, Optional, Set, Tuple
import uuid

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.repositories.base import BaseRepository
from canvas_spaces.db.models.canvas import Canvas
from canvas_spaces.db.models.space_canvas import SpaceCanvas


class SpaceCanvasRepository(BaseRepository[SpaceCanvas]):
    """스페이스-캔버스 연결 Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(SpaceCanvas, session)

    async def get_for_group(self, space_id: uuid.UUID, group_id: uuid.UUID) -> Optional[SpaceCanvas]:
        result = await self.session.execute(
            select(SpaceCanvas).where(
                SpaceCanvas.space_id == space_id,
                SpaceCanvas.version_group_id == group_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_space(self, space_id: uuid.UUID) -> List[SpaceCanvas]:
        result = await self.session.execute(
            select(SpaceCanvas)
            .where(SpaceCanvas.space_id == space_id)
            .order_by(SpaceCanvas.sort_order.asc())
        )
        return list(result.scalars().all())

    async def list_with_canvas(self, space_id: uuid.UUID) -> List[Tuple[SpaceCanvas, Canvas]]:
        """스페이스의 연결 행과 가리키는 캔버스 버전 (sort_order 오름차순)"""
        result = await self.session.execute(
            select(SpaceCanvas, Canvas)
            .join(Canvas, Canvas.id == SpaceCanvas.canvas_id)
            .where(SpaceCanvas.space_id == space_id)
            .order_by(SpaceCanvas.sort_order.asc())
        )
        return [(link, canvas) for link, canvas in result.all()]

    async def max_sort_order(self, space_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.max(SpaceCanvas.sort_order)).where(SpaceCanvas.space_id == space_id)
        )
        return result.scalar_one_or_none() or 0

    async def count_for_space(self, space_id: uuid.UUID) -> int:
        return await self.count(space_id=space_id)

    async def count_for_group(self, group_id: uuid.UUID) -> int:
        return await self.count(version_group_id=group_id)

    async def repoint_group(self, group_id: uuid.UUID, canvas_id: uuid.UUID) -> int:
        """그룹을 참조하는 모든 연결 행이 canvas_id 를 가리키도록 갱신 (행 재생성 없음)"""
        result = await self.session.execute(
            update(SpaceCanvas)
            .where(SpaceCanvas.version_group_id == group_id)
            .values(canvas_id=canvas_id)
        )
        return result.rowcount

    async def shift_sort_orders(self, space_id: uuid.UUID, offset: int) -> None:
        """스페이스 내 모든 sort_order 를 offset 만큼 이동 (유니크 충돌 회피용)"""
        await self.session.execute(
            update(SpaceCanvas)
            .where(SpaceCanvas.space_id == space_id)
            .values(sort_order=SpaceCanvas.sort_order + offset)
        )

    async def set_sort_order(self, link_id: uuid.UUID, sort_order: int) -> None:
        await self.session.execute(
            update(SpaceCanvas)
            .where(SpaceCanvas.id == link_id)
            .values(sort_order=sort_order)
        )

    async def group_ids_for_spaces(self, space_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        space_ids = list(space_ids)
        if not space_ids:
            return set()
        result = await self.session.execute(
            select(SpaceCanvas.version_group_id)
            .where(SpaceCanvas.space_id.in_(space_ids))
            .distinct()
        )
        return set(result.scalars().all())

    async def referenced_group_ids(self, group_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        """주어진 그룹 중 아직 어떤 스페이스에서든 참조되는 그룹"""
        group_ids = list(group_ids)
        if not group_ids:
            return set()
        result = await self.session.execute(
            select(SpaceCanvas.version_group_id)
            .where(SpaceCanvas.version_group_id.in_(group_ids))
            .distinct()
        )
        return set(result.scalars().all())

    async def delete_for_spaces(self, space_ids: Iterable[uuid.UUID]) -> int:
        space_ids = list(space_ids)
        if not space_ids:
            return 0
        result = await self.session.execute(
            delete(SpaceCanvas).where(SpaceCanvas.space_id.in_(space_ids))
        )
        return result.rowcount
