from typing import List, Optional, Tuple
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.repositories.base import BaseRepository
from canvas_spaces.db.models.space import Space
from canvas_spaces.db.models.space_canvas import SpaceCanvas


class SpaceRepository(BaseRepository[Space]):
    """스페이스 Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(Space, session)

    async def get_owned(self, owner_id: uuid.UUID, space_id: uuid.UUID) -> Optional[Space]:
        """소유자 범위 내 스페이스 조회"""
        result = await self.session.execute(
            select(Space).where(Space.id == space_id, Space.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def list_owned_with_counts(self, owner_id: uuid.UUID) -> List[Tuple[Space, int]]:
        """소유자의 스페이스 목록과 캔버스 수"""
        query = (
            select(Space, func.count(SpaceCanvas.id))
            .outerjoin(SpaceCanvas, SpaceCanvas.space_id == Space.id)
            .where(Space.owner_id == owner_id)
            .group_by(Space.id)
            .order_by(Space.updated_at.desc(), Space.created_at.desc())
        )
        result = await self.session.execute(query)
        return [(space, count) for space, count in result.all()]

    async def list_owned_ids(
        self,
        owner_id: uuid.UUID,
        space_ids: Optional[List[uuid.UUID]] = None
    ) -> List[uuid.UUID]:
        """소유자 범위로 한정한 스페이스 id 목록 (space_ids 로 추가 필터링)"""
        query = select(Space.id).where(Space.owner_id == owner_id)
        if space_ids is not None:
            if not space_ids:
                return []
            query = query.where(Space.id.in_(space_ids))

        result = await self.session.execute(query)
        return list(result.scalars().all())
