"""
스페이스 일괄 삭제(Cascade Purge) 서비스

후보 수집 -> 남은 참조로 필터링 -> 삭제 순서로 동작하여,
다른 스페이스가 아직 가리키는 캔버스 그룹은 절대 삭제하지 않는다.
참조 여부는 별도 카운터 없이 삭제 시점에 연결 테이블에서 다시 계산한다.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.repositories.space import SpaceRepository
from canvas_spaces.repositories.space_canvas import SpaceCanvasRepository
from canvas_spaces.services.logging_service import logging_service
from canvas_spaces.services.membership_manager import MembershipManager

logger = logging.getLogger(__name__)


@dataclass
class PurgeResult:
    """삭제된 스페이스/캔버스 id (커밋 이후 정리 작업에 사용)"""
    deleted_space_ids: List[uuid.UUID] = field(default_factory=list)
    deleted_canvas_ids: List[uuid.UUID] = field(default_factory=list)


class PurgeService:
    """소유자 범위의 스페이스와 더 이상 참조되지 않는 캔버스를 삭제"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.spaces = SpaceRepository(db_session)
        self.links = SpaceCanvasRepository(db_session)
        self.membership = MembershipManager(db_session)

    async def purge_spaces(
        self,
        owner_id: uuid.UUID,
        space_ids: Optional[List[uuid.UUID]] = None
    ) -> PurgeResult:
        """
        스페이스 삭제 (space_ids 가 없으면 소유자의 모든 스페이스)

        커밋하지 않는다. 저장소 파일 정리는 커밋 이후 호출자가 예약한다.
        """
        target_ids = await self.spaces.list_owned_ids(owner_id, space_ids)
        if not target_ids:
            return PurgeResult()

        async with logging_service.trace_operation("purge_spaces", owner_id=owner_id, spaces=len(target_ids)):
            candidate_groups = await self.links.group_ids_for_spaces(target_ids)

            await self.links.delete_for_spaces(target_ids)
            await self.spaces.delete_many(target_ids)

            still_referenced = await self.links.referenced_group_ids(candidate_groups)
            deletable_groups = [group_id for group_id in candidate_groups if group_id not in still_referenced]

            deleted_canvas_ids = await self.membership.delete_groups(deletable_groups)

        logger.info(
            f"스페이스 삭제 완료: owner={owner_id} spaces={len(target_ids)} "
            f"canvases={len(deleted_canvas_ids)} kept_groups={len(still_referenced)}"
        )
        return PurgeResult(deleted_space_ids=target_ids, deleted_canvas_ids=deleted_canvas_ids)
