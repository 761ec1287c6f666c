"""
스페이스 멤버십 관리 서비스

스페이스 안의 논리적 캔버스 목록(연결 행)과 그 순서를 관리한다.
sort_order 는 스페이스마다 1..N 연속값을 유지한다.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import ValidationError, ConflictError, ResourceNotFoundError
from canvas_spaces.db.models.canvas import Canvas, CLONED_FIELDS
from canvas_spaces.db.models.space import Space
from canvas_spaces.db.models.space_canvas import SpaceCanvas
from canvas_spaces.repositories.canvas import CanvasRepository
from canvas_spaces.repositories.canvas_records import CanvasRecordsRepository
from canvas_spaces.repositories.space_canvas import SpaceCanvasRepository
from canvas_spaces.services.publish_link_service import PublishLinkService

logger = logging.getLogger(__name__)


class MembershipManager:
    """스페이스-캔버스 연결 관리"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.canvases = CanvasRepository(db_session)
        self.links = SpaceCanvasRepository(db_session)
        self.records = CanvasRecordsRepository(db_session)
        self.publish_links = PublishLinkService(db_session)

    async def attach_canvas_to_space(self, space: Space, canvas: Canvas) -> SpaceCanvas:
        """
        캔버스 그룹을 스페이스 끝에 연결 (이미 연결되어 있으면 기존 행 반환)

        연결 행은 전달된 버전이 아니라 그룹의 활성 버전을 가리킨다.
        """
        existing = await self.links.get_for_group(space.id, canvas.version_group_id)
        if existing is not None:
            return existing

        active = await self.canvases.get_active(canvas.version_group_id)
        target = active if active is not None else canvas

        sort_order = await self.links.max_sort_order(space.id) + 1
        link = await self.links.create(
            space_id=space.id,
            canvas_id=target.id,
            version_group_id=canvas.version_group_id,
            sort_order=sort_order,
        )
        logger.debug(f"캔버스 연결: space={space.id} group={canvas.version_group_id} sort={sort_order}")
        return link

    async def create_canvas_in_space(
        self,
        space: Space,
        name: str,
        flow_data: Optional[str] = None,
        **config: Any
    ) -> Tuple[Canvas, SpaceCanvas]:
        """새 버전 그룹(index 1, 활성, v1)을 만들고 스페이스 끝에 연결"""
        fields = {key: value for key, value in config.items() if key in CLONED_FIELDS}
        canvas = await self.canvases.create(
            **fields,
            name=name,
            flow_data=flow_data if flow_data is not None else "{}",
            version_group_id=uuid.uuid4(),
            version_uuid=uuid.uuid4(),
            version_label="v1",
            version_index=1,
            is_active=True,
        )
        link = await self.attach_canvas_to_space(space, canvas)
        logger.info(f"스페이스에 캔버스 생성: space={space.id} canvas={canvas.id}")
        return canvas, link

    async def reorder_canvases(self, space: Space, orders: List[Dict[str, Any]]) -> List[SpaceCanvas]:
        """
        스페이스의 캔버스 순서를 변경한다.

        orders 는 [{"canvas_id", "sort_order"}] 목록으로, 스페이스의 모든 논리적 캔버스를
        정확히 한 번씩 포함하고 sort_order 가 1..N 이어야 한다.
        canvas_id 는 그룹의 아무 버전 id 또는 그룹 id 를 받는다.
        (space, sort_order) 유니크 제약 때문에 전체를 먼저 큰 값만큼 밀어낸 뒤 최종 값을 쓴다.
        """
        links = await self.links.list_for_space(space.id)

        by_group = {link.version_group_id: link for link in links}
        by_canvas = {link.canvas_id: link for link in links}

        requested_ids = [item["canvas_id"] for item in orders]
        group_of = {}
        unresolved = []
        version_groups = await self.canvases.group_ids_by_canvas(
            [cid for cid in requested_ids if cid not in by_group and cid not in by_canvas]
        )
        for canvas_id in requested_ids:
            if canvas_id in by_group:
                group_of[canvas_id] = canvas_id
            elif canvas_id in by_canvas:
                group_of[canvas_id] = by_canvas[canvas_id].version_group_id
            elif version_groups.get(canvas_id) in by_group:
                group_of[canvas_id] = version_groups[canvas_id]
            else:
                unresolved.append(canvas_id)

        if unresolved:
            raise ValidationError(
                f"스페이스에 속하지 않은 캔버스입니다: {', '.join(str(cid) for cid in unresolved)}",
                field="canvasOrders"
            )

        targets: Dict[uuid.UUID, int] = {}
        for item in orders:
            group_id = group_of[item["canvas_id"]]
            if group_id in targets:
                raise ValidationError("같은 캔버스가 여러 번 지정되었습니다", field="canvasOrders")
            targets[group_id] = item["sort_order"]

        if set(targets) != set(by_group):
            raise ValidationError("스페이스의 모든 캔버스 순서를 지정해야 합니다", field="canvasOrders")
        if sorted(targets.values()) != list(range(1, len(links) + 1)):
            raise ValidationError(
                f"sortOrder 는 1부터 {len(links)}까지 중복 없이 지정해야 합니다",
                field="canvasOrders"
            )

        # 1단계: 임시 구간으로 이동, 2단계: 최종 값 기록
        # 이동 폭은 캔버스 수 이상이어야 임시 값이 최종 값 1..N 과 겹치지 않는다
        shift = max(settings.SORT_ORDER_SHIFT, len(links))
        await self.links.shift_sort_orders(space.id, shift)
        for group_id, sort_order in targets.items():
            await self.links.set_sort_order(by_group[group_id].id, sort_order)

        logger.info(f"캔버스 순서 변경: space={space.id} count={len(targets)}")
        return await self.links.list_for_space(space.id)

    async def delete_canvas_from_space(self, space: Space, canvas_group_id: uuid.UUID) -> List[uuid.UUID]:
        """
        스페이스에서 논리적 캔버스를 제거한다.

        다른 스페이스가 더 이상 그룹을 참조하지 않으면 그룹의 모든 버전과 종속 레코드를 삭제하고,
        삭제된 캔버스 id 목록을 반환한다 (저장소 정리용).
        """
        link = await self.links.get_for_group(space.id, canvas_group_id)
        if link is None:
            raise ResourceNotFoundError("캔버스", canvas_group_id)

        if await self.links.count_for_space(space.id) <= 1:
            raise ConflictError("스페이스의 마지막 캔버스는 삭제할 수 없습니다")

        await self.links.delete(link.id)

        deleted_ids: List[uuid.UUID] = []
        if await self.links.count_for_group(canvas_group_id) == 0:
            deleted_ids = await self.delete_groups([canvas_group_id])
        else:
            logger.info(f"다른 스페이스에서 참조 중인 캔버스 그룹 유지: group={canvas_group_id}")

        await self.renumber(space.id)

        logger.info(
            f"스페이스에서 캔버스 제거: space={space.id} group={canvas_group_id} "
            f"deleted_versions={len(deleted_ids)}"
        )
        return deleted_ids

    async def delete_groups(self, group_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        """버전 그룹들의 모든 버전을 종속 레코드/게시 링크와 함께 삭제"""
        canvas_ids = await self.canvases.list_ids_in_groups(group_ids)
        if not canvas_ids:
            return []

        await self.records.delete_for_canvases(canvas_ids)
        await self.publish_links.remove_links(group_ids, canvas_ids)
        await self.canvases.delete_many(canvas_ids)
        return canvas_ids

    async def renumber(self, space_id: uuid.UUID) -> None:
        """남은 연결 행을 기존 순서대로 1..N 으로 다시 번호 매김"""
        links = await self.links.list_for_space(space_id)
        # 앞으로 당기기만 하므로 오름차순 갱신은 중복을 만들지 않는다
        for position, link in enumerate(links, start=1):
            if link.sort_order != position:
                await self.links.set_sort_order(link.id, position)
