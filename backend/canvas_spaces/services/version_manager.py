"""
캔버스 버전 관리 서비스

하나의 논리적 캔버스는 version_group_id 를 공유하는 여러 버전 행으로 구성된다.
이 서비스는 커밋하지 않으며 호출자의 작업 단위(transaction) 안에서만 동작한다.
"""

from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import ValidationError, ResourceNotFoundError, ConflictError
from canvas_spaces.db.models.canvas import Canvas, CLONED_FIELDS
from canvas_spaces.repositories.canvas import CanvasRepository
from canvas_spaces.repositories.canvas_records import CanvasRecordsRepository
from canvas_spaces.repositories.space_canvas import SpaceCanvasRepository
from canvas_spaces.services.publish_link_service import PublishLinkService

logger = logging.getLogger(__name__)


def normalize_version_label(label: Optional[str]) -> Optional[str]:
    """레이블 공백 제거 및 길이 검증. 비어 있으면 None (기본 레이블 사용)"""
    if label is None:
        return None
    label = label.strip()
    if not label:
        return None
    if len(label) > settings.VERSION_LABEL_MAX_LENGTH:
        raise ValidationError(
            f"버전 레이블은 {settings.VERSION_LABEL_MAX_LENGTH}자를 넘을 수 없습니다",
            field="label"
        )
    return label


def normalize_version_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    description = description.strip()
    if len(description) > settings.VERSION_DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"버전 설명은 {settings.VERSION_DESCRIPTION_MAX_LENGTH}자를 넘을 수 없습니다",
            field="description"
        )
    return description


def default_version_label(version_index: int) -> str:
    return f"v{version_index}"


class VersionManager:
    """캔버스 버전 생성/활성화/삭제/메타데이터 수정"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.canvases = CanvasRepository(db_session)
        self.links = SpaceCanvasRepository(db_session)
        self.records = CanvasRecordsRepository(db_session)
        self.publish_links = PublishLinkService(db_session)

    async def resolve_group(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID
    ) -> Canvas:
        """
        (소유자, 스페이스, 캔버스) 범위에서 캔버스 버전을 찾는다.

        canvas_id 는 그룹에 속한 아무 버전의 id 이면 되며,
        찾은 행이 버전 그룹을 대표하는 기준(base) 버전이 된다.
        """
        canvas = await self.canvases.get_in_scope(owner_id, space_id, canvas_id)
        if canvas is None:
            raise ResourceNotFoundError("캔버스", canvas_id)
        return canvas

    async def list_versions(self, group_id: uuid.UUID) -> List[Canvas]:
        return await self.canvases.list_group(group_id)

    async def create_version(
        self,
        base: Canvas,
        label: Optional[str] = None,
        description: Optional[str] = None,
        activate: bool = False,
        space_id: Optional[uuid.UUID] = None
    ) -> Canvas:
        """
        기준 버전을 복제해 새 버전을 만든다.

        version_index 는 그룹 행을 잠근 뒤 집계(max + 1)로 계산하며,
        동시 생성으로 (group, index) 유니크 제약에 걸리면 SAVEPOINT 를 롤백하고 재시도한다.
        activate 이면 기존 활성 버전을 먼저 비활성화하고 모든 스페이스의 연결 행을 새 버전으로 옮긴다.
        """
        label = normalize_version_label(label)
        description = normalize_version_description(description)
        group_id = base.version_group_id

        await self.canvases.lock_group(group_id)

        if activate:
            await self.canvases.deactivate_group(group_id)

        version, version_index = await self._insert_next_version(
            base, group_id, label, description, activate
        )

        if activate:
            repointed = await self.links.repoint_group(group_id, version.id)
            await self.publish_links.update_group_target(group_id, version)
            logger.info(
                f"새 버전 활성화: group={group_id} version={version.id} "
                f"(연결 {repointed}개 갱신, space={space_id})"
            )

        logger.info(f"캔버스 버전 생성: group={group_id} index={version_index} active={activate}")
        return version

    async def _insert_next_version(
        self,
        base: Canvas,
        group_id: uuid.UUID,
        label: Optional[str],
        description: Optional[str],
        activate: bool
    ) -> Tuple[Canvas, int]:
        cloned = {field: getattr(base, field) for field in CLONED_FIELDS}
        max_retries = settings.VERSION_INDEX_MAX_RETRIES

        for attempt in range(1, max_retries + 1):
            version_index = await self.canvases.max_version_index(group_id) + 1
            version = Canvas(
                **cloned,
                version_group_id=group_id,
                version_uuid=uuid.uuid4(),
                version_label=label or default_version_label(version_index),
                version_description=description or None,
                version_index=version_index,
                is_active=activate,
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(version)
                    await self.db.flush()
                return version, version_index
            except IntegrityError:
                logger.warning(
                    f"버전 인덱스 충돌, 재시도 {attempt}/{max_retries}: group={group_id} index={version_index}"
                )

        raise ConflictError("동시 요청으로 버전 번호를 할당하지 못했습니다. 다시 시도해주세요")

    async def activate_version(self, group_id: uuid.UUID, version_id: uuid.UUID) -> Canvas:
        """그룹의 활성 버전을 교체하고 모든 연결 행/게시 링크를 새 버전으로 옮긴다 (멱등)"""
        target = await self.canvases.get(version_id)
        if target is None:
            raise ResourceNotFoundError("캔버스 버전", version_id)
        if target.version_group_id != group_id:
            raise ConflictError("다른 캔버스 그룹의 버전은 활성화할 수 없습니다")

        await self.canvases.lock_group(group_id)

        if not target.is_active:
            await self.canvases.deactivate_group(group_id)
            await self.canvases.activate(target.id)
            await self.db.refresh(target)

        await self.links.repoint_group(group_id, target.id)
        await self.publish_links.update_group_target(group_id, target)

        logger.info(f"버전 활성화: group={group_id} version={target.id}")
        return target

    async def delete_version(self, group_id: uuid.UUID, version_id: uuid.UUID) -> uuid.UUID:
        """
        비활성 버전 하나를 영구 삭제한다.

        version_index 는 재정렬하지 않는다 (빈 번호 허용).
        """
        target = await self._get_group_member(group_id, version_id)

        await self.canvases.lock_group(group_id)

        if target.is_active:
            raise ConflictError("활성 버전은 삭제할 수 없습니다. 다른 버전을 먼저 활성화하세요")
        if await self.canvases.count_group(group_id) <= 1:
            raise ConflictError("캔버스의 마지막 버전은 삭제할 수 없습니다")

        deleted_id, version_index = target.id, target.version_index
        await self.records.delete_for_canvases([deleted_id])
        await self.publish_links.remove_links([], [deleted_id])
        await self.canvases.delete(deleted_id)

        logger.info(f"버전 삭제: group={group_id} version={deleted_id} index={version_index}")
        return deleted_id

    async def update_version_metadata(
        self,
        group_id: uuid.UUID,
        version_id: uuid.UUID,
        label: Optional[str] = None,
        description: Optional[str] = None
    ) -> Canvas:
        """
        레이블/설명만 수정한다.

        None 은 변경 없음. 레이블을 빈 문자열로 지우면 v{version_index} 로 되돌리고,
        설명을 빈 문자열로 지우면 설명이 제거된다.
        """
        target = await self._get_group_member(group_id, version_id)

        if label is not None:
            target.version_label = normalize_version_label(label) or default_version_label(target.version_index)
        if description is not None:
            target.version_description = normalize_version_description(description) or None

        await self.db.flush()
        return target

    async def _get_group_member(self, group_id: uuid.UUID, version_id: uuid.UUID) -> Canvas:
        target = await self.canvases.get(version_id)
        if target is None or target.version_group_id != group_id:
            raise ResourceNotFoundError("캔버스 버전", version_id)
        return target
