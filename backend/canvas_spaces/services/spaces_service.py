"""
스페이스/캔버스 서비스 (Query Façade)

요청 하나의 작업 단위(transaction)를 소유하고, 버전/멤버십/삭제 서비스를 조합한다.
입력 검증은 트랜잭션을 열기 전에 수행하며, 응답은 camelCase 딕셔너리로 만든다.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import ValidationError, ResourceNotFoundError, ConflictError
from canvas_spaces.db.models.canvas import Canvas, CanvasType
from canvas_spaces.db.models.space import Space
from canvas_spaces.db.session import transaction
from canvas_spaces.repositories.space import SpaceRepository
from canvas_spaces.repositories.space_canvas import SpaceCanvasRepository
from canvas_spaces.services.logging_service import logging_service
from canvas_spaces.services.membership_manager import MembershipManager
from canvas_spaces.services.purge_service import PurgeService, PurgeResult
from canvas_spaces.services.version_manager import (
    VersionManager,
    normalize_version_label,
    normalize_version_description,
)

NEW_CANVAS_NAME = "New Canvas"
SPACE_VISIBILITIES = ("private", "public")

# update_canvas 에서 수정 가능한 필드
CANVAS_UPDATABLE_FIELDS = (
    "name",
    "flow_data",
    "deployed",
    "is_public",
    "apikeyid",
    "chatbot_config",
    "api_config",
    "analytic",
    "speech_to_text",
    "follow_up_prompts",
    "category",
    "type",
)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_space(space: Space, canvas_count: int) -> Dict[str, Any]:
    return {
        "id": str(space.id),
        "name": space.name,
        "description": space.description,
        "visibility": space.visibility,
        "canvasCount": canvas_count,
        "createdDate": _isoformat(space.created_at),
        "updatedDate": _isoformat(space.updated_at),
    }


def serialize_canvas(canvas: Canvas, sort_order: Optional[int]) -> Dict[str, Any]:
    return {
        "id": str(canvas.id),
        "name": canvas.name,
        "sortOrder": sort_order,
        "flowData": canvas.flow_data,
        "deployed": canvas.deployed,
        "isPublic": canvas.is_public,
        "apikeyid": canvas.apikeyid,
        "chatbotConfig": canvas.chatbot_config,
        "apiConfig": canvas.api_config,
        "analytic": canvas.analytic,
        "speechToText": canvas.speech_to_text,
        "followUpPrompts": canvas.follow_up_prompts,
        "category": canvas.category,
        "type": canvas.type,
        "versionGroupId": str(canvas.version_group_id),
        "versionUuid": str(canvas.version_uuid),
        "versionLabel": canvas.version_label,
        "versionDescription": canvas.version_description,
        "versionIndex": canvas.version_index,
        "isActive": canvas.is_active,
        "createdDate": _isoformat(canvas.created_at),
        "updatedDate": _isoformat(canvas.updated_at),
    }


def serialize_version(canvas: Canvas) -> Dict[str, Any]:
    return {
        "id": str(canvas.id),
        "versionGroupId": str(canvas.version_group_id),
        "versionUuid": str(canvas.version_uuid),
        "versionLabel": canvas.version_label,
        "versionDescription": canvas.version_description,
        "versionIndex": canvas.version_index,
        "isActive": canvas.is_active,
        "createdDate": _isoformat(canvas.created_at),
        "updatedDate": _isoformat(canvas.updated_at),
    }


def validate_name(name: Optional[str], field: str = "name") -> str:
    """필수 이름 검증 (공백 제거 후 1~NAME_MAX_LENGTH 자)"""
    name = (name or "").strip()
    if not name:
        raise ValidationError("이름은 필수입니다", field=field)
    if len(name) > settings.NAME_MAX_LENGTH:
        raise ValidationError(f"이름은 {settings.NAME_MAX_LENGTH}자를 넘을 수 없습니다", field=field)
    return name


def validate_description(description: Optional[str], field: str = "description") -> Optional[str]:
    if description is None:
        return None
    description = description.strip()
    if len(description) > settings.DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"설명은 {settings.DESCRIPTION_MAX_LENGTH}자를 넘을 수 없습니다",
            field=field
        )
    return description


class SpacesService:
    """스페이스/캔버스/버전 작업의 진입점"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.spaces = SpaceRepository(db_session)
        self.links = SpaceCanvasRepository(db_session)
        self.versions = VersionManager(db_session)
        self.membership = MembershipManager(db_session)
        self.purger = PurgeService(db_session)

    # ---------------------------------------------------------------- spaces

    async def get_spaces(self, owner_id: uuid.UUID) -> List[Dict[str, Any]]:
        """소유자의 스페이스 목록 (캔버스 수 포함)"""
        rows = await self.spaces.list_owned_with_counts(owner_id)
        return [serialize_space(space, count) for space, count in rows]

    async def create_space(
        self,
        owner_id: uuid.UUID,
        name: str,
        description: Optional[str] = None,
        default_canvas_name: Optional[str] = None,
        default_canvas_flow_data: Optional[str] = None
    ) -> Dict[str, Any]:
        """스페이스와 기본 캔버스(v1, 활성)를 하나의 트랜잭션으로 생성"""
        name = validate_name(name)
        description = validate_description(description)
        canvas_name = (
            validate_name(default_canvas_name, field="defaultCanvasName")
            if default_canvas_name is not None
            else settings.DEFAULT_CANVAS_NAME
        )

        async with transaction(self.db):
            space = await self.spaces.create(owner_id=owner_id, name=name, description=description)
            canvas, link = await self.membership.create_canvas_in_space(
                space, canvas_name, default_canvas_flow_data
            )

        logging_service.log_data_change("space", space.id, "create", owner_id=owner_id)

        default_canvas = serialize_canvas(canvas, link.sort_order)
        result = serialize_space(space, 1)
        result["canvases"] = [default_canvas]
        result["defaultCanvas"] = default_canvas
        return result

    async def get_space_details(self, owner_id: uuid.UUID, space_id: uuid.UUID) -> Dict[str, Any]:
        """스페이스 상세 (sort_order 순 캔버스 목록 포함)"""
        space = await self._get_space(owner_id, space_id)
        rows = await self.links.list_with_canvas(space.id)

        result = serialize_space(space, len(rows))
        result["canvases"] = [serialize_canvas(canvas, link.sort_order) for link, canvas in rows]
        return result

    async def update_space(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        visibility: Optional[str] = None
    ) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = validate_name(name)
        if description is not None:
            changes["description"] = validate_description(description) or None
        if visibility is not None:
            if visibility not in SPACE_VISIBILITIES:
                raise ValidationError(
                    f"visibility 는 {', '.join(SPACE_VISIBILITIES)} 중 하나여야 합니다",
                    field="visibility"
                )
            changes["visibility"] = visibility

        async with transaction(self.db):
            space = await self._get_space(owner_id, space_id)
            for key, value in changes.items():
                setattr(space, key, value)
            space.updated_at = datetime.utcnow()
            await self.db.flush()
            canvas_count = await self.links.count_for_space(space.id)

        logging_service.log_data_change(
            "space", space.id, "update", owner_id=owner_id, fields=sorted(changes)
        )
        return serialize_space(space, canvas_count)

    async def delete_space(self, owner_id: uuid.UUID, space_id: uuid.UUID) -> PurgeResult:
        """스페이스 삭제 (다른 스페이스에서 참조하지 않는 캔버스 그룹도 함께 삭제)"""
        async with transaction(self.db):
            await self._get_space(owner_id, space_id)
            result = await self.purger.purge_spaces(owner_id, [space_id])

        logging_service.log_data_change(
            "space", space_id, "delete", owner_id=owner_id,
            deleted_canvases=len(result.deleted_canvas_ids)
        )
        return result

    async def purge_owner(self, owner_id: uuid.UUID) -> PurgeResult:
        """소유자의 모든 스페이스 일괄 삭제"""
        async with transaction(self.db):
            result = await self.purger.purge_spaces(owner_id)

        logging_service.log_data_change(
            "owner", owner_id, "purge", owner_id=owner_id,
            deleted_spaces=len(result.deleted_space_ids),
            deleted_canvases=len(result.deleted_canvas_ids)
        )
        return result

    # -------------------------------------------------------------- canvases

    async def get_canvases(self, owner_id: uuid.UUID, space_id: uuid.UUID) -> List[Dict[str, Any]]:
        space = await self._get_space(owner_id, space_id)
        rows = await self.links.list_with_canvas(space.id)
        return [serialize_canvas(canvas, link.sort_order) for link, canvas in rows]

    async def get_canvas(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID
    ) -> Dict[str, Any]:
        canvas = await self.versions.resolve_group(owner_id, space_id, canvas_id)
        link = await self.links.get_for_group(space_id, canvas.version_group_id)
        return serialize_canvas(canvas, link.sort_order if link else None)

    async def create_canvas(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        name: Optional[str] = None,
        flow_data: Optional[str] = None
    ) -> Dict[str, Any]:
        """스페이스에 새 논리적 캔버스(탭) 추가"""
        name = validate_name(name) if name is not None else NEW_CANVAS_NAME

        async with transaction(self.db):
            space = await self._get_space(owner_id, space_id)
            canvas, link = await self.membership.create_canvas_in_space(space, name, flow_data)

        logging_service.log_data_change(
            "canvas", canvas.id, "create", owner_id=owner_id, space_id=str(space_id)
        )
        return serialize_canvas(canvas, link.sort_order)

    async def update_canvas(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID,
        **fields: Any
    ) -> Dict[str, Any]:
        """
        캔버스 버전 행의 이름/flowData/설정 필드 수정

        flowData 는 활성 버전에서만 수정할 수 있다 (비활성 버전은 스냅샷).
        """
        changes = {key: value for key, value in fields.items() if key in CANVAS_UPDATABLE_FIELDS}
        unknown = sorted(set(fields) - set(CANVAS_UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"수정할 수 없는 필드입니다: {', '.join(unknown)}", field=unknown[0])
        if "name" in changes:
            changes["name"] = validate_name(changes["name"])
        if "flow_data" in changes and changes["flow_data"] is None:
            raise ValidationError("flowData 는 null 일 수 없습니다", field="flowData")
        if changes.get("type") is not None:
            valid_types = [item.value for item in CanvasType]
            if changes["type"] not in valid_types:
                raise ValidationError(
                    f"type 은 {', '.join(valid_types)} 중 하나여야 합니다",
                    field="type"
                )

        async with transaction(self.db):
            canvas = await self.versions.resolve_group(owner_id, space_id, canvas_id)
            if "flow_data" in changes and not canvas.is_active:
                raise ConflictError("비활성 버전의 flowData 는 수정할 수 없습니다. 버전을 먼저 활성화하세요")

            for key, value in changes.items():
                setattr(canvas, key, value)
            await self.db.flush()
            link = await self.links.get_for_group(space_id, canvas.version_group_id)

        logging_service.log_data_change(
            "canvas", canvas.id, "update", owner_id=owner_id, fields=sorted(changes)
        )
        return serialize_canvas(canvas, link.sort_order if link else None)

    async def delete_canvas(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID
    ) -> List[uuid.UUID]:
        """
        스페이스에서 논리적 캔버스 제거

        Returns:
            영구 삭제된 캔버스 버전 id 목록 (다른 스페이스가 참조 중이면 빈 목록)
        """
        async with transaction(self.db):
            space = await self._get_space(owner_id, space_id)
            canvas = await self.versions.resolve_group(owner_id, space_id, canvas_id)
            deleted_ids = await self.membership.delete_canvas_from_space(space, canvas.version_group_id)

        logging_service.log_data_change(
            "canvas", canvas_id, "delete", owner_id=owner_id,
            space_id=str(space_id), deleted_versions=len(deleted_ids)
        )
        return deleted_ids

    async def reorder_canvases(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_orders: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """canvas_orders: [{"canvas_id": UUID, "sort_order": int}]"""
        if not canvas_orders:
            raise ValidationError("canvasOrders 는 비어 있을 수 없습니다", field="canvasOrders")

        async with transaction(self.db):
            space = await self._get_space(owner_id, space_id)
            await self.membership.reorder_canvases(space, canvas_orders)
            rows = await self.links.list_with_canvas(space.id)

        logging_service.log_data_change("space", space_id, "reorder", owner_id=owner_id)
        return [serialize_canvas(canvas, link.sort_order) for link, canvas in rows]

    # -------------------------------------------------------------- versions

    async def get_canvas_versions(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID
    ) -> List[Dict[str, Any]]:
        canvas = await self.versions.resolve_group(owner_id, space_id, canvas_id)
        versions = await self.versions.list_versions(canvas.version_group_id)
        return [serialize_version(version) for version in versions]

    async def create_canvas_version(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID,
        label: Optional[str] = None,
        description: Optional[str] = None,
        activate: bool = False
    ) -> Dict[str, Any]:
        """canvas_id 버전을 기준으로 새 버전 생성"""
        label = normalize_version_label(label)
        description = normalize_version_description(description)

        async with transaction(self.db):
            base = await self.versions.resolve_group(owner_id, space_id, canvas_id)
            version = await self.versions.create_version(
                base, label=label, description=description, activate=activate, space_id=space_id
            )

        logging_service.log_data_change(
            "canvas_version", version.id, "create", owner_id=owner_id,
            version_group_id=str(version.version_group_id), activate=activate
        )
        return serialize_version(version)

    async def activate_canvas_version(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID,
        version_id: uuid.UUID
    ) -> Dict[str, Any]:
        """버전을 활성화하고, 이 스페이스에서의 sortOrder 를 포함한 캔버스 스냅샷 반환"""
        async with transaction(self.db):
            base = await self.versions.resolve_group(owner_id, space_id, canvas_id)
            version = await self.versions.activate_version(base.version_group_id, version_id)
            link = await self.links.get_for_group(space_id, version.version_group_id)

        logging_service.log_data_change(
            "canvas_version", version.id, "activate", owner_id=owner_id,
            version_group_id=str(version.version_group_id)
        )
        return serialize_canvas(version, link.sort_order if link else None)

    async def update_canvas_version(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID,
        version_id: uuid.UUID,
        label: Optional[str] = None,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        # 길이 검증만 미리 수행 (빈 레이블은 기본값으로 되돌리는 의미)
        normalize_version_label(label)
        normalize_version_description(description)

        async with transaction(self.db):
            base = await self.versions.resolve_group(owner_id, space_id, canvas_id)
            version = await self.versions.update_version_metadata(
                base.version_group_id, version_id, label=label, description=description
            )

        logging_service.log_data_change("canvas_version", version.id, "update", owner_id=owner_id)
        return serialize_version(version)

    async def delete_canvas_version(
        self,
        owner_id: uuid.UUID,
        space_id: uuid.UUID,
        canvas_id: uuid.UUID,
        version_id: uuid.UUID
    ) -> uuid.UUID:
        """비활성 버전 삭제, 삭제된 id 반환 (저장소 정리용)"""
        async with transaction(self.db):
            base = await self.versions.resolve_group(owner_id, space_id, canvas_id)
            deleted_id = await self.versions.delete_version(base.version_group_id, version_id)

        logging_service.log_data_change("canvas_version", deleted_id, "delete", owner_id=owner_id)
        return deleted_id

    # ---------------------------------------------------------------- helpers

    async def _get_space(self, owner_id: uuid.UUID, space_id: uuid.UUID) -> Space:
        space = await self.spaces.get_owned(owner_id, space_id)
        if space is None:
            raise ResourceNotFoundError("스페이스", space_id)
        return space
