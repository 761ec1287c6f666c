"""
스페이스/캔버스/버전 API 엔드포인트
"""

from typing import Any, Dict, List, Optional
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.api.deps import get_current_owner, get_db, get_cleanup_service
from canvas_spaces.core.responses import create_success_response
from canvas_spaces.services.cleanup_service import CanvasCleanupService
from canvas_spaces.services.spaces_service import SpacesService

router = APIRouter()


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SpaceCreateRequest(CamelModel):
    """스페이스 생성 요청"""
    name: str
    description: Optional[str] = None
    default_canvas_name: Optional[str] = Field(default=None, alias="defaultCanvasName")
    default_canvas_flow_data: Optional[str] = Field(default=None, alias="defaultCanvasFlowData")


class SpaceUpdateRequest(CamelModel):
    """스페이스 수정 요청"""
    name: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[str] = None


class CanvasCreateRequest(CamelModel):
    """캔버스 생성 요청"""
    name: Optional[str] = None
    flow_data: Optional[str] = Field(default=None, alias="flowData")


class CanvasUpdateRequest(CamelModel):
    """캔버스 수정 요청 (전달된 필드만 반영)"""
    name: Optional[str] = None
    flow_data: Optional[str] = Field(default=None, alias="flowData")
    deployed: Optional[bool] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")
    apikeyid: Optional[str] = None
    chatbot_config: Optional[str] = Field(default=None, alias="chatbotConfig")
    api_config: Optional[str] = Field(default=None, alias="apiConfig")
    analytic: Optional[str] = None
    speech_to_text: Optional[str] = Field(default=None, alias="speechToText")
    follow_up_prompts: Optional[str] = Field(default=None, alias="followUpPrompts")
    category: Optional[str] = None
    type: Optional[str] = None


class CanvasOrder(CamelModel):
    canvas_id: uuid.UUID = Field(alias="canvasId")
    sort_order: int = Field(alias="sortOrder")


class ReorderCanvasesRequest(CamelModel):
    """캔버스 순서 변경 요청"""
    canvas_orders: List[CanvasOrder] = Field(alias="canvasOrders")


class VersionCreateRequest(CamelModel):
    """버전 생성 요청"""
    label: Optional[str] = None
    description: Optional[str] = None
    activate: bool = False


class VersionUpdateRequest(CamelModel):
    """버전 메타데이터 수정 요청"""
    label: Optional[str] = None
    description: Optional[str] = None


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


# ------------------------------------------------------------------- spaces

@router.get("")
async def get_spaces(
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """소유자의 스페이스 목록"""
    spaces = await SpacesService(db).get_spaces(owner_id)
    return create_success_response(
        message="스페이스 목록 조회 성공",
        data={"spaces": spaces},
        request_id=_request_id(request)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_space(
    body: SpaceCreateRequest,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """스페이스 생성 (기본 캔버스 포함)"""
    space = await SpacesService(db).create_space(
        owner_id,
        name=body.name,
        description=body.description,
        default_canvas_name=body.default_canvas_name,
        default_canvas_flow_data=body.default_canvas_flow_data
    )
    return create_success_response(
        message="스페이스가 생성되었습니다",
        data=space,
        request_id=_request_id(request)
    )


@router.delete("")
async def purge_owner_spaces(
    request: Request,
    background_tasks: BackgroundTasks,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    cleanup: CanvasCleanupService = Depends(get_cleanup_service)
) -> Dict[str, Any]:
    """소유자의 모든 스페이스 일괄 삭제"""
    result = await SpacesService(db).purge_owner(owner_id)
    background_tasks.add_task(cleanup.cleanup_canvases, result.deleted_canvas_ids, "purge_owner")
    return create_success_response(
        message="소유자의 스페이스가 모두 삭제되었습니다",
        data={
            "deletedSpaces": len(result.deleted_space_ids),
            "deletedCanvases": len(result.deleted_canvas_ids)
        },
        request_id=_request_id(request)
    )


@router.get("/{space_id}")
async def get_space(
    space_id: uuid.UUID,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    space = await SpacesService(db).get_space_details(owner_id, space_id)
    return create_success_response(message="스페이스 조회 성공", data=space, request_id=_request_id(request))


@router.put("/{space_id}")
async def update_space(
    space_id: uuid.UUID,
    body: SpaceUpdateRequest,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    space = await SpacesService(db).update_space(
        owner_id,
        space_id,
        name=body.name,
        description=body.description,
        visibility=body.visibility
    )
    return create_success_response(message="스페이스가 수정되었습니다", data=space, request_id=_request_id(request))


@router.delete("/{space_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_space(
    space_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    cleanup: CanvasCleanupService = Depends(get_cleanup_service)
) -> Response:
    """스페이스 삭제 (참조가 남지 않은 캔버스 포함)"""
    result = await SpacesService(db).delete_space(owner_id, space_id)
    background_tasks.add_task(cleanup.cleanup_canvases, result.deleted_canvas_ids, "delete_space")
    return Response(status_code=status.HTTP_204_NO_CONTENT, background=background_tasks)


# ----------------------------------------------------------------- canvases

@router.get("/{space_id}/canvases")
async def get_canvases(
    space_id: uuid.UUID,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    canvases = await SpacesService(db).get_canvases(owner_id, space_id)
    return create_success_response(
        message="캔버스 목록 조회 성공",
        data={"canvases": canvases},
        request_id=_request_id(request)
    )


@router.post("/{space_id}/canvases", status_code=status.HTTP_201_CREATED)
async def create_canvas(
    space_id: uuid.UUID,
    body: CanvasCreateRequest,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    canvas = await SpacesService(db).create_canvas(owner_id, space_id, name=body.name, flow_data=body.flow_data)
    return create_success_response(message="캔버스가 생성되었습니다", data=canvas, request_id=_request_id(request))


# /{canvas_id} 보다 먼저 등록해야 "reorder" 가 캔버스 id 로 해석되지 않는다
@router.put("/{space_id}/canvases/reorder")
async def reorder_canvases(
    space_id: uuid.UUID,
    body: ReorderCanvasesRequest,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    canvases = await SpacesService(db).reorder_canvases(
        owner_id,
        space_id,
        [{"canvas_id": item.canvas_id, "sort_order": item.sort_order} for item in body.canvas_orders]
    )
    return create_success_response(
        message="캔버스 순서가 변경되었습니다",
        data={"canvases": canvases},
        request_id=_request_id(request)
    )


@router.get("/{space_id}/canvases/{canvas_id}")
async def get_canvas(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    canvas = await SpacesService(db).get_canvas(owner_id, space_id, canvas_id)
    return create_success_response(message="캔버스 조회 성공", data=canvas, request_id=_request_id(request))


@router.put("/{space_id}/canvases/{canvas_id}")
async def update_canvas(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    body: CanvasUpdateRequest,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    canvas = await SpacesService(db).update_canvas(
        owner_id, space_id, canvas_id, **body.model_dump(exclude_unset=True)
    )
    return create_success_response(message="캔버스가 수정되었습니다", data=canvas, request_id=_request_id(request))


@router.delete("/{space_id}/canvases/{canvas_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_canvas(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    cleanup: CanvasCleanupService = Depends(get_cleanup_service)
) -> Response:
    deleted_ids = await SpacesService(db).delete_canvas(owner_id, space_id, canvas_id)
    background_tasks.add_task(cleanup.cleanup_canvases, deleted_ids, "delete_canvas")
    return Response(status_code=status.HTTP_204_NO_CONTENT, background=background_tasks)


# ----------------------------------------------------------------- versions

@router.get("/{space_id}/canvases/{canvas_id}/versions")
async def get_canvas_versions(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    versions = await SpacesService(db).get_canvas_versions(owner_id, space_id, canvas_id)
    return create_success_response(
        message="버전 목록 조회 성공",
        data={"versions": versions},
        request_id=_request_id(request)
    )


@router.post("/{space_id}/canvases/{canvas_id}/versions", status_code=status.HTTP_201_CREATED)
async def create_canvas_version(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    body: VersionCreateRequest,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    version = await SpacesService(db).create_canvas_version(
        owner_id,
        space_id,
        canvas_id,
        label=body.label,
        description=body.description,
        activate=body.activate
    )
    return create_success_response(message="버전이 생성되었습니다", data=version, request_id=_request_id(request))


@router.post("/{space_id}/canvases/{canvas_id}/versions/{version_id}/activate")
async def activate_canvas_version(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    version_id: uuid.UUID,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    canvas = await SpacesService(db).activate_canvas_version(owner_id, space_id, canvas_id, version_id)
    return create_success_response(message="버전이 활성화되었습니다", data=canvas, request_id=_request_id(request))


@router.put("/{space_id}/canvases/{canvas_id}/versions/{version_id}")
async def update_canvas_version(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    version_id: uuid.UUID,
    body: VersionUpdateRequest,
    request: Request,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    version = await SpacesService(db).update_canvas_version(
        owner_id,
        space_id,
        canvas_id,
        version_id,
        label=body.label,
        description=body.description
    )
    return create_success_response(message="버전 정보가 수정되었습니다", data=version, request_id=_request_id(request))


@router.delete("/{space_id}/canvases/{canvas_id}/versions/{version_id}")
async def delete_canvas_version(
    space_id: uuid.UUID,
    canvas_id: uuid.UUID,
    version_id: uuid.UUID,
    request: Request,
    background_tasks: BackgroundTasks,
    owner_id: uuid.UUID = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
    cleanup: CanvasCleanupService = Depends(get_cleanup_service)
) -> Dict[str, Any]:
    deleted_id = await SpacesService(db).delete_canvas_version(owner_id, space_id, canvas_id, version_id)
    background_tasks.add_task(cleanup.cleanup_canvases, [deleted_id], "delete_version")
    return create_success_response(
        message="버전이 삭제되었습니다",
        data={"id": str(deleted_id)},
        request_id=_request_id(request)
    )
