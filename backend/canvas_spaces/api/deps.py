"""
API 의존성 주입
"""

from typing import Optional
import uuid

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import AuthenticationError, ResourceNotFoundError
from canvas_spaces.core.security import verify_token
from canvas_spaces.db.session import get_db, AsyncSessionLocal
from canvas_spaces.services.cleanup_service import CanvasCleanupService

# HTTP Bearer 토큰 스키마
security = HTTPBearer(auto_error=False)

__all__ = ["get_db", "get_current_owner", "get_cleanup_service"]


async def get_current_owner(
    owner_id: uuid.UUID,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> uuid.UUID:
    """
    경로의 owner_id 가 인증된 소유자인지 확인

    Mock 인증이 활성화된 경우 경로의 소유자를 그대로 신뢰한다.
    다른 소유자의 리소스는 존재 여부를 드러내지 않도록 404 로 응답한다.

    Raises:
        AuthenticationError: 토큰이 없거나 유효하지 않은 경우
        ResourceNotFoundError: 토큰의 소유자와 경로의 소유자가 다른 경우
    """
    if settings.MOCK_AUTH_ENABLED:
        return owner_id

    if credentials is None:
        raise AuthenticationError("인증 토큰이 필요합니다")

    subject = verify_token(credentials.credentials)
    if subject is None:
        raise AuthenticationError("유효하지 않은 토큰입니다")

    try:
        authenticated_owner = uuid.UUID(subject)
    except ValueError:
        raise AuthenticationError("유효하지 않은 토큰입니다")

    if authenticated_owner != owner_id:
        raise ResourceNotFoundError("소유자", owner_id)
    return owner_id


def get_cleanup_service() -> CanvasCleanupService:
    """커밋 이후 정리 작업 서비스 (요청 세션과 분리된 세션 팩토리 사용)"""
    return CanvasCleanupService(AsyncSessionLocal)
