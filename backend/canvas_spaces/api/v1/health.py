"""
헬스 체크 API
"""

from datetime import datetime
from typing import Dict, Any
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.api.deps import get_db
from canvas_spaces.core.config import settings

router = APIRouter()


async def check_database(db: AsyncSession) -> str:
    """데이터베이스 연결 상태"""
    try:
        await db.execute(text("SELECT 1"))
        return "healthy"
    except SQLAlchemyError as e:
        return f"error: {str(e)[:50]}"


@router.get("/")
async def health_check() -> Dict[str, Any]:
    """
    헬스 체크 엔드포인트

    Returns:
        서버 상태 정보
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "project": settings.PROJECT_NAME,
        "mock_auth_enabled": settings.MOCK_AUTH_ENABLED
    }


@router.get("/detailed")
async def detailed_health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    상세 헬스 체크 엔드포인트

    Returns:
        설정 요약과 데이터베이스 연결 상태
    """
    database_status = await check_database(db)
    return {
        "status": "healthy" if database_status == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "project": settings.PROJECT_NAME,
        "configuration": {
            "mock_auth_enabled": settings.MOCK_AUTH_ENABLED,
            "cors_origins": [str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            "debug": settings.DEBUG,
            "log_level": settings.LOG_LEVEL
        },
        "services": {
            "database": database_status
        }
    }
