"""
API v1 메인 라우터
"""

from fastapi import APIRouter

from canvas_spaces.api.v1 import health, spaces

api_router = APIRouter()

# 각 기능별 라우터 포함
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(spaces.router, prefix="/owners/{owner_id}/spaces", tags=["spaces"])
