"""
Canvas Spaces 메인 FastAPI 애플리케이션
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from canvas_spaces.core.config import settings
from canvas_spaces.core.exception_handlers import register_exception_handlers
from canvas_spaces.core.responses import create_health_response, create_success_response
from canvas_spaces.db.session import AsyncSessionLocal, engine
from canvas_spaces.middleware.logging_middleware import LoggingMiddleware
from canvas_spaces.services.logging_service import logging_service
from canvas_spaces.utils.logger import setup_logging
from canvas_spaces.api.v1.api import api_router
from canvas_spaces.api.v1.health import check_database

logger = logging.getLogger(__name__)

# 서버 시작 시간 기록
server_start_time = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기 관리"""
    setup_logging()
    logger.info("Canvas Spaces 백엔드 서버가 시작됩니다...")
    logger.info(f"환경: {settings.ENVIRONMENT}")
    logger.info(f"디버그 모드: {settings.DEBUG}")
    logger.info(f"Mock 인증: {settings.MOCK_AUTH_ENABLED}")

    logging_service.log_security_event(
        event_type="server_startup",
        description="Canvas Spaces 서버 시작",
        severity="INFO",
        version=settings.VERSION,
        environment=settings.ENVIRONMENT
    )

    yield

    logger.info("Canvas Spaces 백엔드 서버가 종료됩니다...")
    await engine.dispose()

    uptime = time.time() - server_start_time
    logging_service.log_security_event(
        event_type="server_shutdown",
        description="Canvas Spaces 서버 종료",
        severity="INFO",
        uptime=uptime
    )


# FastAPI 애플리케이션 생성
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="스페이스/캔버스 버전 관리 API",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs" if settings.DEBUG else None,
    redoc_url=f"{settings.API_V1_STR}/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# 미들웨어 추가 (나중에 추가한 미들웨어가 바깥쪽에서 실행됨)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return create_success_response(
        message="Canvas Spaces 백엔드 API에 오신 것을 환영합니다",
        data={
            "service": "Canvas Spaces Backend",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "status": "healthy"
        }
    )


@app.get("/health")
async def health_check():
    """헬스 체크 엔드포인트"""
    uptime = time.time() - server_start_time

    async with AsyncSessionLocal() as session:
        services_status = {"database": await check_database(session)}

    all_healthy = all(status == "healthy" for status in services_status.values())

    return create_health_response(
        status="healthy" if all_healthy else "degraded",
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        uptime=uptime,
        services=services_status
    )


# API v1 라우터 포함
app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "canvas_spaces.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
