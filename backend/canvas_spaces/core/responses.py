"""
표준화된 API 응답 스키마 및 유틸리티
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class APIResponse(BaseModel):
    """기본 API 응답 모델"""

    success: bool = Field(description="요청 성공 여부")
    message: str = Field(description="응답 메시지")
    data: Optional[Any] = Field(default=None, description="응답 데이터")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="응답 시간")
    request_id: Optional[str] = Field(default=None, description="요청 ID")


class ErrorResponse(BaseModel):
    """에러 응답 모델"""

    success: bool = Field(default=False, description="요청 성공 여부 (항상 False)")
    error_code: str = Field(description="에러 코드")
    message: str = Field(description="에러 메시지")
    details: Optional[Dict[str, Any]] = Field(default=None, description="에러 세부 정보")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="에러 발생 시간")
    request_id: Optional[str] = Field(default=None, description="요청 ID")


class ValidationErrorDetail(BaseModel):
    """검증 에러 세부 정보"""

    field: str = Field(description="에러가 발생한 필드")
    message: str = Field(description="에러 메시지")
    value: Optional[Any] = Field(default=None, description="잘못된 값")


class ValidationErrorResponse(ErrorResponse):
    """검증 에러 응답 모델"""

    error_code: str = Field(default="VALIDATION_ERROR", description="에러 코드")
    validation_errors: List[ValidationErrorDetail] = Field(description="검증 에러 목록")


class HealthCheckResponse(APIResponse):
    """헬스 체크 응답 모델"""

    class HealthData(BaseModel):
        status: str = Field(description="서비스 상태")
        version: str = Field(description="서비스 버전")
        environment: str = Field(description="실행 환경")
        uptime: float = Field(description="서비스 실행 시간 (초)")
        services: Dict[str, str] = Field(description="각 서비스별 상태")

    data: HealthData = Field(description="헬스 체크 데이터")


# 응답 생성 유틸리티 함수들

def create_success_response(
    message: str = "요청이 성공적으로 처리되었습니다",
    data: Any = None,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """성공 응답 생성"""
    response = APIResponse(
        success=True,
        message=message,
        data=data,
        request_id=request_id
    )
    return response.model_dump()


def create_error_response(
    message: str,
    error_code: str = "GENERAL_ERROR",
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """에러 응답 생성"""
    response = ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        request_id=request_id
    )
    return response.model_dump()


def create_validation_error_response(
    message: str = "입력 데이터 검증에 실패했습니다",
    validation_errors: List[ValidationErrorDetail] = None,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """검증 에러 응답 생성"""
    response = ValidationErrorResponse(
        message=message,
        validation_errors=validation_errors or [],
        request_id=request_id
    )
    return response.model_dump()


def create_health_response(
    status: str,
    version: str,
    environment: str,
    uptime: float,
    services: Dict[str, str],
    message: str = "시스템이 정상 작동 중입니다",
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """헬스 체크 응답 생성"""
    response = HealthCheckResponse(
        success=True,
        message=message,
        data=HealthCheckResponse.HealthData(
            status=status,
            version=version,
            environment=environment,
            uptime=uptime,
            services=services
        ),
        request_id=request_id
    )
    return response.model_dump()


# HTTP 상태 코드 상수
class StatusCode:
    """HTTP 상태 코드 상수"""

    # 2xx 성공
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx 클라이언트 에러
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    CONFLICT = 409

    # 5xx 서버 에러
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


# 에러 코드 상수
class ErrorCode:
    """에러 코드 상수"""

    # 일반적인 에러
    GENERAL_ERROR = "GENERAL_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # 인증 에러
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"

    # 검증 에러
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # 리소스 에러
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"

    # 인프라 에러
    DATABASE_ERROR = "DATABASE_ERROR"
    STORAGE_CLEANUP_ERROR = "STORAGE_CLEANUP_ERROR"
