"""
사용자 정의 예외 클래스들
"""

from typing import Any, Dict, Optional


class CanvasSpacesException(Exception):
    """Canvas Spaces 기본 예외 클래스"""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CanvasSpacesException):
    """입력 검증 실패"""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details={"field": field} if field else {},
            **kwargs
        )


class AuthenticationError(CanvasSpacesException):
    """인증 실패"""

    def __init__(self, message: str = "인증이 필요합니다", **kwargs):
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_REQUIRED",
            status_code=401,
            **kwargs
        )


class ResourceNotFoundError(CanvasSpacesException):
    """리소스를 찾을 수 없음"""

    def __init__(self, resource: str, resource_id: Optional[Any] = None, **kwargs):
        message = f"{resource}을(를) 찾을 수 없습니다"
        if resource_id:
            message += f": {resource_id}"

        super().__init__(
            message=message,
            error_code="RESOURCE_NOT_FOUND",
            status_code=404,
            details={"resource": resource, "resource_id": str(resource_id) if resource_id else None},
            **kwargs
        )


class ConflictError(CanvasSpacesException):
    """비즈니스 규칙 위반 (마지막 버전/캔버스 삭제, 활성 버전 삭제 등)"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code="RESOURCE_CONFLICT",
            status_code=400,
            **kwargs
        )


class DatabaseError(CanvasSpacesException):
    """데이터베이스 관련 오류"""

    def __init__(self, message: str = "데이터베이스 오류가 발생했습니다", **kwargs):
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            status_code=500,
            **kwargs
        )


class StorageCleanupError(CanvasSpacesException):
    """캔버스 파일 저장소 정리 실패 (로그로만 기록됨)"""

    def __init__(self, canvas_id: str, message: Optional[str] = None, **kwargs):
        if not message:
            message = f"캔버스 {canvas_id}의 저장소 정리에 실패했습니다"

        super().__init__(
            message=message,
            error_code="STORAGE_CLEANUP_ERROR",
            status_code=500,
            details={"canvas_id": canvas_id},
            **kwargs
        )
