"""
전역 예외 처리기
"""

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.encoders import jsonable_encoder

from canvas_spaces.core.config import settings
from canvas_spaces.core.exceptions import CanvasSpacesException
from canvas_spaces.core.responses import (
    create_error_response,
    create_validation_error_response,
    ValidationErrorDetail,
    StatusCode,
    ErrorCode
)
from canvas_spaces.services.logging_service import logging_service


async def canvas_spaces_exception_handler(request: Request, exc: CanvasSpacesException) -> JSONResponse:
    """사용자 정의 예외 처리기"""

    request_id = getattr(request.state, "request_id", None)
    user_id = getattr(request.state, "user_id", None)

    # 4xx 는 정상적인 비즈니스 거절이므로 5xx 만 에러로 기록
    if exc.status_code >= 500:
        logging_service.log_error(
            error=exc,
            context="Canvas Spaces 사용자 정의 예외",
            user_id=user_id,
            request_id=request_id,
            method=request.method,
            url=str(request.url),
            error_code=exc.error_code,
            status_code=exc.status_code
        )

    # 보안 이벤트로도 기록 (인증 에러의 경우)
    if exc.status_code == StatusCode.UNAUTHORIZED:
        logging_service.log_security_event(
            event_type="access_denied",
            description=f"접근 거부: {exc.message}",
            user_id=user_id,
            ip_address=request.client.host if request.client else "unknown",
            severity="MEDIUM",
            error_code=exc.error_code,
            path=request.url.path
        )

    response_data = create_error_response(
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        request_id=request_id
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(response_data)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """FastAPI/Starlette HTTPException 처리기"""

    request_id = getattr(request.state, "request_id", None)

    # HTTP 에러를 우리의 에러 코드로 매핑
    error_code_mapping = {
        400: ErrorCode.VALIDATION_ERROR,
        401: ErrorCode.AUTHENTICATION_REQUIRED,
        404: ErrorCode.RESOURCE_NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        500: ErrorCode.INTERNAL_SERVER_ERROR,
    }

    error_code = error_code_mapping.get(exc.status_code, ErrorCode.GENERAL_ERROR)

    if exc.status_code == StatusCode.NOT_FOUND and exc.detail in (None, "Not Found"):
        message = "요청한 리소스를 찾을 수 없습니다"
    elif exc.status_code == StatusCode.METHOD_NOT_ALLOWED:
        message = "지원하지 않는 HTTP 메서드입니다"
    else:
        message = str(exc.detail) if exc.detail else "요청을 처리할 수 없습니다"

    response_data = create_error_response(
        message=message,
        error_code=error_code,
        request_id=request_id
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(response_data),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 에러 처리기 (400)"""

    request_id = getattr(request.state, "request_id", None)
    user_id = getattr(request.state, "user_id", None)

    validation_errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"][1:]) if len(error["loc"]) > 1 else str(error["loc"][0])
        validation_errors.append(
            ValidationErrorDetail(
                field=field,
                message=error["msg"],
                value=error.get("input")
            )
        )

    logging_service.log_security_event(
        event_type="invalid_request",
        description="요청 검증 실패",
        user_id=user_id,
        ip_address=request.client.host if request.client else "unknown",
        severity="LOW",
        path=request.url.path,
        request_id=request_id,
        validation_errors=[err.model_dump() for err in validation_errors]
    )

    response_data = create_validation_error_response(
        validation_errors=validation_errors,
        request_id=request_id
    )

    return JSONResponse(
        status_code=StatusCode.BAD_REQUEST,
        content=jsonable_encoder(response_data)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """일반 예외 처리기 (마지막 예외 처리기)"""

    request_id = getattr(request.state, "request_id", None)
    user_id = getattr(request.state, "user_id", None)

    logging_service.log_error(
        error=exc,
        context="예상치 못한 시스템 에러",
        user_id=user_id,
        request_id=request_id,
        method=request.method,
        url=str(request.url),
        user_agent=request.headers.get("user-agent", "")
    )

    # 개발 환경에서는 상세한 에러 정보 제공
    if settings.DEBUG:
        response_data = create_error_response(
            message=f"서버 내부 오류: {str(exc)}",
            error_code=ErrorCode.INTERNAL_SERVER_ERROR,
            details={
                "error_type": type(exc).__name__,
                "error_message": str(exc)
            },
            request_id=request_id
        )
    else:
        response_data = create_error_response(
            message="서버 내부 오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
            error_code=ErrorCode.INTERNAL_SERVER_ERROR,
            request_id=request_id
        )

    return JSONResponse(
        status_code=StatusCode.INTERNAL_SERVER_ERROR,
        content=jsonable_encoder(response_data)
    )


def register_exception_handlers(app) -> None:
    """예외 처리기 등록"""
    app.add_exception_handler(CanvasSpacesException, canvas_spaces_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
