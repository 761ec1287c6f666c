"""
통합 로깅 서비스
"""

import time
import traceback
from typing import Any, Dict, Optional, Union
from datetime import datetime, timezone
from contextlib import asynccontextmanager

import structlog

# 구조화된 로거 설정
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


class LoggingService:
    """통합 로깅 서비스"""

    def log_request(
        self,
        method: str,
        url: str,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        **extra_data
    ):
        """HTTP 요청 로깅"""
        logger.info(
            "HTTP 요청",
            method=method,
            url=url,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            timestamp=datetime.now(timezone.utc).isoformat(),
            **extra_data
        )

    def log_response(
        self,
        method: str,
        url: str,
        status_code: int,
        response_time_ms: float,
        user_id: Optional[str] = None,
        **extra_data
    ):
        """HTTP 응답 로깅"""
        logger.info(
            "HTTP 응답",
            method=method,
            url=url,
            status_code=status_code,
            response_time_ms=response_time_ms,
            user_id=user_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            **extra_data
        )

    def log_error(
        self,
        error: Exception,
        context: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        **extra_data
    ):
        """에러 로깅"""
        logger.error(
            "시스템 에러",
            error_type=type(error).__name__,
            error_message=str(error),
            context=context,
            user_id=user_id,
            request_id=request_id,
            traceback=traceback.format_exc(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            **extra_data
        )

    def log_security_event(
        self,
        event_type: str,
        description: str,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        severity: str = "INFO",
        **extra_data
    ):
        """보안 이벤트 로깅"""
        log_data = {
            "security_event_type": event_type,
            "description": description,
            "user_id": user_id,
            "ip_address": ip_address,
            "severity": severity,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **extra_data
        }

        if severity in ["CRITICAL", "HIGH"]:
            logger.error("보안 이벤트 발생", **log_data)
        elif severity == "MEDIUM":
            logger.warning("보안 이벤트 발생", **log_data)
        else:
            logger.info("보안 이벤트 발생", **log_data)

    def log_data_change(
        self,
        entity_type: str,
        entity_id: Any,
        action: str,
        owner_id: Optional[Any] = None,
        **extra_data
    ):
        """스페이스/캔버스/버전 변경 기록"""
        logger.info(
            "데이터 변경",
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            owner_id=str(owner_id) if owner_id else None,
            timestamp=datetime.now(timezone.utc).isoformat(),
            **extra_data
        )

    def log_performance_metric(
        self,
        metric_name: str,
        value: Union[int, float],
        unit: str = "ms",
        context: Optional[Dict[str, Any]] = None,
        **extra_data
    ):
        """성능 메트릭 로깅"""
        logger.info(
            "성능 메트릭",
            metric_name=metric_name,
            value=value,
            unit=unit,
            context=context or {},
            timestamp=datetime.now(timezone.utc).isoformat(),
            **extra_data
        )

    @asynccontextmanager
    async def trace_operation(
        self,
        operation_name: str,
        owner_id: Optional[Any] = None,
        **extra_data
    ):
        """작업 추적 컨텍스트 매니저"""
        start_time = time.time()
        operation_id = f"{operation_name}_{int(start_time * 1000)}"
        owner = str(owner_id) if owner_id else None

        logger.debug(
            "작업 시작",
            operation_id=operation_id,
            operation_name=operation_name,
            owner_id=owner,
            **extra_data
        )

        try:
            yield operation_id
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "작업 실패",
                operation_id=operation_id,
                operation_name=operation_name,
                duration_ms=duration_ms,
                error=str(e),
                owner_id=owner,
                **extra_data
            )
            raise
        else:
            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "작업 완료",
                operation_id=operation_id,
                operation_name=operation_name,
                duration_ms=duration_ms,
                owner_id=owner,
                **extra_data
            )


# 싱글톤 인스턴스
logging_service = LoggingService()
