"""
백엔드 로깅 유틸리티 - 설정 기반 로그 레벨/포맷 제어
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from canvas_spaces.core.config import settings


class StructuredFormatter(logging.Formatter):
    """구조화된 JSON 로그 포맷터"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if hasattr(record, 'context'):
            log_data['context'] = record.context

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class OptimizedLogger:
    """컨텍스트 딕셔너리를 받는 로거 래퍼 클래스"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.is_development = settings.ENVIRONMENT == 'development'
        self.is_performance_debug = settings.DEBUG_PERFORMANCE

    def error(self, message: str, exc_info: Optional[BaseException] = None, context: Optional[Dict[str, Any]] = None):
        """에러 로그 - 항상 출력"""
        extra = {'context': context} if context else {}
        self.logger.error(message, exc_info=exc_info, extra=extra)

    def warning(self, message: str, context: Optional[Dict[str, Any]] = None):
        """경고 로그 - 항상 출력"""
        extra = {'context': context} if context else {}
        self.logger.warning(message, extra=extra)

    def info(self, message: str, context: Optional[Dict[str, Any]] = None):
        """정보 로그"""
        extra = {'context': context} if context else {}
        self.logger.info(message, extra=extra)

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None):
        """디버그 로그 - 개발 환경에서만 출력"""
        if not self.is_development:
            return
        extra = {'context': context} if context else {}
        self.logger.debug(message, extra=extra)

    def debug_performance(self, message: str, context: Optional[Dict[str, Any]] = None):
        """성능 디버깅용 로그 - 성능 디버그 모드에서만 출력"""
        if not self.is_performance_debug:
            return
        extra = {'context': context} if context else {}
        self.logger.debug(f"[PERF] {message}", extra=extra)


def setup_logging() -> logging.Logger:
    """로깅 시스템 초기 설정"""
    if settings.ENVIRONMENT == 'production':
        log_level = logging.WARNING
    elif settings.ENVIRONMENT == 'development':
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # 기존 핸들러 제거
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if settings.LOG_FORMAT == 'json' and settings.ENVIRONMENT != 'development':
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # 노이지한 라이브러리 로그 레벨 조정
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('aiosqlite').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy').setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> OptimizedLogger:
    """최적화된 로거 인스턴스 반환"""
    return OptimizedLogger(name)
