"""
보안 관련 유틸리티
"""

from typing import Optional
from jose import JWTError, jwt

from canvas_spaces.core.config import settings


def verify_token(token: str) -> Optional[str]:
    """
    토큰 검증

    Args:
        token: JWT 토큰

    Returns:
        토큰 주제 (소유자 ID) 또는 None
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload.get("sub")
    except JWTError:
        return None
