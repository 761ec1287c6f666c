from typing import Dict, Iterable
import uuid

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from canvas_spaces.db.models.canvas_records import ChatMessage, ChatMessageFeedback, UpsertHistory, Lead

# 캔버스 삭제 시 함께 지워지는 종속 테이블
DEPENDENT_MODELS = (ChatMessage, ChatMessageFeedback, UpsertHistory, Lead)


class CanvasRecordsRepository:
    """캔버스 종속 레코드 Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def delete_for_canvases(self, canvas_ids: Iterable[uuid.UUID]) -> Dict[str, int]:
        """캔버스들에 속한 채팅 메시지/피드백/업서트 이력/리드 삭제, 테이블별 삭제 건수 반환"""
        canvas_ids = list(canvas_ids)
        deleted: Dict[str, int] = {}
        if not canvas_ids:
            return deleted

        for model in DEPENDENT_MODELS:
            result = await self.session.execute(
                delete(model).where(model.canvas_id.in_(canvas_ids))
            )
            deleted[model.__tablename__] = result.rowcount
        return deleted
