from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Text, Uuid, JSON

from canvas_spaces.db.base import Base


class DocumentStore(Base):
    """
    문서 스토어

    where_used 는 이 스토어를 사용하는 캔버스 id 목록(문자열)을 비정규화해 둔 값이며,
    캔버스 삭제 후 커밋 이후 정리 작업에서 best-effort 로 갱신된다.
    """
    __tablename__ = "document_stores"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True))
    name = Column(String(255), nullable=False)
    description = Column(Text)
    where_used = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
