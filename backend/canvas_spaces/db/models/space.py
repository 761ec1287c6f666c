from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Text, Uuid, Index
from sqlalchemy.orm import relationship

from canvas_spaces.db.base import Base


class Space(Base):
    """
    스페이스 - 하나의 소유자(테넌트)에 속한 캔버스 컨테이너

    SpaceCanvas 연결 행은 스페이스가 독점 소유한다 (cascade).
    """
    __tablename__ = "spaces"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False)

    name = Column(String(200), nullable=False)
    description = Column(Text)
    visibility = Column(String(20), nullable=False, default="private")

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    space_canvases = relationship(
        "SpaceCanvas",
        back_populates="space",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SpaceCanvas.sort_order",
    )

    __table_args__ = (
        Index("idx_spaces_owner", "owner_id"),
    )
