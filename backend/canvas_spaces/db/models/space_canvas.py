from datetime import datetime
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Uuid, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from canvas_spaces.db.base import Base


class SpaceCanvas(Base):
    """
    스페이스-캔버스 연결 테이블

    version_group_id 는 가리키는 캔버스의 그룹을 비정규화한 값으로,
    버전 활성화 시 canvas_id 만 교체(재생성 아님)하는 데 사용한다.
    스페이스 내 sort_order 는 1..N 연속값.
    """
    __tablename__ = "spaces_canvases"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    space_id = Column(Uuid(as_uuid=True), ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False)
    canvas_id = Column(Uuid(as_uuid=True), ForeignKey("canvases.id", ondelete="CASCADE"), nullable=False)
    version_group_id = Column(Uuid(as_uuid=True), nullable=False)
    sort_order = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    space = relationship("Space", back_populates="space_canvases")
    canvas = relationship("Canvas", back_populates="space_canvases")

    __table_args__ = (
        UniqueConstraint("space_id", "version_group_id", name="uq_space_canvas_group"),
        UniqueConstraint("space_id", "sort_order", name="uq_space_sort"),
        Index("idx_sc_canvas", "canvas_id"),
        Index("idx_sc_version_group", "version_group_id"),
    )
