from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Uuid, Index

from canvas_spaces.db.base import Base


class PublishLink(Base):
    """
    게시 링크

    version_group_id 가 설정된 그룹 링크는 항상 그룹의 활성 버전을 가리켜야 하며,
    버전 활성화 시 target_canvas_id 가 갱신된다.
    version_group_id 가 없는 링크는 특정 버전에 고정된 링크이다.
    """
    __tablename__ = "publish_links"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    base_slug = Column(String(100), nullable=False, unique=True)
    technology = Column(String(50), nullable=False, default="arjs")
    version_group_id = Column(Uuid(as_uuid=True))
    target_canvas_id = Column(Uuid(as_uuid=True))
    target_version_uuid = Column(Uuid(as_uuid=True))

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_publish_links_group", "version_group_id"),
    )
