# 캔버스 버전 모델
# 한 행이 하나의 버전이며, version_group_id 로 묶인 행들이 하나의 논리적 캔버스를 이룬다.

from datetime import datetime
import enum
import uuid

from sqlalchemy import Column, String, DateTime, Text, Integer, Boolean, Uuid, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship

from canvas_spaces.db.base import Base


class CanvasType(str, enum.Enum):
    """캔버스(플로우) 유형"""
    CHATFLOW = "CHATFLOW"
    MULTIAGENT = "MULTIAGENT"
    ASSISTANT = "ASSISTANT"


# 버전 복제 시 그대로 복사되는 컬럼 (버전 관리 필드 제외)
CLONED_FIELDS = (
    "name",
    "flow_data",
    "deployed",
    "is_public",
    "apikeyid",
    "chatbot_config",
    "api_config",
    "analytic",
    "speech_to_text",
    "follow_up_prompts",
    "category",
    "type",
)


class Canvas(Base):
    """
    캔버스 버전 테이블

    비활성 버전은 변경하지 않는 스냅샷이며 레이블/설명만 수정 가능하다.
    flow_data 편집은 스페이스가 가리키는 활성 버전(작업본)에만 허용된다.
    그룹당 is_active=True 인 행은 최대 1개.
    """
    __tablename__ = "canvases"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False, default="Canvas 1")
    flow_data = Column(Text, nullable=False, default="{}")

    # 배포/설정 필드 (이 모듈에서는 내용을 해석하지 않음)
    deployed = Column(Boolean)
    is_public = Column(Boolean)
    apikeyid = Column(String(255))
    chatbot_config = Column(Text)
    api_config = Column(Text)
    analytic = Column(Text)
    speech_to_text = Column(Text)
    follow_up_prompts = Column(Text)
    category = Column(Text)
    type = Column(String(20), default=CanvasType.CHATFLOW.value)

    # 버전 관리
    version_group_id = Column(Uuid(as_uuid=True), nullable=False, default=uuid.uuid4)
    version_uuid = Column(Uuid(as_uuid=True), nullable=False, unique=True, default=uuid.uuid4)
    version_label = Column(String(200), nullable=False, default="v1")
    version_description = Column(Text)
    version_index = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    space_canvases = relationship("SpaceCanvas", back_populates="canvas", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("version_group_id", "version_index", name="uq_canvases_group_index"),
        Index("idx_canvases_group_active", "version_group_id", "is_active"),
        Index(
            "uq_canvases_active_version",
            "version_group_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        Index("idx_canvases_updated", "updated_at"),
    )
