# 캔버스에 종속된 레코드들 (채팅 메시지, 피드백, 업서트 이력, 리드)
# canvas_id 는 외래키 없이 보관되며, 캔버스 삭제 시 함께 정리된다.

from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Text, Boolean, Float, Uuid, JSON, Index

from canvas_spaces.db.base import Base


class ChatMessage(Base):
    """캔버스 채팅 메시지"""
    __tablename__ = "chat_messages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    canvas_id = Column(Uuid(as_uuid=True), nullable=False)
    chat_id = Column(String(255))
    role = Column(String(50), nullable=False)  # userMessage, apiMessage
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_chat_messages_canvas", "canvas_id"),
    )


class ChatMessageFeedback(Base):
    """채팅 메시지 피드백"""
    __tablename__ = "chat_message_feedback"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    canvas_id = Column(Uuid(as_uuid=True), nullable=False)
    message_id = Column(Uuid(as_uuid=True), nullable=False)
    rating = Column(String(20))  # THUMBS_UP, THUMBS_DOWN
    content = Column(Text)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_chat_message_feedback_canvas", "canvas_id"),
    )


class UpsertHistory(Base):
    """벡터 스토어 업서트 이력"""
    __tablename__ = "upsert_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    canvas_id = Column(Uuid(as_uuid=True), nullable=False)
    result = Column(JSON, default=dict)
    flow_data = Column(JSON, default=dict)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_upsert_history_canvas", "canvas_id"),
    )


class Lead(Base):
    """캔버스를 통해 수집된 리드"""
    __tablename__ = "leads"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    canvas_id = Column(Uuid(as_uuid=True), nullable=False)
    chat_id = Column(String(255))
    name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    points = Column(Float, default=0)
    consent = Column(Boolean, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_leads_canvas", "canvas_id"),
    )
