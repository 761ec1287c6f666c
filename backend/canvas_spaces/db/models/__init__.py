from canvas_spaces.db.models.space import Space
from canvas_spaces.db.models.canvas import Canvas, CanvasType
from canvas_spaces.db.models.space_canvas import SpaceCanvas
from canvas_spaces.db.models.canvas_records import ChatMessage, ChatMessageFeedback, UpsertHistory, Lead
from canvas_spaces.db.models.document_store import DocumentStore
from canvas_spaces.db.models.publish_link import PublishLink

__all__ = [
    "Space",
    "Canvas",
    "CanvasType",
    "SpaceCanvas",
    "ChatMessage",
    "ChatMessageFeedback",
    "UpsertHistory",
    "Lead",
    "DocumentStore",
    "PublishLink",
]
