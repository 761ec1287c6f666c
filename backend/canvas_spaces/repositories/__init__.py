from canvas_spaces.repositories.space import SpaceRepository
from canvas_spaces.repositories.canvas import CanvasRepository
from canvas_spaces.repositories.space_canvas import SpaceCanvasRepository
from canvas_spaces.repositories.canvas_records import CanvasRecordsRepository

__all__ = [
    "SpaceRepository",
    "CanvasRepository",
    "SpaceCanvasRepository",
    "CanvasRecordsRepository",
]
