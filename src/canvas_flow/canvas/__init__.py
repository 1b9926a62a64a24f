"""Canvas-state records and collaborators."""

from canvas_flow.canvas.memory import InMemoryCanvasState
from canvas_flow.canvas.protocols import CanvasStateProtocol, PromptCompletionProtocol, completion_text
from canvas_flow.canvas.types import (
    ALL_CATEGORIES,
    BASE_CATEGORIES,
    IMAGE,
    MUSIC,
    PLUGIN_TYPES,
    TEXT,
    VIDEO,
    Connection,
    NodeRecord,
    Position,
    Viewport,
    is_plugin_category,
    new_id,
    normalize_plugin_type,
)

__all__ = [
    "ALL_CATEGORIES",
    "BASE_CATEGORIES",
    "IMAGE",
    "MUSIC",
    "PLUGIN_TYPES",
    "TEXT",
    "VIDEO",
    "CanvasStateProtocol",
    "Connection",
    "InMemoryCanvasState",
    "NodeRecord",
    "Position",
    "PromptCompletionProtocol",
    "Viewport",
    "completion_text",
    "is_plugin_category",
    "new_id",
    "normalize_plugin_type",
]
