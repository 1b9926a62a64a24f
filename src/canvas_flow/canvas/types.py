"""Canvas record types shared by the engine and its collaborators.

Node categories mirror the canvas-state collections: four plain media
categories plus one collection per plugin subtype.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

IMAGE = "image"
VIDEO = "video"
MUSIC = "music"
TEXT = "text"

BASE_CATEGORIES: tuple[str, ...] = (IMAGE, VIDEO, MUSIC, TEXT)

PLUGIN_TYPES: tuple[str, ...] = (
    "upscale",
    "remove-bg",
    "vectorize",
    "erase",
    "expand",
    "multiangle-camera",
    "next-scene",
    "storyboard",
    "video-editor",
    "compare",
)

ALL_CATEGORIES: tuple[str, ...] = BASE_CATEGORIES + PLUGIN_TYPES

_PLUGIN_ALIASES: dict[str, str] = {
    "removebg": "remove-bg",
    "remove-background": "remove-bg",
    "vectorize-image": "vectorize",
    "erase-replace": "erase",
    "expand-image": "expand",
    "outpaint": "expand",
    "camera": "multiangle-camera",
    "multiangle": "multiangle-camera",
}

DEFAULT_EDGE_COLOR = "#555555"
FIRST_FRAME_COLOR = "#4A90E2"
LAST_FRAME_COLOR = "#E2844A"


def normalize_plugin_type(plugin_type: str | None) -> str | None:
    """Map a plugin name or alias onto its canonical category, or None."""
    if not plugin_type:
        return None
    key = plugin_type.strip().lower()
    key = _PLUGIN_ALIASES.get(key, key)
    return key if key in PLUGIN_TYPES else None


def is_plugin_category(category: str) -> bool:
    return category in PLUGIN_TYPES


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Viewport:
    """Visible canvas area: screen size, pan offset and zoom."""

    width: float
    height: float
    pan_x: float = 0.0
    pan_y: float = 0.0
    scale: float = 1.0

    @property
    def center(self) -> Position:
        scale = self.scale or 1.0
        return Position(
            x=(self.width / 2 - self.pan_x) / scale,
            y=(self.height / 2 - self.pan_y) / scale,
        )


@dataclass
class NodeRecord:
    """A node as handed to the canvas-state collaborator."""

    id: str
    category: str
    position: Position
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "x": self.position.x,
            "y": self.position.y,
            **self.fields,
        }


@dataclass
class Connection:
    """Directed edge between two canvas nodes."""

    id: str
    from_id: str
    to_id: str
    color: str = DEFAULT_EDGE_COLOR
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "from": self.from_id,
            "to": self.to_id,
            "color": self.color,
        }
        if self.label:
            data["label"] = self.label
        return data
