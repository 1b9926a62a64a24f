"""
Column layout for newly created nodes.

Image and video nodes are placed in three fixed columns around the viewport
center, each centered vertically on the number of nodes it will receive:

    LEFT    images without targets       center.x - column_gap / 2
    MIDDLE  images feeding a video       center.x
    RIGHT   videos                       center.x + column_gap / 2

Every other node kind goes on a left-to-right fallback cursor that moves by
``step_spacing`` per create step and by ``batch_spacing`` per node inside it.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum

from canvas_flow.canvas.types import Position
from canvas_flow.config import Settings, get_settings
from canvas_flow.plan.models import InstructionPlan, NodeConfig, NodeKind

logger = logging.getLogger(__name__)


class Column(str, Enum):
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"


@dataclass(frozen=True)
class LayoutConfig:
    frame_width: int = 600
    frame_height: int = 400
    vertical_spacing: int = 500
    column_gap: int = 800
    step_spacing: int = 500
    batch_spacing: int = 200

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> LayoutConfig:
        settings = settings or get_settings()
        return cls(
            frame_width=settings.layout_frame_width,
            frame_height=settings.layout_frame_height,
            vertical_spacing=settings.layout_vertical_spacing,
            column_gap=settings.layout_column_gap,
            step_spacing=settings.layout_step_spacing,
            batch_spacing=settings.layout_batch_spacing,
        )


def column_for(kind: NodeKind, config: NodeConfig) -> Column | None:
    """Column a node of this kind and config is placed in, None for the fallback cursor."""
    if kind is NodeKind.IMAGE_GENERATOR:
        return Column.MIDDLE if config.target_ids else Column.LEFT
    if kind is NodeKind.VIDEO_GENERATOR:
        return Column.RIGHT
    return None


def count_columns(plan: InstructionPlan) -> Counter[Column]:
    """Pre-scan a plan for the number of nodes each column will receive."""
    counts: Counter[Column] = Counter()
    for step in plan.create_steps():
        for i in range(step.count):
            override = step.batch_configs[i] if i < len(step.batch_configs) else None
            column = column_for(step.node_type, step.config_template.merged(override))
            if column is not None:
                counts[column] += 1
    return counts


class LayoutAllocator:
    """Running layout state for one plan execution."""

    def __init__(
        self,
        center: Position,
        config: LayoutConfig | None = None,
        column_counts: dict[Column, int] | None = None,
    ):
        self.center = center
        self.config = config or LayoutConfig()
        self.column_counts = {column: (column_counts or {}).get(column, 0) for column in Column}
        self._cursors = {column: 0 for column in Column}
        self._fallback_x = center.x - self.config.column_gap / 2
        self._fallback_y = center.y - self.config.frame_height / 2

    @classmethod
    def for_plan(
        cls,
        plan: InstructionPlan,
        center: Position,
        config: LayoutConfig | None = None,
    ) -> LayoutAllocator:
        counts = count_columns(plan)
        logger.debug(f"[Layout] column counts for plan {plan.id}: {dict(counts)}")
        return cls(center, config, dict(counts))

    def column_x(self, column: Column) -> float:
        half_gap = self.config.column_gap / 2
        if column is Column.LEFT:
            return self.center.x - half_gap
        if column is Column.RIGHT:
            return self.center.x + half_gap
        return self.center.x

    def column_start_y(self, column: Column) -> float:
        count = max(self.column_counts.get(column, 0), 1)
        return self.center.y - ((count - 1) * self.config.vertical_spacing) / 2

    def place(self, column: Column) -> Position:
        """Next slot in a column; advances that column's cursor."""
        row = self._cursors[column]
        self._cursors[column] = row + 1
        return Position(
            x=self.column_x(column),
            y=self.column_start_y(column) + row * self.config.vertical_spacing,
        )

    def place_fallback(self, index: int) -> Position:
        """Slot for the ``index``-th node of the current step on the fallback cursor."""
        return Position(
            x=self._fallback_x + index * self.config.batch_spacing,
            y=self._fallback_y,
        )

    def position_for(self, kind: NodeKind, config: NodeConfig, index: int) -> Position:
        column = column_for(kind, config)
        if column is None:
            return self.place_fallback(index)
        return self.place(column)

    def advance_step(self) -> None:
        self._fallback_x += self.config.step_spacing
