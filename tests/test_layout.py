"""Tests for column layout."""

from canvas_flow.canvas.types import Position
from canvas_flow.config import Settings
from canvas_flow.engine.layout import Column, LayoutAllocator, LayoutConfig, count_columns
from canvas_flow.plan.models import CreateNodeStep, InstructionPlan, NodeConfig, NodeKind

CENTER = Position(x=600, y=400)


def test_columns_are_centered_on_their_counts():
    """Each column starts at center.y - ((count - 1) * spacing) / 2."""
    layout = LayoutAllocator(CENTER, LayoutConfig(), {Column.LEFT: 3, Column.RIGHT: 1})

    first = layout.place(Column.LEFT)
    second = layout.place(Column.LEFT)
    video = layout.place(Column.RIGHT)

    assert first == Position(x=200, y=-100)
    assert second == Position(x=200, y=400)
    assert video == Position(x=1000, y=400)


def test_middle_column_at_center_x():
    """Scene-frame images sit at the viewport center."""
    layout = LayoutAllocator(CENTER, LayoutConfig(), {Column.MIDDLE: 2})

    assert layout.place(Column.MIDDLE) == Position(x=600, y=150)
    assert layout.place(Column.MIDDLE) == Position(x=600, y=650)


def test_position_for_picks_column_by_kind_and_targets():
    """Images without targets go left, with targets middle, videos right."""
    layout = LayoutAllocator(CENTER, LayoutConfig())

    assert layout.position_for(NodeKind.IMAGE_GENERATOR, NodeConfig(), 0).x == 200
    assert layout.position_for(NodeKind.IMAGE_GENERATOR, NodeConfig(target_ids=["ref"]), 0).x == 600
    assert layout.position_for(NodeKind.VIDEO_GENERATOR, NodeConfig(), 0).x == 1000


def test_fallback_cursor_moves_per_step():
    """Other kinds move right by batch spacing per node and step spacing per step."""
    layout = LayoutAllocator(CENTER, LayoutConfig())

    assert layout.position_for(NodeKind.TEXT, NodeConfig(), 0) == Position(x=200, y=200)
    assert layout.position_for(NodeKind.TEXT, NodeConfig(), 1) == Position(x=400, y=200)
    layout.advance_step()
    assert layout.position_for(NodeKind.MUSIC_GENERATOR, NodeConfig(), 0) == Position(x=700, y=200)


def test_count_columns_prescans_plan():
    """The pre-scan counts nodes per column including batch overrides."""
    plan = InstructionPlan(
        steps=[
            CreateNodeStep(
                node_type=NodeKind.IMAGE_GENERATOR,
                count=3,
                batch_configs=[NodeConfig(target_ids=["ref"])],
            ),
            CreateNodeStep(node_type=NodeKind.VIDEO_GENERATOR, count=2),
            CreateNodeStep(node_type=NodeKind.TEXT, count=1),
        ]
    )

    counts = count_columns(plan)

    assert counts[Column.LEFT] == 2
    assert counts[Column.MIDDLE] == 1
    assert counts[Column.RIGHT] == 2


def test_layout_config_from_settings(monkeypatch):
    """Layout parameters are configurable through the environment."""
    monkeypatch.setenv("LAYOUT_VERTICAL_SPACING", "300")
    monkeypatch.setenv("LAYOUT_COLUMN_GAP", "1000")

    config = LayoutConfig.from_settings(Settings())

    assert config.vertical_spacing == 300
    assert config.column_gap == 1000
    assert config.frame_width == 600
