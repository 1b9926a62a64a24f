"""Tests for node materialization."""

from unittest.mock import AsyncMock

import pytest

from canvas_flow.canvas.types import IMAGE, NodeRecord, Position
from canvas_flow.engine.connections import ConnectionResolver
from canvas_flow.engine.errors import PersistenceFailure, UserInputValidation
from canvas_flow.engine.materializer import NodeMaterializer
from canvas_flow.engine.registry import StepRegistry
from canvas_flow.engine.report import ExecutionReport
from canvas_flow.plan.models import NodeConfig, NodeKind

ORIGIN = Position(x=0, y=0)


@pytest.fixture
def report():
    return ExecutionReport()


@pytest.fixture
def materializer(canvas, report, settings, id_factory):
    resolver = ConnectionResolver(canvas, StepRegistry(), report, id_factory)
    return NodeMaterializer(canvas, resolver, report, settings=settings, id_factory=id_factory)


def _edges(canvas):
    return [(c.from_id, c.to_id) for c in canvas.list_connections()]


def test_image_defaults(materializer):
    """Image nodes get the default image model and frame size."""
    record = materializer.build(NodeKind.IMAGE_GENERATOR, NodeConfig(prompt="a fox"), ORIGIN)

    assert record.category == "image"
    assert record.fields["model"] == "seedream-4.5"
    assert record.fields["aspectRatio"] == "1:1"
    assert record.fields["frameWidth"] == 600
    assert record.fields["frameHeight"] == 400
    assert record.fields["isGenerating"] is False


def test_video_defaults(materializer):
    """Video nodes default to the configured video model, 16:9 and 4 seconds."""
    record = materializer.build(NodeKind.VIDEO_GENERATOR, NodeConfig(prompt="waves"), ORIGIN)

    assert record.category == "video"
    assert record.fields["model"] == "Veo 3.1 Fast"
    assert record.fields["aspectRatio"] == "16:9"
    assert record.fields["duration"] == 4


def test_text_uses_content(materializer):
    """Text nodes carry their content and a style."""
    record = materializer.build(NodeKind.TEXT, NodeConfig(content="Hello", style="rich"), ORIGIN)

    assert record.category == "text"
    assert record.fields["text"] == "Hello"
    assert record.fields["style"] == "rich"


def test_extra_fields_are_passed_through(materializer):
    """Unknown config keys end up on the node."""
    config = NodeConfig.model_validate({"prompt": "x", "frameWidth": 800, "seed": 7})
    record = materializer.build(NodeKind.IMAGE_GENERATOR, config, ORIGIN)

    assert record.fields["frameWidth"] == 800
    assert record.fields["seed"] == 7


def test_plugin_alias_and_defaults(materializer):
    """Plugin aliases map to their category and per-plugin defaults."""
    config = NodeConfig(plugin_type="outpaint", source_image_url="https://img/1.png")
    record = materializer.build(NodeKind.PLUGIN, config, ORIGIN)

    assert record.category == "expand"
    assert record.fields["model"] == "Flux-1.1-Pro-Fill"
    assert record.fields["frameWidth"] == 500
    assert record.fields["sourceImageUrl"] == "https://img/1.png"
    assert record.fields["isExpanded"] is True


def test_plugin_model_display_name(materializer):
    """Display names are mapped onto model ids."""
    config = NodeConfig(plugin_type="upscale", model="Upscale", source_image_url="u")
    record = materializer.build(NodeKind.PLUGIN, config, ORIGIN)

    assert record.fields["model"] == "Crystal Upscaler"
    assert record.fields["scale"] == 2


def test_plugin_without_source_is_rejected(materializer, canvas):
    """A plugin with no source image, targets or selection is rejected up front."""
    with pytest.raises(UserInputValidation) as exc_info:
        materializer.validate(NodeKind.PLUGIN, NodeConfig(plugin_type="upscale"))

    assert "upscale" in exc_info.value.user_message
    assert canvas.all_nodes() == []


def test_unknown_plugin_type_is_rejected(materializer):
    with pytest.raises(UserInputValidation):
        materializer.validate(NodeKind.PLUGIN, NodeConfig(plugin_type="teleport", source_image_url="u"))


@pytest.mark.asyncio
async def test_plugin_takes_source_from_target_image(materializer, canvas):
    """The target image's generated URL becomes the plugin source and feeds it."""
    canvas.add_node(IMAGE, NodeRecord("img-src", IMAGE, ORIGIN, {"generatedImageUrl": "https://img/gen.png"}))

    record = await materializer.materialize(
        NodeKind.PLUGIN, NodeConfig(plugin_type="remove-bg", target_ids=["img-src"]), ORIGIN
    )

    assert record.fields["sourceImageUrl"] == "https://img/gen.png"
    assert record.fields["model"] == "Fast Remove BG"
    assert _edges(canvas) == [("img-src", record.id)]


def test_explicit_reference_wins_over_mentions(materializer, canvas):
    """An explicit reference image short-circuits @mention resolution."""
    canvas.add_node(IMAGE, NodeRecord("img-ref", IMAGE, ORIGIN, {"generatedImageUrl": "https://img/ref.png"}))

    explicit = NodeConfig(prompt="like @img-ref", reference_image_url="https://img/explicit.png")
    mentioned = NodeConfig(prompt="like @img-ref")

    assert materializer.reference_urls(explicit) == ["https://img/explicit.png"]
    assert materializer.reference_urls(mentioned) == ["https://img/ref.png"]


@pytest.mark.asyncio
async def test_materialize_adds_and_persists(materializer, canvas, report):
    """A node is added locally, persisted and reported."""
    record = await materializer.materialize(NodeKind.IMAGE_GENERATOR, NodeConfig(prompt="p"), ORIGIN)

    assert canvas.list_nodes("image") == [record]
    assert canvas.persisted_creates == [("image", record.id)]
    assert report.created == [record.id]


@pytest.mark.asyncio
async def test_persist_failure_keeps_local_node(materializer, canvas, report):
    """A failed create persist is recorded without rolling back the node."""
    canvas.persist_node_create = AsyncMock(side_effect=RuntimeError("disk full"))

    record = await materializer.materialize(NodeKind.VIDEO_GENERATOR, NodeConfig(), ORIGIN)

    assert canvas.find_node(record.id) is record
    failures = report.issues_of(PersistenceFailure)
    assert len(failures) == 1
    assert failures[0].operation == "node-create"


@pytest.mark.asyncio
async def test_image_with_targets_is_connected_once(materializer, canvas):
    """Repeated generations for the same pair keep a single edge."""
    first = await materializer.materialize(NodeKind.IMAGE_GENERATOR, NodeConfig(target_ids=["ref"]), ORIGIN)
    await materializer.connections.connect_sources(first.id, ["ref"])

    assert _edges(canvas) == [("ref", first.id)]


@pytest.mark.asyncio
async def test_video_legacy_uses_selection(canvas, report, settings, id_factory):
    """Without targets or frame policy the current selection feeds the video."""
    resolver = ConnectionResolver(canvas, StepRegistry(), report, id_factory)
    materializer = NodeMaterializer(
        canvas, resolver, report, settings=settings, selection=["sel-1", "sel-2"], id_factory=id_factory
    )

    record = await materializer.materialize(NodeKind.VIDEO_GENERATOR, NodeConfig(), ORIGIN)

    assert _edges(canvas) == [("sel-1", record.id), ("sel-2", record.id)]


def test_apply_result_updates_node(materializer, canvas):
    """Generation results are merged into the existing node."""
    canvas.add_node(IMAGE, NodeRecord("img-1", IMAGE, ORIGIN, {"prompt": "p"}))

    materializer.apply_result(IMAGE, "img-1", {"generatedImageUrl": "https://img/out.png", "isGenerating": False})

    assert canvas.find_node("img-1").fields == {
        "prompt": "p",
        "generatedImageUrl": "https://img/out.png",
        "isGenerating": False,
    }
