"""Tests for the deletion cascade."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from canvas_flow.canvas.types import IMAGE, TEXT, VIDEO, NodeRecord, Position
from canvas_flow.engine.deletion import DeletionCascade, build_predicate
from canvas_flow.engine.errors import PersistenceFailure
from canvas_flow.engine.report import ExecutionReport
from canvas_flow.plan.models import DeleteNodeStep

ORIGIN = Position(x=0, y=0)


@pytest.fixture
def populated(canvas):
    """Canvas with two images, one video, one text, one upscale and one erase plugin."""
    for node_id, category in [
        ("img-1", IMAGE),
        ("img-2", IMAGE),
        ("vid-1", VIDEO),
        ("txt-1", TEXT),
        ("up-1", "upscale"),
        ("er-1", "erase"),
    ]:
        canvas.add_node(category, NodeRecord(node_id, category, ORIGIN))
    canvas.select(["img-1", "vid-1"])
    return canvas


def _ids(canvas):
    return sorted(node.id for node in canvas.all_nodes())


def test_predicate_for_unrelated_category_is_none():
    step = DeleteNodeStep(target_type="video")

    assert build_predicate(step, IMAGE) is None
    assert build_predicate(step, VIDEO) is not None


def test_plugin_predicate_respects_plugin_type():
    """pluginType limits plugin deletion to one subtype; aliases are accepted."""
    step = DeleteNodeStep(target_type="plugin", plugin_type="erase-replace")

    assert build_predicate(step, "erase") is not None
    assert build_predicate(step, "upscale") is None
    assert build_predicate(step, IMAGE) is None


@pytest.mark.asyncio
async def test_delete_listed_images(populated):
    """Only the listed ids of the target category are removed."""
    report = ExecutionReport()
    removed = DeletionCascade(populated, report).run(DeleteNodeStep(target_type="image", target_ids=["img-2"]))
    await report.drain()

    assert removed == ["img-2"]
    assert _ids(populated) == ["er-1", "img-1", "txt-1", "up-1", "vid-1"]
    assert populated.persisted_deletes == [("image", "img-2")]
    assert populated.selected_ids == ["img-1", "vid-1"]


@pytest.mark.asyncio
async def test_delete_all_plugins(populated):
    """A plugin target without pluginType removes every plugin subtype."""
    report = ExecutionReport()
    removed = DeletionCascade(populated, report).run(DeleteNodeStep(target_type="plugin"))
    await report.drain()

    assert sorted(removed) == ["er-1", "up-1"]
    assert _ids(populated) == ["img-1", "img-2", "txt-1", "vid-1"]


@pytest.mark.asyncio
async def test_delete_all_clears_everything_and_is_idempotent(populated):
    """Deleting 'all' empties every category and the selection; repeating it does nothing."""
    report = ExecutionReport()
    cascade = DeletionCascade(populated, report)

    cascade.run(DeleteNodeStep(target_type="all"))
    await report.drain()

    assert populated.all_nodes() == []
    assert populated.selected_ids == []
    assert len(populated.persisted_deletes) == 6

    populated.persisted_deletes.clear()
    assert cascade.run(DeleteNodeStep(target_type="all")) == []
    await report.drain()
    assert populated.persisted_deletes == []


@pytest.mark.asyncio
async def test_delete_all_with_ids_keeps_selection(populated):
    """Deleting listed ids across categories leaves the selection alone."""
    report = ExecutionReport()
    DeletionCascade(populated, report).run(DeleteNodeStep(target_type="all", target_ids=["vid-1", "up-1"]))
    await report.drain()

    assert _ids(populated) == ["er-1", "img-1", "img-2", "txt-1"]
    assert populated.selected_ids == ["img-1", "vid-1"]


@pytest.mark.asyncio
async def test_deletes_are_not_awaited(populated):
    """Persistence calls run in the background; the cascade returns first."""
    gate = asyncio.Event()

    async def slow_delete(category, node_id):
        await gate.wait()

    populated.persist_node_delete = AsyncMock(side_effect=slow_delete)
    report = ExecutionReport()

    removed = DeletionCascade(populated, report).run(DeleteNodeStep(target_type="video"))

    assert removed == ["vid-1"]
    assert len(report.background_tasks) == 1
    assert not report.background_tasks[0].done()

    gate.set()
    await report.drain()
    assert report.background_tasks[0].done()


@pytest.mark.asyncio
async def test_background_failure_is_reported(populated):
    """A failing delete persist is logged and reported, local removal stands."""
    populated.persist_node_delete = AsyncMock(side_effect=RuntimeError("gone"))
    report = ExecutionReport()

    DeletionCascade(populated, report).run(DeleteNodeStep(target_type="text"))
    await report.drain()
    await asyncio.sleep(0)

    assert populated.find_node("txt-1") is None
    failures = report.issues_of(PersistenceFailure)
    assert [f.target_id for f in failures] == ["txt-1"]
