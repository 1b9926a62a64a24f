"""Tests for the canvas ops HTTP client and remote canvas state."""

import json

import httpx
import pytest

from canvas_flow.canvas.http import CanvasOpsClient, RemoteCanvasState, element_type
from canvas_flow.canvas.types import Connection, NodeRecord, Position
from canvas_flow.config import Settings
from canvas_flow.engine.errors import PersistenceFailure
from canvas_flow.engine.executor import ExecutionEnvironment, execute_plan
from canvas_flow.plan.models import CreateNodeStep, InstructionPlan, NodeKind


@pytest.fixture
def api_settings(monkeypatch):
    """Settings pointing at a fake canvas API with a token."""
    monkeypatch.setenv("CANVAS_API_URL", "https://canvas.test/api/canvas/")
    monkeypatch.setenv("CANVAS_API_TOKEN", "secret")
    return Settings()


@pytest.fixture
def requests_seen():
    return []


def _transport(requests_seen, status=200, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        return httpx.Response(status, json=body if body is not None else {"data": {"ok": True}})

    return httpx.MockTransport(handler)


def test_element_type():
    assert element_type("image") == "image-generator"
    assert element_type("upscale") == "upscale-plugin"


@pytest.mark.asyncio
async def test_create_element_posts_op(api_settings, requests_seen):
    async with httpx.AsyncClient(transport=_transport(requests_seen)) as http:
        client = CanvasOpsClient("proj-1", settings=api_settings, client=http)
        record = NodeRecord("image-1", "image", Position(10, 20), {"prompt": "a fox"})

        result = await client.create_element("image", record)

    assert result == {"ok": True}
    request = requests_seen[0]
    assert str(request.url) == "https://canvas.test/api/canvas/projects/proj-1/ops"
    assert request.headers["Authorization"] == "Bearer secret"

    payload = json.loads(request.content)
    assert payload["type"] == "create"
    assert payload["elementId"] == "image-1"
    assert payload["requestId"].startswith("req-")
    assert payload["data"]["element"] == {
        "id": "image-1",
        "type": "image-generator",
        "x": 10,
        "y": 20,
        "meta": {"prompt": "a fox"},
    }


@pytest.mark.asyncio
async def test_connect_and_delete_ops(api_settings, requests_seen):
    async with httpx.AsyncClient(transport=_transport(requests_seen, body={})) as http:
        client = CanvasOpsClient("proj-1", settings=api_settings, client=http)
        await client.connect(Connection("conn-1", "a", "b", label="First Frame"))
        await client.delete_element("a")

    connect, delete = (json.loads(r.content) for r in requests_seen)
    assert connect["type"] == "connect"
    assert connect["data"]["connector"]["from"] == "a"
    assert connect["data"]["connector"]["label"] == "First Frame"
    assert (delete["type"], delete["elementId"], delete["data"]) == ("delete", "a", {})


@pytest.mark.asyncio
async def test_error_status_raises(api_settings, requests_seen):
    async with httpx.AsyncClient(transport=_transport(requests_seen, status=500)) as http:
        client = CanvasOpsClient("proj-1", settings=api_settings, client=http)
        with pytest.raises(httpx.HTTPStatusError):
            await client.delete_element("a")


@pytest.mark.asyncio
async def test_remote_state_failures_are_reported(api_settings, requests_seen, id_factory):
    """API failures become persistence issues; local nodes remain."""
    async with httpx.AsyncClient(transport=_transport(requests_seen, status=503)) as http:
        canvas = RemoteCanvasState(CanvasOpsClient("proj-1", settings=api_settings, client=http))
        env = ExecutionEnvironment(canvas=canvas, id_factory=id_factory, settings=api_settings)
        plan = InstructionPlan(steps=[CreateNodeStep(node_type=NodeKind.TEXT, count=2)])

        report = await execute_plan(plan, env)

    assert len(canvas.list_nodes("text")) == 2
    assert len(report.issues_of(PersistenceFailure)) == 2
    assert len(requests_seen) == 2
