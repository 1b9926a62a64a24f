"""Durable canvas persistence over the canvas ops HTTP API.

Every durable write is an append-only op posted to
``{CANVAS_API_URL}/projects/{project_id}/ops``.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import httpx

from canvas_flow.canvas.memory import InMemoryCanvasState
from canvas_flow.canvas.types import Connection, NodeRecord, Viewport, is_plugin_category
from canvas_flow.config import Settings, get_settings

logger = logging.getLogger(__name__)


def element_type(category: str) -> str:
    """Element type name the ops API stores for a node category."""
    if is_plugin_category(category):
        return f"{category}-plugin"
    return f"{category}-generator"


class CanvasOpsClient:
    """Async client for appending ops to a canvas project."""

    def __init__(
        self,
        project_id: str,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.project_id = project_id
        self.settings = settings or get_settings()
        self._client = client

    @property
    def ops_url(self) -> str:
        base = self.settings.canvas_api_url.rstrip("/")
        return f"{base}/projects/{self.project_id}/ops"

    def _build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.canvas_api_token:
            headers["Authorization"] = f"Bearer {self.settings.canvas_api_token}"
        return headers

    async def append_op(self, op_type: str, element_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Append one op; raises ``httpx.HTTPStatusError`` on a non-2xx answer."""
        payload = {
            "type": op_type,
            "elementId": element_id,
            "data": data,
            "requestId": f"req-{uuid.uuid4().hex}",
            "clientTs": int(time.time() * 1000),
        }
        logger.debug(f"[CanvasAPI] {op_type} {element_id} -> {self.ops_url}")

        if self._client is not None:
            response = await self._client.post(self.ops_url, json=payload, headers=self._build_headers())
        else:
            async with httpx.AsyncClient(timeout=self.settings.canvas_api_timeout) as client:
                response = await client.post(self.ops_url, json=payload, headers=self._build_headers())
        response.raise_for_status()

        if not response.content:
            return {}
        result = response.json()
        if not isinstance(result, dict):
            return {}
        return result.get("data") or {}

    async def create_element(self, category: str, record: NodeRecord) -> dict[str, Any]:
        element = {
            "id": record.id,
            "type": element_type(category),
            "x": record.position.x,
            "y": record.position.y,
            "meta": dict(record.fields),
        }
        return await self.append_op("create", record.id, {"element": element})

    async def delete_element(self, node_id: str) -> dict[str, Any]:
        return await self.append_op("delete", node_id, {})

    async def connect(self, connection: Connection) -> dict[str, Any]:
        return await self.append_op("connect", connection.id, {"connector": connection.to_dict()})


class RemoteCanvasState(InMemoryCanvasState):
    """In-memory canvas whose durable writes go to the canvas ops API."""

    def __init__(
        self,
        ops_client: CanvasOpsClient,
        viewport: Viewport | None = None,
        selected_ids: list[str] | None = None,
    ):
        super().__init__(viewport=viewport, selected_ids=selected_ids)
        self.ops_client = ops_client

    async def persist_node_create(self, category: str, record: NodeRecord) -> None:
        await super().persist_node_create(category, record)
        await self.ops_client.create_element(category, record)

    async def persist_node_delete(self, category: str, node_id: str) -> None:
        await super().persist_node_delete(category, node_id)
        await self.ops_client.delete_element(node_id)

    async def persist_connector_create(self, connection: Connection) -> None:
        await super().persist_connector_create(connection)
        await self.ops_client.connect(connection)
